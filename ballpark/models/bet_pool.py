from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from ..utils import utcnow


class BetPool(SQLModel, table=True):
    __tablename__ = "bet_pools"

    id: Optional[int] = Field(default=None, primary_key=True)
    game_id: str = Field(foreign_key="games.id", unique=True, index=True)

    home_pool: int = Field(default=0)
    away_pool: int = Field(default=0)
    total_pool: int = Field(default=0)

    # Odds snapshot after the latest bet
    home_odds: float = Field(default=2.0)
    away_odds: float = Field(default=2.0)

    updated_at: datetime = Field(default_factory=utcnow)
