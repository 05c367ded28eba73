from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from ..utils import utcnow
from .enums import BetStatus, PredictedResult


class Bet(SQLModel, table=True):
    __tablename__ = "bets"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    game_id: str = Field(foreign_key="games.id", index=True)

    amount: int
    predicted_winner: PredictedResult
    odds: float  # quoted at placement time

    status: BetStatus = Field(default=BetStatus.PENDING, index=True)
    actual_win: int = Field(default=0)
    resolved_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utcnow)
