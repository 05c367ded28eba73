from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from ..utils import utcnow
from .enums import GameStatus, TERMINAL_GAME_STATUSES


class Game(SQLModel, table=True):
    __tablename__ = "games"

    # Schedule provider's game id, e.g. "20250601SKWO0"
    id: str = Field(primary_key=True)
    scheduled_at: datetime = Field(index=True)

    home_team_id: str
    home_team_name: str
    away_team_id: str
    away_team_name: str
    stadium: Optional[str] = Field(default=None)

    status: GameStatus = Field(default=GameStatus.SCHEDULED, index=True)

    # Final score (filled at settlement)
    home_score: Optional[int] = Field(default=None)
    away_score: Optional[int] = Field(default=None)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_GAME_STATUSES

    @property
    def label(self) -> str:
        return f"{self.away_team_name} @ {self.home_team_name}"
