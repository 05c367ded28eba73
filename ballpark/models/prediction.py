from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint

from ..utils import utcnow
from .enums import PredictedResult, PredictionStatus


class Prediction(SQLModel, table=True):
    __tablename__ = "predictions"
    __table_args__ = (UniqueConstraint("user_id", "game_id", name="unique_user_game"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    game_id: str = Field(foreign_key="games.id", index=True)

    # Prediction
    predicted_winner: PredictedResult
    predicted_home_score: Optional[int] = Field(default=None)
    predicted_away_score: Optional[int] = Field(default=None)

    # Result (set once at settlement)
    status: PredictionStatus = Field(default=PredictionStatus.PENDING, index=True)
    points_earned: int = Field(default=0)
    resolved_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def has_exact_score(self) -> bool:
        return self.predicted_home_score is not None and self.predicted_away_score is not None
