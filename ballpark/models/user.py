from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field, CheckConstraint

from ..utils import utcnow


class User(SQLModel, table=True):
    __tablename__ = "users"
    __table_args__ = (CheckConstraint("points >= 0", name="ck_users_points_non_negative"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True)
    email: str = Field(unique=True, index=True)
    password_hash: str
    is_admin: bool = Field(default=False)

    # Balance, only ever moved through the points ledger
    points: int = Field(default=0)

    # Prediction stats
    total_predictions: int = Field(default=0)
    successful_predictions: int = Field(default=0)
    current_streak: int = Field(default=0)
    max_streak: int = Field(default=0)

    # Betting stats
    total_bets: int = Field(default=0)
    successful_bets: int = Field(default=0)

    last_daily_bonus_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
