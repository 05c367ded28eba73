from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from ..utils import utcnow
from .enums import PointType


class PointHistory(SQLModel, table=True):
    """Append-only ledger row. Never updated or deleted."""
    __tablename__ = "point_history"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    amount: int  # positive = credit, negative = debit
    type: PointType = Field(index=True)
    description: str
    reference_type: Optional[str] = Field(default=None)  # "prediction" | "bet"
    reference_id: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
