from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from ..database import get_session
from ..dependencies import require_user
from ..models import PointType, User
from ..services import ledger
from ..services.stats import claim_daily_bonus, user_stats

router = APIRouter(prefix="/api", tags=["points"])


class PointHistoryResponse(BaseModel):
    id: int
    amount: int
    type: PointType
    description: str
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    created_at: datetime


@router.get("/points")
async def get_points(
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    return {"user_id": current_user.id, "points": ledger.get_balance(db, current_user.id)}


@router.get("/points/history", response_model=List[PointHistoryResponse])
async def get_point_history(
    limit: int = 50,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    return ledger.get_history(db, current_user.id, min(limit, 200))


@router.post("/points/daily", response_model=PointHistoryResponse)
async def daily_bonus(
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    return claim_daily_bonus(db, current_user.id)


@router.get("/stats")
async def get_stats(
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    return user_stats(db, current_user.id)
