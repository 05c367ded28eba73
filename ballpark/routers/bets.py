from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlmodel import Session

from ..database import get_session
from ..dependencies import require_user
from ..models import BetStatus, PredictedResult, User
from ..services import placement

router = APIRouter(prefix="/api/bets", tags=["bets"])


class BetCreate(BaseModel):
    game_id: str
    amount: int
    predicted_winner: PredictedResult


class BetResponse(BaseModel):
    id: int
    game_id: str
    amount: int
    predicted_winner: PredictedResult
    odds: float
    status: BetStatus
    actual_win: int
    created_at: datetime
    resolved_at: Optional[datetime] = None


@router.get("", response_model=List[BetResponse])
async def get_user_bets(
    status_filter: Optional[BetStatus] = None,
    limit: int = 50,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    # Cap the page size
    return placement.list_bets(db, current_user.id, status_filter, min(limit, 100))


@router.post("", response_model=BetResponse, status_code=status.HTTP_201_CREATED)
async def place_bet(
    bet_data: BetCreate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """Stake points on a side. The stake leaves the balance immediately."""
    return placement.place_bet(
        db, current_user.id, bet_data.game_id, bet_data.amount, bet_data.predicted_winner
    )
