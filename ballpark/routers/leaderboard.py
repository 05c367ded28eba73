from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..database import get_session
from ..services.stats import leaderboard

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])


@router.get("")
async def leaderboard_api(
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_session)
):
    """Top players by points."""
    return leaderboard(db, limit)
