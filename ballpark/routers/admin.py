from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, StrictInt
from sqlmodel import Session

from ..database import get_session
from ..dependencies import require_admin
from ..models import User
from ..services import games as game_service

router = APIRouter(prefix="/admin", tags=["admin"])


class GameUpsert(BaseModel):
    id: str = Field(min_length=1)
    scheduled_at: datetime
    home_team_id: str
    home_team_name: str
    away_team_id: str
    away_team_name: str
    stadium: Optional[str] = None


class FinalScore(BaseModel):
    home_score: StrictInt = Field(ge=0)
    away_score: StrictInt = Field(ge=0)


@router.post("/games")
async def upsert_game(
    payload: GameUpsert,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Store a normalized schedule record from the schedule provider."""
    game, created = game_service.upsert_game(
        db,
        payload.id,
        payload.scheduled_at,
        payload.home_team_id,
        payload.home_team_name,
        payload.away_team_id,
        payload.away_team_name,
        payload.stadium
    )
    return {"id": game.id, "status": game.status, "created": created}


@router.post("/games/{game_id}/live")
async def mark_game_live(
    game_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    game = game_service.mark_live(db, game_id)
    return {"id": game.id, "status": game.status}


@router.post("/games/{game_id}/settle")
async def settle_game(
    game_id: str,
    score: FinalScore,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Record the final score and pay out every prediction and bet."""
    # Failed rows are reported in the summary, settle again to retry them
    summary = game_service.settle_game(db, game_id, score.home_score, score.away_score)
    return summary.as_dict()


@router.post("/games/{game_id}/cancel")
async def cancel_game(
    game_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Cancel a game, void its predictions and refund its bets."""
    summary = game_service.cancel_game(db, game_id)
    return summary.as_dict()
