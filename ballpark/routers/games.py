from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session, select, func

from ..database import get_session
from ..dependencies import get_current_user
from ..models import BetPool, Game, GameStatus, Prediction, User
from ..services.eligibility import is_predictable, prediction_cutoff
from ..services.games import get_game
from ..services.placement import quote_odds
from ..utils import utcnow

router = APIRouter(prefix="/api/games", tags=["games"])


class GameResponse(BaseModel):
    id: str
    scheduled_at: datetime
    home_team_id: str
    home_team_name: str
    away_team_id: str
    away_team_name: str
    stadium: Optional[str] = None
    status: GameStatus
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    is_predictable: bool
    prediction_cutoff: datetime
    prediction_count: int = 0
    home_odds: Optional[float] = None
    away_odds: Optional[float] = None
    user_prediction_id: Optional[int] = None


def _game_response(
    db: Session,
    game: Game,
    now: datetime,
    current_user: Optional[User] = None
) -> GameResponse:
    # Pool odds and prediction count
    pool = db.exec(select(BetPool).where(BetPool.game_id == game.id)).first()
    prediction_count = db.exec(
        select(func.count(Prediction.id)).where(Prediction.game_id == game.id)
    ).first() or 0

    user_prediction_id = None
    # Current user's prediction, if any
    if current_user:
        user_prediction_id = db.exec(
            select(Prediction.id).where(
                Prediction.game_id == game.id,
                Prediction.user_id == current_user.id
            )
        ).first()

    return GameResponse(
        id=game.id,
        scheduled_at=game.scheduled_at,
        home_team_id=game.home_team_id,
        home_team_name=game.home_team_name,
        away_team_id=game.away_team_id,
        away_team_name=game.away_team_name,
        stadium=game.stadium,
        status=game.status,
        home_score=game.home_score,
        away_score=game.away_score,
        is_predictable=is_predictable(game, now),
        prediction_cutoff=prediction_cutoff(game),
        prediction_count=prediction_count,
        home_odds=pool.home_odds if pool else None,
        away_odds=pool.away_odds if pool else None,
        user_prediction_id=user_prediction_id
    )


@router.get("", response_model=List[GameResponse])
async def list_games(
    day: Optional[date] = None,
    db: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_current_user)
):
    """Games scheduled on a given UTC day (today by default)."""
    now = utcnow()
    day = day or now.date()
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)

    statement = (
        select(Game)
        .where(Game.scheduled_at >= start, Game.scheduled_at < start + timedelta(days=1))
        .order_by(Game.scheduled_at)
    )
    games = db.exec(statement).all()

    return [_game_response(db, game, now, current_user) for game in games]


@router.get("/{game_id}", response_model=GameResponse)
async def read_game(
    game_id: str,
    db: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_current_user)
):
    game = get_game(db, game_id)
    return _game_response(db, game, utcnow(), current_user)


@router.get("/{game_id}/odds")
async def read_odds(
    game_id: str,
    db: Session = Depends(get_session)
):
    odds = quote_odds(db, game_id)
    return {"game_id": game_id, "home_odds": odds.home, "away_odds": odds.away}
