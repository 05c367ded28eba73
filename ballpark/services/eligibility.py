from datetime import datetime, timedelta
from typing import Optional

from ..config import PREDICTION_CUTOFF_MINUTES
from ..errors import GameClosedError
from ..models import Game, GameStatus
from ..utils import as_utc, utcnow

CLOSED_STATUSES = (GameStatus.COMPLETED, GameStatus.CANCELLED, GameStatus.LIVE)


def prediction_cutoff(game: Game) -> datetime:
    """Last instant (exclusive) at which the game accepts predictions and bets."""
    return as_utc(game.scheduled_at) - timedelta(minutes=PREDICTION_CUTOFF_MINUTES)


def is_predictable(game: Game, now: Optional[datetime] = None) -> bool:
    if game.status in CLOSED_STATUSES:
        return False

    now = as_utc(now) if now is not None else utcnow()
    return now < prediction_cutoff(game)


def ensure_predictable(game: Game, now: Optional[datetime] = None) -> None:
    """Raise GameClosedError, with the reason, unless the game is still open."""
    if is_predictable(game, now):
        return

    if game.status == GameStatus.COMPLETED:
        raise GameClosedError("Game has already finished")
    if game.status == GameStatus.CANCELLED:
        raise GameClosedError("Game was cancelled")
    if game.status == GameStatus.LIVE:
        raise GameClosedError("Game is already in progress")
    raise GameClosedError(
        f"Predictions closed at {prediction_cutoff(game):%Y-%m-%d %H:%M} UTC"
    )
