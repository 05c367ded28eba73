"""
Prediction settlement.

Scoring:
- Correct winner: PREDICTION_WIN_POINTS
- Correct winner and exact score: PERFECT_PREDICTION_POINTS instead
- Reaching a streak milestone: an extra STREAK_BONUS entry
- Wrong winner: nothing, and the streak resets

``resolve_prediction`` decides the outcome without touching the database.
``settle_predictions`` applies it row by row, one transaction per prediction.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..config import PERFECT_PREDICTION_POINTS, PREDICTION_WIN_POINTS, STREAK_BONUS
from ..errors import AlreadySettledError, TransientStoreError
from ..models import Game, PointType, Prediction, PredictionStatus, User
from ..utils import utcnow
from . import ledger
from .outcome import BatchResult, determine_winner

logger = logging.getLogger("ballpark.settlement.predictions")

# Attempts per prediction when another settlement keeps moving the streak
STREAK_RETRIES = 3


@dataclass
class LedgerLine:
    category: PointType
    amount: int
    description: str


@dataclass
class PredictionResolution:
    status: PredictionStatus
    points_earned: int
    current_streak: int
    max_streak: int
    ledger_lines: List[LedgerLine] = field(default_factory=list)

    @property
    def total_points(self) -> int:
        return sum(line.amount for line in self.ledger_lines)

    @property
    def is_win(self) -> bool:
        return self.status == PredictionStatus.WIN


def streak_bonus(streak: int) -> int:
    return STREAK_BONUS.get(streak, 0)


def is_perfect(prediction: Prediction, home_score: int, away_score: int) -> bool:
    return (prediction.has_exact_score and
            prediction.predicted_home_score == home_score and
            prediction.predicted_away_score == away_score)


def resolve_prediction(
    prediction: Prediction,
    home_score: int,
    away_score: int,
    current_streak: int,
    max_streak: int,
    game_label: str = "",
) -> PredictionResolution:
    """Work out what a prediction earns against a final score."""
    winner = determine_winner(home_score, away_score)
    label = game_label or prediction.game_id

    if prediction.predicted_winner != winner:
        return PredictionResolution(
            status=PredictionStatus.LOSE,
            points_earned=0,
            current_streak=0,
            max_streak=max_streak,
        )

    if is_perfect(prediction, home_score, away_score):
        points = PERFECT_PREDICTION_POINTS
        lines = [LedgerLine(PointType.PREDICTION_PERFECT, points, f"{label}: perfect prediction")]
    else:
        points = PREDICTION_WIN_POINTS
        lines = [LedgerLine(PointType.PREDICTION_WIN, points, f"{label}: correct prediction")]

    new_streak = current_streak + 1
    bonus = streak_bonus(new_streak)
    if bonus:
        lines.append(LedgerLine(PointType.STREAK_BONUS, bonus, f"{new_streak}-game streak bonus"))

    return PredictionResolution(
        status=PredictionStatus.WIN,
        points_earned=points,
        current_streak=new_streak,
        max_streak=max(max_streak, new_streak),
        ledger_lines=lines,
    )


class _StreakChanged(Exception):
    """Another settlement moved the user's streak after it was read."""


def _lock_user(db: Session, user_id: int) -> User:
    # FOR UPDATE holds the row on databases that support it, and
    # populate_existing drops whatever this session cached earlier
    return db.exec(
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).one()


def _apply_once(
    db: Session,
    prediction_id: int,
    home_score: int,
    away_score: int,
    game_label: str,
) -> PredictionResolution:
    prediction = db.get(Prediction, prediction_id)
    if prediction is None or prediction.status != PredictionStatus.PENDING:
        raise AlreadySettledError(f"Prediction {prediction_id} already resolved")

    user = _lock_user(db, prediction.user_id)
    user_id = user.id
    seen_streak, seen_max = user.current_streak, user.max_streak
    resolution = resolve_prediction(
        prediction, home_score, away_score, seen_streak, seen_max, game_label
    )

    now = utcnow()
    claimed = db.exec(
        update(Prediction)
        .where(
            Prediction.id == prediction_id,
            Prediction.status == PredictionStatus.PENDING
        )
        .values(
            status=resolution.status,
            points_earned=resolution.points_earned,
            resolved_at=now,
            updated_at=now
        )
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount == 0:
        raise AlreadySettledError(f"Prediction {prediction_id} already resolved")

    # Streaks are written only if nobody moved them since the read above
    counters = db.exec(
        update(User)
        .where(
            User.id == user_id,
            User.current_streak == seen_streak,
            User.max_streak == seen_max
        )
        .values(
            current_streak=resolution.current_streak,
            max_streak=resolution.max_streak,
            successful_predictions=User.successful_predictions + (1 if resolution.is_win else 0),
            updated_at=now
        )
        .execution_options(synchronize_session=False)
    )
    if counters.rowcount == 0:
        raise _StreakChanged()

    for line in resolution.ledger_lines:
        ledger.credit(
            db, user_id, line.amount, line.category, line.description,
            reference_id=prediction_id, reference_type="prediction", commit=False
        )

    db.commit()
    return resolution


def apply_prediction(
    db: Session,
    prediction_id: int,
    home_score: int,
    away_score: int,
    game_label: str = "",
) -> PredictionResolution:
    """Resolve and persist a single prediction in its own transaction.

    If a concurrent settlement for the same user changes the streak in
    between, the row is rolled back and resolved again from fresh values.
    """
    for attempt in range(1, STREAK_RETRIES + 1):
        try:
            return _apply_once(db, prediction_id, home_score, away_score, game_label)
        except AlreadySettledError:
            db.rollback()
            raise
        except _StreakChanged:
            db.rollback()
            logger.info("Prediction %s: streak changed underneath, retry %d", prediction_id, attempt)
        except SQLAlchemyError as exc:
            db.rollback()
            raise TransientStoreError(
                f"Could not settle prediction {prediction_id}: {exc}", row_id=prediction_id
            ) from exc

    raise TransientStoreError(
        f"Could not settle prediction {prediction_id}: streak kept changing", row_id=prediction_id
    )


def settle_predictions(
    db: Session,
    game: Game,
    home_score: int,
    away_score: int,
    prediction_ids: Optional[List[int]] = None,
) -> BatchResult:
    """Settle every pending prediction on a game.

    Rows already resolved are skipped. A failing row is logged and counted,
    the rest of the batch carries on, and a later run picks it up again.
    """
    batch = BatchResult()
    game_id = game.id
    game_label = game.label

    if prediction_ids is None:
        prediction_ids = list(db.exec(
            select(Prediction.id)
            .where(Prediction.game_id == game_id)
            .order_by(Prediction.id)
        ).all())

    for prediction_id in prediction_ids:
        try:
            resolution = apply_prediction(db, prediction_id, home_score, away_score, game_label)
        except AlreadySettledError:
            batch.skipped += 1
            continue
        except TransientStoreError as exc:
            logger.error("Game %s: %s", game_id, exc.message)
            batch.record_failure(prediction_id)
            continue

        batch.processed += 1
        if resolution.is_win:
            batch.won += 1
        else:
            batch.lost += 1
        batch.points += resolution.total_points

    logger.info(
        "Predictions settled for %s (%s): processed=%d won=%d lost=%d skipped=%d failed=%d points=%d",
        game_id, game_label, batch.processed, batch.won, batch.lost,
        batch.skipped, batch.failed, batch.points
    )
    return batch
