"""Creating, changing and removing predictions and bets while a game is open."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..config import (
    HOUSE_EDGE, MAX_PREDICTED_SCORE, MAXIMUM_BET_AMOUNT, MINIMUM_BET_AMOUNT,
)
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import (
    Bet, BetStatus, PointType, PredictedResult, Prediction, PredictionStatus, User,
)
from ..utils import utcnow
from . import ledger
from .eligibility import ensure_predictable
from .games import get_game, get_or_create_pool
from .odds import Odds, compute_odds

logger = logging.getLogger("ballpark.placement")

BETTABLE_SIDES = (PredictedResult.HOME, PredictedResult.AWAY)


def _parse_result(value) -> PredictedResult:
    try:
        return PredictedResult(value)
    except ValueError:
        allowed = ", ".join(r.value for r in PredictedResult)
        raise ValidationError(f"Invalid predicted winner {value!r}. Allowed: {allowed}")


def _validate_exact_score(home: Optional[int], away: Optional[int]) -> None:
    if (home is None) != (away is None):
        raise ValidationError("Give both exact scores or neither")
    for value in (home, away):
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_PREDICTED_SCORE:
            raise ValidationError(f"Predicted scores must be between 0 and {MAX_PREDICTED_SCORE}")


def _count(db: Session, user_id: int, column, delta: int) -> None:
    """Move a per-user counter in SQL, never below zero."""
    db.exec(
        update(User)
        .where(User.id == user_id, column + delta >= 0)
        .values({column.key: column + delta})
        .execution_options(synchronize_session=False)
    )


# Predictions

def create_prediction(
    db: Session,
    user_id: int,
    game_id: str,
    predicted_winner,
    predicted_home_score: Optional[int] = None,
    predicted_away_score: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Prediction:
    winner = _parse_result(predicted_winner)
    _validate_exact_score(predicted_home_score, predicted_away_score)

    game = get_game(db, game_id)
    ensure_predictable(game, now)

    existing = db.exec(
        select(Prediction).where(Prediction.user_id == user_id, Prediction.game_id == game_id)
    ).first()
    if existing:
        raise ConflictError("You already predicted this game")

    prediction = Prediction(
        user_id=user_id,
        game_id=game_id,
        predicted_winner=winner,
        predicted_home_score=predicted_home_score,
        predicted_away_score=predicted_away_score
    )
    db.add(prediction)

    try:
        _count(db, user_id, User.total_predictions, 1)
        db.commit()
    except IntegrityError:
        # Lost a race against another request for the same (user, game)
        db.rollback()
        raise ConflictError("You already predicted this game")

    db.refresh(prediction)
    return prediction


def _get_own_prediction(db: Session, user_id: int, prediction_id: int) -> Prediction:
    prediction = db.get(Prediction, prediction_id)
    if not prediction or prediction.user_id != user_id:
        raise NotFoundError("Prediction not found")
    return prediction


def _ensure_editable(db: Session, prediction: Prediction, now: Optional[datetime]) -> None:
    if prediction.status != PredictionStatus.PENDING:
        raise ConflictError("This prediction has already been resolved")
    ensure_predictable(get_game(db, prediction.game_id), now)


def update_prediction(
    db: Session,
    user_id: int,
    prediction_id: int,
    predicted_winner=None,
    predicted_home_score: Optional[int] = None,
    predicted_away_score: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Prediction:
    prediction = _get_own_prediction(db, user_id, prediction_id)
    _ensure_editable(db, prediction, now)

    winner = _parse_result(predicted_winner) if predicted_winner is not None else None
    # Scores left out of the request keep their stored values
    new_score = predicted_home_score is not None or predicted_away_score is not None
    if new_score:
        _validate_exact_score(predicted_home_score, predicted_away_score)

    if winner is not None:
        prediction.predicted_winner = winner
    if new_score:
        prediction.predicted_home_score = predicted_home_score
        prediction.predicted_away_score = predicted_away_score
    prediction.updated_at = utcnow()

    db.add(prediction)
    db.commit()
    db.refresh(prediction)
    return prediction


def delete_prediction(
    db: Session,
    user_id: int,
    prediction_id: int,
    now: Optional[datetime] = None,
) -> None:
    prediction = _get_own_prediction(db, user_id, prediction_id)
    _ensure_editable(db, prediction, now)

    _count(db, user_id, User.total_predictions, -1)
    db.delete(prediction)
    db.commit()


def list_predictions(
    db: Session,
    user_id: int,
    status: Optional[PredictionStatus] = None,
    limit: int = 50,
) -> List[Prediction]:
    statement = select(Prediction).where(Prediction.user_id == user_id)
    if status is not None:
        statement = statement.where(Prediction.status == status)
    statement = statement.order_by(Prediction.created_at.desc(), Prediction.id.desc()).limit(limit)
    return list(db.exec(statement).all())


# Bets

def quote_odds(db: Session, game_id: str) -> Odds:
    get_game(db, game_id)
    pool = get_or_create_pool(db, game_id)
    db.commit()
    return Odds(pool.home_odds, pool.away_odds)


def place_bet(
    db: Session,
    user_id: int,
    game_id: str,
    amount: int,
    predicted_winner,
    now: Optional[datetime] = None,
) -> Bet:
    """Take the stake, record the bet and move the pool odds, all or nothing."""
    winner = _parse_result(predicted_winner)
    if winner not in BETTABLE_SIDES:
        raise ValidationError("Bets can only be placed on HOME or AWAY")
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError("Bet amount must be an integer")
    if not MINIMUM_BET_AMOUNT <= amount <= MAXIMUM_BET_AMOUNT:
        raise ValidationError(
            f"Bet amount must be between {MINIMUM_BET_AMOUNT} and {MAXIMUM_BET_AMOUNT}"
        )

    game = get_game(db, game_id)
    ensure_predictable(game, now)
    game_label = game.label

    try:
        pool = get_or_create_pool(db, game_id)
        quoted = pool.home_odds if winner == PredictedResult.HOME else pool.away_odds

        bet = Bet(
            user_id=user_id,
            game_id=game_id,
            amount=amount,
            predicted_winner=winner,
            odds=quoted
        )
        db.add(bet)
        db.flush()

        ledger.debit(
            db, user_id, amount, PointType.BET_PLACED, f"{game_label}: bet on {winner.value}",
            reference_id=bet.id, reference_type="bet", commit=False
        )

        if winner == PredictedResult.HOME:
            pool.home_pool += amount
        else:
            pool.away_pool += amount
        pool.total_pool = pool.home_pool + pool.away_pool
        pool.home_odds, pool.away_odds = compute_odds(pool.home_pool, pool.away_pool, HOUSE_EDGE)
        pool.updated_at = utcnow()
        db.add(pool)

        _count(db, user_id, User.total_bets, 1)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(bet)
    logger.info("Bet %s placed: user=%s game=%s %s %d @ %.2f",
                bet.id, user_id, game_id, winner.value, amount, quoted)
    return bet


def list_bets(
    db: Session,
    user_id: int,
    status: Optional[BetStatus] = None,
    limit: int = 50,
) -> List[Bet]:
    statement = select(Bet).where(Bet.user_id == user_id)
    if status is not None:
        statement = statement.where(Bet.status == status)
    statement = statement.order_by(Bet.created_at.desc(), Bet.id.desc()).limit(limit)
    return list(db.exec(statement).all())
