from datetime import datetime, time, timezone
from typing import List, Optional

from sqlalchemy import or_, update
from sqlmodel import Session, select, func

from ..config import DAILY_LOGIN_POINTS
from ..errors import ConflictError, NotFoundError
from ..models import Bet, BetStatus, PointHistory, PointType, Prediction, PredictionStatus, User
from ..utils import as_utc, utcnow
from . import ledger


def _win_rate(wins: int, total: int) -> float:
    return round(wins / total * 100, 1) if total > 0 else 0.0


def user_stats(db: Session, user_id: int) -> dict:
    """Prediction, betting and points totals for one user."""
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")

    prediction_counts = dict(db.exec(
        select(Prediction.status, func.count(Prediction.id))
        .where(Prediction.user_id == user_id)
        .group_by(Prediction.status)
    ).all())
    bet_counts = dict(db.exec(
        select(Bet.status, func.count(Bet.id))
        .where(Bet.user_id == user_id)
        .group_by(Bet.status)
    ).all())

    earned = db.exec(
        select(func.sum(PointHistory.amount))
        .where(PointHistory.user_id == user_id, PointHistory.amount > 0)
    ).first() or 0
    spent = db.exec(
        select(func.sum(PointHistory.amount))
        .where(PointHistory.user_id == user_id, PointHistory.amount < 0)
    ).first() or 0

    # Resolved rows only, pending and void ones have no result yet
    predictions_won = prediction_counts.get(PredictionStatus.WIN, 0)
    predictions_decided = predictions_won + prediction_counts.get(PredictionStatus.LOSE, 0)
    bets_won = bet_counts.get(BetStatus.WIN, 0)
    bets_decided = bets_won + bet_counts.get(BetStatus.LOSE, 0)

    return {
        "user_id": user.id,
        "username": user.username,
        "points": user.points,
        "total_predictions": user.total_predictions,
        "successful_predictions": user.successful_predictions,
        "pending_predictions": prediction_counts.get(PredictionStatus.PENDING, 0),
        "prediction_win_rate": _win_rate(predictions_won, predictions_decided),
        "current_streak": user.current_streak,
        "max_streak": user.max_streak,
        "total_bets": user.total_bets,
        "successful_bets": user.successful_bets,
        "pending_bets": bet_counts.get(BetStatus.PENDING, 0),
        "betting_win_rate": _win_rate(bets_won, bets_decided),
        "total_points_earned": earned,
        "total_points_spent": -spent,
    }


def leaderboard(db: Session, limit: int = 20) -> List[dict]:
    """Top players by points. Ties go to the better predictor."""
    results = db.exec(
        select(User)
        .where(User.is_admin == False)  # noqa: E712
        .order_by(User.points.desc(), User.successful_predictions.desc(), User.id)
        .limit(limit)
    ).all()

    return [
        {
            "rank": i + 1,
            "user_id": user.id,
            "username": user.username,
            "points": user.points,
            "successful_predictions": user.successful_predictions,
            "total_predictions": user.total_predictions,
            "max_streak": user.max_streak,
        }
        for i, user in enumerate(results)
    ]


def claim_daily_bonus(db: Session, user_id: int, now: Optional[datetime] = None) -> PointHistory:
    """Credit the daily login bonus once per UTC day."""
    now = as_utc(now) if now is not None else utcnow()
    if db.get(User, user_id) is None:
        raise NotFoundError(f"User {user_id} not found")

    day_start = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
    try:
        # Stamp and check in one statement so two claims cannot both pass
        claimed = db.exec(
            update(User)
            .where(
                User.id == user_id,
                or_(User.last_daily_bonus_at.is_(None), User.last_daily_bonus_at < day_start)
            )
            .values(last_daily_bonus_at=now)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            raise ConflictError("Daily bonus already claimed today")

        entry = ledger.credit(
            db, user_id, DAILY_LOGIN_POINTS, PointType.DAILY_LOGIN,
            f"Daily bonus {now:%Y-%m-%d}", commit=False
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(entry)
    return entry
