"""Points ledger: the only code path that moves a user's balance.

Every movement is a conditional UPDATE on the user row plus one appended
PointHistory row. The UPDATE does the read-modify-write inside the database,
so two writers on the same user cannot lose each other's change, and the
debit guard (``points >= amount``) means a balance never goes negative.
"""

import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select, func

from ..errors import InsufficientFunds, NotFoundError, ValidationError
from ..models import PointHistory, PointType, User
from ..utils import utcnow

logger = logging.getLogger("ballpark.ledger")


def credit(
    db: Session,
    user_id: int,
    amount: int,
    category: PointType,
    description: str,
    reference_id: Optional[int] = None,
    reference_type: Optional[str] = None,
    *,
    commit: bool = True
) -> PointHistory:
    """Add ``amount`` points to a user and record it.

    With ``commit=False`` the movement joins the caller's open transaction and
    the caller decides whether it commits.
    """
    _check_amount(amount)
    return _move(db, user_id, amount, category, description,
                 reference_id, reference_type, commit=commit)


def debit(
    db: Session,
    user_id: int,
    amount: int,
    category: PointType,
    description: str,
    reference_id: Optional[int] = None,
    reference_type: Optional[str] = None,
    *,
    commit: bool = True
) -> PointHistory:
    """Take ``amount`` points from a user, or raise InsufficientFunds."""
    _check_amount(amount)
    return _move(db, user_id, -amount, category, description,
                 reference_id, reference_type, commit=commit)


def _check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise ValidationError("Amount must be a positive integer")


def _move(
    db: Session,
    user_id: int,
    delta: int,
    category: PointType,
    description: str,
    reference_id: Optional[int],
    reference_type: Optional[str],
    *,
    commit: bool
) -> PointHistory:
    category = PointType(category)

    try:
        # Pending ORM changes must reach the row before the UPDATE runs
        db.flush()

        statement = (
            update(User)
            .where(User.id == user_id)
            .values(points=User.points + delta, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if delta < 0:
            statement = statement.where(User.points >= -delta)

        result = db.exec(statement)
        if result.rowcount == 0:
            user = db.get(User, user_id)
            if user is None:
                raise NotFoundError(f"User {user_id} not found")
            raise InsufficientFunds(user_id, user.points, -delta)

        entry = PointHistory(
            user_id=user_id,
            amount=delta,
            type=category,
            description=description,
            reference_type=reference_type,
            reference_id=reference_id
        )
        db.add(entry)

        if commit:
            db.commit()
            db.refresh(entry)
        else:
            db.flush()
    except (InsufficientFunds, NotFoundError, SQLAlchemyError):
        if commit:
            db.rollback()
        raise

    logger.debug(
        "Ledger %s: user=%s amount=%+d ref=%s:%s",
        category.value, user_id, delta, reference_type, reference_id
    )
    return entry


def get_balance(db: Session, user_id: int) -> int:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user.points


def get_history(db: Session, user_id: int, limit: int = 50) -> List[PointHistory]:
    """Most recent ledger rows first."""
    statement = (
        select(PointHistory)
        .where(PointHistory.user_id == user_id)
        .order_by(PointHistory.created_at.desc(), PointHistory.id.desc())
        .limit(limit)
    )
    return list(db.exec(statement).all())


def ledger_total(db: Session, user_id: int) -> int:
    """Sum of every ledger row for a user. Always equals the user's balance."""
    total = db.exec(
        select(func.sum(PointHistory.amount)).where(PointHistory.user_id == user_id)
    ).first()
    return total or 0
