import pytest

from ballpark.errors import InsufficientFunds, NotFoundError, ValidationError
from ballpark.models import PointType
from ballpark.services import ledger


def test_credit_and_debit_move_balance_and_record_history(session, make_user):
    user = make_user()

    ledger.credit(session, user.id, 250, PointType.ADMIN_ADJUSTMENT, "Goodwill")
    ledger.debit(session, user.id, 100, PointType.BET_PLACED, "Bet")

    session.refresh(user)
    assert user.points == 1150
    amounts = [row.amount for row in ledger.get_history(session, user.id)]
    assert sorted(amounts) == [-100, 250, 1000]
    assert ledger.ledger_total(session, user.id) == user.points


def test_debit_cannot_overdraw(session, make_user):
    user = make_user()

    with pytest.raises(InsufficientFunds) as excinfo:
        ledger.debit(session, user.id, 1001, PointType.BET_PLACED, "Too much")

    assert excinfo.value.balance == 1000
    assert excinfo.value.amount == 1001
    assert ledger.get_balance(session, user.id) == 1000
    assert len(ledger.get_history(session, user.id)) == 1


def test_debit_whole_balance(session, make_user):
    user = make_user()
    ledger.debit(session, user.id, 1000, PointType.BET_PLACED, "All in")
    assert ledger.get_balance(session, user.id) == 0


@pytest.mark.parametrize("amount", [0, -5, 1.5, True])
def test_amount_must_be_positive_integer(session, make_user, amount):
    user = make_user()
    with pytest.raises(ValidationError):
        ledger.credit(session, user.id, amount, PointType.ADMIN_ADJUSTMENT, "Bad")


def test_unknown_user(session):
    with pytest.raises(NotFoundError):
        ledger.credit(session, 999, 10, PointType.ADMIN_ADJUSTMENT, "Nobody")


def test_uncommitted_movement_rolls_back_with_caller(session, make_user):
    user = make_user()

    ledger.credit(session, user.id, 40, PointType.ADMIN_ADJUSTMENT, "Pending", commit=False)
    session.rollback()

    assert ledger.get_balance(session, user.id) == 1000
    assert ledger.ledger_total(session, user.id) == 1000
