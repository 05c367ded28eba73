from datetime import datetime, timedelta

import pytest

from ballpark.errors import AlreadySettledError, NotFoundError, ValidationError
from ballpark.models import Bet, BetStatus, GameStatus, PointType, Prediction, PredictionStatus
from ballpark.services import ledger, placement
from ballpark.services.games import cancel_game, mark_live, settle_game, upsert_game
from ballpark.utils import as_utc


def test_upsert_inserts_then_updates(session):
    start = datetime(2026, 9, 19, 9, 30)
    game, created = upsert_game(session, "20260919SSHT0", start, "HT", "KIA Tigers", "SS", "Samsung Lions")
    assert created is True
    assert game.status == GameStatus.SCHEDULED
    assert game.label == "Samsung Lions @ KIA Tigers"

    game, created = upsert_game(
        session, "20260919SSHT0", start + timedelta(hours=1), "HT", "KIA Tigers", "SS", "Samsung Lions",
        "Gwangju-Kia Champions Field"
    )
    assert created is False
    assert as_utc(game.scheduled_at) == as_utc(start + timedelta(hours=1))
    assert game.stadium == "Gwangju-Kia Champions Field"


def test_upsert_refuses_finished_game(session, make_game):
    game = make_game()
    settle_game(session, game.id, 3, 2)
    with pytest.raises(AlreadySettledError):
        upsert_game(session, game.id, datetime(2026, 9, 20), "OB", "Doosan Bears", "LG", "LG Twins")


def test_settle_unknown_game(session):
    with pytest.raises(NotFoundError):
        settle_game(session, "nope", 1, 0)


@pytest.mark.parametrize("home,away", [(-1, 2), (None, 2), (2, "3"), (True, 0)])
def test_invalid_score_changes_nothing(session, make_game, home, away):
    game = make_game()
    with pytest.raises(ValidationError):
        settle_game(session, game.id, home, away)
    session.refresh(game)
    assert game.status == GameStatus.SCHEDULED


def test_resettle_with_different_score_is_rejected(session, make_user, make_game):
    game = make_game()
    user = make_user()
    placement.create_prediction(session, user.id, game.id, "HOME")
    settle_game(session, game.id, 5, 3)

    with pytest.raises(AlreadySettledError):
        settle_game(session, game.id, 3, 5)

    session.refresh(game)
    assert (game.home_score, game.away_score) == (5, 3)
    session.refresh(user)
    assert user.points == 1050


def test_draw_settles_draw_predictions(session, make_user, make_game):
    game = make_game()
    drew, home = make_user(), make_user()
    placement.create_prediction(session, drew.id, game.id, "DRAW")
    placement.create_prediction(session, home.id, game.id, "HOME")

    summary = settle_game(session, game.id, 4, 4)

    assert summary.winner.value == "DRAW"
    assert summary.predictions.won == 1
    assert summary.predictions.lost == 1


def test_live_game_can_still_be_settled(session, make_game):
    game = make_game()
    assert mark_live(session, game.id).status == GameStatus.LIVE
    summary = settle_game(session, game.id, 0, 1)
    assert summary.winner.value == "AWAY"


def test_cancel_voids_predictions_and_refunds_bets(session, make_user, make_game):
    game = make_game()
    user = make_user()
    prediction = placement.create_prediction(session, user.id, game.id, "HOME")
    bet = placement.place_bet(session, user.id, game.id, 300, "AWAY")

    summary = cancel_game(session, game.id)

    assert summary.predictions.voided == 1
    assert summary.bets.voided == 1
    assert summary.as_dict()["refunded"] == 300
    assert session.get(Prediction, prediction.id).status == PredictionStatus.VOID
    assert session.get(Bet, bet.id).status == BetStatus.VOID

    session.refresh(user)
    assert user.points == 1000
    assert ledger.ledger_total(session, user.id) == 1000
    refunds = [row for row in ledger.get_history(session, user.id) if row.type == PointType.BET_REFUND]
    assert len(refunds) == 1

    again = cancel_game(session, game.id)
    assert again.bets.voided == 0
    assert again.bets.skipped == 1


def test_cancelled_or_completed_games_stay_put(session, make_game):
    cancelled = make_game()
    cancel_game(session, cancelled.id)
    with pytest.raises(AlreadySettledError):
        settle_game(session, cancelled.id, 1, 0)

    completed = make_game()
    settle_game(session, completed.id, 1, 0)
    with pytest.raises(AlreadySettledError):
        cancel_game(session, completed.id)
