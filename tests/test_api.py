from datetime import timedelta

from ballpark.models import Game, GameStatus


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_list_games_for_day(client, make_game):
    game = make_game()
    day = game.scheduled_at.date().isoformat()

    response = client.get("/api/games", params={"day": day})
    assert response.status_code == 200
    data = response.json()
    assert [g["id"] for g in data] == [game.id]
    assert data[0]["is_predictable"] is True
    assert data[0]["home_odds"] == 2.0


def test_read_unknown_game(client):
    response = client.get("/api/games/nope")
    assert response.status_code == 404


def test_read_odds(client, make_game):
    game = make_game()
    response = client.get(f"/api/games/{game.id}/odds")
    assert response.status_code == 200
    assert response.json() == {"game_id": game.id, "home_odds": 2.0, "away_odds": 2.0}


def test_unauthorized_access(client):
    assert client.get("/api/predictions").status_code == 401
    assert client.get("/api/points").status_code == 401


def test_prediction_lifecycle(client, make_user, make_game, login):
    game = make_game()
    login(make_user())

    response = client.post("/api/predictions", json={
        "game_id": game.id, "predicted_winner": "HOME",
        "predicted_home_score": 4, "predicted_away_score": 2
    })
    assert response.status_code == 201
    prediction_id = response.json()["id"]
    assert response.json()["status"] == "PENDING"

    duplicate = client.post("/api/predictions", json={"game_id": game.id, "predicted_winner": "AWAY"})
    assert duplicate.status_code == 409

    response = client.put(f"/api/predictions/{prediction_id}", json={"predicted_winner": "AWAY"})
    assert response.status_code == 200
    assert response.json()["predicted_winner"] == "AWAY"
    # Changing only the winner keeps the exact score
    assert response.json()["predicted_home_score"] == 4
    assert response.json()["predicted_away_score"] == 2

    response = client.put(f"/api/predictions/{prediction_id}", json={
        "predicted_home_score": 1, "predicted_away_score": 3
    })
    assert response.status_code == 200
    assert response.json()["predicted_winner"] == "AWAY"
    assert (response.json()["predicted_home_score"], response.json()["predicted_away_score"]) == (1, 3)

    response = client.put(f"/api/predictions/{prediction_id}", json={"predicted_home_score": 5})
    assert response.status_code == 400

    response = client.get("/api/predictions")
    assert [p["id"] for p in response.json()] == [prediction_id]

    assert client.delete(f"/api/predictions/{prediction_id}").status_code == 200
    assert client.get("/api/predictions").json() == []


def test_prediction_rejects_half_an_exact_score(client, make_user, make_game, login):
    game = make_game()
    login(make_user())
    response = client.post("/api/predictions", json={
        "game_id": game.id, "predicted_winner": "HOME", "predicted_home_score": 4
    })
    assert response.status_code == 400


def test_prediction_after_cutoff(client, make_user, make_game, login):
    game = make_game(starts_in=timedelta(minutes=10))
    login(make_user())
    response = client.post("/api/predictions", json={"game_id": game.id, "predicted_winner": "HOME"})
    assert response.status_code == 400


def test_place_bet_and_read_points(client, make_user, make_game, login):
    game = make_game()
    login(make_user())

    response = client.post("/api/bets", json={"game_id": game.id, "amount": 200, "predicted_winner": "AWAY"})
    assert response.status_code == 201
    assert response.json()["odds"] == 2.0

    assert client.get("/api/points").json()["points"] == 800
    history = client.get("/api/points/history").json()
    assert [row["type"] for row in history] == ["BET_PLACED", "SIGNUP_BONUS"]
    assert len(client.get("/api/bets").json()) == 1

    response = client.post("/api/bets", json={"game_id": game.id, "amount": 900, "predicted_winner": "AWAY"})
    assert response.status_code == 400
    assert "Not enough points" in response.json()["detail"]


def test_daily_bonus_once_per_day(client, make_user, login):
    login(make_user())

    response = client.post("/api/points/daily")
    assert response.status_code == 200
    assert response.json()["amount"] == 10
    assert client.post("/api/points/daily").status_code == 409
    assert client.get("/api/points").json()["points"] == 1010


def test_stats_and_leaderboard(client, make_user, login):
    make_user("rich")
    me = make_user("me")
    make_user("boss", is_admin=True)
    login(me)

    stats = client.get("/api/stats").json()
    assert stats["username"] == "me"
    assert stats["prediction_win_rate"] == 0.0

    client.post("/api/points/daily")
    board = client.get("/api/leaderboard").json()
    assert [row["username"] for row in board] == ["me", "rich"]
    assert board[0]["rank"] == 1


def test_settle_requires_admin(client, make_user, make_game, login):
    game = make_game()
    assert client.post(f"/admin/games/{game.id}/settle", json={"home_score": 1, "away_score": 0}).status_code == 401

    login(make_user())
    response = client.post(f"/admin/games/{game.id}/settle", json={"home_score": 1, "away_score": 0})
    assert response.status_code == 403


def test_settle_validation_and_unknown_game(client, make_user, make_game, login):
    game = make_game()
    login(make_user(is_admin=True))

    assert client.post("/admin/games/nope/settle", json={"home_score": 1, "away_score": 0}).status_code == 404
    assert client.post(f"/admin/games/{game.id}/settle", json={"home_score": -1, "away_score": 0}).status_code == 422
    assert client.post(f"/admin/games/{game.id}/settle", json={"home_score": "3", "away_score": 0}).status_code == 422
    assert client.post(f"/admin/games/{game.id}/settle", json={"home_score": 1}).status_code == 422


def test_admin_game_flow(client, session, make_user, login):
    player = make_user()
    admin = make_user(is_admin=True)
    login(admin)

    response = client.post("/admin/games", json={
        "id": "20260920NCLT0",
        "scheduled_at": "2030-09-20T09:30:00Z",
        "home_team_id": "LT",
        "home_team_name": "Lotte Giants",
        "away_team_id": "NC",
        "away_team_name": "NC Dinos",
    })
    assert response.status_code == 200
    assert response.json()["created"] is True

    login(player)
    client.post("/api/predictions", json={"game_id": "20260920NCLT0", "predicted_winner": "HOME"})
    client.post("/api/bets", json={"game_id": "20260920NCLT0", "amount": 100, "predicted_winner": "HOME"})

    login(admin)
    assert client.post("/admin/games/20260920NCLT0/live").json()["status"] == "LIVE"
    response = client.post("/admin/games/20260920NCLT0/settle", json={"home_score": 7, "away_score": 2})
    assert response.status_code == 200
    summary = response.json()
    assert summary["winner"] == "HOME"
    assert summary["processed_predictions"] == 1
    assert summary["win_predictions"] == 1
    assert summary["processed_bets"] == 1
    # A lone winner only gets the stake back
    assert summary["total_paid_out"] == 100
    assert summary["partial"] is False

    again = client.post("/admin/games/20260920NCLT0/settle", json={"home_score": 2, "away_score": 7})
    assert again.status_code == 409

    game = session.get(Game, "20260920NCLT0")
    session.refresh(game)
    assert game.status == GameStatus.COMPLETED


def test_cancel_endpoint_refunds(client, make_user, make_game, login):
    game = make_game()
    player = make_user()
    login(player)
    client.post("/api/bets", json={"game_id": game.id, "amount": 50, "predicted_winner": "HOME"})

    login(make_user(is_admin=True))
    response = client.post(f"/admin/games/{game.id}/cancel")
    assert response.status_code == 200
    assert response.json()["refunded"] == 50

    login(player)
    assert client.get("/api/points").json()["points"] == 1000
