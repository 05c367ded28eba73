from datetime import timedelta

from ballpark.auth import (
    authenticate_user, create_session, get_user_by_session_token, hash_password, verify_password,
)
from ballpark.models import PointType
from ballpark.services import ledger
from ballpark.utils import utcnow


def test_password_hashing():
    password = "secure_password_123"
    hashed = hash_password(password)

    assert hashed != password
    assert isinstance(hashed, str)
    assert len(hashed) > 0


def test_password_verification_success():
    password = "secure_password_123"
    hashed = hash_password(password)

    assert verify_password(password, hashed) is True


def test_password_verification_failure():
    password = "secure_password_123"
    hashed = hash_password(password)

    assert verify_password("wrong_password", hashed) is False


def test_password_long_truncation():
    # bcrypt only looks at the first 72 bytes
    long_password = "a" * 100
    hashed = hash_password(long_password)

    assert verify_password(long_password, hashed) is True
    assert verify_password("a" * 72, hashed) is True
    assert verify_password("b" * 72, hashed) is False


def test_new_user_gets_signup_bonus_through_ledger(session, make_user):
    user = make_user()

    assert user.points == 1000
    history = ledger.get_history(session, user.id)
    assert len(history) == 1
    assert history[0].type == PointType.SIGNUP_BONUS
    assert ledger.ledger_total(session, user.id) == user.points


def test_authenticate_user(session, make_user):
    user = make_user("kim")

    assert authenticate_user(session, "kim", "password123").id == user.id
    assert authenticate_user(session, "kim", "nope") is None
    assert authenticate_user(session, "lee", "password123") is None


def test_register_login_logout(client):
    response = client.post("/auth/register", json={
        "username": "fan", "email": "fan@example.com", "password": "password123"
    })
    assert response.status_code == 201
    assert response.json()["points"] == 1000

    response = client.get("/auth/me")
    assert response.status_code == 200
    assert response.json()["username"] == "fan"

    assert client.post("/auth/logout").status_code == 200
    client.cookies.clear()
    assert client.get("/auth/me").status_code == 401

    response = client.post("/auth/login", json={"username": "fan", "password": "password123"})
    assert response.status_code == 200
    assert client.get("/auth/me").status_code == 200


def test_register_rejects_duplicate_username(client, make_user):
    make_user("taken")
    response = client.post("/auth/register", json={
        "username": "taken", "email": "other@example.com", "password": "password123"
    })
    assert response.status_code == 400


def test_login_with_wrong_password(client, make_user):
    make_user("kim")
    response = client.post("/auth/login", json={"username": "kim", "password": "wrong"})
    assert response.status_code == 401


def test_timestamps_are_aware_utc():
    now = utcnow()
    assert now.tzinfo is not None
    assert now.utcoffset() == timedelta(0)


def test_expired_session_is_dropped(session, make_user):
    user = make_user()
    user_session = create_session(session, user.id)
    assert get_user_by_session_token(session, user_session.session_token).id == user.id

    # The store hands the timestamp back without a zone, it is still UTC
    user_session.expires_at = utcnow() - timedelta(minutes=1)
    session.add(user_session)
    session.commit()

    assert get_user_by_session_token(session, user_session.session_token) is None
