from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from main import app
from ballpark.auth import create_session, create_user
from ballpark.config import SESSION_COOKIE_NAME
from ballpark.database import get_session
from ballpark.services.games import upsert_game
from ballpark.utils import utcnow

# Create in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@pytest.fixture(name="session")
def session_fixture():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="make_user")
def make_user_fixture(session: Session):
    """Create users that start with the signup bonus."""
    counter = {"n": 0}

    def _make_user(username=None, is_admin=False):
        counter["n"] += 1
        username = username or f"player{counter['n']}"
        return create_user(session, username, f"{username}@example.com", "password123", is_admin=is_admin)

    return _make_user


@pytest.fixture(name="make_game")
def make_game_fixture(session: Session):
    """Create open games scheduled a day ahead unless told otherwise."""
    counter = {"n": 0}

    def _make_game(game_id=None, starts_in=timedelta(days=1)):
        counter["n"] += 1
        game_id = game_id or f"20260919LGOB{counter['n']}"
        game, _ = upsert_game(
            session, game_id, utcnow() + starts_in,
            "OB", "Doosan Bears", "LG", "LG Twins", "Jamsil Baseball Stadium"
        )
        return game

    return _make_game


@pytest.fixture(name="login")
def login_fixture(client: TestClient, session: Session):
    """Put a valid session cookie for the given user on the test client."""
    def _login(user):
        user_session = create_session(session, user.id)
        client.cookies.set(SESSION_COOKIE_NAME, user_session.session_token)
        return user_session.session_token

    return _login


@pytest.fixture(name="file_engine")
def file_engine_fixture(tmp_path):
    """A file-backed database, so separate sessions really are separate connections."""
    file_engine = create_engine(
        f"sqlite:///{tmp_path / 'ballpark.db'}",
        connect_args={"check_same_thread": False},
    )
    SQLModel.metadata.create_all(file_engine)
    yield file_engine
    file_engine.dispose()
