import secrets
import bcrypt
from datetime import timedelta
from typing import Optional
from sqlmodel import Session, select

from .config import INITIAL_USER_POINTS, SESSION_EXPIRE_DAYS
from .models import PointType, User, Session as SessionModel
from .services import ledger
from .utils import as_utc, utcnow


def hash_password(password: str) -> str:
    """Hash a password using bcrypt. Truncates to 72 bytes for bcrypt compatibility."""
    # bcrypt only reads the first 72 bytes
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > 72:
        password_bytes = password_bytes[:72]

    # Hash the password
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt())
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    password_bytes = plain_password.encode('utf-8')
    if len(password_bytes) > 72:
        password_bytes = password_bytes[:72]

    hashed_bytes = hashed_password.encode('utf-8')
    return bcrypt.checkpw(password_bytes, hashed_bytes)


def generate_session_token() -> str:
    """Generate a secure random session token."""
    return secrets.token_urlsafe(32)


def create_user(
    db: Session,
    username: str,
    email: str,
    password: str,
    is_admin: bool = False
) -> User:
    """Create a user and credit the signup bonus through the ledger.

    The user row starts at zero so that the point history always sums to
    the balance.
    """
    # Start at zero, the bonus arrives through the ledger
    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        is_admin=is_admin
    )
    db.add(user)
    db.flush()

    if INITIAL_USER_POINTS > 0:
        ledger.credit(
            db, user.id, INITIAL_USER_POINTS, PointType.SIGNUP_BONUS,
            "Welcome bonus", commit=False
        )

    db.commit()
    db.refresh(user)
    return user


def create_session(db: Session, user_id: int) -> SessionModel:
    """Create a new session for a user."""
    # Create session with expiration
    session = SessionModel(
        user_id=user_id,
        session_token=generate_session_token(),
        expires_at=utcnow() + timedelta(days=SESSION_EXPIRE_DAYS)
    )

    db.add(session)
    db.commit()
    db.refresh(session)

    return session


def get_user_by_session_token(db: Session, session_token: str) -> Optional[User]:
    """Get user by session token if session is valid."""
    statement = select(SessionModel).where(SessionModel.session_token == session_token)
    session = db.exec(statement).first()

    if not session:
        return None

    # Check if session has expired
    if as_utc(session.expires_at) < utcnow():
        db.delete(session)
        db.commit()
        return None

    return db.get(User, session.user_id)


def delete_session(db: Session, session_token: str) -> bool:
    """Delete a session (logout)."""
    statement = select(SessionModel).where(SessionModel.session_token == session_token)
    session = db.exec(statement).first()

    if session:
        db.delete(session)
        db.commit()
        return True

    return False


def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
    """Authenticate a user by username and password."""
    # Find user by username
    statement = select(User).where(User.username == username)
    user = db.exec(statement).first()

    if not user:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user
