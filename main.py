import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlmodel import Session, select

from ballpark.auth import create_user
from ballpark.config import ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_USERNAME
from ballpark.database import create_db_and_tables, engine
from ballpark.errors import register_exception_handlers
from ballpark.logging_config import RequestLoggingMiddleware, setup_logging
from ballpark.models import User
from ballpark.routers import admin, auth, bets, games, leaderboard, points, predictions

logger = logging.getLogger("ballpark")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: configure logging and create database tables
    setup_logging()
    create_db_and_tables()
    # Make sure an admin account exists
    with Session(engine) as db:
        admin_user = db.exec(select(User).where(User.username == ADMIN_USERNAME)).first()
        if not admin_user:
            create_user(db, ADMIN_USERNAME, ADMIN_EMAIL, ADMIN_PASSWORD, is_admin=True)
            logger.info("Created admin user %s", ADMIN_USERNAME)
    yield
    # Shutdown: cleanup if needed


# Initialize FastAPI app
app = FastAPI(
    title="Ballpark",
    description="Predict KBO games, stake points and climb the leaderboard",
    version="1.0.0",
    lifespan=lifespan
)

# Request logging and domain error responses
app.add_middleware(RequestLoggingMiddleware)
register_exception_handlers(app)

# Include routers
app.include_router(auth.router)
app.include_router(games.router)
app.include_router(predictions.router)
app.include_router(bets.router)
app.include_router(points.router)
app.include_router(leaderboard.router)
app.include_router(admin.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
