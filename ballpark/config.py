import os
from pathlib import Path

from dotenv import load_dotenv

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

# Database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR}/ballpark.db")

# Security
SESSION_COOKIE_NAME = "ballpark_session"
SESSION_EXPIRE_DAYS = int(os.getenv("SESSION_EXPIRE_DAYS", "7"))

# Admin credentials (in production, use environment variables)
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "password")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@ballpark.local")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Points
INITIAL_USER_POINTS = int(os.getenv("INITIAL_USER_POINTS", "1000"))
DAILY_LOGIN_POINTS = int(os.getenv("DAILY_LOGIN_POINTS", "10"))
PREDICTION_WIN_POINTS = int(os.getenv("PREDICTION_WIN_POINTS", "50"))
PERFECT_PREDICTION_POINTS = int(os.getenv("PERFECT_PREDICTION_POINTS", "100"))

# Streak length -> bonus points
STREAK_BONUS = {
    3: 25,
    5: 50,
    7: 100,
    10: 200,
    15: 500,
    20: 1000,
}

# Betting
MINIMUM_BET_AMOUNT = int(os.getenv("MINIMUM_BET_AMOUNT", "10"))
MAXIMUM_BET_AMOUNT = int(os.getenv("MAXIMUM_BET_AMOUNT", "1000"))
HOUSE_EDGE = float(os.getenv("HOUSE_EDGE", "0.05"))
MIN_ODDS = float(os.getenv("MIN_ODDS", "1.1"))
MAX_ODDS = float(os.getenv("MAX_ODDS", "10.0"))
NEUTRAL_ODDS = float(os.getenv("NEUTRAL_ODDS", "2.0"))

# Predictions close this long before first pitch
PREDICTION_CUTOFF_MINUTES = int(os.getenv("PREDICTION_CUTOFF_MINUTES", "60"))
MAX_PREDICTED_SCORE = 50
