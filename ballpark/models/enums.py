from enum import Enum


class GameStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    LIVE = "LIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


TERMINAL_GAME_STATUSES = (GameStatus.COMPLETED, GameStatus.CANCELLED)


class PredictedResult(str, Enum):
    HOME = "HOME"
    AWAY = "AWAY"
    DRAW = "DRAW"


class PredictionStatus(str, Enum):
    PENDING = "PENDING"
    WIN = "WIN"
    LOSE = "LOSE"
    VOID = "VOID"


class BetStatus(str, Enum):
    PENDING = "PENDING"
    WIN = "WIN"
    LOSE = "LOSE"
    VOID = "VOID"


class PointType(str, Enum):
    """Every reason a user's balance can move."""
    SIGNUP_BONUS = "SIGNUP_BONUS"
    DAILY_LOGIN = "DAILY_LOGIN"
    PREDICTION_WIN = "PREDICTION_WIN"
    PREDICTION_PERFECT = "PREDICTION_PERFECT"
    STREAK_BONUS = "STREAK_BONUS"
    BET_PLACED = "BET_PLACED"
    BET_WIN = "BET_WIN"
    BET_REFUND = "BET_REFUND"
    PURCHASE = "PURCHASE"
    ADMIN_ADJUSTMENT = "ADMIN_ADJUSTMENT"
