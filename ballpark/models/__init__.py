from .enums import BetStatus, GameStatus, PointType, PredictedResult, PredictionStatus
from .user import User
from .session import Session
from .game import Game
from .prediction import Prediction
from .bet import Bet
from .bet_pool import BetPool
from .point_history import PointHistory

__all__ = [
    "BetStatus",
    "GameStatus",
    "PointType",
    "PredictedResult",
    "PredictionStatus",
    "User",
    "Session",
    "Game",
    "Prediction",
    "Bet",
    "BetPool",
    "PointHistory",
]
