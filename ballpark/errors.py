"""Domain errors raised by the services and their HTTP mapping."""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger("ballpark.errors")


class BallparkError(Exception):
    """Base class for every error a service raises on purpose."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BallparkError):
    """Malformed or missing input. Nothing was written."""


class NotFoundError(BallparkError):
    status_code = status.HTTP_404_NOT_FOUND


class InsufficientFunds(BallparkError):
    """A debit asked for more points than the user holds."""

    def __init__(self, user_id: int, balance: int, amount: int):
        super().__init__(f"Not enough points: balance {balance}, requested {amount}")
        self.user_id = user_id
        self.balance = balance
        self.amount = amount


class GameClosedError(BallparkError):
    """The game no longer accepts predictions or bets."""


class ConflictError(BallparkError):
    status_code = status.HTTP_409_CONFLICT


class AlreadySettledError(ConflictError):
    """A game, prediction or bet has already reached a terminal status."""


class TransientStoreError(BallparkError):
    """A single row could not be written. Safe to retry."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, row_id: Optional[int] = None):
        super().__init__(message)
        self.row_id = row_id


async def _ballpark_error_handler(request: Request, exc: BallparkError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BallparkError, _ballpark_error_handler)
