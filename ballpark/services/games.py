"""Game lifecycle: ingestion, going live, cancellation and settlement."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..errors import AlreadySettledError, NotFoundError, TransientStoreError, ValidationError
from ..models import (
    Bet, BetPool, BetStatus, Game, GameStatus, PointType, PredictedResult,
    Prediction, PredictionStatus,
)
from ..utils import as_utc, utcnow
from . import ledger
from .bet_settlement import settle_bets
from .outcome import BatchResult, determine_winner, validate_final_score
from .prediction_settlement import settle_predictions

logger = logging.getLogger("ballpark.games")

OPEN_STATUSES = (GameStatus.SCHEDULED, GameStatus.LIVE)


@dataclass
class SettlementSummary:
    game_id: str
    winner: PredictedResult
    home_score: int
    away_score: int
    predictions: BatchResult = field(default_factory=BatchResult)
    bets: BatchResult = field(default_factory=BatchResult)

    @property
    def total_points_awarded(self) -> int:
        return self.predictions.points

    @property
    def total_paid_out(self) -> int:
        return self.bets.points

    @property
    def partial(self) -> bool:
        return self.predictions.failed > 0 or self.bets.failed > 0

    def as_dict(self) -> dict:
        return {
            "game_id": self.game_id,
            "winner": self.winner.value,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "processed_predictions": self.predictions.processed,
            "win_predictions": self.predictions.won,
            "lose_predictions": self.predictions.lost,
            "processed_bets": self.bets.processed,
            "win_bets": self.bets.won,
            "lose_bets": self.bets.lost,
            "total_points_awarded": self.total_points_awarded,
            "total_paid_out": self.total_paid_out,
            "partial": self.partial,
            "predictions": self.predictions.as_dict(),
            "bets": self.bets.as_dict(),
        }


@dataclass
class CancellationSummary:
    game_id: str
    predictions: BatchResult = field(default_factory=BatchResult)
    bets: BatchResult = field(default_factory=BatchResult)

    @property
    def partial(self) -> bool:
        return self.predictions.failed > 0 or self.bets.failed > 0

    def as_dict(self) -> dict:
        return {
            "game_id": self.game_id,
            "voided_predictions": self.predictions.voided,
            "voided_bets": self.bets.voided,
            "refunded": self.bets.points,
            "partial": self.partial,
            "predictions": self.predictions.as_dict(),
            "bets": self.bets.as_dict(),
        }


def get_game(db: Session, game_id: str) -> Game:
    game = db.get(Game, game_id)
    if not game:
        raise NotFoundError(f"Game {game_id} not found")
    return game


def get_or_create_pool(db: Session, game_id: str) -> BetPool:
    pool = db.exec(select(BetPool).where(BetPool.game_id == game_id)).first()
    if pool is None:
        pool = BetPool(game_id=game_id)
        db.add(pool)
        db.flush()
    return pool


def upsert_game(
    db: Session,
    game_id: str,
    scheduled_at: datetime,
    home_team_id: str,
    home_team_name: str,
    away_team_id: str,
    away_team_name: str,
    stadium: Optional[str] = None,
) -> tuple[Game, bool]:
    """Insert or update a normalized schedule record. Returns (game, created)."""
    if not game_id:
        raise ValidationError("game id is required")

    game = db.get(Game, game_id)
    created = game is None

    if created:
        game = Game(
            id=game_id,
            scheduled_at=as_utc(scheduled_at),
            home_team_id=home_team_id,
            home_team_name=home_team_name,
            away_team_id=away_team_id,
            away_team_name=away_team_name,
            stadium=stadium
        )
        db.add(game)
        db.flush()
        get_or_create_pool(db, game_id)
        logger.info("Game created: %s %s at %s", game_id, game.label, game.scheduled_at)
    elif game.is_terminal:
        raise AlreadySettledError(f"Game {game_id} is {game.status.value} and can no longer change")
    else:
        game.scheduled_at = as_utc(scheduled_at)
        game.home_team_id = home_team_id
        game.home_team_name = home_team_name
        game.away_team_id = away_team_id
        game.away_team_name = away_team_name
        game.stadium = stadium
        game.updated_at = utcnow()
        db.add(game)

    db.commit()
    db.refresh(game)
    return game, created


def mark_live(db: Session, game_id: str) -> Game:
    game = get_game(db, game_id)
    if game.status == GameStatus.LIVE:
        return game
    if game.status != GameStatus.SCHEDULED:
        raise AlreadySettledError(f"Game {game_id} is {game.status.value}")

    game.status = GameStatus.LIVE
    game.updated_at = utcnow()
    db.add(game)
    db.commit()
    db.refresh(game)
    return game


def _close_game(db: Session, game_id: str, **values) -> int:
    """Move an open game to a terminal status in one conditional write."""
    result = db.exec(
        update(Game)
        .where(Game.id == game_id, Game.status.in_(OPEN_STATUSES))
        .values(updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount


def complete_game(db: Session, game_id: str, home_score: int, away_score: int) -> Game:
    """Record the final score. Re-recording the same score is a no-op."""
    validate_final_score(home_score, away_score)
    game = get_game(db, game_id)

    closed = _close_game(
        db, game_id,
        status=GameStatus.COMPLETED, home_score=home_score, away_score=away_score
    )
    db.refresh(game)
    if closed:
        logger.info("Game %s completed %d-%d", game_id, home_score, away_score)
        return game

    if (game.status == GameStatus.COMPLETED and
            game.home_score == home_score and game.away_score == away_score):
        logger.info("Game %s already completed with this score, resuming settlement", game_id)
        return game

    if game.status == GameStatus.COMPLETED:
        raise AlreadySettledError(
            f"Game {game_id} was already settled {game.home_score}-{game.away_score}"
        )
    raise AlreadySettledError(f"Game {game_id} is {game.status.value}")


def settle_game(db: Session, game_id: str, home_score: int, away_score: int) -> SettlementSummary:
    """Complete a game and settle every prediction and bet on it.

    Score or game problems abort before any row is touched. After that every
    prediction and bet is settled in its own transaction; rows that fail are
    reported and a second call with the same score settles only what is left.
    """
    game = complete_game(db, game_id, home_score, away_score)

    summary = SettlementSummary(
        game_id=game_id,
        winner=determine_winner(home_score, away_score),
        home_score=home_score,
        away_score=away_score,
    )
    summary.predictions = settle_predictions(db, game, home_score, away_score)
    summary.bets = settle_bets(db, game, home_score, away_score)

    if summary.partial:
        logger.warning(
            "Game %s settled partially: %d predictions and %d bets failed, run again to finish",
            game_id, summary.predictions.failed, summary.bets.failed
        )
    return summary


def _void_prediction(db: Session, prediction_id: int) -> None:
    try:
        claimed = db.exec(
            update(Prediction)
            .where(Prediction.id == prediction_id, Prediction.status == PredictionStatus.PENDING)
            .values(status=PredictionStatus.VOID, points_earned=0,
                    resolved_at=utcnow(), updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            db.rollback()
            raise AlreadySettledError(f"Prediction {prediction_id} already resolved")
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise TransientStoreError(
            f"Could not void prediction {prediction_id}: {exc}", row_id=prediction_id
        ) from exc


def _void_bet(db: Session, bet_id: int, game_label: str) -> int:
    """Void a bet and give the stake back. Returns the refund."""
    try:
        bet = db.get(Bet, bet_id)
        if bet is None or bet.status != BetStatus.PENDING:
            db.rollback()
            raise AlreadySettledError(f"Bet {bet_id} already resolved")

        claimed = db.exec(
            update(Bet)
            .where(Bet.id == bet_id, Bet.status == BetStatus.PENDING)
            .values(status=BetStatus.VOID, actual_win=0, resolved_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            db.rollback()
            raise AlreadySettledError(f"Bet {bet_id} already resolved")

        refund = bet.amount
        ledger.credit(
            db, bet.user_id, refund, PointType.BET_REFUND,
            f"{game_label}: game cancelled, stake returned",
            reference_id=bet_id, reference_type="bet", commit=False
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise TransientStoreError(f"Could not void bet {bet_id}: {exc}", row_id=bet_id) from exc
    return refund


def _void_rows(db: Session, row_ids: List[int], void_one, batch: BatchResult, game_id: str) -> None:
    for row_id in row_ids:
        try:
            refund = void_one(row_id)
        except AlreadySettledError:
            batch.skipped += 1
            continue
        except TransientStoreError as exc:
            logger.error("Game %s: %s", game_id, exc.message)
            batch.record_failure(row_id)
            continue
        batch.processed += 1
        batch.voided += 1
        batch.points += refund or 0


def cancel_game(db: Session, game_id: str) -> CancellationSummary:
    """Cancel an open game, void its predictions and refund its bets.

    Cancelling an already cancelled game finishes any voiding a previous call
    left behind.
    """
    game = get_game(db, game_id)
    game_label = game.label

    closed = _close_game(db, game_id, status=GameStatus.CANCELLED)
    db.refresh(game)
    if not closed and game.status != GameStatus.CANCELLED:
        raise AlreadySettledError(f"Game {game_id} is {game.status.value}")
    if closed:
        logger.info("Game %s cancelled", game_id)

    summary = CancellationSummary(game_id=game_id)

    prediction_ids = list(db.exec(
        select(Prediction.id).where(Prediction.game_id == game_id).order_by(Prediction.id)
    ).all())
    _void_rows(db, prediction_ids, lambda pid: _void_prediction(db, pid),
               summary.predictions, game_id)

    bet_ids = list(db.exec(
        select(Bet.id).where(Bet.game_id == game_id).order_by(Bet.id)
    ).all())
    _void_rows(db, bet_ids, lambda bid: _void_bet(db, bid, game_label),
               summary.bets, game_id)

    logger.info(
        "Game %s voided: %d predictions, %d bets, %d points refunded",
        game_id, summary.predictions.voided, summary.bets.voided, summary.bets.points
    )
    return summary
