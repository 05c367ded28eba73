"""
Bet settlement with parimutuel payouts.

The losing side's stakes, less the house edge, are shared among the winning
bets in proportion to their stakes. Each winner also gets its own stake back:

    payout = floor(stake + losing_total * (1 - edge) * (stake / winning_total))

Truncation remainders stay with the house.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..config import HOUSE_EDGE
from ..errors import AlreadySettledError, TransientStoreError
from ..models import Bet, BetPool, BetStatus, Game, PointType, PredictedResult, User
from ..utils import utcnow
from . import ledger
from .outcome import BatchResult, determine_winner

logger = logging.getLogger("ballpark.settlement.bets")


@dataclass
class PayoutPlan:
    winner: PredictedResult
    house_edge: float
    total_winning_stake: int = 0
    total_losing_stake: int = 0
    distributable_pool: float = 0.0
    payouts: Dict[int, int] = field(default_factory=dict)  # bet id -> payout, 0 for losers

    @property
    def total_stake(self) -> int:
        return self.total_winning_stake + self.total_losing_stake

    @property
    def total_paid_out(self) -> int:
        return sum(self.payouts.values())

    @property
    def house_take(self) -> int:
        """Everything staked that is not paid back out."""
        return self.total_stake - self.total_paid_out

    def is_winner(self, bet_id: int) -> bool:
        return self.payouts.get(bet_id, 0) > 0


def calculate_payout(stake: int, distributable_pool: float, total_winning_stake: int) -> int:
    if total_winning_stake <= 0:
        return 0
    return math.floor(stake + distributable_pool * (stake / total_winning_stake))


def plan_payouts(bets: Iterable[Bet], winner: PredictedResult, house_edge: float = HOUSE_EDGE) -> PayoutPlan:
    """Split the bets of a game into winners and losers and price every payout.

    Pass every non-void bet of the game, resolved or not, so that a resumed
    run prices the remaining rows exactly like the first run did.
    """
    bets = list(bets)
    plan = PayoutPlan(winner=winner, house_edge=house_edge)

    winners = [bet for bet in bets if bet.predicted_winner == winner]
    losers = [bet for bet in bets if bet.predicted_winner != winner]

    plan.total_winning_stake = sum(bet.amount for bet in winners)
    plan.total_losing_stake = sum(bet.amount for bet in losers)
    plan.distributable_pool = plan.total_losing_stake * (1 - house_edge)

    for bet in winners:
        plan.payouts[bet.id] = calculate_payout(
            bet.amount, plan.distributable_pool, plan.total_winning_stake
        )
    for bet in losers:
        plan.payouts[bet.id] = 0

    return plan


def apply_bet(db: Session, bet_id: int, plan: PayoutPlan, game_label: str = "") -> int:
    """Resolve one bet in its own transaction. Returns the payout."""
    payout = plan.payouts.get(bet_id, 0)
    won = plan.is_winner(bet_id)
    try:
        bet = db.get(Bet, bet_id)
        if bet is None or bet.status != BetStatus.PENDING:
            raise AlreadySettledError(f"Bet {bet_id} already resolved")

        claimed = db.exec(
            update(Bet)
            .where(Bet.id == bet_id, Bet.status == BetStatus.PENDING)
            .values(
                status=BetStatus.WIN if won else BetStatus.LOSE,
                actual_win=payout,
                resolved_at=utcnow()
            )
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            raise AlreadySettledError(f"Bet {bet_id} already resolved")

        if won:
            db.exec(
                update(User)
                .where(User.id == bet.user_id)
                .values(successful_bets=User.successful_bets + 1)
                .execution_options(synchronize_session=False)
            )
            ledger.credit(
                db, bet.user_id, payout, PointType.BET_WIN,
                f"{game_label or bet.game_id}: bet won",
                reference_id=bet_id, reference_type="bet", commit=False
            )

        db.commit()
    except AlreadySettledError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        raise TransientStoreError(f"Could not settle bet {bet_id}: {exc}", row_id=bet_id) from exc

    return payout


def load_plan(db: Session, game: Game, home_score: int, away_score: int,
              house_edge: float = HOUSE_EDGE) -> PayoutPlan:
    bets = db.exec(
        select(Bet)
        .where(Bet.game_id == game.id, Bet.status != BetStatus.VOID)
        .order_by(Bet.id)
    ).all()
    plan = plan_payouts(bets, determine_winner(home_score, away_score), house_edge)

    pool = db.exec(select(BetPool).where(BetPool.game_id == game.id)).first()
    if pool is not None and pool.total_pool != plan.total_stake:
        logger.warning(
            "Game %s: bet pool total %d does not match stakes %d, settling from bets",
            game.id, pool.total_pool, plan.total_stake
        )
    return plan


def settle_bets(
    db: Session,
    game: Game,
    home_score: int,
    away_score: int,
    house_edge: float = HOUSE_EDGE,
) -> BatchResult:
    """Settle every pending bet on a game, one transaction per bet."""
    batch = BatchResult()
    game_id = game.id
    game_label = game.label

    plan = load_plan(db, game, home_score, away_score, house_edge)
    bet_ids: List[int] = list(plan.payouts)

    for bet_id in bet_ids:
        try:
            payout = apply_bet(db, bet_id, plan, game_label)
        except AlreadySettledError:
            batch.skipped += 1
            continue
        except TransientStoreError as exc:
            logger.error("Game %s: %s", game_id, exc.message)
            batch.record_failure(bet_id)
            continue

        batch.processed += 1
        if payout > 0:
            batch.won += 1
        else:
            batch.lost += 1
        batch.points += payout

    logger.info(
        "Bets settled for %s (%s): winner=%s processed=%d won=%d lost=%d skipped=%d failed=%d "
        "paid=%d house=%d",
        game_id, game_label, plan.winner.value, batch.processed, batch.won, batch.lost,
        batch.skipped, batch.failed, batch.points, plan.house_take
    )
    return batch
