"""Pool-based betting odds."""

from typing import NamedTuple

from ..config import HOUSE_EDGE, MAX_ODDS, MIN_ODDS, NEUTRAL_ODDS


class Odds(NamedTuple):
    home: float
    away: float


def clamp_odds(value: float, min_odds: float = MIN_ODDS, max_odds: float = MAX_ODDS) -> float:
    return max(min_odds, min(max_odds, value))


def compute_odds(
    home_pool: int,
    away_pool: int,
    house_edge: float = HOUSE_EDGE,
    min_odds: float = MIN_ODDS,
    max_odds: float = MAX_ODDS,
    neutral: float = NEUTRAL_ODDS,
) -> Odds:
    """
    Quote decimal odds for both sides of a game.

    The whole pool, less the house edge, is shared by the side that wins:
    ``odds = total * (1 - edge) / side_pool``. An empty side quotes the
    neutral value. Every quote is clamped to ``[min_odds, max_odds]``.
    """
    if home_pool < 0 or away_pool < 0:
        raise ValueError("Pools cannot be negative")

    if home_pool == 0 and away_pool == 0:
        return Odds(clamp_odds(neutral, min_odds, max_odds), clamp_odds(neutral, min_odds, max_odds))

    effective_pool = (home_pool + away_pool) * (1 - house_edge)
    home_odds = effective_pool / home_pool if home_pool > 0 else neutral
    away_odds = effective_pool / away_pool if away_pool > 0 else neutral

    return Odds(
        clamp_odds(home_odds, min_odds, max_odds),
        clamp_odds(away_odds, min_odds, max_odds),
    )
