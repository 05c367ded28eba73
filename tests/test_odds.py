import pytest

from ballpark.services.odds import Odds, clamp_odds, compute_odds


def test_empty_pools_quote_neutral_odds():
    assert compute_odds(0, 0) == Odds(2.0, 2.0)


def test_balanced_pools():
    odds = compute_odds(100, 100, house_edge=0.05)
    assert odds.home == pytest.approx(1.9)
    assert odds.away == pytest.approx(1.9)


def test_lopsided_pools_are_clamped():
    odds = compute_odds(1000, 10, house_edge=0.05)
    # 1010 * 0.95 / 1000 = 0.9595 -> clamped up, 1010 * 0.95 / 10 = 95.95 -> clamped down
    assert odds.home == 1.1
    assert odds.away == 10.0


def test_empty_side_quotes_neutral():
    odds = compute_odds(300, 0, house_edge=0.05)
    assert odds.away == 2.0
    assert odds.home == 1.1


def test_negative_pool_is_rejected():
    with pytest.raises(ValueError):
        compute_odds(-1, 10)


def test_clamp_odds_bounds():
    assert clamp_odds(0.5) == 1.1
    assert clamp_odds(50) == 10.0
    assert clamp_odds(3.3) == 3.3
