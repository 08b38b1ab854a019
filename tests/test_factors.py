import math

import pytest

from analysis.factors import FactorSynthesizer
from core.models import FactorObservation


def obs(category, weight, impact, **kwargs):
    return FactorObservation(category=category, weight=weight, impact=impact, **kwargs)


def test_no_observations_gives_base_probability():
    estimate = FactorSynthesizer().synthesize([])
    assert estimate.raw == 0.5
    assert estimate.capped == 0.5
    assert estimate.factor_count == 0
    assert estimate.contributions == {}


def test_weighted_sum_moves_probability(positive_observations):
    estimate = FactorSynthesizer().synthesize(positive_observations)
    # 8*35/100 + 6*25/100 - 4*5/100 = 2.8 + 1.5 - 0.2
    assert estimate.total_impact == pytest.approx(4.1)
    assert estimate.raw == pytest.approx(0.541)
    assert estimate.capped == pytest.approx(0.541)
    assert estimate.factor_count == 3
    assert estimate.contributions["fatigue"] == pytest.approx(-0.2)


def test_estimate_is_capped_for_conservatism():
    estimate = FactorSynthesizer().synthesize([obs("tactical", 35, 100.0)])
    assert estimate.raw == pytest.approx(0.85)
    assert estimate.capped == 0.75


def test_estimate_has_a_floor():
    estimate = FactorSynthesizer().synthesize([obs("form", 25, -100.0)])
    assert estimate.raw == pytest.approx(0.25)
    assert estimate.capped == 0.45


def test_repeated_category_accumulates():
    estimate = FactorSynthesizer().synthesize([obs("form", 25, 4.0), obs("form", 25, 4.0)])
    assert estimate.contributions == {"form": pytest.approx(2.0)}


def test_non_finite_observations_are_skipped():
    estimate = FactorSynthesizer().synthesize([obs("form", 25, math.nan), obs("tactical", math.inf, 1.0)])
    assert estimate.factor_count == 0
    assert estimate.capped == 0.5


def test_market_implied_probability_uses_reference_odds(quote):
    estimate = FactorSynthesizer().synthesize([], quote)
    # spread price 2.00 takes priority over the moneyline
    assert estimate.market_implied == pytest.approx(0.5)


def test_floor_above_cap_is_rejected():
    with pytest.raises(ValueError):
        FactorSynthesizer(floor=0.8, cap=0.7)
