import math

import pytest
from hypothesis import given, strategies as st

from analysis.value_analyzer import ConfidenceScorer, ValueAnalyzer
from core.models import ProbabilityEstimate


# =============================================================================
# Stake sizing
# =============================================================================

@given(
    prob=st.floats(min_value=0.0, max_value=1.0),
    decimal_odds=st.floats(min_value=1.0, max_value=1000.0, exclude_min=True),
)
def test_stake_always_within_unit_bounds(prob, decimal_odds):
    stake = ValueAnalyzer.kelly_stake(prob, decimal_odds)
    assert 0.5 <= stake <= 3.0


@pytest.mark.parametrize("prob,odds", [(0.0, 1.0000001), (1.0, 1.0000001), (0.0, 500.0), (1.0, 500.0)])
def test_stake_boundaries(prob, odds):
    assert 0.5 <= ValueAnalyzer.kelly_stake(prob, odds) <= 3.0


def test_quarter_kelly_never_exceeds_floor():
    # Quarter Kelly of a fraction <= 1 is at most 0.25, so the unit floor applies
    assert ValueAnalyzer.kelly_stake(0.6, 2.5) == 0.5
    assert ValueAnalyzer.kelly_stake(0.99, 100.0) == 0.5


def test_larger_kelly_fraction_reaches_the_cap():
    assert ValueAnalyzer.kelly_stake(0.9, 10.0, kelly_fraction=10.0) == 3.0
    assert ValueAnalyzer.kelly_stake(0.6, 2.5, kelly_fraction=50.0) == 3.0


def test_larger_kelly_fraction_lands_between_bounds():
    assert ValueAnalyzer.kelly_stake(0.6, 2.5, kelly_fraction=2.4) == pytest.approx(0.8)


def test_negative_edge_gets_minimum_stake():
    assert ValueAnalyzer.kelly_stake(0.2, 2.0) == 0.5


@pytest.mark.parametrize("prob,odds", [(-0.1, 2.0), (1.1, 2.0), (0.5, 1.0), (0.5, 0.9), (None, 2.0)])
def test_stake_rejects_invalid_inputs(prob, odds):
    with pytest.raises(ValueError):
        ValueAnalyzer.kelly_stake(prob, odds)


def test_recommended_stake_units_match_bankroll_percentage():
    stake = ValueAnalyzer.recommended_stake(0.9, 10.0)
    assert stake.units == stake.percentage_of_bankroll
    assert stake.kelly_fraction == f"{stake.units:.2f} Units"


def test_edge_and_expected_value():
    assert ValueAnalyzer.calculate_edge(60.0, 52.6) == pytest.approx(7.4)
    assert ValueAnalyzer.expected_value(0.55, 2.0) == pytest.approx(10.0)
    assert ValueAnalyzer.expected_value(0.40, 2.0) == pytest.approx(-20.0)


# =============================================================================
# Confidence scoring
# =============================================================================

@given(
    edge=st.floats(min_value=-100.0, max_value=100.0),
    probability=st.floats(min_value=0.0, max_value=100.0),
    liquidity=st.sampled_from(["High", "Medium", "Low", "Unknown"]),
    sources=st.integers(min_value=0, max_value=50),
    key=st.text(max_size=40),
)
def test_confidence_always_within_bounds(edge, probability, liquidity, sources, key):
    score = ConfidenceScorer.score(edge, probability, liquidity, sources, key)
    assert 20.0 <= score <= 96.0


def test_confidence_non_finite_inputs_get_floor():
    assert ConfidenceScorer.score(math.nan, 50.0, "High", 3) == 20.0
    assert ConfidenceScorer.score(5.0, math.inf, "High", 3) == 20.0


def test_negative_edge_lowers_confidence():
    positive = ConfidenceScorer.score(5.0, 60.0, "High", 3)
    negative = ConfidenceScorer.score(-5.0, 60.0, "High", 3)
    assert negative < positive


def test_more_liquidity_and_sources_raise_confidence():
    low = ConfidenceScorer.score(4.0, 60.0, "Low", 1)
    high = ConfidenceScorer.score(4.0, 60.0, "High", 5)
    assert high > low


def test_perturbation_is_deterministic_and_small():
    key = "fx-1:moneyline:Arsenal Win"
    assert ConfidenceScorer.perturbation(key) == ConfidenceScorer.perturbation(key)
    assert abs(ConfidenceScorer.perturbation(key)) <= 1.5
    assert ConfidenceScorer.perturbation("") == 0.0
    assert ConfidenceScorer.score(4.0, 60.0, "High", 3, key) == ConfidenceScorer.score(4.0, 60.0, "High", 3, key)


def _estimate(contributions):
    return ProbabilityEstimate(raw=0.6, capped=0.6, market_implied=0.5, total_impact=10.0,
                               factor_count=len(contributions), contributions=contributions)


def test_analysis_confidence_counts_aligned_core_factors():
    # impact 8 at the category weight clears the alignment threshold of 5
    aligned = _estimate({"tactical": 8 * 0.35, "form": 8 * 0.25, "situational": 8 * 0.20})
    assert ConfidenceScorer.analysis_confidence(aligned) == pytest.approx(8.9)

    weak = _estimate({"tactical": 1.0, "form": 0.5})
    assert ConfidenceScorer.analysis_confidence(weak) == pytest.approx(6.5)
