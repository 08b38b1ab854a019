import pytest
from hypothesis import given, strategies as st

from analysis.probability import FairOddsConverter, ProbabilityNormalizer
from core.models import ThreeWayProbabilities, TwoWayProbabilities

percent = st.floats(min_value=-50.0, max_value=500.0, allow_nan=False, allow_infinity=False)
odds = st.floats(min_value=1.01, max_value=50.0)
adjustment = st.floats(min_value=-0.5, max_value=0.5)


def assert_valid(values):
    assert abs(sum(values) - 100.0) <= 0.001
    for v in values:
        assert 5.0 <= v <= 95.0


# =============================================================================
# Normalizer properties
# =============================================================================

@given(home=percent, draw=percent, away=percent)
def test_three_way_normalization_is_bounded_and_sums_to_100(home, draw, away):
    result = ProbabilityNormalizer.normalize_three_way(ThreeWayProbabilities(home, draw, away))
    assert_valid([result.home, result.draw, result.away])


@given(option1=percent, option2=percent)
def test_two_way_normalization_is_bounded_and_sums_to_100(option1, option2):
    result = ProbabilityNormalizer.normalize_two_way(TwoWayProbabilities(option1, option2))
    assert_valid([result.option1, result.option2])


@given(home=percent, draw=percent, away=percent)
def test_normalizing_twice_changes_nothing(home, draw, away):
    once = ProbabilityNormalizer.normalize([home, draw, away])
    twice = ProbabilityNormalizer.normalize(once)
    assert twice == pytest.approx(once, abs=0.05)


@given(value=st.floats(min_value=-100.0, max_value=1000.0))
def test_equal_inputs_split_evenly(value):
    result = ProbabilityNormalizer.normalize([value, value, value])
    assert_valid(result)
    assert max(result) - min(result) <= 0.1 + 1e-9


def test_already_valid_triple_is_kept():
    assert ProbabilityNormalizer.normalize([50.0, 30.0, 20.0]) == [50.0, 30.0, 20.0]


def test_out_of_bounds_entry_is_pinned_and_residual_moves_elsewhere():
    result = ProbabilityNormalizer.normalize([99.0, 0.5, 0.5])
    assert_valid(result)
    assert result[1] == 5.0
    assert result[2] == 5.0
    assert result[0] == 90.0


def test_rounding_residual_goes_to_largest_entry():
    # 33.33.. each: rounds to 33.3 x3 = 99.9, so one entry carries the extra 0.1
    result = ProbabilityNormalizer.normalize([1.0, 1.0, 1.0])
    assert sorted(result) == [33.3, 33.3, 33.4]
    assert result[0] == 33.4


@pytest.mark.parametrize("values", [[50.0], [], [float("nan"), 50.0], [None, 50.0]])
def test_invalid_inputs_raise(values):
    with pytest.raises(ValueError):
        ProbabilityNormalizer.normalize(values)


def test_verify_reports_both_violations():
    valid, total, errors = ProbabilityNormalizer.verify([96.0, 2.0, 1.0])
    assert not valid
    assert total == pytest.approx(99.0)
    assert len(errors) == 4  # three bounds, one sum


def test_unsatisfiable_set_is_returned_with_warning(caplog):
    # 25 outcomes cannot each be >= 5% and sum to 100
    values = [1.0] * 25
    result = ProbabilityNormalizer.normalize(values)
    assert all(v == 5.0 for v in result)
    assert "NormalizationToleranceWarning" in caplog.text


# =============================================================================
# Fair-odds conversion
# =============================================================================

def test_implied_probability_rejects_odds_at_or_below_one():
    with pytest.raises(ValueError):
        FairOddsConverter.implied_probability(1.0)
    with pytest.raises(ValueError):
        FairOddsConverter.implied_probability(0.5)


def test_reference_triple_without_adjustment():
    implied = [FairOddsConverter.implied_probability(o) for o in (1.80, 3.40, 4.50)]
    assert implied == pytest.approx([55.56, 29.41, 22.22], abs=0.01)

    fair = FairOddsConverter.remove_margin([1.80, 3.40, 4.50])
    assert sum(fair) == pytest.approx(100.0)

    result = FairOddsConverter.three_way(1.80, 4.50, 3.40, adjustment=0.0)
    values = [result.home, result.draw, result.away]
    assert_valid(values)
    assert values == pytest.approx(fair, abs=0.15)
    assert (result.home, result.draw, result.away) == (51.9, 27.4, 20.7)


@given(home=odds, draw=odds, away=odds)
def test_zero_adjustment_reproduces_margin_free_probabilities(home, draw, away):
    fair = FairOddsConverter.remove_margin([home, draw, away])
    result = FairOddsConverter.three_way(home, away, draw, adjustment=0.0)
    if all(5.0 <= p <= 95.0 for p in fair):
        assert [result.home, result.draw, result.away] == pytest.approx(fair, abs=0.15)
    assert_valid([result.home, result.draw, result.away])


@given(home=odds, draw=odds, away=odds, adj=adjustment)
def test_three_way_conversion_always_valid(home, draw, away, adj):
    result = FairOddsConverter.three_way(home, away, draw, adjustment=adj)
    assert_valid([result.home, result.draw, result.away])


@given(o1=odds, o2=odds, adj=adjustment)
def test_two_way_conversion_always_valid(o1, o2, adj):
    result = FairOddsConverter.two_way(o1, o2, adjustment=adj)
    assert_valid([result.option1, result.option2])


def test_positive_adjustment_moves_probability_toward_home():
    neutral = FairOddsConverter.three_way(2.50, 2.80, 3.20, adjustment=0.0)
    favoured = FairOddsConverter.three_way(2.50, 2.80, 3.20, adjustment=0.2)
    assert favoured.home > neutral.home
    assert favoured.away < neutral.away
    assert favoured.draw < neutral.draw
    # 3 points of shift: 0.9 from the draw, 2.1 from the away side
    assert favoured.home - neutral.home == pytest.approx(3.0, abs=0.15)
    assert neutral.away - favoured.away == pytest.approx(2.1, abs=0.15)


def test_missing_draw_defaults_to_a_quarter():
    result = FairOddsConverter.three_way(2.00, 2.00, None, adjustment=0.0)
    assert (result.home, result.draw, result.away) == (37.5, 25.0, 37.5)


def test_adjustment_beyond_half_is_bounded():
    capped = FairOddsConverter.two_way(2.0, 2.0, adjustment=5.0)
    at_limit = FairOddsConverter.two_way(2.0, 2.0, adjustment=0.5)
    assert capped == at_limit
    assert (at_limit.option1, at_limit.option2) == (55.0, 45.0)
