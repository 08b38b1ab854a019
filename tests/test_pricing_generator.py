from dataclasses import replace

import pytest

from config.sports import get_sport_profile
from core.models import MoneylineOdds, SpreadOdds, TeamStats
from markets.generator import MarketGenerator
from markets.pricing import (
    BTTS, CORRECT_SCORE, DOUBLE_CHANCE, FIRST_HALF, MONEYLINE, OTHER, SPREAD, TOTALS,
    DoubleChanceStrategy, MarketContext, MoneylineStrategy, get_strategy, synthesized_odds,
)

from conftest import make_quote


def by_category(markets, category):
    return [m for m in markets if m.category == category]


@pytest.fixture
def football():
    return get_sport_profile("Football")


@pytest.fixture
def generated(quote, football):
    ctx = MarketContext(quote, 0.60, football)
    return MarketGenerator().generate(ctx, quote.sources)


def test_moneyline_legs_for_reference_fixture(generated):
    moneyline = by_category(generated, MONEYLINE)
    assert len(moneyline) == 3
    assert [m.selection for m in moneyline] == ["Arsenal Win", "Chelsea Win", "Draw"]
    assert sum(m.calculated_probability.value for m in moneyline) == pytest.approx(100.0, abs=0.001)
    for market in moneyline:
        assert market.edge == pytest.approx(market.calculated_probability.value - market.implied_probability)
        assert market.implied_probability == pytest.approx(100.0 / market.odds)


def test_every_market_is_internally_consistent(generated):
    for market in generated:
        if market.category in (MONEYLINE, SPREAD, TOTALS, BTTS, FIRST_HALF, OTHER):
            assert 5.0 <= market.calculated_probability.value <= 95.0
        else:
            # scoreline shares and double-chance sums are derived, not normalized
            assert 0.0 < market.calculated_probability.value < 100.0
        assert market.odds >= 1.01
        assert 20.0 <= market.confidence_score <= 96.0
        assert 0.5 <= market.stake.units <= 3.0
        assert market.calculated_probability.lower <= market.calculated_probability.value
        assert market.calculated_probability.upper >= market.calculated_probability.value
        assert "Test Feed" in market.data_sources


def test_football_catalogue_covers_every_family(generated):
    categories = {m.category for m in generated}
    assert categories == {MONEYLINE, SPREAD, TOTALS, BTTS, DOUBLE_CHANCE, FIRST_HALF, CORRECT_SCORE, OTHER}


def test_two_way_pairs_sum_to_100(generated):
    for category in (TOTALS, BTTS):
        legs = by_category(generated, category)
        assert len(legs) == 2
        assert sum(m.calculated_probability.value for m in legs) == pytest.approx(100.0, abs=0.001)


def test_double_chance_is_consistent_with_moneyline(generated):
    ml = {m.selection: m.calculated_probability.value for m in by_category(generated, MONEYLINE)}
    dc = {m.selection: m.calculated_probability.value for m in by_category(generated, DOUBLE_CHANCE)}
    assert dc["Arsenal or Draw"] == pytest.approx(ml["Arsenal Win"] + ml["Draw"], abs=0.05)
    assert dc["Arsenal or Chelsea"] == pytest.approx(ml["Arsenal Win"] + ml["Chelsea Win"], abs=0.05)


def test_double_chance_odds_are_harmonic_plus_overlay():
    assert DoubleChanceStrategy.combined_odds(2.0, 2.0) == pytest.approx(1.05)


def test_correct_score_uses_parent_fractions(generated):
    ml = {m.selection: m.calculated_probability.value for m in by_category(generated, MONEYLINE)}
    scores = {m.selection: m for m in by_category(generated, CORRECT_SCORE)}
    assert scores["Correct Score 1-0"].calculated_probability.value == pytest.approx(ml["Arsenal Win"] * 0.20, abs=0.05)
    assert scores["Correct Score 1-1"].calculated_probability.value == pytest.approx(ml["Draw"] * 0.30, abs=0.05)
    one_nil = scores["Correct Score 1-0"]
    assert one_nil.odds == synthesized_odds(one_nil.calculated_probability.value, 0.15)


def test_synthesized_odds_has_a_floor():
    assert synthesized_odds(99.9, 0.15) == 1.01
    with pytest.raises(ValueError):
        synthesized_odds(0.0, 0.1)


def test_basketball_moneyline_is_two_way():
    quote = make_quote(sport="Basketball", league="NBA", home="Lakers", away="Warriors",
                       moneyline={"home": 1.65, "away": 2.30}, spread={"line": -3.5, "odds": 1.9},
                       totals={"line": 225.5, "over": 1.9, "under": 1.9})
    ctx = MarketContext(quote, 0.55, get_sport_profile("Basketball"))
    markets = MarketGenerator().generate(ctx, quote.sources)

    moneyline = by_category(markets, MONEYLINE)
    assert [m.selection for m in moneyline] == ["Lakers Win", "Warriors Win"]
    assert sum(m.calculated_probability.value for m in moneyline) == pytest.approx(100.0, abs=0.001)
    assert {m.category for m in markets} == {MONEYLINE, SPREAD, TOTALS}


def test_missing_draw_price_skips_draw_leg_and_draw_markets(football):
    quote = make_quote(moneyline={"home": 1.90, "away": 4.00})
    markets = MarketGenerator().generate(MarketContext(quote, 0.6, football), quote.sources)
    assert [m.selection for m in by_category(markets, MONEYLINE)] == ["Arsenal Win", "Chelsea Win"]
    assert not by_category(markets, DOUBLE_CHANCE)
    assert not by_category(markets, FIRST_HALF)


def test_strict_referee_shortens_card_overs(football, quote):
    stats = TeamStats(team="x", yellow_cards=2.0, fouls=12.5)
    normal = MarketGenerator().generate(MarketContext(quote, 0.6, football, stats, stats), quote.sources)
    strict = MarketGenerator().generate(
        MarketContext(quote, 0.6, football, stats, stats, referee_strict=True), quote.sources
    )

    def over_25(markets):
        return next(m for m in markets if m.selection == "Total Cards Over 2.5")

    assert over_25(strict).calculated_probability.value > over_25(normal).calculated_probability.value


def test_invalid_strategy_input_is_skipped(football):
    quote = make_quote(totals={"line": 2.5, "over": 1.0, "under": 1.9})
    markets = MarketGenerator().generate(MarketContext(quote, 0.6, football), quote.sources)
    assert not by_category(markets, TOTALS)
    assert by_category(markets, MONEYLINE)


def test_primary_is_highest_edge(generated):
    primary = MarketGenerator.select_primary(generated)
    assert primary.edge == max(m.edge for m in generated)
    assert MarketGenerator.select_primary([]) is None


def test_primary_tie_goes_to_earlier_market(generated):
    home, away = generated[0], replace(generated[1], edge=generated[0].edge)
    assert home.selection != away.selection

    assert MarketGenerator.select_primary([home, away]) is home
    assert MarketGenerator.select_primary([away, home]) is away


def test_invalid_spread_price_skips_only_the_spread(football):
    quote = replace(make_quote(), spread=SpreadOdds(line=-0.5, odds=0.0))
    markets = MarketGenerator().generate(MarketContext(quote, 0.6, football), quote.sources)

    assert not by_category(markets, SPREAD)
    assert by_category(markets, MONEYLINE)
    assert by_category(markets, TOTALS)


def test_btts_priced_without_balance_when_moneyline_is_invalid(football):
    valid = make_quote()
    broken = replace(valid, moneyline=MoneylineOdds(home=1.0, away=4.0, draw=3.5))

    markets = MarketGenerator().generate(MarketContext(broken, 0.6, football), broken.sources)
    btts = by_category(markets, BTTS)

    assert not by_category(markets, MONEYLINE)
    assert [m.selection for m in btts] == ["BTTS Yes", "BTTS No"]
    # 55 + 0.1 * 15, no balance term
    assert btts[0].calculated_probability.value == pytest.approx(56.5)

    with_balance = MarketGenerator().generate(MarketContext(valid, 0.6, football), valid.sources)
    assert by_category(with_balance, BTTS)[0].calculated_probability.value > 56.5


def test_strategy_registry():
    assert isinstance(get_strategy("moneyline"), MoneylineStrategy)
    with pytest.raises(ValueError):
        get_strategy("asian_handicap")


def test_custom_strategy_list(quote, football):
    generator = MarketGenerator(strategies=[MoneylineStrategy()])
    markets = generator.generate(MarketContext(quote, 0.6, football), quote.sources)
    assert {m.category for m in markets} == {MONEYLINE}
