"""
Pricing strategies, one per market family.

Each strategy turns a MarketContext into PricedSelections: a selection
label, the price on offer and the calculated probability (percent). The
MarketGenerator then attaches implied probability, edge, confidence and
stake the same way for every family, so the per-market formulas live here
and nowhere else.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from analysis.probability import FairOddsConverter, ProbabilityNormalizer
from config.settings import (
    DOUBLE_CHANCE_MARGIN, CORRECT_SCORE_MARGIN, CORNERS_MARGIN, CARDS_MARGIN,
    FIRST_HALF_ODDS_FACTORS, FIRST_HALF_ADJUSTMENT_DAMPING, CORRECT_SCORE_FRACTIONS,
    MIN_PROBABILITY, MAX_PROBABILITY, BASE_PROBABILITY,
)
from config.sports import SportProfile
from core.models import (
    OddsQuote, TeamStats, ThreeWayProbabilities, TwoWayProbabilities,
)
from markets.specialty import (
    SpecialtyMarketsCalculator, over_probability,
    HOME_TEAM_CORNER_LINE, AWAY_TEAM_CORNER_LINE, CARD_LINES, BOOKING_POINTS_LINE,
)

logger = logging.getLogger(__name__)

MONEYLINE = "moneyline"
SPREAD = "spread"
TOTALS = "totals"
BTTS = "btts"
DOUBLE_CHANCE = "double_chance"
FIRST_HALF = "first_half"
CORRECT_SCORE = "correct_score"
OTHER = "other"

MARKET_CATEGORIES = (MONEYLINE, SPREAD, TOTALS, BTTS, DOUBLE_CHANCE, FIRST_HALF, CORRECT_SCORE, OTHER)

SPECIALTY_SOURCE = "Specialty Markets Calculator"

# Synthesized prices never go below this
MIN_OFFERED_ODDS = 1.01

SPREAD_POINTS_PER_UNIT = 2.0
BTTS_BASE = 55.0
BTTS_ADJUSTMENT_SCALE = 15.0
BTTS_BALANCE_SCALE = 15.0


@dataclass(frozen=True)
class PricedSelection:
    category: str
    selection: str
    odds: float
    probability: float  # percent
    liquidity: str
    line: Optional[float] = None
    sources: Tuple[str, ...] = ()


class MarketContext:
    """Inputs shared by every strategy for one fixture."""

    def __init__(
        self,
        quote: OddsQuote,
        true_probability: float,
        profile: SportProfile,
        home_stats: Optional[TeamStats] = None,
        away_stats: Optional[TeamStats] = None,
        referee_strict: bool = False,
    ):
        self.quote = quote
        self.true_probability = true_probability
        self.profile = profile
        self.home_stats = home_stats
        self.away_stats = away_stats
        self.referee_strict = referee_strict
        self._full_time: Optional[ThreeWayProbabilities] = None

    @property
    def fixture(self):
        return self.quote.fixture

    @property
    def adjustment(self) -> float:
        return self.true_probability - BASE_PROBABILITY

    @property
    def three_way(self) -> bool:
        return bool(self.profile.has_draw and self.quote.moneyline)

    def full_time(self) -> Optional[ThreeWayProbabilities]:
        """Adjusted home/draw/away probabilities, computed once per fixture."""
        if not self.three_way:
            return None
        if self._full_time is None:
            ml = self.quote.moneyline
            self._full_time = FairOddsConverter.three_way(ml.home, ml.away, ml.draw, self.adjustment)
        return self._full_time


def synthesized_odds(probability: float, margin: float) -> float:
    """Price for a market with no upstream quote: fair odds shortened by `margin`."""
    if probability <= 0:
        raise ValueError(f"Probability must be positive, got {probability!r}")
    return round(max(MIN_OFFERED_ODDS, 100.0 / probability / (1.0 + margin)), 2)


def bounded(probability: float) -> float:
    return max(MIN_PROBABILITY, min(MAX_PROBABILITY, probability))


class PricingStrategy:
    """Base class; subclasses set `name`, `category`, `liquidity` and implement price()."""

    name = ""
    category = OTHER
    liquidity = "Medium"
    extra_sources: Tuple[str, ...] = ()

    def applies(self, ctx: MarketContext) -> bool:
        return True

    def price(self, ctx: MarketContext) -> List[PricedSelection]:
        raise NotImplementedError

    def selection(self, label: str, odds: float, probability: float, line: Optional[float] = None) -> PricedSelection:
        return PricedSelection(
            category=self.category,
            selection=label,
            odds=odds,
            probability=probability,
            liquidity=self.liquidity,
            line=line,
            sources=self.extra_sources,
        )


class MoneylineStrategy(PricingStrategy):
    name = MONEYLINE
    category = MONEYLINE
    liquidity = "High"

    def applies(self, ctx):
        return ctx.quote.moneyline is not None

    def price(self, ctx):
        ml = ctx.quote.moneyline
        home_label = f"{ctx.fixture.home} Win"
        away_label = f"{ctx.fixture.away} Win"

        if not ctx.three_way:
            probs = FairOddsConverter.two_way(ml.home, ml.away, ctx.adjustment)
            return [
                self.selection(home_label, ml.home, probs.option1),
                self.selection(away_label, ml.away, probs.option2),
            ]

        probs = ctx.full_time()
        selections = [
            self.selection(home_label, ml.home, probs.home),
            self.selection(away_label, ml.away, probs.away),
        ]
        # Without a draw price the draw share is assumed, not sellable
        if ml.draw:
            selections.append(self.selection("Draw", ml.draw, probs.draw))
        return selections


class SpreadStrategy(PricingStrategy):
    """Single-sided handicap on the home team; no complementary side to normalize against."""

    name = SPREAD
    category = SPREAD
    liquidity = "High"

    def applies(self, ctx):
        return ctx.quote.spread is not None

    def price(self, ctx):
        spread = ctx.quote.spread
        probability = bounded(ctx.true_probability * 100.0 + spread.line * SPREAD_POINTS_PER_UNIT)
        label = f"{ctx.fixture.home} {spread.line:+g}"
        return [self.selection(label, spread.odds, round(probability, 1), line=spread.line)]


class TotalsStrategy(PricingStrategy):
    name = TOTALS
    category = TOTALS
    liquidity = "High"

    def applies(self, ctx):
        return ctx.quote.totals is not None

    def price(self, ctx):
        totals = ctx.quote.totals
        probs = FairOddsConverter.two_way(totals.over, totals.under, ctx.adjustment)
        return [
            self.selection(f"Over {totals.line:g}", totals.over, probs.option1, line=totals.line),
            self.selection(f"Under {totals.line:g}", totals.under, probs.option2, line=totals.line),
        ]


class BothTeamsToScoreStrategy(PricingStrategy):
    """
    Yes starts at 55%, moves with the adjustment and rises when the sides
    are closely matched. Priced at fair odds; no bookmaker quote exists.
    """

    name = BTTS
    category = BTTS
    liquidity = "Medium"

    def applies(self, ctx):
        return ctx.profile.goal_markets

    def price(self, ctx):
        yes = BTTS_BASE + ctx.adjustment * BTTS_ADJUSTMENT_SCALE
        try:
            full_time = ctx.full_time()
        except ValueError as e:
            logger.debug(f"BTTS for {ctx.fixture.match} priced without balance: {e}")
            full_time = None
        if full_time:
            balance = 1.0 - abs(full_time.home - full_time.away) / 100.0
            yes += balance * BTTS_BALANCE_SCALE

        probs = ProbabilityNormalizer.normalize_two_way(TwoWayProbabilities(option1=yes, option2=100.0 - yes))
        return [
            self.selection("BTTS Yes", round(100.0 / probs.option1, 2), probs.option1),
            self.selection("BTTS No", round(100.0 / probs.option2, 2), probs.option2),
        ]


class DoubleChanceStrategy(PricingStrategy):
    name = DOUBLE_CHANCE
    category = DOUBLE_CHANCE
    liquidity = "Medium"

    def applies(self, ctx):
        return ctx.three_way and bool(ctx.quote.moneyline.draw)

    @staticmethod
    def combined_odds(first: float, second: float) -> float:
        """Harmonic combination of two legs, inflated by the overlay margin."""
        combined = 1.0 / (1.0 / first + 1.0 / second)
        return round(max(MIN_OFFERED_ODDS, combined * (1.0 + DOUBLE_CHANCE_MARGIN)), 2)

    def price(self, ctx):
        ml = ctx.quote.moneyline
        probs = ctx.full_time()
        home, away = ctx.fixture.home, ctx.fixture.away
        return [
            self.selection(f"{home} or Draw", self.combined_odds(ml.home, ml.draw), round(probs.home + probs.draw, 1)),
            self.selection(f"Draw or {away}", self.combined_odds(ml.draw, ml.away), round(probs.draw + probs.away, 1)),
            self.selection(f"{home} or {away}", self.combined_odds(ml.home, ml.away), round(probs.home + probs.away, 1)),
        ]


class FirstHalfStrategy(PricingStrategy):
    """Half-time result: longer side prices, shorter draw, dampened adjustment."""

    name = FIRST_HALF
    category = FIRST_HALF
    liquidity = "Medium"

    def applies(self, ctx):
        return ctx.profile.goal_markets and ctx.three_way and bool(ctx.quote.moneyline.draw)

    def price(self, ctx):
        ml = ctx.quote.moneyline
        home_odds = round(max(MIN_OFFERED_ODDS, ml.home * FIRST_HALF_ODDS_FACTORS["home"]), 2)
        away_odds = round(max(MIN_OFFERED_ODDS, ml.away * FIRST_HALF_ODDS_FACTORS["away"]), 2)
        draw_odds = round(max(MIN_OFFERED_ODDS, ml.draw * FIRST_HALF_ODDS_FACTORS["draw"]), 2)

        probs = FairOddsConverter.three_way(
            home_odds, away_odds, draw_odds, ctx.adjustment * FIRST_HALF_ADJUSTMENT_DAMPING
        )
        return [
            self.selection(f"1H {ctx.fixture.home}", home_odds, probs.home),
            self.selection("1H Draw", draw_odds, probs.draw),
            self.selection(f"1H {ctx.fixture.away}", away_odds, probs.away),
        ]


class CorrectScoreStrategy(PricingStrategy):
    name = CORRECT_SCORE
    category = CORRECT_SCORE
    liquidity = "Low"

    def __init__(self, fractions: Optional[Dict[str, Dict[str, float]]] = None):
        self.fractions = fractions or CORRECT_SCORE_FRACTIONS

    def applies(self, ctx):
        return ctx.profile.goal_markets and ctx.three_way

    def price(self, ctx):
        probs = ctx.full_time()
        parents = {"home": probs.home, "draw": probs.draw, "away": probs.away}
        selections = []
        for outcome, scorelines in self.fractions.items():
            for score, fraction in scorelines.items():
                probability = round(parents[outcome] * fraction, 1)
                selections.append(
                    self.selection(f"Correct Score {score}", synthesized_odds(probability, CORRECT_SCORE_MARGIN), probability)
                )
        return selections


class CornersStrategy(PricingStrategy):
    name = "corners"
    category = OTHER
    liquidity = "Low"
    extra_sources = (SPECIALTY_SOURCE,)

    def __init__(self, calculator: Optional[SpecialtyMarketsCalculator] = None):
        self.calculator = calculator or SpecialtyMarketsCalculator()

    def applies(self, ctx):
        return ctx.profile.specialty_markets

    def price(self, ctx):
        corners = self.calculator.corners(ctx.home_stats, ctx.away_stats)
        total = ProbabilityNormalizer.normalize_two_way(
            TwoWayProbabilities(option1=corners.over_probability, option2=corners.under_probability)
        )
        home_over = round(bounded(over_probability(corners.home, HOME_TEAM_CORNER_LINE)), 1)
        away_over = round(bounded(over_probability(corners.away, AWAY_TEAM_CORNER_LINE)), 1)
        return [
            self._priced(f"Total Corners Over {corners.line:g}", total.option1, corners.line),
            self._priced(f"Total Corners Under {corners.line:g}", total.option2, corners.line),
            self._priced(f"{ctx.fixture.home} Corners Over {HOME_TEAM_CORNER_LINE:g}", home_over, HOME_TEAM_CORNER_LINE),
            self._priced(f"{ctx.fixture.away} Corners Over {AWAY_TEAM_CORNER_LINE:g}", away_over, AWAY_TEAM_CORNER_LINE),
        ]

    def _priced(self, label: str, probability: float, line: float) -> PricedSelection:
        return self.selection(label, synthesized_odds(probability, CORNERS_MARGIN), probability, line=line)


class CardsStrategy(PricingStrategy):
    name = "cards"
    category = OTHER
    liquidity = "Low"
    extra_sources = (SPECIALTY_SOURCE,)

    def __init__(self, calculator: Optional[SpecialtyMarketsCalculator] = None):
        self.calculator = calculator or SpecialtyMarketsCalculator()

    def applies(self, ctx):
        return ctx.profile.specialty_markets

    def price(self, ctx):
        cards = self.calculator.cards(ctx.home_stats, ctx.away_stats, ctx.referee_strict)
        selections = []
        for line in CARD_LINES:
            probs = ProbabilityNormalizer.normalize_two_way(TwoWayProbabilities(
                option1=over_probability(cards.total_yellow, line),
                option2=100.0 - over_probability(cards.total_yellow, line),
            ))
            selections.append(self._priced(f"Total Cards Over {line:g}", probs.option1, line))
            selections.append(self._priced(f"Total Cards Under {line:g}", probs.option2, line))

        # 10 booking points per booking unit
        points = cards.total_bookings * 10.0
        booking_over = round(bounded(over_probability(points, BOOKING_POINTS_LINE)), 1)
        selections.append(self._priced(f"Booking Points Over {BOOKING_POINTS_LINE:g}", booking_over, BOOKING_POINTS_LINE))
        return selections

    def _priced(self, label: str, probability: float, line: float) -> PricedSelection:
        return self.selection(label, synthesized_odds(probability, CARDS_MARGIN), probability, line=line)


def default_strategies() -> List[PricingStrategy]:
    """Every strategy in catalogue order; earlier entries win primary-market ties."""
    return [
        MoneylineStrategy(),
        SpreadStrategy(),
        TotalsStrategy(),
        BothTeamsToScoreStrategy(),
        DoubleChanceStrategy(),
        FirstHalfStrategy(),
        CorrectScoreStrategy(),
        CornersStrategy(),
        CardsStrategy(),
    ]


PRICING_STRATEGIES: Dict[str, PricingStrategy] = {s.name: s for s in default_strategies()}


def get_strategy(name: str) -> PricingStrategy:
    """Look up a strategy by name; raises ValueError for unknown markets."""
    strategy = PRICING_STRATEGIES.get(name)
    if strategy is None:
        raise ValueError(f"Unknown market: {name}")
    return strategy
