"""Edge, stake sizing and confidence scoring for priced markets."""
import hashlib
import logging
import math

from config.settings import (
    KELLY_FRACTION, MIN_STAKE_UNITS, MAX_STAKE_UNITS,
    MIN_CONFIDENCE, MAX_CONFIDENCE, FACTOR_WEIGHTS,
)
from core.models import ProbabilityEstimate, RecommendedStake

logger = logging.getLogger(__name__)

# A core factor counts as aligned when its impact exceeds this
ALIGNMENT_IMPACT = 5.0


class ValueAnalyzer:
    """Edge and bounded fractional-Kelly staking."""

    @staticmethod
    def calculate_edge(calculated_prob: float, implied_prob: float) -> float:
        """Edge in percentage points: calculated minus implied."""
        return calculated_prob - implied_prob

    @staticmethod
    def expected_value(true_prob: float, offered_odds: float) -> float:
        """
        Expected value in percent: (true_prob * offered_odds - 1) * 100
        Positive = value bet
        """
        return (true_prob * offered_odds - 1.0) * 100.0

    @staticmethod
    def kelly_stake(prob: float, odds: float, kelly_fraction: float = KELLY_FRACTION) -> float:
        """
        Fractional Kelly stake in units, clamped to [MIN_STAKE_UNITS, MAX_STAKE_UNITS].

        Args:
            prob: Win probability in [0, 1]
            odds: Decimal odds, must be > 1
        """
        if prob is None or not (0.0 <= prob <= 1.0):
            raise ValueError(f"Probability must be in [0, 1], got {prob!r}")
        if odds is None or not odds > 1.0:
            raise ValueError(f"Decimal odds must be greater than 1.0, got {odds!r}")

        # Kelly formula: f = (bp - q) / b
        b = odds - 1.0
        kelly = kelly_fraction * (prob * b - (1.0 - prob)) / b
        if math.isnan(kelly):
            return MIN_STAKE_UNITS
        return max(MIN_STAKE_UNITS, min(MAX_STAKE_UNITS, kelly))

    @classmethod
    def recommended_stake(cls, prob: float, odds: float) -> RecommendedStake:
        """Stake in units; one unit is one percent of bankroll."""
        units = round(cls.kelly_stake(prob, odds), 2)
        return RecommendedStake(units=units, percentage_of_bankroll=units)


class ConfidenceScorer:
    """
    Confidence in a priced market, bounded to [MIN_CONFIDENCE, MAX_CONFIDENCE].

    Components: edge size (capped), distance of the probability from 50
    (moderate distance scores best), number of agreeing sources and market
    liquidity. A negative edge shrinks the score multiplicatively. A small
    offset hashed from the market key separates otherwise identical markets.
    """

    BASE_SCORE = 20.0
    EDGE_CAP = 15.0
    EDGE_POINTS = 30.0
    DISTANCE_PEAK = 20.0
    DISTANCE_POINTS = 20.0
    DISTANCE_DECAY = 0.8
    SOURCE_POINTS = 2.0
    MAX_SOURCES = 10
    LIQUIDITY_POINTS = {"High": 15.0, "Medium": 10.0, "Low": 5.0}
    NEGATIVE_EDGE_SCALE = 10.0
    PERTURBATION_RANGE = 3.0

    @classmethod
    def score(cls, edge: float, probability: float, liquidity: str, source_count: int, market_key: str = "") -> float:
        """
        Args:
            edge: Edge in percentage points
            probability: Calculated probability on a 0-100 scale
            liquidity: "High", "Medium" or "Low"
            source_count: Number of data sources behind the price
            market_key: Stable identifier used for the deterministic offset
        """
        if not math.isfinite(edge) or not math.isfinite(probability):
            return MIN_CONFIDENCE

        edge_part = min(max(edge, 0.0), cls.EDGE_CAP) / cls.EDGE_CAP * cls.EDGE_POINTS

        distance = abs(probability - 50.0)
        if distance <= cls.DISTANCE_PEAK:
            distance_part = distance / cls.DISTANCE_PEAK * cls.DISTANCE_POINTS
        else:
            distance_part = max(0.0, cls.DISTANCE_POINTS - (distance - cls.DISTANCE_PEAK) * cls.DISTANCE_DECAY)

        source_part = min(max(source_count, 0), cls.MAX_SOURCES) * cls.SOURCE_POINTS
        liquidity_part = cls.LIQUIDITY_POINTS.get(liquidity, cls.LIQUIDITY_POINTS["Low"])

        score = cls.BASE_SCORE + edge_part + distance_part + source_part + liquidity_part

        if edge < 0:
            score *= math.exp(edge / cls.NEGATIVE_EDGE_SCALE)

        score += cls.perturbation(market_key)
        return round(max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, score)), 1)

    @classmethod
    def perturbation(cls, market_key: str) -> float:
        """Deterministic offset in [-range/2, range/2] from a stable hash."""
        if not market_key:
            return 0.0
        digest = hashlib.sha256(market_key.encode("utf-8")).digest()
        return (digest[0] / 255.0 - 0.5) * cls.PERTURBATION_RANGE

    @staticmethod
    def analysis_confidence(estimate: ProbabilityEstimate) -> float:
        """
        Fixture-level confidence on a 0-10 scale from how many of the core
        factor categories push strongly in the same direction.
        """
        core = ("tactical", "form", "situational")
        aligned = sum(
            1 for c in core
            if estimate.contributions.get(c, 0.0) > ALIGNMENT_IMPACT * FACTOR_WEIGHTS.get(c, 0) / 100.0
        )
        return min(9.5, 6.5 + aligned * 0.8)
