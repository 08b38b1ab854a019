"""
Probability normalization and fair-odds conversion.

Every probability set handed out of this module is in percentage points,
keeps each entry inside [MIN_PROBABILITY, MAX_PROBABILITY] and sums to 100
within NORMALIZATION_TOLERANCE.

Bounds and the sum constraint cannot be met by a single proportional
rescale: scaling can push an entry past a bound, and clamping it back
breaks the sum. The normalizer therefore interleaves clamping with
redistribution of the residual over the entries that still have headroom,
for a bounded number of passes, then rounds and fixes the rounding
residual on a single entry.
"""
import logging
import math
from typing import List, Optional, Sequence, Tuple

from config.settings import (
    MIN_PROBABILITY, MAX_PROBABILITY, PROBABILITY_DECIMALS,
    NORMALIZATION_TOLERANCE, NORMALIZATION_MAX_PASSES,
)
from core.errors import NormalizationToleranceWarning
from core.models import ThreeWayProbabilities, TwoWayProbabilities

logger = logging.getLogger(__name__)

# Sums within this distance of 100 skip proportional rescaling
RESCALE_THRESHOLD = 0.01


class ProbabilityNormalizer:
    """Project candidate probabilities onto the bounded simplex."""

    @staticmethod
    def clamp(value: float) -> float:
        return max(MIN_PROBABILITY, min(MAX_PROBABILITY, value))

    @classmethod
    def normalize(cls, values: Sequence[float]) -> List[float]:
        """
        Normalize a list of percentages in fixed order.

        Steps: clamp, rescale toward 100, re-clamp and redistribute the
        residual among entries with headroom, round, then push the rounding
        residual onto one entry. When no entry can absorb the residual the
        result is returned as-is and the violation is logged.
        """
        if len(values) < 2:
            raise ValueError("Need at least two outcomes to normalize")
        for v in values:
            if v is None or not math.isfinite(v):
                raise ValueError(f"Probability must be a finite number, got {v!r}")

        probs = [cls.clamp(v) for v in values]

        if abs(sum(probs) - 100.0) > RESCALE_THRESHOLD:
            scale = 100.0 / sum(probs)
            probs = [p * scale for p in probs]
            probs = cls._redistribute(probs)

        probs = [round(p, PROBABILITY_DECIMALS) for p in probs]
        probs = cls._correct_rounding(probs)

        valid, total, errors = cls.verify(probs)
        if not valid:
            logger.warning(
                f"{NormalizationToleranceWarning.__name__}: accepted {probs} "
                f"(sum {total:.3f}) for input {list(values)}: {'; '.join(errors)}"
            )
        return probs

    @classmethod
    def _redistribute(cls, probs: List[float]) -> List[float]:
        """Re-clamp and spread the residual evenly over entries that can still move."""
        for _ in range(NORMALIZATION_MAX_PASSES):
            in_bounds = all(MIN_PROBABILITY <= p <= MAX_PROBABILITY for p in probs)
            if in_bounds and abs(sum(probs) - 100.0) <= RESCALE_THRESHOLD:
                break

            probs = [cls.clamp(p) for p in probs]
            residual = 100.0 - sum(probs)
            if abs(residual) <= RESCALE_THRESHOLD:
                break

            if residual > 0:
                movable = [i for i, p in enumerate(probs) if p < MAX_PROBABILITY]
            else:
                movable = [i for i, p in enumerate(probs) if p > MIN_PROBABILITY]
            if not movable:
                break

            share = residual / len(movable)
            for i in movable:
                probs[i] += share

        return [cls.clamp(p) for p in probs]

    @classmethod
    def _correct_rounding(cls, probs: List[float]) -> List[float]:
        """Add the residual to the largest entry that has room for it."""
        for _ in range(NORMALIZATION_MAX_PASSES):
            diff = round(100.0 - sum(probs), 6)
            if abs(diff) <= NORMALIZATION_TOLERANCE:
                break

            if diff > 0:
                headroom = [MAX_PROBABILITY - p for p in probs]
            else:
                headroom = [p - MIN_PROBABILITY for p in probs]
            candidates = [i for i, room in enumerate(headroom) if room > 0]
            if not candidates:
                break

            sufficient = [i for i in candidates if headroom[i] >= abs(diff)]
            if sufficient:
                # max() keeps the first of equal values, giving a fixed tie-break order
                target = max(sufficient, key=lambda i: probs[i])
            else:
                target = max(candidates, key=lambda i: headroom[i])

            probs[target] = round(cls.clamp(probs[target] + diff), PROBABILITY_DECIMALS)

        return probs

    @staticmethod
    def verify(probs: Sequence[float]) -> Tuple[bool, float, List[str]]:
        """Check bounds and sum; returns (valid, total, errors)."""
        errors = []
        for i, p in enumerate(probs):
            if p < MIN_PROBABILITY or p > MAX_PROBABILITY:
                errors.append(f"entry {i} = {p}% out of bounds [{MIN_PROBABILITY}, {MAX_PROBABILITY}]")
        total = sum(probs)
        if abs(total - 100.0) > NORMALIZATION_TOLERANCE:
            errors.append(f"probabilities sum to {total:.3f}%, not 100%")
        return not errors, total, errors

    @classmethod
    def normalize_three_way(cls, probs: ThreeWayProbabilities) -> ThreeWayProbabilities:
        """Normalize home/draw/away; tie-break order is home, draw, away."""
        home, draw, away = cls.normalize([probs.home, probs.draw, probs.away])
        return ThreeWayProbabilities(home=home, draw=draw, away=away)

    @classmethod
    def normalize_two_way(cls, probs: TwoWayProbabilities) -> TwoWayProbabilities:
        option1, option2 = cls.normalize([probs.option1, probs.option2])
        return TwoWayProbabilities(option1=option1, option2=option2)


class FairOddsConverter:
    """Strip bookmaker margin from decimal odds and apply the analytical adjustment."""

    THREE_WAY_SCALE = 15.0
    TWO_WAY_SCALE = 10.0
    DRAW_SHARE = 0.3
    AWAY_SHARE = 0.7
    DEFAULT_DRAW = 25.0
    MAX_ADJUSTMENT = 0.5

    @staticmethod
    def implied_probability(odds: float) -> float:
        """Raw implied probability (percent) including margin."""
        if odds is None or not odds > 1.0:
            raise ValueError(f"Decimal odds must be greater than 1.0, got {odds!r}")
        return 100.0 / odds

    @classmethod
    def remove_margin(cls, odds: Sequence[float]) -> List[float]:
        """Margin-free probabilities in percent, in the order given."""
        implied = [cls.implied_probability(o) for o in odds]
        total = sum(implied)
        return [p / total * 100.0 for p in implied]

    @classmethod
    def _bounded(cls, adjustment: float) -> float:
        if adjustment is None or not math.isfinite(adjustment):
            raise ValueError(f"Adjustment must be a finite number, got {adjustment!r}")
        return max(-cls.MAX_ADJUSTMENT, min(cls.MAX_ADJUSTMENT, adjustment))

    @classmethod
    def three_way(
        cls,
        home_odds: float,
        away_odds: float,
        draw_odds: Optional[float] = None,
        adjustment: float = 0.0,
    ) -> ThreeWayProbabilities:
        """
        Fair home/draw/away probabilities nudged by `adjustment` in [-0.5, 0.5].

        Positive adjustment favours home. The away side absorbs 70% of the
        shift and the draw 30%. A missing draw price defaults the draw to
        25% and takes half of that from each side.
        """
        shift = cls._bounded(adjustment) * cls.THREE_WAY_SCALE

        if draw_odds:
            home, draw, away = cls.remove_margin([home_odds, draw_odds, away_odds])
        else:
            home, away = cls.remove_margin([home_odds, away_odds])
            draw = cls.DEFAULT_DRAW
            home -= cls.DEFAULT_DRAW / 2
            away -= cls.DEFAULT_DRAW / 2

        home += shift
        draw -= shift * cls.DRAW_SHARE
        away -= shift * cls.AWAY_SHARE

        return ProbabilityNormalizer.normalize_three_way(
            ThreeWayProbabilities(home=home, draw=draw, away=away)
        )

    @classmethod
    def two_way(cls, option1_odds: float, option2_odds: float, adjustment: float = 0.0) -> TwoWayProbabilities:
        """Fair probabilities for a two-outcome market; positive adjustment favours option 1."""
        shift = cls._bounded(adjustment) * cls.TWO_WAY_SCALE
        option1, option2 = cls.remove_margin([option1_odds, option2_odds])
        return ProbabilityNormalizer.normalize_two_way(
            TwoWayProbabilities(option1=option1 + shift, option2=option2 - shift)
        )
