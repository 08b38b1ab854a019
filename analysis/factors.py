"""Reduce weighted factor observations to a single true-probability estimate."""
import logging
import math
from collections import OrderedDict
from typing import Iterable, Optional

from config.settings import (
    BASE_PROBABILITY, TRUE_PROBABILITY_FLOOR, TRUE_PROBABILITY_CAP,
    FACTOR_WEIGHT_CAPACITY,
)
from core.models import FactorObservation, OddsQuote, ProbabilityEstimate

logger = logging.getLogger(__name__)


class FactorSynthesizer:
    """Weighted-sum factor model with a conservative cap."""

    def __init__(
        self,
        base_probability: float = BASE_PROBABILITY,
        floor: float = TRUE_PROBABILITY_FLOOR,
        cap: float = TRUE_PROBABILITY_CAP,
        weight_capacity: float = FACTOR_WEIGHT_CAPACITY,
    ):
        if not floor <= cap:
            raise ValueError("floor must not exceed cap")
        self.base_probability = base_probability
        self.floor = floor
        self.cap = cap
        self.weight_capacity = weight_capacity

    def synthesize(
        self,
        observations: Iterable[FactorObservation],
        quote: Optional[OddsQuote] = None,
    ) -> ProbabilityEstimate:
        """
        Sum impact x weight / capacity across every observation, add it (in
        percentage points) to the base probability and clamp to [floor, cap].

        Categories with no observation contribute nothing. Observations with
        non-finite weight or impact are skipped.
        """
        contributions = OrderedDict()
        count = 0
        for obs in observations:
            if not (math.isfinite(obs.weight) and math.isfinite(obs.impact)):
                logger.warning(f"Skipping non-finite factor {obs.category} from {obs.source or 'unknown'}")
                continue
            value = obs.impact * obs.weight / self.weight_capacity
            contributions[obs.category] = contributions.get(obs.category, 0.0) + value
            count += 1

        total_impact = sum(contributions.values())
        raw = self.base_probability + total_impact / 100.0
        capped = max(self.floor, min(self.cap, raw))

        market_implied = self.market_implied_probability(quote) if quote else 0.0

        logger.debug(
            f"Total impact from {len(contributions)} categories ({count} factors): "
            f"{total_impact:.2f} -> raw {raw:.3f}, capped {capped:.3f}"
        )
        if raw != capped:
            logger.info(f"True probability {raw:.3f} capped to {capped:.3f}")

        return ProbabilityEstimate(
            raw=raw,
            capped=capped,
            market_implied=market_implied,
            total_impact=total_impact,
            factor_count=count,
            contributions=dict(contributions),
        )

    @staticmethod
    def market_implied_probability(quote: OddsQuote) -> float:
        """Implied probability (0-1) of the primary market's raw price."""
        odds = quote.reference_odds()
        return 1.0 / odds if odds > 1.0 else 0.0
