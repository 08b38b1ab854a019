"""Risk assessment block attached to each prediction."""
from typing import List, Sequence

from config.sports import SportProfile
from core.models import FactorObservation, MarketQuote, RiskAssessment

VAR_MULTIPLIER = 0.95
CVAR_MULTIPLIER = 1.2
MAX_LISTED_FAILURES = 3

GENERIC_FAILURES = [
    "Unexpected tactical adjustment",
    "Key player early injury",
    "Referee bias",
]


class RiskAssessor:
    """VaR/CVaR in stake units plus qualitative risk lists."""

    @staticmethod
    def assess(
        primary: MarketQuote,
        profile: SportProfile,
        observations: Sequence[FactorObservation] = (),
    ) -> RiskAssessment:
        units = primary.stake.units
        return RiskAssessment(
            var=round(units * VAR_MULTIPLIER, 2),
            cvar=round(units * CVAR_MULTIPLIER, 2),
            sensitivity_analysis=RiskAssessor.sensitivity(primary),
            key_risks=list(profile.key_risks),
            potential_failures=RiskAssessor.potential_failures(observations),
        )

    @staticmethod
    def sensitivity(primary: MarketQuote) -> str:
        if primary.edge <= 0:
            return "No positive edge at the quoted price; any adverse odds movement removes the position"
        # Price at which the edge disappears
        break_even = 100.0 / primary.calculated_probability.value
        drift = primary.odds - break_even
        level = "Low" if drift > 0.3 else "Medium" if drift > 0.1 else "High"
        return (
            f"{level} sensitivity to odds changes: edge holds down to {break_even:.2f} "
            f"({drift:.2f} below the quoted {primary.odds:.2f})"
        )

    @staticmethod
    def potential_failures(observations: Sequence[FactorObservation]) -> List[str]:
        """Descriptions of the factors pulling hardest against the pick, or a generic list."""
        negative = sorted(
            (o for o in observations if o.contribution < 0),
            key=lambda o: o.contribution,
        )
        failures = [o.description or f"Adverse {o.category} signal" for o in negative[:MAX_LISTED_FAILURES]]
        return failures or list(GENERIC_FAILURES)
