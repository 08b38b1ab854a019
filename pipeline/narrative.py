"""Free-text explanation fields derived from a fixture's analysis."""
from collections import OrderedDict
from typing import Dict, List, Sequence

from config.settings import FACTOR_WEIGHTS
from core.models import FactorObservation, MarketQuote, Narrative, OddsQuote, ProbabilityEstimate

MAX_KEY_FEATURES = 5
NEUTRAL_CONTRIBUTION = 0.05


class NarrativeBuilder:
    """Pure text synthesis; no I/O and no failure modes for a complete analysis."""

    def build(
        self,
        quote: OddsQuote,
        estimate: ProbabilityEstimate,
        observations: Sequence[FactorObservation],
        primary: MarketQuote,
    ) -> Narrative:
        return Narrative(
            game_script=self.game_script(quote, estimate, observations),
            market_edge=self.market_edge(estimate, primary),
            failure_point=self.failure_point(quote, observations),
            key_features=self.key_features(estimate, observations),
        )

    @staticmethod
    def game_script(quote: OddsQuote, estimate: ProbabilityEstimate, observations: Sequence[FactorObservation]) -> str:
        fixture = quote.fixture
        favoured, other = (fixture.home, fixture.away) if estimate.capped >= 0.5 else (fixture.away, fixture.home)
        supporting = [o.description for o in sorted(observations, key=lambda o: -abs(o.contribution))
                      if o.description and o.contribution != 0][:2]

        script = (
            f"{favoured} project as the stronger side against {other}, "
            f"with a working probability of {estimate.capped:.0%} from {estimate.factor_count} signals."
        )
        if supporting:
            script += " Key drivers: " + "; ".join(supporting) + "."
        if not observations:
            script += " No contextual signals were available, so the estimate rests on the base rate."
        return script

    @staticmethod
    def market_edge(estimate: ProbabilityEstimate, primary: MarketQuote) -> str:
        text = (
            f"{primary.selection} is offered at {primary.odds:.2f} ({primary.implied_probability:.1f}% implied) "
            f"against a calculated {primary.calculated_probability.value:.1f}%, "
            f"an edge of {primary.edge:+.1f} points."
        )
        if estimate.raw != estimate.capped:
            text += f" The raw signal estimate of {estimate.raw:.0%} was capped at {estimate.capped:.0%}."
        return text

    @staticmethod
    def failure_point(quote: OddsQuote, observations: Sequence[FactorObservation]) -> str:
        negative = [o for o in observations if o.contribution < 0]
        if negative:
            worst = min(negative, key=lambda o: o.contribution)
            return f"The case weakens if this persists: {worst.description or worst.category}."
        return (
            f"No signal points against the pick; the main risk is in-match variance "
            f"in {quote.fixture.match} that pre-match data cannot capture."
        )

    @staticmethod
    def key_features(estimate: ProbabilityEstimate, observations: Sequence[FactorObservation]) -> List[Dict]:
        weights = OrderedDict()
        for obs in observations:
            weights[obs.category] = weights.get(obs.category, 0.0) + obs.weight

        ranked = sorted(estimate.contributions.items(), key=lambda item: -abs(item[1]))
        features = []
        for category, contribution in ranked[:MAX_KEY_FEATURES]:
            if contribution > NEUTRAL_CONTRIBUTION:
                impact = "positive"
            elif contribution < -NEUTRAL_CONTRIBUTION:
                impact = "negative"
            else:
                impact = "neutral"
            features.append({
                "feature": category.replace("_", " ").title(),
                "weight": weights.get(category, FACTOR_WEIGHTS.get(category, 0)),
                "impact": impact,
                "contribution": round(contribution, 3),
            })
        return features
