"""Expand a fixture's odds and true probability into the full market catalogue."""
import logging
from typing import List, Optional, Sequence

from analysis.probability import FairOddsConverter
from analysis.value_analyzer import ValueAnalyzer, ConfidenceScorer
from core.models import CalibratedProbability, MarketQuote
from markets.pricing import MarketContext, PricedSelection, PricingStrategy, default_strategies
from utils.logging_config import log_market_edge

logger = logging.getLogger(__name__)

# Half-width of the calibrated range around a calculated probability
CALIBRATION_HALF_WIDTH = 5.0


class MarketGenerator:
    """Run every applicable pricing strategy and attach edge, confidence and stake."""

    def __init__(self, strategies: Optional[Sequence[PricingStrategy]] = None):
        self.strategies = list(strategies) if strategies is not None else default_strategies()

    def generate(self, ctx: MarketContext, sources: Sequence[str]) -> List[MarketQuote]:
        """
        Build MarketQuotes in catalogue order.

        A strategy that rejects its inputs (e.g. decimal odds <= 1 in the
        feed) is skipped with a warning; the rest of the catalogue is still
        produced.
        """
        markets = []
        for strategy in self.strategies:
            if not strategy.applies(ctx):
                continue
            try:
                quotes = [self.build_quote(p, ctx, sources) for p in strategy.price(ctx)]
            except ValueError as e:
                logger.warning(f"Skipping {strategy.name} for {ctx.fixture.match}: {e}")
                continue
            markets.extend(quotes)

        logger.debug(f"Generated {len(markets)} markets for {ctx.fixture.match}")
        return markets

    def build_quote(self, priced: PricedSelection, ctx: MarketContext, sources: Sequence[str]) -> MarketQuote:
        fixture = ctx.fixture
        data_sources = list(sources)
        data_sources.extend(s for s in priced.sources if s not in data_sources)

        implied = FairOddsConverter.implied_probability(priced.odds)
        edge = ValueAnalyzer.calculate_edge(priced.probability, implied)
        confidence = ConfidenceScorer.score(
            edge=edge,
            probability=priced.probability,
            liquidity=priced.liquidity,
            source_count=len(data_sources),
            market_key=f"{fixture.fixture_id}:{priced.category}:{priced.selection}",
        )
        stake = ValueAnalyzer.recommended_stake(priced.probability / 100.0, priced.odds)

        quote = MarketQuote(
            category=priced.category,
            selection=priced.selection,
            odds=priced.odds,
            bookmaker=ctx.quote.bookmaker,
            liquidity=priced.liquidity,
            calculated_probability=CalibratedProbability(
                value=priced.probability,
                lower=max(0.0, priced.probability - CALIBRATION_HALF_WIDTH),
                upper=min(100.0, priced.probability + CALIBRATION_HALF_WIDTH),
            ),
            implied_probability=implied,
            edge=edge,
            confidence_score=confidence,
            stake=stake,
            data_sources=data_sources,
            line=priced.line,
        )

        log_market_edge(
            league=fixture.league,
            match=fixture.match,
            bookmaker=quote.bookmaker,
            category=quote.category,
            selection=quote.selection,
            odds=quote.odds,
            probability=priced.probability,
            implied=implied,
            edge=edge,
            stake_units=stake.units,
        )
        return quote

    @staticmethod
    def select_primary(markets: Sequence[MarketQuote]) -> Optional[MarketQuote]:
        """Highest edge wins; the first-generated market wins a tie."""
        if not markets:
            return None
        return max(markets, key=lambda m: m.edge)
