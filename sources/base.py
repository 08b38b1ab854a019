"""Interfaces for the external collaborators the pipeline depends on."""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from core.errors import CollaboratorUnavailable
from core.models import FactorObservation, OddsQuote, TeamStats

logger = logging.getLogger(__name__)


class OddsSource(ABC):
    """Supplies bookmaker quotes for a sport. Must be safe to call repeatedly."""

    name = "odds"

    @abstractmethod
    async def get_odds(self, sport: str) -> List[OddsQuote]:
        ...


class SignalSource(ABC):
    """Supplies weighted factor observations for one fixture; may return an empty list."""

    name = "signals"

    @abstractmethod
    async def get_signals(self, quote: OddsQuote) -> List[FactorObservation]:
        ...


class TeamStatsSource(ABC):
    """Per-team averages for the corners and cards markets."""

    name = "team_stats"

    @abstractmethod
    async def get_team_stats(self, team: str, sport: str, league: str) -> Optional[TeamStats]:
        ...


class FallbackOddsSource(OddsSource):
    """Try each child in order; the first non-empty result wins."""

    name = "fallback"

    def __init__(self, sources: Sequence[OddsSource]):
        if not sources:
            raise ValueError("FallbackOddsSource needs at least one source")
        self.sources = list(sources)

    async def get_odds(self, sport: str) -> List[OddsQuote]:
        failures = []
        for source in self.sources:
            try:
                quotes = await source.get_odds(sport)
            except CollaboratorUnavailable as e:
                logger.warning(f"Odds source {source.name} unavailable: {e}")
                failures.append(source.name)
                continue
            if quotes:
                logger.info(f"Got {len(quotes)} {sport} fixtures from {source.name}")
                return quotes
            logger.info(f"Odds source {source.name} returned no {sport} fixtures, trying next")

        if len(failures) == len(self.sources):
            raise CollaboratorUnavailable(self.name, f"all odds sources failed ({', '.join(failures)})")
        return []
