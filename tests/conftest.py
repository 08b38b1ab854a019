"""
Shared fixtures and in-test fakes for the collaborator interfaces.

Fakes implement the abstract source classes directly; HTTP adapters are
tested against StubHttp, which replays canned JSON per URL suffix.
"""
import asyncio
from typing import Dict, List, Optional

import pytest

from core.errors import CollaboratorUnavailable
from core.models import FactorObservation, OddsQuote, TeamStats
from sources.base import OddsSource, SignalSource, TeamStatsSource
from sources.static import quote_from_dict


def make_quote(fixture_id: str = "fx-1", sport: str = "Football", **overrides) -> OddsQuote:
    data = {
        "id": fixture_id,
        "league": "Premier League",
        "home": "Arsenal",
        "away": "Chelsea",
        "hours_from_now": 6,
        "moneyline": {"home": 1.90, "away": 4.00, "draw": 3.50},
        "spread": {"line": -0.5, "odds": 2.00},
        "totals": {"line": 2.5, "over": 1.90, "under": 1.95},
        "sources": ["Test Feed"],
    }
    data.update(overrides)
    return quote_from_dict(data, sport)


class FakeOddsSource(OddsSource):
    name = "fake_odds"

    def __init__(self, quotes: Optional[List[OddsQuote]] = None, error: Optional[Exception] = None):
        self.quotes = quotes or []
        self.error = error
        self.calls = 0

    async def get_odds(self, sport):
        self.calls += 1
        if self.error:
            raise self.error
        return [q for q in self.quotes if q.fixture.sport == sport]


class FakeSignalSource(SignalSource):
    """Returns canned observations; raises for fixture ids listed in `failing`."""

    name = "fake_signals"

    def __init__(
        self,
        observations: Optional[List[FactorObservation]] = None,
        failing: Dict[str, Exception] = None,
        delay: float = 0.0,
    ):
        self.observations = observations or []
        self.failing = failing or {}
        self.delay = delay
        self.seen = []

    async def get_signals(self, quote):
        self.seen.append(quote.fixture.fixture_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        error = self.failing.get(quote.fixture.fixture_id)
        if error:
            raise error
        return list(self.observations)


class FakeStatsSource(TeamStatsSource):
    name = "fake_stats"

    def __init__(self, stats: Optional[Dict[str, TeamStats]] = None, unavailable: bool = False):
        self.stats = stats or {}
        self.unavailable = unavailable

    async def get_team_stats(self, team, sport, league):
        if self.unavailable:
            raise CollaboratorUnavailable(self.name, "stats offline")
        return self.stats.get(team)


class StubHttp:
    """Stand-in for HttpClient.get: responses keyed by a URL suffix."""

    def __init__(self, responses: Dict[str, object]):
        self.responses = responses
        self.requests = []

    async def get(self, url, params=None, headers=None):
        self.requests.append((url, dict(params or {})))
        for suffix, response in self.responses.items():
            if url.endswith(suffix):
                if callable(response):
                    return response(params or {})
                return response
        return None


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def quote():
    return make_quote()


@pytest.fixture
def positive_observations():
    return [
        FactorObservation(category="tactical", weight=35, impact=8.0, confidence=70, source="Test Signals",
                          description="Home side presses high"),
        FactorObservation(category="form", weight=25, impact=6.0, confidence=70, source="Test Signals",
                          description="Four wins in five"),
        FactorObservation(category="fatigue", weight=5, impact=-4.0, confidence=60, source="Test Signals",
                          description="Away side rested two extra days"),
    ]


@pytest.fixture
def clock():
    return FakeClock()
