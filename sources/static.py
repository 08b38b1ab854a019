"""In-memory and JSON-file sources for offline runs and as the last fallback."""
import json
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, Sequence

from core.errors import CollaboratorUnavailable
from core.models import Fixture, MoneylineOdds, OddsQuote, SpreadOdds, TeamStats, TotalsOdds
from sources.base import OddsSource, TeamStatsSource
from utils.datetime_utils import fixture_status, normalize_iso_datetime, utc_now
from utils.team_names import normalize_team_name

logger = logging.getLogger(__name__)

SAMPLE_SOURCE = "Sample Data"
SAMPLE_BOOKMAKER = "SportyBet"

# Kickoffs are placed this many hours from now when the sample is served
SAMPLE_ODDS: Dict[str, List[Dict[str, Any]]] = {
    "Football": [
        {
            "id": "sample-football-1", "league": "Premier League",
            "home": "Manchester City", "away": "Liverpool", "hours_from_now": 6,
            "moneyline": {"home": 1.75, "away": 4.2, "draw": 3.6},
            "spread": {"line": -1.5, "odds": 2.15},
            "totals": {"line": 2.5, "over": 1.85, "under": 2.05},
        },
        {
            "id": "sample-football-2", "league": "La Liga",
            "home": "Real Sociedad", "away": "Sevilla", "hours_from_now": 26,
            "moneyline": {"home": 2.05, "away": 3.7, "draw": 3.3},
            "totals": {"line": 2.5, "over": 2.1, "under": 1.75},
        },
    ],
    "Basketball": [
        {
            "id": "sample-basketball-1", "league": "NBA",
            "home": "Lakers", "away": "Warriors", "hours_from_now": 4,
            "moneyline": {"home": 1.65, "away": 2.3},
            "spread": {"line": -3.5, "odds": 1.9},
            "totals": {"line": 225.5, "over": 1.9, "under": 1.9},
        },
    ],
    "Hockey": [
        {
            "id": "sample-hockey-1", "league": "NHL",
            "home": "Maple Leafs", "away": "Bruins", "hours_from_now": 5,
            "moneyline": {"home": 2.1, "away": 1.75},
            "spread": {"line": -1.5, "odds": 2.5},
            "totals": {"line": 6.5, "over": 1.9, "under": 1.9},
        },
    ],
    "Tennis": [
        {
            "id": "sample-tennis-1", "league": "ATP",
            "home": "Djokovic", "away": "Alcaraz", "hours_from_now": 3,
            "moneyline": {"home": 1.6, "away": 2.4},
        },
    ],
}


def quote_from_dict(data: Dict[str, Any], sport: str, default_sources: Sequence[str] = (SAMPLE_SOURCE,)) -> OddsQuote:
    """
    Build an OddsQuote from a plain dict.

    Kickoff comes from "kickoff" (ISO) or "hours_from_now"; markets are
    optional. Raises KeyError/ValueError on malformed input.
    """
    if data.get("kickoff"):
        kickoff = normalize_iso_datetime(data["kickoff"])
    else:
        when = utc_now() + timedelta(hours=float(data.get("hours_from_now", 0)))
        kickoff = when.replace(microsecond=0).isoformat().replace("+00:00", "Z")

    ml = data.get("moneyline")
    spread = data.get("spread")
    totals = data.get("totals")
    if spread and not float(spread["odds"]) > 1.0:
        logger.warning(f"Dropping spread for {data.get('id')}: decimal odds {spread['odds']!r} must exceed 1.0")
        spread = None

    fixture = Fixture(
        fixture_id=str(data["id"]),
        sport=data.get("sport", sport),
        league=data.get("league", "Unknown League"),
        home=data["home"],
        away=data["away"],
        kickoff_utc=kickoff,
        status=fixture_status(kickoff),
    )
    return OddsQuote(
        fixture=fixture,
        bookmaker=data.get("bookmaker", SAMPLE_BOOKMAKER),
        moneyline=MoneylineOdds(home=float(ml["home"]), away=float(ml["away"]),
                                draw=float(ml["draw"]) if ml.get("draw") else None) if ml else None,
        spread=SpreadOdds(line=float(spread["line"]), odds=float(spread["odds"])) if spread else None,
        totals=TotalsOdds(line=float(totals["line"]), over=float(totals["over"]),
                          under=float(totals["under"])) if totals else None,
        sources=list(data.get("sources") or default_sources),
    )


def _load_json(path: str, source: str) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise CollaboratorUnavailable(source, f"cannot read {path}: {e}") from e


class StaticOddsSource(OddsSource):
    """
    Serves quotes from a {sport: [event dict, ...]} mapping or a JSON file
    with the same shape. Defaults to the built-in sample slate.
    """

    name = "static"

    def __init__(self, events: Optional[Dict[str, List[Dict[str, Any]]]] = None, path: Optional[str] = None):
        self.events = events
        self.path = path

    def _events(self) -> Dict[str, List[Dict[str, Any]]]:
        if self.events is not None:
            return self.events
        if self.path:
            return _load_json(self.path, self.name)
        return SAMPLE_ODDS

    async def get_odds(self, sport: str) -> List[OddsQuote]:
        quotes = []
        for event in self._events().get(sport, []):
            try:
                quotes.append(quote_from_dict(event, sport))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"[Static] Skipping malformed event {event.get('id', '?')}: {e}")
        logger.info(f"[Static] Serving {len(quotes)} {sport} fixtures")
        return quotes


class StaticTeamStatsSource(TeamStatsSource):
    """Team averages keyed by normalized team name, from memory or a JSON file."""

    name = "static_team_stats"

    def __init__(self, stats: Optional[Dict[str, Dict[str, float]]] = None, path: Optional[str] = None):
        raw = stats if stats is not None else (_load_json(path, self.name) if path else {})
        self.stats = {normalize_team_name(team): values for team, values in raw.items()}

    async def get_team_stats(self, team: str, sport: str, league: str) -> Optional[TeamStats]:
        values = self.stats.get(normalize_team_name(team))
        if not values:
            return None
        return TeamStats(
            team=team,
            corners_for=values.get("corners_for"),
            corners_against=values.get("corners_against"),
            yellow_cards=values.get("yellow_cards"),
            red_cards=values.get("red_cards"),
            fouls=values.get("fouls"),
            possession=values.get("possession"),
        )
