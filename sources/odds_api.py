"""
The Odds API adapter (v4, decimal odds).

- GET {base}/sports/{sport_key}/odds/?apiKey=..&regions=..&markets=h2h,spreads,totals&oddsFormat=decimal
- Uses the first bookmaker listed per event
- Home/away h2h prices are matched by team name, the draw by "Draw"
- Every call spends one unit of the injected RequestBudget
"""
import logging
from typing import Any, Dict, List, Optional

from config.settings import (
    ODDS_API_KEY, ODDS_API_BASE_URL, ODDS_API_REGIONS, ODDS_API_MAX_EVENTS,
)
from config.sports import get_sport_profile
from core.budget import RequestBudget
from core.errors import CollaboratorUnavailable
from core.http_client import HttpClient
from core.models import Fixture, MoneylineOdds, OddsQuote, SpreadOdds, TotalsOdds
from sources.base import OddsSource
from utils.datetime_utils import fixture_status, normalize_iso_datetime

logger = logging.getLogger(__name__)

SOURCE_LABEL = "The Odds API"
DEFAULT_BOOKMAKER = "Unknown Bookmaker"


def _find_market(bookmaker: dict, key: str) -> Optional[dict]:
    for market in bookmaker.get("markets") or []:
        if market.get("key") == key:
            return market
    return None


def _price(outcomes: List[dict], name: str) -> Optional[float]:
    for outcome in outcomes:
        if outcome.get("name") == name:
            try:
                price = float(outcome.get("price"))
            except (TypeError, ValueError):
                return None
            return price if price > 1.0 else None
    return None


class TheOddsApiSource(OddsSource):
    """Odds source backed by The Odds API."""

    name = "the_odds_api"

    def __init__(
        self,
        http: HttpClient,
        budget: RequestBudget,
        api_key: str = ODDS_API_KEY,
        base_url: str = ODDS_API_BASE_URL,
        regions: str = ODDS_API_REGIONS,
        max_events: int = ODDS_API_MAX_EVENTS,
    ):
        self.http = http
        self.budget = budget
        self.api_key = api_key
        self.base_url = base_url
        self.regions = regions
        self.max_events = max_events

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def get_odds(self, sport: str) -> List[OddsQuote]:
        if not self.enabled:
            raise CollaboratorUnavailable(self.name, "ODDS_API_KEY not configured")

        profile = get_sport_profile(sport)
        self.budget.consume()
        logger.info(f"[OddsAPI] Fetching {profile.odds_api_key} ({self.budget.used}/{self.budget.limit} used)")

        url = f"{self.base_url}/sports/{profile.odds_api_key}/odds/"
        params = {
            "apiKey": self.api_key,
            "regions": self.regions,
            "markets": "h2h,spreads,totals",
            "oddsFormat": "decimal",
        }
        data = await self.http.get(url, params=params)
        if data is None:
            raise CollaboratorUnavailable(self.name, f"no response for {profile.odds_api_key}")
        if not isinstance(data, list):
            raise CollaboratorUnavailable(self.name, f"unexpected payload: {str(data)[:200]}")

        quotes = []
        for event in data[: self.max_events]:
            try:
                quote = self.parse_event(event, sport, profile.default_league)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"[OddsAPI] Skipping malformed event {event.get('id', '?')}: {e}")
                continue
            if quote:
                quotes.append(quote)

        logger.info(f"[OddsAPI] Parsed {len(quotes)} of {len(data)} events")
        return quotes

    def parse_event(self, event: Dict[str, Any], sport: str, default_league: str) -> Optional[OddsQuote]:
        """Parse one event; returns None when it carries no usable bookmaker."""
        home = event["home_team"]
        away = event["away_team"]
        kickoff = normalize_iso_datetime(event["commence_time"])

        bookmakers = event.get("bookmakers") or []
        if not bookmakers:
            return None
        bookmaker = bookmakers[0]

        moneyline = None
        h2h = _find_market(bookmaker, "h2h")
        if h2h:
            outcomes = h2h.get("outcomes") or []
            home_price = _price(outcomes, home)
            away_price = _price(outcomes, away)
            if home_price and away_price:
                moneyline = MoneylineOdds(home=home_price, away=away_price, draw=_price(outcomes, "Draw"))

        spread = None
        spreads = _find_market(bookmaker, "spreads")
        if spreads:
            outcomes = spreads.get("outcomes") or []
            spread_price = _price(outcomes, home)
            point = next((o.get("point") for o in outcomes if o.get("name") == home), None)
            if spread_price and point is not None:
                spread = SpreadOdds(line=float(point), odds=spread_price)

        totals = None
        totals_market = _find_market(bookmaker, "totals")
        if totals_market:
            outcomes = totals_market.get("outcomes") or []
            over = _price(outcomes, "Over")
            under = _price(outcomes, "Under")
            line = next((o.get("point") for o in outcomes if o.get("point") is not None), None)
            if over and under and line is not None:
                totals = TotalsOdds(line=float(line), over=over, under=under)

        if not (moneyline or spread or totals):
            return None

        fixture = Fixture(
            fixture_id=str(event.get("id") or f"{home}-{away}-{kickoff}"),
            sport=sport,
            league=event.get("sport_title") or default_league,
            home=home,
            away=away,
            kickoff_utc=kickoff,
            status=fixture_status(kickoff),
        )
        return OddsQuote(
            fixture=fixture,
            bookmaker=bookmaker.get("title") or DEFAULT_BOOKMAKER,
            moneyline=moneyline,
            spread=spread,
            totals=totals,
            sources=[SOURCE_LABEL],
        )
