"""
TheSportsDB client (free v1 JSON API, key "3").

- GET /searchteams.php?t={team}   -> {"teams": [{"idTeam", "strTeam", "strSport", ...}]}
- GET /eventslast.php?id={idTeam} -> {"results": [{"strHomeTeam", "intHomeScore", "dateEvent", ...}]}
"""
import logging
from typing import Dict, List, Optional

from config.settings import SPORTSDB_BASE_URL, SPORTSDB_FORM_GAMES
from core.errors import CollaboratorUnavailable
from core.http_client import HttpClient
from core.models import TeamForm
from utils.team_names import best_team_match

logger = logging.getLogger(__name__)

SOURCE_LABEL = "TheSportsDB"

# TheSportsDB's strSport values
SPORT_NAMES = {
    "Football": "Soccer",
    "Basketball": "Basketball",
    "Hockey": "Ice Hockey",
    "Tennis": "Tennis",
}


def _score(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class TheSportsDbClient:
    """
    Looks up a team and summarizes its most recent results.

    `team_ids` memoizes team searches for the client's lifetime and is the
    one piece of state shared by concurrent fixture deep-dives. Writes are
    idempotent (the same key always maps to the same search result) and
    happen between awaits on one event loop, so a race only costs a
    duplicate search. Build one client per run to keep the memo run-scoped.
    """

    name = "thesportsdb"

    def __init__(self, http: HttpClient, base_url: str = SPORTSDB_BASE_URL, games: int = SPORTSDB_FORM_GAMES):
        self.http = http
        self.base_url = base_url
        self.games = games
        self.team_ids: Dict[str, Optional[str]] = {}  # "sport:team" -> idTeam

    async def find_team_id(self, team: str, sport: str) -> Optional[str]:
        cache_key = f"{sport}:{team}"
        if cache_key in self.team_ids:
            return self.team_ids[cache_key]

        data = await self.http.get(f"{self.base_url}/searchteams.php", params={"t": team})
        if not isinstance(data, dict):
            raise CollaboratorUnavailable(self.name, f"team search failed for {team}")

        teams = [t for t in (data.get("teams") or []) if t.get("strSport") in (None, SPORT_NAMES.get(sport))]
        match = best_team_match(team, [t.get("strTeam") or "" for t in teams])
        team_id = teams[match[0]].get("idTeam") if match else None
        if team_id is None:
            logger.info(f"[TheSportsDB] No {sport} team found for '{team}'")

        self.team_ids[cache_key] = team_id
        return team_id

    async def get_team_form(self, team: str, sport: str) -> Optional[TeamForm]:
        """Recent form for `team`, or None when the team is unknown or has no finished games."""
        team_id = await self.find_team_id(team, sport)
        if not team_id:
            return None

        data = await self.http.get(f"{self.base_url}/eventslast.php", params={"id": team_id})
        if not isinstance(data, dict):
            raise CollaboratorUnavailable(self.name, f"last events unavailable for {team}")

        events = data.get("results") or []
        events = sorted(events, key=lambda e: e.get("dateEvent") or "", reverse=True)[: self.games]
        return self.summarize(team, team_id, events)

    @staticmethod
    def summarize(team: str, team_id: str, events: List[dict]) -> Optional[TeamForm]:
        """Fold events (newest first) into a TeamForm; unscored events are ignored."""
        results = []
        goals_for = goals_against = home_wins = home_games = 0
        last_date = None

        for event in events:
            home_score = _score(event.get("intHomeScore"))
            away_score = _score(event.get("intAwayScore"))
            if home_score is None or away_score is None:
                continue

            is_home = str(event.get("idHomeTeam")) == str(team_id)
            scored, conceded = (home_score, away_score) if is_home else (away_score, home_score)
            goals_for += scored
            goals_against += conceded

            if scored > conceded:
                results.append("W")
            elif scored == conceded:
                results.append("D")
            else:
                results.append("L")

            if is_home:
                home_games += 1
                if scored > conceded:
                    home_wins += 1
            last_date = last_date or event.get("dateEvent")

        if not results:
            return None
        return TeamForm(
            team=team,
            results="".join(results),
            goals_for=goals_for,
            goals_against=goals_against,
            home_wins=home_wins,
            home_games=home_games,
            last_match_date=last_date,
        )
