"""Signal aggregator: turn both teams' recent form into weighted factor observations."""
import asyncio
import logging
from datetime import date
from typing import List, Optional

from config.settings import FACTOR_WEIGHTS
from core.errors import CollaboratorUnavailable
from core.models import FactorObservation, OddsQuote, TeamForm
from sources.base import SignalSource
from sources.sportsdb import SOURCE_LABEL, TheSportsDbClient
from utils.datetime_utils import parse_datetime

logger = logging.getLogger(__name__)

MAX_IMPACT = 10.0
HOME_ADVANTAGE_IMPACT = 3.0


def _clamp(value: float, limit: float = MAX_IMPACT) -> float:
    return max(-limit, min(limit, value))


def _current_streak(results: str) -> int:
    """Leading consecutive wins (positive) or losses (negative); newest result first."""
    if not results or results[0] == "D":
        return 0
    first = results[0]
    length = len(results) - len(results.lstrip(first))
    return length if first == "W" else -length


def _goal_difference_per_game(form: TeamForm) -> float:
    return (form.goals_for - form.goals_against) / form.games if form.games else 0.0


def _rest_days(form: TeamForm, kickoff: date) -> Optional[int]:
    if not form.last_match_date:
        return None
    try:
        return (kickoff - date.fromisoformat(form.last_match_date)).days
    except ValueError:
        return None


class FormSignalAggregator(SignalSource):
    """
    Derives form, tactical, situational, psychological, venue, fatigue and
    betting-market observations. Impacts are signed from the home side's
    point of view. A category whose inputs are missing yields nothing.
    """

    name = "form_signals"

    def __init__(self, client: TheSportsDbClient):
        self.client = client

    async def get_signals(self, quote: OddsQuote) -> List[FactorObservation]:
        fixture = quote.fixture
        home_result, away_result = await asyncio.gather(
            self.client.get_team_form(fixture.home, fixture.sport),
            self.client.get_team_form(fixture.away, fixture.sport),
            return_exceptions=True,
        )

        forms = []
        for team, result in ((fixture.home, home_result), (fixture.away, away_result)):
            if isinstance(result, CollaboratorUnavailable):
                logger.warning(f"[Signals] Form unavailable for {team}: {result}")
                forms.append(None)
            elif isinstance(result, BaseException):
                raise result
            else:
                forms.append(result)

        home, away = forms
        if isinstance(home_result, CollaboratorUnavailable) and isinstance(away_result, CollaboratorUnavailable):
            raise CollaboratorUnavailable(self.name, f"no form data reachable for {fixture.match}")

        observations = self.derive(quote, home, away)
        logger.info(f"[Signals] {len(observations)} observations for {fixture.match}")
        return observations

    def derive(self, quote: OddsQuote, home: Optional[TeamForm], away: Optional[TeamForm]) -> List[FactorObservation]:
        fixture = quote.fixture
        observations = [
            self._observe(
                "situational", HOME_ADVANTAGE_IMPACT, 60.0,
                f"{fixture.home} home advantage",
            )
        ]

        if home and home.home_games:
            rate = home.home_wins / home.home_games
            observations.append(self._observe(
                "venue", _clamp((rate - 0.5) * 8.0), 40.0 + 10.0 * min(home.home_games, 5),
                f"{fixture.home} won {home.home_wins} of last {home.home_games} at home",
            ))

        if not (home and away):
            return observations

        confidence = min(90.0, 40.0 + 10.0 * min(home.games, away.games))

        ppg_gap = home.points_per_game - away.points_per_game
        observations.append(self._observe(
            "form", _clamp(ppg_gap * 3.0), confidence,
            f"Form {home.results} vs {away.results} ({home.points_per_game:.2f} vs {away.points_per_game:.2f} pts/game)",
        ))

        gd_gap = _goal_difference_per_game(home) - _goal_difference_per_game(away)
        observations.append(self._observe(
            "tactical", _clamp(gd_gap * 2.5), confidence,
            f"Goal difference per game {_goal_difference_per_game(home):+.2f} vs {_goal_difference_per_game(away):+.2f}",
        ))

        streak_gap = _current_streak(home.results) - _current_streak(away.results)
        if streak_gap:
            observations.append(self._observe(
                "psychological", _clamp(streak_gap * 1.5, 6.0), confidence,
                f"Current streaks {_current_streak(home.results):+d} vs {_current_streak(away.results):+d}",
            ))

        kickoff = parse_datetime(fixture.kickoff_utc).date()
        home_rest, away_rest = _rest_days(home, kickoff), _rest_days(away, kickoff)
        if home_rest is not None and away_rest is not None:
            observations.append(self._observe(
                "fatigue", _clamp((min(home_rest, 7) - min(away_rest, 7)) * 0.75, 5.0), confidence,
                f"Rest days {home_rest} vs {away_rest}",
            ))

        ml = quote.moneyline
        total_ppg = home.points_per_game + away.points_per_game
        if ml and total_ppg > 0:
            form_share = home.points_per_game / total_ppg
            market_share = (1.0 / ml.home) / (1.0 / ml.home + 1.0 / ml.away)
            observations.append(self._observe(
                "betting", _clamp((form_share - market_share) * 20.0, 8.0), confidence,
                f"Form share {form_share:.0%} vs market share {market_share:.0%} for {fixture.home}",
            ))

        return observations

    @staticmethod
    def _observe(category: str, impact: float, confidence: float, description: str) -> FactorObservation:
        return FactorObservation(
            category=category,
            weight=FACTOR_WEIGHTS[category],
            impact=round(impact, 2),
            confidence=confidence,
            source=SOURCE_LABEL,
            description=description,
        )
