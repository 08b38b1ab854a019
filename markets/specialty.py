"""
Corners and cards expectations from team-level per-game averages.

Over/under probabilities use a normal approximation to a Poisson count,
pushed through a logistic curve instead of the normal CDF:

    P(over) = sigmoid((expected - line) / sqrt(expected))

This is fast and smooth but loose for small expectations: below about two
events per match the Poisson distribution is strongly skewed and the
approximation overstates the over side near low lines.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from core.models import TeamStats

logger = logging.getLogger(__name__)

# Defaults used when a team has no figure on record
DEFAULT_CORNERS_PER_GAME = 5.5
DEFAULT_POSSESSION = 50.0
DEFAULT_YELLOW_CARDS = 2.0
DEFAULT_RED_CARDS = 0.1

HOME_CORNER_ADVANTAGE = 0.5
LEAGUE_AVERAGE_FOULS = 12.5
AGGRESSIVENESS_RANGE = (0.7, 1.3)
STRICT_REFEREE_FACTOR = 1.2

CORNER_LINES = (8.5, 9.5, 10.5, 11.5, 12.5)
HOME_TEAM_CORNER_LINE = 5.5
AWAY_TEAM_CORNER_LINE = 4.5
CARD_LINES = (2.5, 3.5)
BOOKING_POINTS_LINE = 30.5
LOW_EXPECTATION = 2.0


@dataclass(frozen=True)
class CornersExpectation:
    home: float
    away: float
    total: float
    line: float
    over_probability: float  # percent
    data_quality: float  # percent of inputs on record

    @property
    def under_probability(self) -> float:
        return 100.0 - self.over_probability


@dataclass(frozen=True)
class CardsExpectation:
    home_yellow: float
    away_yellow: float
    total_yellow: float
    home_red: float
    away_red: float
    total_bookings: float  # yellow = 1, red = 2
    data_quality: float


def sigmoid(x: float) -> float:
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def over_probability(expected: float, line: float) -> float:
    """P(count > line) in percent for a Poisson-like count with mean `expected`."""
    if expected <= 0:
        return 0.0
    if expected < LOW_EXPECTATION:
        logger.debug(f"Over/under approximation is loose at expected={expected:.2f}")
    return sigmoid((expected - line) / math.sqrt(expected)) * 100.0


def nearest_line(expected: float, lines: Sequence[float] = CORNER_LINES) -> float:
    """Closest standard line; the lower line wins a tie."""
    return min(lines, key=lambda line: abs(expected - line))


def data_quality(available: Sequence[bool]) -> float:
    """Share of inputs on record, with a bonus once three or more are present."""
    if not available:
        return 0.0
    present = sum(1 for a in available if a)
    bonus = 10.0 if present >= 3 else 0.0
    return min(100.0, present / len(available) * 100.0 + bonus)


def _or_default(value: Optional[float], default: float) -> float:
    return default if value is None else value


class SpecialtyMarketsCalculator:
    """Expected corners and cards for a fixture."""

    def corners(self, home: Optional[TeamStats], away: Optional[TeamStats]) -> CornersExpectation:
        home = home or TeamStats(team="home")
        away = away or TeamStats(team="away")

        home_possession = _or_default(home.possession, DEFAULT_POSSESSION) / DEFAULT_POSSESSION
        away_possession = _or_default(away.possession, DEFAULT_POSSESSION) / DEFAULT_POSSESSION

        home_corners = _or_default(home.corners_for, DEFAULT_CORNERS_PER_GAME) * home_possession + HOME_CORNER_ADVANTAGE
        away_corners = _or_default(away.corners_for, DEFAULT_CORNERS_PER_GAME) * away_possession
        total = home_corners + away_corners
        line = nearest_line(total)

        return CornersExpectation(
            home=home_corners,
            away=away_corners,
            total=total,
            line=line,
            over_probability=over_probability(total, line),
            data_quality=data_quality([
                home.corners_for is not None,
                away.corners_for is not None,
                home.possession is not None,
            ]),
        )

    @staticmethod
    def aggressiveness(stats: TeamStats) -> float:
        """Card multiplier from fouls per game relative to the league average."""
        if not stats.fouls:
            return 1.0
        value = 0.8 + (stats.fouls - LEAGUE_AVERAGE_FOULS) / LEAGUE_AVERAGE_FOULS * 0.4
        low, high = AGGRESSIVENESS_RANGE
        return max(low, min(high, value))

    def cards(
        self,
        home: Optional[TeamStats],
        away: Optional[TeamStats],
        referee_strict: bool = False,
    ) -> CardsExpectation:
        home = home or TeamStats(team="home")
        away = away or TeamStats(team="away")

        referee = STRICT_REFEREE_FACTOR if referee_strict else 1.0
        home_factor = self.aggressiveness(home) * referee
        away_factor = self.aggressiveness(away) * referee

        home_yellow = _or_default(home.yellow_cards, DEFAULT_YELLOW_CARDS) * home_factor
        away_yellow = _or_default(away.yellow_cards, DEFAULT_YELLOW_CARDS) * away_factor
        home_red = _or_default(home.red_cards, DEFAULT_RED_CARDS) * home_factor
        away_red = _or_default(away.red_cards, DEFAULT_RED_CARDS) * away_factor

        total_yellow = home_yellow + away_yellow
        total_red = home_red + away_red

        return CardsExpectation(
            home_yellow=home_yellow,
            away_yellow=away_yellow,
            total_yellow=total_yellow,
            home_red=home_red,
            away_red=away_red,
            total_bookings=total_yellow + total_red * 2,
            data_quality=data_quality([
                home.yellow_cards is not None,
                away.yellow_cards is not None,
                home.fouls is not None,
            ]),
        )
