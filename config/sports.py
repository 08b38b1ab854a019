"""Per-sport market profiles."""
from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class SportProfile:
    """Which markets a sport supports and how it maps onto the odds feed."""
    name: str
    odds_api_key: str
    has_draw: bool
    goal_markets: bool = False
    specialty_markets: bool = False
    default_league: str = "Unknown League"
    key_risks: List[str] = field(default_factory=list)


SPORT_PROFILES = {
    "Football": SportProfile(
        name="Football",
        odds_api_key="soccer_epl",
        has_draw=True,
        goal_markets=True,
        specialty_markets=True,
        default_league="Premier League",
        key_risks=["Early red card", "Goalkeeper injury", "Extreme weather shift"],
    ),
    "Basketball": SportProfile(
        name="Basketball",
        odds_api_key="basketball_nba",
        has_draw=False,
        default_league="NBA",
        key_risks=["Late scratch of a starter", "Back-to-back rest decision", "Foul trouble for key players"],
    ),
    "Hockey": SportProfile(
        name="Hockey",
        odds_api_key="icehockey_nhl",
        has_draw=False,
        default_league="NHL",
        key_risks=["Goaltender change", "Power-play variance", "Overtime coin-flip"],
    ),
    "Tennis": SportProfile(
        name="Tennis",
        odds_api_key="tennis_atp",
        has_draw=False,
        default_league="ATP",
        key_risks=["Mid-match retirement", "Surface adaptation", "Weather delay"],
    ),
}


def get_sport_profile(sport: str) -> SportProfile:
    """Get the profile for a sport; raises ValueError for unknown sports."""
    profile = SPORT_PROFILES.get(sport)
    if profile is None:
        raise ValueError(f"Unsupported sport: {sport}")
    return profile


def supported_sports() -> List[str]:
    return list(SPORT_PROFILES.keys())
