"""League metadata for all supported competitions."""
import re
from difflib import SequenceMatcher
from typing import Dict, Optional

from core.models import LeagueMetadata
from utils.team_names import strip_accents

LEAGUE_CONFIG = {
    # England
    "Premier League": {
        "display_name": "English Premier League",
        "country": "England",
        "region": "Europe",
        "tier": "1st Division",
        "type": "League",
        "sport": "Football",
        "popularity": "High",
    },
    "EFL Championship": {
        "display_name": "English Championship",
        "country": "England",
        "region": "Europe",
        "tier": "2nd Division",
        "type": "League",
        "sport": "Football",
        "popularity": "Medium",
    },
    "FA Cup": {
        "display_name": "FA Cup",
        "country": "England",
        "region": "Europe",
        "tier": "Cup",
        "type": "Cup",
        "sport": "Football",
        "popularity": "High",
    },

    # Spain
    "La Liga": {
        "display_name": "Spanish La Liga",
        "country": "Spain",
        "region": "Europe",
        "tier": "1st Division",
        "type": "League",
        "sport": "Football",
        "popularity": "High",
    },

    # Germany
    "Bundesliga": {
        "display_name": "German Bundesliga",
        "country": "Germany",
        "region": "Europe",
        "tier": "1st Division",
        "type": "League",
        "sport": "Football",
        "popularity": "High",
    },
    "2. Bundesliga": {
        "display_name": "Bundesliga 2",
        "country": "Germany",
        "region": "Europe",
        "tier": "2nd Division",
        "type": "League",
        "sport": "Football",
        "popularity": "Medium",
    },

    # Italy
    "Serie A": {
        "display_name": "Italian Serie A",
        "country": "Italy",
        "region": "Europe",
        "tier": "1st Division",
        "type": "League",
        "sport": "Football",
        "popularity": "High",
    },

    # France
    "Ligue 1": {
        "display_name": "French Ligue 1",
        "country": "France",
        "region": "Europe",
        "tier": "1st Division",
        "type": "League",
        "sport": "Football",
        "popularity": "High",
    },

    # Netherlands
    "Eredivisie": {
        "display_name": "Dutch Eredivisie",
        "country": "Netherlands",
        "region": "Europe",
        "tier": "1st Division",
        "type": "League",
        "sport": "Football",
        "popularity": "Medium",
    },

    # Portugal
    "Primeira Liga": {
        "display_name": "Portuguese Primeira Liga",
        "country": "Portugal",
        "region": "Europe",
        "tier": "1st Division",
        "type": "League",
        "sport": "Football",
        "popularity": "Medium",
    },

    # International
    "UEFA Champions League": {
        "display_name": "Champions League",
        "country": "International",
        "region": "Europe",
        "tier": "International",
        "type": "Tournament",
        "sport": "Football",
        "popularity": "High",
    },
    "UEFA Europa League": {
        "display_name": "Europa League",
        "country": "International",
        "region": "Europe",
        "tier": "International",
        "type": "Tournament",
        "sport": "Football",
        "popularity": "High",
    },
    "MLS": {
        "display_name": "Major League Soccer",
        "country": "USA",
        "region": "North America",
        "tier": "1st Division",
        "type": "League",
        "sport": "Football",
        "popularity": "Medium",
    },

    # Basketball
    "NBA": {
        "display_name": "National Basketball Association",
        "country": "USA",
        "region": "North America",
        "tier": "1st Division",
        "type": "League",
        "sport": "Basketball",
        "popularity": "High",
    },
    "EuroLeague": {
        "display_name": "Turkish Airlines EuroLeague",
        "country": "International",
        "region": "Europe",
        "tier": "International",
        "type": "Tournament",
        "sport": "Basketball",
        "popularity": "Medium",
    },

    # Hockey
    "NHL": {
        "display_name": "National Hockey League",
        "country": "USA",
        "region": "North America",
        "tier": "1st Division",
        "type": "League",
        "sport": "Hockey",
        "popularity": "High",
    },

    # Tennis
    "ATP": {
        "display_name": "ATP Tour",
        "country": "International",
        "region": "International",
        "tier": "International",
        "type": "Tournament",
        "sport": "Tennis",
        "popularity": "High",
    },
    "WTA": {
        "display_name": "WTA Tour",
        "country": "International",
        "region": "International",
        "tier": "International",
        "type": "Tournament",
        "sport": "Tennis",
        "popularity": "Medium",
    },
}

# Feed titles that differ from the canonical names above
LEAGUE_ALIASES = {
    "epl": "Premier League",
    "english premier league": "Premier League",
    "championship": "EFL Championship",
    "laliga": "La Liga",
    "la liga santander": "La Liga",
    "bundesliga germany": "Bundesliga",
    "bundesliga 2": "2. Bundesliga",
    "serie a italy": "Serie A",
    "ligue 1 france": "Ligue 1",
    "ligue 1 uber eats": "Ligue 1",
    "dutch eredivisie": "Eredivisie",
    "champions league": "UEFA Champions League",
    "ucl": "UEFA Champions League",
    "europa league": "UEFA Europa League",
    "major league soccer": "MLS",
    "atp tour": "ATP",
    "wta tour": "WTA",
}

LEAGUE_SIMILARITY_THRESHOLD = 0.85


def normalize_league_name(name: str) -> str:
    """Lowercase, strip accents and punctuation for consistent lookups."""
    if not name:
        return ""
    normalized = strip_accents(name.lower().strip())
    normalized = re.sub(r"[.\-–—/'|]", " ", normalized)
    normalized = re.sub(r"\s+", " ", normalized).strip()
    return normalized


_NORMALIZED_INDEX: Dict[str, str] = {normalize_league_name(k): k for k in LEAGUE_CONFIG}
_NORMALIZED_INDEX.update({normalize_league_name(k): v for k, v in LEAGUE_ALIASES.items()})


def _build(name: str, config: dict) -> LeagueMetadata:
    return LeagueMetadata(name=name, **config)


def default_league_metadata(name: str, sport: str = "Unknown") -> LeagueMetadata:
    return LeagueMetadata(
        name=name or "Unknown League",
        display_name=name or "Unknown League",
        country="Unknown",
        region="Unknown",
        tier="Unknown",
        type="League",
        sport=sport,
        popularity="Low",
    )


def resolve_league_name(name: str) -> Optional[str]:
    """Map a feed league title onto a canonical LEAGUE_CONFIG key."""
    normalized = normalize_league_name(name)
    if not normalized:
        return None
    if normalized in _NORMALIZED_INDEX:
        return _NORMALIZED_INDEX[normalized]

    best_key, best_score = None, 0.0
    for candidate, key in _NORMALIZED_INDEX.items():
        score = SequenceMatcher(None, normalized, candidate).ratio()
        if score > best_score:
            best_key, best_score = key, score
    if best_score >= LEAGUE_SIMILARITY_THRESHOLD:
        return best_key
    return None


def lookup_league(name: str, sport: str = "Unknown") -> LeagueMetadata:
    """Get metadata for a league; unknown leagues get a default record."""
    key = resolve_league_name(name)
    if key is None:
        return default_league_metadata(name, sport)
    return _build(key, LEAGUE_CONFIG[key])
