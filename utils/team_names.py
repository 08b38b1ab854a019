"""Team name normalization so odds feeds, stats files and TheSportsDB agree on names."""
import re
import unicodedata
from difflib import SequenceMatcher
from typing import Iterable, Optional, Tuple

TEAM_SIMILARITY_THRESHOLD = 0.85


def strip_accents(text: str) -> str:
    """Remove accents from unicode characters."""
    return "".join(c for c in unicodedata.normalize("NFD", text)
                   if unicodedata.category(c) != "Mn")


# Feed spellings -> canonical key
TEAM_ALIASES = {
    # Football
    "man city": "manchester city", "manchester city fc": "manchester city",
    "man united": "manchester united", "man utd": "manchester united",
    "spurs": "tottenham", "tottenham hotspur": "tottenham",
    "wolves": "wolverhampton", "wolverhampton wanderers": "wolverhampton",
    "brighton and hove albion": "brighton", "brighton & hove albion": "brighton",
    "nottm forest": "nottingham forest",
    "newcastle united": "newcastle", "west ham united": "west ham",
    "bayern": "bayern munich", "fc bayern munchen": "bayern munich",
    "inter milan": "inter", "internazionale": "inter",
    "paris saint germain": "psg", "paris sg": "psg",
    "atletico": "atletico madrid", "athletic club": "athletic bilbao",
    # Basketball
    "la lakers": "los angeles lakers", "lakers": "los angeles lakers",
    "gs warriors": "golden state warriors", "warriors": "golden state warriors",
    "la clippers": "los angeles clippers", "sixers": "philadelphia 76ers",
    # Hockey
    "maple leafs": "toronto maple leafs", "bruins": "boston bruins",
    "habs": "montreal canadiens", "canadiens": "montreal canadiens",
}

_PREFIX = re.compile(r"^(fc|afc|sc|ac|as|cf|ssc|rc|ud|rcd|us)\s+")
_SUFFIX = re.compile(r"\s+(fc|afc|cf|sc)$")


def normalize_team_name(name: str) -> str:
    """
    Lowercase, strip accents and punctuation, drop club prefixes/suffixes
    and resolve known aliases.
    """
    if not name:
        return ""

    normalized = strip_accents(name.lower().strip())
    normalized = re.sub(r"[.\-–—/']", " ", normalized)
    normalized = re.sub(r"\s+", " ", normalized).strip()

    if normalized in TEAM_ALIASES:
        return TEAM_ALIASES[normalized]

    stripped = _SUFFIX.sub("", _PREFIX.sub("", normalized))
    return TEAM_ALIASES.get(stripped, stripped)


def team_similarity(name1: str, name2: str) -> float:
    """Similarity between two team names after normalization (0-1)."""
    return SequenceMatcher(None, normalize_team_name(name1), normalize_team_name(name2)).ratio()


def best_team_match(
    name: str,
    candidates: Iterable[str],
    threshold: float = TEAM_SIMILARITY_THRESHOLD,
) -> Optional[Tuple[int, float]]:
    """Index and score of the closest candidate at or above `threshold`; exact matches win outright."""
    target = normalize_team_name(name)
    best: Optional[Tuple[int, float]] = None
    for idx, candidate in enumerate(candidates):
        if normalize_team_name(candidate) == target:
            return idx, 1.0
        score = team_similarity(name, candidate)
        if score >= threshold and (best is None or score > best[1]):
            best = (idx, score)
    return best
