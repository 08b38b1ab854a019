"""Result cache: a plain key/value backend with the TTL enforced at read time."""
import logging
import time
from typing import Any, Callable, Dict, Optional

from config.settings import CACHE_TTL_SECONDS
from core.models import CacheEntry

logger = logging.getLogger(__name__)


def make_key(kind: str, sport: str, date_filter: Optional[str]) -> str:
    """e.g. best:Football:today; a missing filter is stored as "any"."""
    return f"{kind}:{sport}:{date_filter or 'any'}"


class CacheBackend:
    """Storage contract. Backends keep entries as given; they do not expire anything."""

    def get(self, key: str) -> Optional[CacheEntry]:
        raise NotImplementedError

    def put(self, key: str, entry: CacheEntry):
        raise NotImplementedError


class InMemoryCacheBackend(CacheBackend):
    def __init__(self):
        self.entries: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[CacheEntry]:
        return self.entries.get(key)

    def put(self, key: str, entry: CacheEntry):
        self.entries[key] = entry


class ResultCache:
    """
    Time-bounded memo of pipeline results.

    An entry is served while `now - timestamp < ttl`; older entries are left
    in the backend and replaced by the next successful write for the key.
    """

    def __init__(
        self,
        backend: Optional[CacheBackend] = None,
        ttl: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.backend = backend or InMemoryCacheBackend()
        self.ttl = ttl
        self.clock = clock

    def get(self, key: str) -> Optional[Any]:
        entry = self.backend.get(key)
        if entry is None:
            logger.debug(f"Cache miss: {key}")
            return None

        age = self.clock() - entry.timestamp
        if age >= self.ttl:
            logger.debug(f"Cache expired: {key} ({age:.0f}s old)")
            return None

        logger.info(f"Cache hit: {key} ({age:.0f}s old)")
        return entry.payload

    def put(self, key: str, payload: Any) -> CacheEntry:
        entry = CacheEntry(key=key, payload=payload, timestamp=self.clock())
        self.backend.put(key, entry)
        return entry
