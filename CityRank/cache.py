"""
Process-wide TTL cache used by the geolocation resolver and the filter service.
"""

import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from CityRank.utils.logging import get_logger

logger = get_logger(__name__)


class TTLCache:
    """
    Key/value cache whose entries expire ``ttl_seconds`` after they are written.

    Expired entries are never returned. They are dropped when read, and every
    write purges the ones that have expired since. The clock is injectable so
    expiry can be tested without sleeping.

    Examples:
        >>> cache = TTLCache(60, name="states")
        >>> cache.put("FR", [{"code": "IDF", "name": "Ile-de-France"}])
        >>> cache.get("FR")
        [{'code': 'IDF', 'name': 'Ile-de-France'}]
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic,
                 name: str = "cache") -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                self._misses += 1
                logger.debug(f"Cache '{self.name}' entry expired: {key}")
                return None

            self._hits += 1
            return value

    def put(self, key: Hashable, value: Any) -> None:
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            # Re-insert so entries stay ordered by write time
            self._entries.pop(key, None)
            self._entries[key] = (now, value)

    def _purge_expired(self, now: float) -> None:
        expired = []
        for key, (stored_at, _) in self._entries.items():
            if now - stored_at < self.ttl_seconds:
                break
            expired.append(key)
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Cache '{self.name}' purged {len(expired)} expired entries")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        """Hit and miss counters plus the current number of stored entries."""
        with self._lock:
            return {
                'name': self.name,
                'size': len(self._entries),
                'hits': self._hits,
                'misses': self._misses,
                'ttl_seconds': self.ttl_seconds,
            }
