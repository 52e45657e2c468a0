"""Short-lived read-through cache for food lookups.

The cache is a latency optimization only. Entries expire after a fixed
TTL and callers invalidate a key whenever they write to the same entity.
Readers take a version token before querying and pass it to `set`, so a
value read before an invalidation is never stored after it.
NullCache keeps the same interface and stores nothing.
"""

import logging
import threading
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)


class TTLCache:
    """In-memory key/value cache with per-entry expiry."""

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the cache.

        Args:
            ttl_seconds: Lifetime of an entry in seconds.
            clock: Monotonic time source, injectable for tests.
        """
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._versions: dict[str, int] = {}
        self._generation = 0
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def version(self, key: str) -> tuple[int, int]:
        """Token identifying the current invalidation state of key."""
        with self._lock:
            return self._generation, self._versions.get(key, 0)

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                self.misses += 1
                return None
            self.hits += 1
            return value

    def set(self, key: str, value: Any, version: tuple[int, int] | None = None) -> bool:
        """Store a value under key for the configured TTL.

        Args:
            key: Cache key.
            value: Value to store.
            version: Token from `version(key)` taken before the value was
                read. The value is dropped if the key was invalidated since.

        Returns:
            True if the value was stored.
        """
        with self._lock:
            if version is not None and version != (self._generation, self._versions.get(key, 0)):
                logger.debug("Skipped stale write for cache key %s", key)
                return False
            self._entries[key] = (self._clock() + self._ttl, value)
            return True

    def invalidate(self, key: str) -> None:
        """Drop a single key."""
        with self._lock:
            self._versions[key] = self._versions.get(key, 0) + 1
            if self._entries.pop(key, None) is not None:
                logger.debug("Invalidated cache key %s", key)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._generation += 1
            self._versions.clear()
            self._entries.clear()

    def purge_expired(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def info(self) -> dict[str, Any]:
        """Summarize cache state for the admin dashboard."""
        with self._lock:
            return {
                "enabled": True,
                "size": len(self._entries),
                "ttl_seconds": self._ttl,
                "hits": self.hits,
                "misses": self.misses,
            }


class NullCache:
    """Cache that never stores anything."""

    def version(self, key: str) -> tuple[int, int]:
        return 0, 0

    def get(self, key: str) -> Any | None:
        return None

    def set(self, key: str, value: Any, version: tuple[int, int] | None = None) -> bool:
        return False

    def invalidate(self, key: str) -> None:
        pass

    def clear(self) -> None:
        pass

    def purge_expired(self) -> int:
        return 0

    def info(self) -> dict[str, Any]:
        return {"enabled": False, "size": 0, "ttl_seconds": 0, "hits": 0, "misses": 0}
