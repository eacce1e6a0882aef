"""In-memory cache tier using cachetools.FIFOCache.

Entries are evicted in insertion order when the tier is full; reads never
refresh an entry's position, so a hot key can still be the next one
evicted.

Rewriting a key is not position-preserving: ``FIFOCache`` treats it as a new
insertion and moves the key to the back of the queue, so it is evicted
last.  An insertion-ordered map that keeps a rewritten key in its first
slot would evict it first.  The coalescer only writes after a memory miss,
so rewrites are rare in practice.

Expiry is checked on read against the entry's write timestamp and stale
entries are dropped at that point.
"""

from __future__ import annotations

from typing import Any

import structlog
from cachetools import FIFOCache

from nsaide.interfaces.cache_provider import ICacheProvider
from nsaide.models.cache import CacheEntry, CacheResult, CacheStatus
from nsaide.utils.clock import Clock, epoch_ms
from nsaide.utils.errors import ConfigurationError
from nsaide.utils.logging import get_logger


class MemoryCache(ICacheProvider):
    """Bounded, insertion-ordered TTL cache held in process memory.

    Parameters
    ----------
    max_entries:
        Maximum number of entries.  Inserting a new key into a full cache
        first evicts the earliest-inserted entry.
    ttl_seconds:
        Time-to-live applied to every entry.
    clock:
        Epoch-millisecond clock; defaults to wall-clock time.
    """

    def __init__(
        self,
        max_entries: int = 200,
        ttl_seconds: float = 1800,
        clock: Clock | None = None,
    ) -> None:
        if max_entries < 1:
            raise ConfigurationError(f"max_entries must be >= 1, got {max_entries}")
        self._entries: FIFOCache[str, CacheEntry] = FIFOCache(maxsize=max_entries)
        self._ttl_ms = int(ttl_seconds * 1000)
        self._clock = clock or epoch_ms
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> CacheResult:
        entry = self._entries.get(key)
        if entry is None:
            return CacheResult.miss()

        if not entry.is_fresh(self._clock(), self._ttl_ms):
            self._entries.pop(key, None)
            self._logger.debug("memory_cache_expired", key=key)
            return CacheResult(CacheStatus.EXPIRED)

        return CacheResult.hit(entry.data)

    async def set(self, key: str, data: Any) -> CacheResult:
        if key not in self._entries and len(self._entries) >= self._entries.maxsize:
            evicted_key, _ = self._entries.popitem()
            self._logger.debug("memory_cache_evicted", key=evicted_key)

        self._entries[key] = CacheEntry(data=data, timestamp=self._clock())
        return CacheResult(CacheStatus.STORED)

    async def delete(self, key: str) -> CacheResult:
        self._entries.pop(key, None)
        return CacheResult(CacheStatus.DELETED)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def max_entries(self) -> int:
        return int(self._entries.maxsize)

    def keys(self) -> list[str]:
        """Return the cached keys (expired entries not yet read included)."""
        return list(self._entries.keys())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
