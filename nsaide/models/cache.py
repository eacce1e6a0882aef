"""Cache data models.

``CacheEntry`` is the persisted envelope ``{"data": ..., "timestamp": ms}``.
Its JSON form is the on-disk format of every cache key, so field names and
the millisecond timestamp must not change.

``CacheResult`` is the tagged outcome returned by every cache operation.
Cache tiers never raise to their callers; a store failure comes back as
``CacheStatus.ERROR`` with the exception attached, a stale entry as
``EXPIRED``, an undecodable one as ``CORRUPT``.  Only ``HIT`` carries a value.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class CacheEntry(BaseModel):
    """A cached value stamped with its write time (epoch milliseconds)."""

    model_config = ConfigDict(frozen=True)

    data: Any
    timestamp: int

    def is_fresh(self, now_ms: int, ttl_ms: int) -> bool:
        """Return ``True`` while ``now - timestamp <= ttl``."""
        return now_ms - self.timestamp <= ttl_ms


class CacheStatus(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """Outcome tags for cache operations."""

    HIT = "HIT"
    MISS = "MISS"
    EXPIRED = "EXPIRED"
    CORRUPT = "CORRUPT"
    STORED = "STORED"
    DELETED = "DELETED"
    ERROR = "ERROR"


@dataclass(frozen=True)
class CacheResult:
    """Tagged result of a cache read or write.

    Attributes
    ----------
    status:
        What happened.
    value:
        The cached data; only meaningful when ``status`` is ``HIT``.
    error:
        The swallowed exception when ``status`` is ``ERROR`` or ``CORRUPT``.
    """

    status: CacheStatus
    value: Any = None
    error: BaseException | None = None

    @property
    def found(self) -> bool:
        return self.status is CacheStatus.HIT

    @property
    def ok(self) -> bool:
        return self.status not in (CacheStatus.ERROR, CacheStatus.CORRUPT)

    def value_or_none(self) -> Any:
        return self.value if self.found else None

    @classmethod
    def hit(cls, value: Any) -> CacheResult:
        return cls(CacheStatus.HIT, value=value)

    @classmethod
    def miss(cls) -> CacheResult:
        return cls(CacheStatus.MISS)

    @classmethod
    def failed(cls, error: BaseException) -> CacheResult:
        return cls(CacheStatus.ERROR, error=error)


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time sizes of the user-data cache tiers."""

    memory_size: int
    storage_size: int
    pending_requests: int


@dataclass(frozen=True)
class ReconcileReport:
    """Result of one startup sweep over a namespace index."""

    namespace: str
    kept: int
    removed: int
