"""Abstract base class for a single cache tier.

Defines the contract shared by the in-memory tier and the persistent
TTL tier.  Every operation returns a tagged
:class:`~nsaide.models.cache.CacheResult`; implementations must not raise
on expiry, corruption, or storage failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from nsaide.models.cache import CacheResult


class ICacheProvider(ABC):
    """Contract for TTL cache tiers keyed by string."""

    @abstractmethod
    async def get(self, key: str) -> CacheResult:
        """Look up *key*.

        Returns ``HIT`` with the value when a fresh entry exists.  Stale or
        undecodable entries are deleted and reported as ``EXPIRED`` or
        ``CORRUPT``; callers treat every non-``HIT`` status as absent.
        """

    @abstractmethod
    async def set(self, key: str, data: Any) -> CacheResult:
        """Store *data* under *key*, stamped with the current time.

        Last writer wins; there is no merge with an existing entry.
        """

    @abstractmethod
    async def delete(self, key: str) -> CacheResult:
        """Remove *key*.  A no-op for absent keys."""
