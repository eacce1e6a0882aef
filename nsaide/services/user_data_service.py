"""Shared user-profile lookup service.

Feature modules that decorate posts with author details all ask for the
same handful of user ids at once.  ``get_user_info`` routes every lookup
through a :class:`RequestCoalescer` so that a page full of posts by the
same author costs one API call, and repeat visits within the TTL cost
none.

The service is itself a feature module (``userDataService``): its
``init`` sweeps expired entries out of the persistent namespace.
"""

from __future__ import annotations

from typing import Any

import structlog

from nsaide.interfaces.feature_module import IFeatureModule
from nsaide.interfaces.user_info_provider import IUserInfoProvider
from nsaide.models.cache import CacheStats, ReconcileReport
from nsaide.services.request_coalescer import RequestCoalescer
from nsaide.utils.errors import TransportError
from nsaide.utils.logging import get_logger

MODULE_ID = "userDataService"
MODULE_NAME = "用户数据服务"


class UserDataService(IFeatureModule):
    """User-data lookups with two-tier caching and request coalescing.

    Parameters
    ----------
    provider:
        Forum API adapter used on cache misses.
    coalescer:
        Read-through loader bound to the user-data namespace.
    """

    def __init__(self, provider: IUserInfoProvider, coalescer: RequestCoalescer) -> None:
        self._provider = provider
        self._coalescer = coalescer
        self._last_reconcile: ReconcileReport | None = None
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # IFeatureModule implementation
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        return MODULE_ID

    @property
    def name(self) -> str:
        return MODULE_NAME

    async def init(self) -> None:
        """Drop expired entries left over from earlier sessions."""
        self._last_reconcile = await self._coalescer.store.reconcile(self._coalescer.namespace)
        self._logger.info(
            "user_data_service_ready",
            kept=self._last_reconcile.kept,
            removed=self._last_reconcile.removed,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_user_info(self, user_id: str | int | None) -> dict[str, Any] | None:
        """Return the profile for *user_id*, or ``None`` if unavailable.

        ``None`` means "not available right now" (empty id, API failure);
        failures are not cached, so a later call tries again.
        """
        key = str(user_id).strip() if user_id is not None else ""
        if not key:
            self._logger.warning("user_info_invalid_id", user_id=user_id)
            return None

        async def fetch() -> dict[str, Any] | None:
            try:
                return await self._provider.fetch_user_info(key)
            except TransportError as exc:
                self._logger.error("user_info_fetch_failed", user_id=key, error=str(exc))
                return None

        return await self._coalescer.load(key, fetch)

    async def get_cache_stats(self) -> CacheStats:
        return CacheStats(
            memory_size=len(self._coalescer.memory),
            storage_size=await self._coalescer.store.size(self._coalescer.namespace),
            pending_requests=self._coalescer.pending_count,
        )

    async def clear_all_cache(self) -> int:
        """Empty both tiers.  Returns the number of persistent entries removed."""
        await self._coalescer.clear_memory()
        removed = await self._coalescer.store.clear(self._coalescer.namespace)
        self._logger.info("user_data_cache_cleared", removed=removed)
        return removed

    @property
    def last_reconcile(self) -> ReconcileReport | None:
        return self._last_reconcile
