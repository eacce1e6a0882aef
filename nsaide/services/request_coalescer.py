"""Two-tier cache read-through with request coalescing.

# ─── LOOKUP ORDER ─────────────────────────────────────────────────────
#
#   load(key, fetch_fn)
#     1. memory tier           → hit: return
#     2. persistent namespace  → hit: copy into memory tier, return
#     3. pending map           → in flight: await the same task
#     4. start fetch_fn() as a task, register it, await it
#
# Steps 3 and 4 run without an await between the pending check and the
# registration, so on a single event loop N concurrent callers for one
# key share exactly one fetch.
#
# The fetch task writes its result through both tiers before it settles,
# and the pending entry is removed when the task settles whatever the
# outcome.  A failed fetch (exception or None) is never cached, so the
# next caller simply fetches again.
#
# Callers await the task through asyncio.shield(): a caller that is
# cancelled stops waiting but the fetch keeps going and still fills the
# cache for later readers.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any, Awaitable, Callable

import structlog

from nsaide.providers.cache.indexed_store import IndexedBoundedStore
from nsaide.providers.cache.memory_cache import MemoryCache
from nsaide.utils.logging import get_logger

FetchFn = Callable[[], Awaitable[Any]]


class RequestCoalescer:
    """Read-through loader over a memory tier and one persistent namespace.

    Parameters
    ----------
    memory:
        The in-process cache tier.
    store:
        The persistent indexed store.
    namespace:
        Namespace of *store* that backs this loader.
    """

    def __init__(
        self,
        memory: MemoryCache,
        store: IndexedBoundedStore,
        namespace: str,
    ) -> None:
        store.namespace(namespace)  # fail fast on an undeclared namespace
        self._memory = memory
        self._store = store
        self._namespace = namespace
        self._pending: dict[str, asyncio.Task[Any]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def load(self, key: str, fetch_fn: FetchFn) -> Any | None:
        """Return the value for *key*, fetching it at most once concurrently.

        Returns ``None`` when the value is unavailable: *fetch_fn* returned
        ``None`` or raised.  Cache-tier faults are never raised.
        """
        cached = await self._memory.get(key)
        if cached.found:
            self._logger.debug("memory_cache_hit", key=key)
            return cached.value

        stored = await self._store.get(self._namespace, key)
        if stored.found:
            self._logger.debug("storage_cache_hit", key=key, namespace=self._namespace)
            await self._memory.set(key, stored.value)
            return stored.value

        task = self._pending.get(key)
        if task is not None:
            self._logger.debug("request_coalesced", key=key)
        else:
            self._logger.debug("request_started", key=key)
            task = asyncio.create_task(self._fetch_and_store(key, fetch_fn))
            self._pending[key] = task
            task.add_done_callback(functools.partial(self._settle, key))

        try:
            return await asyncio.shield(task)
        except Exception as exc:
            self._logger.warning("request_failed", key=key, error=str(exc)[:200])
            return None

    async def invalidate(self, key: str) -> None:
        """Drop *key* from both tiers."""
        await self._memory.delete(key)
        await self._store.remove(self._namespace, key)

    async def clear_memory(self) -> int:
        """Empty the memory tier; returns how many entries it held."""
        count = len(self._memory)
        self._memory.clear()
        self._logger.debug("memory_cache_cleared", removed=count)
        return count

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def memory(self) -> MemoryCache:
        return self._memory

    @property
    def store(self) -> IndexedBoundedStore:
        return self._store

    @property
    def namespace(self) -> str:
        return self._namespace

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _fetch_and_store(self, key: str, fetch_fn: FetchFn) -> Any | None:
        data = await fetch_fn()
        if data is None:
            return None
        await self._memory.set(key, data)
        await self._store.put(self._namespace, key, data)
        return data

    def _settle(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        # Mark the outcome as retrieved; every waiter may have been cancelled.
        if not task.cancelled():
            task.exception()
