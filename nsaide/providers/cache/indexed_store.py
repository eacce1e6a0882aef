"""Bounded persistent cache with one ordered index per namespace.

Every namespace owns:

- one store entry per cached key (``"{key_prefix}_{key}"``), managed by a
  :class:`TTLCache`;
- one index entry (``index_key``) holding a JSON list of the namespace's
  keys, oldest write first.

Writing a key moves it to the end of the index.  When the index grows past
``max_entries`` the front is evicted and its store entry deleted, so the
entry written longest ago goes first regardless of how often it is read.

Index problems never reach the caller.  A store failure while reading or
writing the index is logged and the operation continues without it; an
undecodable index reads as empty.  The worst outcome is an unindexed
entry, which simply expires.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Iterable

import structlog
from pydantic import TypeAdapter, ValidationError

from nsaide.interfaces.kv_store import IKeyValueStore
from nsaide.models.cache import CacheResult, CacheStatus, ReconcileReport
from nsaide.providers.cache.ttl_cache import TTLCache
from nsaide.utils.clock import Clock
from nsaide.utils.errors import CacheIndexError, ConfigurationError
from nsaide.utils.logging import get_logger

_INDEX_ADAPTER = TypeAdapter(list[str])


@dataclass(frozen=True)
class CacheNamespace:
    """Declaration of one bounded namespace.

    Attributes
    ----------
    name:
        Logical name used by callers (e.g. ``"user_data"``).
    key_prefix:
        Store-key prefix; entries live at ``f"{key_prefix}_{key}"``.
    index_key:
        Store key holding the namespace's JSON index list.
    max_entries:
        Upper bound on indexed entries.
    ttl_seconds:
        Per-entry time-to-live.
    """

    name: str
    key_prefix: str
    index_key: str
    max_entries: int
    ttl_seconds: float

    def __post_init__(self) -> None:
        if self.max_entries < 1:
            raise ConfigurationError(
                f"Namespace '{self.name}': max_entries must be >= 1, got {self.max_entries}"
            )
        if not self.key_prefix or not self.index_key:
            raise ConfigurationError(f"Namespace '{self.name}': key_prefix and index_key are required")


class IndexedBoundedStore:
    """Namespaced, size-bounded persistent cache.

    Parameters
    ----------
    store:
        The durable key-value store shared by every namespace.
    namespaces:
        Namespace declarations.  More can be added with :meth:`add_namespace`.
    clock:
        Epoch-millisecond clock passed to each namespace's TTL cache.
    """

    def __init__(
        self,
        store: IKeyValueStore,
        namespaces: Iterable[CacheNamespace] = (),
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._namespaces: dict[str, CacheNamespace] = {}
        self._caches: dict[str, TTLCache] = {}
        # Index updates are read-modify-write across awaits; one lock per
        # namespace keeps concurrent puts from dropping each other's keys.
        self._locks: dict[str, asyncio.Lock] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)
        for ns in namespaces:
            self.add_namespace(ns)

    def add_namespace(self, namespace: CacheNamespace) -> None:
        if namespace.name in self._namespaces:
            raise ConfigurationError(f"Namespace '{namespace.name}' already declared")
        self._namespaces[namespace.name] = namespace
        self._caches[namespace.name] = TTLCache(
            self._store,
            ttl_seconds=namespace.ttl_seconds,
            key_prefix=f"{namespace.key_prefix}_",
            clock=self._clock,
        )
        self._locks[namespace.name] = asyncio.Lock()

    def namespace(self, name: str) -> CacheNamespace:
        try:
            return self._namespaces[name]
        except KeyError:
            raise ConfigurationError(f"Unknown cache namespace '{name}'") from None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get(self, namespace: str, key: str) -> CacheResult:
        """Read *key* from *namespace*.

        An expired or corrupt entry is deleted by the TTL tier and also
        dropped from the index here.
        """
        ns = self.namespace(namespace)
        result = await self._caches[ns.name].get(key)
        if result.status in (CacheStatus.EXPIRED, CacheStatus.CORRUPT):
            await self._unindex(ns, key)
        return result

    async def put(self, namespace: str, key: str, data: Any) -> CacheResult:
        """Write *key*, move it to the end of the index, evict past the bound."""
        ns = self.namespace(namespace)
        cache = self._caches[ns.name]

        # Entry write and index update share the lock: an indexed key always
        # has a live entry.
        async with self._locks[ns.name]:
            result = await cache.set(key, data)
            if not result.ok:
                return result
            try:
                index = await self._read_index(ns)
                if key in index:
                    index.remove(key)
                index.append(key)

                while len(index) > ns.max_entries:
                    oldest = index.pop(0)
                    await cache.delete(oldest)
                    self._logger.debug(
                        "cache_evicted", namespace=ns.name, key=oldest, max_entries=ns.max_entries
                    )

                await self._write_index(ns, index)
            except CacheIndexError as exc:
                self._logger.warning("cache_index_update_failed", namespace=ns.name, error=str(exc))

        return result

    async def remove(self, namespace: str, key: str) -> CacheResult:
        """Delete *key*'s entry and drop it from the index."""
        ns = self.namespace(namespace)
        async with self._locks[ns.name]:
            result = await self._caches[ns.name].delete(key)
            await self._drop_from_index(ns, key)
        return result

    async def reconcile(self, namespace: str) -> ReconcileReport:
        """Sweep the index once and keep only keys with live entries.

        Entries that are missing, expired, or undecodable are dropped (and
        their store values deleted).  Duplicate index keys collapse to their
        first position and the size bound is re-applied.  Keys whose entry
        could not be read because the store failed are kept.  Running this
        twice without writes in between yields the same index.
        """
        ns = self.namespace(namespace)
        cache = self._caches[ns.name]

        async with self._locks[ns.name]:
            try:
                index = await self._read_index(ns)
            except CacheIndexError as exc:
                self._logger.warning("cache_reconcile_skipped", namespace=ns.name, error=str(exc))
                return ReconcileReport(namespace=ns.name, kept=0, removed=0)

            survivors: list[str] = []
            seen: set[str] = set()
            removed = 0
            for key in index:
                if key in seen:
                    continue
                seen.add(key)
                result = await cache.get(key)
                if result.found or result.status is CacheStatus.ERROR:
                    survivors.append(key)
                else:
                    removed += 1

            while len(survivors) > ns.max_entries:
                await cache.delete(survivors.pop(0))
                removed += 1

            try:
                await self._write_index(ns, survivors)
            except CacheIndexError as exc:
                self._logger.warning("cache_index_update_failed", namespace=ns.name, error=str(exc))

        self._logger.info(
            "cache_reconciled",
            namespace=ns.name,
            kept=len(survivors),
            removed=removed,
        )
        return ReconcileReport(namespace=ns.name, kept=len(survivors), removed=removed)

    async def clear(self, namespace: str) -> int:
        """Delete every indexed entry of *namespace* and empty its index.

        Returns the number of entries deleted.
        """
        ns = self.namespace(namespace)
        cache = self._caches[ns.name]
        async with self._locks[ns.name]:
            try:
                index = await self._read_index(ns)
            except CacheIndexError as exc:
                self._logger.warning("cache_clear_failed", namespace=ns.name, error=str(exc))
                return 0
            for key in index:
                await cache.delete(key)
            try:
                await self._write_index(ns, [])
            except CacheIndexError as exc:
                self._logger.warning("cache_index_update_failed", namespace=ns.name, error=str(exc))
        self._logger.info("cache_cleared", namespace=ns.name, removed=len(index))
        return len(index)

    async def index(self, namespace: str) -> list[str]:
        """Return the namespace's index, oldest write first (empty on failure)."""
        ns = self.namespace(namespace)
        try:
            return await self._read_index(ns)
        except CacheIndexError:
            return []

    async def size(self, namespace: str) -> int:
        return len(await self.index(namespace))

    # ------------------------------------------------------------------
    # Index persistence
    # ------------------------------------------------------------------

    async def _read_index(self, ns: CacheNamespace) -> list[str]:
        try:
            raw = await self._store.get(ns.index_key)
        except Exception as exc:
            raise CacheIndexError(
                message=f"Cannot read index {ns.index_key}: {exc}",
                provider_name=self._store.get_provider_name(),
            ) from exc

        if raw is None:
            return []
        try:
            return _INDEX_ADAPTER.validate_json(raw)
        except ValidationError:
            self._logger.warning("cache_index_corrupt", namespace=ns.name, index_key=ns.index_key)
            return []

    async def _write_index(self, ns: CacheNamespace, index: list[str]) -> None:
        try:
            await self._store.set(ns.index_key, json.dumps(index, ensure_ascii=False))
        except Exception as exc:
            raise CacheIndexError(
                message=f"Cannot write index {ns.index_key}: {exc}",
                provider_name=self._store.get_provider_name(),
            ) from exc

    async def _unindex(self, ns: CacheNamespace, key: str) -> None:
        async with self._locks[ns.name]:
            await self._drop_from_index(ns, key)

    async def _drop_from_index(self, ns: CacheNamespace, key: str) -> None:
        try:
            index = await self._read_index(ns)
            if key in index:
                index.remove(key)
                await self._write_index(ns, index)
        except CacheIndexError as exc:
            self._logger.warning("cache_index_update_failed", namespace=ns.name, error=str(exc))
