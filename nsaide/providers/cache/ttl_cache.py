"""Persistent TTL cache tier over an :class:`IKeyValueStore`.

Each logical key maps to exactly one store entry at ``key_prefix + key``
holding a JSON :class:`~nsaide.models.cache.CacheEntry`.  Reads validate
freshness and delete stale or undecodable entries on the spot.  Writes
always overwrite; concurrent writers of the same key race and the last
one wins, which is acceptable because they all write the value fetched
from the same canonical source.
"""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import ValidationError

from nsaide.interfaces.cache_provider import ICacheProvider
from nsaide.interfaces.kv_store import IKeyValueStore
from nsaide.models.cache import CacheEntry, CacheResult, CacheStatus
from nsaide.utils.clock import Clock, epoch_ms
from nsaide.utils.errors import CacheCorruptionError, CacheError
from nsaide.utils.logging import get_logger


class TTLCache(ICacheProvider):
    """Key-value-store backed cache with a uniform time-to-live.

    Parameters
    ----------
    store:
        The durable key-value store.
    ttl_seconds:
        Entries older than this are treated as absent and deleted on read.
    key_prefix:
        Prepended verbatim to every logical key to form the store key.
    clock:
        Epoch-millisecond clock; defaults to wall-clock time.
    """

    def __init__(
        self,
        store: IKeyValueStore,
        ttl_seconds: float,
        key_prefix: str = "",
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._ttl_ms = int(ttl_seconds * 1000)
        self._prefix = key_prefix
        self._clock = clock or epoch_ms
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def storage_key(self, key: str) -> str:
        """Return the store key that holds *key*'s entry."""
        return f"{self._prefix}{key}"

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> CacheResult:
        skey = self.storage_key(key)
        try:
            raw = await self._store.get(skey)
        except Exception as exc:
            self._logger.warning("cache_read_failed", key=skey, error=str(exc)[:200])
            return CacheResult.failed(exc)

        if raw is None:
            return CacheResult.miss()

        try:
            entry = CacheEntry.model_validate_json(raw)
        except ValidationError as exc:
            self._logger.warning("cache_entry_corrupt", key=skey)
            await self._discard(skey)
            corruption = CacheCorruptionError(
                message=f"Undecodable cache entry at {skey}",
                provider_name=self._store.get_provider_name(),
            )
            corruption.__cause__ = exc
            return CacheResult(CacheStatus.CORRUPT, error=corruption)

        if not entry.is_fresh(self._clock(), self._ttl_ms):
            self._logger.debug("cache_expired", key=skey)
            await self._discard(skey)
            return CacheResult(CacheStatus.EXPIRED)

        return CacheResult.hit(entry.data)

    async def set(self, key: str, data: Any) -> CacheResult:
        skey = self.storage_key(key)
        try:
            payload = CacheEntry(data=data, timestamp=self._clock()).model_dump_json()
            await self._store.set(skey, payload)
        except Exception as exc:
            self._logger.warning("cache_write_failed", key=skey, error=str(exc)[:200])
            return CacheResult.failed(exc)
        return CacheResult(CacheStatus.STORED)

    async def delete(self, key: str) -> CacheResult:
        skey = self.storage_key(key)
        try:
            await self._store.set(skey, "")
        except Exception as exc:
            self._logger.warning("cache_delete_failed", key=skey, error=str(exc)[:200])
            return CacheResult.failed(
                CacheError(
                    message=f"Could not delete {skey}: {exc}",
                    provider_name=self._store.get_provider_name(),
                )
            )
        return CacheResult(CacheStatus.DELETED)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _discard(self, skey: str) -> None:
        """Best-effort removal of an invalid entry."""
        try:
            await self._store.set(skey, "")
        except Exception as exc:
            self._logger.warning("cache_delete_failed", key=skey, error=str(exc)[:200])
