"""Persisted per-module enablement switches.

Each module's switch lives in the key-value store at
``module_<id>_enabled`` as a JSON boolean.  A missing, unreadable, or
non-boolean value means enabled.
"""

from __future__ import annotations

import json

import structlog

from nsaide.interfaces.kv_store import IKeyValueStore
from nsaide.utils.logging import get_logger


class ModuleSettings:
    """Read and write module enablement flags."""

    def __init__(self, store: IKeyValueStore) -> None:
        self._store = store
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @staticmethod
    def setting_key(module_id: str) -> str:
        return f"module_{module_id}_enabled"

    async def is_enabled(self, module_id: str, default: bool = True) -> bool:
        key = self.setting_key(module_id)
        try:
            raw = await self._store.get(key)
        except Exception as exc:
            self._logger.warning("module_setting_read_failed", key=key, error=str(exc)[:200])
            return default

        if raw is None:
            return default
        try:
            value = json.loads(raw)
        except ValueError:
            self._logger.warning("module_setting_corrupt", key=key)
            return default
        return value if isinstance(value, bool) else default

    async def set_enabled(self, module_id: str, enabled: bool) -> None:
        await self._store.set(self.setting_key(module_id), json.dumps(enabled))
        self._logger.info("module_setting_saved", module_id=module_id, enabled=enabled)
