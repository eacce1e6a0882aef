"""Process-local key-value store.

Backs ephemeral runs and the test suite.  Nothing survives the process.
"""

from __future__ import annotations

from nsaide.interfaces.kv_store import IKeyValueStore


class MemoryKeyValueStore(IKeyValueStore):
    """Dict-backed :class:`IKeyValueStore`."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = {k: v for k, v in (initial or {}).items() if v}

    async def get(self, key: str) -> str | None:
        return self._data.get(key) or None

    async def set(self, key: str, value: str) -> None:
        if value == "":
            self._data.pop(key, None)
        else:
            self._data[key] = value

    def snapshot(self) -> dict[str, str]:
        """Return a copy of every stored key and value."""
        return dict(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def get_provider_name(self) -> str:
        return "memory_kv_store"
