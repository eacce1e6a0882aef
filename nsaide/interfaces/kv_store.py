"""Abstract base class for the durable key-value store.

The store is the only persistence primitive the cache layer relies on: a
process-wide mapping of string keys to string values with no atomicity
across keys.  Writing an empty string is the deletion convention; there is
no separate delete operation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IKeyValueStore(ABC):
    """Contract for string key-value stores.

    Operations are async so that file- or network-backed stores do not block
    the event loop.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value stored under *key*.

        Returns
        -------
        str or None
            The stored string, or ``None`` when the key is absent or holds
            the empty string.
        """

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store *value* under *key*, overwriting any previous value.

        Setting ``""`` removes the key.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
