"""Abstract base class for fetching remote text resources."""

from __future__ import annotations

from abc import ABC, abstractmethod


class IResourceFetcher(ABC):
    """Contract for fetching the body of a remote resource as text.

    Implementations bypass intermediate HTTP caches (cache-busting query
    parameter and no-cache headers); freshness is owned by the caller's
    TTL cache.
    """

    @abstractmethod
    async def fetch_text(self, url: str) -> str:
        """Return the response body of *url*.

        Raises
        ------
        TransportError
            On network failure or any status other than 200.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this fetcher."""
