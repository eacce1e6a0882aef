"""Remote text fetcher backed by httpx.

Used for the module manifest and module payloads.  Every request carries a
``t=<epoch-ms>`` query parameter plus ``Cache-Control``/``Pragma`` no-cache
headers so CDN and proxy caches (raw.githubusercontent.com caches for
minutes) never serve a stale copy; freshness is decided by the local
TTL cache instead.
"""

from __future__ import annotations

import httpx
import structlog

from nsaide.interfaces.resource_fetcher import IResourceFetcher
from nsaide.utils.clock import Clock, epoch_ms
from nsaide.utils.errors import TransportError

logger = structlog.get_logger(logger_name=__name__)

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class HttpResourceFetcher(IResourceFetcher):
    """:class:`IResourceFetcher` over a shared ``httpx.AsyncClient``.

    The client belongs to the container that built it and is closed there.
    """

    def __init__(self, http_client: httpx.AsyncClient, clock: Clock | None = None) -> None:
        self._client = http_client
        self._clock = clock or epoch_ms

    async def fetch_text(self, url: str) -> str:
        try:
            response = await self._client.get(
                url,
                params={"t": str(self._clock())},
                headers=_NO_CACHE_HEADERS,
            )
        except httpx.HTTPError as exc:
            raise TransportError(
                message=f"Request to {url} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code != 200:
            raise TransportError(
                message=f"HTTP {response.status_code} for {url}",
                provider_name=self.get_provider_name(),
                status_code=response.status_code,
            )

        logger.debug("resource_fetched", url=url, bytes=len(response.content))
        return response.text

    def get_provider_name(self) -> str:
        return "http_resource_fetcher"
