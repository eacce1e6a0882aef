"""Cached loader for remote text resources (manifest, module payloads).

A cached body younger than the TTL is returned without touching the
network.  Otherwise the resource is fetched, stored, and returned.  Fetch
failures propagate as :class:`TransportError` and leave the cache as it
was.
"""

from __future__ import annotations

import structlog
from pydantic import ValidationError

from nsaide.interfaces.cache_provider import ICacheProvider
from nsaide.interfaces.resource_fetcher import IResourceFetcher
from nsaide.models.module import ModuleManifest
from nsaide.utils.errors import ManifestError, TransportError
from nsaide.utils.logging import get_logger


class RemoteResourceLoader:
    """Fetch-with-cache for remote text.

    Parameters
    ----------
    fetcher:
        Network adapter that downloads the resource.
    cache:
        Persistent TTL tier keyed by the caller-supplied cache key.
    """

    def __init__(self, fetcher: IResourceFetcher, cache: ICacheProvider) -> None:
        self._fetcher = fetcher
        self._cache = cache
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def fetch_text(self, url: str, cache_key: str) -> str:
        """Return the body of *url*, served from *cache_key* while fresh.

        Raises
        ------
        TransportError
            When the resource is not cached and the fetch fails.
        """
        cached = await self._cache.get(cache_key)
        if cached.found and cached.value:
            self._logger.info("resource_cache_hit", cache_key=cache_key)
            return cached.value

        text = await self._fetcher.fetch_text(url)
        await self._cache.set(cache_key, text)
        self._logger.info("resource_fetched", url=url, cache_key=cache_key)
        return text

    async def load_manifest(self, url: str, cache_key: str) -> ModuleManifest:
        """Fetch and parse the module manifest.

        A cached manifest that no longer parses is dropped so the next
        attempt downloads a fresh copy.

        Raises
        ------
        ManifestError
            When the manifest cannot be fetched or is malformed.
        """
        try:
            text = await self.fetch_text(url, cache_key)
        except TransportError as exc:
            raise ManifestError(
                message=f"Could not fetch manifest: {exc}",
                provider_name=exc.provider_name,
            ) from exc

        try:
            manifest = ModuleManifest.model_validate_json(text)
        except ValidationError as exc:
            await self.invalidate(cache_key)
            raise ManifestError(
                message=f"Malformed manifest at {url}: {exc.error_count()} validation error(s)",
            ) from exc

        self._logger.info("manifest_loaded", url=url, modules=len(manifest.modules))
        return manifest

    async def invalidate(self, cache_key: str) -> None:
        """Forget the cached body stored under *cache_key*."""
        await self._cache.delete(cache_key)
