"""Module-system bootstrap.

# ─── STARTUP SEQUENCE ─────────────────────────────────────────────────
#
#   1. load_manifest()   → remote config.json, cached under the config key
#   2. load_module(info) → for every entry, concurrently:
#                            catalog lookup (unknown id → ModuleLoadError)
#                            payload fetch, cached under prefix + id
#                            factory(info, payload) → registry.register()
#   3. registry.init_all() when at least one module registered
#
# No step raises out of run(): a manifest failure ends the run early and
# per-module failures are recorded in the BootstrapReport.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import structlog

from nsaide.models.module import BootstrapReport, ModuleInfo, ModuleManifest
from nsaide.modules.catalog import ModuleCatalog
from nsaide.services.module_registry import ModuleRegistry
from nsaide.services.resource_loader import RemoteResourceLoader
from nsaide.utils.concurrency import settle_all
from nsaide.utils.errors import ManifestError, ModuleLoadError, TransportError
from nsaide.utils.logging import get_logger


class Bootstrap:
    """Loads the manifest, builds catalogued modules, and initialises them.

    Parameters
    ----------
    loader:
        Cached remote-text loader for the manifest and module payloads.
    registry:
        Registry the loaded modules are registered into.
    catalog:
        Modules this build is able to provide.
    config_url:
        URL of the remote manifest.
    config_cache_key:
        Cache key for the manifest body.
    module_cache_prefix:
        Prefix of each module payload's cache key (``prefix + id``).
    """

    def __init__(
        self,
        loader: RemoteResourceLoader,
        registry: ModuleRegistry,
        catalog: ModuleCatalog,
        config_url: str,
        config_cache_key: str = "ns_config_cache",
        module_cache_prefix: str = "ns_module_cache_",
    ) -> None:
        self._loader = loader
        self._registry = registry
        self._catalog = catalog
        self._config_url = config_url
        self._config_cache_key = config_cache_key
        self._module_cache_prefix = module_cache_prefix
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def registry(self) -> ModuleRegistry:
        return self._registry

    async def load_manifest(self) -> ModuleManifest:
        """Raises :class:`ManifestError` when the manifest is unusable."""
        return await self._loader.load_manifest(self._config_url, self._config_cache_key)

    async def load_module(self, info: ModuleInfo) -> str:
        """Build and register the module described by *info*.

        Returns the registered module id.

        Raises
        ------
        ModuleLoadError
            When the id is not catalogued, the payload cannot be fetched,
            or the factory fails.
        """
        self._logger.info("module_loading", module_id=info.id, name=info.display_name)
        factory = self._catalog.resolve(info.id)

        payload = ""
        if info.url:
            try:
                payload = await self._loader.fetch_text(
                    info.url, f"{self._module_cache_prefix}{info.id}"
                )
            except TransportError as exc:
                raise ModuleLoadError(
                    message=f"Could not fetch payload for '{info.id}': {exc}",
                    provider_name=exc.provider_name,
                    module_id=info.id,
                ) from exc

        try:
            module = factory(info, payload)
        except Exception as exc:
            raise ModuleLoadError(
                message=f"Factory for '{info.id}' failed: {exc}",
                module_id=info.id,
            ) from exc

        descriptor = await self._registry.register(module)
        if descriptor is None:
            raise ModuleLoadError(
                message=f"Module built for '{info.id}' has no id",
                module_id=info.id,
            )
        self._logger.info("module_loaded", module_id=descriptor.id, name=descriptor.name)
        return descriptor.id

    async def run(self) -> BootstrapReport:
        """Run the full startup sequence and report what happened."""
        report = BootstrapReport()

        try:
            manifest = await self.load_manifest()
        except ManifestError as exc:
            self._logger.error("bootstrap_failed", error=str(exc))
            report.error = str(exc)
            return report
        report.manifest_loaded = True

        settled = await settle_all(
            [(info.id, self.load_module(info)) for info in manifest.modules],
            logger=self._logger,
            error_msg="module_load_failed",
        )
        for module_id, result in settled:
            if isinstance(result, BaseException):
                report.failed[module_id] = str(result)
            else:
                report.loaded.append(result)

        if len(self._registry) > 0:
            report.init_outcomes = await self._registry.init_all()
        else:
            self._logger.warning("bootstrap_no_modules", manifest_entries=len(manifest.modules))

        self._logger.info(
            "bootstrap_complete",
            loaded=len(report.loaded),
            failed=len(report.failed),
            initialised=len(report.initialised),
        )
        return report
