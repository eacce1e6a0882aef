"""nsaide application entry point.

Wires together the key-value store, cache tiers, HTTP adapters, and the
module system via dependency injection.  Every cache object is built once
here and handed to the components that need it; nothing reaches for a
global.

``python -m nsaide`` runs the bootstrap once and exits; the operator CLI
in :mod:`nsaide.cli` builds on the same container.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Any

import httpx
import structlog

from nsaide import __version__
from nsaide.config.loader import load_config
from nsaide.config.settings import Settings
from nsaide.interfaces.kv_store import IKeyValueStore
from nsaide.models.module import BootstrapReport
from nsaide.modules.catalog import ModuleCatalog
from nsaide.providers.cache.indexed_store import CacheNamespace, IndexedBoundedStore
from nsaide.providers.cache.memory_cache import MemoryCache
from nsaide.providers.cache.ttl_cache import TTLCache
from nsaide.providers.http.resource_fetcher import HttpResourceFetcher
from nsaide.providers.http.user_info_provider import NodeSeekUserInfoProvider
from nsaide.providers.kv_store.memory_kv_store import MemoryKeyValueStore
from nsaide.providers.kv_store.sqlite_kv_store import SQLiteKeyValueStore
from nsaide.services.bootstrap import Bootstrap
from nsaide.services.module_registry import ModuleRegistry
from nsaide.services.module_settings import ModuleSettings
from nsaide.services.request_coalescer import RequestCoalescer
from nsaide.services.resource_loader import RemoteResourceLoader
from nsaide.services.user_data_service import UserDataService
from nsaide.utils.clock import Clock
from nsaide.utils.errors import ConfigurationError, ReadinessTimeoutError
from nsaide.utils.logging import configure_logging, get_logger

USER_DATA_NAMESPACE = "user_data"

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def build_kv_store(app_settings: Settings, kv_cfg: dict[str, Any] | None = None) -> IKeyValueStore:
    """Select the key-value backend named by ``kv_store.backend``."""
    kv_cfg = kv_cfg or {}
    backend = str(kv_cfg.get("backend", app_settings.kv_backend))
    if backend.lower() == "sqlite":
        return SQLiteKeyValueStore(db_path=kv_cfg.get("db_path", app_settings.kv_db_path))
    if backend.lower() == "memory":
        return MemoryKeyValueStore()
    raise ConfigurationError(f"Unknown kv_backend '{backend}' (expected sqlite or memory)")


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_container(
    app_settings: Settings,
    config: dict[str, Any] | None = None,
    kv_store: IKeyValueStore | None = None,
    http_client: httpx.AsyncClient | None = None,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Construct every provider and service instance.

    Returns a flat dict of named components.  *kv_store*, *http_client*
    and *clock* may be injected (tests pass in-memory and mock-transport
    versions); otherwise they are built from *app_settings*.
    """
    if config is None:
        config = load_config(settings=app_settings)
    cache_cfg = config.get("cache", {})
    user_cfg = cache_cfg.get("user_data", {})
    resource_cfg = cache_cfg.get("resources", {})
    remote_cfg = config.get("remote", {})

    # -- Shared resources --
    owns_client = http_client is None
    if http_client is None:
        user_agent = config.get("http", {}).get("user_agent", f"nsaide/{__version__}")
        http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(float(remote_cfg.get("http_timeout_seconds", app_settings.http_timeout_seconds))),
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )
    if kv_store is None:
        kv_store = build_kv_store(app_settings, config.get("kv_store"))

    # -- User-data cache tiers --
    user_namespace = CacheNamespace(
        name=USER_DATA_NAMESPACE,
        key_prefix=user_cfg.get("key_prefix", app_settings.user_cache_storage_key),
        index_key=user_cfg.get("index_key", app_settings.user_cache_index_key),
        max_entries=int(user_cfg.get("max_storage_entries", app_settings.user_cache_max_storage_entries)),
        ttl_seconds=float(user_cfg.get("ttl_seconds", app_settings.user_cache_ttl_seconds)),
    )
    memory_cache = MemoryCache(
        max_entries=int(user_cfg.get("max_memory_entries", app_settings.user_cache_max_memory_entries)),
        ttl_seconds=user_namespace.ttl_seconds,
        clock=clock,
    )
    indexed_store = IndexedBoundedStore(kv_store, namespaces=[user_namespace], clock=clock)
    coalescer = RequestCoalescer(memory_cache, indexed_store, USER_DATA_NAMESPACE)

    # -- Remote resources (manifest + module payloads) --
    resource_cache = TTLCache(
        kv_store,
        ttl_seconds=float(resource_cfg.get("ttl_seconds", app_settings.resource_cache_ttl_seconds)),
        clock=clock,
    )
    resource_fetcher = HttpResourceFetcher(http_client=http_client, clock=clock)
    resource_loader = RemoteResourceLoader(resource_fetcher, resource_cache)

    # -- Built-in modules --
    user_info_provider = NodeSeekUserInfoProvider(settings=app_settings, http_client=http_client)
    user_data_service = UserDataService(user_info_provider, coalescer)

    catalog = ModuleCatalog()
    catalog.register_instance(user_data_service)
    builtin = config.get("modules", {}).get("builtin")
    if builtin is not None:
        catalog = catalog.restricted_to(builtin)

    # -- Module system --
    module_settings = ModuleSettings(kv_store)
    registry = ModuleRegistry(module_settings, version=str(config.get("app", {}).get("version", __version__)))
    bootstrap = Bootstrap(
        loader=resource_loader,
        registry=registry,
        catalog=catalog,
        config_url=remote_cfg.get("config_url", app_settings.config_url),
        config_cache_key=resource_cfg.get("config_key", app_settings.config_cache_key),
        module_cache_prefix=resource_cfg.get("module_key_prefix", app_settings.module_cache_key_prefix),
    )

    _logger.debug(
        "container_built",
        kv_store=kv_store.get_provider_name(),
        catalog=catalog.ids(),
        max_storage_entries=user_namespace.max_entries,
    )

    return {
        "settings": app_settings,
        "config": config,
        "http_client": http_client,
        "owns_http_client": owns_client,
        "kv_store": kv_store,
        "memory_cache": memory_cache,
        "indexed_store": indexed_store,
        "coalescer": coalescer,
        "resource_cache": resource_cache,
        "resource_loader": resource_loader,
        "user_info_provider": user_info_provider,
        "user_data_service": user_data_service,
        "catalog": catalog,
        "module_settings": module_settings,
        "registry": registry,
        "bootstrap": bootstrap,
    }


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


async def start(container: dict[str, Any]) -> None:
    """Prepare resources that need async setup (the SQLite table)."""
    kv_store = container["kv_store"]
    if isinstance(kv_store, SQLiteKeyValueStore):
        await kv_store.initialize()


async def shutdown(container: dict[str, Any]) -> None:
    """Release the shared HTTP client if the container created it."""
    if container.get("owns_http_client"):
        await container["http_client"].aclose()


async def run_bootstrap(container: dict[str, Any]) -> BootstrapReport:
    """Run the module bootstrap and log its summary."""
    report = await container["bootstrap"].run()
    _logger.info(
        "bootstrap_report",
        manifest_loaded=report.manifest_loaded,
        loaded=report.loaded,
        failed=sorted(report.failed),
        initialised=report.initialised,
    )
    return report


async def wait_for_modules(container: dict[str, Any], timeout: float | None = None) -> bool:
    """Wait for the registry to become ready; ``False`` on timeout."""
    if timeout is None:
        modules_cfg = container["config"].get("modules", {})
        timeout = float(
            modules_cfg.get("readiness_timeout_seconds", container["settings"].readiness_timeout_seconds)
        )
    try:
        await container["registry"].wait_until_ready(timeout)
    except ReadinessTimeoutError as exc:
        _logger.warning("module_system_not_ready", error=str(exc))
        return False
    return True


async def _run(app_settings: Settings) -> int:
    container = build_container(app_settings)
    try:
        await start(container)
        report = await run_bootstrap(container)
    finally:
        await shutdown(container)
    return 0 if report.manifest_loaded and not report.failed else 1


def main() -> None:
    """Run the bootstrap once and exit with its status."""
    app_settings = Settings()
    configure_logging(
        log_level=app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
    )
    sys.exit(asyncio.run(_run(app_settings)))


if __name__ == "__main__":
    main()
