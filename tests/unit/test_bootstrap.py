"""Unit tests for ModuleCatalog and Bootstrap."""

from __future__ import annotations

import json

import httpx
import pytest
import pytest_asyncio

from nsaide.interfaces.feature_module import IFeatureModule
from nsaide.models.module import ModuleInfo
from nsaide.modules.catalog import ModuleCatalog
from nsaide.providers.cache.ttl_cache import TTLCache
from nsaide.providers.http.resource_fetcher import HttpResourceFetcher
from nsaide.services.bootstrap import Bootstrap
from nsaide.services.module_registry import ModuleRegistry
from nsaide.services.module_settings import ModuleSettings
from nsaide.services.resource_loader import RemoteResourceLoader
from nsaide.utils.errors import ConfigurationError, ManifestError, ModuleLoadError

CONFIG_URL = "https://config.test/modules/config.json"


class PayloadModule(IFeatureModule):
    """Module that keeps the payload text it was built from."""

    def __init__(self, module_id: str, payload: str = "", fail_init: bool = False) -> None:
        self._id = module_id
        self.payload = payload
        self.fail_init = fail_init
        self.initialised = False

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return f"Module {self._id}"

    async def init(self) -> None:
        if self.fail_init:
            raise RuntimeError("init failed")
        self.initialised = True


def _manifest(*ids: str) -> dict:
    return {"modules": [{"id": i, "name": i.title(), "url": f"https://cdn.test/{i}.js"} for i in ids]}


class Site:
    """Mock remote host serving a manifest and module payloads."""

    def __init__(self) -> None:
        self.manifest_body: str | None = json.dumps(_manifest())
        self.failing_payloads: set[str] = set()
        self.requests: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(f"{request.url.scheme}://{request.url.host}{request.url.path}")
        if request.url.host == "config.test":
            if self.manifest_body is None:
                return httpx.Response(503)
            return httpx.Response(200, text=self.manifest_body)
        module_id = request.url.path.strip("/").removesuffix(".js")
        if module_id in self.failing_payloads:
            return httpx.Response(404)
        return httpx.Response(200, text=f"payload:{module_id}")


@pytest.fixture()
def site() -> Site:
    return Site()


@pytest_asyncio.fixture
async def loader(site: Site, kv_store, clock):
    client = httpx.AsyncClient(transport=httpx.MockTransport(site.handler))
    yield RemoteResourceLoader(
        HttpResourceFetcher(http_client=client, clock=clock),
        TTLCache(kv_store, ttl_seconds=1800, clock=clock),
    )
    await client.aclose()


@pytest.fixture()
def registry(kv_store) -> ModuleRegistry:
    return ModuleRegistry(ModuleSettings(kv_store))


@pytest.fixture()
def catalog() -> ModuleCatalog:
    cat = ModuleCatalog()
    for module_id in ("alpha", "beta"):
        cat.register(module_id, lambda info, payload: PayloadModule(info.id, payload))
    cat.register("broken", lambda info, payload: PayloadModule(info.id, payload, fail_init=True))
    return cat


@pytest.fixture()
def bootstrap(loader, registry, catalog) -> Bootstrap:
    return Bootstrap(loader, registry, catalog, CONFIG_URL)


# ======================================================================
# ModuleCatalog
# ======================================================================


class TestModuleCatalog:
    def test_resolve_unknown_raises(self, catalog: ModuleCatalog) -> None:
        with pytest.raises(ModuleLoadError) as exc_info:
            catalog.resolve("ghost")
        assert exc_info.value.module_id == "ghost"

    def test_duplicate_registration_rejected(self, catalog: ModuleCatalog) -> None:
        with pytest.raises(ConfigurationError):
            catalog.register("alpha", lambda info, payload: PayloadModule("alpha"))

    def test_register_instance(self) -> None:
        module = PayloadModule("solo")
        cat = ModuleCatalog()
        cat.register_instance(module)
        assert "solo" in cat
        assert cat.resolve("solo")(ModuleInfo(id="solo"), "") is module

    def test_restricted_to(self, catalog: ModuleCatalog) -> None:
        narrowed = catalog.restricted_to(["beta", "ghost"])
        assert narrowed.ids() == ["beta"]
        assert "alpha" in catalog


# ======================================================================
# Manifest
# ======================================================================


class TestLoadManifest:
    @pytest.mark.asyncio
    async def test_parses_and_caches(self, bootstrap: Bootstrap, site: Site, kv_store) -> None:
        site.manifest_body = json.dumps(_manifest("alpha"))
        manifest = await bootstrap.load_manifest()

        assert [m.id for m in manifest.modules] == ["alpha"]
        assert "ns_config_cache" in kv_store

        await bootstrap.load_manifest()
        assert site.requests.count(CONFIG_URL) == 1

    @pytest.mark.asyncio
    async def test_unknown_manifest_fields_ignored(self, bootstrap: Bootstrap, site: Site) -> None:
        site.manifest_body = json.dumps(
            {"version": 3, "modules": [{"id": "alpha", "url": "https://cdn.test/alpha.js", "extra": True}]}
        )
        manifest = await bootstrap.load_manifest()
        assert manifest.modules[0].display_name == "alpha"

    @pytest.mark.asyncio
    async def test_http_failure_raises_manifest_error(self, bootstrap: Bootstrap, site: Site, kv_store) -> None:
        site.manifest_body = None
        with pytest.raises(ManifestError):
            await bootstrap.load_manifest()
        assert "ns_config_cache" not in kv_store

    @pytest.mark.asyncio
    async def test_malformed_manifest_is_not_kept(self, bootstrap: Bootstrap, site: Site, kv_store) -> None:
        site.manifest_body = "<html>rate limited</html>"
        with pytest.raises(ManifestError):
            await bootstrap.load_manifest()
        assert "ns_config_cache" not in kv_store


# ======================================================================
# Module loading
# ======================================================================


class TestLoadModule:
    @pytest.mark.asyncio
    async def test_builds_with_cached_payload(self, bootstrap: Bootstrap, registry, kv_store) -> None:
        info = ModuleInfo(id="alpha", name="Alpha", url="https://cdn.test/alpha.js")
        assert await bootstrap.load_module(info) == "alpha"

        module = registry.get("alpha").module
        assert module.payload == "payload:alpha"
        assert "ns_module_cache_alpha" in kv_store

    @pytest.mark.asyncio
    async def test_uncatalogued_module_is_never_fetched(self, bootstrap: Bootstrap, site: Site) -> None:
        with pytest.raises(ModuleLoadError):
            await bootstrap.load_module(ModuleInfo(id="ghost", url="https://cdn.test/ghost.js"))
        assert site.requests == []

    @pytest.mark.asyncio
    async def test_payload_failure(self, bootstrap: Bootstrap, site: Site, registry) -> None:
        site.failing_payloads.add("alpha")
        with pytest.raises(ModuleLoadError) as exc_info:
            await bootstrap.load_module(ModuleInfo(id="alpha", url="https://cdn.test/alpha.js"))
        assert exc_info.value.module_id == "alpha"
        assert registry.get("alpha") is None

    @pytest.mark.asyncio
    async def test_factory_failure(self, loader, registry) -> None:
        def explode(info, payload):
            raise ValueError("bad payload")

        cat = ModuleCatalog()
        cat.register("alpha", explode)
        boot = Bootstrap(loader, registry, cat, CONFIG_URL)

        with pytest.raises(ModuleLoadError, match="bad payload"):
            await boot.load_module(ModuleInfo(id="alpha"))


# ======================================================================
# Full run
# ======================================================================


class TestRun:
    @pytest.mark.asyncio
    async def test_loads_and_initialises(self, bootstrap: Bootstrap, site: Site, registry) -> None:
        site.manifest_body = json.dumps(_manifest("alpha", "beta"))

        report = await bootstrap.run()

        assert report.manifest_loaded
        assert sorted(report.loaded) == ["alpha", "beta"]
        assert sorted(report.initialised) == ["alpha", "beta"]
        assert registry.is_ready

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self, bootstrap: Bootstrap, site: Site, registry) -> None:
        site.manifest_body = json.dumps(_manifest("alpha", "beta", "ghost", "broken"))
        site.failing_payloads.add("beta")

        report = await bootstrap.run()

        assert sorted(report.loaded) == ["alpha", "broken"]
        assert sorted(report.failed) == ["beta", "ghost"]
        assert report.initialised == ["alpha"]
        assert registry.get("alpha").module.initialised
        assert registry.is_ready

    @pytest.mark.asyncio
    async def test_manifest_failure_is_reported(self, bootstrap: Bootstrap, site: Site, registry) -> None:
        site.manifest_body = None

        report = await bootstrap.run()

        assert not report.manifest_loaded
        assert report.error
        assert not registry.is_ready

    @pytest.mark.asyncio
    async def test_no_modules_skips_init(self, bootstrap: Bootstrap, site: Site, registry) -> None:
        site.manifest_body = json.dumps(_manifest("ghost"))

        report = await bootstrap.run()

        assert report.manifest_loaded
        assert report.init_outcomes == []
        assert not registry.is_ready
