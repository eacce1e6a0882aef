"""Shared pytest fixtures for the nsaide test suite."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import httpx
import pytest
import structlog
from structlog.testing import LogCapture

from nsaide.config.settings import Settings
from nsaide.interfaces.kv_store import IKeyValueStore
from nsaide.providers.cache.indexed_store import CacheNamespace, IndexedBoundedStore
from nsaide.providers.cache.memory_cache import MemoryCache
from nsaide.providers.kv_store.memory_kv_store import MemoryKeyValueStore

# Fixed starting point for the fake clock (2025-01-01T00:00:00Z).
T0_MS = 1_735_689_600_000

CONFIG_URL = "https://config.test/modules/config.json"
FORUM_URL = "https://forum.test"


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, start_ms: int = T0_MS) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


class FlakyKeyValueStore(MemoryKeyValueStore):
    """Memory store whose reads or writes can be made to fail per key."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__(initial)
        self.fail_get: set[str] = set()
        self.fail_set: set[str] = set()

    async def get(self, key: str) -> str | None:
        if key in self.fail_get:
            raise OSError(f"read failed for {key}")
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        if key in self.fail_set:
            raise OSError(f"write failed for {key}")
        await super().set(key, value)


class YieldingKeyValueStore(MemoryKeyValueStore):
    """Memory store that suspends on every read and write.

    Each call gives the event loop a chance to run other tasks, the way a
    real storage round-trip would, so unguarded read-modify-write sequences
    interleave.
    """

    async def get(self, key: str) -> str | None:
        await asyncio.sleep(0)
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.sleep(0)
        await super().set(key, value)


def _entry_json(data: Any, timestamp: int) -> str:
    """Serialise a cache entry the way it is stored."""
    return json.dumps({"data": data, "timestamp": timestamp})


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def log_output() -> LogCapture:
    """Collect structlog events in memory instead of printing them.

    Keeps stdout free for command output and lets tests assert on events.
    """
    capture = LogCapture()
    structlog.configure(
        processors=[capture],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        logger_factory=structlog.ReturnLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    return capture


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def flaky_store() -> FlakyKeyValueStore:
    return FlakyKeyValueStore()


@pytest.fixture
def yielding_store() -> YieldingKeyValueStore:
    return YieldingKeyValueStore()


@pytest.fixture
def user_namespace() -> CacheNamespace:
    return CacheNamespace(
        name="user_data",
        key_prefix="ns_user_data_cache",
        index_key="ns_user_data_cache_index",
        max_entries=500,
        ttl_seconds=1800,
    )


@pytest.fixture
def indexed_store(
    kv_store: IKeyValueStore, user_namespace: CacheNamespace, clock: FakeClock
) -> IndexedBoundedStore:
    return IndexedBoundedStore(kv_store, namespaces=[user_namespace], clock=clock)


@pytest.fixture
def memory_cache(clock: FakeClock) -> MemoryCache:
    return MemoryCache(max_entries=200, ttl_seconds=1800, clock=clock)


@pytest.fixture
def test_settings() -> Settings:
    """Settings with in-memory storage and test hostnames."""
    return Settings(
        _env_file=None,
        config_url=CONFIG_URL,
        forum_base_url=FORUM_URL,
        kv_backend="memory",
        readiness_timeout_seconds=0.5,
    )


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Return a minimal resolved configuration for container tests."""
    return {
        "app": {"name": "nsaide", "version": "0.1.1"},
        "http": {"user_agent": "nsaide-test"},
        "cache": {
            "resources": {
                "ttl_seconds": 1800,
                "module_key_prefix": "ns_module_cache_",
                "config_key": "ns_config_cache",
            },
            "user_data": {
                "ttl_seconds": 1800,
                "max_memory_entries": 200,
                "max_storage_entries": 500,
                "key_prefix": "ns_user_data_cache",
                "index_key": "ns_user_data_cache_index",
            },
        },
        "modules": {"builtin": ["userDataService"], "readiness_timeout_seconds": 0.5},
    }


def _forum_handler(
    manifest: dict[str, Any] | None = None,
    users: dict[str, dict[str, Any]] | None = None,
    calls: list[str] | None = None,
):
    """Build an ``httpx.MockTransport`` handler for the manifest and user API.

    Unknown users answer ``{"success": false}``; a ``None`` manifest answers 404.
    """
    users = users or {}

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request.url.path)
        if request.url.host == "config.test":
            if manifest is None:
                return httpx.Response(404, text="not found")
            return httpx.Response(200, text=json.dumps(manifest))
        if request.url.path.startswith("/api/account/getInfo/"):
            uid = request.url.path.rsplit("/", 1)[-1]
            if uid in users:
                return httpx.Response(200, json={"success": True, "detail": users[uid]})
            return httpx.Response(200, json={"success": False, "message": "no such user"})
        return httpx.Response(200, text="// module payload")

    return handler


@pytest.fixture
def entry_json():
    """Serialiser for raw stored cache entries."""
    return _entry_json


@pytest.fixture
def forum_handler():
    """Factory for mock-transport handlers serving the manifest and user API."""
    return _forum_handler


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
