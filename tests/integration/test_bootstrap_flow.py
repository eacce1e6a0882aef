"""Integration tests: full container over SQLite across simulated sessions.

Each "session" builds a fresh container against the same database file, the
way consecutive page loads share one userscript storage area.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import httpx
import pytest

from nsaide.main import build_container, run_bootstrap, shutdown, start, wait_for_modules
from nsaide.providers.kv_store.sqlite_kv_store import SQLiteKeyValueStore

MANIFEST = {"modules": [{"id": "userDataService", "name": "用户数据服务", "url": "https://cdn.test/uds.js"}]}
USERS = {str(i): {"member_id": i, "member_name": f"user{i}"} for i in range(1, 6)}


class Session:
    """One application run against a shared database file."""

    def __init__(self, db_path: Path, settings, config, clock, forum_handler, manifest=MANIFEST) -> None:
        self.calls: list[str] = []
        self.client = httpx.AsyncClient(
            transport=httpx.MockTransport(forum_handler(manifest, USERS, self.calls))
        )
        self.kv_store = SQLiteKeyValueStore(db_path=db_path)
        self.container = build_container(
            settings, config=config, kv_store=self.kv_store, http_client=self.client, clock=clock
        )

    async def __aenter__(self) -> Session:
        await start(self.container)
        return self

    async def __aexit__(self, *exc_info) -> None:
        await shutdown(self.container)
        await self.client.aclose()

    @property
    def user_calls(self) -> int:
        return sum(1 for path in self.calls if path.startswith("/api/account/getInfo/"))


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "nsaide_kv.db"


@pytest.fixture()
def open_session(db_path, test_settings, mock_config, clock, forum_handler):
    def factory(config=None, manifest=MANIFEST) -> Session:
        return Session(db_path, test_settings, config or mock_config, clock, forum_handler, manifest)

    return factory


class TestBootstrapFlow:
    @pytest.mark.asyncio
    async def test_bootstrap_then_lookup(self, open_session) -> None:
        async with open_session() as session:
            report = await run_bootstrap(session.container)
            assert report.initialised == ["userDataService"]
            assert await wait_for_modules(session.container, timeout=0.5)

            service = session.container["user_data_service"]
            results = await asyncio.gather(*(service.get_user_info("3") for _ in range(8)))

            assert results == [USERS["3"]] * 8
            assert session.user_calls == 1

    @pytest.mark.asyncio
    async def test_second_session_reuses_persistent_cache(self, open_session) -> None:
        async with open_session() as first:
            await run_bootstrap(first.container)
            await first.container["user_data_service"].get_user_info("1")

        async with open_session() as second:
            report = await run_bootstrap(second.container)
            info = await second.container["user_data_service"].get_user_info("1")

            assert info == USERS["1"]
            assert second.user_calls == 0
            assert "/modules/config.json" not in second.calls
            assert report.manifest_loaded

    @pytest.mark.asyncio
    async def test_init_sweeps_expired_entries(self, open_session, clock) -> None:
        async with open_session() as first:
            service = first.container["user_data_service"]
            await service.get_user_info("1")
            clock.advance(1000)
            await service.get_user_info("2")

        clock.advance(1000)

        async with open_session() as second:
            await run_bootstrap(second.container)
            reconcile = second.container["user_data_service"].last_reconcile
            assert (reconcile.kept, reconcile.removed) == (1, 1)
            assert await second.container["indexed_store"].index("user_data") == ["2"]

    @pytest.mark.asyncio
    async def test_storage_bound_holds_across_sessions(self, open_session, mock_config) -> None:
        config = json.loads(json.dumps(mock_config))
        config["cache"]["user_data"]["max_storage_entries"] = 2

        async with open_session(config=config) as first:
            for uid in ("1", "2", "3"):
                await first.container["user_data_service"].get_user_info(uid)

        async with open_session(config=config) as second:
            store = second.container["indexed_store"]
            assert await store.index("user_data") == ["2", "3"]
            assert await second.kv_store.get("ns_user_data_cache_1") is None

            await second.container["user_data_service"].get_user_info("1")
            assert second.user_calls == 1
            assert await store.index("user_data") == ["3", "1"]

    @pytest.mark.asyncio
    async def test_manifest_outage_times_out_readiness(self, open_session) -> None:
        async with open_session(manifest=None) as session:
            report = await run_bootstrap(session.container)
            assert not report.manifest_loaded
            assert not await wait_for_modules(session.container, timeout=0.01)

            info = await session.container["user_data_service"].get_user_info("4")
            assert info == USERS["4"]

    @pytest.mark.asyncio
    async def test_disabled_module_persists(self, open_session) -> None:
        async with open_session() as first:
            await first.container["registry"].set_enabled("userDataService", False)

        async with open_session() as second:
            report = await run_bootstrap(second.container)
            assert report.loaded == ["userDataService"]
            assert report.initialised == []
            assert not second.container["registry"].get("userDataService").enabled
