"""Tests for server_recall.stores — the favorites/history/recent configurations."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from server_recall.config import STORE_NAMES, Settings
from server_recall.store import EvictionPolicy
from server_recall.stores import (
    FAVORITES,
    HISTORY,
    RECENT,
    STORE_SPECS,
    HistoryStore,
    ServerStores,
    UnknownStoreError,
    spec_for,
)


@pytest.fixture()
def stores(tmp_path: Path, clock) -> ServerStores:
    return ServerStores(tmp_path, clock=clock)


class TestSpecs:
    def test_store_table(self):
        assert (FAVORITES.file_name, FAVORITES.capacity, FAVORITES.policy) == (
            "server_favorites.json", 100, EvictionPolicy.FIFO,
        )
        assert (HISTORY.file_name, HISTORY.capacity, HISTORY.policy) == (
            "server_history.json", 10, EvictionPolicy.RECENCY,
        )
        assert (RECENT.file_name, RECENT.capacity, RECENT.policy) == (
            "RecentServers.json", 5, EvictionPolicy.RECENCY,
        )

    def test_only_history_sorts_on_load(self):
        assert HISTORY.sort_on_load
        assert not FAVORITES.sort_on_load
        assert not RECENT.sort_on_load

    def test_config_store_names_match_specs(self):
        assert tuple(s.name for s in STORE_SPECS) == STORE_NAMES

    def test_spec_for_unknown(self):
        with pytest.raises(UnknownStoreError, match="Unknown store 'bogus'"):
            spec_for("bogus")


class TestServerStores:
    def test_paths_and_types(self, stores: ServerStores, tmp_path: Path):
        assert stores.favorites.path == tmp_path / "server_favorites.json"
        assert stores.history.path == tmp_path / "server_history.json"
        assert stores.recent.path == tmp_path / "RecentServers.json"
        assert isinstance(stores.history, HistoryStore)

    def test_get(self, stores: ServerStores):
        assert stores.get("recent") is stores.recent
        with pytest.raises(UnknownStoreError):
            stores.get("nope")

    def test_capacity_overrides(self, tmp_path: Path, clock):
        stores = ServerStores(tmp_path, capacities={"recent": 2}, clock=clock)
        assert stores.recent.capacity == 2
        assert stores.history.capacity == 10

    def test_stores_are_independent(self, stores: ServerStores):
        stores.recent.upsert("10.0.0.1", 1000)
        assert stores.favorites.snapshot() == []
        assert stores.history.snapshot() == []

    def test_open_loads_from_settings(self, tmp_path: Path, clock):
        (tmp_path / "RecentServers.json").write_text(json.dumps([{"ip": "10.0.0.1", "port": 1000}]))
        (tmp_path / "server_favorites.json").write_text("garbage")
        stores = ServerStores.open(Settings(data_dir=tmp_path), clock=clock)
        assert [e.address for e in stores.recent.snapshot()] == ["10.0.0.1:1000"]
        assert stores.favorites.snapshot() == []
        assert stores.history.snapshot() == []

    def test_open_applies_configured_capacities(self, tmp_path: Path, clock):
        settings = Settings(data_dir=tmp_path, capacities={"recent": 2, "favorites": 7})
        stores = ServerStores.open(settings, clock=clock)
        assert stores.recent.capacity == settings.capacity_for("recent", RECENT.capacity) == 2
        assert stores.favorites.capacity == 7
        assert stores.history.capacity == HISTORY.capacity

    def test_separate_instances_do_not_share_state(self, tmp_path: Path, clock):
        a = ServerStores(tmp_path / "a", clock=clock)
        b = ServerStores(tmp_path / "b", clock=clock)
        a.favorites.upsert("10.0.0.1", 1000)
        assert b.favorites.snapshot() == []


class TestHistory:
    def test_sorted_by_last_connected_on_load(self, tmp_path: Path, clock):
        (tmp_path / "server_history.json").write_text(json.dumps([
            {"ip": "b", "port": 1, "lastConnected": "2024-01-02T00:00:00+00:00"},
            {"ip": "c", "port": 1, "lastConnected": "2024-01-03T00:00:00+00:00"},
            {"ip": "a", "port": 1, "lastConnected": "2024-01-01T00:00:00+00:00"},
        ]))
        (tmp_path / "server_favorites.json").write_text(json.dumps([
            {"ip": "b", "port": 1, "lastConnected": "2024-01-02T00:00:00+00:00"},
            {"ip": "c", "port": 1, "lastConnected": "2024-01-03T00:00:00+00:00"},
        ]))
        stores = ServerStores(tmp_path, clock=clock)
        assert [e.host for e in stores.history.snapshot()] == ["c", "b", "a"]
        assert [e.host for e in stores.favorites.snapshot()] == ["b", "c"]

    def test_update_display_name_keeps_position_and_time(self, stores: ServerStores):
        stores.history.upsert("10.0.0.1", 1000)
        stores.history.upsert("10.0.0.2", 1000)
        before = stores.history.snapshot()

        assert stores.history.update_display_name("10.0.0.1", 1000, "Old Faithful") is True

        after = stores.history.snapshot()
        assert [e.address for e in after] == [e.address for e in before]
        assert after[1].display_name == "Old Faithful"
        assert after[1].last_contact == before[1].last_contact

    def test_update_display_name_persists(self, stores: ServerStores, tmp_path: Path, clock):
        stores.history.upsert("10.0.0.1", 1000)
        stores.history.update_display_name("10.0.0.1", 1000, "Named")
        fresh = ServerStores(tmp_path, clock=clock)
        assert fresh.history.find("10.0.0.1", 1000).display_name == "Named"

    def test_update_display_name_absent(self, stores: ServerStores):
        assert stores.history.update_display_name("10.0.0.9", 1000, "Ghost") is False
        assert stores.history.snapshot() == []

    def test_update_display_name_empty_clears(self, stores: ServerStores):
        stores.history.upsert("10.0.0.1", 1000, "Named")
        stores.history.update_display_name("10.0.0.1", 1000, "")
        assert stores.history.find("10.0.0.1", 1000).display_text == "10.0.0.1:1000"

    def test_history_capacity(self, stores: ServerStores):
        for i in range(15):
            stores.history.upsert(f"10.0.0.{i}", 1000)
        snap = stores.history.snapshot()
        assert len(snap) == 10
        assert snap[0].host == "10.0.0.14"
        assert snap[-1].host == "10.0.0.5"
