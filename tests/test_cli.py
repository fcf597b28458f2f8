"""Tests for server_recall.cli — commands run against an isolated data dir."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from server_recall import __version__
from server_recall.cli import app
from server_recall.stores import ServerStores
from server_recall.utils import console

runner = CliRunner()


@pytest.fixture()
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data = tmp_path / "data"
    monkeypatch.setenv("SERVER_RECALL_HOME", str(data))
    monkeypatch.delenv("SERVER_RECALL_CONFIG", raising=False)
    return data.resolve()


def flat(text: str) -> str:
    """Collapse Rich line wrapping."""
    return " ".join(text.split())


def invoke(*args: str):
    return runner.invoke(app, list(args))


class TestConnect:
    def test_records_recent_and_history(self, home: Path):
        result = invoke("connect", "10.0.0.1:1000", "--name", "Box")
        assert result.exit_code == 0, result.output
        assert "10.0.0.1:1000" in flat(result.output)

        stores = ServerStores(home)
        assert [e.address for e in stores.recent.snapshot()] == ["10.0.0.1:1000"]
        assert stores.history.find("10.0.0.1", 1000).display_name == "Box"

    def test_default_port(self, home: Path):
        assert invoke("connect", "play.example.net").exit_code == 0
        assert ServerStores(home).recent.snapshot()[0].port == 38465

    def test_default_port_from_config(self, home: Path):
        home.mkdir(parents=True)
        (home / "config.yaml").write_text("version: 1\ndefault_port: 25565\n")
        assert invoke("connect", "play.example.net").exit_code == 0
        assert ServerStores(home).recent.snapshot()[0].port == 25565

    def test_invalid_port(self, home: Path):
        result = invoke("connect", "10.0.0.1:99999")
        assert result.exit_code == 1
        assert "Invalid port" in flat(result.output)
        assert not (home / "RecentServers.json").exists()

    def test_bad_config_exits(self, home: Path):
        home.mkdir(parents=True)
        (home / "config.yaml").write_text("version: 99\n")
        result = invoke("connect", "10.0.0.1:1000")
        assert result.exit_code == 1
        assert "Unsupported config version" in flat(result.output)


class TestFavorites:
    def test_add_and_list(self, home: Path):
        assert invoke("fav", "add", "10.0.0.1:1000", "--name", "Home").exit_code == 0
        result = invoke("ls", "favorites")
        assert result.exit_code == 0, result.output
        assert "Home" in flat(result.output)
        assert "10.0.0.1" in flat(result.output)

    def test_rm(self, home: Path):
        invoke("fav", "add", "10.0.0.1:1000")
        result = invoke("fav", "rm", "10.0.0.1:1000")
        assert result.exit_code == 0
        assert ServerStores(home).favorites.snapshot() == []

    def test_rm_absent_is_not_an_error(self, home: Path):
        result = invoke("fav", "rm", "10.0.0.9:1000")
        assert result.exit_code == 0
        assert "not a favorite" in flat(result.output)

    def test_toggle(self, home: Path):
        invoke("fav", "toggle", "10.0.0.1:1000")
        assert len(ServerStores(home).favorites) == 1
        invoke("fav", "toggle", "10.0.0.1:1000")
        assert len(ServerStores(home).favorites) == 0


class TestManage:
    def test_ls_all(self, home: Path):
        result = invoke("ls")
        assert result.exit_code == 0
        for label in ("Favorites", "History", "Recent Servers"):
            assert label in result.output

    def test_ls_unknown_store(self, home: Path):
        result = invoke("ls", "bookmarks")
        assert result.exit_code == 1
        assert "Unknown store" in flat(result.output)

    def test_rm_from_recent(self, home: Path):
        invoke("connect", "10.0.0.1:1000")
        invoke("connect", "10.0.0.2:1000")
        assert invoke("rm", "recent", "10.0.0.1:1000").exit_code == 0
        assert [e.host for e in ServerStores(home).recent.snapshot()] == ["10.0.0.2"]

    def test_clear_with_yes(self, home: Path):
        invoke("connect", "10.0.0.1:1000")
        result = invoke("clear", "history", "--yes")
        assert result.exit_code == 0
        assert json.loads((home / "server_history.json").read_text()) == []
        assert len(ServerStores(home).recent) == 1

    def test_clear_cancelled(self, home: Path):
        invoke("connect", "10.0.0.1:1000")
        result = runner.invoke(app, ["clear", "recent"], input="n\n")
        assert result.exit_code == 0
        assert "Cancelled" in flat(result.output)
        assert len(ServerStores(home).recent) == 1

    def test_rename(self, home: Path):
        invoke("connect", "10.0.0.1:1000")
        invoke("connect", "10.0.0.2:1000")
        assert invoke("rename", "10.0.0.1:1000", "Renamed").exit_code == 0
        history = ServerStores(home).history.snapshot()
        assert [e.host for e in history] == ["10.0.0.2", "10.0.0.1"]
        assert history[1].display_name == "Renamed"

    def test_rename_absent(self, home: Path):
        result = invoke("rename", "10.0.0.9:1000", "Ghost")
        assert result.exit_code == 0
        assert "not in history" in flat(result.output)

    def test_corrupt_store_does_not_block(self, home: Path):
        home.mkdir(parents=True)
        (home / "RecentServers.json").write_text("{{{")
        result = invoke("connect", "10.0.0.1:1000")
        assert result.exit_code == 0
        assert [e.host for e in ServerStores(home).recent.snapshot()] == ["10.0.0.1"]


class TestMisc:
    def test_version(self):
        result = invoke("--version")
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_config_ok(self, home: Path):
        result = invoke("config")
        assert result.exit_code == 0
        assert "using defaults" in flat(result.output)

    def test_config_bad(self, home: Path):
        home.mkdir(parents=True)
        (home / "config.yaml").write_text("- not\n- a mapping\n")
        result = invoke("config")
        assert result.exit_code == 1
        assert "must be a YAML mapping" in flat(result.output)

    def test_config_shows_configured_data_dir(self, home: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(console, "width", 400)
        home.mkdir(parents=True)
        (home / "config.yaml").write_text("version: 1\ndata_dir: elsewhere\n")
        result = invoke("config")
        assert result.exit_code == 0, result.output
        assert f"Data dir: {home / 'elsewhere'}" in flat(result.output)
