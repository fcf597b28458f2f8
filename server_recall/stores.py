"""The three concrete server lists: favorites, history and recent servers.

Each is a ``BoundedStore`` configured by a ``StoreSpec``. ``ServerStores``
bundles one instance of each for a data directory and is handed to whatever
front end needs them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path

from server_recall.config import Settings
from server_recall.entry import utcnow
from server_recall.store import BoundedStore, EvictionPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StoreSpec:
    """Static configuration of one server list."""

    name: str
    label: str
    file_name: str
    capacity: int
    policy: EvictionPolicy
    sort_on_load: bool = False


FAVORITES = StoreSpec(
    name="favorites",
    label="Favorites",
    file_name="server_favorites.json",
    capacity=100,
    policy=EvictionPolicy.FIFO,
)

HISTORY = StoreSpec(
    name="history",
    label="History",
    file_name="server_history.json",
    capacity=10,
    policy=EvictionPolicy.RECENCY,
    sort_on_load=True,
)

RECENT = StoreSpec(
    name="recent",
    label="Recent Servers",
    file_name="RecentServers.json",
    capacity=5,
    policy=EvictionPolicy.RECENCY,
)

STORE_SPECS: tuple[StoreSpec, ...] = (FAVORITES, HISTORY, RECENT)


class UnknownStoreError(KeyError):
    """Raised when a store is looked up by a name that does not exist."""

    def __str__(self) -> str:
        names = ", ".join(s.name for s in STORE_SPECS)
        return f"Unknown store '{self.args[0]}'. Expected one of: {names}."


class HistoryStore(BoundedStore):
    """Connection history; also lets a server's reported name be filled in later."""

    def update_display_name(self, host: str, port: int, name: str | None) -> bool:
        """Rename an existing entry without touching its position or timestamp.

        Returns False (and does nothing) when the server is not in history.
        """
        with self._lock:
            self._ensure_loaded()
            index = self._index_of(host, port)
            if index is None:
                return False
            entry = replace(self._entries[index], display_name=name or None)
            self._replace_at(index, entry)
            logger.debug("Renamed %s entry %s to %r", self.name, entry.address, entry.display_name)
            return True


def build_store(
    spec: StoreSpec,
    data_dir: Path,
    *,
    capacity: int | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> BoundedStore:
    """Instantiate the store described by *spec* under *data_dir* (not loaded yet)."""
    cls = HistoryStore if spec is HISTORY else BoundedStore
    return cls(
        data_dir / spec.file_name,
        capacity or spec.capacity,
        spec.policy,
        name=spec.name,
        sort_on_load=spec.sort_on_load,
        clock=clock,
    )


class ServerStores:
    """Favorites, history and recent servers for one data directory."""

    def __init__(
        self,
        data_dir: Path,
        *,
        capacities: dict[str, int] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        capacities = capacities or {}
        self.data_dir = data_dir
        self.favorites = build_store(FAVORITES, data_dir, capacity=capacities.get("favorites"), clock=clock)
        history = build_store(HISTORY, data_dir, capacity=capacities.get("history"), clock=clock)
        assert isinstance(history, HistoryStore)
        self.history: HistoryStore = history
        self.recent = build_store(RECENT, data_dir, capacity=capacities.get("recent"), clock=clock)

    @classmethod
    def open(
        cls,
        settings: Settings,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> ServerStores:
        """Build all three stores from *settings* and load them from disk."""
        capacities = {spec.name: settings.capacity_for(spec.name, spec.capacity) for spec in STORE_SPECS}
        stores = cls(settings.data_dir, capacities=capacities, clock=clock)
        for store in stores:
            store.load()
        return stores

    def __iter__(self) -> Iterator[BoundedStore]:
        return iter((self.favorites, self.history, self.recent))

    def get(self, name: str) -> BoundedStore:
        for store in self:
            if store.name == name:
                return store
        raise UnknownStoreError(name)


def spec_for(name: str) -> StoreSpec:
    for spec in STORE_SPECS:
        if spec.name == name:
            return spec
    raise UnknownStoreError(name)
