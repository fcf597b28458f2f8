"""Bounded, deduplicated, persistent server lists.

A ``BoundedStore`` keeps an ordered list of ``ServerEntry`` values backed by
one JSON file. Entries are unique by (host, port) with case-insensitive host
comparison, the list never grows past its capacity, and every mutation is
written straight back to disk.

Two orderings are supported:

  - ``EvictionPolicy.FIFO``: insertion order; new entries append at the
    tail, overflow drops the head (oldest inserted).
  - ``EvictionPolicy.RECENCY``: most recent first; every touch moves the
    entry to the head, overflow drops the tail (least recently used).
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from enum import Enum
from pathlib import Path

from server_recall.entry import ServerEntry, normalize_host, utcnow
from server_recall.persistence import ReadResult, WriteResult, read_entries, write_entries

logger = logging.getLogger(__name__)


class EvictionPolicy(str, Enum):
    FIFO = "fifo"
    RECENCY = "recency"


class BoundedStore:
    """An ordered, capacity-bounded list of servers persisted as JSON."""

    def __init__(
        self,
        path: Path,
        capacity: int,
        policy: EvictionPolicy,
        *,
        name: str = "",
        sort_on_load: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"Store capacity must be at least 1, got {capacity}.")
        self.path = path
        self.capacity = capacity
        self.policy = policy
        self.name = name or path.stem
        self.sort_on_load = sort_on_load
        self._clock = clock
        self._entries: list[ServerEntry] = []
        self._loaded = False
        self._lock = threading.RLock()
        self.last_write: WriteResult | None = None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, path={str(self.path)!r}, "
            f"capacity={self.capacity}, policy={self.policy.value})"
        )

    def __len__(self) -> int:
        with self._lock:
            self._ensure_loaded()
            return len(self._entries)

    @property
    def recency_ordered(self) -> bool:
        return self.policy is EvictionPolicy.RECENCY

    # ---------- loading ----------

    def load(self) -> ReadResult:
        """(Re)load entries from the backing file.

        Never raises: a missing file gives an empty store, and unreadable or
        malformed content is logged and also gives an empty store.
        """
        with self._lock:
            result = read_entries(self.path)
            if result.missing:
                logger.debug("No %s file at %s, starting empty", self.name, self.path)
            elif not result.ok:
                logger.warning("Could not load %s, starting empty: %s", self.name, result.error)
            elif result.skipped:
                logger.warning("Skipped %d malformed %s entries in %s", result.skipped, self.name, self.path)

            entries = self._dedupe(result.entries)
            if self.sort_on_load:
                entries.sort(key=lambda e: e.last_contact, reverse=True)
            self._entries = entries
            self._evict()
            self._loaded = True
            logger.debug("Loaded %d %s entries", len(self._entries), self.name)
            return result

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    @staticmethod
    def _dedupe(entries: list[ServerEntry]) -> list[ServerEntry]:
        seen: set[tuple[str, int]] = set()
        unique: list[ServerEntry] = []
        for entry in entries:
            if entry.key in seen:
                continue
            seen.add(entry.key)
            unique.append(entry)
        return unique

    # ---------- reads ----------

    def snapshot(self) -> list[ServerEntry]:
        """Return an independent ordered copy of the entries."""
        with self._lock:
            self._ensure_loaded()
            return list(self._entries)

    def find(self, host: str, port: int) -> ServerEntry | None:
        with self._lock:
            self._ensure_loaded()
            index = self._index_of(host, port)
            return None if index is None else self._entries[index]

    def __contains__(self, address: object) -> bool:
        if not isinstance(address, tuple) or len(address) != 2:
            return False
        host, port = address
        return self.find(host, port) is not None

    def _index_of(self, host: str, port: int) -> int | None:
        key = (normalize_host(host), port)
        for i, entry in enumerate(self._entries):
            if entry.key == key:
                return i
        return None

    # ---------- mutations ----------

    def upsert(self, host: str, port: int, display_name: str | None = None) -> ServerEntry | None:
        """Insert a server or refresh the existing entry for (host, port).

        An existing entry gets a new contact time and, when a non-empty name
        is given, a new display name. Recency-ordered stores move it to the
        head. Returns the stored entry, or None if *host* is blank.
        """
        host = host.strip() if host else ""
        if not host:
            logger.warning("Ignoring %s entry with an empty host", self.name)
            return None
        port = int(port)

        with self._lock:
            self._ensure_loaded()
            now = self._clock()
            index = self._index_of(host, port)

            if index is not None:
                existing = self._entries[index]
                entry = replace(
                    existing,
                    last_contact=now,
                    display_name=display_name or existing.display_name,
                )
                if self.recency_ordered:
                    del self._entries[index]
                    self._entries.insert(0, entry)
                else:
                    self._entries[index] = entry
                logger.debug("Updated %s entry %s", self.name, entry.address)
            else:
                entry = ServerEntry(
                    host=host,
                    port=port,
                    display_name=display_name or None,
                    last_contact=now,
                )
                if self.recency_ordered:
                    self._entries.insert(0, entry)
                else:
                    self._entries.append(entry)
                logger.debug("Added %s entry %s", self.name, entry.address)

            self._evict()
            self._save()
            return entry

    def remove(self, host: str, port: int) -> bool:
        """Remove (host, port) if present. Returns whether anything changed."""
        with self._lock:
            self._ensure_loaded()
            index = self._index_of(host, port)
            if index is None:
                return False
            removed = self._entries.pop(index)
            logger.debug("Removed %s entry %s", self.name, removed.address)
            self._save()
            return True

    def clear(self) -> None:
        """Drop every entry and persist the empty list."""
        with self._lock:
            self._entries = []
            self._loaded = True
            logger.debug("Cleared %s", self.name)
            self._save()

    def _replace_at(self, index: int, entry: ServerEntry) -> None:
        """Swap the entry at *index* in place and persist. Caller holds the lock."""
        self._entries[index] = entry
        self._save()

    def _evict(self) -> None:
        overflow = len(self._entries) - self.capacity
        if overflow <= 0:
            return
        if self.recency_ordered:
            dropped = self._entries[-overflow:]
            del self._entries[-overflow:]
        else:
            dropped = self._entries[:overflow]
            del self._entries[:overflow]
        for entry in dropped:
            logger.debug("Evicted %s entry %s", self.name, entry.address)

    def _save(self) -> WriteResult:
        result = write_entries(self.path, self._entries)
        if not result.ok:
            logger.warning("Could not save %s: %s", self.name, result.error)
        self.last_write = result
        return result
