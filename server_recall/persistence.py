"""JSON file persistence for server lists.

Each store owns one file holding a JSON array of entry objects. Reads and
writes never raise for I/O or format problems; they return a result object
and the caller decides what to fall back to.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from server_recall.entry import EntryFormatError, ServerEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReadResult:
    """Outcome of reading a store file."""

    entries: list[ServerEntry] = field(default_factory=list)
    error: str | None = None
    missing: bool = False
    skipped: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class WriteResult:
    """Outcome of writing a store file."""

    ok: bool = True
    error: str | None = None


def read_entries(path: Path) -> ReadResult:
    """Read the ordered entries stored at *path*.

    A missing file is not an error. Unreadable files, invalid JSON and a
    non-array top level yield an empty failed result. Individual items
    that cannot be parsed are skipped and counted.
    """
    if not path.exists():
        return ReadResult(missing=True)

    try:
        raw = json.loads(path.read_text(encoding="utf-8-sig"))
    except (OSError, UnicodeDecodeError) as exc:
        return ReadResult(error=f"Cannot read {path}: {exc}")
    except (ValueError, RecursionError) as exc:
        return ReadResult(error=f"Invalid JSON in {path}: {exc}")

    if raw is None:
        return ReadResult()
    if not isinstance(raw, list):
        return ReadResult(error=f"{path} must contain a JSON array, got {type(raw).__name__}.")

    entries: list[ServerEntry] = []
    skipped = 0
    for item in raw:
        try:
            entries.append(ServerEntry.from_payload(item))
        except EntryFormatError as exc:
            skipped += 1
            logger.debug("Skipping entry in %s: %s", path, exc)
    return ReadResult(entries=entries, skipped=skipped)


def write_entries(path: Path, entries: Iterable[ServerEntry]) -> WriteResult:
    """Overwrite *path* with *entries* as an indented JSON array."""
    try:
        text = json.dumps([e.to_payload() for e in entries], indent=2)
    except (TypeError, ValueError) as exc:
        return WriteResult(ok=False, error=f"Cannot serialize entries for {path}: {exc}")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        return WriteResult(ok=False, error=f"Cannot write {path}: {exc}")
    return WriteResult()
