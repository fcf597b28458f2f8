"""Server entry value type and its JSON payload format.

One ``ServerEntry`` is one remembered server: where it lives (host, port),
what the player called it, and when it was last contacted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Timestamps written by older clients carry up to 7 fractional digits.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


class EntryFormatError(ValueError):
    """Raised when a persisted payload cannot be turned into an entry."""


def utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def normalize_host(host: str) -> str:
    """Return the comparison form of a host (trimmed, lower-cased)."""
    return host.strip().lower()


# ---------------------------------------------------------------------------
# Dataclass
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ServerEntry:
    """A single remembered server."""

    host: str
    port: int
    display_name: str | None = None
    last_contact: datetime = EPOCH

    @property
    def key(self) -> tuple[str, int]:
        """Dedup key: case-insensitive host plus port."""
        return normalize_host(self.host), self.port

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def display_text(self) -> str:
        return self.display_name if self.display_name else self.address

    def matches(self, host: str, port: int) -> bool:
        return self.key == (normalize_host(host), port)

    def to_payload(self) -> dict[str, Any]:
        """Serialize the entry into the persisted JSON object."""
        payload: dict[str, Any] = {
            "ip": self.host,
            "port": self.port,
            "lastConnected": self.last_contact.isoformat(),
        }
        if self.display_name:
            payload["serverName"] = self.display_name
        return payload

    @classmethod
    def from_payload(cls, payload: Any) -> ServerEntry:
        """Rebuild an entry from a persisted JSON object.

        Accepts ``ip`` or ``host`` for the address. A missing
        ``lastConnected`` falls back to the epoch so the entry sorts last.
        """
        if not isinstance(payload, dict):
            raise EntryFormatError(f"Entry must be an object, got {type(payload).__name__}.")

        host = payload.get("ip", payload.get("host"))
        if not isinstance(host, str) or not host.strip():
            raise EntryFormatError("Entry is missing 'ip'.")

        raw_port = payload.get("port")
        if isinstance(raw_port, bool):
            raise EntryFormatError(f"Entry '{host}' has an invalid port: {raw_port!r}.")
        try:
            port = int(raw_port)
        except (TypeError, ValueError, OverflowError) as exc:
            raise EntryFormatError(f"Entry '{host}' has an invalid port: {raw_port!r}.") from exc

        name = payload.get("serverName")
        if name is not None and not isinstance(name, str):
            name = str(name)

        raw_ts = payload.get("lastConnected")
        last_contact = parse_timestamp(raw_ts) if raw_ts is not None else EPOCH

        return cls(
            host=host.strip(),
            port=port,
            display_name=name or None,
            last_contact=last_contact,
        )


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def parse_timestamp(raw: Any) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are read as local time. A trailing ``Z`` and fractional
    seconds longer than microseconds are accepted.
    """
    if not isinstance(raw, str):
        raise EntryFormatError(f"Timestamp must be a string, got {raw!r}.")
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(r"\1", text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise EntryFormatError(f"Invalid timestamp {raw!r}.") from exc
    try:
        if parsed.tzinfo is None:
            parsed = parsed.astimezone()
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError, OSError) as exc:
        raise EntryFormatError(f"Timestamp {raw!r} is out of range.") from exc
