"""Connection call sites: where the server lists get written.

``ConnectController`` sits between the front end and whatever actually opens
the connection (an injected ``connector`` callable). It records every attempt
in the recent-servers list and every successful connection in the history.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from server_recall.config import DEFAULT_PORT
from server_recall.entry import ServerEntry
from server_recall.stores import ServerStores

logger = logging.getLogger(__name__)

Connector = Callable[[str, int], bool]


class AddressError(ValueError):
    """Raised when a user-entered server address is not usable."""


def parse_address(text: str, default_port: int = DEFAULT_PORT) -> tuple[str, int]:
    """Split ``host``, ``host:port`` or ``[v6]:port`` into (host, port).

    Raises ``AddressError`` on an empty host or a port outside 1-65535.
    """
    raw = (text or "").strip()
    if not raw:
        raise AddressError("Server address is required.")

    port_text: str | None = None
    if raw.startswith("["):
        end = raw.find("]")
        if end == -1:
            raise AddressError(f"Unterminated '[' in address '{raw}'.")
        host = raw[1:end]
        rest = raw[end + 1:]
        if rest:
            if not rest.startswith(":"):
                raise AddressError(f"Unexpected text after ']' in address '{raw}'.")
            port_text = rest[1:]
    elif raw.count(":") == 1:
        host, port_text = raw.split(":", 1)
    else:
        # plain host, or a bare IPv6 literal without a port
        host = raw

    host = host.strip()
    if not host:
        raise AddressError("Server address is required.")

    if port_text is None:
        return host, default_port
    return host, parse_port(port_text)


def parse_port(text: str) -> int:
    port_text = text.strip()
    if not (port_text.isascii() and port_text.isdigit()):
        raise AddressError(f"Invalid port '{port_text}'. Enter a number between 1 and 65535.")
    port = int(port_text)
    if not 1 <= port <= 65535:
        raise AddressError(f"Invalid port {port}. Enter a number between 1 and 65535.")
    return port


class ConnectController:
    """Records connection attempts and outcomes into the server lists."""

    def __init__(self, stores: ServerStores, connector: Connector) -> None:
        self.stores = stores
        self.connector = connector

    def connect(self, host: str, port: int, display_name: str | None = None) -> bool:
        """Attempt a connection to (host, port) and record it.

        The attempt always lands in recent servers; history only gets the
        server when the connector reports success.
        """
        host = host.strip()
        self.stores.recent.upsert(host, port)

        connected = bool(self.connector(host, port))
        if connected:
            self.stores.history.upsert(host, port, display_name)
            logger.debug("Connected to %s:%s", host, port)
        else:
            logger.debug("Connection to %s:%s failed", host, port)
        return connected

    def reconnect(self, entry: ServerEntry) -> bool:
        """Connect again to a server picked from one of the lists."""
        return self.connect(entry.host, entry.port, entry.display_name)

    def record_server_name(self, host: str, port: int, name: str) -> bool:
        """Store the name a server reported once connected."""
        return self.stores.history.update_display_name(host, port, name)

    def is_favorite(self, host: str, port: int) -> bool:
        return self.stores.favorites.find(host, port) is not None

    def toggle_favorite(self, host: str, port: int, display_name: str | None = None) -> bool:
        """Add the server to favorites, or remove it if already there.

        Returns True when the server is a favorite afterwards.
        """
        if self.stores.favorites.remove(host, port):
            return False
        return self.stores.favorites.upsert(host, port, display_name) is not None
