"""Rich-based interactive quick-pick for server-recall.

Implements the guided interactive flow:
  Welcome → Pick recent server / favorite / type an address → Connect → Loop
"""

from __future__ import annotations

from rich.markup import escape
from rich.table import Table

from server_recall import __version__
from server_recall.connect import AddressError, ConnectController, parse_address
from server_recall.entry import ServerEntry
from server_recall.store import BoundedStore
from server_recall.utils import (
    console,
    print_error,
    print_info,
    print_success,
    select_with_filter,
    welcome_panel,
)

# ---------------------------------------------------------------------------
# Interactive flow
# ---------------------------------------------------------------------------


def run_tui(controller: ConnectController, default_port: int) -> None:
    """Main interactive entry point."""
    stores = controller.stores
    welcome_panel(
        data_dir=str(stores.data_dir),
        counts={
            "Recent": len(stores.recent),
            "Favorites": len(stores.favorites),
            "History": len(stores.history),
        },
        version=__version__,
    )

    while True:
        target = _pick_server(controller, default_port)
        if target is None:
            console.print("[yellow]Goodbye![/yellow]")
            return
        host, port, name = target
        _connect(controller, host, port, name)


def _pick_server(
    controller: ConnectController, default_port: int
) -> tuple[str, int, str | None] | None:
    """Show recent servers and favorites, or accept a typed address.

    Returns (host, port, display_name) or None when the user backs out.
    """
    stores = controller.stores
    choices: list[ServerEntry] = []
    labels: list[str] = []

    for entry in stores.recent.snapshot():
        labels.append(f"[bold yellow]⚡[/bold yellow] {_entry_label(entry)}")
        choices.append(entry)

    recent_keys = {e.key for e in choices}
    for entry in stores.favorites.snapshot():
        if entry.key in recent_keys:
            continue
        labels.append(f"[bold magenta]★[/bold magenta] {_entry_label(entry)}")
        choices.append(entry)

    while True:
        selection = select_with_filter(
            labels,
            title="Recent Servers & Favorites",
            allow_back=True,
            allow_exit=True,
            allow_free_text=True,
        )
        if selection is None:
            return None
        if isinstance(selection, str):
            try:
                host, port = parse_address(selection, default_port)
            except AddressError as exc:
                print_error(str(exc))
                continue
            return host, port, None
        entry = choices[selection]
        return entry.host, entry.port, entry.display_name


def _entry_label(entry: ServerEntry) -> str:
    if entry.display_name:
        return f"[bold]{escape(entry.display_name)}[/bold]  [cyan]{escape(entry.address)}[/cyan]"
    return f"[bold]{escape(entry.address)}[/bold]"


def _connect(controller: ConnectController, host: str, port: int, name: str | None) -> None:
    console.print(f"  [dim]Connecting to {escape(host)}:{port}...[/dim]")
    if controller.connect(host, port, name):
        print_success(f"Connected to {escape(host)}:{port}.")
    else:
        print_error(f"Could not connect to {escape(host)}:{port}.")
        return
    if not controller.is_favorite(host, port):
        print_info(f"Tip: `server-recall fav add {escape(host)}:{port}` keeps it in favorites.")


# ---------------------------------------------------------------------------
# Table display (used by `server-recall ls`)
# ---------------------------------------------------------------------------


def print_store_table(store: BoundedStore, title: str) -> None:
    """Print a Rich table of one server list."""
    entries = store.snapshot()
    table = Table(
        title=f"{title} ({len(entries)}/{store.capacity})",
        show_header=True,
        header_style="bold magenta",
        border_style="bright_blue",
        show_lines=False,
    )
    table.add_column("#", justify="right", min_width=3)
    table.add_column("Name", style="bold", min_width=15)
    table.add_column("Host", style="cyan", min_width=15)
    table.add_column("Port", justify="right", min_width=5)
    table.add_column("Last Contact", style="green", min_width=19)

    for i, entry in enumerate(entries, start=1):
        table.add_row(
            str(i),
            escape(entry.display_name) if entry.display_name else "—",
            escape(entry.host),
            str(entry.port),
            entry.last_contact.astimezone().strftime("%Y-%m-%d %H:%M:%S"),
        )

    console.print()
    console.print(table)
    console.print()
