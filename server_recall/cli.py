"""Typer CLI application for server-recall.

Provides both the interactive quick-pick (default) and non-interactive
commands for scripting: ls, connect, fav, rm, clear, rename, config.
"""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.markup import escape
from rich.panel import Panel

from server_recall import __version__
from server_recall.config import (
    ENV_CONFIG_VAR,
    ENV_HOME_VAR,
    ConfigError,
    Settings,
    load_settings,
)
from server_recall.connect import AddressError, ConnectController, parse_address
from server_recall.store import BoundedStore
from server_recall.stores import STORE_SPECS, ServerStores, UnknownStoreError, spec_for
from server_recall.utils import console, print_error, print_info, print_success, setup_logging

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="server-recall",
    help="⚡ Server Recall — remember, recall and reconnect to game servers.",
    no_args_is_help=False,
    rich_markup_mode="rich",
    add_completion=True,
)

fav_app = typer.Typer(
    name="fav",
    help="Manage favorite servers.",
    rich_markup_mode="rich",
)

app.add_typer(fav_app, name="fav")

STORE_HELP = "Store name: " + ", ".join(s.name for s in STORE_SPECS) + "."
ADDRESS_HELP = "host, host:port or \\[ipv6]:port."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_settings_or_exit() -> Settings:
    """Load settings, printing a helpful error and exiting on failure."""
    try:
        return load_settings()
    except ConfigError as exc:
        print_error(escape(str(exc)))
        raise typer.Exit(1)


def _open_stores_or_exit() -> tuple[Settings, ServerStores]:
    settings = _load_settings_or_exit()
    return settings, ServerStores.open(settings)


def _parse_address_or_exit(address: str, default_port: int) -> tuple[str, int]:
    """Parse a host[:port] argument, exiting with a clear message on failure."""
    try:
        return parse_address(address, default_port)
    except AddressError as exc:
        print_error(escape(str(exc)))
        raise typer.Exit(1)


def _store_or_exit(stores: ServerStores, name: str) -> BoundedStore:
    try:
        return stores.get(name)
    except UnknownStoreError as exc:
        print_error(escape(str(exc)))
        raise typer.Exit(1)


def _announce_target(host: str, port: int) -> bool:
    """Default connector: hand the target to the game client.

    Opening the connection is the game client's job; from the command line
    we only report the target and treat it as reached.
    """
    console.print(f"[bold]Target server:[/bold] [cyan]{escape(host)}:{port}[/cyan]")
    return True


def _controller(stores: ServerStores) -> ConnectController:
    return ConnectController(stores, _announce_target)


# ---------------------------------------------------------------------------
# Default callback — interactive quick-pick when no subcommand given
# ---------------------------------------------------------------------------


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool, typer.Option("--version", "-V", help="Show version and exit.")
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show debug logging.")
    ] = False,
):
    """⚡ Server Recall — run with no arguments for interactive mode."""
    if version:
        console.print(f"server-recall [bold]{__version__}[/bold]")
        raise typer.Exit()

    setup_logging(verbose)

    if ctx.invoked_subcommand is None:
        settings, stores = _open_stores_or_exit()
        from server_recall.tui import run_tui

        run_tui(_controller(stores), settings.default_port)


# ---------------------------------------------------------------------------
# server-recall ls
# ---------------------------------------------------------------------------


@app.command("ls")
def cmd_ls(
    store_name: Annotated[
        Optional[str], typer.Argument(metavar="STORE", help=f"Only this list. {STORE_HELP}")
    ] = None,
):
    """List saved servers in a table."""
    _, stores = _open_stores_or_exit()

    from server_recall.tui import print_store_table

    if store_name:
        store = _store_or_exit(stores, store_name)
        print_store_table(store, spec_for(store.name).label)
        return

    for store in stores:
        print_store_table(store, spec_for(store.name).label)


# ---------------------------------------------------------------------------
# server-recall connect
# ---------------------------------------------------------------------------


@app.command("connect")
def cmd_connect(
    address: Annotated[str, typer.Argument(help=ADDRESS_HELP)],
    name: Annotated[
        Optional[str], typer.Option("--name", "-n", help="Display name for the server.")
    ] = None,
):
    """Connect to a server and record it in recent servers and history."""
    settings, stores = _open_stores_or_exit()
    host, port = _parse_address_or_exit(address, settings.default_port)

    if not _controller(stores).connect(host, port, name):
        print_error(f"Could not connect to {escape(host)}:{port}.")
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# server-recall fav add / rm / toggle
# ---------------------------------------------------------------------------


@fav_app.command("add")
def fav_add(
    address: Annotated[str, typer.Argument(help=ADDRESS_HELP)],
    name: Annotated[
        Optional[str], typer.Option("--name", "-n", help="Display name for the server.")
    ] = None,
):
    """Add a server to favorites (or refresh it if already there)."""
    settings, stores = _open_stores_or_exit()
    host, port = _parse_address_or_exit(address, settings.default_port)
    entry = stores.favorites.upsert(host, port, name)
    if entry is not None:
        print_success(f"Saved {escape(entry.display_text)} to favorites.")


@fav_app.command("rm")
def fav_rm(
    address: Annotated[str, typer.Argument(help=ADDRESS_HELP)],
):
    """Remove a server from favorites."""
    settings, stores = _open_stores_or_exit()
    host, port = _parse_address_or_exit(address, settings.default_port)
    if stores.favorites.remove(host, port):
        print_success(f"Removed {escape(host)}:{port} from favorites.")
    else:
        print_info(f"{escape(host)}:{port} is not a favorite.")


@fav_app.command("toggle")
def fav_toggle(
    address: Annotated[str, typer.Argument(help=ADDRESS_HELP)],
    name: Annotated[
        Optional[str], typer.Option("--name", "-n", help="Display name for the server.")
    ] = None,
):
    """Star or unstar a server."""
    settings, stores = _open_stores_or_exit()
    host, port = _parse_address_or_exit(address, settings.default_port)
    if _controller(stores).toggle_favorite(host, port, name):
        print_success(f"{escape(host)}:{port} added to favorites.")
    else:
        print_success(f"{escape(host)}:{port} removed from favorites.")


# ---------------------------------------------------------------------------
# server-recall rm / clear / rename
# ---------------------------------------------------------------------------


@app.command("rm")
def cmd_rm(
    store_name: Annotated[str, typer.Argument(metavar="STORE", help=STORE_HELP)],
    address: Annotated[str, typer.Argument(help=ADDRESS_HELP)],
):
    """Remove one server from a list."""
    settings, stores = _open_stores_or_exit()
    store = _store_or_exit(stores, store_name)
    host, port = _parse_address_or_exit(address, settings.default_port)
    if store.remove(host, port):
        print_success(f"Removed {escape(host)}:{port} from {store.name}.")
    else:
        print_info(f"{escape(host)}:{port} is not in {store.name}.")


@app.command("clear")
def cmd_clear(
    store_name: Annotated[str, typer.Argument(metavar="STORE", help=STORE_HELP)],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation.")] = False,
):
    """Empty a list. [red]Destructive.[/red]"""
    _, stores = _open_stores_or_exit()
    store = _store_or_exit(stores, store_name)

    from server_recall.utils import confirm_action

    if not yes and not confirm_action(f"Clear all {len(store)} entries from {store.name}?"):
        print_info("Cancelled.")
        raise typer.Exit(0)
    store.clear()
    print_success(f"Cleared {store.name}.")


@app.command("rename")
def cmd_rename(
    address: Annotated[str, typer.Argument(help=ADDRESS_HELP)],
    name: Annotated[str, typer.Argument(help="New display name (empty to clear).")],
):
    """Rename a server in history without changing its position."""
    settings, stores = _open_stores_or_exit()
    host, port = _parse_address_or_exit(address, settings.default_port)
    if stores.history.update_display_name(host, port, name):
        print_success(f"Renamed {escape(host)}:{port}.")
    else:
        print_info(f"{escape(host)}:{port} is not in history.")


# ---------------------------------------------------------------------------
# server-recall config
# ---------------------------------------------------------------------------


@app.command("config")
def cmd_config():
    """Show active data directory and config path and validate the config."""
    import os

    from server_recall.config import get_config_path, get_data_dir, validate_config_file

    path = get_config_path()
    try:
        data_dir = load_settings(path).data_dir
    except ConfigError:
        data_dir = get_data_dir()
    env_lines = []
    for var in (ENV_HOME_VAR, ENV_CONFIG_VAR):
        value = os.environ.get(var)
        env_lines.append(f"[bold]{var}:[/bold] {escape(value) if value else '[dim]not set[/dim]'}")
    console.print(Panel(
        f"[bold]Data dir:[/bold]    {escape(str(data_dir))}\n"
        f"[bold]Config path:[/bold] {escape(str(path))}\n" + "\n".join(env_lines),
        title="[bold]server-recall config[/bold]",
        border_style="blue",
    ))

    ok, msg = validate_config_file(path)
    if ok:
        console.print(f"[green]✓ {escape(msg)}[/green]")
    else:
        print_error(escape(msg))
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def app_entry() -> None:
    """Console script entry point for ``server-recall``."""
    app()
