"""Shared console, prompt, logging and formatting helpers."""

from __future__ import annotations

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.text import Text

# ---------------------------------------------------------------------------
# Console singletons
# ---------------------------------------------------------------------------

console = Console()
err_console = Console(stderr=True)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def setup_logging(verbose: bool = False) -> None:
    """Route ``logging`` output through Rich on stderr."""
    level = logging.DEBUG if verbose else logging.WARNING
    handler = RichHandler(console=err_console, show_path=verbose, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    pkg_logger = logging.getLogger("server_recall")
    pkg_logger.handlers.clear()
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(level)


# ---------------------------------------------------------------------------
# Fuzzy / substring matcher
# ---------------------------------------------------------------------------


def fuzzy_match(query: str, candidates: list[str]) -> list[tuple[int, str]]:
    """Return (index, candidate) pairs where *query* is a case-insensitive subsequence.

    Results are sorted: exact prefix matches first, then subsequence matches.
    """
    q = query.lower()
    prefix_matches: list[tuple[int, str]] = []
    subseq_matches: list[tuple[int, str]] = []

    for idx, candidate in enumerate(candidates):
        c = Text.from_markup(candidate).plain.lower()
        if q in c:
            if c.startswith(q):
                prefix_matches.append((idx, candidate))
            else:
                subseq_matches.append((idx, candidate))
        elif _is_subsequence(q, c):
            subseq_matches.append((idx, candidate))

    return prefix_matches + subseq_matches


def _is_subsequence(needle: str, haystack: str) -> bool:
    """Check if needle chars appear in order within haystack."""
    it = iter(haystack)
    return all(ch in it for ch in needle)


# ---------------------------------------------------------------------------
# Selection prompt
# ---------------------------------------------------------------------------


def select_with_filter(
    items: list[str],
    title: str = "Select",
    *,
    allow_back: bool = True,
    allow_exit: bool = True,
    allow_free_text: bool = False,
) -> int | str | None:
    """Present a filterable numbered list and return the selected index.

    Typing a number selects directly; typing text filters the list. With
    *allow_free_text*, text prefixed with ``>`` is returned verbatim (used
    for typing a new server address). An empty input with allow_back
    returns None (go back).
    """
    filtered = list(enumerate(items))  # (original_idx, label)
    current_filter = ""

    while True:
        console.print()
        console.rule(f"[bold cyan]{title}[/bold cyan]")
        if current_filter:
            console.print(f"  [dim]Filter: {current_filter}[/dim]")

        if not filtered:
            console.print("  [dim]Nothing saved yet.[/dim]")
        for display_num, (_orig_idx, label) in enumerate(filtered, start=1):
            console.print(f"  [bold green]{display_num:>3}[/bold green]  {label}")

        hints: list[str] = []
        if allow_free_text:
            hints.append("[dim]>host:port=connect[/dim]")
        if allow_back:
            hints.append("[dim]empty=back[/dim]")
        if allow_exit:
            hints.append("[dim]q=exit[/dim]")
        hints.append("[dim]text=filter[/dim]")

        console.print(f"\n  {'  '.join(hints)}")

        raw = Prompt.ask("  [bold]>[/bold]", default="")
        choice = raw.strip()

        if choice == "" and allow_back:
            return None

        if choice.lower() == "q" and allow_exit:
            console.print("[yellow]Exiting.[/yellow]")
            sys.exit(0)

        if allow_free_text and choice.startswith(">"):
            return choice[1:].strip()

        if choice == "/":
            current_filter = ""
            filtered = list(enumerate(items))
            continue

        if choice.isdigit():
            num = int(choice)
            if 1 <= num <= len(filtered):
                return filtered[num - 1][0]  # original index
            err_console.print(f"[red]Invalid number. Choose 1-{len(filtered)}.[/red]")
            continue

        current_filter = choice
        matches = fuzzy_match(choice, items)
        if matches:
            filtered = matches
        else:
            err_console.print("[yellow]No matches. Showing all.[/yellow]")
            filtered = list(enumerate(items))
            current_filter = ""


# ---------------------------------------------------------------------------
# Confirmation prompt
# ---------------------------------------------------------------------------


def confirm_action(message: str, *, default: bool = False) -> bool:
    """Ask the user to confirm a potentially destructive action."""
    return Confirm.ask(f"  [bold yellow]⚠ {message}[/bold yellow]", default=default)


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def print_error(msg: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[bold red]Error:[/bold red] {msg}")


def print_success(msg: str) -> None:
    console.print(f"[bold green]✓[/bold green] {msg}")


def print_info(msg: str) -> None:
    console.print(f"[bold blue]ℹ[/bold blue] {msg}")


def welcome_panel(data_dir: str, counts: dict[str, int], version: str) -> None:
    """Display the welcome panel for interactive mode."""
    lines = [f"[bold]Data dir:[/bold]  {data_dir}"]
    for label, count in counts.items():
        lines.append(f"[bold]{label + ':':<10}[/bold] {count}")
    lines.append("")
    lines.append("[dim]Type a number to connect, text to filter, q to quit.[/dim]")
    panel = Panel(
        Text.from_markup("\n".join(lines)),
        title="[bold magenta]⚡ Server Recall[/bold magenta]",
        subtitle=f"[dim]v{version}[/dim]",
        border_style="bright_blue",
        padding=(1, 2),
    )
    console.print(panel)
