"""Output formatters for the Krishiva screens."""

from __future__ import annotations

from datetime import datetime
from functools import lru_cache
from typing import Any
from zoneinfo import ZoneInfo

import tzlocal
from rich.console import Console
from rich.table import Table


@lru_cache(maxsize=2)
def get_console(stderr: bool = False) -> Console:
    """Get a shared Rich Console (stdout, or stderr for diagnostics)."""
    return Console(stderr=stderr, highlight=False)


def format_error(message: str, title: str = "Error") -> None:
    """Format and display an error message."""
    get_console().print(f"[bold red]{title}:[/bold red] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    get_console().print(f"[bold green]Success:[/bold green] {message}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    get_console().print(f"[bold yellow]Warning:[/bold yellow] {message}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    get_console().print(f"[bold blue]Info:[/bold blue] {message}")


def format_login_time(value: datetime | None, timezone: str | None = None) -> str:
    """Render a login timestamp like "October 18, 2026, 09:30 AM".

    Args:
        value: Aware or naive (treated as UTC) timestamp
        timezone: IANA name; None uses the system timezone
    """
    if value is None:
        return "Unknown"
    try:
        tz = ZoneInfo(timezone) if timezone else tzlocal.get_localzone()
        if value.tzinfo is None:
            value = value.replace(tzinfo=ZoneInfo("UTC"))
        return value.astimezone(tz).strftime("%B %d, %Y, %I:%M %p")
    except Exception:
        return "Unknown"


def format_single_item(item: dict[str, Any]) -> None:
    """Format a single item as key-value pairs."""
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")

    for key, value in item.items():
        formatted_key = key.replace("_", " ").title()
        if isinstance(value, bool):
            formatted_value = "✓" if value else "✗"
        elif value is None:
            formatted_value = "-"
        else:
            formatted_value = str(value)
        table.add_row(formatted_key, formatted_value)

    get_console().print(table)


def format_session(snapshot: Any, timezone: str | None = None) -> None:
    """Display the profile card for a session snapshot."""
    format_single_item(
        {
            "name": snapshot.name,
            "email": snapshot.email,
            "user_id": snapshot.id,
            "logged_in": format_login_time(snapshot.login_time, timezone),
        }
    )


def format_sync_result(result: Any) -> None:
    """Display counters of a finished reconciliation pass."""
    table = Table(title="Sync result", show_header=True, header_style="bold")
    table.add_column("Direction")
    table.add_column("New", justify="right")
    table.add_column("Updated", justify="right")
    table.add_column("Unchanged", justify="right")
    table.add_column("Failed / Conflicts", justify="right")

    table.add_row(
        "push",
        str(result.pushed_new),
        str(result.pushed_updated),
        "-",
        str(result.push_failed),
    )
    table.add_row(
        "pull",
        str(result.pulled_new),
        str(result.pulled_updated),
        str(result.pulled_unchanged),
        str(result.conflicts),
    )
    console = get_console()
    console.print(table)
    console.print(f"[dim]Completed in {result.duration:.2f}s[/dim]")


def format_sync_status(
    sync_times: dict[str, datetime | None],
    pending: int,
    conflicts: int,
) -> None:
    """Display last sync times and outstanding work."""
    console = get_console()
    table = Table(title="Sync status", show_header=True, header_style="bold")
    table.add_column("Direction")
    table.add_column("Last sync")
    if not sync_times:
        table.add_row("-", "never")
    for key, when in sorted(sync_times.items()):
        table.add_row(key, when.isoformat(timespec="seconds") if when else "never")
    console.print(table)
    console.print(f"Pending local changes: [cyan]{pending}[/cyan]")
    if conflicts:
        console.print(f"Recorded conflicts: [yellow]{conflicts}[/yellow]")
