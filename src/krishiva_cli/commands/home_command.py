"""Home command - Startup screen.

Opens the vault, greets the logged-in user and runs one sync pass. With
``--watch`` it stays up, listening for connectivity changes and syncing on
an interval until interrupted.
"""

import asyncio
import contextlib
import signal

import typer

from krishiva_cli.database import KrishivaDatabase, init_database
from krishiva_cli.models import InitializationError
from krishiva_cli.services.sync_scheduler import SyncScheduler
from krishiva_cli.utils import exit_codes
from krishiva_cli.utils.ui.formatters import (
    format_info,
    format_success,
    format_warning,
    get_console,
)

from .decorators import AppError, command_wrapper

console = get_console()


@command_wrapper
async def home(
    watch: bool = typer.Option(
        False, "--watch", "-w", help="Keep syncing in the background until Ctrl+C"
    ),
    interval: int | None = typer.Option(
        None, "--interval", help="Seconds between periodic syncs (default from config)"
    ),
) -> None:
    """Show the home screen and sync local data."""
    try:
        database = await init_database()
    except InitializationError as e:
        raise AppError(
            "Failed to initialize the application. Please restart the app.",
            exit_codes.ERROR_INITIALIZATION,
        ) from e

    snapshot = database.session_manager.load()
    if snapshot is None:
        format_info("You are not logged in. Run 'krishiva login' or 'krishiva signup'.")
    else:
        console.print(f"Welcome back, [bold]{snapshot.name}[/bold]!")

    config = database.config_service.config
    if not config.sync.auto and not watch:
        return

    result = await database.check_and_sync()
    if result.success:
        format_success(
            f"Data synchronized (pushed {result.pushed}, pulled {result.pulled})"
        )
    else:
        format_warning(f"Sync skipped: {result.error}. It will be retried.")

    if watch:
        await _watch(database, interval or config.sync.interval, online=result.success)


async def _watch(
    database: KrishivaDatabase,
    interval: int,
    online: bool | None = None,
    stop: asyncio.Event | None = None,
) -> None:
    """Run the listener and the periodic pass until ``stop`` is set or a signal arrives.

    ``online`` seeds the listener so the pass just run is not repeated.
    """
    stop = stop or asyncio.Event()
    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, stop.set)
        loop.add_signal_handler(signal.SIGTERM, stop.set)

    database.setup_sync_listener(online=online)
    try:
        async with SyncScheduler(database.check_and_sync, interval, name="periodic-sync"):
            format_info(f"Syncing every {interval}s. Press Ctrl+C to stop.")
            await stop.wait()
    finally:
        await database.teardown_sync_listener()
        with contextlib.suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)
            loop.remove_signal_handler(signal.SIGTERM)
    format_info("Background sync stopped.")
