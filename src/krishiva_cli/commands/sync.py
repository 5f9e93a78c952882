"""Sync commands for Krishiva CLI.

Manual trigger and status of the reconciliation between the local vault
and the backend.
"""

import typer

from krishiva_cli.database import init_database
from krishiva_cli.models import SyncError
from krishiva_cli.services.sync_conflicts import SyncConflictTracker
from krishiva_cli.utils import exit_codes
from krishiva_cli.utils.typer_helpers import SuggestingGroup
from krishiva_cli.utils.ui.formatters import (
    format_success,
    format_sync_result,
    format_sync_status,
)

from .decorators import AppError, command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Sync data with the backend")


@app.command("now")
@command_wrapper
async def sync_now(
    full: bool = typer.Option(
        False, "--full", help="Pull every remote record, ignoring the last sync time"
    ),
) -> None:
    """Run a sync pass now.

    Examples:
        krishiva sync now
        krishiva sync now --full
    """
    database = await init_database()
    try:
        result = await database.check_and_sync(manual=True, full=full)
    except SyncError as e:
        hint = " Please try again." if e.retryable else ""
        raise AppError(
            f"Failed to sync data: {e}.{hint}",
            exit_codes.ERROR_NETWORK,
            title="Sync Failed",
        ) from e

    format_sync_result(result)
    format_success("Data synchronized successfully!")


@app.command("status")
@command_wrapper
async def sync_status() -> None:
    """Show last sync times, pending changes and recorded conflicts."""
    database = await init_database()
    sync_service = database.sync_service
    pending = await database.user_repo.pending_changes()
    conflicts = SyncConflictTracker(database.config_service.data_dir).load_saved()
    format_sync_status(
        sync_service.sync_state.get_all_sync_times(), len(pending), len(conflicts)
    )
