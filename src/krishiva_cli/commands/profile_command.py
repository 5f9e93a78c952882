"""Profile commands."""

import typer

from krishiva_cli.database import get_database, init_database
from krishiva_cli.models import SessionSnapshot
from krishiva_cli.utils.typer_helpers import SuggestingGroup
from krishiva_cli.utils.ui.formatters import format_session, format_success

from .decorators import command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="View and edit your profile")


@app.command("show")
@command_wrapper(auth_required=True)
def show() -> None:
    """Show the logged-in user's profile."""
    database = get_database()
    snapshot = database.session_manager.require()
    format_session(snapshot, database.config_service.config.ui.timezone)


@app.command("edit")
@command_wrapper(auth_required=True)
async def edit(
    name: str | None = typer.Option(None, "--name", help="New display name"),
) -> None:
    """Change your display name."""
    database = await init_database()
    session_manager = database.session_manager
    if name is None:
        name = typer.prompt("Full name", default=session_manager.require().name)

    timezone = database.config_service.config.ui.timezone

    def redraw(snapshot: SessionSnapshot | None) -> None:
        if snapshot is not None:
            format_session(snapshot, timezone)

    # The card follows the session, including a restore after a failed edit
    unsubscribe = session_manager.subscribe(redraw)
    try:
        snapshot = await database.profile_service().update_name(name)
    finally:
        unsubscribe()
    format_success(f"Profile updated successfully! Name is now {snapshot.name}.")
