"""Command 'logout' of krishiva-cli"""

import typer

from krishiva_cli.database import get_database
from krishiva_cli.utils.ui.formatters import format_info, format_success

from .decorators import command_wrapper


@command_wrapper
def logout(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Logout. Accounts stored on this device are kept."""
    session_manager = get_database().session_manager
    if not session_manager.is_logged_in:
        format_info("You are not logged in.")
        return

    if not yes and not typer.confirm("Are you sure you want to logout?"):
        format_info("Logout cancelled.")
        return

    session_manager.clear()
    format_success("You have been logged out successfully.")
