"""Login command - Start a session on this device."""

import typer

from krishiva_cli.database import init_database
from krishiva_cli.utils.ui.formatters import format_success

from .decorators import command_wrapper


@command_wrapper
async def login(
    email: str | None = typer.Option(None, "--email", help="Email address"),
    password: str | None = typer.Option(None, "--password", help="Password"),
) -> None:
    """Login with an account stored on this device."""
    database = await init_database()

    if email is None:
        email = typer.prompt("Email")
    if password is None:
        password = typer.prompt("Password", hide_input=True)

    snapshot = await database.auth_service().login(email, password)
    format_success(f"Welcome back, {snapshot.name}!")
