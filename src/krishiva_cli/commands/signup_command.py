"""Signup command - Register new user."""

import typer

from krishiva_cli.database import init_database
from krishiva_cli.models import DuplicateEmailError, InitializationError
from krishiva_cli.utils import exit_codes
from krishiva_cli.utils.ui.formatters import format_info, format_success

from .decorators import AppError, command_wrapper


@command_wrapper
async def signup(
    name: str | None = typer.Option(None, "--name", help="Full name"),
    email: str | None = typer.Option(None, "--email", help="Email address"),
    password: str | None = typer.Option(None, "--password", help="Password"),
    confirm_password: str | None = typer.Option(
        None, "--confirm", help="Repeat the password"
    ),
) -> None:
    """Create a new account on this device."""
    try:
        database = await init_database()
    except InitializationError as e:
        raise AppError(
            "Failed to initialize database. Please restart the app.",
            exit_codes.ERROR_INITIALIZATION,
            title="Database Error",
        ) from e

    if name is None:
        name = typer.prompt("Full name")
    if email is None:
        email = typer.prompt("Email")
    if password is None:
        password = typer.prompt("Password", hide_input=True)
    if confirm_password is None:
        confirm_password = typer.prompt("Confirm password", hide_input=True)

    try:
        result = await database.auth_service().signup(
            name, email, password, confirm_password
        )
    except DuplicateEmailError as e:
        raise AppError(
            f"{e}. Please use a different email or run 'krishiva login'.",
            exit_codes.ERROR_CONFLICT,
            title="Email Already Exists",
        ) from e

    format_success(f"Account created for {result.user.email}")
    format_info("Run 'krishiva login' to sign in.")
