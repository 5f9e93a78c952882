"""Configuration management commands."""

import json

import typer

from krishiva_cli.services.config_service import get_config_service
from krishiva_cli.utils import exit_codes
from krishiva_cli.utils.typer_helpers import SuggestingGroup
from krishiva_cli.utils.ui.formatters import format_info, format_success, get_console

from .decorators import AppError, command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Configuration management commands")


@app.command("show")
@command_wrapper
def show_config() -> None:
    """Show the current configuration."""
    config_service = get_config_service()
    get_console().print_json(json.dumps(config_service.config.model_dump()))
    format_info(f"Config file: {config_service.config_path}")


@app.command("get")
@command_wrapper
def get_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., sync.interval)"),
) -> None:
    """Get a configuration value."""
    try:
        value = get_config_service().get(key)
    except ValueError as e:
        raise AppError(str(e), exit_codes.ERROR_INVALID_ARGS) from e
    get_console().print(value)


@app.command("set")
@command_wrapper
def set_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., api.endpoint)"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value."""
    try:
        stored = get_config_service().set(key, value)
    except ValueError as e:
        raise AppError(f"Invalid value for '{key}': {e}", exit_codes.ERROR_INVALID_ARGS) from e
    format_success(f"Configuration '{key}' set to '{stored}'")


@app.command("reset")
@command_wrapper
def reset_config(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults."""
    if not yes and not typer.confirm("Reset all configuration to defaults?"):
        format_info("Reset cancelled.")
        return
    get_config_service().reset_config()
    format_success("Configuration reset to defaults")
