"""Main entry point for Krishiva CLI."""

import typer

from krishiva_cli import __version__
from krishiva_cli.commands import config_command, profile_command, sync
from krishiva_cli.commands.home_command import home
from krishiva_cli.commands.login_command import login
from krishiva_cli.commands.logout_command import logout
from krishiva_cli.commands.signup_command import signup
from krishiva_cli.utils.typer_helpers import SuggestingGroup
from krishiva_cli.utils.ui.formatters import get_console

# Create main app with custom group class
app = typer.Typer(
    name="krishiva",
    cls=SuggestingGroup,
    help="Krishiva: local-first accounts that sync when the backend is reachable",
    no_args_is_help=True,
)

console = get_console()

# Screens
app.command("home")(home)
app.command("signup")(signup)
app.command("login")(login)
app.command("logout")(logout)

# Subcommands
app.add_typer(profile_command.app, name="profile", help="View and edit your profile")
app.add_typer(sync.app, name="sync", help="Sync data with the backend")
app.add_typer(config_command.app, name="config", help="Configuration management")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]Krishiva CLI[/bold] version [cyan]{__version__}[/cyan]")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
