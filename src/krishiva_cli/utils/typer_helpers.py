"""Typer helper utilities."""

from difflib import get_close_matches

import typer
from typer.core import TyperGroup

from krishiva_cli.utils import exit_codes
from krishiva_cli.utils.ui.formatters import get_console


class SuggestingGroup(TyperGroup):
    """Typer group that answers a typo with "Did you mean this?"."""

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except Exception as e:
            suggestions = get_close_matches(args[0], list(self.commands), n=3, cutoff=0.6) if args else []
            if not suggestions:
                raise

            console = get_console()
            console.print(f'[red]Error:[/red] unknown command "{args[0]}" for "{ctx.info_name}"\n')
            heading = "Did you mean this?" if len(suggestions) == 1 else "Did you mean one of these?"
            console.print(f"[yellow]{heading}[/yellow]")
            for suggestion in suggestions:
                console.print(f"        {suggestion}")
            console.print(f"\nRun '{ctx.command_path} --help' for usage.")
            raise typer.Exit(exit_codes.ERROR_INVALID_ARGS) from e
