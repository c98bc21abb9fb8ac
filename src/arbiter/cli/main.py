"""Arbiter CLI main entry point.

This module defines the main Typer application and registers
all commands for the Arbiter CLI.
"""

from typing import Annotated

import typer

from arbiter import __version__
from arbiter.cli.commands import matrix, overrides
from arbiter.cli.formatters import console

# Create the main Typer app
app = typer.Typer(
    name="arbiter",
    help="Arbiter - capability-aware LLM model ranking",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["--help", "-h"]},
)

# Register commands
app.command(
    "init-overrides",
    context_settings=overrides.CONTEXT_SETTINGS,
)(overrides.init_overrides)
app.command(
    "generate-overrides",
    context_settings=overrides.CONTEXT_SETTINGS,
    help="Alias of init-overrides.",
)(overrides.init_overrides)
app.add_typer(matrix.app, name="matrix")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]Arbiter[/] version [green]{__version__}[/]")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """Arbiter - capability-aware LLM model ranking.

    Generate matrix override templates and inspect model capability tiers.

    Use [bold cyan]arbiter COMMAND --help[/] for command-specific help.
    """
    pass


__all__ = ["app", "main"]
