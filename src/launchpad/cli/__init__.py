"""
Launchpad CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import typer

from launchpad import __version__
from launchpad.cli import backups, collections
from launchpad.cli.errors import console, setup_logging
from launchpad.core.config.env import load_layered_env

app = typer.Typer(
    name="launchpad",
    help="Inspect and repair the template library's synced collections",
    no_args_is_help=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"launchpad {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    Launchpad - template library sync tools.

    Examples:
        launchpad health
        launchpad status --user 1234567
        launchpad show templates
        launchpad backups list templates
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()
    setup_logging(debug)
    ctx.obj = {"debug": debug}


app.command(name="health")(collections.health)
app.command(name="status")(collections.status)
app.command(name="show")(collections.show)
app.add_typer(backups.app, name="backups")


__all__ = ["app", "main"]
