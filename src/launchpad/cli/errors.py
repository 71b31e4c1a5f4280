"""
Logging setup and error presentation for the Launchpad CLI.
"""

import logging
import sys
import traceback
from enum import IntEnum

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from launchpad.core.exceptions import LaunchpadError

console = Console()

# Global debug flag
_debug_mode = False


class ExitCode(IntEnum):
    """Exit codes for Launchpad CLI operations."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    USER_ERROR = 2


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for CLI commands.

    Args:
        debug: If True, enable DEBUG level logging and full tracebacks
    """
    global _debug_mode
    _debug_mode = debug

    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )


def handle_error(error: Exception, command_name: str) -> None:
    """
    Display an error raised by a command.

    Args:
        error: The exception that was raised
        command_name: Name of the command that failed
    """
    error_text = Text()
    if isinstance(error, LaunchpadError):
        error_text.append("Error: ", style="bold red")
        error_text.append(str(error))

        context = {k: v for k, v in error.context.items() if v is not None}
        if context:
            error_text.append("\n\nContext:\n", style="dim")
            for key, value in context.items():
                error_text.append(f"  {key}: ", style="cyan")
                error_text.append(f"{value}\n", style="white")
        title = "[bold red]Error[/bold red]"
    else:
        error_text.append("Unexpected error in ", style="bold red")
        error_text.append(command_name, style="bold yellow")
        error_text.append(": ", style="bold red")
        error_text.append(str(error))
        title = "[bold red]Unexpected Error[/bold red]"

    console.print()
    console.print(Panel(error_text, title=title, border_style="red", expand=False))

    if _debug_mode:
        console.print("\n[dim]Full traceback:[/dim]")
        console.print(traceback.format_exc())
    else:
        console.print("[dim]Run with --debug for full traceback[/dim]")
    console.print()
