"""
Launchpad CLI - collection commands.

Check the remote store and inspect synced collections.
"""

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table
from rich.text import Text

from launchpad.cli.common import build_transport, run_async
from launchpad.cli.errors import ExitCode, console, handle_error
from launchpad.core.config.loader import load_config
from launchpad.core.sync.collections import COLLECTIONS
from launchpad.core.sync.models import SyncPhase, SyncState
from launchpad.core.sync.session import SyncSession

UserOption = Annotated[
    str | None,
    typer.Option("--user", "-u", help="User id for per-user collections (default: LAUNCHPAD_USER_ID)"),
]


def health() -> None:
    """
    Check whether the remote store is reachable.

    Examples:
        launchpad health
    """
    config = load_config()

    async def _check() -> bool:
        async with build_transport(config) as transport:
            return await transport.check_health()

    try:
        healthy = run_async(_check())
    except Exception as e:
        handle_error(e, "health")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if healthy:
        console.print(f"[green]✓[/green] {config.api.base_url} is healthy")
        return
    console.print(f"[red]✗[/red] {config.api.base_url} is unreachable or unhealthy")
    raise typer.Exit(ExitCode.GENERAL_ERROR)


async def _load_session(
    config, user_id: str | None, names: list[str] | None = None
) -> dict[str, SyncState]:
    collections = COLLECTIONS if names is None else {n: COLLECTIONS[n] for n in names}
    async with build_transport(config) as transport:
        async with SyncSession(
            config,
            user_id,
            transport=transport,
            collections=collections,
            project_dir=Path.cwd(),
            read_only=True,
        ) as session:
            return await session.load_all()


def status(user: UserOption = None) -> None:
    """
    Load every collection and show where each value came from.

    Examples:
        launchpad status
        launchpad status --user 1234567
    """
    config = load_config()
    try:
        states = run_async(_load_session(config, user))
    except Exception as e:
        handle_error(e, "status")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    table = Table(title="Collections")
    table.add_column("Collection", style="cyan", no_wrap=True)
    table.add_column("Items", justify="right")
    table.add_column("Scope")
    table.add_column("Mode")
    table.add_column("Source")

    for name, state in states.items():
        spec = COLLECTIONS[name]
        if state.using_fallback:
            source = Text("local cache", style="yellow")
        elif state.phase is SyncPhase.LOADING:
            source = Text("not loaded", style="red")
        else:
            source = Text("server", style="green")
        table.add_row(name, str(state.item_count), spec.scope.value, spec.mode.value, source)

    console.print(table)

    skipped = [n for n, s in COLLECTIONS.items() if s.is_per_user and n not in states]
    if skipped:
        console.print(f"[dim]Skipped per-user collections (no --user): {', '.join(skipped)}[/dim]")


def show(
    name: Annotated[str, typer.Argument(help="Collection name (see 'launchpad status')")],
    user: UserOption = None,
) -> None:
    """
    Print a collection's current value as JSON.

    Examples:
        launchpad show templates
        launchpad show saved_items --user 1234567
    """
    if name not in COLLECTIONS:
        console.print(f"[red]Unknown collection:[/red] {name}")
        console.print(f"[dim]Known collections: {', '.join(sorted(COLLECTIONS))}[/dim]")
        raise typer.Exit(ExitCode.USER_ERROR)

    config = load_config()
    if COLLECTIONS[name].is_per_user and not (user or config.sync.user_id):
        console.print(f"[red]{name} is per-user:[/red] pass --user or set LAUNCHPAD_USER_ID")
        raise typer.Exit(ExitCode.USER_ERROR)

    try:
        states = run_async(_load_session(config, user, [name]))
    except Exception as e:
        handle_error(e, "show")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    state = states[name]
    if state.using_fallback:
        console.print("[yellow]Server unavailable; showing local cache[/yellow]", style="dim")
    typer.echo(json.dumps(state.value, indent=2, ensure_ascii=False))
