"""
Launchpad CLI - backup commands.

List, restore and create server-side backups of collections.
"""

from typing import Annotated

import typer
from rich.table import Table

from launchpad.cli.common import build_transport, run_async
from launchpad.cli.errors import ExitCode, console, handle_error
from launchpad.core.backups.client import BackupClient
from launchpad.core.config.loader import load_config

app = typer.Typer(
    name="backups",
    help="List, restore and create server-side backups",
    no_args_is_help=True,
)

DataKeyArg = Annotated[
    str,
    typer.Argument(help="Data key, e.g. templates or saved_items:<userId>"),
]


@app.command("list")
def list_backups(
    data_key: DataKeyArg,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum backups to show")] = 20,
) -> None:
    """
    List the most recent backups for a data key.

    Examples:
        launchpad backups list templates
        launchpad backups list saved_items:1234567 --limit 5
    """
    config = load_config()

    async def _list():
        async with build_transport(config) as transport:
            return await BackupClient(transport).list_backups(data_key, limit=limit)

    try:
        backups = run_async(_list())
    except Exception as e:
        handle_error(e, "backups list")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if not backups:
        console.print(f"[dim]No backups for {data_key}[/dim]")
        return

    table = Table(title=f"Backups: {data_key}")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Items", justify="right")
    table.add_column("Trigger")
    table.add_column("By")
    table.add_column("Created")
    for b in backups:
        created = b.created_at.strftime("%Y-%m-%d %H:%M") if b.created_at else "-"
        table.add_row(str(b.id), str(b.item_count), b.action or "-", b.created_by or "-", created)
    console.print(table)


@app.command()
def restore(
    data_key: DataKeyArg,
    backup_id: Annotated[int, typer.Argument(help="Backup id (see 'launchpad backups list')")],
    merge: Annotated[
        bool, typer.Option("--merge", help="Merge into current data instead of replacing it")
    ] = False,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """
    Restore a collection from a backup.

    Examples:
        launchpad backups restore templates 42
        launchpad backups restore templates 42 --merge --yes
    """
    if not yes:
        action = "Merge" if merge else "Replace"
        typer.confirm(f"{action} {data_key} with backup #{backup_id}?", abort=True)

    config = load_config()

    async def _restore():
        async with build_transport(config) as transport:
            return await BackupClient(transport).restore(data_key, backup_id, merge=merge)

    try:
        result = run_async(_restore())
    except Exception as e:
        handle_error(e, "backups restore")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    style = "green" if result.success else "red"
    console.print(f"[{style}]{result.summary()}[/{style}]")
    if not result.success:
        raise typer.Exit(ExitCode.GENERAL_ERROR)


@app.command()
def create(data_key: DataKeyArg) -> None:
    """
    Create a manual backup of a collection's current server data.

    Examples:
        launchpad backups create templates
    """
    config = load_config()

    async def _create():
        async with build_transport(config) as transport:
            return await BackupClient(transport).create(data_key, user_id=config.sync.user_id)

    try:
        result = run_async(_create())
    except Exception as e:
        handle_error(e, "backups create")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(f"[green]{result.summary()}[/green]")
