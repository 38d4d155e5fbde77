"""CLI: trade-assistant sessions show|load|close|active"""

import json

import click
from rich.console import Console
from rich.table import Table

from trade_assistant.models.session import SessionStatus

console = Console()


def _get_client():
    from trade_assistant.cli.main import _get_client
    return _get_client()


def _run(coro):
    from trade_assistant.cli.main import _run
    return _run(coro)


@click.group()
def sessions():
    """Chat session management."""


@sessions.command("show")
def sessions_show():
    """Show the saved current session."""
    client = _get_client()
    session = client.current_session
    if session is None:
        console.print("[yellow]No current session.[/yellow]")
        return
    console.print(f"[bold]{session.id}[/bold] {session.session_type.value} ({session.status.value}) "
                  f"language={session.language} created={session.created_at}")


@sessions.command("load")
@click.argument("session_id", type=int)
def sessions_load(session_id):
    """Make an existing session the current one."""

    async def _load():
        client = _get_client()
        try:
            with console.status("Loading session..."):
                session = await client.load_existing(session_id)
        finally:
            await client.close()
        console.print(f"[green]Session {session.id} loaded ({len(client.messages)} messages).[/green]")

    _run(_load())


@sessions.command("close")
def sessions_close():
    """Close the current session and forget it locally."""

    async def _close():
        client = _get_client()
        try:
            with console.status("Closing session..."):
                session = await client.update_status(SessionStatus.CLOSED)
            client.clear()
        finally:
            await client.close()
        console.print(f"[green]Session {session.id} is {session.status.value}.[/green]")

    _run(_close())


@sessions.command("active")
@click.option("--json-output", "--json", is_flag=True)
def sessions_active(json_output):
    """List the user's active sessions on the server."""

    async def _list():
        client = _get_client()
        try:
            result = await client.list_active_sessions()
        finally:
            await client.close()
        if json_output:
            click.echo(json.dumps([s.model_dump(mode="json", by_alias=True) for s in result], indent=2))
            return
        table = Table(title=f"Active sessions ({len(result)})")
        table.add_column("ID", style="bold")
        table.add_column("Type")
        table.add_column("Status")
        table.add_column("Language")
        table.add_column("Updated")
        for s in result:
            table.add_row(str(s.id), s.session_type.value, s.status.value, s.language, s.updated_at)
        console.print(table)

    _run(_list())
