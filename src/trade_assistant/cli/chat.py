"""CLI: trade-assistant chat, trade-assistant send"""

import json
from typing import Iterable, Optional

import click
from rich.console import Console

from trade_assistant.chat import TurnResult
from trade_assistant.errors import FetchError
from trade_assistant.models.message import ChatMessage

console = Console()


def _get_client():
    from trade_assistant.cli.main import _get_client
    return _get_client()


def _run(coro):
    from trade_assistant.cli.main import _run
    return _run(coro)


def _print_message(msg: ChatMessage) -> None:
    if msg.is_user:
        console.print(f"[bold]You:[/bold] {msg.content}")
        return
    console.print(f"[green]Assistant:[/green] {msg.content}")
    for i, action in enumerate(msg.suggested_actions(), 1):
        console.print(f"  [cyan]/{i}[/cyan] {action}")


def _last_suggestions(messages: Iterable[ChatMessage]) -> list[str]:
    for msg in reversed(list(messages)):
        if not msg.is_user:
            return msg.suggested_actions()
    return []


def _print_turn(result: TurnResult) -> None:
    if result.abandoned:
        console.print("[dim]Conversation was cleared.[/dim]")
        return
    if result.assistant_message is not None:
        _print_message(result.assistant_message)
    if result.error is not None:
        console.print(f"[red]{result.error.code}:[/red] {result.error}")


@click.command("chat")
@click.option("-s", "--session", "session_id", type=int, default=None, help="Resume this session id")
def chat_cmd(session_id: Optional[int]):
    """Interactive chat with the trade assistant."""

    async def _chat():
        client = _get_client()
        try:
            with console.status("Opening chat..."):
                if session_id:
                    await client.load_existing(session_id)
                else:
                    resumed = await client.resume()
                    if resumed is not None and not resumed.is_active:
                        console.print(f"[dim]Session {resumed.id} is {resumed.status.value}; starting a new one.[/dim]")
                        client.clear()
                    await client.ensure_session()
            console.print(f"[dim]Session: {client.current_session.id}[/dim]")
            for msg in client.messages:
                _print_message(msg)
            console.print("[cyan]Type your message (/N picks a suggestion, /refresh, /quit)[/cyan]\n")

            while True:
                text = click.prompt("You", prompt_suffix=": ").strip()
                if text.lower() in ("/quit", "/exit"):
                    break
                if text == "/refresh":
                    try:
                        refreshed = await client.refresh_messages()
                    except FetchError as e:
                        console.print(f"[red]{e.code}:[/red] {e}")
                        continue
                    for msg in refreshed:
                        _print_message(msg)
                    continue
                if text.startswith("/") and text[1:].isdigit():
                    suggestions = _last_suggestions(client.messages)
                    index = int(text[1:]) - 1
                    if not 0 <= index < len(suggestions):
                        console.print("[yellow]No such suggestion.[/yellow]")
                        continue
                    with console.status("Thinking..."):
                        result = await client.submit_suggested_action(suggestions[index])
                else:
                    with console.status("Thinking..."):
                        result = await client.submit_user_turn(text)
                _print_turn(result)
                if result.error is not None:
                    client.acknowledge_error()
        except (KeyboardInterrupt, EOFError, click.Abort):
            pass
        finally:
            await client.close()

    _run(_chat())


@click.command("send")
@click.argument("message")
@click.option("--action", is_flag=True, help="Send as a clicked suggested action")
@click.option("--json-output", "--json", is_flag=True)
def send_cmd(message: str, action: bool, json_output: bool):
    """Send a one-shot turn."""

    async def _send() -> TurnResult:
        client = _get_client()
        try:
            if client.current_session is None and not json_output:
                console.print("[dim]Starting a new session...[/dim]")
            if action:
                result = await client.submit_suggested_action(message)
            else:
                result = await client.submit_user_turn(message)
        finally:
            await client.close()
        if json_output:
            click.echo(json.dumps({
                "session_id": result.session_id,
                "messages": [m.model_dump(mode="json", by_alias=True) for m in result.messages or ()],
                "error": {"code": result.error.code, "message": str(result.error)} if result.error else None,
            }))
        else:
            _print_turn(result)
        return result

    result = _run(_send())
    if result.error is not None:
        raise SystemExit(1)
