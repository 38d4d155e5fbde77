"""
`trade-assistant`: drive the storefront's trade assistant from a terminal.

The bound user and conversation purpose live in ~/.trade-assistant/config.json,
the current session next to it in session.json. SDK errors end a command with
their code on stderr and exit status 1.
"""

import asyncio
import json
import logging
from pathlib import Path

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install trade-assistant[cli]")

from trade_assistant.client import AsyncTradeAssistant
from trade_assistant.errors import TradeAssistantError
from trade_assistant.transport.http import DEFAULT_BASE_URL

console = Console()
err_console = Console(stderr=True)
CONFIG_FILE = Path.home() / ".trade-assistant" / "config.json"


def _load_config() -> dict:
    try:
        return json.loads(CONFIG_FILE.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def _save_config(cfg: dict) -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(cfg, indent=2))


def _session_file() -> Path:
    return CONFIG_FILE.parent / "session.json"


def _get_client() -> AsyncTradeAssistant:
    cfg = _load_config()
    if not cfg.get("user_id"):
        console.print("[red]Not logged in. Run `trade-assistant login <user-id>` first.[/red]")
        raise SystemExit(1)
    return AsyncTradeAssistant(
        user_id=cfg["user_id"],
        session_type=cfg.get("session_type", "SELLER_PRODUCT_INQUIRY"),
        language=cfg.get("language", "ko"),
        base_url=cfg.get("base_url", DEFAULT_BASE_URL),
        session_file=_session_file(),
    )


def _run(coro):
    try:
        return asyncio.run(coro)
    except TradeAssistantError as e:
        err_console.print(f"[red]{e.code}:[/red] {e}")
        raise SystemExit(1)


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Log every remote call")
def main(verbose: bool):
    """Chat with the storefront trade assistant."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


# Register subcommands from separate modules
from trade_assistant.cli.auth import login, logout, status
from trade_assistant.cli.chat import chat_cmd, send_cmd
from trade_assistant.cli.sessions import sessions

main.add_command(login)
main.add_command(logout)
main.add_command(status)
main.add_command(chat_cmd)
main.add_command(send_cmd)
main.add_command(sessions)


if __name__ == "__main__":
    main()
