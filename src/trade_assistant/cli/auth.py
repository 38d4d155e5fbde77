"""CLI: trade-assistant login|logout|status"""

from typing import Optional

import click
from rich.console import Console

from trade_assistant.models.session import SessionType

console = Console()


def _load_config() -> dict:
    from trade_assistant.cli.main import _load_config
    return _load_config()


def _save_config(cfg: dict) -> None:
    from trade_assistant.cli.main import _save_config
    _save_config(cfg)


def _session_file():
    from trade_assistant.cli.main import _session_file
    return _session_file()


@click.command("login")
@click.argument("user_id", type=int)
@click.option(
    "--type", "session_type",
    type=click.Choice([t.value for t in SessionType]),
    default=SessionType.SELLER_PRODUCT_INQUIRY.value,
    help="Conversation purpose",
)
@click.option("--language", default="ko", help="Preferred assistant language")
@click.option("--base-url", default=None, help="Backend API base URL")
def login(user_id: int, session_type: str, language: str, base_url: Optional[str]):
    """Bind the CLI to a storefront user."""
    cfg = _load_config()
    if cfg.get("user_id") not in (None, user_id) or cfg.get("session_type") not in (None, session_type):
        # A conversation belongs to one user and one purpose
        _session_file().unlink(missing_ok=True)
    cfg.update({"user_id": user_id, "session_type": session_type, "language": language})
    if base_url:
        cfg["base_url"] = base_url
    _save_config(cfg)
    console.print(f"[green]Logged in as user {user_id}[/green] [dim]({session_type}, {language})[/dim]")


@click.command("logout")
def logout():
    """Clear saved user and the current conversation."""
    _save_config({})
    _session_file().unlink(missing_ok=True)
    console.print("[green]Logged out.[/green]")


@click.command("status")
def status():
    """Show who the CLI talks as."""
    cfg = _load_config()
    if cfg.get("user_id"):
        console.print(
            f"[green]Logged in[/green] as user {cfg['user_id']} "
            f"({cfg.get('session_type', SessionType.SELLER_PRODUCT_INQUIRY.value)}, {cfg.get('language', 'ko')})"
        )
    else:
        console.print("[yellow]Not logged in. Run `trade-assistant login <user-id>`.[/yellow]")
