"""Helpers shared by the CLI command modules."""

from datetime import date, datetime, time, timezone, tzinfo
from typing import Optional, Union

import click
from rich.console import Console
from rich.panel import Panel

from tradejournal.config import ConfigError, get_config, get_db_path, get_timezone
from tradejournal.db.store import DataStore
from tradejournal.models import Account, EmotionTag, MistakeTag, Session, Trade

console = Console()

RANGE_CHOICES = ["7d", "30d", "90d", "ytd", "1y", "all"]
DATE_TYPE = click.DateTime(formats=["%Y-%m-%d"])
EMOTION_CHOICE = click.Choice([e.value for e in EmotionTag], case_sensitive=False)
MISTAKE_CHOICE = click.Choice([m.value for m in MistakeTag], case_sensitive=False)
SESSION_CHOICE = click.Choice([s.value for s in Session], case_sensitive=False)


def fail(message: str, title: str = "Error") -> None:
    """Print an error panel and exit with status 1."""
    console.print(Panel(
        f"[red]{message}[/red]",
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    ))
    raise SystemExit(1)


def load_config() -> dict:
    try:
        return get_config()
    except ConfigError as e:
        fail(str(e))


def load_timezone(config: dict) -> tzinfo:
    try:
        return get_timezone(config)
    except ConfigError as e:
        fail(str(e))


def get_data_store() -> DataStore:
    """Get the data store instance."""
    return DataStore(get_db_path())


def resolve_account(store: DataStore, ref: Optional[Union[str, int]]) -> Optional[Account]:
    """Find an account by ID or name, exiting when it does not exist."""
    if ref is None or ref == "":
        return None
    ref = str(ref)
    account = store.get_account(int(ref)) if ref.isdigit() else None
    account = account or store.find_account(ref)
    if account is None:
        fail(f"Account '{ref}' not found.\n\nRun [cyan]tradejournal account list[/cyan].")
    return account


def default_account(store: DataStore, config: dict, ref: Optional[str] = None) -> Optional[Account]:
    """Account named on the command line, in the config, or flagged default."""
    if ref:
        return resolve_account(store, ref)
    configured = config.get("journal", {}).get("default_account")
    if configured:
        return resolve_account(store, configured)
    return store.get_default_account()


def require_trade(store: DataStore, trade_id: int) -> Trade:
    trade = store.get_trade(trade_id)
    if trade is None:
        fail(f"Trade {trade_id} not found.")
    return trade


def day_bounds(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Start and end of a calendar day in tz."""
    return (
        datetime.combine(day, time.min, tzinfo=tz),
        datetime.combine(day, time.max, tzinfo=tz),
    )


def local(value: Optional[datetime], tz: tzinfo = timezone.utc, fmt: str = "%Y-%m-%d %H:%M") -> str:
    if value is None:
        return "-"
    return value.astimezone(tz).strftime(fmt)
