"""Risk commands for Trade Journal CLI.

Position sizing and the daily loss limit check.
"""

from datetime import datetime
from typing import Optional

import click
from rich.panel import Panel

from tradejournal.analytics.risk import (
    DEFAULT_TICK_VALUE,
    daily_limit_status,
    position_size,
    risk_amount,
)
from tradejournal.analytics.statistics import closed_trades
from tradejournal.cli.common import (
    DATE_TYPE,
    console,
    day_bounds,
    default_account,
    get_data_store,
    load_config,
    load_timezone,
)
from tradejournal.formatters import colored_pnl, format_currency, format_percent

LEVEL_COLORS = {"safe": "green", "warning": "yellow", "danger": "red", "exceeded": "bold red"}


@click.group()
def risk():
    """Position sizing and daily loss limits.

    \b
    Examples:
      tradejournal risk size --stop 8 --symbol ES
      tradejournal risk size --stop 20 --symbol MNQ --risk 0.5
      tradejournal risk limit
    """
    pass


@risk.command("size")
@click.option("--stop", "stop_ticks", type=float, required=True, help="Stop distance in ticks.")
@click.option("--symbol", default="ES", show_default=True, help="Instrument symbol.")
@click.option("--account-size", type=float, default=None, help="Account size (default: config).")
@click.option("--risk", "risk_percent", type=float, default=None,
              help="Percent of the account to risk (default: config).")
def risk_size(
    stop_ticks: float,
    symbol: str,
    account_size: Optional[float],
    risk_percent: Optional[float],
) -> None:
    """Contracts to trade for a fixed percentage risk."""
    config = load_config()
    store = get_data_store()
    risk_config = config.get("risk", {})
    account_size = account_size if account_size is not None else risk_config.get("account_size", 0.0)
    risk_percent = risk_percent if risk_percent is not None else risk_config.get("risk_percent", 1.0)

    instrument = store.get_instrument(symbol.upper())
    tick_value = instrument.tick_value if instrument else DEFAULT_TICK_VALUE
    if instrument is None:
        console.print(f"[yellow]Unknown instrument {symbol.upper()}, using ES tick value.[/yellow]")

    contracts = position_size(account_size, risk_percent, stop_ticks, tick_value)
    budget = risk_amount(account_size, risk_percent)
    actual = contracts * stop_ticks * tick_value

    color = "green" if contracts > 0 else "red"
    console.print(Panel(
        f"Account: {format_currency(account_size)}  Risk: {format_percent(risk_percent)}"
        f" = {format_currency(budget)}\n"
        f"Stop: {stop_ticks:g} ticks x {format_currency(tick_value)}/tick\n\n"
        f"[{color}][bold]{contracts}[/bold] contracts[/{color}]"
        f"  [dim](actual risk {format_currency(actual)})[/dim]",
        title=f"[bold]Position Size - {symbol.upper()}[/bold]",
        border_style="blue",
    ))


@risk.command("limit")
@click.option("--date", "day", type=DATE_TYPE, default=None, help="Day to check (default: today).")
@click.option("-a", "--account", "account_ref", default=None, help="Account name or ID.")
@click.option("--limit", "daily_limit", type=float, default=None,
              help="Daily loss limit (default: config).")
def risk_limit(day, account_ref: Optional[str], daily_limit: Optional[float]) -> None:
    """Compare today's P&L with the daily loss limit."""
    config = load_config()
    tz = load_timezone(config)
    store = get_data_store()
    account = default_account(store, config, account_ref)
    risk_config = config.get("risk", {})

    day = day.date() if day else datetime.now(tz).date()
    start, end = day_bounds(day, tz)
    trades = store.get_trades(account_id=account.id if account else None,
                              from_date=start, to_date=end)
    closed = closed_trades(trades)
    pnl = sum(t.net_pnl for t in closed)

    if daily_limit is None:
        daily_limit = risk_config.get("daily_loss_limit", 0.0)
    status = daily_limit_status(
        daily_limit,
        pnl,
        trades_today=len(trades),
        max_trades=risk_config.get("max_trades_per_day", 0),
    )

    color = LEVEL_COLORS[status.level]
    lines = [
        f"P&L: {colored_pnl(status.current_pnl)}  ({len(closed)} closed trades)",
        f"Limit: {format_currency(status.daily_limit)}  "
        f"Used: [{color}]{format_percent(status.percent_used, 0)}[/{color}]  "
        f"Remaining: {format_currency(status.remaining)}",
    ]
    if status.max_trades:
        lines.append(f"Trades: {status.trades_today}/{status.max_trades}")
    if status.level == "exceeded":
        lines += ["", "[bold red]Daily loss limit reached. Stop trading for today.[/bold red]"]
    elif status.trade_limit_hit:
        lines += ["", "[bold red]Trade limit reached for today.[/bold red]"]

    console.print(Panel(
        "\n".join(lines),
        title=f"[bold]Daily Limit - {day.isoformat()}[/bold] [{color}]{status.level.upper()}[/{color}]",
        border_style=color.split()[-1],
    ))
