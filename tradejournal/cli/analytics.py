"""Analytics commands for Trade Journal CLI.

Performance statistics, equity curve, breakdowns and the P&L calendar.
"""

import calendar as calendar_module
from datetime import datetime
from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from tradejournal.analytics import breakdowns, build_analytics
from tradejournal.analytics.filters import DateRange, TradeFilter
from tradejournal.cli.common import (
    DATE_TYPE,
    RANGE_CHOICES,
    console,
    default_account,
    fail,
    get_data_store,
    load_config,
    load_timezone,
    local,
)
from tradejournal.formatters import (
    colored_pnl,
    colored_r,
    format_currency,
    format_duration,
    format_percent,
    format_pnl,
    format_ratio,
)

BREAKDOWNS = {
    "day": ("Day of Week", "by_day_of_week"),
    "hour": ("Hour of Day", "by_hour"),
    "setup": ("Setup", "by_setup"),
    "emotion": ("Emotion", "by_emotion"),
    "mistake": ("Mistake", "by_mistake"),
    "month": ("Month", "by_month"),
    "symbol": ("Symbol", "by_symbol"),
    "session": ("Session", "by_session"),
    "side": ("Side", "by_side"),
    "hold": ("Hold Time", "by_hold_time"),
}


def range_options(func):
    """Shared date range and account options."""
    func = click.option("-a", "--account", "account_ref", default=None,
                        help="Account name or ID.")(func)
    func = click.option("--to", "end", type=DATE_TYPE, default=None,
                        help="Last day (YYYY-MM-DD).")(func)
    func = click.option("--from", "start", type=DATE_TYPE, default=None,
                        help="First day (YYYY-MM-DD).")(func)
    func = click.option("-r", "--range", "date_range", type=click.Choice(RANGE_CHOICES),
                        default=None, help="Date range preset (default: config).")(func)
    return func


def _load(date_range: Optional[str], start, end, account_ref: Optional[str]):
    """Load config, trades in range, starting balance and timezone."""
    config = load_config()
    tz = load_timezone(config)
    store = get_data_store()
    account = default_account(store, config, account_ref)

    if bool(start) != bool(end):
        fail("Use --from and --to together.")

    if start and end:
        preset = DateRange.CUSTOM
    else:
        name = date_range or config.get("analytics", {}).get("date_range", "all")
        try:
            preset = DateRange(name)
        except ValueError:
            fail(
                f"Unknown date range '{name}' in analytics.date_range.\n\n"
                "Run [cyan]tradejournal config[/cyan] to check your settings.",
                title="Configuration Error",
            )

    trade_filter = TradeFilter.for_range(
        preset, start.date() if start else None, end.date() if end else None, tz=tz
    )
    trades = trade_filter.apply(store.get_trades(account_id=account.id if account else None))

    starting_balance = config.get("analytics", {}).get("starting_balance", 0.0)
    if account and account.starting_balance:
        starting_balance = account.starting_balance

    return trades, starting_balance, tz, account


@click.command()
@range_options
def stats(date_range: Optional[str], start, end, account_ref: Optional[str]) -> None:
    """Show performance statistics.

    \b
    Examples:
      tradejournal stats
      tradejournal stats --range 30d --account Apex
      tradejournal stats --from 2025-01-01 --to 2025-03-31
    """
    trades, starting_balance, tz, account = _load(date_range, start, end, account_ref)
    report = build_analytics(trades, starting_balance, tz)
    s = report.statistics

    if s.total_trades == 0:
        console.print("[dim]No closed trades in range.[/dim]")
        return

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    rows = [
        ("Total Trades", str(s.total_trades), "Net P&L", colored_pnl(s.total_pnl)),
        ("Win Rate", format_percent(s.win_rate), "Gross Profit", format_currency(s.gross_profit)),
        ("Wins / Losses", f"{s.winning_trades} / {s.losing_trades}",
         "Gross Loss", format_currency(-s.gross_loss)),
        ("Breakeven", str(s.breakeven_trades), "Costs", format_currency(s.total_commission)),
        ("Profit Factor", format_ratio(s.profit_factor), "Expectancy", colored_pnl(s.expectancy)),
        ("Avg Winner", format_currency(s.average_winner),
         "Avg Loser", format_currency(-s.average_loser)),
        ("Win/Loss Ratio", format_ratio(s.win_loss_ratio), "Avg R", colored_r(s.average_r_multiple)),
        ("Largest Win", format_currency(s.largest_win),
         "Largest Loss", format_currency(s.largest_loss)),
        ("Max Win Streak", str(s.consecutive_wins), "Max Loss Streak", str(s.consecutive_losses)),
        ("Current Streak", f"{s.current_streak:+d}", "Sharpe", format_ratio(s.sharpe_ratio)),
        ("Max Drawdown", f"{format_currency(report.max_drawdown_amount)} "
                         f"({format_percent(report.max_drawdown)})",
         "Current Drawdown", format_percent(report.current_drawdown)),
    ]
    for row in rows:
        table.add_row(*row)

    title = "Performance"
    if account:
        title += f" - {account.name}"
    console.print(Panel(table, title=f"[bold]{title}[/bold]", border_style="blue"))

    if starting_balance:
        color = "green" if report.ending_balance >= starting_balance else "red"
        console.print(
            f"Balance: {format_currency(starting_balance)} → "
            f"[{color}]{format_currency(report.ending_balance)}[/{color}]"
        )

    for label, trade in (("Best", s.best_trade), ("Worst", s.worst_trade)):
        if trade is not None:
            console.print(
                f"[dim]{label} trade:[/dim] #{trade.id} {trade.symbol} "
                f"{local(trade.entry_date, tz, '%Y-%m-%d')} {colored_pnl(trade.net_pnl)}"
            )


@click.command()
@range_options
@click.option("--daily", is_flag=True, help="One point per day instead of per trade.")
@click.option("--drawdowns", is_flag=True, help="List drawdown periods.")
def equity(date_range: Optional[str], start, end, account_ref: Optional[str],
           daily: bool, drawdowns: bool) -> None:
    """Show the equity curve.

    \b
    Examples:
      tradejournal equity
      tradejournal equity --daily --range 90d
      tradejournal equity --drawdowns
    """
    trades, starting_balance, tz, _ = _load(date_range, start, end, account_ref)
    report = build_analytics(trades, starting_balance, tz)

    if not report.equity_curve:
        console.print("[dim]No closed trades in range.[/dim]")
        return

    if drawdowns:
        table = Table(title="Drawdown Periods", show_header=True)
        table.add_column("Peak", style="cyan")
        table.add_column("Recovered")
        table.add_column("Amount", justify="right", style="red")
        table.add_column("Percent", justify="right")
        table.add_column("Duration", justify="right")
        for period in report.drawdown_periods:
            table.add_row(
                local(period.start, tz),
                "[yellow]ongoing[/yellow]" if period.is_ongoing else local(period.end, tz),
                format_currency(period.amount),
                format_percent(period.percent),
                format_duration(period.duration),
            )
        if not report.drawdown_periods:
            console.print("[green]No drawdowns.[/green]")
            return
        console.print(table)
        return

    table = Table(title="Equity Curve", show_header=True)
    if daily:
        table.add_column("Day", style="cyan")
        table.add_column("P&L", justify="right")
        table.add_column("Equity", justify="right")
        for point in report.daily_equity:
            table.add_row(point.day.isoformat(), colored_pnl(point.pnl), format_currency(point.equity))
    else:
        table.add_column("Date", style="cyan")
        table.add_column("Trade", justify="right", style="dim")
        table.add_column("Equity", justify="right")
        for point in report.equity_curve:
            table.add_row(
                local(point.date, tz),
                str(point.trade_id) if point.trade_id else "start",
                format_currency(point.equity),
            )

    console.print(table)
    console.print(
        f"Max drawdown: [red]{format_currency(report.max_drawdown_amount)}[/red] "
        f"({format_percent(report.max_drawdown)})"
    )


@click.command()
@click.argument("kind", type=click.Choice(list(BREAKDOWNS)), default="day")
@range_options
def breakdown(kind: str, date_range: Optional[str], start, end, account_ref: Optional[str]) -> None:
    """Break performance down by a trade attribute.

    KIND is one of: day, hour, setup, emotion, mistake, month, symbol,
    session, side, hold.

    \b
    Examples:
      tradejournal breakdown day
      tradejournal breakdown setup --range 90d
      tradejournal breakdown mistake
    """
    trades, starting_balance, tz, _ = _load(date_range, start, end, account_ref)
    title, attribute = BREAKDOWNS[kind]
    report = build_analytics(trades, starting_balance, tz)
    buckets = getattr(report, attribute)

    if not any(bucket.trades for bucket in buckets):
        console.print("[dim]No closed trades in range.[/dim]")
        return

    table = Table(title=f"Performance by {title}", show_header=True)
    table.add_column(title, style="cyan")
    table.add_column("Trades", justify="right")
    table.add_column("Win Rate", justify="right")
    table.add_column("Net P&L", justify="right")
    table.add_column("Avg P&L", justify="right")
    table.add_column("Avg R", justify="right")
    table.add_column("Contracts", justify="right", style="dim")

    for bucket in buckets:
        if bucket.trades == 0:
            table.add_row(bucket.label, "0", "-", "[dim]-[/dim]", "[dim]-[/dim]", "[dim]-[/dim]", "0")
            continue
        table.add_row(
            bucket.label,
            str(bucket.trades),
            format_percent(bucket.win_rate, 1),
            colored_pnl(bucket.pnl),
            colored_pnl(bucket.avg_pnl),
            colored_r(bucket.avg_r),
            f"{bucket.volume:g}",
        )

    console.print(table)


@click.command()
@click.option("-m", "--month", default=None, metavar="YYYY-MM",
              help="Month to show (default: current month).")
@click.option("-a", "--account", "account_ref", default=None, help="Account name or ID.")
def calendar(month: Optional[str], account_ref: Optional[str]) -> None:
    """Show a monthly P&L calendar.

    \b
    Examples:
      tradejournal calendar
      tradejournal calendar --month 2025-01
    """
    trades, _, tz, _ = _load("all", None, None, account_ref)

    if month:
        try:
            first = datetime.strptime(month, "%Y-%m").date()
        except ValueError:
            fail(f"Invalid month '{month}'. Use YYYY-MM.")
    else:
        first = datetime.now(tz).date().replace(day=1)

    totals = breakdowns.daily_pnl(trades, tz=tz)
    weeks = calendar_module.Calendar(firstweekday=6).monthdatescalendar(first.year, first.month)

    table = Table(title=first.strftime("%B %Y"), show_header=True, show_lines=True)
    for label in ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Week"]:
        table.add_column(label, justify="center", min_width=9)

    month_total = 0.0
    trading_days = 0
    for week in weeks:
        cells = []
        week_total = 0.0
        for day in week:
            if day.month != first.month:
                cells.append("")
                continue
            pnl = totals.get(day)
            if pnl is None:
                cells.append(f"[dim]{day.day}[/dim]")
                continue
            week_total += pnl
            month_total += pnl
            trading_days += 1
            color = "green" if pnl >= 0 else "red"
            cells.append(f"{day.day}\n[{color}]{format_pnl(round(pnl))}[/{color}]")
        cells.append(colored_pnl(week_total) if week_total else "[dim]-[/dim]")
        table.add_row(*cells)

    console.print(table)
    console.print(f"Month: {colored_pnl(month_total)} over {trading_days} trading days")
