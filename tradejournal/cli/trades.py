"""Trade commands for Trade Journal CLI.

Handles manual trade entry, listing, review, tagging and deletion.
"""

import sqlite3
from datetime import datetime
from typing import Optional

import click
from pydantic import ValidationError
from rich.panel import Panel
from rich.table import Table

from tradejournal.analytics.filters import DateRange, TradeFilter
from tradejournal.analytics.risk import calculate_trade_pnl
from tradejournal.cli.common import (
    DATE_TYPE,
    EMOTION_CHOICE,
    MISTAKE_CHOICE,
    RANGE_CHOICES,
    SESSION_CHOICE,
    console,
    default_account,
    fail,
    get_data_store,
    load_config,
    load_timezone,
    local,
    require_trade,
    resolve_account,
)
from tradejournal.formatters import (
    colored_pnl,
    colored_r,
    format_currency,
    format_duration,
    truncate,
)
from tradejournal.importer.parsing import normalize_symbol, parse_date
from tradejournal.importer.pipeline import CommissionSettings
from tradejournal.models import Side, Trade, TradeStatus

RATING = click.IntRange(1, 5)


def _parse_time(value: Optional[str], tz, label: str) -> Optional[datetime]:
    if value is None:
        return None
    parsed = parse_date(value, tz)
    if parsed is None:
        fail(f"Invalid {label} '{value}'.\n\nUse YYYY-MM-DD HH:MM or MM/DD/YYYY HH:MM.")
    return parsed


def _stars(rating: Optional[int]) -> str:
    if rating is None:
        return "[dim]-[/dim]"
    return "★" * rating + "☆" * (5 - rating)


@click.command()
@click.argument("symbol")
@click.option("-s", "--side", type=click.Choice(["long", "short"], case_sensitive=False),
              required=True, help="Trade direction.")
@click.option("-e", "--entry", "entry_price", type=float, required=True, help="Entry price.")
@click.option("-x", "--exit", "exit_price", type=float, default=None,
              help="Exit price. Leave out for an open trade.")
@click.option("-q", "--qty", type=float, default=1, show_default=True, help="Contracts.")
@click.option("--entry-time", default=None, help="Entry time (default: now).")
@click.option("--exit-time", default=None, help="Exit time (default: entry time).")
@click.option("--stop", "stop_loss", type=float, default=None, help="Stop loss price.")
@click.option("--target", "take_profit", type=float, default=None, help="Take profit price.")
@click.option("--commission", type=float, default=None,
              help="Commission paid (default: account round trip).")
@click.option("--fees", type=float, default=0.0, help="Exchange and platform fees.")
@click.option("--setup", default=None, help="Setup label.")
@click.option("--session", type=SESSION_CHOICE, default=None, help="Market session.")
@click.option("--emotion", "emotions", type=EMOTION_CHOICE, multiple=True, help="Emotion tag.")
@click.option("--mistake", "mistakes", type=MISTAKE_CHOICE, multiple=True, help="Mistake tag.")
@click.option("-n", "--notes", default=None, help="Trade notes.")
@click.option("-a", "--account", "account_ref", default=None, help="Account name or ID.")
def add(
    symbol: str,
    side: str,
    entry_price: float,
    exit_price: Optional[float],
    qty: float,
    entry_time: Optional[str],
    exit_time: Optional[str],
    stop_loss: Optional[float],
    take_profit: Optional[float],
    commission: Optional[float],
    fees: float,
    setup: Optional[str],
    session: Optional[str],
    emotions: tuple[str, ...],
    mistakes: tuple[str, ...],
    notes: Optional[str],
    account_ref: Optional[str],
) -> None:
    """Log a trade by hand.

    P&L is computed from the instrument's tick size and tick value.

    \b
    Examples:
      tradejournal add ES --side long --entry 5000 --exit 5004 --qty 2
      tradejournal add MNQ -s short -e 18000 -x 17990 --stop 18010 --setup "ORB"
      tradejournal add NQ -s long -e 18000 --entry-time "2025-01-15 09:35"
    """
    config = load_config()
    tz = load_timezone(config)
    store = get_data_store()
    account = default_account(store, config, account_ref)

    instruments = store.get_instruments()
    root = normalize_symbol(symbol, [i.symbol for i in instruments])
    instrument = store.get_instrument(root)
    if instrument is None:
        console.print(f"[yellow]Unknown instrument {root}, using ES tick values.[/yellow]")

    entry_date = _parse_time(entry_time, tz, "entry time") or datetime.now(tz)
    exit_date = None
    if exit_price is not None:
        exit_date = _parse_time(exit_time, tz, "exit time") or entry_date

    if commission is None:
        commission = 0.0
        if exit_price is not None:
            commission = CommissionSettings.from_account(account).round_trip(qty)

    try:
        trade = Trade(
            account_id=account.id if account else None,
            symbol=root,
            side=Side(side.lower()),
            entry_date=entry_date,
            entry_price=entry_price,
            entry_contracts=qty,
            exit_date=exit_date,
            exit_price=exit_price,
            exit_contracts=qty if exit_price is not None else None,
            stop_loss=stop_loss,
            take_profit=take_profit,
            commission=commission,
            fees=fees,
            setup=setup,
            session=session,
            emotions=list(dict.fromkeys(emotions)),
            mistakes=list(dict.fromkeys(mistakes)),
            notes=notes,
            import_source="manual",
        )
        trade = calculate_trade_pnl(trade, instrument)
        trade_id = store.add_trade(trade)
    except (ValidationError, sqlite3.Error) as e:
        fail(f"Could not save trade.\n\n{e}")

    if trade.status == TradeStatus.OPEN:
        console.print(f"[green]✓ Logged open trade #{trade_id}[/green] {root} {side.upper()} x{qty:g}")
        return

    console.print(
        f"[green]✓ Logged trade #{trade_id}[/green] {root} {side.upper()} x{qty:g}  "
        f"{colored_pnl(trade.net_pnl)}  {colored_r(trade.r_multiple)}"
    )


@click.command("list")
@click.option("-r", "--range", "date_range", type=click.Choice(RANGE_CHOICES),
              default="30d", show_default=True, help="Date range preset.")
@click.option("--from", "start", type=DATE_TYPE, default=None, help="First day (YYYY-MM-DD).")
@click.option("--to", "end", type=DATE_TYPE, default=None, help="Last day (YYYY-MM-DD).")
@click.option("-a", "--account", "account_ref", default=None, help="Account name or ID.")
@click.option("--symbol", "symbols", multiple=True, help="Only these symbols.")
@click.option("--side", type=click.Choice(["long", "short"]), default=None, help="Only this side.")
@click.option("--setup", "setups", multiple=True, help="Only these setups.")
@click.option("--status", type=click.Choice([s.value for s in TradeStatus]), default=None)
@click.option("--emotion", "emotions", type=EMOTION_CHOICE, multiple=True, help="Any of these emotions.")
@click.option("--mistake", "mistakes", type=MISTAKE_CHOICE, multiple=True, help="Any of these mistakes.")
@click.option("--deleted", is_flag=True, help="Include deleted trades.")
@click.option("-l", "--limit", type=int, default=50, show_default=True, help="Maximum rows.")
def list_trades(
    date_range: str,
    start,
    end,
    account_ref: Optional[str],
    symbols: tuple[str, ...],
    side: Optional[str],
    setups: tuple[str, ...],
    status: Optional[str],
    emotions: tuple[str, ...],
    mistakes: tuple[str, ...],
    deleted: bool,
    limit: int,
) -> None:
    """List journaled trades, newest first.

    \b
    Examples:
      tradejournal list
      tradejournal list --range all --symbol ES --side long
      tradejournal list --from 2025-01-01 --to 2025-01-31 --mistake fomo
    """
    config = load_config()
    tz = load_timezone(config)
    store = get_data_store()
    account = resolve_account(store, account_ref)

    if bool(start) != bool(end):
        fail("Use --from and --to together.")

    preset = DateRange.CUSTOM if start and end else DateRange(date_range)
    trade_filter = TradeFilter.for_range(
        preset,
        start.date() if start else None,
        end.date() if end else None,
        tz=tz,
        symbols=list(symbols),
        sides=[Side(side)] if side else [],
        statuses=[TradeStatus(status)] if status else [],
        setups=list(setups),
        emotions=list(emotions),
        mistakes=list(mistakes),
    )

    trades = store.get_trades(
        account_id=account.id if account else None, include_deleted=deleted
    )
    trades = list(reversed(trade_filter.apply(trades)))

    if not trades:
        console.print("[dim]No trades found.[/dim]")
        return

    table = Table(title=f"Trades ({len(trades)})", show_header=True)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Entry", style="cyan")
    table.add_column("Symbol", style="bold")
    table.add_column("Side")
    table.add_column("Qty", justify="right")
    table.add_column("Entry Px", justify="right")
    table.add_column("Exit Px", justify="right")
    table.add_column("Net P&L", justify="right")
    table.add_column("R", justify="right")
    table.add_column("Setup")

    for trade in trades[:limit]:
        side_color = "green" if trade.side == Side.LONG else "red"
        symbol = trade.symbol if trade.deleted_at is None else f"[strike]{trade.symbol}[/strike]"
        table.add_row(
            str(trade.id),
            local(trade.entry_date, tz),
            symbol,
            f"[{side_color}]{trade.side.value.upper()}[/{side_color}]",
            f"{trade.entry_contracts:g}",
            f"{trade.entry_price:,.2f}",
            f"{trade.exit_price:,.2f}" if trade.exit_price is not None else "[yellow]open[/yellow]",
            colored_pnl(trade.net_pnl),
            colored_r(trade.r_multiple),
            truncate(trade.setup, 20),
        )

    console.print(table)
    if len(trades) > limit:
        console.print(f"[dim]Showing {limit} of {len(trades)} trades. Use --limit to see more.[/dim]")


@click.command()
@click.argument("trade_id", type=int)
def show(trade_id: int) -> None:
    """Show a trade with its tags, ratings and screenshots.

    \b
    Examples:
      tradejournal show 12
    """
    config = load_config()
    tz = load_timezone(config)
    store = get_data_store()
    trade = require_trade(store, trade_id)

    account = store.get_account(trade.account_id) if trade.account_id else None
    lines = [
        f"[bold]{trade.symbol}[/bold] {trade.side.value.upper()} x{trade.entry_contracts:g}"
        f"  [dim]({trade.status.value})[/dim]",
        "",
        f"Entry:      {local(trade.entry_date, tz)} @ {trade.entry_price:,.2f}",
    ]
    if trade.exit_price is not None:
        lines.append(f"Exit:       {local(trade.exit_date, tz)} @ {trade.exit_price:,.2f}")
    if trade.hold_duration is not None:
        lines.append(f"Held:       {format_duration(trade.hold_duration)}")
    if trade.stop_loss is not None or trade.take_profit is not None:
        stop = f"{trade.stop_loss:,.2f}" if trade.stop_loss is not None else "-"
        target = f"{trade.take_profit:,.2f}" if trade.take_profit is not None else "-"
        lines.append(f"Stop/Target: {stop} / {target}")

    lines += [
        "",
        f"Gross P&L:  {colored_pnl(trade.gross_pnl)}",
        f"Costs:      {format_currency(trade.commission + trade.fees)}",
        f"Net P&L:    {colored_pnl(trade.net_pnl)}",
        f"R-Multiple: {colored_r(trade.r_multiple)}",
        "",
        f"Account:    {account.name if account else '-'}",
        f"Setup:      {trade.setup or '-'}",
        f"Session:    {trade.session.value if trade.session else '-'}",
        f"Emotions:   {', '.join(e.value for e in trade.emotions) or '-'}",
        f"Mistakes:   {', '.join(m.value for m in trade.mistakes) or '-'}",
        f"Ratings:    entry {_stars(trade.entry_rating)}  exit {_stars(trade.exit_rating)}"
        f"  management {_stars(trade.management_rating)}",
        f"Source:     {trade.import_source or '-'}"
        + (f" ({trade.external_id})" if trade.external_id else ""),
    ]
    if trade.notes:
        lines += ["", "[bold]Notes[/bold]", trade.notes]
    if trade.lessons:
        lines += ["", "[bold]Lessons[/bold]", trade.lessons]

    screenshots = store.get_screenshots(trade_id=trade_id)
    if screenshots:
        lines += ["", "[bold]Screenshots[/bold]"]
        lines += [
            f"  #{s.id} [{s.screenshot_type.value}] {s.file_path}"
            + (f"  [dim]{s.caption}[/dim]" if s.caption else "")
            for s in screenshots
        ]

    border = "red" if trade.deleted_at else "blue"
    title = f"[bold]Trade #{trade_id}[/bold]"
    if trade.deleted_at:
        title += " [red](deleted)[/red]"
    console.print(Panel("\n".join(lines), title=title, border_style=border))


@click.command()
@click.argument("trade_id", type=int)
@click.option("--entry", "entry_price", type=float, default=None, help="Entry price.")
@click.option("--exit", "exit_price", type=float, default=None, help="Exit price.")
@click.option("--qty", type=float, default=None, help="Contracts.")
@click.option("--exit-time", default=None, help="Exit time.")
@click.option("--stop", "stop_loss", type=float, default=None, help="Stop loss price.")
@click.option("--target", "take_profit", type=float, default=None, help="Take profit price.")
@click.option("--commission", type=float, default=None, help="Commission paid.")
@click.option("--fees", type=float, default=None, help="Fees paid.")
@click.option("--setup", default=None, help="Setup label.")
@click.option("--session", type=SESSION_CHOICE, default=None, help="Market session.")
@click.option("-n", "--notes", default=None, help="Trade notes.")
@click.option("--lessons", default=None, help="Lessons learned.")
@click.option("--entry-rating", type=RATING, default=None, help="Entry rating 1-5.")
@click.option("--exit-rating", type=RATING, default=None, help="Exit rating 1-5.")
@click.option("--management-rating", type=RATING, default=None, help="Management rating 1-5.")
@click.option("--public/--private", "is_public", default=None, help="Share the trade.")
def edit(trade_id: int, **changes) -> None:
    """Edit a trade.

    Changing prices, size or stop recomputes P&L from the instrument's
    tick values. Changing only costs adjusts net P&L.

    \b
    Examples:
      tradejournal edit 12 --exit 5010 --stop 4995
      tradejournal edit 12 --notes "Chased the breakout" --entry-rating 2
    """
    config = load_config()
    tz = load_timezone(config)
    store = get_data_store()
    trade = require_trade(store, trade_id)

    exit_time = changes.pop("exit_time")
    qty = changes.pop("qty")
    update = {key: value for key, value in changes.items() if value is not None}
    if qty is not None:
        update["entry_contracts"] = qty
        if trade.exit_contracts is not None:
            update["exit_contracts"] = qty
    if exit_time is not None:
        update["exit_date"] = _parse_time(exit_time, tz, "exit time")
    if "exit_price" in update:
        update.setdefault("exit_date", trade.exit_date or trade.entry_date)
        update.setdefault("exit_contracts", update.get("entry_contracts", trade.entry_contracts))

    if not update:
        console.print("[yellow]Nothing to change.[/yellow]")
        return

    try:
        edited = Trade(**{**trade.model_dump(), **update})
        repriced = {"entry_price", "exit_price", "entry_contracts", "stop_loss"} & update.keys()
        if repriced:
            edited = calculate_trade_pnl(edited, store.get_instrument(edited.symbol))
        elif {"commission", "fees"} & update.keys() and edited.gross_pnl is not None:
            net = round(edited.gross_pnl - edited.commission - edited.fees, 2)
            edited = edited.model_copy(update={"net_pnl": net})
        store.update_trade(edited)
    except (ValidationError, ValueError, sqlite3.Error) as e:
        fail(f"Could not update trade {trade_id}.\n\n{e}")

    console.print(f"[green]✓ Updated trade #{trade_id}[/green]  {colored_pnl(edited.net_pnl)}")


@click.command()
@click.argument("trade_id", type=int)
@click.option("--emotion", "emotions", type=EMOTION_CHOICE, multiple=True, help="Add emotion tag.")
@click.option("--mistake", "mistakes", type=MISTAKE_CHOICE, multiple=True, help="Add mistake tag.")
@click.option("--clear", is_flag=True, help="Remove existing tags first.")
def tag(trade_id: int, emotions: tuple[str, ...], mistakes: tuple[str, ...], clear: bool) -> None:
    """Tag a trade with emotions and mistakes.

    \b
    Examples:
      tradejournal tag 12 --emotion fomo --mistake chased_entry
      tradejournal tag 12 --clear --emotion calm
    """
    store = get_data_store()
    trade = require_trade(store, trade_id)

    current_emotions = [] if clear else [e.value for e in trade.emotions]
    current_mistakes = [] if clear else [m.value for m in trade.mistakes]
    updated = Trade(**{
        **trade.model_dump(),
        "emotions": list(dict.fromkeys(current_emotions + list(emotions))),
        "mistakes": list(dict.fromkeys(current_mistakes + list(mistakes))),
    })
    store.update_trade(updated)

    console.print(f"[green]✓ Tagged trade #{trade_id}[/green]")
    console.print(f"  Emotions: {', '.join(e.value for e in updated.emotions) or '-'}")
    console.print(f"  Mistakes: {', '.join(m.value for m in updated.mistakes) or '-'}")


@click.command()
@click.argument("trade_id", type=int)
@click.option("--hard", is_flag=True, help="Delete permanently with its screenshots.")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation.")
def delete(trade_id: int, hard: bool, yes: bool) -> None:
    """Delete a trade.

    Trades are soft-deleted by default and can be restored.

    \b
    Examples:
      tradejournal delete 12
      tradejournal delete 12 --hard --yes
    """
    store = get_data_store()
    trade = require_trade(store, trade_id)

    if hard and not yes:
        click.confirm(
            f"Permanently delete trade #{trade_id} ({trade.symbol})?", abort=True
        )

    store.delete_trade(trade_id, hard=hard)
    if hard:
        console.print(f"[green]✓ Permanently deleted trade #{trade_id}[/green]")
    else:
        console.print(f"[green]✓ Deleted trade #{trade_id}[/green]")
        console.print(f"[dim]Restore with: tradejournal restore {trade_id}[/dim]")


@click.command()
@click.argument("trade_id", type=int)
def restore(trade_id: int) -> None:
    """Restore a soft-deleted trade.

    \b
    Examples:
      tradejournal restore 12
    """
    store = get_data_store()
    if not store.restore_trade(trade_id):
        fail(f"Trade {trade_id} is not deleted or does not exist.")
    console.print(f"[green]✓ Restored trade #{trade_id}[/green]")
