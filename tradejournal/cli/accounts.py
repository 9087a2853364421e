"""Account and instrument commands for Trade Journal CLI."""

import sqlite3
from typing import Optional

import click
from pydantic import ValidationError
from rich.table import Table

from tradejournal.cli.common import console, fail, get_data_store, resolve_account
from tradejournal.formatters import format_currency
from tradejournal.models import PROP_FIRMS, Account, Instrument, get_prop_firm

FIRM_IDS = [firm.id for firm in PROP_FIRMS]


@click.group()
def account():
    """Manage trading accounts.

    Each account carries a commission schedule that fills in costs for
    imported trades without commission columns.

    \b
    Examples:
      tradejournal account add "Apex 50K" --prop-firm apex --balance 50000
      tradejournal account list
      tradejournal account default "Apex 50K"
    """
    pass


@account.command("add")
@click.argument("name")
@click.option("--broker", default=None, help="Broker name.")
@click.option("--number", "account_number", default=None, help="Broker account number.")
@click.option("--balance", type=float, default=0.0, help="Starting balance.")
@click.option("--prop-firm", "firm_id", type=click.Choice(FIRM_IDS, case_sensitive=False),
              default=None, help="Use a prop firm's commission schedule.")
@click.option("--per-contract", type=float, default=None,
              help="Commission per contract, per side.")
@click.option("--per-trade", type=float, default=None, help="Flat commission per order, per side.")
@click.option("--default", "is_default", is_flag=True, help="Make this the default account.")
def account_add(
    name: str,
    broker: Optional[str],
    account_number: Optional[str],
    balance: float,
    firm_id: Optional[str],
    per_contract: Optional[float],
    per_trade: Optional[float],
    is_default: bool,
) -> None:
    """Add an account."""
    store = get_data_store()
    if store.find_account(name):
        fail(f"Account '{name}' already exists.")

    firm = get_prop_firm(firm_id) if firm_id else None
    if per_contract is None:
        per_contract = firm.commission_per_contract if firm else 0.0
    if per_trade is None:
        per_trade = firm.commission_per_trade if firm else 0.0

    try:
        new = Account(
            name=name,
            broker=broker or (firm.name if firm and firm.id != "custom" else None),
            account_number=account_number,
            starting_balance=balance,
            commission_per_contract=per_contract,
            commission_per_trade=per_trade,
            is_default=is_default,
        )
        account_id = store.add_account(new)
    except (ValidationError, sqlite3.Error) as e:
        fail(f"Could not add account.\n\n{e}")

    saved = store.get_account(account_id)
    console.print(f"[green]✓ Added account #{account_id}[/green] {name}")
    console.print(
        f"  Commission: {format_currency(per_contract)}/contract + "
        f"{format_currency(per_trade)}/order per side"
    )
    if saved and saved.is_default:
        console.print("  [cyan]Default account[/cyan]")


@account.command("list")
def account_list() -> None:
    """List accounts."""
    store = get_data_store()
    accounts = store.get_accounts()

    if not accounts:
        console.print("[dim]No accounts. Add one with [cyan]tradejournal account add NAME[/cyan].[/dim]")
        return

    table = Table(title="Accounts", show_header=True)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Broker")
    table.add_column("Number")
    table.add_column("Balance", justify="right")
    table.add_column("Per Contract", justify="right")
    table.add_column("Per Order", justify="right")
    table.add_column("Default", justify="center")

    for acct in accounts:
        table.add_row(
            str(acct.id),
            acct.name,
            acct.broker or "-",
            acct.account_number or "-",
            format_currency(acct.starting_balance),
            format_currency(acct.commission_per_contract),
            format_currency(acct.commission_per_trade),
            "[green]✓[/green]" if acct.is_default else "",
        )

    console.print(table)


@account.command("default")
@click.argument("ref")
def account_default(ref: str) -> None:
    """Set the default account."""
    store = get_data_store()
    acct = resolve_account(store, ref)
    store.set_default_account(acct.id)
    console.print(f"[green]✓ Default account:[/green] {acct.name}")


@account.command("remove")
@click.argument("ref")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation.")
def account_remove(ref: str, yes: bool) -> None:
    """Remove an account. Its trades are kept without an account."""
    store = get_data_store()
    acct = resolve_account(store, ref)
    if not yes:
        click.confirm(f"Remove account '{acct.name}'?", abort=True)
    store.delete_account(acct.id)
    console.print(f"[green]✓ Removed account[/green] {acct.name}")


@account.command("firms")
def account_firms() -> None:
    """List known prop firm commission schedules."""
    table = Table(title="Prop Firms", show_header=True)
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Per Contract", justify="right")
    table.add_column("Round Trip", justify="right")
    for firm in PROP_FIRMS:
        table.add_row(
            firm.id,
            firm.name,
            format_currency(firm.commission_per_contract),
            format_currency(firm.commission_per_contract * 2),
        )
    console.print(table)


@click.group()
def instrument():
    """Manage futures instrument specifications.

    Tick size and tick value drive P&L and R-multiple calculations.

    \b
    Examples:
      tradejournal instrument list
      tradejournal instrument add MBT --name "Micro Bitcoin" --tick-size 5 --tick-value 0.5
    """
    pass


@instrument.command("list")
@click.option("--active", is_flag=True, help="Only active instruments.")
def instrument_list(active: bool) -> None:
    """List instruments."""
    store = get_data_store()
    instruments = store.get_instruments(active_only=active)

    table = Table(title="Instruments", show_header=True)
    table.add_column("Symbol", style="cyan")
    table.add_column("Name")
    table.add_column("Exchange")
    table.add_column("Tick Size", justify="right")
    table.add_column("Tick Value", justify="right")
    table.add_column("Point Value", justify="right")
    table.add_column("Active", justify="center")

    for inst in instruments:
        table.add_row(
            inst.symbol,
            inst.name,
            inst.exchange or "-",
            f"{inst.tick_size:g}",
            format_currency(inst.tick_value),
            format_currency(inst.point_value),
            "[green]✓[/green]" if inst.is_active else "[dim]-[/dim]",
        )

    console.print(table)


@instrument.command("add")
@click.argument("symbol")
@click.option("--name", required=True, help="Display name.")
@click.option("--tick-size", type=float, required=True, help="Minimum price increment.")
@click.option("--tick-value", type=float, required=True, help="Dollar value of one tick.")
@click.option("--exchange", default=None, help="Exchange.")
@click.option("--asset-class", default=None, help="Asset class.")
@click.option("--inactive", is_flag=True, help="Mark as inactive.")
def instrument_add(
    symbol: str,
    name: str,
    tick_size: float,
    tick_value: float,
    exchange: Optional[str],
    asset_class: Optional[str],
    inactive: bool,
) -> None:
    """Add or update an instrument."""
    store = get_data_store()
    try:
        inst = Instrument(
            symbol=symbol.upper(),
            name=name,
            tick_size=tick_size,
            tick_value=tick_value,
            exchange=exchange,
            asset_class=asset_class,
            is_active=not inactive,
        )
    except ValidationError as e:
        fail(f"Invalid instrument.\n\n{e}")

    store.save_instrument(inst)
    console.print(
        f"[green]✓ Saved instrument[/green] {inst.symbol}  "
        f"tick {inst.tick_size:g} = {format_currency(inst.tick_value)}"
    )
