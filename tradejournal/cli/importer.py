"""Import commands for Trade Journal CLI.

Reads broker CSV exports, previews the detected column mapping and
stores valid rows as trades.
"""

from pathlib import Path
from typing import Optional

import click
from rich.panel import Panel
from rich.table import Table

from tradejournal.cli.common import (
    DATE_TYPE,
    console,
    default_account,
    fail,
    get_data_store,
    load_config,
    load_timezone,
    local,
)
from tradejournal.importer import (
    IGNORE,
    CSVFormatError,
    ImportPreview,
    TradeImporter,
    parse_override,
)
from tradejournal.formatters import truncate


def _mapping_table(preview: ImportPreview) -> Table:
    table = Table(title=f"Column Mapping ({preview.file_name})", show_header=True)
    table.add_column("CSV Column", style="cyan")
    table.add_column("Field")
    for column in preview.columns:
        field = preview.mapping.get(column, IGNORE)
        style = "dim" if field == IGNORE else "green"
        table.add_row(column, f"[{style}]{field}[/{style}]")
    return table


def _rows_table(preview: ImportPreview, limit: int) -> Table:
    table = Table(title=f"Rows ({preview.valid_count} valid, {preview.invalid_count} invalid)")
    table.add_column("Row", justify="right", style="dim")
    table.add_column("Status")
    table.add_column("Details")

    for row in preview.rows[:limit]:
        if row.is_valid:
            cells = [v for k, v in row.data.items() if preview.mapping.get(k, IGNORE) != IGNORE]
            table.add_row(str(row.index + 1), "[green]✓ valid[/green]", truncate(" | ".join(cells), 70))
        else:
            table.add_row(str(row.index + 1), "[red]✗ invalid[/red]", "[red]" + "; ".join(row.errors) + "[/red]")
    return table


@click.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-a", "--account", "account_ref", default=None, help="Target account name or ID.")
@click.option("-b", "--broker", default=None, help="Broker recorded as the import source.")
@click.option("-d", "--date", "trade_date", type=DATE_TYPE, default=None,
              help="Only import trades entered on this day (YYYY-MM-DD).")
@click.option("-m", "--map", "overrides", multiple=True, metavar="COLUMN=FIELD",
              help="Override the detected field for a column.")
@click.option("--dry-run", is_flag=True, help="Show the preview without importing.")
@click.option("--rows", "show_rows", type=int, default=10, show_default=True,
              help="Preview rows to display.")
def import_trades(
    file: Path,
    account_ref: Optional[str],
    broker: Optional[str],
    trade_date,
    overrides: tuple[str, ...],
    dry_run: bool,
    show_rows: int,
) -> None:
    """Import trades from a broker CSV export.

    Columns are detected from their headers. Use --map to fix a column the
    detection gets wrong. Rows already imported (same order ID) are skipped.

    \b
    Examples:
      tradejournal import Performance.csv
      tradejournal import fills.csv --account Apex --broker ninjatrader
      tradejournal import export.csv --map "Fill Px=entry_price" --dry-run
      tradejournal import export.csv --date 2025-01-15
    """
    config = load_config()
    tz = load_timezone(config)
    store = get_data_store()
    account = default_account(store, config, account_ref)
    broker = broker or config.get("import", {}).get("broker") or None

    try:
        override_map = dict(parse_override(text) for text in overrides)
        importer = TradeImporter(store, account=account, broker=broker, tz=tz)
        preview = importer.preview(
            file,
            overrides=override_map,
            date_filter=trade_date.date() if trade_date else None,
        )
    except CSVFormatError as e:
        fail(f"Could not read {file.name}.\n\n{e}", title="Import Error")
    except ValueError as e:
        fail(str(e), title="Import Error")

    console.print(_mapping_table(preview))

    if preview.missing_fields:
        fail(
            "Required fields are not mapped: "
            + ", ".join(preview.missing_fields)
            + "\n\nUse [cyan]--map COLUMN=FIELD[/cyan] to map them.",
            title="Import Error",
        )

    console.print(_rows_table(preview, show_rows))
    if len(preview.rows) > show_rows:
        console.print(f"[dim]Showing {show_rows} of {len(preview.rows)} rows.[/dim]")

    if dry_run:
        console.print("[yellow]Dry run, nothing imported.[/yellow]")
        return

    if preview.valid_count == 0:
        fail("No valid rows to import.", title="Import Error")

    result = importer.run(preview)

    summary = (
        f"[green]Imported:[/green] {result.imported}\n"
        f"[yellow]Skipped (duplicates):[/yellow] {result.skipped}\n"
        f"[red]Failed:[/red] {result.failed}\n\n"
        f"Account: {account.name if account else '-'}"
    )
    if result.errors:
        summary += "\n\n" + "\n".join(f"[red]{error}[/red]" for error in result.errors[:10])

    console.print(Panel(
        summary,
        title="[bold]Import Complete[/bold]",
        border_style="green" if result.imported else "yellow",
    ))


@click.command()
@click.option("-l", "--limit", type=int, default=20, show_default=True, help="Maximum rows.")
def imports(limit: int) -> None:
    """Show recent CSV imports.

    \b
    Examples:
      tradejournal imports
    """
    config = load_config()
    tz = load_timezone(config)
    store = get_data_store()
    history = store.get_import_history(limit)

    if not history:
        console.print("[dim]No imports yet.[/dim]")
        return

    accounts = {a.id: a.name for a in store.get_accounts()}
    table = Table(title="Import History", show_header=True)
    table.add_column("When", style="cyan")
    table.add_column("File")
    table.add_column("Broker")
    table.add_column("Account")
    table.add_column("Imported", justify="right", style="green")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Failed", justify="right", style="red")

    for record in history:
        table.add_row(
            local(record.created_at, tz),
            record.file_name,
            record.broker or "-",
            accounts.get(record.account_id, "-"),
            str(record.imported),
            str(record.skipped),
            str(record.failed),
        )

    console.print(table)
