"""Screenshot commands for Trade Journal CLI.

Only the file location and caption are stored; images stay where they are.
"""

from pathlib import Path
from typing import Optional

import click
from rich.table import Table

from tradejournal.cli.common import DATE_TYPE, console, fail, get_data_store, require_trade
from tradejournal.models import JournalScreenshot, ScreenshotType

TYPE_CHOICE = click.Choice([t.value for t in ScreenshotType], case_sensitive=False)


@click.group()
def screenshot():
    """Attach chart screenshots to trades or journal days.

    \b
    Examples:
      tradejournal screenshot add chart.png --trade 12 --type entry
      tradejournal screenshot add recap.png --date 2025-01-15 --caption "Trend day"
      tradejournal screenshot list --trade 12
    """
    pass


@screenshot.command("add")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-t", "--trade", "trade_id", type=int, default=None, help="Trade ID.")
@click.option("-d", "--date", "journal_date", type=DATE_TYPE, default=None,
              help="Journal day (YYYY-MM-DD).")
@click.option("--type", "screenshot_type", type=TYPE_CHOICE, default="other", show_default=True)
@click.option("-c", "--caption", default=None, help="Caption.")
def screenshot_add(
    path: Path,
    trade_id: Optional[int],
    journal_date,
    screenshot_type: str,
    caption: Optional[str],
) -> None:
    """Attach a screenshot."""
    if trade_id is None and journal_date is None:
        fail("Link the screenshot to a trade (--trade) or a day (--date).")

    store = get_data_store()
    if trade_id is not None:
        require_trade(store, trade_id)

    resolved = path.resolve()
    screenshot_id = store.add_screenshot(
        JournalScreenshot(
            trade_id=trade_id,
            journal_date=journal_date.date() if journal_date else None,
            file_path=str(resolved),
            file_name=resolved.name,
            screenshot_type=screenshot_type,
            caption=caption,
        )
    )
    console.print(f"[green]✓ Attached screenshot #{screenshot_id}[/green] {resolved.name}")


@screenshot.command("list")
@click.option("-t", "--trade", "trade_id", type=int, default=None, help="Trade ID.")
@click.option("-d", "--date", "journal_date", type=DATE_TYPE, default=None, help="Journal day.")
def screenshot_list(trade_id: Optional[int], journal_date) -> None:
    """List screenshots."""
    store = get_data_store()
    items = store.get_screenshots(
        trade_id=trade_id, journal_date=journal_date.date() if journal_date else None
    )

    if not items:
        console.print("[dim]No screenshots.[/dim]")
        return

    table = Table(title="Screenshots", show_header=True)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Trade", justify="right")
    table.add_column("Day")
    table.add_column("Type")
    table.add_column("File", style="cyan")
    table.add_column("Caption")

    for item in items:
        missing = "" if Path(item.file_path).exists() else " [red](missing)[/red]"
        table.add_row(
            str(item.id),
            str(item.trade_id) if item.trade_id else "-",
            item.journal_date.isoformat() if item.journal_date else "-",
            item.screenshot_type.value,
            item.file_name + missing,
            item.caption or "",
        )

    console.print(table)


@screenshot.command("remove")
@click.argument("screenshot_id", type=int)
def screenshot_remove(screenshot_id: int) -> None:
    """Detach a screenshot. The image file is not deleted."""
    store = get_data_store()
    if not store.delete_screenshot(screenshot_id):
        fail(f"Screenshot {screenshot_id} not found.")
    console.print(f"[green]✓ Removed screenshot #{screenshot_id}[/green]")
