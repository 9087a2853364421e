"""Setup commands for Trade Journal CLI.

Creates the config file and database, and shows the active configuration.
"""

import click
from rich.panel import Panel
from rich.table import Table

from tradejournal.cli.common import console, get_data_store, load_config
from tradejournal.config import create_template_config, get_config_path, validate_config


@click.command()
@click.option("--force", is_flag=True, help="Overwrite an existing config file.")
def init(force: bool) -> None:
    """Create the config file and journal database.

    \b
    Examples:
      tradejournal init
      TRADEJOURNAL_HOME=./journal tradejournal init
    """
    config_path = get_config_path()
    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists:[/yellow] [cyan]{config_path}[/cyan]")
        console.print("[dim]Use --force to overwrite it.[/dim]")
    else:
        config_path = create_template_config()
        console.print(f"[green]✓ Created config[/green] [cyan]{config_path}[/cyan]")

    store = get_data_store()
    instruments = len(store.get_instruments())

    console.print(Panel(
        f"Database: [cyan]{store.db_path}[/cyan]\n"
        f"Instruments: {instruments}\n\n"
        "[dim]Next steps:[/dim]\n"
        "  [cyan]tradejournal account add \"My Account\" --prop-firm apex[/cyan]\n"
        "  [cyan]tradejournal import trades.csv[/cyan]",
        title="[bold green]Journal Ready[/bold green]",
        border_style="green",
    ))


@click.command("config")
def show_config() -> None:
    """Show the active configuration.

    \b
    Examples:
      tradejournal config
    """
    config = load_config()
    config_path = get_config_path()

    table = Table(title=f"Configuration ({config_path})", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    for section, values in config.items():
        for key, value in values.items():
            table.add_row(f"{section}.{key}", str(value))

    console.print(table)

    if not config_path.exists():
        console.print("[dim]No config file yet, showing defaults. Run [cyan]tradejournal init[/cyan].[/dim]")

    problems = validate_config(config)
    if problems:
        console.print(Panel(
            "[red]Invalid configuration:[/red]\n\n"
            + "\n".join(f"  • {problem}" for problem in problems),
            title="[bold red]Configuration Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)
