"""Main CLI entry point for Trade Journal.

This module provides the main click group and lazy loading
of command modules to keep startup fast.
"""

import click


class LazyGroup(click.Group):
    """A click Group that lazily loads commands.

    Command modules are only imported when one of their
    commands is actually invoked.
    """

    def __init__(self, *args, lazy_subcommands: dict[str, str] | None = None, **kwargs):
        """Initialize the lazy group.

        Args:
            lazy_subcommands: Mapping of command names to module paths.
        """
        super().__init__(*args, **kwargs)
        self._lazy_subcommands = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """List all available commands."""
        base = super().list_commands(ctx)
        lazy = list(self._lazy_subcommands.keys())
        return sorted(set(base + lazy))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command by name, lazily loading if needed."""
        if cmd_name in self.commands:
            return self.commands[cmd_name]

        if cmd_name in self._lazy_subcommands:
            return self._lazy_load(cmd_name)

        return None

    def _lazy_load(self, cmd_name: str) -> click.Command:
        """Lazily load a command from its module path."""
        import importlib

        module_path = self._lazy_subcommands[cmd_name]
        module = importlib.import_module(module_path)

        # Commands whose names shadow builtins (list, import) are found by name
        attr = getattr(module, cmd_name, None)
        if isinstance(attr, click.Command):
            cmd = attr
        else:
            cmd = None
            for attr_name in dir(module):
                attr = getattr(module, attr_name)
                if isinstance(attr, click.Command) and attr.name == cmd_name:
                    cmd = attr
                    break

            if cmd is None:
                raise click.ClickException(f"Could not find command '{cmd_name}' in {module_path}")

        self.add_command(cmd)
        return cmd


LAZY_SUBCOMMANDS = {
    # Setup
    "init": "tradejournal.cli.setup",
    "config": "tradejournal.cli.setup",
    # Trades
    "add": "tradejournal.cli.trades",
    "list": "tradejournal.cli.trades",
    "show": "tradejournal.cli.trades",
    "edit": "tradejournal.cli.trades",
    "tag": "tradejournal.cli.trades",
    "delete": "tradejournal.cli.trades",
    "restore": "tradejournal.cli.trades",
    # Import
    "import": "tradejournal.cli.importer",
    "imports": "tradejournal.cli.importer",
    # Analytics
    "stats": "tradejournal.cli.analytics",
    "equity": "tradejournal.cli.analytics",
    "breakdown": "tradejournal.cli.analytics",
    "calendar": "tradejournal.cli.analytics",
    # Accounts and instruments
    "account": "tradejournal.cli.accounts",
    "instrument": "tradejournal.cli.accounts",
    # Discipline
    "rules": "tradejournal.cli.rules",
    # Attachments
    "screenshot": "tradejournal.cli.screenshots",
    # Risk
    "risk": "tradejournal.cli.risk",
}


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(cls=LazyGroup, lazy_subcommands=LAZY_SUBCOMMANDS, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="tradejournal")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Show debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Trade Journal - futures trading journal and analytics.

    Import broker CSV exports or log trades by hand, tag them with
    emotions and mistakes, and review statistics, equity, breakdowns
    and daily discipline rules.

    \b
    Quick Start:
      tradejournal init                   # Create config and database
      tradejournal import trades.csv      # Import a broker export
      tradejournal stats --range 30d      # Last 30 days of performance
    """
    from tradejournal.config import setup_logging

    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
