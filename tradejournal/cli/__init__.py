"""CLI commands for Trade Journal.

This package provides the command-line interface, including trade entry,
CSV import, analytics reports, accounts, discipline rules and risk tools.
"""

from tradejournal.cli.main import cli, main

__all__ = ["cli", "main"]
