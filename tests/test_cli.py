"""End-to-end tests for the command line interface.

**Feature: trade-journal**
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from tradejournal.cli.main import LAZY_SUBCOMMANDS, cli

TRADOVATE_CSV = (
    "symbol,_priceFormat,_priceFormatType,_tickSize,buyFillId,sellFillId,qty,buyPrice,"
    "sellPrice,pnl,boughtTimestamp,soldTimestamp,duration\n"
    "MESZ4,-2,0,0.25,1001,2001,2,5000.00,5004.00,$40.00,01/22/2026 09:25:18,"
    "01/22/2026 09:40:00,14min 42sec\n"
    "MESZ4,-2,0,0.25,1002,2002,1,5010.00,5006.00,$(20.00),01/22/2026 10:15:00,"
    "01/22/2026 10:05:00,10min\n"
)


@pytest.fixture
def journal_home(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.setenv("TRADEJOURNAL_HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def run(journal_home):
    runner = CliRunner()

    def invoke(*args: str, input: str = None):
        return runner.invoke(cli, list(args), input=input)

    return invoke


class TestCommandLoading:
    """
    **Feature: trade-journal, Property 24: Lazy Command Resolution**
    **Validates: Requirements 8.1**

    *For any* registered command name, the group should resolve it to a
    click command with the same name.
    """

    @pytest.mark.parametrize("name", sorted(LAZY_SUBCOMMANDS))
    def test_every_command_resolves(self, name):
        ctx = cli.make_context("tradejournal", [], resilient_parsing=True)
        command = cli.get_command(ctx, name)
        assert command is not None
        assert command.name == name

    def test_help_lists_commands(self, run):
        result = run("--help")
        assert result.exit_code == 0
        assert "import" in result.output
        assert "rules" in result.output


class TestSetup:
    def test_init_creates_config_and_database(self, run, journal_home: Path):
        result = run("init")
        assert result.exit_code == 0, result.output
        assert "Journal Ready" in result.output
        assert (journal_home / "config.toml").exists()
        assert (journal_home / "tradejournal.db").exists()

        again = run("init")
        assert "already exists" in again.output

    def test_config_reports_problems(self, run, journal_home: Path):
        (journal_home / "config.toml").write_text('[journal]\ntimezone = "Mars/Olympus"\n')
        result = run("config")
        assert result.exit_code == 1
        assert "Configuration Error" in result.output


class TestTradeCommands:
    def test_add_list_show(self, run):
        assert run("account", "add", "Apex", "--prop-firm", "apex").exit_code == 0

        result = run("add", "ES", "--side", "long", "--entry", "5000", "--exit", "5004",
                     "--qty", "2", "--entry-time", "2025-01-15 09:35", "--setup", "ORB")
        assert result.exit_code == 0, result.output
        # 16 ticks x $12.50 x 2, less 4 x $1.55 commission
        assert "+$393.80" in result.output

        listed = run("list", "--range", "all")
        assert listed.exit_code == 0
        assert "Trades (1)" in listed.output

        shown = run("show", "1")
        assert "Trade #1" in shown.output
        assert "ORB" in shown.output
        assert "Apex" in shown.output

    def test_invalid_time(self, run):
        result = run("add", "ES", "-s", "long", "-e", "5000", "--entry-time", "tomorrowish")
        assert result.exit_code == 1
        assert "Invalid entry time" in result.output

    def test_edit_tag_delete_restore(self, run):
        run("add", "NQ", "-s", "short", "-e", "18000", "-x", "17990",
            "--entry-time", "2025-01-15 10:00")

        edited = run("edit", "1", "--exit", "17980")
        assert edited.exit_code == 0, edited.output
        assert "+$400.00" in edited.output

        tagged = run("tag", "1", "--emotion", "calm", "--mistake", "exited_too_early")
        assert "calm" in tagged.output

        assert run("delete", "1").exit_code == 0
        assert "No trades found" in run("list", "--range", "all").output
        assert run("restore", "1").exit_code == 0
        assert run("restore", "1").exit_code == 1
        assert "Trades (1)" in run("list", "--range", "all").output

    def test_missing_trade(self, run):
        result = run("show", "42")
        assert result.exit_code == 1
        assert "not found" in result.output


class TestImportAndAnalytics:
    def test_import_then_stats(self, run, journal_home: Path):
        csv_path = journal_home / "trades.csv"
        csv_path.write_text(TRADOVATE_CSV)

        dry = run("import", str(csv_path), "--dry-run")
        assert dry.exit_code == 0, dry.output
        assert "Dry run" in dry.output

        result = run("import", str(csv_path))
        assert result.exit_code == 0, result.output
        assert "Imported: 2" in result.output

        again = run("import", str(csv_path))
        assert "Skipped (duplicates): 2" in again.output

        assert "trades.csv" in run("imports").output

        stats = run("stats", "--range", "all")
        assert stats.exit_code == 0, stats.output
        assert "Total Trades" in stats.output

        assert run("equity", "--range", "all").exit_code == 0
        assert run("breakdown", "symbol", "--range", "all").exit_code == 0
        assert run("calendar", "--month", "2026-01").exit_code == 0

    def test_bad_override(self, run, journal_home: Path):
        csv_path = journal_home / "trades.csv"
        csv_path.write_text(TRADOVATE_CSV)
        result = run("import", str(csv_path), "--map", "qty")
        assert result.exit_code == 1

    def test_stats_without_trades(self, run):
        assert "No closed trades" in run("stats").output

    def test_invalid_rows_reported_as_failed(self, run, journal_home: Path):
        csv_path = journal_home / "trades.csv"
        csv_path.write_text(
            TRADOVATE_CSV
            + "MESZ4,-2,0,0.25,1003,2003,,5000.00,5001.00,$5.00,01/22/2026 11:00:00,"
            "01/22/2026 11:05:00,5min\n"
        )
        result = run("import", str(csv_path))
        assert result.exit_code == 0, result.output
        assert "Imported: 2" in result.output
        assert "Failed: 1" in result.output
        assert "Row 3:" in result.output

    @pytest.mark.parametrize("command", ["stats", "equity", "list"])
    def test_from_without_to(self, run, command):
        result = run(command, "--from", "2025-01-01")
        assert result.exit_code == 1
        assert "--from and --to together" in result.output

    def test_unknown_range_in_config(self, run, journal_home: Path):
        (journal_home / "config.toml").write_text('[analytics]\ndate_range = "weekly"\n')
        result = run("stats")
        assert result.exit_code == 1
        assert "Configuration Error" in result.output
        assert "weekly" in result.output


class TestRulesAndRisk:
    def test_rule_check_and_status(self, run):
        assert run("rules", "add", "Always use a stop", "-c", "risk").exit_code == 0
        checked = run("rules", "check", "--all", "--date", "2025-03-03")
        assert checked.exit_code == 0, checked.output
        assert "Always use a stop" in checked.output

        status = run("rules", "status", "--date", "2025-03-03")
        assert "Rookie" in status.output
        assert "XP: 35" in status.output

    def test_presets_install_once(self, run):
        assert "Installed 11" in run("rules", "presets", "--install").output
        assert "Installed 0" in run("rules", "presets", "--install").output

    def test_position_size(self, run):
        result = run("risk", "size", "--stop", "8", "--symbol", "ES")
        assert result.exit_code == 0, result.output
        assert "5 contracts" in result.output

    def test_daily_limit(self, run):
        result = run("risk", "limit", "--date", "2025-01-15")
        assert result.exit_code == 0, result.output
        assert "SAFE" in result.output
