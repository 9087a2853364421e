"""Property-based tests for the database store.

**Feature: trade-journal**
"""

import sqlite3
import tempfile
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from pydantic import ValidationError

from tradejournal.db.store import DataStore
from tradejournal.models import (
    DEFAULT_INSTRUMENTS,
    Account,
    EmotionTag,
    ImportRecord,
    Instrument,
    JournalScreenshot,
    MistakeTag,
    ScreenshotType,
    Session,
    Side,
    Trade,
    UserRule,
    UserRuleCheck,
)

ENTRY = datetime(2025, 1, 2, 14, 30, tzinfo=timezone.utc)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        yield DataStore(db_path)


def make_trade(**fields) -> Trade:
    values = dict(
        symbol="ES",
        side=Side.LONG,
        entry_date=ENTRY,
        entry_price=5000.0,
        entry_contracts=1,
        exit_date=ENTRY + timedelta(minutes=20),
        exit_price=5004.0,
        gross_pnl=200.0,
        net_pnl=195.0,
        commission=5.0,
    )
    values.update(fields)
    return Trade(**values)


class TestDatabaseSchemaCompleteness:
    """
    **Feature: trade-journal, Property 19: Database Schema Completeness**
    **Validates: Requirements 2.1**

    *For any* fresh database, all required tables should exist and the
    default instruments should be seeded.
    """

    def test_schema_completeness(self, temp_db: DataStore):
        tables = temp_db.get_tables()
        for table in DataStore.REQUIRED_TABLES:
            assert table in tables, f"Required table '{table}' is missing"

    def test_instruments_seeded_once(self, temp_db: DataStore):
        assert len(temp_db.get_instruments()) == len(DEFAULT_INSTRUMENTS) == 12
        DataStore(temp_db.db_path)
        assert len(temp_db.get_instruments()) == 12

    @given(st.integers(min_value=1, max_value=5))
    @settings(max_examples=10)
    def test_schema_completeness_multiple_instances(self, num_instances: int):
        with tempfile.TemporaryDirectory() as tmpdir:
            for i in range(num_instances):
                store = DataStore(Path(tmpdir) / f"test_{i}.db")
                tables = store.get_tables()
                for table in DataStore.REQUIRED_TABLES:
                    assert table in tables, f"Required table '{table}' missing in instance {i}"


class TestTradePersistence:
    """
    **Feature: trade-journal, Property 20: Trade Persistence Round Trip**
    **Validates: Requirements 2.2**

    *For any* trade stored, retrieving it by ID should return the same
    values, with tags and timestamps intact.
    """

    def test_round_trip(self, temp_db: DataStore):
        trade = make_trade(
            setup="ORB",
            session=Session.NEW_YORK,
            emotions=[EmotionTag.CALM, EmotionTag.FOCUSED],
            mistakes=[MistakeTag.EXITED_TOO_EARLY],
            entry_rating=4,
            notes="Clean break",
            external_id="A-1",
        )
        trade_id = temp_db.add_trade(trade)
        loaded = temp_db.get_trade(trade_id)

        assert loaded.id == trade_id
        assert loaded.model_dump(exclude={"id"}) == trade.model_dump(exclude={"id"})

    @given(
        pnl=st.floats(min_value=-10_000, max_value=10_000, allow_nan=False),
        contracts=st.integers(min_value=1, max_value=50),
        side=st.sampled_from(list(Side)),
    )
    @settings(max_examples=25)
    def test_round_trip_values(self, pnl, contracts, side):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "test.db")
            trade_id = store.add_trade(make_trade(net_pnl=pnl, entry_contracts=contracts, side=side))
            loaded = store.get_trade(trade_id)
            assert loaded.net_pnl == pnl
            assert loaded.entry_contracts == contracts
            assert loaded.side == side

    @pytest.mark.parametrize("field", ["commission", "fees"])
    def test_negative_costs_rejected(self, field):
        with pytest.raises(ValidationError):
            make_trade(**{field: -1.0})

    def test_missing_trade(self, temp_db: DataStore):
        assert temp_db.get_trade(999) is None

    def test_trades_ordered_and_filtered(self, temp_db: DataStore):
        later = temp_db.add_trade(make_trade(entry_date=ENTRY + timedelta(days=1), account_id=1))
        earlier = temp_db.add_trade(make_trade(account_id=2))
        assert [t.id for t in temp_db.get_trades()] == [earlier, later]
        assert [t.id for t in temp_db.get_trades(account_id=1)] == [later]
        since = temp_db.get_trades(from_date=ENTRY + timedelta(hours=1))
        assert [t.id for t in since] == [later]
        until = temp_db.get_trades(to_date=ENTRY)
        assert [t.id for t in until] == [earlier]

    def test_duplicate_external_id_rejected(self, temp_db: DataStore):
        temp_db.add_trade(make_trade(account_id=1, external_id="X-1"))
        with pytest.raises(sqlite3.IntegrityError):
            temp_db.add_trade(make_trade(account_id=1, external_id="X-1"))
        # Same id in another account is fine
        temp_db.add_trade(make_trade(account_id=2, external_id="X-1"))
        assert temp_db.get_external_ids(1) == {"X-1"}

    def test_update(self, temp_db: DataStore):
        trade_id = temp_db.add_trade(make_trade())
        stored = temp_db.get_trade(trade_id)
        assert temp_db.update_trade(stored.model_copy(update={"notes": "Revised"}))
        updated = temp_db.get_trade(trade_id)
        assert updated.notes == "Revised"
        assert updated.updated_at >= stored.updated_at

    def test_update_without_id(self, temp_db: DataStore):
        with pytest.raises(ValueError):
            temp_db.update_trade(make_trade())


class TestTradeDeletion:
    """
    **Feature: trade-journal, Property 21: Soft Delete and Restore**
    **Validates: Requirements 2.2**

    *For any* soft-deleted trade, it should disappear from listings but
    remain retrievable by ID until restored or hard-deleted.
    """

    def test_soft_delete_and_restore(self, temp_db: DataStore):
        trade_id = temp_db.add_trade(make_trade())

        assert temp_db.delete_trade(trade_id)
        assert not temp_db.delete_trade(trade_id)
        assert temp_db.get_trades() == []
        assert temp_db.get_trade(trade_id).deleted_at is not None
        assert len(temp_db.get_trades(include_deleted=True)) == 1

        assert temp_db.restore_trade(trade_id)
        assert not temp_db.restore_trade(trade_id)
        assert [t.id for t in temp_db.get_trades()] == [trade_id]

    def test_hard_delete_removes_screenshots(self, temp_db: DataStore):
        trade_id = temp_db.add_trade(make_trade())
        temp_db.add_screenshot(JournalScreenshot(trade_id=trade_id, file_path="/tmp/a.png",
                                                 file_name="a.png"))
        assert temp_db.delete_trade(trade_id, hard=True)
        assert temp_db.get_trade(trade_id) is None
        assert temp_db.get_screenshots(trade_id=trade_id) == []


class TestAccounts:
    def test_first_account_is_default(self, temp_db: DataStore):
        first = temp_db.add_account(Account(name="Apex 50K"))
        second = temp_db.add_account(Account(name="Personal"))
        assert temp_db.get_default_account().id == first
        assert not temp_db.get_account(second).is_default

    def test_single_default(self, temp_db: DataStore):
        temp_db.add_account(Account(name="One"))
        second = temp_db.add_account(Account(name="Two", is_default=True))
        assert [a.is_default for a in temp_db.get_accounts()] == [False, True]
        assert temp_db.get_default_account().id == second

        first = temp_db.get_accounts()[0].id
        assert temp_db.set_default_account(first)
        assert [a.is_default for a in temp_db.get_accounts()] == [True, False]
        assert not temp_db.set_default_account(999)

    def test_find_by_name(self, temp_db: DataStore):
        account_id = temp_db.add_account(Account(name="Topstep 150K", starting_balance=150_000))
        assert temp_db.find_account("topstep 150k").id == account_id
        assert temp_db.find_account("missing") is None

    def test_delete_unassigns_trades(self, temp_db: DataStore):
        account_id = temp_db.add_account(Account(name="Old"))
        trade_id = temp_db.add_trade(make_trade(account_id=account_id))
        assert temp_db.delete_account(account_id)
        assert temp_db.get_account(account_id) is None
        assert temp_db.get_trade(trade_id).account_id is None


class TestInstruments:
    def test_lookup_is_case_insensitive(self, temp_db: DataStore):
        es = temp_db.get_instrument(" es ")
        assert es.tick_size == 0.25
        assert es.tick_value == 12.5

    def test_save_replaces_by_symbol(self, temp_db: DataStore):
        temp_db.save_instrument(Instrument(symbol="ES", name="E-mini", tick_size=0.25,
                                           tick_value=12.5, is_active=False))
        temp_db.save_instrument(Instrument(symbol="zn", name="10-Year Note", tick_size=0.015625,
                                           tick_value=15.625))
        assert temp_db.get_instrument("ES").name == "E-mini"
        assert temp_db.get_instrument("ZN") is not None
        active = {i.symbol for i in temp_db.get_instruments(active_only=True)}
        assert "ES" not in active
        assert "ZN" in active


class TestRules:
    """
    **Feature: trade-journal, Property 22: One Check Per Rule Per Day**
    **Validates: Requirements 2.3**

    *For any* sequence of checks on one rule and day, only the last
    recorded value should be stored.
    """

    def test_display_order_appends(self, temp_db: DataStore):
        first = temp_db.add_rule(UserRule(title="Use a stop"))
        second = temp_db.add_rule(UserRule(title="Journal every trade"))
        assert [r.id for r in temp_db.get_rules()] == [first, second]
        assert temp_db.get_rule(second).display_order == 2

    def test_update_and_deactivate(self, temp_db: DataStore):
        rule_id = temp_db.add_rule(UserRule(title="Use a stop"))
        rule = temp_db.get_rule(rule_id)
        assert temp_db.update_rule(rule.model_copy(update={"title": "Always use a stop"}))
        assert temp_db.get_rule(rule_id).title == "Always use a stop"

        assert temp_db.delete_rule(rule_id)
        assert not temp_db.delete_rule(rule_id)
        assert temp_db.get_rules() == []
        assert len(temp_db.get_rules(active_only=False)) == 1

    @given(st.lists(st.booleans(), min_size=1, max_size=10))
    @settings(max_examples=25)
    def test_check_upsert(self, values):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "test.db")
            day = date(2025, 3, 3)
            for followed in values:
                store.record_rule_check(UserRuleCheck(rule_id=1, check_date=day, followed=followed))
            checks = store.get_rule_checks()
            assert len(checks) == 1
            assert checks[0].followed == values[-1]

    def test_check_filters(self, temp_db: DataStore):
        for offset in range(3):
            temp_db.record_rule_check(
                UserRuleCheck(rule_id=1, check_date=date(2025, 3, 3 + offset), followed=True)
            )
        temp_db.record_rule_check(UserRuleCheck(rule_id=2, check_date=date(2025, 3, 3), followed=False))
        assert len(temp_db.get_rule_checks(from_date=date(2025, 3, 4))) == 2
        assert len(temp_db.get_rule_checks(rule_id=2)) == 1


class TestScreenshots:
    def test_by_trade_and_day(self, temp_db: DataStore):
        day = date(2025, 1, 2)
        shot = temp_db.add_screenshot(JournalScreenshot(trade_id=7, file_path="/s/entry.png",
                                                        file_name="entry.png",
                                                        screenshot_type=ScreenshotType.ENTRY))
        temp_db.add_screenshot(JournalScreenshot(journal_date=day, file_path="/s/day.png",
                                                 file_name="day.png", caption="Recap"))

        by_trade = temp_db.get_screenshots(trade_id=7)
        assert [s.screenshot_type for s in by_trade] == [ScreenshotType.ENTRY]
        assert temp_db.get_screenshots(journal_date=day)[0].caption == "Recap"

        assert temp_db.delete_screenshot(shot)
        assert not temp_db.delete_screenshot(shot)
        assert len(temp_db.get_screenshots()) == 1


class TestImportHistory:
    def test_newest_first(self, temp_db: DataStore):
        older = ImportRecord(file_name="jan.csv", imported=3,
                             created_at=datetime(2025, 1, 1, tzinfo=timezone.utc))
        newer = ImportRecord(file_name="feb.csv", broker="tradovate", skipped=2,
                             created_at=datetime(2025, 2, 1, tzinfo=timezone.utc))
        temp_db.log_import(older)
        temp_db.log_import(newer)

        history = temp_db.get_import_history()
        assert [r.file_name for r in history] == ["feb.csv", "jan.csv"]
        assert history[0].skipped == 2
        assert len(temp_db.get_import_history(limit=1)) == 1

    def test_stats(self, temp_db: DataStore):
        temp_db.add_trade(make_trade())
        stats = temp_db.get_stats()
        assert stats["trades"] == 1
        assert stats["instruments"] == 12
        assert set(stats) == set(DataStore.REQUIRED_TABLES)
