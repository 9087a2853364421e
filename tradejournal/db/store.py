"""SQLite data store for the trade journal."""

import json
import logging
import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional

from tradejournal.models import (
    DEFAULT_INSTRUMENTS,
    Account,
    ImportRecord,
    Instrument,
    JournalScreenshot,
    Trade,
    UserRule,
    UserRuleCheck,
)

logger = logging.getLogger(__name__)

TRADE_COLUMNS = [
    "account_id",
    "symbol",
    "side",
    "status",
    "entry_date",
    "entry_price",
    "entry_contracts",
    "exit_date",
    "exit_price",
    "exit_contracts",
    "stop_loss",
    "take_profit",
    "commission",
    "fees",
    "gross_pnl",
    "net_pnl",
    "r_multiple",
    "setup",
    "session",
    "emotions",
    "mistakes",
    "entry_rating",
    "exit_rating",
    "management_rating",
    "notes",
    "lessons",
    "is_public",
    "import_source",
    "external_id",
    "deleted_at",
    "created_at",
    "updated_at",
]


def _iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as a UTC ISO string."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _from_iso(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _trade_params(trade: Trade) -> tuple:
    """Flatten a trade into column order of TRADE_COLUMNS."""
    return (
        trade.account_id,
        trade.symbol,
        trade.side.value,
        trade.status.value,
        _iso(trade.entry_date),
        trade.entry_price,
        trade.entry_contracts,
        _iso(trade.exit_date),
        trade.exit_price,
        trade.exit_contracts,
        trade.stop_loss,
        trade.take_profit,
        trade.commission,
        trade.fees,
        trade.gross_pnl,
        trade.net_pnl,
        trade.r_multiple,
        trade.setup,
        trade.session.value if trade.session else None,
        json.dumps([e.value for e in trade.emotions]),
        json.dumps([m.value for m in trade.mistakes]),
        trade.entry_rating,
        trade.exit_rating,
        trade.management_rating,
        trade.notes,
        trade.lessons,
        1 if trade.is_public else 0,
        trade.import_source,
        trade.external_id,
        _iso(trade.deleted_at),
        _iso(trade.created_at),
        _iso(trade.updated_at),
    )


def _row_to_trade(row: sqlite3.Row) -> Trade:
    return Trade(
        id=row["id"],
        account_id=row["account_id"],
        symbol=row["symbol"],
        side=row["side"],
        status=row["status"],
        entry_date=_from_iso(row["entry_date"]),
        entry_price=row["entry_price"],
        entry_contracts=row["entry_contracts"],
        exit_date=_from_iso(row["exit_date"]),
        exit_price=row["exit_price"],
        exit_contracts=row["exit_contracts"],
        stop_loss=row["stop_loss"],
        take_profit=row["take_profit"],
        commission=row["commission"],
        fees=row["fees"],
        gross_pnl=row["gross_pnl"],
        net_pnl=row["net_pnl"],
        r_multiple=row["r_multiple"],
        setup=row["setup"],
        session=row["session"],
        emotions=json.loads(row["emotions"] or "[]"),
        mistakes=json.loads(row["mistakes"] or "[]"),
        entry_rating=row["entry_rating"],
        exit_rating=row["exit_rating"],
        management_rating=row["management_rating"],
        notes=row["notes"],
        lessons=row["lessons"],
        is_public=bool(row["is_public"]),
        import_source=row["import_source"],
        external_id=row["external_id"],
        deleted_at=_from_iso(row["deleted_at"]),
        created_at=_from_iso(row["created_at"]),
        updated_at=_from_iso(row["updated_at"]),
    )


def _row_to_account(row: sqlite3.Row) -> Account:
    return Account(
        id=row["id"],
        name=row["name"],
        broker=row["broker"],
        account_number=row["account_number"],
        starting_balance=row["starting_balance"],
        commission_per_contract=row["commission_per_contract"],
        commission_per_trade=row["commission_per_trade"],
        is_default=bool(row["is_default"]),
    )


def _row_to_instrument(row: sqlite3.Row) -> Instrument:
    return Instrument(
        id=row["id"],
        symbol=row["symbol"],
        name=row["name"],
        tick_size=row["tick_size"],
        tick_value=row["tick_value"],
        exchange=row["exchange"],
        asset_class=row["asset_class"],
        is_active=bool(row["is_active"]),
    )


def _row_to_rule(row: sqlite3.Row) -> UserRule:
    return UserRule(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        category=row["category"],
        display_order=row["display_order"],
        is_active=bool(row["is_active"]),
    )


def _row_to_screenshot(row: sqlite3.Row) -> JournalScreenshot:
    return JournalScreenshot(
        id=row["id"],
        trade_id=row["trade_id"],
        journal_date=date.fromisoformat(row["journal_date"]) if row["journal_date"] else None,
        file_path=row["file_path"],
        file_name=row["file_name"],
        screenshot_type=row["screenshot_type"],
        caption=row["caption"],
    )


class DataStore:
    """SQLite-based data store for the trade journal."""

    REQUIRED_TABLES = [
        "trades",
        "accounts",
        "instruments",
        "user_rules",
        "user_rule_checks",
        "journal_screenshots",
        "import_history",
    ]

    def __init__(self, db_path: Path):
        """Initialize the data store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema and seed instruments on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            # Accounts table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS accounts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    broker TEXT,
                    account_number TEXT,
                    starting_balance REAL NOT NULL DEFAULT 0,
                    commission_per_contract REAL NOT NULL DEFAULT 0,
                    commission_per_trade REAL NOT NULL DEFAULT 0,
                    is_default INTEGER NOT NULL DEFAULT 0
                )
            """)

            # Trades table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS trades (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    account_id INTEGER,
                    symbol TEXT NOT NULL,
                    side TEXT NOT NULL,
                    status TEXT NOT NULL,
                    entry_date TEXT NOT NULL,
                    entry_price REAL NOT NULL,
                    entry_contracts REAL NOT NULL,
                    exit_date TEXT,
                    exit_price REAL,
                    exit_contracts REAL,
                    stop_loss REAL,
                    take_profit REAL,
                    commission REAL NOT NULL DEFAULT 0,
                    fees REAL NOT NULL DEFAULT 0,
                    gross_pnl REAL,
                    net_pnl REAL,
                    r_multiple REAL,
                    setup TEXT,
                    session TEXT,
                    emotions TEXT NOT NULL DEFAULT '[]',
                    mistakes TEXT NOT NULL DEFAULT '[]',
                    entry_rating INTEGER,
                    exit_rating INTEGER,
                    management_rating INTEGER,
                    notes TEXT,
                    lessons TEXT,
                    is_public INTEGER NOT NULL DEFAULT 0,
                    import_source TEXT,
                    external_id TEXT,
                    deleted_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    UNIQUE(account_id, external_id)
                )
            """)

            # Instruments table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS instruments (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    symbol TEXT NOT NULL UNIQUE,
                    name TEXT NOT NULL,
                    tick_size REAL NOT NULL,
                    tick_value REAL NOT NULL,
                    exchange TEXT,
                    asset_class TEXT,
                    is_active INTEGER NOT NULL DEFAULT 1
                )
            """)

            # Rules tables
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS user_rules (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT,
                    category TEXT NOT NULL,
                    display_order INTEGER NOT NULL DEFAULT 0,
                    is_active INTEGER NOT NULL DEFAULT 1
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS user_rule_checks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    rule_id INTEGER NOT NULL,
                    check_date TEXT NOT NULL,
                    followed INTEGER NOT NULL,
                    UNIQUE(rule_id, check_date)
                )
            """)

            # Screenshots table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS journal_screenshots (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    trade_id INTEGER,
                    journal_date TEXT,
                    file_path TEXT NOT NULL,
                    file_name TEXT NOT NULL,
                    screenshot_type TEXT NOT NULL,
                    caption TEXT
                )
            """)

            # Import history table
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS import_history (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    file_name TEXT NOT NULL,
                    broker TEXT,
                    account_id INTEGER,
                    imported INTEGER NOT NULL,
                    skipped INTEGER NOT NULL,
                    failed INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)

            for instrument in DEFAULT_INSTRUMENTS:
                cursor.execute(
                    """
                    INSERT OR IGNORE INTO instruments
                    (symbol, name, tick_size, tick_value, exchange, asset_class, is_active)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        instrument.symbol,
                        instrument.name,
                        instrument.tick_size,
                        instrument.tick_value,
                        instrument.exchange,
                        instrument.asset_class,
                        1 if instrument.is_active else 0,
                    ),
                )

            conn.commit()
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Trades ====================

    def add_trade(self, trade: Trade) -> int:
        """Insert a trade.

        Args:
            trade: Trade to insert. Its id is ignored.

        Returns:
            The ID of the new trade.

        Raises:
            sqlite3.IntegrityError: If the external id already exists for the account.
        """
        placeholders = ", ".join("?" for _ in TRADE_COLUMNS)
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"INSERT INTO trades ({', '.join(TRADE_COLUMNS)}) VALUES ({placeholders})",
                _trade_params(trade),
            )
            conn.commit()
            logger.debug("Added trade %s %s %s", cursor.lastrowid, trade.symbol, trade.side.value)
            return cursor.lastrowid or 0
        finally:
            conn.close()

    def get_trade(self, trade_id: int) -> Optional[Trade]:
        """Get a trade by ID, including soft-deleted trades.

        Args:
            trade_id: Trade ID.

        Returns:
            Trade if found, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM trades WHERE id = ?", (trade_id,))
            row = cursor.fetchone()
            if row:
                return _row_to_trade(row)
            return None
        finally:
            conn.close()

    def get_trades(
        self,
        account_id: Optional[int] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        include_deleted: bool = False,
    ) -> list[Trade]:
        """Get trades ordered by entry date.

        Args:
            account_id: Optional account filter.
            from_date: Optional inclusive lower bound on entry date.
            to_date: Optional inclusive upper bound on entry date.
            include_deleted: Include soft-deleted trades.

        Returns:
            List of trades.
        """
        clauses = []
        params: list = []
        if account_id is not None:
            clauses.append("account_id = ?")
            params.append(account_id)
        if from_date is not None:
            clauses.append("entry_date >= ?")
            params.append(_iso(from_date))
        if to_date is not None:
            clauses.append("entry_date <= ?")
            params.append(_iso(to_date))
        if not include_deleted:
            clauses.append("deleted_at IS NULL")

        query = "SELECT * FROM trades"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY entry_date, id"

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [_row_to_trade(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def update_trade(self, trade: Trade) -> bool:
        """Replace a stored trade with new values.

        Args:
            trade: Trade with the id of the row to update.

        Returns:
            True if a row was updated.
        """
        if trade.id is None:
            raise ValueError("Cannot update a trade without an id")
        trade = trade.model_copy(update={"updated_at": datetime.now(timezone.utc)})
        assignments = ", ".join(f"{col} = ?" for col in TRADE_COLUMNS)
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE trades SET {assignments} WHERE id = ?",
                (*_trade_params(trade), trade.id),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def delete_trade(self, trade_id: int, hard: bool = False) -> bool:
        """Delete a trade.

        Args:
            trade_id: Trade ID.
            hard: Remove the row and its screenshots instead of marking it deleted.

        Returns:
            True if a trade was affected.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            if hard:
                cursor.execute("DELETE FROM journal_screenshots WHERE trade_id = ?", (trade_id,))
                cursor.execute("DELETE FROM trades WHERE id = ?", (trade_id,))
            else:
                cursor.execute(
                    "UPDATE trades SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
                    (_iso(datetime.now(timezone.utc)), trade_id),
                )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def restore_trade(self, trade_id: int) -> bool:
        """Clear the soft delete marker of a trade.

        Returns:
            True if a deleted trade was restored.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE trades SET deleted_at = NULL WHERE id = ? AND deleted_at IS NOT NULL",
                (trade_id,),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def get_external_ids(self, account_id: Optional[int] = None) -> set[str]:
        """Get external ids already stored for an account.

        Args:
            account_id: Account ID, or None for trades without an account.

        Returns:
            Set of external ids.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            if account_id is None:
                cursor.execute(
                    "SELECT external_id FROM trades "
                    "WHERE account_id IS NULL AND external_id IS NOT NULL"
                )
            else:
                cursor.execute(
                    "SELECT external_id FROM trades "
                    "WHERE account_id = ? AND external_id IS NOT NULL",
                    (account_id,),
                )
            return {row["external_id"] for row in cursor.fetchall()}
        finally:
            conn.close()

    # ==================== Accounts ====================

    def add_account(self, account: Account) -> int:
        """Insert an account.

        The first account, or one flagged as default, becomes the default.

        Args:
            account: Account to insert.

        Returns:
            The ID of the new account.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) as count FROM accounts")
            is_default = account.is_default or cursor.fetchone()["count"] == 0
            if is_default:
                cursor.execute("UPDATE accounts SET is_default = 0")
            cursor.execute(
                """
                INSERT INTO accounts
                (name, broker, account_number, starting_balance,
                 commission_per_contract, commission_per_trade, is_default)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    account.name,
                    account.broker,
                    account.account_number,
                    account.starting_balance,
                    account.commission_per_contract,
                    account.commission_per_trade,
                    1 if is_default else 0,
                ),
            )
            conn.commit()
            return cursor.lastrowid or 0
        finally:
            conn.close()

    def get_accounts(self) -> list[Account]:
        """Get all accounts.

        Returns:
            List of accounts.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM accounts ORDER BY id")
            return [_row_to_account(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get_account(self, account_id: int) -> Optional[Account]:
        """Get an account by ID.

        Returns:
            Account if found, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM accounts WHERE id = ?", (account_id,))
            row = cursor.fetchone()
            return _row_to_account(row) if row else None
        finally:
            conn.close()

    def find_account(self, name: str) -> Optional[Account]:
        """Get an account by case-insensitive name."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM accounts WHERE lower(name) = lower(?) ORDER BY id LIMIT 1",
                (name,),
            )
            row = cursor.fetchone()
            return _row_to_account(row) if row else None
        finally:
            conn.close()

    def get_default_account(self) -> Optional[Account]:
        """Get the default account.

        Returns:
            Default account if one exists, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM accounts WHERE is_default = 1 LIMIT 1")
            row = cursor.fetchone()
            return _row_to_account(row) if row else None
        finally:
            conn.close()

    def set_default_account(self, account_id: int) -> bool:
        """Make an account the only default account.

        Returns:
            True if the account exists.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT id FROM accounts WHERE id = ?", (account_id,))
            if cursor.fetchone() is None:
                return False
            cursor.execute("UPDATE accounts SET is_default = 0")
            cursor.execute("UPDATE accounts SET is_default = 1 WHERE id = ?", (account_id,))
            conn.commit()
            return True
        finally:
            conn.close()

    def delete_account(self, account_id: int) -> bool:
        """Delete an account. Its trades are kept and unassigned.

        Returns:
            True if the account was deleted.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("UPDATE trades SET account_id = NULL WHERE account_id = ?", (account_id,))
            cursor.execute("DELETE FROM accounts WHERE id = ?", (account_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted
        finally:
            conn.close()

    # ==================== Instruments ====================

    def get_instruments(self, active_only: bool = False) -> list[Instrument]:
        """Get instruments ordered by symbol.

        Args:
            active_only: Only return active instruments.

        Returns:
            List of instruments.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            if active_only:
                cursor.execute("SELECT * FROM instruments WHERE is_active = 1 ORDER BY symbol")
            else:
                cursor.execute("SELECT * FROM instruments ORDER BY symbol")
            return [_row_to_instrument(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get_instrument(self, symbol: str) -> Optional[Instrument]:
        """Get an instrument by symbol.

        Returns:
            Instrument if found, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM instruments WHERE symbol = ?", (symbol.upper().strip(),)
            )
            row = cursor.fetchone()
            return _row_to_instrument(row) if row else None
        finally:
            conn.close()

    def save_instrument(self, instrument: Instrument) -> None:
        """Insert or replace an instrument by symbol.

        Args:
            instrument: Instrument to save.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO instruments
                (symbol, name, tick_size, tick_value, exchange, asset_class, is_active)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(symbol) DO UPDATE SET
                    name = excluded.name,
                    tick_size = excluded.tick_size,
                    tick_value = excluded.tick_value,
                    exchange = excluded.exchange,
                    asset_class = excluded.asset_class,
                    is_active = excluded.is_active
                """,
                (
                    instrument.symbol.upper().strip(),
                    instrument.name,
                    instrument.tick_size,
                    instrument.tick_value,
                    instrument.exchange,
                    instrument.asset_class,
                    1 if instrument.is_active else 0,
                ),
            )
            conn.commit()
        finally:
            conn.close()

    # ==================== Rules ====================

    def add_rule(self, rule: UserRule) -> int:
        """Insert a rule.

        A rule without a display order is placed after the existing rules.

        Returns:
            The ID of the new rule.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            display_order = rule.display_order
            if display_order == 0:
                cursor.execute(
                    "SELECT COALESCE(MAX(display_order), 0) as max_order FROM user_rules"
                )
                display_order = cursor.fetchone()["max_order"] + 1
            cursor.execute(
                """
                INSERT INTO user_rules (title, description, category, display_order, is_active)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    rule.title,
                    rule.description,
                    rule.category.value,
                    display_order,
                    1 if rule.is_active else 0,
                ),
            )
            conn.commit()
            return cursor.lastrowid or 0
        finally:
            conn.close()

    def get_rule(self, rule_id: int) -> Optional[UserRule]:
        """Get a rule by ID."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM user_rules WHERE id = ?", (rule_id,))
            row = cursor.fetchone()
            return _row_to_rule(row) if row else None
        finally:
            conn.close()

    def get_rules(self, active_only: bool = True) -> list[UserRule]:
        """Get rules in display order.

        Args:
            active_only: Only return active rules.

        Returns:
            List of rules.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            if active_only:
                cursor.execute(
                    "SELECT * FROM user_rules WHERE is_active = 1 ORDER BY display_order, id"
                )
            else:
                cursor.execute("SELECT * FROM user_rules ORDER BY display_order, id")
            return [_row_to_rule(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def update_rule(self, rule: UserRule) -> bool:
        """Update a rule.

        Returns:
            True if a row was updated.
        """
        if rule.id is None:
            raise ValueError("Cannot update a rule without an id")
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE user_rules
                SET title = ?, description = ?, category = ?, display_order = ?, is_active = ?
                WHERE id = ?
                """,
                (
                    rule.title,
                    rule.description,
                    rule.category.value,
                    rule.display_order,
                    1 if rule.is_active else 0,
                    rule.id,
                ),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def delete_rule(self, rule_id: int) -> bool:
        """Deactivate a rule. Its check history is kept.

        Returns:
            True if an active rule was deactivated.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE user_rules SET is_active = 0 WHERE id = ? AND is_active = 1",
                (rule_id,),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def record_rule_check(self, check: UserRuleCheck) -> None:
        """Record whether a rule was followed, replacing any check for the same day.

        Args:
            check: Rule check to record.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO user_rule_checks (rule_id, check_date, followed)
                VALUES (?, ?, ?)
                ON CONFLICT(rule_id, check_date) DO UPDATE SET followed = excluded.followed
                """,
                (check.rule_id, check.check_date.isoformat(), 1 if check.followed else 0),
            )
            conn.commit()
        finally:
            conn.close()

    def get_rule_checks(
        self, from_date: Optional[date] = None, rule_id: Optional[int] = None
    ) -> list[UserRuleCheck]:
        """Get rule checks ordered by date.

        Args:
            from_date: Optional inclusive start date.
            rule_id: Optional rule filter.

        Returns:
            List of rule checks.
        """
        clauses = []
        params: list = []
        if from_date is not None:
            clauses.append("check_date >= ?")
            params.append(from_date.isoformat())
        if rule_id is not None:
            clauses.append("rule_id = ?")
            params.append(rule_id)
        query = "SELECT * FROM user_rule_checks"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY check_date, rule_id"

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [
                UserRuleCheck(
                    id=row["id"],
                    rule_id=row["rule_id"],
                    check_date=date.fromisoformat(row["check_date"]),
                    followed=bool(row["followed"]),
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    # ==================== Screenshots ====================

    def add_screenshot(self, screenshot: JournalScreenshot) -> int:
        """Insert screenshot metadata.

        Returns:
            The ID of the new screenshot.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO journal_screenshots
                (trade_id, journal_date, file_path, file_name, screenshot_type, caption)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    screenshot.trade_id,
                    screenshot.journal_date.isoformat() if screenshot.journal_date else None,
                    screenshot.file_path,
                    screenshot.file_name,
                    screenshot.screenshot_type.value,
                    screenshot.caption,
                ),
            )
            conn.commit()
            return cursor.lastrowid or 0
        finally:
            conn.close()

    def get_screenshots(
        self, trade_id: Optional[int] = None, journal_date: Optional[date] = None
    ) -> list[JournalScreenshot]:
        """Get screenshots for a trade or a journal day.

        Args:
            trade_id: Optional trade filter.
            journal_date: Optional journal day filter.

        Returns:
            List of screenshots.
        """
        clauses = []
        params: list = []
        if trade_id is not None:
            clauses.append("trade_id = ?")
            params.append(trade_id)
        if journal_date is not None:
            clauses.append("journal_date = ?")
            params.append(journal_date.isoformat())
        query = "SELECT * FROM journal_screenshots"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY id"

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [_row_to_screenshot(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def delete_screenshot(self, screenshot_id: int) -> bool:
        """Delete screenshot metadata.

        Returns:
            True if a row was deleted.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM journal_screenshots WHERE id = ?", (screenshot_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    # ==================== Import History ====================

    def log_import(self, record: ImportRecord) -> int:
        """Record a completed import run.

        Returns:
            The ID of the history row.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO import_history
                (file_name, broker, account_id, imported, skipped, failed, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.file_name,
                    record.broker,
                    record.account_id,
                    record.imported,
                    record.skipped,
                    record.failed,
                    _iso(record.created_at),
                ),
            )
            conn.commit()
            return cursor.lastrowid or 0
        finally:
            conn.close()

    def get_import_history(self, limit: int = 20) -> list[ImportRecord]:
        """Get the most recent import runs.

        Args:
            limit: Maximum number of rows.

        Returns:
            List of import records, newest first.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM import_history ORDER BY created_at DESC, id DESC LIMIT ?",
                (limit,),
            )
            return [
                ImportRecord(
                    id=row["id"],
                    file_name=row["file_name"],
                    broker=row["broker"],
                    account_id=row["account_id"],
                    imported=row["imported"],
                    skipped=row["skipped"],
                    failed=row["failed"],
                    created_at=datetime.fromisoformat(row["created_at"]),
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    # ==================== Stats ====================

    def get_stats(self) -> dict:
        """Get database statistics.

        Returns:
            Dictionary with table record counts.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            stats = {}
            for table in self.REQUIRED_TABLES:
                cursor.execute(f"SELECT COUNT(*) as count FROM {table}")
                stats[table] = cursor.fetchone()["count"]
            return stats
        finally:
            conn.close()
