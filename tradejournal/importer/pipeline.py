"""CSV import pipeline: read, validate, normalize and store trades."""

import csv
import io
import logging
import sqlite3
from datetime import date, datetime, timezone, tzinfo
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field

from tradejournal.importer.columns import (
    IGNORE,
    apply_overrides,
    detect_mapping,
    missing_required,
)
from tradejournal.importer.parsing import (
    normalize_symbol,
    parse_date,
    parse_number,
    parse_side,
)
from tradejournal.models import Account, ImportRecord, Instrument, Side, Trade, TradeStatus

logger = logging.getLogger(__name__)

ENCODINGS = ["utf-8-sig", "cp1252", "latin-1"]
DELIMITERS = ",;\t"

NUMERIC_FIELDS = [
    "entry_price",
    "exit_price",
    "entry_contracts",
    "exit_contracts",
    "stop_loss",
    "take_profit",
    "commission",
    "fees",
    "pnl",
]

OPEN_STATUSES = {"open", "working"}


class CSVFormatError(ValueError):
    """Raised when a file cannot be read as a trade CSV."""


class ValidatedRow(BaseModel):
    """A CSV row with its validation result."""

    index: int = Field(..., ge=0, description="Zero-based data row index")
    data: dict[str, str] = Field(..., description="Raw cells keyed by column")
    errors: list[str] = Field(default_factory=list, description="Validation errors")

    @property
    def is_valid(self) -> bool:
        return not self.errors


class CommissionSettings(BaseModel):
    """Per-side commission schedule used when a CSV has no cost columns."""

    per_contract: float = Field(default=0.0, ge=0, description="Per contract, per side")
    per_trade: float = Field(default=0.0, ge=0, description="Per order, per side")

    model_config = {"frozen": True}

    @classmethod
    def from_account(cls, account: Optional[Account]) -> "CommissionSettings":
        if account is None:
            return cls()
        return cls(
            per_contract=account.commission_per_contract,
            per_trade=account.commission_per_trade,
        )

    def round_trip(self, contracts: float) -> float:
        """Commission for opening and closing a position."""
        return self.per_contract * contracts * 2 + self.per_trade * 2


class ImportPreview(BaseModel):
    """Parsed file, detected mapping and per-row validation."""

    file_name: str = Field(..., description="Source file name")
    columns: list[str] = Field(..., description="CSV headers")
    mapping: dict[str, str] = Field(..., description="Column to field mapping")
    rows: list[ValidatedRow] = Field(..., description="Validated rows")

    @property
    def valid_rows(self) -> list[ValidatedRow]:
        return [row for row in self.rows if row.is_valid]

    @property
    def valid_count(self) -> int:
        return len(self.valid_rows)

    @property
    def invalid_count(self) -> int:
        return len(self.rows) - self.valid_count

    @property
    def missing_fields(self) -> list[str]:
        return missing_required(self.mapping)


class ImportResult(BaseModel):
    """Outcome of an import run."""

    imported: int = Field(default=0, description="Trades inserted")
    skipped: int = Field(default=0, description="Duplicates skipped")
    failed: int = Field(default=0, description="Rows that could not be imported")
    trade_ids: list[int] = Field(default_factory=list, description="Inserted trade IDs")
    errors: list[str] = Field(default_factory=list, description="Per-row failure messages")


def _decode(raw: bytes) -> str:
    for encoding in ENCODINGS:
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError:
            logger.debug("File is not %s", encoding)
    raise CSVFormatError("Could not decode file")


def read_csv(source: Union[Path, str, bytes]) -> tuple[list[str], list[dict[str, str]]]:
    """Read a CSV export.

    Args:
        source: Path to the file, or its raw bytes.

    Returns:
        Tuple of (columns, rows). Rows map every column to its cell text.

    Raises:
        CSVFormatError: If the file has no header or no data rows.
    """
    if isinstance(source, bytes):
        raw = source
    else:
        try:
            raw = Path(source).read_bytes()
        except OSError as e:
            raise CSVFormatError(f"Could not read {source}: {e}") from e

    text = _decode(raw)
    sample = text[:4096]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=DELIMITERS)
    except csv.Error:
        dialect = csv.excel

    reader = csv.reader(io.StringIO(text), dialect)
    header = next(reader, None)
    columns = [column.strip() for column in header or []]
    if not any(columns):
        raise CSVFormatError("No columns found in CSV. Please check the file format.")

    rows = []
    for values in reader:
        if not any(value.strip() for value in values):
            continue
        values = values + [""] * (len(columns) - len(values))
        rows.append(dict(zip(columns, values)))

    if not rows:
        raise CSVFormatError("No data rows found in CSV. Please check the file format.")

    logger.debug("Read %d rows with columns %s", len(rows), columns)
    return columns, rows


def _mapped_value(row: dict[str, str], mapping: dict[str, str], field: str) -> str:
    """Cell text of the first non-empty column mapped to field."""
    for column, mapped in mapping.items():
        if mapped == field:
            value = (row.get(column) or "").strip()
            if value:
                return value
    return ""


def _mapped_date(
    row: dict[str, str], mapping: dict[str, str], prefix: str, tz: tzinfo
) -> Optional[datetime]:
    date_text = _mapped_value(row, mapping, f"{prefix}_date")
    time_text = _mapped_value(row, mapping, f"{prefix}_time")
    if date_text and time_text:
        combined = parse_date(f"{date_text.split()[0]} {time_text}", tz)
        if combined is not None:
            return combined
    return parse_date(date_text, tz)


def validate_row(
    row: dict[str, str],
    mapping: dict[str, str],
    index: int,
    date_filter: Optional[date] = None,
    tz: tzinfo = timezone.utc,
) -> ValidatedRow:
    """Check a row has enough data to become a trade.

    Args:
        row: Raw cells keyed by column.
        mapping: Column to field mapping.
        index: Zero-based data row index.
        date_filter: When set, rows entered on another day are rejected.
        tz: Timezone for timestamps without an offset.

    Returns:
        ValidatedRow carrying any errors.
    """
    errors = []

    if not _mapped_value(row, mapping, "symbol"):
        errors.append("Missing required field: Symbol/Contract")
    if not _mapped_value(row, mapping, "entry_contracts"):
        errors.append("Missing required field: Quantity/Contracts")

    has_price = any(
        _mapped_value(row, mapping, field) for field in ("entry_price", "exit_price", "pnl")
    )
    if not has_price:
        errors.append("Need at least one price (entry or exit) or P&L")

    has_date = _mapped_value(row, mapping, "entry_date") or _mapped_value(
        row, mapping, "exit_date"
    )
    if not has_date:
        errors.append("Need at least one date (entry or exit)")

    for field in NUMERIC_FIELDS:
        value = _mapped_value(row, mapping, field)
        if value and parse_number(value) is None:
            errors.append(f"Invalid number for {field}: {value}")

    if has_date:
        entry = _mapped_date(row, mapping, "entry", tz) or _mapped_date(row, mapping, "exit", tz)
        if entry is None:
            errors.append(f"Invalid date: {has_date}")
        elif date_filter is not None and entry.astimezone(tz).date() != date_filter:
            wanted = f"{date_filter:%B} {date_filter.day}, {date_filter.year}"
            errors.append(f"Trade date does not match {wanted}")

    return ValidatedRow(index=index, data=row, errors=errors)


def build_trade(
    row: dict[str, str],
    mapping: dict[str, str],
    commission: CommissionSettings,
    account_id: Optional[int] = None,
    source: Optional[str] = None,
    instruments: Optional[dict[str, Instrument]] = None,
    tz: tzinfo = timezone.utc,
) -> Trade:
    """Normalize a validated row into a trade.

    Args:
        row: Raw cells keyed by column.
        mapping: Column to field mapping.
        commission: Commission schedule used when the row has no cost columns.
        account_id: Owning account.
        source: Broker id recorded as the import source.
        instruments: Known instruments keyed by root symbol.
        tz: Timezone for timestamps without an offset.

    Returns:
        Trade ready to store.

    Raises:
        ValueError: If the row cannot form a trade.
    """
    instruments = instruments or {}

    def number(field: str) -> Optional[float]:
        return parse_number(_mapped_value(row, mapping, field))

    entry_date = _mapped_date(row, mapping, "entry", tz)
    exit_date = _mapped_date(row, mapping, "exit", tz)
    entry_price = number("entry_price")
    exit_price = number("exit_price")
    contracts = abs(number("entry_contracts") or 0.0)
    if contracts == 0:
        raise ValueError("Quantity must be greater than zero")

    side = parse_side(_mapped_value(row, mapping, "side"))
    inferred = side is None
    if side is None:
        if entry_price is not None and exit_price is not None:
            side = Side.LONG if entry_price < exit_price else Side.SHORT
        else:
            side = Side.LONG

    # Buy/sell leg exports: a short sells first, so the sell leg is the entry
    if side == Side.SHORT and entry_date and exit_date:
        if inferred or exit_date < entry_date:
            entry_date, exit_date = exit_date, entry_date
            entry_price, exit_price = exit_price, entry_price

    entry_date = entry_date or exit_date
    if entry_date is None:
        raise ValueError("Need at least one date (entry or exit)")

    csv_commission = number("commission")
    csv_fees = number("fees")
    if csv_commission is not None or csv_fees is not None:
        commission_total = abs(csv_commission or 0.0)
        fees_total = abs(csv_fees or 0.0)
    else:
        commission_total = commission.round_trip(contracts)
        fees_total = 0.0

    symbol = normalize_symbol(_mapped_value(row, mapping, "symbol"), instruments.keys() or None)
    instrument = instruments.get(symbol)

    gross_pnl = number("pnl")
    if gross_pnl is None and instrument and entry_price is not None and exit_price is not None:
        direction = 1 if side == Side.LONG else -1
        ticks = (exit_price - entry_price) * direction / instrument.tick_size
        gross_pnl = round(ticks * instrument.tick_value * contracts, 2)

    net_pnl = None
    if gross_pnl is not None:
        net_pnl = round(gross_pnl - commission_total - fees_total, 2)

    stop_loss = number("stop_loss")
    r_multiple = None
    if stop_loss is not None and entry_price and net_pnl is not None:
        point_value = instrument.point_value if instrument else 1.0
        risk = abs(entry_price - stop_loss) * contracts * point_value
        if risk > 0:
            r_multiple = round(net_pnl / risk, 2)

    status_text = _mapped_value(row, mapping, "status").lower()
    status = TradeStatus.OPEN if status_text in OPEN_STATUSES else TradeStatus.CLOSED

    exit_contracts = number("exit_contracts")

    return Trade(
        account_id=account_id,
        symbol=symbol,
        side=side,
        status=status,
        entry_date=entry_date,
        entry_price=entry_price or 0.0,
        entry_contracts=contracts,
        exit_date=exit_date,
        exit_price=exit_price,
        exit_contracts=abs(exit_contracts) if exit_contracts is not None else None,
        stop_loss=stop_loss,
        take_profit=number("take_profit"),
        commission=commission_total,
        fees=fees_total,
        gross_pnl=gross_pnl,
        net_pnl=net_pnl,
        r_multiple=r_multiple,
        notes=_mapped_value(row, mapping, "notes") or None,
        import_source=source or "csv",
        external_id=_mapped_value(row, mapping, "order_id") or None,
    )


class TradeImporter:
    """Imports broker CSV exports into the journal."""

    def __init__(
        self,
        store,
        account: Optional[Account] = None,
        broker: Optional[str] = None,
        tz: tzinfo = timezone.utc,
    ):
        """Initialize the importer.

        Args:
            store: DataStore receiving the trades.
            account: Target account. Its commission schedule fills missing costs.
            broker: Broker id recorded as the import source.
            tz: Timezone for timestamps without an offset.
        """
        self.store = store
        self.account = account
        self.broker = broker
        self.tz = tz
        self.commission = CommissionSettings.from_account(account)

    @property
    def account_id(self) -> Optional[int]:
        return self.account.id if self.account else None

    def preview(
        self,
        source: Union[Path, str, bytes],
        file_name: Optional[str] = None,
        overrides: Optional[dict[str, str]] = None,
        date_filter: Optional[date] = None,
    ) -> ImportPreview:
        """Read and validate a file without storing anything.

        Args:
            source: Path to the CSV, or its raw bytes.
            file_name: Name recorded in the import history.
            overrides: User-chosen column to field pairs.
            date_filter: Only accept trades entered on this day.

        Returns:
            ImportPreview.

        Raises:
            CSVFormatError: If the file cannot be read.
            ValueError: If an override names an unknown column or field.
        """
        columns, rows = read_csv(source)
        mapping = detect_mapping(columns)
        if overrides:
            mapping = apply_overrides(mapping, overrides)

        if file_name is None:
            file_name = Path(source).name if not isinstance(source, bytes) else "upload.csv"

        validated = [
            validate_row(row, mapping, index, date_filter=date_filter, tz=self.tz)
            for index, row in enumerate(rows)
        ]
        logger.info(
            "Previewed %s: %d rows, %d valid",
            file_name,
            len(validated),
            sum(1 for row in validated if row.is_valid),
        )
        return ImportPreview(file_name=file_name, columns=columns, mapping=mapping, rows=validated)

    def run(self, preview: ImportPreview, selected: Optional[set[int]] = None) -> ImportResult:
        """Store the selected rows of a preview.

        Args:
            preview: Result of preview().
            selected: Row indexes to import. Defaults to every row; invalid
                rows are counted as failed.

        Returns:
            ImportResult with counts and per-row errors.
        """
        instruments = {i.symbol: i for i in self.store.get_instruments()}
        existing = self.store.get_external_ids(self.account_id)
        result = ImportResult()
        mapping = {col: field for col, field in preview.mapping.items() if field != IGNORE}

        for row in preview.rows:
            if selected is not None and row.index not in selected:
                continue
            if not row.is_valid:
                result.failed += 1
                result.errors.append(f"Row {row.index + 1}: {'; '.join(row.errors)}")
                continue

            try:
                trade = build_trade(
                    row.data,
                    mapping,
                    self.commission,
                    account_id=self.account_id,
                    source=self.broker,
                    instruments=instruments,
                    tz=self.tz,
                )
                if trade.external_id and trade.external_id in existing:
                    logger.debug("Row %d: duplicate %s", row.index + 1, trade.external_id)
                    result.skipped += 1
                    continue
                trade_id = self.store.add_trade(trade)
            except sqlite3.IntegrityError:
                logger.debug("Row %d: duplicate rejected by store", row.index + 1)
                result.skipped += 1
                continue
            except (ValueError, sqlite3.Error) as e:
                logger.warning("Row %d failed: %s", row.index + 1, e)
                result.failed += 1
                result.errors.append(f"Row {row.index + 1}: {e}")
                continue

            if trade.external_id:
                existing.add(trade.external_id)
            result.imported += 1
            result.trade_ids.append(trade_id)

        self.store.log_import(
            ImportRecord(
                file_name=preview.file_name,
                broker=self.broker,
                account_id=self.account_id,
                imported=result.imported,
                skipped=result.skipped,
                failed=result.failed,
            )
        )
        logger.info(
            "Imported %d trades from %s (%d skipped, %d failed)",
            result.imported,
            preview.file_name,
            result.skipped,
            result.failed,
        )
        return result
