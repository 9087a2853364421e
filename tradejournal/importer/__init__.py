"""CSV trade import."""

from tradejournal.importer.columns import (
    COLUMN_ALIASES,
    IGNORE,
    IMPORT_FIELDS,
    apply_overrides,
    auto_detect_field,
    detect_mapping,
    parse_override,
)
from tradejournal.importer.parsing import (
    normalize_symbol,
    parse_date,
    parse_number,
    parse_side,
)
from tradejournal.importer.pipeline import (
    CommissionSettings,
    CSVFormatError,
    ImportPreview,
    ImportResult,
    TradeImporter,
    ValidatedRow,
    build_trade,
    read_csv,
    validate_row,
)

__all__ = [
    "COLUMN_ALIASES",
    "IGNORE",
    "IMPORT_FIELDS",
    "apply_overrides",
    "auto_detect_field",
    "detect_mapping",
    "parse_override",
    "normalize_symbol",
    "parse_date",
    "parse_number",
    "parse_side",
    "CommissionSettings",
    "CSVFormatError",
    "ImportPreview",
    "ImportResult",
    "TradeImporter",
    "ValidatedRow",
    "build_trade",
    "read_csv",
    "validate_row",
]
