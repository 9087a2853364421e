"""CSV column to trade field mapping."""

from typing import Iterable

IGNORE = "ignore"

# (field, label, required)
IMPORT_FIELDS = [
    ("symbol", "Symbol/Contract", True),
    ("side", "Side (Buy/Sell)", False),
    ("entry_date", "Entry Date/Time", False),
    ("entry_time", "Entry Time (if separate)", False),
    ("entry_price", "Entry/Buy Price", False),
    ("entry_contracts", "Quantity/Contracts", True),
    ("exit_date", "Exit Date/Time", False),
    ("exit_time", "Exit Time (if separate)", False),
    ("exit_price", "Exit/Sell Price", False),
    ("exit_contracts", "Exit Contracts", False),
    ("stop_loss", "Stop Loss", False),
    ("take_profit", "Take Profit/Limit", False),
    ("commission", "Commission", False),
    ("fees", "Fees", False),
    ("pnl", "P&L (Realized)", False),
    ("order_id", "Order ID", False),
    ("account", "Account", False),
    ("status", "Status", False),
    ("notes", "Notes/Text", False),
    (IGNORE, "-- Ignore --", False),
]

FIELD_NAMES = [name for name, _, _ in IMPORT_FIELDS]
REQUIRED_FIELDS = [name for name, _, required in IMPORT_FIELDS if required]

# Tradovate Performance exports: boughtTimestamp/buyPrice are the buy leg,
# soldTimestamp/sellPrice the sell leg.
COLUMN_ALIASES: dict[str, list[str]] = {
    "symbol": ["symbol", "instrument", "ticker", "contract", "product",
               "productdescription", "product description"],
    "side": ["side", "direction", "action", "buy/sell", "b/s", "buysell"],
    "entry_date": ["entry date", "date", "trade date", "entry_date", "entrydate", "open date",
                   "boughttimestamp", "bought timestamp", "filltime", "fill time",
                   "timestamp", "time", "entrytime"],
    "entry_time": ["entry time", "entry_time", "entrytime", "open time"],
    "entry_price": ["entry price", "entry", "entry_price", "entryprice", "open price",
                    "avg entry", "buyprice", "buy price", "avgprice", "avg fill price",
                    "avgfillprice", "avg price", "fillprice", "fill price"],
    "entry_contracts": ["quantity", "qty", "contracts", "size", "lots", "entry_contracts",
                        "volume", "filledqty", "filled qty", "filledquantity"],
    "exit_date": ["exit date", "close date", "exit_date", "exitdate", "soldtimestamp",
                  "sold timestamp", "closetime", "close time"],
    "exit_time": ["exit time", "close time", "exit_time", "exittime"],
    "exit_price": ["exit price", "exit", "exit_price", "exitprice", "close price", "avg exit",
                   "sellprice", "sell price", "closeprice"],
    "exit_contracts": ["exit qty", "close qty", "exit_contracts", "exit quantity"],
    "stop_loss": ["stop loss", "stop", "sl", "stop_loss", "stoploss", "stopprice", "stop price"],
    "take_profit": ["take profit", "target", "tp", "take_profit", "takeprofit",
                    "profit target", "limitprice", "limit price"],
    "commission": ["commission", "comm", "trading fees"],
    "fees": ["fees", "fee"],
    "pnl": ["pnl", "p&l", "profit", "profit/loss", "net p&l", "gross p&l", "realized p&l",
            "realizedpnl", "realized pnl", "netpnl"],
    "order_id": ["orderid", "order id", "ordernumber", "order number", "buyfillid",
                 "sellfillid"],
    "account": ["account", "accountid", "account id", "accountnumber", "account number"],
    "status": ["status", "orderstatus", "order status", "state"],
    "notes": ["notes", "comments", "memo", "description", "text"],
}

METADATA_PATTERNS = ["priceformat", "ticksize", "formattype", "version", "spreaddef"]


def auto_detect_field(column: str) -> str:
    """Guess the trade field a CSV column holds.

    Args:
        column: CSV header.

    Returns:
        Field name from IMPORT_FIELDS, ``ignore`` when nothing matches.
    """
    normalized = column.lower().strip()
    if not normalized or normalized.startswith("_"):
        return IGNORE
    if any(pattern in normalized for pattern in METADATA_PATTERNS):
        return IGNORE

    # Buy/sell legs must win over the generic timestamp and price aliases
    if "sold" in normalized and "timestamp" in normalized:
        return "exit_date"
    if "bought" in normalized and "timestamp" in normalized:
        return "entry_date"
    if "sell" in normalized and "price" in normalized:
        return "exit_price"
    if "buy" in normalized and "price" in normalized:
        return "entry_price"

    for field, aliases in COLUMN_ALIASES.items():
        if normalized in aliases:
            return field

    for field, aliases in COLUMN_ALIASES.items():
        if any(alias in normalized or normalized in alias for alias in aliases):
            return field

    return IGNORE


def detect_mapping(columns: Iterable[str]) -> dict[str, str]:
    """Map every column to its detected field."""
    return {column: auto_detect_field(column) for column in columns}


def parse_override(text: str) -> tuple[str, str]:
    """Split a ``column=field`` override.

    Raises:
        ValueError: If the text has no ``=``.
    """
    column, sep, field = text.partition("=")
    if not sep or not column.strip():
        raise ValueError(f"Invalid mapping '{text}', expected COLUMN=FIELD")
    return column.strip(), field.strip().lower()


def apply_overrides(mapping: dict[str, str], overrides: dict[str, str]) -> dict[str, str]:
    """Return a copy of mapping with user-chosen fields applied.

    Args:
        mapping: Detected column to field mapping.
        overrides: Column to field pairs chosen by the user.

    Returns:
        Updated mapping.

    Raises:
        ValueError: If a column is not in the file or a field is unknown.
    """
    updated = dict(mapping)
    for column, field in overrides.items():
        if column not in updated:
            raise ValueError(f"Unknown column '{column}'")
        if field not in FIELD_NAMES:
            raise ValueError(f"Unknown field '{field}'")
        updated[column] = field
    return updated


def missing_required(mapping: dict[str, str]) -> list[str]:
    """Required fields that no column is mapped to."""
    mapped = set(mapping.values())
    return [field for field in REQUIRED_FIELDS if field not in mapped]
