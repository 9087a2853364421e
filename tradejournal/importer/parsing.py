"""Value parsers for broker CSV exports.

Broker exports disagree on number formatting, timestamp layout and how a
contract is named. These helpers turn raw cell text into typed values and
return None rather than raising when a cell cannot be read.
"""

import re
from datetime import datetime, time, timezone, tzinfo
from typing import Iterable, Optional

from tradejournal.models import DEFAULT_SYMBOLS, Side

# Month letter followed by a one to four digit year, e.g. Z4, H25, M2024
CONTRACT_PATTERN = re.compile(r"^([A-Z]+[A-Z0-9]*?)([FGHJKMNQUVXZ])(\d{1,4})$")

_US_DATETIME = re.compile(
    r"^(\d{1,2})/(\d{1,2})/(\d{4})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AaPp][Mm])?$"
)
_ISO_SPACE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})\s+(\d{1,2}):(\d{2}):(\d{2})$")
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

MARKET_OPEN = time(9, 30)

LONG_VALUES = {"long", "buy", "b", "1"}
SHORT_VALUES = {"short", "sell", "s", "-1"}


def parse_number(value: Optional[str]) -> Optional[float]:
    """Parse a numeric cell.

    Accepts currency symbols, thousands separators and accounting style
    negatives such as ``$(123.45)``.

    Args:
        value: Raw cell text.

    Returns:
        Parsed float, or None for blank or non-numeric cells.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    negative = "(" in text and ")" in text
    cleaned = re.sub(r"[$,()\s]", "", text)
    if not cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return -abs(number) if negative else number


def _localize(value: datetime, tz: tzinfo) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return value.astimezone(timezone.utc)


def _build(tz: tzinfo, year, month, day, hour=0, minute=0, second=0) -> Optional[datetime]:
    try:
        naive = datetime(int(year), int(month), int(day), int(hour), int(minute), int(second))
    except ValueError:
        return None
    return _localize(naive, tz)


def parse_date(value: Optional[str], tz: tzinfo = timezone.utc) -> Optional[datetime]:
    """Parse a timestamp cell into an aware UTC datetime.

    Recognized layouts, tried in order:

    * ``MM/DD/YYYY HH:mm:ss`` and ``MM/DD/YYYY HH:mm`` (optional AM/PM)
    * ``YYYY-MM-DD HH:mm:ss``
    * ISO 8601, with optional fraction and ``Z`` or offset
    * ``MM/DD/YYYY`` alone, placed at the 09:30 market open
    * ``YYYY-MM-DD`` alone, placed at midnight

    Args:
        value: Raw cell text.
        tz: Timezone used for values without an explicit offset.

    Returns:
        Aware datetime in UTC, or None if the value cannot be parsed.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    match = _US_DATETIME.match(text)
    if match:
        month, day, year, hour, minute, second, meridiem = match.groups()
        hour = int(hour)
        if meridiem:
            if hour < 1 or hour > 12:
                return None
            hour = hour % 12 + (12 if meridiem.lower() == "pm" else 0)
        return _build(tz, year, month, day, hour, minute, second or 0)

    match = _ISO_SPACE.match(text)
    if match:
        return _build(tz, *match.groups())

    if "T" in text:
        iso_text = text[:-1] + "+00:00" if text.endswith("Z") else text
        try:
            return _localize(datetime.fromisoformat(iso_text), tz)
        except ValueError:
            return None

    match = _US_DATE.match(text)
    if match:
        month, day, year = match.groups()
        return _build(tz, year, month, day, MARKET_OPEN.hour, MARKET_OPEN.minute)

    match = _ISO_DATE.match(text)
    if match:
        return _build(tz, *match.groups())

    try:
        return _localize(datetime.fromisoformat(text), tz)
    except ValueError:
        return None


def normalize_symbol(symbol: str, known: Optional[Iterable[str]] = None) -> str:
    """Reduce a dated contract name to its root symbol.

    ``MESZ4`` becomes ``MES`` and ``ESH25`` becomes ``ES``. Symbols that do
    not reduce to a known root are returned upper-cased.

    Args:
        symbol: Contract or root symbol.
        known: Known root symbols. Defaults to the built-in instruments.

    Returns:
        Root symbol.
    """
    upper = symbol.upper().strip()
    known_symbols = set(known) if known is not None else set(DEFAULT_SYMBOLS)

    if upper in known_symbols:
        return upper

    match = CONTRACT_PATTERN.match(upper)
    if match and match.group(1) in known_symbols:
        return match.group(1)

    for cut in range(2, 6):
        if len(upper) > cut and upper[:-cut] in known_symbols:
            return upper[:-cut]

    return upper


def parse_side(value: Optional[str]) -> Optional[Side]:
    """Parse an explicit side cell.

    Returns:
        Side, or None if the cell does not name a side.
    """
    if value is None:
        return None
    text = str(value).strip().lower()
    if text in LONG_VALUES:
        return Side.LONG
    if text in SHORT_VALUES:
        return Side.SHORT
    return None
