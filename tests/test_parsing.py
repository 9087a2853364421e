"""Property-based tests for CSV cell parsing.

**Feature: trade-journal**
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tradejournal.importer.parsing import (
    normalize_symbol,
    parse_date,
    parse_number,
    parse_side,
)
from tradejournal.models import DEFAULT_SYMBOLS, Side

MONTH_CODES = "FGHJKMNQUVXZ"


class TestNumberParsing:
    """
    **Feature: trade-journal, Property 1: Numeric Cell Parsing**
    **Validates: Requirements 3.1**

    *For any* amount written with currency symbols, thousands separators or
    accounting parentheses, parsing should recover the signed value.
    """

    def test_accounting_negative(self):
        assert parse_number("$(123.45)") == -123.45

    def test_thousands_separator(self):
        assert parse_number("1,234.50") == 1234.50

    @pytest.mark.parametrize("text", ["", "   ", None, "abc", "$", "()", "nan", "inf"])
    def test_blank_or_invalid_is_none(self, text):
        assert parse_number(text) is None

    @pytest.mark.parametrize(
        "text,expected",
        [("-42", -42.0), ("$ 1,000", 1000.0), ("(5)", -5.0), (" 0.25 ", 0.25), ("$-7.5", -7.5)],
    )
    def test_examples(self, text, expected):
        assert parse_number(text) == expected

    @given(st.decimals(min_value=-10_000_000, max_value=10_000_000, places=2))
    @settings(max_examples=100)
    def test_currency_format(self, amount):
        """
        *For any* amount, ``$1,234.56`` style text with parentheses for
        negatives should parse back to the amount.
        """
        value = float(amount)
        text = f"${abs(value):,.2f}"
        if value < 0:
            text = f"({text})"
        assert parse_number(text) == pytest.approx(value)


class TestDateParsing:
    """
    **Feature: trade-journal, Property 2: Timestamp Normalization**
    **Validates: Requirements 3.1**

    *For any* timestamp in a supported layout, parsing should yield an
    aware UTC datetime for the same instant.
    """

    def test_us_and_iso_same_instant(self):
        us = parse_date("01/22/2026 09:25:18")
        iso = parse_date("2026-01-22T09:25:18Z")
        assert us == iso
        assert us.tzinfo is not None

    def test_am_pm(self):
        assert parse_date("01/22/2026 1:05 PM") == datetime(2026, 1, 22, 13, 5, tzinfo=timezone.utc)
        assert parse_date("01/22/2026 12:00 AM") == datetime(2026, 1, 22, 0, 0, tzinfo=timezone.utc)

    def test_date_only_us_is_market_open(self):
        assert parse_date("03/04/2025") == datetime(2025, 3, 4, 9, 30, tzinfo=timezone.utc)

    def test_date_only_iso_is_midnight(self):
        assert parse_date("2025-03-04") == datetime(2025, 3, 4, tzinfo=timezone.utc)

    def test_offset_is_respected(self):
        parsed = parse_date("2025-03-04T09:30:00-05:00")
        assert parsed == datetime(2025, 3, 4, 14, 30, tzinfo=timezone.utc)

    def test_naive_uses_timezone(self):
        parsed = parse_date("2025-07-01 09:30:00", ZoneInfo("America/New_York"))
        assert parsed == datetime(2025, 7, 1, 13, 30, tzinfo=timezone.utc)

    @pytest.mark.parametrize("text", ["", None, "yesterday", "13/45/2025 10:00", "2025-02-30"])
    def test_invalid_is_none(self, text):
        assert parse_date(text) is None

    @given(st.datetimes(min_value=datetime(2000, 1, 1), max_value=datetime(2099, 12, 31)))
    @settings(max_examples=100)
    def test_layouts_agree(self, value: datetime):
        """
        *For any* naive timestamp, the US, space-separated ISO and ``Z``
        ISO layouts should parse to the same instant.
        """
        value = value.replace(microsecond=0)
        us = parse_date(value.strftime("%m/%d/%Y %H:%M:%S"))
        spaced = parse_date(value.strftime("%Y-%m-%d %H:%M:%S"))
        iso = parse_date(value.strftime("%Y-%m-%dT%H:%M:%SZ"))
        assert us == spaced == iso == value.replace(tzinfo=timezone.utc)


class TestSymbolNormalization:
    """
    **Feature: trade-journal, Property 3: Contract Root Extraction**
    **Validates: Requirements 3.1**

    *For any* known root with a month code and year suffix, normalization
    should return the root.
    """

    def test_examples(self):
        assert normalize_symbol("MESZ4") == "MES"
        assert normalize_symbol("ESH25") == "ES"
        assert normalize_symbol("nq") == "NQ"

    def test_unknown_is_uppercased(self):
        assert normalize_symbol("abcd") == "ABCD"

    def test_custom_known_roots(self):
        assert normalize_symbol("MBTF5", known=["MBT"]) == "MBT"

    @given(
        root=st.sampled_from(DEFAULT_SYMBOLS),
        month=st.sampled_from(MONTH_CODES),
        year=st.integers(min_value=0, max_value=99),
        two_digit=st.booleans(),
    )
    @settings(max_examples=100)
    def test_dated_contract(self, root: str, month: str, year: int, two_digit: bool):
        """
        *For any* built-in root, month code and year, the dated contract
        should normalize to the root.
        """
        suffix = f"{year:02d}" if two_digit else str(year % 10)
        assert normalize_symbol(f"{root}{month}{suffix}") == root


class TestSideParsing:
    @pytest.mark.parametrize("text", ["Buy", "LONG", " b ", "1"])
    def test_long(self, text):
        assert parse_side(text) == Side.LONG

    @pytest.mark.parametrize("text", ["Sell", "short", "S", "-1"])
    def test_short(self, text):
        assert parse_side(text) == Side.SHORT

    @pytest.mark.parametrize("text", ["", None, "flat"])
    def test_unknown(self, text):
        assert parse_side(text) is None
