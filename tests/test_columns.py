"""Tests for CSV column detection and mapping overrides.

**Feature: trade-journal**
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tradejournal.importer.columns import (
    COLUMN_ALIASES,
    FIELD_NAMES,
    IGNORE,
    apply_overrides,
    auto_detect_field,
    detect_mapping,
    missing_required,
    parse_override,
)

TRADOVATE_COLUMNS = [
    "symbol", "_priceFormat", "_priceFormatType", "_tickSize", "buyFillId", "sellFillId",
    "qty", "buyPrice", "sellPrice", "pnl", "boughtTimestamp", "soldTimestamp",
]


class TestColumnDetection:
    """
    **Feature: trade-journal, Property 4: Header Alias Detection**
    **Validates: Requirements 3.2**

    *For any* header equal to a known alias, detection should return the
    field the alias belongs to.
    """

    def test_tradovate_performance_export(self):
        mapping = detect_mapping(TRADOVATE_COLUMNS)
        assert mapping["symbol"] == "symbol"
        assert mapping["_priceFormat"] == IGNORE
        assert mapping["_tickSize"] == IGNORE
        assert mapping["buyFillId"] == "order_id"
        assert mapping["qty"] == "entry_contracts"
        assert mapping["buyPrice"] == "entry_price"
        assert mapping["sellPrice"] == "exit_price"
        assert mapping["pnl"] == "pnl"
        assert mapping["boughtTimestamp"] == "entry_date"
        assert mapping["soldTimestamp"] == "exit_date"

    @pytest.mark.parametrize(
        "header,field",
        [
            ("Entry Time", "entry_time"),
            ("Exit Time", "exit_time"),
            ("Exit Price", "exit_price"),
            ("Avg Fill Price", "entry_price"),
            ("Buy/Sell", "side"),
            ("Realized P&L", "pnl"),
            ("Commission", "commission"),
            ("Stop Loss", "stop_loss"),
            ("Order Status", "status"),
            ("Comments", "notes"),
        ],
    )
    def test_common_headers(self, header, field):
        assert auto_detect_field(header) == field

    @pytest.mark.parametrize("header", ["", "   ", "_internal", "Version", "spreadDefinition"])
    def test_ignored_headers(self, header):
        assert auto_detect_field(header) == IGNORE

    @given(
        st.sampled_from(
            [(field, alias) for field, aliases in COLUMN_ALIASES.items() for alias in aliases]
        )
    )
    @settings(max_examples=100)
    def test_alias_detects_a_field(self, pair):
        """
        *For any* alias, detection should return a real import field.
        """
        _, alias = pair
        assert auto_detect_field(alias.upper()) in FIELD_NAMES


class TestMappingOverrides:
    """
    **Feature: trade-journal, Property 5: Mapping Overrides**
    **Validates: Requirements 3.2**

    *For any* column in the file and any known field, an override should
    replace the detected field and leave other columns untouched.
    """

    def test_parse_override(self):
        assert parse_override(" Fill Px = Entry_Price ") == ("Fill Px", "entry_price")

    @pytest.mark.parametrize("text", ["nofield", "=symbol", ""])
    def test_parse_override_invalid(self, text):
        with pytest.raises(ValueError):
            parse_override(text)

    def test_unknown_column(self):
        with pytest.raises(ValueError, match="Unknown column"):
            apply_overrides({"a": "symbol"}, {"b": "symbol"})

    def test_unknown_field(self):
        with pytest.raises(ValueError, match="Unknown field"):
            apply_overrides({"a": "symbol"}, {"a": "price"})

    @given(
        columns=st.lists(
            st.text(alphabet="abcdefgh", min_size=1, max_size=8), min_size=1, max_size=6, unique=True
        ),
        data=st.data(),
    )
    @settings(max_examples=50)
    def test_override_applies(self, columns, data):
        """
        *For any* detected mapping, overriding one column should change only
        that column.
        """
        mapping = detect_mapping(columns)
        column = data.draw(st.sampled_from(columns))
        field = data.draw(st.sampled_from(FIELD_NAMES))

        updated = apply_overrides(mapping, {column: field})

        assert updated[column] == field
        for other in columns:
            if other != column:
                assert updated[other] == mapping[other]
        assert mapping == detect_mapping(columns)

    def test_missing_required(self):
        assert missing_required({"a": "symbol"}) == ["entry_contracts"]
        assert missing_required({"a": "symbol", "b": "entry_contracts"}) == []
