"""Tests for date range presets and trade filters.

**Feature: trade-journal**
"""

from datetime import date, datetime, timedelta, timezone

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tradejournal.analytics.filters import DateRange, TradeFilter, date_range_bounds
from tradejournal.models import EmotionTag, MistakeTag, Side, Trade, TradeStatus

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def trade(days_ago: int = 0, **fields) -> Trade:
    entry = NOW - timedelta(days=days_ago)
    return Trade(
        symbol=fields.pop("symbol", "ES"),
        side=fields.pop("side", Side.LONG),
        entry_date=entry,
        entry_price=5000.0,
        entry_contracts=1,
        exit_date=entry + timedelta(minutes=5),
        exit_price=5001.0,
        net_pnl=fields.pop("net_pnl", 50.0),
        **fields,
    )


class TestDateRangeBounds:
    @pytest.mark.parametrize(
        "preset,days", [(DateRange.LAST_7_DAYS, 7), (DateRange.LAST_30_DAYS, 30),
                        (DateRange.LAST_90_DAYS, 90)],
    )
    def test_rolling(self, preset, days):
        start, end = date_range_bounds(preset, now=NOW)
        assert end == NOW
        assert start == NOW - timedelta(days=days)

    def test_ytd(self):
        start, _ = date_range_bounds(DateRange.YEAR_TO_DATE, now=NOW)
        assert start == datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_last_year_on_leap_day(self):
        leap = datetime(2024, 2, 29, tzinfo=timezone.utc)
        start, _ = date_range_bounds(DateRange.LAST_YEAR, now=leap)
        assert start == datetime(2023, 2, 28, tzinfo=timezone.utc)

    def test_all(self):
        assert date_range_bounds(DateRange.ALL, now=NOW) == (None, NOW)

    def test_custom(self):
        start, end = date_range_bounds(DateRange.CUSTOM, date(2025, 1, 1), date(2025, 1, 31), now=NOW)
        assert start == datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert end.date() == date(2025, 1, 31)
        assert end.hour == 23

    def test_custom_without_dates_falls_back(self):
        start, _ = date_range_bounds(DateRange.CUSTOM, date(2025, 1, 1), None, now=NOW)
        assert start == NOW - timedelta(days=30)

    def test_preset_from_string(self):
        assert date_range_bounds("7d", now=NOW)[0] == NOW - timedelta(days=7)


class TestTradeFilter:
    """
    **Feature: trade-journal, Property 16: Filter Selection**
    **Validates: Requirements 4.4**

    *For any* filter, the selected trades should be exactly the trades that
    satisfy every criterion, in their original order.
    """

    def test_empty_filter_matches_all(self):
        trades = [trade(1), trade(400)]
        assert TradeFilter().apply(trades) == trades

    def test_date_range(self):
        trades = [trade(1), trade(10), trade(40)]
        start, end = date_range_bounds(DateRange.LAST_30_DAYS, now=NOW)
        assert len(TradeFilter(start=start, end=end).apply(trades)) == 2

    def test_naive_bounds_are_utc(self):
        flt = TradeFilter(start=datetime(2025, 6, 14), end=datetime(2025, 6, 16))
        assert flt.matches(trade(0))

    def test_criteria(self):
        trades = [
            trade(symbol="ES", setup="ORB", emotions=[EmotionTag.CALM]),
            trade(symbol="NQ", side=Side.SHORT, net_pnl=-20.0, mistakes=[MistakeTag.CHASED_ENTRY]),
            trade(symbol="ES", notes="Good read", r_multiple=2.5),
        ]
        assert len(TradeFilter(symbols=["es"]).apply(trades)) == 2
        assert TradeFilter(sides=[Side.SHORT]).apply(trades) == [trades[1]]
        assert TradeFilter(setups=[" orb "]).apply(trades) == [trades[0]]
        assert TradeFilter(emotions=[EmotionTag.CALM]).apply(trades) == [trades[0]]
        assert TradeFilter(mistakes=[MistakeTag.CHASED_ENTRY]).apply(trades) == [trades[1]]
        assert TradeFilter(max_pnl=0).apply(trades) == [trades[1]]
        assert TradeFilter(min_r=2).apply(trades) == [trades[2]]
        assert TradeFilter(has_notes=True).apply(trades) == [trades[2]]
        assert len(TradeFilter(has_notes=False).apply(trades)) == 2

    def test_status_and_account(self):
        open_trade = trade(account_id=2).model_copy(update={"status": TradeStatus.OPEN})
        trades = [trade(account_id=1), open_trade]
        assert TradeFilter(statuses=[TradeStatus.OPEN]).apply(trades) == [open_trade]
        assert TradeFilter(account_ids=[1]).apply(trades) == [trades[0]]

    @given(
        days=st.lists(st.integers(min_value=0, max_value=500), max_size=30),
        preset=st.sampled_from([DateRange.LAST_7_DAYS, DateRange.LAST_30_DAYS,
                                DateRange.LAST_90_DAYS, DateRange.ALL]),
    )
    @settings(max_examples=100)
    def test_range_selection(self, days, preset):
        trades = [trade(d) for d in days]
        start, end = date_range_bounds(preset, now=NOW)
        selected = TradeFilter(start=start, end=end).apply(trades)
        expected = [t for t in trades if (start is None or t.entry_date >= start) and t.entry_date <= end]
        assert selected == expected

    def test_for_range(self):
        flt = TradeFilter.for_range(DateRange.CUSTOM, date(2025, 6, 1), date(2025, 6, 30),
                                    symbols=["ES"])
        assert flt.symbols == ["ES"]
        assert flt.matches(trade(0))
        assert not flt.matches(trade(20))
