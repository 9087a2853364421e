"""Performance breakdowns by time, setup, tags, instrument and side."""

from collections import defaultdict
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, Field

from tradejournal.analytics.statistics import closed_trades
from tradejournal.models import Side, Trade

WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

# (label, upper bound in minutes)
HOLD_TIME_BUCKETS = [
    ("< 1m", 1),
    ("1-5m", 5),
    ("5-15m", 15),
    ("15-30m", 30),
    ("30-60m", 60),
    ("1-4h", 240),
    ("> 4h", None),
]


class BucketStats(BaseModel):
    """Performance of the trades that share a label."""

    label: str = Field(..., description="Group label")
    trades: int = Field(default=0, description="Trade count")
    wins: int = Field(default=0, description="Winning trades")
    losses: int = Field(default=0, description="Losing trades")
    pnl: float = Field(default=0.0, description="Total net P&L")
    win_rate: float = Field(default=0.0, description="Winning percentage (0-100)")
    avg_pnl: float = Field(default=0.0, description="Average net P&L")
    avg_r: Optional[float] = Field(default=None, description="Average R-multiple")
    volume: float = Field(default=0.0, description="Contracts traded")

    @classmethod
    def from_trades(cls, label: str, trades: list[Trade]) -> "BucketStats":
        count = len(trades)
        wins = sum(1 for t in trades if t.net_pnl > 0)
        pnl = sum(t.net_pnl for t in trades)
        r_values = [t.r_multiple for t in trades if t.r_multiple is not None]
        return cls(
            label=label,
            trades=count,
            wins=wins,
            losses=sum(1 for t in trades if t.net_pnl < 0),
            pnl=pnl,
            win_rate=wins / count * 100 if count else 0.0,
            avg_pnl=pnl / count if count else 0.0,
            avg_r=sum(r_values) / len(r_values) if r_values else None,
            volume=sum(t.entry_contracts for t in trades),
        )


def _group(
    trades: list[Trade], key: Callable[[Trade], Iterable[str]]
) -> dict[str, list[Trade]]:
    groups: dict[str, list[Trade]] = defaultdict(list)
    for trade in closed_trades(trades):
        for label in key(trade):
            groups[label].append(trade)
    return groups


def _stats(groups: dict[str, list[Trade]], labels: Iterable[str]) -> list[BucketStats]:
    return [BucketStats.from_trades(label, groups.get(label, [])) for label in labels]


def by_day_of_week(trades: list[Trade], tz: tzinfo = timezone.utc) -> list[BucketStats]:
    """Group by the weekday a trade closed on.

    Monday to Friday are always present. Weekend days appear only when
    trades closed on them.
    """
    groups = _group(trades, lambda t: [WEEKDAYS[t.close_date.astimezone(tz).weekday()]])
    labels = [day for day in WEEKDAYS if day in WEEKDAYS[:5] or day in groups]
    return _stats(groups, labels)


def by_hour(trades: list[Trade], tz: tzinfo = timezone.utc) -> list[BucketStats]:
    """Group by entry hour, in hour order."""
    groups = _group(trades, lambda t: [f"{t.entry_date.astimezone(tz).hour}:00"])
    labels = sorted(groups, key=lambda label: int(label.split(":")[0]))
    return _stats(groups, labels)


def by_setup(trades: list[Trade]) -> list[BucketStats]:
    """Group by setup label. Trades without a setup are left out."""
    groups = _group(trades, lambda t: [t.setup.strip()] if t.setup and t.setup.strip() else [])
    return sorted(_stats(groups, groups), key=lambda b: b.pnl, reverse=True)


def by_emotion(trades: list[Trade]) -> list[BucketStats]:
    """Group by emotion tag. A trade counts once for each tag it carries."""
    groups = _group(trades, lambda t: dict.fromkeys(e.value for e in t.emotions))
    return sorted(_stats(groups, groups), key=lambda b: (-b.trades, b.label))


def by_mistake(trades: list[Trade]) -> list[BucketStats]:
    """Group by mistake tag. A trade counts once for each tag it carries."""
    groups = _group(trades, lambda t: dict.fromkeys(m.value for m in t.mistakes))
    return sorted(_stats(groups, groups), key=lambda b: (-b.trades, b.label))


def by_month(trades: list[Trade], tz: tzinfo = timezone.utc) -> list[BucketStats]:
    """Group by close month (YYYY-MM), oldest first."""
    groups = _group(trades, lambda t: [t.close_date.astimezone(tz).strftime("%Y-%m")])
    return _stats(groups, sorted(groups))


def by_symbol(trades: list[Trade]) -> list[BucketStats]:
    """Group by instrument, most profitable first."""
    groups = _group(trades, lambda t: [t.symbol])
    return sorted(_stats(groups, groups), key=lambda b: b.pnl, reverse=True)


def by_session(trades: list[Trade]) -> list[BucketStats]:
    """Group by market session. Trades without a session are left out."""
    groups = _group(trades, lambda t: [t.session.value] if t.session else [])
    return _stats(groups, groups)


def by_side(trades: list[Trade]) -> list[BucketStats]:
    """Compare long and short trades."""
    groups = _group(trades, lambda t: [t.side.value])
    return _stats(groups, [Side.LONG.value, Side.SHORT.value])


def hold_time_bucket(duration: timedelta) -> str:
    minutes = duration.total_seconds() / 60
    for label, upper in HOLD_TIME_BUCKETS:
        if upper is None or minutes < upper:
            return label
    return HOLD_TIME_BUCKETS[-1][0]


def by_hold_time(trades: list[Trade]) -> list[BucketStats]:
    """Group by time in the trade. Trades without an exit are left out."""
    groups = _group(
        trades,
        lambda t: [hold_time_bucket(t.hold_duration)] if t.hold_duration is not None else [],
    )
    return _stats(groups, [label for label, _ in HOLD_TIME_BUCKETS])


def daily_pnl(
    trades: list[Trade],
    days: Optional[int] = None,
    tz: tzinfo = timezone.utc,
    today: Optional[date] = None,
) -> dict[date, float]:
    """Net P&L per close day, oldest first.

    Args:
        trades: Trades to include.
        days: Only keep the last N calendar days ending today.
        tz: Timezone that defines calendar days.
        today: Reference day. Defaults to the current day in tz.

    Returns:
        Mapping of day to net P&L for days with closed trades.
    """
    totals: dict[date, float] = defaultdict(float)
    for trade in closed_trades(trades):
        totals[trade.close_date.astimezone(tz).date()] += trade.net_pnl

    if days is not None:
        today = today or datetime.now(tz).date()
        first = today - timedelta(days=days - 1)
        totals = {day: pnl for day, pnl in totals.items() if first <= day <= today}

    return dict(sorted(totals.items()))
