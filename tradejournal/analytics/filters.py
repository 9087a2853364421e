"""Trade filters and date range presets."""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from tradejournal.models import EmotionTag, MistakeTag, Side, Trade, TradeStatus


class DateRange(str, Enum):
    """Date range presets."""

    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    YEAR_TO_DATE = "ytd"
    LAST_YEAR = "1y"
    ALL = "all"
    CUSTOM = "custom"


def date_range_bounds(
    preset: DateRange,
    start: Optional[date] = None,
    end: Optional[date] = None,
    now: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
) -> tuple[Optional[datetime], datetime]:
    """Resolve a preset to concrete bounds.

    Args:
        preset: Range preset.
        start: First day for a custom range.
        end: Last day for a custom range.
        now: Reference time. Defaults to the current time.
        tz: Timezone that defines calendar days.

    Returns:
        Tuple of (start, end). Start is None for ``all``. A custom range
        missing either day falls back to the last 30 days.
    """
    now = now or datetime.now(tz)
    preset = DateRange(preset)

    if preset == DateRange.CUSTOM and start and end:
        return (
            datetime.combine(start, time.min, tzinfo=tz),
            datetime.combine(end, time.max, tzinfo=tz),
        )

    if preset == DateRange.ALL:
        return None, now
    if preset == DateRange.LAST_7_DAYS:
        return now - timedelta(days=7), now
    if preset == DateRange.LAST_90_DAYS:
        return now - timedelta(days=90), now
    if preset == DateRange.YEAR_TO_DATE:
        local = now.astimezone(tz)
        return datetime(local.year, 1, 1, tzinfo=tz), now
    if preset == DateRange.LAST_YEAR:
        try:
            return now.replace(year=now.year - 1), now
        except ValueError:
            # Feb 29
            return now.replace(year=now.year - 1, day=28), now
    return now - timedelta(days=30), now


class TradeFilter(BaseModel):
    """Criteria for selecting trades. Empty criteria match everything."""

    start: Optional[datetime] = Field(default=None, description="Earliest entry")
    end: Optional[datetime] = Field(default=None, description="Latest entry")
    symbols: list[str] = Field(default_factory=list, description="Root symbols")
    sides: list[Side] = Field(default_factory=list, description="Trade directions")
    statuses: list[TradeStatus] = Field(default_factory=list, description="Trade statuses")
    setups: list[str] = Field(default_factory=list, description="Setup labels")
    account_ids: list[int] = Field(default_factory=list, description="Account IDs")
    emotions: list[EmotionTag] = Field(default_factory=list, description="Any of these emotions")
    mistakes: list[MistakeTag] = Field(default_factory=list, description="Any of these mistakes")
    min_pnl: Optional[float] = Field(default=None, description="Minimum net P&L")
    max_pnl: Optional[float] = Field(default=None, description="Maximum net P&L")
    min_r: Optional[float] = Field(default=None, description="Minimum R-multiple")
    max_r: Optional[float] = Field(default=None, description="Maximum R-multiple")
    has_notes: Optional[bool] = Field(default=None, description="Require or exclude notes")

    @field_validator("start", "end", mode="after")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def for_range(
        cls,
        preset: DateRange,
        start: Optional[date] = None,
        end: Optional[date] = None,
        tz: tzinfo = timezone.utc,
        **criteria,
    ) -> "TradeFilter":
        lower, upper = date_range_bounds(preset, start, end, tz=tz)
        return cls(start=lower, end=upper, **criteria)

    def matches(self, trade: Trade) -> bool:
        if self.start and trade.entry_date < self.start:
            return False
        if self.end and trade.entry_date > self.end:
            return False
        if self.symbols and trade.symbol not in {s.upper() for s in self.symbols}:
            return False
        if self.sides and trade.side not in self.sides:
            return False
        if self.statuses and trade.status not in self.statuses:
            return False
        if self.setups:
            wanted = {s.strip().lower() for s in self.setups}
            if not trade.setup or trade.setup.strip().lower() not in wanted:
                return False
        if self.account_ids and trade.account_id not in self.account_ids:
            return False
        if self.emotions and not set(self.emotions) & set(trade.emotions):
            return False
        if self.mistakes and not set(self.mistakes) & set(trade.mistakes):
            return False
        if self.min_pnl is not None and (trade.net_pnl is None or trade.net_pnl < self.min_pnl):
            return False
        if self.max_pnl is not None and (trade.net_pnl is None or trade.net_pnl > self.max_pnl):
            return False
        if self.min_r is not None and (trade.r_multiple is None or trade.r_multiple < self.min_r):
            return False
        if self.max_r is not None and (trade.r_multiple is None or trade.r_multiple > self.max_r):
            return False
        if self.has_notes is not None:
            noted = bool((trade.notes or "").strip() or (trade.lessons or "").strip())
            if noted != self.has_notes:
                return False
        return True

    def apply(self, trades: list[Trade]) -> list[Trade]:
        """Trades matching every criterion, in their original order."""
        return [t for t in trades if self.matches(t)]
