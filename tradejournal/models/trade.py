"""Trade data model."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Side(str, Enum):
    """Trade direction."""

    LONG = "long"
    SHORT = "short"


class TradeStatus(str, Enum):
    """Lifecycle status of a trade."""

    OPEN = "open"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class Session(str, Enum):
    """Market session a trade was taken in."""

    ASIAN = "asian"
    LONDON = "london"
    NEW_YORK = "new_york"
    OVERNIGHT = "overnight"
    PRE_MARKET = "pre_market"
    REGULAR_HOURS = "regular_hours"
    AFTER_HOURS = "after_hours"


class EmotionTag(str, Enum):
    """Psychological state tags."""

    CONFIDENT = "confident"
    CALM = "calm"
    FOCUSED = "focused"
    PATIENT = "patient"
    DISCIPLINED = "disciplined"
    FEARFUL = "fearful"
    GREEDY = "greedy"
    ANXIOUS = "anxious"
    IMPATIENT = "impatient"
    FRUSTRATED = "frustrated"
    OVERCONFIDENT = "overconfident"
    FOMO = "fomo"
    REVENGE = "revenge"
    HOPEFUL = "hopeful"
    HESITANT = "hesitant"
    NEUTRAL = "neutral"
    UNCERTAIN = "uncertain"


class MistakeTag(str, Enum):
    """Behavioral mistake tags."""

    ENTERED_TOO_EARLY = "entered_too_early"
    ENTERED_TOO_LATE = "entered_too_late"
    WRONG_DIRECTION = "wrong_direction"
    NO_SETUP = "no_setup"
    CHASED_ENTRY = "chased_entry"
    EXITED_TOO_EARLY = "exited_too_early"
    EXITED_TOO_LATE = "exited_too_late"
    MOVED_STOP_LOSS = "moved_stop_loss"
    NO_STOP_LOSS = "no_stop_loss"
    OVERSIZED = "oversized"
    UNDERSIZED = "undersized"
    ADDED_TO_LOSER = "added_to_loser"
    BROKE_RULES = "broke_rules"
    REVENGE_TRADED = "revenge_traded"
    OVERTRADED = "overtraded"
    IGNORED_PLAN = "ignored_plan"
    TRADED_TIRED = "traded_tired"
    TRADED_DISTRACTED = "traded_distracted"
    MISREAD_CHART = "misread_chart"
    WRONG_TIMEFRAME = "wrong_timeframe"
    IGNORED_CONTEXT = "ignored_context"
    MISSED_NEWS = "missed_news"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Trade(BaseModel):
    """Represents a journaled futures trade."""

    id: Optional[int] = Field(default=None, description="Database ID")
    account_id: Optional[int] = Field(default=None, description="Owning account ID")
    symbol: str = Field(..., min_length=1, description="Instrument root symbol")
    side: Side = Field(..., description="Trade direction (long/short)")
    status: TradeStatus = Field(default=TradeStatus.CLOSED, description="Trade status")
    entry_date: datetime = Field(..., description="Entry timestamp")
    entry_price: float = Field(..., ge=0, description="Entry price")
    entry_contracts: float = Field(..., gt=0, description="Number of contracts")
    exit_date: Optional[datetime] = Field(default=None, description="Exit timestamp")
    exit_price: Optional[float] = Field(default=None, ge=0, description="Exit price")
    exit_contracts: Optional[float] = Field(default=None, ge=0, description="Contracts closed")
    stop_loss: Optional[float] = Field(default=None, description="Stop loss price")
    take_profit: Optional[float] = Field(default=None, description="Take profit price")
    commission: float = Field(default=0.0, ge=0, description="Commission paid")
    fees: float = Field(default=0.0, ge=0, description="Exchange and platform fees")
    gross_pnl: Optional[float] = Field(default=None, description="P&L before costs")
    net_pnl: Optional[float] = Field(default=None, description="P&L after costs")
    r_multiple: Optional[float] = Field(default=None, description="Net P&L in units of risk")
    setup: Optional[str] = Field(default=None, description="User-defined setup label")
    session: Optional[Session] = Field(default=None, description="Market session")
    emotions: list[EmotionTag] = Field(default_factory=list, description="Emotion tags")
    mistakes: list[MistakeTag] = Field(default_factory=list, description="Mistake tags")
    entry_rating: Optional[int] = Field(default=None, ge=1, le=5, description="Entry rating (1-5)")
    exit_rating: Optional[int] = Field(default=None, ge=1, le=5, description="Exit rating (1-5)")
    management_rating: Optional[int] = Field(
        default=None, ge=1, le=5, description="Trade management rating (1-5)"
    )
    notes: Optional[str] = Field(default=None, description="Free-text notes")
    lessons: Optional[str] = Field(default=None, description="Lessons learned")
    is_public: bool = Field(default=False, description="Shared/visible flag")
    import_source: Optional[str] = Field(default=None, description="manual, csv or broker id")
    external_id: Optional[str] = Field(default=None, description="Broker order/fill ID")
    deleted_at: Optional[datetime] = Field(default=None, description="Soft delete timestamp")
    created_at: datetime = Field(default_factory=_utcnow, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=_utcnow, description="Last update timestamp")

    model_config = {"frozen": True}

    @field_validator(
        "entry_date", "exit_date", "deleted_at", "created_at", "updated_at", mode="after"
    )
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive timestamps are stored and compared as UTC.
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_closed(self) -> bool:
        """True for closed trades that carry a net P&L."""
        return self.status == TradeStatus.CLOSED and self.net_pnl is not None

    @property
    def close_date(self) -> datetime:
        """Exit date, falling back to the entry date."""
        return self.exit_date or self.entry_date

    @property
    def hold_duration(self) -> Optional[timedelta]:
        if self.exit_date is None:
            return None
        return self.exit_date - self.entry_date

    @property
    def outcome(self) -> str:
        pnl = self.net_pnl or 0.0
        if pnl > 0:
            return "win"
        if pnl < 0:
            return "loss"
        return "breakeven"
