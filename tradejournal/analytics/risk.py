"""Risk calculations: equity curve, drawdown, R-multiples and position sizing."""

import math
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional

from pydantic import BaseModel, Field

from tradejournal.analytics.statistics import closed_trades
from tradejournal.models import Instrument, Side, Trade, TradeStatus

# Tick spec used for manual entries on unknown instruments (ES)
DEFAULT_TICK_SIZE = 0.25
DEFAULT_TICK_VALUE = 12.5


class EquityPoint(BaseModel):
    """Account equity after a trade closed."""

    date: datetime = Field(..., description="Close timestamp")
    equity: float = Field(..., description="Cumulative equity")
    trade_id: Optional[int] = Field(default=None, description="Trade that produced the point")


class DailyEquity(BaseModel):
    """Account equity at the end of a trading day."""

    day: date = Field(..., description="Calendar day")
    pnl: float = Field(..., description="Net P&L for the day")
    equity: float = Field(..., description="Equity at the end of the day")


class DrawdownPeriod(BaseModel):
    """A decline from an equity peak until recovery above it."""

    start: datetime = Field(..., description="Date of the peak")
    end: Optional[datetime] = Field(default=None, description="Recovery date, None if ongoing")
    peak_equity: float = Field(..., description="Equity at the peak")
    trough_equity: float = Field(..., description="Lowest equity in the period")
    amount: float = Field(..., description="Peak minus trough")
    percent: float = Field(..., description="Amount as a percentage of the peak")
    duration: timedelta = Field(..., description="Time from peak to recovery or last point")
    is_ongoing: bool = Field(default=False, description="Not yet recovered")


class DailyLimitStatus(BaseModel):
    """Progress toward the daily loss and trade count limits."""

    level: str = Field(..., description="safe, warning, danger or exceeded")
    daily_limit: float = Field(..., description="Daily loss limit")
    current_pnl: float = Field(..., description="Net P&L so far today")
    loss_used: float = Field(..., description="Loss counted against the limit")
    percent_used: float = Field(..., description="Loss as a percentage of the limit")
    remaining: float = Field(..., description="Loss left before the limit")
    trades_today: int = Field(default=0, description="Trades taken today")
    max_trades: int = Field(default=0, description="Trade count limit, 0 for none")
    trades_remaining: Optional[int] = Field(default=None, description="Trades left today")

    @property
    def trade_limit_hit(self) -> bool:
        return self.max_trades > 0 and self.trades_today >= self.max_trades


def _by_close(trades: list[Trade]) -> list[Trade]:
    return sorted(closed_trades(trades), key=lambda t: t.close_date)


def equity_curve(trades: list[Trade], starting_balance: float = 0.0) -> list[EquityPoint]:
    """Build the equity curve in close order.

    The first point is the starting balance, one day before the first close.

    Args:
        trades: Trades to include.
        starting_balance: Equity before the first trade.

    Returns:
        List of equity points, empty without closed trades.
    """
    ordered = _by_close(trades)
    if not ordered:
        return []

    curve = [
        EquityPoint(date=ordered[0].close_date - timedelta(days=1), equity=starting_balance)
    ]
    equity = starting_balance
    for trade in ordered:
        equity += trade.net_pnl
        curve.append(EquityPoint(date=trade.close_date, equity=equity, trade_id=trade.id))
    return curve


def daily_equity_curve(
    trades: list[Trade],
    starting_balance: float = 0.0,
    tz: tzinfo = timezone.utc,
) -> list[DailyEquity]:
    """Equity at the end of each day that had closed trades.

    Args:
        trades: Trades to include.
        starting_balance: Equity before the first trade.
        tz: Timezone that defines calendar days.

    Returns:
        One entry per day in date order.
    """
    days: dict[date, DailyEquity] = {}
    equity = starting_balance
    for trade in _by_close(trades):
        equity += trade.net_pnl
        day = trade.close_date.astimezone(tz).date()
        previous = days.get(day)
        pnl = (previous.pnl if previous else 0.0) + trade.net_pnl
        days[day] = DailyEquity(day=day, pnl=pnl, equity=equity)
    return list(days.values())


def max_drawdown(equity_values: list[float]) -> float:
    """Largest peak-to-trough decline as a percentage of the peak.

    Args:
        equity_values: Equity values in time order.

    Returns:
        Drawdown percentage (0-100). 0 for fewer than two values or when the
        peak never rises above zero.
    """
    if len(equity_values) < 2:
        return 0.0

    worst = 0.0
    peak = equity_values[0]
    for value in equity_values:
        if value > peak:
            peak = value
        if peak > 0:
            worst = max(worst, (peak - value) / peak * 100)
    return worst


def max_drawdown_amount(equity_values: list[float]) -> float:
    """Largest peak-to-trough decline in currency."""
    if not equity_values:
        return 0.0

    worst = 0.0
    peak = equity_values[0]
    for value in equity_values:
        peak = max(peak, value)
        worst = max(worst, peak - value)
    return worst


def current_drawdown(equity_values: list[float]) -> float:
    """Decline of the latest value from the highest peak, as a percentage."""
    if not equity_values:
        return 0.0
    peak = max(equity_values)
    current = equity_values[-1]
    if peak <= 0 or current >= peak:
        return 0.0
    return (peak - current) / peak * 100


def _close_period(
    start: datetime, end: datetime, peak: float, trough: float, ongoing: bool
) -> DrawdownPeriod:
    amount = peak - trough
    return DrawdownPeriod(
        start=start,
        end=None if ongoing else end,
        peak_equity=peak,
        trough_equity=trough,
        amount=amount,
        percent=amount / peak * 100 if peak > 0 else 0.0,
        duration=end - start,
        is_ongoing=ongoing,
    )


def drawdown_periods(curve: list[EquityPoint]) -> list[DrawdownPeriod]:
    """Split an equity curve into drawdown periods.

    A period starts at a peak once equity falls below it and ends at the
    first point that sets a new peak.
    """
    if len(curve) < 2:
        return []

    periods = []
    peak = curve[0].equity
    peak_date = curve[0].date
    trough: Optional[float] = None

    for point in curve[1:]:
        if point.equity > peak:
            if trough is not None:
                periods.append(_close_period(peak_date, point.date, peak, trough, ongoing=False))
                trough = None
            peak = point.equity
            peak_date = point.date
        elif point.equity < peak:
            if trough is None or point.equity < trough:
                trough = point.equity

    if trough is not None:
        periods.append(_close_period(peak_date, curve[-1].date, peak, trough, ongoing=True))

    return periods


def r_multiple(trade: Trade) -> Optional[float]:
    """R-multiple from entry, exit and stop prices.

    Returns:
        Reward divided by risk, or None without an exit or a stop on the
        losing side of the entry.
    """
    if trade.exit_price is None or trade.stop_loss is None:
        return None

    if trade.side == Side.LONG:
        risk = trade.entry_price - trade.stop_loss
        reward = trade.exit_price - trade.entry_price
    else:
        risk = trade.stop_loss - trade.entry_price
        reward = trade.entry_price - trade.exit_price

    if risk <= 0:
        return None
    return reward / risk


def risk_amount(account_size: float, risk_percent: float) -> float:
    """Currency at risk for a percentage of the account."""
    if account_size <= 0 or risk_percent <= 0:
        return 0.0
    return account_size * risk_percent / 100


def position_size(
    account_size: float,
    risk_percent: float,
    stop_distance: float,
    tick_value: float,
) -> int:
    """Fixed fractional position size.

    Args:
        account_size: Account value.
        risk_percent: Percent of the account to risk (1 for 1%).
        stop_distance: Distance to the stop in ticks.
        tick_value: Value of one tick per contract.

    Returns:
        Whole number of contracts, 0 for invalid inputs.
    """
    if stop_distance <= 0 or tick_value <= 0:
        return 0
    amount = risk_amount(account_size, risk_percent)
    return int(math.floor(amount / (stop_distance * tick_value)))


def daily_limit_status(
    daily_limit: float,
    current_pnl: float,
    trades_today: int = 0,
    max_trades: int = 0,
) -> DailyLimitStatus:
    """Compare today's loss and trade count with the configured limits.

    Args:
        daily_limit: Maximum loss allowed for the day.
        current_pnl: Net P&L so far today.
        trades_today: Trades taken today.
        max_trades: Maximum trades per day, 0 for no limit.

    Returns:
        DailyLimitStatus. Level is safe below 50% of the limit, warning
        below 75%, danger below 100% and exceeded from there.
    """
    loss = abs(min(0.0, current_pnl))
    percent = loss / daily_limit * 100 if daily_limit > 0 else 0.0

    if percent >= 100:
        level = "exceeded"
    elif percent >= 75:
        level = "danger"
    elif percent >= 50:
        level = "warning"
    else:
        level = "safe"

    return DailyLimitStatus(
        level=level,
        daily_limit=daily_limit,
        current_pnl=current_pnl,
        loss_used=loss,
        percent_used=percent,
        remaining=max(0.0, daily_limit - loss),
        trades_today=trades_today,
        max_trades=max_trades,
        trades_remaining=max(0, max_trades - trades_today) if max_trades > 0 else None,
    )


def calculate_trade_pnl(trade: Trade, instrument: Optional[Instrument] = None) -> Trade:
    """Fill in P&L fields for a manually entered trade.

    Gross P&L is the price move in ticks times the tick value and the number
    of contracts. Trades without an exit price are returned as open.

    Args:
        trade: Trade with entry and optional exit prices.
        instrument: Tick specification. Defaults to ES.

    Returns:
        Copy of the trade with gross P&L, net P&L, R-multiple and status set.
    """
    tick_size = instrument.tick_size if instrument else DEFAULT_TICK_SIZE
    tick_value = instrument.tick_value if instrument else DEFAULT_TICK_VALUE

    if trade.exit_price is None:
        return trade.model_copy(
            update={
                "status": TradeStatus.OPEN,
                "gross_pnl": None,
                "net_pnl": None,
                "r_multiple": None,
            }
        )

    if trade.side == Side.LONG:
        diff = trade.exit_price - trade.entry_price
    else:
        diff = trade.entry_price - trade.exit_price
    gross = diff / tick_size * tick_value * trade.entry_contracts
    net = gross - trade.commission - trade.fees

    r_value = None
    if trade.stop_loss is not None:
        stop_ticks = abs(trade.entry_price - trade.stop_loss) / tick_size
        risk = stop_ticks * tick_value * trade.entry_contracts
        if risk > 0:
            r_value = round(net / risk, 2)

    return trade.model_copy(
        update={
            "status": TradeStatus.CLOSED,
            "gross_pnl": round(gross, 2),
            "net_pnl": round(net, 2),
            "r_multiple": r_value,
        }
    )
