"""Bundle every analytic for a set of trades into one report."""

from datetime import timezone, tzinfo

from pydantic import BaseModel, Field

from tradejournal.analytics import breakdowns, risk
from tradejournal.analytics.breakdowns import BucketStats
from tradejournal.analytics.risk import DailyEquity, DrawdownPeriod, EquityPoint
from tradejournal.analytics.statistics import TradeStatistics, calculate_statistics
from tradejournal.models import Trade


class AnalyticsReport(BaseModel):
    """Statistics, equity and breakdowns for a set of trades."""

    statistics: TradeStatistics = Field(..., description="Summary statistics")
    starting_balance: float = Field(default=0.0, description="Equity before the first trade")
    equity_curve: list[EquityPoint] = Field(default_factory=list, description="Per-trade equity")
    daily_equity: list[DailyEquity] = Field(default_factory=list, description="End-of-day equity")
    max_drawdown: float = Field(default=0.0, description="Max drawdown percent")
    max_drawdown_amount: float = Field(default=0.0, description="Max drawdown in currency")
    current_drawdown: float = Field(default=0.0, description="Current drawdown percent")
    drawdown_periods: list[DrawdownPeriod] = Field(default_factory=list)
    by_day_of_week: list[BucketStats] = Field(default_factory=list)
    by_hour: list[BucketStats] = Field(default_factory=list)
    by_setup: list[BucketStats] = Field(default_factory=list)
    by_emotion: list[BucketStats] = Field(default_factory=list)
    by_mistake: list[BucketStats] = Field(default_factory=list)
    by_month: list[BucketStats] = Field(default_factory=list)
    by_symbol: list[BucketStats] = Field(default_factory=list)
    by_session: list[BucketStats] = Field(default_factory=list)
    by_side: list[BucketStats] = Field(default_factory=list)
    by_hold_time: list[BucketStats] = Field(default_factory=list)

    @property
    def ending_balance(self) -> float:
        if not self.equity_curve:
            return self.starting_balance
        return self.equity_curve[-1].equity


def build_analytics(
    trades: list[Trade],
    starting_balance: float = 0.0,
    tz: tzinfo = timezone.utc,
) -> AnalyticsReport:
    """Compute every analytic for a set of trades.

    Args:
        trades: Trades to analyze. Open and cancelled trades are ignored.
        starting_balance: Equity before the first trade.
        tz: Timezone that defines days, hours and months.

    Returns:
        AnalyticsReport.
    """
    curve = risk.equity_curve(trades, starting_balance)
    values = [point.equity for point in curve]

    return AnalyticsReport(
        statistics=calculate_statistics(trades),
        starting_balance=starting_balance,
        equity_curve=curve,
        daily_equity=risk.daily_equity_curve(trades, starting_balance, tz),
        max_drawdown=risk.max_drawdown(values),
        max_drawdown_amount=risk.max_drawdown_amount(values),
        current_drawdown=risk.current_drawdown(values),
        drawdown_periods=risk.drawdown_periods(curve),
        by_day_of_week=breakdowns.by_day_of_week(trades, tz),
        by_hour=breakdowns.by_hour(trades, tz),
        by_setup=breakdowns.by_setup(trades),
        by_emotion=breakdowns.by_emotion(trades),
        by_mistake=breakdowns.by_mistake(trades),
        by_month=breakdowns.by_month(trades, tz),
        by_symbol=breakdowns.by_symbol(trades),
        by_session=breakdowns.by_session(trades),
        by_side=breakdowns.by_side(trades),
        by_hold_time=breakdowns.by_hold_time(trades),
    )
