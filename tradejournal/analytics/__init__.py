"""Trade analytics: statistics, risk, breakdowns and discipline tracking."""

from tradejournal.analytics.statistics import TradeStatistics, calculate_statistics
from tradejournal.analytics.summary import AnalyticsReport, build_analytics

__all__ = [
    "AnalyticsReport",
    "TradeStatistics",
    "build_analytics",
    "calculate_statistics",
]
