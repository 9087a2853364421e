"""Trading performance statistics.

Every function looks only at closed trades with a net P&L. Open, cancelled
and unpriced trades are ignored.
"""

import math
from typing import Optional

from pydantic import BaseModel, Field

from tradejournal.models import Trade


class TradeStatistics(BaseModel):
    """Summary statistics for a set of trades."""

    total_trades: int = Field(default=0, description="Closed trades")
    winning_trades: int = Field(default=0, description="Trades with net P&L > 0")
    losing_trades: int = Field(default=0, description="Trades with net P&L < 0")
    breakeven_trades: int = Field(default=0, description="Trades with net P&L == 0")
    win_rate: float = Field(default=0.0, description="Winning percentage (0-100)")
    profit_factor: float = Field(default=0.0, description="Gross profit / gross loss")
    expectancy: float = Field(default=0.0, description="Average net P&L per trade")
    average_winner: float = Field(default=0.0, description="Average winning trade")
    average_loser: float = Field(default=0.0, description="Average losing trade (positive)")
    win_loss_ratio: float = Field(default=0.0, description="Average winner / average loser")
    total_pnl: float = Field(default=0.0, description="Total net P&L")
    gross_profit: float = Field(default=0.0, description="Sum of winning trades")
    gross_loss: float = Field(default=0.0, description="Sum of losing trades (positive)")
    total_commission: float = Field(default=0.0, description="Commissions and fees paid")
    largest_win: float = Field(default=0.0, description="Largest winning trade")
    largest_loss: float = Field(default=0.0, description="Largest losing trade (negative)")
    average_r_multiple: float = Field(default=0.0, description="Average R-multiple")
    sharpe_ratio: float = Field(default=0.0, description="Annualized Sharpe ratio")
    consecutive_wins: int = Field(default=0, description="Longest winning streak")
    consecutive_losses: int = Field(default=0, description="Longest losing streak")
    current_streak: int = Field(default=0, description="Signed current streak")
    best_trade: Optional[Trade] = Field(default=None, description="Highest net P&L trade")
    worst_trade: Optional[Trade] = Field(default=None, description="Lowest net P&L trade")


def closed_trades(trades: list[Trade]) -> list[Trade]:
    return [t for t in trades if t.is_closed]


def _by_entry(trades: list[Trade]) -> list[Trade]:
    return sorted(closed_trades(trades), key=lambda t: t.entry_date)


def win_rate(trades: list[Trade]) -> float:
    """Percentage of closed trades with a positive net P&L."""
    closed = closed_trades(trades)
    if not closed:
        return 0.0
    wins = sum(1 for t in closed if t.net_pnl > 0)
    return wins / len(closed) * 100


def gross_profit(trades: list[Trade]) -> float:
    return sum(t.net_pnl for t in closed_trades(trades) if t.net_pnl > 0)


def gross_loss(trades: list[Trade]) -> float:
    """Sum of losing trades as a positive number."""
    return abs(sum(t.net_pnl for t in closed_trades(trades) if t.net_pnl < 0))


def profit_factor(trades: list[Trade]) -> float:
    """Gross profit divided by gross loss.

    Returns:
        The ratio, ``inf`` with profits and no losses, 0 with neither.
    """
    profit = gross_profit(trades)
    loss = gross_loss(trades)
    if loss == 0:
        return math.inf if profit > 0 else 0.0
    return profit / loss


def expectancy(trades: list[Trade]) -> float:
    """Average net P&L per closed trade."""
    closed = closed_trades(trades)
    if not closed:
        return 0.0
    return sum(t.net_pnl for t in closed) / len(closed)


def average_winner(trades: list[Trade]) -> float:
    winners = [t.net_pnl for t in closed_trades(trades) if t.net_pnl > 0]
    if not winners:
        return 0.0
    return sum(winners) / len(winners)


def average_loser(trades: list[Trade]) -> float:
    """Average losing trade as a positive number."""
    losers = [t.net_pnl for t in closed_trades(trades) if t.net_pnl < 0]
    if not losers:
        return 0.0
    return abs(sum(losers) / len(losers))


def win_loss_ratio(trades: list[Trade]) -> float:
    winner = average_winner(trades)
    loser = average_loser(trades)
    if loser == 0:
        return math.inf if winner > 0 else 0.0
    return winner / loser


def total_pnl(trades: list[Trade]) -> float:
    return sum(t.net_pnl for t in closed_trades(trades))


def largest_win(trades: list[Trade]) -> float:
    return max((t.net_pnl for t in closed_trades(trades) if t.net_pnl > 0), default=0.0)


def largest_loss(trades: list[Trade]) -> float:
    """Most negative net P&L, or 0 without losses."""
    return min((t.net_pnl for t in closed_trades(trades) if t.net_pnl < 0), default=0.0)


def best_trade(trades: list[Trade]) -> Optional[Trade]:
    closed = closed_trades(trades)
    if not closed:
        return None
    return max(closed, key=lambda t: t.net_pnl)


def worst_trade(trades: list[Trade]) -> Optional[Trade]:
    closed = closed_trades(trades)
    if not closed:
        return None
    return min(closed, key=lambda t: t.net_pnl)


def average_r_multiple(trades: list[Trade]) -> float:
    """Average of the stored R-multiples of closed trades."""
    values = [t.r_multiple for t in closed_trades(trades) if t.r_multiple is not None]
    if not values:
        return 0.0
    return sum(values) / len(values)


def sharpe_ratio(
    trades: list[Trade],
    risk_free_rate: float = 0.02,
    periods_per_year: int = 252,
) -> float:
    """Annualized Sharpe ratio of per-trade net P&L.

    Args:
        trades: Trades to analyze.
        risk_free_rate: Annual risk-free rate.
        periods_per_year: Periods used to annualize.

    Returns:
        Sharpe ratio, or 0 with fewer than two trades or no variance.
    """
    returns = [t.net_pnl for t in closed_trades(trades)]
    if len(returns) < 2:
        return 0.0

    mean = sum(returns) / len(returns)
    variance = sum((r - mean) ** 2 for r in returns) / len(returns)
    std_dev = math.sqrt(variance)
    if std_dev == 0:
        return 0.0

    annual_return = mean * periods_per_year
    annual_std_dev = std_dev * math.sqrt(periods_per_year)
    return (annual_return - risk_free_rate) / annual_std_dev


def _longest_run(trades: list[Trade], winning: bool) -> int:
    longest = 0
    current = 0
    for trade in _by_entry(trades):
        hit = trade.net_pnl > 0 if winning else trade.net_pnl < 0
        if hit:
            current += 1
            longest = max(longest, current)
        else:
            current = 0
    return longest


def consecutive_wins(trades: list[Trade]) -> int:
    """Longest winning streak in entry order."""
    return _longest_run(trades, winning=True)


def consecutive_losses(trades: list[Trade]) -> int:
    """Longest losing streak in entry order."""
    return _longest_run(trades, winning=False)


def current_streak(trades: list[Trade]) -> int:
    """Streak ending at the most recent trade.

    Returns:
        +n for n straight wins, -n for n straight losses, 0 if the latest
        trade broke even or there are no trades.
    """
    ordered = _by_entry(trades)
    if not ordered or ordered[-1].net_pnl == 0:
        return 0

    winning = ordered[-1].net_pnl > 0
    count = 0
    for trade in reversed(ordered):
        if (trade.net_pnl > 0) != winning or trade.net_pnl == 0:
            break
        count += 1
    return count if winning else -count


def calculate_statistics(trades: list[Trade]) -> TradeStatistics:
    """Calculate all statistics for a set of trades."""
    closed = closed_trades(trades)
    return TradeStatistics(
        total_trades=len(closed),
        winning_trades=sum(1 for t in closed if t.net_pnl > 0),
        losing_trades=sum(1 for t in closed if t.net_pnl < 0),
        breakeven_trades=sum(1 for t in closed if t.net_pnl == 0),
        win_rate=win_rate(closed),
        profit_factor=profit_factor(closed),
        expectancy=expectancy(closed),
        average_winner=average_winner(closed),
        average_loser=average_loser(closed),
        win_loss_ratio=win_loss_ratio(closed),
        total_pnl=total_pnl(closed),
        gross_profit=gross_profit(closed),
        gross_loss=gross_loss(closed),
        total_commission=sum(t.commission + t.fees for t in closed),
        largest_win=largest_win(closed),
        largest_loss=largest_loss(closed),
        average_r_multiple=average_r_multiple(closed),
        sharpe_ratio=sharpe_ratio(closed),
        consecutive_wins=consecutive_wins(closed),
        consecutive_losses=consecutive_losses(closed),
        current_streak=current_streak(closed),
        best_trade=best_trade(closed),
        worst_trade=worst_trade(closed),
    )
