"""Display formatting for currency, percentages, R-multiples and durations."""

import math
from datetime import timedelta
from typing import Optional, Union


def _missing(value: Optional[float]) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def format_currency(value: Optional[float]) -> str:
    """Format as US dollars, e.g. ``-$1,234.50``."""
    if _missing(value):
        return "$0.00"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_pnl(value: Optional[float]) -> str:
    """Currency with an explicit sign for gains, e.g. ``+$50.00``."""
    if _missing(value):
        return "$0.00"
    if value > 0:
        return f"+{format_currency(value)}"
    return format_currency(value)


def format_percent(value: Optional[float], decimals: int = 2) -> str:
    """Format a 0-100 percentage."""
    if _missing(value):
        return f"{0:.{decimals}f}%"
    return f"{value:,.{decimals}f}%"


def format_r_multiple(value: Optional[float], decimals: int = 2) -> str:
    """Format an R-multiple, e.g. ``+1.50R``."""
    if _missing(value):
        return f"{0:.{decimals}f}R"
    prefix = "+" if value > 0 else ""
    return f"{prefix}{value:.{decimals}f}R"


def format_ratio(value: Optional[float], decimals: int = 2) -> str:
    """Format a ratio such as profit factor, ``∞`` when unbounded."""
    if _missing(value):
        return f"{0:.{decimals}f}"
    if math.isinf(value):
        return "∞"
    return f"{value:.{decimals}f}"


def format_duration(duration: Optional[Union[timedelta, float]]) -> str:
    """Compact duration, e.g. ``1h 5m 30s``.

    Seconds are dropped once the duration spans days. Accepts a timedelta
    or a number of seconds.
    """
    if duration is None:
        return "0s"
    seconds_total = duration.total_seconds() if isinstance(duration, timedelta) else duration
    if math.isnan(seconds_total) or seconds_total < 0:
        return "0s"
    if seconds_total < 1:
        return "< 1s"

    seconds = int(seconds_total)
    minutes, secs = divmod(seconds, 60)
    hours, mins = divmod(minutes, 60)
    days, hrs = divmod(hours, 24)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hrs:
        parts.append(f"{hrs}h")
    if mins:
        parts.append(f"{mins}m")
    if secs and not days:
        parts.append(f"{secs}s")
    return " ".join(parts) or "0s"


def truncate(text: Optional[str], max_length: int = 50) -> str:
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def colored_pnl(value: Optional[float]) -> str:
    """P&L wrapped in rich color markup."""
    if _missing(value):
        return "[dim]-[/dim]"
    color = "green" if value >= 0 else "red"
    return f"[{color}]{format_pnl(value)}[/{color}]"


def colored_r(value: Optional[float]) -> str:
    if _missing(value):
        return "[dim]-[/dim]"
    color = "green" if value >= 0 else "red"
    return f"[{color}]{format_r_multiple(value)}[/{color}]"
