"""Discipline rule tracking: streaks, compliance, XP and trader levels."""

import math
from collections import defaultdict
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from tradejournal.models import RuleCategory, UserRule, UserRuleCheck

XP_DAILY_CHECK_IN = 10
XP_PERFECT_DAY = 25
XP_WEEK_STREAK = 100
XP_MONTH_STREAK = 500

# 0 = Sunday
DEFAULT_TRADING_DAYS = [1, 2, 3, 4, 5]
DAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

PRESET_RULES = [
    UserRule(title="Max 2 contracts per trade",
             description="Don't oversize positions", category=RuleCategory.RISK),
    UserRule(title="Stop trading at daily loss limit",
             description="Respect your max loss for the day", category=RuleCategory.RISK),
    UserRule(title="Always use a stop loss",
             description="Protect your capital on every trade", category=RuleCategory.RISK),
    UserRule(title="No revenge trading",
             description="Wait at least 10 minutes after a loss",
             category=RuleCategory.DISCIPLINE),
    UserRule(title="Stop after 3 consecutive losses",
             description="Walk away to clear your head", category=RuleCategory.DISCIPLINE),
    UserRule(title="No trading during major news",
             description="Avoid high volatility events", category=RuleCategory.DISCIPLINE),
    UserRule(title="Complete pre-market routine",
             description="Review levels and plan before trading", category=RuleCategory.PROCESS),
    UserRule(title="Journal every trade",
             description="Document entries, exits, and lessons", category=RuleCategory.PROCESS),
    UserRule(title="Wait for A+ setups only",
             description="Don't force trades, be patient", category=RuleCategory.PROCESS),
    UserRule(title="Stay calm after winning trades",
             description="Don't get overconfident", category=RuleCategory.MINDSET),
    UserRule(title="Accept losses as part of the game",
             description="Focus on process, not outcomes", category=RuleCategory.MINDSET),
]


class RuleStats(BaseModel):
    """Compliance history of one rule."""

    rule: UserRule = Field(..., description="The rule")
    current_streak: int = Field(default=0, description="Followed days ending at the latest check")
    longest_streak: int = Field(default=0, description="Longest run of followed days")
    followed: int = Field(default=0, description="Checks marked followed")
    total: int = Field(default=0, description="All checks")
    today: Optional[bool] = Field(default=None, description="Today's check, if any")

    @property
    def compliance(self) -> float:
        """Followed checks as a percentage of all checks."""
        if self.total == 0:
            return 0.0
        return self.followed / self.total * 100


class TraderLevel(BaseModel):
    """XP threshold and title of a level."""

    level: int = Field(..., description="Level number")
    title: str = Field(..., description="Level title")
    min_xp: int = Field(..., description="XP needed to reach the level")
    max_xp: float = Field(..., description="XP needed for the next level")

    model_config = {"frozen": True}


TRADER_LEVELS = [
    TraderLevel(level=1, title="Rookie", min_xp=0, max_xp=100),
    TraderLevel(level=2, title="Apprentice", min_xp=100, max_xp=250),
    TraderLevel(level=3, title="Novice Trader", min_xp=250, max_xp=500),
    TraderLevel(level=4, title="Journeyman", min_xp=500, max_xp=850),
    TraderLevel(level=5, title="Skilled Trader", min_xp=850, max_xp=1300),
    TraderLevel(level=6, title="Experienced", min_xp=1300, max_xp=1900),
    TraderLevel(level=7, title="Veteran", min_xp=1900, max_xp=2600),
    TraderLevel(level=8, title="Expert Trader", min_xp=2600, max_xp=3500),
    TraderLevel(level=9, title="Master Trader", min_xp=3500, max_xp=4600),
    TraderLevel(level=10, title="Elite Trader", min_xp=4600, max_xp=6000),
    TraderLevel(level=11, title="Champion", min_xp=6000, max_xp=7700),
    TraderLevel(level=12, title="Legend", min_xp=7700, max_xp=9700),
    TraderLevel(level=13, title="Grandmaster", min_xp=9700, max_xp=12000),
    TraderLevel(level=14, title="Trading Sage", min_xp=12000, max_xp=15000),
    TraderLevel(level=15, title="Market Wizard", min_xp=15000, max_xp=math.inf),
]


def rule_stats(
    rule: UserRule, checks: list[UserRuleCheck], today: Optional[date] = None
) -> RuleStats:
    """Streaks and compliance for one rule.

    Args:
        rule: The rule.
        checks: Checks of any rules; only those for this rule are counted.
        today: Day whose check is reported as today's.

    Returns:
        RuleStats. The current streak counts followed checks back from the
        most recent check and stops at the first miss.
    """
    ordered = sorted((c for c in checks if c.rule_id == rule.id), key=lambda c: c.check_date)

    current = 0
    for check in reversed(ordered):
        if not check.followed:
            break
        current += 1

    longest = 0
    run = 0
    for check in ordered:
        run = run + 1 if check.followed else 0
        longest = max(longest, run)

    today_check = None
    if today is not None:
        today_check = next((c.followed for c in ordered if c.check_date == today), None)

    return RuleStats(
        rule=rule,
        current_streak=current,
        longest_streak=longest,
        followed=sum(1 for c in ordered if c.followed),
        total=len(ordered),
        today=today_check,
    )


def _day_totals(checks: list[UserRuleCheck]) -> dict[date, tuple[int, int]]:
    """Map each day to (checks, followed)."""
    totals: dict[date, list[int]] = defaultdict(lambda: [0, 0])
    for check in checks:
        totals[check.check_date][0] += 1
        if check.followed:
            totals[check.check_date][1] += 1
    return {day: (total, followed) for day, (total, followed) in totals.items()}


def _is_perfect(day_total: tuple[int, int], rule_count: int) -> bool:
    total, followed = day_total
    return rule_count > 0 and total == rule_count and followed == rule_count


def perfect_day_streak(checks: list[UserRuleCheck], active_rule_count: int) -> int:
    """Consecutive checked days, newest first, on which every rule was followed."""
    totals = _day_totals(checks)
    streak = 0
    for day in sorted(totals, reverse=True):
        if not _is_perfect(totals[day], active_rule_count):
            break
        streak += 1
    return streak


def discipline_xp(checks: list[UserRuleCheck], rule_count: int) -> int:
    """XP earned from rule check-ins.

    10 XP per checked day, 25 XP per perfect day, 100 XP per full seven days
    of the current perfect streak and 500 XP per full thirty days.
    """
    totals = _day_totals(checks)
    perfect_days = sum(1 for day in totals.values() if _is_perfect(day, rule_count))
    streak = perfect_day_streak(checks, rule_count)

    xp = len(totals) * XP_DAILY_CHECK_IN + perfect_days * XP_PERFECT_DAY
    xp += (streak // 7) * XP_WEEK_STREAK
    xp += (streak // 30) * XP_MONTH_STREAK
    return xp


def is_trading_day(day: date, trading_days: Optional[list[int]] = None) -> bool:
    """Whether streaks and check-ins apply on a day.

    Args:
        day: Calendar day.
        trading_days: Weekday numbers with 0 = Sunday. Defaults to Monday-Friday.
    """
    trading_days = DEFAULT_TRADING_DAYS if trading_days is None else trading_days
    # date.weekday() has Monday = 0
    return (day.weekday() + 1) % 7 in trading_days


def level_for_xp(xp: int) -> TraderLevel:
    """Highest level whose threshold the XP reaches."""
    for level in reversed(TRADER_LEVELS):
        if xp >= level.min_xp:
            return level
    return TRADER_LEVELS[0]


def next_level(level: TraderLevel) -> Optional[TraderLevel]:
    if level.level >= len(TRADER_LEVELS):
        return None
    return TRADER_LEVELS[level.level]


def level_progress(xp: int) -> int:
    """Percent progress toward the next level, 100 at the top level."""
    current = level_for_xp(xp)
    upcoming = next_level(current)
    if upcoming is None:
        return 100
    span = upcoming.min_xp - current.min_xp
    return min(100, round((xp - current.min_xp) / span * 100))


def xp_to_next_level(xp: int) -> int:
    upcoming = next_level(level_for_xp(xp))
    if upcoming is None:
        return 0
    return upcoming.min_xp - xp
