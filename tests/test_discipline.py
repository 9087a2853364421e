"""Property-based tests for discipline rule tracking.

**Feature: trade-journal**
"""

from datetime import date, timedelta

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tradejournal.analytics import discipline
from tradejournal.models import UserRule, UserRuleCheck

DAY = date(2025, 3, 3)  # Monday
RULE = UserRule(id=1, title="Always use a stop loss")


def checks_for(rule_id: int, pattern: list[bool], start: date = DAY) -> list[UserRuleCheck]:
    return [
        UserRuleCheck(rule_id=rule_id, check_date=start + timedelta(days=i), followed=followed)
        for i, followed in enumerate(pattern)
    ]


class TestRuleStats:
    """
    **Feature: trade-journal, Property 17: Rule Streaks**
    **Validates: Requirements 4.5**

    *For any* check history, the current streak should never exceed the
    longest streak, which never exceeds the followed count.
    """

    def test_example(self):
        checks = checks_for(1, [True, True, True, False, True, True])
        result = discipline.rule_stats(RULE, checks, today=DAY + timedelta(days=5))
        assert result.current_streak == 2
        assert result.longest_streak == 3
        assert result.followed == 5
        assert result.total == 6
        assert result.compliance == pytest.approx(83.33, abs=0.01)
        assert result.today is True

    def test_other_rules_ignored(self):
        checks = checks_for(1, [True]) + checks_for(2, [False, False])
        result = discipline.rule_stats(RULE, checks)
        assert result.total == 1
        assert result.today is None

    def test_unordered_input(self):
        checks = list(reversed(checks_for(1, [False, True, True])))
        assert discipline.rule_stats(RULE, checks).current_streak == 2

    def test_no_checks(self):
        result = discipline.rule_stats(RULE, [])
        assert result.compliance == 0.0
        assert result.current_streak == 0

    @given(st.lists(st.booleans(), max_size=60))
    @settings(max_examples=100)
    def test_streak_bounds(self, pattern):
        result = discipline.rule_stats(RULE, checks_for(1, pattern))
        assert 0 <= result.current_streak <= result.longest_streak <= result.followed <= result.total
        assert 0 <= result.compliance <= 100


class TestPerfectDays:
    def test_streak_stops_at_imperfect_day(self):
        checks = (
            checks_for(1, [True, False, True, True])
            + checks_for(2, [True, True, True, True])
        )
        assert discipline.perfect_day_streak(checks, active_rule_count=2) == 2

    def test_missing_check_is_not_perfect(self):
        checks = checks_for(1, [True, True]) + checks_for(2, [True])
        assert discipline.perfect_day_streak(checks, active_rule_count=2) == 0

    def test_no_rules(self):
        assert discipline.perfect_day_streak(checks_for(1, [True]), active_rule_count=0) == 0


class TestDisciplineXP:
    """
    **Feature: trade-journal, Property 18: Discipline XP**
    **Validates: Requirements 4.5**

    *For any* check history, XP should be at least 10 per checked day and
    never decrease when a followed day is added to a perfect streak.
    """

    def test_check_in_and_perfect_days(self):
        checks = checks_for(1, [True, False, True])
        # 3 check-ins, 2 perfect days, streak 1
        assert discipline.discipline_xp(checks, 1) == 3 * 10 + 2 * 25

    def test_week_streak_bonus(self):
        checks = checks_for(1, [True] * 7)
        assert discipline.discipline_xp(checks, 1) == 7 * 10 + 7 * 25 + 100

    def test_month_streak_bonus(self):
        checks = checks_for(1, [True] * 30)
        assert discipline.discipline_xp(checks, 1) == 30 * 10 + 30 * 25 + 4 * 100 + 500

    @given(st.lists(st.booleans(), max_size=40))
    @settings(max_examples=100)
    def test_minimum(self, pattern):
        checks = checks_for(1, pattern)
        xp = discipline.discipline_xp(checks, 1)
        assert xp >= len(pattern) * discipline.XP_DAILY_CHECK_IN
        extended = checks + checks_for(1, [True], start=DAY + timedelta(days=len(pattern)))
        assert discipline.discipline_xp(extended, 1) > xp


class TestTradingDays:
    def test_weekdays_by_default(self):
        assert discipline.is_trading_day(DAY)
        assert not discipline.is_trading_day(DAY - timedelta(days=1))  # Sunday
        assert not discipline.is_trading_day(DAY + timedelta(days=5))  # Saturday

    def test_custom_days(self):
        assert discipline.is_trading_day(DAY - timedelta(days=1), [0])
        assert not discipline.is_trading_day(DAY, [0, 6])


class TestLevels:
    @pytest.mark.parametrize(
        "xp,level,title",
        [(0, 1, "Rookie"), (99, 1, "Rookie"), (100, 2, "Apprentice"), (4600, 10, "Elite Trader"),
         (15000, 15, "Market Wizard"), (1_000_000, 15, "Market Wizard")],
    )
    def test_level_for_xp(self, xp, level, title):
        result = discipline.level_for_xp(xp)
        assert result.level == level
        assert result.title == title

    def test_progress(self):
        assert discipline.level_progress(0) == 0
        assert discipline.level_progress(175) == 50
        assert discipline.level_progress(20_000) == 100
        assert discipline.xp_to_next_level(175) == 75
        assert discipline.xp_to_next_level(20_000) == 0

    def test_levels_are_contiguous(self):
        for current, upcoming in zip(discipline.TRADER_LEVELS, discipline.TRADER_LEVELS[1:]):
            assert current.max_xp == upcoming.min_xp
            assert discipline.next_level(current) == upcoming
        assert discipline.next_level(discipline.TRADER_LEVELS[-1]) is None


def test_preset_rules():
    assert len(discipline.PRESET_RULES) == 11
    assert len({rule.title for rule in discipline.PRESET_RULES}) == 11
