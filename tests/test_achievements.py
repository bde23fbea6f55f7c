"""Tests for achievement thresholds."""

from __future__ import annotations

import datetime as dt

from busybee.domain.achievements import Achievement, AchievementType, evaluate_achievements, qualifying_types
from busybee.domain.allowance import AllowanceHistory
from busybee.domain.ledger import ExpenseCategory, ExpenseLedger
from busybee.domain.metrics import SummaryMetrics

START = dt.date(2024, 6, 3)


def _metrics(days: int, spent_per_day: str = "0", allowance: str = "10") -> SummaryMetrics:
    history = AllowanceHistory()
    history.record(allowance, START)
    ledger = ExpenseLedger()
    if spent_per_day != "0":
        for offset in range(days):
            day = START + dt.timedelta(days=offset)
            ledger.add("Shop", spent_per_day, ExpenseCategory.OTHER, date=dt.datetime.combine(day, dt.time(12)))
    return SummaryMetrics.compute(history, ledger, START + dt.timedelta(days=days - 1))


def test_nothing_earned_on_first_overspent_day() -> None:
    assert qualifying_types(_metrics(1, spent_per_day="20")) == []


def test_five_day_streak_and_week_winner() -> None:
    # 5 days x $9 saved = $45
    types = qualifying_types(_metrics(5, spent_per_day="1"))

    assert types == [AchievementType.FIVE_DAY_STREAK, AchievementType.WEEK_WINNER]


def test_all_thresholds() -> None:
    types = qualifying_types(_metrics(10, allowance="12"))

    assert types == [
        AchievementType.FIVE_DAY_STREAK,
        AchievementType.SEVEN_DAY_STREAK,
        AchievementType.PIGGY_50,
        AchievementType.PIGGY_100,
        AchievementType.WEEK_WINNER,
    ]


def test_each_type_is_awarded_once() -> None:
    metrics = _metrics(7)
    awarded_at = dt.datetime(2024, 6, 9, 21, 0)

    first = evaluate_achievements(metrics, [], awarded_at=awarded_at)
    second = evaluate_achievements(metrics, first, awarded_at=awarded_at)

    assert {a.type for a in first} == {
        AchievementType.FIVE_DAY_STREAK,
        AchievementType.SEVEN_DAY_STREAK,
        AchievementType.PIGGY_50,
        AchievementType.WEEK_WINNER,
    }
    assert all(a.awarded_date == awarded_at for a in first)
    assert second == []


def test_already_unlocked_types_are_skipped() -> None:
    unlocked = [Achievement(type=AchievementType.PIGGY_50)]

    earned = evaluate_achievements(_metrics(7), unlocked)

    assert AchievementType.PIGGY_50 not in {a.type for a in earned}


def test_titles_and_emoji() -> None:
    assert AchievementType.PIGGY_100.title == "$100 Saved"
    assert AchievementType.FIVE_DAY_STREAK.emoji == "🔥"
