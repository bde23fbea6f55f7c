"""Day-by-day history and the savings metrics built on it."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal

from busybee.domain.allowance import AllowanceHistory
from busybee.domain.ledger import ExpenseLedger
from busybee.domain.money import ZERO
from busybee.domain.periods import BudgetPeriod, period_interval, previous_period_day

ONE_DAY = dt.timedelta(days=1)


@dataclass(frozen=True)
class DayStat:
    day: dt.date
    allowance: Decimal
    total_spent: Decimal
    leftover: Decimal


def build_day_stats(
    history: AllowanceHistory,
    ledger: ExpenseLedger,
    today: dt.date,
    tracking_start: dt.date | None = None,
) -> list[DayStat]:
    """One DayStat per day, without gaps, from the first known day through today.

    The first known day is the earliest of the first expense, the first
    allowance entry and the tracking start day; with none of them, the
    series is just today.
    """
    spending = ledger.spending_by_day()
    candidates = (tracking_start, ledger.earliest_day(), history.earliest_day())
    starts = [d for d in candidates if d is not None]
    range_start = min(starts) if starts else today

    stats: list[DayStat] = []
    cursor = range_start
    while cursor <= today:
        allowance = history.allowance_for(cursor)
        spent = spending.get(cursor, ZERO)
        stats.append(DayStat(cursor, allowance, spent, max(ZERO, allowance - spent)))
        cursor += ONE_DAY
    return stats


def positive_streak(stats: list[DayStat]) -> int:
    """Consecutive days with leftover, counted back from the last day.

    Breaking even and overspending both floor leftover to zero and end the
    streak alike.
    """
    streak = 0
    for stat in reversed(stats):
        if stat.leftover > 0:
            streak += 1
        else:
            break
    return streak


def _period_passes(stats: list[DayStat]) -> bool:
    spent = sum((s.total_spent for s in stats), ZERO)
    allowance = sum((s.allowance for s in stats), ZERO)
    return spent <= allowance


def period_goal_streak(
    stats: list[DayStat],
    today: dt.date,
    period: BudgetPeriod,
    week_start: int = 0,
) -> tuple[bool, int]:
    """Whether the current period is within budget, and how many periods in a row are.

    A period passes when its spending does not exceed the sum of its
    allowances over the days present in ``stats``. The walk goes back one
    period at a time and stops at the first failing or empty period.

    For the daily period this mirrors the positive-day streak.
    """
    if period is BudgetPeriod.DAILY:
        streak = positive_streak(stats)
        return streak > 0, streak

    def stats_in(day: dt.date) -> list[DayStat]:
        interval = period_interval(day, period, week_start)
        return [s for s in stats if s.day in interval]

    goal_met = _period_passes(stats_in(today))

    earliest = stats[0].day if stats else today
    streak = 0
    check_day = today
    while check_day >= earliest:
        window = stats_in(check_day)
        if not window or not _period_passes(window):
            break
        streak += 1
        check_day = previous_period_day(check_day, period, week_start)
    return goal_met, streak


@dataclass(frozen=True)
class SummaryMetrics:
    day_stats: list[DayStat]
    piggy_bank_total: Decimal
    current_positive_streak: int
    days_with_credit: int
    success_rate: float
    average_saved: Decimal
    period: BudgetPeriod
    period_goal_met: bool
    period_streak: int

    @classmethod
    def compute(
        cls,
        history: AllowanceHistory,
        ledger: ExpenseLedger,
        today: dt.date,
        period: BudgetPeriod = BudgetPeriod.DAILY,
        week_start: int = 0,
        tracking_start: dt.date | None = None,
    ) -> SummaryMetrics:
        stats = build_day_stats(history, ledger, today, tracking_start)
        piggy_total = sum((s.leftover for s in stats), ZERO)
        days_elapsed = len(stats)
        days_with_credit = sum(1 for s in stats if s.leftover > 0)
        goal_met, period_streak = period_goal_streak(stats, today, period, week_start)

        return cls(
            day_stats=stats,
            piggy_bank_total=piggy_total,
            current_positive_streak=positive_streak(stats),
            days_with_credit=days_with_credit,
            success_rate=days_with_credit / days_elapsed if days_elapsed else 0.0,
            average_saved=piggy_total / days_elapsed if days_elapsed else ZERO,
            period=period,
            period_goal_met=goal_met,
            period_streak=period_streak,
        )

    def positive_days_in_last(self, days: int) -> int:
        return sum(1 for s in self.day_stats[-days:] if s.leftover > 0)
