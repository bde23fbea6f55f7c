"""Translate allowances between daily, weekly and monthly views.

The allowance is always stored per day. The user enters and reads it in the
units of the active period, and the remaining balance for a week or month
only credits the days of that period still ahead.
"""

from __future__ import annotations

import calendar
import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from busybee.domain.allowance import AllowanceHistory
from busybee.domain.ledger import ExpenseLedger
from busybee.domain.money import round_cents

FALLBACK_DAYS_IN_MONTH = 30
DAYS_IN_WEEK = 7


class BudgetPeriod(str, Enum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"

    @property
    def display_name(self) -> str:
        return {
            BudgetPeriod.DAILY: "Per Day",
            BudgetPeriod.WEEKLY: "Per Week",
            BudgetPeriod.MONTHLY: "Per Month",
        }[self]

    @classmethod
    def parse(cls, raw: str) -> BudgetPeriod:
        key = raw.strip().lower()
        for period in cls:
            if key in (period.value.lower(), period.name.lower()):
                return period
        raise ValueError(f"Unknown budget period: {raw!r}")


@dataclass(frozen=True)
class DateInterval:
    """Half-open day range ``[start, end)``."""

    start: dt.date
    end: dt.date

    def __contains__(self, day: object) -> bool:
        return isinstance(day, dt.date) and self.start <= day < self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days


def days_in_month(day: dt.date) -> int:
    try:
        return calendar.monthrange(day.year, day.month)[1]
    except (ValueError, OverflowError):
        return FALLBACK_DAYS_IN_MONTH


def week_interval(day: dt.date, week_start: int = 0) -> DateInterval:
    """Calendar week containing ``day``; ``week_start`` uses Monday=0 .. Sunday=6."""
    offset = (day.weekday() - week_start) % DAYS_IN_WEEK
    start = day - dt.timedelta(days=offset)
    return DateInterval(start, start + dt.timedelta(days=DAYS_IN_WEEK))


def month_interval(day: dt.date) -> DateInterval:
    start = day.replace(day=1)
    try:
        end = start + dt.timedelta(days=days_in_month(day))
    except OverflowError:
        end = dt.date.max
    return DateInterval(start, end)


def period_interval(day: dt.date, period: BudgetPeriod, week_start: int = 0) -> DateInterval:
    if period is BudgetPeriod.WEEKLY:
        return week_interval(day, week_start)
    if period is BudgetPeriod.MONTHLY:
        return month_interval(day)
    return DateInterval(day, day + dt.timedelta(days=1))


def previous_period_day(day: dt.date, period: BudgetPeriod, week_start: int = 0) -> dt.date:
    """A day inside the period just before the one containing ``day``."""
    return period_interval(day, period, week_start).start - dt.timedelta(days=1)


def per_day_amount(amount: Decimal, period: BudgetPeriod, reference_day: dt.date) -> Decimal:
    """Convert an amount expressed in ``period`` units to a per-day amount."""
    if period is BudgetPeriod.WEEKLY:
        return amount / DAYS_IN_WEEK
    if period is BudgetPeriod.MONTHLY:
        return amount / days_in_month(reference_day)
    return amount


def display_amount(per_day: Decimal, period: BudgetPeriod, reference_day: dt.date) -> Decimal:
    """Scale a per-day amount up to ``period`` units, rounded to cents."""
    if period is BudgetPeriod.WEEKLY:
        return round_cents(per_day * DAYS_IN_WEEK)
    if period is BudgetPeriod.MONTHLY:
        return round_cents(per_day * days_in_month(reference_day))
    return round_cents(per_day)


class PeriodTranslator:
    """Period views over one allowance history and one ledger."""

    def __init__(
        self,
        history: AllowanceHistory,
        ledger: ExpenseLedger,
        tracking_start: dt.date | None = None,
        week_start: int = 0,
    ) -> None:
        self.history = history
        self.ledger = ledger
        self.tracking_start = tracking_start
        self.week_start = week_start

    def display_allowance(self, period: BudgetPeriod, day: dt.date) -> Decimal:
        """The allowance in effect on ``day``, in ``period`` units."""
        return display_amount(self.history.allowance_for(day), period, day)

    def interval(self, day: dt.date, period: BudgetPeriod) -> DateInterval:
        return period_interval(day, period, self.week_start)

    def period_remaining(self, day: dt.date, period: BudgetPeriod) -> Decimal:
        """Budget left for the rest of the active period.

        Only the days from ``day`` to the end of the period are credited;
        earlier days of the period already live in the daily balance.
        """
        if period is BudgetPeriod.DAILY:
            return self.history.allowance_for(day) - self.ledger.total_spent(day)

        interval = self.interval(day, period)
        remaining_days = (interval.end - day).days
        current_amount = self.display_allowance(period, day)
        allowance = per_day_amount(current_amount, period, day) * remaining_days

        spent_from = day if self.tracking_start is None else max(self.tracking_start, day)
        spent = self.ledger.total_in_range(spent_from, interval.end)
        return allowance - spent
