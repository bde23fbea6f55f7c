"""Monthly spending summary and day-grouped expense history."""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from busybee.domain.ledger import Expense, ExpenseCategory
from busybee.domain.money import ZERO
from busybee.domain.periods import DateInterval, days_in_month, month_interval, week_interval


@dataclass(frozen=True)
class CategoryTotal:
    category: ExpenseCategory
    amount: Decimal


@dataclass(frozen=True)
class MonthlySummary:
    month: DateInterval
    expenses: list[Expense]
    total_spent: Decimal
    daily_average: Decimal
    category_totals: list[CategoryTotal]

    @classmethod
    def for_month(cls, expenses: Iterable[Expense], day: dt.date) -> MonthlySummary:
        interval = month_interval(day)
        in_month = sorted((e for e in expenses if e.day in interval), key=lambda e: e.date, reverse=True)
        total = sum((e.amount for e in in_month), ZERO)

        by_category: dict[ExpenseCategory, Decimal] = {}
        for expense in in_month:
            by_category[expense.category] = by_category.get(expense.category, ZERO) + expense.amount
        # Stable sort keeps declaration order among equal totals
        totals = [
            CategoryTotal(category, by_category[category])
            for category in ExpenseCategory
            if by_category.get(category, ZERO) > 0
        ]
        totals.sort(key=lambda t: t.amount, reverse=True)

        return cls(
            month=interval,
            expenses=in_month,
            total_spent=total,
            daily_average=total / days_in_month(day),
            category_totals=totals,
        )


class HistoryFilter(str, Enum):
    TODAY = "Today"
    WEEK = "Week"
    MONTH = "Month"

    @property
    def emoji(self) -> str:
        return {HistoryFilter.TODAY: "☀️", HistoryFilter.WEEK: "📅", HistoryFilter.MONTH: "🗓️"}[self]


@dataclass(frozen=True)
class ExpenseSection:
    day: dt.date
    items: list[Expense]

    @property
    def total(self) -> Decimal:
        return sum((e.amount for e in self.items), ZERO)


def history_sections(
    expenses: Iterable[Expense],
    history_filter: HistoryFilter | None = None,
    today: dt.date | None = None,
    week_start: int = 0,
) -> list[ExpenseSection]:
    """Group expenses by day, newest day first and newest expense first."""
    today = today if today is not None else dt.date.today()
    selected = list(expenses)
    if history_filter is HistoryFilter.TODAY:
        selected = [e for e in selected if e.day == today]
    elif history_filter is HistoryFilter.WEEK:
        week = week_interval(today, week_start)
        selected = [e for e in selected if e.day in week]
    elif history_filter is HistoryFilter.MONTH:
        month = month_interval(today)
        selected = [e for e in selected if e.day in month]

    grouped: dict[dt.date, list[Expense]] = {}
    for expense in selected:
        grouped.setdefault(expense.day, []).append(expense)

    return [
        ExpenseSection(day, sorted(items, key=lambda e: e.date, reverse=True))
        for day, items in sorted(grouped.items(), key=lambda kv: kv[0], reverse=True)
    ]
