"""Tests for the monthly summary and day-grouped history."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from busybee.domain.ledger import ExpenseCategory, ExpenseLedger
from busybee.domain.summary import CategoryTotal, HistoryFilter, MonthlySummary, history_sections


def _ledger() -> ExpenseLedger:
    ledger = ExpenseLedger()
    ledger.add("Rent share", "300", ExpenseCategory.OTHER, date=dt.datetime(2024, 1, 31, 9))
    ledger.add("Groceries", "45", ExpenseCategory.FOOD, date=dt.datetime(2024, 2, 1, 18))
    ledger.add("Cafe", "5", ExpenseCategory.FOOD, date=dt.datetime(2024, 2, 1, 8))
    ledger.add("Bus", "2.75", ExpenseCategory.TRANSPORTATION, date=dt.datetime(2024, 2, 12, 7))
    ledger.add("Shoes", "60", ExpenseCategory.SHOPPING, date=dt.datetime(2024, 2, 14, 13))
    return ledger


def test_monthly_summary() -> None:
    summary = MonthlySummary.for_month(_ledger(), dt.date(2024, 2, 20))

    assert summary.month.start == dt.date(2024, 2, 1)
    assert [e.vendor for e in summary.expenses] == ["Shoes", "Bus", "Groceries", "Cafe"]
    assert summary.total_spent == Decimal("112.75")
    assert summary.daily_average == Decimal("112.75") / 29
    assert summary.category_totals == [
        CategoryTotal(ExpenseCategory.SHOPPING, Decimal("60")),
        CategoryTotal(ExpenseCategory.FOOD, Decimal("50")),
        CategoryTotal(ExpenseCategory.TRANSPORTATION, Decimal("2.75")),
    ]


def test_empty_month() -> None:
    summary = MonthlySummary.for_month(_ledger(), dt.date(2024, 3, 1))

    assert summary.total_spent == 0
    assert summary.daily_average == 0
    assert summary.category_totals == []


def test_history_sections_group_by_day() -> None:
    sections = history_sections(_ledger(), today=dt.date(2024, 2, 14))

    assert [s.day for s in sections] == [
        dt.date(2024, 2, 14),
        dt.date(2024, 2, 12),
        dt.date(2024, 2, 1),
        dt.date(2024, 1, 31),
    ]
    feb1 = sections[2]
    assert [e.vendor for e in feb1.items] == ["Groceries", "Cafe"]
    assert feb1.total == Decimal("50")


def test_history_filters() -> None:
    today = dt.date(2024, 2, 14)  # Wednesday

    def days(history_filter: HistoryFilter) -> list[dt.date]:
        return [s.day for s in history_sections(_ledger(), history_filter, today=today)]

    assert days(HistoryFilter.TODAY) == [today]
    assert days(HistoryFilter.WEEK) == [today, dt.date(2024, 2, 12)]
    assert days(HistoryFilter.MONTH) == [today, dt.date(2024, 2, 12), dt.date(2024, 2, 1)]
