"""Expense records and the in-memory expense ledger."""

from __future__ import annotations

import datetime as dt
import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum

from busybee.domain.allowance import as_day
from busybee.domain.errors import InvalidAmount, InvalidExpense
from busybee.domain.money import ZERO, coerce_amount

# Upper bound accepted by the add-expense form
MAX_EXPENSE_AMOUNT = Decimal("999999.99")


class ExpenseCategory(str, Enum):
    FOOD = "Food"
    SHOPPING = "Shopping"
    TRANSPORTATION = "Transportation"
    ENTERTAINMENT = "Entertainment"
    PERSONAL = "Personal"
    OTHER = "Other"

    @property
    def default_title(self) -> str:
        return self.value

    @classmethod
    def parse(cls, raw: str) -> ExpenseCategory:
        """Case-insensitive lookup by value or member name."""
        key = raw.strip().lower()
        for category in cls:
            if key in (category.value.lower(), category.name.lower()):
                return category
        raise ValueError(f"Unknown expense category: {raw!r}")


@dataclass(frozen=True)
class Expense:
    """A single logged expense.

    ``amount`` is always non-negative; ``date`` is a naive local timestamp.
    """

    id: uuid.UUID
    vendor: str
    amount: Decimal
    category: ExpenseCategory
    date: dt.datetime
    notes: str | None = None
    has_receipt: bool = False

    @property
    def day(self) -> dt.date:
        return self.date.date()


def _clean_notes(notes: str | None) -> str | None:
    if notes is None:
        return None
    stripped = notes.strip()
    return stripped or None


def new_expense(
    vendor: str,
    amount: Decimal | int | float | str,
    category: ExpenseCategory,
    date: dt.datetime | None = None,
    notes: str | None = None,
) -> Expense:
    """Build a validated expense with a fresh id.

    The vendor and notes are trimmed and the amount is forced positive.

    Raises:
        InvalidExpense: If the vendor is blank.
        InvalidAmount: If the amount is not a finite number or exceeds
            MAX_EXPENSE_AMOUNT.
    """
    trimmed_vendor = vendor.strip()
    if not trimmed_vendor:
        raise InvalidExpense("Vendor must not be empty")

    value = abs(coerce_amount(amount))
    if value > MAX_EXPENSE_AMOUNT:
        raise InvalidAmount(f"Expense amount {value} exceeds maximum {MAX_EXPENSE_AMOUNT}")

    return Expense(
        id=uuid.uuid4(),
        vendor=trimmed_vendor,
        amount=value,
        category=category,
        date=date if date is not None else dt.datetime.now(),
        notes=_clean_notes(notes),
    )


class ExpenseLedger:
    """Expenses held most-recent-first, the order they are displayed in.

    Calculations never rely on list order; every query filters by day.
    """

    def __init__(self, expenses: Iterable[Expense] = ()) -> None:
        self._expenses: list[Expense] = sorted(expenses, key=lambda e: e.date, reverse=True)

    def __iter__(self) -> Iterator[Expense]:
        return iter(self._expenses)

    def __len__(self) -> int:
        return len(self._expenses)

    def all(self) -> list[Expense]:
        return list(self._expenses)

    def add(
        self,
        vendor: str,
        amount: Decimal | int | float | str,
        category: ExpenseCategory,
        date: dt.datetime | None = None,
        notes: str | None = None,
    ) -> Expense:
        """Create an expense and insert it at the head of the list."""
        expense = new_expense(vendor, amount, category, date=date, notes=notes)
        self._expenses.insert(0, expense)
        return expense

    def insert(self, expense: Expense) -> None:
        """Insert an already-built expense at the head of the list."""
        self._expenses.insert(0, expense)

    def remove(self, expense_id: uuid.UUID) -> Expense | None:
        """Delete by id. Returns the removed expense, or None if absent."""
        for idx, expense in enumerate(self._expenses):
            if expense.id == expense_id:
                return self._expenses.pop(idx)
        return None

    def get(self, expense_id: uuid.UUID) -> Expense | None:
        for expense in self._expenses:
            if expense.id == expense_id:
                return expense
        return None

    def mark_receipt(self, expense_id: uuid.UUID, has_receipt: bool) -> Expense | None:
        """Flip the receipt flag; the only in-place change an expense gets."""
        for idx, expense in enumerate(self._expenses):
            if expense.id == expense_id:
                updated = replace(expense, has_receipt=has_receipt)
                self._expenses[idx] = updated
                return updated
        return None

    def expenses_on(self, day: dt.date) -> list[Expense]:
        day = as_day(day)
        return [e for e in self._expenses if e.day == day]

    def expenses_in_range(self, start: dt.date, end: dt.date) -> list[Expense]:
        """Expenses with ``start <= day < end``; timestamps are truncated to days."""
        start, end = as_day(start), as_day(end)
        return [e for e in self._expenses if start <= e.day < end]

    def total_spent(self, day: dt.date) -> Decimal:
        day = as_day(day)
        return sum((e.amount for e in self._expenses if e.day == day), ZERO)

    def total_in_range(self, start: dt.date, end: dt.date) -> Decimal:
        return sum((e.amount for e in self.expenses_in_range(start, end)), ZERO)

    def spending_by_day(self) -> dict[dt.date, Decimal]:
        totals: dict[dt.date, Decimal] = {}
        for expense in self._expenses:
            totals[expense.day] = totals.get(expense.day, ZERO) + expense.amount
        return totals

    def earliest_day(self) -> dt.date | None:
        if not self._expenses:
            return None
        return min(e.day for e in self._expenses)
