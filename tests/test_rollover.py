"""Tests for the rollover balance engine."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from busybee.domain.allowance import AllowanceHistory
from busybee.domain.ledger import ExpenseCategory, ExpenseLedger
from busybee.domain.rollover import BudgetStatus, RolloverEngine, budget_status

DAY1 = dt.date(2024, 4, 1)
DAY2 = dt.date(2024, 4, 2)
DAY3 = dt.date(2024, 4, 3)


def _spend(ledger: ExpenseLedger, day: dt.date, amount: str) -> None:
    ledger.add("Shop", amount, ExpenseCategory.OTHER, date=dt.datetime.combine(day, dt.time(12)))


def _engine(spends: dict[dt.date, str], allowance: str = "10") -> RolloverEngine:
    history = AllowanceHistory()
    history.record(allowance, DAY1)
    ledger = ExpenseLedger()
    for day, amount in spends.items():
        _spend(ledger, day, amount)
    return RolloverEngine(history, ledger)


def test_ending_balance_accumulates_unspent_and_deficit() -> None:
    engine = _engine({DAY2: "15"})

    assert [engine.ending_balance(d) for d in (DAY1, DAY2, DAY3)] == [
        Decimal("10"),
        Decimal("5"),
        Decimal("15"),
    ]


def test_ending_balance_is_sum_of_daily_differences() -> None:
    spends = ["3", "0", "22.50", "7", "1"]
    days = [DAY1 + dt.timedelta(days=i) for i in range(len(spends))]
    engine = _engine({d: s for d, s in zip(days, spends) if s != "0"})

    running = Decimal(0)
    for day, spent in zip(days, spends):
        running += Decimal("10") - Decimal(spent)
        assert engine.ending_balance(day) == running


def test_deficit_carries_forward_without_cap() -> None:
    engine = _engine({DAY1: "45"})

    assert engine.ending_balance(DAY1) == Decimal("-35")
    assert engine.ending_balance(DAY3) == Decimal("-15")


def test_rollover_is_previous_day_ending_balance() -> None:
    engine = _engine({DAY2: "15"})

    assert engine.rollover_amount(DAY3) == Decimal("5")
    assert engine.rollover_amount(DAY1) == 0


def test_daily_budget_state() -> None:
    engine = _engine({DAY2: "15", DAY3: "4"})

    state = engine.daily_budget_state(DAY3)

    assert state.day == DAY3
    assert state.daily_limit == Decimal("10")
    assert state.rollover == Decimal("5")
    assert state.total_spent == Decimal("4")
    assert state.remaining == Decimal("11")
    assert state.available == Decimal("15")
    assert state.status is BudgetStatus.COMFORTABLE


def test_days_before_history_have_zero_allowance() -> None:
    engine = _engine({})

    assert engine.history.allowance_for(DAY1 - dt.timedelta(days=1)) == 0
    assert engine.ending_balance(DAY1 - dt.timedelta(days=5)) == 0


def test_expense_before_tracking_goes_negative() -> None:
    early = DAY1 - dt.timedelta(days=2)
    engine = _engine({early: "4"})

    assert engine.ending_balance(early) == Decimal("-4")
    # The deficit rolls into the first tracked day
    assert engine.ending_balance(DAY1) == Decimal("6")


def test_allowance_change_applies_from_its_day() -> None:
    engine = _engine({})
    engine.history.record(20, DAY3)

    assert engine.ending_balance(DAY3) == Decimal("40")


def test_tracking_start_extends_walk() -> None:
    history = AllowanceHistory()
    history.record(10, DAY2)
    engine = RolloverEngine(history, ExpenseLedger(), tracking_start=DAY1)

    assert engine.initial_day(DAY3) == DAY1
    assert engine.ending_balance(DAY3) == Decimal("20")


@pytest.mark.parametrize(
    ("remaining", "expected"),
    [
        ("50", BudgetStatus.COMFORTABLE),
        ("49", BudgetStatus.CAUTION),
        ("0", BudgetStatus.CAUTION),
        ("-1", BudgetStatus.OVER_LIMIT),
    ],
)
def test_status_thresholds(remaining: str, expected: BudgetStatus) -> None:
    assert budget_status(Decimal(remaining), Decimal("100")) is expected


def test_zero_limit_with_spending_is_over_limit() -> None:
    assert budget_status(Decimal("-0.01"), Decimal("0")) is BudgetStatus.OVER_LIMIT
    assert BudgetStatus.OVER_LIMIT.color_name == "Red"
