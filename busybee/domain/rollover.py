"""Daily balance with unlimited rollover.

Unspent allowance carries into the next day, and so does overspending: the
carry has no cap in either direction. Every call walks forward from the
earliest day that could matter, so results depend only on the current
history and ledger.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from busybee.domain.allowance import AllowanceHistory
from busybee.domain.ledger import ExpenseLedger
from busybee.domain.money import ZERO

ONE_DAY = dt.timedelta(days=1)
CAUTION_RATIO = Decimal("0.5")


class BudgetStatus(str, Enum):
    COMFORTABLE = "comfortable"
    CAUTION = "caution"
    OVER_LIMIT = "overLimit"

    @property
    def color_name(self) -> str:
        return {
            BudgetStatus.COMFORTABLE: "Green",
            BudgetStatus.CAUTION: "Yellow",
            BudgetStatus.OVER_LIMIT: "Red",
        }[self]


def budget_status(remaining: Decimal, daily_limit: Decimal) -> BudgetStatus:
    """Classify a remaining balance against the day's limit."""
    if remaining >= daily_limit * CAUTION_RATIO:
        return BudgetStatus.COMFORTABLE
    if remaining >= 0:
        return BudgetStatus.CAUTION
    return BudgetStatus.OVER_LIMIT


@dataclass(frozen=True)
class DailyBudgetState:
    day: dt.date
    daily_limit: Decimal
    rollover: Decimal
    total_spent: Decimal
    remaining: Decimal

    @property
    def available(self) -> Decimal:
        return self.daily_limit + self.rollover

    @property
    def status(self) -> BudgetStatus:
        return budget_status(self.remaining, self.daily_limit)


class RolloverEngine:
    """Balance calculations over one allowance history and one ledger.

    Args:
        history: Allowance history.
        ledger: Expense ledger.
        tracking_start: Day the user started tracking, if known. The walk
            never starts later than this.
    """

    def __init__(
        self,
        history: AllowanceHistory,
        ledger: ExpenseLedger,
        tracking_start: dt.date | None = None,
    ) -> None:
        self.history = history
        self.ledger = ledger
        self.tracking_start = tracking_start

    def initial_day(self, day: dt.date) -> dt.date:
        candidates = [
            d
            for d in (self.tracking_start, day, self.ledger.earliest_day(), self.history.earliest_day())
            if d is not None
        ]
        return min(candidates)

    def ending_balance(self, day: dt.date) -> Decimal:
        """Balance left at the end of ``day`` including everything carried in."""
        spending = self.ledger.spending_by_day()
        carry = ZERO
        current = self.initial_day(day)
        while True:
            ending = self.history.allowance_for(current) + carry - spending.get(current, ZERO)
            if current >= day:
                return ending
            carry = ending
            current += ONE_DAY

    def rollover_amount(self, day: dt.date) -> Decimal:
        """Carry into ``day``: the previous day's ending balance."""
        return self.ending_balance(day - ONE_DAY)

    def daily_budget_state(self, day: dt.date) -> DailyBudgetState:
        daily_limit = self.history.allowance_for(day)
        rollover = self.rollover_amount(day)
        total_spent = self.ledger.total_spent(day)
        return DailyBudgetState(
            day=day,
            daily_limit=daily_limit,
            rollover=rollover,
            total_spent=total_spent,
            remaining=daily_limit + rollover - total_spent,
        )
