"""Core domain models and calculations for BusyBee.

Everything here is pure: no file, clock or environment access beyond
defaults for timestamps. The runtime and application layers own I/O.

Usage:
    from busybee.domain import AllowanceHistory, ExpenseLedger, RolloverEngine
"""

from busybee.domain.achievements import Achievement, AchievementType, evaluate_achievements
from busybee.domain.allowance import DEFAULT_DAILY_ALLOWANCE, AllowanceEntry, AllowanceHistory
from busybee.domain.errors import (
    BusyBeeError,
    ImageTooLarge,
    InsufficientStorage,
    InvalidAmount,
    InvalidExpense,
    InvalidImage,
    PersistenceFailure,
    ReceiptNotFound,
    ReceiptStoreError,
)
from busybee.domain.ledger import MAX_EXPENSE_AMOUNT, Expense, ExpenseCategory, ExpenseLedger, new_expense
from busybee.domain.metrics import DayStat, SummaryMetrics, build_day_stats
from busybee.domain.periods import BudgetPeriod, PeriodTranslator, display_amount, per_day_amount
from busybee.domain.rollover import BudgetStatus, DailyBudgetState, RolloverEngine, budget_status

__all__ = [
    # Records
    "AllowanceEntry",
    "AllowanceHistory",
    "DEFAULT_DAILY_ALLOWANCE",
    "Expense",
    "ExpenseCategory",
    "ExpenseLedger",
    "MAX_EXPENSE_AMOUNT",
    "new_expense",
    # Calculations
    "BudgetPeriod",
    "BudgetStatus",
    "DailyBudgetState",
    "DayStat",
    "PeriodTranslator",
    "RolloverEngine",
    "SummaryMetrics",
    "budget_status",
    "build_day_stats",
    "display_amount",
    "per_day_amount",
    # Achievements
    "Achievement",
    "AchievementType",
    "evaluate_achievements",
    # Errors
    "BusyBeeError",
    "ImageTooLarge",
    "InsufficientStorage",
    "InvalidAmount",
    "InvalidExpense",
    "InvalidImage",
    "PersistenceFailure",
    "ReceiptNotFound",
    "ReceiptStoreError",
]
