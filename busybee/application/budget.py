"""Budget workflow orchestration.

``BudgetService`` is the single owner of all mutable state: the expense
ledger, the allowance history, unlocked achievements, vendor usage and
preferences. Mutations change memory first and return at once; the durable
write runs on a single background worker so writes land in the order they
were made. A failed write is logged and left on the returned future. Memory
is not rolled back and the write is not retried.
"""

from __future__ import annotations

import datetime as dt
import uuid
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from busybee.domain.achievements import Achievement, evaluate_achievements
from busybee.domain.allowance import AllowanceHistory
from busybee.domain.errors import InvalidAmount, ReceiptNotFound
from busybee.domain.ledger import Expense, ExpenseCategory, ExpenseLedger
from busybee.domain.metrics import SummaryMetrics
from busybee.domain.money import coerce_amount, round_cents
from busybee.domain.periods import BudgetPeriod, PeriodTranslator, per_day_amount
from busybee.domain.rollover import DailyBudgetState, RolloverEngine
from busybee.domain.summary import ExpenseSection, HistoryFilter, MonthlySummary, history_sections
from busybee.domain.vendors import VendorTracker, VendorUsage, category_hint, suggested_vendors
from busybee.runtime import get_logger
from busybee.runtime.notifications import (
    DeficitNotifier,
    LoggingDeficitNotifier,
    LoggingReminderScheduler,
    ReminderScheduler,
)
from busybee.runtime.paths import ProjectPaths, get_paths
from busybee.runtime.receipt_store import ReceiptFileStore
from busybee.runtime.settings import AppSettings, BudgetConfig, load_config
from busybee.runtime.storage import (
    AchievementStore,
    AllowanceStore,
    ExpenseStore,
    KeyValueStore,
    VendorUsageStore,
)
from busybee.runtime.vendor_rules import load_vendor_rules

logger = get_logger(__name__)

StateListener = Callable[[DailyBudgetState], None]


def _completed() -> Future[None]:
    future: Future[None] = Future()
    future.set_result(None)
    return future


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a mutation.

    ``state`` is today's budget after the change. ``persisted`` resolves when
    the write finishes and holds the PersistenceFailure if it failed.
    """

    state: DailyBudgetState
    persisted: Future[None]
    expense: Expense | None = None
    achievements: list[Achievement] = field(default_factory=list)

    def wait(self, timeout: float | None = None) -> None:
        """Block until the write completes; re-raises its failure."""
        self.persisted.result(timeout=timeout)


class BudgetService:
    """Single mutable owner of the budget.

    Args:
        expense_store, allowance_store, achievement_store, vendor_store,
        settings_store: JSON stores. ``None`` uses the default data paths.
        receipt_store: Receipt image store.
        config: Parsed config.toml.
        reminder_scheduler: Told when reminder toggles change.
        deficit_notifier: Told when an expense pushes a day below zero.
        vendor_rules: Keyword rules for category hints.
        clock: Source of "now"; injectable for tests.
    """

    def __init__(
        self,
        *,
        expense_store: ExpenseStore | None = None,
        allowance_store: AllowanceStore | None = None,
        achievement_store: AchievementStore | None = None,
        vendor_store: VendorUsageStore | None = None,
        settings_store: KeyValueStore | None = None,
        receipt_store: ReceiptFileStore | None = None,
        config: BudgetConfig | None = None,
        reminder_scheduler: ReminderScheduler | None = None,
        deficit_notifier: DeficitNotifier | None = None,
        vendor_rules: tuple[Any, ...] | None = None,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
    ) -> None:
        self.expense_store = expense_store or ExpenseStore()
        self.allowance_store = allowance_store or AllowanceStore()
        self.achievement_store = achievement_store or AchievementStore()
        self.vendor_store = vendor_store or VendorUsageStore()
        self.settings_store = settings_store or KeyValueStore()
        self.receipt_store = receipt_store or ReceiptFileStore()
        self.config = config or BudgetConfig()
        self.reminder_scheduler: ReminderScheduler = reminder_scheduler or LoggingReminderScheduler()
        self.deficit_notifier: DeficitNotifier = deficit_notifier or LoggingDeficitNotifier()
        if vendor_rules is None:
            rules_path = self.config.vendor_rules_path
            vendor_rules = load_vendor_rules(str(rules_path) if rules_path else None)
        self.vendor_rules = vendor_rules
        self.clock = clock

        self.ledger = ExpenseLedger()
        self.history = AllowanceHistory(default_amount=self.config.default_daily_allowance)
        self.tracker = VendorTracker()
        self.unlocked: list[Achievement] = []
        self.settings = AppSettings()

        self._listeners: list[StateListener] = []
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="busybee-persist")
        self.load()

    @classmethod
    def open(cls, paths: ProjectPaths | None = None, **kwargs: Any) -> BudgetService:
        """Build a service over the files in a data directory."""
        paths = paths or get_paths()
        paths.ensure_directories()
        config = kwargs.pop("config", None) or load_config(str(paths.config))
        return cls(
            expense_store=ExpenseStore(paths.expenses),
            allowance_store=AllowanceStore(paths.daily_limits),
            achievement_store=AchievementStore(paths.achievements),
            vendor_store=VendorUsageStore(paths.vendor_usage),
            settings_store=KeyValueStore(paths.settings),
            receipt_store=ReceiptFileStore(paths.receipts),
            config=config,
            **kwargs,
        )

    # --- Lifecycle ---

    def load(self) -> None:
        """(Re)load everything from the stores. Unreadable files load as empty."""
        self.ledger = ExpenseLedger(self.expense_store.load())
        self.history = AllowanceHistory(
            self.allowance_store.load(),
            default_amount=self.config.default_daily_allowance,
        )
        self.unlocked = self.achievement_store.load()
        self.tracker = VendorTracker(self.vendor_store.load())
        self.settings = AppSettings.load(self.settings_store)
        if self.settings.tracking_start is None:
            self.settings.tracking_start = self.history.earliest_day()
        logger.debug(
            "Loaded %d expenses, %d allowance entries, %d achievements",
            len(self.ledger),
            len(self.history),
            len(self.unlocked),
        )

    def flush(self, timeout: float | None = None) -> None:
        """Wait until every pending write has finished."""
        self._executor.submit(lambda: None).result(timeout=timeout)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> BudgetService:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def add_listener(self, listener: StateListener) -> None:
        """Call ``listener`` with today's state after every mutation."""
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # --- Derived views ---

    def now(self) -> dt.datetime:
        return self.clock()

    def today(self) -> dt.date:
        return self.clock().date()

    @property
    def engine(self) -> RolloverEngine:
        return RolloverEngine(self.history, self.ledger, tracking_start=self.settings.tracking_start)

    @property
    def translator(self) -> PeriodTranslator:
        return PeriodTranslator(
            self.history,
            self.ledger,
            tracking_start=self.settings.tracking_start,
            week_start=self.config.week_start,
        )

    @property
    def period(self) -> BudgetPeriod:
        return self.settings.budget_period

    def budget_state(self, day: dt.date | None = None) -> DailyBudgetState:
        return self.engine.daily_budget_state(day or self.today())

    def ending_balance(self, day: dt.date | None = None) -> Decimal:
        return self.engine.ending_balance(day or self.today())

    def rollover_amount(self, day: dt.date | None = None) -> Decimal:
        return self.engine.rollover_amount(day or self.today())

    def display_allowance(self, period: BudgetPeriod | None = None, day: dt.date | None = None) -> Decimal:
        """Allowance in effect, expressed in ``period`` units (default: active period)."""
        return self.translator.display_allowance(period or self.period, day or self.today())

    def period_remaining(self, day: dt.date | None = None, period: BudgetPeriod | None = None) -> Decimal:
        return self.translator.period_remaining(day or self.today(), period or self.period)

    def metrics(self, today: dt.date | None = None) -> SummaryMetrics:
        return SummaryMetrics.compute(
            self.history,
            self.ledger,
            today or self.today(),
            period=self.period,
            week_start=self.config.week_start,
            tracking_start=self.settings.tracking_start,
        )

    def monthly_summary(self, day: dt.date | None = None) -> MonthlySummary:
        return MonthlySummary.for_month(self.ledger, day or self.today())

    def history_sections(self, history_filter: HistoryFilter | None = None) -> list[ExpenseSection]:
        return history_sections(self.ledger, history_filter, today=self.today(), week_start=self.config.week_start)

    def expenses(self) -> list[Expense]:
        return self.ledger.all()

    def suggested_vendors(self, limit: int = 6) -> list[str]:
        return suggested_vendors(self.ledger, limit=limit)

    def top_vendors(self, limit: int = 6) -> list[VendorUsage]:
        return self.tracker.top_vendors(limit)

    def category_hint(self, vendor: str) -> ExpenseCategory:
        return category_hint(vendor, self.ledger, self.tracker, self.vendor_rules)

    # --- Persistence plumbing ---

    def _submit(self, description: str, fn: Callable[..., None], *args: Any) -> Future[None]:
        future = self._executor.submit(fn, *args)

        def _report(done: Future[None]) -> None:
            exc = done.exception()
            if exc is not None:
                logger.error("Failed to save %s: %s", description, exc)

        future.add_done_callback(_report)
        return future

    def _persist_expenses(self) -> Future[None]:
        return self._submit("expenses", self.expense_store.save, self.ledger.all())

    def _persist_expenses_and_vendors(self) -> Future[None]:
        expenses = self.ledger.all()
        usages = self.tracker.usages()

        def _write() -> None:
            self.expense_store.save(expenses)
            self.vendor_store.save(usages)

        return self._submit("expenses", _write)

    def _persist_allowance(self) -> Future[None]:
        return self._submit("allowance history", self.allowance_store.save, self.history.entries())

    def _persist_settings(self) -> Future[None]:
        snapshot = self.settings.to_values()
        return self._submit("settings", self.settings_store.update, snapshot)

    def _result(self, persisted: Future[None], **kwargs: Any) -> MutationResult:
        state = self.budget_state()
        for listener in list(self._listeners):
            listener(state)
        return MutationResult(state=state, persisted=persisted, **kwargs)

    # --- Expenses ---

    def add_expense(
        self,
        vendor: str,
        amount: Decimal | int | float | str,
        category: ExpenseCategory | None = None,
        notes: str | None = None,
        date: dt.datetime | None = None,
    ) -> MutationResult:
        """Log an expense.

        Without a category, one is guessed from the vendor. If this expense
        takes its day from a non-negative remaining balance below zero, the
        deficit notifier is told once.
        """
        when = date or self.now()
        chosen = category or self.category_hint(vendor)
        before = self.engine.daily_budget_state(when.date())

        expense = self.ledger.add(vendor, amount, chosen, date=when, notes=notes)
        self.tracker.record_usage(expense.vendor, expense.category, used_at=self.now())
        logger.info("Added expense %s: %s %s", expense.id, expense.vendor, expense.amount)

        after = self.engine.daily_budget_state(expense.day)
        if before.remaining >= 0 > after.remaining:
            self.deficit_notifier.notify_deficit(after.remaining, after.total_spent)

        return self._result(self._persist_expenses_and_vendors(), expense=expense)

    def remove_expense(self, expense_id: uuid.UUID) -> MutationResult:
        """Delete an expense and its receipt image. Unknown ids are ignored."""
        removed = self.ledger.remove(expense_id)
        if removed is None:
            logger.debug("Expense %s not found, nothing removed", expense_id)
            return self._result(_completed())

        self.receipt_store.delete(expense_id)
        logger.info("Removed expense %s", expense_id)
        return self._result(self._persist_expenses(), expense=removed)

    def attach_receipt(self, expense_id: uuid.UUID, image_bytes: bytes) -> MutationResult:
        """Store a receipt image for an expense and flag it.

        Raises:
            ReceiptNotFound: If no expense has this id.
            ReceiptStoreError: If the image cannot be stored.
        """
        if self.ledger.get(expense_id) is None:
            raise ReceiptNotFound(f"No expense with id {expense_id}")
        self.receipt_store.save(image_bytes, expense_id)
        updated = self.ledger.mark_receipt(expense_id, True)
        return self._result(self._persist_expenses(), expense=updated)

    def load_receipt(self, expense_id: uuid.UUID) -> bytes:
        return self.receipt_store.load(expense_id)

    def delete_receipt(self, expense_id: uuid.UUID) -> MutationResult:
        self.receipt_store.delete(expense_id)
        updated = self.ledger.mark_receipt(expense_id, False)
        if updated is None:
            return self._result(_completed())
        return self._result(self._persist_expenses(), expense=updated)

    # --- Allowance and period ---

    def record_allowance(self, amount: Decimal | int | float | str, day: dt.date | None = None) -> MutationResult:
        """Set the per-day allowance effective from ``day`` (default today).

        The first allowance ever recorded also fixes the tracking start day.

        Raises:
            InvalidAmount: If the amount is negative or not a number.
        """
        day = day or self.today()
        entry = self.history.record(amount, day)
        logger.info("Recorded allowance %s/day from %s", entry.daily_amount, entry.effective_date)

        futures = [self._persist_allowance()]
        if self.settings.tracking_start is None or day < self.settings.tracking_start:
            self.settings.tracking_start = day
            futures.append(self._persist_settings())
        return self._result(self._join(futures))

    def _join(self, futures: list[Future[None]]) -> Future[None]:
        """One future that fails if any of ``futures`` failed."""
        if len(futures) == 1:
            return futures[0]

        def _wait_all() -> None:
            for future in futures:
                future.result()

        # Queued behind the writes it waits on, so it never blocks the worker
        return self._executor.submit(_wait_all)

    def set_allowance(self, amount: Decimal | int | float | str) -> MutationResult:
        """Set the allowance in units of the active period, effective today."""
        value = coerce_amount(amount)
        if value < 0:
            raise InvalidAmount(f"Allowance must not be negative: {value}")
        today = self.today()
        return self.record_allowance(per_day_amount(value, self.period, today), today)

    def set_period(self, period: BudgetPeriod) -> MutationResult:
        """Switch the active period.

        Today's allowance is re-recorded only when converting it through the
        new period's units would change the per-day amount by a cent or more.
        """
        today = self.today()
        previous = self.period
        self.settings.budget_period = period
        futures = [self._persist_settings()]

        current_per_day = self.history.allowance_for(today)
        shown = self.translator.display_allowance(period, today)
        new_per_day = per_day_amount(shown, period, today)
        if not self.history.is_empty and round_cents(new_per_day) != round_cents(current_per_day):
            self.history.record(new_per_day, today)
            futures.append(self._persist_allowance())

        logger.info("Budget period changed from %s to %s", previous.value, period.value)
        return self._result(self._join(futures))

    # --- Preferences ---

    def set_reminders(self, morning: bool | None = None, end_of_day: bool | None = None) -> MutationResult:
        if morning is not None:
            self.settings.morning_reminders = morning
            self.reminder_scheduler.set_morning_reminder(morning)
        if end_of_day is not None:
            self.settings.end_of_day_summary = end_of_day
            self.reminder_scheduler.set_end_of_day_summary(end_of_day)
        return self._result(self._persist_settings())

    def set_receipt_storage_enabled(self, enabled: bool) -> MutationResult:
        self.settings.receipt_storage_enabled = enabled
        return self._result(self._persist_settings())

    def set_preset_amounts(self, amounts: list[Decimal | int | float | str]) -> MutationResult:
        values = [abs(coerce_amount(a)) for a in amounts]
        if values:
            self.settings.preset_amounts = values
        return self._result(self._persist_settings())

    def set_category_names(self, names: dict[ExpenseCategory, str]) -> MutationResult:
        self.settings.set_category_names(names)
        return self._result(self._persist_settings())

    def reset_category_names(self) -> MutationResult:
        self.settings.reset_category_names()
        return self._result(self._persist_settings())

    # --- Achievements ---

    def unlock_achievements(self, today: dt.date | None = None) -> MutationResult:
        """Award any achievement the current metrics earn; each type at most once."""
        earned = evaluate_achievements(self.metrics(today), self.unlocked, awarded_at=self.now())
        if not earned:
            return self._result(_completed())

        self.unlocked.extend(earned)
        for achievement in earned:
            logger.info("Unlocked achievement: %s", achievement.type.title)
        persisted = self._submit("achievements", self.achievement_store.save, list(self.unlocked))
        return self._result(persisted, achievements=earned)
