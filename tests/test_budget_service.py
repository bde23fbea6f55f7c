"""Tests for the budget service: mutations, persistence and notifications."""

from __future__ import annotations

import datetime as dt
import io
import json
import uuid
from decimal import Decimal
from pathlib import Path

import pytest
from PIL import Image

from busybee.application.budget import BudgetService
from busybee.domain.achievements import AchievementType
from busybee.domain.errors import InvalidAmount, InvalidExpense, PersistenceFailure, ReceiptNotFound
from busybee.domain.ledger import ExpenseCategory
from busybee.domain.periods import BudgetPeriod
from busybee.domain.rollover import BudgetStatus, DailyBudgetState
from busybee.runtime.notifications import LoggingReminderScheduler
from busybee.runtime.paths import ProjectPaths
from busybee.runtime.receipt_store import ReceiptFileStore
from busybee.runtime.settings import BudgetConfig
from busybee.runtime.storage import (
    AchievementStore,
    AllowanceStore,
    ExpenseStore,
    KeyValueStore,
    VendorUsageStore,
)

TODAY = dt.date(2024, 1, 17)


class RecordingNotifier:
    def __init__(self) -> None:
        self.calls: list[tuple[Decimal, Decimal]] = []

    def notify_deficit(self, remaining: Decimal, total_spent: Decimal) -> None:
        self.calls.append((remaining, total_spent))


class FailingExpenseStore(ExpenseStore):
    def save(self, expenses):  # type: ignore[no-untyped-def]
        raise PersistenceFailure("disk full")


def _png() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (32, 32), color=(10, 120, 200)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def data_paths(tmp_path: Path) -> ProjectPaths:
    paths = ProjectPaths(tmp_path / "data")
    paths.ensure_directories()
    return paths


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_service(data_paths: ProjectPaths, clock, notifier: RecordingNotifier):
    services: list[BudgetService] = []

    def _make(**overrides) -> BudgetService:
        kwargs = {
            "expense_store": ExpenseStore(data_paths.expenses),
            "allowance_store": AllowanceStore(data_paths.daily_limits),
            "achievement_store": AchievementStore(data_paths.achievements),
            "vendor_store": VendorUsageStore(data_paths.vendor_usage),
            "settings_store": KeyValueStore(data_paths.settings),
            "receipt_store": ReceiptFileStore(data_paths.receipts, min_free_bytes=0),
            "config": BudgetConfig(),
            "reminder_scheduler": LoggingReminderScheduler(),
            "deficit_notifier": notifier,
            "clock": clock,
        }
        kwargs.update(overrides)
        service = BudgetService(**kwargs)
        services.append(service)
        return service

    yield _make
    for service in services:
        service.close()


def test_add_expense_updates_state_and_persists(make_service, data_paths: ProjectPaths) -> None:
    service = make_service()
    service.record_allowance(20, TODAY - dt.timedelta(days=2)).wait()

    result = service.add_expense("Cafe", "4.50", category=ExpenseCategory.FOOD)

    assert result.expense is not None
    assert result.expense.date == dt.datetime(2024, 1, 17, 9, 30)
    assert result.state.daily_limit == Decimal("20")
    assert result.state.rollover == Decimal("40")
    assert result.state.remaining == Decimal("55.50")
    result.wait()
    assert [e.vendor for e in ExpenseStore(data_paths.expenses).load()] == ["Cafe"]
    assert VendorUsageStore(data_paths.vendor_usage).load()[0].vendor == "Cafe"


def test_deficit_is_notified_once_when_crossing_zero(make_service, notifier: RecordingNotifier) -> None:
    service = make_service()
    service.record_allowance(10, TODAY)

    service.add_expense("A", 8, category=ExpenseCategory.OTHER)
    assert notifier.calls == []

    result = service.add_expense("B", 5, category=ExpenseCategory.OTHER)
    assert result.state.status is BudgetStatus.OVER_LIMIT
    assert notifier.calls == [(Decimal("-3"), Decimal("13"))]

    service.add_expense("C", 1, category=ExpenseCategory.OTHER)
    assert len(notifier.calls) == 1


def test_expense_on_past_day_does_not_notify_for_today(make_service, notifier: RecordingNotifier) -> None:
    service = make_service()
    service.record_allowance(10, TODAY - dt.timedelta(days=3))

    service.add_expense("Old", 4, category=ExpenseCategory.OTHER, date=dt.datetime(2024, 1, 15, 12))

    assert notifier.calls == []
    assert service.budget_state().rollover == Decimal("26")


def test_category_is_guessed_from_vendor(make_service) -> None:
    service = make_service()

    first = service.add_expense("Uber Eats", 12)
    second = service.add_expense("Mystery Shop", 3)

    assert first.expense is not None and first.expense.category is ExpenseCategory.FOOD
    assert second.expense is not None and second.expense.category is ExpenseCategory.OTHER
    assert service.category_hint("uber eats") is ExpenseCategory.FOOD
    assert service.suggested_vendors(limit=2) == ["Mystery Shop", "Uber Eats"]
    assert {u.vendor for u in service.top_vendors()} == {"Uber Eats", "Mystery Shop"}


def test_invalid_expense_changes_nothing(make_service) -> None:
    service = make_service()

    with pytest.raises(InvalidExpense):
        service.add_expense("  ", 5)
    with pytest.raises(InvalidAmount):
        service.add_expense("Shop", "lots")
    assert service.expenses() == []


def test_failed_write_keeps_memory_state(make_service, data_paths: ProjectPaths) -> None:
    service = make_service(expense_store=FailingExpenseStore(data_paths.expenses))

    result = service.add_expense("Cafe", 3, category=ExpenseCategory.FOOD)

    with pytest.raises(PersistenceFailure):
        result.wait()
    assert [e.vendor for e in service.expenses()] == ["Cafe"]
    assert service.budget_state().total_spent == Decimal("3")


def test_remove_expense_deletes_receipt(make_service) -> None:
    service = make_service()
    expense = service.add_expense("Target", 30, category=ExpenseCategory.SHOPPING).expense
    assert expense is not None

    attached = service.attach_receipt(expense.id, _png())
    assert attached.expense is not None and attached.expense.has_receipt
    assert service.receipt_store.exists(expense.id)

    result = service.remove_expense(expense.id)
    result.wait()

    assert result.expense is not None and result.expense.id == expense.id
    assert service.expenses() == []
    assert not service.receipt_store.exists(expense.id)


def test_remove_missing_expense_is_a_no_op(make_service) -> None:
    service = make_service()
    service.add_expense("Cafe", 3, category=ExpenseCategory.FOOD)

    result = service.remove_expense(uuid.uuid4())

    assert result.expense is None
    assert result.persisted.done()
    assert len(service.expenses()) == 1


def test_receipt_lifecycle(make_service) -> None:
    service = make_service()
    expense = service.add_expense("Cafe", 3, category=ExpenseCategory.FOOD).expense
    assert expense is not None

    with pytest.raises(ReceiptNotFound):
        service.attach_receipt(uuid.uuid4(), _png())

    service.attach_receipt(expense.id, _png())
    assert service.load_receipt(expense.id)[:2] == b"\xff\xd8"

    result = service.delete_receipt(expense.id)
    assert result.expense is not None and not result.expense.has_receipt
    with pytest.raises(ReceiptNotFound):
        service.load_receipt(expense.id)


def test_state_survives_reload(make_service, clock) -> None:
    service = make_service()
    service.record_allowance(15, TODAY - dt.timedelta(days=1))
    service.add_expense("Lyft", "9.25", category=ExpenseCategory.TRANSPORTATION)
    service.set_period(BudgetPeriod.WEEKLY)
    service.flush()

    reloaded = make_service()

    assert [e.vendor for e in reloaded.expenses()] == ["Lyft"]
    assert reloaded.period is BudgetPeriod.WEEKLY
    assert reloaded.settings.tracking_start == TODAY - dt.timedelta(days=1)
    assert reloaded.budget_state() == service.budget_state()
    assert reloaded.tracker.category_for("lyft") is ExpenseCategory.TRANSPORTATION


def test_first_allowance_sets_tracking_start(make_service) -> None:
    service = make_service()

    service.record_allowance(10, dt.date(2024, 1, 10))
    service.record_allowance(12, dt.date(2024, 1, 12))
    assert service.settings.tracking_start == dt.date(2024, 1, 10)

    service.record_allowance(8, dt.date(2024, 1, 5))
    assert service.settings.tracking_start == dt.date(2024, 1, 5)


def test_set_allowance_uses_active_period_units(make_service, data_paths: ProjectPaths) -> None:
    service = make_service()
    service.set_period(BudgetPeriod.WEEKLY)
    assert service.history.is_empty

    service.set_allowance("140").wait()

    assert service.history.allowance_for(TODAY) == Decimal("20")
    assert service.display_allowance() == Decimal("140.00")
    assert service.display_allowance(BudgetPeriod.DAILY) == Decimal("20.00")
    assert json.loads(data_paths.daily_limits.read_text()) == [{"date": "2024-01-17", "dailyLimit": "20"}]


def test_set_allowance_rejects_negative(make_service) -> None:
    service = make_service()

    with pytest.raises(InvalidAmount):
        service.set_allowance(-5)
    assert service.history.is_empty


def test_period_switch_keeps_allowance_when_unchanged(make_service, data_paths: ProjectPaths) -> None:
    service = make_service()
    service.record_allowance(10, dt.date(2024, 1, 1))

    service.set_period(BudgetPeriod.WEEKLY)
    service.set_period(BudgetPeriod.MONTHLY).wait()

    assert len(service.history) == 1
    assert service.period is BudgetPeriod.MONTHLY
    assert service.display_allowance() == Decimal("310.00")
    assert json.loads(data_paths.settings.read_text())["budgetPeriod"] == "Monthly"


def test_period_switch_rerecords_when_per_day_cents_change(make_service, clock, data_paths: ProjectPaths) -> None:
    # April has 30 days: 10.0049 * 30 = 300.147 shows as 300.15, which is 10.005 per day
    clock.now = dt.datetime(2024, 4, 10, 9, 0)
    service = make_service()
    service.record_allowance("10.0049", dt.date(2024, 4, 1))

    service.set_period(BudgetPeriod.MONTHLY).wait()

    assert len(service.history) == 2
    assert service.history.allowance_for(dt.date(2024, 4, 9)) == Decimal("10.0049")
    assert service.history.allowance_for(dt.date(2024, 4, 10)) == Decimal("10.005")
    assert service.display_allowance() == Decimal("300.15")
    saved = json.loads(data_paths.daily_limits.read_text())
    assert saved[-1] == {"date": "2024-04-10", "dailyLimit": "10.005"}


def test_period_remaining_follows_active_period(make_service) -> None:
    service = make_service()
    service.record_allowance(20, dt.date(2024, 1, 15))
    service.add_expense("Cafe", 6, category=ExpenseCategory.FOOD)

    assert service.period_remaining() == Decimal("14")
    service.set_period(BudgetPeriod.WEEKLY)
    # Wednesday through Sunday
    assert service.period_remaining() == Decimal("20") * 5 - Decimal("6")


def test_reminder_toggles(make_service, data_paths: ProjectPaths) -> None:
    scheduler = LoggingReminderScheduler()
    service = make_service(reminder_scheduler=scheduler)

    service.set_reminders(morning=True, end_of_day=False).wait()

    assert scheduler.scheduled == {"morning-reminder": dt.time(8, 0)}
    saved = json.loads(data_paths.settings.read_text())
    assert saved["morningReminders"] is True
    assert saved["endOfDaySummary"] is False


def test_preferences_are_saved(make_service, data_paths: ProjectPaths) -> None:
    service = make_service()

    service.set_preset_amounts(["3", 7, "-12"])
    service.set_receipt_storage_enabled(True)
    service.set_category_names({ExpenseCategory.FOOD: "Snacks"}).wait()

    saved = json.loads(data_paths.settings.read_text())
    assert saved["presetAmounts"] == ["3", "7", "12"]
    assert saved["receiptStorageEnabled"] is True
    assert saved["categoryDisplayNames"] == {"Food": "Snacks"}

    service.reset_category_names().wait()
    assert json.loads(data_paths.settings.read_text())["categoryDisplayNames"] == {}


def test_achievements_unlock_once(make_service, data_paths: ProjectPaths) -> None:
    service = make_service()
    service.record_allowance(20, TODAY - dt.timedelta(days=6))

    result = service.unlock_achievements()
    result.wait()

    assert {a.type for a in result.achievements} == set(AchievementType)
    assert len(json.loads(data_paths.achievements.read_text())) == 5
    assert service.unlock_achievements().achievements == []


def test_listeners_receive_state(make_service) -> None:
    service = make_service()
    seen: list[DailyBudgetState] = []
    service.add_listener(seen.append)

    service.record_allowance(10, TODAY)
    service.add_expense("Cafe", 2, category=ExpenseCategory.FOOD)
    service.remove_listener(seen.append)
    service.add_expense("Cafe", 2, category=ExpenseCategory.FOOD)

    assert [s.remaining for s in seen] == [Decimal("10"), Decimal("8")]


def test_open_reads_config_from_data_directory(tmp_path: Path, clock) -> None:
    root = tmp_path / "home"
    root.mkdir()
    (root / "config.toml").write_text('[budget]\ndefault_daily_allowance = "30"\n')

    with BudgetService.open(ProjectPaths(root), clock=clock) as service:
        assert service.config.default_daily_allowance == Decimal("30")
        assert service.budget_state().daily_limit == Decimal("30")
        assert service.expense_store.path == ProjectPaths(root).expenses


def test_open_survives_malformed_saved_data(tmp_path: Path, clock) -> None:
    root = tmp_path / "home"
    root.mkdir()
    (root / "settings.json").write_text(json.dumps({"categoryDisplayNames": ["Food"], "presetAmounts": 5}))
    (root / "daily_limits.json").write_text(json.dumps([{"date": "2024-01-01", "dailyLimit": "-10"}]))

    with BudgetService.open(ProjectPaths(root), clock=clock) as service:
        assert service.settings.category_display_names == {}
        assert service.history.is_empty
        assert service.budget_state().daily_limit == Decimal("25")


def test_metrics_and_summaries(make_service) -> None:
    service = make_service()
    service.record_allowance(10, TODAY - dt.timedelta(days=1))
    service.add_expense("Cafe", 4, category=ExpenseCategory.FOOD)

    metrics = service.metrics()
    summary = service.monthly_summary()

    assert metrics.piggy_bank_total == Decimal("16")
    assert metrics.current_positive_streak == 2
    assert summary.total_spent == Decimal("4")
    assert [s.day for s in service.history_sections()] == [TODAY]
    assert service.ending_balance() == Decimal("16")
    assert service.rollover_amount() == Decimal("10")
