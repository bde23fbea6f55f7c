"""Budget command handlers used by the unified CLI."""

from __future__ import annotations

import argparse
import datetime as dt
import uuid
from collections.abc import Callable
from decimal import Decimal
from pathlib import Path

from busybee.application.budget import BudgetService
from busybee.application.export import export_day_history
from busybee.domain.errors import BusyBeeError, InvalidExpense
from busybee.domain.ledger import Expense, ExpenseCategory
from busybee.domain.money import format_currency
from busybee.domain.periods import BudgetPeriod
from busybee.domain.summary import HistoryFilter
from busybee.domain.voice import parse_voice_expense
from busybee.runtime import get_logger
from busybee.runtime.paths import ProjectPaths

logger = get_logger(__name__)

SHORT_ID_LENGTH = 8


class ConsoleDeficitNotifier:
    def notify_deficit(self, remaining: Decimal, total_spent: Decimal) -> None:
        print(
            f"Heads up: you are {format_currency(-remaining)} over budget today "
            f"(spent {format_currency(total_spent)})."
        )


def parse_day(raw: str) -> dt.date:
    try:
        return dt.date.fromisoformat(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid date (expected YYYY-MM-DD): {raw}") from exc


def parse_timestamp(raw: str) -> dt.datetime:
    """YYYY-MM-DD (noon that day) or a full ISO timestamp."""
    try:
        if "T" in raw or " " in raw:
            return dt.datetime.fromisoformat(raw)
        return dt.datetime.combine(dt.date.fromisoformat(raw), dt.time(12, 0))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid date (expected YYYY-MM-DD[THH:MM]): {raw}") from exc


def parse_category(raw: str) -> ExpenseCategory:
    try:
        return ExpenseCategory.parse(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def parse_toggle(raw: str) -> bool:
    value = raw.strip().lower()
    if value in ("on", "yes", "true", "1"):
        return True
    if value in ("off", "no", "false", "0"):
        return False
    raise argparse.ArgumentTypeError(f"Expected on/off: {raw}")


def resolve_expense_id(service: BudgetService, raw: str) -> uuid.UUID:
    """Accept a full id or a unique prefix of one."""
    prefix = raw.strip().lower()
    matches = [e.id for e in service.expenses() if str(e.id).startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise InvalidExpense(f"No expense matches id {raw!r}")
    raise InvalidExpense(f"Ambiguous expense id {raw!r} ({len(matches)} matches)")


def _expense_line(expense: Expense, service: BudgetService) -> str:
    receipt = " [receipt]" if expense.has_receipt else ""
    notes = f" ({expense.notes})" if expense.notes else ""
    return (
        f"  {str(expense.id)[:SHORT_ID_LENGTH]}  {expense.date.strftime('%H:%M')}  "
        f"{expense.vendor:<20} {format_currency(expense.amount):>10}  "
        f"{service.settings.display_name(expense.category)}{notes}{receipt}"
    )


def cmd_status(args: argparse.Namespace, service: BudgetService) -> int:
    day = args.date or service.today()
    state = service.budget_state(day)
    period = service.period

    print(f"Budget for {day.isoformat()}")
    print(f"  Daily limit:  {format_currency(state.daily_limit)}")
    print(f"  Rollover:     {format_currency(state.rollover)}")
    print(f"  Spent:        {format_currency(state.total_spent)}")
    print(f"  Remaining:    {format_currency(state.remaining)}  ({state.status.value})")
    if period is not BudgetPeriod.DAILY:
        remaining = service.period_remaining(day, period)
        print(f"  {period.value} remaining: {format_currency(remaining)}")
    return 0


def cmd_add(args: argparse.Namespace, service: BudgetService) -> int:
    result = service.add_expense(
        args.vendor,
        args.amount,
        category=args.category,
        notes=args.notes,
        date=args.date,
    )
    expense = result.expense
    assert expense is not None
    print(
        f"Added {format_currency(expense.amount)} at {expense.vendor} "
        f"({service.settings.display_name(expense.category)}) id={str(expense.id)[:SHORT_ID_LENGTH]}"
    )
    print(f"Remaining today: {format_currency(result.state.remaining)} ({result.state.status.value})")
    return 0


def cmd_remove(args: argparse.Namespace, service: BudgetService) -> int:
    expense_id = resolve_expense_id(service, args.expense_id)
    result = service.remove_expense(expense_id)
    if result.expense is not None:
        print(f"Removed {result.expense.vendor} {format_currency(result.expense.amount)}")
    print(f"Remaining today: {format_currency(result.state.remaining)}")
    return 0


def cmd_list(args: argparse.Namespace, service: BudgetService) -> int:
    history_filter = HistoryFilter(args.filter.title()) if args.filter else None
    sections = service.history_sections(history_filter)
    if not sections:
        print("No expenses.")
        return 0
    for section in sections:
        print(f"{section.day.isoformat()}  total {format_currency(section.total)}")
        for expense in section.items:
            print(_expense_line(expense, service))
    return 0


def cmd_allowance(args: argparse.Namespace, service: BudgetService) -> int:
    period = service.period
    if args.amount is not None:
        service.set_allowance(args.amount)
    amount = service.display_allowance(period)
    print(f"Allowance: {format_currency(amount)} {period.display_name.lower()}")
    return 0


def cmd_period(args: argparse.Namespace, service: BudgetService) -> int:
    if args.period is not None:
        service.set_period(BudgetPeriod.parse(args.period))
    period = service.period
    amount = format_currency(service.display_allowance(period))
    print(f"Budget period: {period.value} ({amount} {period.display_name.lower()})")
    return 0


def cmd_summary(args: argparse.Namespace, service: BudgetService) -> int:
    metrics = service.metrics()
    print(f"Piggy bank:        {format_currency(metrics.piggy_bank_total)}")
    print(f"Current streak:    {metrics.current_positive_streak} day(s)")
    print(f"Days under budget: {metrics.days_with_credit}/{len(metrics.day_stats)} ({metrics.success_rate:.0%})")
    print(f"Average saved:     {format_currency(metrics.average_saved)} per day")
    if metrics.period is not BudgetPeriod.DAILY:
        goal = "met" if metrics.period_goal_met else "over"
        print(f"{metrics.period.value} goal:       {goal} (streak {metrics.period_streak})")

    result = service.unlock_achievements()
    for achievement in result.achievements:
        print(f"Unlocked: {achievement.type.emoji} {achievement.type.title}")
    return 0


def cmd_achievements(args: argparse.Namespace, service: BudgetService) -> int:
    if not service.unlocked:
        print("No achievements yet.")
        return 0
    for achievement in service.unlocked:
        print(f"{achievement.type.emoji} {achievement.type.title}  ({achievement.awarded_date.date().isoformat()})")
    return 0


def cmd_month(args: argparse.Namespace, service: BudgetService) -> int:
    if args.month:
        try:
            day = dt.date.fromisoformat(f"{args.month}-01")
        except ValueError:
            print(f"Error: invalid month (expected YYYY-MM): {args.month}")
            return 1
    else:
        day = service.today()
    summary = service.monthly_summary(day)
    print(f"{day.strftime('%B %Y')}: spent {format_currency(summary.total_spent)}")
    print(f"Daily average: {format_currency(summary.daily_average)}")
    for total in summary.category_totals:
        print(f"  {service.settings.display_name(total.category):<16} {format_currency(total.amount):>10}")
    return 0


def cmd_vendors(args: argparse.Namespace, service: BudgetService) -> int:
    for vendor in service.suggested_vendors(limit=args.limit):
        print(f"{vendor}  ({service.settings.display_name(service.category_hint(vendor))})")
    return 0


def cmd_voice(args: argparse.Namespace, service: BudgetService) -> int:
    parsed = parse_voice_expense(args.text, service.settings.category_display_names)
    amount = format_currency(parsed.amount) if parsed.amount is not None else "?"
    category = parsed.category
    if category is None and parsed.vendor:
        category = service.category_hint(parsed.vendor)
    print(f"Amount: {amount}")
    print(f"Vendor: {parsed.vendor or '?'}")
    print(f"Category: {service.settings.display_name(category) if category else '?'}")

    if not args.add:
        return 0
    if not parsed.is_complete:
        print("Error: could not understand both an amount and a vendor.")
        return 1
    assert parsed.amount is not None and parsed.vendor is not None
    result = service.add_expense(parsed.vendor, parsed.amount, category=category)
    print(f"Added. Remaining today: {format_currency(result.state.remaining)}")
    return 0


def cmd_reminders(args: argparse.Namespace, service: BudgetService) -> int:
    if args.morning is not None or args.end_of_day is not None:
        service.set_reminders(morning=args.morning, end_of_day=args.end_of_day)
    print(f"Morning reminder: {'on' if service.settings.morning_reminders else 'off'}")
    print(f"End-of-day summary: {'on' if service.settings.end_of_day_summary else 'off'}")
    return 0


def cmd_receipt(args: argparse.Namespace, service: BudgetService) -> int:
    expense_id = resolve_expense_id(service, args.expense_id)
    if args.receipt_command == "attach":
        image_path = Path(args.image)
        if not image_path.exists():
            print(f"Error: image not found: {image_path}")
            return 1
        service.attach_receipt(expense_id, image_path.read_bytes())
        print(f"Attached receipt to {str(expense_id)[:SHORT_ID_LENGTH]}")
    elif args.receipt_command == "export":
        output = Path(args.output)
        output.write_bytes(service.load_receipt(expense_id))
        print(f"Wrote receipt to {output}")
    elif args.receipt_command == "delete":
        service.delete_receipt(expense_id)
        print(f"Deleted receipt for {str(expense_id)[:SHORT_ID_LENGTH]}")
    return 0


def cmd_export_history(args: argparse.Namespace, service: BudgetService) -> int:
    result = export_day_history(service.metrics(), Path(args.output))
    print(f"Wrote {result.rows} day(s) to {result.path}")
    return 0


def open_service(data_paths: ProjectPaths) -> BudgetService | None:
    """Open the data directory, printing the problem if its config is unusable."""
    try:
        return BudgetService.open(data_paths, deficit_notifier=ConsoleDeficitNotifier())
    except (BusyBeeError, ValueError, OSError) as exc:
        logger.debug("Could not open %s", data_paths.root, exc_info=True)
        print(f"Error: could not open {data_paths.root}: {exc}")
        return None


def run_command(
    handler: Callable[[argparse.Namespace, BudgetService], int],
    args: argparse.Namespace,
    service: BudgetService,
) -> int:
    """Run a handler, turning domain errors into an exit code."""
    try:
        return handler(args, service)
    except BusyBeeError as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc}")
        return 1
