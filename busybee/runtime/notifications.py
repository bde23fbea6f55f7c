"""Reminder and deficit notification collaborators.

Delivery belongs to the host platform. The defaults here only log, which is
what a headless install (and the CLI) wants.
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Protocol

from busybee.domain.money import format_currency
from busybee.runtime.logging import get_logger

logger = get_logger(__name__)

MORNING_REMINDER_TIME = dt.time(8, 0)
END_OF_DAY_SUMMARY_TIME = dt.time(20, 0)


class ReminderScheduler(Protocol):
    def set_morning_reminder(self, enabled: bool) -> None: ...

    def set_end_of_day_summary(self, enabled: bool) -> None: ...


class DeficitNotifier(Protocol):
    def notify_deficit(self, remaining: Decimal, total_spent: Decimal) -> None: ...


class LoggingReminderScheduler:
    """Keeps the requested schedule and logs changes."""

    def __init__(self) -> None:
        self.scheduled: dict[str, dt.time] = {}

    def _update(self, identifier: str, enabled: bool, at: dt.time) -> None:
        self.scheduled.pop(identifier, None)
        if not enabled:
            logger.info("Cancelled %s", identifier)
            return
        self.scheduled[identifier] = at
        logger.info("Scheduled %s daily at %s", identifier, at.strftime("%H:%M"))

    def set_morning_reminder(self, enabled: bool) -> None:
        self._update("morning-reminder", enabled, MORNING_REMINDER_TIME)

    def set_end_of_day_summary(self, enabled: bool) -> None:
        self._update("end-of-day-summary", enabled, END_OF_DAY_SUMMARY_TIME)


class LoggingDeficitNotifier:
    def notify_deficit(self, remaining: Decimal, total_spent: Decimal) -> None:
        logger.warning(
            "Over budget today: remaining %s after spending %s",
            format_currency(remaining),
            format_currency(total_spent),
        )
