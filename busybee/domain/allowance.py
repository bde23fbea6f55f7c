"""Date-keyed history of the per-day allowance.

Changing the allowance never rewrites the past: each change is recorded as a
new entry effective from its day, and a day's allowance is the latest entry
on or before it.
"""

from __future__ import annotations

import bisect
import datetime as dt
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from busybee.domain.errors import InvalidAmount
from busybee.domain.money import ZERO, coerce_amount

DEFAULT_DAILY_ALLOWANCE = Decimal("25")


@dataclass(frozen=True)
class AllowanceEntry:
    effective_date: dt.date
    daily_amount: Decimal


def as_day(value: dt.date) -> dt.date:
    # datetime is a date subclass; truncate it
    if isinstance(value, dt.datetime):
        return value.date()
    return value


class AllowanceHistory:
    """Entries kept sorted ascending, at most one per day.

    Raises:
        InvalidAmount: If a seed entry carries a negative amount.
    """

    def __init__(
        self,
        entries: Iterable[AllowanceEntry] = (),
        default_amount: Decimal = DEFAULT_DAILY_ALLOWANCE,
    ) -> None:
        self.default_amount = default_amount
        self._entries: list[AllowanceEntry] = []
        for entry in sorted(entries, key=lambda e: e.effective_date):
            if entry.daily_amount < 0:
                raise InvalidAmount(f"Allowance must not be negative: {entry.daily_amount}")
            self._upsert(AllowanceEntry(as_day(entry.effective_date), entry.daily_amount))

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def is_empty(self) -> bool:
        return not self._entries

    def entries(self) -> list[AllowanceEntry]:
        return list(self._entries)

    def record(self, amount: Decimal | int | float | str, day: dt.date) -> AllowanceEntry:
        """Set the allowance in effect from ``day`` on.

        Replaces any entry already recorded for that exact day.

        Raises:
            InvalidAmount: If the amount is negative or not a finite number.
        """
        value = coerce_amount(amount)
        if value < 0:
            raise InvalidAmount(f"Allowance must not be negative: {value}")
        entry = AllowanceEntry(effective_date=as_day(day), daily_amount=value)
        self._upsert(entry)
        return entry

    def _upsert(self, entry: AllowanceEntry) -> None:
        days = [e.effective_date for e in self._entries]
        idx = bisect.bisect_left(days, entry.effective_date)
        if idx < len(self._entries) and self._entries[idx].effective_date == entry.effective_date:
            self._entries[idx] = entry
        else:
            self._entries.insert(idx, entry)

    def earliest_day(self) -> dt.date | None:
        if not self._entries:
            return None
        return self._entries[0].effective_date

    def allowance_for(self, day: dt.date) -> Decimal:
        """Allowance in effect on ``day``.

        - No history at all: the default amount.
        - Before the first entry: zero, so days before tracking started are
          never credited.
        - Otherwise: the latest entry on or before ``day``.
        """
        if not self._entries:
            return self.default_amount

        day = as_day(day)
        if day < self._entries[0].effective_date:
            return ZERO

        days = [e.effective_date for e in self._entries]
        idx = bisect.bisect_right(days, day)
        if idx == 0:
            return self._entries[0].daily_amount
        return self._entries[idx - 1].daily_amount
