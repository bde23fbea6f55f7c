"""Vendor usage tracking, suggestions and category hints."""

from __future__ import annotations

import datetime as dt
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from busybee.domain.ledger import Expense, ExpenseCategory

DEFAULT_VENDORS = (
    "DoorDash",
    "Amazon",
    "Uber",
    "Lyft",
    "Starbucks",
    "Target",
    "Trader Joe's",
    "Whole Foods",
    "Sephora",
    "Netflix",
)

# (uppercase keywords, category) pairs, first match wins
VendorRules = Sequence[tuple[tuple[str, ...], ExpenseCategory]]


def _key(vendor: str) -> str:
    return vendor.strip().lower()


@dataclass(frozen=True)
class VendorUsage:
    vendor: str
    category: ExpenseCategory
    usage_count: int = 1
    last_used: dt.datetime = field(default_factory=dt.datetime.now)
    id: uuid.UUID = field(default_factory=uuid.uuid4)


class VendorTracker:
    """Usage counts per vendor, keyed case-insensitively."""

    def __init__(self, usages: Iterable[VendorUsage] = ()) -> None:
        self._usages: dict[str, VendorUsage] = {}
        for usage in usages:
            self._usages[_key(usage.vendor)] = usage

    def usages(self) -> list[VendorUsage]:
        return list(self._usages.values())

    def record_usage(
        self,
        vendor: str,
        category: ExpenseCategory,
        used_at: dt.datetime | None = None,
    ) -> VendorUsage:
        """Bump the count for ``vendor``; the first category seen sticks."""
        name = vendor.strip()
        when = used_at if used_at is not None else dt.datetime.now()
        existing = self._usages.get(_key(name))
        if existing is None:
            usage = VendorUsage(vendor=name, category=category, usage_count=1, last_used=when)
        else:
            usage = VendorUsage(
                vendor=name,
                category=existing.category,
                usage_count=existing.usage_count + 1,
                last_used=when,
                id=existing.id,
            )
        self._usages[_key(name)] = usage
        return usage

    def category_for(self, vendor: str) -> ExpenseCategory | None:
        usage = self._usages.get(_key(vendor))
        return usage.category if usage else None

    def is_known(self, vendor: str) -> bool:
        return _key(vendor) in self._usages

    def top_vendors(self, limit: int = 6) -> list[VendorUsage]:
        ranked = sorted(self._usages.values(), key=lambda u: (-u.usage_count, -u.last_used.timestamp()))
        return ranked[:limit]


def suggested_vendors(
    expenses: Iterable[Expense],
    limit: int = 6,
    defaults: Sequence[str] = DEFAULT_VENDORS,
) -> list[str]:
    """Distinct vendors from the given expenses (most recent first), padded with defaults."""
    seen: set[str] = set()
    suggestions: list[str] = []

    for expense in sorted(expenses, key=lambda e: e.date, reverse=True):
        key = _key(expense.vendor)
        if not key or key in seen:
            continue
        seen.add(key)
        suggestions.append(expense.vendor)
        if len(suggestions) >= limit:
            return suggestions

    for vendor in defaults:
        if _key(vendor) in seen:
            continue
        seen.add(_key(vendor))
        suggestions.append(vendor)
        if len(suggestions) >= limit:
            break
    return suggestions


def match_vendor_rule(vendor: str, rules: VendorRules) -> ExpenseCategory | None:
    vendor_upper = vendor.strip().upper()
    if not vendor_upper:
        return None
    for keywords, category in rules:
        if any(kw in vendor_upper for kw in keywords):
            return category
    return None


def category_hint(
    vendor: str,
    expenses: Iterable[Expense] = (),
    tracker: VendorTracker | None = None,
    rules: VendorRules = (),
) -> ExpenseCategory:
    """Best guess category for a vendor.

    Order: a past expense with the same vendor, the usage tracker, keyword
    rules, then Other.
    """
    key = _key(vendor)
    for expense in sorted(expenses, key=lambda e: e.date, reverse=True):
        if _key(expense.vendor) == key:
            return expense.category
    if tracker is not None:
        tracked = tracker.category_for(vendor)
        if tracked is not None:
            return tracked
    matched = match_vendor_rule(vendor, rules)
    if matched is not None:
        return matched
    return ExpenseCategory.OTHER
