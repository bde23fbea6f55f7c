"""JSON file storage for expenses, allowance history, achievements and vendors.

Each store overwrites its whole file on save: the payload goes to a temporary
file in the same directory which then replaces the target, so a crash never
leaves a half-written file behind.

Loading is forgiving: a missing or unreadable file loads as empty (with a
warning) so the app always starts. Saving raises PersistenceFailure.
"""

from __future__ import annotations

import datetime as dt
import json
import os
import tempfile
import uuid
from decimal import InvalidOperation
from pathlib import Path
from typing import Any

from busybee.domain.achievements import Achievement, AchievementType
from busybee.domain.allowance import AllowanceEntry
from busybee.domain.errors import PersistenceFailure
from busybee.domain.ledger import Expense, ExpenseCategory
from busybee.domain.money import coerce_amount
from busybee.domain.vendors import VendorUsage
from busybee.runtime.logging import get_logger
from busybee.runtime.paths import get_paths

logger = get_logger(__name__)


def write_json_atomic(path: Path, payload: Any) -> None:
    """Serialize ``payload`` and atomically replace ``path`` with it.

    Raises:
        PersistenceFailure: If the directory or file cannot be written.
    """
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_name = f.name
            json.dump(payload, f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except (OSError, TypeError, ValueError) as exc:
        raise PersistenceFailure(f"Failed to write {path}: {exc}") from exc
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)


def read_json(path: Path) -> Any | None:
    """Parse ``path``; None if it does not exist.

    Raises:
        PersistenceFailure: If the file exists but cannot be read or parsed.
    """
    if not path.exists():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as exc:
        raise PersistenceFailure(f"Failed to read {path}: {exc}") from exc


# --- Record codecs ---


def expense_to_record(expense: Expense) -> dict[str, Any]:
    return {
        "id": str(expense.id),
        "vendor": expense.vendor,
        "amount": str(expense.amount),
        "category": expense.category.value,
        "date": expense.date.isoformat(),
        "notes": expense.notes,
        "hasReceipt": expense.has_receipt,
    }


def expense_from_record(record: dict[str, Any]) -> Expense:
    """Decode one expense record. ``hasReceipt`` is optional in older files."""
    return Expense(
        id=uuid.UUID(record["id"]),
        vendor=record["vendor"],
        amount=abs(coerce_amount(str(record["amount"]))),
        category=ExpenseCategory(record["category"]),
        date=dt.datetime.fromisoformat(record["date"]),
        notes=record.get("notes"),
        has_receipt=bool(record.get("hasReceipt", False)),
    )


def allowance_to_record(entry: AllowanceEntry) -> dict[str, Any]:
    return {"date": entry.effective_date.isoformat(), "dailyLimit": str(entry.daily_amount)}


def allowance_from_record(record: dict[str, Any]) -> AllowanceEntry:
    raw_date = record["date"]
    # Older files stored full timestamps; keep only the day
    day = dt.datetime.fromisoformat(raw_date).date() if "T" in raw_date else dt.date.fromisoformat(raw_date)
    return AllowanceEntry(effective_date=day, daily_amount=coerce_amount(str(record["dailyLimit"])))


def achievement_to_record(achievement: Achievement) -> dict[str, Any]:
    return {
        "id": str(achievement.id),
        "type": achievement.type.value,
        "awardedDate": achievement.awarded_date.isoformat(),
    }


def achievement_from_record(record: dict[str, Any]) -> Achievement:
    return Achievement(
        id=uuid.UUID(record["id"]),
        type=AchievementType(record["type"]),
        awarded_date=dt.datetime.fromisoformat(record["awardedDate"]),
    )


def vendor_usage_to_record(usage: VendorUsage) -> dict[str, Any]:
    return {
        "id": str(usage.id),
        "vendor": usage.vendor,
        "category": usage.category.value,
        "usageCount": usage.usage_count,
        "lastUsed": usage.last_used.isoformat(),
    }


def vendor_usage_from_record(record: dict[str, Any]) -> VendorUsage:
    return VendorUsage(
        id=uuid.UUID(record["id"]),
        vendor=record["vendor"],
        category=ExpenseCategory(record["category"]),
        usage_count=int(record["usageCount"]),
        last_used=dt.datetime.fromisoformat(record["lastUsed"]),
    )


_DECODE_ERRORS = (KeyError, TypeError, ValueError, InvalidOperation, AttributeError)


class _ListStore:
    """A JSON file holding a list of records."""

    label = "records"

    def __init__(self, path: Path) -> None:
        self.path = path

    def _load_records(self) -> list[dict[str, Any]]:
        try:
            data = read_json(self.path)
        except PersistenceFailure as exc:
            logger.warning("Treating %s as empty: %s", self.label, exc)
            return []
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning("Treating %s as empty: %s does not hold a list", self.label, self.path)
            return []
        return data

    def _save_records(self, records: list[dict[str, Any]]) -> None:
        write_json_atomic(self.path, records)
        logger.debug("Saved %d %s to %s", len(records), self.label, self.path)


class ExpenseStore(_ListStore):
    label = "expenses"

    def __init__(self, path: Path | None = None) -> None:
        super().__init__(path or get_paths().expenses)

    def load(self) -> list[Expense]:
        records = self._load_records()
        try:
            return [expense_from_record(r) for r in records]
        except _DECODE_ERRORS as exc:
            logger.warning("Treating expenses as empty: malformed record in %s: %s", self.path, exc)
            return []

    def save(self, expenses: list[Expense]) -> None:
        self._save_records([expense_to_record(e) for e in expenses])


class AllowanceStore(_ListStore):
    label = "allowance entries"

    def __init__(self, path: Path | None = None) -> None:
        super().__init__(path or get_paths().daily_limits)

    def load(self) -> list[AllowanceEntry]:
        records = self._load_records()
        try:
            entries = [allowance_from_record(r) for r in records]
        except _DECODE_ERRORS as exc:
            logger.warning("Treating allowance history as empty: malformed record in %s: %s", self.path, exc)
            return []
        valid = [e for e in entries if e.daily_amount >= 0]
        if len(valid) < len(entries):
            logger.warning("Dropped %d negative allowance entries from %s", len(entries) - len(valid), self.path)
        return sorted(valid, key=lambda e: e.effective_date)

    def save(self, entries: list[AllowanceEntry]) -> None:
        ordered = sorted(entries, key=lambda e: e.effective_date)
        self._save_records([allowance_to_record(e) for e in ordered])


class AchievementStore(_ListStore):
    label = "achievements"

    def __init__(self, path: Path | None = None) -> None:
        super().__init__(path or get_paths().achievements)

    def load(self) -> list[Achievement]:
        records = self._load_records()
        try:
            return [achievement_from_record(r) for r in records]
        except _DECODE_ERRORS as exc:
            logger.warning("Treating achievements as empty: malformed record in %s: %s", self.path, exc)
            return []

    def save(self, achievements: list[Achievement]) -> None:
        self._save_records([achievement_to_record(a) for a in achievements])


class VendorUsageStore(_ListStore):
    label = "vendor usages"

    def __init__(self, path: Path | None = None) -> None:
        super().__init__(path or get_paths().vendor_usage)

    def load(self) -> list[VendorUsage]:
        records = self._load_records()
        try:
            return [vendor_usage_from_record(r) for r in records]
        except _DECODE_ERRORS as exc:
            logger.warning("Treating vendor usage as empty: malformed record in %s: %s", self.path, exc)
            return []

    def save(self, usages: list[VendorUsage]) -> None:
        ordered = sorted(usages, key=lambda u: u.vendor.lower())
        self._save_records([vendor_usage_to_record(u) for u in ordered])


class KeyValueStore:
    """Flat JSON object of preferences, saved on every change."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or get_paths().settings
        self._values: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        try:
            data = read_json(self.path)
        except PersistenceFailure as exc:
            logger.warning("Treating settings as empty: %s", exc)
            return {}
        if not isinstance(data, dict):
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Store a value; the file is rewritten before returning.

        The in-memory value is kept even when the write fails.
        """
        self._values[key] = value
        write_json_atomic(self.path, self._values)

    def update(self, values: dict[str, Any]) -> None:
        """Store several values with a single write."""
        self._values.update(values)
        write_json_atomic(self.path, self._values)

    def remove(self, key: str) -> None:
        if key in self._values:
            del self._values[key]
            write_json_atomic(self.path, self._values)

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)
