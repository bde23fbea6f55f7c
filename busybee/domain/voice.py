"""Parse a free-text (dictated) expense such as "12.50 at Starbucks - Food"."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from busybee.domain.ledger import ExpenseCategory

_NUMBER_RE = re.compile(r"\$?\s*([0-9]+(?:\.[0-9]{1,2})?)")
_DOLLARS_CENTS_RE = re.compile(
    r"([0-9]+)\s+(?:dollar|dollars|buck|bucks)(?:[^0-9]+([0-9]{1,2})\s+(?:cent|cents))?",
    re.IGNORECASE,
)
_AT_RE = re.compile(r"\s+at\s+", re.IGNORECASE)


@dataclass
class ParsedVoiceExpense:
    amount: Decimal | None = None
    vendor: str | None = None
    category: ExpenseCategory | None = None

    @property
    def is_complete(self) -> bool:
        return self.amount is not None and self.amount > 0 and bool(self.vendor)


def _to_decimal(text: str) -> Decimal | None:
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def extract_amount(text: str) -> Decimal | None:
    """Amount from text: a number with cents, then "N dollars M cents", then the last number."""
    numbers = _NUMBER_RE.findall(text)
    for number in numbers:
        if "." in number:
            return _to_decimal(number)

    match = _DOLLARS_CENTS_RE.search(text)
    if match:
        dollars = _to_decimal(match.group(1))
        if dollars is not None:
            cents = Decimal(match.group(2)) / 100 if match.group(2) else Decimal(0)
            return dollars + cents

    if numbers:
        return _to_decimal(numbers[-1])
    return None


def _names_for(category: ExpenseCategory, display_names: Mapping[ExpenseCategory, str]) -> list[str]:
    names = [category.value.lower()]
    custom = display_names.get(category)
    if custom:
        names.append(custom.strip().lower())
    return names


def extract_vendor(text: str) -> str | None:
    parts = _AT_RE.split(text, maxsplit=1)
    if len(parts) < 2:
        return None
    vendor = parts[1].split("-", 1)[0].strip()
    return vendor or None


def _suffix_category(text: str, display_names: Mapping[ExpenseCategory, str]) -> ExpenseCategory | None:
    pieces = text.split(" - ")
    if len(pieces) < 2:
        return None
    candidate = pieces[-1].strip().lower()
    for category in ExpenseCategory:
        if candidate in _names_for(category, display_names):
            return category
    return None


def detect_category(text: str, display_names: Mapping[ExpenseCategory, str]) -> ExpenseCategory | None:
    normalized = text.lower()
    for category in ExpenseCategory:
        if any(name and name in normalized for name in _names_for(category, display_names)):
            return category
    return None


def parse_voice_expense(
    text: str,
    display_names: Mapping[ExpenseCategory, str] | None = None,
) -> ParsedVoiceExpense:
    """Best-effort parse; any field the text does not mention stays None."""
    result = ParsedVoiceExpense()
    trimmed = text.strip()
    if not trimmed:
        return result

    names = display_names or {}
    result.amount = extract_amount(trimmed)
    result.vendor = extract_vendor(trimmed)
    result.category = _suffix_category(trimmed, names) or detect_category(trimmed, names)
    return result
