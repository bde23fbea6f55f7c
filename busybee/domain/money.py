"""Decimal helpers for amounts entered by the user or read from disk."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from busybee.domain.errors import InvalidAmount

CENTS = Decimal("0.01")
ZERO = Decimal("0")


def coerce_amount(value: Decimal | int | float | str) -> Decimal:
    """Convert user or file input to a finite Decimal.

    Strings may carry a leading ``$``, thousands separators and whitespace.
    Floats go through ``str`` so ``2.9`` stays ``2.9``.

    Raises:
        InvalidAmount: If the value is not a finite number.
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"Not an amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = "".join(value.split()).replace("$", "").replace(",", "")
        try:
            result = Decimal(cleaned)
        except InvalidOperation as exc:
            raise InvalidAmount(f"Not an amount: {value!r}") from exc
    else:
        raise InvalidAmount(f"Not an amount: {value!r}")

    if not result.is_finite():
        raise InvalidAmount(f"Amount must be finite: {value!r}")
    return result


def round_cents(amount: Decimal) -> Decimal:
    """Round half-up to whole cents."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal) -> str:
    """Format as ``$1,234.50`` / ``-$3.00``."""
    rounded = round_cents(amount)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,.2f}"
