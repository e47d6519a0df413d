"""Utilities for working with monetary values in the allowance tracker."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from .exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
MAX_AMOUNT = Decimal("1000000")

AmountLike = Union[Decimal, int, float, str]


def to_decimal(value: AmountLike) -> Decimal:
    """Convert ``value`` to a :class:`~decimal.Decimal` with two decimal places."""

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise TypeError("Booleans are not amounts.")
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValidationError(f"Invalid amount: {value!r}") from exc
    else:
        raise TypeError(f"Unsupported amount type: {type(value)!r}")

    if not result.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    try:
        return result.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValidationError(f"Amount is out of range: {value!r}") from exc


def clean_amount_input(raw: str) -> str:
    """Strip currency symbols, thousands separators and whitespace."""

    return raw.strip().replace("$", "").replace(",", "").replace(" ", "")


def parse_amount_input(raw: str) -> Decimal:
    """Parse a form amount such as ``"$1,234.50"`` for a money add/spend request.

    The result is always positive; the caller decides the sign.
    """

    cleaned = clean_amount_input(raw)
    if not cleaned:
        raise ValidationError("Please enter an amount")
    try:
        value = Decimal(cleaned)
    except InvalidOperation as exc:
        raise ValidationError("Please enter a valid amount (like 5 or 5.00)") from exc
    if not value.is_finite():
        raise ValidationError("Please enter a valid amount (like 5 or 5.00)")
    if value <= 0:
        raise ValidationError("Amount must be greater than 0")
    if value < CENT:
        raise ValidationError("Amount is too small. Minimum is $0.01")
    if value > MAX_AMOUNT:
        raise ValidationError("Amount is too large. Maximum is $1000000.00")
    if value != value.quantize(CENT):
        raise ValidationError("Amount has too many decimal places. Use at most 2 decimal places.")
    return value.quantize(CENT)


def format_currency(amount: Decimal) -> str:
    """Return ``amount`` as a currency formatted string (e.g. ``$12.34`` or ``-$5.00``)."""

    value = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_signed(amount: Decimal) -> str:
    """Return ``amount`` with an explicit sign (``+$5.00`` / ``-$5.00``)."""

    sign = "-" if amount < 0 else "+"
    return f"{sign}{format_currency(abs(amount))}"


__all__ = [
    "AmountLike",
    "CENT",
    "MAX_AMOUNT",
    "ZERO",
    "clean_amount_input",
    "format_currency",
    "format_signed",
    "parse_amount_input",
    "to_decimal",
]
