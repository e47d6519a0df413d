from decimal import Decimal

import pytest

from allowance_tracker.exceptions import ValidationError
from allowance_tracker.money import (
    format_currency,
    format_signed,
    parse_amount_input,
    to_decimal,
)


def test_to_decimal_rounds_to_cents() -> None:
    assert to_decimal(12.345) == Decimal("12.35")
    assert to_decimal("3") == Decimal("3.00")
    assert to_decimal(Decimal("0.005")) == Decimal("0.01")

    with pytest.raises(ValidationError):
        to_decimal("twelve")
    with pytest.raises(ValidationError, match="out of range"):
        to_decimal("1e30")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("5", "5.00"), ("$1,234.50", "1234.50"), (" 0.01 ", "0.01"), ("$ 7", "7.00"), ("2.50", "2.50")],
)
def test_parse_amount_input_accepts_form_values(raw: str, expected: str) -> None:
    assert parse_amount_input(raw) == Decimal(expected)


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ("", "Please enter an amount"),
        ("$", "Please enter an amount"),
        ("abc", "valid amount"),
        ("0", "greater than 0"),
        ("-4", "greater than 0"),
        ("0.001", "too small"),
        ("1000000.01", "too large"),
        ("1.234", "decimal places"),
    ],
)
def test_parse_amount_input_rejects_bad_values(raw: str, message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        parse_amount_input(raw)


def test_currency_formatting() -> None:
    assert format_currency(Decimal("1234.5")) == "$1,234.50"
    assert format_currency(Decimal("-5")) == "-$5.00"
    assert format_currency(Decimal("-1234.5")) == "-$1,234.50"
    assert format_signed(Decimal("5")) == "+$5.00"
    assert format_signed(Decimal("-5")) == "-$5.00"
