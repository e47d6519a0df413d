"""Presentation helpers for transaction tables."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Optional

from .exceptions import ValidationError
from .models import Transaction
from .money import CENT, ZERO, parse_amount_input
from .transactions import validate_description


class DateFormat(str, Enum):
    MONTH_DAY_YEAR = "month_day_year"  # June 13, 2025
    SHORT_DATE = "short_date"  # 06/13/2025
    ISO = "iso"  # 2025-06-13


class AmountFormat(str, Enum):
    PLUS_MINUS_SIGN = "plus_minus_sign"  # +$10.00 / -$5.00
    PARENTHESES_NEG = "parentheses_neg"  # $10.00 / ($5.00)
    COLOR_ONLY = "color_only"  # $10.00


class AmountType(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    ZERO = "zero"


@dataclass(slots=True)
class FormattedTransaction:
    id: str
    formatted_date: str
    description: str
    formatted_amount: str
    amount_type: AmountType
    formatted_balance: str
    raw_amount: Decimal
    raw_balance: Optional[Decimal]
    raw_date: datetime

    @property
    def css_class(self) -> str:
        return f"amount {self.amount_type.value}"


@dataclass(slots=True)
class InputValidation:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    cleaned_amount: Optional[Decimal] = None


class TransactionTableFormatter:
    """Render transactions as display-ready table rows."""

    def __init__(
        self,
        *,
        date_format: DateFormat = DateFormat.MONTH_DAY_YEAR,
        amount_format: AmountFormat = AmountFormat.PLUS_MINUS_SIGN,
        show_currency_symbol: bool = True,
    ) -> None:
        self.date_format = date_format
        self.amount_format = amount_format
        self.show_currency_symbol = show_currency_symbol

    @property
    def _currency(self) -> str:
        return "$" if self.show_currency_symbol else ""

    def format_rows(self, transactions: Iterable[Transaction]) -> List[FormattedTransaction]:
        return [self.format_row(tx) for tx in transactions]

    def format_row(self, transaction: Transaction) -> FormattedTransaction:
        return FormattedTransaction(
            id=transaction.id,
            formatted_date=self.format_date(transaction.date),
            description=transaction.description,
            formatted_amount=self.format_amount(transaction.amount),
            amount_type=self.classify_amount(transaction.amount),
            formatted_balance=self.format_balance(transaction.balance),
            raw_amount=transaction.amount,
            raw_balance=transaction.balance,
            raw_date=transaction.date,
        )

    def format_date(self, moment: datetime) -> str:
        if self.date_format is DateFormat.MONTH_DAY_YEAR:
            return f"{calendar.month_name[moment.month]} {moment.day}, {moment.year}"
        if self.date_format is DateFormat.SHORT_DATE:
            return f"{moment.month:02}/{moment.day:02}/{moment.year}"
        return f"{moment.year}-{moment.month:02}-{moment.day:02}"

    def format_amount(self, amount: Decimal) -> str:
        value = f"{self._currency}{abs(amount).quantize(CENT):.2f}"
        if self.amount_format is AmountFormat.PLUS_MINUS_SIGN:
            return f"-{value}" if amount < 0 else f"+{value}"
        if self.amount_format is AmountFormat.PARENTHESES_NEG:
            return f"({value})" if amount < 0 else value
        return value

    def format_balance(self, balance: Optional[Decimal]) -> str:
        if balance is None:
            return ""
        return f"{self._currency}{balance.quantize(CENT):.2f}"

    @staticmethod
    def classify_amount(amount: Decimal) -> AmountType:
        if amount > ZERO:
            return AmountType.POSITIVE
        if amount < ZERO:
            return AmountType.NEGATIVE
        return AmountType.ZERO

    def amount_css_class(self, amount: Decimal) -> str:
        return f"amount {self.classify_amount(amount).value}"

    def validate_input(self, description: str, amount_input: str) -> InputValidation:
        """Collect every problem with a table's inline entry form."""

        errors: List[str] = []
        cleaned: Optional[Decimal] = None
        try:
            validate_description(description)
        except ValidationError as exc:
            errors.append(str(exc))
        try:
            cleaned = parse_amount_input(amount_input)
        except ValidationError as exc:
            errors.append(str(exc))
        return InputValidation(is_valid=not errors, errors=errors, cleaned_amount=cleaned)


__all__ = [
    "AmountFormat",
    "AmountType",
    "DateFormat",
    "FormattedTransaction",
    "InputValidation",
    "TransactionTableFormatter",
]
