"""Month grid with per-day transactions and end-of-day balances."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

from .allowances import day_of_week
from .clock import Clock
from .exceptions import ValidationError
from .models import Child, Transaction
from .money import ZERO
from .transactions import TransactionService


class CalendarDayType(str, Enum):
    PADDING_BEFORE = "padding_before"
    MONTH_DAY = "month_day"


@dataclass(slots=True)
class CalendarDay:
    day: int
    day_type: CalendarDayType
    balance: Optional[Decimal] = None
    transactions: List[Transaction] = field(default_factory=list)


@dataclass(slots=True)
class CalendarMonth:
    month: int
    year: int
    first_day_of_week: int
    days: List[CalendarDay]

    @property
    def month_name(self) -> str:
        return month_name(self.month)


def is_leap_year(year: int) -> bool:
    return calendar.isleap(year)


def days_in_month(month: int, year: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_name(month: int) -> str:
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    return calendar.month_name[month]


def previous_month(month: int, year: int) -> Tuple[int, int]:
    return (12, year - 1) if month == 1 else (month - 1, year)


def next_month(month: int, year: int) -> Tuple[int, int]:
    return (1, year + 1) if month == 12 else (month + 1, year)


def first_weekday(month: int, year: int) -> int:
    """Weekday of the 1st, counted from Sunday = 0."""

    return day_of_week(date(year, month, 1))


class CalendarService:
    """Build calendar months from the ledger and the allowance schedule."""

    __slots__ = ("_transactions", "_clock")

    def __init__(self, transactions: TransactionService, clock: Clock) -> None:
        self._transactions = transactions
        self._clock = clock

    def _local_date(self, moment: datetime) -> date:
        return self._clock.localize(moment).date()

    def month(self, child: Child, month: int, year: int) -> CalendarMonth:
        if not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12")
        entries = self._transactions.transactions_for_calendar(child, month, year)
        month_start = date(year, month, 1)

        running = ZERO
        in_month: dict[int, List[Transaction]] = {}
        for tx in entries:
            local_day = self._local_date(tx.date)
            if local_day < month_start:
                if not tx.is_projected and tx.balance is not None:
                    running = tx.balance
            elif local_day.month == month and local_day.year == year:
                in_month.setdefault(local_day.day, []).append(tx)

        first_dow = first_weekday(month, year)
        days = [CalendarDay(day=0, day_type=CalendarDayType.PADDING_BEFORE) for _ in range(first_dow)]
        for day_number in range(1, days_in_month(month, year) + 1):
            day_entries = in_month.get(day_number, [])
            for tx in day_entries:
                if tx.is_projected:
                    running += tx.amount
                    tx.balance = running
                elif tx.balance is not None:
                    running = tx.balance
            days.append(
                CalendarDay(
                    day=day_number,
                    day_type=CalendarDayType.MONTH_DAY,
                    balance=running,
                    transactions=day_entries,
                )
            )
        return CalendarMonth(month=month, year=year, first_day_of_week=first_dow, days=days)


__all__ = [
    "CalendarDay",
    "CalendarDayType",
    "CalendarMonth",
    "CalendarService",
    "days_in_month",
    "first_weekday",
    "is_leap_year",
    "month_name",
    "next_month",
    "previous_month",
]
