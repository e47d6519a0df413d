from decimal import Decimal

import pytest

from allowance_tracker.calendar_view import (
    CalendarDayType,
    days_in_month,
    first_weekday,
    is_leap_year,
    month_name,
    next_month,
    previous_month,
)
from allowance_tracker.exceptions import ValidationError
from allowance_tracker.models import TransactionType

from conftest import at

FRIDAY = 5


def month_days(calendar_month):
    return [day for day in calendar_month.days if day.day_type is CalendarDayType.MONTH_DAY]


def test_calendar_helpers() -> None:
    assert is_leap_year(2024) and not is_leap_year(2025) and is_leap_year(2000) and not is_leap_year(1900)
    assert days_in_month(2, 2024) == 29
    assert days_in_month(2, 2025) == 28
    assert days_in_month(4, 2025) == 30
    assert month_name(6) == "June"
    assert previous_month(1, 2025) == (12, 2024)
    assert next_month(12, 2025) == (1, 2026)
    assert first_weekday(6, 2025) == 0
    assert first_weekday(7, 2025) == 2
    with pytest.raises(ValidationError):
        month_name(13)


def test_month_grid_padding(tracker, child) -> None:
    june = tracker.calendar_month(6, 2025)
    july = tracker.calendar_month(7, 2025)

    assert june.first_day_of_week == 0
    assert len(june.days) == 30
    assert june.month_name == "June"
    assert july.first_day_of_week == 2
    assert [day.day_type for day in july.days[:3]] == [
        CalendarDayType.PADDING_BEFORE,
        CalendarDayType.PADDING_BEFORE,
        CalendarDayType.MONTH_DAY,
    ]
    assert july.days[0].day == 0
    assert july.days[2].day == 1
    assert len(month_days(july)) == 31


def test_balances_carry_forward(tracker, child) -> None:
    tracker.create_transaction("Opening", 4, when=at(28, month=5))
    tracker.create_transaction("Gift", 10, when=at(2))
    tracker.create_transaction("Candy", "-3", when=at(10))
    tracker.create_transaction("Book", "-2", when=at(10, hour=16))

    days = month_days(tracker.calendar_month(6, 2025))

    assert days[0].balance == Decimal("4.00")
    assert days[1].balance == Decimal("14.00")
    assert days[5].balance == Decimal("14.00")
    assert [tx.description for tx in days[9].transactions] == ["Candy", "Book"]
    assert days[9].balance == Decimal("9.00")
    assert days[29].balance == Decimal("9.00")


def test_projected_allowances_appear_after_today(tracker, child) -> None:
    tracker.create_transaction("Gift", 7, when=at(2))
    tracker.update_allowance(5, FRIDAY)

    days = month_days(tracker.calendar_month(6, 2025))

    assert days[12].transactions == []
    projected = days[19].transactions
    assert len(projected) == 1
    assert projected[0].transaction_type is TransactionType.FUTURE_ALLOWANCE
    assert projected[0].balance == Decimal("12.00")
    assert days[19].balance == Decimal("12.00")
    assert days[26].balance == Decimal("17.00")
    # stored balances are untouched
    assert tracker.current_balance() == Decimal("7.00")


def test_later_months_start_from_stored_balance(tracker, child) -> None:
    tracker.create_transaction("Gift", 7, when=at(2))

    days = month_days(tracker.calendar_month(8, 2025))

    assert all(day.balance == Decimal("7.00") for day in days)
    assert all(day.transactions == [] for day in days)


def test_invalid_month(tracker, child) -> None:
    with pytest.raises(ValidationError):
        tracker.calendar_month(0, 2025)
