from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from allowance_tracker.allowances import day_of_week, is_allowance_day
from allowance_tracker.exceptions import ChildNotFoundError, ValidationError
from allowance_tracker.models import TransactionType

from conftest import at

FRIDAY = 5
SUNDAY = 0


def test_day_of_week_counts_from_sunday() -> None:
    assert day_of_week(date(2025, 6, 15)) == 0
    assert day_of_week(date(2025, 6, 18)) == 3
    assert day_of_week(date(2025, 6, 21)) == 6
    assert is_allowance_day(date(2025, 6, 20), FRIDAY)


def test_update_allowance_creates_then_updates(tracker, child) -> None:
    assert tracker.get_allowance() is None

    created = tracker.update_allowance(5, FRIDAY)
    updated = tracker.update_allowance("7.50", SUNDAY, is_active=False)

    assert created.amount == Decimal("5.00")
    assert updated.amount == Decimal("7.50")
    assert updated.day_of_week == SUNDAY
    assert updated.day_name == "Sunday"
    assert updated.is_active is False
    stored = tracker.get_allowance()
    assert stored is not None and stored.amount == Decimal("7.50")
    assert [config.child_id for config in tracker.list_allowances()] == [child.id]


@pytest.mark.parametrize(("amount", "day"), [(5, 7), (5, -1), (-1, 2), (1000000.01, 2)])
def test_update_allowance_validation(tracker, child, amount, day) -> None:
    with pytest.raises(ValidationError):
        tracker.update_allowance(amount, day)


def test_allowance_for_unknown_child(tracker, child) -> None:
    with pytest.raises(ChildNotFoundError):
        tracker.update_allowance(5, FRIDAY, child_id="child::missing")


def test_delete_allowance(tracker, child) -> None:
    tracker.update_allowance(5, FRIDAY)

    assert tracker.delete_allowance() is True
    assert tracker.delete_allowance() is False
    assert tracker.get_allowance() is None


def test_future_allowances_only_after_today(tracker, child) -> None:
    tracker.update_allowance(5, FRIDAY)
    service = tracker.allowances

    projected = service.generate_future_allowances(child.id, date(2025, 6, 1), date(2025, 6, 30))

    assert [tx.id for tx in projected] == [
        f"future-allowance::{child.id}::2025-06-20",
        f"future-allowance::{child.id}::2025-06-27",
    ]
    first = projected[0]
    assert first.date == datetime(2025, 6, 20, 12, 0, tzinfo=timezone.utc)
    assert first.description == "Weekly allowance"
    assert first.balance is None
    assert first.transaction_type is TransactionType.FUTURE_ALLOWANCE


def test_inactive_allowance_projects_nothing(tracker, child) -> None:
    tracker.update_allowance(5, FRIDAY, is_active=False)

    assert tracker.allowances.generate_future_allowances(child.id, date(2025, 6, 1), date(2025, 7, 31)) == []


def test_pending_allowances_are_issued_once(tracker, child) -> None:
    tracker.update_allowance(4, SUNDAY)

    assert tracker.issue_pending_allowances() == 1
    assert tracker.issue_pending_allowances() == 0

    ledger = tracker.store.list_transactions(child.id)
    assert len(ledger) == 1
    assert ledger[0].description == "Weekly allowance"
    assert ledger[0].amount == Decimal("4.00")
    assert ledger[0].date == at(15)


def test_existing_allowance_entry_blocks_pending_day(tracker, child) -> None:
    tracker.update_allowance(4, SUNDAY)
    tracker.create_transaction("Allowance from dad", 4, when=at(15, hour=9))
    tracker.create_transaction("Weekly chores", -1, when=at(8, hour=9))

    pending = tracker.allowances.pending_allowance_dates(child.id, date(2025, 6, 1), date(2025, 6, 18))

    assert pending == [(date(2025, 6, 1), Decimal("4.00")), (date(2025, 6, 8), Decimal("4.00"))]


def test_no_active_child_issues_nothing(tracker) -> None:
    assert tracker.issue_pending_allowances() == 0
