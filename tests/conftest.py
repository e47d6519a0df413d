from datetime import datetime, timedelta, timezone

import pytest

from allowance_tracker.clock import Clock
from allowance_tracker.ops import StructuredLogger
from allowance_tracker.service import AllowanceTracker
from allowance_tracker.storage import FileStore, SqliteStore

EASTERN = timezone(timedelta(hours=-5))
# Wednesday afternoon.
NOW = datetime(2025, 6, 18, 15, 0, tzinfo=EASTERN)


@pytest.fixture()
def clock() -> Clock:
    return Clock(utc_offset_hours=-5, provider=lambda: NOW)


@pytest.fixture(params=["csv", "sqlite"])
def store(request, tmp_path):
    if request.param == "csv":
        return FileStore(tmp_path / "data")
    return SqliteStore(tmp_path / "tracker.db")


@pytest.fixture()
def tracker(store, clock) -> AllowanceTracker:
    return AllowanceTracker(store, clock=clock, logger=StructuredLogger())


@pytest.fixture()
def child(tracker):
    created = tracker.create_child("Emma Smith", "2015-04-01")
    tracker.set_active_child(created.id)
    return created


def at(day: int, hour: int = 12, month: int = 6) -> datetime:
    return datetime(2025, month, day, hour, 0, tzinfo=EASTERN)


def assert_running_balances(transactions) -> None:
    running = 0
    for tx in transactions:
        running += tx.amount
        assert tx.balance == running, f"{tx.id} has {tx.balance}, expected {running}"
