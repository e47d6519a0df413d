import csv
import json
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from allowance_tracker.models import Child, Transaction
from allowance_tracker.service import AllowanceTracker
from allowance_tracker.storage import FileStore, SqliteStore, open_store
from allowance_tracker.storage.database import LedgerEntry, ParentalControlAttemptRecord, from_cents, to_cents
from allowance_tracker.storage.files import safe_directory_name

from conftest import at


@pytest.fixture()
def file_tracker(tmp_path, clock) -> AllowanceTracker:
    return AllowanceTracker(FileStore(tmp_path / "data"), clock=clock)


@pytest.fixture()
def sqlite_tracker(tmp_path, clock) -> AllowanceTracker:
    return AllowanceTracker(SqliteStore(tmp_path / "tracker.db"), clock=clock)


def test_safe_directory_name() -> None:
    assert safe_directory_name("José María") == "jose_maria"
    assert safe_directory_name("Emma Smith") == "emma_smith"
    assert safe_directory_name("!!!") == "child"


def test_file_layout(file_tracker, tmp_path) -> None:
    child = file_tracker.create_child("José María", "2014-03-03")
    file_tracker.set_active_child(child.id)
    file_tracker.create_transaction("Gift, from \"Grandma\"", 12, when=at(3))
    file_tracker.update_allowance(5, 6)

    base = tmp_path / "data"
    home = base / "jose_maria"
    assert json.loads((home / "child.json").read_text())["id"] == child.id
    assert json.loads((base / "global_config.json").read_text())["active_child_id"] == child.id
    assert json.loads((home / "allowance_config.json").read_text())["day_of_week"] == 6
    with (home / "transactions.csv").open(newline="") as handle:
        rows = list(csv.DictReader(handle))
    assert rows[0]["description"] == 'Gift, from "Grandma"'
    assert rows[0]["amount"] == "12.00"
    assert rows[0]["balance"] == "12.00"


def test_directory_names_do_not_collide(file_tracker, tmp_path) -> None:
    first = file_tracker.create_child("Sam", "2014-03-03")
    second = file_tracker.create_child("Sam", "2016-03-03")

    store = file_tracker.store
    assert store.child_directory(first.id).name == "sam"
    assert store.child_directory(second.id).name == "sam_2"


def test_store_survives_reopen(tmp_path, clock) -> None:
    for kind in ("csv", "sqlite"):
        store = open_store(kind, data_dir=tmp_path / kind)
        tracker = AllowanceTracker(store, clock=clock)
        child = tracker.create_child("Ava", "2015-01-01")
        tracker.set_active_child(child.id)
        tracker.create_transaction("Gift", "7.25", when=at(3))
        tracker.create_goal("Book", 20)

        reopened = AllowanceTracker(open_store(kind, data_dir=tmp_path / kind), clock=clock)
        assert reopened.active_child().id == child.id
        assert reopened.current_balance() == Decimal("7.25")
        assert reopened.current_goal().goal.description == "Book"


def test_unknown_backend(tmp_path) -> None:
    with pytest.raises(ValueError):
        open_store("yaml", data_dir=tmp_path)


def test_cents_conversion() -> None:
    assert to_cents(Decimal("12.34")) == 1234
    assert to_cents(Decimal("-0.05")) == -5
    assert from_cents(1999) == Decimal("19.99")


def test_relocate_and_revert_data_directory(file_tracker, tmp_path) -> None:
    child = file_tracker.create_child("Emma Smith", "2015-04-01")
    file_tracker.set_active_child(child.id)
    file_tracker.create_transaction("Gift", 10, when=at(3))
    file_tracker.update_allowance(5, 5)
    home = tmp_path / "data" / "emma_smith"
    elsewhere = tmp_path / "cloud" / "emma"

    moved = file_tracker.relocate_data_directory(f"'{elsewhere}/'")

    assert moved.success is True
    assert moved.was_redirected is True
    assert moved.message == f"Moved 2 file(s) to {elsewhere.resolve()}"
    assert (elsewhere / "transactions.csv").exists()
    assert not (home / "transactions.csv").exists()
    assert (home / ".allowance_redirect").exists()
    current = file_tracker.current_data_directory()
    assert current.was_redirected is True
    assert current.path == str(elsewhere.resolve())

    file_tracker.create_transaction("Chores", 2, when=at(4))
    assert file_tracker.current_balance() == Decimal("12.00")

    reverted = file_tracker.revert_data_directory()
    assert reverted.success is True
    assert reverted.path == str(home)
    assert (home / "transactions.csv").exists()
    assert not (home / ".allowance_redirect").exists()
    assert file_tracker.current_data_directory().was_redirected is False
    assert file_tracker.current_balance() == Decimal("12.00")
    assert file_tracker.revert_data_directory().message == "Data directory is already at the default location"


def test_relocate_rejects_empty_path(file_tracker) -> None:
    child = file_tracker.create_child("Emma", "2015-04-01")

    result = file_tracker.relocate_data_directory("  ", child_id=child.id)

    assert result.success is False
    assert result.message == "New path cannot be empty"


def test_sqlite_reports_single_location(sqlite_tracker, tmp_path) -> None:
    child = sqlite_tracker.create_child("Emma", "2015-04-01")

    current = sqlite_tracker.current_data_directory(child.id)
    assert current.success is True
    assert current.path == str(tmp_path / "tracker.db")

    relocated = sqlite_tracker.relocate_data_directory(str(tmp_path / "x"), child_id=child.id)
    assert relocated.success is False
    assert "flat-file" in relocated.message
    assert sqlite_tracker.revert_data_directory(child.id).success is False


def test_sqlite_stores_timezone_aware_timestamps(tmp_path) -> None:
    store = SqliteStore(tmp_path / "tracker.db")
    created = datetime(2025, 6, 1, 9, 30, 15, 250000, tzinfo=timezone.utc)
    store.save_child(Child(id="child::1", name="Ava", birthdate=date(2015, 1, 1), created_at=created, updated_at=created))

    loaded = store.get_child("child::1")
    assert loaded.created_at == created
    assert loaded.created_at.tzinfo is not None

    attempt_at = datetime(2025, 6, 18, 15, 0, tzinfo=timezone(timedelta(hours=-5)))
    store.record_attempt("ice cold", attempt_at, True)
    assert store.list_attempts()[0].timestamp == attempt_at


def test_sqlite_orders_ledger_by_instant_across_offsets(tmp_path) -> None:
    store = SqliteStore(tmp_path / "tracker.db")
    store.save_child(Child(id="child::1", name="Ava", birthdate=date(2015, 1, 1)))
    eastern_evening = datetime(2025, 6, 18, 20, 30, tzinfo=timezone(timedelta(hours=-5)))
    utc_small_hours = datetime(2025, 6, 19, 1, 0, tzinfo=timezone.utc)
    for tx_id, moment in (("late", eastern_evening), ("early", utc_small_hours - timedelta(hours=1))):
        store.insert_transaction(
            Transaction(id=tx_id, child_id="child::1", date=moment, description=tx_id, amount=1, balance=1)
        )

    ledger = store.list_transactions("child::1")

    assert [tx.id for tx in ledger] == ["early", "late"]
    assert ledger[1].date == eastern_evening
    assert ledger[1].date.utcoffset() == timedelta(hours=-5)


def test_sqlite_table_names() -> None:
    assert LedgerEntry.__tablename__ == "ledger_entry"
    assert ParentalControlAttemptRecord.__tablename__ == "parental_control_attempt"
