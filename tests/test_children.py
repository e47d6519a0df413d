from datetime import date

import pytest

from allowance_tracker.exceptions import ChildNotFoundError, NoActiveChildError, ValidationError


def test_create_and_list_children_sorted_by_name(tracker) -> None:
    zoe = tracker.create_child("  Zoe ", "2016-02-29")
    adam = tracker.create_child("adam", date(2012, 7, 1))

    assert zoe.name == "Zoe"
    assert zoe.birthdate == date(2016, 2, 29)
    assert zoe.id.startswith("child::")
    assert zoe.id != adam.id
    assert [child.name for child in tracker.list_children()] == ["adam", "Zoe"]


@pytest.mark.parametrize(
    ("name", "birthdate", "message"),
    [
        ("", "2015-01-01", "cannot be empty"),
        ("   ", "2015-01-01", "cannot be empty"),
        ("x" * 101, "2015-01-01", "cannot exceed 100"),
        ("Sam", "01/02/2015", "Invalid birthdate"),
    ],
)
def test_create_child_validation(tracker, name, birthdate, message) -> None:
    with pytest.raises(ValidationError, match=message):
        tracker.create_child(name, birthdate)


def test_update_child(tracker, child) -> None:
    updated = tracker.update_child(child.id, name="Emma S.", birthdate="2015-05-02")

    assert updated.name == "Emma S."
    assert tracker.get_child(child.id).birthdate == date(2015, 5, 2)


def test_unknown_child(tracker) -> None:
    with pytest.raises(ChildNotFoundError):
        tracker.get_child("child::missing")
    with pytest.raises(ChildNotFoundError):
        tracker.set_active_child("child::missing")
    with pytest.raises(ChildNotFoundError):
        tracker.delete_child("child::missing")


def test_active_child_selection(tracker) -> None:
    assert tracker.active_child() is None
    with pytest.raises(NoActiveChildError):
        tracker.resolve_child()

    first = tracker.create_child("First", "2014-01-01")
    second = tracker.create_child("Second", "2016-01-01")
    tracker.set_active_child(second.id)

    assert tracker.active_child().id == second.id
    assert tracker.resolve_child().id == second.id
    assert tracker.resolve_child(first.id).id == first.id


def test_ledgers_are_kept_per_child(tracker, child) -> None:
    other = tracker.create_child("Liam", "2017-09-09")
    tracker.create_transaction("Gift", 20)
    tracker.create_transaction("Gift", 3, child_id=other.id)

    assert tracker.current_balance() == 20
    assert tracker.current_balance(other.id) == 3


def test_delete_child_removes_data_and_clears_selection(tracker, child) -> None:
    tracker.create_transaction("Gift", 20)
    tracker.update_allowance(5, 6)

    tracker.delete_child(child.id)

    assert tracker.active_child() is None
    assert tracker.list_children() == []
    assert tracker.store.list_transactions(child.id) == []
    assert tracker.store.get_allowance_config(child.id) is None
