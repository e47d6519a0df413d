from decimal import Decimal

from conftest import assert_running_balances, at


def test_balance_queries(tracker, child) -> None:
    tracker.create_transaction("Gift", 10, when=at(2))
    tracker.create_transaction("Candy", "-4", when=at(5))
    balances = tracker.balances

    assert balances.current_balance(child.id) == Decimal("6.00")
    assert balances.balance_at(child.id, at(1)) == Decimal("0.00")
    assert balances.balance_at(child.id, at(3)) == Decimal("10.00")
    assert balances.balance_at(child.id, at(5)) == Decimal("6.00")
    assert balances.projected_balance(child.id, at(3), "2.50") == Decimal("12.50")


def test_requires_recalculation(tracker, child) -> None:
    tracker.create_transaction("Gift", 10, when=at(5))

    assert tracker.balances.requires_recalculation(child.id, at(4)) is True
    assert tracker.balances.requires_recalculation(child.id, at(5)) is False
    assert tracker.balances.balance_for_new_transaction(child.id, at(4), 3) == Decimal("3.00")
    assert tracker.balances.balance_for_new_transaction(child.id, at(6), 3) == Decimal("13.00")


def test_recalculate_all_repairs_corrupted_balances(tracker, child) -> None:
    first = tracker.create_transaction("Gift", 10, when=at(2))
    second = tracker.create_transaction("Chores", 5, when=at(3))
    tracker.create_transaction("Toy", "-7", when=at(4))
    tracker.store.update_balances(child.id, {first.id: Decimal("99"), second.id: Decimal("1")})

    errors = tracker.validate_balances()
    assert [error.split(" on ")[0] for error in errors] == [f"Transaction {first.id}", f"Transaction {second.id}"]

    assert tracker.balances.recalculate_all(child.id) == 2
    assert tracker.validate_balances() == []
    assert_running_balances(tracker.store.list_transactions(child.id))


def test_recalculate_from_date_leaves_earlier_entries(tracker, child) -> None:
    first = tracker.create_transaction("Gift", 10, when=at(2))
    later = tracker.create_transaction("Chores", 5, when=at(6))
    tracker.store.update_balances(child.id, {later.id: Decimal("0")})

    assert tracker.balances.recalculate_from_date(child.id, at(5)) == 1
    stored = {tx.id: tx.balance for tx in tracker.store.list_transactions(child.id)}
    assert stored == {first.id: Decimal("10.00"), later.id: Decimal("15.00")}
