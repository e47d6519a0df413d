"""Pure running-balance arithmetic over an ordered ledger.

A ledger is the list of one child's stored transactions in ascending date
order, entries sharing a timestamp kept in insertion order. Every function
here is side-effect free; :mod:`allowance_tracker.balances` persists the
results through a storage backend.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import Transaction
from .money import ZERO

BALANCE_EPSILON = Decimal("0.01")

BalanceUpdate = Tuple[str, Decimal]


def chronological(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Return ``transactions`` sorted by date; the sort is stable."""

    return sorted(transactions, key=lambda tx: tx.date)


def insertion_index(ledger: Sequence[Transaction], moment: datetime) -> int:
    """Index where a new entry dated ``moment`` belongs.

    New entries land after every existing entry with the same timestamp.
    """

    index = len(ledger)
    while index > 0 and ledger[index - 1].date > moment:
        index -= 1
    return index


def balance_before(ledger: Sequence[Transaction], index: int) -> Decimal:
    if index <= 0:
        return ZERO
    previous = ledger[index - 1].balance
    return previous if previous is not None else ZERO


def running_balances(transactions: Iterable[Transaction], opening: Decimal = ZERO) -> List[BalanceUpdate]:
    """Return ``(id, balance)`` pairs obtained by accumulating amounts from ``opening``."""

    running = opening
    result: List[BalanceUpdate] = []
    for tx in transactions:
        running += tx.amount
        result.append((tx.id, running))
    return result


def recalculate_from(ledger: Sequence[Transaction], index: int) -> List[BalanceUpdate]:
    """Recompute balances for ``ledger[index:]`` seeded by the entry before ``index``.

    Only entries whose stored balance actually changes are returned.
    """

    index = max(index, 0)
    opening = balance_before(ledger, index)
    updates = running_balances(ledger[index:], opening)
    return [
        (tx_id, balance)
        for (tx_id, balance), tx in zip(updates, ledger[index:])
        if tx.balance != balance
    ]


def first_index_at_or_after(ledger: Sequence[Transaction], moment: datetime) -> int:
    for index, tx in enumerate(ledger):
        if tx.date >= moment:
            return index
    return len(ledger)


def balance_at(ledger: Sequence[Transaction], moment: datetime) -> Decimal:
    """Balance after every entry dated at or before ``moment``."""

    result = ZERO
    for tx in ledger:
        if tx.date > moment:
            break
        if tx.balance is not None:
            result = tx.balance
    return result


def find_balance_errors(ledger: Sequence[Transaction], epsilon: Decimal = BALANCE_EPSILON) -> List[str]:
    """Describe every entry whose stored balance disagrees with the running sum."""

    errors: List[str] = []
    expected = ZERO
    for tx in ledger:
        expected += tx.amount
        stored: Optional[Decimal] = tx.balance
        if stored is None or abs(stored - expected) > epsilon:
            errors.append(
                f"Transaction {tx.id} on {tx.date.isoformat()}: expected balance {expected:.2f}, "
                f"found {'missing' if stored is None else f'{stored:.2f}'}"
            )
    return errors


__all__ = [
    "BALANCE_EPSILON",
    "BalanceUpdate",
    "balance_at",
    "balance_before",
    "chronological",
    "find_balance_errors",
    "first_index_at_or_after",
    "insertion_index",
    "recalculate_from",
    "running_balances",
]
