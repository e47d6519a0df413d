"""Running-balance maintenance on top of a storage backend."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List

from . import ledger
from .money import AmountLike, to_decimal
from .ops import StructuredLogger
from .storage import LedgerStore


class BalanceService:
    """Keep ``balance[i] == balance[i-1] + amount[i]`` true for every ledger."""

    __slots__ = ("_store", "_logger")

    def __init__(self, store: LedgerStore, logger: StructuredLogger) -> None:
        self._store = store
        self._logger = logger

    def balance_for_new_transaction(self, child_id: str, moment: datetime, amount: AmountLike) -> Decimal:
        """Balance a new entry dated ``moment`` would carry once inserted."""

        current = self._store.list_transactions(child_id)
        index = ledger.insertion_index(current, moment)
        return ledger.balance_before(current, index) + to_decimal(amount)

    def requires_recalculation(self, child_id: str, moment: datetime) -> bool:
        return any(tx.date > moment for tx in self._store.list_transactions(child_id))

    def recalculate_from_index(self, child_id: str, index: int) -> int:
        current = self._store.list_transactions(child_id)
        updates = ledger.recalculate_from(current, index)
        written = self._store.update_balances(child_id, dict(updates))
        if written:
            self._logger.log("balances_recalculated", child_id=child_id, updated=written, start_index=index)
        return written

    def recalculate_from_date(self, child_id: str, moment: datetime) -> int:
        """Recompute and persist every balance dated at or after ``moment``."""

        current = self._store.list_transactions(child_id)
        return self.recalculate_from_index(child_id, ledger.first_index_at_or_after(current, moment))

    def recalculate_all(self, child_id: str) -> int:
        return self.recalculate_from_index(child_id, 0)

    def current_balance(self, child_id: str) -> Decimal:
        current = self._store.list_transactions(child_id)
        return ledger.balance_before(current, len(current))

    def balance_at(self, child_id: str, moment: datetime) -> Decimal:
        return ledger.balance_at(self._store.list_transactions(child_id), moment)

    def projected_balance(self, child_id: str, moment: datetime, amount: AmountLike) -> Decimal:
        return self.balance_at(child_id, moment) + to_decimal(amount)

    def validate_balances(self, child_id: str) -> List[str]:
        return ledger.find_balance_errors(self._store.list_transactions(child_id))


__all__ = ["BalanceService"]
