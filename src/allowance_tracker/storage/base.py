"""Abstract storage interface shared by the flat-file and SQLite backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from ..models import AllowanceConfig, Child, Goal, ParentalControlAttempt, Transaction


class LedgerStore(ABC):
    """Persistence operations needed by the services.

    ``list_transactions`` must return a child's entries in ledger order:
    ascending date, entries with identical timestamps in insertion order.
    """

    # -- children ------------------------------------------------------------

    @abstractmethod
    def list_children(self) -> List[Child]:
        """Return every stored child in no particular order."""

    @abstractmethod
    def get_child(self, child_id: str) -> Optional[Child]:
        ...

    @abstractmethod
    def save_child(self, child: Child) -> None:
        """Insert or replace ``child``."""

    @abstractmethod
    def delete_child(self, child_id: str) -> bool:
        """Remove the child and everything stored for it."""

    @abstractmethod
    def get_active_child_id(self) -> Optional[str]:
        ...

    @abstractmethod
    def set_active_child_id(self, child_id: Optional[str]) -> None:
        ...

    # -- transactions --------------------------------------------------------

    @abstractmethod
    def list_transactions(self, child_id: str) -> List[Transaction]:
        ...

    @abstractmethod
    def insert_transaction(self, transaction: Transaction) -> None:
        """Store ``transaction`` after any existing entry sharing its timestamp."""

    @abstractmethod
    def update_balances(self, child_id: str, balances: Mapping[str, Decimal]) -> int:
        """Persist new balances keyed by transaction id; return the count written."""

    @abstractmethod
    def delete_transactions(self, child_id: str, transaction_ids: Sequence[str]) -> List[str]:
        """Delete the given ids and return those that existed."""

    # -- allowance -----------------------------------------------------------

    @abstractmethod
    def get_allowance_config(self, child_id: str) -> Optional[AllowanceConfig]:
        ...

    @abstractmethod
    def save_allowance_config(self, config: AllowanceConfig) -> None:
        ...

    @abstractmethod
    def delete_allowance_config(self, child_id: str) -> bool:
        ...

    @abstractmethod
    def list_allowance_configs(self) -> List[AllowanceConfig]:
        ...

    # -- goals ---------------------------------------------------------------

    @abstractmethod
    def list_goals(self, child_id: str) -> List[Goal]:
        """Return the latest state of each goal, oldest first."""

    @abstractmethod
    def save_goal(self, goal: Goal) -> None:
        ...

    # -- parental control ----------------------------------------------------

    @abstractmethod
    def record_attempt(self, attempted_value: str, timestamp: datetime, success: bool) -> ParentalControlAttempt:
        ...

    @abstractmethod
    def list_attempts(self) -> List[ParentalControlAttempt]:
        """Return every recorded attempt, oldest first."""

    # -- location ------------------------------------------------------------

    @property
    @abstractmethod
    def location(self) -> Path:
        """Where the backend keeps its data."""

    def child_data_path(self, child_id: str) -> Path:
        return self.location


__all__ = ["LedgerStore"]
