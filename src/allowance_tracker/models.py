"""Domain models used by the allowance tracker package."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

from .money import to_decimal

DESCRIPTION_MAX_LENGTH = 256
CHILD_NAME_MAX_LENGTH = 100
WEEKDAY_NAMES: Tuple[str, ...] = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransactionType(str, Enum):
    """Kinds of ledger entries."""

    INCOME = "income"
    EXPENSE = "expense"
    FUTURE_ALLOWANCE = "future_allowance"

    @classmethod
    def for_amount(cls, amount: Decimal) -> "TransactionType":
        return cls.EXPENSE if amount < 0 else cls.INCOME


class GoalState(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


@dataclass(slots=True)
class Child:
    """A child whose allowance is being tracked."""

    id: str
    name: str
    birthdate: date
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class Transaction:
    """A single ledger entry with the running balance after it was applied.

    Projected allowances carry ``balance=None`` because they are never stored.
    """

    id: str
    child_id: str
    date: datetime
    description: str
    amount: Decimal
    balance: Optional[Decimal]
    transaction_type: TransactionType = TransactionType.INCOME

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        if self.balance is not None:
            object.__setattr__(self, "balance", to_decimal(self.balance))
        if not isinstance(self.transaction_type, TransactionType):
            object.__setattr__(self, "transaction_type", TransactionType(self.transaction_type))

    @property
    def is_projected(self) -> bool:
        return self.transaction_type is TransactionType.FUTURE_ALLOWANCE


@dataclass(slots=True)
class AllowanceConfig:
    """Weekly allowance settings for one child (``day_of_week``: 0 = Sunday)."""

    child_id: str
    amount: Decimal
    day_of_week: int
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))

    @property
    def day_name(self) -> str:
        return WEEKDAY_NAMES[self.day_of_week]


@dataclass(slots=True)
class Goal:
    """A savings target; a child has at most one active goal."""

    id: str
    child_id: str
    description: str
    target_amount: Decimal
    state: GoalState = GoalState.ACTIVE
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "target_amount", to_decimal(self.target_amount))
        if not isinstance(self.state, GoalState):
            object.__setattr__(self, "state", GoalState(self.state))


@dataclass(slots=True)
class ParentalControlAttempt:
    id: int
    attempted_value: str
    timestamp: datetime
    success: bool


@dataclass(slots=True)
class TransactionPage:
    transactions: List[Transaction]
    has_more: bool
    next_cursor: Optional[str] = None


@dataclass(slots=True)
class DeleteResult:
    deleted_count: int
    success_message: str
    not_found_ids: List[str] = field(default_factory=list)


@dataclass(slots=True)
class MoneyResult:
    """Outcome of an add/spend money request."""

    transaction: Transaction
    success_message: str
    formatted_amount: str


@dataclass(slots=True)
class GoalCalculation:
    current_balance: Decimal
    amount_needed: Decimal
    projected_completion_date: Optional[date]
    allowances_needed: int
    is_achievable: bool
    exceeds_time_limit: bool


@dataclass(slots=True)
class ParentalControlStats:
    total_attempts: int
    successful_attempts: int
    failed_attempts: int
    success_rate: float


@dataclass(slots=True)
class DataDirectoryResult:
    success: bool
    message: str
    path: str
    was_redirected: bool = False


@dataclass(slots=True)
class ExportResult:
    csv_data: str
    filename: str
    transaction_count: int
    child_name: str


__all__ = [
    "AllowanceConfig",
    "CHILD_NAME_MAX_LENGTH",
    "Child",
    "DESCRIPTION_MAX_LENGTH",
    "DataDirectoryResult",
    "DeleteResult",
    "ExportResult",
    "Goal",
    "GoalCalculation",
    "GoalState",
    "MoneyResult",
    "ParentalControlAttempt",
    "ParentalControlStats",
    "Transaction",
    "TransactionPage",
    "TransactionType",
    "WEEKDAY_NAMES",
    "utcnow",
]
