"""Allowance tracker package exposing the core services."""

from .calendar_view import CalendarDay, CalendarDayType, CalendarMonth
from .clock import Clock
from .exceptions import (
    ActiveGoalExistsError,
    AllowanceTrackerError,
    ChildNotFoundError,
    GoalNotFoundError,
    NoActiveChildError,
    StorageError,
    TransactionNotFoundError,
    ValidationError,
)
from .models import (
    AllowanceConfig,
    Child,
    DeleteResult,
    Goal,
    GoalCalculation,
    GoalState,
    MoneyResult,
    ParentalControlAttempt,
    Transaction,
    TransactionPage,
    TransactionType,
)
from .ops import StructuredLogger
from .service import AllowanceTracker
from .storage import FileStore, LedgerStore, SqliteStore, open_store
from .table import AmountFormat, DateFormat, TransactionTableFormatter

__all__ = [
    "ActiveGoalExistsError",
    "AllowanceConfig",
    "AllowanceTracker",
    "AllowanceTrackerError",
    "AmountFormat",
    "CalendarDay",
    "CalendarDayType",
    "CalendarMonth",
    "Child",
    "ChildNotFoundError",
    "Clock",
    "DateFormat",
    "DeleteResult",
    "FileStore",
    "Goal",
    "GoalCalculation",
    "GoalNotFoundError",
    "GoalState",
    "LedgerStore",
    "MoneyResult",
    "NoActiveChildError",
    "ParentalControlAttempt",
    "SqliteStore",
    "StorageError",
    "StructuredLogger",
    "Transaction",
    "TransactionNotFoundError",
    "TransactionPage",
    "TransactionTableFormatter",
    "TransactionType",
    "ValidationError",
    "open_store",
]
