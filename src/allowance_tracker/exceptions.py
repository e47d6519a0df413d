"""Custom exception hierarchy for the allowance tracker package."""

from __future__ import annotations


class AllowanceTrackerError(Exception):
    """Base class for all allowance tracker specific errors."""


class ValidationError(AllowanceTrackerError, ValueError):
    """Raised when user supplied input is rejected."""


class ChildNotFoundError(AllowanceTrackerError):
    """Raised when a child lookup fails."""


class NoActiveChildError(AllowanceTrackerError):
    """Raised when an operation needs an active child but none is selected."""


class TransactionNotFoundError(AllowanceTrackerError):
    """Raised when a ledger entry cannot be found."""


class GoalNotFoundError(AllowanceTrackerError):
    """Raised when a child has no goal matching the request."""


class ActiveGoalExistsError(AllowanceTrackerError):
    """Raised when creating a goal while another one is still active."""


class StorageError(AllowanceTrackerError):
    """Raised when a storage backend cannot read or write its data."""
