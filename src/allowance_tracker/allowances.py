"""Weekly allowance configuration, projections and pending-day detection."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Iterator, List, Optional

from .clock import Clock
from .exceptions import ValidationError
from .models import AllowanceConfig, Child, Transaction, TransactionType, utcnow
from .money import MAX_AMOUNT, AmountLike, to_decimal
from .ops import StructuredLogger
from .storage import LedgerStore

ALLOWANCE_DESCRIPTION = "Weekly allowance"
ALLOWANCE_KEYWORDS = ("allowance", "weekly")


def day_of_week(day: date) -> int:
    """Weekday number counted from Sunday (Sunday = 0, Saturday = 6)."""

    return (day.weekday() + 1) % 7


def is_allowance_day(day: date, allowance_day: int) -> bool:
    return day_of_week(day) == allowance_day


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def future_allowance_id(child_id: str, day: date) -> str:
    return f"future-allowance::{child_id}::{day.isoformat()}"


def looks_like_allowance(transaction: Transaction) -> bool:
    description = transaction.description.lower()
    return transaction.amount > 0 and any(keyword in description for keyword in ALLOWANCE_KEYWORDS)


class AllowanceService:
    """Manage each child's weekly allowance."""

    __slots__ = ("_store", "_clock", "_logger")

    def __init__(self, store: LedgerStore, clock: Clock, logger: StructuredLogger) -> None:
        self._store = store
        self._clock = clock
        self._logger = logger

    def get_config(self, child_id: str) -> Optional[AllowanceConfig]:
        return self._store.get_allowance_config(child_id)

    def update_config(
        self,
        child: Child,
        *,
        amount: AmountLike,
        day_of_week: int,
        is_active: bool = True,
    ) -> AllowanceConfig:
        """Create or replace the allowance for ``child``."""

        if not 0 <= int(day_of_week) <= 6:
            raise ValidationError("Day of week must be between 0 (Sunday) and 6 (Saturday)")
        value = to_decimal(amount)
        if value < 0:
            raise ValidationError("Allowance amount cannot be negative")
        if value > MAX_AMOUNT:
            raise ValidationError("Allowance amount cannot exceed $1,000,000")

        config = self._store.get_allowance_config(child.id)
        if config is None:
            config = AllowanceConfig(child_id=child.id, amount=value, day_of_week=int(day_of_week), is_active=is_active)
        else:
            config.amount = value
            config.day_of_week = int(day_of_week)
            config.is_active = is_active
            config.updated_at = utcnow()
        self._store.save_allowance_config(config)
        self._logger.log(
            "allowance_updated",
            child_id=child.id,
            amount=str(config.amount),
            day=config.day_name,
            active=config.is_active,
        )
        return config

    def delete_config(self, child_id: str) -> bool:
        deleted = self._store.delete_allowance_config(child_id)
        if deleted:
            self._logger.log("allowance_deleted", child_id=child_id)
        return deleted

    def list_configs(self) -> List[AllowanceConfig]:
        return self._store.list_allowance_configs()

    def _active_config(self, child_id: str) -> Optional[AllowanceConfig]:
        config = self._store.get_allowance_config(child_id)
        if config is None or not config.is_active:
            return None
        return config

    def generate_future_allowances(self, child_id: str, start: date, end: date) -> List[Transaction]:
        """Projected allowance entries for matching days after today within ``[start, end]``."""

        config = self._active_config(child_id)
        if config is None:
            return []
        today = self._clock.today()
        projected = []
        for day in iter_days(max(start, today + timedelta(days=1)), end):
            if not is_allowance_day(day, config.day_of_week):
                continue
            projected.append(
                Transaction(
                    id=future_allowance_id(child_id, day),
                    child_id=child_id,
                    date=datetime.combine(day, time(12, 0), tzinfo=timezone.utc),
                    description=ALLOWANCE_DESCRIPTION,
                    amount=config.amount,
                    balance=None,
                    transaction_type=TransactionType.FUTURE_ALLOWANCE,
                )
            )
        return projected

    def pending_allowance_dates(self, child_id: str, start: date, end: date) -> List[tuple[date, Decimal]]:
        """Allowance days up to today in ``[start, end]`` that were never paid."""

        config = self._active_config(child_id)
        if config is None:
            return []
        today = self._clock.today()
        paid_days = {
            self._clock.localize(tx.date).date()
            for tx in self._store.list_transactions(child_id)
            if looks_like_allowance(tx)
        }
        return [
            (day, config.amount)
            for day in iter_days(start, min(end, today))
            if is_allowance_day(day, config.day_of_week) and day not in paid_days
        ]


__all__ = [
    "ALLOWANCE_DESCRIPTION",
    "AllowanceService",
    "day_of_week",
    "future_allowance_id",
    "is_allowance_day",
    "iter_days",
    "looks_like_allowance",
]
