"""Ledger operations: create, list, delete, add/spend money and allowance issuing."""

from __future__ import annotations

import calendar
import secrets
import time
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

from . import ledger
from .allowances import ALLOWANCE_DESCRIPTION, AllowanceService
from .balances import BalanceService
from .children import ChildService
from .clock import Clock
from .exceptions import TransactionNotFoundError, ValidationError
from .goals import GoalService
from .models import (
    DESCRIPTION_MAX_LENGTH,
    Child,
    DeleteResult,
    MoneyResult,
    Transaction,
    TransactionPage,
    TransactionType,
)
from .money import MAX_AMOUNT, AmountLike, format_currency, format_signed, parse_amount_input, to_decimal
from .ops import StructuredLogger
from .storage import LedgerStore

DEFAULT_PAGE_SIZE = 20
MAX_BACKDATE_DAYS = 45
PENDING_ALLOWANCE_LOOKBACK_DAYS = 7
BACKDATED_AFTER = timedelta(hours=1)


def new_transaction_id(amount: AmountLike) -> str:
    prefix = "ex" if to_decimal(amount) < 0 else "in"
    return f"{prefix}-{time.time_ns() // 1_000_000}-{secrets.token_hex(2)}"


def validate_description(description: str) -> str:
    cleaned = (description or "").strip()
    if not cleaned:
        raise ValidationError("Please enter a description")
    if len(cleaned) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Description is too long ({len(cleaned)} characters). Maximum is {DESCRIPTION_MAX_LENGTH}."
        )
    return cleaned


def parse_transaction_date(raw: str, clock: Clock) -> datetime:
    """Parse ``YYYY-MM-DD`` (noon local time) or an RFC 3339 timestamp."""

    value = raw.strip()
    try:
        if len(value) == 10:
            return clock.noon(date.fromisoformat(value))
        return clock.localize(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError as exc:
        raise ValidationError(
            "Invalid date format. Expected YYYY-MM-DD (e.g., '2025-06-19') or "
            f"RFC 3339 format (e.g., '2025-01-15T14:30:00-05:00'): {raw}"
        ) from exc


def deletion_message(count: int) -> str:
    if count == 0:
        return "No transactions were deleted"
    if count == 1:
        return "1 transaction deleted successfully"
    return f"{count} transactions deleted successfully"


class TransactionService:
    """Maintain each child's ledger through the storage backend."""

    __slots__ = ("_store", "_children", "_balances", "_allowances", "_goals", "_clock", "_logger")

    def __init__(
        self,
        store: LedgerStore,
        children: ChildService,
        balances: BalanceService,
        allowances: AllowanceService,
        goals: GoalService,
        clock: Clock,
        logger: StructuredLogger,
    ) -> None:
        self._store = store
        self._children = children
        self._balances = balances
        self._allowances = allowances
        self._goals = goals
        self._clock = clock
        self._logger = logger

    # ------------------------------------------------------------------
    # Core ledger operations
    # ------------------------------------------------------------------
    def create_transaction(
        self,
        child: Child,
        description: str,
        amount: AmountLike,
        when: Optional[datetime] = None,
    ) -> Transaction:
        """Store a new entry and repair the balances of any later entries."""

        cleaned = validate_description(description)
        value = to_decimal(amount)
        if abs(value) > MAX_AMOUNT:
            raise ValidationError(f"Amount is too large. Maximum is {format_currency(MAX_AMOUNT)}")
        moment = self._clock.localize(when) if when is not None else self._clock.now()
        backdated = self._balances.requires_recalculation(child.id, moment)
        transaction = Transaction(
            id=new_transaction_id(value),
            child_id=child.id,
            date=moment,
            description=cleaned,
            amount=value,
            balance=self._balances.balance_for_new_transaction(child.id, moment, value),
            transaction_type=TransactionType.for_amount(value),
        )
        self._store.insert_transaction(transaction)
        if backdated:
            self._balances.recalculate_from_date(child.id, moment)
        self._logger.log(
            "transaction_created",
            child_id=child.id,
            transaction_id=transaction.id,
            amount=str(value),
            backdated=backdated,
        )
        self._goals.check_and_complete(child.id)
        return transaction

    def get_transaction(self, child: Child, transaction_id: str) -> Transaction:
        for tx in self._store.list_transactions(child.id):
            if tx.id == transaction_id:
                return tx
        raise TransactionNotFoundError(f"Transaction '{transaction_id}' not found")

    def list_transactions(
        self,
        child: Child,
        *,
        limit: int = DEFAULT_PAGE_SIZE,
        after: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> TransactionPage:
        """Newest-first page of entries; ``after`` is the previous page's last id."""

        if limit <= 0:
            raise ValidationError("Limit must be greater than zero")
        entries = self._store.list_transactions(child.id)
        if start is not None:
            entries = [tx for tx in entries if tx.date >= start]
        if end is not None:
            entries = [tx for tx in entries if tx.date <= end]
        entries.reverse()

        offset = 0
        if after:
            for index, tx in enumerate(entries):
                if tx.id == after:
                    offset = index + 1
                    break
        page = entries[offset : offset + limit]
        has_more = len(entries) > offset + limit
        return TransactionPage(
            transactions=page,
            has_more=has_more,
            next_cursor=page[-1].id if has_more and page else None,
        )

    def delete_transactions(self, child: Child, transaction_ids: Sequence[str]) -> DeleteResult:
        """Remove the given entries and recompute every balance after the earliest one."""

        requested = list(dict.fromkeys(transaction_ids))
        current = self._store.list_transactions(child.id)
        positions = {tx.id: index for index, tx in enumerate(current)}
        found = [tx_id for tx_id in requested if tx_id in positions]
        not_found = [tx_id for tx_id in requested if tx_id not in positions]

        deleted = self._store.delete_transactions(child.id, found) if found else []
        if deleted:
            self._balances.recalculate_from_index(child.id, min(positions[tx_id] for tx_id in deleted))
        self._logger.log(
            "transactions_deleted",
            child_id=child.id,
            deleted=len(deleted),
            not_found=len(not_found),
        )
        return DeleteResult(
            deleted_count=len(deleted),
            success_message=deletion_message(len(deleted)),
            not_found_ids=not_found,
        )

    # ------------------------------------------------------------------
    # Money forms
    # ------------------------------------------------------------------
    def _validated_date(self, raw: Optional[str]) -> Optional[datetime]:
        if raw is None or not raw.strip():
            return None
        moment = parse_transaction_date(raw, self._clock)
        now = self._clock.now()
        if moment.date() > now.date():
            raise ValidationError("Transaction date cannot be in the future")
        if moment < now - timedelta(days=MAX_BACKDATE_DAYS):
            raise ValidationError(f"Transaction date cannot be more than {MAX_BACKDATE_DAYS} days in the past")
        return moment

    def is_backdated(self, moment: datetime) -> bool:
        return self._clock.now() - moment > BACKDATED_AFTER

    def add_money(
        self,
        child: Child,
        description: str,
        amount: str,
        date_input: Optional[str] = None,
    ) -> MoneyResult:
        cleaned = validate_description(description)
        value = parse_amount_input(amount)
        moment = self._validated_date(date_input)
        transaction = self.create_transaction(child, cleaned, value, moment)
        formatted = format_signed(value)
        if moment is not None and self.is_backdated(moment):
            message = f"🎉 {formatted} added successfully (backdated to {date_input})!"
        else:
            message = f"🎉 {formatted} added successfully!"
        return MoneyResult(transaction=transaction, success_message=message, formatted_amount=formatted)

    def spend_money(
        self,
        child: Child,
        description: str,
        amount: str,
        date_input: Optional[str] = None,
    ) -> MoneyResult:
        cleaned = validate_description(description)
        value = parse_amount_input(amount)
        moment = self._validated_date(date_input)
        transaction = self.create_transaction(child, cleaned, -value, moment)
        formatted = format_currency(value)
        if moment is not None and self.is_backdated(moment):
            message = f"💸 {formatted} spent successfully (backdated to {date_input})!"
        else:
            message = f"💸 {formatted} spent successfully!"
        return MoneyResult(transaction=transaction, success_message=message, formatted_amount=f"-{formatted}")

    # ------------------------------------------------------------------
    # Allowances and calendar feed
    # ------------------------------------------------------------------
    def check_and_issue_pending_allowances(self, child: Optional[Child] = None) -> int:
        """Issue any allowance due in the last week that was never paid."""

        target = child or self._children.get_active_child()
        if target is None:
            return 0
        today = self._clock.today()
        pending = self._allowances.pending_allowance_dates(
            target.id, today - timedelta(days=PENDING_ALLOWANCE_LOOKBACK_DAYS), today
        )
        for day, amount in pending:
            self.create_transaction(target, ALLOWANCE_DESCRIPTION, amount, self._clock.noon(day))
        if pending:
            self._logger.log("allowances_issued", child_id=target.id, count=len(pending))
        return len(pending)

    def transactions_for_calendar(self, child: Child, month: int, year: int) -> List[Transaction]:
        """Stored entries up to the end of the month plus projected allowances inside it."""

        if not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12")
        last_day = date(year, month, calendar.monthrange(year, month)[1])
        cutoff = self._clock.end_of_day(last_day)
        stored = [tx for tx in self._store.list_transactions(child.id) if tx.date <= cutoff]
        projected = self._allowances.generate_future_allowances(child.id, date(year, month, 1), last_day)
        return ledger.chronological(stored + projected)


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_BACKDATE_DAYS",
    "TransactionService",
    "deletion_message",
    "new_transaction_id",
    "parse_transaction_date",
    "validate_description",
]
