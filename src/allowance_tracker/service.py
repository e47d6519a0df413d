"""High level service coordinating children, ledgers, allowances and goals."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from .allowances import AllowanceService
from .balances import BalanceService
from .calendar_view import CalendarMonth, CalendarService
from .children import ChildService
from .clock import Clock
from .data_directory import DataDirectoryService
from .export import ExportService, ExportToPathResult
from .goals import GoalService, GoalStatus
from .models import (
    AllowanceConfig,
    Child,
    DataDirectoryResult,
    DeleteResult,
    ExportResult,
    Goal,
    MoneyResult,
    ParentalControlAttempt,
    ParentalControlStats,
    Transaction,
    TransactionPage,
)
from .money import AmountLike
from .ops import StructuredLogger, normalise_level
from .parental_control import DEFAULT_ANSWER, ParentalControlService, ValidationOutcome
from .storage import LedgerStore
from .table import AmountFormat, DateFormat, FormattedTransaction, TransactionTableFormatter
from .transactions import DEFAULT_PAGE_SIZE, TransactionService


class AllowanceTracker:
    """Single entry point used by the web layer and scripts.

    Methods taking an optional ``child_id`` fall back to the active child.
    """

    __slots__ = (
        "_store",
        "_clock",
        "_logger",
        "_children",
        "_balances",
        "_allowances",
        "_goals",
        "_transactions",
        "_calendar",
        "_parental",
        "_export",
        "_data_directory",
    )

    def __init__(
        self,
        store: LedgerStore,
        *,
        clock: Optional[Clock] = None,
        logger: Optional[StructuredLogger] = None,
        parental_answer: str = DEFAULT_ANSWER,
    ) -> None:
        self._store = store
        self._clock = clock or Clock()
        self._logger = logger or StructuredLogger()
        self._children = ChildService(store, self._logger)
        self._balances = BalanceService(store, self._logger)
        self._allowances = AllowanceService(store, self._clock, self._logger)
        self._goals = GoalService(store, self._balances, self._allowances, self._clock, self._logger)
        self._transactions = TransactionService(
            store,
            self._children,
            self._balances,
            self._allowances,
            self._goals,
            self._clock,
            self._logger,
        )
        self._calendar = CalendarService(self._transactions, self._clock)
        self._parental = ParentalControlService(store, self._clock, self._logger, answer=parental_answer)
        self._export = ExportService(store, self._clock, self._logger)
        self._data_directory = DataDirectoryService(store, self._logger)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def store(self) -> LedgerStore:
        return self._store

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def logger(self) -> StructuredLogger:
        return self._logger

    @property
    def balances(self) -> BalanceService:
        return self._balances

    @property
    def allowances(self) -> AllowanceService:
        return self._allowances

    @property
    def goals(self) -> GoalService:
        return self._goals

    # ------------------------------------------------------------------
    # Children
    # ------------------------------------------------------------------
    def create_child(self, name: str, birthdate: str) -> Child:
        return self._children.create_child(name, birthdate)

    def get_child(self, child_id: str) -> Child:
        return self._children.get_child(child_id)

    def list_children(self) -> List[Child]:
        return self._children.list_children()

    def update_child(self, child_id: str, *, name: Optional[str] = None, birthdate: Optional[str] = None) -> Child:
        return self._children.update_child(child_id, name=name, birthdate=birthdate)

    def delete_child(self, child_id: str) -> None:
        self._children.delete_child(child_id)

    def active_child(self) -> Optional[Child]:
        return self._children.get_active_child()

    def set_active_child(self, child_id: str) -> Child:
        return self._children.set_active_child(child_id)

    def resolve_child(self, child_id: Optional[str] = None) -> Child:
        return self._children.resolve(child_id)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    def create_transaction(
        self,
        description: str,
        amount: AmountLike,
        *,
        when: Optional[datetime] = None,
        child_id: Optional[str] = None,
    ) -> Transaction:
        return self._transactions.create_transaction(self.resolve_child(child_id), description, amount, when)

    def list_transactions(
        self,
        *,
        limit: int = DEFAULT_PAGE_SIZE,
        after: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        child_id: Optional[str] = None,
    ) -> TransactionPage:
        return self._transactions.list_transactions(
            self.resolve_child(child_id), limit=limit, after=after, start=start, end=end
        )

    def get_transaction(self, transaction_id: str, *, child_id: Optional[str] = None) -> Transaction:
        return self._transactions.get_transaction(self.resolve_child(child_id), transaction_id)

    def delete_transactions(self, transaction_ids: Sequence[str], *, child_id: Optional[str] = None) -> DeleteResult:
        return self._transactions.delete_transactions(self.resolve_child(child_id), transaction_ids)

    def add_money(
        self,
        description: str,
        amount: str,
        *,
        date: Optional[str] = None,
        child_id: Optional[str] = None,
    ) -> MoneyResult:
        return self._transactions.add_money(self.resolve_child(child_id), description, amount, date)

    def spend_money(
        self,
        description: str,
        amount: str,
        *,
        date: Optional[str] = None,
        child_id: Optional[str] = None,
    ) -> MoneyResult:
        return self._transactions.spend_money(self.resolve_child(child_id), description, amount, date)

    def issue_pending_allowances(self, child_id: Optional[str] = None) -> int:
        child = self.get_child(child_id) if child_id else self.active_child()
        if child is None:
            return 0
        return self._transactions.check_and_issue_pending_allowances(child)

    def current_balance(self, child_id: Optional[str] = None) -> Decimal:
        return self._balances.current_balance(self.resolve_child(child_id).id)

    def validate_balances(self, child_id: Optional[str] = None) -> List[str]:
        return self._balances.validate_balances(self.resolve_child(child_id).id)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def calendar_month(self, month: int, year: int, *, child_id: Optional[str] = None) -> CalendarMonth:
        return self._calendar.month(self.resolve_child(child_id), month, year)

    def transaction_table(
        self,
        *,
        limit: int = DEFAULT_PAGE_SIZE,
        after: Optional[str] = None,
        child_id: Optional[str] = None,
        date_format: DateFormat = DateFormat.MONTH_DAY_YEAR,
        amount_format: AmountFormat = AmountFormat.PLUS_MINUS_SIGN,
    ) -> Tuple[List[FormattedTransaction], TransactionPage]:
        page = self.list_transactions(limit=limit, after=after, child_id=child_id)
        formatter = TransactionTableFormatter(date_format=date_format, amount_format=amount_format)
        return formatter.format_rows(page.transactions), page

    # ------------------------------------------------------------------
    # Allowance
    # ------------------------------------------------------------------
    def get_allowance(self, child_id: Optional[str] = None) -> Optional[AllowanceConfig]:
        return self._allowances.get_config(self.resolve_child(child_id).id)

    def update_allowance(
        self,
        amount: AmountLike,
        day_of_week: int,
        *,
        is_active: bool = True,
        child_id: Optional[str] = None,
    ) -> AllowanceConfig:
        return self._allowances.update_config(
            self.resolve_child(child_id), amount=amount, day_of_week=day_of_week, is_active=is_active
        )

    def delete_allowance(self, child_id: Optional[str] = None) -> bool:
        return self._allowances.delete_config(self.resolve_child(child_id).id)

    def list_allowances(self) -> List[AllowanceConfig]:
        return self._allowances.list_configs()

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------
    def current_goal(self, child_id: Optional[str] = None) -> Optional[GoalStatus]:
        return self._goals.current_status(self.resolve_child(child_id).id)

    def create_goal(self, description: str, target_amount: AmountLike, *, child_id: Optional[str] = None) -> GoalStatus:
        return self._goals.create_goal(self.resolve_child(child_id), description, target_amount)

    def update_goal(
        self,
        *,
        description: Optional[str] = None,
        target_amount: Optional[AmountLike] = None,
        child_id: Optional[str] = None,
    ) -> GoalStatus:
        return self._goals.update_goal(
            self.resolve_child(child_id), description=description, target_amount=target_amount
        )

    def cancel_goal(self, child_id: Optional[str] = None) -> Goal:
        return self._goals.cancel_goal(self.resolve_child(child_id))

    def goal_history(self, *, limit: Optional[int] = None, child_id: Optional[str] = None) -> List[Goal]:
        child = self.get_child(child_id) if child_id else self.active_child()
        if child is None:
            return []
        return self._goals.history(child.id, limit)

    def goal_progression(self, child_id: Optional[str] = None) -> List[Transaction]:
        goal = self._goals.current_goal(self.resolve_child(child_id).id)
        return self._goals.progression(goal) if goal else []

    # ------------------------------------------------------------------
    # Parental control
    # ------------------------------------------------------------------
    def validate_parental_answer(self, answer: str) -> ValidationOutcome:
        return self._parental.validate(answer)

    def parental_attempts(self, limit: int = 10) -> List[ParentalControlAttempt]:
        return self._parental.recent_attempts(limit)

    def parental_stats(self) -> ParentalControlStats:
        return self._parental.stats()

    # ------------------------------------------------------------------
    # Data directory and export
    # ------------------------------------------------------------------
    def current_data_directory(self, child_id: Optional[str] = None) -> DataDirectoryResult:
        return self._data_directory.current(self.resolve_child(child_id))

    def relocate_data_directory(self, new_path: str, *, child_id: Optional[str] = None) -> DataDirectoryResult:
        return self._data_directory.relocate(self.resolve_child(child_id), new_path)

    def revert_data_directory(self, child_id: Optional[str] = None) -> DataDirectoryResult:
        return self._data_directory.revert(self.resolve_child(child_id))

    def export_csv(self, child_id: Optional[str] = None) -> ExportResult:
        return self._export.export_csv(self.resolve_child(child_id))

    def export_to_path(self, custom_path: Optional[str] = None, *, child_id: Optional[str] = None) -> ExportToPathResult:
        return self._export.export_to_path(self.resolve_child(child_id), custom_path)

    def write_file(self, file_path: str, content: str) -> ExportToPathResult:
        return self._export.write_file(file_path, content)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    def log_message(self, level: Optional[str], message: str, component: Optional[str] = None) -> dict:
        """Record a message sent by a front-end client."""

        return self._logger.log(
            "client_log",
            level=normalise_level(level),
            component=component or "frontend",
            message=message,
        )

    def recent_logs(self, limit: int = 50, *, level: Optional[str] = None) -> tuple[dict, ...]:
        return self._logger.tail(limit, level=level)


__all__ = ["AllowanceTracker"]
