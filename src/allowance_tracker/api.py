"""Convert allowance tracker objects into JSON friendly dictionaries."""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from .calendar_view import CalendarDay, CalendarMonth
from .export import ExportToPathResult
from .goals import GoalStatus
from .models import (
    AllowanceConfig,
    Child,
    DataDirectoryResult,
    DeleteResult,
    ExportResult,
    Goal,
    GoalCalculation,
    MoneyResult,
    ParentalControlAttempt,
    ParentalControlStats,
    Transaction,
    TransactionPage,
)
from .table import FormattedTransaction


def _money(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


class ApiExporter:
    """Serialise domain objects for the REST layer."""

    def child(self, child: Optional[Child]) -> Optional[Dict[str, object]]:
        if child is None:
            return None
        return {
            "id": child.id,
            "name": child.name,
            "birthdate": child.birthdate.isoformat(),
            "created_at": child.created_at.isoformat(),
            "updated_at": child.updated_at.isoformat(),
        }

    def transaction(self, transaction: Transaction) -> Dict[str, object]:
        return {
            "id": transaction.id,
            "child_id": transaction.child_id,
            "date": transaction.date.isoformat(),
            "description": transaction.description,
            "amount": float(transaction.amount),
            "balance": _money(transaction.balance),
            "transaction_type": transaction.transaction_type.value,
        }

    def transactions(self, transactions: Iterable[Transaction]) -> List[Dict[str, object]]:
        return [self.transaction(tx) for tx in transactions]

    def page(self, page: TransactionPage) -> Dict[str, object]:
        return {
            "transactions": self.transactions(page.transactions),
            "pagination": {"has_more": page.has_more, "next_cursor": page.next_cursor},
        }

    def delete_result(self, result: DeleteResult) -> Dict[str, object]:
        return {
            "deleted_count": result.deleted_count,
            "success_message": result.success_message,
            "not_found_ids": list(result.not_found_ids),
        }

    def money_result(self, result: MoneyResult) -> Dict[str, object]:
        return {
            "transaction": self.transaction(result.transaction),
            "success_message": result.success_message,
            "formatted_amount": result.formatted_amount,
        }

    def table_row(self, row: FormattedTransaction) -> Dict[str, object]:
        return {
            "id": row.id,
            "formatted_date": row.formatted_date,
            "description": row.description,
            "formatted_amount": row.formatted_amount,
            "amount_type": row.amount_type.value,
            "css_class": row.css_class,
            "formatted_balance": row.formatted_balance,
            "raw_amount": float(row.raw_amount),
            "raw_balance": _money(row.raw_balance),
            "raw_date": row.raw_date.isoformat(),
        }

    def calendar_day(self, day: CalendarDay) -> Dict[str, object]:
        return {
            "day": day.day,
            "day_type": day.day_type.value,
            "balance": _money(day.balance),
            "transactions": self.transactions(day.transactions),
        }

    def calendar_month(self, month: CalendarMonth) -> Dict[str, object]:
        return {
            "month": month.month,
            "year": month.year,
            "month_name": month.month_name,
            "first_day_of_week": month.first_day_of_week,
            "days": [self.calendar_day(day) for day in month.days],
        }

    def allowance(self, config: Optional[AllowanceConfig]) -> Optional[Dict[str, object]]:
        if config is None:
            return None
        return {
            "child_id": config.child_id,
            "amount": float(config.amount),
            "day_of_week": config.day_of_week,
            "day_name": config.day_name,
            "is_active": config.is_active,
            "created_at": config.created_at.isoformat(),
            "updated_at": config.updated_at.isoformat(),
        }

    def goal(self, goal: Goal) -> Dict[str, object]:
        return {
            "id": goal.id,
            "child_id": goal.child_id,
            "description": goal.description,
            "target_amount": float(goal.target_amount),
            "state": goal.state.value,
            "created_at": goal.created_at.isoformat(),
            "updated_at": goal.updated_at.isoformat(),
        }

    def calculation(self, calculation: GoalCalculation) -> Dict[str, object]:
        completion = calculation.projected_completion_date
        return {
            "current_balance": float(calculation.current_balance),
            "amount_needed": float(calculation.amount_needed),
            "projected_completion_date": completion.isoformat() if completion else None,
            "allowances_needed": calculation.allowances_needed,
            "is_achievable": calculation.is_achievable,
            "exceeds_time_limit": calculation.exceeds_time_limit,
        }

    def goal_status(self, status: Optional[GoalStatus]) -> Dict[str, object]:
        if status is None:
            return {"goal": None, "calculation": None}
        return {"goal": self.goal(status.goal), "calculation": self.calculation(status.calculation)}

    def attempt(self, attempt: ParentalControlAttempt) -> Dict[str, object]:
        return {
            "id": attempt.id,
            "attempted_value": attempt.attempted_value,
            "timestamp": attempt.timestamp.isoformat(),
            "success": attempt.success,
        }

    def stats(self, stats: ParentalControlStats) -> Dict[str, object]:
        return {
            "total_attempts": stats.total_attempts,
            "successful_attempts": stats.successful_attempts,
            "failed_attempts": stats.failed_attempts,
            "success_rate": stats.success_rate,
        }

    def data_directory(self, result: DataDirectoryResult) -> Dict[str, object]:
        return {
            "success": result.success,
            "message": result.message,
            "path": result.path,
            "was_redirected": result.was_redirected,
        }

    def export(self, result: ExportResult) -> Dict[str, object]:
        return {
            "csv_data": result.csv_data,
            "filename": result.filename,
            "transaction_count": result.transaction_count,
            "child_name": result.child_name,
        }

    def export_to_path(self, result: ExportToPathResult) -> Dict[str, object]:
        return {
            "success": result.success,
            "message": result.message,
            "file_path": result.file_path,
            "transaction_count": result.transaction_count,
            "child_name": result.child_name,
        }


__all__ = ["ApiExporter"]
