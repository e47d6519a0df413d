"""FastAPI application exposing the allowance tracker as a JSON REST API."""
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import AsyncIterator, List, Optional, Union

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.middleware.cors import CORSMiddleware

from ..api import ApiExporter
from ..clock import Clock
from ..exceptions import (
    ActiveGoalExistsError,
    AllowanceTrackerError,
    ChildNotFoundError,
    GoalNotFoundError,
    NoActiveChildError,
    StorageError,
    TransactionNotFoundError,
    ValidationError,
)
from ..ops import StructuredLogger
from ..service import AllowanceTracker
from ..storage import open_store
from ..table import AmountFormat, DateFormat
from ..transactions import DEFAULT_PAGE_SIZE, parse_transaction_date
from .config import (
    CORS_ORIGINS,
    DATA_DIR,
    LOG_FILE,
    PARENTAL_ANSWER,
    SQLITE_FILE_NAME,
    STORAGE_BACKEND,
    UTC_OFFSET_HOURS,
)


def build_tracker() -> AllowanceTracker:
    """Wire a tracker from the environment-driven configuration."""

    store = open_store(STORAGE_BACKEND, data_dir=DATA_DIR, sqlite_path=SQLITE_FILE_NAME)
    logger = StructuredLogger(path=Path(LOG_FILE) if LOG_FILE else None)
    return AllowanceTracker(
        store,
        clock=Clock(utc_offset_hours=UTC_OFFSET_HOURS),
        logger=logger,
        parental_answer=PARENTAL_ANSWER,
    )


tracker = build_tracker()
exporter = ApiExporter()


def get_tracker() -> AllowanceTracker:
    return tracker


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    issued = get_tracker().issue_pending_allowances()
    get_tracker().logger.log("startup", backend=STORAGE_BACKEND, pending_allowances_issued=issued)
    yield


# ---------------------------------------------------------------------------
# FastAPI application setup
# ---------------------------------------------------------------------------
app = FastAPI(title="Allowance Tracker", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(CORS_ORIGINS),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


ERROR_STATUS = (
    (ValidationError, 400),
    (ActiveGoalExistsError, 400),
    (NoActiveChildError, 400),
    (ChildNotFoundError, 404),
    (TransactionNotFoundError, 404),
    (GoalNotFoundError, 404),
    (StorageError, 500),
)


@app.exception_handler(AllowanceTrackerError)
async def tracker_error_handler(request: Request, exc: AllowanceTrackerError) -> JSONResponse:
    status = next((code for kind, code in ERROR_STATUS if isinstance(exc, kind)), 500)
    get_tracker().logger.log(
        "request_failed",
        level="error" if status >= 500 else "warn",
        path=request.url.path,
        status=status,
        error=str(exc),
    )
    return JSONResponse({"detail": str(exc)}, status_code=status)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------
class ChildCreate(BaseModel):
    name: str
    birthdate: str


class ChildUpdate(BaseModel):
    name: Optional[str] = None
    birthdate: Optional[str] = None


class ActiveChildRequest(BaseModel):
    child_id: str


class TransactionCreate(BaseModel):
    description: str
    amount: Decimal
    date: Optional[str] = None
    child_id: Optional[str] = None


class TransactionDelete(BaseModel):
    transaction_ids: List[str] = Field(default_factory=list)
    child_id: Optional[str] = None


class MoneyRequest(BaseModel):
    description: str
    amount: Union[str, float]
    date: Optional[str] = None
    child_id: Optional[str] = None


class AllowanceUpdate(BaseModel):
    amount: Decimal
    day_of_week: int
    is_active: bool = True
    child_id: Optional[str] = None


class GoalCreate(BaseModel):
    description: str
    target_amount: Decimal
    child_id: Optional[str] = None


class GoalUpdate(BaseModel):
    description: Optional[str] = None
    target_amount: Optional[Decimal] = None
    child_id: Optional[str] = None


class ParentalControlRequest(BaseModel):
    answer: str


class ChildScoped(BaseModel):
    child_id: Optional[str] = None


class RelocateRequest(BaseModel):
    new_path: str
    child_id: Optional[str] = None


class ExportToPathRequest(BaseModel):
    custom_path: Optional[str] = None
    child_id: Optional[str] = None


class WriteFileRequest(BaseModel):
    file_path: str
    content: str


class LogRequest(BaseModel):
    level: Optional[str] = "info"
    message: str
    component: Optional[str] = None


def _range_bound(raw: Optional[str], *, end: bool = False) -> Optional[datetime]:
    """Parse a list filter; bare dates cover the whole local day."""

    if not raw:
        return None
    clock = get_tracker().clock
    value = raw.strip()
    if len(value) == 10:
        try:
            day = date.fromisoformat(value)
        except ValueError as exc:
            raise ValidationError(f"Invalid date '{raw}', expected YYYY-MM-DD") from exc
        if end:
            return clock.end_of_day(day)
        return datetime.combine(day, datetime.min.time(), tzinfo=clock.tz)
    return parse_transaction_date(value, clock)


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------
@app.get("/health")
def health() -> JSONResponse:
    store = get_tracker().store
    return JSONResponse({"status": "ok", "backend": type(store).__name__, "location": str(store.location)})


# ---------------------------------------------------------------------------
# Children
# ---------------------------------------------------------------------------
@app.get("/api/children")
def list_children() -> JSONResponse:
    return JSONResponse({"children": [exporter.child(child) for child in get_tracker().list_children()]})


@app.post("/api/children")
def create_child(payload: ChildCreate) -> JSONResponse:
    child = get_tracker().create_child(payload.name, payload.birthdate)
    return JSONResponse(
        {"child": exporter.child(child), "success_message": "Child created successfully"},
        status_code=201,
    )


@app.get("/api/children/active")
def get_active_child() -> JSONResponse:
    return JSONResponse({"active_child": exporter.child(get_tracker().active_child())})


@app.post("/api/children/active")
def set_active_child(payload: ActiveChildRequest) -> JSONResponse:
    child = get_tracker().set_active_child(payload.child_id)
    return JSONResponse({"active_child": exporter.child(child), "success_message": "Active child updated"})


@app.get("/api/children/{child_id}")
def get_child(child_id: str) -> JSONResponse:
    return JSONResponse({"child": exporter.child(get_tracker().get_child(child_id))})


@app.put("/api/children/{child_id}")
def update_child(child_id: str, payload: ChildUpdate) -> JSONResponse:
    child = get_tracker().update_child(child_id, name=payload.name, birthdate=payload.birthdate)
    return JSONResponse({"child": exporter.child(child), "success_message": "Child updated successfully"})


@app.delete("/api/children/{child_id}")
def delete_child(child_id: str) -> JSONResponse:
    get_tracker().delete_child(child_id)
    return JSONResponse({"success_message": "Child deleted successfully"})


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------
@app.get("/api/transactions")
def list_transactions(
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=1000),
    after: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    child_id: Optional[str] = None,
) -> JSONResponse:
    page = get_tracker().list_transactions(
        limit=limit,
        after=after,
        start=_range_bound(start_date),
        end=_range_bound(end_date, end=True),
        child_id=child_id,
    )
    return JSONResponse(exporter.page(page))


@app.post("/api/transactions")
def create_transaction(payload: TransactionCreate) -> JSONResponse:
    tracker_ = get_tracker()
    when = parse_transaction_date(payload.date, tracker_.clock) if payload.date else None
    transaction = tracker_.create_transaction(
        payload.description, payload.amount, when=when, child_id=payload.child_id
    )
    return JSONResponse(exporter.transaction(transaction), status_code=201)


@app.delete("/api/transactions")
def delete_transactions(payload: TransactionDelete) -> JSONResponse:
    if not payload.transaction_ids:
        raise ValidationError("No transaction ids supplied")
    result = get_tracker().delete_transactions(payload.transaction_ids, child_id=payload.child_id)
    return JSONResponse(exporter.delete_result(result))


@app.get("/api/transactions/table")
def transaction_table(
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=1000),
    after: Optional[str] = None,
    child_id: Optional[str] = None,
    date_format: DateFormat = DateFormat.MONTH_DAY_YEAR,
    amount_format: AmountFormat = AmountFormat.PLUS_MINUS_SIGN,
) -> JSONResponse:
    rows, page = get_tracker().transaction_table(
        limit=limit,
        after=after,
        child_id=child_id,
        date_format=date_format,
        amount_format=amount_format,
    )
    return JSONResponse(
        {
            "rows": [exporter.table_row(row) for row in rows],
            "pagination": {"has_more": page.has_more, "next_cursor": page.next_cursor},
        }
    )


@app.get("/api/transactions/{transaction_id}")
def get_transaction(transaction_id: str, child_id: Optional[str] = None) -> JSONResponse:
    return JSONResponse(exporter.transaction(get_tracker().get_transaction(transaction_id, child_id=child_id)))


@app.post("/api/money/add")
def add_money(payload: MoneyRequest) -> JSONResponse:
    result = get_tracker().add_money(
        payload.description, str(payload.amount), date=payload.date, child_id=payload.child_id
    )
    return JSONResponse(exporter.money_result(result), status_code=201)


@app.post("/api/money/spend")
def spend_money(payload: MoneyRequest) -> JSONResponse:
    result = get_tracker().spend_money(
        payload.description, str(payload.amount), date=payload.date, child_id=payload.child_id
    )
    return JSONResponse(exporter.money_result(result), status_code=201)


@app.get("/api/balances/validate")
def validate_balances(child_id: Optional[str] = None) -> JSONResponse:
    errors = get_tracker().validate_balances(child_id)
    return JSONResponse({"valid": not errors, "errors": errors})


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------
@app.get("/api/calendar/month")
def calendar_month(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=1970, le=9999),
    child_id: Optional[str] = None,
) -> JSONResponse:
    return JSONResponse(exporter.calendar_month(get_tracker().calendar_month(month, year, child_id=child_id)))


# ---------------------------------------------------------------------------
# Allowance
# ---------------------------------------------------------------------------
@app.get("/api/allowance")
def get_allowance(child_id: Optional[str] = None) -> JSONResponse:
    return JSONResponse({"allowance_config": exporter.allowance(get_tracker().get_allowance(child_id))})


@app.post("/api/allowance")
def update_allowance(payload: AllowanceUpdate) -> JSONResponse:
    config = get_tracker().update_allowance(
        payload.amount, payload.day_of_week, is_active=payload.is_active, child_id=payload.child_id
    )
    return JSONResponse(
        {
            "allowance_config": exporter.allowance(config),
            "success_message": "Allowance configuration updated successfully",
        }
    )


@app.delete("/api/allowance")
def delete_allowance(child_id: Optional[str] = None) -> JSONResponse:
    return JSONResponse({"deleted": get_tracker().delete_allowance(child_id)})


@app.get("/api/allowances")
def list_allowances() -> JSONResponse:
    return JSONResponse({"allowance_configs": [exporter.allowance(config) for config in get_tracker().list_allowances()]})


@app.post("/api/allowances/issue-pending")
def issue_pending_allowances(payload: Optional[ChildScoped] = None) -> JSONResponse:
    issued = get_tracker().issue_pending_allowances(payload.child_id if payload else None)
    return JSONResponse({"issued_count": issued})


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------
@app.get("/api/goals/current")
def current_goal(child_id: Optional[str] = None) -> JSONResponse:
    return JSONResponse(exporter.goal_status(get_tracker().current_goal(child_id)))


@app.get("/api/goals/progression")
def goal_progression(child_id: Optional[str] = None) -> JSONResponse:
    return JSONResponse({"transactions": exporter.transactions(get_tracker().goal_progression(child_id))})


@app.post("/api/goals")
def create_goal(payload: GoalCreate) -> JSONResponse:
    status = get_tracker().create_goal(payload.description, payload.target_amount, child_id=payload.child_id)
    body = exporter.goal_status(status)
    body["success_message"] = "Goal created successfully"
    return JSONResponse(body, status_code=201)


@app.put("/api/goals")
def update_goal(payload: GoalUpdate) -> JSONResponse:
    status = get_tracker().update_goal(
        description=payload.description,
        target_amount=payload.target_amount,
        child_id=payload.child_id,
    )
    body = exporter.goal_status(status)
    body["success_message"] = "Goal updated successfully"
    return JSONResponse(body)


@app.delete("/api/goals")
def cancel_goal(child_id: Optional[str] = None) -> JSONResponse:
    goal = get_tracker().cancel_goal(child_id)
    return JSONResponse({"goal": exporter.goal(goal), "success_message": "Goal cancelled successfully"})


@app.get("/api/goals/history")
def goal_history(limit: Optional[int] = Query(None, ge=1), child_id: Optional[str] = None) -> JSONResponse:
    goals = get_tracker().goal_history(limit=limit, child_id=child_id)
    return JSONResponse({"goals": [exporter.goal(goal) for goal in goals]})


# ---------------------------------------------------------------------------
# Parental control
# ---------------------------------------------------------------------------
@app.post("/api/parental-control/validate")
def validate_parental_control(payload: ParentalControlRequest) -> JSONResponse:
    outcome = get_tracker().validate_parental_answer(payload.answer)
    return JSONResponse({"success": outcome.success, "message": outcome.message})


@app.get("/api/parental-control/attempts")
def parental_control_attempts(limit: int = Query(10, ge=1, le=500)) -> JSONResponse:
    attempts = get_tracker().parental_attempts(limit)
    return JSONResponse({"attempts": [exporter.attempt(attempt) for attempt in attempts]})


@app.get("/api/parental-control/stats")
def parental_control_stats() -> JSONResponse:
    return JSONResponse(exporter.stats(get_tracker().parental_stats()))


# ---------------------------------------------------------------------------
# Data directory and export
# ---------------------------------------------------------------------------
@app.get("/api/data-directory/current")
def current_data_directory(child_id: Optional[str] = None) -> JSONResponse:
    return JSONResponse(exporter.data_directory(get_tracker().current_data_directory(child_id)))


@app.post("/api/data-directory/relocate")
def relocate_data_directory(payload: RelocateRequest) -> JSONResponse:
    result = get_tracker().relocate_data_directory(payload.new_path, child_id=payload.child_id)
    return JSONResponse(exporter.data_directory(result))


@app.post("/api/data-directory/revert")
def revert_data_directory(payload: Optional[ChildScoped] = None) -> JSONResponse:
    result = get_tracker().revert_data_directory(payload.child_id if payload else None)
    return JSONResponse(exporter.data_directory(result))


@app.post("/api/export/csv")
def export_csv(payload: Optional[ChildScoped] = None) -> JSONResponse:
    return JSONResponse(exporter.export(get_tracker().export_csv(payload.child_id if payload else None)))


@app.post("/api/export/to-path")
def export_to_path(payload: ExportToPathRequest) -> JSONResponse:
    result = get_tracker().export_to_path(payload.custom_path, child_id=payload.child_id)
    return JSONResponse(exporter.export_to_path(result))


@app.post("/api/export/write-file")
def write_file(payload: WriteFileRequest) -> JSONResponse:
    return JSONResponse(exporter.export_to_path(get_tracker().write_file(payload.file_path, payload.content)))


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
@app.post("/api/logs")
def post_log(payload: LogRequest) -> JSONResponse:
    entry = get_tracker().log_message(payload.level, payload.message, payload.component)
    return JSONResponse({"success": True, "level": entry["level"], "component": entry["component"]})


@app.get("/api/logs")
def recent_logs(limit: int = Query(50, ge=1, le=1000), level: Optional[str] = None) -> JSONResponse:
    return JSONResponse({"entries": list(get_tracker().recent_logs(limit, level=level))})


__all__ = ["app", "build_tracker", "get_tracker", "tracker"]
