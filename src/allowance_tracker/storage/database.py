"""SQLModel tables and the SQLite-backed store."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from sqlalchemy import DateTime
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Field, Session, SQLModel, col, create_engine, select

from ..exceptions import StorageError
from ..models import AllowanceConfig, Child, Goal, ParentalControlAttempt, Transaction, TransactionType
from .base import LedgerStore

ACTIVE_CHILD_KEY = "active_child_id"
UTC_DATETIME = DateTime(timezone=True)


def to_cents(amount: Decimal) -> int:
    return int((amount * 100).to_integral_value())


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(Decimal("0.01"))


def _utc(moment: datetime) -> datetime:
    """Timezone-aware UTC; naive values are taken to be UTC already."""

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Database models
# ---------------------------------------------------------------------------


class ChildRecord(SQLModel, table=True):
    __tablename__ = "child"

    id: Optional[int] = Field(default=None, primary_key=True)
    child_id: str = Field(index=True, unique=True)
    name: str
    birthdate: date
    created_at: datetime = Field(sa_type=UTC_DATETIME)
    updated_at: datetime = Field(sa_type=UTC_DATETIME)


class LedgerEntry(SQLModel, table=True):
    """One stored transaction; ``id`` doubles as the insertion sequence."""

    __tablename__ = "ledger_entry"

    id: Optional[int] = Field(default=None, primary_key=True)
    tx_id: str = Field(index=True, unique=True)
    child_id: str = Field(index=True)
    occurred_at: str  # ISO 8601 with offset
    sort_utc: datetime = Field(index=True, sa_type=UTC_DATETIME)
    description: str
    amount_cents: int
    balance_cents: int = 0


class AllowanceConfigRecord(SQLModel, table=True):
    __tablename__ = "allowance_config"

    id: Optional[int] = Field(default=None, primary_key=True)
    child_id: str = Field(index=True, unique=True)
    amount_cents: int
    day_of_week: int
    is_active: bool = True
    created_at: datetime = Field(sa_type=UTC_DATETIME)
    updated_at: datetime = Field(sa_type=UTC_DATETIME)


class GoalRecord(SQLModel, table=True):
    __tablename__ = "goal"

    id: Optional[int] = Field(default=None, primary_key=True)
    goal_id: str = Field(index=True, unique=True)
    child_id: str = Field(index=True)
    description: str
    target_cents: int
    state: str = "active"  # active|cancelled|completed
    created_at: datetime = Field(sa_type=UTC_DATETIME)
    updated_at: datetime = Field(sa_type=UTC_DATETIME)


class ParentalControlAttemptRecord(SQLModel, table=True):
    __tablename__ = "parental_control_attempt"

    id: Optional[int] = Field(default=None, primary_key=True)
    attempted_value: str
    timestamp: datetime = Field(sa_type=UTC_DATETIME)
    success: bool


class MetaKV(SQLModel, table=True):
    k: str = Field(primary_key=True)
    v: str


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def _child(row: ChildRecord) -> Child:
    return Child(
        id=row.child_id,
        name=row.name,
        birthdate=row.birthdate,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _transaction(row: LedgerEntry) -> Transaction:
    amount = from_cents(row.amount_cents)
    return Transaction(
        id=row.tx_id,
        child_id=row.child_id,
        date=datetime.fromisoformat(row.occurred_at),
        description=row.description,
        amount=amount,
        balance=from_cents(row.balance_cents),
        transaction_type=TransactionType.for_amount(amount),
    )


def _allowance(row: AllowanceConfigRecord) -> AllowanceConfig:
    return AllowanceConfig(
        child_id=row.child_id,
        amount=from_cents(row.amount_cents),
        day_of_week=row.day_of_week,
        is_active=row.is_active,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _goal(row: GoalRecord) -> Goal:
    return Goal(
        id=row.goal_id,
        child_id=row.child_id,
        description=row.description,
        target_amount=from_cents(row.target_cents),
        state=row.state,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _attempt(row: ParentalControlAttemptRecord) -> ParentalControlAttempt:
    return ParentalControlAttempt(
        id=row.id or 0,
        attempted_value=row.attempted_value,
        timestamp=_aware(row.timestamp),
        success=row.success,
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class SqliteStore(LedgerStore):
    """Persist everything in a single SQLite database file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(
            f"sqlite:///{self.path}",
            echo=False,
            connect_args={"check_same_thread": False},
        )
        try:
            SQLModel.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to initialise database {self.path}: {exc}") from exc

    @property
    def location(self) -> Path:
        return self.path

    def _session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    # -- children -------------------------------------------------------------

    def list_children(self) -> List[Child]:
        with self._session() as session:
            return [_child(row) for row in session.exec(select(ChildRecord)).all()]

    def get_child(self, child_id: str) -> Optional[Child]:
        with self._session() as session:
            row = session.exec(select(ChildRecord).where(ChildRecord.child_id == child_id)).first()
            return _child(row) if row else None

    def save_child(self, child: Child) -> None:
        with self._session() as session:
            row = session.exec(select(ChildRecord).where(ChildRecord.child_id == child.id)).first()
            if row is None:
                row = ChildRecord(
                    child_id=child.id,
                    name=child.name,
                    birthdate=child.birthdate,
                    created_at=_utc(child.created_at),
                    updated_at=_utc(child.updated_at),
                )
            else:
                row.name = child.name
                row.birthdate = child.birthdate
                row.updated_at = _utc(child.updated_at)
            session.add(row)
            session.commit()

    def delete_child(self, child_id: str) -> bool:
        with self._session() as session:
            row = session.exec(select(ChildRecord).where(ChildRecord.child_id == child_id)).first()
            if row is None:
                return False
            session.delete(row)
            for model in (LedgerEntry, AllowanceConfigRecord, GoalRecord):
                for owned in session.exec(select(model).where(model.child_id == child_id)).all():
                    session.delete(owned)
            active = session.get(MetaKV, ACTIVE_CHILD_KEY)
            if active is not None and active.v == child_id:
                session.delete(active)
            session.commit()
        return True

    def get_active_child_id(self) -> Optional[str]:
        with self._session() as session:
            row = session.get(MetaKV, ACTIVE_CHILD_KEY)
            return row.v if row else None

    def set_active_child_id(self, child_id: Optional[str]) -> None:
        with self._session() as session:
            row = session.get(MetaKV, ACTIVE_CHILD_KEY)
            if child_id is None:
                if row is not None:
                    session.delete(row)
            elif row is None:
                session.add(MetaKV(k=ACTIVE_CHILD_KEY, v=child_id))
            else:
                row.v = child_id
                session.add(row)
            session.commit()

    # -- transactions ---------------------------------------------------------

    def list_transactions(self, child_id: str) -> List[Transaction]:
        statement = (
            select(LedgerEntry)
            .where(LedgerEntry.child_id == child_id)
            .order_by(col(LedgerEntry.sort_utc), col(LedgerEntry.id))
        )
        with self._session() as session:
            return [_transaction(row) for row in session.exec(statement).all()]

    def insert_transaction(self, transaction: Transaction) -> None:
        entry = LedgerEntry(
            tx_id=transaction.id,
            child_id=transaction.child_id,
            occurred_at=transaction.date.isoformat(),
            sort_utc=_utc(transaction.date),
            description=transaction.description,
            amount_cents=to_cents(transaction.amount),
            balance_cents=to_cents(transaction.balance or Decimal("0")),
        )
        try:
            with self._session() as session:
                session.add(entry)
                session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to store transaction {transaction.id}: {exc}") from exc

    def update_balances(self, child_id: str, balances: Mapping[str, Decimal]) -> int:
        if not balances:
            return 0
        written = 0
        with self._session() as session:
            rows = session.exec(
                select(LedgerEntry).where(
                    LedgerEntry.child_id == child_id,
                    col(LedgerEntry.tx_id).in_(list(balances)),
                )
            ).all()
            for row in rows:
                row.balance_cents = to_cents(balances[row.tx_id])
                session.add(row)
                written += 1
            session.commit()
        return written

    def delete_transactions(self, child_id: str, transaction_ids: Sequence[str]) -> List[str]:
        with self._session() as session:
            rows = session.exec(
                select(LedgerEntry).where(
                    LedgerEntry.child_id == child_id,
                    col(LedgerEntry.tx_id).in_(list(transaction_ids)),
                )
            ).all()
            deleted = [row.tx_id for row in rows]
            for row in rows:
                session.delete(row)
            session.commit()
        return deleted

    # -- allowance ------------------------------------------------------------

    def get_allowance_config(self, child_id: str) -> Optional[AllowanceConfig]:
        with self._session() as session:
            row = session.exec(
                select(AllowanceConfigRecord).where(AllowanceConfigRecord.child_id == child_id)
            ).first()
            return _allowance(row) if row else None

    def save_allowance_config(self, config: AllowanceConfig) -> None:
        with self._session() as session:
            row = session.exec(
                select(AllowanceConfigRecord).where(AllowanceConfigRecord.child_id == config.child_id)
            ).first()
            if row is None:
                row = AllowanceConfigRecord(
                    child_id=config.child_id,
                    amount_cents=to_cents(config.amount),
                    day_of_week=config.day_of_week,
                    is_active=config.is_active,
                    created_at=_utc(config.created_at),
                    updated_at=_utc(config.updated_at),
                )
            else:
                row.amount_cents = to_cents(config.amount)
                row.day_of_week = config.day_of_week
                row.is_active = config.is_active
                row.updated_at = _utc(config.updated_at)
            session.add(row)
            session.commit()

    def delete_allowance_config(self, child_id: str) -> bool:
        with self._session() as session:
            row = session.exec(
                select(AllowanceConfigRecord).where(AllowanceConfigRecord.child_id == child_id)
            ).first()
            if row is None:
                return False
            session.delete(row)
            session.commit()
        return True

    def list_allowance_configs(self) -> List[AllowanceConfig]:
        with self._session() as session:
            return [_allowance(row) for row in session.exec(select(AllowanceConfigRecord)).all()]

    # -- goals ----------------------------------------------------------------

    def list_goals(self, child_id: str) -> List[Goal]:
        statement = (
            select(GoalRecord)
            .where(GoalRecord.child_id == child_id)
            .order_by(col(GoalRecord.created_at), col(GoalRecord.id))
        )
        with self._session() as session:
            return [_goal(row) for row in session.exec(statement).all()]

    def save_goal(self, goal: Goal) -> None:
        with self._session() as session:
            row = session.exec(select(GoalRecord).where(GoalRecord.goal_id == goal.id)).first()
            if row is None:
                row = GoalRecord(
                    goal_id=goal.id,
                    child_id=goal.child_id,
                    description=goal.description,
                    target_cents=to_cents(goal.target_amount),
                    state=goal.state.value,
                    created_at=_utc(goal.created_at),
                    updated_at=_utc(goal.updated_at),
                )
            else:
                row.description = goal.description
                row.target_cents = to_cents(goal.target_amount)
                row.state = goal.state.value
                row.updated_at = _utc(goal.updated_at)
            session.add(row)
            session.commit()

    # -- parental control ----------------------------------------------------

    def record_attempt(self, attempted_value: str, timestamp: datetime, success: bool) -> ParentalControlAttempt:
        row = ParentalControlAttemptRecord(
            attempted_value=attempted_value,
            timestamp=_utc(timestamp),
            success=success,
        )
        with self._session() as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return _attempt(row)

    def list_attempts(self) -> List[ParentalControlAttempt]:
        statement = select(ParentalControlAttemptRecord).order_by(col(ParentalControlAttemptRecord.id))
        with self._session() as session:
            return [_attempt(row) for row in session.exec(statement).all()]


__all__ = [
    "AllowanceConfigRecord",
    "ChildRecord",
    "GoalRecord",
    "LedgerEntry",
    "MetaKV",
    "ParentalControlAttemptRecord",
    "SqliteStore",
    "from_cents",
    "to_cents",
]
