"""Flat-file storage: JSON documents and CSV ledgers under a base directory.

Layout::

    <base>/global_config.json
    <base>/parental_control_attempts.csv
    <base>/<child_dir>/child.json
    <base>/<child_dir>/.allowance_redirect      (optional, points elsewhere)
    <data_dir>/allowance_config.json
    <data_dir>/transactions.csv
    <data_dir>/goals.csv

``<data_dir>`` is the child's own directory unless a redirect file exists.
"""

from __future__ import annotations

import csv
import json
import os
import shutil
import tempfile
import unicodedata
from datetime import date, datetime
from decimal import Decimal
from io import StringIO
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..exceptions import ChildNotFoundError, StorageError
from ..models import AllowanceConfig, Child, Goal, ParentalControlAttempt, Transaction, TransactionType, utcnow
from .base import LedgerStore

DATA_FORMAT_VERSION = "1.0"
GLOBAL_CONFIG_FILE = "global_config.json"
ATTEMPTS_FILE = "parental_control_attempts.csv"
CHILD_FILE = "child.json"
REDIRECT_FILE = ".allowance_redirect"
ALLOWANCE_FILE = "allowance_config.json"
TRANSACTIONS_FILE = "transactions.csv"
GOALS_FILE = "goals.csv"
CHILD_DATA_FILES = (ALLOWANCE_FILE, TRANSACTIONS_FILE, GOALS_FILE)

TRANSACTION_FIELDS = ("id", "child_id", "date", "description", "amount", "balance")
GOAL_FIELDS = ("id", "child_id", "description", "target_amount", "state", "created_at", "updated_at")
ATTEMPT_FIELDS = ("id", "attempted_value", "timestamp", "success")


def safe_directory_name(name: str) -> str:
    """Turn a display name into a filesystem friendly directory name.

    ``"José María"`` becomes ``"jose_maria"``.
    """

    folded = unicodedata.normalize("NFKD", name)
    chars: List[str] = []
    for char in folded:
        if unicodedata.combining(char):
            continue
        if char.isascii() and char.isalnum():
            chars.append(char.lower())
        else:
            chars.append("_")
    return "".join(chars).strip("_") or "child"


def atomic_write(path: Path, content: str) -> None:
    """Write ``content`` to a sibling temp file, then move it over ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    handle, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(handle, "w", encoding="utf-8", newline="") as stream:
            stream.write(content)
        os.replace(temp_name, path)
    except OSError as exc:
        Path(temp_name).unlink(missing_ok=True)
        raise StorageError(f"Failed to write {path}: {exc}") from exc


def _render_csv(fields: Sequence[str], rows: Iterable[Mapping[str, object]]) -> str:
    buffer = StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(fields), lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def _read_csv(path: Path) -> List[Dict[str, str]]:
    if not path.exists():
        return []
    try:
        with path.open("r", encoding="utf-8", newline="") as stream:
            return list(csv.DictReader(stream))
    except (OSError, csv.Error) as exc:
        raise StorageError(f"Failed to read {path}: {exc}") from exc


def _read_json(path: Path) -> Optional[dict]:
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise StorageError(f"Failed to read {path}: {exc}") from exc


def _write_json(path: Path, payload: Mapping[str, object]) -> None:
    atomic_write(path, json.dumps(payload, indent=2, sort_keys=True) + "\n")


# ---------------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------------


def _child_to_dict(child: Child) -> dict:
    return {
        "id": child.id,
        "name": child.name,
        "birthdate": child.birthdate.isoformat(),
        "created_at": child.created_at.isoformat(),
        "updated_at": child.updated_at.isoformat(),
    }


def _child_from_dict(payload: Mapping[str, str]) -> Child:
    return Child(
        id=payload["id"],
        name=payload["name"],
        birthdate=date.fromisoformat(payload["birthdate"]),
        created_at=datetime.fromisoformat(payload["created_at"]),
        updated_at=datetime.fromisoformat(payload["updated_at"]),
    )


def _transaction_to_row(tx: Transaction) -> dict:
    return {
        "id": tx.id,
        "child_id": tx.child_id,
        "date": tx.date.isoformat(),
        "description": tx.description,
        "amount": f"{tx.amount:.2f}",
        "balance": "" if tx.balance is None else f"{tx.balance:.2f}",
    }


def _transaction_from_row(row: Mapping[str, str]) -> Transaction:
    amount = Decimal(row["amount"])
    return Transaction(
        id=row["id"],
        child_id=row["child_id"],
        date=datetime.fromisoformat(row["date"]),
        description=row["description"],
        amount=amount,
        balance=Decimal(row["balance"]) if row.get("balance") else None,
        transaction_type=TransactionType.for_amount(amount),
    )


def _goal_to_row(goal: Goal) -> dict:
    return {
        "id": goal.id,
        "child_id": goal.child_id,
        "description": goal.description,
        "target_amount": f"{goal.target_amount:.2f}",
        "state": goal.state.value,
        "created_at": goal.created_at.isoformat(),
        "updated_at": goal.updated_at.isoformat(),
    }


def _goal_from_row(row: Mapping[str, str]) -> Goal:
    return Goal(
        id=row["id"],
        child_id=row["child_id"],
        description=row["description"],
        target_amount=Decimal(row["target_amount"]),
        state=row["state"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _allowance_to_dict(config: AllowanceConfig) -> dict:
    return {
        "child_id": config.child_id,
        "amount": f"{config.amount:.2f}",
        "day_of_week": config.day_of_week,
        "is_active": config.is_active,
        "created_at": config.created_at.isoformat(),
        "updated_at": config.updated_at.isoformat(),
    }


def _allowance_from_dict(payload: Mapping[str, object]) -> AllowanceConfig:
    return AllowanceConfig(
        child_id=str(payload["child_id"]),
        amount=Decimal(str(payload["amount"])),
        day_of_week=int(payload["day_of_week"]),  # type: ignore[arg-type]
        is_active=bool(payload.get("is_active", True)),
        created_at=datetime.fromisoformat(str(payload["created_at"])),
        updated_at=datetime.fromisoformat(str(payload["updated_at"])),
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class FileStore(LedgerStore):
    """Keep every child in its own directory of CSV and JSON files."""

    def __init__(self, base_dir: Path | str) -> None:
        self.base_dir = Path(base_dir).expanduser()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def location(self) -> Path:
        return self.base_dir

    # -- directory bookkeeping ----------------------------------------------

    def _child_directories(self) -> Dict[str, Path]:
        directories: Dict[str, Path] = {}
        for entry in sorted(self.base_dir.iterdir()):
            child_file = entry / CHILD_FILE
            if entry.is_dir() and child_file.exists():
                payload = _read_json(child_file)
                if payload and "id" in payload:
                    directories[payload["id"]] = entry
        return directories

    def child_directory(self, child_id: str) -> Path:
        """Return the child's home directory (where ``child.json`` lives)."""

        directory = self._child_directories().get(child_id)
        if directory is None:
            raise ChildNotFoundError(f"Child '{child_id}' not found")
        return directory

    def redirect_target(self, child_id: str) -> Optional[Path]:
        redirect = self.child_directory(child_id) / REDIRECT_FILE
        if not redirect.exists():
            return None
        target = redirect.read_text(encoding="utf-8").strip()
        return Path(target) if target else None

    def child_data_path(self, child_id: str) -> Path:
        """Directory holding the child's ledger, goals and allowance files."""

        return self.redirect_target(child_id) or self.child_directory(child_id)

    def _data_file(self, child_id: str, name: str) -> Optional[Path]:
        try:
            return self.child_data_path(child_id) / name
        except ChildNotFoundError:
            return None

    def relocate_child(self, child_id: str, new_path: Path) -> str:
        """Move a child's data files into ``new_path`` and leave a redirect behind."""

        home = self.child_directory(child_id)
        source = self.child_data_path(child_id)
        target = Path(new_path).expanduser().resolve()
        if target == source.resolve():
            return f"Data directory already at {target}"
        target.mkdir(parents=True, exist_ok=True)
        moved = self._move_data_files(source, target)
        if target == home.resolve():
            (home / REDIRECT_FILE).unlink(missing_ok=True)
        else:
            atomic_write(home / REDIRECT_FILE, f"{target}\n")
        return f"Moved {moved} file(s) to {target}"

    def revert_child(self, child_id: str) -> str:
        """Move redirected data files back into the child's home directory."""

        home = self.child_directory(child_id)
        target = self.redirect_target(child_id)
        if target is None:
            return "Data directory is already at the default location"
        moved = self._move_data_files(target, home) if target.exists() else 0
        (home / REDIRECT_FILE).unlink(missing_ok=True)
        return f"Moved {moved} file(s) back to {home}"

    @staticmethod
    def _move_data_files(source: Path, target: Path) -> int:
        moved = 0
        for name in CHILD_DATA_FILES:
            origin = source / name
            if origin.exists():
                shutil.move(str(origin), str(target / name))
                moved += 1
        return moved

    # -- global config --------------------------------------------------------

    def _global_config(self) -> dict:
        payload = _read_json(self.base_dir / GLOBAL_CONFIG_FILE)
        if payload is None:
            now = utcnow().isoformat()
            payload = {
                "active_child_id": None,
                "data_format_version": DATA_FORMAT_VERSION,
                "created_at": now,
                "updated_at": now,
            }
        return payload

    def get_active_child_id(self) -> Optional[str]:
        return self._global_config().get("active_child_id")

    def set_active_child_id(self, child_id: Optional[str]) -> None:
        payload = self._global_config()
        payload["active_child_id"] = child_id
        payload["updated_at"] = utcnow().isoformat()
        _write_json(self.base_dir / GLOBAL_CONFIG_FILE, payload)

    # -- children -------------------------------------------------------------

    def list_children(self) -> List[Child]:
        children = []
        for directory in self._child_directories().values():
            payload = _read_json(directory / CHILD_FILE)
            if payload:
                children.append(_child_from_dict(payload))
        return children

    def get_child(self, child_id: str) -> Optional[Child]:
        directory = self._child_directories().get(child_id)
        if directory is None:
            return None
        payload = _read_json(directory / CHILD_FILE)
        return _child_from_dict(payload) if payload else None

    def save_child(self, child: Child) -> None:
        directories = self._child_directories()
        directory = directories.get(child.id)
        if directory is None:
            stem = safe_directory_name(child.name)
            directory = self.base_dir / stem
            suffix = 2
            while directory.exists():
                directory = self.base_dir / f"{stem}_{suffix}"
                suffix += 1
            directory.mkdir(parents=True)
        _write_json(directory / CHILD_FILE, _child_to_dict(child))

    def delete_child(self, child_id: str) -> bool:
        directory = self._child_directories().get(child_id)
        if directory is None:
            return False
        target = self.redirect_target(child_id)
        if target is not None:
            for name in CHILD_DATA_FILES:
                (target / name).unlink(missing_ok=True)
        shutil.rmtree(directory)
        if self.get_active_child_id() == child_id:
            self.set_active_child_id(None)
        return True

    # -- transactions ---------------------------------------------------------

    def _write_ledger(self, path: Path, ledger: Sequence[Transaction]) -> None:
        atomic_write(path, _render_csv(TRANSACTION_FIELDS, (_transaction_to_row(tx) for tx in ledger)))

    def list_transactions(self, child_id: str) -> List[Transaction]:
        path = self._data_file(child_id, TRANSACTIONS_FILE)
        if path is None:
            return []
        ledger = [_transaction_from_row(row) for row in _read_csv(path)]
        ledger.sort(key=lambda tx: tx.date)
        return ledger

    def insert_transaction(self, transaction: Transaction) -> None:
        path = self._data_file(transaction.child_id, TRANSACTIONS_FILE)
        if path is None:
            raise ChildNotFoundError(f"Child '{transaction.child_id}' not found")
        ledger = self.list_transactions(transaction.child_id)
        index = len(ledger)
        while index > 0 and ledger[index - 1].date > transaction.date:
            index -= 1
        ledger.insert(index, transaction)
        self._write_ledger(path, ledger)

    def update_balances(self, child_id: str, balances: Mapping[str, Decimal]) -> int:
        if not balances:
            return 0
        path = self._data_file(child_id, TRANSACTIONS_FILE)
        if path is None:
            return 0
        ledger = self.list_transactions(child_id)
        written = 0
        for tx in ledger:
            if tx.id in balances:
                tx.balance = balances[tx.id]
                written += 1
        self._write_ledger(path, ledger)
        return written

    def delete_transactions(self, child_id: str, transaction_ids: Sequence[str]) -> List[str]:
        path = self._data_file(child_id, TRANSACTIONS_FILE)
        if path is None:
            return []
        wanted = set(transaction_ids)
        ledger = self.list_transactions(child_id)
        deleted = [tx.id for tx in ledger if tx.id in wanted]
        if deleted:
            self._write_ledger(path, [tx for tx in ledger if tx.id not in wanted])
        return deleted

    # -- allowance ------------------------------------------------------------

    def get_allowance_config(self, child_id: str) -> Optional[AllowanceConfig]:
        path = self._data_file(child_id, ALLOWANCE_FILE)
        if path is None:
            return None
        payload = _read_json(path)
        return _allowance_from_dict(payload) if payload else None

    def save_allowance_config(self, config: AllowanceConfig) -> None:
        path = self._data_file(config.child_id, ALLOWANCE_FILE)
        if path is None:
            raise ChildNotFoundError(f"Child '{config.child_id}' not found")
        _write_json(path, _allowance_to_dict(config))

    def delete_allowance_config(self, child_id: str) -> bool:
        path = self._data_file(child_id, ALLOWANCE_FILE)
        if path is None or not path.exists():
            return False
        path.unlink()
        return True

    def list_allowance_configs(self) -> List[AllowanceConfig]:
        configs = []
        for child_id in self._child_directories():
            config = self.get_allowance_config(child_id)
            if config is not None:
                configs.append(config)
        return configs

    # -- goals ----------------------------------------------------------------

    def list_goals(self, child_id: str) -> List[Goal]:
        path = self._data_file(child_id, GOALS_FILE)
        if path is None:
            return []
        latest: Dict[str, Goal] = {}
        for row in _read_csv(path):
            goal = _goal_from_row(row)
            latest[goal.id] = goal
        return sorted(latest.values(), key=lambda goal: goal.created_at)

    def save_goal(self, goal: Goal) -> None:
        path = self._data_file(goal.child_id, GOALS_FILE)
        if path is None:
            raise ChildNotFoundError(f"Child '{goal.child_id}' not found")
        rows = _read_csv(path)
        rows.append({key: str(value) for key, value in _goal_to_row(goal).items()})
        atomic_write(path, _render_csv(GOAL_FIELDS, rows))

    # -- parental control ----------------------------------------------------

    def record_attempt(self, attempted_value: str, timestamp: datetime, success: bool) -> ParentalControlAttempt:
        path = self.base_dir / ATTEMPTS_FILE
        rows = _read_csv(path)
        next_id = max((int(row["id"]) for row in rows), default=0) + 1
        attempt = ParentalControlAttempt(
            id=next_id,
            attempted_value=attempted_value,
            timestamp=timestamp,
            success=success,
        )
        rows.append(
            {
                "id": str(attempt.id),
                "attempted_value": attempted_value,
                "timestamp": timestamp.isoformat(),
                "success": "true" if success else "false",
            }
        )
        atomic_write(path, _render_csv(ATTEMPT_FIELDS, rows))
        return attempt

    def list_attempts(self) -> List[ParentalControlAttempt]:
        return [
            ParentalControlAttempt(
                id=int(row["id"]),
                attempted_value=row["attempted_value"],
                timestamp=datetime.fromisoformat(row["timestamp"]),
                success=row["success"] == "true",
            )
            for row in _read_csv(self.base_dir / ATTEMPTS_FILE)
        ]


__all__ = ["FileStore", "REDIRECT_FILE", "atomic_write", "safe_directory_name"]
