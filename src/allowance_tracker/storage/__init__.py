"""Storage backends for the allowance tracker."""

from __future__ import annotations

from pathlib import Path

from .base import LedgerStore
from .database import SqliteStore
from .files import FileStore

BACKENDS = ("csv", "sqlite")


def open_store(kind: str, *, data_dir: Path | str, sqlite_path: Path | str | None = None) -> LedgerStore:
    """Instantiate the backend named ``kind`` (``csv`` or ``sqlite``)."""

    if kind == "csv":
        return FileStore(data_dir)
    if kind == "sqlite":
        return SqliteStore(sqlite_path or Path(data_dir) / "allowance_tracker.db")
    raise ValueError(f"Unknown storage backend {kind!r}, expected one of: {', '.join(BACKENDS)}")


__all__ = ["BACKENDS", "FileStore", "LedgerStore", "SqliteStore", "open_store"]
