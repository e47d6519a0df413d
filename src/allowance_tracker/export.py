"""CSV export of a child's ledger."""

from __future__ import annotations

import csv
from dataclasses import dataclass
from io import StringIO
from pathlib import Path
from typing import Optional

from .clock import Clock
from .models import Child, ExportResult
from .money import CENT
from .ops import StructuredLogger
from .storage import LedgerStore

EXPORT_HEADER = "transaction_id,transaction_date,description,amount"


@dataclass(slots=True)
class ExportToPathResult:
    success: bool
    message: str
    file_path: str
    transaction_count: int = 0
    child_name: str = ""


def export_filename(child_name: str, clock: Clock) -> str:
    stem = child_name.replace(" ", "_").lower()
    return f"{stem}_transactions_{clock.today():%Y%m%d}.csv"


def sanitize_path(raw: str) -> Path:
    """Tidy a user-typed directory: quotes, escaped spaces, trailing slashes and ``~``."""

    cleaned = raw.strip()
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in "\"'":
        cleaned = cleaned[1:-1].strip()
    cleaned = cleaned.replace("\\ ", " ")
    while len(cleaned) > 1 and cleaned.endswith(("/", "\\")):
        cleaned = cleaned[:-1]
    return Path(cleaned).expanduser()


def default_export_directory() -> Path:
    documents = Path.home() / "Documents"
    return documents if documents.is_dir() else Path.home()


class ExportService:
    """Produce spreadsheet-friendly CSV files from the ledger."""

    __slots__ = ("_store", "_clock", "_logger")

    def __init__(self, store: LedgerStore, clock: Clock, logger: StructuredLogger) -> None:
        self._store = store
        self._clock = clock
        self._logger = logger

    def export_csv(self, child: Child) -> ExportResult:
        ledger = self._store.list_transactions(child.id)
        buffer = StringIO()
        csv.writer(buffer, lineterminator="\n").writerow(EXPORT_HEADER.split(","))
        # text columns quoted, row number and amount bare
        writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
        for index, tx in enumerate(ledger, start=1):
            writer.writerow([index, f"{tx.date:%Y/%m/%d}", tx.description, tx.amount.quantize(CENT)])
        result = ExportResult(
            csv_data=buffer.getvalue(),
            filename=export_filename(child.name, self._clock),
            transaction_count=len(ledger),
            child_name=child.name,
        )
        self._logger.log("transactions_exported", child_id=child.id, count=result.transaction_count)
        return result

    def export_to_path(self, child: Child, custom_path: Optional[str] = None) -> ExportToPathResult:
        """Write the export into ``custom_path`` (default ``~/Documents``, else home)."""

        export = self.export_csv(child)
        if custom_path and custom_path.strip():
            directory = sanitize_path(custom_path)
        else:
            directory = default_export_directory()
        file_path = directory / export.filename
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            self._logger.error("export_failed", path=str(directory), error=str(exc))
            return ExportToPathResult(
                success=False,
                message=f"Failed to create export directory: {exc}",
                file_path=str(directory),
            )
        try:
            file_path.write_text(export.csv_data, encoding="utf-8")
        except OSError as exc:
            self._logger.error("export_failed", path=str(file_path), error=str(exc))
            return ExportToPathResult(
                success=False,
                message=f"Failed to write export file: {exc}",
                file_path=str(file_path),
            )
        return ExportToPathResult(
            success=True,
            message=f"File exported successfully to: {file_path}",
            file_path=str(file_path),
            transaction_count=export.transaction_count,
            child_name=export.child_name,
        )

    def write_file(self, file_path: str, content: str) -> ExportToPathResult:
        target = sanitize_path(file_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as exc:
            self._logger.error("write_file_failed", path=str(target), error=str(exc))
            return ExportToPathResult(success=False, message=f"Failed to write file: {exc}", file_path=str(target))
        self._logger.log("file_written", path=str(target), size=len(content))
        return ExportToPathResult(success=True, message=f"File written successfully to: {target}", file_path=str(target))


__all__ = [
    "EXPORT_HEADER",
    "ExportService",
    "ExportToPathResult",
    "default_export_directory",
    "export_filename",
    "sanitize_path",
]
