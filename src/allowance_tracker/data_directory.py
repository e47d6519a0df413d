"""Per-child data directory lookup, relocation and revert."""

from __future__ import annotations

from .exceptions import AllowanceTrackerError
from .export import sanitize_path
from .models import Child, DataDirectoryResult
from .ops import StructuredLogger
from .storage import FileStore, LedgerStore


class DataDirectoryService:
    """Report and move where a child's files live.

    Only the flat-file backend keeps per-child directories; other backends
    report their single location and refuse to relocate.
    """

    __slots__ = ("_store", "_logger")

    def __init__(self, store: LedgerStore, logger: StructuredLogger) -> None:
        self._store = store
        self._logger = logger

    def current(self, child: Child) -> DataDirectoryResult:
        if isinstance(self._store, FileStore):
            redirected = self._store.redirect_target(child.id) is not None
            path = self._store.child_data_path(child.id)
            return DataDirectoryResult(
                success=True,
                message=f"Data directory for {child.name}",
                path=str(path),
                was_redirected=redirected,
            )
        return DataDirectoryResult(
            success=True,
            message="Data is stored in a shared database",
            path=str(self._store.location),
        )

    def relocate(self, child: Child, new_path: str) -> DataDirectoryResult:
        if not isinstance(self._store, FileStore):
            return DataDirectoryResult(
                success=False,
                message="Relocation is only supported for the flat-file backend",
                path=new_path,
            )
        if not new_path or not new_path.strip():
            return DataDirectoryResult(success=False, message="New path cannot be empty", path=new_path)
        target = sanitize_path(new_path)
        try:
            message = self._store.relocate_child(child.id, target)
        except (OSError, AllowanceTrackerError) as exc:
            self._logger.error("data_directory_relocate_failed", child_id=child.id, error=str(exc))
            return DataDirectoryResult(
                success=False,
                message=f"Failed to relocate data directory for child '{child.id}': {exc}",
                path=new_path,
            )
        self._logger.log("data_directory_relocated", child_id=child.id, path=str(target))
        return DataDirectoryResult(success=True, message=message, path=str(target), was_redirected=True)

    def revert(self, child: Child) -> DataDirectoryResult:
        if not isinstance(self._store, FileStore):
            return DataDirectoryResult(
                success=False,
                message="Relocation is only supported for the flat-file backend",
                path=str(self._store.location),
            )
        was_redirected = self._store.redirect_target(child.id) is not None
        try:
            message = self._store.revert_child(child.id)
        except (OSError, AllowanceTrackerError) as exc:
            self._logger.error("data_directory_revert_failed", child_id=child.id, error=str(exc))
            return DataDirectoryResult(
                success=False,
                message=f"Failed to revert data directory for child '{child.id}': {exc}",
                path=str(self._store.child_directory(child.id)),
                was_redirected=was_redirected,
            )
        self._logger.log("data_directory_reverted", child_id=child.id)
        return DataDirectoryResult(
            success=True,
            message=message,
            path=str(self._store.child_directory(child.id)),
            was_redirected=was_redirected,
        )


__all__ = ["DataDirectoryService"]
