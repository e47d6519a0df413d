"""Child profiles and the active-child selection."""

from __future__ import annotations

import time
from datetime import date
from typing import List, Optional

from .exceptions import ChildNotFoundError, NoActiveChildError, ValidationError
from .models import CHILD_NAME_MAX_LENGTH, Child, utcnow
from .ops import StructuredLogger
from .storage import LedgerStore


def validate_child_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Child name cannot be empty")
    if len(cleaned) > CHILD_NAME_MAX_LENGTH:
        raise ValidationError(f"Child name cannot exceed {CHILD_NAME_MAX_LENGTH} characters")
    return cleaned


def parse_birthdate(value: str | date) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValidationError(f"Invalid birthdate '{value}', expected YYYY-MM-DD") from exc


class ChildService:
    """Create, update and select the children being tracked."""

    __slots__ = ("_store", "_logger")

    def __init__(self, store: LedgerStore, logger: StructuredLogger) -> None:
        self._store = store
        self._logger = logger

    def _new_id(self) -> str:
        candidate = f"child::{time.time_ns() // 1_000_000}"
        while self._store.get_child(candidate) is not None:
            candidate = f"child::{int(candidate.split('::')[1]) + 1}"
        return candidate

    def create_child(self, name: str, birthdate: str | date) -> Child:
        child = Child(id=self._new_id(), name=validate_child_name(name), birthdate=parse_birthdate(birthdate))
        self._store.save_child(child)
        self._logger.log("child_created", child_id=child.id, name=child.name)
        return child

    def get_child(self, child_id: str) -> Child:
        child = self._store.get_child(child_id)
        if child is None:
            raise ChildNotFoundError(f"Child '{child_id}' not found")
        return child

    def list_children(self) -> List[Child]:
        return sorted(self._store.list_children(), key=lambda child: child.name.lower())

    def update_child(
        self,
        child_id: str,
        *,
        name: Optional[str] = None,
        birthdate: str | date | None = None,
    ) -> Child:
        child = self.get_child(child_id)
        if name is not None:
            child.name = validate_child_name(name)
        if birthdate is not None:
            child.birthdate = parse_birthdate(birthdate)
        child.updated_at = utcnow()
        self._store.save_child(child)
        self._logger.log("child_updated", child_id=child.id, name=child.name)
        return child

    def delete_child(self, child_id: str) -> None:
        if not self._store.delete_child(child_id):
            raise ChildNotFoundError(f"Child '{child_id}' not found")
        self._logger.log("child_deleted", child_id=child_id)

    def get_active_child(self) -> Optional[Child]:
        child_id = self._store.get_active_child_id()
        if child_id is None:
            return None
        return self._store.get_child(child_id)

    def set_active_child(self, child_id: str) -> Child:
        child = self.get_child(child_id)
        self._store.set_active_child_id(child.id)
        self._logger.log("active_child_changed", child_id=child.id)
        return child

    def resolve(self, child_id: Optional[str] = None) -> Child:
        """Return the named child, or the active child when ``child_id`` is empty."""

        if child_id:
            return self.get_child(child_id)
        child = self.get_active_child()
        if child is None:
            raise NoActiveChildError("No active child selected")
        return child


__all__ = ["ChildService", "parse_birthdate", "validate_child_name"]
