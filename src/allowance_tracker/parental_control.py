"""Parental gate: a shared secret answer guarding the settings screens."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .clock import Clock
from .models import ParentalControlAttempt, ParentalControlStats
from .ops import StructuredLogger
from .storage import LedgerStore

DEFAULT_ANSWER = "ice cold"
ACCESS_GRANTED = "Access granted! Welcome to parental settings."
ACCESS_DENIED = "Incorrect answer. Access denied."


@dataclass(slots=True)
class ValidationOutcome:
    success: bool
    message: str


def sanitize_attempt(value: str) -> str:
    """Mask an attempted answer for log output."""

    if len(value) > 3:
        return f"{value[:3]}..."
    return "***"


class ParentalControlService:
    """Check answers and keep a history of every attempt."""

    __slots__ = ("_store", "_clock", "_logger", "_answer")

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock,
        logger: StructuredLogger,
        *,
        answer: str = DEFAULT_ANSWER,
    ) -> None:
        self._store = store
        self._clock = clock
        self._logger = logger
        self._answer = answer.strip().lower()

    def validate(self, answer: str) -> ValidationOutcome:
        success = (answer or "").strip().lower() == self._answer
        self._store.record_attempt(answer or "", self._clock.now(), success)
        self._logger.log(
            "parental_control_attempt",
            level="info" if success else "warn",
            attempted=sanitize_attempt(answer or ""),
            success=success,
        )
        return ValidationOutcome(success=success, message=ACCESS_GRANTED if success else ACCESS_DENIED)

    def recent_attempts(self, limit: int = 10) -> List[ParentalControlAttempt]:
        attempts = list(reversed(self._store.list_attempts()))
        return attempts[:limit] if limit > 0 else []

    def stats(self) -> ParentalControlStats:
        attempts = self._store.list_attempts()
        total = len(attempts)
        successful = sum(1 for attempt in attempts if attempt.success)
        return ParentalControlStats(
            total_attempts=total,
            successful_attempts=successful,
            failed_attempts=total - successful,
            success_rate=round(successful / total * 100, 2) if total else 0.0,
        )


__all__ = [
    "ACCESS_DENIED",
    "ACCESS_GRANTED",
    "DEFAULT_ANSWER",
    "ParentalControlService",
    "ValidationOutcome",
    "sanitize_attempt",
]
