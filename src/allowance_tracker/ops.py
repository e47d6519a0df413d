"""Operational utilities: structured JSON-lines logging."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

LOG_LEVELS = ("debug", "info", "warn", "error")


def normalise_level(level: Optional[str]) -> str:
    """Map free-form level names onto :data:`LOG_LEVELS`, defaulting to ``info``."""

    value = (level or "").strip().lower()
    if value == "warning":
        return "warn"
    return value if value in LOG_LEVELS else "info"


class StructuredLogger:
    """Write JSON lines log entries and keep them in memory for inspection."""

    def __init__(self, *, path: Path | None = None, component: str = "backend", max_entries: int = 1000) -> None:
        self.path = path
        self.component = component
        self.max_entries = max_entries
        self._entries: list[dict] = []

    def log(self, event_type: str, *, level: str = "info", **fields: object) -> dict:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": normalise_level(level),
            "component": fields.pop("component", self.component),
            "event": event_type,
            **fields,
        }
        self._entries.append(entry)
        if len(self._entries) > self.max_entries:
            del self._entries[: len(self._entries) - self.max_entries]
        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(entry, default=str) + "\n")
        return entry

    def error(self, event_type: str, **fields: object) -> dict:
        return self.log(event_type, level="error", **fields)

    def tail(self, limit: int = 50, *, level: Optional[str] = None) -> tuple[dict, ...]:
        entries = self._entries
        if level:
            wanted = normalise_level(level)
            entries = [entry for entry in entries if entry["level"] == wanted]
        return tuple(entries[-limit:]) if limit > 0 else ()


__all__ = ["LOG_LEVELS", "StructuredLogger", "normalise_level"]
