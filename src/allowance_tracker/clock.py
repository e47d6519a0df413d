"""Time helpers bound to the household's fixed UTC offset."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Optional

DEFAULT_UTC_OFFSET_HOURS = -5


class Clock:
    """Return "now" in a fixed offset, optionally from an injected provider."""

    __slots__ = ("tz", "_provider")

    def __init__(
        self,
        *,
        utc_offset_hours: float = DEFAULT_UTC_OFFSET_HOURS,
        provider: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.tz = timezone(timedelta(hours=utc_offset_hours))
        self._provider = provider

    def now(self) -> datetime:
        if self._provider is None:
            return datetime.now(self.tz)
        current = self._provider()
        if current.tzinfo is None:
            return current.replace(tzinfo=self.tz)
        return current.astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()

    def noon(self, day: date) -> datetime:
        """Return 12:00 local time on ``day``."""

        return datetime.combine(day, time(12, 0), tzinfo=self.tz)

    def localize(self, value: datetime) -> datetime:
        """Attach the local offset to naive datetimes and convert aware ones."""

        if value.tzinfo is None:
            return value.replace(tzinfo=self.tz)
        return value.astimezone(self.tz)

    def end_of_day(self, day: date) -> datetime:
        return datetime.combine(day, time(23, 59, 59, 999999), tzinfo=self.tz)


__all__ = ["Clock", "DEFAULT_UTC_OFFSET_HOURS"]
