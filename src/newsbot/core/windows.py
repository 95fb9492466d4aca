"""Named lookback windows used to scope queries."""

from datetime import datetime, timedelta, timezone
from enum import Enum

from newsbot.core.errors import UnsupportedWindowError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimeWindow(str, Enum):
    """Supported lookback windows."""

    DAY = "24h"
    THREE_DAYS = "3days"
    WEEK = "7days"

    @property
    def duration(self) -> timedelta:
        return _DURATIONS[self]

    def cutoff(self, now: datetime) -> datetime:
        """Earliest publish time still inside the window (inclusive)."""
        return now - self.duration

    @classmethod
    def parse(cls, value: "str | TimeWindow") -> "TimeWindow":
        """Resolve a window name, failing on anything unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            supported = ", ".join(w.value for w in cls)
            raise UnsupportedWindowError(
                f"unsupported time window: {value!r} (use {supported})"
            ) from None


_DURATIONS = {
    TimeWindow.DAY: timedelta(hours=24),
    TimeWindow.THREE_DAYS: timedelta(days=3),
    TimeWindow.WEEK: timedelta(days=7),
}
