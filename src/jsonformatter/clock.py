"""Clock abstraction used for first-run defaults and output name suffixes."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol

from .timestamps import truncate_to_millis


class Clock(Protocol):
    """Source of the current instant."""

    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""
        ...


class SystemClock:
    """Clock backed by the system wall clock, truncated to milliseconds."""

    def now(self) -> datetime:
        return truncate_to_millis(datetime.now(timezone.utc))


__all__ = ["Clock", "SystemClock"]
