"""Watermark advancement rules."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Collection, Sequence

from .models import DiscoveredFile


def advance_watermark(current: datetime, files: Sequence[DiscoveredFile]) -> datetime:
    """Return the newest modification time among files, never moving backwards.

    Args:
        current: Watermark loaded at the start of the run.
        files: Files discovered by the run.

    Returns:
        datetime: ``max(current, newest file)``, or current when files is empty.
    """
    return max([current, *(item.modified_at for item in files)])


def settle_watermark(
    current: datetime,
    files: Sequence[DiscoveredFile],
    failed: Collection[Path],
) -> datetime:
    """Advance only over files older than the earliest failure.

    Used when the watermark is saved after formatting: a failed file, and
    anything stamped at or after it, stays above the watermark and is picked up
    again by the next run.
    """
    failed_times = [item.modified_at for item in files if item.path in failed]
    if not failed_times:
        return advance_watermark(current, files)
    cutoff = min(failed_times)
    return advance_watermark(current, [item for item in files if item.modified_at < cutoff])


__all__ = ["advance_watermark", "settle_watermark"]
