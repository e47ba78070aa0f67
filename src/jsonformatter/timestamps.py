"""Millisecond timestamp helpers shared by the watermark store and formatter.

Watermarks are compared with a strict ``>`` against file modification times,
so every timestamp that crosses a component boundary is normalized to an
aware UTC ``datetime`` truncated to whole milliseconds.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"
SUFFIX_FORMAT = "%Y%m%d%H%M%S"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_TIMESTAMP_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})\.(\d{3})Z$")


def ensure_utc(value: datetime) -> datetime:
    """Return value as an aware UTC datetime, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision from value after normalizing it to UTC."""
    aware = ensure_utc(value)
    return aware.replace(microsecond=(aware.microsecond // 1000) * 1000)


def from_epoch_millis(millis: int) -> datetime:
    """Build a UTC datetime from integer milliseconds since the epoch."""
    return _EPOCH + timedelta(milliseconds=millis)


def from_epoch_nanos(nanos: int) -> datetime:
    """Build a millisecond-truncated UTC datetime from ``st_mtime_ns`` values."""
    return from_epoch_millis(nanos // 1_000_000)


def format_timestamp(value: datetime) -> str:
    """Render value in the persisted watermark format.

    Args:
        value: Datetime to serialize; naive values are treated as UTC.

    Returns:
        str: ISO-8601 text with exactly three fractional digits and a ``Z``
            suffix, e.g. ``2026-10-19T08:15:30.123Z``.
    """
    value = truncate_to_millis(value)
    return f"{value.strftime(TIMESTAMP_FORMAT)}.{value.microsecond // 1000:03d}Z"


def parse_timestamp(text: str) -> datetime:
    """Parse a persisted watermark produced by :func:`format_timestamp`.

    Args:
        text: Serialized timestamp.

    Returns:
        datetime: Aware UTC datetime with millisecond precision.

    Raises:
        ValueError: If text does not match the watermark format.
    """
    match = _TIMESTAMP_PATTERN.match(text.strip())
    if match is None:
        raise ValueError(
            f"Invalid timestamp {text!r}; expected the form YYYY-MM-DDTHH:MM:SS.fffZ"
        )
    base = datetime.strptime(match.group(1), TIMESTAMP_FORMAT)
    return base.replace(microsecond=int(match.group(2)) * 1000, tzinfo=timezone.utc)


def coerce_timestamp(value: Any) -> datetime:
    """Return a watermark from a serialized string or a YAML-loaded datetime.

    Raises:
        ValueError: If value is neither a watermark string nor a datetime.
    """
    if isinstance(value, str):
        return parse_timestamp(value)
    if isinstance(value, datetime):
        return truncate_to_millis(value)
    raise ValueError("lastUpdate must be a timestamp string")


def format_suffix(value: datetime) -> str:
    """Render value as a sortable 17-digit ``YYYYMMDDhhmmssfff`` string."""
    value = truncate_to_millis(value)
    return f"{value.strftime(SUFFIX_FORMAT)}{value.microsecond // 1000:03d}"


__all__ = [
    "TIMESTAMP_FORMAT",
    "SUFFIX_FORMAT",
    "ensure_utc",
    "truncate_to_millis",
    "from_epoch_millis",
    "from_epoch_nanos",
    "format_timestamp",
    "parse_timestamp",
    "coerce_timestamp",
    "format_suffix",
]
