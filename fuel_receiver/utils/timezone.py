"""
Timezone utilities for consistent datetime handling.

Readings arrive with device timestamps in several shapes (epoch
milliseconds, ISO strings with or without offsets) and are compared against
each other inside the per-sensor window. Everything is normalized to naive
UTC so that comparisons never mix aware and naive datetimes.
"""

from datetime import datetime, timezone as tz
from typing import Optional, Union


def utc_now() -> datetime:
    """
    Get current UTC time as a naive datetime.

    Returns:
        Current UTC time without tzinfo
    """
    return datetime.now(tz.utc).replace(tzinfo=None)


def normalize_datetime(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert a datetime to naive UTC for safe comparisons.

    Examples:
        >>> aware = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        >>> normalize_datetime(aware)
        datetime.datetime(2024, 1, 1, 12, 0)
    """
    if dt is None:
        return None

    if dt.tzinfo is not None:
        if dt.tzinfo != tz.utc:
            dt = dt.astimezone(tz.utc)
        return dt.replace(tzinfo=None)

    return dt


def parse_timestamp(value: Union[str, int, float, datetime]) -> datetime:
    """
    Parse a device timestamp into naive UTC.

    Accepts datetimes, epoch milliseconds (int/float or digit strings) and
    ISO-8601 strings. A trailing ``Z`` is treated as UTC.

    Raises:
        ValueError: if the value cannot be interpreted as a timestamp
    """
    if isinstance(value, datetime):
        return normalize_datetime(value)

    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")

    if isinstance(value, (int, float)):
        return normalize_datetime(datetime.fromtimestamp(value / 1000, tz=tz.utc))

    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return parse_timestamp(int(text))
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        return normalize_datetime(datetime.fromisoformat(text))

    raise ValueError(f"Invalid timestamp: {value!r}")
