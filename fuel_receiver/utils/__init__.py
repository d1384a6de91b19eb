"""Utility modules for the fuel receiver."""

from .timezone import (
    utc_now,
    normalize_datetime,
    parse_timestamp,
)

__all__ = [
    'utc_now',
    'normalize_datetime',
    'parse_timestamp',
]
