"""Utility functions for time handling and template formatting."""

from .formatting import format_currency, format_date
from .timestamps import (
    ensure_utc,
    format_timestamp,
    parse_iso_datetime,
    utc_after,
    utc_now,
)

__all__ = [
    # Timestamps
    "utc_now",
    "utc_after",
    "ensure_utc",
    "parse_iso_datetime",
    "format_timestamp",
    # Formatting
    "format_currency",
    "format_date",
]
