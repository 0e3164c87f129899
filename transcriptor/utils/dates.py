"""Timestamp helpers for registry ``date_added`` values.

Two formats exist on disk:

- current: ``YYMMDDTHHMM`` local time, e.g. ``251122T1430``
- legacy: ``YYYY-MM-DD``, written by early releases

Both sort lexicographically in chronological order within their own format.
Legacy values are converted once at load time by the registry migration, so
nothing past the load path ever sees them.
"""
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional

TIMESTAMP_PATTERN = re.compile(r"^(\d{2})(\d{2})(\d{2})T(\d{2})(\d{2})$")
LEGACY_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def generate_date_added(now: Optional[datetime] = None) -> str:
    """Generate a ``YYMMDDTHHMM`` timestamp for a new registry entry.

    Args:
        now: Moment to format (defaults to the current local time)

    Returns:
        Timestamp string

    Raises:
        ValueError: If the formatted value fails validation
    """
    moment = now or datetime.now()
    timestamp = moment.strftime("%y%m%dT%H%M")
    if not is_valid_timestamp(timestamp):
        raise ValueError(f"Generated invalid timestamp: {timestamp}")
    return timestamp


def is_valid_timestamp(value: object) -> bool:
    """Check a ``YYMMDDTHHMM`` timestamp, including calendar validity."""
    if not isinstance(value, str) or len(value) != 11:
        return False
    match = TIMESTAMP_PATTERN.match(value)
    if not match:
        return False
    yy, mm, dd, hh, minute = (int(part) for part in match.groups())
    if hh > 23 or minute > 59:
        return False
    return _is_calendar_date(2000 + yy, mm, dd)


def is_valid_legacy_date(value: object) -> bool:
    """Check a legacy ``YYYY-MM-DD`` date (years 2000-2099)."""
    if not isinstance(value, str) or len(value) != 10:
        return False
    match = LEGACY_DATE_PATTERN.match(value)
    if not match:
        return False
    year, month, day = (int(part) for part in match.groups())
    if year < 2000 or year > 2099:
        return False
    return _is_calendar_date(year, month, day)


def is_valid_date_added(value: object) -> bool:
    """Accept either on-disk ``date_added`` format."""
    return is_valid_timestamp(value) or is_valid_legacy_date(value)


def migrate_legacy_date(value: str) -> str:
    """Convert ``YYYY-MM-DD`` to ``YYMMDDT0000`` (midnight).

    Raises:
        ValueError: If the value is not a valid legacy date
    """
    if not is_valid_legacy_date(value):
        raise ValueError(f"Cannot migrate invalid date: {value}")
    return f"{value[2:4]}{value[5:7]}{value[8:10]}T0000"


def convert_date_to_prefix(value: str) -> str:
    """Convert a ``YYYY-MM-DD`` cutoff to the ``YYMMDD`` prefix used for comparison.

    Raises:
        ValueError: If the value is not a valid ``YYYY-MM-DD`` date
    """
    if not is_valid_legacy_date(value):
        raise ValueError(
            f'Invalid date format: "{value}". Expected YYYY-MM-DD (e.g. "2025-11-01")'
        )
    return f"{value[2:4]}{value[5:7]}{value[8:10]}"


def extract_date_prefix(timestamp: str) -> str:
    """Return the ``YYMMDD`` day prefix of a timestamp."""
    return timestamp[:6]


def parse_cutoff(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` cutoff into a date object."""
    convert_date_to_prefix(value)
    return date.fromisoformat(value)


def _is_calendar_date(year: int, month: int, day: int) -> bool:
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True
