"""Canonical time utilities.

All timestamps at rest in the database are strings in the canonical
instant format YYYY-MM-DDTHH:MM:SSZ (seconds-only, UTC), which is also
what the schema's column defaults produce.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return current UTC time as tz-aware datetime."""
    return datetime.now(UTC)


def format_ts_utc_z(dt: datetime) -> str:
    """Format a datetime as canonical UTC instant string (YYYY-MM-DDTHH:MM:SSZ).

    Converts any aware datetime to UTC before formatting.

    Args:
        dt: Datetime to format. Must be timezone-aware.

    Returns:
        Canonical instant string: YYYY-MM-DDTHH:MM:SSZ (exactly 20 characters).

    Raises:
        ValueError: If dt is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(f"Cannot format naive datetime {dt}. Provide timezone context.")

    if dt.tzinfo != UTC:
        dt = dt.astimezone(UTC)

    iso_str = dt.isoformat(timespec="seconds")
    if iso_str.endswith("+00:00"):
        return iso_str[:-6] + "Z"
    return iso_str + "Z"


def now_ts_utc_z() -> str:
    """Return current UTC time as canonical instant string."""
    return format_ts_utc_z(utc_now())


def local_file_stamp(dt: datetime | None = None) -> str:
    """Return a local-time stamp for file names: YYYY-MM-DD-HHMMSS."""
    dt = dt or datetime.now()
    return dt.strftime("%Y-%m-%d-%H%M%S")
