"""Utility modules.

This package provides shared utilities used across the codebase.
"""

from .time import format_ts_utc_z, local_file_stamp, now_ts_utc_z, utc_now

__all__ = [
    "format_ts_utc_z",
    "local_file_stamp",
    "now_ts_utc_z",
    "utc_now",
]
