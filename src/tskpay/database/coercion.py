"""Mapping between loosely-typed record values and SQLite storage cells.

Records travel through the application as plain dicts whose values are
None, int, float or str. SQLite stores the same four kinds natively, so
most values pass straight through. The rules for everything else:

- bool is written as 1/0 and read back as an int (there is no boolean
  read path; callers interpret 0/1 themselves).
- Non-finite floats (nan, inf) become integer 0, on write and on read.
- Integers outside SQLite's signed 64-bit range are written as reals.
- Lists, tuples and dicts are written as compact JSON text and read back
  as that text. Any other value (dates, decimals, UUIDs) is written as
  its `str()` form.
- Binary is not supported: writing bytes raises TypeError, and a BLOB
  cell read from storage surfaces as the placeholder string "BLOB".
"""

from __future__ import annotations

import json
import math
import sqlite3
from collections.abc import Mapping
from typing import Any, Union

StorageCell = Union[None, int, float, str]
Value = Union[None, int, float, str]
Record = dict[str, Value]

BLOB_PLACEHOLDER = "BLOB"

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _coerce_float(value: float) -> int | float:
    if not math.isfinite(value):
        return 0
    return value


def to_storage(value: Any) -> StorageCell:
    """Convert a record value into a cell SQLite can bind.

    Args:
        value: Dynamic record value.

    Returns:
        None, int, float or str.

    Raises:
        TypeError: If value is binary data.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, int):
        if _INT64_MIN <= value <= _INT64_MAX:
            return value
        return float(value)
    if isinstance(value, float):
        return _coerce_float(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        msg = "Binary values are not supported by the generic record layer"
        raise TypeError(msg)
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def from_storage(cell: Any) -> Value:
    """Convert a cell read from SQLite into a record value.

    Args:
        cell: Raw value as returned by sqlite3.

    Returns:
        None, int, float or str.
    """
    if cell is None:
        return None
    if isinstance(cell, (bytes, bytearray, memoryview)):
        return BLOB_PLACEHOLDER
    if isinstance(cell, float):
        return _coerce_float(cell)
    return cell


def record_to_storage(record: Mapping[str, Any], columns: list[str]) -> tuple[StorageCell, ...]:
    """Return the storage cells for `columns` of `record`, in that order."""
    return tuple(to_storage(record.get(column)) for column in columns)


def row_to_record(row: sqlite3.Row | Mapping[str, Any]) -> Record:
    """Convert a fetched row into a Record."""
    return {key: from_storage(row[key]) for key in row.keys()}
