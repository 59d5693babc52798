"""Basic query execution helpers.

These wrap low-level sqlite3 operations with logging and return rows
already converted to Records, so higher-level CRUD helpers never see
raw storage cells.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence

from .coercion import Record, row_to_record

logger = logging.getLogger(__name__)

Params = Sequence | dict | None


def execute_query(
    conn: sqlite3.Connection,
    sql: str,
    params: Params = None,
) -> sqlite3.Cursor:
    """Execute a SQL query and return the cursor.

    Args:
        conn: Database connection.
        sql: SQL query string.
        params: Query parameters (sequence or dict). Defaults to empty tuple.

    Returns:
        SQLite cursor with query results.

    Raises:
        sqlite3.Error: If query execution fails.

    Logs:
        - DEBUG: "Executed query: {sql[:80]}" on success.
        - ERROR: "Query execution failed: {exc}" with exception details on failure.
    """
    try:
        cursor = conn.execute(sql, params or ())
        logger.debug("Executed query: %s", sql[:80])
        return cursor
    except sqlite3.Error as exc:
        logger.exception("Query execution failed: %s", exc)
        raise


def fetch_one(
    conn: sqlite3.Connection,
    sql: str,
    params: Params = None,
) -> Record | None:
    """Execute query and return the first row as a Record, or None.

    When several rows match, the first one SQLite returns wins.

    Raises:
        sqlite3.Error: If query execution fails.
    """
    cursor = execute_query(conn, sql, params)
    row = cursor.fetchone()
    if row is None:
        return None
    return row_to_record(row)


def fetch_all(
    conn: sqlite3.Connection,
    sql: str,
    params: Params = None,
) -> list[Record]:
    """Execute query and return all rows as Records.

    Raises:
        sqlite3.Error: If query execution fails.
    """
    cursor = execute_query(conn, sql, params)
    return [row_to_record(row) for row in cursor.fetchall()]


def fetch_column(
    conn: sqlite3.Connection,
    sql: str,
    params: Params = None,
) -> list:
    """Execute query and return the first column of every row."""
    cursor = execute_query(conn, sql, params)
    return [row[0] for row in cursor.fetchall()]


def execute_update(
    conn: sqlite3.Connection,
    sql: str,
    params: Params = None,
) -> int:
    """Execute INSERT/UPDATE/DELETE and return number of affected rows.

    Args:
        conn: Database connection.
        sql: SQL statement (INSERT, UPDATE, or DELETE).
        params: Query parameters (sequence or dict). Defaults to empty tuple.

    Returns:
        Number of rows affected by the operation.

    Raises:
        sqlite3.Error: If statement execution fails.

    Logs:
        - DEBUG: "Update affected {rowcount} rows" on success.
    """
    cursor = execute_query(conn, sql, params)
    rowcount = cursor.rowcount
    logger.debug("Update affected %s rows", rowcount)
    return rowcount
