"""Generic CRUD helpers built on top of the low-level query helpers.

These functions operate on any table of the allow-list and on dict-like
records whose column set is only known at call time. They do *not* open
or close connections; callers are responsible for providing a connection
and managing transaction boundaries.

Every table and column name is checked against `tables.TABLE_COLUMNS`
before it is interpolated into SQL. Values are always bound.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Mapping

from ..utils.time import now_ts_utc_z

from . import queries
from .coercion import Record, record_to_storage
from .errors import RecordShapeError, ensure_found, from_sqlite_error
from .tables import TABLE_COLUMNS, quote_identifier, validate_columns, validate_table

logger = logging.getLogger(__name__)


def _require_id(table: str, record: Mapping[str, Any]) -> str:
    """Return the record's id, or raise RecordShapeError.

    Args:
        table: Table the record is destined for (used in the message).
        record: Record about to be written.

    Returns:
        The non-empty string id.

    Raises:
        RecordShapeError: If `id` is missing, not a string, or empty.
    """
    record_id = record.get("id")
    if not isinstance(record_id, str) or not record_id:
        msg = f"Record for {table!r} needs a non-empty string 'id' (got {record_id!r})"
        raise RecordShapeError(msg)
    return record_id


def get_all(conn: sqlite3.Connection, table: str) -> list[Record]:
    """Return every row of `table` as a Record.

    Raises:
        UnknownIdentifierError: If table is not on the allow-list.
        DatabaseError: If database operation fails.
    """
    validate_table(table)
    sql = f"SELECT * FROM {quote_identifier(table)}"  # noqa: S608
    try:
        return queries.fetch_all(conn, sql)
    except sqlite3.Error as exc:
        raise from_sqlite_error(exc) from exc


def get_by_id(conn: sqlite3.Connection, table: str, record_id: str) -> Record | None:
    """Return the row of `table` whose id is `record_id`, or None.

    Raises:
        UnknownIdentifierError: If table is not on the allow-list.
        DatabaseError: If database operation fails.
    """
    validate_table(table)
    sql = f"SELECT * FROM {quote_identifier(table)} WHERE id = ?"  # noqa: S608
    try:
        return queries.fetch_one(conn, sql, (record_id,))
    except sqlite3.Error as exc:
        raise from_sqlite_error(exc) from exc


def create(
    conn: sqlite3.Connection,
    table: str,
    record: Mapping[str, Any],
) -> Record:
    """Insert a single record into table and return it as stored.

    The INSERT names exactly the columns present in `record`, in sorted
    order. After the insert the row is read back by id, so the returned
    Record carries column defaults and the storage coercions.

    Args:
        conn: Database connection (caller manages transaction).
        table: Table name to insert into.
        record: Column name to value mapping. Must contain a non-empty
            string `id`.

    Returns:
        The stored record.

    Raises:
        UnknownIdentifierError: If table or a column is not on the allow-list.
        RecordShapeError: If the record has no usable id. Nothing is written.
        IntegrityError: If a constraint is violated (duplicate id, missing
            foreign key, NOT NULL).
        DatabaseError: If database operation fails.

    Logs:
        - DEBUG: "Inserted record {id} into {table}" on success.
    """
    validate_table(table)
    record_id = _require_id(table, record)
    columns = sorted(record)
    validate_columns(table, columns)

    column_sql = ", ".join(quote_identifier(c) for c in columns)
    placeholders = ", ".join("?" for _ in columns)
    sql = f"INSERT INTO {quote_identifier(table)} ({column_sql}) VALUES ({placeholders})"  # noqa: S608

    try:
        queries.execute_update(conn, sql, record_to_storage(record, columns))
    except sqlite3.Error as exc:
        raise from_sqlite_error(exc) from exc
    logger.debug("Inserted record %s into %s", record_id, table)

    created = get_by_id(conn, table, record_id)
    return ensure_found(created, f"Record {record_id!r} not found in {table!r} after insert")


def update(
    conn: sqlite3.Connection,
    table: str,
    record_id: str,
    record: Mapping[str, Any],
) -> int:
    """Update the row of `table` whose id is `record_id`.

    Every key of `record` except `id` becomes a SET clause. A record that
    carries nothing but `id` is a no-op. A missing row is not an error.

    The SET list is the record's keys plus one extension: when the
    table has an `updated_at` column and the caller did not supply one,
    it is stamped with the current UTC instant, so every changed row
    records when it last changed.

    Args:
        conn: Database connection (caller manages transaction).
        table: Table name to update.
        record_id: Id of the row to update.
        record: Column name to value mapping for SET clauses.

    Returns:
        Number of rows affected (0 when the id does not exist or nothing
        was to be updated).

    Raises:
        UnknownIdentifierError: If table or a column is not on the allow-list.
        IntegrityError: If a constraint is violated.
        DatabaseError: If database operation fails.
    """
    validate_table(table)
    payload = {k: v for k, v in record.items() if k != "id"}
    if not payload:
        logger.debug("Nothing to update for %s in %s", record_id, table)
        return 0

    if "updated_at" in TABLE_COLUMNS[table]:
        payload.setdefault("updated_at", now_ts_utc_z())

    columns = sorted(payload)
    validate_columns(table, columns)

    set_clauses = ", ".join(f"{quote_identifier(c)} = ?" for c in columns)
    sql = f"UPDATE {quote_identifier(table)} SET {set_clauses} WHERE id = ?"  # noqa: S608
    params = (*record_to_storage(payload, columns), record_id)

    try:
        return queries.execute_update(conn, sql, params)
    except sqlite3.Error as exc:
        raise from_sqlite_error(exc) from exc


def delete(conn: sqlite3.Connection, table: str, record_id: str) -> int:
    """Delete the row of `table` whose id is `record_id`.

    Deleting an id that does not exist is not an error. Foreign-key
    cascades declared in the schema apply.

    Returns:
        Number of rows deleted.

    Raises:
        UnknownIdentifierError: If table is not on the allow-list.
        IntegrityError: If the row is still referenced without a cascade.
        DatabaseError: If database operation fails.
    """
    validate_table(table)
    sql = f"DELETE FROM {quote_identifier(table)} WHERE id = ?"  # noqa: S608
    try:
        return queries.execute_update(conn, sql, (record_id,))
    except sqlite3.Error as exc:
        raise from_sqlite_error(exc) from exc
