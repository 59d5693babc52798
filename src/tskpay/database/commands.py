"""Entity command surface used by the application shell.

Each command opens its own bootstrapped connection, performs one
operation, commits writes, and closes the connection. Errors propagate
as `DatabaseError` subclasses; their messages are meant to be shown to
the user as-is.
"""

from __future__ import annotations

import contextlib
import sqlite3
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path
from typing import Any

from . import crud, relations
from .coercion import Record
from .connection import get_db_path, transaction
from .init import open_database


@contextlib.contextmanager
def _session(db_path: Path | None) -> Iterator[sqlite3.Connection]:
    conn = open_database(db_path=db_path)
    try:
        yield conn
    finally:
        conn.close()


def db_location(db_path: Path | None = None) -> Path:
    """Return the database file path (for backup and restore)."""
    return Path(db_path) if db_path is not None else get_db_path()


def db_init(db_path: Path | None = None) -> None:
    """Create or migrate the database."""
    with _session(db_path):
        pass


def db_get_all(table: str, db_path: Path | None = None) -> list[Record]:
    with _session(db_path) as conn:
        return crud.get_all(conn, table)


def db_get_by_id(table: str, record_id: str, db_path: Path | None = None) -> Record | None:
    with _session(db_path) as conn:
        return crud.get_by_id(conn, table, record_id)


def db_create(
    table: str,
    record: Mapping[str, Any],
    db_path: Path | None = None,
) -> Record:
    with _session(db_path) as conn, transaction(existing_connection=conn):
        return crud.create(conn, table, record)


def db_update(
    table: str,
    record_id: str,
    record: Mapping[str, Any],
    db_path: Path | None = None,
) -> None:
    with _session(db_path) as conn, transaction(existing_connection=conn):
        crud.update(conn, table, record_id, record)


def db_delete(table: str, record_id: str, db_path: Path | None = None) -> None:
    with _session(db_path) as conn, transaction(existing_connection=conn):
        crud.delete(conn, table, record_id)


def db_get_member_parents(member_id: str, db_path: Path | None = None) -> list[str]:
    with _session(db_path) as conn:
        return relations.get_member_parents(conn, member_id)


def db_set_member_parents(
    member_id: str,
    parent_ids: Sequence[str],
    db_path: Path | None = None,
) -> None:
    with _session(db_path) as conn:
        relations.set_member_parents(conn, member_id, parent_ids)


def db_get_parent_members(parent_id: str, db_path: Path | None = None) -> list[str]:
    with _session(db_path) as conn:
        return relations.get_parent_members(conn, parent_id)
