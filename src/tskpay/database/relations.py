"""Member/parent many-to-many relationship.

The `member_parents` pivot table is owned by this module: generic CRUD
never touches it. Rows cascade away when either the member or the parent
is deleted. Queries here are hand-written rather than generated because
the replace operation has to keep the pivot consistent as a whole.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence

from ..utils.time import now_ts_utc_z

from . import queries
from .errors import from_sqlite_error

logger = logging.getLogger(__name__)

_SAVEPOINT = "set_member_parents"


def member_parent_id(member_id: str, parent_id: str, index: int) -> str:
    """Return the pivot row key for the `index`-th parent of a member."""
    return f"{member_id}_{parent_id}_{index}"


def get_member_parents(conn: sqlite3.Connection, member_id: str) -> list[str]:
    """Return the ids of all parents linked to `member_id`.

    Order is SQLite's storage order; treat the result as a set.

    Raises:
        DatabaseError: If database operation fails.
    """
    try:
        return queries.fetch_column(
            conn,
            "SELECT parent_id FROM member_parents WHERE member_id = ?",
            (member_id,),
        )
    except sqlite3.Error as exc:
        raise from_sqlite_error(exc) from exc


def get_parent_members(conn: sqlite3.Connection, parent_id: str) -> list[str]:
    """Return the ids of all members linked to `parent_id`.

    Raises:
        DatabaseError: If database operation fails.
    """
    try:
        return queries.fetch_column(
            conn,
            "SELECT member_id FROM member_parents WHERE parent_id = ?",
            (parent_id,),
        )
    except sqlite3.Error as exc:
        raise from_sqlite_error(exc) from exc


def set_member_parents(
    conn: sqlite3.Connection,
    member_id: str,
    parent_ids: Sequence[str],
) -> None:
    """Replace the full set of parents linked to `member_id`.

    Deletes every existing pivot row of the member and inserts one row
    per entry of `parent_ids` under a savepoint, so the replace is
    all-or-nothing without touching the caller's own pending writes. If
    the connection had no open transaction on entry, the replace is
    committed; otherwise the caller keeps control of the commit.

    Passing the same parent id twice violates the pivot's uniqueness
    constraint; de-duplicate before calling.

    Args:
        conn: Database connection.
        member_id: Member whose parents are replaced.
        parent_ids: New parent ids; an empty sequence unlinks all parents.

    Raises:
        IntegrityError: If the member or a parent does not exist, or a
            parent id is repeated. The previous links are left intact.
        DatabaseError: If database operation fails.

    Logs:
        - DEBUG: "Linked member {id} to {n} parent(s)" on success.
    """
    created_at = now_ts_utc_z()
    owns_transaction = not conn.in_transaction
    try:
        conn.execute(f"SAVEPOINT {_SAVEPOINT}")
        try:
            queries.execute_update(
                conn,
                "DELETE FROM member_parents WHERE member_id = ?",
                (member_id,),
            )
            for index, parent_id in enumerate(parent_ids):
                queries.execute_update(
                    conn,
                    """
                    INSERT INTO member_parents (id, member_id, parent_id, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (member_parent_id(member_id, parent_id, index), member_id, parent_id, created_at),
                )
        except sqlite3.Error:
            conn.execute(f"ROLLBACK TO {_SAVEPOINT}")
            conn.execute(f"RELEASE {_SAVEPOINT}")
            raise
        conn.execute(f"RELEASE {_SAVEPOINT}")
        if owns_transaction:
            conn.commit()
    except sqlite3.Error as exc:
        raise from_sqlite_error(exc) from exc
    logger.debug("Linked member %s to %d parent(s)", member_id, len(parent_ids))
