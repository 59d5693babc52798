"""Database bootstrap: baseline schema creation and migration.

Every connection handed to the rest of the application comes from
`open_database`, which guarantees the file exists, foreign keys are on,
and the schema is at `CURRENT_SCHEMA_VERSION`:

1. If the `parents` table is missing, `sql/schema.sql` is executed as a
   single transaction (all-or-nothing).
2. The `schema_version` marker is created if needed.
3. A database with no stored version is recorded at the current version.
4. An older database is migrated step by step (see `migrations`).
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from .. import global_config as g

from .connection import execute_script, get_connection
from .errors import DatabaseConnectionError, SchemaExecutionError
from .migrations import CURRENT_SCHEMA_VERSION, migrate

logger = logging.getLogger(__name__)

# Table whose presence means the baseline schema has been created
PROBE_TABLE = "parents"


def _schema_path() -> Path:
    """Return path to the packaged schema.sql file."""
    return g.SQL_DIR / "schema.sql"


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    """Return True if `table` exists in the database."""
    row = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
        (table,),
    ).fetchone()
    return row is not None


def initialize_schema(conn: sqlite3.Connection) -> None:
    """Create the baseline schema from `schema.sql` in one transaction.

    Args:
        conn: Database connection.

    Raises:
        FileNotFoundError: If schema.sql doesn't exist.
        SchemaExecutionError: If any statement fails. Nothing is kept.

    Logs:
        - INFO: "Creating database schema (version {n})" at start.
    """
    schema_file = _schema_path()
    if not schema_file.exists():
        msg = f"Schema file not found: {schema_file}"
        raise FileNotFoundError(msg)

    logger.info("Creating database schema (version %s)", CURRENT_SCHEMA_VERSION)
    schema_sql = schema_file.read_text(encoding="utf-8")
    try:
        execute_script(conn, schema_sql, description="schema.sql", atomic=True)
    except sqlite3.Error as exc:
        msg = f"Schema creation failed: {exc}"
        raise SchemaExecutionError(msg) from exc


def initialize_database(conn: sqlite3.Connection) -> list[int]:
    """Create or migrate the schema behind an open connection.

    Args:
        conn: Configured connection (see `connection.get_connection`).

    Returns:
        Migration versions applied (empty for fresh or current files).

    Raises:
        DatabaseConnectionError: If the file cannot be read (for example it
            is not a SQLite database).
        SchemaExecutionError: If schema creation or a migration fails.
    """
    try:
        needs_schema = not table_exists(conn, PROBE_TABLE)
    except sqlite3.DatabaseError as exc:
        msg = f"Could not read database: {exc}"
        raise DatabaseConnectionError(msg) from exc

    if needs_schema:
        initialize_schema(conn)

    try:
        return migrate(conn)
    except sqlite3.Error as exc:
        msg = f"Could not update schema version: {exc}"
        raise SchemaExecutionError(msg) from exc


def open_database(db_path: Path | None = None) -> sqlite3.Connection:
    """Return a connection to a database at the current schema version.

    Args:
        db_path: Path to SQLite database file. Defaults to the file in the
            application data directory.

    Returns:
        Configured, bootstrapped connection. The caller closes it.

    Raises:
        PathResolutionError: If the data directory cannot be resolved.
        DatabaseConnectionError: If the file cannot be opened or read.
        SchemaExecutionError: If schema creation or migration fails.
    """
    conn = get_connection(db_path=db_path)
    try:
        initialize_database(conn)
    except Exception:
        conn.close()
        raise
    return conn
