"""Database location and connection helpers.

This module provides a small, synchronous API for locating the single
application database file and obtaining SQLite connections configured
for local, single-user desktop workloads. There is no pooling: every
call opens a fresh connection.
"""

from __future__ import annotations

import contextlib
import logging
import os
import sqlite3
import sys
from collections.abc import Iterator
from pathlib import Path

from .. import global_config as g

from .errors import DatabaseConnectionError, PathResolutionError

logger = logging.getLogger(__name__)


def _platform_data_root() -> Path:
    """Return the per-user application data root for this platform.

    - Windows: %APPDATA%
    - macOS: ~/Library/Application Support
    - Linux/Unix: $XDG_DATA_HOME or ~/.local/share
    """
    home = Path.home()
    if sys.platform == "win32":
        return Path(os.environ.get("APPDATA", home / "AppData" / "Roaming"))
    if sys.platform == "darwin":
        return home / "Library" / "Application Support"
    return Path(os.environ.get("XDG_DATA_HOME") or home / ".local" / "share")


def resolve_data_dir() -> Path:
    """Return the application-private data directory.

    The `TSKPAY_DATA_DIR` environment variable takes precedence over the
    platform default.

    Returns:
        Absolute path of the data directory (not created here).

    Raises:
        PathResolutionError: If no home directory can be determined.
    """
    override = os.environ.get(g.DATA_DIR_ENV)
    if override:
        return Path(override).expanduser().resolve()
    try:
        return (_platform_data_root() / g.APP_DIR_NAME).resolve()
    except (RuntimeError, KeyError, OSError) as exc:
        msg = f"Could not get app data directory: {exc}"
        raise PathResolutionError(msg) from exc


def get_db_path(data_dir: Path | None = None) -> Path:
    """Return the database file path, creating its directory if needed.

    Args:
        data_dir: Directory holding the database. Defaults to
            `resolve_data_dir()`.

    Returns:
        Path to `tskpay.db` inside the data directory.

    Raises:
        PathResolutionError: If the directory cannot be resolved or created.
    """
    base = Path(data_dir) if data_dir is not None else resolve_data_dir()
    try:
        base.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        msg = f"Could not create app data directory {base}: {exc}"
        raise PathResolutionError(msg) from exc
    return base / g.DB_FILENAME


def _configure_connection(conn: sqlite3.Connection) -> None:
    """Apply standard pragmas and row factory to a new connection.

    Foreign keys are enforced on every open; SQLite leaves them off by
    default and the setting is per connection.
    """
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    # Default DELETE journal mode: the file must stay a single, copyable file.


def get_connection(db_path: Path | None = None) -> sqlite3.Connection:
    """Return a configured SQLite connection.

    Does not create or migrate the schema; see `init.open_database` for
    the bootstrapped connection the rest of the application uses.

    Args:
        db_path: Path to SQLite database file. Defaults to `get_db_path()`.

    Returns:
        Configured SQLite connection ready for use.

    Raises:
        PathResolutionError: If the default location cannot be resolved.
        DatabaseConnectionError: If the file cannot be opened.

    Logs:
        - DEBUG: "Opening SQLite database at {path}" when creating connection.
    """
    if db_path is None:
        resolved = get_db_path()
    else:
        resolved = Path(db_path)
        try:
            resolved.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = f"Could not create database directory {resolved.parent}: {exc}"
            raise PathResolutionError(msg) from exc

    logger.debug("Opening SQLite database at %s", resolved)
    try:
        conn = sqlite3.connect(str(resolved))
    except sqlite3.Error as exc:
        msg = f"Could not open database {resolved}: {exc}"
        raise DatabaseConnectionError(msg) from exc

    try:
        _configure_connection(conn)
    except sqlite3.Error as exc:
        conn.close()
        msg = f"Could not configure database {resolved}: {exc}"
        raise DatabaseConnectionError(msg) from exc
    return conn


@contextlib.contextmanager
def transaction(
    db_path: Path | None = None,
    existing_connection: sqlite3.Connection | None = None,
) -> Iterator[sqlite3.Connection]:
    """Context manager for a transactional connection block.

    Manages transaction boundaries (commit on success, rollback on error).
    If an existing connection is provided, it is reused and not closed.
    Otherwise, creates and closes a new connection.

    Args:
        db_path: Path to database file (only used if existing_connection
            is None).
        existing_connection: Existing connection to reuse.

    Yields:
        SQLite connection ready for database operations.

    Logs:
        - DEBUG: "Beginning transaction" at start
        - DEBUG: "Transaction committed" on success
        - ERROR: "Transaction rolled back due to error" on failure
        - DEBUG: "Connection closed" when closing owned connection.
    """
    owns_connection = existing_connection is None
    conn = existing_connection or get_connection(db_path=db_path)

    try:
        logger.debug("Beginning transaction")
        yield conn
        conn.commit()
        logger.debug("Transaction committed")
    except Exception:
        logger.exception("Transaction rolled back due to error")
        conn.rollback()
        raise
    finally:
        if owns_connection:
            conn.close()
            logger.debug("Connection closed")


def execute_script(
    conn: sqlite3.Connection,
    sql: str,
    *,
    description: str,
    atomic: bool = False,
) -> None:
    """Execute a multi-statement SQL script with logging.

    `sqlite3.Connection.executescript` commits any pending transaction
    before it runs, so an atomic script carries its own BEGIN/COMMIT and
    is rolled back here if any statement fails.

    Args:
        conn: Database connection to execute script on.
        sql: Multi-statement SQL script to execute.
        description: Human-readable description for logging purposes.
        atomic: Run the whole script as one transaction.

    Raises:
        sqlite3.Error: If script execution fails.

    Logs:
        - INFO: "Executing SQL script: {description}" before execution.
        - ERROR: "Failed while executing SQL script: {description}" with
            exception details on failure.
    """
    logger.info("Executing SQL script: %s", description)
    script = f"BEGIN;\n{sql}\n;\nCOMMIT;" if atomic else sql
    try:
        conn.executescript(script)
    except sqlite3.Error:
        logger.exception("Failed while executing SQL script: %s", description)
        if atomic and conn.in_transaction:
            conn.rollback()
        raise
