"""File-level export and import of the database.

These helpers copy the single database file to or from a location the
user picked. They use only the resolved database path; the engine does
not lock the file, so copies must happen while no write is in flight.
An imported file is migrated the next time a connection is opened.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path

from .. import global_config as g
from ..utils.time import local_file_stamp

from .connection import get_db_path
from .errors import BackupError

logger = logging.getLogger(__name__)

SQLITE_MAGIC = b"SQLite format 3\x00"


def default_backup_filename(now: datetime | None = None) -> str:
    """Return e.g. ``tskpay-backup-2024-06-01-142530.db``."""
    return f"{g.BACKUP_PREFIX}-{local_file_stamp(now)}.db"


def is_sqlite_file(path: Path) -> bool:
    """Return True if `path` starts with a SQLite database header.

    The exact 16-byte magic string is expected; a header that only starts
    with ``SQLite`` is accepted as well.

    Raises:
        BackupError: If the file cannot be read.
    """
    try:
        with open(path, "rb") as fh:
            header = fh.read(len(SQLITE_MAGIC))
    except OSError as exc:
        msg = f"Could not read file {path}: {exc}"
        raise BackupError(msg) from exc

    if len(header) < len(SQLITE_MAGIC):
        return False
    return header == SQLITE_MAGIC or header.startswith(b"SQLite")


def _copy(source: Path, destination: Path) -> None:
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, destination)
    except OSError as exc:
        msg = f"Could not copy database from {source} to {destination}: {exc}"
        raise BackupError(msg) from exc
    logger.info("Copied %s to %s", source, destination)


def export_database(destination: Path, db_path: Path | None = None) -> Path:
    """Copy the database file to `destination`.

    Args:
        destination: Target file, or a directory that receives a file
            named by `default_backup_filename()`.
        db_path: Database file. Defaults to the application database.

    Returns:
        Path of the written copy.

    Raises:
        BackupError: If the database does not exist or the copy fails.
    """
    source = Path(db_path) if db_path is not None else get_db_path()
    if not source.exists():
        msg = f"Database does not exist: {source}"
        raise BackupError(msg)

    target = Path(destination)
    if target.is_dir():
        target = target / default_backup_filename()
    _copy(source, target)
    return target


def import_database(source: Path, db_path: Path | None = None) -> Path | None:
    """Replace the database file with `source`.

    The current database, if any, is first copied next to itself as
    ``tskpay-backup-before-import-<timestamp>.db``.

    Args:
        source: SQLite file to import.
        db_path: Database file to replace. Defaults to the application
            database.

    Returns:
        Path of the safety copy, or None if there was no database yet.

    Raises:
        BackupError: If `source` is missing or not a SQLite file, or a copy
            fails.
    """
    source = Path(source)
    if not source.is_file():
        msg = f"Import file does not exist: {source}"
        raise BackupError(msg)
    if not is_sqlite_file(source):
        msg = f"Selected file is not a valid SQLite database: {source}"
        raise BackupError(msg)

    target = Path(db_path) if db_path is not None else get_db_path()

    safety_copy = None
    if target.exists():
        safety_copy = target.with_name(f"{g.PRE_IMPORT_BACKUP_PREFIX}-{local_file_stamp()}.db")
        _copy(target, safety_copy)

    _copy(source, target)
    return safety_copy
