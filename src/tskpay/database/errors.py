"""Database-specific exception types for the project."""

from __future__ import annotations

import sqlite3
from typing import Any


class DatabaseError(Exception):
    """Base exception for database-related errors."""


class IntegrityError(DatabaseError):
    """Raised when a write violates a constraint.

    Covers duplicate keys, missing foreign keys and NOT NULL violations.
    The message is SQLite's own description of the violation.
    """


class NotFoundError(DatabaseError):
    """Raised when a requested row cannot be found."""


class RecordShapeError(NotFoundError):
    """Raised when a record lacks the non-empty string `id` it needs.

    Subclasses NotFoundError because a record without an id can never be
    read back after it is written.
    """


class PathResolutionError(DatabaseError):
    """Raised when the data directory cannot be determined or created."""


class DatabaseConnectionError(DatabaseError):
    """Raised when the database file cannot be opened or read."""


class SchemaExecutionError(DatabaseError):
    """Raised when schema creation or a migration step fails.

    Attributes:
        version: Migration version that failed, or None for the baseline
            schema script.
    """

    def __init__(self, message: str, *, version: int | None = None) -> None:
        super().__init__(message)
        self.version = version


class UnknownIdentifierError(DatabaseError, ValueError):
    """Raised when a table or column name is not on the allow-list."""


class BackupError(DatabaseError):
    """Raised when exporting or importing the database file fails."""


def from_sqlite_error(error: sqlite3.Error) -> DatabaseError:
    """Map a raw sqlite3 error to a project-level DatabaseError.

    Converts sqlite3 exceptions to project-specific exception types.
    IntegrityError is mapped to IntegrityError, all others to DatabaseError.

    Args:
        error: SQLite exception to convert.

    Returns:
        DatabaseError or IntegrityError instance with error message.
    """
    if isinstance(error, sqlite3.IntegrityError):
        return IntegrityError(str(error))
    return DatabaseError(str(error))


def ensure_found(row: Any, message: str = "Row not found") -> Any:
    """Raise NotFoundError if a row is missing, otherwise return it.

    Args:
        row: Row returned by a query (or None).
        message: Error message used when the row is missing.

    Returns:
        The row unchanged.

    Raises:
        NotFoundError: If row is None.
    """
    if row is None:
        raise NotFoundError(message)
    return row
