"""Public interface for the database package.

This module exposes the main primitives needed by the rest of the
project: connection and bootstrap helpers, the migration runner,
generic CRUD utilities, and the member/parent relationship accessors.
"""

from .connection import get_connection, get_db_path, resolve_data_dir, transaction
from .crud import create, delete, get_all, get_by_id, update
from .errors import (
    BackupError,
    DatabaseConnectionError,
    DatabaseError,
    IntegrityError,
    NotFoundError,
    PathResolutionError,
    RecordShapeError,
    SchemaExecutionError,
    UnknownIdentifierError,
)
from .init import initialize_database, open_database
from .migrations import CURRENT_SCHEMA_VERSION, get_schema_version, migrate
from .relations import get_member_parents, get_parent_members, set_member_parents

__all__ = [
    "get_connection",
    "get_db_path",
    "resolve_data_dir",
    "transaction",
    "open_database",
    "initialize_database",
    "migrate",
    "get_schema_version",
    "CURRENT_SCHEMA_VERSION",
    "get_all",
    "get_by_id",
    "create",
    "update",
    "delete",
    "get_member_parents",
    "set_member_parents",
    "get_parent_members",
    "DatabaseError",
    "IntegrityError",
    "NotFoundError",
    "RecordShapeError",
    "PathResolutionError",
    "DatabaseConnectionError",
    "SchemaExecutionError",
    "UnknownIdentifierError",
    "BackupError",
]
