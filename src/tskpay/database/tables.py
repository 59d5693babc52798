"""Allow-list of table and column identifiers for generated SQL.

The generic CRUD helpers interpolate table and column names into SQL
text, so every identifier must be checked against this list first.
Values are never interpolated; they are always bound as parameters.

The `member_parents` pivot and the `schema_version` marker are
deliberately absent: they are owned by `relations` and `migrations`.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Iterable

from .errors import UnknownIdentifierError

_TIMESTAMPS = ("created_at", "updated_at")

TABLE_COLUMNS: dict[str, frozenset[str]] = {
    "parents": frozenset(
        ("id", "first_name", "last_name", "email", "phone", *_TIMESTAMPS)
    ),
    "coaches": frozenset(("id", "name", "email", "phone", *_TIMESTAMPS)),
    "groups": frozenset(("id", "name", "coach_id", *_TIMESTAMPS)),
    "members": frozenset(
        (
            "id",
            "first_name",
            "last_name",
            "date_of_birth",
            "status",
            "notes",
            "parent_id",
            "group_id",
            *_TIMESTAMPS,
        )
    ),
    "cost_types": frozenset(("id", "name", "created_at")),
    "costs": frozenset(
        (
            "id",
            "member_id",
            "title",
            "description",
            "amount",
            "cost_type_id",
            "due_date",
            "status",
            *_TIMESTAMPS,
            "is_recurring",
            "recurring_period",
            "recurring_start_date",
            "recurring_end_date",
            "recurring_day_of_month",
            "recurring_template_id",
        )
    ),
    "payments": frozenset(
        (
            "id",
            "parent_id",
            "amount",
            "payment_date",
            "payment_method",
            "reference_number",
            "notes",
            "imported_from_bank",
            "bank_transaction_id",
            *_TIMESTAMPS,
            "status",
            "payer_name",
        )
    ),
    "bank_statements": frozenset(
        (
            "id",
            "file_name",
            "file_type",
            "imported_at",
            "status",
            "total_transactions",
            "matched_transactions",
            "unmatched_transactions",
        )
    ),
    "bank_transactions": frozenset(
        (
            "id",
            "bank_statement_id",
            "transaction_date",
            "amount",
            "description",
            "reference",
            "account_number",
            "matched_parent_id",
            "match_confidence",
            "status",
            "payment_id",
        )
    ),
    "payment_allocations": frozenset(
        ("id", "payment_id", "cost_id", "allocated_amount", "created_at")
    ),
    "audit_log": frozenset(
        ("id", "action", "description", "user_id", "user_name", "timestamp", "details")
    ),
}

# Prefixes used by the application when it generates entity ids
ID_PREFIXES: dict[str, str] = {
    "parents": "par",
    "coaches": "coa",
    "groups": "grp",
    "members": "mem",
    "cost_types": "ct",
    "costs": "cost",
    "payments": "pay",
    "bank_statements": "stmt",
    "bank_transactions": "txn",
    "payment_allocations": "alloc",
    "audit_log": "audit",
}


def validate_table(table: str) -> None:
    """Raise UnknownIdentifierError unless `table` is a known CRUD table."""
    if table not in TABLE_COLUMNS:
        msg = f"Unknown table: {table!r}"
        raise UnknownIdentifierError(msg)


def validate_columns(table: str, columns: Iterable[str]) -> None:
    """Raise UnknownIdentifierError for the first column not in `table`.

    Args:
        table: Table name (validated first).
        columns: Column names supplied by the caller.

    Raises:
        UnknownIdentifierError: If the table or any column is unknown.
    """
    validate_table(table)
    allowed = TABLE_COLUMNS[table]
    unknown = sorted(c for c in columns if c not in allowed)
    if unknown:
        msg = f"Unknown column(s) for table {table!r}: {', '.join(unknown)}"
        raise UnknownIdentifierError(msg)


def generate_id(table: str) -> str:
    """Return a fresh entity id such as ``mem-1718000000000-3f9a2c1``."""
    validate_table(table)
    millis = int(time.time() * 1000)
    return f"{ID_PREFIXES[table]}-{millis}-{uuid.uuid4().hex[:7]}"


def quote_identifier(name: str) -> str:
    """Quote an identifier that has already passed the allow-list."""
    return '"' + name.replace('"', '""') + '"'
