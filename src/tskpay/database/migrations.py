"""Sequential schema migrations.

The persisted schema version lives in a single-row `schema_version`
table. Each migration step moves the schema from version N-1 to N and is
registered in `MIGRATIONS` with the `@migration(N)` decorator. A fresh
database is created directly at `CURRENT_SCHEMA_VERSION` from
`sql/schema.sql`, so steps only ever run against existing files.

`migrate` runs every pending step in ascending order inside a single
transaction together with the version bump: a failure anywhere leaves
both the schema and the stored version exactly as they were.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable, Mapping

from ..utils.time import now_ts_utc_z

from .errors import SchemaExecutionError
from .relations import member_parent_id

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 5

MigrationStep = Callable[[sqlite3.Connection], None]

MIGRATIONS: dict[int, MigrationStep] = {}

SEED_COACH_ID = "coa-samo-clani"
SEED_GROUP_ID = "grp-samo-clani"
SEED_GROUP_NAME = "Samo člani"


def migration(version: int) -> Callable[[MigrationStep], MigrationStep]:
    """Register a function as the step that produces schema `version`."""

    def register(step: MigrationStep) -> MigrationStep:
        if version in MIGRATIONS:
            msg = f"Migration {version} is already registered ({MIGRATIONS[version].__name__})"
            raise ValueError(msg)
        MIGRATIONS[version] = step
        return step

    return register


def _column_names(conn: sqlite3.Connection, table: str) -> set[str]:
    return {row[1] for row in conn.execute(f'PRAGMA table_info("{table}")')}


def _add_column(conn: sqlite3.Connection, table: str, column: str, definition: str) -> None:
    """ALTER TABLE ... ADD COLUMN, skipped when the column already exists."""
    if column in _column_names(conn, table):
        logger.debug("Column %s.%s already present", table, column)
        return
    conn.execute(f'ALTER TABLE "{table}" ADD COLUMN {column} {definition}')


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


@migration(2)
def add_recurring_cost_fields(conn: sqlite3.Connection) -> None:
    """Recurring cost templates."""
    _add_column(conn, "costs", "is_recurring", "INTEGER DEFAULT 0")
    _add_column(conn, "costs", "recurring_period", "TEXT")
    _add_column(conn, "costs", "recurring_start_date", "TEXT")
    _add_column(conn, "costs", "recurring_end_date", "TEXT")
    _add_column(conn, "costs", "recurring_day_of_month", "INTEGER")
    _add_column(conn, "costs", "recurring_template_id", "TEXT")


@migration(3)
def add_payment_status_fields(conn: sqlite3.Connection) -> None:
    """Payment allocation status and the payer name of unmatched payments."""
    _add_column(conn, "payments", "status", "TEXT DEFAULT 'pending'")
    _add_column(conn, "payments", "payer_name", "TEXT")


@migration(4)
def create_member_parents(conn: sqlite3.Connection) -> None:
    """Many-to-many member/parent pivot, backfilled from members.parent_id.

    `members.parent_id` is kept for compatibility. Members whose legacy
    parent no longer exists are skipped rather than failing the upgrade.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS member_parents (
            id TEXT PRIMARY KEY,
            member_id TEXT NOT NULL REFERENCES members (id) ON DELETE CASCADE,
            parent_id TEXT NOT NULL REFERENCES parents (id) ON DELETE CASCADE,
            created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
            UNIQUE (member_id, parent_id)
        )
        """
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_member_parents_member_id ON member_parents (member_id)"
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_member_parents_parent_id ON member_parents (parent_id)"
    )

    known_parents = {row[0] for row in conn.execute("SELECT id FROM parents")}
    legacy_links = conn.execute(
        "SELECT id, parent_id FROM members WHERE parent_id IS NOT NULL AND parent_id != ''"
    ).fetchall()

    created_at = now_ts_utc_z()
    backfilled = 0
    for member_id, parent_id in legacy_links:
        if parent_id not in known_parents:
            logger.warning(
                "Skipping member %s: legacy parent %s does not exist", member_id, parent_id
            )
            continue
        cursor = conn.execute(
            """
            INSERT OR IGNORE INTO member_parents (id, member_id, parent_id, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (member_parent_id(member_id, parent_id, 0), member_id, parent_id, created_at),
        )
        backfilled += cursor.rowcount
    logger.info("Backfilled %d member/parent link(s)", backfilled)


@migration(5)
def seed_members_only_group(conn: sqlite3.Connection) -> None:
    """Fixed "Samo člani" coach and group."""
    conn.execute(
        "INSERT OR IGNORE INTO coaches (id, name, email, phone) VALUES (?, ?, '', '')",
        (SEED_COACH_ID, SEED_GROUP_NAME),
    )
    conn.execute(
        'INSERT OR IGNORE INTO "groups" (id, name, coach_id) VALUES (?, ?, ?)',
        (SEED_GROUP_ID, SEED_GROUP_NAME, SEED_COACH_ID),
    )


# ---------------------------------------------------------------------------
# Version marker
# ---------------------------------------------------------------------------


def ensure_schema_version_table(conn: sqlite3.Connection) -> None:
    """Create the `schema_version` table if it doesn't exist."""
    conn.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER PRIMARY KEY)")


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    """Return the stored schema version, or None if none is stored."""
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return None if row is None or row[0] is None else int(row[0])


def set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Store `version` as the single row of `schema_version`.

    Any existing rows are replaced. Does not commit; the caller owns the
    transaction.
    """
    conn.execute("DELETE FROM schema_version")
    conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


def run_migrations(
    conn: sqlite3.Connection,
    from_version: int,
    to_version: int,
    registry: Mapping[int, MigrationStep] | None = None,
) -> list[int]:
    """Apply every step in `from_version + 1 .. to_version`, in order.

    Versions without a registered step are no-ops. Does not manage the
    transaction and does not touch the version marker.

    Args:
        conn: Database connection.
        from_version: Version the schema is currently at.
        to_version: Version to bring the schema to.
        registry: Steps by version. Defaults to `MIGRATIONS`.

    Returns:
        Versions whose step ran, in the order they ran.

    Raises:
        SchemaExecutionError: If a step fails with a SQLite error.

    Logs:
        - INFO: "Applying migration {version}: {name}" per step.
        - DEBUG: "No migration registered for version {version}" for gaps.
    """
    steps = MIGRATIONS if registry is None else registry
    applied: list[int] = []
    for version in range(from_version + 1, to_version + 1):
        step = steps.get(version)
        if step is None:
            logger.debug("No migration registered for version %s", version)
            continue
        logger.info("Applying migration %s: %s", version, step.__name__)
        try:
            step(conn)
        except sqlite3.Error as exc:
            msg = f"Migration {version} ({step.__name__}) failed: {exc}"
            raise SchemaExecutionError(msg, version=version) from exc
        applied.append(version)
    return applied


def migrate(
    conn: sqlite3.Connection,
    target: int = CURRENT_SCHEMA_VERSION,
    registry: Mapping[int, MigrationStep] | None = None,
) -> list[int]:
    """Bring the stored schema version up to `target`.

    - No stored version: the schema is a fresh baseline, so `target` is
      simply recorded.
    - Stored version below `target`: all pending steps and the version
      bump run in one transaction.
    - Stored version at or above `target`: nothing to do (a newer file is
      left untouched).

    Args:
        conn: Database connection with no pending transaction.
        target: Version to migrate to.
        registry: Steps by version. Defaults to `MIGRATIONS`.

    Returns:
        Versions whose step ran.

    Raises:
        SchemaExecutionError: If a step fails. Schema changes and the
            stored version are rolled back.

    Logs:
        - INFO: "Recorded schema version {target}" on fresh install.
        - INFO: "Migrating schema from version {a} to {b}" before steps.
        - WARNING: stored version newer than `target`.
        - ERROR: "Migration rolled back" on failure.
    """
    ensure_schema_version_table(conn)
    stored = get_schema_version(conn)

    if stored is None:
        set_schema_version(conn, target)
        conn.commit()
        logger.info("Recorded schema version %s", target)
        return []

    if stored > target:
        logger.warning(
            "Database schema version %s is newer than this application (%s)", stored, target
        )
        return []

    if stored == target:
        logger.debug("Schema is up to date (version %s)", stored)
        return []

    logger.info("Migrating schema from version %s to %s", stored, target)
    try:
        conn.execute("BEGIN")
        applied = run_migrations(conn, stored, target, registry)
        set_schema_version(conn, target)
        conn.commit()
    except Exception:
        logger.exception("Migration rolled back (schema stays at version %s)", stored)
        if conn.in_transaction:
            conn.rollback()
        raise

    logger.info("Schema migrated to version %s (steps applied: %s)", target, applied)
    return applied
