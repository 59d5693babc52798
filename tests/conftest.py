from __future__ import annotations

import sqlite3
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from tskpay.database.init import open_database
from tskpay.database.migrations import (
    ensure_schema_version_table,
    run_migrations,
    set_schema_version,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def app_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Forces test mode. Application code can use this to refuse dangerous behaviors.
    Automatically applied to all tests.
    """
    monkeypatch.setenv("APP_ENV", "test")


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """
    A dedicated temp root directory for each test.
    All filesystem writes in tests should be under this root (or tmp_path directly).
    """
    root = tmp_path / "proj"
    (root / "data").mkdir(parents=True)
    (root / "backups").mkdir(parents=True)
    return root


@pytest.fixture(autouse=True)
def chdir_to_project_root(project_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Automatically change working directory to project_root for all tests.
    This ensures relative-path operations go into the temp directory by default.
    """
    monkeypatch.chdir(project_root)


@pytest.fixture(autouse=True)
def app_data_dir(project_root: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    Point the application data directory at the temp project root so the
    default database location never resolves to the real user profile.
    """
    data_dir = project_root / "data"
    monkeypatch.setenv("TSKPAY_DATA_DIR", str(data_dir))
    return data_dir


@pytest.fixture
def sqlite_path(project_root: Path) -> Path:
    """
    On-disk SQLite DB under the temp project root (more realistic than :memory:).
    """
    return project_root / "data" / "test.sqlite"


@pytest.fixture
def db(sqlite_path: Path, project_root: Path) -> Iterator[sqlite3.Connection]:
    """
    A bootstrapped connection at the current schema version, closed after
    each test.

    Safety enforcement:
    - Path assertion: DB must be under project_root (prevents touching real DBs)
    """
    try:
        sqlite_path.resolve().relative_to(project_root.resolve())
    except ValueError:
        raise AssertionError(
            f"SQLite path {sqlite_path} is not under project_root {project_root}. "
            "This prevents accidental writes to real databases."
        )

    conn = open_database(sqlite_path)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def legacy_db(sqlite_path: Path) -> Callable[[int], Path]:
    """
    Factory building a database file as an older release left it.

    `legacy_db(n)` creates the version-1 tables from fixtures/schema_v1.sql,
    applies the steps up to `n` and stores `n` as the schema version. The
    connection is closed; open the returned path to exercise the upgrade.
    """

    def build(version: int) -> Path:
        conn = sqlite3.connect(sqlite_path)
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            conn.executescript((FIXTURES_DIR / "schema_v1.sql").read_text(encoding="utf-8"))
            run_migrations(conn, 1, version)
            ensure_schema_version_table(conn)
            set_schema_version(conn, version)
            conn.commit()
        finally:
            conn.close()
        return sqlite_path

    return build
