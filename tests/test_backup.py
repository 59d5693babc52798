"""Tests for database export and import."""

from __future__ import annotations

import re
import sqlite3
from datetime import datetime
from pathlib import Path

import pytest

from tskpay.database import crud
from tskpay.database.backup import (
    default_backup_filename,
    export_database,
    import_database,
    is_sqlite_file,
)
from tskpay.database.errors import BackupError
from tskpay.database.init import open_database


def _make_db(path: Path, parent_id: str) -> Path:
    conn = open_database(path)
    try:
        with conn:
            crud.create(conn, "parents", {"id": parent_id, "first_name": "Maja", "last_name": "Novak"})
    finally:
        conn.close()
    return path


def _parent_ids(path: Path) -> list[str]:
    conn = sqlite3.connect(path)
    try:
        return [row[0] for row in conn.execute("SELECT id FROM parents ORDER BY id")]
    finally:
        conn.close()


@pytest.mark.unit
def test_default_backup_filename() -> None:
    name = default_backup_filename(datetime(2024, 6, 1, 14, 25, 30))
    assert name == "tskpay-backup-2024-06-01-142530.db"


class TestHeaderCheck:
    """Tests for SQLite header detection."""

    @pytest.mark.integration
    def test_real_database(self, sqlite_path: Path) -> None:
        assert is_sqlite_file(_make_db(sqlite_path, "par-1"))

    @pytest.mark.integration
    @pytest.mark.parametrize(
        "content",
        [b"", b"SQLite", b"PK\x03\x04 this is a zip archive"],
    )
    def test_rejected_headers(self, tmp_path: Path, content: bytes) -> None:
        path = tmp_path / "candidate.db"
        path.write_bytes(content)
        assert not is_sqlite_file(path)

    @pytest.mark.integration
    def test_lenient_prefix_accepted(self, tmp_path: Path) -> None:
        path = tmp_path / "candidate.db"
        path.write_bytes(b"SQLite format 2\x00 and more")
        assert is_sqlite_file(path)

    @pytest.mark.integration
    def test_unreadable_file(self, tmp_path: Path) -> None:
        with pytest.raises(BackupError):
            is_sqlite_file(tmp_path / "missing.db")


class TestExport:
    """Tests for copying the database out."""

    @pytest.mark.integration
    def test_export_to_directory(self, sqlite_path: Path, project_root: Path) -> None:
        _make_db(sqlite_path, "par-1")

        written = export_database(project_root / "backups", db_path=sqlite_path)

        assert written.parent == project_root / "backups"
        assert re.match(r"^tskpay-backup-\d{4}-\d{2}-\d{2}-\d{6}\.db$", written.name)
        assert _parent_ids(written) == ["par-1"]

    @pytest.mark.integration
    def test_export_to_file(self, sqlite_path: Path, project_root: Path) -> None:
        _make_db(sqlite_path, "par-1")
        target = project_root / "backups" / "club.db"
        assert export_database(target, db_path=sqlite_path) == target
        assert is_sqlite_file(target)

    @pytest.mark.integration
    def test_export_missing_database(self, project_root: Path) -> None:
        with pytest.raises(BackupError, match="does not exist"):
            export_database(project_root / "backups", db_path=project_root / "none.db")


class TestImport:
    """Tests for replacing the database with a backup."""

    @pytest.mark.integration
    def test_import_keeps_safety_copy(self, sqlite_path: Path, project_root: Path) -> None:
        _make_db(sqlite_path, "par-current")
        backup = _make_db(project_root / "backups" / "other.db", "par-imported")

        safety_copy = import_database(backup, db_path=sqlite_path)

        assert safety_copy is not None
        assert safety_copy.parent == sqlite_path.parent
        assert safety_copy.name.startswith("tskpay-backup-before-import-")
        assert _parent_ids(safety_copy) == ["par-current"]
        assert _parent_ids(sqlite_path) == ["par-imported"]

    @pytest.mark.integration
    def test_import_without_existing_database(self, sqlite_path: Path, project_root: Path) -> None:
        backup = _make_db(project_root / "backups" / "other.db", "par-imported")
        assert import_database(backup, db_path=sqlite_path) is None
        assert _parent_ids(sqlite_path) == ["par-imported"]

    @pytest.mark.integration
    def test_import_rejects_non_sqlite(self, sqlite_path: Path, project_root: Path) -> None:
        _make_db(sqlite_path, "par-current")
        bogus = project_root / "backups" / "notes.txt"
        bogus.write_text("plain text, not a database", encoding="utf-8")

        with pytest.raises(BackupError, match="not a valid SQLite database"):
            import_database(bogus, db_path=sqlite_path)
        assert _parent_ids(sqlite_path) == ["par-current"]

    @pytest.mark.integration
    def test_import_missing_source(self, sqlite_path: Path, project_root: Path) -> None:
        with pytest.raises(BackupError, match="does not exist"):
            import_database(project_root / "backups" / "missing.db", db_path=sqlite_path)

    @pytest.mark.integration
    def test_imported_legacy_file_is_migrated_on_open(
        self,
        legacy_db,
        project_root: Path,
    ) -> None:
        legacy = legacy_db(2)
        target = project_root / "live.db"

        import_database(legacy, db_path=target)
        conn = open_database(target)
        try:
            assert conn.execute("SELECT MAX(version) FROM schema_version").fetchone()[0] == 5
        finally:
            conn.close()
