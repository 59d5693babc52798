"""Global, project-wide configuration constants.

This module intentionally contains **no business logic** – only simple,
shared filesystem anchors and cross-cutting constants that many modules
can import.

The database location itself is resolved at runtime by
`tskpay.database.connection`, which builds on top of these anchors.
"""

from pathlib import Path

# Core roots
PACKAGE_ROOT: Path = Path(__file__).resolve().parent

# Core Names
PROJECT_NAME = "tskpay"
PACKAGE_NAME = "tskpay"

# Name of the per-user application data directory
APP_DIR_NAME = "tskpay"

# Database file
DB_FILENAME = "tskpay.db"

# Environment variable that overrides the application data directory
DATA_DIR_ENV = "TSKPAY_DATA_DIR"

# SQL directory (shipped as package data)
SQL_DIR: Path = PACKAGE_ROOT / "database" / "sql"

# Backup file naming
BACKUP_PREFIX = "tskpay-backup"
PRE_IMPORT_BACKUP_PREFIX = "tskpay-backup-before-import"
