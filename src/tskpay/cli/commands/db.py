"""CLI commands for database management and record access."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

import typer

from ..base import BaseCLI
from ...database import backup, commands
from ...database.errors import NotFoundError
from ...database.tables import generate_id

db_app = typer.Typer(help="Database management and record commands.")

DbPathOption = Annotated[
    Path | None,
    typer.Option(
        "--db-path",
        help="Path to SQLite database file (defaults to the app data directory)",
    ),
]
DataOption = Annotated[
    str,
    typer.Option("--data", "-d", help='Record as a JSON object, e.g. \'{"id": "par-1"}\''),
]


def _parse_record(data: str) -> dict[str, Any]:
    """Parse a JSON object given on the command line.

    Raises:
        typer.BadParameter: If `data` is not valid JSON or not an object.
    """
    try:
        record = json.loads(data)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"--data is not valid JSON: {exc}") from exc
    if not isinstance(record, dict):
        raise typer.BadParameter("--data must be a JSON object")
    return record


class DatabaseCLI(BaseCLI):
    """CLI helpers for database management."""

    def __init__(self) -> None:
        """Initialize DatabaseCLI with db domain name."""
        super().__init__("db")

    def init_db(self, *, db_path: Path | None) -> dict[str, Any]:
        """Create or migrate the database."""
        return self.handle_cli_operation(
            operation="db init",
            op_callable=lambda: self._init_operation(db_path=db_path),
        )

    def list_records(self, *, table: str, db_path: Path | None) -> list[dict[str, Any]]:
        return self.handle_cli_operation(
            operation=f"db list {table}",
            op_callable=lambda: commands.db_get_all(table, db_path=db_path),
            raw=True,
        )

    def get_record(self, *, table: str, record_id: str, db_path: Path | None) -> dict[str, Any]:
        return self.handle_cli_operation(
            operation=f"db get {table}",
            op_callable=lambda: self._get_operation(table, record_id, db_path=db_path),
            raw=True,
        )

    def create_record(
        self,
        *,
        table: str,
        data: str,
        new_id: bool,
        db_path: Path | None,
    ) -> dict[str, Any]:
        return self.handle_cli_operation(
            operation=f"db create {table}",
            op_callable=lambda: self._create_operation(table, data, new_id=new_id, db_path=db_path),
            raw=True,
        )

    def update_record(
        self,
        *,
        table: str,
        record_id: str,
        data: str,
        db_path: Path | None,
    ) -> dict[str, Any]:
        return self.handle_cli_operation(
            operation=f"db update {table}",
            op_callable=lambda: self._update_operation(table, record_id, data, db_path=db_path),
        )

    def delete_record(self, *, table: str, record_id: str, db_path: Path | None) -> dict[str, Any]:
        return self.handle_cli_operation(
            operation=f"db delete {table}",
            op_callable=lambda: self._delete_operation(table, record_id, db_path=db_path),
        )

    def _init_operation(self, *, db_path: Path | None) -> dict[str, Any]:
        """Internal init operation that returns standardized result."""
        commands.db_init(db_path=db_path)
        location = commands.db_location(db_path=db_path)
        return {"success": True, "message": f"Database ready at {location}"}

    def _get_operation(self, table: str, record_id: str, *, db_path: Path | None) -> dict[str, Any]:
        record = commands.db_get_by_id(table, record_id, db_path=db_path)
        if record is None:
            raise NotFoundError(f"No record {record_id!r} in {table!r}")
        return record

    def _create_operation(
        self,
        table: str,
        data: str,
        *,
        new_id: bool,
        db_path: Path | None,
    ) -> dict[str, Any]:
        record = _parse_record(data)
        if new_id and "id" not in record:
            record["id"] = generate_id(table)
        return commands.db_create(table, record, db_path=db_path)

    def _update_operation(
        self,
        table: str,
        record_id: str,
        data: str,
        *,
        db_path: Path | None,
    ) -> dict[str, Any]:
        commands.db_update(table, record_id, _parse_record(data), db_path=db_path)
        return {"success": True, "message": f"Updated {record_id}"}

    def _delete_operation(self, table: str, record_id: str, *, db_path: Path | None) -> dict[str, Any]:
        commands.db_delete(table, record_id, db_path=db_path)
        return {"success": True, "message": f"Deleted {record_id}"}


cli = DatabaseCLI()


@db_app.command("init")
def init_command(db_path: DbPathOption = None) -> None:
    """Create the database, or migrate it to the current schema version."""
    cli.init_db(db_path=db_path)


@db_app.command("path")
def path_command(db_path: DbPathOption = None) -> None:
    """Print the database file location."""
    cli.handle_cli_operation(
        operation="db path",
        op_callable=lambda: str(commands.db_location(db_path=db_path)),
    )


@db_app.command("list")
def list_command(
    table: Annotated[str, typer.Argument(help="Table name, e.g. members")],
    db_path: DbPathOption = None,
) -> None:
    """Print every record of TABLE as JSON."""
    cli.list_records(table=table, db_path=db_path)


@db_app.command("get")
def get_command(
    table: Annotated[str, typer.Argument(help="Table name")],
    record_id: Annotated[str, typer.Argument(help="Record id")],
    db_path: DbPathOption = None,
) -> None:
    """Print one record as JSON. Exits with code 1 if it does not exist."""
    cli.get_record(table=table, record_id=record_id, db_path=db_path)


@db_app.command("create")
def create_command(
    table: Annotated[str, typer.Argument(help="Table name")],
    data: DataOption,
    new_id: Annotated[
        bool,
        typer.Option("--new-id", help="Generate an id when --data has none"),
    ] = False,
    db_path: DbPathOption = None,
) -> None:
    """Insert a record and print it as stored."""
    cli.create_record(table=table, data=data, new_id=new_id, db_path=db_path)


@db_app.command("update")
def update_command(
    table: Annotated[str, typer.Argument(help="Table name")],
    record_id: Annotated[str, typer.Argument(help="Record id")],
    data: DataOption,
    db_path: DbPathOption = None,
) -> None:
    """Set the given columns of a record."""
    cli.update_record(table=table, record_id=record_id, data=data, db_path=db_path)


@db_app.command("delete")
def delete_command(
    table: Annotated[str, typer.Argument(help="Table name")],
    record_id: Annotated[str, typer.Argument(help="Record id")],
    db_path: DbPathOption = None,
) -> None:
    """Delete a record. Deleting a missing id succeeds."""
    cli.delete_record(table=table, record_id=record_id, db_path=db_path)


@db_app.command("member-parents")
def member_parents_command(
    member_id: Annotated[str, typer.Argument(help="Member id")],
    db_path: DbPathOption = None,
) -> None:
    """Print the parent ids linked to a member."""
    cli.handle_cli_operation(
        operation="db member-parents",
        op_callable=lambda: commands.db_get_member_parents(member_id, db_path=db_path),
        raw=True,
    )


@db_app.command("set-member-parents")
def set_member_parents_command(
    member_id: Annotated[str, typer.Argument(help="Member id")],
    parent_ids: Annotated[
        list[str] | None,
        typer.Argument(help="Parent ids; none unlinks every parent"),
    ] = None,
    db_path: DbPathOption = None,
) -> None:
    """Replace the parents linked to a member."""
    ids = parent_ids or []
    cli.handle_cli_operation(
        operation="db set-member-parents",
        op_callable=lambda: commands.db_set_member_parents(member_id, ids, db_path=db_path),
    )


@db_app.command("parent-members")
def parent_members_command(
    parent_id: Annotated[str, typer.Argument(help="Parent id")],
    db_path: DbPathOption = None,
) -> None:
    """Print the member ids linked to a parent."""
    cli.handle_cli_operation(
        operation="db parent-members",
        op_callable=lambda: commands.db_get_parent_members(parent_id, db_path=db_path),
        raw=True,
    )


@db_app.command("export")
def export_command(
    destination: Annotated[Path, typer.Argument(help="Target file or directory")],
    db_path: DbPathOption = None,
) -> None:
    """Copy the database file to DESTINATION."""
    cli.handle_cli_operation(
        operation="db export",
        op_callable=lambda: str(backup.export_database(destination, db_path=db_path)),
    )


@db_app.command("import")
def import_command(
    source: Annotated[Path, typer.Argument(help="SQLite file to import")],
    db_path: DbPathOption = None,
) -> None:
    """Replace the database with SOURCE, keeping a copy of the current one."""

    def _import() -> dict[str, Any]:
        safety_copy = backup.import_database(source, db_path=db_path)
        if safety_copy is None:
            return {"success": True, "message": "No existing database was replaced"}
        return {"success": True, "message": f"Previous database saved to {safety_copy}"}

    cli.handle_cli_operation(operation="db import", op_callable=_import)


app = db_app
