from __future__ import annotations

import typer

from .base import configure_logging
from .commands.db import app as db_app

configure_logging()
app = typer.Typer(
    help="TSK Pay data CLI",
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.add_typer(db_app, name="db")


def main() -> None:
    """Main entry point for package CLI.

    Invokes the Typer application, which handles command parsing and
    execution.
    """
    app()


if __name__ == "__main__":
    main()
