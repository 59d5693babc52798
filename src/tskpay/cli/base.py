from __future__ import annotations

import json
import logging
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import Any

import typer

_LOGGING_CONFIGURED = False


def configure_logging(level: int = logging.WARNING) -> None:
    """Configure CLI-wide logging once.

    Sets up basic logging configuration for the CLI. Safe to call multiple
    times; only configures on first call.

    Args:
        level: Logging level (defaults to WARNING so JSON output stays clean).

    Side Effects:
        - Configures Python logging module globally.
        - Sets module-level flag to prevent reconfiguration.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    _LOGGING_CONFIGURED = True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger hooked into the shared CLI configuration."""
    return logging.getLogger(name)


@contextmanager
def handle_errors(
    operation: str,
    *,
    logger: logging.Logger | None = None,
) -> Generator[None, None, None]:
    """Provide consistent exception handling for CLI operations.

    Context manager that catches exceptions, logs them, displays user-friendly
    error messages, and exits with code 1. Re-raises typer.Exit to allow
    normal CLI exit flow.

    Args:
        operation: Human-readable operation name for error messages.
        logger: Logger instance. Defaults to module logger if None.

    Raises:
        typer.Exit: Always exits with code 1 on exception (except typer.Exit
            which is re-raised).

    User Output:
        - Prints error message via typer.secho() in red: "✗ {operation} failed: {exc}".
    """
    logger = logger or get_logger(__name__)
    try:
        yield
    except typer.Exit:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.debug("Error during %s", operation, exc_info=True)
        typer.secho(f"✗ {operation} failed: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from exc


def format_result(result: Any, *, operation: str | None = None) -> str:
    """Format arbitrary result payloads into CLI-friendly text.

    Records and lists of records are rendered as JSON so they can be piped
    into other tools; status dicts and plain values get a one-line summary.

    Args:
        result: Result object to format.
        operation: Optional operation name to include in formatted output.

    Returns:
        Formatted string ready for CLI display.
    """
    op_label = operation or "Result"

    if result is None:
        return f"✓ {op_label}"

    if isinstance(result, bool):
        icon = "✓" if result else "✗"
        return f"{icon} {op_label}"

    if isinstance(result, str):
        return f"{op_label}: {result}"

    if isinstance(result, dict) and "success" in result:
        icon = "✓" if result["success"] else "✗"
        lines = [f"{icon} {op_label}"]
        message = result.get("message")
        if message:
            lines.append(f"  ℹ {message}")
        return "\n".join(lines)

    return json.dumps(result, ensure_ascii=False, indent=2)


class BaseCLI:
    """Utility base class for CLI command groups."""

    def __init__(self, domain: str) -> None:
        self.domain = domain
        self.logger = get_logger(__name__)

    def handle_cli_operation(
        self,
        *,
        operation: str,
        op_callable: Callable[[], Any],
        pre_message: str | None = None,
        success_message: str | None = None,
        raw: bool = False,
    ) -> Any:
        """Run an operation with consistent logging, formatting, and errors.

        Args:
            operation: Human-readable operation name for error handling.
            op_callable: Callable that performs the operation and returns
                a result.
            pre_message: Optional message to display before operation starts.
            success_message: Optional message to display if operation succeeds
                (only shown if result is a dict with success=True).
            raw: Print the result as JSON without a status line.

        Returns:
            Result from op_callable.

        User Output:
            - Prints pre_message via typer.echo() if provided.
            - Prints formatted result via typer.echo().
            - Error messages handled by handle_errors context manager.
        """
        if pre_message:
            typer.echo(pre_message)

        with handle_errors(operation, logger=self.logger):
            result = op_callable()

        if success_message and isinstance(result, dict) and result.get("success"):
            typer.echo(success_message)

        if raw:
            typer.echo(json.dumps(result, ensure_ascii=False, indent=2))
        else:
            typer.echo(format_result(result, operation=operation))
        return result
