"""
Shared plumbing for the CLI commands.

Each command opens its own connection through :func:`make_context`, calls
one ops function, and hands the :class:`OperationResult` to
:func:`output_result`.  Data goes to stdout; errors and warnings go to
stderr so ``--json`` output can be piped.
"""

from __future__ import annotations

import getpass
import json
from dataclasses import asdict, is_dataclass
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from buildtrack.core.connection import create_connection
from buildtrack.core.notifier import create_notifier
from buildtrack.core.settings import get_settings
from buildtrack.ops.context import OperationContext
from buildtrack.ops.result import OperationResult

console = Console()
err_console = Console(stderr=True)


def make_context(database: str | None = None, *, dry_run: bool = False) -> tuple[OperationContext, Any]:
    """Open the database and build a CLI ``OperationContext`` for it.

    *database* overrides ``BUILDTRACK_DATABASE_URL``.  The login name is
    the default transition actor.
    """
    settings = get_settings()
    conn, _info = create_connection(database or settings.database_url)
    ctx = OperationContext(
        conn=conn,
        caller="cli",
        user=getpass.getuser(),
        dry_run=dry_run,
        notifier=create_notifier(settings.notifier_url, timeout=settings.notifier_timeout),
    )
    return ctx, conn


def plain(obj: Any) -> Any:
    """JSON-ready form of a view, dataclass, model or dict."""
    if isinstance(obj, list | tuple):
        return [plain(item) for item in obj]
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    return obj


def fail(result: OperationResult) -> None:
    """Report a failed result on stderr and exit 1."""
    error = result.error
    code, message = (error.code, error.message) if error else ("ERROR", "Unknown error")
    err_console.print(f"[bold red]Error[/bold red] ({code}): {message}")
    raise typer.Exit(code=1)


def output_result(result: OperationResult, *, as_json: bool = False, title: str = "") -> None:
    """Print the payload of *result* as JSON or as a Rich table."""
    if not result.success:
        fail(result)

    if as_json:
        console.print_json(json.dumps(plain(result.data), default=str))
        return

    for warning in result.warnings:
        err_console.print(f"[yellow]Warning:[/yellow] {warning}")

    data = plain(result.data)
    if not isinstance(data, list):
        print_record(data if isinstance(data, dict) else {"value": data}, title=title)
    elif data:
        print_table(data, title=title)
    else:
        console.print("[dim]No items.[/dim]")


def print_table(items: list, *, title: str = "", columns: list[str] | None = None) -> None:
    """One row per item; columns default to the keys of the first item."""
    rows = [plain(item) for item in items]
    columns = columns or list(rows[0])
    table = Table(title=title or None, pad_edge=False)
    for column in columns:
        table.add_column(column, overflow="fold")
    for row in rows:
        table.add_row(*(_cell(row.get(column)) for column in columns))
    console.print(table)


def print_record(record: dict[str, Any], *, title: str = "") -> None:
    table = Table(title=title or None, show_header=False, box=None, pad_edge=False)
    table.add_column(style="cyan")
    table.add_column(overflow="fold")
    for key, value in record.items():
        table.add_row(key, _cell(value))
    console.print(table)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)
