"""
CLI: ``buildtrack db``: create the schema and seed the milestone catalog.
"""

from __future__ import annotations

import typer

from buildtrack.cli.utils import console, fail, make_context, output_result

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    seed: bool = typer.Option(False, "--seed", help="Insert Dev/QA/Staging/Release if no milestone exists"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or path"),
    dry_run: bool = typer.Option(False, "--dry-run", help="List the tables without creating them"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Create the buildtrack tables.  Safe to run against an existing database."""
    from buildtrack.ops.database import initialize_database
    from buildtrack.ops.requests import DatabaseInitRequest

    ctx, conn = make_context(database, dry_run=dry_run)
    with conn:
        result = initialize_database(ctx, DatabaseInitRequest(seed_milestones=seed))
    if json_out:
        output_result(result, as_json=True)
        return
    if not result.success:
        fail(result)

    info = result.data
    verb = "Would create" if info.dry_run else "Ready"
    console.print(f"[green]{verb}[/green]: {', '.join(info.tables_created)}")
    if info.milestones_seeded:
        console.print(f"Seeded {info.milestones_seeded} milestones")
