"""
CLI: ``buildtrack milestone``: catalog and build transitions.
"""

from __future__ import annotations

import typer

from buildtrack.cli.utils import make_context, output_result

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_milestones(
    include_inactive: bool = typer.Option(False, "--all", help="Include inactive milestones"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List milestones ordered by level."""
    from buildtrack.ops.milestones import list_milestones as _list
    from buildtrack.ops.requests import ListMilestonesRequest

    ctx, _ = make_context(database)
    result = _list(ctx, ListMilestonesRequest(include_inactive=include_inactive))
    output_result(result, as_json=json_out, title="Milestones")


@app.command()
def define(
    name: str = typer.Argument(..., help="Milestone name"),
    level: int = typer.Argument(..., help="Ordering level"),
    inactive: bool = typer.Option(False, "--inactive", help="Create as inactive"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Add a milestone to the catalog."""
    from buildtrack.ops.milestones import define_milestone
    from buildtrack.ops.requests import DefineMilestoneRequest

    ctx, _ = make_context(database)
    result = define_milestone(ctx, DefineMilestoneRequest(name=name, level=level, active=not inactive))
    output_result(result, as_json=json_out, title="Milestone")


@app.command()
def show(
    name: str = typer.Argument(..., help="Milestone name (case-insensitive)"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Resolve a milestone by name."""
    from buildtrack.ops.milestones import resolve_milestone

    ctx, _ = make_context(database)
    output_result(resolve_milestone(ctx, name), as_json=json_out, title="Milestone")


@app.command()
def current(
    build_id: int = typer.Argument(..., help="Build record ID"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show a build's current milestone."""
    from buildtrack.ops.milestones import get_current_milestone

    ctx, _ = make_context(database)
    output_result(get_current_milestone(ctx, build_id), as_json=json_out, title="Current Milestone")


@app.command("set")
def set_milestone(
    build_id: int = typer.Argument(..., help="Build record ID"),
    milestone: str = typer.Argument(..., help="Target milestone name"),
    actor: str | None = typer.Option(None, "--actor", "-a", help="Defaults to the login name"),
    comment: str = typer.Option("", "--comment", "-m"),
    database: str | None = typer.Option(None, "--database", "-d"),
    dry_run: bool = typer.Option(False, "--dry-run"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Move a build to another milestone."""
    from buildtrack.ops.milestones import apply_transition
    from buildtrack.ops.requests import ApplyTransitionRequest

    ctx, _ = make_context(database, dry_run=dry_run)
    request = ApplyTransitionRequest(build_id=build_id, milestone=milestone, actor=actor, comment=comment)
    output_result(apply_transition(ctx, request), as_json=json_out, title="Transition")


@app.command()
def history(
    build_id: int = typer.Argument(..., help="Build record ID"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show a build's milestone history, oldest first."""
    from buildtrack.ops.milestones import get_milestone_history

    ctx, _ = make_context(database)
    output_result(get_milestone_history(ctx, build_id), as_json=json_out, title="Milestone History")


@app.command()
def progressions(
    build_id: int = typer.Argument(..., help="Build record ID"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List the milestones a build may move to."""
    from buildtrack.ops.milestones import get_available_progressions

    ctx, _ = make_context(database)
    output_result(get_available_progressions(ctx, build_id), as_json=json_out, title="Progressions")
