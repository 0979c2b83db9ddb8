"""
CLI: ``buildtrack build``: build record commands.
"""

from __future__ import annotations

import typer

from buildtrack.cli.utils import fail, make_context, output_result, plain, print_record, print_table

app = typer.Typer(no_args_is_help=True)


@app.command()
def register(
    component_id: str = typer.Argument(..., help="Component key"),
    build_number: str = typer.Argument(..., help="Build number"),
    branch: str = typer.Option("main", "--branch", "-b"),
    milestone: str = typer.Option(..., "--milestone", "-m", help="Initial milestone"),
    artifact_url: str | None = typer.Option(None, "--artifact-url"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Register a build at its initial milestone."""
    from buildtrack.ops.builds import register_build
    from buildtrack.ops.requests import RegisterBuildRequest

    ctx, _ = make_context(database)
    request = RegisterBuildRequest(
        component_id=component_id,
        build_number=build_number,
        branch=branch,
        milestone=milestone,
        artifact_url=artifact_url,
    )
    output_result(register_build(ctx, request), as_json=json_out, title="Build")


@app.command()
def show(
    build_id: int = typer.Argument(..., help="Build record ID"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show a build record."""
    from buildtrack.ops.builds import get_build

    ctx, _ = make_context(database)
    output_result(get_build(ctx, build_id), as_json=json_out, title="Build")


@app.command()
def result(
    build_id: int = typer.Argument(..., help="Build record ID"),
    outcome: str = typer.Argument(..., help="Result label, e.g. success"),
    comment: str = typer.Option("", "--comment", "-m"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Record the build result."""
    from buildtrack.ops.builds import record_build_result
    from buildtrack.ops.requests import RecordBuildResultRequest

    ctx, _ = make_context(database)
    request = RecordBuildResultRequest(build_id=build_id, result=outcome, comment=comment)
    output_result(record_build_result(ctx, request), as_json=json_out, title="Build")


@app.command()
def artifact(
    build_id: int = typer.Argument(..., help="Build record ID"),
    url: str = typer.Argument(..., help="Artifact URL"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Set the artifact URL of a build."""
    from buildtrack.ops.builds import set_artifact_url
    from buildtrack.ops.requests import SetArtifactUrlRequest

    ctx, _ = make_context(database)
    request = SetArtifactUrlRequest(build_id=build_id, artifact_url=url)
    output_result(set_artifact_url(ctx, request), as_json=json_out, title="Build")


@app.command()
def coverage(
    build_id: int = typer.Argument(..., help="Build record ID"),
    percent: float = typer.Argument(..., help="Coverage between 0 and 100"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Set the code coverage of a build."""
    from buildtrack.ops.builds import set_code_coverage
    from buildtrack.ops.requests import SetCodeCoverageRequest

    ctx, _ = make_context(database)
    request = SetCodeCoverageRequest(build_id=build_id, coverage=percent)
    output_result(set_code_coverage(ctx, request), as_json=json_out, title="Build")


@app.command()
def latest(
    component_id: str = typer.Argument(..., help="Component key"),
    milestone: str = typer.Argument(..., help="Minimum milestone"),
    exact: bool = typer.Option(False, "--exact", help="Require exactly this milestone"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Find the newest build of a component at (or above) a milestone."""
    from buildtrack.ops.builds import find_latest_build
    from buildtrack.ops.requests import FindLatestBuildRequest

    ctx, _ = make_context(database)
    request = FindLatestBuildRequest(component_id=component_id, milestone=milestone, exact=exact)
    output_result(find_latest_build(ctx, request), as_json=json_out, title="Latest Build")


@app.command("list")
def list_builds(
    component_id: str = typer.Argument(..., help="Component key"),
    limit: int = typer.Option(50, "--limit", "-n", min=1, max=500),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List a component's builds, newest first."""
    from buildtrack.ops.builds import list_builds_for_component
    from buildtrack.ops.requests import ListBuildsRequest

    ctx, _ = make_context(database)
    request = ListBuildsRequest(component_id=component_id, limit=limit)
    result = list_builds_for_component(ctx, request)
    output_result(result, as_json=json_out, title=f"Builds of {component_id}")


@app.command()
def step(
    build_id: int = typer.Argument(..., help="Build record ID"),
    step_name: str = typer.Argument(..., help="Step name, e.g. unit-tests"),
    step_result: str = typer.Argument(..., help="Step outcome, e.g. passed"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Record a named step result, replacing an earlier one for the same step."""
    from buildtrack.ops.builds import record_build_step
    from buildtrack.ops.requests import RecordBuildStepRequest

    ctx, _ = make_context(database)
    request = RecordBuildStepRequest(build_id=build_id, step_name=step_name, step_result=step_result)
    output_result(record_build_step(ctx, request), as_json=json_out, title="Build Step")


@app.command()
def summary(
    build_id: int = typer.Argument(..., help="Build record ID"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show a build with its steps, BOM counts and milestone trail size."""
    from buildtrack.ops.builds import get_build_summary

    ctx, _ = make_context(database)
    result = get_build_summary(ctx, build_id)
    if not result.success:
        fail(result)
    if json_out:
        output_result(result, as_json=True)
        return
    report = plain(result.data)
    build = report.pop("build")
    steps = report.pop("steps")
    report["step_results"] = ", ".join(f"{k}={v}" for k, v in sorted(report["step_results"].items()))
    print_record({**build, **report}, title=f"Build {build_id}")
    if steps:
        print_table(steps, title="Steps", columns=["step_name", "step_result", "recorded_at"])
