"""
CLI: ``buildtrack quality``: quality gate commands.
"""

from __future__ import annotations

import typer

from buildtrack.cli.utils import console, fail, make_context, output_result

app = typer.Typer(no_args_is_help=True)


def _request(
    name: str,
    description: str | None,
    gate_type: str,
    pass_threshold: float | None,
    fail_threshold: float | None,
    min_value: float | None,
    max_value: float | None,
):
    from buildtrack.ops.requests import QualityGateRequest

    return QualityGateRequest(
        name=name,
        description=description,
        gate_type=gate_type,
        pass_threshold=pass_threshold,
        fail_threshold=fail_threshold,
        min_value=min_value,
        max_value=max_value,
    )


@app.command("list")
def list_gates(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List the newest active version of each gate."""
    from buildtrack.ops.quality_gates import list_active_quality_gates

    ctx, _ = make_context(database)
    output_result(list_active_quality_gates(ctx), as_json=json_out, title="Quality Gates")


@app.command()
def create(
    name: str = typer.Argument(..., help="Gate name"),
    description: str | None = typer.Option(None, "--description"),
    gate_type: str = typer.Option("threshold", "--type", "-t"),
    pass_threshold: float | None = typer.Option(None, "--pass"),
    fail_threshold: float | None = typer.Option(None, "--fail"),
    min_value: float | None = typer.Option(None, "--min"),
    max_value: float | None = typer.Option(None, "--max"),
    database: str | None = typer.Option(None, "--database", "-d"),
    dry_run: bool = typer.Option(False, "--dry-run"),
) -> None:
    """Create a quality gate."""
    from buildtrack.ops.quality_gates import create_quality_gate

    ctx, _ = make_context(database, dry_run=dry_run)
    request = _request(name, description, gate_type, pass_threshold, fail_threshold, min_value, max_value)
    result = create_quality_gate(ctx, request)
    if not result.success:
        fail(result)
    console.print(f"[green]Created[/green] gate {name!r} (id {result.data})")


@app.command()
def update(
    name: str = typer.Argument(..., help="Gate name"),
    description: str | None = typer.Option(None, "--description"),
    gate_type: str = typer.Option("threshold", "--type", "-t"),
    pass_threshold: float | None = typer.Option(None, "--pass"),
    fail_threshold: float | None = typer.Option(None, "--fail"),
    min_value: float | None = typer.Option(None, "--min"),
    max_value: float | None = typer.Option(None, "--max"),
    database: str | None = typer.Option(None, "--database", "-d"),
    dry_run: bool = typer.Option(False, "--dry-run"),
) -> None:
    """Supersede a gate with a new version; older versions are kept inactive."""
    from buildtrack.ops.quality_gates import update_quality_gate

    ctx, _ = make_context(database, dry_run=dry_run)
    request = _request(name, description, gate_type, pass_threshold, fail_threshold, min_value, max_value)
    result = update_quality_gate(ctx, request)
    if not result.success:
        fail(result)
    console.print(f"[green]Updated[/green] gate {name!r} (id {result.data})")


@app.command()
def versions(
    name: str = typer.Argument(..., help="Gate name"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show every stored version of a gate, newest first."""
    from buildtrack.ops.quality_gates import list_quality_gate_versions

    ctx, _ = make_context(database)
    output_result(list_quality_gate_versions(ctx, name), as_json=json_out, title=f"Versions of {name}")
