"""
CLI: ``buildtrack bom``: bills of materials and provenance reports.
"""

from __future__ import annotations

import json

import typer

from buildtrack.cli.utils import console, fail, make_context, output_result, print_table

app = typer.Typer(no_args_is_help=True)

_TABLE_COLUMNS = ["depth", "kind", "label", "scm_order", "bom_type", "version", "missing", "repeated"]


@app.command()
def create(
    build_id: int = typer.Argument(..., help="Build record ID"),
    bom_type: str = typer.Option("default", "--type", "-t"),
    build_system: str | None = typer.Option(None, "--build-system"),
    build_system_version: str | None = typer.Option(None, "--build-system-version"),
    external_ref: str | None = typer.Option(None, "--external-ref", help="Notification key"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Create the BOM of a build."""
    from buildtrack.ops.dependencies import create_bom
    from buildtrack.ops.requests import CreateBomRequest

    ctx, _ = make_context(database)
    request = CreateBomRequest(
        build_id=build_id,
        bom_type=bom_type,
        build_system=build_system,
        build_system_version=build_system_version,
        external_reference_id=external_ref,
    )
    output_result(create_bom(ctx, request), as_json=json_out, title="BOM")


@app.command()
def show(
    build_id: int = typer.Argument(..., help="Build record ID"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show a build's BOM header."""
    from buildtrack.ops.dependencies import get_bom

    ctx, _ = make_context(database)
    output_result(get_bom(ctx, build_id), as_json=json_out, title="BOM")


@app.command()
def lock(
    build_id: int = typer.Argument(..., help="Build record ID"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Lock a BOM against further edits."""
    from buildtrack.ops.dependencies import lock_bom

    ctx, _ = make_context(database)
    output_result(lock_bom(ctx, build_id), as_json=json_out, title="BOM")


@app.command("set-ref")
def set_ref(
    build_id: int = typer.Argument(..., help="Build record ID"),
    reference: str = typer.Argument(..., help="External reference ID"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Set the external reference used for milestone notifications."""
    from buildtrack.ops.dependencies import set_external_reference
    from buildtrack.ops.requests import SetExternalReferenceRequest

    ctx, _ = make_context(database)
    request = SetExternalReferenceRequest(build_id=build_id, external_reference_id=reference)
    output_result(set_external_reference(ctx, request), as_json=json_out, title="BOM")


@app.command("add-internal")
def add_internal(
    build_id: int = typer.Argument(..., help="Build record ID"),
    dependency_build_id: int = typer.Argument(..., help="Incorporated build record ID"),
    scm_order: int = typer.Option(..., "--order", "-o", help="Position in the source manifest"),
    bom_type: str | None = typer.Option(None, "--type", "-t"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Record that a build incorporates another build."""
    from buildtrack.ops.dependencies import add_internal_dependency
    from buildtrack.ops.requests import AddInternalDependencyRequest

    ctx, _ = make_context(database)
    request = AddInternalDependencyRequest(
        build_id=build_id,
        dependency_build_id=dependency_build_id,
        scm_order=scm_order,
        bom_type=bom_type,
    )
    output_result(add_internal_dependency(ctx, request), as_json=json_out, title="Dependency")


@app.command("add-external")
def add_external(
    build_id: int = typer.Argument(..., help="Build record ID"),
    project_name: str = typer.Argument(..., help="External project or package"),
    scm_order: int = typer.Option(..., "--order", "-o", help="Position in the source manifest"),
    version: str | None = typer.Option(None, "--version"),
    build_number: str | None = typer.Option(None, "--build-number"),
    package_number: str | None = typer.Option(None, "--package-number"),
    master_id: str | None = typer.Option(None, "--master-id"),
    bom_type: str | None = typer.Option(None, "--type", "-t"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Record that a build incorporates an external package."""
    from buildtrack.ops.dependencies import add_external_dependency
    from buildtrack.ops.requests import AddExternalDependencyRequest

    ctx, _ = make_context(database)
    request = AddExternalDependencyRequest(
        build_id=build_id,
        project_name=project_name,
        scm_order=scm_order,
        version=version,
        build_number=build_number,
        package_number=package_number,
        master_id=master_id,
        bom_type=bom_type,
    )
    output_result(add_external_dependency(ctx, request), as_json=json_out, title="Dependency")


@app.command()
def graph(
    build_id: int = typer.Argument(..., help="Build record ID"),
    max_depth: int | None = typer.Option(None, "--max-depth", min=1, max=100),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show everything a build incorporates as nodes and edges."""
    from buildtrack.ops.dependencies import build_dependency_graph
    from buildtrack.ops.requests import DependencyViewRequest

    ctx, _ = make_context(database)
    result = build_dependency_graph(ctx, DependencyViewRequest(build_id=build_id, max_depth=max_depth))
    if not result.success:
        fail(result)
    view = result.data
    if json_out:
        console.print_json(json.dumps(view.to_dict(), default=str))
        return
    if view.root is None:
        console.print(f"[dim]Build {build_id} not found.[/dim]")
        return
    print_table(list(view.nodes), title="Nodes", columns=["key", "label", "kind", "missing"])
    if view.edges:
        print_table(list(view.edges), title="Edges")
    _print_warnings(result.warnings)


@app.command()
def table(
    build_id: int = typer.Argument(..., help="Build record ID"),
    max_depth: int | None = typer.Option(None, "--max-depth", min=1, max=100),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show everything a build incorporates, one row per edge, depth first."""
    from buildtrack.ops.dependencies import build_dependency_table
    from buildtrack.ops.requests import DependencyViewRequest

    ctx, _ = make_context(database)
    result = build_dependency_table(ctx, DependencyViewRequest(build_id=build_id, max_depth=max_depth))
    if not result.success:
        fail(result)
    view = result.data
    if json_out:
        console.print_json(json.dumps(view.to_dict(), default=str))
        return
    if view.is_empty:
        console.print("[dim]No dependencies.[/dim]")
        return
    rows = []
    for row in view.rows:
        data = row.to_dict()
        data["label"] = "  " * (row.depth - 1) + row.label
        rows.append(data)
    print_table(rows, title=f"Dependencies of build {build_id}", columns=_TABLE_COLUMNS)
    _print_warnings(result.warnings)


def _print_warnings(warnings: list[str]) -> None:
    for warning in warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
