"""
Root Typer application for the buildtrack CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

app = Typer(
    name="buildtrack",
    help="buildtrack: build milestones, provenance and quality gates.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from buildtrack import __version__

        typer.echo(f"buildtrack {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """buildtrack CLI: manage milestones, builds, BOMs and quality gates."""
    from buildtrack.core.logging import configure_logging
    from buildtrack.core.settings import get_settings

    settings = get_settings()
    configure_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_format=settings.log_json,
        service=settings.service_name,
    )


# ── Sub-command registration ─────────────────────────────────────────────

from buildtrack.cli.bom import app as bom_app  # noqa: E402
from buildtrack.cli.builds import app as build_app  # noqa: E402
from buildtrack.cli.db import app as db_app  # noqa: E402
from buildtrack.cli.milestones import app as milestone_app  # noqa: E402
from buildtrack.cli.quality import app as quality_app  # noqa: E402
from buildtrack.cli.serve import app as serve_app  # noqa: E402

app.add_typer(db_app, name="db", help="Database operations.")
app.add_typer(milestone_app, name="milestone", help="Milestone catalog and transitions.")
app.add_typer(build_app, name="build", help="Build records.")
app.add_typer(bom_app, name="bom", help="Bills of materials and provenance.")
app.add_typer(quality_app, name="quality", help="Quality gate versions.")
app.add_typer(serve_app, name="serve", help="Start the API server.")
