"""
CLI: ``buildtrack serve``: run the REST API under uvicorn.
"""

from __future__ import annotations

import os

import typer
import uvicorn

from buildtrack.api.settings import BuildTrackAPISettings
from buildtrack.cli.utils import console

app = typer.Typer(no_args_is_help=True)


@app.command("start")
def start(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address [default: BUILDTRACK_HOST]"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port [default: BUILDTRACK_PORT]"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or path to serve"),
    reload: bool = typer.Option(False, "--reload", help="Restart on source changes"),
) -> None:
    """Serve the buildtrack API.

    A single worker process is started; SQLite serialises writers anyway.
    """
    if database:
        os.environ["BUILDTRACK_DATABASE_URL"] = database
    settings = BuildTrackAPISettings()
    host = host or settings.host
    port = port or settings.port

    console.print(
        f"[bold green]buildtrack API[/bold green] on http://{host}:{port}{settings.api_prefix} "
        f"([dim]{settings.database_url}[/dim])"
    )
    uvicorn.run(
        "buildtrack.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )
