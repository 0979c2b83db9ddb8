"""
CLI layer for buildtrack.

Provides a Typer application with sub-commands that delegate to the
operations layer (``buildtrack.ops``).  All business logic lives in ops;
this package handles only terminal transport: argument parsing,
coloured output, and table formatting.

Entry point::

    buildtrack --help
"""

from buildtrack.cli.app import app

__all__ = ["app"]
