"""
REST transport for buildtrack.

``create_app()`` builds the FastAPI application; routers are thin
adapters over :mod:`buildtrack.ops`.
"""

from buildtrack.api.app import create_app

__all__ = ["create_app"]
