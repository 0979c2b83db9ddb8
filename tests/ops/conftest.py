"""Shared fixtures for buildtrack.ops tests."""

from __future__ import annotations

import pytest

from buildtrack.ops.context import OperationContext


@pytest.fixture()
def ctx(conn, milestones) -> OperationContext:
    """OperationContext on a schema-initialised database with Dev/QA/Release."""
    return OperationContext(conn=conn, caller="test", user="tester")


@pytest.fixture()
def dry_ctx(conn, milestones) -> OperationContext:
    """OperationContext with dry_run=True."""
    return OperationContext(conn=conn, caller="test", user="tester", dry_run=True)
