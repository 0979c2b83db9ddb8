"""Shared helpers for repository classes."""

from __future__ import annotations


def _flag(value: bool) -> int:
    """Store booleans as 0/1 integers."""
    return 1 if value else 0
