"""
Operation result envelope.

Every function in :mod:`buildtrack.ops` returns an :class:`OperationResult`
and never raises to its caller.  A rejected or failed request carries an
:class:`OperationError` whose ``code`` is the stable, machine-readable name
the API maps to an HTTP status and the CLI prints::

    result = apply_transition(ctx, ApplyTransitionRequest(build_id=7, milestone="QA"))
    if not result.success:
        result.error.code      # "ILLEGAL_PROGRESSION"
        result.error.details   # {"build_id": 7, "current": "Release", ...}
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from buildtrack.core.errors import ErrorCategory

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class OperationError:
    """Why an operation did not complete.

    Attributes:
        code: ``UNKNOWN_MILESTONE``, ``ILLEGAL_PROGRESSION``, ``CONFLICT``, ...
        message: Human-readable explanation.
        category: Drives log severity; ``None`` for plain input validation.
        details: Identifiers of the objects involved.
    """

    code: str
    message: str
    category: ErrorCategory | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class OperationResult(Generic[T]):
    """Success payload or error, plus warnings and timing.

    Build instances with :meth:`ok` and :meth:`fail`.  ``warnings`` hold
    non-fatal conditions such as a truncated dependency tree or an
    undelivered milestone notification.
    """

    success: bool
    data: T | None = None
    error: OperationError | None = None
    warnings: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0

    @classmethod
    def ok(cls, data: T, *, warnings: list[str] | None = None, elapsed_ms: float = 0.0) -> OperationResult[T]:
        return cls(success=True, data=data, warnings=list(warnings or ()), elapsed_ms=elapsed_ms)

    @classmethod
    def fail(
        cls,
        code: str,
        message: str,
        *,
        category: ErrorCategory | None = None,
        details: dict[str, Any] | None = None,
        elapsed_ms: float = 0.0,
    ) -> OperationResult[T]:
        error = OperationError(code=code, message=message, category=category, details=dict(details or {}))
        return cls(success=False, error=error, elapsed_ms=elapsed_ms)


class _Timer:
    __slots__ = ("_started",)

    def __init__(self) -> None:
        self._started = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self._started) * 1000, 3)


def start_timer() -> _Timer:
    """Stopwatch read through ``timer.elapsed_ms``."""
    return _Timer()


__all__ = ["OperationError", "OperationResult", "start_timer"]
