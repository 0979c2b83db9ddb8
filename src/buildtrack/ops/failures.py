"""
Exception-to-result conversion for operations.

Validation failures (unknown milestone, illegal progression, duplicate
gate, ...) are expected client misuse and are logged at ``error``.  A lost
concurrency race is logged at ``warning``.  Store failures and anything
unexpected are logged at ``critical`` with the traceback and reported as
``STORE_FAILURE``.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from buildtrack.core.errors import (
    BuildTrackError,
    ConstraintViolationError,
    ErrorCategory,
    StoreFailureError,
)
from buildtrack.core.logging import get_logger
from buildtrack.ops.result import OperationResult

logger = get_logger(__name__)


def fail_from_exception(
    exc: Exception,
    *,
    operation: str,
    elapsed_ms: float = 0.0,
) -> OperationResult[Any]:
    """Log *exc* at the severity its category calls for and wrap it in a failed result."""
    if not isinstance(exc, BuildTrackError):
        exc = StoreFailureError(f"{operation} failed: {exc}", cause=exc)

    context = exc.context.to_dict()
    if exc.category is ErrorCategory.VALIDATION:
        logger.error(
            "op_rejected", operation=operation, code=exc.code, error=exc.message, context=context
        )
    elif isinstance(exc, StoreFailureError):
        logger.critical(
            "op_failed",
            operation=operation,
            code=exc.code,
            error=exc.message,
            context=context,
            exc_info=exc.cause or exc,
        )
    else:
        logger.warning(
            "op_failed", operation=operation, code=exc.code, error=exc.message, context=context
        )

    return OperationResult.fail(
        exc.code,
        exc.message,
        category=exc.category,
        details=context,
        elapsed_ms=elapsed_ms,
    )


def invalid(message: str, *, field: str | None = None, elapsed_ms: float = 0.0) -> OperationResult[Any]:
    """Reject a request whose required fields are missing or malformed."""
    logger.error("op_rejected", code="VALIDATION_FAILED", error=message, field=field)
    return OperationResult.fail(
        "VALIDATION_FAILED",
        message,
        category=ErrorCategory.VALIDATION,
        details={"field": field} if field else {},
        elapsed_ms=elapsed_ms,
    )


@contextmanager
def conflict_as(error: BuildTrackError) -> Iterator[None]:
    """Re-raise a unique-constraint violation from the block as *error*.

    The existence checks that precede a write run outside its transaction;
    a writer that loses the race reaches the store's unique index instead.

        with conflict_as(DuplicateRecordError("...")), repo.transaction():
            repo.create(...)
    """
    try:
        yield
    except ConstraintViolationError as exc:
        if not exc.unique:
            raise
        error.cause = exc
        raise error from exc
