"""
Structured error types for buildtrack.

Every failure the build tracker can report to a caller is a typed
:class:`BuildTrackError` subclass. Each subclass carries a machine-readable
``code`` (used by the ops layer and mapped to HTTP status by the API), an
:class:`ErrorCategory` for routing and log severity, a structured
:class:`ErrorContext`, and an optional chained ``cause``.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                      BuildTrackError                          │
        │            (code, category, context, cause)                   │
        ├──────────────────────────────────────────────────────────────┤
        │  Milestones             Quality gates        Provenance       │
        │  ──────────             ─────────────        ──────────       │
        │  UnknownMilestone       DuplicateActiveGate  BomNotFound      │
        │  BuildNotFound          QualityGateNotFound  BomLocked        │
        │  IllegalProgression                                           │
        │  ConcurrentTransition                                         │
        ├──────────────────────────────────────────────────────────────┤
        │  DuplicateRecord    StoreFailure (DATABASE)    ConfigError    │
        │                     └─ ConstraintViolation                    │
        └──────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Raise plain ``ValueError`` for a rejected request
    ✅ DO: Raise the matching subclass so the code reaches the caller

    ❌ DON'T: Swallow the driver exception behind StoreFailureError
    ✅ DO: Pass it as ``cause=`` so it is preserved for logs

Usage:
    from buildtrack.core.errors import IllegalProgressionError

    raise IllegalProgressionError("QA", "Dev")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and log severity.

    ``VALIDATION`` errors are expected client misuse and are logged at
    ``error``. ``DATABASE`` and ``INTERNAL`` errors are system faults and are
    logged at ``critical``.
    """

    VALIDATION = "VALIDATION"     # Bad names, illegal transitions, duplicates
    DATABASE = "DATABASE"         # Store failures, lost concurrency races
    NETWORK = "NETWORK"           # Notifier transport
    CONFIG = "CONFIG"             # Missing or invalid settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        build_id: Build record the request targeted.
        milestone: Milestone name involved, if any.
        gate_name: Quality gate name involved, if any.
        operation: Name of the failing operation.
        metadata: Additional key/value pairs.
    """

    build_id: int | None = None
    milestone: str | None = None
    gate_name: str | None = None
    operation: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ["build_id", "milestone", "gate_name", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class BuildTrackError(Exception):
    """
    Base exception for all buildtrack errors.

    Subclasses set ``code`` and ``default_category``; instances may override
    the category and attach an :class:`ErrorContext` and an underlying cause.
    """

    code: str = "INTERNAL_ERROR"
    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> BuildTrackError:
        """Add context to this error (fluent API)."""
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, code={self.code})"


# =============================================================================
# MILESTONE ERRORS
# =============================================================================


class UnknownMilestoneError(BuildTrackError):
    """The requested milestone name does not resolve to any milestone."""

    code = "UNKNOWN_MILESTONE"
    default_category = ErrorCategory.VALIDATION

    def __init__(self, name: str, **kwargs: Any):
        self.name = name
        super().__init__(f"Unknown build milestone: {name!r}", **kwargs)
        self.context.milestone = name


class BuildNotFoundError(BuildTrackError):
    """No build record exists for the given id."""

    code = "BUILD_NOT_FOUND"
    default_category = ErrorCategory.VALIDATION

    def __init__(self, build_id: int, **kwargs: Any):
        self.build_id = build_id
        super().__init__(f"Build record not found: {build_id}", **kwargs)
        self.context.build_id = build_id


class IllegalProgressionError(BuildTrackError):
    """Target milestone is below the current one, or inactive."""

    code = "ILLEGAL_PROGRESSION"
    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        current: str,
        attempted: str,
        *,
        reason: str | None = None,
        **kwargs: Any,
    ):
        self.current = current
        self.attempted = attempted
        message = f"Cannot progress build from milestone {current!r} to {attempted!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, **kwargs)
        self.context.milestone = attempted
        self.context.metadata.setdefault("current_milestone", current)


class ConcurrentTransitionError(BuildTrackError):
    """The build changed between the milestone read and the guarded write."""

    code = "CONFLICT"
    default_category = ErrorCategory.DATABASE

    def __init__(self, build_id: int, **kwargs: Any):
        self.build_id = build_id
        super().__init__(
            f"Build {build_id} was modified by a concurrent request; retry the transition",
            **kwargs,
        )
        self.context.build_id = build_id


# =============================================================================
# QUALITY GATE ERRORS
# =============================================================================


class DuplicateActiveGateError(BuildTrackError):
    """An active quality gate with this name already exists."""

    code = "DUPLICATE_ACTIVE_GATE"
    default_category = ErrorCategory.VALIDATION

    def __init__(self, name: str, **kwargs: Any):
        self.name = name
        super().__init__(f"An active quality gate named {name!r} already exists", **kwargs)
        self.context.gate_name = name


class QualityGateNotFoundError(BuildTrackError):
    """No quality gate rows exist for this name."""

    code = "NOT_FOUND"
    default_category = ErrorCategory.VALIDATION

    def __init__(self, name: str, **kwargs: Any):
        self.name = name
        super().__init__(f"Quality gate not found: {name!r}", **kwargs)
        self.context.gate_name = name


# =============================================================================
# BOM ERRORS
# =============================================================================


class BomNotFoundError(BuildTrackError):
    """The build record has no bill of materials."""

    code = "NOT_FOUND"
    default_category = ErrorCategory.VALIDATION

    def __init__(self, build_id: int, **kwargs: Any):
        self.build_id = build_id
        super().__init__(f"No BOM exists for build record {build_id}", **kwargs)
        self.context.build_id = build_id


class BomLockedError(BuildTrackError):
    """The bill of materials is locked against further changes."""

    code = "LOCKED"
    default_category = ErrorCategory.VALIDATION

    def __init__(self, build_id: int, **kwargs: Any):
        self.build_id = build_id
        super().__init__(f"BOM for build record {build_id} is locked", **kwargs)
        self.context.build_id = build_id


# =============================================================================
# GENERIC ERRORS
# =============================================================================


class DuplicateRecordError(BuildTrackError):
    """A record with the same natural key already exists."""

    code = "CONFLICT"
    default_category = ErrorCategory.VALIDATION


class StoreFailureError(BuildTrackError):
    """Underlying persistence failure. The driver exception is kept as ``cause``."""

    code = "STORE_FAILURE"
    default_category = ErrorCategory.DATABASE


class ConstraintViolationError(StoreFailureError):
    """The store rejected a write that breaks a table constraint.

    ``unique`` is set for unique and primary-key violations.  Operations that
    lose a race on a natural key catch it and raise their duplicate error.
    """

    def __init__(self, message: str, *, unique: bool = False, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.unique = unique


class ConfigError(BuildTrackError):
    """Missing or invalid configuration."""

    code = "CONFIG_INVALID"
    default_category = ErrorCategory.CONFIG


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, BuildTrackError):
        return error.category
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorCategory.NETWORK
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "BuildTrackError",
    "UnknownMilestoneError",
    "BuildNotFoundError",
    "IllegalProgressionError",
    "ConcurrentTransitionError",
    "DuplicateActiveGateError",
    "QualityGateNotFoundError",
    "BomNotFoundError",
    "BomLockedError",
    "DuplicateRecordError",
    "StoreFailureError",
    "ConstraintViolationError",
    "ConfigError",
    "categorize_error",
]
