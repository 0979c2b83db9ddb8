"""Tests for the buildtrack error hierarchy."""

from __future__ import annotations

import pytest

from buildtrack.core.errors import (
    BomLockedError,
    BuildNotFoundError,
    BuildTrackError,
    ConcurrentTransitionError,
    DuplicateActiveGateError,
    ErrorCategory,
    IllegalProgressionError,
    StoreFailureError,
    UnknownMilestoneError,
)


class TestErrorCodes:
    @pytest.mark.parametrize(
        ("error", "code", "category"),
        [
            (UnknownMilestoneError("Staging"), "UNKNOWN_MILESTONE", ErrorCategory.VALIDATION),
            (BuildNotFoundError(7), "BUILD_NOT_FOUND", ErrorCategory.VALIDATION),
            (IllegalProgressionError("QA", "Dev"), "ILLEGAL_PROGRESSION", ErrorCategory.VALIDATION),
            (ConcurrentTransitionError(7), "CONFLICT", ErrorCategory.DATABASE),
            (DuplicateActiveGateError("CodeCov"), "DUPLICATE_ACTIVE_GATE", ErrorCategory.VALIDATION),
            (BomLockedError(7), "LOCKED", ErrorCategory.VALIDATION),
            (StoreFailureError("boom"), "STORE_FAILURE", ErrorCategory.DATABASE),
        ],
    )
    def test_code_and_category(self, error, code, category):
        assert isinstance(error, BuildTrackError)
        assert error.code == code
        assert error.category is category


class TestContext:
    def test_with_context_known_and_extra_keys(self):
        err = StoreFailureError("boom").with_context(build_id=3, table="boms")
        assert err.context.build_id == 3
        assert err.context.metadata == {"table": "boms"}
        assert err.context.to_dict() == {"build_id": 3, "table": "boms"}

    def test_illegal_progression_message(self):
        err = IllegalProgressionError("Release", "Dev", reason="level 0 is below the current level 20")
        assert "'Release'" in err.message
        assert err.message.endswith("level 0 is below the current level 20")
        assert err.context.milestone == "Dev"

    def test_to_dict_includes_cause(self):
        cause = OSError("disk full")
        data = StoreFailureError("write failed", cause=cause).to_dict()
        assert data["code"] == "STORE_FAILURE"
        assert data["category"] == "DATABASE"
        assert data["cause"] == "disk full"
