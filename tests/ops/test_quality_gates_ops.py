"""Tests for buildtrack.ops.quality_gates."""

from __future__ import annotations

from unittest.mock import patch

from buildtrack.core.repositories import QualityGateRepository
from buildtrack.ops.quality_gates import (
    create_quality_gate,
    list_active_quality_gates,
    list_quality_gate_versions,
    update_quality_gate,
)
from buildtrack.ops.requests import QualityGateRequest


class TestQualityGateOps:
    def test_create_update_list(self, ctx):
        create_quality_gate(ctx, QualityGateRequest(name="CodeCov", pass_threshold=70))
        update_quality_gate(ctx, QualityGateRequest(name="CodeCov", pass_threshold=75))
        latest = update_quality_gate(ctx, QualityGateRequest(name="CodeCov", pass_threshold=80))

        active = list_active_quality_gates(ctx).data
        assert [(g.id, g.pass_threshold) for g in active] == [(latest.data, 80)]
        assert len(list_quality_gate_versions(ctx, "codecov").data) == 3

    def test_duplicate_active(self, ctx):
        create_quality_gate(ctx, QualityGateRequest(name="CodeCov"))
        result = create_quality_gate(ctx, QualityGateRequest(name="codecov"))
        assert result.error.code == "DUPLICATE_ACTIVE_GATE"

    def test_duplicate_active_non_ascii(self, ctx):
        create_quality_gate(ctx, QualityGateRequest(name="Überdeckung"))
        result = create_quality_gate(ctx, QualityGateRequest(name="überdeckung"))
        assert result.error.code == "DUPLICATE_ACTIVE_GATE"
        assert len(list_active_quality_gates(ctx).data) == 1

    def test_duplicate_active_race(self, ctx):
        create_quality_gate(ctx, QualityGateRequest(name="CodeCov"))
        with patch.object(QualityGateRepository, "has_active", return_value=False):
            result = create_quality_gate(ctx, QualityGateRequest(name="CodeCov"))
        assert result.error.code == "DUPLICATE_ACTIVE_GATE"

    def test_update_unknown(self, ctx):
        assert update_quality_gate(ctx, QualityGateRequest(name="Nope")).error.code == "NOT_FOUND"

    def test_versions_unknown(self, ctx):
        assert list_quality_gate_versions(ctx, "Nope").error.code == "NOT_FOUND"

    def test_validation(self, ctx):
        assert create_quality_gate(ctx, QualityGateRequest(name="")).error.code == "VALIDATION_FAILED"
        bounds = QualityGateRequest(name="Size", min_value=10, max_value=1)
        assert create_quality_gate(ctx, bounds).error.code == "VALIDATION_FAILED"

    def test_dry_run(self, ctx, dry_ctx):
        assert create_quality_gate(dry_ctx, QualityGateRequest(name="CodeCov")).success
        assert list_active_quality_gates(ctx).data == []
        assert update_quality_gate(dry_ctx, QualityGateRequest(name="CodeCov")).error.code == "NOT_FOUND"
