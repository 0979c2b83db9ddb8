"""Build step repository."""

from __future__ import annotations

from buildtrack.core.models import BuildStep
from buildtrack.core.repository import BaseRepository


class BuildStepRepository(BaseRepository):
    """Per-build step results, one row per ``(build_record_id, step_name)``."""

    TABLE = "build_steps"

    def get(self, build_record_id: int, step_name: str) -> BuildStep | None:
        row = self.query_one(
            f"SELECT * FROM {self.TABLE} WHERE build_record_id = {self.ph(1)} AND step_name = {self.ph(1)}",
            (build_record_id, step_name),
        )
        return BuildStep.from_row(row) if row else None

    def record(
        self, build_record_id: int, step_name: str, step_result: str, recorded_at: str
    ) -> tuple[int, bool]:
        """Insert the step or overwrite its result.  Returns ``(step_id, created)``."""
        existing = self.get(build_record_id, step_name)
        if existing is not None:
            self.update(
                f"UPDATE {self.TABLE} SET step_result = {self.ph(1)}, recorded_at = {self.ph(1)} "
                f"WHERE id = {self.ph(1)}",
                (step_result, recorded_at, existing.id),
            )
            return existing.id, False
        step_id = self.insert(
            self.TABLE,
            {
                "build_record_id": build_record_id,
                "step_name": step_name,
                "step_result": step_result,
                "recorded_at": recorded_at,
            },
        )
        return step_id, True

    def list_for_build(self, build_record_id: int) -> list[BuildStep]:
        """Steps in the order they were first recorded."""
        rows = self.query(
            f"SELECT * FROM {self.TABLE} WHERE build_record_id = {self.ph(1)} ORDER BY id",
            (build_record_id,),
        )
        return [BuildStep.from_row(r) for r in rows]
