"""Milestone history repository (append-only)."""

from __future__ import annotations

from typing import Any

from buildtrack.core.repository import BaseRepository


class MilestoneHistoryRepository(BaseRepository):
    """Insert and read rows of ``build_milestone_history``.

    There is deliberately no update or delete method.
    """

    TABLE = "build_milestone_history"

    def append(
        self,
        *,
        build_record_id: int,
        previous_milestone_id: int,
        new_milestone_id: int,
        actor: str,
        comment: str,
        recorded_at: str,
    ) -> int:
        return self.insert(
            self.TABLE,
            {
                "build_record_id": build_record_id,
                "previous_milestone_id": previous_milestone_id,
                "new_milestone_id": new_milestone_id,
                "actor": actor,
                "comment": comment,
                "recorded_at": recorded_at,
            },
        )

    def list_for_build(self, build_record_id: int) -> list[dict[str, Any]]:
        """All events for a build, oldest first (insertion order)."""
        return self.query(
            f"SELECT * FROM {self.TABLE} WHERE build_record_id = {self.ph(1)} ORDER BY id",
            (build_record_id,),
        )

    def count_for_build(self, build_record_id: int) -> int:
        row = self.query_one(
            f"SELECT COUNT(*) AS cnt FROM {self.TABLE} WHERE build_record_id = {self.ph(1)}",
            (build_record_id,),
        )
        return (row or {}).get("cnt", 0)
