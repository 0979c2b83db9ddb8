"""Build record repository."""

from __future__ import annotations

from typing import Any

from buildtrack.core.models import BuildRecord
from buildtrack.core.repository import BaseRepository


class BuildRepository(BaseRepository):
    """CRUD for the ``build_records`` table.

    The milestone column is written only through :meth:`advance_milestone`,
    whose ``WHERE`` clause re-checks the milestone and version read earlier
    in the request.
    """

    TABLE = "build_records"

    def get(self, build_id: int) -> BuildRecord | None:
        row = self.query_one(
            f"SELECT * FROM {self.TABLE} WHERE id = {self.ph(1)}", (build_id,)
        )
        return BuildRecord.from_row(row) if row else None

    def exists(self, build_id: int) -> bool:
        row = self.query_one(
            f"SELECT id FROM {self.TABLE} WHERE id = {self.ph(1)}", (build_id,)
        )
        return row is not None

    def find_by_key(self, component_id: str, build_number: str, branch: str) -> BuildRecord | None:
        row = self.query_one(
            f"SELECT * FROM {self.TABLE} WHERE component_id = {self.ph(1)} "
            f"AND build_number = {self.ph(1)} AND branch = {self.ph(1)}",
            (component_id, build_number, branch),
        )
        return BuildRecord.from_row(row) if row else None

    def create(
        self,
        *,
        component_id: str,
        build_number: str,
        branch: str,
        milestone_id: int,
        artifact_url: str | None = None,
    ) -> int:
        return self.insert(
            self.TABLE,
            {
                "component_id": component_id,
                "build_number": build_number,
                "branch": branch,
                "milestone_id": milestone_id,
                "artifact_url": artifact_url,
            },
        )

    def advance_milestone(
        self,
        build_id: int,
        *,
        expected_milestone_id: int,
        expected_version: int,
        new_milestone_id: int,
    ) -> bool:
        """Guarded milestone write.  Returns ``False`` if the row changed since it was read."""
        touched = self.update(
            f"UPDATE {self.TABLE} SET milestone_id = {self.ph(1)}, version = version + 1 "
            f"WHERE id = {self.ph(1)} AND milestone_id = {self.ph(1)} AND version = {self.ph(1)}",
            (new_milestone_id, build_id, expected_milestone_id, expected_version),
        )
        return touched == 1

    def set_fields(self, build_id: int, fields: dict[str, Any]) -> int:
        """Update post-hoc columns (result, comment, artifact URL, coverage)."""
        assignments = ", ".join(f"{col} = {self.ph(1)}" for col in fields)
        return self.update(
            f"UPDATE {self.TABLE} SET {assignments} WHERE id = {self.ph(1)}",
            (*fields.values(), build_id),
        )

    def find_latest_at_level(
        self,
        component_id: str,
        level: int,
        *,
        exact: bool = False,
    ) -> BuildRecord | None:
        """Build of *component_id* at the highest milestone reached, newest first on ties.

        With ``exact`` only builds whose milestone level equals *level* are
        considered; otherwise any level at or above it.
        """
        op = "=" if exact else ">="
        row = self.query_one(
            f"SELECT b.* FROM {self.TABLE} b "
            f"JOIN build_milestones m ON m.id = b.milestone_id "
            f"WHERE b.component_id = {self.ph(1)} AND m.level {op} {self.ph(1)} "
            f"ORDER BY m.level DESC, b.id DESC LIMIT 1",
            (component_id, level),
        )
        return BuildRecord.from_row(row) if row else None

    def list_for_component(self, component_id: str, *, limit: int = 50) -> list[BuildRecord]:
        rows = self.query(
            f"SELECT * FROM {self.TABLE} WHERE component_id = {self.ph(1)} "
            f"ORDER BY id DESC LIMIT {self.ph(1)}",
            (component_id, limit),
        )
        return [BuildRecord.from_row(r) for r in rows]
