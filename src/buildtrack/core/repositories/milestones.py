"""Milestone catalog repository."""

from __future__ import annotations

from buildtrack.core.milestones import MilestoneCatalog
from buildtrack.core.models import Milestone, name_key
from buildtrack.core.repository import BaseRepository

from ._helpers import _flag


class MilestoneRepository(BaseRepository):
    """CRUD for the ``build_milestones`` table."""

    TABLE = "build_milestones"

    def list_all(self, *, include_inactive: bool = True) -> list[Milestone]:
        where = "1=1" if include_inactive else f"active = {self.dialect.flag(True)}"
        rows = self.query(
            f"SELECT id, name, level, active FROM {self.TABLE} "
            f"WHERE {where} ORDER BY level, id"
        )
        return [Milestone.from_row(r) for r in rows]

    def load_catalog(self) -> MilestoneCatalog:
        """Read the whole catalog (active and inactive) as one snapshot."""
        return MilestoneCatalog(self.list_all())

    def get_by_id(self, milestone_id: int) -> Milestone | None:
        row = self.query_one(
            f"SELECT id, name, level, active FROM {self.TABLE} WHERE id = {self.ph(1)}",
            (milestone_id,),
        )
        return Milestone.from_row(row) if row else None

    def get_by_name(self, name: str) -> Milestone | None:
        """Case-insensitive lookup through the casefolded ``name_key`` column."""
        row = self.query_one(
            f"SELECT id, name, level, active FROM {self.TABLE} WHERE name_key = {self.ph(1)}",
            (name_key(name),),
        )
        return Milestone.from_row(row) if row else None

    def create(self, name: str, level: int, *, active: bool = True) -> int:
        return self.insert(
            self.TABLE,
            {"name": name.strip(), "name_key": name_key(name), "level": level, "active": _flag(active)},
        )

    def set_active(self, milestone_id: int, active: bool) -> int:
        return self.update(
            f"UPDATE {self.TABLE} SET active = {self.ph(1)} WHERE id = {self.ph(1)}",
            (_flag(active), milestone_id),
        )
