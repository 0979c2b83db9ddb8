"""Quality gate repository."""

from __future__ import annotations

from typing import Any

from buildtrack.core.models import QualityGate, name_key
from buildtrack.core.repository import BaseRepository

from ._helpers import _flag

GATE_FIELDS = (
    "description",
    "gate_type",
    "pass_threshold",
    "fail_threshold",
    "min_value",
    "max_value",
)


class QualityGateRepository(BaseRepository):
    """Row access for the versioned ``quality_gates`` table.

    Names are matched through ``name_key`` (the casefolded name).  Rows are
    never updated except to clear their ``active`` flag.
    """

    TABLE = "quality_gates"

    def has_active(self, name: str) -> bool:
        row = self.query_one(
            f"SELECT id FROM {self.TABLE} "
            f"WHERE name_key = {self.ph(1)} AND active = {self.dialect.flag(True)}",
            (name_key(name),),
        )
        return row is not None

    def count_for_name(self, name: str) -> int:
        row = self.query_one(
            f"SELECT COUNT(*) AS cnt FROM {self.TABLE} WHERE name_key = {self.ph(1)}",
            (name_key(name),),
        )
        return (row or {}).get("cnt", 0)

    def insert_version(self, name: str, fields: dict[str, Any], *, active: bool = True) -> int:
        data = {"name": name.strip(), "name_key": name_key(name), "active": _flag(active)}
        data.update({k: fields.get(k) for k in GATE_FIELDS if k in fields})
        return self.insert(self.TABLE, data)

    def deactivate_all(self, name: str) -> int:
        return self.update(
            f"UPDATE {self.TABLE} SET active = {self.dialect.flag(False)} WHERE name_key = {self.ph(1)}",
            (name_key(name),),
        )

    def list_active_rows(self) -> list[QualityGate]:
        rows = self.query(
            f"SELECT * FROM {self.TABLE} WHERE active = {self.dialect.flag(True)} ORDER BY id"
        )
        return [QualityGate.from_row(r) for r in rows]

    def list_versions(self, name: str) -> list[QualityGate]:
        """Every stored row for *name*, newest first."""
        rows = self.query(
            f"SELECT * FROM {self.TABLE} WHERE name_key = {self.ph(1)} ORDER BY id DESC",
            (name_key(name),),
        )
        return [QualityGate.from_row(r) for r in rows]
