"""Bill of materials and dependency edge repository."""

from __future__ import annotations

from typing import Any

from buildtrack.core.models import Bom, ExternalDependency, InternalDependency
from buildtrack.core.repository import BaseRepository

from ._helpers import _flag


class BomRepository(BaseRepository):
    """CRUD for ``boms``, ``internal_dependencies`` and ``external_dependencies``.

    Edge reads are always ordered by ``scm_order`` ascending; the assembler
    relies on that order.
    """

    TABLE = "boms"
    INTERNAL_TABLE = "internal_dependencies"
    EXTERNAL_TABLE = "external_dependencies"

    # -- BOM header --------------------------------------------------------

    def get_for_build(self, build_record_id: int) -> Bom | None:
        row = self.query_one(
            f"SELECT * FROM {self.TABLE} WHERE build_record_id = {self.ph(1)}",
            (build_record_id,),
        )
        return Bom.from_row(row) if row else None

    def create(
        self,
        *,
        build_record_id: int,
        bom_type: str,
        build_system: str | None = None,
        build_system_version: str | None = None,
        external_reference_id: str | None = None,
    ) -> int:
        return self.insert(
            self.TABLE,
            {
                "build_record_id": build_record_id,
                "bom_type": bom_type,
                "build_system": build_system,
                "build_system_version": build_system_version,
                "external_reference_id": external_reference_id,
            },
        )

    def set_locked(self, bom_id: int, locked: bool = True) -> int:
        return self.update(
            f"UPDATE {self.TABLE} SET locked = {self.ph(1)} WHERE id = {self.ph(1)}",
            (_flag(locked), bom_id),
        )

    def set_external_reference(self, bom_id: int, external_reference_id: str) -> int:
        return self.update(
            f"UPDATE {self.TABLE} SET external_reference_id = {self.ph(1)} WHERE id = {self.ph(1)}",
            (external_reference_id, bom_id),
        )

    def external_reference_for_build(self, build_record_id: int) -> str | None:
        """Change-management record id that milestone notifications address."""
        row = self.query_one(
            f"SELECT external_reference_id FROM {self.TABLE} WHERE build_record_id = {self.ph(1)}",
            (build_record_id,),
        )
        return (row or {}).get("external_reference_id")

    # -- Edges -------------------------------------------------------------

    def add_internal(
        self,
        *,
        bom_id: int,
        build_record_id: int,
        dependency_build_record_id: int,
        scm_order: int,
        bom_type: str,
    ) -> int:
        return self.insert(
            self.INTERNAL_TABLE,
            {
                "bom_id": bom_id,
                "build_record_id": build_record_id,
                "dependency_build_record_id": dependency_build_record_id,
                "scm_order": scm_order,
                "bom_type": bom_type,
            },
        )

    def add_external(self, *, bom_id: int, build_record_id: int, fields: dict[str, Any]) -> int:
        return self.insert(
            self.EXTERNAL_TABLE,
            {"bom_id": bom_id, "build_record_id": build_record_id, **fields},
        )

    def scm_order_taken(self, table: str, build_record_id: int, scm_order: int) -> bool:
        row = self.query_one(
            f"SELECT id FROM {table} WHERE build_record_id = {self.ph(1)} AND scm_order = {self.ph(1)}",
            (build_record_id, scm_order),
        )
        return row is not None

    def internal_edges(self, build_record_id: int) -> list[InternalDependency]:
        rows = self.query(
            f"SELECT * FROM {self.INTERNAL_TABLE} WHERE build_record_id = {self.ph(1)} "
            f"ORDER BY scm_order, id",
            (build_record_id,),
        )
        return [InternalDependency.from_row(r) for r in rows]

    def external_edges(self, build_record_id: int) -> list[ExternalDependency]:
        rows = self.query(
            f"SELECT * FROM {self.EXTERNAL_TABLE} WHERE build_record_id = {self.ph(1)} "
            f"ORDER BY scm_order, id",
            (build_record_id,),
        )
        return [ExternalDependency.from_row(r) for r in rows]
