"""
Dependency provenance assembly.

Rebuilds, from the flat ``internal_dependencies`` and
``external_dependencies`` rows, what a build incorporates: the internal
builds it was made from (and, recursively, what those incorporate) plus
the external packages at every level.

Two renderings of the same walk are produced:

- :class:`GraphView`: nodes keyed ``build:<id>`` / ``external:<edge id>``
  and the edges between them, for graphical layout
- :class:`TableView`: one row per edge at every depth, depth-first
  pre-order so children follow their parent row, for tabular display

Architecture:
    ::

        edges(build) = merge(internal sorted by scm_order,
                             external sorted by scm_order)   # internal first on ties

        stack ← reversed(edges(root)) at depth 1
        while stack:
            pop edge → emit visit
            internal target found, not yet expanded, depth < max_depth
                → push reversed(edges(target)) at depth + 1
        external edges and missing targets are leaves

Guardrails:
    - Traversal is an explicit stack, never Python recursion.
    - Internal edges reference builds that existed when the BOM was
      recorded, so the graph is a DAG by construction.  That is a
      precondition, not something checked here; the visited set and
      ``max_depth`` only bound the work if it is ever violated.
    - A dangling internal target becomes a leaf flagged ``missing`` and
      the rest of the report is still produced.
    - An unknown root build yields empty views, not an error.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from buildtrack.core.logging import get_logger
from buildtrack.core.models import (
    BuildRecord,
    DependencyEdge,
    DependencyKind,
    ExternalDependency,
    InternalDependency,
)
from buildtrack.core.protocols import Connection
from buildtrack.core.repositories import BomRepository, BuildRepository

logger = get_logger(__name__)

DEFAULT_MAX_DEPTH = 10


# ------------------------------------------------------------------ #
# Views
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class GraphNode:
    key: str
    label: str
    kind: DependencyKind | None
    build_id: int | None = None
    missing: bool = False
    attributes: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "kind": self.kind.value if self.kind else "root",
            "build_id": self.build_id,
            "missing": self.missing,
            "attributes": dict(self.attributes),
        }


@dataclass(frozen=True, slots=True)
class GraphEdge:
    source: str
    target: str
    kind: DependencyKind
    scm_order: int
    depth: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "kind": self.kind.value,
            "scm_order": self.scm_order,
            "depth": self.depth,
        }


@dataclass(frozen=True, slots=True)
class GraphView:
    """Node/edge rendering of a build's provenance.

    ``root`` is ``None`` and everything is empty when the build is unknown.
    A known build without dependencies has only its root node.
    """

    build_id: int
    root: str | None = None
    nodes: tuple[GraphNode, ...] = ()
    edges: tuple[GraphEdge, ...] = ()
    truncated: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.edges

    def to_dict(self) -> dict[str, Any]:
        return {
            "build_id": self.build_id,
            "root": self.root,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "truncated": self.truncated,
        }


@dataclass(frozen=True, slots=True)
class TableRow:
    depth: int
    kind: DependencyKind
    parent_build_id: int
    scm_order: int
    bom_type: str
    label: str
    build_id: int | None = None
    component_id: str | None = None
    build_number: str | None = None
    project_name: str | None = None
    version: str | None = None
    package_number: str | None = None
    master_id: str | None = None
    missing: bool = False
    repeated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "depth": self.depth,
            "kind": self.kind.value,
            "parent_build_id": self.parent_build_id,
            "scm_order": self.scm_order,
            "bom_type": self.bom_type,
            "label": self.label,
            "build_id": self.build_id,
            "component_id": self.component_id,
            "build_number": self.build_number,
            "project_name": self.project_name,
            "version": self.version,
            "package_number": self.package_number,
            "master_id": self.master_id,
            "missing": self.missing,
            "repeated": self.repeated,
        }


@dataclass(frozen=True, slots=True)
class TableView:
    """Flat rendering: every edge at every depth, tagged with depth and kind."""

    build_id: int
    rows: tuple[TableRow, ...] = ()
    truncated: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def to_dict(self) -> dict[str, Any]:
        return {
            "build_id": self.build_id,
            "rows": [r.to_dict() for r in self.rows],
            "truncated": self.truncated,
        }


# ------------------------------------------------------------------ #
# Traversal
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class _Visit:
    parent_id: int
    edge: DependencyEdge
    depth: int
    target: BuildRecord | None = None
    missing: bool = False
    repeated: bool = False


def merge_edges(
    internal: list[InternalDependency], external: list[ExternalDependency]
) -> list[DependencyEdge]:
    """Merge both relations into one sequence by ``scm_order``.

    On equal ``scm_order`` the internal edge comes first.  Each input must
    already be sorted by ``scm_order``.
    """
    merged = heapq.merge(
        ((e.scm_order, 0, e.id, e) for e in internal),
        ((e.scm_order, 1, e.id, e) for e in external),
    )
    return [edge for _, _, _, edge in merged]


class DependencyGraphAssembler:
    """Builds :class:`GraphView` and :class:`TableView` for a build.

    Nothing is cached between calls; each call re-reads the store.
    """

    def __init__(self, conn: Connection, *, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self._builds = BuildRepository(conn)
        self._boms = BomRepository(conn)
        self.max_depth = max_depth

    # -- public ------------------------------------------------------------

    def build_graph(self, build_id: int, *, max_depth: int | None = None) -> GraphView:
        walk = _Walk(self, build_id, max_depth or self.max_depth)
        if walk.root is None:
            return GraphView(build_id=build_id)

        root_key = _build_key(build_id)
        nodes: dict[str, GraphNode] = {root_key: _root_node(walk.root)}
        edges: list[GraphEdge] = []

        for visit in walk:
            source = _build_key(visit.parent_id)
            node = _graph_node(visit)
            nodes.setdefault(node.key, node)
            edges.append(
                GraphEdge(
                    source=source,
                    target=node.key,
                    kind=visit.edge.kind,
                    scm_order=visit.edge.scm_order,
                    depth=visit.depth,
                )
            )

        logger.debug(
            "provenance.graph_built",
            build_id=build_id,
            nodes=len(nodes),
            edges=len(edges),
            truncated=walk.truncated,
        )
        return GraphView(
            build_id=build_id,
            root=root_key,
            nodes=tuple(nodes.values()),
            edges=tuple(edges),
            truncated=walk.truncated,
        )

    def build_table(self, build_id: int, *, max_depth: int | None = None) -> TableView:
        walk = _Walk(self, build_id, max_depth or self.max_depth)
        if walk.root is None:
            return TableView(build_id=build_id)

        rows = tuple(_table_row(visit) for visit in walk)
        logger.debug(
            "provenance.table_built", build_id=build_id, rows=len(rows), truncated=walk.truncated
        )
        return TableView(build_id=build_id, rows=rows, truncated=walk.truncated)

    # -- store access --------------------------------------------------------

    def edges_of(self, build_id: int) -> list[DependencyEdge]:
        """Direct dependencies of *build_id* in declaration order."""
        return merge_edges(
            self._boms.internal_edges(build_id),
            self._boms.external_edges(build_id),
        )

    def load_build(self, build_id: int) -> BuildRecord | None:
        return self._builds.get(build_id)


class _Walk:
    """One depth-first pre-order walk from a root build.

    Iterating yields :class:`_Visit` entries.  When iteration finishes,
    ``truncated`` tells whether some build was left unexpanded because its
    dependencies lie beyond ``max_depth``.  A build cut off on a deep path
    and expanded later through a shallower one does not count.
    """

    def __init__(self, assembler: DependencyGraphAssembler, root_id: int, max_depth: int) -> None:
        self._assembler = assembler
        self._max_depth = max_depth
        self._builds: dict[int, BuildRecord | None] = {}
        self.root_id = root_id
        self.root = self._build(root_id)
        self.truncated = False

    def _build(self, build_id: int) -> BuildRecord | None:
        if build_id not in self._builds:
            self._builds[build_id] = self._assembler.load_build(build_id)
        return self._builds[build_id]

    def __iter__(self) -> Iterator[_Visit]:
        if self.root is None:
            return

        expanded: set[int] = {self.root_id}
        cut_off: set[int] = set()
        stack: list[tuple[int, DependencyEdge, int]] = [
            (self.root_id, edge, 1) for edge in reversed(self._assembler.edges_of(self.root_id))
        ]

        while stack:
            parent_id, edge, depth = stack.pop()

            if isinstance(edge, ExternalDependency):
                yield _Visit(parent_id=parent_id, edge=edge, depth=depth)
                continue

            target_id = edge.dependency_build_record_id
            target = self._build(target_id)
            if target is None:
                logger.warning(
                    "provenance.missing_dependency",
                    build_id=parent_id,
                    dependency_build_id=target_id,
                    scm_order=edge.scm_order,
                )
                yield _Visit(parent_id=parent_id, edge=edge, depth=depth, missing=True)
                continue

            repeated = target_id in expanded
            yield _Visit(
                parent_id=parent_id, edge=edge, depth=depth, target=target, repeated=repeated
            )
            if repeated:
                continue

            children = self._assembler.edges_of(target_id)
            if not children:
                expanded.add(target_id)
                continue
            if depth >= self._max_depth:
                cut_off.add(target_id)
                continue

            expanded.add(target_id)
            cut_off.discard(target_id)
            stack.extend((target_id, child, depth + 1) for child in reversed(children))

        self.truncated = bool(cut_off)


# ------------------------------------------------------------------ #
# Rendering helpers
# ------------------------------------------------------------------ #


def _build_key(build_id: int) -> str:
    return f"build:{build_id}"


def _build_label(build: BuildRecord) -> str:
    return f"{build.component_id} #{build.build_number}"


def _external_label(edge: ExternalDependency) -> str:
    return f"{edge.project_name} {edge.version}" if edge.version else edge.project_name


def _root_node(build: BuildRecord) -> GraphNode:
    return GraphNode(
        key=_build_key(build.id),
        label=_build_label(build),
        kind=None,
        build_id=build.id,
        attributes={"branch": build.branch, "milestone_id": build.milestone_id},
    )


def _graph_node(visit: _Visit) -> GraphNode:
    edge = visit.edge
    if isinstance(edge, ExternalDependency):
        return GraphNode(
            key=f"external:{edge.id}",
            label=_external_label(edge),
            kind=DependencyKind.EXTERNAL,
            attributes={
                "project_name": edge.project_name,
                "version": edge.version,
                "build_number": edge.build_number,
                "package_number": edge.package_number,
                "master_id": edge.master_id,
            },
        )

    target_id = edge.dependency_build_record_id
    if visit.target is None:
        return GraphNode(
            key=_build_key(target_id),
            label=f"missing build {target_id}",
            kind=DependencyKind.INTERNAL,
            build_id=target_id,
            missing=True,
        )
    return GraphNode(
        key=_build_key(target_id),
        label=_build_label(visit.target),
        kind=DependencyKind.INTERNAL,
        build_id=target_id,
        attributes={"branch": visit.target.branch, "milestone_id": visit.target.milestone_id},
    )


def _table_row(visit: _Visit) -> TableRow:
    edge = visit.edge
    if isinstance(edge, ExternalDependency):
        return TableRow(
            depth=visit.depth,
            kind=DependencyKind.EXTERNAL,
            parent_build_id=visit.parent_id,
            scm_order=edge.scm_order,
            bom_type=edge.bom_type,
            label=_external_label(edge),
            project_name=edge.project_name,
            version=edge.version,
            build_number=edge.build_number,
            package_number=edge.package_number,
            master_id=edge.master_id,
        )

    target = visit.target
    return TableRow(
        depth=visit.depth,
        kind=DependencyKind.INTERNAL,
        parent_build_id=visit.parent_id,
        scm_order=edge.scm_order,
        bom_type=edge.bom_type,
        label=_build_label(target) if target else f"missing build {edge.dependency_build_record_id}",
        build_id=edge.dependency_build_record_id,
        component_id=target.component_id if target else None,
        build_number=target.build_number if target else None,
        missing=visit.missing,
        repeated=visit.repeated,
    )


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "DependencyGraphAssembler",
    "GraphEdge",
    "GraphNode",
    "GraphView",
    "TableRow",
    "TableView",
    "merge_edges",
]
