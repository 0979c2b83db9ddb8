"""Tests for DependencyGraphAssembler: ordering, recursion, depth limit, missing builds."""

from __future__ import annotations

import pytest

from buildtrack.core.models import DependencyKind, ExternalDependency, InternalDependency
from buildtrack.core.provenance import DependencyGraphAssembler, merge_edges
from buildtrack.core.repositories import BomRepository


class Edges:
    """Adds dependency rows, creating each parent's BOM on first use."""

    def __init__(self, conn, make_bom) -> None:
        self._conn = conn
        self._repo = BomRepository(conn)
        self._make_bom = make_bom
        self._boms: dict[int, int] = {}

    def _bom(self, build_id: int) -> int:
        if build_id not in self._boms:
            self._boms[build_id] = self._make_bom(build_id)
        return self._boms[build_id]

    def internal(self, parent: int, child: int, scm_order: int) -> int:
        edge_id = self._repo.add_internal(
            bom_id=self._bom(parent),
            build_record_id=parent,
            dependency_build_record_id=child,
            scm_order=scm_order,
            bom_type="default",
        )
        self._conn.commit()
        return edge_id

    def external(self, parent: int, project: str, scm_order: int, version: str | None = None) -> int:
        edge_id = self._repo.add_external(
            bom_id=self._bom(parent),
            build_record_id=parent,
            fields={"project_name": project, "scm_order": scm_order, "version": version, "bom_type": "default"},
        )
        self._conn.commit()
        return edge_id


@pytest.fixture()
def edges(conn, make_bom) -> Edges:
    return Edges(conn, make_bom)


@pytest.fixture()
def assembler(conn) -> DependencyGraphAssembler:
    return DependencyGraphAssembler(conn)


def _labels(table):
    return [(row.depth, row.label) for row in table.rows]


class TestEmptyViews:
    def test_unknown_root(self, assembler, milestones):
        graph = assembler.build_graph(404)
        table = assembler.build_table(404)

        assert graph.root is None
        assert graph.nodes == ()
        assert graph.is_empty
        assert table.rows == ()
        assert table.is_empty

    def test_known_root_without_dependencies(self, assembler, make_build):
        build_id = make_build()
        graph = assembler.build_graph(build_id)

        assert graph.root == f"build:{build_id}"
        assert [n.key for n in graph.nodes] == [f"build:{build_id}"]
        assert graph.is_empty
        assert assembler.build_table(build_id).is_empty

    def test_max_depth_must_be_positive(self, conn):
        with pytest.raises(ValueError):
            DependencyGraphAssembler(conn, max_depth=0)


class TestOrdering:
    def test_sorted_by_scm_order_across_kinds(self, assembler, make_build, edges):
        root = make_build("app")
        lib = make_build("lib")
        edges.external(root, "openssl", 3)
        edges.internal(root, lib, 1)
        edges.external(root, "zlib", 2)

        table = assembler.build_table(root)

        assert [r.scm_order for r in table.rows] == [1, 2, 3]
        assert [r.kind for r in table.rows] == [
            DependencyKind.INTERNAL,
            DependencyKind.EXTERNAL,
            DependencyKind.EXTERNAL,
        ]

    def test_internal_first_on_equal_scm_order(self, assembler, make_build, edges):
        root = make_build("app")
        lib = make_build("lib")
        edges.external(root, "zlib", 1)
        edges.internal(root, lib, 1)

        table = assembler.build_table(root)
        assert [r.kind for r in table.rows] == [DependencyKind.INTERNAL, DependencyKind.EXTERNAL]

    def test_merge_edges_stable(self):
        internal = [InternalDependency(1, 10, 11, 1, "d"), InternalDependency(2, 10, 12, 4, "d")]
        external = [ExternalDependency(7, 10, "zlib", 1, "d"), ExternalDependency(8, 10, "xz", 2, "d")]
        merged = merge_edges(internal, external)
        assert [(e.kind, e.scm_order) for e in merged] == [
            (DependencyKind.INTERNAL, 1),
            (DependencyKind.EXTERNAL, 1),
            (DependencyKind.EXTERNAL, 2),
            (DependencyKind.INTERNAL, 4),
        ]


class TestRecursion:
    def test_depth_first_pre_order(self, assembler, make_build, edges):
        root = make_build("app")
        lib = make_build("lib")
        edges.internal(root, lib, 1)
        edges.external(lib, "zlib", 1, version="1.3")
        edges.external(root, "openssl", 2)

        table = assembler.build_table(root)

        assert [(r.depth, r.kind, r.parent_build_id, r.scm_order) for r in table.rows] == [
            (1, DependencyKind.INTERNAL, root, 1),
            (2, DependencyKind.EXTERNAL, lib, 1),
            (1, DependencyKind.EXTERNAL, root, 2),
        ]
        assert table.rows[1].project_name == "zlib"
        assert table.rows[1].version == "1.3"
        assert table.truncated is False

    def test_graph_nodes_and_edges(self, assembler, make_build, edges):
        root = make_build("app")
        lib = make_build("lib")
        edges.internal(root, lib, 1)
        zlib = edges.external(lib, "zlib", 1)

        graph = assembler.build_graph(root)

        keys = {n.key for n in graph.nodes}
        assert keys == {f"build:{root}", f"build:{lib}", f"external:{zlib}"}
        assert [(e.source, e.target, e.depth) for e in graph.edges] == [
            (f"build:{root}", f"build:{lib}", 1),
            (f"build:{lib}", f"external:{zlib}", 2),
        ]

    def test_shared_dependency_expanded_once(self, assembler, make_build, edges):
        root = make_build("app")
        left, right, shared = make_build("left"), make_build("right"), make_build("shared")
        edges.internal(root, left, 1)
        edges.internal(root, right, 2)
        edges.internal(left, shared, 1)
        edges.internal(right, shared, 1)
        edges.external(shared, "zlib", 1)

        table = assembler.build_table(root)
        graph = assembler.build_graph(root)

        shared_rows = [r for r in table.rows if r.build_id == shared]
        assert [r.repeated for r in shared_rows] == [False, True]
        assert sum(1 for r in table.rows if r.project_name == "zlib") == 1
        assert sum(1 for n in graph.nodes if n.key == f"build:{shared}") == 1
        assert sum(1 for e in graph.edges if e.target == f"build:{shared}") == 2


class TestGuards:
    def test_missing_internal_target_is_leaf(self, conn, assembler, make_build, edges):
        conn.execute("PRAGMA foreign_keys = OFF")
        root = make_build("app")
        edges.internal(root, 999, 1)
        edges.external(root, "zlib", 2)

        table = assembler.build_table(root)
        graph = assembler.build_graph(root)

        assert [(r.build_id, r.missing) for r in table.rows] == [(999, True), (None, False)]
        missing = [n for n in graph.nodes if n.key == "build:999"]
        assert missing and missing[0].missing is True

    def test_max_depth_truncates(self, conn, make_build, edges):
        a, b, c, d = (make_build(name) for name in ("a", "b", "c", "d"))
        edges.internal(a, b, 1)
        edges.internal(b, c, 1)
        edges.internal(c, d, 1)

        shallow = DependencyGraphAssembler(conn, max_depth=2).build_table(a)
        assert [r.build_id for r in shallow.rows] == [b, c]
        assert shallow.truncated is True

        full = DependencyGraphAssembler(conn, max_depth=3).build_table(a)
        assert [r.build_id for r in full.rows] == [b, c, d]
        assert full.truncated is False

    def test_cut_off_build_expanded_later_is_not_truncation(self, conn, make_build, edges):
        # app -> lib -> util -> zlib, and app -> util directly
        app, lib, util = make_build("app"), make_build("lib"), make_build("util")
        edges.internal(app, lib, 1)
        edges.internal(app, util, 2)
        edges.internal(lib, util, 1)
        edges.external(util, "zlib", 1)

        assembler = DependencyGraphAssembler(conn, max_depth=2)
        table = assembler.build_table(app)

        assert [(r.depth, r.build_id, r.project_name) for r in table.rows] == [
            (1, lib, None),
            (2, util, None),
            (1, util, None),
            (2, None, "zlib"),
        ]
        assert table.truncated is False
        assert assembler.build_graph(app).truncated is False

    def test_per_call_depth_override(self, assembler, make_build, edges):
        a, b, c = make_build("a"), make_build("b"), make_build("c")
        edges.internal(a, b, 1)
        edges.internal(b, c, 1)

        view = assembler.build_graph(a, max_depth=1)
        assert len(view.edges) == 1
        assert view.truncated is True

    def test_to_dict_serialises_kinds(self, assembler, make_build, edges):
        root = make_build("app")
        edges.external(root, "zlib", 1)
        data = assembler.build_graph(root).to_dict()
        assert data["nodes"][0]["kind"] == "root"
        assert data["edges"][0]["kind"] == "external"
