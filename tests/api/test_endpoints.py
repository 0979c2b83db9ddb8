"""
Integration tests for API endpoints using FastAPI TestClient.

Each test gets a fresh SQLite file so state survives across the
per-request connections the API opens.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from buildtrack.api.app import create_app
from buildtrack.api.settings import BuildTrackAPISettings

API = "/api/v1"


@pytest.fixture()
def client(tmp_path):
    """Test client on a temporary database seeded with Dev/QA/Staging/Release."""
    settings = BuildTrackAPISettings(database_url=f"sqlite:///{tmp_path / 'test.db'}")
    app = create_app(settings=settings)
    with TestClient(app) as c:
        resp = c.post(f"{API}/database/init", json={"seed_milestones": True})
        assert resp.status_code == 200
        yield c


def _register(client, build_number: str = "1", milestone: str = "Dev", component_id: str = "core-lib") -> int:
    resp = client.post(
        f"{API}/builds",
        json={
            "component_id": component_id,
            "build_number": build_number,
            "branch": "main",
            "milestone": milestone,
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["id"]


def _error_code(resp) -> str:
    return resp.json()["errors"][0]["code"]


class TestHealthEndpoints:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_live(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}

    def test_request_id_header(self, client):
        resp = client.get("/health/live", headers={"X-Request-ID": "req-42"})
        assert resp.headers["X-Request-ID"] == "req-42"
        assert client.get("/health/live").headers.get("X-Request-ID")


class TestDatabaseEndpoints:
    def test_init_is_idempotent(self, client):
        resp = client.post(f"{API}/database/init", json={"seed_milestones": True})
        assert resp.status_code == 200
        assert resp.json()["data"]["milestones_seeded"] == 0

    def test_dry_run(self, client):
        resp = client.post(f"{API}/database/init?dry_run=true")
        assert resp.json()["data"]["dry_run"] is True


class TestMilestoneEndpoints:
    def test_list(self, client):
        resp = client.get(f"{API}/milestones")
        assert [m["name"] for m in resp.json()["data"]] == ["Dev", "QA", "Staging", "Release"]

    def test_define_and_resolve(self, client):
        resp = client.post(f"{API}/milestones", json={"name": "Canary", "level": 25})
        assert resp.status_code == 201
        assert client.get(f"{API}/milestones/canary").json()["data"]["level"] == 25

    def test_define_duplicate(self, client):
        resp = client.post(f"{API}/milestones", json={"name": "qa", "level": 15})
        assert resp.status_code == 409

    def test_resolve_unknown(self, client):
        resp = client.get(f"{API}/milestones/Nightly")
        assert resp.status_code == 400
        assert _error_code(resp) == "UNKNOWN_MILESTONE"


class TestBuildEndpoints:
    def test_register_and_get(self, client):
        build_id = _register(client)
        data = client.get(f"{API}/builds/{build_id}").json()["data"]
        assert data["milestone"] == "Dev"
        assert data["component_id"] == "core-lib"

    def test_register_duplicate(self, client):
        _register(client)
        resp = client.post(
            f"{API}/builds",
            json={"component_id": "core-lib", "build_number": "1", "branch": "main", "milestone": "Dev"},
        )
        assert resp.status_code == 409

    def test_register_invalid_body(self, client):
        resp = client.post(f"{API}/builds", json={"component_id": "core-lib"})
        assert resp.status_code == 422

    def test_unknown_build(self, client):
        resp = client.get(f"{API}/builds/999")
        assert resp.status_code == 404
        assert _error_code(resp) == "BUILD_NOT_FOUND"

    def test_fields(self, client):
        build_id = _register(client)
        client.put(f"{API}/builds/{build_id}/result", json={"result": "success", "comment": "green"})
        client.put(f"{API}/builds/{build_id}/artifact", json={"artifact_url": "s3://b/1.tgz"})
        data = client.put(f"{API}/builds/{build_id}/coverage", json={"coverage": 91.5}).json()["data"]
        assert (data["build_result"], data["artifact_url"], data["code_coverage"]) == (
            "success",
            "s3://b/1.tgz",
            91.5,
        )

    def test_coverage_out_of_range(self, client):
        build_id = _register(client)
        resp = client.put(f"{API}/builds/{build_id}/coverage", json={"coverage": 150})
        assert resp.status_code == 400

    def test_latest(self, client):
        first = _register(client, "1")
        _register(client, "2")
        client.post(f"{API}/builds/{first}/milestone", json={"milestone": "QA", "actor": "alice"})

        resp = client.get(f"{API}/builds/latest", params={"component_id": "core-lib", "milestone": "QA"})
        assert resp.json()["data"]["id"] == first

        resp = client.get(f"{API}/builds/latest", params={"component_id": "core-lib", "milestone": "Release"})
        assert resp.status_code == 404

    def test_list_for_component(self, client):
        first, second = _register(client, "1"), _register(client, "2")
        _register(client, "1", component_id="other")

        resp = client.get(f"{API}/builds", params={"component_id": "core-lib"})
        assert resp.status_code == 200
        assert [b["id"] for b in resp.json()["data"]] == [second, first]

        resp = client.get(f"{API}/builds", params={"component_id": "core-lib", "limit": 1})
        assert [b["id"] for b in resp.json()["data"]] == [second]
        assert client.get(f"{API}/builds", params={"component_id": "nope"}).json()["data"] == []

    def test_list_requires_component(self, client):
        assert client.get(f"{API}/builds").status_code == 422

    def test_steps_and_summary(self, client):
        build_id = _register(client)
        steps = f"{API}/builds/{build_id}/steps"
        resp = client.put(steps, json={"step_name": "compile", "step_result": "ok"})
        assert resp.status_code == 200
        assert resp.json()["data"]["created"] is True
        client.put(steps, json={"step_name": "unit-tests", "step_result": "failed"})
        resp = client.put(steps, json={"step_name": "unit-tests", "step_result": "ok"})
        assert resp.json()["data"]["created"] is False
        client.post(f"{API}/builds/{build_id}/milestone", json={"milestone": "QA", "actor": "alice"})

        summary = client.get(f"{API}/builds/{build_id}/summary").json()["data"]
        assert summary["build"]["milestone"] == "QA"
        assert [(s["step_name"], s["step_result"]) for s in summary["steps"]] == [
            ("compile", "ok"),
            ("unit-tests", "ok"),
        ]
        assert summary["step_results"] == {"ok": 2}
        assert summary["has_bom"] is False
        assert summary["transition_count"] == 1

    def test_step_for_unknown_build(self, client):
        resp = client.put(f"{API}/builds/999/steps", json={"step_name": "compile", "step_result": "ok"})
        assert resp.status_code == 404
        assert _error_code(resp) == "BUILD_NOT_FOUND"
        assert client.get(f"{API}/builds/999/summary").status_code == 404

    def test_step_requires_name(self, client):
        build_id = _register(client)
        resp = client.put(f"{API}/builds/{build_id}/steps", json={"step_name": " ", "step_result": "ok"})
        assert resp.status_code == 400


class TestTransitionEndpoints:
    def test_transition_and_history(self, client):
        build_id = _register(client)
        resp = client.post(
            f"{API}/builds/{build_id}/milestone",
            json={"milestone": "qa", "actor": "alice", "comment": "smoke green"},
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["previous_milestone"] == "Dev"
        assert resp.json()["data"]["milestone"] == "QA"

        assert client.get(f"{API}/builds/{build_id}/milestone").json()["data"]["name"] == "QA"
        history = client.get(f"{API}/builds/{build_id}/milestone/history").json()["data"]
        assert [(h["previous_milestone"], h["new_milestone"], h["actor"]) for h in history] == [
            ("Dev", "QA", "alice")
        ]

    def test_actor_from_header(self, client):
        build_id = _register(client)
        client.post(f"{API}/builds/{build_id}/milestone", json={"milestone": "QA"}, headers={"X-User": "bob"})
        history = client.get(f"{API}/builds/{build_id}/milestone/history").json()["data"]
        assert history[0]["actor"] == "bob"

    def test_downgrade_rejected(self, client):
        build_id = _register(client, milestone="Release")
        resp = client.post(f"{API}/builds/{build_id}/milestone", json={"milestone": "Dev", "actor": "alice"})
        assert resp.status_code == 409
        assert _error_code(resp) == "ILLEGAL_PROGRESSION"
        assert client.get(f"{API}/builds/{build_id}/milestone/history").json()["data"] == []

    def test_unknown_milestone(self, client):
        build_id = _register(client)
        resp = client.post(f"{API}/builds/{build_id}/milestone", json={"milestone": "Nightly", "actor": "a"})
        assert resp.status_code == 400

    def test_unknown_build(self, client):
        resp = client.post(f"{API}/builds/999/milestone", json={"milestone": "QA", "actor": "a"})
        assert resp.status_code == 404

    def test_dry_run_writes_nothing(self, client):
        build_id = _register(client)
        resp = client.post(
            f"{API}/builds/{build_id}/milestone?dry_run=true", json={"milestone": "QA", "actor": "a"}
        )
        assert resp.json()["data"]["dry_run"] is True
        assert client.get(f"{API}/builds/{build_id}/milestone").json()["data"]["name"] == "Dev"

    def test_progressions(self, client):
        build_id = _register(client, milestone="Staging")
        data = client.get(f"{API}/builds/{build_id}/milestone/progressions").json()["data"]
        assert [m["name"] for m in data] == ["Staging", "Release"]


class TestBomEndpoints:
    def test_bom_lifecycle(self, client):
        app_id, lib_id = _register(client, "1", component_id="app"), _register(client, "1", component_id="lib")

        assert client.post(f"{API}/builds/{app_id}/bom", json={"build_system": "gradle"}).status_code == 201
        resp = client.post(
            f"{API}/builds/{app_id}/bom/internal", json={"dependency_build_id": lib_id, "scm_order": 2}
        )
        assert resp.status_code == 201
        resp = client.post(
            f"{API}/builds/{app_id}/bom/external",
            json={"project_name": "zlib", "version": "1.3", "scm_order": 1},
        )
        assert resp.status_code == 201

        bom = client.get(f"{API}/builds/{app_id}/bom").json()["data"]
        assert (bom["internal_count"], bom["external_count"]) == (1, 1)

        assert client.post(f"{API}/builds/{app_id}/bom/lock").json()["data"]["locked"] is True
        resp = client.put(f"{API}/builds/{app_id}/bom/external-reference", json={"external_reference_id": "CM-9"})
        assert resp.status_code == 423
        assert _error_code(resp) == "LOCKED"

    def test_missing_bom(self, client):
        build_id = _register(client)
        assert client.get(f"{API}/builds/{build_id}/bom").status_code == 404

    def test_dependency_views(self, client):
        app_id, lib_id = _register(client, "1", component_id="app"), _register(client, "1", component_id="lib")
        client.post(f"{API}/builds/{app_id}/bom", json={})
        client.post(f"{API}/builds/{app_id}/bom/internal", json={"dependency_build_id": lib_id, "scm_order": 2})
        client.post(f"{API}/builds/{app_id}/bom/external", json={"project_name": "zlib", "scm_order": 1})

        table = client.get(f"{API}/builds/{app_id}/dependencies/table").json()["data"]
        assert [r["kind"] for r in table["rows"]] == ["external", "internal"]

        graph = client.get(f"{API}/builds/{app_id}/dependencies/graph").json()["data"]
        assert len(graph["edges"]) == 2
        assert graph["truncated"] is False

    def test_unknown_build_view_is_empty(self, client):
        resp = client.get(f"{API}/builds/999/dependencies/graph")
        assert resp.status_code == 200
        assert resp.json()["data"]["nodes"] == []

    def test_max_depth_bounds(self, client):
        assert client.get(f"{API}/builds/1/dependencies/table?max_depth=0").status_code == 422


class TestQualityGateEndpoints:
    def test_create_update_list(self, client):
        resp = client.post(f"{API}/quality-gates", json={"name": "CodeCov", "pass_threshold": 70})
        assert resp.status_code == 201
        client.put(f"{API}/quality-gates/CodeCov", json={"pass_threshold": 80})

        gates = client.get(f"{API}/quality-gates").json()["data"]
        assert [(g["name"], g["pass_threshold"]) for g in gates] == [("CodeCov", 80)]
        versions = client.get(f"{API}/quality-gates/codecov/versions").json()["data"]
        assert [v["active"] for v in versions] == [True, False]

    def test_duplicate_active(self, client):
        client.post(f"{API}/quality-gates", json={"name": "CodeCov"})
        resp = client.post(f"{API}/quality-gates", json={"name": "codecov"})
        assert resp.status_code == 409
        assert _error_code(resp) == "DUPLICATE_ACTIVE_GATE"

    def test_update_unknown(self, client):
        assert client.put(f"{API}/quality-gates/Nope", json={}).status_code == 404

    def test_duplicate_active_non_ascii(self, client):
        assert client.post(f"{API}/quality-gates", json={"name": "Überdeckung"}).status_code == 201
        resp = client.post(f"{API}/quality-gates", json={"name": "überdeckung"})
        assert resp.status_code == 409
        assert _error_code(resp) == "DUPLICATE_ACTIVE_GATE"
