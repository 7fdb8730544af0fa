"""HTTP service tests through FastAPI's TestClient.

Background generations finish inside the client context: leaving the
``with TestClient(...)`` block runs the lifespan shutdown, which awaits every
pending generation task.
"""
from __future__ import annotations

from typing import Dict

import pytest
from fastapi.testclient import TestClient

from medialab_providers.service.app import create_app

USER = {"X-User-Id": "user-1"}
OTHER = {"X-User-Id": "user-2"}
KEY = "sk-service-0123456789"  # pragma: allowlist secret - test fixture


@pytest.fixture()
def app(uow_factory, master_key: str):
    return create_app(uow_factory=uow_factory, master_key=master_key)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def _create_project(client: TestClient, headers: Dict[str, str] = USER, **body) -> Dict:
    resp = client.post("/api/projects", json={"name": "Demo", **body}, headers=headers)
    assert resp.status_code == 201, resp.text  # nosec B101
    return resp.json()["project"]


def test_health_needs_no_identity(client: TestClient):
    resp = client.get("/api/health")
    assert resp.status_code == 200  # nosec B101
    assert resp.json()["ok"] is True  # nosec B101


def test_identity_header_is_required(client: TestClient):
    resp = client.get("/api/projects")
    assert resp.status_code == 401  # nosec B101
    body = resp.json()
    assert body["ok"] is False and body["error"] == "auth"  # nosec B101


def test_api_keys_never_expose_secrets(client: TestClient):
    resp = client.post(
        "/api/api-keys",
        json={"provider": "openai", "api_key": KEY, "key_name": "Main"},
        headers=USER,
    )
    assert resp.status_code == 201  # nosec B101
    created = resp.json()["key"]
    assert created["key_preview"] == "SK-S"  # nosec B101
    assert KEY not in resp.text  # nosec B101

    listed = client.get("/api/api-keys", headers=USER)
    assert KEY not in listed.text  # nosec B101
    for secret_field in ("ciphertext", "iv", "auth_tag", "salt", "api_key"):
        assert secret_field not in listed.json()["keys"][0]  # nosec B101
    assert client.get("/api/api-keys", headers=OTHER).json()["keys"] == []  # nosec B101

    patched = client.patch(f"/api/api-keys/{created['id']}", json={"is_active": False}, headers=USER)
    assert patched.json()["key"]["is_active"] is False  # nosec B101
    assert client.delete(f"/api/api-keys/{created['id']}", headers=OTHER).status_code == 403  # nosec B101
    assert client.delete(f"/api/api-keys/{created['id']}", headers=USER).status_code == 200  # nosec B101
    assert client.delete("/api/api-keys/missing", headers=USER).status_code == 404  # nosec B101


def test_short_key_is_rejected(client: TestClient):
    resp = client.post("/api/api-keys", json={"provider": "openai", "api_key": "short"}, headers=USER)
    assert resp.status_code == 400  # nosec B101
    assert resp.json()["error"] == "validation"  # nosec B101

    tested = client.post("/api/api-keys/test", json={"provider": "openai", "api_key": "short"}, headers=USER)
    assert tested.json()["valid"] is False  # nosec B101


def test_routes_crud(client: TestClient):
    put = client.put("/api/routes", json={"provider": "FAL", "priority": 1, "fallback_provider": "veo3"}, headers=USER)
    assert put.status_code == 200, put.text  # nosec B101
    assert put.json()["route"]["provider"] == "fal"  # nosec B101

    routes = client.get("/api/routes", headers=USER).json()["routes"]
    assert [(r["provider"], r["fallback_provider"]) for r in routes] == [("fal", "veo3")]  # nosec B101

    bad = client.put("/api/routes", json={"provider": "nope", "priority": 0}, headers=USER)
    assert bad.status_code == 400  # nosec B101
    assert client.delete("/api/routes", params={"provider": "fal"}, headers=USER).status_code == 200  # nosec B101
    assert client.delete("/api/routes", params={"provider": "fal"}, headers=USER).status_code == 404  # nosec B101


def test_projects_crud_and_ownership(client: TestClient):
    project = _create_project(client, budget_cents=500)
    pid = project["id"]

    assert client.get(f"/api/projects/{pid}", headers=OTHER).status_code == 403  # nosec B101
    assert client.get("/api/projects/missing", headers=USER).status_code == 404  # nosec B101

    patched = client.patch(f"/api/projects/{pid}", json={"name": "Renamed"}, headers=USER)
    assert patched.json()["project"]["name"] == "Renamed"  # nosec B101
    stats = client.get(f"/api/projects/{pid}/stats", headers=USER).json()["stats"]
    assert stats["remaining_cents"] == 500  # nosec B101

    assert client.delete(f"/api/projects/{pid}", headers=USER).status_code == 200  # nosec B101
    assert client.get("/api/projects", headers=USER).json()["projects"] == []  # nosec B101


def test_request_validation_shape(client: TestClient):
    resp = client.post("/api/generate", json={"generation_type": "smell", "prompt": "hi"}, headers=USER)
    assert resp.status_code == 400  # nosec B101
    body = resp.json()
    assert body["ok"] is False  # nosec B101
    assert body["error"] == "validation"  # nosec B101
    assert body["message"] == "Invalid request data"  # nosec B101
    assert any("project_id" in f for f in body["context"]["fields"])  # nosec B101


@pytest.mark.usefixtures("enable_mock_providers")
def test_generate_with_mock_provider(app):
    with TestClient(app) as client:
        project = _create_project(client, budget_cents=10)
        client.post("/api/api-keys", json={"provider": "mock", "api_key": KEY}, headers=USER)
        client.put("/api/routes", json={"provider": "mock", "priority": 0}, headers=USER)

        resp = client.post(
            "/api/generate",
            json={"project_id": project["id"], "generation_type": "text", "prompt": "hello lab"},
            headers=USER,
        )
        assert resp.status_code == 202, resp.text  # nosec B101
        accepted = resp.json()["generation"]
        assert accepted["status"] == "processing"  # nosec B101

    with TestClient(app) as client:
        done = client.get(f"/api/generations/{accepted['id']}", headers=USER).json()["generation"]
        assert done["status"] == "completed"  # nosec B101
        assert done["provider"] == "mock"  # nosec B101
        assert done["result"]["content"] == "Mock response to: hello lab"  # nosec B101
        assert done["cost_cents"] == 1  # nosec B101

        listed = client.get("/api/generations", params={"type": "text"}, headers=USER).json()
        assert [g["id"] for g in listed["generations"]] == [accepted["id"]]  # nosec B101
        assert client.get(f"/api/generations/{accepted['id']}", headers=OTHER).status_code == 404  # nosec B101
        stats = client.get("/api/generations/stats", headers=USER).json()["stats"]
        assert stats["completed"] == 1  # nosec B101
        project_stats = client.get(f"/api/projects/{project['id']}/stats", headers=USER).json()["stats"]
        assert project_stats["spent_cents"] == 1  # nosec B101


@pytest.mark.usefixtures("enable_mock_providers")
def test_estimate_cost_endpoint(client: TestClient):
    body = {"provider": "mock", "generation_type": "image", "prompt": "a fox"}
    missing = client.post("/api/estimate-cost", json=body, headers=USER)
    assert missing.status_code == 404  # nosec B101

    client.post("/api/api-keys", json={"provider": "mock", "api_key": KEY}, headers=USER)
    resp = client.post("/api/estimate-cost", json=body, headers=USER)
    assert resp.status_code == 200, resp.text  # nosec B101
    assert resp.json()["estimate"]["amount_cents"] == 1  # nosec B101

    auto = client.post("/api/estimate-cost", json={**body, "provider": "auto"}, headers=USER)
    assert auto.status_code == 400  # nosec B101


def test_providers_catalog(client: TestClient):
    providers = {p["name"]: p for p in client.get("/api/providers", headers=USER).json()["providers"]}
    assert "mock" not in providers  # nosec B101
    assert "openai" in providers and "fal" in providers  # nosec B101
    assert providers["veo3"]["supported_types"] == ["video"]  # nosec B101
    assert client.get("/api/providers/health", headers=USER).json()["health"] == []  # nosec B101


@pytest.mark.usefixtures("enable_mock_providers")
def test_manual_health_check(client: TestClient):
    client.post("/api/api-keys", json={"provider": "mock", "api_key": KEY}, headers=USER)
    resp = client.post("/api/providers/mock/health-check", headers=USER)
    assert resp.status_code == 200, resp.text  # nosec B101
    assert resp.json()["check"]["healthy"] is True  # nosec B101
    assert resp.json()["health"]["status"] == "healthy"  # nosec B101

    models = client.get("/api/providers/mock/models", headers=USER).json()
    assert models["models"] == ["mock-1"]  # nosec B101
