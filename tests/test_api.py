"""Tests for the HTTP API.

Covers:
  1. GET /health returns api=ok and the version
  2. Bearer auth enforced only when AGENT_BUILDER_API_KEY is set
  3. POST /preflight returns issues as data
  4. POST /generate: 200 with ordered files, 409 when blocked, 422 on a cycle
     or malformed config
  5. POST /workflow-type clears parent ids when leaving Hierarchical
  6. The async ASGI transport path
  7. Settings.from_env parsing and key redaction
"""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from agent_builder import api
from agent_builder.api import app
from agent_builder.config import Settings

_AGENT = {
    "id": "1",
    "name": "researcher",
    "systemPrompt": "Find facts.",
    "tools": [{"id": "t1", "name": "search_docs", "parameters": []}],
}


@pytest.fixture(autouse=True)
def _env(monkeypatch):
    monkeypatch.delenv("AGENT_BUILDER_API_KEY", raising=False)
    monkeypatch.delenv("AGENT_BUILDER_STRICT", raising=False)
    api.limiter.enabled = False
    yield
    api.limiter.enabled = True


@pytest.fixture
def client():
    return TestClient(app)


def _body(*agents, **extra):
    return {"agents": list(agents or [_AGENT]), **extra}


class TestHealthAndAuth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json() == {"api": "ok", "version": api.API_VERSION}

    def test_missing_key_rejected(self, client, monkeypatch):
        monkeypatch.setenv("AGENT_BUILDER_API_KEY", "secret")
        assert client.get("/health").status_code == 401

    def test_wrong_key_rejected(self, client, monkeypatch):
        monkeypatch.setenv("AGENT_BUILDER_API_KEY", "secret")
        r = client.get("/health", headers={"Authorization": "Bearer nope"})
        assert r.status_code == 401

    def test_correct_key_accepted(self, client, monkeypatch):
        monkeypatch.setenv("AGENT_BUILDER_API_KEY", "secret")
        r = client.post(
            "/preflight", json=_body(), headers={"Authorization": "Bearer secret"}
        )
        assert r.status_code == 200


class TestPreflight:
    def test_warning_returned(self, client):
        agent = {**_AGENT, "tools": [{"id": "t1", "name": "Search Docs"}]}
        r = client.post("/preflight", json=_body(agent))
        assert r.status_code == 200
        data = r.json()
        assert data["has_errors"] is False
        assert len(data["warnings"]) == 1
        assert data["warnings"][0]["path"] == "agents[0].tools[0].name"

    def test_empty_config(self, client):
        data = client.post("/preflight", json={}).json()
        assert data["has_errors"] is True


class TestGenerate:
    def test_files_in_order(self, client):
        r = client.post("/generate", json=_body())
        assert r.status_code == 200
        data = r.json()
        assert data["ok"] is True
        assert list(data["files"]) == [
            "main.py", "tools.py", "requirements.txt", "README.md", "Dockerfile", ".gcloudignore",
        ]
        assert len(data["payload_hash"]) == 64

    def test_deployment_files(self, client):
        r = client.post("/generate", json=_body(deploymentConfig={"projectId": "my-gcp-project"}))
        assert r.status_code == 200
        assert "my-gcp-project" in r.json()["files"]["deploy.sh"]

    def test_env_example_option(self, client):
        r = client.post("/generate", json=_body(include_env_example=True))
        assert ".env.example" in r.json()["files"]

    def test_blocked_by_errors(self, client):
        agent = {**_AGENT, "tools": [{"id": "t1", "name": "class"}]}
        r = client.post("/generate", json=_body(agent))
        assert r.status_code == 409
        detail = r.json()["detail"]
        assert detail["ok"] is False
        assert len(detail["errors"]) == 1

    def test_generate_despite_errors(self, client):
        agent = {**_AGENT, "tools": [{"id": "t1", "name": "class"}]}
        r = client.post("/generate", json=_body(agent, block_on_errors=False))
        assert r.status_code == 200
        assert r.json()["ok"] is False
        assert "tools.py" in r.json()["files"]

    def test_non_strict_server(self, client, monkeypatch):
        monkeypatch.setenv("AGENT_BUILDER_STRICT", "false")
        agent = {**_AGENT, "tools": [{"id": "t1", "name": "class"}]}
        assert client.post("/generate", json=_body(agent)).status_code == 200

    def test_cycle_is_422(self, client):
        agents = [
            {"id": "a", "name": "alpha", "parentId": "b"},
            {"id": "b", "name": "beta", "parentId": "a"},
        ]
        r = client.post("/generate", json=_body(*agents, workflowType="Hierarchical"))
        assert r.status_code == 422
        assert "Cyclic" in r.json()["detail"]

    def test_malformed_config_is_422(self, client):
        r = client.post("/generate", json=_body({"id": "1", "tools": "nope"}))
        assert r.status_code == 422

    def test_unknown_workflow_type_is_422(self, client):
        r = client.post("/generate", json=_body(workflowType="Circular"))
        assert r.status_code == 422


class TestWorkflowType:
    def test_switch_clears_parents(self, client):
        agents = [
            {"id": "1", "name": "lead"},
            {"id": "2", "name": "helper", "parentId": "1"},
        ]
        r = client.post(
            "/workflow-type",
            json=_body(*agents, workflowType="Hierarchical", target="Sequential"),
        )
        assert r.status_code == 200
        data = r.json()
        assert data["workflowType"] == "Sequential"
        assert [a["parentId"] for a in data["agents"]] == [None, None]

    def test_unknown_target(self, client):
        r = client.post("/workflow-type", json=_body(target="Circular"))
        assert r.status_code == 422


class TestAsyncTransport:
    @pytest.mark.asyncio
    async def test_generate_over_asgi(self):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            r = await ac.post("/generate", json=_body())
        assert r.status_code == 200
        assert r.json()["ok"] is True


class TestSettings:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("AGENT_BUILDER_API_KEY", "s3cr3t-token")
        monkeypatch.setenv("AGENT_BUILDER_STRICT", "no")
        monkeypatch.setenv("AGENT_BUILDER_RATE_LIMIT_PER_MIN", "5")
        monkeypatch.setenv("AGENT_BUILDER_LOG_LEVEL", "debug")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, ,http://b.test")
        settings = Settings.from_env()
        assert settings.api_key == "s3cr3t-token"
        assert settings.strict is False
        assert settings.rate_limit_per_min == 5
        assert settings.log_level == "DEBUG"
        assert settings.cors_origins == ("http://a.test", "http://b.test")
        assert "s3cr3t-token" not in repr(settings)

    def test_defaults(self):
        settings = Settings.from_env()
        assert settings.api_key == ""
        assert settings.strict is True
