"""Health endpoint and response headers."""
from fastapi.testclient import TestClient

from app.services.analyze import AnalysisEngine


def test_health_returns_ok(client: TestClient):
    r = client.get("/health")
    assert r.status_code == 200
    j = r.json()
    assert j.get("status") == "ok"
    assert j.get("openai_configured") is True
    assert j.get("database") == "ok"
    assert j.get("identity_provider") == "local"


def test_request_id_header(client: TestClient):
    r = client.get("/health")
    assert r.headers.get("X-Request-ID")


def test_unknown_route_uses_error_body(client: TestClient):
    r = client.get("/no-such-route")
    assert r.status_code == 404
    assert r.json()["error"] == "Not Found"


def test_health_reports_missing_ai_client(client: TestClient, monkeypatch):
    monkeypatch.setattr(client.app.state, "analysis_engine", AnalysisEngine(None))
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["openai_configured"] is False
