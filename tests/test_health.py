import pytest
from fastapi.testclient import TestClient

from app.core import health as health_module
from app.main import app

client = TestClient(app)


@pytest.fixture(autouse=True)
def _mock_env(monkeypatch):
    monkeypatch.setattr(health_module.settings, "environment", "test")
    yield


def test_health_live_returns_ok() -> None:
    response = client.get("/api/v1/health/live")
    assert response.status_code == 200
    body = response.json()
    assert body["code"] == "ok"
    assert body["data"]["status"] == "ok"
    assert "timestamp" in body["data"]
    assert response.headers["x-request-id"]


def test_health_echoes_request_id() -> None:
    response = client.get("/api/v1/health/live", headers={"x-request-id": "req-123"})
    assert response.headers["x-request-id"] == "req-123"


def test_health_ready_ok(monkeypatch) -> None:
    async def ok_db():
        return {"status": "ok"}

    monkeypatch.setattr(health_module, "_check_db", ok_db)

    response = client.get("/api/v1/health/ready")
    assert response.status_code == 200
    payload = response.json()["data"]
    assert payload["status"] == "ok"
    assert payload["ready"] is True
    assert payload["environment"] == "test"
    assert payload["checks"]["database"]["status"] == "ok"
    assert payload["checks"]["api"]["status"] == "ok"


def test_health_ready_degraded(monkeypatch) -> None:
    async def bad_db():
        return {"status": "error", "error": "unreachable"}

    monkeypatch.setattr(health_module, "_check_db", bad_db)

    response = client.get("/api/v1/health/ready")
    assert response.status_code == 200
    payload = response.json()["data"]
    assert payload["status"] == "degraded"
    assert payload["ready"] is False
    assert payload["checks"]["database"]["status"] == "error"
