import pytest
from fastapi.testclient import TestClient
from google.api_core.exceptions import ServiceUnavailable

from config import settings
from main import app
from rate_limit import limiter
from services import ride_service


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "ok"


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Taxi Backend API is running"
    assert body["data"]["version"] == "1.0.0"


def test_unknown_route(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Route not found - /api/nope"}


def test_validation_error_envelope(client):
    response = client.post("/api/payments/calculate-fare", json={"distance": 0, "duration": 10})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert [error["field"] for error in body["errors"]] == ["distance"]


def test_database_error(client, monkeypatch):
    def unavailable(*args, **kwargs):
        raise ServiceUnavailable("firestore is down")

    monkeypatch.setattr(ride_service, "list_rides", unavailable)
    response = client.get("/api/rides")
    assert response.status_code == 500
    assert response.json()["message"] == "Database operation failed"


def test_unhandled_error_includes_stack_outside_production(db, gateway, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(ride_service, "list_rides", boom)
    app.state.db = db
    app.state.payments = gateway
    limiter.enabled = False
    try:
        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.get("/api/rides")
    finally:
        limiter.enabled = True
        app.state.db = None
        app.state.payments = None

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "boom"
    assert "RuntimeError" in body["stack"]


def test_rate_limit(client, monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT", "3/minute")
    limiter.enabled = True

    statuses = [client.get("/health").status_code for _ in range(4)]

    assert statuses == [200, 200, 200, 429]
    assert client.get("/health").json()["success"] is False


@pytest.mark.parametrize("path", ["/api/users/profile", "/api/rides/history", "/api/payments/history"])
def test_protected_routes_require_token(client, path):
    response = client.get(path)
    assert response.status_code == 401
    assert response.json()["message"] == "Access token required"
