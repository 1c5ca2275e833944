import logging

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from app import config
from app.errors import ErrorTracker, register_error_handlers


@pytest.fixture
def failing_app():
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/api/boom")
    async def boom():
        raise RuntimeError("database exploded")

    @app.get("/api/teapot")
    async def teapot():
        raise HTTPException(status_code=418, detail={"message": "short and stout"})

    return TestClient(app, raise_server_exceptions=False)


def test_error_tracker_flags_repeats_within_window():
    tracker = ErrorTracker(threshold=2, window_seconds=60)

    assert tracker.record("GET /x:boom", now=0) == (1, False)
    assert tracker.record("GET /x:boom", now=10) == (2, False)
    assert tracker.record("GET /x:boom", now=20) == (3, True)
    assert tracker.record("GET /x:other", now=20) == (1, False)


def test_error_tracker_restarts_after_quiet_window():
    tracker = ErrorTracker(threshold=1, window_seconds=60)
    tracker.record("k", now=0)
    tracker.record("k", now=30)

    assert tracker.record("k", now=91) == (1, False)


def test_unknown_api_route_uses_envelope(client):
    response = client.get("/api/does-not-exist")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "API endpoint not found"
    assert body["timestamp"].endswith("Z")
    assert "debug" not in body


def test_validation_errors_become_400(client):
    response = client.post("/api/vouchers/validate", json={"code": "X", "bookingAmount": "lots"})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_unhandled_exception_becomes_500(failing_app):
    response = failing_app.get("/api/boom")

    assert response.status_code == 500
    assert response.json()["error"] == "database exploded"


def test_dict_detail_message_is_unwrapped(failing_app):
    response = failing_app.get("/api/teapot")

    assert response.status_code == 418
    assert response.json()["error"] == "short and stout"


def test_debug_block_only_in_development(failing_app, monkeypatch):
    monkeypatch.setattr(config, "ENVIRONMENT", "development")

    debug = failing_app.get("/api/boom").json()["debug"]

    assert debug["name"] == "RuntimeError"
    assert 0 < len(debug["stack"]) <= 5


def test_health_reports_database(client):
    body = client.get("/api/health").json()

    assert body["status"] == "healthy"
    assert body["services"]["database"] == "connected"


def test_repeated_failures_collapse_to_short_warning(failing_app, caplog):
    caplog.set_level(logging.INFO, logger="app.errors")

    for _ in range(12):
        failing_app.get("/api/boom")

    records = [r for r in caplog.records if r.name == "app.errors"]
    full_reports = [r for r in records if r.getMessage().startswith("❌ Error in GET /api/boom")]
    repeats = [r.getMessage() for r in records if "Repeated error" in r.getMessage()]

    assert len(full_reports) == 10
    assert repeats == [
        "⚠️ Repeated error (11 times): database exploded",
        "⚠️ Repeated error (12 times): database exploded",
    ]


def test_request_log_skips_health_checks(client, caplog):
    caplog.set_level(logging.INFO, logger="app.errors")

    client.get("/api/health")
    client.get("/api/branches")

    request_lines = [r.getMessage() for r in caplog.records if r.name == "app.errors"]
    assert not any("/api/health" in line for line in request_lines)
    assert any("GET /api/branches → 200" in line for line in request_lines)
