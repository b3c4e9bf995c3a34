from __future__ import annotations

from fastapi.testclient import TestClient


def test_preserves_incoming_request_id_header(client: TestClient):
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client: TestClient):
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert isinstance(generated, str)

    duration = resp.headers.get("X-Request-Duration-ms")
    assert duration is not None


def test_error_body_carries_request_id(client: TestClient):
    resp = client.get("/api/users/missing", headers={"X-Request-ID": "req-404"})

    assert resp.status_code == 404
    assert resp.json()["error"]["request_id"] == "req-404"


def test_failed_requests_are_logged(client: TestClient, caplog):
    with caplog.at_level("INFO", logger="app.core.middleware"):
        client.get("/api/users/missing")
        client.get("/health")

    records = [r for r in caplog.records if r.getMessage() == "request.completed"]
    assert len(records) == 1
    assert records[0].status_code == 404
    assert records[0].path == "/api/users/missing"
