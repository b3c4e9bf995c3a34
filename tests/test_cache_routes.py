"""Tests for the cache statistics and health endpoints."""

from fastapi.testclient import TestClient

STATS_FIELDS = {"size", "defaultTTL", "hits", "misses", "hitRate", "totalRequests"}


def test_stats_payload_shape_on_fresh_app(client: TestClient) -> None:
    response = client.get("/api/cache/stats")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Cache statistics retrieved successfully"
    assert set(body["data"]) == STATS_FIELDS
    assert body["data"]["hitRate"] == "0.00"
    assert body["data"]["totalRequests"] == 0
    assert body["data"]["defaultTTL"] == 300_000


def test_stats_reflect_user_reads(client: TestClient) -> None:
    created = client.post(
        "/api/users",
        json={"email": "k@example.com", "name": "K", "password": "password-1"},
    ).json()["data"]

    client.get(f"/api/users/{created['id']}")  # miss, then cached
    client.get(f"/api/users/{created['id']}")  # hit

    stats = client.get("/api/cache/stats").json()["data"]
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["totalRequests"] == 2
    assert stats["hitRate"] == "0.50"
    assert stats["size"] == 1


def test_stats_match_cache_service(client: TestClient) -> None:
    cache = client.app.state.cache
    cache.set("x", 1)
    cache.get("x")

    assert client.get("/api/cache/stats").json()["data"] == cache.get_stats()


def test_health_reports_component_sizes(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["cache_size"] == 0
    assert body["rate_limit_clients"] == 0
