"""Tests for the health check endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from indexsync.core.engine import IndexSyncEngine
from indexsync.errors import IndexSyncFailure


class TestHealthEndpoints:
    def test_health_check(self, client: TestClient) -> None:
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "indexsync"
        assert data["index_adapter"] == "memory"
        assert "version" in data
        assert data["sync"]["outstanding"] == 0

    def test_health_counts_sync_work(self, client: TestClient, flush) -> None:
        client.post("/api/products", json={"name": "Desk lamp"})
        flush()

        sync = client.get("/api/health").json()["sync"]
        assert sync["submitted"] == 1
        assert sync["completed"] == 1
        assert sync["failed"] == 0

    def test_health_degraded_after_sync_failure(self, client: TestClient, engine: IndexSyncEngine) -> None:
        engine.dispatcher._failures.append(IndexSyncFailure("index", "p1", 3, RuntimeError("down")))

        data = client.get("/api/health").json()
        assert data["status"] == "degraded"
        assert "p1" in data["sync"]["recent_failures"][0]

    def test_index_health_check(self, client: TestClient) -> None:
        response = client.get("/api/health/index")
        assert response.status_code == 200
        data = response.json()
        assert data["adapters"]["memory"]["status"] == "healthy"
