"""
Tests for health check endpoints.
"""
import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from devtracker.adapters.memory import InMemoryAdapter
from devtracker.health import HealthChecker
from devtracker.main import app, store
from devtracker.services.event_store import EventStore

client = TestClient(app)


def test_health_liveness():
    """Test liveness health check."""
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["service"] == "devtracker"
    assert data["version"] == "0.1.0"
    assert data["timestamp"].endswith("Z")


def test_health_readiness():
    """Test readiness health check."""
    r = client.get("/health/ready")
    # Should be 200 (ready) or 503 (not ready)
    assert r.status_code in [200, 503]
    data = r.json()
    assert data["service"] == "devtracker"
    assert data["version"] == "0.1.0"
    assert "timestamp" in data
    assert data["checks"]["store"]["status"] == "ok"
    assert data["checks"]["store"]["adapter"] == "InMemoryAdapter"
    assert "status" in data


@pytest.mark.asyncio
async def test_readiness_not_ready_when_store_unreachable():
    """Test an unreachable backend makes the service not ready."""
    adapter = InMemoryAdapter()
    adapter.health_check = AsyncMock(return_value=False)
    checker = HealthChecker(EventStore(adapter=adapter))

    result = await checker.readiness()

    assert result["status"] == "not_ready"
    assert result["checks"]["store"]["status"] == "error"


def test_metrics_endpoint():
    """Test Prometheus metrics endpoint."""
    client.get("/health")
    r = client.get("/metrics")
    assert r.status_code == 200
    content = r.text
    assert "http_requests_total" in content
    assert "http_request_duration_seconds" in content
    assert "app_up" in content
    assert "devtracker_events_ingested_total" in content
    assert "devtracker_store_resets_total" in content


def test_correlation_id_in_response():
    """Test that correlation ID is added to response headers."""
    r = client.get("/health")
    assert "x-correlation-id" in r.headers


def test_correlation_id_propagation():
    """Test that provided correlation ID is propagated."""
    correlation_id = "test-correlation-id-123"
    r = client.get("/health", headers={"x-correlation-id": correlation_id})
    assert r.headers["x-correlation-id"] == correlation_id


def test_shutdown_closes_store():
    """Test the application lifespan closes the store backend on shutdown."""
    with patch.object(store, "close", new_callable=AsyncMock) as close:
        with TestClient(app) as lifespan_client:
            assert lifespan_client.get("/health").status_code == 200
            close.assert_not_awaited()
        close.assert_awaited_once()
