"""Tests for middleware components."""
import pytest
from httpx import AsyncClient, ASGITransport
from devtracker.adapters.memory import InMemoryAdapter
from devtracker.api.router import get_store
from devtracker.main import app
from devtracker.config import get_settings
from devtracker.services.event_store import EventStore

settings = get_settings()

EVENT = {
    "timestamp": "2025-09-05T10:00:00Z",
    "source": "Shell",
    "event_type": "CommandExecuted",
    "data": {"command": "ls -l"},
}


@pytest.fixture(autouse=True)
def isolated_store():
    store = EventStore(adapter=InMemoryAdapter())
    app.dependency_overrides[get_store] = lambda: store
    yield store
    app.dependency_overrides.pop(get_store, None)


@pytest.mark.asyncio
async def test_correlation_id_injection():
    """Test that correlation ID is auto-generated if not provided."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        await client.get("/init")
        response = await client.post("/ingest", json=EVENT)
        assert response.status_code == 200
        assert "X-Correlation-ID" in response.headers


@pytest.mark.asyncio
async def test_correlation_id_preserved():
    """Test that provided correlation ID is preserved."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        correlation_id = "test-correlation-123"
        response = await client.get("/init", headers={"X-Correlation-ID": correlation_id})
        assert response.status_code == 200
        assert response.headers["X-Correlation-ID"] == correlation_id


@pytest.mark.asyncio
async def test_correlation_id_in_error_body():
    """Test error responses carry the request's correlation ID."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        await client.get("/init")
        response = await client.post(
            "/ingest",
            json={**EVENT, "source": ""},
            headers={"X-Correlation-ID": "corr-400"},
        )
        assert response.status_code == 400
        assert response.json()["correlation_id"] == "corr-400"


@pytest.mark.asyncio
async def test_payload_too_large_rejection():
    """Test that oversized payloads are rejected."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        await client.get("/init")
        large_event = {**EVENT, "data": {"output": "x" * (settings.MAX_EVENT_SIZE + 1000)}}
        response = await client.post("/ingest", json=large_event)
        assert response.status_code == 413
        data = response.json()
        assert data["error"] == "PayloadTooLarge"
        assert data["max_size"] == settings.MAX_EVENT_SIZE
        assert data["path"] == "/ingest"
        assert data["correlation_id"] == response.headers["X-Correlation-ID"]
        assert (await client.get("/events")).json() == []


@pytest.mark.asyncio
async def test_invalid_json_rejection():
    """Test that invalid JSON is rejected."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post(
            "/ingest",
            content=b"{invalid json}",
            headers={"Content-Type": "application/json", "X-Correlation-ID": "corr-json"}
        )
        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "InvalidJSON"
        assert data["correlation_id"] == "corr-json"
        assert data["path"] == "/ingest"


@pytest.mark.asyncio
async def test_body_survives_validation():
    """Test the route still reads the body after the middleware inspected it."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        await client.get("/init")
        response = await client.post("/ingest", json=EVENT)
        assert response.status_code == 200
        assert response.json() == {"status": "ingested", "id": 1}


@pytest.mark.asyncio
async def test_request_metrics_recorded():
    """Test the metrics middleware counts handled requests."""
    metrics = app.state.metrics
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        await client.get("/init")
        await client.get("/events")

    sample = metrics.registry.get_sample_value(
        "http_requests_total",
        {"service": "devtracker", "method": "GET", "path": "/events", "status": "200"},
    )
    assert sample is not None and sample >= 1
