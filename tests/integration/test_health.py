"""Integration tests: Health and root endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient

from schoolfees.main import app


@pytest.mark.asyncio
async def test_health():
    """Health endpoint at /health."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"


@pytest.mark.asyncio
async def test_root_and_request_id():
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        resp = await client.get("/", headers={"X-Request-ID": "req-123"})
    assert resp.status_code == 200
    assert resp.headers["X-Request-ID"] == "req-123"
    assert "X-Process-Time" in resp.headers


@pytest.mark.asyncio
async def test_readiness_checks_database(async_client):
    resp = await async_client.get("http://test/health/ready")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ready", "database": "ok"}


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(async_client):
    resp = await async_client.get("http://test/no-such-page")
    assert resp.status_code == 404
    assert resp.json()["success"] is False
    assert resp.json()["error"]["code"] == "RESOURCE_NOT_FOUND"
