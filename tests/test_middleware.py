"""Middleware tests: request ID, CORS and error handling."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/health")
    assert "x-request-id" in response.headers
    assert len(response.headers["x-request-id"]) == 36  # UUID format


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    """Custom request ID is echoed back in response."""
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


@pytest.mark.asyncio
async def test_rate_limit_disabled_without_redis(client: AsyncClient) -> None:
    """No Redis configured: requests pass through without rate-limit headers."""
    response = await client.post("/api/auth/nonce", json={"address": "0xabc"})
    assert response.status_code == 200
    assert "x-ratelimit-limit" not in response.headers


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient) -> None:
    response = await client.options(
        "/api/auth/nonce",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


@pytest.mark.asyncio
async def test_unknown_route_returns_json_404(client: AsyncClient) -> None:
    response = await client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}


@pytest.mark.asyncio
async def test_domain_error_shape(client: AsyncClient) -> None:
    """Domain errors answer with their status and a bare detail message."""
    response = await client.post("/api/auth/verify", json={"address": "0xabc", "signature": "0x00"})
    assert response.status_code == 400
    assert response.json() == {"detail": "No nonce found"}


@pytest.mark.asyncio
async def test_malformed_body_returns_422(client: AsyncClient) -> None:
    response = await client.post("/api/auth/nonce", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 422
    assert response.json()["detail"] == "Validation error"
