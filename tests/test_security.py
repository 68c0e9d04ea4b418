"""
Tests for security headers, request ids, CORS and error bodies.
"""

import pytest
from unittest.mock import AsyncMock, patch

from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from motor_rental.config import settings


@pytest.mark.asyncio
async def test_security_headers_present(client: AsyncClient):
    response = await client.get("/health")

    assert response.headers.get("X-Content-Type-Options") == "nosniff"
    assert response.headers.get("X-Frame-Options") == "DENY"
    assert response.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"
    assert "default-src 'self'" in response.headers["Content-Security-Policy"]
    assert "Permissions-Policy" in response.headers


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/api/hello", "/api/motors", "/metrics", "/", "/booking/123"])
async def test_security_headers_on_all_endpoints(client: AsyncClient, path):
    """API routes, metrics and static frontend responses all carry the headers."""
    response = await client.get(path)

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


@pytest.mark.asyncio
async def test_security_headers_on_error_responses(client: AsyncClient):
    response = await client.get("/api/motors/9999")

    assert response.status_code == 404
    assert response.headers.get("X-Frame-Options") == "DENY"


@pytest.mark.asyncio
async def test_hsts_header_not_in_test_env(client: AsyncClient):
    response = await client.get("/health")

    assert response.headers.get("Strict-Transport-Security") is None


@pytest.mark.asyncio
async def test_hsts_header_in_production(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "APP_ENV", "production")

    response = await client.get("/health")

    assert response.headers["Strict-Transport-Security"] == "max-age=31536000; includeSubDomains"


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient):
    response = await client.get("/api/hello")

    assert len(response.headers["X-Request-ID"]) == 36


@pytest.mark.asyncio
async def test_request_id_echoed(client: AsyncClient):
    response = await client.get("/api/hello", headers={"X-Request-ID": "trace-123"})

    assert response.headers["X-Request-ID"] == "trace-123"


@pytest.mark.asyncio
@pytest.mark.parametrize("supplied", ["x" * 129, "bad id with spaces", "inject\\nline", ""])
async def test_malformed_request_id_replaced(client: AsyncClient, supplied):
    """Ids that could garble the log lines are swapped for a generated uuid."""
    response = await client.get("/api/hello", headers={"X-Request-ID": supplied})

    returned = response.headers["X-Request-ID"]
    assert returned != supplied
    assert len(returned) == 36


@pytest.mark.asyncio
async def test_cors_allows_any_origin(client: AsyncClient):
    response = await client.options(
        "/api/motors",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "GET"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "access-control-allow-credentials" not in response.headers


@pytest.mark.asyncio
async def test_database_errors_are_not_leaked(client: AsyncClient, sample_motor):
    """Storage failures become a generic 500 without driver text."""
    failure = OperationalError("INSERT INTO motors ...", {}, Exception("disk I/O error"))
    with patch("motor_rental.services.insert_motor", AsyncMock(side_effect=failure)):
        response = await client.post("/api/motors", json=sample_motor)

    assert response.status_code == 500
    detail = response.json()["detail"]
    assert detail == {"error": "INTERNAL_ERROR", "message": "Database error", "details": {}}
    assert "disk" not in response.text


@pytest.mark.asyncio
async def test_hello(client: AsyncClient):
    response = await client.get("/api/hello")

    assert response.json() == {"message": "Hello from Motor Rental API!"}
