"""Tests for the middleware stack and the global error envelope."""

import logging

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError, OperationalError

from devcamper.main import register_exception_handlers
from devcamper.middleware.logging import level_for_status
from devcamper.middleware.rate_limit import RateLimitMiddleware
from devcamper.middleware.request_id import REQUEST_ID_HEADER


def limited_app(max_requests: int) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, max_requests=max_requests, window_seconds=60)

    @app.get("/ping")
    async def ping():
        return {"success": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


class TestRateLimit:
    async def test_blocks_after_limit(self):
        transport = ASGITransport(app=limited_app(2))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            assert (await client.get("/ping")).status_code == 200
            assert (await client.get("/ping")).status_code == 200

            blocked = await client.get("/ping")

        assert blocked.status_code == 429
        assert blocked.json()["success"] is False
        assert blocked.json()["error"].startswith("Too many requests")
        assert 1 <= int(blocked.headers["Retry-After"]) <= 61

    async def test_health_is_not_limited(self):
        transport = ASGITransport(app=limited_app(1))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            for _ in range(3):
                assert (await client.get("/health")).status_code == 200

    def test_window_slides(self):
        middleware = RateLimitMiddleware(limited_app(1), max_requests=1, window_seconds=60)
        hits = middleware._hits["10.0.0.1"]

        assert middleware._retry_after(hits, 1000.0) is None
        assert middleware._retry_after(hits, 1030.0) == 31
        # The first hit has left the window
        assert middleware._retry_after(hits, 1060.5) is None

    def test_sweep_drops_idle_clients(self):
        middleware = RateLimitMiddleware(limited_app(1), max_requests=1, window_seconds=60)
        middleware._retry_after(middleware._hits["10.0.0.1"], 1000.0)
        middleware._retry_after(middleware._hits["10.0.0.2"], 1050.0)

        middleware._sweep(1070.0)

        assert list(middleware._hits) == ["10.0.0.2"]


class TestRequestId:
    async def test_generated_when_absent(self, test_client):
        response = await test_client.get("/health")
        assert len(response.headers[REQUEST_ID_HEADER]) == 8

    async def test_client_id_echoed(self, test_client):
        response = await test_client.get("/health", headers={REQUEST_ID_HEADER: "abc-123"})
        assert response.headers[REQUEST_ID_HEADER] == "abc-123"


class TestErrorEnvelope:
    async def test_unknown_route(self, test_client):
        response = await test_client.get("/api/v1/nothing-here")
        assert response.status_code == 404
        assert response.json()["success"] is False
        assert "error" in response.json()

    async def test_method_not_allowed(self, test_client):
        response = await test_client.patch("/api/v1/bootcamps")
        assert response.status_code == 405
        assert response.json()["success"] is False

    async def test_database_errors(self):
        """Driver errors map to the envelope without a dedicated exception type."""
        app = FastAPI()
        register_exception_handlers(app)

        @app.get("/duplicate")
        async def duplicate():
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: bootcamps.name"))

        @app.get("/lost")
        async def lost():
            raise OperationalError("SELECT 1", {}, Exception("connection lost"))

        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            duplicate_response = await client.get("/duplicate")
            lost_response = await client.get("/lost")

        assert duplicate_response.status_code == 400
        assert duplicate_response.json() == {"success": False, "error": "Duplicate field value entered"}
        assert lost_response.status_code == 500
        assert lost_response.json() == {"success": False, "error": "Server Error"}


def test_level_for_status():
    assert level_for_status(200) == logging.INFO
    assert level_for_status(404) == logging.WARNING
    assert level_for_status(500) == logging.ERROR


async def test_health(test_client):
    response = await test_client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"
    assert body["version"] == "1.0.0"
