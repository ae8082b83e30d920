"""
InkPad Backend — Middleware & Identity Tests
=============================================

What we test:
    ✅ Request ids are generated, or reused when the caller sends one
    ✅ The sliding-window limiter rejects with 429 and Retry-After
    ✅ Limits are tracked per caller and recover once the window passes
    ✅ The user id header is required and bounded
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from inkpad.exceptions import RateLimitExceededError
from inkpad.middleware.rate_limit import RateLimitMiddleware
from inkpad.middleware.request_id import RequestIDMiddleware


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def build_app(**limit_options) -> FastAPI:
    app = FastAPI()

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    app.add_middleware(RequestIDMiddleware)
    if limit_options:
        app.add_middleware(RateLimitMiddleware, **limit_options)
    return app


class TestRequestId:

    @pytest.mark.asyncio
    async def test_generated_and_echoed(self):
        async with AsyncClient(transport=ASGITransport(app=build_app()), base_url="http://test") as client:
            first = await client.get("/ping")
            second = await client.get("/ping")

        assert len(first.headers["X-Request-ID"]) == 8
        assert first.headers["X-Request-ID"] != second.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_caller_supplied_id_is_kept(self):
        async with AsyncClient(transport=ASGITransport(app=build_app()), base_url="http://test") as client:
            response = await client.get("/ping", headers={"X-Request-ID": "trace-42"})

        assert response.headers["X-Request-ID"] == "trace-42"


class TestRateLimit:

    def test_check_window(self):
        clock = FakeClock()
        limiter = RateLimitMiddleware(build_app(), max_requests=2, window_seconds=60, clock=clock)

        limiter.check("user:alice")
        clock.now += 10
        limiter.check("user:alice")

        with pytest.raises(RateLimitExceededError) as exc_info:
            limiter.check("user:alice")
        assert exc_info.value.retry_after == 51

        # Other callers have their own window
        limiter.check("user:bob")

        clock.now += 51
        limiter.check("user:alice")

    @pytest.mark.asyncio
    async def test_http_429(self):
        app = build_app(max_requests=2, window_seconds=60, clock=FakeClock())
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            headers = {"X-User-ID": "alice"}
            assert (await client.get("/ping", headers=headers)).status_code == 200
            assert (await client.get("/ping", headers=headers)).status_code == 200

            limited = await client.get("/ping", headers=headers)
            other = await client.get("/ping", headers={"X-User-ID": "bob"})

        assert limited.status_code == 429
        assert limited.headers["Retry-After"] == "61"
        assert limited.json()["error"] == "rate_limit_exceeded"
        assert other.status_code == 200

    @pytest.mark.asyncio
    async def test_rotating_user_header_does_not_evade_ip_limit(self):
        app = build_app(max_requests=2, window_seconds=60, clock=FakeClock(), by_user=False)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            statuses = [
                (await client.get("/ping", headers={"X-User-ID": f"user-{n}"})).status_code
                for n in range(3)
            ]

        assert statuses == [200, 200, 429]


class TestIdentity:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("headers, status", [
        ({"X-User-ID": "alice"}, 200),
        ({}, 401),
        ({"X-User-ID": "   "}, 401),
        ({"X-User-ID": "x" * 65}, 401),
    ])
    async def test_user_header(self, app, headers, status):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/notes/tags", headers=headers)

        assert response.status_code == status
        if status == 200:
            assert response.json() == []
