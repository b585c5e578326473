"""
Tests for rate limiting, request size limits, security headers and request
logging redaction.
"""

import httpx
import pytest
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from goodtraining.core.middleware import RequestSizeLimitMiddleware
from goodtraining.core.rate_limit import InMemoryRateLimiter, RateLimitMiddleware
from goodtraining.core.request_logging import REDACTED, _decode_body, _sanitize_headers
from goodtraining.core.security_middleware import SecurityHeadersMiddleware


def _echo_app() -> FastAPI:
    app = FastAPI()

    @app.get("/page")
    async def page():
        return PlainTextResponse("ok")

    @app.post("/logout")
    async def logout():
        return PlainTextResponse("ok")

    @app.post("/login")
    async def login():
        return PlainTextResponse("ok")

    return app


def _client(app: FastAPI) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")


class TestInMemoryRateLimiter:
    @pytest.mark.anyio
    async def test_limit_within_window(self):
        limiter = InMemoryRateLimiter()

        assert limiter.hit("ip:1", "POST:/login", limit=2, window=60) == 1
        assert limiter.hit("ip:1", "POST:/login", limit=2, window=60) == 0
        assert limiter.hit("ip:1", "POST:/login", limit=2, window=60) is None
        assert limiter.hit("ip:2", "POST:/login", limit=2, window=60) == 1

    @pytest.mark.anyio
    async def test_reset(self):
        limiter = InMemoryRateLimiter()
        limiter.hit("ip:1", "k", limit=1, window=60)

        limiter.reset()

        assert limiter.hit("ip:1", "k", limit=1, window=60) == 0


class TestRateLimitMiddleware:
    @pytest.mark.anyio
    async def test_limit_lookup(self):
        middleware = RateLimitMiddleware(_echo_app(), limiter=InMemoryRateLimiter())

        assert middleware._get_rate_limit("POST", "/login") == ("POST:/login", 10, 60)
        assert middleware._get_rate_limit("GET", "/") == ("GET:*", 300, 60)
        assert middleware._get_rate_limit("GET", "/psychology") == ("GET:*", 300, 60)
        assert middleware._get_rate_limit("POST", "/logout") == ("POST:*", 60, 60)
        assert middleware._get_rate_limit("DELETE", "/x") == ("DELETE:*", 1000, 3600)

    @pytest.mark.anyio
    async def test_login_posts_are_limited(self):
        app = _echo_app()
        app.add_middleware(RateLimitMiddleware, limiter=InMemoryRateLimiter())

        async with _client(app) as client:
            statuses = [(await client.post("/login")).status_code for _ in range(11)]

        assert statuses[:10] == [200] * 10
        assert statuses[10] == 429

    @pytest.mark.anyio
    async def test_credential_bucket_is_separate_from_method_bucket(self):
        app = _echo_app()
        app.add_middleware(RateLimitMiddleware, limiter=InMemoryRateLimiter())

        async with _client(app) as client:
            for _ in range(10):
                await client.post("/login")
            blocked = await client.post("/login")
            other = await client.post("/logout")

        assert blocked.status_code == 429
        assert other.status_code == 200
        assert other.headers["X-RateLimit-Limit"] == "60"

    @pytest.mark.anyio
    async def test_disabled_middleware_passes_through(self):
        app = _echo_app()
        app.add_middleware(RateLimitMiddleware, limiter=InMemoryRateLimiter(), enabled=False)

        async with _client(app) as client:
            response = await client.get("/page")

        assert "X-RateLimit-Limit" not in response.headers


class TestRequestSizeLimit:
    @pytest.mark.anyio
    async def test_rejects_large_body(self):
        app = _echo_app()
        app.add_middleware(RequestSizeLimitMiddleware, max_size_mb=1)

        async with _client(app) as client:
            response = await client.post("/login", content=b"x" * (1024 * 1024 + 1))

        assert response.status_code == 413

    @pytest.mark.anyio
    async def test_allows_small_body(self):
        app = _echo_app()
        app.add_middleware(RequestSizeLimitMiddleware, max_size_mb=1)

        async with _client(app) as client:
            response = await client.post("/login", content=b"email=a")

        assert response.status_code == 200


class TestSecurityHeaders:
    @pytest.mark.anyio
    async def test_headers_added(self):
        app = _echo_app()
        app.add_middleware(SecurityHeadersMiddleware)

        async with _client(app) as client:
            response = await client.get("/page")

        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "frame-ancestors 'none'" in response.headers["Content-Security-Policy"]
        assert response.headers["Strict-Transport-Security"].startswith("max-age=31536000")


class TestRequestLoggingRedaction:
    @pytest.mark.anyio
    async def test_form_passwords_are_redacted(self):
        body = b"email=a%40b.com&password=secret123&confirm_password=secret123&token=abc"

        decoded = _decode_body(body, "application/x-www-form-urlencoded")

        assert decoded == {
            "email": "a@b.com",
            "password": REDACTED,
            "confirm_password": REDACTED,
            "token": REDACTED,
        }

    @pytest.mark.anyio
    async def test_repeated_fields_become_lists(self):
        body = b"targetGroups=a&targetGroups=b"
        decoded = _decode_body(body, "application/x-www-form-urlencoded")

        assert decoded == {"targetGroups": ["a", "b"]}

    @pytest.mark.anyio
    async def test_other_bodies_are_summarized(self):
        assert _decode_body(b"", "text/plain") is None
        assert _decode_body(b"{bad", "application/json") == {"raw_size_bytes": 4}
        assert _decode_body(b"abc", "multipart/form-data; boundary=x") == {
            "content_type": "multipart/form-data; boundary=x",
            "size_bytes": 3,
        }

    @pytest.mark.anyio
    async def test_cookie_header_is_redacted(self):
        headers = _sanitize_headers({"Cookie": "auth_token=abc", "Accept": "text/html"})

        assert headers == {"Cookie": REDACTED, "Accept": "text/html"}
