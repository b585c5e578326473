"""
Pytest configuration and shared fixtures.

Provides:
- Test environment variables, set before the app is imported
- FakeBackend: an in-process stand-in for the REST backend (httpx.MockTransport)
- backend_client: a BackendClient wired to the fake backend
- app / client: the FastAPI app with the backend dependency overridden, and
  an httpx.AsyncClient talking to it over ASGI
- make_token: backend-style session tokens for logged-in requests
"""

from __future__ import annotations

import os
import sys
import time
from collections.abc import Callable, Generator
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Set test environment variables before importing app
os.environ["APP_ENV"] = "test"
os.environ["OTEL_ENABLED"] = "false"
os.environ["OBSERVABILITY_STRUCTURED_LOGS"] = "false"
os.environ["BACKEND_API_URL"] = "http://backend.test"
for _key in ("ENV_FILE", "BACKEND_JWT_SECRET", "METRICS_TOKEN", "HEALTH_TOKEN"):
    os.environ.pop(_key, None)

import httpx  # noqa: E402 (import after env setup)
import pytest  # noqa: E402 (import after env setup)
from fastapi import FastAPI  # noqa: E402 (import after env setup)
from jose import jwt  # noqa: E402 (import after env setup)

from goodtraining.core.backend import (  # noqa: E402 (import after env setup)
    BackendClient,
    get_backend_client,
    get_circuit_breaker,
)
from goodtraining.core.rate_limit import get_rate_limiter  # noqa: E402
from goodtraining.main import create_app  # noqa: E402
from tests.factories import BACKEND_URL, TOKEN_SECRET, FakeBackend, make_breaker  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_shared_state() -> Generator[None, None, None]:
    """Process-wide limiter and breaker must not leak between tests."""
    get_rate_limiter().reset()
    get_circuit_breaker().reset()
    yield
    get_rate_limiter().reset()
    get_circuit_breaker().reset()


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def backend_client(fake_backend: FakeBackend) -> BackendClient:
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(fake_backend.handler), base_url=BACKEND_URL
    )
    return BackendClient(http, make_breaker(), retry_count=1)


@pytest.fixture
def app(backend_client: BackendClient) -> Generator[FastAPI, None, None]:
    application = create_app()
    application.dependency_overrides[get_backend_client] = lambda: backend_client
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app: FastAPI) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Build a token shaped like the backend's: {id, email, role}, HS256, 7 days."""

    def _make(
        user_id: int | str = 1,
        email: str = "user@example.com",
        role: str = "trainee",
        expires_in: int = 7 * 24 * 60 * 60,
    ) -> str:
        claims = {"id": user_id, "email": email, "role": role, "exp": int(time.time()) + expires_in}
        return jwt.encode(claims, TOKEN_SECRET, algorithm="HS256")

    return _make
