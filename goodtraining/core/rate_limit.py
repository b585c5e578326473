"""Rate limiting middleware for the credential-handling pages."""

import logging
import time
from collections import deque
from collections.abc import Callable

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# State lives in this process only; each uvicorn worker counts separately.

SWEEP_EVERY_SECONDS = 300
MAX_WINDOW_SECONDS = 3600


class InMemoryRateLimiter:
    """Sliding-window counter keyed by client and endpoint."""

    def __init__(self):
        self._hits: dict[tuple[str, str], deque[float]] = {}
        self._next_sweep = time.monotonic() + SWEEP_EVERY_SECONDS

    def _sweep(self, now: float) -> None:
        if now < self._next_sweep:
            return
        self._next_sweep = now + SWEEP_EVERY_SECONDS

        stale = [
            key
            for key, hits in self._hits.items()
            if not hits or hits[-1] <= now - MAX_WINDOW_SECONDS
        ]
        for key in stale:
            del self._hits[key]
        if stale:
            logger.debug("Dropped %d idle rate limit buckets", len(stale))

    def hit(self, identifier: str, endpoint: str, limit: int, window: int) -> int | None:
        """
        Record one request and return how many are left in the window.

        Returns None without recording anything when the limit is reached.
        """
        now = time.monotonic()
        self._sweep(now)

        hits = self._hits.setdefault((identifier, endpoint), deque())
        while hits and hits[0] <= now - window:
            hits.popleft()

        if len(hits) >= limit:
            return None
        hits.append(now)
        return limit - len(hits)

    def reset(self) -> None:
        """Forget every bucket. Tests call this between cases."""
        self._hits.clear()
        self._next_sweep = time.monotonic() + SWEEP_EVERY_SECONDS


_rate_limiter = InMemoryRateLimiter()


def get_rate_limiter() -> InMemoryRateLimiter:
    return _rate_limiter


RATE_LIMITED_MESSAGE = "요청이 너무 많습니다. 잠시 후 다시 시도해주세요."


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rate limiting middleware.

    Credential and report endpoints get tight per-IP limits; everything else falls back
    to a generous per-method limit.
    """

    # Exact "METHOD:/path" limits, (limit, window_seconds)
    DEFAULT_LIMITS = {
        "POST:/login": (10, 60),
        "POST:/admin/login": (5, 60),
        "POST:/register/trainee": (5, 600),
        "POST:/register/supervisor": (5, 600),
        "POST:/forgot-password": (5, 300),
        "POST:/reset-password": (10, 300),
        "POST:/reports": (10, 600),
    }

    # Shared per-method bucket for every other path
    METHOD_LIMITS = {
        "GET": (300, 60),
        "POST": (60, 60),
    }

    FALLBACK_LIMIT = (1000, 3600)

    SKIP_PATHS = {"/health", "/readyz", "/metrics"}

    def __init__(self, app, limiter: InMemoryRateLimiter | None = None, enabled: bool = True):
        super().__init__(app)
        self.limiter = limiter or get_rate_limiter()
        self.enabled = enabled

    def _get_rate_limit(self, method: str, path: str) -> tuple[str, int, int]:
        """Return (limit key, limit, window) for an endpoint."""
        key = f"{method}:{path}"
        if key in self.DEFAULT_LIMITS:
            return (key, *self.DEFAULT_LIMITS[key])
        return (f"{method}:*", *self.METHOD_LIMITS.get(method, self.FALLBACK_LIMIT))

    def _get_identifier(self, request: Request) -> str:
        client_host = request.client.host if request.client else "unknown"
        return f"ip:{client_host}"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if not self.enabled or path in self.SKIP_PATHS or path.startswith("/static"):
            return await call_next(request)

        limit_key, limit, window = self._get_rate_limit(request.method, path)
        identifier = self._get_identifier(request)
        remaining = self.limiter.hit(identifier, limit_key, limit, window)

        if remaining is None:
            logger.warning(
                "Rate limit exceeded",
                extra={
                    "identifier": identifier,
                    "limit_key": limit_key,
                    "path": path,
                    "limit": limit,
                    "window": window,
                },
            )
            return Response(
                content=RATE_LIMITED_MESSAGE,
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                media_type="text/plain; charset=utf-8",
                headers={
                    "Retry-After": str(window),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(int(time.time()) + window)
        return response
