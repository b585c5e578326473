"""
Observability module for the goodtraining web app.

Provides:
- Structured logging with JSON format and correlation IDs
- Request correlation ID (request_id) generation and propagation
- Prometheus metrics collection (HTTP, backend calls, logins)
- Request tracking middleware for latency and status codes

Usage:
    from goodtraining.core.observability import (
        get_request_id,
        set_correlation_id,
        metrics,
    )
"""

import json
import logging
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from fastapi import Request, Response
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from goodtraining.core.telemetry import get_span_id, get_trace_id

# ============================================================================
# Context Variables for Request Tracking
# ============================================================================

# Correlation ID - links all logs for a single request
_request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")

# User ID read from the session cookie
_user_id_ctx: ContextVar[str] = ContextVar("user_id", default="")


def generate_request_id() -> str:
    """Generate a unique request ID for correlation."""
    return str(uuid.uuid4())


def get_request_id() -> str:
    """Get the current request ID from context."""
    return _request_id_ctx.get()


def set_correlation_id(request_id: str) -> None:
    """Set the correlation ID for the current request context."""
    _request_id_ctx.set(request_id)


def get_user_id() -> str:
    """Get the current user ID from context."""
    return _user_id_ctx.get()


def set_user_id(user_id: str) -> None:
    """Set the user ID for the current request context."""
    _user_id_ctx.set(user_id)


# ============================================================================
# Structured Logging Configuration
# ============================================================================

_RESERVED_RECORD_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "getMessage",
    "exc_info",
    "exc_text",
    "stack_info",
}


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs as JSON with standard fields:
    - timestamp: ISO 8601 format
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - logger: Logger name
    - message: Log message
    - request_id: Correlation ID (if available)
    - trace_id / span_id: OpenTelemetry context (if a span is recording)
    - user_id: Logged-in user (if available)
    - extra: Any additional context from logging.extra
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = get_request_id()
        if request_id:
            log_entry["request_id"] = request_id

        trace_id = get_trace_id()
        if trace_id:
            log_entry["trace_id"] = trace_id
        span_id = get_span_id()
        if span_id:
            log_entry["span_id"] = span_id

        user_id = get_user_id()
        if user_id:
            log_entry["user_id"] = user_id

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
            }

        log_entry["file"] = record.pathname
        log_entry["line"] = record.lineno
        log_entry["function"] = record.funcName

        # Anything passed via logger.info("msg", extra={...})
        extra_keys = {
            k: v for k, v in record.__dict__.items() if k not in _RESERVED_RECORD_KEYS
        }
        if extra_keys:
            log_entry["extra"] = extra_keys

        return json.dumps(log_entry, default=str, ensure_ascii=False)


def configure_structured_logging(level: str = "INFO") -> None:
    """
    Configure root logger with structured JSON formatting.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(handler)


# ============================================================================
# Prometheus Metrics
# ============================================================================

# Use a custom registry to avoid conflicts with other Prometheus metrics
_registry = CollectorRegistry()


class Metrics:
    """
    Centralized metrics collection for the application.

    Metrics groups:
    - HTTP: Request rate, errors, latency
    - Backend: REST call rate, latency, retries
    - Auth: Login outcomes
    """

    def __init__(self, registry: CollectorRegistry) -> None:
        self.registry = registry

        # -------------------------------------------------------------------
        # HTTP Metrics
        # -------------------------------------------------------------------

        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "route", "status_code"],
            registry=self.registry,
        )

        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request latency in seconds",
            ["method", "route"],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self.registry,
        )

        self.http_requests_in_progress = Gauge(
            "http_requests_in_progress",
            "HTTP requests currently in progress",
            ["method", "route"],
            registry=self.registry,
        )

        self.http_errors_total = Counter(
            "http_errors_total",
            "Total HTTP errors",
            ["error_type", "method", "route"],
            registry=self.registry,
        )

        # -------------------------------------------------------------------
        # Backend Metrics
        # -------------------------------------------------------------------

        self.backend_requests_total = Counter(
            "backend_requests_total",
            "Total REST backend calls",
            ["operation", "outcome"],
            registry=self.registry,
        )

        self.backend_request_duration_seconds = Histogram(
            "backend_request_duration_seconds",
            "REST backend call latency in seconds",
            ["operation"],
            buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self.registry,
        )

        self.backend_retries_total = Counter(
            "backend_retries_total",
            "REST backend calls retried after a failed attempt",
            ["operation"],
            registry=self.registry,
        )

        # -------------------------------------------------------------------
        # Auth Metrics
        # -------------------------------------------------------------------

        self.login_attempts_total = Counter(
            "login_attempts_total",
            "Login attempts by surface and outcome",
            ["surface", "outcome"],
            registry=self.registry,
        )


metrics = Metrics(_registry)

request_logger = logging.getLogger("goodtraining.request")


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Assigns the correlation ID, records HTTP metrics and logs one line per request.

    The ID comes from the incoming ``X-Request-ID`` header when present and is
    echoed back on the response.
    """

    def __init__(
        self,
        app: ASGIApp,
        metrics_instance: Metrics | None = None,
        quiet_prefixes: tuple[str, ...] = ("/health", "/readyz", "/metrics", "/static"),
        request_id_header: str = "X-Request-ID",
    ) -> None:
        super().__init__(app)
        self.metrics = metrics_instance or metrics
        self.quiet_prefixes = quiet_prefixes
        self.request_id_header = request_id_header

    @staticmethod
    def _route_of(request: Request) -> str:
        # Matched template keeps label cardinality bounded (/supervisor/{supervisor_id})
        route = request.scope.get("route")
        return route.path if route is not None else request.url.path

    def _observe(self, request: Request, route: str, status_code: int, started: float) -> float:
        elapsed = time.perf_counter() - started
        self.metrics.http_requests_total.labels(
            method=request.method, route=route, status_code=status_code
        ).inc()
        self.metrics.http_request_duration_seconds.labels(
            method=request.method, route=route
        ).observe(elapsed)
        return round(elapsed * 1000, 2)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.request_id_header) or generate_request_id()
        set_correlation_id(request_id)
        set_user_id("")
        request.state.request_id = request_id

        entry_route = self._route_of(request)
        in_progress = self.metrics.http_requests_in_progress.labels(
            method=request.method, route=entry_route
        )
        in_progress.inc()
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            route = self._route_of(request)
            latency_ms = self._observe(request, route, 500, started)
            self.metrics.http_errors_total.labels(
                error_type=type(e).__name__, method=request.method, route=route
            ).inc()
            request_logger.error(
                f"{request.method} {route} failed with {type(e).__name__}",
                extra={"route": route, "status_code": 500, "latency_ms": latency_ms},
                exc_info=True,
            )
            raise
        finally:
            in_progress.dec()

        route = self._route_of(request)
        latency_ms = self._observe(request, route, response.status_code, started)
        response.headers[self.request_id_header] = request_id

        if not route.startswith(self.quiet_prefixes):
            request_logger.info(
                f"{request.method} {route} {response.status_code}",
                extra={
                    "route": route,
                    "status_code": response.status_code,
                    "latency_ms": latency_ms,
                },
            )
        return response


def metrics_endpoint() -> Response:
    """Render the app registry in Prometheus text format."""
    return Response(
        content=generate_latest(_registry),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )


def extract_request_context(request: Request) -> dict[str, Any]:
    """Fields attached to error logs so they can be joined with the request line."""
    return {
        "request_id": get_request_id() or getattr(request.state, "request_id", ""),
        "user_id": get_user_id() or "anonymous",
        "method": request.method,
        "path": request.url.path,
    }
