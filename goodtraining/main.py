import hmac
import logging
import re
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from goodtraining.api.routes.admin import router as admin_router
from goodtraining.api.routes.articles import router as articles_router
from goodtraining.api.routes.auth import router as auth_router
from goodtraining.api.routes.health import router as health_router
from goodtraining.api.routes.my_page import router as my_page_router
from goodtraining.api.routes.registration import router as registration_router
from goodtraining.api.routes.supervisors import router as supervisors_router
from goodtraining.core.backend import close_async_http_client
from goodtraining.core.config import AppEnvironment, settings
from goodtraining.core.errors import (
    GoodTrainingError,
    UnauthorizedError,
    get_status_code,
)
from goodtraining.core.middleware import RequestSizeLimitMiddleware
from goodtraining.core.observability import (
    ObservabilityMiddleware,
    configure_structured_logging,
    extract_request_context,
    metrics_endpoint,
)
from goodtraining.core.rate_limit import RateLimitMiddleware
from goodtraining.core.request_logging import RequestLoggingMiddleware
from goodtraining.core.security_middleware import SecurityHeadersMiddleware
from goodtraining.core.session import clear_session_cookie
from goodtraining.core.telemetry import (
    init_telemetry,
    instrument_fastapi,
    instrument_httpx,
    shutdown_telemetry,
)
from goodtraining.core.templating import redirect, render

# Configure structured logging before creating logger
if settings.observability_structured_logs:
    configure_structured_logging(settings.app_log_level)

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"

# Endpoints for machines; their errors stay JSON
JSON_PATHS = ("/health", "/readyz", "/metrics")

ERROR_TITLES = {
    400: "잘못된 요청입니다",
    401: "로그인이 필요합니다",
    403: "접근 권한이 없습니다",
    404: "페이지를 찾을 수 없습니다",
    405: "허용되지 않은 요청입니다",
    413: "요청이 너무 큽니다",
    429: "요청이 너무 많습니다",
    502: "서버와 통신하지 못했습니다",
    503: "서비스를 일시적으로 사용할 수 없습니다",
}
DEFAULT_ERROR_TITLE = "오류가 발생했습니다"
SECURITY_EVENTS = {401: "AUTH_FAILURE", 403: "AUTHZ_FAILURE"}
UNEXPECTED_ERROR_MESSAGE = "예기치 않은 오류가 발생했습니다. 잠시 후 다시 시도해주세요."


def _sanitize_error_details(details: dict[str, Any]) -> dict[str, Any]:
    """
    Sanitize error details to prevent information leakage in production.

    Removes file paths, backend URLs and token-like values. Outside prod the
    details are returned unchanged.
    """
    if settings.app_env != AppEnvironment.PROD:
        return details

    sanitized = {}
    sensitive_patterns = [
        r"[/\\][\w/-]+\.py",  # File paths
        r"https?://\S+",  # Backend URLs
        r"Bearer\s+\S+",  # Tokens
        r"eyJ[\w-]+\.[\w-]+",  # JWTs
    ]

    for key, value in details.items():
        if isinstance(value, str):
            for pattern in sensitive_patterns:
                if re.search(pattern, value, re.IGNORECASE):
                    sanitized[key] = "[REDACTED]"
                    break
            else:
                sanitized[key] = value
        elif isinstance(value, dict):
            sanitized[key] = _sanitize_error_details(value)
        elif isinstance(value, list):
            sanitized[key] = [
                _sanitize_error_details(item) if isinstance(item, dict) else item for item in value
            ]
        else:
            sanitized[key] = value

    return sanitized


def _log_security_event(
    request: Request,
    event_type: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> None:
    """
    Log security-related events for audit trail.

    Args:
        request: The incoming request
        event_type: Type of security event (e.g., "AUTH_FAILURE", "AUTHZ_FAILURE")
        status_code: HTTP status code
        details: Additional event details
    """
    security_event = {
        "event_type": event_type,
        "client_ip": request.client.host if request.client else "unknown",
        "path": request.url.path,
        "method": request.method,
        "status_code": status_code,
        "user_agent": request.headers.get("user-agent", "unknown"),
        "details": details or {},
        **extract_request_context(request),
    }

    logger.warning(
        f"Security event: {event_type}",
        extra={
            "security_event": True,
            **security_event,
        },
    )


def _log_handled_error(
    request: Request,
    status_code: int,
    reason: str,
    name: str,
    details: dict[str, Any] | None = None,
) -> None:
    """401/403 go to the security audit trail; other errors log by severity."""
    if status_code in SECURITY_EVENTS:
        _log_security_event(
            request,
            event_type=SECURITY_EVENTS[status_code],
            status_code=status_code,
            details={"reason": reason},
        )
        return

    context = {
        "status_code": status_code,
        "details": _sanitize_error_details(details or {}),
        **extract_request_context(request),
    }
    if status_code >= 500:
        logger.error(f"{name}: {reason}", extra=context)
    else:
        logger.warning(f"{name}: {reason}", extra=context)


def login_url_for(path: str) -> str:
    """Admin pages send anonymous visitors to the admin login."""
    return "/admin/login" if path.startswith("/admin") else "/login"


def error_page(request: Request, status_code: int, message: str) -> Response:
    return render(
        request,
        "error.html",
        {
            "status_code": status_code,
            "title": ERROR_TITLES.get(status_code, DEFAULT_ERROR_TITLE),
            "message": message,
        },
        status_code=status_code,
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Sets up:
    - OpenTelemetry distributed tracing
    - Structured logging with correlation IDs
    - Observability middleware (metrics, request tracking)
    - Security middleware (headers, rate limiting, request size limits)
    - Exception handlers rendering domain errors as pages
    - Page routers and static files
    - Metrics endpoint for Prometheus scraping
    """
    app = FastAPI(
        title="좋은 수련, 좋은 상담자",
        description="Supervisor matching web front end for counseling trainees",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    # ============================================================================
    # OpenTelemetry Distributed Tracing
    # ============================================================================

    @app.on_event("startup")
    async def startup_telemetry():
        """Initialize OpenTelemetry tracing and instrumentation."""
        init_telemetry(
            service_name=settings.otel_service_name,
            app_env=settings.app_env.value,
            otlp_endpoint=settings.otel_exporter_otlp_endpoint,
            otlp_headers=settings.otel_exporter_otlp_headers,
            sampler_name=settings.otel_traces_sampler,
            sampler_arg=settings.otel_traces_sampler_arg,
        )

        instrument_fastapi(app)

        # Outbound calls to the REST backend
        instrument_httpx()

    @app.on_event("shutdown")
    async def shutdown_app():
        """Close the backend connection pool and flush traces."""
        await close_async_http_client()
        shutdown_telemetry()

    # ============================================================================
    # Observability Middleware (must be first for correlation tracking)
    # ============================================================================

    if settings.observability_enabled:
        app.add_middleware(
            ObservabilityMiddleware,
            request_id_header=settings.observability_request_id_header,
        )

    # ============================================================================
    # Security Headers Middleware
    # ============================================================================

    app.add_middleware(SecurityHeadersMiddleware)

    # ============================================================================
    # Request/Response Logging Middleware
    # ============================================================================

    if settings.app_env in (AppEnvironment.LOCAL, AppEnvironment.TEST):
        app.add_middleware(RequestLoggingMiddleware)

    # ============================================================================
    # Security Middleware
    # ============================================================================

    app.add_middleware(RequestSizeLimitMiddleware, max_size_mb=1)

    # Tests drive the credential pages far more often than any real client
    app.add_middleware(RateLimitMiddleware, enabled=settings.app_env != AppEnvironment.TEST)

    # ============================================================================
    # Exception Handlers
    # ============================================================================

    @app.exception_handler(GoodTrainingError)
    async def goodtraining_error_handler(request: Request, exc: GoodTrainingError) -> Response:
        """
        Handle domain errors that a page did not render inline.

        A missing or expired session redirects to the matching login page and
        drops the cookie. Everything else renders the error page with the
        mapped status code.
        """
        status_code = get_status_code(exc)
        _log_handled_error(
            request, status_code, exc.message, exc.__class__.__name__, details=exc.details
        )

        if isinstance(exc, UnauthorizedError):
            response = redirect(login_url_for(request.url.path), exc.message, variant="destructive")
            clear_session_cookie(response)
            return response

        return error_page(request, status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
        """Unknown routes, wrong methods and token checks. Machine endpoints keep JSON."""
        _log_handled_error(request, exc.status_code, str(exc.detail), f"HTTP {exc.status_code}")

        if request.url.path.startswith(JSON_PATHS):
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": "HTTPException", "message": exc.detail, "details": {}},
                headers=exc.headers,
            )

        message = exc.detail if isinstance(exc.detail, str) else ""
        if exc.status_code == 404:
            message = "요청하신 페이지가 존재하지 않습니다."
        response = error_page(request, exc.status_code, message)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> Response:
        """
        Catch-all handler for unexpected exceptions.

        Logs the full exception and renders a generic 500 page without
        exposing internal details.
        """
        context = {
            "path": request.url.path if request.url else "unknown",
            **extract_request_context(request),
        }
        logger.error(
            f"Unhandled exception: {exc}",
            exc_info=True,
            extra=context,
        )
        return error_page(request, status.HTTP_500_INTERNAL_SERVER_ERROR, UNEXPECTED_ERROR_MESSAGE)

    # ============================================================================
    # Router Registration
    # ============================================================================

    app.include_router(health_router)
    app.include_router(supervisors_router)
    app.include_router(articles_router)
    app.include_router(auth_router)
    app.include_router(registration_router)
    app.include_router(my_page_router)
    app.include_router(admin_router)

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    # ============================================================================
    # Metrics Endpoint (Prometheus) - Token Protected
    # ============================================================================

    async def protected_metrics(request: Request) -> Response:
        """
        Protected Prometheus metrics endpoint.

        Always requires the X-Metrics-Token header. Exposes internal metrics
        that could aid reconnaissance if leaked.
        """
        expected_token = settings.metrics_token
        if not expected_token:
            logger.error(
                "Metrics endpoint accessed but METRICS_TOKEN not configured",
                extra={"security_event": True, "event_type": "METRICS_NOT_CONFIGURED"},
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Metrics token not configured. Set METRICS_TOKEN environment variable.",
            )

        metrics_token = request.headers.get("X-Metrics-Token")
        if not hmac.compare_digest(metrics_token or "", expected_token):
            logger.warning(
                "Unauthorized metrics access attempt",
                extra={
                    "security_event": True,
                    "event_type": "METRICS_ACCESS_DENIED",
                    "client_ip": request.client.host if request.client else "unknown",
                },
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid metrics token",
            )

        return metrics_endpoint()

    if settings.observability_enabled:
        app.add_route("/metrics", protected_metrics)

    return app


app = create_app()
