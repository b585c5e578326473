"""
Request/response logging middleware for page and form requests.

Logs every request in a structured JSON format for debugging in local and
test environments. Form posts carry passwords and reset tokens, so both
headers and form fields are redacted before anything is written.
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any
from urllib.parse import parse_qsl

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from goodtraining.core.observability import get_request_id, get_user_id

logger = logging.getLogger("goodtraining.http")

REDACTED = "***REDACTED***"

# Sensitive headers that should be redacted
SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "set-cookie",
    "x-metrics-token",
    "x-health-token",
}

# Sensitive body fields that should be redacted
SENSITIVE_FIELDS = {
    "password",
    "confirm_password",
    "confirmpassword",
    "token",
    "access_token",
    "secret",
}

SKIP_PATHS = ("/health", "/readyz", "/metrics", "/static")


def _sanitize_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive headers."""
    return {k: REDACTED if k.lower() in SENSITIVE_HEADERS else v for k, v in headers.items()}


def _sanitize_body(body: Any) -> Any:
    """Redact sensitive fields from a decoded body."""
    if isinstance(body, dict):
        return {
            k: REDACTED if k.lower() in SENSITIVE_FIELDS else _sanitize_body(v)
            for k, v in body.items()
        }
    if isinstance(body, list):
        return [_sanitize_body(item) for item in body]
    return body


def _decode_body(body: bytes, content_type: str) -> Any:
    """Decode a request body for logging. Multipart bodies are summarized."""
    if not body:
        return None
    if content_type.startswith("application/x-www-form-urlencoded"):
        fields: dict[str, Any] = {}
        for key, value in parse_qsl(body.decode("utf-8", errors="replace"), keep_blank_values=True):
            if key in fields:
                existing = fields[key]
                if isinstance(existing, list):
                    existing.append(value)
                else:
                    fields[key] = [existing, value]
            else:
                fields[key] = value
        return _sanitize_body(fields)
    if content_type.startswith("application/json"):
        try:
            return _sanitize_body(json.loads(body))
        except ValueError:
            return {"raw_size_bytes": len(body)}
    return {"content_type": content_type, "size_bytes": len(body)}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that logs requests and their response status.

    Logs include method, path, query, redacted headers and form fields,
    response status and duration. Sensitive data is always redacted.
    """

    def __init__(self, app: ASGIApp, enabled: bool = True) -> None:
        super().__init__(app)
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next) -> Response:
        if not self.enabled or request.url.path.startswith(SKIP_PATHS):
            return await call_next(request)

        start_time = datetime.now(UTC)

        request_body = None
        if request.method in ("POST", "PUT", "PATCH"):
            body_bytes = await request.body()
            request_body = _decode_body(body_bytes, request.headers.get("content-type", ""))

        response = await call_next(request)

        duration_ms = (datetime.now(UTC) - start_time).total_seconds() * 1000

        log_entry = {
            "type": "page_request",
            "request_id": get_request_id() or "unknown",
            "user_id": get_user_id() or "anonymous",
            "timestamp": datetime.now(UTC).isoformat(),
            "request": {
                "method": request.method,
                "path": request.url.path,
                "query_params": str(request.query_params) if request.query_params else None,
                "headers": _sanitize_headers(dict(request.headers)),
                "body": request_body,
            },
            "response": {
                "status_code": response.status_code,
                "headers": _sanitize_headers(dict(response.headers)),
            },
            "performance": {
                "duration_ms": round(duration_ms, 2),
            },
        }

        message = json.dumps(log_entry, ensure_ascii=False, default=str)
        if response.status_code >= 500:
            logger.error(message)
        elif response.status_code >= 400:
            logger.warning(message)
        else:
            logger.info(message)

        return response
