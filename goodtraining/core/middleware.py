"""Request size limiting middleware."""

import logging
from collections.abc import Callable

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

TOO_LARGE_MESSAGE = "요청 크기가 허용 범위를 초과했습니다."


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Reject request bodies above a size limit.

    Checks both the Content-Length header and the actual body, so a missing
    or falsified header cannot bypass the limit.
    """

    def __init__(self, app, max_size_mb: int = 1):
        super().__init__(app)
        self.max_size_bytes = max_size_mb * 1024 * 1024

    def _too_large(self, request: Request, size: int, source: str) -> Response:
        logger.warning(
            f"Request size {size} bytes ({source}) exceeds limit {self.max_size_bytes} bytes",
            extra={"path": request.url.path},
        )
        return Response(
            content=TOO_LARGE_MESSAGE,
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            media_type="text/plain; charset=utf-8",
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            size = int(content_length)
            if size > self.max_size_bytes:
                return self._too_large(request, size, "from header")

        if request.method in ("POST", "PUT", "PATCH"):
            body = await request.body()
            if len(body) > self.max_size_bytes:
                return self._too_large(request, len(body), "actual")

        return await call_next(request)
