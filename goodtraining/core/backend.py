"""
HTTP client for the REST backend.

Every page talks to the backend through `BackendClient`. It:
- shares one `httpx.AsyncClient` per process
- guards calls with a circuit breaker
- retries idempotent data fetches once on transport errors and 5xx answers
- turns error answers into domain errors that keep the backend's message
"""

import logging
import time
from typing import Any

import httpx

from goodtraining.core.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError
from goodtraining.core.config import settings
from goodtraining.core.errors import (
    ApprovalPendingError,
    BackendError,
    BackendUnavailableError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    is_approval_pending,
)
from goodtraining.core.observability import get_request_id, metrics

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "요청을 처리하지 못했습니다."
NETWORK_ERROR_MESSAGE = "네트워크 오류가 발생했습니다."
PENDING_APPROVAL_STATUS = "pending_approval"


class _ServerSideError(Exception):
    """A 5xx answer. Counts as a circuit breaker failure and may be retried."""

    def __init__(self, response: httpx.Response):
        self.response = response
        super().__init__(f"backend answered {response.status_code}")


def _message_from(response: httpx.Response) -> tuple[str, dict[str, Any]]:
    try:
        body = response.json()
    except ValueError:
        return DEFAULT_ERROR_MESSAGE, {}
    if not isinstance(body, dict):
        return DEFAULT_ERROR_MESSAGE, {}
    message = body.get("message") or body.get("error") or DEFAULT_ERROR_MESSAGE
    return str(message), body


def error_from_response(response: httpx.Response) -> Exception:
    """
    Map a non-2xx backend answer to a domain error.

    A 403 whose body carries the pending-approval status (or whose message says
    so) becomes ApprovalPendingError so login pages can title it differently.
    """
    message, body = _message_from(response)
    details = {"backend_status": response.status_code}
    status = response.status_code

    if status == 400:
        return ValidationError(message, details)
    if status == 401:
        return UnauthorizedError(message, details)
    if status == 403:
        if body.get("status") == PENDING_APPROVAL_STATUS or is_approval_pending(message):
            return ApprovalPendingError(message, details)
        return ForbiddenError(message, details)
    if status == 404:
        return NotFoundError(message, details)
    return BackendError(message, details, status_code=status)


class BackendClient:
    """
    Thin async wrapper over the REST backend.

    Args:
        http: Shared httpx client, already pointed at the backend base URL
        breaker: Circuit breaker shared by all calls
        retry_count: Extra attempts for calls made with `retry=True`
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        breaker: CircuitBreaker,
        retry_count: int = 1,
    ) -> None:
        self.http = http
        self.breaker = breaker
        self.retry_count = retry_count

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        response = await self.http.request(method, path, **kwargs)
        if response.status_code >= 500:
            raise _ServerSideError(response)
        return response

    async def request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        token: str | None = None,
        params: dict[str, str] | None = None,
        json: Any = None,
        retry: bool = False,
    ) -> Any:
        """
        Call the backend and return the decoded JSON body (None when empty).

        Args:
            method: HTTP method
            path: Path under the backend base URL, e.g. "/api/supervisors"
            operation: Short name used in logs and metrics
            token: Session token, forwarded as a Bearer credential
            params: Query parameters
            json: JSON request body
            retry: Retry once more (per retry_count) on transport errors and 5xx

        Raises:
            BackendUnavailableError: Backend unreachable or circuit open
            GoodTrainingError subclasses: Backend answered with an error
        """
        headers = {"Accept": "application/json"}
        request_id = get_request_id()
        if request_id:
            headers[settings.observability_request_id_header] = request_id
        if token:
            headers["Authorization"] = f"Bearer {token}"

        attempts = 1 + (self.retry_count if retry else 0)
        start = time.time()

        for attempt in range(1, attempts + 1):
            try:
                response = await self.breaker.call_async(
                    self._send, method, path, params=params, json=json, headers=headers
                )
            except CircuitBreakerOpenError as e:
                self._record(operation, "circuit_open", start)
                raise BackendUnavailableError(
                    NETWORK_ERROR_MESSAGE, details={"operation": operation}
                ) from e
            except (httpx.TransportError, _ServerSideError) as e:
                if attempt < attempts:
                    metrics.backend_retries_total.labels(operation=operation).inc()
                    logger.warning(
                        f"Backend call {operation} failed "
                        f"(attempt {attempt}/{attempts}), retrying: {e}",
                        extra={"operation": operation, "path": path},
                    )
                    continue
                if isinstance(e, _ServerSideError):
                    self._record(operation, "server_error", start)
                    raise error_from_response(e.response) from e
                self._record(operation, "unreachable", start)
                logger.error(
                    f"Backend call {operation} failed: {e}",
                    extra={"operation": operation, "path": path},
                )
                raise BackendUnavailableError(
                    NETWORK_ERROR_MESSAGE, details={"operation": operation}
                ) from e

            if response.is_success:
                self._record(operation, "success", start)
                if not response.content:
                    return None
                return response.json()

            self._record(operation, "client_error", start)
            logger.info(
                f"Backend call {operation} answered {response.status_code}",
                extra={"operation": operation, "status_code": response.status_code},
            )
            raise error_from_response(response)

        raise AssertionError("unreachable")

    def _record(self, operation: str, outcome: str, start: float) -> None:
        metrics.backend_requests_total.labels(operation=operation, outcome=outcome).inc()
        metrics.backend_request_duration_seconds.labels(operation=operation).observe(
            time.time() - start
        )

    async def ping(self) -> bool:
        """Whether the backend answers at all (any non-5xx status)."""
        try:
            response = await self.http.get("/api/psychology/articles")
        except httpx.TransportError as e:
            logger.warning(f"Backend ping failed: {e}")
            return False
        return response.status_code < 500


# ============================================================================
# Process-wide client
# ============================================================================

_async_http: httpx.AsyncClient | None = None

_breaker = CircuitBreaker(
    name="backend",
    failure_threshold=settings.backend_circuit_failure_threshold,
    timeout_seconds=settings.backend_circuit_timeout_seconds,
    expected_exception=(httpx.TransportError, _ServerSideError),
)


def get_async_http_client() -> httpx.AsyncClient:
    global _async_http
    if _async_http is None:
        _async_http = httpx.AsyncClient(
            base_url=settings.backend_base_url,
            timeout=httpx.Timeout(settings.backend_timeout_seconds),
        )
    return _async_http


async def close_async_http_client() -> None:
    global _async_http
    if _async_http is not None:
        await _async_http.aclose()
        _async_http = None


def get_circuit_breaker() -> CircuitBreaker:
    return _breaker


def get_backend_client() -> BackendClient:
    """FastAPI dependency returning the process-wide backend client."""
    return BackendClient(
        get_async_http_client(),
        get_circuit_breaker(),
        retry_count=settings.backend_retry_count,
    )
