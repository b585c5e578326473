"""
Tests for the REST backend client.

Tests cover:
- Single retry for data fetches, none for writes
- Error answers mapped to domain errors with the backend's message
- Approval-pending detection on 403
- Circuit breaker integration
"""

import httpx
import pytest

from goodtraining.core.backend import BackendClient, error_from_response
from goodtraining.core.circuit_breaker import CircuitBreakerState
from goodtraining.core.errors import (
    ApprovalPendingError,
    BackendError,
    BackendUnavailableError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from goodtraining.repos import article_repo, auth_repo, supervisor_repo
from tests.factories import BACKEND_URL, article_payload, make_breaker, supervisor_payload


def _client(fake_backend, **breaker_kwargs) -> BackendClient:
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(fake_backend.handler), base_url=BACKEND_URL
    )
    return BackendClient(http, make_breaker(**breaker_kwargs), retry_count=1)


class TestRetry:
    """Data fetches get exactly one extra attempt."""

    @pytest.mark.anyio
    async def test_should_retry_list_once_after_server_error(self, fake_backend, backend_client):
        fake_backend.on("GET", "/api/supervisors", (500, None), (200, [supervisor_payload()]))

        supervisors = await supervisor_repo.list_supervisors(backend_client)

        assert [s.id for s in supervisors] == [1]
        assert len(fake_backend.calls("GET", "/api/supervisors")) == 2

    @pytest.mark.anyio
    async def test_should_retry_once_after_connect_error(self, fake_backend, backend_client):
        fake_backend.on(
            "GET",
            "/api/psychology/articles",
            httpx.ConnectError("refused"),
            (200, [article_payload()]),
        )

        articles = await article_repo.list_articles(backend_client)

        assert len(articles) == 1

    @pytest.mark.anyio
    async def test_should_give_up_after_second_failure(self, fake_backend, backend_client):
        fake_backend.on("GET", "/api/supervisors", httpx.ConnectError("refused"))

        with pytest.raises(BackendUnavailableError):
            await supervisor_repo.list_supervisors(backend_client)

        assert len(fake_backend.calls("GET", "/api/supervisors")) == 2

    @pytest.mark.anyio
    async def test_should_surface_server_error_after_retry(self, fake_backend, backend_client):
        fake_backend.on("GET", "/api/supervisors", (502, {"message": "upstream down"}))

        with pytest.raises(BackendError) as exc_info:
            await supervisor_repo.list_supervisors(backend_client)

        assert exc_info.value.status_code == 502
        assert exc_info.value.message == "upstream down"

    @pytest.mark.anyio
    async def test_should_not_retry_login(self, fake_backend, backend_client):
        fake_backend.on("POST", "/api/auth/login", (500, None))

        with pytest.raises(BackendError):
            await auth_repo.login(backend_client, "a@b.com", "password123")

        assert len(fake_backend.calls("POST", "/api/auth/login")) == 1

    @pytest.mark.anyio
    async def test_should_not_retry_client_errors(self, fake_backend, backend_client):
        fake_backend.on("GET", "/api/supervisors/9", (404, {"message": "없음"}))

        with pytest.raises(NotFoundError):
            await supervisor_repo.get_supervisor(backend_client, 9)

        assert len(fake_backend.calls("GET", "/api/supervisors/9")) == 1


class TestRequestShape:
    @pytest.mark.anyio
    async def test_should_forward_query_and_token(self, fake_backend, backend_client):
        fake_backend.on("GET", "/api/supervisors", (200, []))
        fake_backend.on("GET", "/api/admin/stats", (200, {"totalSupervisors": 3}))

        await supervisor_repo.list_supervisors(backend_client, {"search": "김"})
        await backend_client.request("GET", "/api/admin/stats", operation="t", token="tok")

        (list_call,) = fake_backend.calls("GET", "/api/supervisors")
        assert list_call.url.params["search"] == "김"
        (stats_call,) = fake_backend.calls("GET", "/api/admin/stats")
        assert stats_call.headers["Authorization"] == "Bearer tok"

    @pytest.mark.anyio
    async def test_empty_body_returns_none(self, fake_backend, backend_client):
        fake_backend.on("POST", "/api/auth/logout", (204, None))

        assert await auth_repo.logout(backend_client, "tok") is None

    @pytest.mark.anyio
    async def test_forgot_password_falls_back_to_default_message(
        self, fake_backend, backend_client
    ):
        fake_backend.on("POST", "/api/auth/forgot-password", (200, {}))

        message = await auth_repo.forgot_password(backend_client, "a@b.com")

        assert message == auth_repo.FORGOT_PASSWORD_DEFAULT_MESSAGE

    @pytest.mark.anyio
    async def test_article_bad_id_reads_as_not_found(self, fake_backend, backend_client):
        fake_backend.on("GET", "/api/psychology/articles/0", (400, {"message": "Invalid id"}))

        with pytest.raises(NotFoundError):
            await article_repo.get_article(backend_client, 0)


class TestErrorMapping:
    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "status_code,error_type",
        [
            (400, ValidationError),
            (401, UnauthorizedError),
            (403, ForbiddenError),
            (404, NotFoundError),
            (409, BackendError),
            (500, BackendError),
        ],
    )
    async def test_status_to_error(self, status_code, error_type):
        error = error_from_response(httpx.Response(status_code, json={"message": "msg"}))

        assert type(error) is error_type
        assert error.message == "msg"

    @pytest.mark.anyio
    async def test_error_field_and_default_message(self):
        assert error_from_response(httpx.Response(400, json={"error": "bad"})).message == "bad"
        assert error_from_response(httpx.Response(400, text="oops")).message
        assert error_from_response(httpx.Response(400, json=["x"])).message

    @pytest.mark.anyio
    async def test_pending_status_body_is_approval_pending(self):
        response = httpx.Response(
            403, json={"message": "Account not approved", "status": "pending_approval"}
        )

        assert isinstance(error_from_response(response), ApprovalPendingError)

    @pytest.mark.anyio
    async def test_pending_message_is_approval_pending(self):
        response = httpx.Response(403, json={"message": "관리자 승인 대기 중입니다."})

        assert isinstance(error_from_response(response), ApprovalPendingError)

    @pytest.mark.anyio
    async def test_login_pending_keeps_backend_message(self, fake_backend, backend_client):
        pending = (403, {"message": "승인 대기 중인 계정입니다."})
        fake_backend.on("POST", "/api/auth/login", pending)

        with pytest.raises(ApprovalPendingError) as exc_info:
            await auth_repo.login(backend_client, "s@b.com", "password123")

        assert exc_info.value.message == "승인 대기 중인 계정입니다."


class TestCircuitBreakerIntegration:
    @pytest.mark.anyio
    async def test_breaker_opens_and_fails_fast(self, fake_backend):
        client = _client(fake_backend, failure_threshold=2)
        fake_backend.on("GET", "/api/supervisors", httpx.ConnectError("refused"))

        with pytest.raises(BackendUnavailableError):
            await supervisor_repo.list_supervisors(client)
        assert client.breaker.state == CircuitBreakerState.OPEN

        with pytest.raises(BackendUnavailableError):
            await supervisor_repo.list_supervisors(client)
        assert len(fake_backend.calls("GET", "/api/supervisors")) == 2

    @pytest.mark.anyio
    async def test_client_errors_do_not_trip_breaker(self, fake_backend):
        client = _client(fake_backend, failure_threshold=1)
        fake_backend.on("POST", "/api/auth/login", (400, {"message": "wrong"}))

        with pytest.raises(ValidationError):
            await auth_repo.login(client, "a@b.com", "password123")

        assert client.breaker.state == CircuitBreakerState.CLOSED

    @pytest.mark.anyio
    async def test_ping(self, fake_backend, backend_client):
        assert await backend_client.ping() is True

        fake_backend.on("GET", "/api/psychology/articles", httpx.ConnectError("refused"))
        assert await backend_client.ping() is False
