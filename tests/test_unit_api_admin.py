"""
Tests for the admin login and dashboard.

Tests cover:
- Anonymous visitors redirected to the admin login
- Non-admin sessions refused
- Admin login keeping the session only for admin accounts
- Dashboard actions forwarding the admin token
"""

import json

import pytest

from goodtraining.api.routes.admin import (
    ADMIN_LOGIN_FAILED_TITLE,
    ADMIN_LOGIN_SUCCESS_TITLE,
    APPROVED_TITLE,
    MSG_INVALID_REPORT_STATUS,
    REPORT_UPDATED_TITLE,
    VISIBILITY_TITLE,
)
from goodtraining.api.routes.auth import APPROVAL_PENDING_TITLE
from goodtraining.core.config import settings
from goodtraining.core.dependencies import MSG_ADMIN_REQUIRED, MSG_LOGIN_REQUIRED
from tests.factories import cookie_cleared, flash_of, supervisor_payload


@pytest.fixture
def admin_token(client, make_token) -> str:
    token = make_token(user_id=99, email="admin@goodtraining.kr", role="admin")
    client.cookies.set(settings.auth_cookie_name, token)
    return token


def _login_answer(role: str) -> tuple[int, dict]:
    return (
        200,
        {"token": "issued-token", "user": {"id": 5, "email": "x@b.com", "role": role}},
    )


class TestAdminAccess:
    @pytest.mark.anyio
    async def test_anonymous_visitor_goes_to_admin_login(self, client):
        response = await client.get("/admin")

        assert response.status_code == 303
        assert response.headers["location"] == "/admin/login"
        flash = flash_of(response)
        assert flash.title == MSG_LOGIN_REQUIRED
        assert flash.variant == "destructive"

    @pytest.mark.anyio
    async def test_non_admin_session_is_forbidden(self, client, fake_backend, make_token):
        client.cookies.set(settings.auth_cookie_name, make_token(role="supervisor"))

        response = await client.get("/admin")

        assert response.status_code == 403
        assert MSG_ADMIN_REQUIRED in response.text
        assert fake_backend.requests == []

    @pytest.mark.anyio
    async def test_expired_session_is_cleared(self, client, make_token):
        client.cookies.set(settings.auth_cookie_name, make_token(role="admin", expires_in=-1))

        response = await client.get("/admin")

        assert response.status_code == 303
        assert cookie_cleared(response, settings.auth_cookie_name)

    @pytest.mark.anyio
    async def test_actions_require_admin(self, client, fake_backend):
        response = await client.post("/admin/supervisors/1/approve")

        assert response.status_code == 303
        assert response.headers["location"] == "/admin/login"
        assert fake_backend.requests == []


class TestAdminLogin:
    @pytest.mark.anyio
    async def test_admin_account_logs_in(self, client, fake_backend):
        fake_backend.on("POST", "/api/auth/login", _login_answer("admin"))

        response = await client.post(
            "/admin/login", data={"email": "admin@goodtraining.kr", "password": "password123"}
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/admin"
        assert response.cookies.get(settings.auth_cookie_name) == "issued-token"
        assert flash_of(response).title == ADMIN_LOGIN_SUCCESS_TITLE

    @pytest.mark.anyio
    async def test_non_admin_account_is_refused_without_cookie(self, client, fake_backend):
        fake_backend.on("POST", "/api/auth/login", _login_answer("trainee"))

        response = await client.post(
            "/admin/login", data={"email": "x@b.com", "password": "password123"}
        )

        assert response.status_code == 403
        assert ADMIN_LOGIN_FAILED_TITLE in response.text
        assert MSG_ADMIN_REQUIRED in response.text
        assert settings.auth_cookie_name not in response.cookies

    @pytest.mark.anyio
    async def test_wrong_password(self, client, fake_backend):
        fake_backend.on("POST", "/api/auth/login", (400, {"message": "잘못된 비밀번호입니다."}))

        response = await client.post(
            "/admin/login", data={"email": "admin@goodtraining.kr", "password": "nope-nope"}
        )

        assert response.status_code == 400
        assert ADMIN_LOGIN_FAILED_TITLE in response.text
        assert "잘못된 비밀번호입니다." in response.text

    @pytest.mark.anyio
    async def test_pending_account_keeps_pending_title(self, client, fake_backend):
        fake_backend.on("POST", "/api/auth/login", (403, {"message": "승인 대기 중입니다."}))

        response = await client.post(
            "/admin/login", data={"email": "s@b.com", "password": "password123"}
        )

        assert response.status_code == 403
        assert APPROVAL_PENDING_TITLE in response.text

    @pytest.mark.anyio
    async def test_logged_in_admin_skips_login_page(self, client, admin_token):
        response = await client.get("/admin/login")

        assert response.status_code == 303
        assert response.headers["location"] == "/admin"


class TestDashboard:
    @pytest.mark.anyio
    async def test_dashboard_renders_stats_pending_and_reports(
        self, client, fake_backend, admin_token
    ):
        fake_backend.on(
            "GET",
            "/api/admin/stats",
            (200, {"totalSupervisors": 42, "pendingApprovals": 1, "totalReports": 2}),
        )
        fake_backend.on(
            "GET",
            "/api/admin/pending-supervisors",
            (200, [supervisor_payload(id=7, name="최*민", approvalStatus="pending")]),
        )
        fake_backend.on(
            "GET",
            "/api/admin/reports",
            (200, [{"id": 3, "reason": "허위 정보", "status": "reviewed"}]),
        )

        response = await client.get("/admin")

        assert response.status_code == 200
        assert "<strong>42</strong>" in response.text
        assert "최*민" in response.text
        assert 'action="/admin/supervisors/7/approve"' in response.text
        assert "허위 정보" in response.text
        assert 'value="reviewed" selected' in response.text
        (stats_call,) = fake_backend.calls("GET", "/api/admin/stats")
        assert stats_call.headers["Authorization"] == f"Bearer {admin_token}"

    @pytest.mark.anyio
    async def test_approve(self, client, fake_backend, admin_token):
        fake_backend.on("PUT", "/api/admin/supervisors/7/approve", (200, {"message": "ok"}))

        response = await client.post("/admin/supervisors/7/approve")

        assert response.status_code == 303
        assert response.headers["location"] == "/admin"
        assert flash_of(response).title == APPROVED_TITLE
        assert len(fake_backend.calls("PUT", "/api/admin/supervisors/7/approve")) == 1

    @pytest.mark.anyio
    async def test_hide_supervisor(self, client, fake_backend, admin_token):
        fake_backend.on("PUT", "/api/admin/supervisors/7/visibility", (200, {}))

        response = await client.post(
            "/admin/supervisors/7/visibility", data={"is_visible": "false"}
        )

        assert flash_of(response).title == VISIBILITY_TITLE
        (call,) = fake_backend.calls("PUT", "/api/admin/supervisors/7/visibility")
        assert json.loads(call.content) == {"isVisible": False}

    @pytest.mark.anyio
    async def test_update_report_status(self, client, fake_backend, admin_token):
        fake_backend.on("PUT", "/api/admin/reports/3", (200, {}))

        response = await client.post("/admin/reports/3/status", data={"status": "completed"})

        flash = flash_of(response)
        assert flash.title == REPORT_UPDATED_TITLE
        assert "완료" in flash.description
        (call,) = fake_backend.calls("PUT", "/api/admin/reports/3")
        assert json.loads(call.content) == {"status": "completed"}

    @pytest.mark.anyio
    async def test_unknown_report_status_is_rejected(self, client, fake_backend, admin_token):
        response = await client.post("/admin/reports/3/status", data={"status": "deleted"})

        assert response.status_code == 400
        assert MSG_INVALID_REPORT_STATUS in response.text
        assert fake_backend.requests == []

    @pytest.mark.anyio
    async def test_backend_refusal_renders_error_page(self, client, fake_backend, admin_token):
        fake_backend.on(
            "PUT", "/api/admin/supervisors/7/approve", (403, {"message": "Admin access required"})
        )

        response = await client.post("/admin/supervisors/7/approve")

        assert response.status_code == 403
        assert "Admin access required" in response.text
