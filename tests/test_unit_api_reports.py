"""
Tests for reporting a supervisor profile.

Tests cover:
- The report form shown only to logged-in visitors
- Anonymous reports sent to the login page
- Reason checked before any backend call
- POST /api/reports carrying the profile's user id and the session token
- Backend failures flashed back on the profile page
"""

import json

import pytest

from goodtraining.api.routes.supervisors import (
    REPORT_FAILED_TITLE,
    REPORT_INVALID_TITLE,
    REPORT_SENT_DESCRIPTION,
    REPORT_SENT_TITLE,
)
from goodtraining.api.schemas.forms import MSG_REPORT_REASON_REQUIRED
from goodtraining.core.config import settings
from tests.factories import flash_of, supervisor_payload


@pytest.fixture
def trainee_token(client, make_token) -> str:
    token = make_token(user_id=5, email="t@b.com", role="trainee")
    client.cookies.set(settings.auth_cookie_name, token)
    return token


class TestReportForm:
    @pytest.mark.anyio
    async def test_logged_in_visitor_sees_form(self, client, fake_backend, trainee_token):
        fake_backend.on("GET", "/api/supervisors/1", (200, supervisor_payload()))

        response = await client.get("/supervisor/1")

        assert 'action="/reports"' in response.text
        assert "허위 정보" in response.text

    @pytest.mark.anyio
    async def test_anonymous_visitor_sees_login_hint(self, client, fake_backend):
        fake_backend.on("GET", "/api/supervisors/1", (200, supervisor_payload()))

        response = await client.get("/supervisor/1")

        assert 'action="/reports"' not in response.text
        assert "신고하려면" in response.text


class TestReportSubmit:
    @pytest.mark.anyio
    async def test_anonymous_report_goes_to_login(self, client, fake_backend):
        response = await client.post(
            "/reports", data={"supervisor_id": "1", "reason": "허위 정보"}
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        assert fake_backend.requests == []

    @pytest.mark.anyio
    async def test_missing_reason_is_flashed(self, client, fake_backend, trainee_token):
        response = await client.post("/reports", data={"supervisor_id": "1", "reason": ""})

        assert response.status_code == 303
        assert response.headers["location"] == "/supervisor/1"
        flash = flash_of(response)
        assert flash.title == REPORT_INVALID_TITLE
        assert flash.description == MSG_REPORT_REASON_REQUIRED
        assert flash.variant == "destructive"
        assert fake_backend.requests == []

    @pytest.mark.anyio
    async def test_report_is_filed_with_token(self, client, fake_backend, trainee_token):
        fake_backend.on("GET", "/api/supervisors/1", (200, supervisor_payload()))
        fake_backend.on("POST", "/api/reports", (201, {"id": 10}))

        response = await client.post(
            "/reports",
            data={
                "supervisor_id": "1",
                "reason": "허위 정보",
                "description": "자격 정보가 사실과 다릅니다.",
            },
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/supervisor/1"
        flash = flash_of(response)
        assert flash.title == REPORT_SENT_TITLE
        assert flash.description == REPORT_SENT_DESCRIPTION

        (call,) = fake_backend.calls("POST", "/api/reports")
        assert call.headers["Authorization"] == f"Bearer {trainee_token}"
        assert json.loads(call.content) == {
            "reportedUserId": "u-1",
            "reason": "허위 정보",
            "description": "자격 정보가 사실과 다릅니다.",
        }

    @pytest.mark.anyio
    async def test_backend_failure_is_flashed(self, client, fake_backend, trainee_token):
        fake_backend.on("GET", "/api/supervisors/1", (200, supervisor_payload()))
        fake_backend.on("POST", "/api/reports", (500, {"message": "Internal error"}))

        response = await client.post(
            "/reports", data={"supervisor_id": "1", "reason": "스팸/광고"}
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/supervisor/1"
        flash = flash_of(response)
        assert flash.title == REPORT_FAILED_TITLE
        assert flash.variant == "destructive"

    @pytest.mark.anyio
    async def test_malformed_supervisor_id_is_not_found(self, client, fake_backend, trainee_token):
        response = await client.post("/reports", data={"supervisor_id": "x", "reason": "기타"})

        assert response.status_code == 404
        assert fake_backend.requests == []
