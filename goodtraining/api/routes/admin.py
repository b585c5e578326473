"""
Admin login and dashboard.

The admin login uses the regular backend login and only keeps the session
when the returned account is an admin. Dashboard actions are plain form posts
that redirect back to /admin with a flash.
"""

import logging

from fastapi import APIRouter, Request, Response, status
from starlette.datastructures import FormData

from goodtraining.api.routes.auth import (
    APPROVAL_PENDING_TITLE,
    LOGIN_FORM_ERRORS,
    login_failure_title,
    login_outcome,
)
from goodtraining.api.routes.params import parse_id
from goodtraining.api.schemas.forms import LoginForm
from goodtraining.core.dependencies import MSG_ADMIN_REQUIRED, AdminUser, Backend, OptionalUser
from goodtraining.core.errors import ValidationError, get_status_code
from goodtraining.core.observability import metrics
from goodtraining.core.session import set_session_cookie
from goodtraining.core.templating import redirect, render
from goodtraining.domain.enums import ReportStatus, UserRole
from goodtraining.repos import admin_repo, auth_repo
from goodtraining.services.supervisor_cards import build_cards

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

ADMIN_LOGIN_FAILED_TITLE = "관리자 로그인 실패"
ADMIN_LOGIN_SUCCESS_TITLE = "관리자 로그인 성공"
ADMIN_LOGIN_SUCCESS_DESCRIPTION = "관리자 대시보드로 이동합니다."

APPROVED_TITLE = "승인 완료"
VISIBILITY_TITLE = "노출 설정 변경"
REPORT_UPDATED_TITLE = "신고 상태 변경"

REPORT_STATUS_LABELS = {
    ReportStatus.PENDING.value: "대기",
    ReportStatus.REVIEWED.value: "검토중",
    ReportStatus.COMPLETED.value: "완료",
}

MSG_INVALID_REPORT_STATUS = "알 수 없는 신고 상태입니다."


def _parse_bool(value: str | None) -> bool:
    return (value or "").strip().lower() in ("true", "1", "on")


def _parse_report_status(value: str | None) -> ReportStatus:
    try:
        return ReportStatus((value or "").strip())
    except ValueError as e:
        raise ValidationError(MSG_INVALID_REPORT_STATUS, details={"status": value}) from e


# ============================================================================
# Admin login
# ============================================================================


@router.get("/login")
async def admin_login_page(request: Request, user: OptionalUser) -> Response:
    if user is not None and user.is_admin:
        return redirect("/admin")
    return render(request, "admin/login.html", {"values": FormData()})


@router.post("/login")
async def admin_login_submit(request: Request, backend: Backend) -> Response:
    """
    Log in through the backend and keep the session only for admin accounts.

    A non-admin account gets "관리자 권한이 없습니다." and no cookie.
    """
    values = await request.form()
    form = LoginForm.from_form(values)

    def failure(title: str, message: str, status_code: int) -> Response:
        return render(
            request,
            "admin/login.html",
            {"values": values, "error_title": title, "errors": [message]},
            status_code=status_code,
        )

    problems = form.problems()
    if problems:
        metrics.login_attempts_total.labels(surface="admin", outcome="invalid_form").inc()
        return failure(ADMIN_LOGIN_FAILED_TITLE, problems[0], status.HTTP_400_BAD_REQUEST)

    try:
        result = await auth_repo.login(backend, form.email.strip(), form.password)
    except LOGIN_FORM_ERRORS as e:
        metrics.login_attempts_total.labels(surface="admin", outcome=login_outcome(e)).inc()
        title = login_failure_title(e)
        if title != APPROVAL_PENDING_TITLE:
            title = ADMIN_LOGIN_FAILED_TITLE
        return failure(title, e.message, get_status_code(e))

    if result.user.role != UserRole.ADMIN:
        metrics.login_attempts_total.labels(surface="admin", outcome="not_admin").inc()
        logger.warning(
            "Non-admin account tried the admin login",
            extra={
                "security_event": True,
                "event_type": "ADMIN_LOGIN_DENIED",
                "role": result.user.role.value,
            },
        )
        return failure(ADMIN_LOGIN_FAILED_TITLE, MSG_ADMIN_REQUIRED, status.HTTP_403_FORBIDDEN)

    metrics.login_attempts_total.labels(surface="admin", outcome="success").inc()
    response = redirect("/admin", ADMIN_LOGIN_SUCCESS_TITLE, ADMIN_LOGIN_SUCCESS_DESCRIPTION)
    set_session_cookie(response, result.token)
    return response


# ============================================================================
# Dashboard
# ============================================================================


@router.get("")
async def dashboard(request: Request, backend: Backend, admin: AdminUser) -> Response:
    stats = await admin_repo.get_stats(backend, admin.token)
    pending = await admin_repo.list_pending_supervisors(backend, admin.token)
    reports = await admin_repo.list_reports(backend, admin.token)

    return render(
        request,
        "admin/dashboard.html",
        {
            "stats": stats,
            "pending_cards": build_cards(pending),
            "reports": reports,
            "report_statuses": REPORT_STATUS_LABELS,
        },
    )


@router.post("/supervisors/{supervisor_id}/approve")
async def approve_supervisor(supervisor_id: str, backend: Backend, admin: AdminUser) -> Response:
    await admin_repo.approve_supervisor(backend, admin.token, parse_id(supervisor_id))
    return redirect("/admin", APPROVED_TITLE, "수퍼바이저 계정이 승인되었습니다.")


@router.post("/supervisors/{supervisor_id}/visibility")
async def change_visibility(
    request: Request, supervisor_id: str, backend: Backend, admin: AdminUser
) -> Response:
    form = await request.form()
    is_visible = _parse_bool(form.get("is_visible"))

    await admin_repo.set_supervisor_visibility(
        backend, admin.token, parse_id(supervisor_id), is_visible
    )
    description = "프로필이 노출됩니다." if is_visible else "프로필이 숨겨졌습니다."
    return redirect("/admin", VISIBILITY_TITLE, description)


@router.post("/reports/{report_id}/status")
async def change_report_status(
    request: Request, report_id: str, backend: Backend, admin: AdminUser
) -> Response:
    form = await request.form()
    report_status = _parse_report_status(form.get("status"))

    await admin_repo.update_report_status(backend, admin.token, parse_id(report_id), report_status)
    return redirect(
        "/admin",
        REPORT_UPDATED_TITLE,
        f"신고가 '{REPORT_STATUS_LABELS[report_status.value]}' 상태로 변경되었습니다.",
    )
