"""
Login, logout and password reset pages.

Forms post back to the same URL. Validation problems and backend rejections
re-render the form with the message; success redirects with a flash.
"""

import logging

from fastapi import APIRouter, Request, Response, status
from starlette.datastructures import FormData

from goodtraining.api.schemas.forms import (
    MSG_RESET_LINK_INVALID,
    ForgotPasswordForm,
    LoginForm,
    ResetPasswordForm,
)
from goodtraining.core.dependencies import Backend, OptionalUser
from goodtraining.core.errors import (
    ApprovalPendingError,
    BackendError,
    BackendUnavailableError,
    ForbiddenError,
    GoodTrainingError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    get_status_code,
    is_approval_pending,
)
from goodtraining.core.observability import metrics
from goodtraining.core.session import clear_session_cookie, set_session_cookie
from goodtraining.core.templating import redirect, render
from goodtraining.repos import auth_repo

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

LOGIN_FAILED_TITLE = "로그인 실패"
APPROVAL_PENDING_TITLE = "승인 대기 중"
LOGIN_SUCCESS_TITLE = "로그인 성공"
LOGIN_SUCCESS_DESCRIPTION = "환영합니다!"
LOGOUT_TITLE = "로그아웃되었습니다."
RESET_DONE_TITLE = "비밀번호 변경 완료"
RESET_FAILED_TITLE = "비밀번호 변경 실패"
FORGOT_FAILED_TITLE = "요청 실패"

# Backend answers that mean "the credentials were not accepted"
REJECTED_LOGIN_ERRORS = (ValidationError, UnauthorizedError, ForbiddenError, NotFoundError)

# Everything a login form shows inline instead of the error page
LOGIN_FORM_ERRORS = (*REJECTED_LOGIN_ERRORS, BackendError, BackendUnavailableError)

# Backend answers the password reset forms show inline
RESET_FORM_ERRORS = (ValidationError, NotFoundError, BackendError, BackendUnavailableError)


def login_failure_title(error: GoodTrainingError) -> str:
    """Pending supervisors get their own title; everything else is a plain failure."""
    if isinstance(error, ApprovalPendingError) or is_approval_pending(error.message):
        return APPROVAL_PENDING_TITLE
    return LOGIN_FAILED_TITLE


def login_outcome(error: GoodTrainingError) -> str:
    if login_failure_title(error) == APPROVAL_PENDING_TITLE:
        return "pending_approval"
    if isinstance(error, BackendUnavailableError):
        return "backend_unavailable"
    if isinstance(error, BackendError):
        return "backend_error"
    return "rejected"


def _login_error_page(
    request: Request,
    template: str,
    values: FormData,
    title: str,
    message: str,
    status_code: int,
) -> Response:
    return render(
        request,
        template,
        {"values": values, "error_title": title, "errors": [message]},
        status_code=status_code,
    )


# ============================================================================
# Login / logout
# ============================================================================


@router.get("/login")
async def login_page(request: Request, user: OptionalUser) -> Response:
    if user is not None:
        return redirect("/")
    return render(request, "auth/login.html", {"values": FormData()})


@router.post("/login")
async def login_submit(request: Request, backend: Backend) -> Response:
    """
    Log in with email and password.

    A supervisor still waiting for approval gets the backend's message under
    the "승인 대기 중" title.
    """
    values = await request.form()
    form = LoginForm.from_form(values)

    problems = form.problems()
    if problems:
        metrics.login_attempts_total.labels(surface="user", outcome="invalid_form").inc()
        return _login_error_page(
            request,
            "auth/login.html",
            values,
            LOGIN_FAILED_TITLE,
            problems[0],
            status.HTTP_400_BAD_REQUEST,
        )

    try:
        result = await auth_repo.login(backend, form.email.strip(), form.password)
    except LOGIN_FORM_ERRORS as e:
        metrics.login_attempts_total.labels(surface="user", outcome=login_outcome(e)).inc()
        logger.info(
            "Login rejected",
            extra={"reason": e.__class__.__name__, "status_code": get_status_code(e)},
        )
        return _login_error_page(
            request,
            "auth/login.html",
            values,
            login_failure_title(e),
            e.message,
            get_status_code(e),
        )

    metrics.login_attempts_total.labels(surface="user", outcome="success").inc()
    response = redirect("/", LOGIN_SUCCESS_TITLE, LOGIN_SUCCESS_DESCRIPTION)
    set_session_cookie(response, result.token)
    return response


@router.post("/logout")
async def logout(backend: Backend, user: OptionalUser) -> Response:
    """Clear the session. Telling the backend is best effort."""
    if user is not None:
        try:
            await auth_repo.logout(backend, user.token)
        except GoodTrainingError as e:
            logger.warning(f"Backend logout failed: {e.message}", extra={"user_id": user.id})

    response = redirect("/", LOGOUT_TITLE)
    clear_session_cookie(response)
    return response


# ============================================================================
# Password reset
# ============================================================================


@router.get("/forgot-password")
async def forgot_password_page(request: Request) -> Response:
    return render(request, "auth/forgot_password.html", {"values": FormData()})


@router.post("/forgot-password")
async def forgot_password_submit(request: Request, backend: Backend) -> Response:
    values = await request.form()
    form = ForgotPasswordForm.from_form(values)

    problems = form.problems()
    if problems:
        return render(
            request,
            "auth/forgot_password.html",
            {"values": values, "error_title": FORGOT_FAILED_TITLE, "errors": problems},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        message = await auth_repo.forgot_password(backend, form.email.strip())
    except RESET_FORM_ERRORS as e:
        return render(
            request,
            "auth/forgot_password.html",
            {"values": values, "error_title": FORGOT_FAILED_TITLE, "errors": [e.message]},
            status_code=get_status_code(e),
        )

    return render(request, "auth/forgot_password.html", {"values": values, "sent_message": message})


@router.get("/reset-password")
async def reset_password_page(request: Request, token: str = "") -> Response:
    token = token.strip()
    if not token:
        return render(
            request,
            "auth/reset_password.html",
            {"token": "", "link_error": MSG_RESET_LINK_INVALID},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    return render(request, "auth/reset_password.html", {"token": token})


@router.post("/reset-password")
async def reset_password_submit(request: Request, backend: Backend) -> Response:
    """
    Set a new password.

    The reset token travels in a hidden field. Backend rejections (invalid,
    used or expired link) are shown as the backend words them.
    """
    form = ResetPasswordForm.from_form(await request.form())
    token = form.token.strip()

    if not token:
        return render(
            request,
            "auth/reset_password.html",
            {"token": "", "link_error": MSG_RESET_LINK_INVALID},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    problems = form.problems()
    if problems:
        return render(
            request,
            "auth/reset_password.html",
            {"token": token, "error_title": RESET_FAILED_TITLE, "errors": problems},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        message = await auth_repo.reset_password(backend, token, form.password)
    except RESET_FORM_ERRORS as e:
        return render(
            request,
            "auth/reset_password.html",
            {"token": token, "error_title": RESET_FAILED_TITLE, "errors": [e.message]},
            status_code=get_status_code(e),
        )

    return redirect("/login", RESET_DONE_TITLE, message)
