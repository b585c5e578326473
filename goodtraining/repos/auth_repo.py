"""
Repository functions for the backend's auth endpoints.

Each function wraps one REST call and returns a parsed model or the backend's
user-facing message.
"""

import logging
from typing import Any

from goodtraining.core.backend import BackendClient
from goodtraining.domain.models import LoginResult
from goodtraining.repos.common import parse_one

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_DEFAULT_MESSAGE = "비밀번호 재설정 링크를 발송했습니다."
RESET_PASSWORD_DEFAULT_MESSAGE = "비밀번호가 성공적으로 변경되었습니다."


async def login(backend: BackendClient, email: str, password: str) -> LoginResult:
    """
    Exchange credentials for a session token.

    Raises:
        ValidationError: Wrong email or password
        ApprovalPendingError: Supervisor account not approved yet
    """
    data = await backend.request(
        "POST",
        "/api/auth/login",
        operation="auth.login",
        json={"email": email, "password": password},
    )
    result = parse_one(LoginResult, data, "auth.login")
    logger.info(f"User logged in: {result.user.id}", extra={"role": result.user.role.value})
    return result


async def register(backend: BackendClient, payload: dict[str, Any]) -> dict[str, Any]:
    """
    Create a trainee or supervisor account.

    Raises:
        ValidationError: Duplicate email or rejected fields
    """
    data = await backend.request(
        "POST",
        "/api/auth/register",
        operation="auth.register",
        json=payload,
    )
    logger.info(f"Registered new {payload.get('role')} account")
    return data or {}


async def logout(backend: BackendClient, token: str) -> None:
    await backend.request("POST", "/api/auth/logout", operation="auth.logout", token=token)


async def forgot_password(backend: BackendClient, email: str) -> str:
    """Ask the backend to email a reset link. Returns the message to show."""
    data = await backend.request(
        "POST",
        "/api/auth/forgot-password",
        operation="auth.forgot_password",
        json={"email": email},
    )
    return (data or {}).get("message") or FORGOT_PASSWORD_DEFAULT_MESSAGE


async def reset_password(backend: BackendClient, token: str, password: str) -> str:
    """
    Set a new password with a reset token. Returns the message to show.

    Raises:
        ValidationError: Invalid, used or expired reset link
    """
    data = await backend.request(
        "POST",
        "/api/auth/reset-password",
        operation="auth.reset_password",
        json={"token": token, "password": password},
    )
    logger.info("Password reset completed")
    return (data or {}).get("message") or RESET_PASSWORD_DEFAULT_MESSAGE
