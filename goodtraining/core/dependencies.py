"""
FastAPI dependency injection utilities.

Provides the backend client and session-based access checks used by the
page routes.

Usage:
    @router.get("/admin")
    async def dashboard(request: Request, backend: Backend, admin: AdminUser):
        ...
"""

from typing import Annotated

from fastapi import Depends

from goodtraining.core.backend import BackendClient, get_backend_client
from goodtraining.core.errors import ForbiddenError, UnauthorizedError
from goodtraining.core.session import SessionUser, get_session_user

MSG_LOGIN_REQUIRED = "로그인이 필요합니다."
MSG_ADMIN_REQUIRED = "관리자 권한이 없습니다."

# Type alias for the backend client dependency
Backend = Annotated[BackendClient, Depends(get_backend_client)]

# Logged-in user, or None for anonymous visitors
OptionalUser = Annotated[SessionUser | None, Depends(get_session_user)]


def require_user(user: OptionalUser) -> SessionUser:
    """
    Require any logged-in user.

    Raises:
        UnauthorizedError: Nobody is logged in or the session expired
    """
    if user is None:
        raise UnauthorizedError(MSG_LOGIN_REQUIRED)
    return user


CurrentUser = Annotated[SessionUser, Depends(require_user)]


def require_admin(user: CurrentUser) -> SessionUser:
    """
    Require an admin session.

    Raises:
        UnauthorizedError: Nobody is logged in
        ForbiddenError: The logged-in user is not an admin
    """
    if not user.is_admin:
        raise ForbiddenError(MSG_ADMIN_REQUIRED, details={"role": user.role})
    return user


AdminUser = Annotated[SessionUser, Depends(require_admin)]
