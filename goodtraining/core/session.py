"""
Session handling for the backend-issued auth token.

The backend signs a JWT carrying `{id, email, role}` and the web app keeps it
in an httpOnly cookie. Claims are read here to decide what to show; every
protected call still forwards the token so the backend makes the final call.

When BACKEND_JWT_SECRET is configured the signature is verified, otherwise
the claims are only decoded.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any

from fastapi import Request, Response
from jose import JWTError, jwt

from goodtraining.core.config import settings
from goodtraining.core.observability import set_user_id
from goodtraining.domain.enums import UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: str | None
    role: UserRole | None
    token: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_supervisor(self) -> bool:
        return self.role == UserRole.SUPERVISOR


def _decode_claims(token: str) -> dict[str, Any] | None:
    try:
        if settings.backend_jwt_secret:
            return jwt.decode(
                token,
                settings.backend_jwt_secret,
                algorithms=[settings.backend_jwt_algorithm],
                options={"verify_aud": False},
            )
        claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        logger.info(f"Discarding unreadable session token: {e}")
        return None

    exp = claims.get("exp")
    if isinstance(exp, int | float) and exp < time.time():
        logger.info("Discarding expired session token")
        return None
    return claims


def session_user_from_token(token: str | None) -> SessionUser | None:
    """Build the session user from a token, or None if it is unusable."""
    if not token:
        return None
    claims = _decode_claims(token)
    if claims is None:
        return None

    user_id = claims.get("id") or claims.get("sub")
    if not user_id:
        return None

    try:
        role = UserRole(claims.get("role"))
    except ValueError:
        role = None

    return SessionUser(id=str(user_id), email=claims.get("email"), role=role, token=token)


def get_session_user(request: Request) -> SessionUser | None:
    """
    FastAPI dependency returning the logged-in user, if any.

    The result is cached on request.state so templates and handlers agree.
    """
    if hasattr(request.state, "session_user"):
        return request.state.session_user

    user = session_user_from_token(request.cookies.get(settings.auth_cookie_name))
    request.state.session_user = user
    if user is not None:
        set_user_id(user.id)
    return user


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.auth_cookie_name,
        token,
        max_age=settings.auth_cookie_max_age_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        settings.auth_cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )
