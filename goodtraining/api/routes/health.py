import hmac
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.responses import JSONResponse

from goodtraining.core.config import settings
from goodtraining.core.dependencies import Backend

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def verify_health_token(x_health_token: Annotated[str | None, Header()] = None) -> None:
    """
    Verify health check token if configured.

    When HEALTH_TOKEN is set, health endpoints require the X-Health-Token
    header. If it is not set, health endpoints remain public.
    """
    expected_token = settings.health_token
    if not expected_token:
        return
    if not x_health_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Health token required",
        )
    if not hmac.compare_digest(x_health_token, expected_token):
        logger.warning(
            "Unauthorized health check attempt",
            extra={
                "security_event": True,
                "event_type": "HEALTH_ACCESS_DENIED",
            },
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid health token",
        )


@router.get("/health", dependencies=[Depends(verify_health_token)])
def health() -> dict:
    """Basic health check endpoint (public unless HEALTH_TOKEN is set)."""
    return {"ok": True}


@router.get("/readyz", dependencies=[Depends(verify_health_token)])
async def readyz(backend: Backend) -> JSONResponse:
    """Readiness check: verifies the REST backend answers.

    Returns:
      - 200 when the backend is reachable
      - 503 when it is not, or its circuit breaker is open
    """
    if backend.breaker.is_open:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"ok": False, "backend": "circuit_open"},
        )

    if await backend.ping():
        return JSONResponse(status_code=status.HTTP_200_OK, content={"ok": True, "backend": "ok"})

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"ok": False, "backend": "unavailable"},
    )
