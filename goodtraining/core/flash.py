"""
One-shot flash messages ("toasts") carried across a redirect in a cookie.
"""

import base64
import json
import logging
from dataclasses import asdict, dataclass

from fastapi import Request, Response

from goodtraining.core.config import settings

logger = logging.getLogger(__name__)

FLASH_COOKIE_NAME = "flash"
FLASH_MAX_AGE_SECONDS = 60


@dataclass(frozen=True)
class Flash:
    title: str
    description: str = ""
    # "default" or "destructive"
    variant: str = "default"


def _encode(flash: Flash) -> str:
    raw = json.dumps(asdict(flash), ensure_ascii=False).encode("utf-8")
    # "=" padding would force the cookie value into quotes
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _decode(value: str) -> Flash | None:
    try:
        padded = value + "=" * (-len(value) % 4)
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        data = json.loads(raw.decode("utf-8"))
        return Flash(
            title=str(data["title"]),
            description=str(data.get("description", "")),
            variant=str(data.get("variant", "default")),
        )
    except (ValueError, KeyError, TypeError) as e:
        logger.debug(f"Ignoring malformed flash cookie: {e}")
        return None


def set_flash(
    response: Response, title: str, description: str = "", variant: str = "default"
) -> None:
    response.set_cookie(
        FLASH_COOKIE_NAME,
        _encode(Flash(title, description, variant)),
        max_age=FLASH_MAX_AGE_SECONDS,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def read_flash(request: Request) -> Flash | None:
    value = request.cookies.get(FLASH_COOKIE_NAME)
    if not value:
        return None
    return _decode(value)


def consume_flash(request: Request, response: Response) -> None:
    """Drop the flash cookie once the message has been rendered."""
    if FLASH_COOKIE_NAME in request.cookies:
        response.delete_cookie(FLASH_COOKIE_NAME, path="/")
