"""
Jinja2 rendering helpers shared by the page routes.

`render()` adds the logged-in user and any pending flash message to every
template context, and drops the flash cookie once it has been shown.
"""

from datetime import datetime
from pathlib import Path
from typing import Any

from fastapi import Request, status
from fastapi.responses import RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from pydantic.alias_generators import to_snake

from goodtraining.core.flash import consume_flash, read_flash, set_flash
from goodtraining.core.session import get_session_user
from goodtraining.services.supervisor_cards import format_won

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

SITE_NAME = "좋은 수련, 좋은 상담자"


def format_date_ko(value: datetime | None) -> str:
    """Date in the ko-KR short form, e.g. 2024. 3. 5."""
    if value is None:
        return ""
    return f"{value.year}. {value.month}. {value.day}."


templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["won"] = format_won
templates.env.filters["date_ko"] = format_date_ko
# Facet keys are camelCase; registration form fields are snake_case
templates.env.filters["snake_case"] = to_snake
templates.env.globals["site_name"] = SITE_NAME


def render(
    request: Request,
    name: str,
    context: dict[str, Any] | None = None,
    status_code: int = status.HTTP_200_OK,
) -> Response:
    page_context = {
        "session_user": get_session_user(request),
        "flash": read_flash(request),
        **(context or {}),
    }
    response = templates.TemplateResponse(request, name, page_context, status_code=status_code)
    consume_flash(request, response)
    return response


def redirect(
    url: str,
    flash_title: str | None = None,
    flash_description: str = "",
    variant: str = "default",
) -> RedirectResponse:
    """303 redirect, optionally carrying a flash message to the next page."""
    response = RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)
    if flash_title:
        set_flash(response, flash_title, flash_description, variant)
    return response
