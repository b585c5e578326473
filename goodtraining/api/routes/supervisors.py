"""
Supervisor search, profile and national program pages.

Filters live in the query string: every filter control is a link or a GET
form, so changing one reloads "/" with the new state.
"""

import logging

from fastapi import APIRouter, Request, Response

from goodtraining.api.routes.params import parse_id
from goodtraining.api.schemas.filters import BOOLEAN_TAG_LABELS, SupervisorFilters
from goodtraining.api.schemas.forms import REPORT_REASONS, ReportForm
from goodtraining.core.dependencies import Backend, CurrentUser
from goodtraining.core.errors import (
    BackendError,
    BackendUnavailableError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from goodtraining.core.templating import redirect, render
from goodtraining.domain.catalog import ASSOCIATIONS, FACETS, SPECIALIZATIONS
from goodtraining.repos import report_repo, supervisor_repo
from goodtraining.services import national_program
from goodtraining.services.supervisor_cards import build_card, build_cards

logger = logging.getLogger(__name__)

router = APIRouter(tags=["supervisors"])

MSG_LOAD_FAILED = "수퍼바이저 목록을 불러오지 못했습니다."

REPORT_SENT_TITLE = "신고 접수 완료"
REPORT_SENT_DESCRIPTION = "신고가 접수되었습니다. 관리자가 검토 후 조치하겠습니다."
REPORT_FAILED_TITLE = "신고 실패"
REPORT_INVALID_TITLE = "입력 오류"

# Backend answers a report shows as a flash on the profile page
REPORT_ERRORS = (
    ValidationError,
    ForbiddenError,
    NotFoundError,
    BackendError,
    BackendUnavailableError,
)


@router.get("/")
async def home(request: Request, backend: Backend) -> Response:
    filters = SupervisorFilters.from_query(request.query_params)

    load_error = None
    supervisors = []
    try:
        supervisors = await supervisor_repo.list_supervisors(
            backend, filters.to_backend_params()
        )
    except (BackendError, BackendUnavailableError) as e:
        logger.warning(f"Supervisor search failed: {e.message}", extra={"details": e.details})
        load_error = MSG_LOAD_FAILED

    return render(
        request,
        "home.html",
        {
            "filters": filters,
            "tags": filters.active_tags("/"),
            "clear_url": "/",
            "cards": build_cards(supervisors),
            "load_error": load_error,
            "associations": ASSOCIATIONS,
            "specializations": SPECIALIZATIONS,
            "facets": FACETS,
            "boolean_labels": BOOLEAN_TAG_LABELS,
        },
    )


@router.get("/supervisor/{supervisor_id}")
async def supervisor_profile(request: Request, supervisor_id: str, backend: Backend) -> Response:
    supervisor = await supervisor_repo.get_supervisor(backend, parse_id(supervisor_id))
    return render(
        request,
        "supervisor_profile.html",
        {
            "supervisor": supervisor,
            "card": build_card(supervisor),
            "report_reasons": REPORT_REASONS,
        },
    )


@router.post("/reports")
async def report_supervisor(request: Request, backend: Backend, user: CurrentUser) -> Response:
    """
    Report a supervisor profile to the administrators.

    The reported user is looked up from the profile id, and the outcome is a
    flash back on the profile page.
    """
    values = await request.form()
    supervisor_id = parse_id(str(values.get("supervisor_id", "")))
    profile_url = f"/supervisor/{supervisor_id}"

    try:
        form = ReportForm.from_form(values)
    except ValidationError as e:
        return redirect(profile_url, REPORT_INVALID_TITLE, e.message, variant="destructive")

    problems = form.problems()
    if problems:
        return redirect(profile_url, REPORT_INVALID_TITLE, problems[0], variant="destructive")

    try:
        supervisor = await supervisor_repo.get_supervisor(backend, supervisor_id)
        await report_repo.create_report(
            backend, user.token, form.to_backend_payload(supervisor.user_id)
        )
    except REPORT_ERRORS as e:
        logger.info(
            "Report rejected",
            extra={"supervisor_id": supervisor_id, "reason": e.__class__.__name__},
        )
        return redirect(profile_url, REPORT_FAILED_TITLE, e.message, variant="destructive")

    return redirect(profile_url, REPORT_SENT_TITLE, REPORT_SENT_DESCRIPTION)


@router.get("/national-program")
async def national_program_page(
    request: Request, backend: Backend, search: str = "", region: str = ""
) -> Response:
    """
    Program information plus the participating supervisors, narrowed by a
    name/affiliation search and a counseling region.
    """
    base_filters = SupervisorFilters(participates_in_national_program=True)

    load_error = None
    supervisors = []
    try:
        supervisors = await supervisor_repo.list_supervisors(
            backend, base_filters.to_backend_params()
        )
    except (BackendError, BackendUnavailableError) as e:
        logger.warning(f"National program lookup failed: {e.message}")
        load_error = MSG_LOAD_FAILED

    participating = national_program.participating(supervisors, search, region)

    return render(
        request,
        "national_program.html",
        {
            "cards": build_cards(participating),
            "search": search.strip(),
            "region": region.strip(),
            "regions": national_program.available_regions(supervisors),
            "load_error": load_error,
            "requirements": national_program.ELIGIBILITY_REQUIREMENTS,
            "fee_tiers": national_program.FEE_TIERS,
            "qualification_grades": national_program.QUALIFICATION_GRADES,
            "total_sessions": national_program.TOTAL_SESSIONS,
        },
    )
