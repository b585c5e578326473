"""
My page: a logged-in supervisor edits their own public profile.

The form reuses the sign-up profile fields. The profile id always comes from
the backend's answer for the session, never from the submitted form.
"""

import logging

from fastapi import APIRouter, Request, Response, status
from starlette.datastructures import FormData

from goodtraining.api.routes.registration import profile_form_context
from goodtraining.api.schemas.forms import SupervisorProfileForm
from goodtraining.core.dependencies import Backend, CurrentUser
from goodtraining.core.errors import (
    BackendError,
    BackendUnavailableError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    get_status_code,
)
from goodtraining.core.templating import redirect, render
from goodtraining.domain.models import Supervisor
from goodtraining.repos import supervisor_repo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/my-page", tags=["my-page"])

PROFILE_SAVED_TITLE = "프로필 수정 완료"
PROFILE_SAVED_DESCRIPTION = "프로필 정보가 저장되었습니다."
UPDATE_FAILED_TITLE = "업데이트 실패"
PUBLICITY_LABEL = "프로필을 공개합니다"

MSG_SUPERVISOR_ONLY = "수퍼바이저 계정만 프로필을 수정할 수 있습니다."
MSG_NO_PROFILE = "등록된 수퍼바이저 프로필이 없습니다."

# Backend answers the edit form shows inline
UPDATE_FORM_ERRORS = (
    ValidationError,
    ForbiddenError,
    NotFoundError,
    BackendError,
    BackendUnavailableError,
)

PROFILE_TEXT_FIELDS = (
    "profile_image_url",
    "affiliation",
    "association",
    "summary",
    "specialization",
    "phone_number",
    "kakao_id",
    "website",
    "contact_info",
)

PROFILE_LIST_FIELDS = (
    "qualifications",
    "target_groups",
    "concern_types",
    "emotion_symptoms",
    "special_experiences",
    "counseling_methods",
    "counseling_regions",
)


def profile_form_values(supervisor: Supervisor) -> FormData:
    """The stored profile as the form data the edit page is filled with."""
    items: list[tuple[str, str]] = []
    for name in PROFILE_TEXT_FIELDS:
        items.append((name, getattr(supervisor, name) or ""))
    for name in PROFILE_LIST_FIELDS:
        items.extend((name, value) for value in getattr(supervisor, name))

    if supervisor.experience is not None:
        items.append(("experience", str(supervisor.experience)))
    if supervisor.client_experience_fee is not None:
        items.append(("client_experience_fee", str(supervisor.client_experience_fee)))

    # false and null both mean "no extra charge" and leave the box empty
    fee = supervisor.national_program_additional_fee
    if fee is not None and not isinstance(fee, bool):
        items.append(("national_program_additional_fee", str(fee)))

    if supervisor.can_provide_client_experience:
        items.append(("can_provide_client_experience", "true"))
    if supervisor.participates_in_national_program:
        items.append(("participates_in_national_program", "true"))

    items.append(("is_profile_public_present", "1"))
    if supervisor.is_profile_public:
        items.append(("is_profile_public", "true"))
    return FormData(items)


def _page(
    request: Request,
    values: FormData,
    supervisor: Supervisor,
    errors: list[str] | None = None,
    status_code: int = status.HTTP_200_OK,
) -> Response:
    context = profile_form_context(values)
    context.update({"supervisor": supervisor, "publicity_label": PUBLICITY_LABEL})
    if errors:
        context.update({"error_title": UPDATE_FAILED_TITLE, "errors": errors})
    return render(request, "my_page.html", context, status_code=status_code)


def _notice(request: Request, message: str) -> Response:
    return render(request, "my_page.html", {"notice": message})


@router.get("")
async def my_page(request: Request, backend: Backend, user: CurrentUser) -> Response:
    if not user.is_supervisor:
        return _notice(request, MSG_SUPERVISOR_ONLY)

    supervisor = await supervisor_repo.get_my_supervisor(backend, user.token)
    if supervisor is None:
        return _notice(request, MSG_NO_PROFILE)

    return _page(request, profile_form_values(supervisor), supervisor)


@router.post("")
async def update_profile(request: Request, backend: Backend, user: CurrentUser) -> Response:
    """
    Save the edited profile.

    Emptied text fields are sent as "" so the backend clears them.
    """
    if not user.is_supervisor:
        raise ForbiddenError(MSG_SUPERVISOR_ONLY, details={"role": user.role})

    supervisor = await supervisor_repo.get_my_supervisor(backend, user.token)
    if supervisor is None:
        raise NotFoundError(MSG_NO_PROFILE)

    values = await request.form()
    try:
        form = SupervisorProfileForm.from_form(values)
    except ValidationError as e:
        return _page(request, values, supervisor, [e.message], status.HTTP_400_BAD_REQUEST)

    try:
        await supervisor_repo.update_supervisor(
            backend, user.token, supervisor.id, form.to_profile_payload(blank="")
        )
    except UPDATE_FORM_ERRORS as e:
        logger.info(
            "Profile update rejected",
            extra={"supervisor_id": supervisor.id, "reason": e.__class__.__name__},
        )
        return _page(request, values, supervisor, [e.message], get_status_code(e))

    return redirect("/my-page", PROFILE_SAVED_TITLE, PROFILE_SAVED_DESCRIPTION)
