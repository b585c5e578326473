"""
Trainee and supervisor sign-up pages.
"""

import logging

from fastapi import APIRouter, Request, Response, status
from starlette.datastructures import FormData

from goodtraining.api.schemas.forms import (
    RegistrationForm,
    SupervisorRegistrationForm,
    TraineeRegistrationForm,
)
from goodtraining.core.dependencies import Backend
from goodtraining.core.errors import (
    BackendError,
    BackendUnavailableError,
    ValidationError,
    get_status_code,
)
from goodtraining.core.templating import redirect, render
from goodtraining.domain.catalog import (
    ASSOCIATIONS,
    COUNSELING_REGIONS,
    FACETS,
    SPECIALIZATIONS,
)
from goodtraining.domain.enums import Gender
from goodtraining.repos import auth_repo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/register", tags=["registration"])

REGISTER_FAILED_TITLE = "회원가입 실패"
TRAINEE_SUCCESS_TITLE = "회원가입 성공"
TRAINEE_SUCCESS_DESCRIPTION = "수련생 계정이 성공적으로 생성되었습니다. 로그인해주세요."
SUPERVISOR_SUCCESS_TITLE = "회원가입 완료"
SUPERVISOR_SUCCESS_DESCRIPTION = (
    "수퍼바이저 계정이 성공적으로 생성되었습니다. 승인을 기다려주세요."
)

GENDER_LABELS = {Gender.FEMALE.value: "여성", Gender.MALE.value: "남성"}


def profile_form_context(values: FormData) -> dict:
    return {
        "values": values,
        "genders": GENDER_LABELS,
        "associations": ASSOCIATIONS,
        "specializations": SPECIALIZATIONS,
        "facets": FACETS,
        "regions": COUNSELING_REGIONS,
    }


async def _register(
    request: Request,
    backend: Backend,
    form_class: type[RegistrationForm],
    template: str,
    success_title: str,
    success_description: str,
) -> Response:
    """
    Shared POST flow: parse, collect every problem, then call the backend.

    All problems are shown together, in form order.
    """
    values = await request.form()

    def failure(errors: list[str], status_code: int) -> Response:
        context = profile_form_context(values)
        context.update({"error_title": REGISTER_FAILED_TITLE, "errors": errors})
        return render(request, template, context, status_code=status_code)

    try:
        form = form_class.from_form(values)
    except ValidationError as e:
        return failure([e.message], status.HTTP_400_BAD_REQUEST)

    problems = form.problems()
    if problems:
        return failure(problems, status.HTTP_400_BAD_REQUEST)

    try:
        await auth_repo.register(backend, form.to_backend_payload())
    except (ValidationError, BackendError, BackendUnavailableError) as e:
        return failure([e.message], get_status_code(e))

    return redirect("/login", success_title, success_description)


@router.get("")
async def choose_role(request: Request) -> Response:
    return render(request, "register/choose.html")


@router.get("/trainee")
async def trainee_page(request: Request) -> Response:
    return render(request, "register/trainee.html", profile_form_context(FormData()))


@router.post("/trainee")
async def trainee_submit(request: Request, backend: Backend) -> Response:
    return await _register(
        request,
        backend,
        TraineeRegistrationForm,
        "register/trainee.html",
        TRAINEE_SUCCESS_TITLE,
        TRAINEE_SUCCESS_DESCRIPTION,
    )


@router.get("/supervisor")
async def supervisor_page(request: Request) -> Response:
    return render(request, "register/supervisor.html", profile_form_context(FormData()))


@router.post("/supervisor")
async def supervisor_submit(request: Request, backend: Backend) -> Response:
    return await _register(
        request,
        backend,
        SupervisorRegistrationForm,
        "register/supervisor.html",
        SUPERVISOR_SUCCESS_TITLE,
        SUPERVISOR_SUCCESS_DESCRIPTION,
    )
