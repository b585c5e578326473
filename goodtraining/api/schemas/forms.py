"""
Pydantic schemas for the HTML forms: login, registration and password reset.

Forms are parsed leniently so a half-filled form can be re-rendered with what
the user typed. `problems()` returns the user-facing messages, in the order
they are shown, and an empty list when the form may be submitted.
"""

from typing import Any, ClassVar, Self, get_args, get_origin

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import FormData

from goodtraining.core.errors import ValidationError
from goodtraining.domain.enums import Gender, UserRole

MIN_PASSWORD_LENGTH = 8

MSG_LOGIN_REQUIRED = "이메일과 비밀번호를 입력해주세요."
MSG_FIRST_NAME_REQUIRED = "이름을 입력해주세요."
MSG_LAST_NAME_REQUIRED = "성을 입력해주세요."
MSG_EMAIL_REQUIRED = "이메일을 입력해주세요."
MSG_EMAIL_INVALID = "올바른 이메일 주소를 입력해주세요."
MSG_PASSWORD_REQUIRED = "비밀번호를 입력해주세요."
MSG_PASSWORD_TOO_SHORT = "비밀번호는 8자 이상이어야 합니다."
MSG_PASSWORD_MISMATCH = "비밀번호가 일치하지 않습니다."
MSG_TERMS_REQUIRED = "이용약관에 동의해주세요."
MSG_PRIVACY_REQUIRED = "개인정보처리방침에 동의해주세요."
MSG_TRAINEE_CONTACT_REQUIRED = "성별과 연락처는 필수 입력 항목입니다."
MSG_RESET_FIELDS_REQUIRED = "모든 필드를 입력해주세요."
MSG_RESET_LINK_INVALID = "유효하지 않은 재설정 링크입니다."
MSG_INVALID_INPUT = "입력값을 확인해주세요."


def _is_list_field(annotation: Any) -> bool:
    if get_origin(annotation) is list:
        return True
    return any(get_origin(arg) is list for arg in get_args(annotation))


def _email_problem(email: str) -> str | None:
    if not email.strip():
        return MSG_EMAIL_REQUIRED
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return MSG_EMAIL_INVALID
    return None


def _password_problems(password: str, confirm_password: str) -> list[str]:
    problems = []
    if not password:
        problems.append(MSG_PASSWORD_REQUIRED)
    elif len(password) < MIN_PASSWORD_LENGTH:
        problems.append(MSG_PASSWORD_TOO_SHORT)
    if password != confirm_password:
        problems.append(MSG_PASSWORD_MISMATCH)
    return problems


class FormModel(BaseModel):
    """Base for schemas filled from an urlencoded or multipart form."""

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_form(cls, form: FormData) -> Self:
        """
        Build the schema from submitted form data.

        List fields collect every value sent under their name (checkbox groups).
        Unchecked checkboxes are simply absent and fall back to their defaults.
        """
        data: dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            if _is_list_field(field.annotation):
                values = [v for v in form.getlist(name) if isinstance(v, str) and v.strip()]
                data[name] = [v.strip() for v in values]
            elif name in form:
                value = form.get(name)
                if isinstance(value, str):
                    data[name] = value
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
            raise ValidationError(MSG_INVALID_INPUT, details={"fields": fields}) from e

    def problems(self) -> list[str]:
        return []


# ============================================================================
# Login
# ============================================================================


class LoginForm(FormModel):
    email: str = ""
    password: str = ""

    def problems(self) -> list[str]:
        if not self.email.strip() or not self.password:
            return [MSG_LOGIN_REQUIRED]
        return []


# ============================================================================
# Password reset
# ============================================================================


class ForgotPasswordForm(FormModel):
    email: str = ""

    def problems(self) -> list[str]:
        problem = _email_problem(self.email)
        return [problem] if problem else []


class ResetPasswordForm(FormModel):
    token: str = ""
    password: str = ""
    confirm_password: str = ""

    def problems(self) -> list[str]:
        if not self.token:
            return [MSG_RESET_LINK_INVALID]
        if not self.password or not self.confirm_password:
            return [MSG_RESET_FIELDS_REQUIRED]
        if self.password != self.confirm_password:
            return [MSG_PASSWORD_MISMATCH]
        if len(self.password) < MIN_PASSWORD_LENGTH:
            return [MSG_PASSWORD_TOO_SHORT]
        return []


# ============================================================================
# Registration
# ============================================================================


class RegistrationForm(FormModel):
    """Account fields shared by trainee and supervisor registration."""

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    gender: Gender | None = None
    phone: str = ""
    birth_year: int | None = Field(default=None, ge=1900, le=2100)
    agree_terms: bool = False
    agree_privacy: bool = False

    role: ClassVar[UserRole] = UserRole.TRAINEE

    @field_validator("gender", "birth_year", mode="before")
    @classmethod
    def blank_as_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def _account_problems(self) -> list[str]:
        problems = []
        if not self.first_name.strip():
            problems.append(MSG_FIRST_NAME_REQUIRED)
        if not self.last_name.strip():
            problems.append(MSG_LAST_NAME_REQUIRED)
        email_problem = _email_problem(self.email)
        if email_problem:
            problems.append(email_problem)
        problems.extend(_password_problems(self.password, self.confirm_password))
        return problems

    def _consent_problems(self) -> list[str]:
        problems = []
        if not self.agree_terms:
            problems.append(MSG_TERMS_REQUIRED)
        if not self.agree_privacy:
            problems.append(MSG_PRIVACY_REQUIRED)
        return problems

    def problems(self) -> list[str]:
        return self._account_problems() + self._consent_problems()

    def _account_payload(self) -> dict[str, Any]:
        return {
            "email": self.email.strip(),
            "password": self.password,
            "firstName": self.first_name.strip(),
            "lastName": self.last_name.strip(),
            "role": self.role.value,
            "gender": self.gender.value if self.gender else None,
            "phone": self.phone.strip() or None,
            "birthYear": self.birth_year,
        }

    def to_backend_payload(self) -> dict[str, Any]:
        return self._account_payload()


class TraineeRegistrationForm(RegistrationForm):
    role: ClassVar[UserRole] = UserRole.TRAINEE

    education: str = ""
    university: str = ""
    current_status: str = ""
    target_certification: str = ""
    counseling_experience: str = ""
    interests: str = ""

    def problems(self) -> list[str]:
        problems = self._account_problems()
        if self.gender is None or not self.phone.strip():
            problems.append(MSG_TRAINEE_CONTACT_REQUIRED)
        return problems + self._consent_problems()

    def to_backend_payload(self) -> dict[str, Any]:
        payload = self._account_payload()
        payload.update(
            {
                "education": self.education.strip() or None,
                "university": self.university.strip() or None,
                "currentStatus": self.current_status.strip() or None,
                "targetCertification": self.target_certification.strip() or None,
                "counselingExperience": self.counseling_experience.strip() or None,
                "interests": self.interests.strip() or None,
            }
        )
        return payload


class SupervisorProfileForm(FormModel):
    """
    The public part of a supervisor profile.

    Filled at sign-up and edited later from /my-page.
    """

    # Profile shown on the supervisor card
    profile_image_url: str = ""
    affiliation: str = ""
    association: str = ""
    summary: str = Field(default="", max_length=2000)
    specialization: str = ""
    experience: int | None = Field(default=None, ge=0, le=80)

    qualifications: list[str] = Field(default_factory=list)
    target_groups: list[str] = Field(default_factory=list)
    concern_types: list[str] = Field(default_factory=list)
    emotion_symptoms: list[str] = Field(default_factory=list)
    special_experiences: list[str] = Field(default_factory=list)
    counseling_methods: list[str] = Field(default_factory=list)
    counseling_regions: list[str] = Field(default_factory=list)

    # Contact
    phone_number: str = ""
    kakao_id: str = ""
    website: str = ""
    contact_info: str = ""

    # Fees and national program
    can_provide_client_experience: bool = False
    client_experience_fee: int | None = Field(default=None, ge=0)
    participates_in_national_program: bool = False
    national_program_additional_fee: int | None = Field(default=None, ge=0)

    is_profile_public: bool = True

    @field_validator(
        "experience", "client_experience_fee", "national_program_additional_fee", mode="before"
    )
    @classmethod
    def blank_number_as_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.replace(",", "").strip()
            return v or None
        return v

    @classmethod
    def from_form(cls, form: FormData) -> Self:
        # A browser sends nothing for an unchecked box, so a rendered form
        # marks the publicity checkbox as present with a hidden field.
        instance = super().from_form(form)
        if "is_profile_public_present" in form and "is_profile_public" not in form:
            instance.is_profile_public = False
        return instance

    def to_profile_payload(self, blank: str | None = None) -> dict[str, Any]:
        """
        camelCase profile fields for the backend.

        `blank` replaces empty text fields. Sign-up sends None; an edit sends ""
        because the backend drops null values and would keep the old text.
        """

        def text(value: str) -> str | None:
            return value.strip() or blank

        return {
            "profileImageUrl": text(self.profile_image_url),
            "affiliation": text(self.affiliation),
            "association": text(self.association),
            "summary": text(self.summary),
            "specialization": text(self.specialization),
            "experience": self.experience,
            "qualifications": self.qualifications,
            "targetGroups": self.target_groups,
            "concernTypes": self.concern_types,
            "emotionSymptoms": self.emotion_symptoms,
            "specialExperiences": self.special_experiences,
            "counselingMethods": self.counseling_methods,
            "counselingRegions": self.counseling_regions,
            "phoneNumber": text(self.phone_number),
            "kakaoId": text(self.kakao_id),
            "website": text(self.website),
            "contactInfo": text(self.contact_info),
            "canProvideClientExperience": self.can_provide_client_experience,
            "clientExperienceFee": self.client_experience_fee or 0,
            "participatesInNationalProgram": self.participates_in_national_program,
            "nationalProgramAdditionalFee": (
                self.national_program_additional_fee
                if self.participates_in_national_program
                else None
            ),
            "isProfilePublic": self.is_profile_public,
        }


class SupervisorRegistrationForm(RegistrationForm, SupervisorProfileForm):
    role: ClassVar[UserRole] = UserRole.SUPERVISOR

    def to_backend_payload(self) -> dict[str, Any]:
        payload = self._account_payload()
        payload["name"] = f"{self.last_name.strip()}{self.first_name.strip()}"
        payload.update(self.to_profile_payload())
        return payload


# ============================================================================
# Reports
# ============================================================================

REPORT_REASONS: tuple[str, ...] = (
    "부적절한 내용",
    "허위 정보",
    "스팸/광고",
    "욕설/비방",
    "개인정보 노출",
    "기타",
)

MSG_REPORT_REASON_REQUIRED = "신고 사유를 선택해주세요."


class ReportForm(FormModel):
    reason: str = ""
    description: str = Field(default="", max_length=1000)

    def problems(self) -> list[str]:
        if self.reason.strip() not in REPORT_REASONS:
            return [MSG_REPORT_REASON_REQUIRED]
        return []

    def to_backend_payload(self, reported_user_id: str | int | None) -> dict[str, Any]:
        return {
            "reportedUserId": reported_user_id,
            "reason": self.reason.strip(),
            "description": self.description.strip() or None,
        }
