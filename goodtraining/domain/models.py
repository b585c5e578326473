"""
Data-transfer shapes returned by the REST backend.

Models accept the backend's camelCase keys, ignore unknown keys and never
enforce more than the display logic needs.
"""

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from goodtraining.domain.enums import ApprovalStatus, UserRole


def parse_list_field(value: Any) -> list[str]:
    """
    Normalize a list-valued supervisor field.

    The backend stores these as JSON text, so a value may arrive as a real
    array or as a JSON-encoded string. Anything else becomes an empty list.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return [str(item) for item in value if item not in (None, "")]
    if isinstance(value, str):
        if not value.strip():
            return []
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            return []
        if isinstance(decoded, list):
            return [str(item) for item in decoded if item not in (None, "")]
    return []


class BackendModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class User(BackendModel):
    id: str | int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role: UserRole = UserRole.TRAINEE


class LoginResult(BackendModel):
    message: str | None = None
    token: str
    user: User


class Supervisor(BackendModel):
    id: int
    user_id: str | int | None = None
    name: str = ""
    gender: str | None = None
    birth_year: int | None = None
    affiliation: str | None = None
    association: str | None = None
    specialization: str | None = None
    summary: str | None = None
    experience: int | None = None
    profile_image_url: str | None = None

    qualifications: list[str] = Field(default_factory=list)
    target_groups: list[str] = Field(default_factory=list)
    concern_types: list[str] = Field(default_factory=list)
    emotion_symptoms: list[str] = Field(default_factory=list)
    special_experiences: list[str] = Field(default_factory=list)
    counseling_methods: list[str] = Field(default_factory=list)
    counseling_regions: list[str] = Field(default_factory=list)

    contact_info: str | None = None
    website: str | None = None
    kakao_id: str | None = None
    phone_number: str | None = None

    can_provide_client_experience: bool | None = None
    client_experience_fee: int | None = None
    participates_in_national_program: bool = False
    # null or false means no extra charge, 0 means free, a number is the amount
    national_program_additional_fee: int | bool | None = None

    is_profile_public: bool = True
    is_visible: bool = True
    approval_status: ApprovalStatus | None = None
    rating: float = 0
    review_count: int = 0

    @field_validator(
        "qualifications",
        "target_groups",
        "concern_types",
        "emotion_symptoms",
        "special_experiences",
        "counseling_methods",
        "counseling_regions",
        mode="before",
    )
    @classmethod
    def parse_lists(cls, v: Any) -> list[str]:
        return parse_list_field(v)

    @field_validator("participates_in_national_program", mode="before")
    @classmethod
    def none_as_false(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("is_profile_public", "is_visible", mode="before")
    @classmethod
    def none_as_true(cls, v: Any) -> Any:
        return True if v is None else v

    @field_validator("rating", "review_count", mode="before")
    @classmethod
    def none_as_zero(cls, v: Any) -> Any:
        return 0 if v is None else v


class PsychologyArticle(BackendModel):
    id: int
    title: str
    content: str = ""
    summary: str = ""
    category: str = "일반"
    author: str | None = None
    read_time: int | None = None
    published_at: datetime | None = None

    @field_validator("summary", "content", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class Report(BackendModel):
    id: int
    reporter_id: str | int | None = None
    supervisor_id: int | None = None
    post_id: int | None = None
    comment_id: int | None = None
    reason: str
    description: str | None = None
    status: str = "pending"
    created_at: datetime | None = None


class AdminStats(BackendModel):
    total_supervisors: int = 0
    pending_approvals: int = 0
    total_reports: int = 0
    monthly_active_users: int = 0
