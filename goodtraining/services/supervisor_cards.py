"""
Display logic for supervisor cards and profile pages.

Turns a `Supervisor` as returned by the backend into ready-to-render labels
so templates contain no fee or rating arithmetic.
"""

from dataclasses import dataclass, field

from goodtraining.domain.enums import Gender
from goodtraining.domain.models import Supervisor

HIGHLIGHT_LIMIT = 3

DEFAULT_AVATARS = {
    Gender.FEMALE.value: "/static/avatars/female.svg",
    Gender.MALE.value: "/static/avatars/male.svg",
}

FREE_LABEL = "무료"
NONE_LABEL = "없음"
HAS_FEE_LABEL = "있음"
NATIONAL_PROGRAM_AVAILABLE = "활용가능"
NATIONAL_PROGRAM_UNAVAILABLE = "활용불가"


def format_won(amount: int) -> str:
    return f"{amount:,}원"


def default_avatar(gender: str | None) -> str:
    # Profiles without a gender get the female avatar
    return DEFAULT_AVATARS.get(gender or "", DEFAULT_AVATARS[Gender.FEMALE.value])


def client_experience_fee_label(fee: int | None) -> str:
    return format_won(fee) if fee else FREE_LABEL


def national_program_fee_badge(fee: int | bool | None) -> str:
    """Short card badge: any falsy additional fee reads as none."""
    return HAS_FEE_LABEL if fee else NONE_LABEL


def national_program_fee_amount(fee: int | bool | None) -> str:
    """
    Profile-page amount. null and false mean no extra charge, 0 means the
    supervisor explicitly waives it.
    """
    if fee is None or fee is False:
        return NONE_LABEL
    if fee == 0:
        return FREE_LABEL
    return format_won(int(fee))


def rating_label(rating: float) -> str | None:
    """Ratings are stored out of 50 and shown out of 5 with one decimal."""
    if rating <= 0:
        return None
    return f"{rating / 10:.1f}"


@dataclass(frozen=True)
class SupervisorCard:
    id: int
    name: str
    avatar_url: str
    affiliation: str | None
    association: str | None
    specialization: str | None
    summary: str | None
    experience: int | None
    highlights: list[str]
    rating: str | None
    review_count: int
    client_experience_fee: str
    client_experience_free: bool
    participates_in_national_program: bool
    national_program_label: str
    national_program_fee_badge: str | None
    national_program_fee_amount: str | None
    counseling_methods: list[str] = field(default_factory=list)
    counseling_regions: list[str] = field(default_factory=list)
    qualifications: list[str] = field(default_factory=list)
    phone_number: str | None = None
    kakao_id: str | None = None
    website: str | None = None
    contact_info: str | None = None

    @property
    def profile_url(self) -> str:
        return f"/supervisor/{self.id}"

    @property
    def has_contact(self) -> bool:
        return any((self.phone_number, self.kakao_id, self.website, self.contact_info))


def build_card(supervisor: Supervisor) -> SupervisorCard:
    highlights = (
        supervisor.target_groups + supervisor.concern_types + supervisor.emotion_symptoms
    )[:HIGHLIGHT_LIMIT]
    participates = supervisor.participates_in_national_program
    additional_fee = supervisor.national_program_additional_fee

    return SupervisorCard(
        id=supervisor.id,
        name=supervisor.name,
        avatar_url=supervisor.profile_image_url or default_avatar(supervisor.gender),
        affiliation=supervisor.affiliation,
        association=supervisor.association,
        specialization=supervisor.specialization,
        summary=supervisor.summary,
        experience=supervisor.experience,
        highlights=highlights,
        rating=rating_label(supervisor.rating),
        review_count=supervisor.review_count,
        client_experience_fee=client_experience_fee_label(supervisor.client_experience_fee),
        client_experience_free=supervisor.client_experience_fee == 0,
        participates_in_national_program=participates,
        national_program_label=(
            NATIONAL_PROGRAM_AVAILABLE if participates else NATIONAL_PROGRAM_UNAVAILABLE
        ),
        national_program_fee_badge=(
            national_program_fee_badge(additional_fee) if participates else None
        ),
        national_program_fee_amount=(
            national_program_fee_amount(additional_fee) if participates else None
        ),
        counseling_methods=supervisor.counseling_methods,
        counseling_regions=supervisor.counseling_regions,
        qualifications=supervisor.qualifications,
        phone_number=supervisor.phone_number,
        kakao_id=supervisor.kakao_id,
        website=supervisor.website,
        contact_info=supervisor.contact_info,
    )


def build_cards(supervisors: list[Supervisor]) -> list[SupervisorCard]:
    return [build_card(supervisor) for supervisor in supervisors]
