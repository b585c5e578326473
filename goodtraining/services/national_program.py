"""
National program (전국민 마음투자 지원사업) page content and supervisor lookup.
"""

from dataclasses import dataclass

from goodtraining.domain.catalog import GRADE1_QUALIFICATIONS, GRADE2_QUALIFICATIONS
from goodtraining.domain.models import Supervisor

TOTAL_SESSIONS = 8


@dataclass(frozen=True)
class EligibilityRequirement:
    title: str
    description: str
    documents: str


@dataclass(frozen=True)
class FeeTier:
    income: str
    copay_rate: str
    grade1_fee: str
    grade2_fee: str
    grade1_total: str
    grade2_total: str


ELIGIBILITY_REQUIREMENTS: tuple[EligibilityRequirement, ...] = (
    EligibilityRequirement(
        "정신건강 기관 의뢰",
        "정신건강복지센터, 대학교상담센터, 청소년상담복지센터, Wee센터/Wee 클래스 등에서 "
        "심리상담이 필요하다고 인정하는 자",
        "기관에서 발급하는 의뢰서 (신청일 기준 3개월 이내)",
    ),
    EligibilityRequirement(
        "정신의료기관 진단",
        "정신의료기관 등에서 우울·불안 등으로 인하여 심리상담이 필요하다고 인정하는 자",
        "정신건강의학과 의사, 한방신경정신과 한의사가 발급하는 진단서 또는 소견서 "
        "(신청일 기준 3개월 이내)",
    ),
    EligibilityRequirement(
        "국가 건강검진 결과",
        "국가 건강검진 중 정신건강검사(우울증 선별검사, PHQ-9) 결과에서 중간 정도 이상의 "
        "우울(10점 이상)이 확인된 자",
        "신청일 기준 1년 이내에 실시한 일반건강검진 결과통보서",
    ),
    EligibilityRequirement(
        "자립준비청년 및 보호연장아동",
        "아동복지법에 따른 자립준비청년 및 보호연장아동",
        "보호종료확인서 또는 시설재원증명서/가정위탁보호확인서",
    ),
    EligibilityRequirement(
        "동네의원 마음건강돌봄 연계",
        "동네의원 마음건강돌봄 연계 시범사업을 통해 의뢰된 자",
        "해당 사업 지침 별지 제4호 연계의뢰서 (신청일 기준 3개월 이내)",
    ),
)

FEE_TIERS: tuple[FeeTier, ...] = (
    FeeTier("기준 중위소득 70% 이하", "0%", "80,000원", "70,000원", "640,000원", "560,000원"),
    FeeTier(
        "기준 중위소득 70% 초과 ~ 120% 이하",
        "10%",
        "72,000원",
        "63,000원",
        "576,000원",
        "504,000원",
    ),
    FeeTier(
        "기준 중위소득 120% 초과 ~ 180% 이하",
        "20%",
        "64,000원",
        "56,000원",
        "512,000원",
        "448,000원",
    ),
    FeeTier("기준 중위소득 180% 초과", "30%", "56,000원", "49,000원", "448,000원", "392,000원"),
)

QUALIFICATION_GRADES: dict[str, tuple[str, ...]] = {
    "1급": GRADE1_QUALIFICATIONS,
    "2급": GRADE2_QUALIFICATIONS,
}


def participating(
    supervisors: list[Supervisor], search: str | None = None, region: str | None = None
) -> list[Supervisor]:
    """
    Supervisors taking national program clients, narrowed by a name or
    affiliation search and an optional counseling region.
    """
    needle = (search or "").strip().lower()
    region = (region or "").strip()
    result = []
    for supervisor in supervisors:
        if not supervisor.participates_in_national_program:
            continue
        if needle and not (
            needle in supervisor.name.lower()
            or needle in (supervisor.affiliation or "").lower()
        ):
            continue
        if region and region not in supervisor.counseling_regions:
            continue
        result.append(supervisor)
    return result


def available_regions(supervisors: list[Supervisor]) -> list[str]:
    """Sorted distinct counseling regions across the given supervisors."""
    return sorted({region for s in supervisors for region in s.counseling_regions})
