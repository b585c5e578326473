"""
Fixed option lists shown in search filters and registration forms.

Multi-choice facets are keyed by the camelCase name the backend uses for the
matching supervisor field and query parameter.
"""

from dataclasses import dataclass

from goodtraining.domain.enums import ArticleCategory


@dataclass(frozen=True)
class Facet:
    key: str
    title: str
    options: tuple[str, ...]


ASSOCIATIONS: tuple[str, ...] = (
    "한국상담심리학회",
    "한국임상심리학회",
    "한국상담학회",
    "한국심리학회",
    "한국정신분석학회",
    "한국가족치료학회",
    "한국인지행동치료학회",
)

SPECIALIZATIONS: tuple[str, ...] = (
    "아동/청소년",
    "성인 개인상담",
    "부부/가족상담",
    "트라우마",
    "우울/불안",
    "성격장애",
    "중독상담",
    "진로상담",
    "학습상담",
)

# National program grades. Grade 1 and grade 2 providers bill different fees.
GRADE1_QUALIFICATIONS: tuple[str, ...] = (
    "정신건강전문요원 1급",
    "청소년상담사 1급",
    "전문상담교사 1급",
    "임상심리전문가",
    "상담심리사 1급",
    "전문상담사 1급",
)

GRADE2_QUALIFICATIONS: tuple[str, ...] = (
    "정신건강전문요원 2급",
    "청소년상담사 2급",
    "전문상담교사 2급",
    "임상심리사 1급",
    "상담심리사 2급",
    "전문상담사 2급",
)

FACETS: tuple[Facet, ...] = (
    Facet("qualifications", "학회 및 자격", GRADE1_QUALIFICATIONS + GRADE2_QUALIFICATIONS),
    Facet(
        "targetGroups",
        "대상별",
        ("아동", "청소년", "대학생", "성인", "노인", "부부", "가족", "집단"),
    ),
    Facet(
        "concernTypes",
        "고민상황별",
        ("대인관계", "진로/취업", "학업", "직장", "연애/결혼", "가족갈등", "양육", "자기이해"),
    ),
    Facet(
        "emotionSymptoms",
        "감정과 증상별",
        ("우울", "불안", "공황", "분노", "무기력", "트라우마", "강박", "섭식문제", "수면문제"),
    ),
    Facet(
        "specialExperiences",
        "특수 경험별",
        ("상실/애도", "자해/자살", "폭력피해", "중독", "성소수자", "다문화", "군/경찰/소방"),
    ),
    Facet(
        "counselingMethods",
        "상담 방식",
        ("대면상담", "화상상담", "전화상담", "채팅상담"),
    ),
)

FACET_KEYS: tuple[str, ...] = tuple(facet.key for facet in FACETS)

COUNSELING_REGIONS: tuple[str, ...] = (
    "서울",
    "경기",
    "인천",
    "강원",
    "대전",
    "세종",
    "충북",
    "충남",
    "광주",
    "전북",
    "전남",
    "대구",
    "경북",
    "부산",
    "울산",
    "경남",
    "제주",
    "온라인",
)


@dataclass(frozen=True)
class CategoryInfo:
    value: str
    label: str
    color: str


ARTICLE_CATEGORIES: tuple[CategoryInfo, ...] = (
    CategoryInfo(ArticleCategory.RESEARCH_TRENDS.value, "연구 동향", "blue"),
    CategoryInfo(ArticleCategory.THERAPY.value, "치료법", "green"),
    CategoryInfo(ArticleCategory.COUNSELING_TECHNIQUES.value, "상담 기법", "purple"),
    CategoryInfo(ArticleCategory.GENERAL.value, "일반", "gray"),
    CategoryInfo(ArticleCategory.IN_DEPTH.value, "상세 분석", "orange"),
)


def category_color(category: str) -> str:
    """Badge color for an article category; unknown categories are gray."""
    for info in ARTICLE_CATEGORIES:
        if info.value == category:
            return info.color
    return "gray"
