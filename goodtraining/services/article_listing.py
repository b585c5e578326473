"""
Search, category filtering and badge counts for the psychology articles page.
"""

from dataclasses import dataclass

from goodtraining.domain.catalog import ARTICLE_CATEGORIES, category_color
from goodtraining.domain.models import PsychologyArticle

ALL = "all"


@dataclass(frozen=True)
class CategoryBadge:
    value: str
    label: str
    color: str
    count: int
    selected: bool


@dataclass(frozen=True)
class ArticleListing:
    """
    Articles after filtering, plus the category badges.

    Badge counts are taken over every article so a badge tells how many
    articles selecting it would show. `total` backs the "전체" badge.
    """

    articles: list[PsychologyArticle]
    total: int
    categories: list[CategoryBadge]
    search: str
    category: str

    @property
    def count(self) -> int:
        return len(self.articles)


def normalize_category(category: str | None) -> str:
    category = (category or "").strip()
    return "" if category == ALL else category


def matches_search(article: PsychologyArticle, search: str) -> bool:
    if not search:
        return True
    needle = search.lower()
    return needle in article.title.lower() or needle in article.summary.lower()


def filter_articles(
    articles: list[PsychologyArticle], search: str | None = None, category: str | None = None
) -> list[PsychologyArticle]:
    """Case-insensitive search over title and summary; blank or "all" category keeps all."""
    search = (search or "").strip()
    category = normalize_category(category)
    return [
        article
        for article in articles
        if matches_search(article, search) and (not category or article.category == category)
    ]


def category_counts(articles: list[PsychologyArticle]) -> dict[str, int]:
    counts = {info.value: 0 for info in ARTICLE_CATEGORIES}
    for article in articles:
        counts[article.category] = counts.get(article.category, 0) + 1
    return counts


def build_listing(
    articles: list[PsychologyArticle], search: str | None = None, category: str | None = None
) -> ArticleListing:
    selected = normalize_category(category)
    counts = category_counts(articles)
    badges = [
        CategoryBadge(
            value=info.value,
            label=info.label,
            color=category_color(info.value),
            count=counts[info.value],
            selected=info.value == selected,
        )
        for info in ARTICLE_CATEGORIES
    ]
    return ArticleListing(
        articles=filter_articles(articles, search, selected),
        total=len(articles),
        categories=badges,
        search=(search or "").strip(),
        category=selected,
    )
