"""
Repository functions for psychology articles.
"""

import logging

from goodtraining.core.backend import BackendClient
from goodtraining.core.errors import NotFoundError, ValidationError
from goodtraining.domain.models import PsychologyArticle
from goodtraining.repos.common import parse_many, parse_one

logger = logging.getLogger(__name__)


async def list_articles(backend: BackendClient) -> list[PsychologyArticle]:
    """Retrieve every published article."""
    data = await backend.request(
        "GET",
        "/api/psychology/articles",
        operation="articles.list",
        retry=True,
    )
    articles = parse_many(PsychologyArticle, data, "articles.list")
    logger.info(f"Retrieved {len(articles)} psychology articles")
    return articles


async def get_article(backend: BackendClient, article_id: int) -> PsychologyArticle:
    """
    Retrieve a single article.

    Raises:
        NotFoundError: If the article does not exist. The backend's 400 for a
            malformed id is reported the same way.
    """
    try:
        data = await backend.request(
            "GET",
            f"/api/psychology/articles/{article_id}",
            operation="articles.get",
            retry=True,
        )
    except ValidationError as e:
        raise NotFoundError(e.message, details={"article_id": article_id}) from e
    return parse_one(PsychologyArticle, data, "articles.get")
