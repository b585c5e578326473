"""
Psychology article list and detail pages.
"""

import logging

from fastapi import APIRouter, Request, Response

from goodtraining.api.routes.params import parse_id
from goodtraining.core.dependencies import Backend
from goodtraining.core.errors import BackendError, BackendUnavailableError
from goodtraining.core.templating import render
from goodtraining.domain.catalog import category_color
from goodtraining.repos import article_repo
from goodtraining.services.article_listing import build_listing

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/psychology", tags=["articles"])

MSG_LOAD_FAILED = "아티클을 불러오지 못했습니다."


@router.get("")
async def article_list(
    request: Request, backend: Backend, search: str = "", category: str = ""
) -> Response:
    """
    Article list with search and category badges.

    Badge counts cover every article; the result count is the filtered list.
    """
    load_error = None
    articles = []
    try:
        articles = await article_repo.list_articles(backend)
    except (BackendError, BackendUnavailableError) as e:
        logger.warning(f"Article list failed: {e.message}")
        load_error = MSG_LOAD_FAILED

    return render(
        request,
        "psychology/list.html",
        {
            "listing": build_listing(articles, search, category),
            "category_color": category_color,
            "load_error": load_error,
        },
    )


@router.get("/{article_id}")
async def article_detail(request: Request, article_id: str, backend: Backend) -> Response:
    article = await article_repo.get_article(backend, parse_id(article_id))
    return render(
        request,
        "psychology/detail.html",
        {"article": article, "color": category_color(article.category)},
    )
