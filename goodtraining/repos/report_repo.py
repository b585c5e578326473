"""
Repository functions for user reports.

Reports are created by logged-in users and handled in the admin dashboard
(see admin_repo).
"""

import logging
from typing import Any

from goodtraining.core.backend import BackendClient

logger = logging.getLogger(__name__)


async def create_report(backend: BackendClient, token: str, payload: dict[str, Any]) -> None:
    await backend.request(
        "POST", "/api/reports", operation="reports.create", token=token, json=payload
    )
    logger.info(
        "Report filed",
        extra={"reported_user_id": payload.get("reportedUserId"), "reason": payload.get("reason")},
    )
