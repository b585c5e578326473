"""
Repository functions for supervisor profiles.
"""

import logging
from typing import Any

from goodtraining.core.backend import BackendClient
from goodtraining.domain.models import Supervisor
from goodtraining.repos.common import parse_many, parse_one

logger = logging.getLogger(__name__)


async def list_supervisors(
    backend: BackendClient, params: dict[str, str] | None = None
) -> list[Supervisor]:
    """
    Retrieve approved, visible supervisors matching the given query.

    Args:
        backend: Backend client
        params: Query object built by SupervisorFilters.to_backend_params()

    Returns:
        Supervisors in the backend's order (highest rating first)
    """
    data = await backend.request(
        "GET",
        "/api/supervisors",
        operation="supervisors.list",
        params=params or None,
        retry=True,
    )
    supervisors = parse_many(Supervisor, data, "supervisors.list")
    logger.info(f"Retrieved {len(supervisors)} supervisors", extra={"query": params or {}})
    return supervisors


async def get_supervisor(backend: BackendClient, supervisor_id: int) -> Supervisor:
    """
    Retrieve one supervisor profile.

    Raises:
        NotFoundError: If the supervisor does not exist or is hidden
    """
    data = await backend.request(
        "GET",
        f"/api/supervisors/{supervisor_id}",
        operation="supervisors.get",
        retry=True,
    )
    return parse_one(Supervisor, data, "supervisors.get")


async def get_my_supervisor(backend: BackendClient, token: str) -> Supervisor | None:
    """
    Retrieve the profile owned by the logged-in account.

    Returns None when the account has no supervisor profile.
    """
    data = await backend.request(
        "GET", "/api/my-supervisor", operation="supervisors.mine", token=token, retry=True
    )
    if not data:
        return None
    return parse_one(Supervisor, data, "supervisors.mine")


async def update_supervisor(
    backend: BackendClient, token: str, supervisor_id: int, payload: dict[str, Any]
) -> None:
    """
    Save profile changes. Only the owner may update a profile.

    Raises:
        ForbiddenError: The profile belongs to another account
        NotFoundError: The profile does not exist
    """
    await backend.request(
        "PUT",
        f"/api/supervisors/{supervisor_id}",
        operation="supervisors.update",
        token=token,
        json=payload,
    )
    logger.info(f"Updated supervisor profile {supervisor_id}")
