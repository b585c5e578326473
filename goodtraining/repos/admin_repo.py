"""
Repository functions for the admin dashboard.

All calls forward the admin's session token; the backend checks the role.
"""

import logging

from goodtraining.core.backend import BackendClient
from goodtraining.domain.enums import ReportStatus
from goodtraining.domain.models import AdminStats, Report, Supervisor
from goodtraining.repos.common import parse_many, parse_one

logger = logging.getLogger(__name__)


async def get_stats(backend: BackendClient, token: str) -> AdminStats:
    data = await backend.request("GET", "/api/admin/stats", operation="admin.stats", token=token)
    return parse_one(AdminStats, data or {}, "admin.stats")


async def list_pending_supervisors(backend: BackendClient, token: str) -> list[Supervisor]:
    data = await backend.request(
        "GET",
        "/api/admin/pending-supervisors",
        operation="admin.pending_supervisors",
        token=token,
    )
    return parse_many(Supervisor, data, "admin.pending_supervisors")


async def approve_supervisor(backend: BackendClient, token: str, supervisor_id: int) -> None:
    await backend.request(
        "PUT",
        f"/api/admin/supervisors/{supervisor_id}/approve",
        operation="admin.approve_supervisor",
        token=token,
    )
    logger.info(f"Approved supervisor {supervisor_id}")


async def set_supervisor_visibility(
    backend: BackendClient, token: str, supervisor_id: int, is_visible: bool
) -> None:
    await backend.request(
        "PUT",
        f"/api/admin/supervisors/{supervisor_id}/visibility",
        operation="admin.supervisor_visibility",
        token=token,
        json={"isVisible": is_visible},
    )
    logger.info(
        f"Changed visibility of supervisor {supervisor_id}", extra={"is_visible": is_visible}
    )


async def list_reports(backend: BackendClient, token: str) -> list[Report]:
    data = await backend.request(
        "GET", "/api/admin/reports", operation="admin.reports", token=token
    )
    return parse_many(Report, data, "admin.reports")


async def update_report_status(
    backend: BackendClient, token: str, report_id: int, status: ReportStatus
) -> None:
    await backend.request(
        "PUT",
        f"/api/admin/reports/{report_id}",
        operation="admin.update_report",
        token=token,
        json={"status": status.value},
    )
    logger.info(f"Report {report_id} marked {status.value}")
