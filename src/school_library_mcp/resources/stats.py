"""Statistics Resources - Admin Dashboard

Exposes aggregated lending figures. Nothing here is stored; every read
recomputes from the catalog, the roster and the lending history using
today's date.

Resources:
- library://stats/dashboard - Counts plus the top 3 borrowers and books
- library://loans/overdue - Every overdue loan, earliest due date first
"""

import logging
from datetime import datetime
from typing import Any

from fastmcp.exceptions import ResourceError
from pydantic import BaseModel, Field

from ..models.reports import DashboardStats, OverdueRecordDetail
from ..services import get_lending_service

logger = logging.getLogger(__name__)


class DashboardResponse(DashboardStats):
    """Dashboard figures stamped with the time and date they were computed for."""

    timestamp: str = Field(..., description="When stats were calculated (ISO format)")
    as_of: str = Field(..., description="Date used for overdue checks (ISO format)")


class OverdueListResponse(BaseModel):
    overdue: list[OverdueRecordDetail] = Field(
        ..., description="Overdue loans sorted by due date"
    )
    total: int = Field(..., description="Number of overdue loans")
    as_of: str = Field(..., description="Date used for overdue checks (ISO format)")


async def get_dashboard_handler() -> dict[str, Any]:
    """Returns the admin dashboard figures.

    Top lists count every borrow ever made, returned ones included. Clients
    wanting a live dashboard re-read this resource periodically.
    """
    try:
        logger.debug("MCP Resource Request - stats/dashboard")

        service = get_lending_service()
        stats = service.get_dashboard_stats()
        response = DashboardResponse(
            **stats.model_dump(),
            timestamp=datetime.now().isoformat(),
            as_of=service.today().isoformat(),
        )
        return response.model_dump(mode="json")

    except Exception as e:
        logger.exception("Error in stats/dashboard resource")
        raise ResourceError(f"Failed to retrieve dashboard statistics: {e!s}") from e


async def get_overdue_handler() -> dict[str, Any]:
    """Returns every overdue loan with the book title and borrower name."""
    try:
        logger.debug("MCP Resource Request - loans/overdue")

        service = get_lending_service()
        overdue = service.get_overdue_records()
        response = OverdueListResponse(
            overdue=overdue,
            total=len(overdue),
            as_of=service.today().isoformat(),
        )
        return response.model_dump(mode="json")

    except Exception as e:
        logger.exception("Error in loans/overdue resource")
        raise ResourceError(f"Failed to retrieve overdue loans: {e!s}") from e


stats_resources: list[dict[str, Any]] = [
    {
        "uri": "library://stats/dashboard",
        "name": "Library Dashboard",
        "description": (
            "Total books and students, books on loan, overdue loans, and the three "
            "most active borrowers and most borrowed books"
        ),
        "mime_type": "application/json",
        "handler": get_dashboard_handler,
    },
    {
        "uri": "library://loans/overdue",
        "name": "Overdue Loans",
        "description": "Every overdue loan with book title and student name, earliest due first",
        "mime_type": "application/json",
        "handler": get_overdue_handler,
    },
]
