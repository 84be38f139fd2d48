# =============================================================================
# Dashboard API
# =============================================================================
#
#   GET /dashboard — counts across every domain plus recent activity
#
# The aggregation lives in services/stats.py.
# =============================================================================

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lifedesk.db.engine import get_async_session
from lifedesk.models.responses import DashboardResponse
from lifedesk.services.stats import dashboard

router = APIRouter(tags=["Dashboard"])


@router.get("/dashboard", response_model=DashboardResponse, summary="Productivity overview")
async def get_dashboard(
    session: AsyncSession = Depends(get_async_session),
) -> DashboardResponse:
    return DashboardResponse(**await dashboard(session))
