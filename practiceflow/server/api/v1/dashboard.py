"""
Dashboard Endpoint.
"""

from fastapi import APIRouter

from practiceflow.core.models.io.dashboard import DashboardSummary
from practiceflow.server.services.deps import CurrentUser, DashboardDep

router = APIRouter()


@router.get(
    "",
    response_model=DashboardSummary,
    summary="Dashboard Summary",
    description=(
        "The caller's service lines, their active tasks counted by stage, pending approvals "
        "and unread notifications."
    ),
)
async def get_dashboard(user: CurrentUser, dashboard: DashboardDep):
    return await dashboard.summary(user)
