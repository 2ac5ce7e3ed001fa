# =============================================================================
# Dashboard API
# =============================================================================
# GET /dashboard → the caller's questions (newest first) plus status counts.
# =============================================================================

from __future__ import annotations

from fastapi import APIRouter, Depends

from studentqa.api.deps import get_container, get_current_user
from studentqa.container import Container
from studentqa.models.domain import User
from studentqa.models.responses import (
    DashboardResponse,
    DashboardSummaryResponse,
    QuestionResponse,
    UserResponse,
)
from studentqa.services.dashboard import get_dashboard

router = APIRouter(tags=["Dashboard"])


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard_endpoint(
    user: User = Depends(get_current_user),
    container: Container = Depends(get_container),
) -> DashboardResponse:
    dashboard = await get_dashboard(container.questions, user.id)
    return DashboardResponse(
        user=UserResponse.model_validate(user),
        summary=DashboardSummaryResponse.model_validate(dashboard.summary),
        questions=[QuestionResponse.model_validate(q) for q in dashboard.questions],
    )
