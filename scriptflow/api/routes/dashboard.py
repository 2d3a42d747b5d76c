from typing import Optional
from fastapi import APIRouter, Depends

from scriptflow.models.schemas import DashboardStats
from scriptflow.services.dashboard_service import DashboardService
from scriptflow.core.dependencies import get_dashboard_service
from scriptflow.core.security import CurrentUser, get_current_user

router = APIRouter(tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    project_id: Optional[str] = None,
    user: CurrentUser = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard_service)
):
    return await service.stats(user, project_id=project_id)
