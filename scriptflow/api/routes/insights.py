from typing import List, Optional
from fastapi import APIRouter, Depends, status

from scriptflow.models.schemas import AIInsight, AIProviderName
from scriptflow.services.insight_service import InsightService
from scriptflow.core.dependencies import get_insight_service
from scriptflow.core.security import CurrentUser, get_current_user

router = APIRouter(prefix="/scripts", tags=["insights"])


@router.get("/{script_id}/insights", response_model=List[AIInsight])
async def list_insights(
    script_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: InsightService = Depends(get_insight_service)
):
    """All findings for a script in the order they were recorded"""
    return await service.list_insights(script_id, user)


@router.post("/{script_id}/insights/analyze", response_model=List[AIInsight], status_code=status.HTTP_201_CREATED)
async def analyze_script(
    script_id: int,
    provider: Optional[AIProviderName] = None,
    user: CurrentUser = Depends(get_current_user),
    service: InsightService = Depends(get_insight_service)
):
    """Have the AI review recent runs (step 5) and return the new findings"""
    return await service.analyze(script_id, user, provider=provider.value if provider else None)
