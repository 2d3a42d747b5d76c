from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response, status
import structlog

from scriptflow.models.schemas import Script, ScriptCreate, ScriptRevision
from scriptflow.services.script_service import ScriptService
from scriptflow.core.dependencies import get_script_service
from scriptflow.core.security import CurrentUser, get_current_user

logger = structlog.get_logger()

router = APIRouter(prefix="/scripts", tags=["scripts"])


@router.post("", response_model=Script, status_code=status.HTTP_201_CREATED)
async def create_script(
    data: ScriptCreate,
    user: CurrentUser = Depends(get_current_user),
    service: ScriptService = Depends(get_script_service)
):
    """Create a script (step 1, Generate)"""
    return await service.create_script(data, user)


@router.get("", response_model=List[Script])
async def list_scripts(
    project_id: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    user: CurrentUser = Depends(get_current_user),
    service: ScriptService = Depends(get_script_service)
):
    """List the caller's scripts, newest first"""
    return await service.list_scripts(user, project_id=project_id, skip=skip, limit=limit)


@router.get("/{script_id}", response_model=Script)
async def get_script(
    script_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: ScriptService = Depends(get_script_service)
):
    return await service.get_script(script_id, user)


@router.delete("/{script_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_script(
    script_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: ScriptService = Depends(get_script_service)
):
    """Delete a script together with its history, runs and insights"""
    await service.delete_script(script_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{script_id}/revisions", response_model=List[ScriptRevision])
async def list_revisions(
    script_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: ScriptService = Depends(get_script_service)
):
    """Revision history ordered by version"""
    return await service.list_revisions(script_id, user)
