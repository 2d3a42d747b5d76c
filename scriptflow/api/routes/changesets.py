from typing import List, Optional
from fastapi import APIRouter, Depends, status
import structlog

from scriptflow.models.schemas import (
    AcceptChangeSetResponse, ChangeSetStatus, EnhanceScriptRequest,
    RejectChangeSetResponse, ScriptChangeSet,
)
from scriptflow.services.changeset_service import ChangeSetService
from scriptflow.core.dependencies import get_changeset_service
from scriptflow.core.security import CurrentUser, get_current_user

logger = structlog.get_logger()

router = APIRouter(prefix="/scripts", tags=["changesets"])


@router.post("/{script_id}/enhance", response_model=ScriptChangeSet, status_code=status.HTTP_201_CREATED)
async def enhance_script(
    script_id: int,
    request: EnhanceScriptRequest,
    user: CurrentUser = Depends(get_current_user),
    service: ChangeSetService = Depends(get_changeset_service)
):
    """Ask the AI for an improvement; the result waits for human review"""
    logger.info("Enhancing script", script_id=script_id, prompt=request.prompt[:100])
    return await service.propose(script_id, request, user)


@router.get("/{script_id}/changesets", response_model=List[ScriptChangeSet])
async def list_changesets(
    script_id: int,
    status: Optional[ChangeSetStatus] = None,
    user: CurrentUser = Depends(get_current_user),
    service: ChangeSetService = Depends(get_changeset_service)
):
    return await service.list_changesets(script_id, user, status=status)


@router.get("/{script_id}/changesets/{changeset_id}", response_model=ScriptChangeSet)
async def get_changeset(
    script_id: int,
    changeset_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: ChangeSetService = Depends(get_changeset_service)
):
    return await service.get_changeset(script_id, changeset_id, user)


@router.post("/{script_id}/changesets/{changeset_id}/accept", response_model=AcceptChangeSetResponse)
async def accept_changeset(
    script_id: int,
    changeset_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: ChangeSetService = Depends(get_changeset_service)
):
    """Apply the proposal and record it as a new revision"""
    revision = await service.accept(script_id, changeset_id, user)
    return AcceptChangeSetResponse(revision_id=revision.id, version=revision.version)


@router.post("/{script_id}/changesets/{changeset_id}/reject", response_model=RejectChangeSetResponse)
async def reject_changeset(
    script_id: int,
    changeset_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: ChangeSetService = Depends(get_changeset_service)
):
    changeset = await service.reject(script_id, changeset_id, user)
    return RejectChangeSetResponse(id=changeset.id, status=changeset.status)
