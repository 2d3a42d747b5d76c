from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
import structlog

from scriptflow.models import schemas
from scriptflow.services.test_run_service import TestRunService
from scriptflow.core.dependencies import get_test_run_service
from scriptflow.core.security import CurrentUser, get_current_principal, get_current_user

logger = structlog.get_logger()

router = APIRouter(prefix="/test-runs", tags=["test-runs"])


@router.post("", response_model=schemas.TestRun, status_code=status.HTTP_201_CREATED)
async def start_test_run(
    data: schemas.TestRunCreate,
    user: CurrentUser = Depends(get_current_user),
    service: TestRunService = Depends(get_test_run_service)
):
    """Queue a run and hand it to the execution engine (step 4)"""
    return await service.start(data, user)


@router.get("", response_model=List[schemas.TestRun])
async def list_test_runs(
    script_id: Optional[int] = None,
    project_id: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    user: CurrentUser = Depends(get_current_user),
    service: TestRunService = Depends(get_test_run_service)
):
    return await service.list_runs(user, script_id=script_id, project_id=project_id, limit=limit)


@router.get("/{run_id}", response_model=schemas.TestRun)
async def get_test_run(
    run_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: TestRunService = Depends(get_test_run_service)
):
    """Current snapshot of a run"""
    return await service.get_run(run_id, user)


@router.post("/{run_id}/cancel", response_model=schemas.TestRun)
async def cancel_test_run(
    run_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: TestRunService = Depends(get_test_run_service)
):
    return await service.cancel(run_id, user)


@router.post("/{run_id}/progress", response_model=schemas.TestRun)
async def report_test_run_progress(
    run_id: int,
    progress: schemas.TestRunProgress,
    principal: CurrentUser = Depends(get_current_principal),
    service: TestRunService = Depends(get_test_run_service)
):
    """Execution engine callback; accepts executor tokens as well as the run owner"""
    return await service.report_progress(
        run_id,
        schemas.TestRunStatus(progress.status),
        progress.results,
        principal,
    )
