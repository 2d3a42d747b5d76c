from typing import Any, Dict, List, Optional
import structlog
from scriptflow.core.errors import (
    ExecutionEngineError, InvalidRunState, RunNotFound, ScriptNotFound,
)
from scriptflow.core.security import CurrentUser
from scriptflow.models.schemas import (
    InsightCreate,
    InsightSeverity,
    TestRun,
    TestRunCreate,
    TestRunStatus,
)
from scriptflow.repositories.interfaces.execution_engine import IExecutionEngine
from scriptflow.repositories.interfaces.insight_repository import IInsightRepository
from scriptflow.repositories.interfaces.script_repository import IScriptRepository
from scriptflow.repositories.interfaces.test_run_repository import ITestRunRepository

logger = structlog.get_logger()


class TestRunService:
    """Test-run orchestrator.

    queued -> running -> passed | failed, and queued | running -> cancelled.
    Every transition is a conditional write on the prior status, so a late
    progress report cannot resurrect a cancelled run.
    """

    def __init__(
        self,
        test_run_repository: ITestRunRepository,
        script_repository: IScriptRepository,
        insight_repository: IInsightRepository,
        execution_engine: IExecutionEngine,
    ):
        self.test_run_repository = test_run_repository
        self.script_repository = script_repository
        self.insight_repository = insight_repository
        self.execution_engine = execution_engine

    async def start(self, data: TestRunCreate, user: CurrentUser) -> TestRun:
        """Step 4: queue a run and hand it to the execution engine"""
        script = await self.script_repository.get_owned(data.script_id, user.user_id)
        run = await self.test_run_repository.create(
            script_id=script.id,
            environment=data.environment,
            browser=data.browser,
            created_by=user.user_id,
        )
        logger.info(
            "Test run queued",
            run_id=run.id,
            script_id=script.id,
            environment=run.environment,
            browser=run.browser.value,
        )

        try:
            await self.execution_engine.submit(run, script)
        except Exception as e:
            details = e.details if isinstance(e, ExecutionEngineError) else {"error": str(e)}
            logger.error("Failed to hand off test run", run_id=run.id, error=str(e))
            # never started, so it fails straight from queued
            await self.test_run_repository.transition(
                run.id,
                TestRunStatus.FAILED,
                results={"error": "Execution engine hand-off failed", "details": details},
                expected=[TestRunStatus.QUEUED],
            )
            if isinstance(e, ExecutionEngineError):
                raise
            raise ExecutionEngineError(
                "Execution engine hand-off failed",
                details={"run_id": run.id, "error": str(e)},
            )
        return run

    async def get_run(self, run_id: int, user: CurrentUser) -> TestRun:
        """Snapshot of a run; never waits on the engine"""
        run = await self.test_run_repository.get_by_id(run_id)
        if run is None:
            raise RunNotFound(f"Test run {run_id} not found", details={"run_id": run_id})
        try:
            await self.script_repository.get_owned(run.script_id, user.user_id)
        except ScriptNotFound:
            raise RunNotFound(f"Test run {run_id} not found", details={"run_id": run_id})
        return run

    async def list_runs(
        self,
        user: CurrentUser,
        script_id: Optional[int] = None,
        project_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[TestRun]:
        return await self.test_run_repository.list_for_user(
            user.user_id, script_id=script_id, project_id=project_id, limit=limit
        )

    async def cancel(self, run_id: int, user: CurrentUser) -> TestRun:
        run = await self.get_run(run_id, user)
        cancelled = await self.test_run_repository.transition(run_id, TestRunStatus.CANCELLED)
        if cancelled is None:
            raise await self._invalid_state(run_id, TestRunStatus.CANCELLED)

        logger.info("Test run cancelled", run_id=run_id, previous_status=run.status.value)
        try:
            await self.execution_engine.cancel(run_id)
        except Exception as e:
            # advisory only; the cancellation is already recorded
            logger.warning("Execution engine did not acknowledge cancellation", run_id=run_id, error=str(e))
        return cancelled

    async def report_progress(
        self,
        run_id: int,
        status: TestRunStatus,
        results: Optional[Dict[str, Any]],
        principal: CurrentUser,
    ) -> TestRun:
        """Engine callback: queued -> running, running -> passed | failed"""
        if status not in (TestRunStatus.RUNNING, TestRunStatus.PASSED, TestRunStatus.FAILED):
            raise InvalidRunState(
                f"Progress cannot move a run to {status.value}",
                details={"run_id": run_id, "target": status.value},
            )

        if principal.is_executor:
            run = await self.test_run_repository.get_by_id(run_id)
            if run is None:
                raise RunNotFound(f"Test run {run_id} not found", details={"run_id": run_id})
        else:
            run = await self.get_run(run_id, principal)

        updated = await self.test_run_repository.transition(run_id, status, results=results)
        if updated is None:
            raise await self._invalid_state(run_id, status)

        logger.info("Test run progressed", run_id=run_id, status=status.value, reported_by=principal.user_id)
        if status == TestRunStatus.FAILED:
            await self._record_failure(updated)
        return updated

    async def _record_failure(self, run: TestRun) -> None:
        results = run.results or {}
        error = results.get("error")
        summary = f"Run #{run.id} failed on {run.browser.value} in {run.environment}"
        if error:
            summary = f"{summary}: {error}"
        await self.insight_repository.create(
            run.script_id,
            InsightCreate(
                type="failure",
                severity=InsightSeverity.HIGH,
                summary=summary,
                details={"run_id": run.id, "environment": run.environment, "browser": run.browser.value, "results": results},
            ),
            run_id=run.id,
        )

    async def _invalid_state(self, run_id: int, target: TestRunStatus) -> InvalidRunState:
        # re-read so the error reports the state that actually blocked us
        current = await self.test_run_repository.get_by_id(run_id)
        current_status = current.status.value if current else None
        return InvalidRunState(
            f"Test run {run_id} is {current_status} and cannot move to {target.value}",
            details={"run_id": run_id, "status": current_status, "target": target.value},
        )
