from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Dict, Optional

import structlog
from sqlalchemy.orm import Session

from scriptflow.core.errors import ConflictError
from scriptflow.core.security import CurrentUser, EXECUTOR_ROLE
from scriptflow.models.schemas import Script, TestRun, TestRunStatus
from scriptflow.repositories.interfaces.execution_engine import IExecutionEngine

logger = structlog.get_logger()

LOCAL_EXECUTOR = CurrentUser(user_id="local-executor", role=EXECUTOR_ROLE)


def count_executable_steps(content: str) -> int:
    steps = 0
    for line in content.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith(("//", "#", "/*", "*")):
            steps += 1
    return steps


class LocalExecutionEngine(IExecutionEngine):
    """In-process dry run used when no remote executor is configured.

    Each run is driven queued -> running -> passed|failed through the same
    orchestrator transitions a remote engine would call, on its own session.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        service_factory: Callable[[Session], Any],
        step_delay: float = 0.5,
    ):
        self.session_factory = session_factory
        self.service_factory = service_factory
        self.step_delay = step_delay
        self._tasks: Dict[int, asyncio.Task] = {}

    async def submit(self, run: TestRun, script: Script) -> None:
        task = asyncio.get_running_loop().create_task(self._execute(run.id, script.content))
        self._tasks[run.id] = task
        task.add_done_callback(lambda _t, run_id=run.id: self._tasks.pop(run_id, None))

    async def cancel(self, run_id: int) -> None:
        task = self._tasks.get(run_id)
        if task and not task.done():
            task.cancel()

    def pending(self, run_id: int) -> Optional[asyncio.Task]:
        return self._tasks.get(run_id)

    async def _execute(self, run_id: int, content: str) -> None:
        started = time.monotonic()
        try:
            await asyncio.sleep(self.step_delay)
            if not await self._report(run_id, TestRunStatus.RUNNING):
                return

            await asyncio.sleep(self.step_delay)
            steps = count_executable_steps(content)
            results: Dict[str, Any] = {
                "engine": "local",
                "dry_run": True,
                "steps_total": steps,
                "duration_ms": int((time.monotonic() - started) * 1000),
            }
            if steps == 0:
                results["error"] = "Script has no executable steps"
                await self._report(run_id, TestRunStatus.FAILED, results)
            else:
                results["steps_passed"] = steps
                await self._report(run_id, TestRunStatus.PASSED, results)
        except asyncio.CancelledError:
            logger.info("Local run cancelled", run_id=run_id)
        except Exception:
            logger.error("Local execution crashed", run_id=run_id, exc_info=True)

    async def _report(self, run_id: int, status: TestRunStatus, results: Optional[Dict[str, Any]] = None) -> bool:
        db = self.session_factory()
        try:
            service = self.service_factory(db)
            await service.report_progress(run_id, status, results, LOCAL_EXECUTOR)
            return True
        except ConflictError as e:
            # lost the compare-and-swap, usually to a cancellation
            logger.info("Local run stopped", run_id=run_id, target=status.value, reason=e.message)
            return False
        finally:
            db.close()
