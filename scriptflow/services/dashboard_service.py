from typing import Optional

from scriptflow.core.security import CurrentUser
from scriptflow.models.schemas import DashboardStats, TestRunStatus
from scriptflow.repositories.interfaces.changeset_repository import IChangeSetRepository
from scriptflow.repositories.interfaces.script_repository import IScriptRepository
from scriptflow.repositories.interfaces.test_run_repository import ITestRunRepository


class DashboardService:
    def __init__(
        self,
        script_repository: IScriptRepository,
        test_run_repository: ITestRunRepository,
        changeset_repository: IChangeSetRepository,
    ):
        self.script_repository = script_repository
        self.test_run_repository = test_run_repository
        self.changeset_repository = changeset_repository

    async def stats(self, user: CurrentUser, project_id: Optional[str] = None) -> DashboardStats:
        """Counts over the user's scripts, optionally narrowed to one project.

        ``success_rate`` is passed / (passed + failed) as a percentage rounded to one
        decimal. Cancelled, queued and running runs are left out, so it is not the
        integer passed / all-runs figure the older dashboard showed.
        """
        counts = await self.test_run_repository.status_counts_for_user(user.user_id, project_id=project_id)
        passed = counts.get(TestRunStatus.PASSED, 0)
        finished = passed + counts.get(TestRunStatus.FAILED, 0)
        return DashboardStats(
            total_scripts=await self.script_repository.count_for_user(user.user_id, project_id=project_id),
            total_runs=sum(counts.values()),
            success_rate=round(passed * 100.0 / finished, 1) if finished else 0.0,
            pending_changesets=await self.changeset_repository.count_pending_for_user(
                user.user_id, project_id=project_id
            ),
        )
