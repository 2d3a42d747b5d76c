from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session
from scriptflow.repositories.interfaces.test_run_repository import ITestRunRepository
from scriptflow.models.database import ScriptModel, TestRunModel
from scriptflow.models.schemas import Browser, RUN_TRANSITIONS, TestRun, TestRunStatus


class SQLTestRunRepository(ITestRunRepository):
    """SQLAlchemy implementation of test run repository"""

    def __init__(self, db: Session):
        self.db = db

    async def create(self, script_id: int, environment: str, browser: Browser, created_by: str) -> TestRun:
        db_run = TestRunModel(
            script_id=script_id,
            environment=environment,
            browser=browser,
            status=TestRunStatus.QUEUED,
            created_by=created_by,
        )
        self.db.add(db_run)
        self.db.commit()
        self.db.refresh(db_run)
        return TestRun.model_validate(db_run)

    async def get_by_id(self, run_id: int) -> Optional[TestRun]:
        db_run = self.db.get(TestRunModel, run_id)
        if db_run:
            # another session (e.g. the executor) may have moved it on
            self.db.refresh(db_run)
            return TestRun.model_validate(db_run)
        return None

    async def list_for_user(
        self, user_id: str, script_id: Optional[int] = None, project_id: Optional[str] = None, limit: int = 100
    ) -> List[TestRun]:
        """Runs on the user's scripts, newest first"""
        query = (
            select(TestRunModel)
            .join(ScriptModel, ScriptModel.id == TestRunModel.script_id)
            .where(ScriptModel.user_id == user_id)
        )
        if script_id is not None:
            query = query.where(TestRunModel.script_id == script_id)
        if project_id:
            query = query.where(ScriptModel.project_id == project_id)
        query = query.order_by(TestRunModel.id.desc()).limit(limit)
        return [TestRun.model_validate(r) for r in self.db.execute(query).scalars().all()]

    async def list_recent_for_script(self, script_id: int, limit: int) -> List[TestRun]:
        rows = self.db.execute(
            select(TestRunModel)
            .where(TestRunModel.script_id == script_id)
            .order_by(TestRunModel.id.desc())
            .limit(limit)
        ).scalars().all()
        return [TestRun.model_validate(r) for r in rows]

    async def transition(
        self,
        run_id: int,
        target: TestRunStatus,
        results: Optional[Dict[str, Any]] = None,
        expected: Optional[Iterable[TestRunStatus]] = None,
    ) -> Optional[TestRun]:
        now = datetime.now(timezone.utc)
        values: Dict[str, Any] = {"status": target}
        if target == TestRunStatus.RUNNING:
            values["started_at"] = now
        else:
            values["completed_at"] = now
        if results is not None:
            values["results"] = results

        try:
            changed = self.db.execute(
                update(TestRunModel)
                .where(
                    TestRunModel.id == run_id,
                    TestRunModel.status.in_(list(expected or RUN_TRANSITIONS[target])),
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            ).rowcount
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if changed != 1:
            return None
        return await self.get_by_id(run_id)

    async def status_counts_for_user(
        self, user_id: str, project_id: Optional[str] = None
    ) -> Dict[TestRunStatus, int]:
        query = (
            select(TestRunModel.status, func.count(TestRunModel.id))
            .join(ScriptModel, ScriptModel.id == TestRunModel.script_id)
            .where(ScriptModel.user_id == user_id)
        )
        if project_id:
            query = query.where(ScriptModel.project_id == project_id)
        rows = self.db.execute(query.group_by(TestRunModel.status)).all()
        return {status: count for status, count in rows}
