import asyncio

import pytest

from scriptflow.core.security import CurrentUser
from scriptflow.models import schemas
from scriptflow.repositories.implementations.local_execution_engine import (
    LocalExecutionEngine, count_executable_steps,
)
from scriptflow.repositories.implementations.sql_insight_repository import SQLInsightRepository
from scriptflow.repositories.implementations.sql_script_repository import SQLScriptRepository
from scriptflow.repositories.implementations.sql_test_run_repository import SQLTestRunRepository
from scriptflow.services.test_run_service import TestRunService as RunService

ALICE = CurrentUser(user_id="alice")


def _service_factory(engine_holder):
    def build(db):
        return RunService(
            test_run_repository=SQLTestRunRepository(db),
            script_repository=SQLScriptRepository(db),
            insight_repository=SQLInsightRepository(db),
            execution_engine=engine_holder["engine"],
        )
    return build


@pytest.fixture
def local_engine(session_factory):
    holder = {}
    engine = LocalExecutionEngine(session_factory, _service_factory(holder), step_delay=0)
    holder["engine"] = engine
    return engine


async def _create_script(db, content):
    return await SQLScriptRepository(db).create(schemas.ScriptCreate(title="Login flow", content=content), "alice")


def test_count_executable_steps():
    content = "\n".join([
        "// open the page",
        "await page.goto('/login');",
        "",
        "# python style note",
        "await page.click('#submit');",
        "/* block",
        " * comment */",
    ])
    assert count_executable_steps(content) == 2
    assert count_executable_steps("") == 0


@pytest.mark.asyncio
async def test_local_run_passes(db_session, local_engine):
    script = await _create_script(db_session, "await page.goto('/');\nawait expect(page).toHaveTitle('Home');")
    service = local_engine.service_factory(db_session)

    run = await service.start(schemas.TestRunCreate(script_id=script.id, environment="staging"), ALICE)
    assert run.status == schemas.TestRunStatus.QUEUED

    task = local_engine.pending(run.id)
    assert task is not None
    await task

    finished = await service.get_run(run.id, ALICE)
    assert finished.status == schemas.TestRunStatus.PASSED
    assert finished.started_at is not None
    assert finished.completed_at is not None
    assert finished.results["steps_passed"] == 2
    assert finished.results["dry_run"] is True


@pytest.mark.asyncio
async def test_local_run_without_steps_fails(db_session, local_engine):
    script = await _create_script(db_session, "// nothing to do yet")
    service = local_engine.service_factory(db_session)

    run = await service.start(schemas.TestRunCreate(script_id=script.id, environment="qa"), ALICE)
    await local_engine.pending(run.id)

    finished = await service.get_run(run.id, ALICE)
    assert finished.status == schemas.TestRunStatus.FAILED
    assert finished.results["error"] == "Script has no executable steps"

    insights = await SQLInsightRepository(db_session).list_for_script(script.id)
    assert [i.type for i in insights] == ["failure"]
    assert insights[0].run_id == run.id


@pytest.mark.asyncio
async def test_local_run_respects_cancellation(db_session, session_factory):
    holder = {}
    engine = LocalExecutionEngine(session_factory, _service_factory(holder), step_delay=0.05)
    holder["engine"] = engine
    script = await _create_script(db_session, "await page.goto('/');")
    service = engine.service_factory(db_session)

    run = await service.start(schemas.TestRunCreate(script_id=script.id, environment="qa"), ALICE)
    task = engine.pending(run.id)

    cancelled = await service.cancel(run.id, ALICE)
    assert cancelled.status == schemas.TestRunStatus.CANCELLED

    await asyncio.gather(task, return_exceptions=True)
    assert (await service.get_run(run.id, ALICE)).status == schemas.TestRunStatus.CANCELLED
