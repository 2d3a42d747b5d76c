import pytest
from typing import List, Optional
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from main import app
from scriptflow.core.database import get_database
from scriptflow.core.dependencies import get_ai_services, get_execution_engine
from scriptflow.core.diffs import make_unified_diff
from scriptflow.core.security import EXECUTOR_ROLE, create_access_token
from scriptflow.models import schemas
from scriptflow.models.database import Base
from scriptflow.repositories.interfaces.ai_service import IAIService
from scriptflow.repositories.interfaces.execution_engine import IExecutionEngine


class FakeAIService(IAIService):
    """Deterministic provider: appends the prompt to the script as a comment"""

    def __init__(self, provider_name: str = "openai", model: str = "fake-model-1"):
        self.provider_name = provider_name
        self.model = model
        self.confidence = 0.82
        self.rewrite = None
        self.error: Optional[Exception] = None
        self.findings: List[schemas.InsightCreate] = []
        self.enhance_calls = []
        self.analyze_calls = []

    def is_configured(self) -> bool:
        return True

    async def enhance_script(self, content, prompt, model=None, temperature=None):
        self.enhance_calls.append({"content": content, "prompt": prompt, "model": model, "temperature": temperature})
        if self.error:
            raise self.error
        updated = self.rewrite(content, prompt) if self.rewrite else f"{content}\n// {prompt}"
        return schemas.ScriptEnhancement(
            proposed_diff=make_unified_diff(content, updated),
            confidence=self.confidence,
            ai_model=model or self.model,
            summary=f"Applied: {prompt}",
        )

    async def analyze_runs(self, content, runs, model=None):
        self.analyze_calls.append({"content": content, "runs": runs})
        if self.error:
            raise self.error
        return schemas.InsightAnalysis(
            findings=[f.model_copy(deep=True) for f in self.findings],
            ai_model=model or self.model,
        )


class FakeExecutionEngine(IExecutionEngine):
    """Records hand-offs instead of executing anything"""

    def __init__(self):
        self.submitted = []
        self.cancelled = []
        self.error: Optional[Exception] = None
        self.cancel_error: Optional[Exception] = None

    async def submit(self, run, script) -> None:
        if self.error:
            raise self.error
        self.submitted.append((run, script))

    async def cancel(self, run_id: int) -> None:
        self.cancelled.append(run_id)
        if self.cancel_error:
            raise self.cancel_error


@pytest.fixture
def db_engine(tmp_path):
    """Fresh SQLite database file per test"""
    engine = create_engine(
        f"sqlite:///{(tmp_path / 'test.db').as_posix()}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def fake_ai():
    return FakeAIService("openai")


@pytest.fixture
def fake_gemini():
    return FakeAIService("gemini", model="fake-gemini")


@pytest.fixture
def fake_engine():
    return FakeExecutionEngine()


@pytest.fixture
def test_client(session_factory, fake_ai, fake_gemini, fake_engine):
    """Synchronous test client wired to the per-test database and fake adapters"""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_database] = override_get_db
    app.dependency_overrides[get_ai_services] = lambda: {"openai": fake_ai, "gemini": fake_gemini}
    app.dependency_overrides[get_execution_engine] = lambda: fake_engine

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token('alice')}"}


@pytest.fixture
def other_headers():
    return {"Authorization": f"Bearer {create_access_token('bob')}"}


@pytest.fixture
def executor_headers():
    return {"Authorization": f"Bearer {create_access_token('runner-1', role=EXECUTOR_ROLE)}"}


@pytest.fixture
def script(test_client, auth_headers):
    """A script owned by alice"""
    response = test_client.post(
        "/api/v1/scripts",
        json={"title": "Login flow", "content": "step1"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()
