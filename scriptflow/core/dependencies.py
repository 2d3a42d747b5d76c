from typing import Dict
from fastapi import Depends
from sqlalchemy.orm import Session
from scriptflow.repositories.interfaces.script_repository import IScriptRepository
from scriptflow.repositories.interfaces.changeset_repository import IChangeSetRepository
from scriptflow.repositories.interfaces.test_run_repository import ITestRunRepository
from scriptflow.repositories.interfaces.insight_repository import IInsightRepository
from scriptflow.repositories.interfaces.ai_service import IAIService
from scriptflow.repositories.interfaces.execution_engine import IExecutionEngine

from scriptflow.repositories.implementations.sql_script_repository import SQLScriptRepository
from scriptflow.repositories.implementations.sql_changeset_repository import SQLChangeSetRepository
from scriptflow.repositories.implementations.sql_test_run_repository import SQLTestRunRepository
from scriptflow.repositories.implementations.sql_insight_repository import SQLInsightRepository
from scriptflow.repositories.implementations.openai_service import OpenAIService
from scriptflow.repositories.implementations.gemini_service import GeminiService
from scriptflow.repositories.implementations.http_execution_engine import HttpExecutionEngine
from scriptflow.repositories.implementations.local_execution_engine import LocalExecutionEngine

from scriptflow.services.script_service import ScriptService
from scriptflow.services.changeset_service import ChangeSetService
from scriptflow.services.test_run_service import TestRunService
from scriptflow.services.insight_service import InsightService
from scriptflow.services.dashboard_service import DashboardService
from scriptflow.config.settings import settings
from scriptflow.core.database import SessionLocal, get_database


class Container:
    """Dependency injection container.

    Repositories are built per request session; AI adapters and the execution
    engine are process-wide and created on first use.
    """

    def __init__(self):
        self._ai_services = None
        self._execution_engine = None

    def script_repository(self, db: Session) -> IScriptRepository:
        return SQLScriptRepository(db)

    def changeset_repository(self, db: Session) -> IChangeSetRepository:
        return SQLChangeSetRepository(db)

    def test_run_repository(self, db: Session) -> ITestRunRepository:
        return SQLTestRunRepository(db)

    def insight_repository(self, db: Session) -> IInsightRepository:
        return SQLInsightRepository(db)

    def ai_services(self) -> Dict[str, IAIService]:
        """Get AI provider adapters keyed by provider name (singletons)"""
        if self._ai_services is None:
            self._ai_services = {
                OpenAIService.provider_name: OpenAIService(),
                GeminiService.provider_name: GeminiService(),
            }
        return self._ai_services

    def execution_engine(self) -> IExecutionEngine:
        """Remote engine when EXECUTOR_URL is set, otherwise the in-process dry run"""
        if self._execution_engine is None:
            if settings.executor_url:
                self._execution_engine = HttpExecutionEngine(
                    settings.executor_url,
                    api_token=settings.executor_api_token,
                    timeout=settings.executor_timeout_seconds,
                )
            else:
                self._execution_engine = LocalExecutionEngine(
                    session_factory=SessionLocal,
                    service_factory=self.test_run_service,
                    step_delay=settings.local_executor_step_delay,
                )
        return self._execution_engine

    def script_service(self, db: Session) -> ScriptService:
        return ScriptService(script_repository=self.script_repository(db))

    def changeset_service(self, db: Session, ai_services: Dict[str, IAIService] = None) -> ChangeSetService:
        return ChangeSetService(
            script_repository=self.script_repository(db),
            changeset_repository=self.changeset_repository(db),
            ai_services=ai_services if ai_services is not None else self.ai_services(),
            default_provider=settings.ai_provider,
        )

    def test_run_service(self, db: Session, execution_engine: IExecutionEngine = None) -> TestRunService:
        return TestRunService(
            test_run_repository=self.test_run_repository(db),
            script_repository=self.script_repository(db),
            insight_repository=self.insight_repository(db),
            execution_engine=execution_engine if execution_engine is not None else self.execution_engine(),
        )

    def insight_service(self, db: Session, ai_services: Dict[str, IAIService] = None) -> InsightService:
        return InsightService(
            insight_repository=self.insight_repository(db),
            script_repository=self.script_repository(db),
            test_run_repository=self.test_run_repository(db),
            ai_services=ai_services if ai_services is not None else self.ai_services(),
            default_provider=settings.ai_provider,
        )

    def dashboard_service(self, db: Session) -> DashboardService:
        return DashboardService(
            script_repository=self.script_repository(db),
            test_run_repository=self.test_run_repository(db),
            changeset_repository=self.changeset_repository(db),
        )


# Global container instance
container = Container()


# Dependency providers for FastAPI
def get_ai_services() -> Dict[str, IAIService]:
    """FastAPI dependency for AI provider adapters"""
    return container.ai_services()


def get_execution_engine() -> IExecutionEngine:
    """FastAPI dependency for the execution engine"""
    return container.execution_engine()


def get_script_service(db: Session = Depends(get_database)) -> ScriptService:
    return container.script_service(db)


def get_changeset_service(
    db: Session = Depends(get_database),
    ai_services: Dict[str, IAIService] = Depends(get_ai_services),
) -> ChangeSetService:
    return container.changeset_service(db, ai_services)


def get_test_run_service(
    db: Session = Depends(get_database),
    execution_engine: IExecutionEngine = Depends(get_execution_engine),
) -> TestRunService:
    return container.test_run_service(db, execution_engine)


def get_insight_service(
    db: Session = Depends(get_database),
    ai_services: Dict[str, IAIService] = Depends(get_ai_services),
) -> InsightService:
    return container.insight_service(db, ai_services)


def get_dashboard_service(db: Session = Depends(get_database)) -> DashboardService:
    return container.dashboard_service(db)
