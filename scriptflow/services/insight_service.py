from typing import Dict, List, Optional
import structlog
from scriptflow.config.settings import settings
from scriptflow.core.errors import AIProviderError
from scriptflow.core.security import CurrentUser
from scriptflow.models.schemas import AIInsight, InsightCreate, RunSummary
from scriptflow.repositories.interfaces.ai_service import IAIService
from scriptflow.repositories.interfaces.insight_repository import IInsightRepository
from scriptflow.repositories.interfaces.script_repository import IScriptRepository
from scriptflow.repositories.interfaces.test_run_repository import ITestRunRepository

logger = structlog.get_logger()


class InsightService:
    """Insight aggregator: append-only AI findings per script"""

    def __init__(
        self,
        insight_repository: IInsightRepository,
        script_repository: IScriptRepository,
        test_run_repository: ITestRunRepository,
        ai_services: Dict[str, IAIService],
        default_provider: str,
    ):
        self.insight_repository = insight_repository
        self.script_repository = script_repository
        self.test_run_repository = test_run_repository
        self.ai_services = ai_services
        self.default_provider = default_provider

    async def list_insights(self, script_id: int, user: CurrentUser) -> List[AIInsight]:
        """Step 5: every insight of a script, oldest first"""
        await self.script_repository.get_owned(script_id, user.user_id)
        return await self.insight_repository.list_for_script(script_id)

    async def record(self, script_id: int, insight: InsightCreate, run_id: Optional[int] = None) -> AIInsight:
        return await self.insight_repository.create(script_id, insight, run_id=run_id)

    async def analyze(self, script_id: int, user: CurrentUser, provider: Optional[str] = None) -> List[AIInsight]:
        """Ask the AI to review recent runs and append whatever it finds"""
        script = await self.script_repository.get_owned(script_id, user.user_id)
        provider_name = provider or self.default_provider
        ai_service = self.ai_services.get(provider_name)
        if ai_service is None:
            raise AIProviderError(
                f"Unknown AI provider '{provider_name}'",
                details={"provider": provider_name, "available": sorted(self.ai_services)},
            )

        runs = await self.test_run_repository.list_recent_for_script(script_id, settings.insight_recent_runs)
        summaries = [
            RunSummary(id=r.id, status=r.status, environment=r.environment, browser=r.browser, results=r.results)
            for r in runs
        ]
        try:
            analysis = await ai_service.analyze_runs(script.content, summaries)
        except AIProviderError:
            raise
        except Exception as e:
            logger.error("AI analysis failed", script_id=script_id, provider=provider_name, error=str(e))
            raise AIProviderError(
                "AI provider request failed",
                details={"provider": provider_name, "error": str(e)},
            )

        created: List[AIInsight] = []
        for finding in analysis.findings:
            finding.details.setdefault("ai_model", analysis.ai_model)
            created.append(await self.record(script_id, finding))
        logger.info(
            "Script analyzed",
            script_id=script_id,
            runs_considered=len(summaries),
            findings=len(created),
            ai_model=analysis.ai_model,
        )
        return created
