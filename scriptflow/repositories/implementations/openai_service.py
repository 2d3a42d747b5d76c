import asyncio
from typing import List, Optional
from openai import OpenAI
import structlog
from scriptflow.repositories.interfaces.ai_service import IAIService
from scriptflow.repositories.implementations.ai_parsing import (
    ANALYZE_SYSTEM_PROMPT,
    ENHANCE_SYSTEM_PROMPT,
    build_analyze_prompt,
    build_enhance_prompt,
    parse_analysis,
    parse_enhancement,
)
from scriptflow.core.errors import AIProviderError
from scriptflow.models.schemas import InsightAnalysis, RunSummary, ScriptEnhancement
from scriptflow.config.settings import settings

logger = structlog.get_logger()


class OpenAIService(IAIService):
    """OpenAI-compatible chat completions implementation of AI service"""

    provider_name = "openai"

    def __init__(self):
        self.client: Optional[OpenAI] = None
        if settings.openai_api_key:
            self.client = OpenAI(
                base_url=settings.openai_base_url,
                api_key=settings.openai_api_key,
            )
        self.model = settings.openai_model

    def is_configured(self) -> bool:
        return self.client is not None

    async def enhance_script(
        self,
        content: str,
        prompt: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> ScriptEnhancement:
        """Ask the model for an improved script and diff it against the current one"""
        model_name = model or self.model
        text = await self._complete(
            system=ENHANCE_SYSTEM_PROMPT,
            user=build_enhance_prompt(content, prompt),
            model=model_name,
            temperature=settings.ai_temperature if temperature is None else temperature,
        )
        return parse_enhancement(text, content, model_name, self.provider_name)

    async def analyze_runs(
        self,
        content: str,
        runs: List[RunSummary],
        model: Optional[str] = None,
    ) -> InsightAnalysis:
        model_name = model or self.model
        text = await self._complete(
            system=ANALYZE_SYSTEM_PROMPT,
            user=build_analyze_prompt(content, runs),
            model=model_name,
            temperature=0.2,
        )
        return parse_analysis(text, model_name, self.provider_name)

    async def _complete(self, system: str, user: str, model: str, temperature: float) -> str:
        if self.client is None:
            raise AIProviderError(
                "OpenAI provider is not configured",
                details={"provider": self.provider_name, "hint": "set OPENAI_API_KEY"},
            )
        client = self.client

        def sync_call():
            response = client.chat.completions.create(
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=temperature,
                top_p=0.9,
                model=model,
            )
            if not response.choices:
                return ""
            return response.choices[0].message.content or ""

        try:
            text = await asyncio.wait_for(
                asyncio.get_running_loop().run_in_executor(None, sync_call),
                timeout=settings.ai_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error("OpenAI call timed out", model=model, timeout=settings.ai_timeout_seconds)
            raise AIProviderError(
                "AI provider timed out",
                details={"provider": self.provider_name, "model": model, "timeout_seconds": settings.ai_timeout_seconds},
            )
        except Exception as e:
            logger.error("OpenAI call failed", model=model, error=str(e))
            raise AIProviderError(
                "AI provider request failed",
                details={"provider": self.provider_name, "model": model, "error": str(e)},
            )

        logger.info("OpenAI response received", model=model, response_chars=len(text))
        return text
