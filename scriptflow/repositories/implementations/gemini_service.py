import asyncio
from typing import List, Optional

import google.generativeai as genai
import structlog

from scriptflow.config.settings import settings
from scriptflow.core.errors import AIProviderError
from scriptflow.models.schemas import InsightAnalysis, RunSummary, ScriptEnhancement
from scriptflow.repositories.interfaces.ai_service import IAIService
from scriptflow.repositories.implementations.ai_parsing import (
    ANALYZE_SYSTEM_PROMPT,
    ENHANCE_SYSTEM_PROMPT,
    build_analyze_prompt,
    build_enhance_prompt,
    parse_analysis,
    parse_enhancement,
)

logger = structlog.get_logger()


class GeminiService(IAIService):
    """Google Gemini implementation of AI service."""

    provider_name = "gemini"

    def __init__(self) -> None:
        self.configured = bool(settings.gemini_api_key)
        if self.configured:
            genai.configure(api_key=settings.gemini_api_key)
        self.model = settings.gemini_model

    def is_configured(self) -> bool:
        return self.configured

    async def enhance_script(
        self,
        content: str,
        prompt: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> ScriptEnhancement:
        model_name = model or self.model
        text = await self._generate(
            f"{ENHANCE_SYSTEM_PROMPT}\n\n{build_enhance_prompt(content, prompt)}",
            model_name,
            settings.ai_temperature if temperature is None else temperature,
        )
        return parse_enhancement(text, content, model_name, self.provider_name)

    async def analyze_runs(
        self,
        content: str,
        runs: List[RunSummary],
        model: Optional[str] = None,
    ) -> InsightAnalysis:
        model_name = model or self.model
        text = await self._generate(
            f"{ANALYZE_SYSTEM_PROMPT}\n\n{build_analyze_prompt(content, runs)}",
            model_name,
            0.2,
        )
        return parse_analysis(text, model_name, self.provider_name)

    async def _generate(self, prompt: str, model_name: str, temperature: float) -> str:
        if not self.configured:
            raise AIProviderError(
                "Gemini provider is not configured",
                details={"provider": self.provider_name, "hint": "set GEMINI_API_KEY"},
            )

        def sync_call():
            model = genai.GenerativeModel(model_name)
            response = model.generate_content(
                prompt,
                generation_config=genai.types.GenerationConfig(
                    temperature=temperature,
                    top_p=0.9,
                    # Ask the model to return raw JSON, no prose
                    response_mime_type="application/json",
                ),
            )
            return getattr(response, "text", None) or ""

        try:
            return await asyncio.wait_for(
                asyncio.get_running_loop().run_in_executor(None, sync_call),
                timeout=settings.ai_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error("Gemini call timed out", model=model_name, timeout=settings.ai_timeout_seconds)
            raise AIProviderError(
                "AI provider timed out",
                details={"provider": self.provider_name, "model": model_name, "timeout_seconds": settings.ai_timeout_seconds},
            )
        except Exception as e:
            logger.error("Gemini call failed", model=model_name, error=str(e))
            raise AIProviderError(
                "AI provider request failed",
                details={"provider": self.provider_name, "model": model_name, "error": str(e)},
            )
