from abc import ABC, abstractmethod
from typing import List, Optional
from scriptflow.models.schemas import ScriptEnhancement, InsightAnalysis, RunSummary


class IAIService(ABC):
    """Interface for AI/LLM operations"""

    provider_name: str = "unknown"

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials for the provider are present"""
        pass

    @abstractmethod
    async def enhance_script(
        self,
        content: str,
        prompt: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> ScriptEnhancement:
        """Propose an improved script as a unified diff against ``content``.

        Raises AIProviderError when the provider fails or returns unusable output.
        """
        pass

    @abstractmethod
    async def analyze_runs(
        self,
        content: str,
        runs: List[RunSummary],
        model: Optional[str] = None,
    ) -> InsightAnalysis:
        """Derive findings about a script from its recent runs"""
        pass
