from abc import ABC, abstractmethod
from typing import List, Optional
from scriptflow.models.schemas import AIInsight, InsightCreate


class IInsightRepository(ABC):
    """Interface for append-only AI insight storage"""

    @abstractmethod
    async def create(self, script_id: int, insight: InsightCreate, run_id: Optional[int] = None) -> AIInsight:
        pass

    @abstractmethod
    async def list_for_script(self, script_id: int) -> List[AIInsight]:
        """All insights of a script in creation order"""
        pass
