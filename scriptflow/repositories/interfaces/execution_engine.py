from abc import ABC, abstractmethod
from scriptflow.models.schemas import Script, TestRun


class IExecutionEngine(ABC):
    """Interface for the browser execution collaborator"""

    @abstractmethod
    async def submit(self, run: TestRun, script: Script) -> None:
        """Hand a queued run over for execution; raise ExecutionEngineError on failure"""
        pass

    @abstractmethod
    async def cancel(self, run_id: int) -> None:
        """Advisory cancellation; the orchestrator has already recorded it"""
        pass
