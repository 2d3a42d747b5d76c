from abc import ABC, abstractmethod
from typing import List, Optional
from scriptflow.models.schemas import Script, ScriptCreate, ScriptRevision


class IScriptRepository(ABC):
    """Interface for script and revision storage"""

    @abstractmethod
    async def create(self, script: ScriptCreate, user_id: str) -> Script:
        pass

    @abstractmethod
    async def get_owned(self, script_id: int, user_id: str) -> Script:
        """Return the script if it exists and belongs to ``user_id``; raise ScriptNotFound otherwise"""
        pass

    @abstractmethod
    async def list_for_user(
        self, user_id: str, project_id: Optional[str] = None, skip: int = 0, limit: int = 100
    ) -> List[Script]:
        pass

    @abstractmethod
    async def delete(self, script_id: int, user_id: str) -> None:
        pass

    @abstractmethod
    async def list_revisions(self, script_id: int) -> List[ScriptRevision]:
        pass

    @abstractmethod
    async def count_for_user(self, user_id: str, project_id: Optional[str] = None) -> int:
        pass
