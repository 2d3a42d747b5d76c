from abc import ABC, abstractmethod
from typing import List, Optional
from scriptflow.models.schemas import (
    ChangeSetStatus, ScriptChangeSet, ScriptEnhancement, ScriptRevision,
)


class IChangeSetRepository(ABC):
    """Interface for change-set lifecycle storage"""

    @abstractmethod
    async def create(
        self,
        script_id: int,
        prompt: str,
        enhancement: ScriptEnhancement,
        ai_provider: str,
        base_version: int,
        created_by: str,
    ) -> ScriptChangeSet:
        pass

    @abstractmethod
    async def get(self, script_id: int, changeset_id: int) -> ScriptChangeSet:
        """Raise ChangesetNotFound unless the change-set exists under ``script_id``"""
        pass

    @abstractmethod
    async def list_for_script(
        self, script_id: int, status: Optional[ChangeSetStatus] = None
    ) -> List[ScriptChangeSet]:
        pass

    @abstractmethod
    async def accept(
        self,
        changeset: ScriptChangeSet,
        expected_version: int,
        new_content: str,
        applied_by: str,
    ) -> ScriptRevision:
        """Atomically flip the change-set to accepted, write the revision and update the script.

        Raises InvalidChangesetState if the change-set left ``proposed`` meanwhile and
        ConcurrencyConflict if the script moved past ``expected_version``. On any
        failure none of the three effects is persisted.
        """
        pass

    @abstractmethod
    async def reject(self, changeset: ScriptChangeSet, resolved_by: str) -> ScriptChangeSet:
        """Conditionally flip proposed -> rejected; raise InvalidChangesetState otherwise"""
        pass

    @abstractmethod
    async def count_pending_for_user(self, user_id: str, project_id: Optional[str] = None) -> int:
        pass
