from typing import List, Optional
import structlog
from scriptflow.core.security import CurrentUser
from scriptflow.models.schemas import Script, ScriptCreate, ScriptRevision
from scriptflow.repositories.interfaces.script_repository import IScriptRepository

logger = structlog.get_logger()


class ScriptService:
    """Script store: creation, lookup and revision history"""

    def __init__(self, script_repository: IScriptRepository):
        self.script_repository = script_repository

    async def create_script(self, data: ScriptCreate, user: CurrentUser) -> Script:
        script = await self.script_repository.create(data, user.user_id)
        logger.info("Script created", script_id=script.id, user_id=user.user_id, project_id=script.project_id)
        return script

    async def get_script(self, script_id: int, user: CurrentUser) -> Script:
        return await self.script_repository.get_owned(script_id, user.user_id)

    async def list_scripts(
        self, user: CurrentUser, project_id: Optional[str] = None, skip: int = 0, limit: int = 100
    ) -> List[Script]:
        return await self.script_repository.list_for_user(user.user_id, project_id=project_id, skip=skip, limit=limit)

    async def delete_script(self, script_id: int, user: CurrentUser) -> None:
        await self.script_repository.delete(script_id, user.user_id)
        logger.info("Script deleted", script_id=script_id, user_id=user.user_id)

    async def list_revisions(self, script_id: int, user: CurrentUser) -> List[ScriptRevision]:
        await self.script_repository.get_owned(script_id, user.user_id)
        return await self.script_repository.list_revisions(script_id)
