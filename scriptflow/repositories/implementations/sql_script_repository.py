from typing import List, Optional
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session
from scriptflow.core.errors import ScriptNotFound
from scriptflow.repositories.interfaces.script_repository import IScriptRepository
from scriptflow.models.database import (
    AIInsightModel, ScriptChangeSetModel, ScriptModel, ScriptRevisionModel, TestRunModel,
)
from scriptflow.models.schemas import Script, ScriptCreate, ScriptRevision


class SQLScriptRepository(IScriptRepository):
    """SQLAlchemy implementation of script repository"""

    def __init__(self, db: Session):
        self.db = db

    async def create(self, script: ScriptCreate, user_id: str) -> Script:
        """Create a new script at version 0"""
        db_script = ScriptModel(**script.model_dump(), user_id=user_id, current_version=0)
        self.db.add(db_script)
        self.db.commit()
        self.db.refresh(db_script)
        return Script.model_validate(db_script)

    async def get_owned(self, script_id: int, user_id: str) -> Script:
        db_script = self.db.execute(
            select(ScriptModel).where(ScriptModel.id == script_id, ScriptModel.user_id == user_id)
        ).scalar_one_or_none()
        if db_script is None:
            # other users' scripts are reported as missing
            raise ScriptNotFound(f"Script {script_id} not found", details={"script_id": script_id})
        return Script.model_validate(db_script)

    async def list_for_user(
        self, user_id: str, project_id: Optional[str] = None, skip: int = 0, limit: int = 100
    ) -> List[Script]:
        """List a user's scripts, newest first"""
        query = select(ScriptModel).where(ScriptModel.user_id == user_id)
        if project_id:
            query = query.where(ScriptModel.project_id == project_id)
        query = query.order_by(ScriptModel.created_at.desc(), ScriptModel.id.desc()).offset(skip).limit(limit)
        return [Script.model_validate(s) for s in self.db.execute(query).scalars().all()]

    async def delete(self, script_id: int, user_id: str) -> None:
        """Delete a script together with everything hanging off it"""
        await self.get_owned(script_id, user_id)
        try:
            for model in (AIInsightModel, ScriptRevisionModel, TestRunModel, ScriptChangeSetModel):
                self.db.execute(delete(model).where(model.script_id == script_id))
            self.db.execute(delete(ScriptModel).where(ScriptModel.id == script_id))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    async def list_revisions(self, script_id: int) -> List[ScriptRevision]:
        rows = self.db.execute(
            select(ScriptRevisionModel)
            .where(ScriptRevisionModel.script_id == script_id)
            .order_by(ScriptRevisionModel.version.asc())
        ).scalars().all()
        return [ScriptRevision.model_validate(r) for r in rows]

    async def count_for_user(self, user_id: str, project_id: Optional[str] = None) -> int:
        query = select(func.count(ScriptModel.id)).where(ScriptModel.user_id == user_id)
        if project_id:
            query = query.where(ScriptModel.project_id == project_id)
        return self.db.execute(query).scalar_one()
