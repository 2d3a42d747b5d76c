from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import structlog
from scriptflow.core.errors import ChangesetNotFound, ConcurrencyConflict, InvalidChangesetState
from scriptflow.repositories.interfaces.changeset_repository import IChangeSetRepository
from scriptflow.models.database import ScriptChangeSetModel, ScriptModel, ScriptRevisionModel
from scriptflow.models.schemas import (
    ChangeSetStatus, ScriptChangeSet, ScriptEnhancement, ScriptRevision,
)

logger = structlog.get_logger()


class SQLChangeSetRepository(IChangeSetRepository):
    """SQLAlchemy implementation of change-set repository.

    Status changes are conditional UPDATEs on the expected prior status; the
    affected row count decides whether the caller won.
    """

    def __init__(self, db: Session):
        self.db = db

    async def create(
        self,
        script_id: int,
        prompt: str,
        enhancement: ScriptEnhancement,
        ai_provider: str,
        base_version: int,
        created_by: str,
    ) -> ScriptChangeSet:
        db_changeset = ScriptChangeSetModel(
            script_id=script_id,
            prompt=prompt,
            proposed_diff=enhancement.proposed_diff,
            ai_provider=ai_provider,
            ai_model=enhancement.ai_model,
            confidence=enhancement.confidence,
            summary=enhancement.summary,
            base_version=base_version,
            status=ChangeSetStatus.PROPOSED,
            created_by=created_by,
        )
        self.db.add(db_changeset)
        self.db.commit()
        self.db.refresh(db_changeset)
        return ScriptChangeSet.model_validate(db_changeset)

    async def get(self, script_id: int, changeset_id: int) -> ScriptChangeSet:
        db_changeset = self._load(script_id, changeset_id)
        return ScriptChangeSet.model_validate(db_changeset)

    async def list_for_script(
        self, script_id: int, status: Optional[ChangeSetStatus] = None
    ) -> List[ScriptChangeSet]:
        query = select(ScriptChangeSetModel).where(ScriptChangeSetModel.script_id == script_id)
        if status is not None:
            query = query.where(ScriptChangeSetModel.status == status)
        query = query.order_by(ScriptChangeSetModel.id.asc())
        return [ScriptChangeSet.model_validate(c) for c in self.db.execute(query).scalars().all()]

    async def accept(
        self,
        changeset: ScriptChangeSet,
        expected_version: int,
        new_content: str,
        applied_by: str,
    ) -> ScriptRevision:
        now = datetime.now(timezone.utc)
        new_version = expected_version + 1
        try:
            flipped = self.db.execute(
                update(ScriptChangeSetModel)
                .where(
                    ScriptChangeSetModel.id == changeset.id,
                    ScriptChangeSetModel.status == ChangeSetStatus.PROPOSED,
                )
                .values(status=ChangeSetStatus.ACCEPTED, resolved_by=applied_by, resolved_at=now)
            ).rowcount
            if flipped != 1:
                raise InvalidChangesetState(
                    f"Change-set {changeset.id} is no longer proposed",
                    details={"changeset_id": changeset.id},
                )

            bumped = self.db.execute(
                update(ScriptModel)
                .where(
                    ScriptModel.id == changeset.script_id,
                    ScriptModel.current_version == expected_version,
                )
                .values(content=new_content, current_version=new_version, updated_at=now)
            ).rowcount
            if bumped != 1:
                raise ConcurrencyConflict(
                    f"Script {changeset.script_id} changed while accepting change-set {changeset.id}",
                    details={"script_id": changeset.script_id, "expected_version": expected_version},
                )

            db_revision = ScriptRevisionModel(
                script_id=changeset.script_id,
                version=new_version,
                diff=changeset.proposed_diff,
                content=new_content,
                changeset_id=changeset.id,
                applied_by=applied_by,
            )
            self.db.add(db_revision)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("Revision version collision", script_id=changeset.script_id, version=new_version, error=str(e))
            raise ConcurrencyConflict(
                f"Revision {new_version} of script {changeset.script_id} already exists",
                details={"script_id": changeset.script_id, "version": new_version},
            )
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(db_revision)
        return ScriptRevision.model_validate(db_revision)

    async def reject(self, changeset: ScriptChangeSet, resolved_by: str) -> ScriptChangeSet:
        try:
            flipped = self.db.execute(
                update(ScriptChangeSetModel)
                .where(
                    ScriptChangeSetModel.id == changeset.id,
                    ScriptChangeSetModel.status == ChangeSetStatus.PROPOSED,
                )
                .values(
                    status=ChangeSetStatus.REJECTED,
                    resolved_by=resolved_by,
                    resolved_at=datetime.now(timezone.utc),
                )
            ).rowcount
            if flipped != 1:
                raise InvalidChangesetState(
                    f"Change-set {changeset.id} is no longer proposed",
                    details={"changeset_id": changeset.id},
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return await self.get(changeset.script_id, changeset.id)

    async def count_pending_for_user(self, user_id: str, project_id: Optional[str] = None) -> int:
        query = (
            select(func.count(ScriptChangeSetModel.id))
            .join(ScriptModel, ScriptModel.id == ScriptChangeSetModel.script_id)
            .where(
                ScriptModel.user_id == user_id,
                ScriptChangeSetModel.status == ChangeSetStatus.PROPOSED,
            )
        )
        if project_id:
            query = query.where(ScriptModel.project_id == project_id)
        return self.db.execute(query).scalar_one()

    def _load(self, script_id: int, changeset_id: int) -> ScriptChangeSetModel:
        db_changeset = self.db.execute(
            select(ScriptChangeSetModel).where(
                ScriptChangeSetModel.id == changeset_id,
                ScriptChangeSetModel.script_id == script_id,
            )
        ).scalar_one_or_none()
        if db_changeset is None:
            raise ChangesetNotFound(
                f"Change-set {changeset_id} not found",
                details={"script_id": script_id, "changeset_id": changeset_id},
            )
        return db_changeset
