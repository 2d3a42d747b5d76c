from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.orm import Session
from scriptflow.repositories.interfaces.insight_repository import IInsightRepository
from scriptflow.models.database import AIInsightModel
from scriptflow.models.schemas import AIInsight, InsightCreate


class SQLInsightRepository(IInsightRepository):
    """SQLAlchemy implementation of insight repository"""

    def __init__(self, db: Session):
        self.db = db

    async def create(self, script_id: int, insight: InsightCreate, run_id: Optional[int] = None) -> AIInsight:
        db_insight = AIInsightModel(
            script_id=script_id,
            run_id=run_id,
            category=insight.type,
            severity=insight.severity,
            summary=insight.summary,
            details=insight.details,
        )
        self.db.add(db_insight)
        self.db.commit()
        self.db.refresh(db_insight)
        return self._to_schema(db_insight)

    async def list_for_script(self, script_id: int) -> List[AIInsight]:
        rows = self.db.execute(
            select(AIInsightModel)
            .where(AIInsightModel.script_id == script_id)
            .order_by(AIInsightModel.id.asc())
        ).scalars().all()
        return [self._to_schema(row) for row in rows]

    @staticmethod
    def _to_schema(row: AIInsightModel) -> AIInsight:
        return AIInsight(
            id=row.id,
            script_id=row.script_id,
            run_id=row.run_id,
            type=row.category,
            severity=row.severity,
            summary=row.summary,
            details=row.details or {},
            created_at=row.created_at,
        )
