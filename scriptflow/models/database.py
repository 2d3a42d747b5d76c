from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Enum, JSON, Float, ForeignKey, UniqueConstraint, Index,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
from scriptflow.models.schemas import ChangeSetStatus, TestRunStatus, Browser, InsightSeverity

Base = declarative_base()


class ScriptModel(Base):
    __tablename__ = "scripts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(100), nullable=False, index=True)
    project_id = Column(String(100), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    language = Column(String(50), nullable=False, default="typescript")
    content = Column(Text, nullable=False, default="")
    # Version of the latest revision; 0 until a change-set is accepted
    current_version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Script(id={self.id}, title='{self.title}', version={self.current_version})>"


class ScriptRevisionModel(Base):
    __tablename__ = "script_revisions"
    __table_args__ = (
        UniqueConstraint("script_id", "version", name="uq_script_revisions_script_version"),
    )

    id = Column(Integer, primary_key=True, index=True)
    script_id = Column(Integer, ForeignKey("scripts.id", ondelete="CASCADE"), nullable=False, index=True)
    version = Column(Integer, nullable=False)
    diff = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    changeset_id = Column(Integer, ForeignKey("script_changesets.id", ondelete="SET NULL"), nullable=True)
    applied_by = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ScriptRevision(script_id={self.script_id}, version={self.version})>"


class ScriptChangeSetModel(Base):
    __tablename__ = "script_changesets"
    __table_args__ = (
        Index("ix_script_changesets_script_status", "script_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    script_id = Column(Integer, ForeignKey("scripts.id", ondelete="CASCADE"), nullable=False)
    prompt = Column(Text, nullable=False)
    proposed_diff = Column(Text, nullable=False)
    ai_provider = Column(String(50), nullable=False)
    ai_model = Column(String(100), nullable=False)
    confidence = Column(Float, nullable=False)
    summary = Column(Text, nullable=True)
    base_version = Column(Integer, nullable=False)
    status = Column(Enum(ChangeSetStatus), nullable=False, default=ChangeSetStatus.PROPOSED)
    created_by = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    resolved_by = Column(String(100), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<ScriptChangeSet(id={self.id}, script_id={self.script_id}, status='{self.status}')>"


class TestRunModel(Base):
    __tablename__ = "test_runs"

    id = Column(Integer, primary_key=True, index=True)
    script_id = Column(Integer, ForeignKey("scripts.id", ondelete="CASCADE"), nullable=False, index=True)
    environment = Column(String(50), nullable=False)
    browser = Column(Enum(Browser), nullable=False, default=Browser.CHROMIUM)
    status = Column(Enum(TestRunStatus), nullable=False, default=TestRunStatus.QUEUED, index=True)
    created_by = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    results = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<TestRun(id={self.id}, script_id={self.script_id}, status='{self.status}')>"


class AIInsightModel(Base):
    __tablename__ = "ai_insights"

    id = Column(Integer, primary_key=True, index=True)
    script_id = Column(Integer, ForeignKey("scripts.id", ondelete="CASCADE"), nullable=False, index=True)
    run_id = Column(Integer, ForeignKey("test_runs.id", ondelete="SET NULL"), nullable=True)
    category = Column(String(50), nullable=False)
    severity = Column(Enum(InsightSeverity), nullable=False, default=InsightSeverity.INFO)
    summary = Column(Text, nullable=False)
    details = Column(JSON, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<AIInsight(id={self.id}, script_id={self.script_id}, category='{self.category}')>"
