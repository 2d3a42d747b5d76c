from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any, Literal
from datetime import datetime
from enum import Enum


class ChangeSetStatus(str, Enum):
    PROPOSED = "proposed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class TestRunStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_RUN_STATUSES


TERMINAL_RUN_STATUSES = frozenset(
    {TestRunStatus.PASSED, TestRunStatus.FAILED, TestRunStatus.CANCELLED}
)

# Allowed source states for each target state of a run
RUN_TRANSITIONS: Dict[TestRunStatus, frozenset] = {
    TestRunStatus.RUNNING: frozenset({TestRunStatus.QUEUED}),
    TestRunStatus.PASSED: frozenset({TestRunStatus.RUNNING}),
    TestRunStatus.FAILED: frozenset({TestRunStatus.RUNNING}),
    TestRunStatus.CANCELLED: frozenset({TestRunStatus.QUEUED, TestRunStatus.RUNNING}),
}


class Browser(str, Enum):
    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class InsightSeverity(str, Enum):
    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AIProviderName(str, Enum):
    OPENAI = "openai"
    GEMINI = "gemini"


# Scripts

class ScriptCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, description="Script title")
    content: str = Field(default="", description="Initial script source")
    language: str = Field(default="typescript", max_length=50)
    description: Optional[str] = None
    project_id: Optional[str] = Field(None, max_length=100, description="Owning project reference")


class Script(BaseModel):
    id: int
    user_id: str
    project_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    language: str
    content: str
    current_version: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ScriptRevision(BaseModel):
    id: int
    script_id: int
    version: int
    diff: str
    content: str
    changeset_id: Optional[int] = None
    applied_by: str
    created_at: datetime

    class Config:
        from_attributes = True


# Change-sets

class ProviderConfig(BaseModel):
    provider: Optional[AIProviderName] = Field(None, description="AI provider; defaults to the configured one")
    model: Optional[str] = Field(None, description="Override the provider's default model")
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)


class EnhanceScriptRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=4000, description="What the AI should improve")
    provider_config: ProviderConfig = Field(default_factory=ProviderConfig)


class ScriptEnhancement(BaseModel):
    """What an AI provider hands back for a proposal."""
    proposed_diff: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    ai_model: str
    summary: Optional[str] = None


class ScriptChangeSet(BaseModel):
    id: int
    script_id: int
    prompt: str
    proposed_diff: str
    ai_provider: str
    ai_model: str
    confidence: float
    summary: Optional[str] = None
    base_version: int
    status: ChangeSetStatus
    created_by: str
    created_at: datetime
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AcceptChangeSetResponse(BaseModel):
    revision_id: int
    version: int
    status: ChangeSetStatus = ChangeSetStatus.ACCEPTED


class RejectChangeSetResponse(BaseModel):
    id: int
    status: ChangeSetStatus = ChangeSetStatus.REJECTED


# Test runs

class TestRunCreate(BaseModel):
    script_id: int
    environment: str = Field(..., min_length=1, max_length=50)
    browser: Browser = Field(default=Browser.CHROMIUM)


class TestRunProgress(BaseModel):
    status: Literal["running", "passed", "failed"]
    results: Optional[Dict[str, Any]] = None


class TestRun(BaseModel):
    id: int
    script_id: int
    environment: str
    browser: Browser
    status: TestRunStatus
    created_by: str
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    results: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True


# Insights

class InsightCreate(BaseModel):
    type: str = Field(..., min_length=1, max_length=50)
    severity: InsightSeverity = InsightSeverity.INFO
    summary: str = Field(..., min_length=1)
    details: Dict[str, Any] = Field(default_factory=dict)


class AIInsight(BaseModel):
    id: int
    script_id: int
    run_id: Optional[int] = None
    type: str
    severity: InsightSeverity
    summary: str
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


# Dashboard

class DashboardStats(BaseModel):
    total_scripts: int
    total_runs: int
    success_rate: float = Field(..., description="Passed runs as a percentage of finished, non-cancelled runs")
    pending_changesets: int


class RunSummary(BaseModel):
    """Trimmed run view handed to the AI when analyzing a script."""
    id: int
    status: TestRunStatus
    environment: str
    browser: Browser
    results: Optional[Dict[str, Any]] = None


class InsightAnalysis(BaseModel):
    findings: List[InsightCreate] = Field(default_factory=list)
    ai_model: str
