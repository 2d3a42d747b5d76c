from typing import Dict
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from datetime import datetime
from sqlalchemy import text
from sqlalchemy.orm import Session
import structlog
from scriptflow.config.settings import settings
from scriptflow.core.database import get_database
from scriptflow.core.dependencies import get_ai_services
from scriptflow.repositories.interfaces.ai_service import IAIService

logger = structlog.get_logger()

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    environment: str


@router.get("", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health_check():
    """Liveness: the process is up"""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow(),
        version=settings.app_version,
        environment=settings.environment
    )


@router.get("/readiness")
async def readiness_check(
    db: Session = Depends(get_database),
    ai_services: Dict[str, IAIService] = Depends(get_ai_services),
):
    """Readiness: database reachable and the default AI provider configured"""
    checks = {}
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        logger.warning("Database readiness check failed", error=str(e))
        checks["database"] = "error"

    for name, service in sorted(ai_services.items()):
        checks[name] = "ok" if service.is_configured() else "not_configured"

    default_ok = checks.get(settings.ai_provider) == "ok"
    ready = checks["database"] == "ok" and default_ok

    return {
        "status": "ready" if ready else "not_ready",
        "checks": checks,
        "executor": "remote" if settings.executor_url else "local",
        "timestamp": datetime.utcnow()
    }
