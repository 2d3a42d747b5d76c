from fastapi import APIRouter
from scriptflow.api.routes import health, scripts, changesets, test_runs, insights, dashboard

api_router = APIRouter()

# Include all route modules
api_router.include_router(health.router)
api_router.include_router(scripts.router)
api_router.include_router(changesets.router)
api_router.include_router(test_runs.router)
api_router.include_router(insights.router)
api_router.include_router(dashboard.router)
