from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from scriptflow.api.error_handlers import register_error_handlers
from scriptflow.api.middleware import request_context
from scriptflow.api.routes import api_router
from scriptflow.config.settings import settings
from scriptflow.core.database import create_tables
from scriptflow.core.errors import AuthenticationError
from scriptflow.core.logging_config import configure_logging
from scriptflow.core.security import signing_key

configure_logging(settings.log_level)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up", environment=settings.environment)
    try:
        signing_key()
    except AuthenticationError as e:
        logger.error("Refusing to start without a token signing key", error=e.message)
        raise

    try:
        create_tables()
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    logger.info(
        "Application startup completed",
        ai_provider=settings.ai_provider,
        executor="remote" if settings.executor_url else "local",
    )
    yield
    logger.info("Application shutting down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title=settings.app_name,
        description="Test automation backend: AI-moderated script change-sets, test runs and insights",
        version=settings.app_version,
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_context)

    register_error_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
