"""Main FastAPI application."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from structlog import get_logger

from liveshop.api.dependencies import close_database, close_mux_client
from liveshop.api.exceptions import setup_exception_handlers
from liveshop.api.middleware import ErrorHandlingMiddleware, LoggingMiddleware
from liveshop.api.routes import clips, debug, health, jobs, streams, webhooks
from liveshop.core.cache import cache
from liveshop.core.config import Settings, get_settings
from liveshop.core.logging import configure_logging
from liveshop.infrastructure.observability import configure_logfire

logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    logger.info(
        "application_starting",
        environment=settings.environment,
        version=settings.app_version,
    )

    yield

    # Shutdown
    await cache.disconnect()
    await close_mux_client()
    await close_database()
    logger.info("application_stopped")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Live shopping stream lifecycle service for Shopify merchants",
        version=settings.app_version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    setup_exception_handlers(app, settings)
    configure_logfire(settings, app)

    # Middleware
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes
    prefix = settings.api_v1_prefix
    app.include_router(health.router, tags=["health"])
    app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
    app.include_router(streams.router, prefix=f"{prefix}/streams", tags=["streams"])
    app.include_router(clips.router, prefix=f"{prefix}/clips", tags=["clips"])
    app.include_router(jobs.router, prefix=f"{prefix}/jobs", tags=["jobs"])
    app.include_router(debug.router, prefix=f"{prefix}/debug", tags=["debug"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs" if not settings.is_production else None,
        }

    return app


app = create_app()
