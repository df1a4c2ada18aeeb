"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, cast

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.router import api_router
from app.config import settings
from app.core.database import close_db, create_engine, create_session_factory, init_db
from app.core.logging import setup_logging
from app.core.redis import close_redis, create_redis_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    setup_logging(settings.log_level)

    logger.info(
        "Starting GetCareKorea learning service",
        extra={
            "environment": settings.environment,
            "version": settings.app_version,
            "search_console_configured": settings.search_console_configured,
        },
    )

    engine = create_engine(settings)
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.redis = create_redis_client(settings.redis_url) if settings.redis_url else None

    if settings.environment == "development":
        await init_db(engine)
        logger.info("Development database initialized")

    yield

    logger.info("Shutting down GetCareKorea learning service")
    await close_redis(app.state.redis)
    await close_db(engine)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Content learning and performance feedback loop: Search Console collection, "
            "performance tiers, learning data and prompt augmentation"
        ),
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        cast(Any, CORSMiddleware),
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix=settings.api_v1_prefix)

    @app.get(
        "/health",
        summary="Health check",
        description="Return service health status and backend version information.",
    )
    async def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": settings.app_version,
            "search_console_configured": settings.search_console_configured,
        }

    return app


app = create_app()
