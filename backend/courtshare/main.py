"""
Court Share API - Main Application Entry Point

Reservation core for shared court bookings:
- Slot grid per court and facility-local date, cached in Redis
- Overlap-safe reservations (court row lock + exclusion constraint on Postgres)
- Single-use invite tokens and permanent short links with an optional password
- Per-participant attendance and payment tracking
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from courtshare.api.middleware import RequestLoggingMiddleware
from courtshare.api.router import api_router
from courtshare.core.config import Settings, get_settings
from courtshare.core.errors import ServiceError, service_error_handler
from courtshare.core.logging import get_logger, setup_logging
from courtshare.core.metrics import metrics_endpoint
from courtshare.db.session import build_engine, build_sessionmaker
from courtshare.services.cache_service import close_redis, get_cache_stats, get_redis


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifecycle: startup and shutdown hooks."""
        setup_logging(settings)
        logger = get_logger(__name__)

        logger.info(
            "application_starting",
            app=settings.APP_NAME,
            version=settings.APP_VERSION,
            environment=settings.ENVIRONMENT,
            timezone=settings.FACILITY_TIMEZONE,
        )

        engine = build_engine(settings.DATABASE_URL, settings, echo=settings.DEBUG)
        app.state.engine = engine
        app.state.session_factory = build_sessionmaker(engine)

        redis_client = await get_redis()
        if redis_client:
            logger.info("redis_ready")
        else:
            logger.warning("redis_unavailable", message="Running without slot cache")

        yield

        await close_redis()
        await engine.dispose()
        logger.info("application_shutdown")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Court reservation API with invites, short links and participant tracking",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_exception_handler(ServiceError, service_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.APP_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(api_router)

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for Docker and load balancers."""
        cache_stats = await get_cache_stats()
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "cache": cache_stats,
        }

    @app.get("/metrics", tags=["Health"], include_in_schema=False)
    async def metrics():
        return metrics_endpoint()

    return app


app = create_app()
