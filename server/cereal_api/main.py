# FastAPI application factory with lifespan management.
# Entrypoint: uvicorn cereal_api.main:create_app --factory --host 0.0.0.0 --port 8080

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from cereal_api.auth import TokenService
from cereal_api.config import Settings, get_settings
from cereal_api.db import Database
from cereal_api.exceptions import register_exception_handlers
from cereal_api.logging_config import configure_logging
from cereal_api.middleware import HTTPSRequiredMiddleware, RequestContextMiddleware
from cereal_api.rate_limit import (
    build_limiter,
    build_rate_limit_dependency,
    rate_limit_exceeded_handler,
)
from cereal_api.routes import auth, cereal, health
from cereal_api.services.images import ImageResolver
from cereal_api.services.importer import run_seed_import

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create tables, import the seed feed, dispose the engine on shutdown."""
    settings: Settings = app.state.settings
    database: Database = app.state.database

    database.create_all()
    if settings.import_on_startup:
        run_seed_import(database, settings)
    else:
        logger.info("import_skipped", reason="IMPORT_ON_STARTUP disabled")

    logger.info("startup_complete", docs_enabled=settings.enable_docs)
    yield

    database.dispose()
    logger.info("shutdown_complete")


def _parse_origins(allowed_origins: str) -> list[str]:
    """Parse comma-separated CORS origins. Empty string → deny all."""
    if not allowed_origins.strip():
        logger.warning(
            "cors_no_origins_configured",
            hint="Set ALLOWED_ORIGINS env var. Cross-origin requests will be rejected.",
        )
        return []
    return [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory. Invoked by: uvicorn cereal_api.main:create_app --factory"""
    settings = settings or get_settings()
    configure_logging(log_level=settings.log_level, json_output=settings.log_json)

    app = FastAPI(
        title="Cereal API",
        description="Breakfast cereal catalogue with filtering, images and JWT-protected writes",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.enable_docs else None,
        redoc_url="/redoc" if settings.enable_docs else None,
        openapi_url="/openapi.json" if settings.enable_docs else None,
    )

    app.state.settings = settings
    app.state.database = Database(settings.database_url)
    app.state.token_service = TokenService(settings)
    app.state.image_resolver = ImageResolver(settings)

    limiter = build_limiter(settings)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # Middleware order (Starlette applies in reverse):
    # CORS → RequestContext → HTTPS gate
    if settings.require_https:
        app.add_middleware(HTTPSRequiredMiddleware)
        logger.info("https_required_enabled")

    app.add_middleware(RequestContextMiddleware)

    origins = _parse_origins(settings.allowed_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    register_exception_handlers(app)

    # Probes are included without the limiter so they are never throttled.
    rate_limited = [Depends(build_rate_limit_dependency(limiter, settings.rate_limit))]
    app.include_router(health.router, tags=["health"])
    app.include_router(cereal.router, tags=["cereal"], dependencies=rate_limited)
    app.include_router(auth.router, tags=["auth"], dependencies=rate_limited)

    return app
