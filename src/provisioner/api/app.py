"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from provisioner import __version__
from provisioner.api.dependencies.services import get_service_container
from provisioner.api.middleware.correlation import CORRELATION_HEADER, CorrelationIdMiddleware
from provisioner.api.routes import health_routes, provisioning_routes
from provisioner.config import get_settings, Settings
from provisioner.domain.errors import ArtifactError
from provisioner.infrastructure.observability.logging import setup_logging
from provisioner.infrastructure.observability.tracing import setup_tracing


logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    container = get_service_container()
    settings = container.settings
    setup_logging(settings.observability.log_level, json_output=not settings.debug)
    tracing = setup_tracing(settings.observability)
    logger.info(
        "application_starting",
        environment=settings.environment.value,
        debug=settings.debug,
        result_backend=settings.store.result_backend.value,
        tracing_enabled=tracing,
    )
    await container.startup()

    yield

    logger.info("application_shutting_down")
    await container.shutdown()
    logger.info("application_shutdown_complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="DAO Provisioner",
        description="Provisions a DAO with a governance token and a token-voting plugin",
        version=__version__,
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        lifespan=lifespan,
    )

    # Middleware (order matters - first added = outermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER],
    )
    app.add_middleware(CorrelationIdMiddleware)

    register_exception_handlers(app)

    # Routes
    app.include_router(health_routes.router)
    app.include_router(provisioning_routes.router, prefix=settings.api_prefix)

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Map configuration errors raised mid-request to HTTP responses."""

    @app.exception_handler(ArtifactError)
    async def token_artifact_unavailable(_request: Request, exc: ArtifactError) -> JSONResponse:
        logger.error("token_artifact_unavailable", error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(exc)},
        )
