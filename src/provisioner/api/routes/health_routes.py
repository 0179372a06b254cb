"""Health check and metrics routes."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from provisioner import __version__
from provisioner.api.dependencies.services import get_service_container, ServiceContainer
from provisioner.config import StoreBackend
from provisioner.domain.errors import ArtifactError


router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
    }


@router.get("/health/ready")
async def readiness_check(
    container: Annotated[ServiceContainer, Depends(get_service_container)],
) -> dict[str, Any]:
    """Readiness check - the token artifact loads and the stores are reachable."""
    checks: dict[str, str] = {}

    try:
        container.token_artifact
        checks["token_artifact"] = "ok"
    except ArtifactError:
        checks["token_artifact"] = "error"

    if container.uses_backend(StoreBackend.REDIS):
        try:
            await container.redis_client.ping()
            checks["redis"] = "ok"
        except (RedisError, OSError):
            checks["redis"] = "error"

    if container.uses_backend(StoreBackend.POSTGRES):
        try:
            await container.database.ping()
            checks["database"] = "ok"
        except (SQLAlchemyError, OSError, RuntimeError):
            checks["database"] = "error"

    all_ok = all(v == "ok" for v in checks.values())
    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """Liveness check - verifies the service is running."""
    return {"status": "alive"}


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
