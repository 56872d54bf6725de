"""Health check endpoints."""

import shutil
from collections.abc import Awaitable, Callable
from enum import Enum

from fastapi import APIRouter
from pydantic import BaseModel, Field

from src.api.dependencies import FactoryDep, SettingsDep
from src.commons.infrastructure.blob.base import HealthStatus as StoreHealth
from src.commons.settings.models import MediaToolSettings
from src.commons.telemetry import get_logger

router = APIRouter()
logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health check status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    name: str = Field(description="Component name")
    status: HealthStatus = Field(description="Component health status")
    latency_ms: float | None = Field(default=None, description="Check latency")
    message: str | None = Field(default=None, description="Additional details")


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(description="Overall health status")
    version: str = Field(description="Application version")
    environment: str = Field(description="Deployment environment")
    components: list[ComponentHealth] = Field(
        default_factory=list,
        description="Individual component health",
    )


class LivenessResponse(BaseModel):
    """Simple liveness response."""

    status: str = Field(default="ok")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(description="Whether the service is ready to accept requests")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual readiness checks",
    )


async def _probe_store(
    name: str,
    check: Callable[[], Awaitable[StoreHealth]],
    provider: str,
) -> ComponentHealth:
    """Run one store health check; an exception counts as unhealthy."""
    try:
        result = await check()
    except Exception as e:
        logger.warning(f"{name} health check failed", extra={"error": str(e)})
        return ComponentHealth(
            name=name, status=HealthStatus.UNHEALTHY, message=str(e)
        )

    return ComponentHealth(
        name=name,
        status=HealthStatus.HEALTHY if result.healthy else HealthStatus.UNHEALTHY,
        latency_ms=result.latency_ms,
        message=result.message or f"Provider: {provider}",
    )


def _check_media_tools(media: MediaToolSettings) -> ComponentHealth:
    """Missing executables only affect video uploads, so they degrade."""
    missing = [
        tool
        for tool in (media.ffprobe_path, media.ffmpeg_path)
        if shutil.which(tool) is None
    ]
    return ComponentHealth(
        name="media_tools",
        status=HealthStatus.DEGRADED if missing else HealthStatus.HEALTHY,
        message=f"Not found: {', '.join(missing)}" if missing else None,
    )


async def _check_components(
    settings: SettingsDep,
    factory: FactoryDep,
) -> list[ComponentHealth]:
    return [
        await _probe_store(
            "blob_storage",
            lambda: factory.get_blob_storage().health_check(),
            settings.blob_storage.provider,
        ),
        await _probe_store(
            "document_db",
            lambda: factory.get_document_db().health_check(),
            settings.document_db.provider,
        ),
        _check_media_tools(settings.media),
    ]


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Get overall health status of the service and its components.",
)
async def health_check(
    settings: SettingsDep,
    factory: FactoryDep,
) -> HealthResponse:
    """Check health of all service components."""
    components = await _check_components(settings, factory)

    statuses = {c.status for c in components}
    if HealthStatus.UNHEALTHY in statuses:
        overall_status = HealthStatus.UNHEALTHY
    elif HealthStatus.DEGRADED in statuses:
        overall_status = HealthStatus.DEGRADED
    else:
        overall_status = HealthStatus.HEALTHY

    return HealthResponse(
        status=overall_status,
        version=settings.app.version,
        environment=settings.app.environment,
        components=components,
    )


@router.get(
    "/health/live",
    response_model=LivenessResponse,
    summary="Liveness probe",
    description="Simple liveness check for Kubernetes probes.",
)
async def liveness() -> LivenessResponse:
    """Simple liveness check - just verifies the app is running."""
    return LivenessResponse(status="ok")


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Readiness check for Kubernetes probes.",
)
async def readiness(
    settings: SettingsDep,
    factory: FactoryDep,
) -> ReadinessResponse:
    """Check if service is ready to accept requests.

    Both stores must be reachable; missing media tools only degrade video
    uploads and do not fail readiness.
    """
    components = await _check_components(settings, factory)
    checks = {
        c.name: c.status != HealthStatus.UNHEALTHY
        for c in components
        if c.name != "media_tools"
    }
    return ReadinessResponse(ready=all(checks.values()), checks=checks)
