"""Health and readiness endpoints for monitoring.

Provides:
- GET /health - Returns application health status
- GET /ready - Returns readiness for traffic
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from cql_explorer import __version__
from cql_explorer.catalog.service import get_catalog_service

router = APIRouter(tags=["health"])


class ComponentHealth(BaseModel):
    """Health status of a component."""

    healthy: bool = Field(..., description="Whether the component is healthy.")
    error: str | None = Field(default=None, description="Error message if unhealthy.")


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str = Field(..., description="Overall status: healthy or unhealthy.")
    version: str = Field(..., description="Application version.")
    components: dict[str, ComponentHealth] = Field(
        ...,
        description="Health status of individual components.",
    )


class ReadyResponse(BaseModel):
    """Response for readiness check endpoint."""

    ready: bool = Field(..., description="Whether the application is ready for traffic.")
    reason: str | None = Field(default=None, description="Reason if not ready.")


def _catalog_health() -> dict[str, bool | str]:
    return get_catalog_service().health_check()


@router.get("/health", response_model=HealthResponse)
def health_check(response: Response) -> HealthResponse:
    """Check application health.

    Returns the overall health status along with component-level health.
    Checks catalog connectivity.

    Returns:
        HealthResponse with status, version, and component health.
        Returns 503 status code if unhealthy.
    """
    try:
        catalog_health = _catalog_health()
        component = ComponentHealth(
            healthy=bool(catalog_health.get("catalog", False)),
            error=None if catalog_health.get("catalog") else catalog_health.get("error"),
        )
        overall_healthy = bool(catalog_health.get("healthy", False))
    except Exception as e:
        component = ComponentHealth(healthy=False, error=str(e))
        overall_healthy = False

    if overall_healthy:
        status = "healthy"
    else:
        status = "unhealthy"
        response.status_code = 503

    return HealthResponse(
        status=status,
        version=__version__,
        components={"catalog": component},
    )


@router.get("/ready", response_model=ReadyResponse)
def readiness_check(response: Response) -> ReadyResponse:
    """Check application readiness for traffic.

    Requires the catalog to be reachable.

    Returns:
        ReadyResponse with ready status.
        Returns 503 status code if not ready.
    """
    try:
        catalog_health = _catalog_health()
    except Exception as e:
        response.status_code = 503
        return ReadyResponse(ready=False, reason=str(e))

    if not catalog_health.get("healthy", False):
        response.status_code = 503
        return ReadyResponse(
            ready=False,
            reason=str(catalog_health.get("error", "Health check failed")),
        )

    return ReadyResponse(ready=True)
