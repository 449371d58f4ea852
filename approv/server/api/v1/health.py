"""
Health Check Endpoints.

This module provides the liveness and readiness endpoints used by the load
balancer and deployment checks. They are exempt from rate limiting and CSRF.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from approv.core.database import ping_database
from approv.core.logging_config import get_logger
from approv.core.models.domain.lifecycle import utc_now
from approv.server.core import constant
from approv.server.services.deps import SessionDep

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/health",
    summary="Health Check",
    description="Check the operational status of the API server.",
    response_description="Status object.",
)
async def health_check():
    """
    Health check endpoint.

    Returns a simple status indicator to confirm the server is running and reachable.
    """
    return {
        "status": "healthy",
        "timestamp": utc_now().isoformat(),
        "service": constant.SERVICE_NAME,
        "version": constant.VERSION,
    }


@router.get(
    "/health/ready",
    summary="Readiness Check",
    description="Check that the database is reachable. Responds with 503 while it is not.",
    response_description="Readiness status with per-dependency checks.",
    responses={503: {"description": "A dependency is unavailable"}},
)
async def readiness_check(session: SessionDep):
    try:
        latency = await ping_database(session)
        checks = {"database": {"healthy": True, "latency": round(latency, 2)}}
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        checks = {"database": {"healthy": False, "error": str(e)}}

    ready = all(check["healthy"] for check in checks.values())
    if not ready:
        logger.warning("Health check failed", extra={"checks": checks})
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ready" if ready else "degraded", "timestamp": utc_now().isoformat(), "checks": checks},
    )


@router.get(
    "/health/live",
    summary="Liveness Check",
    response_description="Status object.",
)
async def liveness_check():
    return {"status": "alive", "timestamp": utc_now().isoformat()}
