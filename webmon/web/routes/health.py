"""Health check routes."""

from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from pydantic import BaseModel

from webmon.version import __version__, get_version_info

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    scheduler_running: bool
    hosts: int
    rounds_completed: int
    version: str
    message: str = "OK"


class VersionResponse(BaseModel):
    version: str
    build_date: Optional[str] = None
    git_commit: Optional[str] = None


def _scheduler_running(request: Request) -> bool:
    scheduler = getattr(request.app.state, "scheduler", None)
    return scheduler is not None and scheduler.running


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Health check endpoint for Docker/monitoring."""
    scheduler_running = _scheduler_running(request)
    registry = getattr(request.app.state, "registry", None)
    poller = getattr(request.app.state, "poller", None)

    return HealthResponse(
        status="healthy" if scheduler_running else "degraded",
        scheduler_running=scheduler_running,
        hosts=len(registry) if registry is not None else 0,
        rounds_completed=poller.rounds_completed if poller is not None else 0,
        version=__version__,
        message="OK" if scheduler_running else "Scheduler not running",
    )


@router.get("/version", response_model=VersionResponse)
async def version():
    """Get application version information."""
    info = get_version_info()
    return VersionResponse(**info)


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness check for Kubernetes/orchestration."""
    if _scheduler_running(request):
        return {"ready": True}

    return {"ready": False, "reason": "Scheduler not running"}


@router.get("/live")
async def liveness_check():
    """Liveness check - always returns OK if app is running."""
    return {"alive": True}


@router.get("/metrics")
async def prometheus_metrics():
    """Prometheus metrics endpoint.

    Returns metrics in Prometheus exposition format for scraping.
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
