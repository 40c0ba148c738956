"""REST API routes."""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from webmon.config import settings
from webmon.monitor.errors import (
    AlreadyMonitored,
    CapacityExceeded,
    InvalidHost,
    PersistenceError,
)
from webmon.monitor.host import Host
from webmon.monitor.poller import Poller
from webmon.monitor.registry import Registry
from webmon.scheduler.job_scheduler import get_jobs_info, trigger_manual_poll

logger = logging.getLogger(__name__)

router = APIRouter()


# Response models
class HostSummary(BaseModel):
    host: str
    status: str
    phase: str
    consecutive_failures: int


class HostDetail(HostSummary):
    history_capacity: int
    samples_recorded: int
    last_checked: Optional[datetime] = None


class SampleResponse(BaseModel):
    collected_at: datetime
    latency_ms: int
    ok: bool
    error: Optional[str] = None


class AddHostRequest(BaseModel):
    host: str
    email: str


class AddHostResponse(BaseModel):
    host: str
    saved: bool
    message: str


class JobResponse(BaseModel):
    id: str
    name: str
    next_run: Optional[str] = None
    trigger: str


class TriggerResponse(BaseModel):
    message: str
    status: str = "queued"


def _registry(request: Request) -> Registry:
    return request.app.state.registry


def _poller(request: Request) -> Poller:
    return request.app.state.poller


def _lookup(request: Request, hostname: str) -> Host:
    host = _registry(request).get(hostname)
    if host is None:
        raise HTTPException(status_code=404, detail="Host not found")
    return host


def _summary(host: Host) -> HostSummary:
    phase, failures = host.policy_state()
    return HostSummary(
        host=host.hostname,
        status=host.status(),
        phase=phase.value,
        consecutive_failures=failures,
    )


@router.get("/hosts", response_model=List[HostSummary])
async def list_hosts(request: Request):
    """Get every monitored host with its latest status."""
    hosts = _registry(request).hosts()
    return [_summary(hosts[name]) for name in sorted(hosts)]


@router.post("/hosts", response_model=AddHostResponse, status_code=201)
async def add_host(request: Request, body: AddHostRequest):
    """Start monitoring a new host."""
    registry = _registry(request)
    try:
        host = await asyncio.to_thread(registry.add_host, body.host, body.email)
    except InvalidHost as e:
        raise HTTPException(status_code=422, detail=str(e))
    except (AlreadyMonitored, CapacityExceeded) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError:
        # The host is monitored; the host file catches up on the next round
        hostname = body.host.strip().lower()
        logger.warning("Host %s added but the host file was not saved", hostname)
        return AddHostResponse(
            host=hostname,
            saved=False,
            message=f"Added host: {hostname} (not yet saved)",
        )

    return AddHostResponse(
        host=host.hostname,
        saved=True,
        message=f"Added host: {host.hostname}",
    )


@router.get("/hosts/{hostname}", response_model=HostDetail)
async def get_host(request: Request, hostname: str):
    """Get status details for one host."""
    host = _lookup(request, hostname)
    samples = host.samples()
    summary = _summary(host)
    return HostDetail(
        **summary.model_dump(),
        history_capacity=host.capacity,
        samples_recorded=len(samples),
        last_checked=samples[-1].collected_at if samples else None,
    )


@router.get("/hosts/{hostname}/history", response_model=List[SampleResponse])
async def host_history(
    request: Request,
    hostname: str,
    limit: int = Query(1440, ge=1, le=100_000),
):
    """Get recorded latency samples, oldest first, for charting."""
    host = _lookup(request, hostname)
    samples = host.samples()[-limit:]
    return [
        SampleResponse(
            collected_at=s.collected_at,
            latency_ms=round(s.latency * 1000),
            ok=s.ok,
            error=s.error,
        )
        for s in samples
    ]


@router.post("/poll", response_model=TriggerResponse)
async def trigger_poll(request: Request):
    """Manually trigger a poll round."""
    poller = _poller(request)
    if poller.running:
        raise HTTPException(status_code=409, detail="A poll round is already running")

    message = await trigger_manual_poll(request.app.state.scheduler, poller)
    return TriggerResponse(
        message=message,
        status="queued" if request.app.state.scheduler else "completed",
    )


@router.get("/jobs", response_model=List[JobResponse])
async def list_jobs(request: Request):
    """Get scheduled jobs information."""
    return get_jobs_info(request.app.state.scheduler)


@router.get("/config")
async def get_config():
    """Get current configuration (non-sensitive)."""
    return {
        "poll_interval_seconds": settings.poll_interval_seconds,
        "read_timeout_seconds": settings.read_timeout_seconds,
        "max_hosts": settings.max_hosts,
        "history_size": settings.history_size,
        "failure_threshold": settings.failure_threshold,
        "smtp_configured": settings.smtp_configured,
        "webhook_configured": settings.webhook_configured,
    }
