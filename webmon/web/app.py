"""FastAPI web application."""

import logging
from contextlib import asynccontextmanager
from typing import Tuple

from fastapi import FastAPI

from webmon.config import Settings, settings
from webmon.monitor.poller import Poller
from webmon.monitor.registry import Registry
from webmon.monitor.store import HostStore
from webmon.notifications.notifier import Notifier
from webmon.scheduler.job_scheduler import start_scheduler, shutdown_scheduler
from webmon.version import __version__

logger = logging.getLogger(__name__)


def build_monitor(config: Settings) -> Tuple[Registry, Poller]:
    """Load the host file and wire the registry and poller together.

    Raises:
        PersistenceError: If the existing host file cannot be loaded.
    """
    store = HostStore(config.hosts_path)
    registry = Registry.open(
        store,
        max_hosts=config.max_hosts,
        history_size=config.history_size,
        threshold=config.failure_threshold,
    )
    poller = Poller(registry, Notifier(), timeout=config.read_timeout_seconds)
    return registry, poller


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    logger.info("Starting webmon...")

    registry, poller = build_monitor(settings)
    logger.info("Monitoring %d hosts from %s", len(registry), settings.hosts_path)

    app.state.registry = registry
    app.state.poller = poller
    app.state.scheduler = start_scheduler(poller, settings.poll_interval_seconds)
    logger.info("Scheduler started")

    yield

    # Shutdown
    logger.info("Shutting down webmon...")
    shutdown_scheduler(app.state.scheduler)
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="webmon",
    description="Collaborative HTTP uptime monitoring",
    version=__version__,
    lifespan=lifespan,
)

# Import and include routers
from webmon.web.routes import api, health  # noqa: E402

app.include_router(api.router, prefix="/api", tags=["API"])
app.include_router(health.router, tags=["Health"])
