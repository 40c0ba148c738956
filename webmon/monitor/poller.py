"""Periodic poll driver."""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx

from webmon.metrics import (
    host_up,
    probe_latency_seconds,
    probes_total,
    round_duration_seconds,
    rounds_skipped_total,
    rounds_total,
)
from webmon.monitor.errors import PersistenceError
from webmon.monitor.host import Host
from webmon.monitor.probe import Failure, probe
from webmon.monitor.registry import Registry

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Poller:
    """Runs probe rounds over every registered host.

    A round probes all hosts concurrently, waits for every probe, routes
    each outcome to its own host and then saves the registry. Rounds never
    overlap: a tick that arrives while a round is outstanding is skipped.
    """

    def __init__(
        self,
        registry: Registry,
        notifier,
        timeout: float,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.registry = registry
        self.notifier = notifier
        self.timeout = timeout
        self.clock = clock
        self._round_lock = asyncio.Lock()
        self.rounds_completed = 0
        self.last_round_at: Optional[datetime] = None

    @property
    def running(self) -> bool:
        """True while a round is outstanding."""
        return self._round_lock.locked()

    async def tick(self) -> bool:
        """Scheduler entry point.

        Returns:
            True if a round ran, False if it was skipped because the previous
            round had not finished.
        """
        if self._round_lock.locked():
            rounds_skipped_total.inc()
            logger.warning("Previous poll round still running, skipping tick")
            return False
        await self.run_round()
        return True

    async def run_round(self) -> None:
        """Probe every host once, then persist the host set."""
        async with self._round_lock:
            started = time.monotonic()

            await asyncio.to_thread(self.registry.reload)
            hosts = list(self.registry.hosts().values())

            if hosts:
                # No keep-alive: every probe latency includes the dial
                limits = httpx.Limits(max_connections=None, max_keepalive_connections=0)
                async with httpx.AsyncClient(follow_redirects=True, limits=limits) as client:
                    results = await asyncio.gather(
                        *(self._check(host, client) for host in hosts),
                        return_exceptions=True,
                    )
                for host, result in zip(hosts, results):
                    if isinstance(result, Exception):
                        logger.error(
                            "Unexpected error checking %s: %r",
                            host.hostname,
                            result,
                        )

            try:
                await asyncio.to_thread(self.registry.save)
            except PersistenceError as e:
                # Already logged by the registry; retried on the next round
                logger.debug("Round save deferred: %s", e)

            duration = time.monotonic() - started
            round_duration_seconds.observe(duration)
            rounds_total.inc()
            self.rounds_completed += 1
            self.last_round_at = self.clock()
            logger.info("Poll round over %d hosts finished in %.2fs", len(hosts), duration)

    async def _check(self, host: Host, client: httpx.AsyncClient) -> None:
        outcome = await probe(host.hostname, self.timeout, client=client)

        failed = isinstance(outcome, Failure)
        probes_total.labels(result="failure" if failed else "success").inc()
        probe_latency_seconds.observe(outcome.latency)
        host_up.labels(host=host.hostname).set(0 if failed else 1)

        notification = host.record(outcome, self.clock())
        if notification is None:
            return

        logger.warning(
            "%s: %s after %d consecutive failures",
            host.hostname,
            notification.kind.value,
            notification.failures,
        )
        await self.notifier.notify(
            host.email,
            notification.subject,
            notification.body,
            kind=notification.kind.value,
        )
