"""Monitored host: identity, history and notification policy."""

import threading
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from webmon.monitor.history import HistoryBuffer, Sample
from webmon.monitor.policy import Notification, NotificationPolicy, Phase
from webmon.monitor.probe import Outcome


class HostRecord(BaseModel):
    """On-disk representation of a host. History is never persisted."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    host: str = Field(alias="Host")
    email: str = Field(alias="Email")


class Host:
    """A monitored host.

    ``hostname`` and ``email`` never change after creation. The history
    buffer and policy state are only touched under the host lock, which is
    independent of the registry lock. Callers holding both must take the
    registry lock first.
    """

    def __init__(self, hostname: str, email: str, history_size: int, threshold: int):
        self._hostname = hostname
        self._email = email
        self._lock = threading.Lock()
        self._history = HistoryBuffer(history_size)
        self._policy = NotificationPolicy(hostname, threshold)

    @classmethod
    def from_record(cls, record: HostRecord, history_size: int, threshold: int) -> "Host":
        return cls(record.host, record.email, history_size, threshold)

    @property
    def hostname(self) -> str:
        return self._hostname

    @property
    def email(self) -> str:
        return self._email

    @property
    def capacity(self) -> int:
        return self._history.capacity

    def to_record(self) -> HostRecord:
        return HostRecord(host=self._hostname, email=self._email)

    def record(
        self,
        outcome: Outcome,
        at: Optional[datetime] = None,
    ) -> Optional[Notification]:
        """Store a probe outcome and advance the notification policy.

        Returns the notification to deliver, if this outcome crossed the
        failure threshold or ended a notified outage. Delivery happens
        outside the host lock.
        """
        if at is None:
            at = datetime.now(timezone.utc)
        with self._lock:
            self._history.record(outcome, at)
            return self._policy.observe(outcome)

    def status(self) -> str:
        with self._lock:
            return self._history.status()

    def snapshot(self) -> List[Optional[Sample]]:
        with self._lock:
            return self._history.snapshot()

    def samples(self) -> List[Sample]:
        with self._lock:
            return self._history.samples()

    def policy_state(self) -> Tuple[Phase, int]:
        """Current policy phase and consecutive failure count."""
        with self._lock:
            return self._policy.phase, self._policy.failures

    def __repr__(self) -> str:
        return f"Host({self._hostname!r}, {self._email!r})"
