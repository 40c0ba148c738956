"""Fixed-capacity ring buffer of probe outcomes.

The buffer holds the latest N samples for one host. Every recorded probe
advances the cursor by one (modulo N) and overwrites that slot, so the
oldest sample is evicted by the write itself. The cursor always points at
the most recently written slot; the first record lands in slot 0.

The buffer does no locking of its own. ``Host`` serializes all access to a
buffer with its host lock; buffers of different hosts share nothing.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from webmon.monitor.probe import Failure, Outcome

PENDING_STATUS = "pending"


@dataclass(frozen=True)
class Sample:
    """One recorded probe outcome."""

    outcome: Outcome
    collected_at: datetime

    @property
    def ok(self) -> bool:
        return not isinstance(self.outcome, Failure)

    @property
    def latency(self) -> float:
        return self.outcome.latency

    @property
    def error(self) -> Optional[str]:
        if isinstance(self.outcome, Failure):
            return self.outcome.reason
        return None


def format_latency(seconds: float) -> str:
    """Render a latency in whole milliseconds, e.g. ``"40ms"``."""
    return f"{round(seconds * 1000)}ms"


class HistoryBuffer:
    """Ring buffer of the latest ``capacity`` samples."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._slots: List[Optional[Sample]] = [None] * capacity
        # Starts one slot "before" 0 so the first record lands in slot 0
        self._cursor = capacity - 1
        self._count = 0

    @property
    def capacity(self) -> int:
        return len(self._slots)

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        """Number of filled slots (never more than capacity)."""
        return self._count

    def record(self, outcome: Outcome, at: datetime) -> Sample:
        """Advance the cursor and overwrite that slot with the new sample."""
        self._cursor = (self._cursor + 1) % len(self._slots)
        sample = Sample(outcome=outcome, collected_at=at)
        self._slots[self._cursor] = sample
        if self._count < len(self._slots):
            self._count += 1
        return sample

    def latest(self) -> Optional[Sample]:
        """The sample at the cursor, or None before anything was recorded."""
        return self._slots[self._cursor]

    def status(self) -> str:
        """Display string for the latest sample.

        ``"Error: <reason>"`` after a failure, the latency in milliseconds
        after a success, ``"pending"`` before the first probe.
        """
        sample = self.latest()
        if sample is None:
            return PENDING_STATUS
        if sample.error is not None:
            return f"Error: {sample.error}"
        return format_latency(sample.latency)

    def snapshot(self) -> List[Optional[Sample]]:
        """Copy of all slots in slot order; the newest is at ``cursor``."""
        return list(self._slots)

    def samples(self) -> List[Sample]:
        """Recorded samples ordered oldest to newest, for charting."""
        size = len(self._slots)
        start = self._cursor + 1
        ordered = self._slots[start:] + self._slots[:start]
        return [s for s in ordered[size - self._count:] if s is not None]
