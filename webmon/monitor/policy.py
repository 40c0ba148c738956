"""Failure/recovery notification state machine.

Each host runs one policy for its whole lifetime::

    UP            --failure-->  FAILING(1)            (or DOWN_NOTIFIED if K == 1)
    FAILING(c)    --failure-->  FAILING(c + 1)        while c + 1 < K
    FAILING(c)    --failure-->  DOWN_NOTIFIED         when c + 1 >= K, emits "down"
    FAILING(c)    --success-->  UP                    streak healed, no notification
    DOWN_NOTIFIED --success-->  UP                    emits "recovered"
    DOWN_NOTIFIED --failure-->  DOWN_NOTIFIED         no repeat

The transition itself is a pure function; emitting the notification is left
to the caller.
"""

import enum
from dataclasses import dataclass, field
from typing import Optional, Tuple

from webmon.monitor.probe import Failure, Outcome


class Phase(str, enum.Enum):
    UP = "up"
    FAILING = "failing"
    DOWN_NOTIFIED = "down_notified"


class NotificationKind(str, enum.Enum):
    DOWN = "down"
    RECOVERED = "recovered"


@dataclass(frozen=True)
class PolicyState:
    phase: Phase = Phase.UP
    failures: int = 0
    reasons: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Notification:
    """A down or recovered event for one host."""

    kind: NotificationKind
    hostname: str
    failures: int
    reasons: Tuple[str, ...] = ()

    @property
    def subject(self) -> str:
        if self.kind is NotificationKind.DOWN:
            return f"ALERT: {self.hostname} is DOWN"
        return f"RESOLVED: {self.hostname} is back UP"

    @property
    def body(self) -> str:
        if self.kind is NotificationKind.DOWN:
            lines = [
                f"{self.hostname} failed {self.failures} consecutive checks "
                f"of http://{self.hostname}/.",
                "",
                "Errors:",
            ]
            lines.extend(f"  - {reason}" for reason in self.reasons)
            return "\n".join(lines)
        return (
            f"{self.hostname} is responding again after "
            f"{self.failures} consecutive failed checks."
        )


def transition(
    state: PolicyState,
    outcome: Outcome,
    hostname: str,
    threshold: int,
) -> Tuple[PolicyState, Optional[Notification]]:
    """Apply one probe outcome to a policy state.

    Args:
        state: Current state.
        outcome: Result of the latest probe.
        hostname: Host the outcome belongs to, used in the notification.
        threshold: Consecutive failures (K) needed to report the host down.

    Returns:
        The new state and the notification to emit, if any.
    """
    if isinstance(outcome, Failure):
        failures = state.failures + 1
        # Only the reasons of the current streak, capped at K entries
        reasons = (state.reasons + (outcome.reason,))[-threshold:]

        if state.phase is Phase.DOWN_NOTIFIED:
            return PolicyState(Phase.DOWN_NOTIFIED, failures, reasons), None

        if failures >= threshold:
            notification = Notification(
                kind=NotificationKind.DOWN,
                hostname=hostname,
                failures=failures,
                reasons=reasons,
            )
            return PolicyState(Phase.DOWN_NOTIFIED, failures, reasons), notification

        return PolicyState(Phase.FAILING, failures, reasons), None

    if state.phase is Phase.DOWN_NOTIFIED:
        notification = Notification(
            kind=NotificationKind.RECOVERED,
            hostname=hostname,
            failures=state.failures,
        )
        return PolicyState(), notification

    return PolicyState(), None


class NotificationPolicy:
    """Holds the policy state of one host.

    Not thread-safe on its own; ``Host`` calls ``observe`` under its lock.
    """

    def __init__(self, hostname: str, threshold: int):
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        self.hostname = hostname
        self.threshold = threshold
        self.state = PolicyState()

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def failures(self) -> int:
        return self.state.failures

    def observe(self, outcome: Outcome) -> Optional[Notification]:
        self.state, notification = transition(
            self.state, outcome, self.hostname, self.threshold
        )
        return notification
