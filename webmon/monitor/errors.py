"""Errors raised by the monitoring engine."""


class MonitorError(Exception):
    """Base class for monitoring engine errors."""


class AlreadyMonitored(MonitorError):
    """The hostname is already registered."""

    def __init__(self, hostname: str):
        super().__init__(f"Host already being monitored: {hostname}")
        self.hostname = hostname


class CapacityExceeded(MonitorError):
    """Adding another host would exceed the configured maximum."""

    def __init__(self, current: int, maximum: int):
        super().__init__(
            f"Maximum number of monitored hosts reached: {current}/{maximum}"
        )
        self.current = current
        self.maximum = maximum


class InvalidHost(MonitorError):
    """The hostname or notification target failed validation."""


class PersistenceError(MonitorError):
    """Loading or saving the host file failed."""
