"""Prometheus metrics for webmon."""

from prometheus_client import Counter, Gauge, Histogram, Info

from webmon.version import __version__

# Application info
app_info = Info("webmon", "Application information")
app_info.info({
    "version": __version__,
    "service": "webmon",
})

# Probe metrics
probes_total = Counter(
    "webmon_probes_total",
    "Total number of probes executed",
    ["result"],
)

probe_latency_seconds = Histogram(
    "webmon_probe_latency_seconds",
    "End-to-end latency of GET / probes in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30],
)

host_up = Gauge(
    "webmon_host_up",
    "Host status from the latest probe (1=up, 0=down)",
    ["host"],
)

monitored_hosts = Gauge(
    "webmon_monitored_hosts",
    "Number of hosts in the registry",
)

# Round metrics
rounds_total = Counter(
    "webmon_rounds_total",
    "Total number of completed poll rounds",
)

rounds_skipped_total = Counter(
    "webmon_rounds_skipped_total",
    "Poll ticks skipped because the previous round was still running",
)

round_duration_seconds = Histogram(
    "webmon_round_duration_seconds",
    "Duration of poll rounds in seconds",
    buckets=[0.5, 1, 2.5, 5, 10, 20, 30, 60, 120],
)

# Persistence metrics
persistence_errors_total = Counter(
    "webmon_persistence_errors_total",
    "Total number of host file load/save failures",
    ["operation"],
)

# Notification metrics
notifications_sent_total = Counter(
    "webmon_notifications_sent_total",
    "Total number of notifications sent",
    ["channel", "type"],
)

notifications_failed_total = Counter(
    "webmon_notifications_failed_total",
    "Total number of failed notification attempts",
    ["channel", "type"],
)
