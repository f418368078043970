"""Monitoring configuration for the work session engine."""
from prometheus_client import Counter, Histogram, start_http_server

# Session lifecycle metrics
sessions_started = Counter(
    "stitchmap_sessions_started_total",
    "Total number of work sessions started",
)

sessions_completed = Counter(
    "stitchmap_sessions_completed_total",
    "Total number of work sessions that reached the end of their pattern",
)

sessions_abandoned = Counter(
    "stitchmap_sessions_abandoned_total",
    "Total number of work sessions abandoned (deleted)",
)

session_duration = Histogram(
    "stitchmap_session_duration_seconds",
    "Time from starting a work session to completing it",
    buckets=[600, 1800, 3600, 4 * 3600, 24 * 3600, 7 * 24 * 3600],  # 10min .. 1 week
)

# Navigation metrics
stitch_steps = Counter(
    "stitchmap_stitch_steps_total",
    "Total number of single-stitch navigation steps",
    ["direction"],
)

# Error metrics
rejected_transitions = Counter(
    "stitchmap_rejected_transitions_total",
    "Total number of state transitions rejected as invalid",
    ["operation"],
)

session_conflicts = Counter(
    "stitchmap_session_conflicts_total",
    "Total number of lost-update conflicts detected on work sessions",
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
