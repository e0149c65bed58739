# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metric objects for the rotation service.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "chorebot_requests_total",
    "Total HTTP requests to the rotation service",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "chorebot_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "chorebot_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
COMMANDS_HANDLED = Counter(
    "chorebot_commands_total",
    "Chat commands handled, by kind and outcome",
    ["command", "outcome"],
)
TURNS_COMPLETED = Counter(
    "chorebot_turns_completed_total",
    "Turns marked done",
    ["kind"],
)
SWAP_DECISIONS = Counter(
    "chorebot_swap_decisions_total",
    "Swap requests resolved",
    ["outcome"],
)
SKIP_DECISIONS = Counter(
    "chorebot_skip_decisions_total",
    "Skip requests resolved",
    ["outcome"],
)
PUNISHMENT_DECISIONS = Counter(
    "chorebot_punishment_decisions_total",
    "Punishment requests decided by admins",
    ["outcome"],
)
SNAPSHOT_WRITES = Counter(
    "chorebot_snapshot_writes_total",
    "Snapshot writes attempted",
    ["result"],
)
OPERATOR_ALERTS = Counter(
    "chorebot_operator_alerts_total",
    "Alerts posted to the operator channel",
    ["result"],
)
PENDING_SWAPS = Gauge(
    "chorebot_pending_swap_requests",
    "Number of pending swap requests",
)
PENDING_PUNISHMENTS = Gauge(
    "chorebot_pending_punishment_requests",
    "Number of pending punishment requests",
)
