from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

REQUESTS_TOTAL = Counter(
    "requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_DURATION_SECONDS = Histogram(
    "request_duration_seconds",
    "HTTP request latency",
    ["method", "path"],
)
HEALTH_CHECK_FAILURES_TOTAL = Counter(
    "health_check_failures_total",
    "Health checks that could not reach the database",
)
MIGRATION_RUNS_TOTAL = Counter(
    "migration_runs_total",
    "Migration runner invocations by outcome",
    ["outcome"],
)


__all__ = [
    "CONTENT_TYPE_LATEST",
    "REQUESTS_TOTAL",
    "REQUEST_DURATION_SECONDS",
    "HEALTH_CHECK_FAILURES_TOTAL",
    "MIGRATION_RUNS_TOTAL",
    "generate_latest",
]
