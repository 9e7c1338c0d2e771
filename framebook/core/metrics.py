from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "path"],
)

BOOKING_TRANSITIONS = Counter(
    "booking_status_transitions_total",
    "Booking status change attempts by action and outcome",
    ["action", "outcome"],
)


RATE_LIMITED_REQUESTS = Counter(
    "rate_limited_requests_total",
    "Requests rejected with 429 by scope",
    ["scope"],
)

def render_metrics() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
