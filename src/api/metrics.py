from prometheus_client import Counter, Histogram, Gauge, REGISTRY


# we check if they are already registered to avoid errors during hot reloads or test runs
def get_or_create_metric(name, documentation, metric_type, **kwargs):
    try:
        return metric_type(name, documentation, **kwargs)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


REQUESTS_TOTAL = get_or_create_metric(
    "assistant_requests_total",
    "Total requests",
    Counter,
    labelnames=["endpoint", "status"],
)

REQUEST_LATENCY_SECONDS = get_or_create_metric(
    "assistant_request_latency_seconds",
    "Request latency",
    Histogram,
    labelnames=["endpoint"],
)

EVENTS_CREATED_TOTAL = get_or_create_metric(
    "assistant_events_created_total", "Events created from messages or the calendar", Counter
)

CONFLICTS_TOTAL = get_or_create_metric(
    "assistant_conflicts_total", "New events created within an hour of another", Counter
)

EXTRACTION_PATH_TOTAL = get_or_create_metric(
    "assistant_extraction_path_total",
    "Messages understood per extraction path",
    Counter,
    labelnames=["path"],
)

EXTRACTION_FAILURES_TOTAL = get_or_create_metric(
    "assistant_extraction_failures_total",
    "Failures surfaced to the user, by kind",
    Counter,
    labelnames=["kind"],
)

REMINDERS_FIRED_TOTAL = get_or_create_metric(
    "assistant_reminders_fired_total", "Reminders delivered", Counter
)

PENDING_REMINDERS = get_or_create_metric(
    "assistant_pending_reminders", "Reminders currently armed", Gauge
)
