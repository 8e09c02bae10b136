"""Prometheus metric definitions for the relay."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)
payment_intents_total = Counter(
    "payment_intents_total",
    "Payment intent requests by outcome",
    ["service", "outcome"],
)
processor_latency_seconds = Histogram(
    "processor_latency_seconds",
    "Latency of outbound transaction calls to the processor",
    ["service"],
)
webhooks_received_total = Counter(
    "webhooks_received_total",
    "Processor webhooks received by outcome",
    ["service", "outcome"],
)
downstream_forward_total = Counter(
    "downstream_forward_total",
    "Relay events forwarded to the internal backend by outcome",
    ["service", "outcome"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
