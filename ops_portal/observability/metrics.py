"""
Portal Metrics with Prometheus
=============================================================================
CONCEPT: What the operations team watches

  - workflow_transitions_total: how many approvals / rejections / procurements
    happened, and how many attempts were denied, cancelled or failed.
    A spike in outcome="failed" means the record store is misbehaving.

  - login_attempts_total: success vs failure per login method. A burst of
    failures on method="delegated" with reason "domain" usually means a
    misconfigured allow-list after a domain change.

  - notifications_total: outbound webhook deliveries. Notifications are best
    effort, so this counter is the ONLY place a silent webhook outage shows.

  - store_request_seconds: latency of remote record-store calls. The store is
    an external API with rate limits; slow calls show up here first.

All metrics are exposed on GET /metrics for Prometheus to scrape.
=============================================================================
"""

from prometheus_client import Counter, Histogram


workflow_transitions_total = Counter(
    name="portal_workflow_transitions_total",
    documentation="Workflow transition attempts, partitioned by machine, action and outcome.",
    labelnames=["machine", "action", "outcome"],
)


login_attempts_total = Counter(
    name="portal_login_attempts_total",
    documentation="Login attempts, partitioned by method and outcome.",
    labelnames=["method", "outcome"],
)


notifications_total = Counter(
    name="portal_notifications_total",
    documentation="Outbound notifications, partitioned by event type and outcome.",
    labelnames=["event", "outcome"],
)


store_request_histogram = Histogram(
    name="portal_store_request_seconds",
    documentation="Latency of remote record-store requests in seconds.",
    labelnames=["operation"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)


def record_transition(machine: str, action: str, outcome: str) -> None:
    """
    Count one workflow transition attempt.

    outcome is one of: "applied", "cancelled", "denied", "invalid", "failed".
    """
    workflow_transitions_total.labels(machine=machine, action=action, outcome=outcome).inc()


def record_login(method: str, outcome: str) -> None:
    """Count a login attempt (method: "password" | "delegated")."""
    login_attempts_total.labels(method=method, outcome=outcome).inc()


def record_notification(event: str, outcome: str) -> None:
    notifications_total.labels(event=event, outcome=outcome).inc()


def record_store_request(operation: str, duration_ms: float) -> None:
    """Record one record-store call. Prometheus convention is seconds."""
    store_request_histogram.labels(operation=operation).observe(duration_ms / 1000.0)
