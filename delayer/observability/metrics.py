"""
Prometheus metrics collection.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from delayer.constants import (
    METRIC_API_LATENCY,
    METRIC_API_REQUESTS,
    METRIC_INDEX_SIZE,
    METRIC_JOBS_POPPED,
    METRIC_JOBS_PROMOTED,
    METRIC_JOBS_PUSHED,
    METRIC_JOBS_REMOVED,
    METRIC_QUEUE_DEPTH,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for the delayed queue.

    Collects metrics for:
    - Pushes, pops, removals and promotions
    - Scheduling index size and ready queue depth
    - API requests
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.jobs_pushed = Counter(
            METRIC_JOBS_PUSHED,
            "Total number of push calls",
            ["topic", "accepted"],
            registry=self._registry,
        )

        # Outcome is one of delivered, empty, timeout, expired
        self.jobs_popped = Counter(
            METRIC_JOBS_POPPED,
            "Total number of pop calls by outcome",
            ["topic", "outcome"],
            registry=self._registry,
        )

        self.jobs_removed = Counter(
            METRIC_JOBS_REMOVED,
            "Total number of remove calls",
            ["removed"],
            registry=self._registry,
        )

        self.jobs_promoted = Counter(
            METRIC_JOBS_PROMOTED,
            "Total number of jobs leaving the scheduling index",
            ["outcome"],
            registry=self._registry,
        )

        self.index_size = Gauge(
            METRIC_INDEX_SIZE,
            "Number of jobs waiting in the scheduling index",
            registry=self._registry,
        )

        self.queue_depth = Gauge(
            METRIC_QUEUE_DEPTH,
            "Number of jobs waiting in a ready queue",
            ["topic"],
            registry=self._registry,
        )

        self.api_requests = Counter(
            METRIC_API_REQUESTS,
            "Total number of API requests",
            ["method", "endpoint", "status"],
            registry=self._registry,
        )

        self.api_latency = Histogram(
            METRIC_API_LATENCY,
            "API request latency in seconds",
            ["method", "endpoint"],
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 30.0),
            registry=self._registry,
        )

    def record_push(self, topic: str, accepted: bool) -> None:
        self.jobs_pushed.labels(topic=topic, accepted=str(accepted).lower()).inc()

    def record_pop(self, topic: str, outcome: str) -> None:
        self.jobs_popped.labels(topic=topic, outcome=outcome).inc()

    def record_remove(self, removed: bool) -> None:
        self.jobs_removed.labels(removed=str(removed).lower()).inc()

    def record_promotions(self, outcome: str, count: int = 1) -> None:
        if count > 0:
            self.jobs_promoted.labels(outcome=outcome).inc(count)

    def update_index_size(self, size: int) -> None:
        self.index_size.set(size)

    def update_queue_depth(self, topic: str, depth: int) -> None:
        self.queue_depth.labels(topic=topic).set(depth)

    def record_api_request(
        self,
        method: str,
        endpoint: str,
        status: int,
        duration_seconds: float,
    ) -> None:
        """Record an API request."""
        self.api_requests.labels(
            method=method,
            endpoint=endpoint,
            status=str(status),
        ).inc()
        self.api_latency.labels(method=method, endpoint=endpoint).observe(
            duration_seconds
        )

    def get_metrics(self) -> bytes:
        """Get all metrics in Prometheus format."""
        return generate_latest(self._registry)

    def get_content_type(self) -> str:
        """Get the content type for metrics response."""
        return CONTENT_TYPE_LATEST


def setup_metrics() -> MetricsCollector:
    """
    Set up and return the metrics collector.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def get_metrics() -> MetricsCollector:
    """Get the metrics collector instance, creating it on first use."""
    if _metrics is None:
        return setup_metrics()
    return _metrics
