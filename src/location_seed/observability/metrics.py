"""
Prometheus metrics collection for location-seed

Counters and histograms live in a private registry so that importing the
package never touches the global default registry.
"""
import os
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# INPUT METRICS
# =======================

rows_read_total = Counter(
    name="location_seed_rows_read_total",
    documentation="Data rows read from the input file",
    labelnames=["index"],
    registry=REGISTRY,
)

rows_skipped_total = Counter(
    name="location_seed_rows_skipped_total",
    documentation="Rows discarded while resuming from a checkpoint",
    labelnames=["index"],
    registry=REGISTRY,
)

# =======================
# SINK METRICS
# =======================

documents_indexed_total = Counter(
    name="location_seed_documents_indexed_total",
    documentation="Documents sent in successful bulk requests",
    labelnames=["index"],
    registry=REGISTRY,
)

batches_sent_total = Counter(
    name="location_seed_batches_sent_total",
    documentation="Bulk requests sent",
    labelnames=["index", "status"],  # status: success, failure
    registry=REGISTRY,
)

bulk_request_duration_seconds = Histogram(
    name="location_seed_bulk_request_duration_seconds",
    documentation="Time spent in bulk requests in seconds",
    labelnames=["index"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)

batch_payload_bytes = Histogram(
    name="location_seed_batch_payload_bytes",
    documentation="Encoded size of each bulk payload",
    labelnames=["index"],
    buckets=[512, 4096, 65536, 1048576, 5242880, 10485760, 52428800],
    registry=REGISTRY,
)

# =======================
# CHECKPOINT / ERROR METRICS
# =======================

checkpoint_writes_total = Counter(
    name="location_seed_checkpoint_writes_total",
    documentation="Checkpoint saves after committed batches",
    labelnames=["index"],
    registry=REGISTRY,
)

errors_total = Counter(
    name="location_seed_errors_total",
    documentation="Fatal errors by type",
    labelnames=["index", "error_type"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    # Lazy import: the HTTP server is only needed when the endpoint is enabled
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


class track_duration:
    """
    Context manager for tracking operation duration

    Usage:
        with track_duration(bulk_request_duration_seconds, index="places"):
            client.bulk(...)
    """

    def __init__(self, histogram: Histogram, **labels):
        self.histogram = histogram
        self.labels = labels
        self.timer = None

    def __enter__(self):
        self.timer = self.histogram.labels(**self.labels).time()
        self.timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.timer.__exit__(exc_type, exc_val, exc_tb)
        return False


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    counter.labels(**labels).inc(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    histogram.labels(**labels).observe(value)


# =======================
# METRICS COLLECTOR CLASS
# =======================

class MetricsCollector:
    """
    Metrics collector for one ingestion run.

    Binds the index label once so pipeline components only report counts.
    """

    def __init__(self, index: str):
        """
        Initialize metrics collector.

        Args:
            index: Target index name used as the metric label
        """
        self.index = index

    def record_rows_read(self, count: int = 1) -> None:
        increment_counter(rows_read_total, count, index=self.index)

    def record_rows_skipped(self, count: int = 1) -> None:
        increment_counter(rows_skipped_total, count, index=self.index)

    def record_batch_sent(
        self,
        document_count: int,
        payload_bytes: int,
        success: bool = True,
    ) -> None:
        """
        Record a bulk request.

        Args:
            document_count: Documents in the batch
            payload_bytes: Encoded size of the payload
            success: Whether the sink accepted the batch
        """
        status = "success" if success else "failure"
        increment_counter(batches_sent_total, 1, index=self.index, status=status)
        observe_histogram(batch_payload_bytes, payload_bytes, index=self.index)
        if success:
            increment_counter(documents_indexed_total, document_count, index=self.index)

    def record_checkpoint_write(self) -> None:
        increment_counter(checkpoint_writes_total, 1, index=self.index)

    def record_error(self, error_type: str) -> None:
        increment_counter(errors_total, 1, index=self.index, error_type=error_type)

    def time_bulk_request(self) -> track_duration:
        return track_duration(bulk_request_duration_seconds, index=self.index)
