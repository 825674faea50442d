"""
Unit tests for the metrics collector.
"""

import pytest

from location_seed.observability.metrics import REGISTRY, MetricsCollector, generate_metrics


def sample(name: str, **labels) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.mark.unit
class TestMetricsCollector:
    """Tests for MetricsCollector"""

    def test_successful_batch_counts_documents(self):
        metrics = MetricsCollector("metrics_success")

        metrics.record_batch_sent(document_count=3, payload_bytes=900, success=True)

        assert sample("location_seed_documents_indexed_total", index="metrics_success") == 3
        assert sample("location_seed_batches_sent_total", index="metrics_success", status="success") == 1

    def test_failed_batch_does_not_count_documents(self):
        metrics = MetricsCollector("metrics_failure")

        metrics.record_batch_sent(document_count=3, payload_bytes=900, success=False)

        assert sample("location_seed_documents_indexed_total", index="metrics_failure") == 0
        assert sample("location_seed_batches_sent_total", index="metrics_failure", status="failure") == 1

    def test_errors_and_checkpoints(self):
        metrics = MetricsCollector("metrics_misc")

        metrics.record_checkpoint_write()
        metrics.record_error("SinkError")
        metrics.record_rows_skipped(4)

        assert sample("location_seed_checkpoint_writes_total", index="metrics_misc") == 1
        assert sample("location_seed_errors_total", index="metrics_misc", error_type="SinkError") == 1
        assert sample("location_seed_rows_skipped_total", index="metrics_misc") == 4

    def test_bulk_timer_observes_duration(self):
        metrics = MetricsCollector("metrics_timer")

        with metrics.time_bulk_request():
            pass

        assert sample("location_seed_bulk_request_duration_seconds_count", index="metrics_timer") == 1

    def test_exposition_format(self):
        MetricsCollector("metrics_text").record_rows_read(2)

        assert b'location_seed_rows_read_total{index="metrics_text"} 2.0' in generate_metrics()
