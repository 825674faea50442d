"""
Pytest configuration and fixtures for location-seed tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import csv
import json
from pathlib import Path
from typing import Callable, List

import pytest

from location_seed.config import IngestConfig
from location_seed.core.errors import SinkError, StartupError
from location_seed.core.models import BulkResult
from location_seed.sink.base import IndexSink


HEADER = [
    "id", "source", "name", "address", "city", "country", "district",
    "division", "isAutocompleteAddress", "latlng", "placeId", "plusCode",
    "postalCode", "types",
]


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that run the full pipeline"
    )


# =======================
# INPUT FIXTURES
# =======================

def location_row(
    record_id: str,
    latlng: str = "POINT (90.4066 23.7937)",
    autocomplete: str = "false",
    types: str = "street_address;point_of_interest",
) -> List[str]:
    """Build one 14-column row of the location export."""
    return [
        record_id,
        "import",
        f"Place {record_id}",
        f"Road {record_id}, Banani",
        "Dhaka",
        "Bangladesh",
        "Dhaka District",
        "Dhaka Division",
        autocomplete,
        latlng,
        f"place-{record_id}",
        "QCV4+F6",
        "1213",
        types,
    ]


@pytest.fixture
def write_csv(tmp_path) -> Callable[..., Path]:
    """
    Factory writing a CSV file with the export header and the given rows

    Returns:
        Function (rows, name="places.csv") -> Path
    """
    def _write(rows: List[List[str]], name: str = "places.csv", header: List[str] | None = None) -> Path:
        path = tmp_path / name
        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(header or HEADER)
            writer.writerows(rows)
        return path

    return _write


@pytest.fixture
def make_config(tmp_path) -> Callable[..., IngestConfig]:
    """Factory for IngestConfig pointing at a local file and a fake cluster"""
    def _make(csv_file: Path, **overrides) -> IngestConfig:
        values = {
            "es_url": "http://localhost:9200",
            "es_index": "places",
            "csv_file": str(csv_file),
        }
        values.update(overrides)
        return IngestConfig(**values)

    return _make


# =======================
# SINK FIXTURES
# =======================

class FakeSink(IndexSink):
    """
    In-memory sink recording every bulk payload.

    Args:
        fail_on_call: 1-based bulk call number that raises SinkError
        healthy: When False, health_check raises StartupError
    """

    def __init__(self, fail_on_call: int | None = None, healthy: bool = True):
        self.fail_on_call = fail_on_call
        self.healthy = healthy
        self.health_checks = 0
        self.payloads: List[bytes] = []
        self.closed = False

    def health_check(self) -> None:
        self.health_checks += 1
        if not self.healthy:
            raise StartupError("Error pinging Elasticsearch: connection refused")

    def bulk_write(self, payload: bytes) -> BulkResult:
        if self.fail_on_call is not None and len(self.payloads) + 1 == self.fail_on_call:
            raise SinkError("Error response from Elasticsearch: 500", status=500)
        self.payloads.append(payload)
        return BulkResult(status=200, item_count=len(self.documents_in(payload)))

    def close(self) -> None:
        self.closed = True

    @staticmethod
    def documents_in(payload: bytes) -> List[dict]:
        lines = [json.loads(line) for line in payload.decode("utf-8").splitlines()]
        return lines[1::2]

    @staticmethod
    def ids_in(payload: bytes) -> List[str]:
        lines = [json.loads(line) for line in payload.decode("utf-8").splitlines()]
        return [action["index"]["_id"] for action in lines[0::2]]

    @property
    def indexed_ids(self) -> List[str]:
        return [doc_id for payload in self.payloads for doc_id in self.ids_in(payload)]


@pytest.fixture
def fake_sink() -> FakeSink:
    return FakeSink()


# =======================
# LOGGING FIXTURES
# =======================

@pytest.fixture(autouse=True)
def bind_logging_to_capture():
    """
    Rebuild the package log handler for each test so it writes to the
    stream pytest is currently capturing
    """
    from location_seed.observability.logger import setup_logger

    setup_logger(level="INFO", format_type="text")
    yield


# =======================
# ELASTICSEARCH FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def elasticsearch_container():
    """
    Start a single-node Elasticsearch container for integration tests

    Yields:
        ElasticSearchContainer instance
    """
    from testcontainers.elasticsearch import ElasticSearchContainer

    container = ElasticSearchContainer(
        image="docker.elastic.co/elasticsearch/elasticsearch:8.13.4",
        mem_limit="1G",
    )
    try:
        container.start()
    except Exception as e:
        pytest.skip(f"Docker is not available: {e}")

    try:
        yield container
    finally:
        container.stop()


@pytest.fixture(scope="function")
def elasticsearch_url(elasticsearch_container) -> str:
    return elasticsearch_container.get_url()
