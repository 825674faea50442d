"""
Sink interface used by the pipeline driver.
"""

from abc import ABC, abstractmethod

from location_seed.core.models import BulkResult


class IndexSink(ABC):
    """
    Abstract base class for bulk-write destinations.

    Implementations raise ``StartupError`` from ``health_check`` and
    ``SinkError`` from ``bulk_write``; they never retry.
    """

    @abstractmethod
    def health_check(self) -> None:
        """Verify the sink is reachable before any row is read."""

    @abstractmethod
    def bulk_write(self, payload: bytes) -> BulkResult:
        """Send one NDJSON bulk payload and return the inspected result."""

    def close(self) -> None:
        """Release connections. Optional."""
