"""
Data models for the ingestion pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .bulk_result import BulkItemFailure, BulkResult
from .ingest_summary import IngestProgress, IngestSummary
from .location_document import GeoPoint, LocationDocument

__all__ = [
    "GeoPoint",
    "LocationDocument",
    "BulkItemFailure",
    "BulkResult",
    "IngestProgress",
    "IngestSummary",
]
