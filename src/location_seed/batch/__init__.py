"""
Batch ingestion: row source, transformation, batching, checkpointing.
"""

from .accumulator import BulkBatch
from .checkpoint import CheckpointStore, tracker_path_for
from .pipeline import IngestPipeline, PipelineState
from .readers import CSVRowReader, RawRecord
from .transformer import RecordTransformer

__all__ = [
    "BulkBatch",
    "CheckpointStore",
    "tracker_path_for",
    "IngestPipeline",
    "PipelineState",
    "CSVRowReader",
    "RawRecord",
    "RecordTransformer",
]
