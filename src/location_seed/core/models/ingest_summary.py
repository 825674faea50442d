"""
Progress and summary models reported by the ingestion pipeline.
"""

from pydantic import BaseModel


class IngestProgress(BaseModel):
    """Emitted after every committed batch."""

    batches_sent: int
    documents_indexed: int
    last_id: str | None = None


class IngestSummary(BaseModel):
    """
    Result of one pipeline run.

    Attributes:
        csv_file: Input file that was read
        tracker_file: Checkpoint file used for resume
        resumed_from: Checkpoint identifier found at startup, if any
        rows_read: Data rows read from the input (header excluded)
        rows_skipped: Rows discarded while resuming
        documents_indexed: Documents sent in successful bulk requests
        batches_sent: Successful bulk requests
        last_id: Identifier of the last document sent
        checkpoint_found: False when a checkpoint was set but never matched
        interrupted: True when a shutdown request stopped the run at a batch boundary
        duration_seconds: Wall-clock time of the run
    """

    csv_file: str
    tracker_file: str
    resumed_from: str | None = None
    rows_read: int = 0
    rows_skipped: int = 0
    documents_indexed: int = 0
    batches_sent: int = 0
    last_id: str | None = None
    checkpoint_found: bool = True
    interrupted: bool = False
    duration_seconds: float = 0.0
