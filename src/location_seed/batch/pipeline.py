"""
Resumable ingestion pipeline.

Coordinates the flow: checkpoint → skip committed rows → transform →
batch → bulk write → checkpoint. Runs on a single thread; every error is
fatal and leaves the checkpoint at the last committed batch. A shutdown
request is only honoured between batches, once the checkpoint is saved.
"""

from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterator, Optional

from location_seed.batch.accumulator import BulkBatch
from location_seed.batch.checkpoint import CheckpointStore
from location_seed.batch.readers import CSVRowReader, RawRecord
from location_seed.batch.transformer import RecordTransformer
from location_seed.core.errors import IngestError, SinkError
from location_seed.core.models import IngestProgress, IngestSummary
from location_seed.observability.logger import get_logger, log_operation
from location_seed.observability.metrics import MetricsCollector
from location_seed.sink.base import IndexSink

if TYPE_CHECKING:
    from location_seed.config import IngestConfig


logger = get_logger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    RESUMING = "resuming"
    STREAMING = "streaming"
    FLUSHING = "flushing"
    DRAINING = "draining"
    DONE = "done"
    INTERRUPTED = "interrupted"
    ABORTED = "aborted"


class IngestPipeline:
    """
    Loads one CSV file into one index.

    Flow:
    1. Check the sink is reachable
    2. Load the checkpoint
    3. Skip rows up to and including the checkpointed identifier
    4. Transform and batch the remaining rows
    5. Flush each full batch and checkpoint its last identifier
    6. Flush the remainder at end of input
    """

    def __init__(
        self,
        config: "IngestConfig",
        sink: IndexSink,
        checkpoint_store: Optional[CheckpointStore] = None,
        transformer: Optional[RecordTransformer] = None,
        metrics: Optional[MetricsCollector] = None,
        progress_callback: Optional[Callable[[IngestProgress], None]] = None,
        stop_requested: Optional[Callable[[], bool]] = None,
    ):
        """
        Initialize pipeline.

        Args:
            config: Run configuration
            sink: Bulk-write destination
            checkpoint_store: Checkpoint store (defaults to the configured tracker file)
            transformer: Row transformer (defaults to one for the configured index)
            metrics: Metrics collector (defaults to one labelled with the index)
            progress_callback: Called after every committed batch
            stop_requested: Polled after every committed batch; returning True
                ends the run there, before the next row is read
        """
        self.config = config
        self.sink = sink
        self.checkpoint_store = checkpoint_store or CheckpointStore(config.resolved_tracker_file)
        self.transformer = transformer or RecordTransformer(config.es_index)
        self.metrics = metrics or MetricsCollector(config.es_index)
        self.progress_callback = progress_callback
        self.stop_requested = stop_requested

        self.state = PipelineState.IDLE
        self._batch = BulkBatch(config.batch_size_bytes)
        self._documents_indexed = 0
        self._batches_sent = 0
        self._rows_skipped = 0
        self._last_sent_id: Optional[str] = None
        self._interrupted = False

    def _transition(self, state: PipelineState) -> None:
        logger.debug(f"Pipeline state {self.state.value} -> {state.value}")
        self.state = state

    def run(self) -> IngestSummary:
        """
        Run the pipeline to completion.

        Returns:
            IngestSummary for the run

        Raises:
            IngestError: Any fatal error; the pipeline is left ABORTED
        """
        with log_operation(
            "ingest",
            logger=logger,
            csv_file=self.config.csv_file,
            index=self.config.es_index,
        ) as operation:
            try:
                summary = self._run()
            except IngestError as e:
                self._transition(PipelineState.ABORTED)
                self.metrics.record_error(type(e).__name__)
                raise
            summary.duration_seconds = round(operation.elapsed, 3)

        logger.info(
            "Upload interrupted." if summary.interrupted else "Upload complete.",
            extra={
                "documents_indexed": summary.documents_indexed,
                "batches_sent": summary.batches_sent,
                "rows_skipped": summary.rows_skipped,
            },
        )
        return summary

    def _run(self) -> IngestSummary:
        self._transition(PipelineState.IDLE)
        self.sink.health_check()

        last_id = self.checkpoint_store.load()
        if last_id:
            logger.info(f"Resuming after record {last_id}", extra={"tracker_file": str(self.checkpoint_store.path)})
        else:
            logger.info("No checkpoint found, starting from the first row")

        checkpoint_found = True
        with CSVRowReader(self.config.csv_file) as reader:
            header = reader.read_header()
            logger.info(f"Header: {header}")

            if last_id:
                checkpoint_found = self._resume(reader, last_id)

            self._stream(reader)
            rows_read = reader.rows_read

        if not self._batch.is_empty:
            self._flush(final=True)

        self.metrics.record_rows_read(rows_read)
        self._transition(PipelineState.INTERRUPTED if self._interrupted else PipelineState.DONE)

        if not checkpoint_found:
            logger.warning(
                f"Checkpoint {last_id} was not found in the input; nothing was indexed",
                extra={"tracker_file": str(self.checkpoint_store.path)},
            )

        return IngestSummary(
            csv_file=str(self.config.csv_file),
            tracker_file=str(self.checkpoint_store.path),
            resumed_from=last_id,
            rows_read=rows_read,
            rows_skipped=self._rows_skipped,
            documents_indexed=self._documents_indexed,
            batches_sent=self._batches_sent,
            last_id=self._last_sent_id,
            checkpoint_found=checkpoint_found,
            interrupted=self._interrupted,
        )

    def _resume(self, rows: Iterator[RawRecord], last_id: str) -> bool:
        """
        Discard rows up to and including the checkpointed identifier.

        Returns:
            True if the identifier was found
        """
        self._transition(PipelineState.RESUMING)
        for record in rows:
            self._rows_skipped += 1
            if self.transformer.record_id(record) == last_id:
                self.metrics.record_rows_skipped(self._rows_skipped)
                logger.info(f"Skipped {self._rows_skipped} already committed rows")
                return True

        self.metrics.record_rows_skipped(self._rows_skipped)
        return False

    def _stream(self, rows: Iterator[RawRecord]) -> None:
        self._transition(PipelineState.STREAMING)
        for record in rows:
            record_id = self.transformer.record_id(record)
            document = self.transformer.transform(record)
            self._batch.append(
                self.transformer.build_action(record_id),
                document.to_source(),
            )
            logger.debug(f"Queued {record_id}", extra={"line": record.line_number})

            if self._batch.should_flush():
                self._flush(final=False)
                if self.stop_requested is not None and self.stop_requested():
                    logger.warning(f"Shutdown requested, stopping after record {self._last_sent_id}")
                    self._interrupted = True
                    return

    def _flush(self, final: bool) -> None:
        """
        Send the live batch and commit its last identifier.

        Args:
            final: True for the end-of-input flush
        """
        self._transition(PipelineState.DRAINING if final else PipelineState.FLUSHING)

        document_count = self._batch.document_count
        last_id = self._batch.last_id
        payload = self._batch.drain()

        try:
            with self.metrics.time_bulk_request():
                self.sink.bulk_write(payload)
        except SinkError:
            self.metrics.record_batch_sent(document_count, len(payload), success=False)
            raise

        self.metrics.record_batch_sent(document_count, len(payload), success=True)
        self._batches_sent += 1
        self._documents_indexed += document_count
        self._last_sent_id = last_id

        if last_id is not None and (not final or self.config.checkpoint_on_drain):
            self.checkpoint_store.save(last_id)
            self.metrics.record_checkpoint_write()

        logger.info(
            f"Imported: {self._documents_indexed}",
            extra={"batch_documents": document_count, "last_id": last_id},
        )

        if self.progress_callback is not None:
            self.progress_callback(
                IngestProgress(
                    batches_sent=self._batches_sent,
                    documents_indexed=self._documents_indexed,
                    last_id=last_id,
                )
            )

        if not final:
            self._transition(PipelineState.STREAMING)
