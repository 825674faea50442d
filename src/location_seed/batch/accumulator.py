"""
Size-bounded NDJSON buffer for bulk requests.
"""

import json
from typing import Any

DEFAULT_THRESHOLD_BYTES = 400

LINE_SEPARATOR = b"\n"


def encode_line(obj: dict[str, Any]) -> bytes:
    """Compact JSON encoding of one bulk line, without the separator."""
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class BulkBatch:
    """
    Accumulates (action, document) pairs as newline-delimited JSON.

    Only one batch is live at a time; ``drain`` hands the payload over and
    resets the buffer for the next batch.
    """

    def __init__(self, threshold_bytes: int = DEFAULT_THRESHOLD_BYTES):
        """
        Initialize batch.

        Args:
            threshold_bytes: Flush once the payload grows beyond this size
        """
        if threshold_bytes <= 0:
            raise ValueError("threshold_bytes must be positive")
        self.threshold_bytes = threshold_bytes
        self._buffer = bytearray()
        self._document_count = 0
        self._last_id: str | None = None

    def append(self, action: dict[str, Any], document: dict[str, Any]) -> None:
        """
        Encode an action line and its document line onto the buffer.

        Args:
            action: Bulk action metadata, e.g. ``{"index": {"_index": ..., "_id": ...}}``
            document: Document body
        """
        action_line = encode_line(action)
        document_line = encode_line(document)

        self._buffer += action_line
        self._buffer += LINE_SEPARATOR
        self._buffer += document_line
        self._buffer += LINE_SEPARATOR

        self._document_count += 1
        metadata = next(iter(action.values()), None)
        if isinstance(metadata, dict) and metadata.get("_id") is not None:
            self._last_id = str(metadata["_id"])

    def should_flush(self) -> bool:
        return len(self._buffer) > self.threshold_bytes

    def drain(self) -> bytes:
        """Return the payload and clear the batch."""
        payload = bytes(self._buffer)
        self._buffer.clear()
        self._document_count = 0
        self._last_id = None
        return payload

    @property
    def is_empty(self) -> bool:
        return not self._buffer

    @property
    def size_bytes(self) -> int:
        return len(self._buffer)

    @property
    def document_count(self) -> int:
        return self._document_count

    @property
    def last_id(self) -> str | None:
        """Identifier of the most recently appended document."""
        return self._last_id
