"""
BulkResult model representing the inspected outcome of one bulk request.
"""

from typing import Any, List

from pydantic import BaseModel, Field


class BulkItemFailure(BaseModel):
    """A single action rejected inside an otherwise accepted bulk request."""

    doc_id: str | None = None
    status: int
    error_type: str | None = None
    reason: str | None = None


class BulkResult(BaseModel):
    """
    Outcome of a bulk request (ephemeral, used for logging and checks).

    Attributes:
        status: HTTP status of the bulk response
        errors: Top-level errors flag reported by the sink
        took_ms: Server-side processing time in milliseconds
        item_count: Number of per-action results in the response
        failed_items: Actions that the sink reported as failed
    """

    status: int
    errors: bool = False
    took_ms: int | None = None
    item_count: int = 0
    failed_items: List[BulkItemFailure] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors and not self.failed_items

    @classmethod
    def from_response(cls, status: int, body: dict[str, Any]) -> "BulkResult":
        """
        Build a result from a decoded ``_bulk`` response body.

        Args:
            status: HTTP status code
            body: Decoded JSON response

        Returns:
            BulkResult with failed items extracted
        """
        items = body.get("items") or []
        failures = []
        for item in items:
            # Each item is keyed by its action type: index, create, update, delete
            outcome = next(iter(item.values()), {}) if item else {}
            error = outcome.get("error")
            if not error:
                continue
            if isinstance(error, dict):
                error_type = error.get("type")
                reason = error.get("reason")
            else:
                error_type = None
                reason = str(error)
            failures.append(
                BulkItemFailure(
                    doc_id=outcome.get("_id"),
                    status=int(outcome.get("status", 0)),
                    error_type=error_type,
                    reason=reason,
                )
            )

        return cls(
            status=status,
            errors=bool(body.get("errors", False)),
            took_ms=body.get("took"),
            item_count=len(items),
            failed_items=failures,
        )
