"""
Error taxonomy for the ingestion pipeline.

Every failure is fatal for the run. Errors are raised where they are
detected and propagate to the pipeline driver, which aborts; the CLI is
the only place that turns them into an exit code.
"""

from typing import Any


class IngestError(Exception):
    """Base class for all ingestion failures."""

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value!r}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class ConfigError(IngestError):
    """Missing or invalid configuration."""


class StartupError(IngestError):
    """Sink unreachable or input file unopenable."""


class StructuralInputError(IngestError):
    """Input that cannot be turned into a document."""


class MalformedRowError(StructuralInputError):
    """Raised when a CSV row has the wrong shape or cannot be decoded."""

    def __init__(self, message: str, line_number: int | None = None, raw_line: str | None = None):
        self.line_number = line_number
        self.raw_line = raw_line
        super().__init__(message, line_number=line_number, raw_line=raw_line)


class GeometryParseError(StructuralInputError):
    """Raised when the geometry column is not a POINT (<lon> <lat>) literal."""

    def __init__(self, field_name: str, value: str, line_number: int | None = None):
        self.field_name = field_name
        self.value = value
        self.line_number = line_number
        super().__init__(
            f"Error parsing {field_name} field: {value}",
            field=field_name,
            value=value,
            line_number=line_number,
        )


class CheckpointIOError(IngestError):
    """The tracker file exists but cannot be read, or cannot be written."""


class SinkError(IngestError):
    """Bulk request failed at the transport level or was rejected."""
