"""
Forward-only CSV row source.

Reads the input one row at a time so memory stays flat regardless of file
size. The first row is the header; every later row must have the same
number of columns. Malformed input is fatal.
"""

import codecs
import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

from location_seed.core.errors import MalformedRowError, StartupError


@dataclass(frozen=True)
class RawRecord:
    """One data row, positionally addressed."""

    fields: List[str]
    line_number: int

    def __len__(self) -> int:
        return len(self.fields)

    def __getitem__(self, index: int) -> str:
        return self.fields[index]


class CSVRowReader:
    """
    Reads CSV rows lazily in file order.

    Usage:
        with CSVRowReader("places.csv") as reader:
            header = reader.read_header()
            for record in reader:
                ...
    """

    def __init__(
        self,
        file_path: str | Path,
        delimiter: str = ",",
        encoding: str = "utf-8-sig",
    ):
        """
        Initialize CSV reader.

        Args:
            file_path: Path to CSV file
            delimiter: Field delimiter
            encoding: Text encoding; the default strips a leading BOM
        """
        self.file_path = Path(file_path)
        self.delimiter = delimiter
        self.encoding = encoding

        self._handle = None
        self._reader = None
        self._header: Optional[List[str]] = None
        self._line_number = 0
        self._pending_lines: List[str] = []
        self.rows_read = 0

    def open(self) -> "CSVRowReader":
        """
        Open the input file.

        Raises:
            StartupError: If the file is missing or unreadable
        """
        try:
            self._handle = open(self.file_path, "rb")
        except OSError as e:
            raise StartupError(
                f"Error opening CSV file: {e.strerror or e}",
                path=str(self.file_path),
            ) from e

        self._reader = csv.reader(
            self._track_lines(self._handle),
            delimiter=self.delimiter,
            strict=True,
        )
        return self

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
            self._reader = None

    def __enter__(self) -> "CSVRowReader":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @property
    def header(self) -> Optional[List[str]]:
        return self._header

    def _track_lines(self, handle) -> Iterator[str]:
        """
        Decode the file one physical line at a time and feed it to the csv
        module, keeping the raw text of the row being parsed.
        """
        decoder = codecs.getincrementaldecoder(self.encoding)()
        for raw in handle:
            self._line_number += 1
            try:
                line = decoder.decode(raw)
            except UnicodeDecodeError as e:
                raise MalformedRowError(
                    f"Invalid {self.encoding} encoding in CSV file: {e.reason}",
                    line_number=self._line_number,
                    raw_line=raw.decode(self.encoding, "backslashreplace").rstrip("\r\n"),
                ) from e
            self._pending_lines.append(line)
            yield line

        try:
            decoder.decode(b"", final=True)
        except UnicodeDecodeError as e:
            raise MalformedRowError(
                f"Invalid {self.encoding} encoding in CSV file: {e.reason}",
                line_number=self._line_number,
            ) from e

    def _read_fields(self) -> Optional[tuple[List[str], int, str]]:
        """Return (fields, first line number, raw text) of the next non-blank row."""
        if self._reader is None:
            raise ValueError("CSV reader is not open")

        while True:
            self._pending_lines.clear()
            try:
                fields = next(self._reader)
            except StopIteration:
                return None
            except csv.Error as e:
                raw = "".join(self._pending_lines).rstrip("\r\n")
                raise MalformedRowError(
                    f"Error reading CSV file: {e}",
                    line_number=self._line_number,
                    raw_line=raw,
                ) from e

            raw = "".join(self._pending_lines).rstrip("\r\n")
            first_line = self._line_number - len(self._pending_lines) + 1
            if not fields:
                # Blank line
                continue
            return fields, first_line, raw

    def read_header(self) -> List[str]:
        """
        Read the header row. Must be called once before iterating.

        Returns:
            Column names

        Raises:
            MalformedRowError: If the input is empty
        """
        if self._header is not None:
            raise ValueError("Header has already been read")

        row = self._read_fields()
        if row is None:
            raise MalformedRowError(
                "Error reading header: input is empty",
                line_number=1,
            )
        self._header = row[0]
        return self._header

    def next_row(self) -> Optional[RawRecord]:
        """
        Read the next data row.

        Returns:
            RawRecord, or None at end of input

        Raises:
            MalformedRowError: If the column count differs from the header
                or the row cannot be decoded
        """
        if self._header is None:
            raise ValueError("read_header() must be called before reading rows")

        row = self._read_fields()
        if row is None:
            return None

        fields, line_number, raw = row
        if len(fields) != len(self._header):
            raise MalformedRowError(
                f"Wrong number of fields: expected {len(self._header)}, got {len(fields)}",
                line_number=line_number,
                raw_line=raw,
            )

        self.rows_read += 1
        return RawRecord(fields=fields, line_number=line_number)

    def __iter__(self) -> "CSVRowReader":
        return self

    def __next__(self) -> RawRecord:
        record = self.next_row()
        if record is None:
            raise StopIteration
        return record
