"""
Row to document transformation.

Maps a raw CSV row onto a LocationDocument using the fixed column layout
of the location export. Column positions are not configurable.
"""

import re
from typing import Any, List

from location_seed.batch.readers.csv_reader import RawRecord
from location_seed.core.errors import GeometryParseError, MalformedRowError
from location_seed.core.models import GeoPoint, LocationDocument

# Column positions in the location export
ID_COLUMN = 0
ADDRESS_COLUMN = 3
CITY_COLUMN = 4
COUNTRY_COLUMN = 5
DISTRICT_COLUMN = 6
DIVISION_COLUMN = 7
AUTOCOMPLETE_COLUMN = 8
LATLNG_COLUMN = 9
PLACE_ID_COLUMN = 10
PLUS_CODE_COLUMN = 11
POSTAL_CODE_COLUMN = 12
TYPES_COLUMN = 13

MIN_COLUMNS = TYPES_COLUMN + 1

TYPES_DELIMITER = ";"

# WKT point: longitude first, then latitude
POINT_PATTERN = re.compile(r"POINT \((-?\d+\.?\d*) (-?\d+\.?\d*)\)")


def parse_point(value: str, line_number: int | None = None) -> GeoPoint:
    """
    Parse ``POINT (<lon> <lat>)`` into a GeoPoint.

    Raises:
        GeometryParseError: If the value does not contain a point literal
    """
    match = POINT_PATTERN.search(value)
    if match is None:
        raise GeometryParseError("latlng", value, line_number=line_number)

    lon = float(match.group(1))
    lat = float(match.group(2))
    return GeoPoint(lat=lat, lon=lon)


def parse_flag(value: str) -> bool:
    """Only the exact literal "true" is true."""
    return value == "true"


def split_types(value: str) -> List[str]:
    """
    Split the place types column.

    An empty column gives ``[""]``, not an empty list.
    """
    return value.split(TYPES_DELIMITER)


class RecordTransformer:
    """
    Turns raw rows into bulk (action, document) pairs for one index.
    """

    def __init__(self, index_name: str):
        """
        Initialize transformer.

        Args:
            index_name: Target index written into every bulk action
        """
        self.index_name = index_name

    def record_id(self, record: RawRecord) -> str:
        return record[ID_COLUMN]

    def build_action(self, record_id: str) -> dict[str, Any]:
        """Upsert action keyed by the record identifier."""
        return {"index": {"_index": self.index_name, "_id": record_id}}

    def transform(self, record: RawRecord) -> LocationDocument:
        """
        Build the search document for one row.

        Args:
            record: Raw CSV row

        Returns:
            LocationDocument

        Raises:
            MalformedRowError: If the row is too short for the layout
            GeometryParseError: If the latlng column cannot be parsed
        """
        if len(record) < MIN_COLUMNS:
            raise MalformedRowError(
                f"Row has {len(record)} columns, at least {MIN_COLUMNS} required",
                line_number=record.line_number,
                raw_line=",".join(record.fields),
            )

        return LocationDocument(
            place_id=record[PLACE_ID_COLUMN],
            address=record[ADDRESS_COLUMN],
            latlng=parse_point(record[LATLNG_COLUMN], line_number=record.line_number),
            types=split_types(record[TYPES_COLUMN]),
            is_autocomplete_address=parse_flag(record[AUTOCOMPLETE_COLUMN]),
            country=record[COUNTRY_COLUMN],
            city=record[CITY_COLUMN],
            division=record[DIVISION_COLUMN],
            district=record[DISTRICT_COLUMN],
            postal_code=record[POSTAL_CODE_COLUMN],
            plus_code=record[PLUS_CODE_COLUMN],
        )
