"""
LocationDocument model representing one geocoded place as indexed in the sink.
"""

from typing import Any, List

from pydantic import BaseModel, Field


class GeoPoint(BaseModel):
    """
    Elasticsearch geo_point in object form.

    Attributes:
        lat: Latitude in decimal degrees
        lon: Longitude in decimal degrees
    """

    lat: float
    lon: float


class LocationDocument(BaseModel):
    """
    Search document derived from one CSV row (ephemeral, owned by the
    pipeline for a single transform-to-send cycle).

    The record identifier is not part of the body; it travels as the
    ``_id`` of the bulk action.

    Attributes:
        place_id: Provider place identifier
        address: Formatted address
        latlng: Point location, latitude first
        types: Place types split from a ';' separated column
        is_autocomplete_address: Whether the address came from autocomplete
        country: Country name
        city: City name
        division: Administrative division
        district: District name
        postal_code: Postal code
        plus_code: Open Location Code
    """

    place_id: str = Field(..., alias="placeId")
    address: str
    latlng: GeoPoint
    types: List[str]
    is_autocomplete_address: bool = Field(..., alias="isAutocompleteAddress")
    country: str
    city: str
    division: str
    district: str
    postal_code: str = Field(..., alias="postalCode")
    plus_code: str = Field(..., alias="plusCode")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "placeId": "ChIJd8BlQ2BZwokRAFUEcm_qrcA",
                "address": "Road 12, Banani, Dhaka 1213",
                "latlng": {"lat": 23.7937, "lon": 90.4066},
                "types": ["street_address", "point_of_interest"],
                "isAutocompleteAddress": False,
                "country": "Bangladesh",
                "city": "Dhaka",
                "division": "Dhaka Division",
                "district": "Dhaka District",
                "postalCode": "1213",
                "plusCode": "QCV4+F6",
            }
        }

    def to_source(self) -> dict[str, Any]:
        """Return the document body using the index's field names."""
        return self.model_dump(by_alias=True)
