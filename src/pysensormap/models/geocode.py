"""Geocoder result model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from pysensormap._normalize import safe_float
from pysensormap.models.bounds import GeoBounds, GeoPoint


def parse_nominatim_bbox(value: Any) -> GeoBounds | None:
    """Parse Nominatim's ``boundingbox`` (``[south, north, west, east]`` strings)."""
    if isinstance(value, GeoBounds):
        return value
    if not isinstance(value, (list, tuple)) or len(value) != 4:
        return None
    south, north, west, east = (safe_float(v) for v in value)
    if south is None or north is None or west is None or east is None:
        return None
    if south > north:
        south, north = north, south
    return GeoBounds(west=west, south=south, east=east, north=north)


class GeocodeResult(BaseModel):
    """A resolved place name."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    lat: float
    lon: float
    display_name: str = ""
    bounding_box: GeoBounds | None = None

    @field_validator("bounding_box", mode="before")
    @classmethod
    def _parse_bbox(cls, value: Any) -> GeoBounds | None:
        return parse_nominatim_bbox(value)

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lon=self.lon)
