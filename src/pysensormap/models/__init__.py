"""Data models for registry and geocoder responses."""

from pysensormap.models._base import RegistryModel
from pysensormap.models.bounds import GeoBounds, GeoPoint
from pysensormap.models.geocode import GeocodeResult, parse_nominatim_bbox
from pysensormap.models.reading import LatestReading, Reading
from pysensormap.models.requests import SensorQuery, clamp_radius_km
from pysensormap.models.sensor import Pagination, SensorPage, SensorRecord

__all__ = [
    "GeoBounds",
    "GeoPoint",
    "GeocodeResult",
    "LatestReading",
    "Pagination",
    "Reading",
    "RegistryModel",
    "SensorPage",
    "SensorQuery",
    "SensorRecord",
    "clamp_radius_km",
    "parse_nominatim_bbox",
]
