"""Sensor record and list-page models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pysensormap._normalize import first_float, geometry_coordinate, safe_float, safe_int, safe_str
from pysensormap.models._base import RegistryModel


class SensorRecord(RegistryModel):
    """A sensor as returned by the registry.

    Coordinates are WGS84 degrees and are ``None`` when the sensor has no
    location. The registry may serialize them as numeric strings, under
    ``lat``/``lon``/``lng``, or as GeoJSON ``geometry.coordinates``; all of
    these are folded into ``latitude``/``longitude`` on ingress. A missing or
    unparseable coordinate is ``None``, never ``0``.

    Parameters
    ----------
    id : str
        Registry identifier (deduplication key).
    sensor_type : str
        Category tag (e.g. ``"buoy"``).
    latitude : float or None
        WGS84 latitude.
    longitude : float or None
        WGS84 longitude.
    raw : dict
        Full API response dict.
    """

    id: str
    external_id: str | None = None
    name: str = ""
    description: str | None = None
    sensor_type: str = ""
    status: str | None = None
    deployment_date: str | None = None
    decommissioned_date: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    provider_id: str | None = None
    provider_name: str | None = None
    provider_slug: str | None = None
    feed_id: str | None = None
    feed_name: str | None = None
    connected_service: str | None = None
    last_reading_at: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _fold_coordinates(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        merged["latitude"] = first_float(
            values.get("latitude"),
            values.get("lat"),
            geometry_coordinate(values, 1),
        )
        merged["longitude"] = first_float(
            values.get("longitude"),
            values.get("lon"),
            values.get("lng"),
            geometry_coordinate(values, 0),
        )
        merged.setdefault("raw", dict(values))
        return merged

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_coordinate(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator(
        "id",
        "external_id",
        "provider_id",
        "feed_id",
        mode="before",
    )
    @classmethod
    def _coerce_identifier(cls, value: Any) -> str | None:
        return safe_str(value)

    @property
    def has_location(self) -> bool:
        """Whether both coordinates are known."""
        return self.latitude is not None and self.longitude is not None


class Pagination(BaseModel):
    """Pagination block of a list response."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    page: int = 1
    limit: int = 0
    total: int = 0
    total_pages: int = 1

    @field_validator("page", "limit", "total", "total_pages", mode="before")
    @classmethod
    def _coerce_ints(cls, value: Any) -> int:
        parsed = safe_int(value)
        return 0 if parsed is None else parsed


class SensorPage(BaseModel):
    """One page of ``GET /api/v1/sensors``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    records: list[SensorRecord] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)

    @model_validator(mode="before")
    @classmethod
    def _accept_sensors_key(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        if "records" in values:
            return values
        merged = dict(values)
        sensors = values.get("sensors")
        merged["records"] = [item for item in sensors if isinstance(item, dict)] if isinstance(sensors, list) else []
        if not isinstance(values.get("pagination"), dict):
            merged.pop("pagination", None)
        return merged

    def has_more(self, page: int, page_limit: int) -> bool:
        """Whether another page after *page* is worth requesting.

        A page is "full" when it returned exactly ``page_limit`` records and
        the registry reports further pages.
        """
        return len(self.records) == page_limit and page < self.pagination.total_pages
