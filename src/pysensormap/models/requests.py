"""Pydantic request models for client entrypoints.

These models provide a consistent "validate → normalize → execute" flow.
They are used internally by :class:`pysensormap.client.RegistryClient`.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pysensormap._constants import DEFAULT_PAGE_LIMIT, RADIUS_MAX_KM, RADIUS_MIN_KM
from pysensormap.models.bounds import GeoBounds, GeoPoint


def clamp_radius_km(radius_km: float) -> float:
    """Clamp a radius to what the registry accepts."""
    return min(RADIUS_MAX_KM, max(RADIUS_MIN_KM, radius_km))


class SensorQuery(BaseModel):
    """Filter for ``GET /api/v1/sensors``.

    Either ``bbox`` or ``center`` (+ ``radius_km``) restricts the area; when
    both are supplied the bounding box wins.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    category: str | None = None
    provider: str | None = None
    status: str | None = None
    search: str | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_LIMIT, ge=1)
    bbox: GeoBounds | None = None
    center: GeoPoint | None = None
    radius_km: float | None = None

    @field_validator("category", "provider", "status", "search")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value or None

    @field_validator("radius_km")
    @classmethod
    def _clamp_radius(cls, value: float | None) -> float | None:
        if value is None:
            return None
        return clamp_radius_km(value)

    def to_params(self) -> dict[str, str]:
        """Encode as registry query parameters."""
        params: dict[str, Any] = {}
        if self.category:
            params["sensor_type"] = self.category
        if self.status:
            params["status"] = self.status
        if self.provider:
            params["provider"] = self.provider
        if self.search:
            params["search"] = self.search
        params["page"] = self.page
        params["limit"] = self.limit

        if self.bbox is not None:
            params.update(self.bbox.as_query_params())
        elif self.center is not None:
            params["lat"] = self.center.lat
            params["lon"] = self.center.lon
            if self.radius_km is not None:
                params["radius_km"] = self.radius_km
        return {key: str(value) for key, value in params.items()}

    def with_page(self, page: int) -> SensorQuery:
        return self.model_copy(update={"page": page})
