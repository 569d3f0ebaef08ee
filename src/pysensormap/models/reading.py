"""Latest reading model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pysensormap.models._base import RegistryModel


class Reading(BaseModel):
    """A single observation."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str | None = None
    timestamp: str | None = None
    measurements: dict[str, Any] = Field(default_factory=dict)
    location: Any = None


class LatestReading(RegistryModel):
    """Response of ``GET /api/v1/sensors/{id}/readings/latest``."""

    sensor_id: str | None = None
    external_id: str | None = None
    name: str | None = None
    reading: Reading | None = None

    @property
    def timestamp(self) -> str | None:
        return self.reading.timestamp if self.reading is not None else None
