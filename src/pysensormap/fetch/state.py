"""Published fetch state.

The orchestrator is the only writer; everything else receives immutable
snapshots through ``on_update`` or :attr:`FetchOrchestrator.state`.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from pysensormap.models.bounds import GeoPoint
from pysensormap.models.sensor import SensorRecord


class FetchMode(StrEnum):
    VIEWPORT = "viewport"
    LOCATION = "location"


class FetchSource(StrEnum):
    NONE = "none"
    CACHE = "cache"
    NETWORK = "network"
    CONTAINED = "contained"


class LocationTier(StrEnum):
    NONE = "none"
    BBOX = "bbox"
    CITY = "city"
    METRO = "metro"
    REGIONAL = "regional"
    UNFILTERED = "unfiltered"
    BOX_0_5 = "box_0_5"
    BOX_1_0 = "box_1_0"


class LocationQueryState(BaseModel):
    """How the current place search was answered."""

    model_config = ConfigDict(frozen=True)

    center: GeoPoint
    tier: LocationTier = LocationTier.NONE
    used_fallback: bool = False


class FetchState(BaseModel):
    """Snapshot of the best-known sensor list and its status flags."""

    model_config = ConfigDict(frozen=True)

    mode: FetchMode = FetchMode.VIEWPORT
    records: tuple[SensorRecord, ...] = ()
    loading: bool = False
    error: str | None = None
    warning: str | None = Field(default=None, description="Soft, non-blocking degradation notice")
    location_fetch_used_fallback: bool = False
    ready: bool = Field(default=False, description="Location results are settled and safe to display")
    epoch: int = 0
    source: FetchSource = FetchSource.NONE
    location: LocationQueryState | None = None
