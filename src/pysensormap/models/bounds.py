"""Geographic value types: bounds and points."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A WGS84 point in degrees."""

    lat: float
    lon: float


@dataclass(frozen=True, slots=True)
class GeoBounds:
    """A rectangular region in degrees.

    ``south <= north`` always holds. ``west`` and ``east`` may be in any
    order: after normalization to [-180, 180], ``west > east`` (or a span
    above 180°) encodes a box that crosses the antimeridian.
    """

    west: float
    south: float
    east: float
    north: float

    @property
    def height(self) -> float:
        return self.north - self.south

    def as_query_params(self) -> dict[str, float]:
        """Registry bbox parameters for a non-crossing segment."""
        return {
            "min_lat": self.south,
            "min_lon": self.west,
            "max_lat": self.north,
            "max_lon": self.east,
        }
