"""Geo-bounds utilities.

Pure functions over :class:`~pysensormap.models.bounds.GeoBounds`. Longitudes
are wrapped into [-180, 180]; latitudes are never wrapped. A box crosses the
antimeridian when ``west > east`` or when its span exceeds 180° after
normalization.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pysensormap._constants import DATELINE_OVERLAP_DEG, FULL_WORLD_EPSILON, SIGNATURE_PRECISION
from pysensormap.models.bounds import GeoBounds, GeoPoint
from pysensormap.models.sensor import SensorRecord


def normalize_longitude(lon: float) -> float:
    """Wrap *lon* into [-180, 180] (map libraries report e.g. -193 for 167°E)."""
    while lon < -180:
        lon += 360
    while lon > 180:
        lon -= 360
    return lon


def normalize_bounds(bounds: GeoBounds) -> GeoBounds:
    """Wrap west/east into [-180, 180]; south/north pass through unchanged."""
    return GeoBounds(
        west=normalize_longitude(bounds.west),
        south=bounds.south,
        east=normalize_longitude(bounds.east),
        north=bounds.north,
    )


def crosses_antimeridian(bounds: GeoBounds) -> bool:
    """True when *bounds* spans the ±180° seam.

    Only meaningful on normalized bounds: ``(-193, -101)`` must first become
    ``(167, -101)``.
    """
    if bounds.west > bounds.east:
        return True
    return bounds.east - bounds.west > 180


def is_full_world_bounds(bounds: GeoBounds) -> bool:
    """True for the degenerate fully-zoomed-out view.

    The map may report either a ~360° span or ``west=180, east=-180``; taken
    literally the latter would split into two zero-width segments.
    """
    if abs(bounds.west - 180) < FULL_WORLD_EPSILON and abs(bounds.east + 180) < FULL_WORLD_EPSILON:
        return True
    return bounds.east - bounds.west >= 360 - FULL_WORLD_EPSILON


def to_fetch_segments(bounds: GeoBounds, *, overlap: bool = True) -> list[GeoBounds]:
    """Split *bounds* into 1-3 boxes that never cross the antimeridian.

    * full world: two hemispheres, so a single result cap is not spent on one side
    * crossing: ``[west, 180]`` and ``[-180, east]``
    * otherwise: the box itself, plus a thin strip across the seam when an
      edge is within ``DATELINE_OVERLAP_DEG`` of ±180 and *overlap* is set
    """
    south, north = bounds.south, bounds.north
    if is_full_world_bounds(bounds):
        return [
            GeoBounds(west=-180.0, south=south, east=0.0, north=north),
            GeoBounds(west=0.0, south=south, east=180.0, north=north),
        ]
    if crosses_antimeridian(bounds):
        return [
            GeoBounds(west=bounds.west, south=south, east=180.0, north=north),
            GeoBounds(west=-180.0, south=south, east=bounds.east, north=north),
        ]

    segments = [bounds]
    if not overlap:
        return segments
    if bounds.west <= -180 + DATELINE_OVERLAP_DEG:
        segments.append(GeoBounds(west=180 - DATELINE_OVERLAP_DEG, south=south, east=180.0, north=north))
    if bounds.east >= 180 - DATELINE_OVERLAP_DEG:
        segments.append(GeoBounds(west=-180.0, south=south, east=-180 + DATELINE_OVERLAP_DEG, north=north))
    return segments


def expand_bounds(bounds: GeoBounds, margin: float) -> GeoBounds:
    """Grow *bounds* by ``margin / 2`` of its size on each side.

    For a crossing box the width of each side of the seam is measured
    separately. The result is not re-normalized; see :func:`wrap_bounds`.
    """
    half = margin / 2
    h = bounds.height

    if crosses_antimeridian(bounds):
        w_west = 180 - bounds.west
        w_east = bounds.east + 180
        return GeoBounds(
            west=bounds.west - w_west * half,
            south=bounds.south - h * half,
            east=bounds.east + w_east * half,
            north=bounds.north + h * half,
        )

    w = bounds.east - bounds.west
    return GeoBounds(
        west=bounds.west - w * half,
        south=bounds.south - h * half,
        east=bounds.east + w * half,
        north=bounds.north + h * half,
    )


def wrap_bounds(bounds: GeoBounds) -> GeoBounds:
    """Bring possibly out-of-range bounds (e.g. after expansion) back into range.

    A span of 360° or more collapses to the full world instead of wrapping
    into a narrow box; latitudes are clamped to [-90, 90].
    """
    south = max(-90.0, bounds.south)
    north = min(90.0, bounds.north)
    if bounds.west <= bounds.east and bounds.east - bounds.west >= 360 - FULL_WORLD_EPSILON:
        return GeoBounds(west=-180.0, south=south, east=180.0, north=north)
    normalized = normalize_bounds(bounds)
    return GeoBounds(west=normalized.west, south=south, east=normalized.east, north=north)


def bounds_contained(inner: GeoBounds, outer: GeoBounds) -> bool:
    """True iff *inner* lies fully inside *outer*.

    Never reports containment when *outer* crosses the antimeridian in its
    raw ``west < east`` form: its two wrap-around bands would otherwise cover
    the whole globe and suppress every refetch.
    """
    if inner.south < outer.south or inner.north > outer.north:
        return False

    outer_crosses = crosses_antimeridian(outer)
    if outer_crosses and outer.west < outer.east:
        return False

    inner_crosses = crosses_antimeridian(inner)
    if outer_crosses:
        if inner_crosses:
            return inner.west >= outer.west and inner.east <= outer.east
        return (inner.west >= outer.west and inner.east <= 180) or (inner.west >= -180 and inner.east <= outer.east)
    if inner_crosses:
        return outer.west <= inner.west and outer.east >= inner.east
    return inner.west >= outer.west and inner.east <= outer.east


def center_of(bounds: GeoBounds) -> GeoPoint:
    """Midpoint of *bounds*, measured along the wrap for crossing boxes."""
    if crosses_antimeridian(bounds):
        lon = (bounds.west + bounds.east + 360) / 2
        if lon > 180:
            lon -= 360
    else:
        lon = (bounds.west + bounds.east) / 2
    return GeoPoint(lat=(bounds.south + bounds.north) / 2, lon=lon)


def _dist_sq(record: SensorRecord, center: GeoPoint) -> float:
    assert record.latitude is not None and record.longitude is not None  # noqa: S101
    dlat = record.latitude - center.lat
    dlon = record.longitude - center.lon
    return dlat * dlat + dlon * dlon


def sort_by_distance(records: Iterable[SensorRecord], center: GeoPoint) -> list[SensorRecord]:
    """Order located records nearest-first; unlocated ones follow in input order.

    Distance is squared Euclidean in degree space. This is a display
    priority, not a physical measurement.
    """
    located: list[SensorRecord] = []
    unlocated: list[SensorRecord] = []
    for record in records:
        (located if record.has_location else unlocated).append(record)
    located.sort(key=lambda r: _dist_sq(r, center))
    return located + unlocated


def filter_by_bounds(records: Iterable[SensorRecord], bounds: GeoBounds) -> list[SensorRecord]:
    """Keep records with both coordinates that fall inside *bounds*."""
    crossing = crosses_antimeridian(bounds)
    kept: list[SensorRecord] = []
    for record in records:
        lat, lon = record.latitude, record.longitude
        if lat is None or lon is None:
            continue
        if lat < bounds.south or lat > bounds.north:
            continue
        if crossing:
            inside = (bounds.west <= lon <= 180) or (-180 <= lon <= bounds.east)
        else:
            inside = bounds.west <= lon <= bounds.east
        if inside:
            kept.append(record)
    return kept


def records_to_bounds(records: Sequence[SensorRecord]) -> GeoBounds | None:
    """Bounding box of all located records, or ``None`` when there are none."""
    coords = [(r.latitude, r.longitude) for r in records if r.latitude is not None and r.longitude is not None]
    if not coords:
        return None
    lats = [lat for lat, _ in coords]
    lons = [lon for _, lon in coords]
    return GeoBounds(west=min(lons), south=min(lats), east=max(lons), north=max(lats))


def point_window(center: GeoPoint, half_width_deg: float) -> GeoBounds:
    """Box of ``±half_width_deg`` around *center*, wrapped and lat-clamped."""
    return GeoBounds(
        west=normalize_longitude(center.lon - half_width_deg),
        south=max(-90.0, center.lat - half_width_deg),
        east=normalize_longitude(center.lon + half_width_deg),
        north=min(90.0, center.lat + half_width_deg),
    )


def bounds_signature(bounds: GeoBounds, precision: int = SIGNATURE_PRECISION) -> str:
    """Rounded key so sub-precision jitter maps to the same viewport."""
    values = (bounds.west, bounds.south, bounds.east, bounds.north)
    # "+ 0.0" folds -0.0 into 0.0.
    return "_".join(f"{round(value, precision) + 0.0:.{precision}f}" for value in values)
