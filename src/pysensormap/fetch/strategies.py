"""Paginated registry reads and the place-search tier ladder."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from pysensormap._constants import (
    CITY_RADIUS_KM,
    METRO_RADIUS_KM,
    REGIONAL_RADIUS_KM,
    WIDENING_BOX_HALF_WIDTHS,
)
from pysensormap.fetch.state import LocationTier
from pysensormap.geo import normalize_bounds, point_window, to_fetch_segments
from pysensormap.models.bounds import GeoBounds, GeoPoint
from pysensormap.models.requests import SensorQuery
from pysensormap.models.sensor import SensorPage, SensorRecord

_logger = logging.getLogger(__name__)

_BOX_TIERS = (LocationTier.BOX_0_5, LocationTier.BOX_1_0)


class SensorRegistry(Protocol):
    """The one registry call the orchestrator depends on."""

    async def list_sensors(self, query: SensorQuery | None = None, **filters: Any) -> SensorPage:
        ...


async def paginate(
    registry: SensorRegistry,
    query: SensorQuery,
    *,
    max_pages: int,
    checkpoint: Callable[[], None] | None = None,
) -> list[SensorRecord]:
    """Collect up to *max_pages* pages of *query*, stopping at the first short page.

    *checkpoint* runs after every response; raising from it aborts the walk.
    """
    records: list[SensorRecord] = []
    for page in range(1, max_pages + 1):
        result = await registry.list_sensors(query.with_page(page))
        if checkpoint is not None:
            checkpoint()
        records.extend(result.records)
        if not result.has_more(page, query.limit):
            break
    return records


def merge_unique(chunks: Iterable[Iterable[SensorRecord]], seen: set[str] | None = None) -> list[SensorRecord]:
    """Concatenate *chunks*, keeping the first record per id."""
    seen = set() if seen is None else seen
    merged: list[SensorRecord] = []
    for chunk in chunks:
        for record in chunk:
            if record.id in seen:
                continue
            seen.add(record.id)
            merged.append(record)
    return merged


@dataclass(frozen=True, slots=True)
class LocationStrategy:
    """One rung of the place-search ladder.

    The area is the geocoder bounding box, a radius around the point, or a
    box of ``±half_width_deg`` around it. A box that crosses the antimeridian
    is queried one side at a time. ``filtered=False`` drops the category
    filter.
    """

    tier: LocationTier
    radius_km: float | None = None
    half_width_deg: float | None = None
    use_bounding_box: bool = False
    filtered: bool = True

    def queries(
        self,
        center: GeoPoint,
        bounding_box: GeoBounds | None,
        categories: Sequence[str],
        *,
        provider: str | None,
        limit: int,
    ) -> list[SensorQuery]:
        areas: list[dict[str, Any]]
        if self.use_bounding_box:
            if bounding_box is None:
                return []
            areas = [{"bbox": s} for s in to_fetch_segments(normalize_bounds(bounding_box), overlap=False)]
        elif self.half_width_deg is not None:
            areas = [{"bbox": s} for s in to_fetch_segments(point_window(center, self.half_width_deg), overlap=False)]
        else:
            areas = [{"center": center, "radius_km": self.radius_km}]

        per_category: Sequence[str | None] = list(categories) if self.filtered and categories else [None]
        return [
            SensorQuery(category=category, provider=provider, limit=limit, **area)
            for category in per_category
            for area in areas
        ]


def build_location_strategies(*, has_bounding_box: bool, filtered: bool) -> list[LocationStrategy]:
    """The ordered tiers tried for a place search.

    The unfiltered regional retry only exists when categories were requested;
    without a filter it would repeat the regional tier.
    """
    strategies: list[LocationStrategy] = []
    if has_bounding_box:
        strategies.append(LocationStrategy(LocationTier.BBOX, use_bounding_box=True))
    strategies.extend(
        [
            LocationStrategy(LocationTier.CITY, radius_km=CITY_RADIUS_KM),
            LocationStrategy(LocationTier.METRO, radius_km=METRO_RADIUS_KM),
            LocationStrategy(LocationTier.REGIONAL, radius_km=REGIONAL_RADIUS_KM),
        ]
    )
    if filtered:
        strategies.append(LocationStrategy(LocationTier.UNFILTERED, radius_km=REGIONAL_RADIUS_KM, filtered=False))
    for tier, half_width in zip(_BOX_TIERS, WIDENING_BOX_HALF_WIDTHS, strict=True):
        strategies.append(LocationStrategy(tier, half_width_deg=half_width, filtered=False))
    return strategies


async def run_strategies(
    strategies: Sequence[LocationStrategy],
    attempt: Callable[[LocationStrategy], Awaitable[list[SensorRecord]]],
) -> tuple[LocationStrategy | None, list[SensorRecord]]:
    """Try *strategies* in order and stop at the first one with at least one record."""
    for strategy in strategies:
        records = await attempt(strategy)
        _logger.debug("Location tier %s returned %d records", strategy.tier, len(records))
        if records:
            return strategy, records
    return None, []
