"""Viewport and place-search fetch engine.

:class:`FetchOrchestrator` turns map viewport events and place searches into
registry queries, merges and caches what comes back, and publishes one
:class:`~pysensormap.fetch.state.FetchState` at a time.

Everything runs on the caller's event loop. A newer fetch never cancels an
older one; the older one simply loses its epoch and its results are dropped
at the next checkpoint.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable, Iterable
from typing import Any

import aiohttp

from pysensormap._cache import FetchResultCache
from pysensormap._constants import LOCATION_PAGE_LIMIT, LOCATION_WINDOW_DEG, RADIUS_INCOMPLETE_WARNING
from pysensormap.config import SensorMapConfig
from pysensormap.exceptions import GeocodeError, SensorMapError
from pysensormap.fetch.epoch import FetchEpoch, StaleFetchError
from pysensormap.fetch.pool import run_with_concurrency
from pysensormap.fetch.state import FetchMode, FetchSource, FetchState, LocationQueryState, LocationTier
from pysensormap.fetch.strategies import (
    LocationStrategy,
    SensorRegistry,
    build_location_strategies,
    merge_unique,
    paginate,
    run_strategies,
)
from pysensormap.filters import category_matches, data_types_to_categories, filter_signature, parse_data_types
from pysensormap.geo import (
    bounds_contained,
    bounds_signature,
    center_of,
    expand_bounds,
    filter_by_bounds,
    normalize_bounds,
    point_window,
    sort_by_distance,
    to_fetch_segments,
    wrap_bounds,
)
from pysensormap.geocoder import Geocoder
from pysensormap.models.bounds import GeoBounds, GeoPoint
from pysensormap.models.requests import SensorQuery
from pysensormap.models.sensor import SensorRecord

_logger = logging.getLogger(__name__)

#: Failures absorbed into ``FetchState.error`` instead of propagating.
_FETCH_ERRORS: tuple[type[BaseException], ...] = (SensorMapError, aiohttp.ClientError, asyncio.TimeoutError)

_FALLBACK_ERROR = "Failed to load sensors"


def _error_message(exc: BaseException) -> str:
    return str(exc) or _FALLBACK_ERROR


class FetchOrchestrator:
    """Owns the sensor list shown for the current viewport or searched place.

    Parameters
    ----------
    registry : SensorRegistry
        Anything with an async ``list_sensors(query)``, normally an entered
        :class:`~pysensormap.client.RegistryClient`.
    config : SensorMapConfig, optional
        Tuning knobs; defaults are used when omitted.
    on_update : callable, optional
        Called with every newly published :class:`FetchState`.

    Viewport events go through :meth:`on_viewport_change` (debounced) or
    :meth:`fetch_viewport` (immediate). Place searches go through
    :meth:`search_place` or :meth:`fetch_location`.
    """

    def __init__(
        self,
        registry: SensorRegistry,
        config: SensorMapConfig | None = None,
        *,
        on_update: Callable[[FetchState], None] | None = None,
    ) -> None:
        self._registry = registry
        self._config = config or SensorMapConfig()
        self._on_update = on_update
        self._cache = FetchResultCache(self._config.cache_max_entries)
        self._epoch = FetchEpoch()
        self._state = FetchState()

        self._data_types: frozenset[str] = frozenset()
        self._provider: str | None = None
        self._filter_signature = filter_signature(self._data_types, self._provider)

        self._viewport: GeoBounds | None = None
        self._viewport_signature: str | None = None
        self._last_expanded: GeoBounds | None = None

        self._location: GeoPoint | None = None
        self._location_bbox: GeoBounds | None = None

        self._debounce_task: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> FetchState:
        return self._state

    @property
    def cache(self) -> FetchResultCache:
        return self._cache

    @property
    def config(self) -> SensorMapConfig:
        return self._config

    @property
    def data_types(self) -> frozenset[str]:
        return self._data_types

    @property
    def provider(self) -> str | None:
        return self._provider

    @property
    def location(self) -> GeoPoint | None:
        return self._location

    @property
    def viewport(self) -> GeoBounds | None:
        """The last committed (debounced or explicit) viewport."""
        return self._viewport

    def displayed_records(self) -> list[SensorRecord]:
        """Records to render for the current filter selection.

        After a location fallback the unfiltered results are shown as-is so
        the UI can explain that the requested type was not available.
        """
        records = self._state.records
        if self._state.location_fetch_used_fallback or not self._data_types:
            return list(records)
        return [r for r in records if category_matches(r.sensor_type, self._data_types)]

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def _publish(self, **changes: Any) -> FetchState:
        self._state = self._state.model_copy(update=changes)
        if self._on_update is not None:
            try:
                self._on_update(self._state)
            except Exception:
                _logger.debug("on_update callback failed", exc_info=True)
        return self._state

    def _spawn(self, coro: Any) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    async def set_filters(
        self,
        data_types: str | Iterable[str] | None = None,
        provider: str | None = None,
        *,
        refetch: bool = True,
    ) -> FetchState:
        """Change the data type / provider selection and refetch the active mode.

        Unknown data type ids are ignored. A changed selection always
        refetches, even when the viewport is inside the last fetched area;
        with ``refetch=False`` that happens on the next fetch instead.
        """
        self._data_types = parse_data_types(data_types)
        self._provider = (provider.strip() or None) if provider else None
        signature = filter_signature(self._data_types, self._provider)
        if signature == self._filter_signature:
            return self._state
        _logger.debug("Filter signature %r -> %r", self._filter_signature, signature)
        self._filter_signature = signature
        self._last_expanded = None
        if not refetch:
            return self._state
        if self._location is not None:
            return await self.fetch_location(self._location, self._location_bbox)
        return await self.fetch_viewport()

    # ------------------------------------------------------------------
    # Viewport mode
    # ------------------------------------------------------------------

    def on_viewport_change(self, bounds: GeoBounds) -> None:
        """Report a map move; fetching starts once the viewport has been stable.

        Must be called from inside the running event loop. Every move restarts
        the stability window; a move back to the committed viewport cancels
        the pending one and fetches nothing.
        """
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None
        normalized = normalize_bounds(bounds)
        signature = bounds_signature(normalized)
        if signature == self._viewport_signature:
            return
        self._debounce_task = self._spawn(self._debounced(normalized, signature))

    async def _debounced(self, bounds: GeoBounds, signature: str) -> None:
        await asyncio.sleep(self._config.debounce_seconds)
        self._debounce_task = None
        self._viewport = bounds
        self._viewport_signature = signature
        if self._location is not None:
            _logger.debug("Viewport %s recorded; location search is active", signature)
            return
        await self._viewport_fetch(bounds)

    async def fetch_viewport(self, bounds: GeoBounds | None = None) -> FetchState:
        """Fetch for *bounds* now, or for the last committed viewport.

        Before any viewport has been reported the configured initial bounds
        are used. Calling this leaves location mode.
        """
        if bounds is not None:
            normalized = normalize_bounds(bounds)
            self._viewport = normalized
            self._viewport_signature = bounds_signature(normalized)
        elif self._viewport is not None:
            normalized = self._viewport
        else:
            normalized = normalize_bounds(self._config.initial_bounds)
        self._location = None
        self._location_bbox = None
        return await self._viewport_fetch(normalized)

    async def _viewport_fetch(self, bounds: GeoBounds) -> FetchState:
        if self._last_expanded is not None and bounds_contained(bounds, self._last_expanded):
            _logger.debug("Viewport %s inside last fetched area; no refetch", bounds_signature(bounds))
            if self._state.loading:
                return self._state
            return self._publish(source=FetchSource.CONTAINED)

        key = f"{bounds_signature(bounds)}_{self._filter_signature}"
        expanded = expand_bounds(bounds, self._config.viewport_margin)
        ticket = self._epoch.begin()
        self._last_expanded = expanded

        cached = self._cache.get(key)
        if cached is not None:
            _logger.debug("Viewport cache hit key=%s records=%d", key, len(cached.records))
            return self._publish(
                mode=FetchMode.VIEWPORT,
                records=cached.records,
                loading=False,
                error=None,
                warning=None,
                location_fetch_used_fallback=False,
                ready=True,
                epoch=ticket,
                source=FetchSource.CACHE,
                location=None,
            )

        self._publish(
            mode=FetchMode.VIEWPORT,
            loading=True,
            error=None,
            warning=None,
            location_fetch_used_fallback=False,
            epoch=ticket,
            location=None,
        )
        try:
            records, warning = await self._fetch_viewport_records(bounds, expanded, ticket)
        except StaleFetchError:
            _logger.debug("Dropped stale viewport fetch epoch=%d", ticket)
            return self._state
        except _FETCH_ERRORS as exc:
            _logger.debug("Viewport fetch epoch=%d failed", ticket, exc_info=True)
            if self._epoch.is_current(ticket):
                self._last_expanded = None
                self._publish(loading=False, error=_error_message(exc))
            return self._state

        self._cache.put(key, records)
        return self._publish(
            records=tuple(records),
            loading=False,
            warning=warning,
            ready=True,
            source=FetchSource.NETWORK,
        )

    async def _fetch_viewport_records(
        self,
        bounds: GeoBounds,
        expanded: GeoBounds,
        ticket: int,
    ) -> tuple[list[SensorRecord], str | None]:
        cfg = self._config
        checkpoint = functools.partial(self._epoch.ensure_current, ticket)
        categories = data_types_to_categories(self._data_types)
        segments = to_fetch_segments(wrap_bounds(expanded))

        jobs = []
        for category in categories or [None]:
            for segment in segments:
                query = SensorQuery(
                    category=category,
                    provider=self._provider,
                    bbox=segment,
                    limit=cfg.bbox_page_limit,
                )
                jobs.append(
                    functools.partial(
                        paginate,
                        self._registry,
                        query,
                        max_pages=cfg.bbox_max_pages,
                        checkpoint=checkpoint,
                    )
                )
        _logger.debug("Viewport epoch=%d: %d segment(s), %d task(s)", ticket, len(segments), len(jobs))
        chunks = await run_with_concurrency(jobs, cfg.bbox_concurrency)
        checkpoint()

        seen: set[str] = set()
        records = merge_unique(chunks, seen)

        # One radius pass per category when several are selected, else one combined pass.
        center = center_of(bounds)
        radius_categories: list[str | None]
        if len(categories) >= 2:
            radius_categories = list(categories)
        else:
            radius_categories = [categories[0] if categories else None]
        radius_failed = False
        for category in radius_categories:
            query = SensorQuery(
                category=category,
                provider=self._provider,
                center=center,
                radius_km=cfg.center_radius_km,
                limit=cfg.bbox_page_limit,
            )
            try:
                extra = await paginate(self._registry, query, max_pages=cfg.radius_max_pages, checkpoint=checkpoint)
            except _FETCH_ERRORS:
                _logger.debug("Radius pass category=%s failed", category, exc_info=True)
                radius_failed = True
                continue
            records.extend(merge_unique([extra], seen))
        checkpoint()

        warning = RADIUS_INCOMPLETE_WARNING if radius_failed else None
        return sort_by_distance(records, center), warning

    # ------------------------------------------------------------------
    # Location mode
    # ------------------------------------------------------------------

    async def search_place(
        self,
        place: str,
        geocoder: Geocoder,
        *,
        country_codes: str | None = "us",
    ) -> FetchState:
        """Resolve *place* and show the sensors around it.

        A geocode miss or failure is not fatal: the location is cleared and
        the current viewport is fetched instead.
        """
        ticket = self._epoch.begin()
        self._last_expanded = None
        self._publish(
            mode=FetchMode.LOCATION,
            records=(),
            loading=True,
            ready=False,
            error=None,
            warning=None,
            location_fetch_used_fallback=False,
            epoch=ticket,
            source=FetchSource.NONE,
        )
        try:
            result = await geocoder.geocode(place, country_codes=country_codes)
        except (GeocodeError, ValueError):
            _logger.debug("Geocoding %r failed; using viewport", place, exc_info=True)
            result = None
        if not self._epoch.is_current(ticket):
            _logger.debug("Dropped stale geocode for %r", place)
            return self._state
        if result is None:
            return await self.clear_location()
        return await self.fetch_location(result.center, result.bounding_box)

    async def clear_location(self) -> FetchState:
        """Leave location mode and fetch the current viewport."""
        return await self.fetch_viewport()

    async def fetch_location(self, center: GeoPoint, bounding_box: GeoBounds | None = None) -> FetchState:
        """Show sensors around *center*, widening the search until something is found."""
        self._location = center
        self._location_bbox = bounding_box
        self._last_expanded = None

        key = f"loc_{center.lat}_{center.lon}_{self._filter_signature}"
        ticket = self._epoch.begin()
        cached = self._cache.get(key)
        if cached is not None:
            _logger.debug("Location cache hit key=%s records=%d", key, len(cached.records))
            return self._publish(
                mode=FetchMode.LOCATION,
                records=cached.records,
                loading=False,
                error=None,
                warning=None,
                location_fetch_used_fallback=cached.used_fallback,
                ready=True,
                epoch=ticket,
                source=FetchSource.CACHE,
                location=LocationQueryState(center=center, used_fallback=cached.used_fallback),
            )

        self._publish(
            mode=FetchMode.LOCATION,
            records=(),
            loading=True,
            ready=False,
            error=None,
            warning=None,
            location_fetch_used_fallback=False,
            epoch=ticket,
            source=FetchSource.NONE,
            location=LocationQueryState(center=center),
        )
        categories = data_types_to_categories(self._data_types)
        try:
            strategy, found = await self._run_location_tiers(center, bounding_box, categories, ticket)
        except StaleFetchError:
            _logger.debug("Dropped stale location fetch epoch=%d", ticket)
            return self._state
        except _FETCH_ERRORS as exc:
            _logger.debug("Location fetch epoch=%d failed", ticket, exc_info=True)
            if self._epoch.is_current(ticket):
                self._publish(loading=False, error=_error_message(exc))
            return self._state

        used_fallback = bool(categories) and strategy is not None and not strategy.filtered
        window = point_window(center, LOCATION_WINDOW_DEG)
        records = sort_by_distance(filter_by_bounds(found, window), center)
        if records:
            self._cache.put(key, records, used_fallback=used_fallback)
        return self._publish(
            records=tuple(records),
            loading=False,
            ready=True,
            location_fetch_used_fallback=used_fallback,
            source=FetchSource.NETWORK,
            location=LocationQueryState(
                center=center,
                tier=strategy.tier if strategy is not None else LocationTier.NONE,
                used_fallback=used_fallback,
            ),
        )

    async def _run_location_tiers(
        self,
        center: GeoPoint,
        bounding_box: GeoBounds | None,
        categories: list[str],
        ticket: int,
    ) -> tuple[LocationStrategy | None, list[SensorRecord]]:
        checkpoint = functools.partial(self._epoch.ensure_current, ticket)
        strategies = build_location_strategies(has_bounding_box=bounding_box is not None, filtered=bool(categories))

        async def attempt(strategy: LocationStrategy) -> list[SensorRecord]:
            queries = strategy.queries(
                center,
                bounding_box,
                categories,
                provider=self._provider,
                limit=LOCATION_PAGE_LIMIT,
            )
            seen: set[str] = set()
            records: list[SensorRecord] = []
            for query in queries:
                page = await paginate(
                    self._registry,
                    query,
                    max_pages=self._config.radius_max_pages,
                    checkpoint=checkpoint,
                )
                records.extend(merge_unique([page], seen))
            return records

        return await run_strategies(strategies, attempt)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def flush(self) -> FetchState:
        """Wait for pending debounce timers and the fetches they started."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        return self._state

    async def aclose(self) -> None:
        """Cancel pending debounce timers and in-flight background fetches."""
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._debounce_task = None
