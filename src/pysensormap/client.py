"""High-level async client for the sensor registry."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from pysensormap._api import sensors as _sensors_api
from pysensormap._cache import NoReadingCache
from pysensormap._transport import HttpTransport, Transport
from pysensormap.config import SensorMapConfig
from pysensormap.exceptions import RegistryNotFoundError, SensorMapError
from pysensormap.models.reading import LatestReading
from pysensormap.models.requests import SensorQuery
from pysensormap.models.sensor import SensorPage, SensorRecord

_logger = logging.getLogger(__name__)


def _require_id(sensor_id: str) -> str:
    stripped = sensor_id.strip()
    if not stripped:
        raise ValueError("sensor_id must be non-empty")
    return stripped


class RegistryClient:
    """Async client for the external sensor registry.

    Usage::

        async with RegistryClient(config) as client:
            page = await client.list_sensors(SensorQuery(category="buoy", limit=500))

    Not-found is never an error: :meth:`get_sensor` and
    :meth:`get_latest_reading` return ``None``. Sensors confirmed to have no
    reading are remembered so repeated lookups do not hit the network again.
    Every other failure raises :class:`~pysensormap.exceptions.RegistryTransportError`.
    """

    def __init__(
        self,
        config: SensorMapConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None
        self._no_reading = NoReadingCache(config.no_reading_cache_max)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> RegistryClient:
        if self._external_transport:
            return self
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        try:
            self._transport = HttpTransport(self._config, self._http_session)
        except SensorMapError:
            await self._close_owned_session()
            raise
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self._close_owned_session()
        if not self._external_transport:
            self._transport = None

    async def _close_owned_session(self) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise SensorMapError("Client not initialized. Use 'async with RegistryClient(...) as client:'")
        return self._transport

    @property
    def no_reading_cache(self) -> NoReadingCache:
        return self._no_reading

    # ------------------------------------------------------------------
    # Read endpoints
    # ------------------------------------------------------------------

    async def list_sensors(self, query: SensorQuery | None = None, **filters: Any) -> SensorPage:
        """Fetch one page of sensors.

        Pass a :class:`SensorQuery` or its fields as keyword arguments.
        A bounding box takes precedence over center + radius.
        """
        if query is None:
            query = SensorQuery(**filters)
        elif filters:
            query = SensorQuery.model_validate({**query.model_dump(), **filters})
        return await _sensors_api.fetch_sensor_page(self._require_transport(), query)

    async def get_sensor(self, sensor_id: str) -> SensorRecord | None:
        """Fetch a sensor by id, or ``None`` when the registry does not know it."""
        sensor_id = _require_id(sensor_id)
        try:
            return await _sensors_api.fetch_sensor(self._require_transport(), sensor_id)
        except RegistryNotFoundError:
            return None

    async def get_latest_reading(
        self,
        sensor_id: str,
        *,
        timeout: float | None = None,
    ) -> LatestReading | None:
        """Fetch the latest reading for a sensor.

        Returns ``None`` when the sensor has no reading (remembered), or when
        the lookup does not finish within *timeout* seconds (not remembered).
        *timeout* defaults to ``config.reading_timeout``; ``0`` disables it.
        """
        sensor_id = _require_id(sensor_id)
        if sensor_id in self._no_reading:
            _logger.debug("No-reading cache hit for %s", sensor_id)
            return None

        transport = self._require_transport()
        effective_timeout = self._config.reading_timeout if timeout is None else timeout
        try:
            if effective_timeout > 0:
                reading = await asyncio.wait_for(
                    _sensors_api.fetch_latest_reading(transport, sensor_id),
                    effective_timeout,
                )
            else:
                reading = await _sensors_api.fetch_latest_reading(transport, sensor_id)
        except RegistryNotFoundError:
            reading = None
        except TimeoutError:
            _logger.debug("Latest reading for %s timed out after %ss", sensor_id, effective_timeout)
            return None

        if reading is None:
            self._no_reading.add(sensor_id)
        return reading

    async def list_sensor_types(self) -> list[str]:
        """Fetch the distinct sensor categories."""
        return await _sensors_api.fetch_sensor_types(self._require_transport())
