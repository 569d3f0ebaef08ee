"""Place-name geocoding via a Nominatim-compatible search endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

import aiohttp

from pysensormap._normalize import safe_float
from pysensormap._redact import redact_for_log
from pysensormap.config import SensorMapConfig
from pysensormap.exceptions import GeocodeError
from pysensormap.models.geocode import GeocodeResult

_logger = logging.getLogger(__name__)

#: Free-text queries are clipped to this many characters in debug logs.
_LOG_QUERY_CHARS = 64


class Geocoder(Protocol):
    """Anything that resolves a place name to a point."""

    async def geocode(self, query: str, *, country_codes: str | None = "us") -> GeocodeResult | None:
        ...


class NominatimGeocoder:
    """Async client for the OpenStreetMap Nominatim search API.

    A lookup first biases to *country_codes*; when that finds nothing it is
    retried once without the bias.

    Usage::

        async with NominatimGeocoder(config) as geocoder:
            place = await geocoder.geocode("Oakland")
    """

    def __init__(
        self,
        config: SensorMapConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def __aenter__(self) -> NominatimGeocoder:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    def _require_session(self) -> aiohttp.ClientSession:
        if self._http_session is None:
            raise GeocodeError("Geocoder not initialized. Use 'async with NominatimGeocoder(...) as geocoder:'")
        return self._http_session

    async def _search(self, query: str, country_codes: str | None) -> dict[str, Any] | None:
        params = {"q": query, "format": "json", "limit": "1"}
        if country_codes:
            params["countrycodes"] = country_codes
        headers = {"User-Agent": self._config.geocoder_user_agent}

        _logger.debug("Geocode params=%s", redact_for_log(params, max_string=_LOG_QUERY_CHARS))
        try:
            async with self._require_session().get(
                self._config.geocoder_url,
                params=params,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                if resp.status < 200 or resp.status >= 300:
                    _logger.debug("Geocoder returned HTTP %d", resp.status)
                    return None
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise GeocodeError(f"Geocoding {query!r} failed: {exc}") from exc

        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            return None
        first: dict[str, Any] = data[0]
        return first

    async def geocode(self, query: str, *, country_codes: str | None = "us") -> GeocodeResult | None:
        """Resolve *query* to a point (and bounding box when the geocoder has one).

        Returns ``None`` when nothing matches.

        Raises
        ------
        ValueError
            *query* is blank.
        GeocodeError
            The request failed or the match has non-numeric coordinates.
        """
        q = query.strip()
        if not q:
            raise ValueError("query must be non-empty")

        first = await self._search(q, country_codes)
        if first is None and country_codes:
            first = await self._search(q, None)
        if first is None:
            return None

        lat = safe_float(first.get("lat"))
        lon = safe_float(first.get("lon"))
        if lat is None or lon is None:
            raise GeocodeError(f"Invalid geocode result for {q!r}: lat={first.get('lat')!r} lon={first.get('lon')!r}")

        return GeocodeResult(
            lat=lat,
            lon=lon,
            display_name=str(first.get("display_name") or f"{lat}, {lon}"),
            bounding_box=first.get("boundingbox"),
        )
