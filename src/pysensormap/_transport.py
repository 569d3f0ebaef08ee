"""HTTP transport for the sensor registry."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pysensormap._constants import API_KEY_HEADER
from pysensormap._redact import redact_for_log
from pysensormap.config import SensorMapConfig
from pysensormap.exceptions import RegistryNotFoundError, RegistryTransportError, SensorMapConfigError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, endpoint: str, params: Mapping[str, str] | None = None) -> Any:
        ...


class HttpTransport:
    """GET-only JSON transport that authenticates with the registry API key."""

    def __init__(
        self,
        config: SensorMapConfig,
        http_session: aiohttp.ClientSession,
    ) -> None:
        api_key = config.api_key.strip()
        if not api_key:
            raise SensorMapConfigError("SENSORS_API_KEY is not set; the sensor registry requires an API key")
        self._config = config
        self._http = http_session
        self._headers: dict[str, str] = {
            API_KEY_HEADER: api_key,
            "accept": "application/json",
        }
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def get_json(self, endpoint: str, params: Mapping[str, str] | None = None) -> Any:
        """GET ``{sensors_url}{endpoint}`` and decode the JSON body.

        Raises
        ------
        RegistryNotFoundError
            The registry answered 404.
        RegistryTransportError
            Any other non-2xx status, a network failure, a timeout, or a
            body that is not JSON.
        """
        url = f"{self._config.sensors_url}{endpoint}"
        _logger.debug("GET %s params=%s headers=%s", url, dict(params or {}), redact_for_log(self._headers))

        try:
            async with self._http.get(url, params=params, headers=self._headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status == 404:
                    raise RegistryNotFoundError(
                        f"HTTP 404 from {endpoint or '/'}",
                        status_code=404,
                        endpoint=endpoint,
                    )
                if resp.status < 200 or resp.status >= 300:
                    raise RegistryTransportError(
                        f"Sensors API error: {resp.status} from {endpoint or '/'}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except RegistryTransportError:
            raise
        except asyncio.TimeoutError as exc:
            raise RegistryTransportError(
                f"Request to {endpoint or '/'} timed out after {self._config.request_timeout}s",
                endpoint=endpoint,
            ) from exc
        except aiohttp.ClientError as exc:
            raise RegistryTransportError(
                f"Request to {endpoint or '/'} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise RegistryTransportError(
                f"Invalid JSON from {endpoint or '/'}: {text[:200]}",
                endpoint=endpoint,
            ) from exc
