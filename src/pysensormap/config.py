"""Client and engine configuration for pysensormap."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pysensormap._constants import BASE_URL, GEOCODER_URL, SENSORS_PATH, USER_AGENT
from pysensormap.models.bounds import GeoBounds

#: Default viewport used before the map reports its own (SF Bay area).
DEFAULT_INITIAL_BOUNDS = GeoBounds(west=-126.0, south=35.0, east=-118.0, north=41.0)


def _env_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    return float(value)


@dataclasses.dataclass(frozen=True)
class SensorMapConfig:
    """Library configuration.

    Parameters
    ----------
    api_key : str
        Registry API key, sent as the ``x-api-key`` header.
    base_url : str
        Registry base URL (without the ``/api/v1/sensors`` path).
    geocoder_url : str
        Nominatim-compatible search endpoint.
    geocoder_user_agent : str
        ``User-Agent`` sent to the geocoder.
    request_timeout : float
        Total per-request timeout in seconds for registry calls.
    reading_timeout : float
        Seconds a latest-reading lookup may take before it resolves to ``None``.
    debounce_seconds : float
        Viewport stability window before a fetch is started.
    viewport_margin : float
        Overfetch margin; ``0.15`` grows each axis by 15% in total.
    cache_max_entries : int
        Capacity of the keyed fetch-result cache.
    bbox_concurrency : int
        Maximum outstanding bbox requests per viewport fetch.
    bbox_page_limit : int
        Page size for bbox and radius queries.
    bbox_max_pages : int
        Page cap per (category, segment) task.
    radius_max_pages : int
        Page cap per radius or location-tier query.
    center_radius_km : float
        Radius of the viewport-center augmentation query.
    no_reading_cache_max : int
        Size at which the "no reading" id set is cleared.
    reveal_chunk_size : int
        Records revealed per progressive step.
    reveal_interval : float
        Seconds between progressive steps.
    initial_bounds : GeoBounds
        Viewport used before any has been reported.
    """

    api_key: str = ""
    base_url: str = BASE_URL
    geocoder_url: str = GEOCODER_URL
    geocoder_user_agent: str = USER_AGENT
    request_timeout: float = 30.0
    reading_timeout: float = 10.0
    debounce_seconds: float = 0.6
    viewport_margin: float = 0.15
    cache_max_entries: int = 20
    bbox_concurrency: int = 4
    bbox_page_limit: int = 500
    bbox_max_pages: int = 10
    radius_max_pages: int = 5
    center_radius_km: float = 150.0
    no_reading_cache_max: int = 500
    reveal_chunk_size: int = 200
    reveal_interval: float = 0.05
    initial_bounds: GeoBounds = DEFAULT_INITIAL_BOUNDS

    @classmethod
    def from_env(cls, **overrides: Any) -> SensorMapConfig:
        """Create configuration from environment variables.

        Reads ``SENSORS_API_KEY``, ``SENSORS_API_URL`` and the optional
        ``SENSORS_*`` tuning variables. Explicit keyword arguments override
        environment values.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "SENSORS_API_KEY": "api_key",
            "SENSORS_API_URL": "base_url",
            "SENSORS_GEOCODER_URL": "geocoder_url",
            "SENSORS_GEOCODER_USER_AGENT": "geocoder_user_agent",
        }
        _ENV_FLOAT_MAP = {
            "SENSORS_REQUEST_TIMEOUT": "request_timeout",
            "SENSORS_READING_TIMEOUT": "reading_timeout",
            "SENSORS_DEBOUNCE_SECONDS": "debounce_seconds",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = val.strip()

        for env_key, field_name in _ENV_FLOAT_MAP.items():
            if field_name in overrides:
                continue
            parsed = _env_float(env.get(env_key))
            if parsed is not None:
                config_kwargs[field_name] = parsed

        config_kwargs.update(overrides)
        return cls(**config_kwargs)

    @property
    def sensors_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{SENSORS_PATH}"
