"""Custom exception hierarchy for pysensormap."""

from __future__ import annotations


class SensorMapError(Exception):
    """Base exception for all pysensormap errors."""


class SensorMapConfigError(SensorMapError):
    """Invalid or missing configuration."""


class RegistryTransportError(SensorMapError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class RegistryNotFoundError(RegistryTransportError):
    """Registry answered 404.

    The public client methods translate this into ``None``; it only escapes
    from the low-level transport.
    """


class GeocodeError(SensorMapError):
    """Geocoder returned a result that cannot be used (e.g. non-numeric lat/lon)."""
