"""Sensor registry endpoints.

Endpoints (relative to ``/api/v1/sensors``):
  - ``""`` list (paginated, filtered)
  - ``/{id}`` single sensor
  - ``/{id}/readings/latest`` latest reading
  - ``/types`` distinct categories
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from pydantic import ValidationError

from pysensormap._transport import Transport
from pysensormap.exceptions import RegistryTransportError
from pysensormap.models.reading import LatestReading
from pysensormap.models.requests import SensorQuery
from pysensormap.models.sensor import SensorPage, SensorRecord

_logger = logging.getLogger(__name__)


def _sensor_path(sensor_id: str) -> str:
    return f"/{quote(sensor_id, safe='')}"


def parse_sensor_page(data: Any, query: SensorQuery) -> SensorPage:
    """Validate a list response, filling pagination from *query* when absent."""
    if not isinstance(data, dict):
        raise RegistryTransportError("Sensor list response is not an object", endpoint="")
    payload = dict(data)
    pagination = payload.get("pagination")
    if not isinstance(pagination, dict):
        payload["pagination"] = {"page": query.page, "limit": query.limit, "total_pages": query.page}
    try:
        return SensorPage.model_validate(payload)
    except ValidationError as exc:
        raise RegistryTransportError(f"Invalid sensor list payload: {exc}", endpoint="") from exc


async def fetch_sensor_page(transport: Transport, query: SensorQuery) -> SensorPage:
    """Fetch one page of sensors matching *query*."""
    data = await transport.get_json("", query.to_params())
    page = parse_sensor_page(data, query)
    _logger.debug(
        "Sensor page %d: %d records (total_pages=%d)",
        query.page,
        len(page.records),
        page.pagination.total_pages,
    )
    return page


async def fetch_sensor(transport: Transport, sensor_id: str) -> SensorRecord:
    """Fetch a single sensor. ``RegistryNotFoundError`` propagates to the caller."""
    endpoint = _sensor_path(sensor_id)
    data = await transport.get_json(endpoint)
    try:
        return SensorRecord.model_validate(data)
    except ValidationError as exc:
        raise RegistryTransportError(f"Invalid sensor payload: {exc}", endpoint=endpoint) from exc


async def fetch_latest_reading(transport: Transport, sensor_id: str) -> LatestReading | None:
    """Fetch the latest reading; a JSON ``null`` body yields ``None``."""
    endpoint = f"{_sensor_path(sensor_id)}/readings/latest"
    data = await transport.get_json(endpoint)
    if data is None:
        return None
    try:
        return LatestReading.model_validate(data)
    except ValidationError as exc:
        raise RegistryTransportError(f"Invalid reading payload: {exc}", endpoint=endpoint) from exc


def _parse_sensor_types(data: Any) -> list[str]:
    if isinstance(data, dict):
        data = data.get("types", data.get("sensor_types"))
    if not isinstance(data, list):
        raise RegistryTransportError("Sensor types response is not a list", endpoint="/types")
    types: list[str] = []
    for item in data:
        if isinstance(item, str):
            name = item
        elif isinstance(item, dict):
            name = str(item.get("sensor_type") or item.get("name") or "")
        else:
            continue
        if name:
            types.append(name)
    return types


async def fetch_sensor_types(transport: Transport) -> list[str]:
    """Fetch the distinct categories known to the registry."""
    return _parse_sensor_types(await transport.get_json("/types"))
