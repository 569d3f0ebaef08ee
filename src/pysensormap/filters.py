"""Data-type filters.

Users filter by the measurement they care about, not by sensor hardware.
Each data type maps to the registry categories (``sensor_type``) that
typically provide it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DataTypeFilter:
    id: str
    label: str
    categories: tuple[str, ...]


DATA_TYPE_FILTERS: tuple[DataTypeFilter, ...] = (
    DataTypeFilter("aqi", "AQI", ("air_quality_monitor",)),
    DataTypeFilter(
        "temperature",
        "Temperature",
        ("weather_station", "buoy", "river_sensor", "air_quality_monitor"),
    ),
    DataTypeFilter("humidity", "Humidity", ("weather_station", "air_quality_monitor")),
    DataTypeFilter("wave_height", "Wave height", ("buoy",)),
    DataTypeFilter("wind", "Wind", ("buoy", "weather_station")),
    DataTypeFilter("water_quality", "Water quality", ("river_sensor",)),
)

_BY_ID: dict[str, DataTypeFilter] = {f.id: f for f in DATA_TYPE_FILTERS}

DATA_TYPE_IDS: frozenset[str] = frozenset(_BY_ID)


def parse_data_types(value: str | Iterable[str] | None) -> frozenset[str]:
    """Parse ``"aqi,wind"`` (or an iterable) into known data type ids.

    Unknown ids are dropped.
    """
    if value is None:
        return frozenset()
    items = value.split(",") if isinstance(value, str) else value
    return frozenset(item.strip() for item in items if item and item.strip() in DATA_TYPE_IDS)


def data_types_to_categories(data_types: Iterable[str]) -> list[str]:
    """Sorted union of the categories that provide any of *data_types*."""
    categories: set[str] = set()
    for data_type in data_types:
        entry = _BY_ID.get(data_type)
        if entry is not None:
            categories.update(entry.categories)
    return sorted(categories)


def category_matches(category: str, data_types: Iterable[str]) -> bool:
    """Whether *category* provides any of *data_types* (empty selection matches all)."""
    selected = list(data_types)
    if not selected:
        return True
    return any(category in _BY_ID[d].categories for d in selected if d in _BY_ID)


def filter_signature(data_types: Iterable[str], provider: str | None = None) -> str:
    """Canonical cache-key component for a filter selection."""
    return f"{','.join(sorted(set(data_types)))}|{provider or ''}"
