"""Normalization helpers.

Centralizes lenient parsing of registry payloads. Everything that crosses
the ingress boundary goes through these, so the rest of the library never
re-checks representation.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def first_float(*candidates: Any) -> float | None:
    """Return the first candidate that parses as a finite float."""
    for candidate in candidates:
        parsed = safe_float(candidate)
        if parsed is not None:
            return parsed
    return None


def geometry_coordinate(payload: dict[str, Any], index: int) -> Any:
    """Pull ``geometry.coordinates[index]`` out of a GeoJSON-ish payload."""
    geometry = payload.get("geometry")
    if not isinstance(geometry, dict):
        return None
    coords = geometry.get("coordinates")
    if not isinstance(coords, Sequence) or isinstance(coords, str) or len(coords) <= index:
        return None
    return coords[index]
