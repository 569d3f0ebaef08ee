"""Helpers for safe debug logging.

Registry request headers carry the API key and geocoder parameters carry
free-text user queries. Both go through here before they are logged at DEBUG.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "x-api-key",
        "api_key",
        "apikey",
        "authorization",
        "cookie",
    }
)


def _clip(text: str, max_string: int) -> str:
    if len(text) > max_string:
        return f"{text[:max_string]}…<truncated>"
    return text


def redact_for_log(value: Any, *, max_string: int = 256) -> Any:
    """Return a copy of a header/params mapping with secrets replaced.

    Nested mappings are redacted recursively; long strings are clipped.
    """
    if isinstance(value, str):
        return _clip(value, max_string)
    if not isinstance(value, Mapping):
        return value

    redacted: dict[str, Any] = {}
    for k, v in value.items():
        key = str(k)
        if key.lower() in _SENSITIVE_KEYS:
            redacted[key] = "<redacted>"
        else:
            redacted[key] = redact_for_log(v, max_string=max_string)
    return redacted
