"""Internal caches: keyed fetch results and known-missing readings."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass

from pysensormap.models.sensor import SensorRecord


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Sorted records of one completed fetch."""

    records: tuple[SensorRecord, ...]
    used_fallback: bool = False


class FetchResultCache:
    """Bounded LRU of fetch results keyed by viewport/location + filter signature.

    Only exact key matches are served. Inserting past capacity evicts the
    least recently used key.
    """

    def __init__(self, max_entries: int = 20) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._max_entries = max_entries
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is not None:
            self._entries.move_to_end(key)
        return entry

    def put(self, key: str, records: list[SensorRecord], *, used_fallback: bool = False) -> CacheEntry:
        entry = CacheEntry(records=tuple(records), used_fallback=used_fallback)
        self._entries[key] = entry
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)
        return entry

    def keys(self) -> list[str]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()


class NoReadingCache:
    """Ids of sensors confirmed to have no latest reading.

    Cleared wholesale when it reaches capacity; no per-entry eviction.
    """

    def __init__(self, max_entries: int = 500) -> None:
        self._max_entries = max_entries
        self._ids: set[str] = set()

    def __contains__(self, sensor_id: object) -> bool:
        return sensor_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def add(self, sensor_id: str) -> None:
        if len(self._ids) >= self._max_entries:
            self._ids.clear()
        self._ids.add(sensor_id)

    def clear(self) -> None:
        self._ids.clear()
