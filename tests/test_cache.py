from __future__ import annotations

import pytest

from pysensormap._cache import FetchResultCache, NoReadingCache
from pysensormap.models.sensor import SensorRecord


def _records(*ids: str) -> list[SensorRecord]:
    return [SensorRecord(id=i) for i in ids]


def test_fetch_cache_evicts_least_recently_used() -> None:
    cache = FetchResultCache(max_entries=2)
    cache.put("a", _records("1"))
    cache.put("b", _records("2"))

    assert cache.get("a") is not None
    cache.put("c", _records("3"))

    assert "a" in cache
    assert "b" not in cache
    assert cache.keys() == ["a", "c"]


def test_fetch_cache_stores_fallback_flag_and_immutable_records() -> None:
    cache = FetchResultCache()
    source = _records("1", "2")
    cache.put("loc_1_2_aqi|", source, used_fallback=True)
    source.clear()

    entry = cache.get("loc_1_2_aqi|")
    assert entry is not None
    assert entry.used_fallback is True
    assert [r.id for r in entry.records] == ["1", "2"]


def test_fetch_cache_exact_keys_only() -> None:
    cache = FetchResultCache()
    cache.put("-122.60_37.60_-122.00_37.90_|", _records("1"))
    assert cache.get("-122.60_37.60_-122.00_37.90_aqi|") is None


def test_fetch_cache_rejects_zero_capacity() -> None:
    with pytest.raises(ValueError):
        FetchResultCache(max_entries=0)


def test_no_reading_cache_clears_wholesale_at_capacity() -> None:
    cache = NoReadingCache(max_entries=2)
    cache.add("a")
    cache.add("b")
    assert len(cache) == 2

    cache.add("c")

    assert "c" in cache
    assert "a" not in cache
    assert len(cache) == 1
