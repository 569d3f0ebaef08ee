from __future__ import annotations

import logging
from typing import Any

import pytest

from pysensormap.config import SensorMapConfig
from pysensormap.exceptions import GeocodeError
from pysensormap.geocoder import NominatimGeocoder
from pysensormap.models.bounds import GeoBounds, GeoPoint


def _geocoder_with(
    monkeypatch: pytest.MonkeyPatch,
    answers: dict[str | None, dict[str, Any] | None],
) -> tuple[NominatimGeocoder, list[tuple[str, str | None]]]:
    calls: list[tuple[str, str | None]] = []

    async def fake_search(self: NominatimGeocoder, query: str, country_codes: str | None) -> dict[str, Any] | None:
        calls.append((query, country_codes))
        return answers.get(country_codes)

    monkeypatch.setattr(NominatimGeocoder, "_search", fake_search)
    return NominatimGeocoder(SensorMapConfig()), calls


@pytest.mark.asyncio
async def test_geocode_parses_point_and_bbox(monkeypatch: pytest.MonkeyPatch) -> None:
    geocoder, calls = _geocoder_with(
        monkeypatch,
        {
            "us": {
                "lat": "36.6",
                "lon": "-121.9",
                "display_name": "Monterey, California",
                "boundingbox": ["36.5", "36.7", "-122.0", "-121.8"],
            }
        },
    )

    result = await geocoder.geocode("  Monterey ")

    assert result is not None
    assert result.center == GeoPoint(lat=36.6, lon=-121.9)
    assert result.display_name == "Monterey, California"
    assert result.bounding_box == GeoBounds(west=-122.0, south=36.5, east=-121.8, north=36.7)
    assert calls == [("Monterey", "us")]


@pytest.mark.asyncio
async def test_geocode_retries_without_country_bias(monkeypatch: pytest.MonkeyPatch) -> None:
    geocoder, calls = _geocoder_with(monkeypatch, {None: {"lat": 48.85, "lon": 2.35}})

    result = await geocoder.geocode("Paris")

    assert result is not None
    assert result.bounding_box is None
    assert result.display_name == "48.85, 2.35"
    assert calls == [("Paris", "us"), ("Paris", None)]


@pytest.mark.asyncio
async def test_geocode_no_match(monkeypatch: pytest.MonkeyPatch) -> None:
    geocoder, calls = _geocoder_with(monkeypatch, {})

    assert await geocoder.geocode("Nowhere", country_codes=None) is None
    assert calls == [("Nowhere", None)]


@pytest.mark.asyncio
async def test_geocode_rejects_non_numeric_coordinates(monkeypatch: pytest.MonkeyPatch) -> None:
    geocoder, _ = _geocoder_with(monkeypatch, {"us": {"lat": "north", "lon": "-121.9"}})

    with pytest.raises(GeocodeError):
        await geocoder.geocode("Monterey")


@pytest.mark.asyncio
async def test_geocode_blank_query(monkeypatch: pytest.MonkeyPatch) -> None:
    geocoder, calls = _geocoder_with(monkeypatch, {})

    with pytest.raises(ValueError):
        await geocoder.geocode("   ")
    assert calls == []


@pytest.mark.asyncio
async def test_search_requires_context_manager() -> None:
    geocoder = NominatimGeocoder(SensorMapConfig())
    with pytest.raises(GeocodeError, match="not initialized"):
        await geocoder.geocode("Oakland")


class _StubResponse:
    status = 200

    async def json(self, content_type: str | None = None) -> Any:
        return []

    async def __aenter__(self) -> _StubResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class _StubSession:
    def __init__(self) -> None:
        self.params: list[dict[str, str]] = []

    def get(self, url: str, **kwargs: Any) -> _StubResponse:
        self.params.append(kwargs["params"])
        return _StubResponse()


@pytest.mark.asyncio
async def test_long_queries_are_clipped_in_debug_log(caplog: pytest.LogCaptureFixture) -> None:
    session = _StubSession()
    geocoder = NominatimGeocoder(SensorMapConfig(), session=session)  # type: ignore[arg-type]
    query = "1600 Amphitheatre Parkway " * 10

    with caplog.at_level(logging.DEBUG, logger="pysensormap.geocoder"):
        assert await geocoder.geocode(query, country_codes=None) is None

    assert session.params[0]["q"] == query.strip()
    assert "<truncated>" in caplog.text
    assert query.strip() not in caplog.text
