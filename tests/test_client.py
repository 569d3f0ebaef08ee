from __future__ import annotations

# pylint: disable=redefined-outer-name

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import aiohttp
import pytest

from pysensormap._transport import HttpTransport
from pysensormap.client import RegistryClient
from pysensormap.config import SensorMapConfig
from pysensormap.exceptions import (
    RegistryNotFoundError,
    RegistryTransportError,
    SensorMapConfigError,
    SensorMapError,
)
from pysensormap.models.bounds import GeoBounds
from pysensormap.models.requests import SensorQuery


@dataclass
class FakeTransport:
    responses: dict[str, Any] = field(default_factory=dict)
    calls: list[tuple[str, dict[str, str]]] = field(default_factory=list)
    delay: float = 0.0

    async def get_json(self, endpoint: str, params: Mapping[str, str] | None = None) -> Any:
        self.calls.append((endpoint, dict(params or {})))
        if self.delay:
            await asyncio.sleep(self.delay)
        response = self.responses.get(endpoint)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def config() -> SensorMapConfig:
    return SensorMapConfig(api_key="test-key", reading_timeout=1.0)


def _not_found(endpoint: str) -> RegistryNotFoundError:
    return RegistryNotFoundError("HTTP 404", status_code=404, endpoint=endpoint)


@pytest.mark.asyncio
async def test_list_sensors_encodes_query(config: SensorMapConfig) -> None:
    transport = FakeTransport(
        responses={"": {"sensors": [{"id": "a", "latitude": "1.5", "longitude": 2}], "pagination": {"total_pages": 1}}}
    )
    async with RegistryClient(config, transport=transport) as client:
        page = await client.list_sensors(category="buoy", limit=500)

    assert [r.id for r in page.records] == ["a"]
    assert page.records[0].latitude == 1.5
    assert transport.calls == [("", {"sensor_type": "buoy", "page": "1", "limit": "500"})]


@pytest.mark.asyncio
async def test_list_sensors_keyword_overrides_query(config: SensorMapConfig) -> None:
    transport = FakeTransport(responses={"": {"sensors": []}})
    query = SensorQuery(category="buoy", bbox=GeoBounds(west=1.0, south=2.0, east=3.0, north=4.0))

    async with RegistryClient(config, transport=transport) as client:
        page = await client.list_sensors(query, page=3)

    params = transport.calls[0][1]
    assert params["page"] == "3"
    assert params["sensor_type"] == "buoy"
    assert params["min_lon"] == "1.0"
    assert page.pagination.page == 3


@pytest.mark.asyncio
async def test_get_sensor_not_found_is_none(config: SensorMapConfig) -> None:
    transport = FakeTransport(responses={"/missing": _not_found("/missing"), "/s%2F1": {"id": "s/1"}})

    async with RegistryClient(config, transport=transport) as client:
        assert await client.get_sensor("missing") is None
        sensor = await client.get_sensor(" s/1 ")

    assert sensor is not None
    assert sensor.id == "s/1"


@pytest.mark.asyncio
async def test_get_sensor_other_errors_propagate(config: SensorMapConfig) -> None:
    transport = FakeTransport(responses={"/s1": RegistryTransportError("boom", status_code=500)})

    async with RegistryClient(config, transport=transport) as client:
        with pytest.raises(RegistryTransportError):
            await client.get_sensor("s1")


@pytest.mark.asyncio
async def test_blank_sensor_id_rejected(config: SensorMapConfig) -> None:
    async with RegistryClient(config, transport=FakeTransport()) as client:
        with pytest.raises(ValueError):
            await client.get_sensor("  ")


@pytest.mark.asyncio
async def test_no_reading_is_remembered(config: SensorMapConfig) -> None:
    transport = FakeTransport(
        responses={
            "/quiet/readings/latest": None,
            "/gone/readings/latest": _not_found("/gone/readings/latest"),
        }
    )

    async with RegistryClient(config, transport=transport) as client:
        assert await client.get_latest_reading("quiet") is None
        assert await client.get_latest_reading("quiet") is None
        assert await client.get_latest_reading("gone") is None

        assert "quiet" in client.no_reading_cache
        assert "gone" in client.no_reading_cache

    assert [c[0] for c in transport.calls] == ["/quiet/readings/latest", "/gone/readings/latest"]


@pytest.mark.asyncio
async def test_latest_reading_returned(config: SensorMapConfig) -> None:
    transport = FakeTransport(
        responses={"/s1/readings/latest": {"sensor_id": "s1", "reading": {"timestamp": "2026-01-01T00:00:00Z"}}}
    )

    async with RegistryClient(config, transport=transport) as client:
        reading = await client.get_latest_reading("s1")

    assert reading is not None
    assert reading.timestamp == "2026-01-01T00:00:00Z"


@pytest.mark.asyncio
async def test_latest_reading_timeout_is_none_and_not_remembered(config: SensorMapConfig) -> None:
    transport = FakeTransport(responses={"/slow/readings/latest": {"sensor_id": "slow"}}, delay=0.2)

    async with RegistryClient(config, transport=transport) as client:
        assert await client.get_latest_reading("slow", timeout=0.01) is None
        assert "slow" not in client.no_reading_cache


@pytest.mark.asyncio
async def test_sensor_types(config: SensorMapConfig) -> None:
    transport = FakeTransport(responses={"/types": ["buoy", "weather_station"]})

    async with RegistryClient(config, transport=transport) as client:
        assert await client.list_sensor_types() == ["buoy", "weather_station"]


@pytest.mark.asyncio
async def test_client_requires_context_manager(config: SensorMapConfig) -> None:
    client = RegistryClient(config)
    with pytest.raises(SensorMapError, match="not initialized"):
        await client.list_sensors()


@pytest.mark.asyncio
async def test_missing_api_key_is_config_error() -> None:
    with pytest.raises(SensorMapConfigError):
        async with RegistryClient(SensorMapConfig(api_key="  ")):
            pass


# ------------------------------------------------------------------
# HttpTransport against a stub aiohttp session
# ------------------------------------------------------------------


class _StubResponse:
    def __init__(self, status: int, text: str) -> None:
        self.status = status
        self._text = text

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> _StubResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


@dataclass
class _StubSession:
    status: int = 200
    body: str = "{}"
    error: Exception | None = None
    requests: list[dict[str, Any]] = field(default_factory=list)

    def get(self, url: str, **kwargs: Any) -> _StubResponse:
        self.requests.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return _StubResponse(self.status, self.body)


def _transport(session: _StubSession) -> HttpTransport:
    config = SensorMapConfig(api_key="secret", base_url="https://registry.example.org/")
    return HttpTransport(config, session)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_http_transport_sends_api_key_header() -> None:
    session = _StubSession(body='{"sensors": []}')

    data = await _transport(session).get_json("", {"page": "1"})

    assert data == {"sensors": []}
    request = session.requests[0]
    assert request["url"] == "https://registry.example.org/api/v1/sensors"
    assert request["headers"]["x-api-key"] == "secret"
    assert request["params"] == {"page": "1"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "body", "error_type"),
    [
        (404, "", RegistryNotFoundError),
        (500, "oops", RegistryTransportError),
        (200, "not json", RegistryTransportError),
    ],
)
async def test_http_transport_error_mapping(status: int, body: str, error_type: type[Exception]) -> None:
    with pytest.raises(error_type) as excinfo:
        await _transport(_StubSession(status=status, body=body)).get_json("/x")
    assert excinfo.value.endpoint == "/x"  # type: ignore[attr-defined]


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [aiohttp.ClientConnectionError("refused"), asyncio.TimeoutError()])
async def test_http_transport_wraps_network_failures(error: Exception) -> None:
    with pytest.raises(RegistryTransportError) as excinfo:
        await _transport(_StubSession(error=error)).get_json("/types")
    assert not isinstance(excinfo.value, RegistryNotFoundError)
