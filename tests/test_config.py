from __future__ import annotations

import dataclasses

import pytest

from pysensormap.config import DEFAULT_INITIAL_BOUNDS, SensorMapConfig


def test_defaults() -> None:
    config = SensorMapConfig()

    assert config.api_key == ""
    assert config.debounce_seconds == 0.6
    assert config.viewport_margin == 0.15
    assert config.cache_max_entries == 20
    assert config.bbox_concurrency == 4
    assert config.initial_bounds == DEFAULT_INITIAL_BOUNDS


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SENSORS_API_KEY", "  key-1  ")
    monkeypatch.setenv("SENSORS_API_URL", "https://registry.example.org/")
    monkeypatch.setenv("SENSORS_DEBOUNCE_SECONDS", "0.25")
    monkeypatch.setenv("SENSORS_REQUEST_TIMEOUT", " ")

    config = SensorMapConfig.from_env()

    assert config.api_key == "key-1"
    assert config.debounce_seconds == 0.25
    assert config.request_timeout == 30.0
    assert config.sensors_url == "https://registry.example.org/api/v1/sensors"


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SENSORS_API_KEY", "from-env")
    monkeypatch.setenv("SENSORS_READING_TIMEOUT", "3")

    config = SensorMapConfig.from_env(api_key="explicit", reading_timeout=1.5, bbox_concurrency=2)

    assert config.api_key == "explicit"
    assert config.reading_timeout == 1.5
    assert config.bbox_concurrency == 2


def test_config_is_frozen() -> None:
    with pytest.raises(dataclasses.FrozenInstanceError):
        SensorMapConfig().api_key = "x"  # type: ignore[misc]
