from __future__ import annotations

from pysensormap._redact import redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "x-api-key": "secret-key",
        "accept": "application/json",
        "Authorization": "Bearer abc",
        "nested": {"api_key": "k", "sensor_type": "buoy"},
    }

    redacted = redact_for_log(payload)
    assert redacted["x-api-key"] == "<redacted>"
    assert redacted["Authorization"] == "<redacted>"
    assert redacted["accept"] == "application/json"
    assert redacted["nested"] == {"api_key": "<redacted>", "sensor_type": "buoy"}
    assert payload["x-api-key"] == "secret-key"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"q": long_value}, max_string=10)
    assert redacted["q"].startswith("x" * 10)
    assert "<truncated>" in redacted["q"]


def test_redact_for_log_passes_other_values_through() -> None:
    assert redact_for_log(42) == 42
    assert redact_for_log(["a"]) == ["a"]
