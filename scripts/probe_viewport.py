#!/usr/bin/env python3
"""Run one viewport fetch or place search against a live sensor registry.

Prints the nearest sensors, the fetch status flags and how many registry
calls were made, so segment splitting and tier fallbacks can be checked
by hand.

Usage
-----
Set environment variables and run::

    export SENSORS_API_KEY="..."
    export SENSORS_API_URL="http://localhost:3001"
    python scripts/probe_viewport.py --bounds -126 35 -118 41
    python scripts/probe_viewport.py --place "Monterey" --types wave_height

Options::

    --bounds W S E N     Viewport to fetch (default: configured initial bounds)
    --place NAME         Geocode NAME and run a location search instead
    --types IDS          Comma-separated data type ids (aqi,temperature,...)
    --provider SLUG      Provider filter
    --limit N            Number of sensors to print
    --json               Output machine-readable JSON
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pysensormap import (  # noqa: E402
    FetchOrchestrator,
    FetchState,
    GeoBounds,
    NominatimGeocoder,
    RegistryClient,
    SensorMapConfig,
    SensorMapError,
    SensorPage,
    SensorQuery,
)
from pysensormap.geo import records_to_bounds  # noqa: E402


class _CountingRegistry:
    """Wraps a client to count ``list_sensors`` calls."""

    def __init__(self, client: RegistryClient) -> None:
        self._client = client
        self.calls = 0

    async def list_sensors(self, query: SensorQuery | None = None, **filters: Any) -> SensorPage:
        self.calls += 1
        return await self._client.list_sensors(query, **filters)


def _summary(state: FetchState, calls: int, limit: int) -> dict[str, Any]:
    extent = records_to_bounds(state.records)
    return {
        "mode": state.mode.value,
        "source": state.source.value,
        "records": len(state.records),
        "error": state.error,
        "warning": state.warning,
        "used_fallback": state.location_fetch_used_fallback,
        "tier": state.location.tier.value if state.location is not None else None,
        "registry_calls": calls,
        "extent": [extent.west, extent.south, extent.east, extent.north] if extent is not None else None,
        "nearest": [
            {
                "id": r.id,
                "name": r.name,
                "type": r.sensor_type,
                "lat": r.latitude,
                "lon": r.longitude,
            }
            for r in state.records[:limit]
        ],
    }


def _print_text(summary: dict[str, Any]) -> None:
    print(f"  mode      : {summary['mode']} ({summary['source']})")
    print(f"  records   : {summary['records']} in {summary['registry_calls']} registry call(s)")
    if summary["extent"]:
        print("  extent    : W={:.3f} S={:.3f} E={:.3f} N={:.3f}".format(*summary["extent"]))
    if summary["tier"]:
        print(f"  tier      : {summary['tier']} (fallback={summary['used_fallback']})")
    if summary["warning"]:
        print(f"  warning   : {summary['warning']}")
    if summary["error"]:
        print(f"  error     : {summary['error']}")
    for row in summary["nearest"]:
        print(f"    {row['id']:<24} {row['type']:<16} {row['lat']!s:>10} {row['lon']!s:>11}  {row['name']}")


async def main() -> int:
    parser = argparse.ArgumentParser(description="Probe the sensor fetch engine against a live registry.")
    parser.add_argument("--bounds", nargs=4, type=float, metavar=("W", "S", "E", "N"), help="Viewport to fetch")
    parser.add_argument("--place", help="Place name to geocode and search around")
    parser.add_argument("--types", default="", help="Comma-separated data type ids")
    parser.add_argument("--provider", help="Provider filter")
    parser.add_argument("--limit", type=int, default=20, help="Number of sensors to print")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = SensorMapConfig.from_env()
    try:
        async with RegistryClient(config) as client:
            registry = _CountingRegistry(client)
            engine = FetchOrchestrator(registry, config)
            await engine.set_filters(args.types or None, args.provider, refetch=False)
            if args.place:
                async with NominatimGeocoder(config) as geocoder:
                    state = await engine.search_place(args.place, geocoder)
            else:
                bounds = GeoBounds(*args.bounds) if args.bounds else None
                state = await engine.fetch_viewport(bounds)
    except SensorMapError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    summary = _summary(state, registry.calls, args.limit)
    if args.json_mode:
        print(json.dumps(summary, indent=2, default=str))
    else:
        _print_text(summary)
    return 0 if state.error is None else 2


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
