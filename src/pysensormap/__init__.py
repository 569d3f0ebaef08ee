"""pysensormap - Viewport-driven fetch and cache engine for a sensor registry map."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pysensormap")
except PackageNotFoundError:
    __version__ = "0+local"
from pysensormap._cache import CacheEntry, FetchResultCache, NoReadingCache
from pysensormap.client import RegistryClient
from pysensormap.config import DEFAULT_INITIAL_BOUNDS, SensorMapConfig
from pysensormap.exceptions import (
    GeocodeError,
    RegistryNotFoundError,
    RegistryTransportError,
    SensorMapConfigError,
    SensorMapError,
)
from pysensormap.fetch.orchestrator import FetchOrchestrator
from pysensormap.fetch.state import FetchMode, FetchSource, FetchState, LocationQueryState, LocationTier
from pysensormap.filters import DATA_TYPE_FILTERS, DataTypeFilter
from pysensormap.geocoder import Geocoder, NominatimGeocoder
from pysensormap.models import (
    GeoBounds,
    GeocodeResult,
    GeoPoint,
    LatestReading,
    Pagination,
    Reading,
    SensorPage,
    SensorQuery,
    SensorRecord,
)
from pysensormap.reveal import ProgressiveReveal

__all__ = [
    "__version__",
    "CacheEntry",
    "DATA_TYPE_FILTERS",
    "DEFAULT_INITIAL_BOUNDS",
    "DataTypeFilter",
    "FetchMode",
    "FetchOrchestrator",
    "FetchResultCache",
    "FetchSource",
    "FetchState",
    "GeoBounds",
    "GeoPoint",
    "GeocodeError",
    "GeocodeResult",
    "Geocoder",
    "LatestReading",
    "LocationQueryState",
    "LocationTier",
    "NoReadingCache",
    "NominatimGeocoder",
    "Pagination",
    "ProgressiveReveal",
    "Reading",
    "RegistryClient",
    "RegistryNotFoundError",
    "RegistryTransportError",
    "SensorMapConfig",
    "SensorMapConfigError",
    "SensorMapError",
    "SensorPage",
    "SensorQuery",
    "SensorRecord",
]
