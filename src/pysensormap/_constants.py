"""Internal constants shared across the library."""

BASE_URL = "http://localhost:3001"
SENSORS_PATH = "/api/v1/sensors"
GEOCODER_URL = "https://nominatim.openstreetmap.org/search"
USER_AGENT = "pysensormap/1.0 (+https://github.com/planetary/sensors)"
API_KEY_HEADER = "x-api-key"

# ------------------------------------------------------------------
# Geometry
# ------------------------------------------------------------------

FULL_WORLD_EPSILON = 1e-6
#: When a view edge sits within this many degrees of ±180, a strip on the
#: opposite side of the seam is fetched as well.
DATELINE_OVERLAP_DEG = 15.0
#: Rounding precision (decimal places) of viewport signatures.
SIGNATURE_PRECISION = 2

# ------------------------------------------------------------------
# Registry limits
# ------------------------------------------------------------------

RADIUS_MIN_KM = 0.0
RADIUS_MAX_KM = 1000.0
DEFAULT_PAGE_LIMIT = 20

# ------------------------------------------------------------------
# Location search tiers
# ------------------------------------------------------------------

CITY_RADIUS_KM = 8.0
METRO_RADIUS_KM = 25.0
REGIONAL_RADIUS_KM = 80.0
#: Half-widths (degrees) of the last-resort box queries around a point.
WIDENING_BOX_HALF_WIDTHS: tuple[float, ...] = (0.5, 1.0)
#: Results are post-filtered to this half-width box around the search point.
LOCATION_WINDOW_DEG = 1.0
LOCATION_PAGE_LIMIT = 500

RADIUS_INCOMPLETE_WARNING = "Offshore sensors may be incomplete."
