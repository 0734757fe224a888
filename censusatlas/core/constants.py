"""
Census Atlas — System-wide constants.

Every magic number lives here. If you find a literal in the codebase that is
not a local variable, it belongs here instead.
"""

# ---------------------------------------------------------------------------
# Census Data API
# ---------------------------------------------------------------------------

CENSUS_API_ROOT: str = "https://api.census.gov/data"
CENSUS_NAME_FIELD: str = "NAME"

# Header names the API uses for the geography columns it appends to each row
CENSUS_STATE_COLUMN: str = "state"
CENSUS_COUNTY_COLUMN: str = "county"
CENSUS_ZCTA_COLUMN: str = "zip code tabulation area"

# ---------------------------------------------------------------------------
# Public GeoJSON sources
# ---------------------------------------------------------------------------

COUNTIES_GEOJSON_URL: str = (
    "https://raw.githubusercontent.com/plotly/datasets/master/geojson-counties-fips.json"
)
# California ZCTAs only (a nationwide file is too large for interactive use)
ZIPS_GEOJSON_URL: str = (
    "https://raw.githubusercontent.com/OpenDataDE/State-zip-code-GeoJSON/master/"
    "ca_california_zip_codes_geo.min.json"
)
STATES_GEOJSON_URL: str = (
    "https://raw.githubusercontent.com/PublicaMundi/MappingAPI/master/data/geojson/us-states.json"
)

HTTP_USER_AGENT: str = "CensusAtlas/1.0"

# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

# Marker separating the summary-level prefix from the FIPS code in a GEOID,
# e.g. "0500000US01001"
GEOID_MARKER: str = "US"
# A bare county FIPS code; anything at or below this length is never stripped
COUNTY_FIPS_LENGTH: int = 5

# ---------------------------------------------------------------------------
# Colours
# ---------------------------------------------------------------------------

NO_DATA_COLOR: str = "rgba(0,0,0,0)"      # transparent
DIMMED_COLOR: str = "rgba(0,0,0,0.75)"    # features outside the active scope

# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

FORMAT_PLACEHOLDER: str = "..."
HOVER_PLACEHOLDER: str = "N/A"
UNKNOWN_REGION_NAME: str = "Unknown Region"

# Currency values at or above this are shown as "$N.Nk"
CURRENCY_ABBREVIATE_AT: float = 100_000
COUNT_THOUSANDS: float = 1_000
COUNT_MILLIONS: float = 1_000_000
HOVER_MAX_DECIMALS: int = 3

# ---------------------------------------------------------------------------
# Cache keys
# ---------------------------------------------------------------------------

STATS_CACHE_KEY_PREFIX: str = "stats"
