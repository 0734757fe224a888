"""
Centralized configuration for Census Atlas.
All settings come from environment variables for 12-factor deployment.
"""

import logging
import os
from typing import List

from censusatlas.core import constants

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool = False) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


# ---------------------------------------------------------------------------
# Census Data API
# ---------------------------------------------------------------------------
# No fallback value: a key must come from the environment.
CENSUS_API_KEY = os.environ.get("CENSUS_API_KEY", "").strip()
# When set, startup refuses to run without a key instead of warning.
REQUIRE_CENSUS_API_KEY = _env_bool("REQUIRE_CENSUS_API_KEY", False)
CENSUS_YEAR = os.environ.get("CENSUS_YEAR", "2021").strip()
CENSUS_DATASET = os.environ.get("CENSUS_DATASET", "acs/acs5/profile").strip()

# ---------------------------------------------------------------------------
# Geometry sources
# ---------------------------------------------------------------------------
COUNTIES_GEOJSON_URL = os.environ.get("COUNTIES_GEOJSON_URL", constants.COUNTIES_GEOJSON_URL)
ZIPS_GEOJSON_URL = os.environ.get("ZIPS_GEOJSON_URL", constants.ZIPS_GEOJSON_URL)
STATES_GEOJSON_URL = os.environ.get("STATES_GEOJSON_URL", constants.STATES_GEOJSON_URL)

# ---------------------------------------------------------------------------
# Outbound HTTP
# ---------------------------------------------------------------------------
HTTP_TIMEOUT_SECONDS = float(os.environ.get("HTTP_TIMEOUT_SECONDS", "20"))
HTTP_MAX_RETRIES = int(os.environ.get("HTTP_MAX_RETRIES", "3"))
HTTP_RETRY_BACKOFF_SECONDS = float(os.environ.get("HTTP_RETRY_BACKOFF_SECONDS", "1.0"))
# Upper bound on simultaneous per-state requests during a county fetch.
MAX_CONCURRENT_PARTITIONS = int(os.environ.get("MAX_CONCURRENT_PARTITIONS", "16"))

# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------
REDIS_URL = os.environ.get("REDIS_URL", "").strip()
# ACS 5-year releases are annual; a day is plenty.  0 disables caching.
STATS_CACHE_TTL_SECONDS = int(os.environ.get("STATS_CACHE_TTL_SECONDS", "86400"))

# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
PORT = int(os.environ.get("PORT", "8002"))
CORS_ORIGINS = [
    s.strip()
    for s in os.environ.get("CORS_ORIGINS", "*").split(",")
    if s.strip()
]


def census_base_url() -> str:
    return f"{constants.CENSUS_API_ROOT}/{CENSUS_YEAR}/{CENSUS_DATASET}"


def config_warnings() -> List[str]:
    """Current configuration problems, without logging them."""
    warnings: List[str] = []
    if not CENSUS_API_KEY:
        warnings.append(
            "CENSUS_API_KEY is not set; statistics will be empty and every "
            "region will show zero values"
        )
    if MAX_CONCURRENT_PARTITIONS < 1:
        warnings.append("MAX_CONCURRENT_PARTITIONS < 1; using 1")
    return warnings


def validate_config() -> List[str]:
    """Check settings at startup.

    Returns the list of warnings (each logged once).  Raises
    ``RuntimeError`` only when ``REQUIRE_CENSUS_API_KEY`` is set and no key
    is configured.
    """
    if REQUIRE_CENSUS_API_KEY and not CENSUS_API_KEY:
        raise RuntimeError("CENSUS_API_KEY is required but not set")
    warnings = config_warnings()
    for msg in warnings:
        logger.warning(msg)
    return warnings
