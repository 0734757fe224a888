"""
Per-granularity settings: where the geometry lives, how the Census query
selects rows, and which GeoJSON properties carry the id and the name.
"""

from __future__ import annotations

from censusatlas import config
from censusatlas.core.constants import CENSUS_ZCTA_COLUMN
from censusatlas.domain.enums import GeoLevel
from censusatlas.domain.models import GeoLevelProfile


def level_profile(level: GeoLevel) -> GeoLevelProfile:
    """Build the profile for ``level`` from the current configuration."""
    level = GeoLevel(level)
    if level is GeoLevel.COUNTY:
        return GeoLevelProfile(
            level=level,
            geometry_url=config.COUNTIES_GEOJSON_URL,
            census_for="county:*",
            id_fields=("GEO_ID", "GEOID", "FIPS"),
            name_fields=("NAME", "name"),
            use_feature_id=True,
            unknown_name="Unknown County",
        )
    return GeoLevelProfile(
        level=level,
        geometry_url=config.ZIPS_GEOJSON_URL,
        census_for=f"{CENSUS_ZCTA_COLUMN}:*",
        id_fields=("ZCTA5CE10", "ZCTA5CE20", "ZCTA"),
        name_template="Zip {id}",
        unknown_name="Unknown Zip",
    )
