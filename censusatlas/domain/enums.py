"""
censusatlas.domain.enums — All enumerations used across the atlas.

Keep this module import-clean (stdlib only).
"""

from enum import Enum


# ---------------------------------------------------------------------------
# Metric classification
# ---------------------------------------------------------------------------

class MetricCategory(str, Enum):
    DEMOGRAPHICS = "demographics"
    ECONOMICS    = "economics"
    HOUSING      = "housing"
    EDUCATION    = "education"


class MetricUnit(str, Enum):
    """
    Display unit of a metric.  Drives the value formatter; the colour
    engine is unit-agnostic.
    """
    COUNT    = "count"
    CURRENCY = "currency"
    PERCENT  = "percent"
    AGE      = "age"


# ---------------------------------------------------------------------------
# Geographic granularity
# ---------------------------------------------------------------------------

class GeoLevel(str, Enum):
    """
    Granularity of the loaded regions.

    county: 5-digit state+county FIPS; statistics are fetched one state at
            a time because the Census API will not return every county in a
            single profile query.
    zip:    ZIP Code Tabulation Areas; fetched as one flat list.
    """
    COUNTY = "county"
    ZIP    = "zip"

    @property
    def partitioned(self) -> bool:
        return self is GeoLevel.COUNTY


# ---------------------------------------------------------------------------
# Failure taxonomy (for logging / runtime counters only; never raised)
# ---------------------------------------------------------------------------

class FailureKind(str, Enum):
    NETWORK            = "network"
    PARSE              = "parse"
    MISSING_CREDENTIAL = "missing_credential"
