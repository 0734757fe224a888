"""
censusatlas.domain.catalog — Static metric catalog and US state list.

Loaded once at import time and never mutated.  Colour stops are ColorBrewer
sequential ramps, 8 classes each, ordered light → dark.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from censusatlas.domain.enums import MetricCategory, MetricUnit
from censusatlas.domain.models import MetricDefinition, USState


METRIC_CATALOG: Tuple[MetricDefinition, ...] = (
    MetricDefinition(
        id="population",
        label="Total Population",
        description="Total population count estimate (2021 ACS).",
        category=MetricCategory.DEMOGRAPHICS,
        unit=MetricUnit.COUNT,
        min=0,
        max=1_000_000,
        color_stops=("#fff5f0", "#fee0d2", "#fcbba1", "#fc9272",
                     "#fb6a4a", "#ef3b2c", "#cb181d", "#99000d"),   # Reds
        api_variable="DP05_0001E",
        logarithmic=True,
    ),
    MetricDefinition(
        id="median_income",
        label="Median Household Income",
        description="The midpoint of the income distribution of households (2021 ACS).",
        category=MetricCategory.ECONOMICS,
        unit=MetricUnit.CURRENCY,
        min=25_000,
        max=120_000,
        color_stops=("#f7fcf5", "#e5f5e0", "#c7e9c0", "#a1d99b",
                     "#74c476", "#41ab5d", "#238b45", "#005a32"),   # Greens
        api_variable="DP03_0062E",
    ),
    MetricDefinition(
        id="median_age",
        label="Median Age",
        description="The age that divides the population into two numerically equal groups.",
        category=MetricCategory.DEMOGRAPHICS,
        unit=MetricUnit.AGE,
        min=25,
        max=60,
        color_stops=("#f7fbff", "#deebf7", "#c6dbef", "#9ecae1",
                     "#6baed6", "#4292c6", "#2171b5", "#084594"),   # Blues
        api_variable="DP05_0018E",
    ),
    MetricDefinition(
        id="unemployment_rate",
        label="Unemployment Rate",
        description="The percentage of the civilian labor force that is jobless.",
        category=MetricCategory.ECONOMICS,
        unit=MetricUnit.PERCENT,
        min=0,
        max=15,
        color_stops=("#fcfbfd", "#efedf5", "#dadaeb", "#bcbddc",
                     "#9e9ac8", "#807dba", "#6a51a3", "#4a1486"),   # Purples
        api_variable="DP03_0009PE",
    ),
    MetricDefinition(
        id="bachelors_degree",
        label="Bachelor's Degree or Higher",
        description="Percentage of adults 25+ with a bachelor's degree or higher.",
        category=MetricCategory.EDUCATION,
        unit=MetricUnit.PERCENT,
        min=10,
        max=75,
        color_stops=("#ffffe5", "#f7fcb9", "#d9f0a3", "#addd8e",
                     "#78c679", "#41ab5d", "#238443", "#005a32"),   # YlGn
        api_variable="DP02_0068PE",
    ),
)

DEFAULT_METRIC_ID: str = METRIC_CATALOG[0].id

_BY_ID: Dict[str, MetricDefinition] = {m.id: m for m in METRIC_CATALOG}


def metric_ids() -> Tuple[str, ...]:
    return tuple(_BY_ID)


def get_metric(metric_id: str) -> MetricDefinition:
    """Return the catalog entry for ``metric_id``; raises ``KeyError`` if unknown."""
    try:
        return _BY_ID[metric_id]
    except KeyError:
        raise KeyError(f"unknown metric {metric_id!r}") from None


# ---------------------------------------------------------------------------
# States (50 + DC).  Also the partitions of a county-level stats fetch.
# ---------------------------------------------------------------------------

US_STATES: Tuple[USState, ...] = (
    USState("Alabama", "01"), USState("Alaska", "02"), USState("Arizona", "04"),
    USState("Arkansas", "05"), USState("California", "06"), USState("Colorado", "08"),
    USState("Connecticut", "09"), USState("Delaware", "10"),
    USState("District of Columbia", "11"), USState("Florida", "12"),
    USState("Georgia", "13"), USState("Hawaii", "15"), USState("Idaho", "16"),
    USState("Illinois", "17"), USState("Indiana", "18"), USState("Iowa", "19"),
    USState("Kansas", "20"), USState("Kentucky", "21"), USState("Louisiana", "22"),
    USState("Maine", "23"), USState("Maryland", "24"), USState("Massachusetts", "25"),
    USState("Michigan", "26"), USState("Minnesota", "27"), USState("Mississippi", "28"),
    USState("Missouri", "29"), USState("Montana", "30"), USState("Nebraska", "31"),
    USState("Nevada", "32"), USState("New Hampshire", "33"), USState("New Jersey", "34"),
    USState("New Mexico", "35"), USState("New York", "36"),
    USState("North Carolina", "37"), USState("North Dakota", "38"),
    USState("Ohio", "39"), USState("Oklahoma", "40"), USState("Oregon", "41"),
    USState("Pennsylvania", "42"), USState("Rhode Island", "44"),
    USState("South Carolina", "45"), USState("South Dakota", "46"),
    USState("Tennessee", "47"), USState("Texas", "48"), USState("Utah", "49"),
    USState("Vermont", "50"), USState("Virginia", "51"), USState("Washington", "53"),
    USState("West Virginia", "54"), USState("Wisconsin", "55"), USState("Wyoming", "56"),
)

STATE_FIPS: Tuple[str, ...] = tuple(s.fips for s in US_STATES)


def find_state(key: str) -> Optional[USState]:
    """Look a state up by FIPS code or (case-insensitive) name."""
    if not key:
        return None
    needle = key.strip()
    for state in US_STATES:
        if state.fips == needle or state.name.lower() == needle.lower():
            return state
    return None
