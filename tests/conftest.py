"""
Pytest configuration and shared fixtures.

Fixtures available to all tests:
  • make_feature(...)        — a single GeoJSON feature dict
  • county_collection        — three-county FeatureCollection (two states)
  • census_table(...)        — Census API array-of-arrays for given rows
  • mock_client(handler)     — httpx.AsyncClient backed by MockTransport
  • metric(...)              — a MetricDefinition with 8 stops
  • make_session(...)        — AtlasSession over fake fetchers
"""

from __future__ import annotations

import asyncio
import os
import sys
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

# Ensure the project root is on the path so all censusatlas imports resolve.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from censusatlas import cache_backend  # noqa: E402
from censusatlas.cache_backend import MemoryCacheBackend  # noqa: E402
from censusatlas.data_pipeline.joiner import complete_values  # noqa: E402
from censusatlas.domain.catalog import METRIC_CATALOG  # noqa: E402
from censusatlas.domain.enums import GeoLevel, MetricCategory, MetricUnit  # noqa: E402
from censusatlas.domain.models import MetricDefinition  # noqa: E402
from censusatlas.metrics import reset_metrics_for_tests  # noqa: E402
from censusatlas.session import AtlasSession  # noqa: E402

EIGHT_STOPS = ("#0", "#1", "#2", "#3", "#4", "#5", "#6", "#7")


@pytest.fixture(autouse=True)
def _isolate_runtime_state():
    reset_metrics_for_tests()
    cache_backend.reset_cache_backend_for_tests()
    yield
    cache_backend.reset_cache_backend_for_tests()


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

def _metric(
    unit: MetricUnit = MetricUnit.COUNT,
    logarithmic: bool = False,
    lo: float = 0,
    hi: float = 100,
    stops=EIGHT_STOPS,
    metric_id: str = "test_metric",
) -> MetricDefinition:
    return MetricDefinition(
        id=metric_id,
        label="Test Metric",
        description="for tests",
        category=MetricCategory.DEMOGRAPHICS,
        unit=unit,
        min=lo,
        max=hi,
        color_stops=stops,
        api_variable="TEST_001E",
        logarithmic=logarithmic,
    )


@pytest.fixture
def metric():
    return _metric


# ---------------------------------------------------------------------------
# GeoJSON
# ---------------------------------------------------------------------------

def _feature(
    feature_id: Any = None,
    properties: Optional[Dict[str, Any]] = None,
    geometry: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    feature: Dict[str, Any] = {
        "type": "Feature",
        "properties": properties or {},
        "geometry": geometry or {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 0]]]},
    }
    if feature_id is not None:
        feature["id"] = feature_id
    return feature


@pytest.fixture
def make_feature():
    return _feature


@pytest.fixture
def county_collection():
    return {
        "type": "FeatureCollection",
        "features": [
            _feature("01001", {"NAME": "Autauga"}),
            _feature(None, {"GEO_ID": "0500000US01003", "NAME": "Baldwin"}),
            _feature("06037", {"NAME": "Los Angeles"}),
        ],
    }


# ---------------------------------------------------------------------------
# Census API tables
# ---------------------------------------------------------------------------

def _census_table(
    rows: List[Dict[str, Any]],
    geo_columns: tuple = ("state", "county"),
    variables: Optional[List[str]] = None,
) -> List[List[Any]]:
    """Build a Census-style table; each row dict maps column name → cell."""
    variables = variables if variables is not None else [m.api_variable for m in METRIC_CATALOG]
    header = ["NAME"] + list(variables) + list(geo_columns)
    table: List[List[Any]] = [header]
    for row in rows:
        table.append([row.get(col) for col in header])
    return table


@pytest.fixture
def census_table():
    return _census_table


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_client():
    clients: List[httpx.AsyncClient] = []

    def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    return _factory


# ---------------------------------------------------------------------------
# Session fakes
# ---------------------------------------------------------------------------

class FakeStatsFetcher:
    def __init__(self, stats: Optional[Dict[str, dict]] = None) -> None:
        self.stats = stats if stats is not None else {}
        self.calls: List[Any] = []
        self.closed = False

    async def fetch_stats(self, level):
        self.calls.append(level)
        return {k: dict(v) for k, v in self.stats.items()}

    async def close(self):
        self.closed = True


class FakeGeometryFetcher:
    """Serves fixed collections; each queued gate blocks one fetch until set."""

    def __init__(self, collections: Dict[Any, dict], gates: Optional[List[asyncio.Event]] = None) -> None:
        self.collections = collections
        self.gates = list(gates or [])
        self.closed = False

    async def fetch_geometry(self, level):
        gate = self.gates.pop(0) if self.gates else None
        if gate is not None:
            await gate.wait()
        return self.collections[level]

    async def fetch_state_boundaries(self):
        return {"type": "FeatureCollection", "features": []}

    async def close(self):
        self.closed = True


def _sample_stats() -> Dict[str, Dict[str, float]]:
    return {
        "01001": complete_values({"population": 58805, "median_income": 57982}),
        "06037": complete_values({"population": 10_014_009, "median_income": 77456}),
    }


@pytest.fixture
def make_session(county_collection):
    """Build an AtlasSession over fake fetchers and a private memory cache."""

    def _factory(stats=None, gates=None, ttl=0, cache=None):
        geometry = FakeGeometryFetcher(
            {
                GeoLevel.COUNTY: county_collection,
                GeoLevel.ZIP: {"features": [_feature(None, {"ZCTA5CE10": "90210"})]},
            },
            gates=gates,
        )
        fetcher = FakeStatsFetcher(stats if stats is not None else _sample_stats())
        return AtlasSession(
            stats_fetcher=fetcher,
            geometry_fetcher=geometry,
            cache=cache or MemoryCacheBackend(),
            stats_cache_ttl=ttl,
        )

    return _factory
