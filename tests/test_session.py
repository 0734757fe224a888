from __future__ import annotations

import asyncio

import pytest

from censusatlas.cache_backend import MemoryCacheBackend
from censusatlas.domain.catalog import get_metric
from censusatlas.domain.enums import GeoLevel
from censusatlas.domain.models import ScopeFilter
from censusatlas.metrics import metrics_snapshot
from censusatlas.session import stats_cache_key


@pytest.mark.asyncio
async def test_load_applies_joined_features(make_session):
    session = make_session()
    assert not session.loaded

    result = await session.load(GeoLevel.COUNTY)

    assert result.applied
    assert result.generation == 1
    assert result.stats_count == 2
    assert session.loaded
    assert session.level is GeoLevel.COUNTY
    assert [f.id for f in session.features] == ["01001", "01003", "06037"]
    assert session.find_feature("06037").value("median_income") == 77456.0
    assert session.find_feature("99999") is None


@pytest.mark.asyncio
async def test_view_over_applied_features(make_session):
    session = make_session()
    await session.load(GeoLevel.COUNTY)

    view = session.view(get_metric("median_income"), ScopeFilter("01"))
    # Baldwin has no statistics, so 0.0 takes part in the range
    assert (view.range.min, view.range.max) == (0.0, 57982.0)
    assert [s.in_scope for s in view.styles] == [True, True, False]


@pytest.mark.asyncio
async def test_stale_load_is_not_applied(make_session):
    gate = asyncio.Event()
    session = make_session(gates=[gate])

    slow = asyncio.create_task(session.load(GeoLevel.COUNTY))
    await asyncio.sleep(0)  # first load starts and blocks on its gate
    fast = await session.load(GeoLevel.ZIP)
    gate.set()
    stale = await slow

    assert fast.applied and fast.generation == 2
    assert not stale.applied and stale.generation == 1
    assert len(stale.features) == 3  # still returned to its caller
    assert session.level is GeoLevel.ZIP
    assert session.applied_generation == 2
    assert [f.id for f in session.features] == ["90210"]
    assert metrics_snapshot()["stale_loads_discarded"] == 1
    assert metrics_snapshot()["loads_county"] == 1


@pytest.mark.asyncio
async def test_stats_are_cached_between_loads(make_session):
    cache = MemoryCacheBackend()
    session = make_session(ttl=60, cache=cache)

    await session.load(GeoLevel.COUNTY)
    second = await session.load(GeoLevel.COUNTY)

    assert session.stats_fetcher.calls == [GeoLevel.COUNTY]
    assert second.stats_count == 2
    assert cache.get_json(stats_cache_key(GeoLevel.COUNTY))["01001"]["population"] == 58805.0
    assert metrics_snapshot()["stats_cache_hit_rate"] == 0.5


@pytest.mark.asyncio
async def test_empty_stats_are_not_cached(make_session):
    session = make_session(stats={}, ttl=60)

    first = await session.load(GeoLevel.COUNTY)
    await session.load(GeoLevel.COUNTY)

    assert len(session.stats_fetcher.calls) == 2
    # Geometry still renders; every region shows zero
    assert len(first.features) == 3
    assert all(v == 0.0 for f in first.features for v in f.values.values())


@pytest.mark.asyncio
async def test_cache_disabled_with_zero_ttl(make_session):
    cache = MemoryCacheBackend()
    session = make_session(ttl=0, cache=cache)

    await session.load(GeoLevel.COUNTY)
    await session.load(GeoLevel.COUNTY)

    assert len(session.stats_fetcher.calls) == 2
    assert cache.get(stats_cache_key(GeoLevel.COUNTY)) is None


@pytest.mark.asyncio
async def test_close_closes_fetchers(make_session):
    session = make_session()
    await session.close()
    assert session.stats_fetcher.closed and session.geometry_fetcher.closed


@pytest.mark.asyncio
async def test_incomplete_load_is_not_served(make_session):
    session = make_session()
    stats = session.stats_fetcher.stats
    session.stats_fetcher.stats = {}

    result = await session.load(GeoLevel.COUNTY)

    assert result.applied and result.degraded
    assert session.loaded and session.degraded
    assert not session.serves(GeoLevel.COUNTY)

    session.stats_fetcher.stats = stats
    await session.load(GeoLevel.COUNTY)
    assert session.serves(GeoLevel.COUNTY)
    assert not session.serves(GeoLevel.ZIP)
