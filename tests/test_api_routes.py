from __future__ import annotations

import pytest
from fastapi import FastAPI, HTTPException

from censusatlas.api import routes
from censusatlas.domain.enums import GeoLevel


@pytest.fixture
def session(make_session):
    atlas = make_session()
    routes.set_session(atlas)
    yield atlas
    routes.set_session(None)


@pytest.mark.asyncio
async def test_health_before_any_load(session, monkeypatch):
    monkeypatch.setattr(routes.config, "CENSUS_API_KEY", "")
    health = await routes.health_check()

    assert health.status == "ok"
    assert health.census_key_configured is False
    assert any("CENSUS_API_KEY" in w for w in health.config_warnings)
    assert health.loaded_level is None
    assert health.feature_count == 0
    assert health.cache_backend == "memory"
    assert "stats_cache_hit_rate" in health.metrics


@pytest.mark.asyncio
async def test_list_metrics_and_states():
    metrics = await routes.list_metrics()
    states = await routes.list_states()

    assert metrics[0].id == "population"
    assert metrics[0].logarithmic is True
    assert len(metrics[1].color_stops) == 8
    assert len(states) == 51
    assert states[0].fips == "01"


@pytest.mark.asyncio
async def test_get_map_scoped(session):
    resp = await routes.get_map(
        level=GeoLevel.COUNTY, metric="median_income", state="Alabama", include_geometry=False,
    )

    assert resp.level == "county"
    assert resp.state == "01"
    assert resp.generation == 1
    assert (resp.range.min, resp.range.max) == (0.0, 57982.0)
    assert resp.legend.max_label == "$57,982"
    assert resp.feature_count == 3
    la = resp.features[2]
    assert la.id == "06037"
    assert la.in_scope is False
    assert la.display_value == "$77,456"
    assert all(f.geometry is None for f in resp.features)


@pytest.mark.asyncio
async def test_get_map_reuses_loaded_level(session):
    await routes.get_map(level=GeoLevel.COUNTY, metric="population", state=None, include_geometry=True)
    resp = await routes.get_map(level=GeoLevel.COUNTY, metric="median_age", state=None, include_geometry=True)

    assert session.generation == 1
    assert resp.generation == 1
    assert resp.features[0].geometry["type"] == "Polygon"


@pytest.mark.asyncio
async def test_get_map_reloads_after_empty_geometry(session):
    county = session.geometry_fetcher.collections[GeoLevel.COUNTY]
    session.geometry_fetcher.collections[GeoLevel.COUNTY] = {"type": "FeatureCollection", "features": []}
    first = await routes.get_map(level=GeoLevel.COUNTY, metric="population", state=None, include_geometry=False)
    assert first.feature_count == 0
    assert session.degraded

    session.geometry_fetcher.collections[GeoLevel.COUNTY] = county
    second = await routes.get_map(level=GeoLevel.COUNTY, metric="population", state=None, include_geometry=False)

    assert second.feature_count == 3
    assert second.generation == 2
    assert not session.degraded


@pytest.mark.asyncio
async def test_get_map_reloads_after_empty_stats(session):
    stats = session.stats_fetcher.stats
    session.stats_fetcher.stats = {}
    first = await routes.get_map(level=GeoLevel.COUNTY, metric="population", state=None, include_geometry=False)
    assert first.range.max == 0.0

    session.stats_fetcher.stats = stats
    second = await routes.get_map(level=GeoLevel.COUNTY, metric="population", state=None, include_geometry=False)
    third = await routes.get_map(level=GeoLevel.COUNTY, metric="population", state=None, include_geometry=False)

    assert second.generation == 2
    assert second.range.max == 10_014_009.0
    assert third.generation == 2
    assert len(session.stats_fetcher.calls) == 2


@pytest.mark.asyncio
async def test_get_map_unknown_metric_or_state(session):
    with pytest.raises(HTTPException) as exc:
        await routes.get_map(level=GeoLevel.COUNTY, metric="nope", state=None, include_geometry=False)
    assert exc.value.status_code == 404

    with pytest.raises(HTTPException) as exc:
        await routes.get_map(level=GeoLevel.COUNTY, metric="population", state="Atlantis", include_geometry=False)
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_get_feature_hover(session):
    hover = await routes.get_feature(level=GeoLevel.COUNTY, feature_id="06037", metric="population")

    assert hover.name == "Los Angeles"
    assert hover.value == 10_014_009.0
    assert hover.display_value == "10,014,009"


@pytest.mark.asyncio
async def test_get_feature_missing(session):
    with pytest.raises(HTTPException) as exc:
        await routes.get_feature(level=GeoLevel.COUNTY, feature_id="99999", metric="population")
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_get_feature_uses_applied_index(session, monkeypatch):
    await routes.get_map(level=GeoLevel.COUNTY, metric="population", state=None, include_geometry=False)
    lookups = []
    find_feature = session.find_feature
    monkeypatch.setattr(session, "find_feature", lambda fid: lookups.append(fid) or find_feature(fid))

    hover = await routes.get_feature(level=GeoLevel.COUNTY, feature_id="01001", metric="median_income")

    assert lookups == ["01001"]
    assert hover.display_value == "$57,982"
    assert session.generation == 1


@pytest.mark.asyncio
async def test_state_boundaries(session):
    assert (await routes.state_boundaries())["type"] == "FeatureCollection"


@pytest.mark.asyncio
async def test_close_session_resets_singleton(session):
    await routes.close_session()
    assert session.stats_fetcher.closed
    assert routes._SESSION is None


def test_register_routes_mounts_api_prefix():
    app = FastAPI()
    routes.register_routes(app)
    paths = set(app.openapi()["paths"])
    assert "/api/map/{level}" in paths
    assert "/api/health" in paths
