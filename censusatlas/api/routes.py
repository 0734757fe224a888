"""
Census Atlas — Router registration.

This module is the single place where the APIRouter is mounted onto the
FastAPI application.  Import and call ``register_routes(app)`` once in
``censusatlas.app``.

  GET  /api/health                        — status + runtime counters
  GET  /api/metrics                       — metric catalog
  GET  /api/states                        — states (scope choices)
  GET  /api/map/{level}                   — range, legend, per-feature colours
  GET  /api/map/{level}/features/{id}     — hover payload for one region
  GET  /api/boundaries/states             — state outline collection
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, FastAPI, HTTPException, Query

from censusatlas import __version__, config
from censusatlas.analytics.formatting import format_hover_value, format_value
from censusatlas.analytics.pipeline import legend_for, recompute
from censusatlas.api.schemas import (
    HealthResponse,
    HoverResponse,
    LegendResponse,
    MapFeatureResponse,
    MapResponse,
    MetricResponse,
    RangeResponse,
    StateResponse,
)
from censusatlas.domain.catalog import DEFAULT_METRIC_ID, METRIC_CATALOG, US_STATES, find_state, get_metric
from censusatlas.domain.enums import GeoLevel
from censusatlas.domain.models import JoinedFeature, MetricDefinition, ScopeFilter
from censusatlas.metrics import metrics_snapshot
from censusatlas.session import AtlasSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["atlas"])

_SESSION: Optional[AtlasSession] = None


def get_session() -> AtlasSession:
    global _SESSION
    if _SESSION is None:
        _SESSION = AtlasSession()
    return _SESSION


def set_session(session: Optional[AtlasSession]) -> None:
    """Swap the process-wide session (tests, or a custom-built session)."""
    global _SESSION
    _SESSION = session


async def close_session() -> None:
    global _SESSION
    if _SESSION is not None:
        await _SESSION.close()
        _SESSION = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _resolve_metric(metric_id: str) -> MetricDefinition:
    try:
        return get_metric(metric_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown metric '{metric_id}'") from None


def _resolve_scope(state: Optional[str]) -> Optional[ScopeFilter]:
    if not state:
        return None
    found = find_state(state)
    if found is None:
        raise HTTPException(status_code=404, detail=f"Unknown state '{state}'")
    return ScopeFilter.for_state(found)


async def _features_for(level: GeoLevel) -> Tuple[List[JoinedFeature], int]:
    """Reuse the session's features when a complete load of ``level`` is applied."""
    session = get_session()
    if session.serves(level):
        return session.features, session.applied_generation
    result = await session.load(level)
    if not result.applied:
        logger.info("Serving load #%d for %s although a newer load has started", result.generation, level.value)
    return result.features, result.generation


def _metric_response(m: MetricDefinition) -> MetricResponse:
    return MetricResponse(
        id=m.id,
        label=m.label,
        description=m.description,
        category=m.category.value,
        unit=m.unit.value,
        min=m.min,
        max=m.max,
        color_stops=list(m.color_stops),
        api_variable=m.api_variable,
        logarithmic=m.logarithmic,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    session = get_session()
    return HealthResponse(
        version=__version__,
        census_key_configured=bool(config.CENSUS_API_KEY),
        census_year=config.CENSUS_YEAR,
        config_warnings=config.config_warnings(),
        loaded_level=session.level.value if session.level else None,
        generation=session.applied_generation,
        feature_count=len(session.features),
        cache_backend=session.cache.backend,
        metrics={k: float(v) for k, v in metrics_snapshot().items()},
    )


@router.get("/metrics", response_model=List[MetricResponse])
async def list_metrics() -> List[MetricResponse]:
    return [_metric_response(m) for m in METRIC_CATALOG]


@router.get("/states", response_model=List[StateResponse])
async def list_states() -> List[StateResponse]:
    return [StateResponse(name=s.name, fips=s.fips) for s in US_STATES]


@router.get("/map/{level}", response_model=MapResponse)
async def get_map(
    level: GeoLevel,
    metric: str = Query(DEFAULT_METRIC_ID),
    state: Optional[str] = Query(None, description="State FIPS code or name"),
    include_geometry: bool = Query(True),
) -> MapResponse:
    """Everything a renderer needs for one (level, metric, state) selection."""
    metric_def = _resolve_metric(metric)
    scope = _resolve_scope(state)
    features, generation = await _features_for(level)

    view = recompute(features, metric_def, scope)
    items = [
        MapFeatureResponse(
            id=feature.id,
            name=feature.name,
            value=style.value,
            display_value=format_value(style.value, metric_def),
            color=style.color,
            in_scope=style.in_scope,
            geometry=feature.geometry if include_geometry else None,
        )
        for feature, style in zip(features, view.styles)
    ]
    return MapResponse(
        level=level.value,
        metric=metric_def.id,
        state=scope.prefix if scope else None,
        generation=generation,
        range=RangeResponse(min=view.range.min, max=view.range.max),
        legend=LegendResponse(**legend_for(metric_def, view.range)),
        feature_count=len(items),
        features=items,
    )


@router.get("/map/{level}/features/{feature_id}", response_model=HoverResponse)
async def get_feature(
    level: GeoLevel,
    feature_id: str,
    metric: str = Query(DEFAULT_METRIC_ID),
) -> HoverResponse:
    metric_def = _resolve_metric(metric)
    features, generation = await _features_for(level)
    session = get_session()
    if session.applied_generation == generation:
        found = session.find_feature(feature_id)
    else:
        found = next((f for f in features if f.id == feature_id), None) if feature_id else None
    if found is None:
        raise HTTPException(status_code=404, detail=f"No {level.value} feature '{feature_id}'")
    value = found.value(metric_def.id)
    return HoverResponse(
        id=found.id,
        name=found.name,
        metric=metric_def.id,
        value=value,
        display_value=format_hover_value(value, metric_def),
    )


@router.get("/boundaries/states")
async def state_boundaries() -> Dict[str, Any]:
    return await get_session().geometry_fetcher.fetch_state_boundaries()


def register_routes(app: FastAPI) -> None:
    app.include_router(router)
