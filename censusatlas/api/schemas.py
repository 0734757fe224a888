"""
Census Atlas — API request/response schemas (Pydantic).

All FastAPI endpoints that return structured data must use these models.
This gives us:
  • Automatic OpenAPI documentation
  • Runtime validation / coercion
  • A stable contract between the engine and the rendering layer
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class MetricResponse(BaseModel):
    id: str
    label: str
    description: str
    category: str
    unit: str
    min: float
    max: float
    color_stops: List[str]
    api_variable: str
    logarithmic: bool = False


class StateResponse(BaseModel):
    name: str
    fips: str


# ---------------------------------------------------------------------------
# Map view
# ---------------------------------------------------------------------------

class RangeResponse(BaseModel):
    min: float
    max: float


class LegendResponse(BaseModel):
    title: str
    unit: str
    description: str = ""
    stops: List[str]
    min: float
    max: float
    min_label: str
    max_label: str


class MapFeatureResponse(BaseModel):
    """One region as the rendering layer needs it."""

    id: str
    name: str
    value: float = 0.0
    display_value: str = ""
    color: str
    in_scope: bool = True
    geometry: Optional[Any] = None


class MapResponse(BaseModel):
    level: str
    metric: str
    state: Optional[str] = None
    generation: int
    range: RangeResponse
    legend: LegendResponse
    feature_count: int = 0
    features: List[MapFeatureResponse] = Field(default_factory=list)


class HoverResponse(BaseModel):
    id: str
    name: str
    metric: str
    value: float
    display_value: str


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    census_key_configured: bool
    census_year: str
    config_warnings: List[str] = Field(default_factory=list)
    loaded_level: Optional[str] = None
    generation: int = 0
    feature_count: int = 0
    cache_backend: str = "none"
    metrics: Dict[str, float] = Field(default_factory=dict)
