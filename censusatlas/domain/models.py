"""
censusatlas.domain.models — Canonical dataclass models.

These are the single source of truth for data structures flowing through
the atlas.  Layers that produce or consume these models must not invent
their own parallel types.

Import pattern::

    from censusatlas.domain.models import MetricDefinition, JoinedFeature, Range
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from censusatlas.core.constants import UNKNOWN_REGION_NAME
from censusatlas.domain.enums import GeoLevel, MetricCategory, MetricUnit

# Normalised geographic key shared by the geometry and tabular sources
# (5-digit county FIPS, ZCTA, ...).  Empty string means "unmatched".
CanonicalId = str

# CanonicalId → metric id → value.  Every catalog metric is present for
# every key (default 0.0).
StatsRecord = Dict[CanonicalId, Dict[str, float]]


# ---------------------------------------------------------------------------
# Metric catalog entries
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MetricDefinition:
    """
    Static description of one indicator.

    ``min``/``max`` are the fallback colour domain used when no feature in
    the active scope carries a value.  ``color_stops`` is ordered low → high
    and is indexed directly by the colour engine, so it is stored as a tuple.
    """
    id: str
    label: str
    description: str
    category: MetricCategory
    unit: MetricUnit
    min: float
    max: float
    color_stops: Tuple[str, ...]
    api_variable: str
    logarithmic: bool = False

    def __post_init__(self) -> None:
        if len(self.color_stops) < 2:
            raise ValueError(f"metric {self.id!r} needs at least 2 colour stops")
        if self.min > self.max:
            raise ValueError(f"metric {self.id!r} has min > max")
        # Accept lists from callers but keep the stored value immutable
        object.__setattr__(self, "color_stops", tuple(self.color_stops))


@dataclass(frozen=True)
class USState:
    name: str
    fips: str


@dataclass(frozen=True)
class GeoLevelProfile:
    """
    Everything that differs between granularities.

    ``id_fields`` / ``name_fields`` are GeoJSON property names tried in
    order.  When ``use_feature_id`` is set the feature's top-level ``id`` is
    tried before any property.
    """
    level: GeoLevel
    geometry_url: str
    census_for: str                       # "for=" clause of the Census query
    id_fields: Tuple[str, ...]
    name_fields: Tuple[str, ...] = ()
    use_feature_id: bool = False
    name_template: Optional[str] = None   # e.g. "Zip {id}"
    unknown_name: str = UNKNOWN_REGION_NAME


# ---------------------------------------------------------------------------
# Selection state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScopeFilter:
    """Restricts range computation to ids starting with ``prefix``."""
    prefix: str

    @classmethod
    def for_state(cls, state: USState) -> "ScopeFilter":
        return cls(prefix=state.fips)

    def contains(self, canonical_id: CanonicalId) -> bool:
        return bool(canonical_id) and canonical_id.startswith(self.prefix)


@dataclass(frozen=True)
class Range:
    min: float
    max: float

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ValueError(f"invalid range: min {self.min} > max {self.max}")

    @property
    def degenerate(self) -> bool:
        return self.min == self.max

    @classmethod
    def of_metric(cls, metric: MetricDefinition) -> "Range":
        return cls(min=metric.min, max=metric.max)


# ---------------------------------------------------------------------------
# Joined output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class JoinedFeature:
    """
    One region after geometry and statistics are merged.

    ``geometry`` is owned by the rendering layer and never inspected here.
    ``values`` is read-only and holds every catalog metric id.
    """
    id: CanonicalId
    name: str
    geometry: Any
    values: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.values, MappingProxyType):
            object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def value(self, metric_id: str) -> float:
        return self.values[metric_id]


@dataclass(frozen=True)
class FeatureStyle:
    id: CanonicalId
    value: float
    color: str
    in_scope: bool


@dataclass(frozen=True)
class MapView:
    """Result of one recompute: the active range plus one style per feature."""
    metric_id: str
    range: Range
    styles: List[FeatureStyle]


@dataclass(frozen=True)
class LoadResult:
    """Output of one ``AtlasSession.load`` call, tagged with its generation."""
    generation: int
    level: GeoLevel
    features: List[JoinedFeature]
    stats_count: int
    applied: bool

    @property
    def degraded(self) -> bool:
        """True when geometry or statistics came back empty."""
        return not self.features or self.stats_count == 0
