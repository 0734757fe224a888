"""
Census Atlas — Geometry / statistics joiner.

Produces exactly one ``JoinedFeature`` per input geometry feature, in input
order.  Features whose id has no statistics are kept with every metric at
0.0, so zero-valued and unmatched regions look the same downstream.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from censusatlas.data_pipeline.levels import level_profile
from censusatlas.data_pipeline.normalizer import feature_canonical_id, feature_display_name
from censusatlas.domain.catalog import METRIC_CATALOG
from censusatlas.domain.enums import GeoLevel
from censusatlas.domain.models import JoinedFeature, MetricDefinition, StatsRecord

logger = logging.getLogger(__name__)


def complete_values(
    partial: Optional[Mapping[str, Any]],
    catalog: Sequence[MetricDefinition] = METRIC_CATALOG,
) -> Dict[str, float]:
    """Return a value for every catalog metric, 0.0 where ``partial`` has none."""
    partial = partial or {}
    values: Dict[str, float] = {}
    for metric in catalog:
        raw = partial.get(metric.id)
        values[metric.id] = float(raw) if isinstance(raw, (int, float)) and not isinstance(raw, bool) else 0.0
    return values


def join_features(
    collection: Mapping[str, Any],
    stats: StatsRecord,
    level: GeoLevel,
    catalog: Sequence[MetricDefinition] = METRIC_CATALOG,
) -> List[JoinedFeature]:
    """Merge a GeoJSON FeatureCollection with a ``StatsRecord``.

    The geometry of each feature is passed through untouched.
    """
    profile = level_profile(level)
    raw_features = collection.get("features") if isinstance(collection, Mapping) else None
    if not isinstance(raw_features, list):
        raw_features = []

    joined: List[JoinedFeature] = []
    matched = 0
    for feature in raw_features:
        canonical = feature_canonical_id(feature, profile)
        row = stats.get(canonical) if canonical else None
        if row is not None:
            matched += 1
        joined.append(
            JoinedFeature(
                id=canonical,
                name=feature_display_name(feature, profile, canonical),
                geometry=feature.get("geometry") if isinstance(feature, dict) else None,
                values=complete_values(row, catalog),
            )
        )

    if joined and matched < len(joined):
        logger.info(
            "Joined %d %s features; %d without statistics",
            len(joined), profile.level.value, len(joined) - matched,
        )
    return joined
