"""
One-shot restyle of a loaded feature set.

Call ``recompute`` whenever the active metric or scope changes.  It returns
a fresh ``MapView`` (range + one style per feature, in feature order); the
previous view is simply dropped by the caller.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from censusatlas.analytics.colors import DIMMED_COLOR, color_for
from censusatlas.analytics.formatting import format_value
from censusatlas.analytics.scope import range_for
from censusatlas.domain.models import (
    FeatureStyle, JoinedFeature, MapView, MetricDefinition, Range, ScopeFilter,
)


def recompute(
    features: Sequence[JoinedFeature],
    metric: MetricDefinition,
    scope: Optional[ScopeFilter] = None,
) -> MapView:
    """Active range for ``metric``/``scope`` plus a colour for every feature.

    Features outside the scope are reported with ``in_scope=False`` and the
    dimmed colour; they do not influence the range.
    """
    active = range_for(features, metric, scope)
    styles = []
    for feature in features:
        value = feature.values.get(metric.id)
        in_scope = scope is None or scope.contains(feature.id)
        color = color_for(value, metric, active) if in_scope else DIMMED_COLOR
        styles.append(FeatureStyle(id=feature.id, value=value, color=color, in_scope=in_scope))
    return MapView(metric_id=metric.id, range=active, styles=styles)


def legend_for(metric: MetricDefinition, active: Optional[Range] = None) -> Dict[str, Any]:
    """Legend payload: title, unit, colour stops and formatted bounds.

    Falls back to the metric's static domain until a range is computed.
    """
    active = active or Range.of_metric(metric)
    return {
        "title": metric.label,
        "unit": metric.unit.value,
        "description": metric.description,
        "stops": list(metric.color_stops),
        "min": active.min,
        "max": active.max,
        "min_label": format_value(active.min, metric),
        "max_label": format_value(active.max, metric),
    }
