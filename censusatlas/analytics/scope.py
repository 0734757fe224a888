"""
Scope selection and active-range computation.

The range drives the colour scale, so it is recomputed from scratch (and
replaced as one ``Range`` value) whenever the metric or the scope changes.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from censusatlas.core.utils import is_number
from censusatlas.domain.models import JoinedFeature, MetricDefinition, Range, ScopeFilter


def select_scope(
    features: Iterable[JoinedFeature],
    scope: Optional[ScopeFilter] = None,
) -> List[JoinedFeature]:
    """Features whose id starts with the scope prefix; all of them when unscoped."""
    if scope is None:
        return list(features)
    return [f for f in features if scope.contains(f.id)]


def range_for(
    features: Iterable[JoinedFeature],
    metric: MetricDefinition,
    scope: Optional[ScopeFilter] = None,
) -> Range:
    """Min/max of ``metric`` over the scoped features.

    Zero values (including the 0.0 defaults of unmatched regions) take part
    like any other value.  With nothing to measure, the metric's static
    domain is returned.
    """
    lo = hi = None
    for feature in select_scope(features, scope):
        value = feature.values.get(metric.id)
        if not is_number(value):
            continue
        if lo is None or value < lo:
            lo = value
        if hi is None or value > hi:
            hi = value

    if lo is None or hi is None:
        return Range.of_metric(metric)
    return Range(min=lo, max=hi)
