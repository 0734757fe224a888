"""
Quantised colour mapping.

``color_for`` runs once per feature per restyle, so it only does arithmetic
and indexes the metric's stop tuple; nothing is allocated per call.

    linear:       pct = (v - min) / (max - min)           (span 0 → 1)
    logarithmic:  pct = (ln v - ln min) / (ln max - ln min), all floored at 1
    index       = floor(pct * (stops - 1)), pct clamped to [0, 1]
"""

from __future__ import annotations

import math
from typing import Any

from censusatlas.core.constants import DIMMED_COLOR, NO_DATA_COLOR
from censusatlas.core.utils import clamp, is_number
from censusatlas.domain.models import MetricDefinition, Range

__all__ = ["color_for", "stop_index", "NO_DATA_COLOR", "DIMMED_COLOR"]


def _index(pct: float, stop_count: int) -> int:
    last = stop_count - 1
    pct = clamp(pct, 0.0, 1.0)
    return int(clamp(math.floor(pct * last), 0, last))


def stop_index(value: float, metric: MetricDefinition, active: Range) -> int:
    """Index into ``metric.color_stops`` for a numeric ``value``."""
    stops = len(metric.color_stops)

    if metric.logarithmic:
        log_val = math.log(max(value, 1.0))
        log_min = math.log(max(active.min, 1.0))
        log_max = math.log(max(active.max, 1.0))
        if log_max == log_min:
            return stops // 2
        return _index((log_val - log_min) / (log_max - log_min), stops)

    span = active.max - active.min
    if span == 0:
        span = 1.0
    return _index((value - active.min) / span, stops)


def color_for(value: Any, metric: MetricDefinition, active: Range) -> str:
    """Colour token for ``value`` under ``metric``'s scale and the active range.

    Missing or non-numeric values get the transparent ``NO_DATA_COLOR``.
    Out-of-range values clamp to the first / last stop.
    """
    if not is_number(value):
        return NO_DATA_COLOR
    return metric.color_stops[stop_index(value, metric, active)]
