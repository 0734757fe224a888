"""
Human-readable value strings.

``format_value`` is the compact form used for legend bounds;
``format_hover_value`` is the longer form shown for a hovered region.
"""

from __future__ import annotations

import math
from typing import Any

from censusatlas.core.constants import (
    COUNT_MILLIONS, COUNT_THOUSANDS, CURRENCY_ABBREVIATE_AT,
    FORMAT_PLACEHOLDER, HOVER_MAX_DECIMALS, HOVER_PLACEHOLDER,
)
from censusatlas.core.utils import is_number, round_half_up
from censusatlas.domain.enums import MetricUnit
from censusatlas.domain.models import MetricDefinition


def format_value(value: Any, metric: MetricDefinition) -> str:
    """Compact display string, e.g. ``"$125.0k"``, ``"12.3%"``, ``"1.2M"``."""
    if not is_number(value) or math.isinf(value):
        return FORMAT_PLACEHOLDER

    if metric.unit is MetricUnit.CURRENCY:
        if value >= CURRENCY_ABBREVIATE_AT:
            return f"${value / 1_000:.1f}k"
        return f"${round_half_up(value):,}"
    if metric.unit is MetricUnit.PERCENT:
        return f"{value:.1f}%"
    if value >= COUNT_MILLIONS:
        return f"{value / COUNT_MILLIONS:.1f}M"
    if value >= COUNT_THOUSANDS:
        return f"{value / COUNT_THOUSANDS:.1f}k"
    return f"{round_half_up(value):,}"


def format_hover_value(value: Any, metric: MetricDefinition) -> str:
    """Full-precision display string for a single region."""
    if not is_number(value) or math.isinf(value):
        return HOVER_PLACEHOLDER

    if metric.unit is MetricUnit.CURRENCY:
        return f"${round_half_up(value):,}"
    if metric.unit is MetricUnit.PERCENT:
        return f"{value:.1f}%"
    text = f"{value:,.{HOVER_MAX_DECIMALS}f}".rstrip("0").rstrip(".")
    return text or "0"
