"""
Census Atlas — Shared utilities.

Pure functions used across the whole package. No imports from other
censusatlas modules; only the standard library is allowed.
"""

from __future__ import annotations

import math
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Math helpers
# ---------------------------------------------------------------------------

def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp ``value`` to the range [lo, hi]."""
    return max(lo, min(hi, value))


def is_number(value: Any) -> bool:
    """True for real numbers that are not NaN.  Booleans are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards +infinity.

    ``round()`` uses banker's rounding, which would display 2.5 as "2".
    """
    return int(math.floor(value + 0.5))


# ---------------------------------------------------------------------------
# Census cell parsing
# ---------------------------------------------------------------------------

def safe_float(value: Any) -> Optional[float]:
    """Parse a Census cell to float; ``None`` when it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if math.isnan(f):
        return None
    return f


def census_value(value: Any) -> float:
    """Parse a Census cell into a metric value.

    The API encodes annotations as large negative sentinels
    (-666666666, -888888888, ...).  Those, blanks and non-numeric cells
    all become 0.0.
    """
    f = safe_float(value)
    if f is None or f < 0 or math.isinf(f):
        return 0.0
    return f
