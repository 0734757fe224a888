"""
Census Atlas — Geographic identifier normalizer.

The geometry files and the Census API key the same region differently:

    GeoJSON feature id      "01001"
    GeoJSON GEO_ID          "0500000US01001"
    Census API row          state="01", county="001"
    ZCTA property           "90210"

Everything is reduced to one canonical string (the 5-digit county FIPS or
the ZCTA) so the two sources can be joined.  Normalisation is idempotent:
``normalize_id(normalize_id(x)) == normalize_id(x)``.
"""

from __future__ import annotations

from typing import Any, Iterator, Optional

from censusatlas.core.constants import COUNTY_FIPS_LENGTH, GEOID_MARKER
from censusatlas.domain.models import CanonicalId, GeoLevelProfile


def _as_text(raw: Any) -> str:
    # Integers show up when a GeoJSON writer dropped the quotes around a code
    if isinstance(raw, str):
        return raw.strip()
    if isinstance(raw, int) and not isinstance(raw, bool):
        return str(raw)
    return ""


def normalize_id(raw: Any, sub_code: Any = None) -> CanonicalId:
    """Return the canonical id for a raw identifier.

    Rules, in order:

    1. A prefixed GEOID (``"0500000US01001"``) loses everything up to and
       including the last ``"US"`` marker.
    2. When ``sub_code`` is given, ``raw`` is the state code and the result
       is ``state + sub_code`` with no separator.
    3. Anything else is returned trimmed.

    Empty or unparseable input gives ``""``.
    """
    text = _as_text(raw)
    if sub_code is not None:
        region = _as_text(sub_code)
        if not text or not region:
            return ""
        return text + region
    if not text:
        return ""
    if GEOID_MARKER in text and len(text) > COUNTY_FIPS_LENGTH:
        # rpartition keeps the result marker-free, which makes this idempotent
        text = text.rpartition(GEOID_MARKER)[2].strip()
    return text


# ---------------------------------------------------------------------------
# GeoJSON feature helpers
# ---------------------------------------------------------------------------

def _properties(feature: Any) -> dict:
    if not isinstance(feature, dict):
        return {}
    props = feature.get("properties")
    return props if isinstance(props, dict) else {}


def _id_candidates(feature: Any, profile: GeoLevelProfile) -> Iterator[Any]:
    if profile.use_feature_id and isinstance(feature, dict):
        yield feature.get("id")
    props = _properties(feature)
    for name in profile.id_fields:
        yield props.get(name)


def feature_canonical_id(feature: Any, profile: GeoLevelProfile) -> CanonicalId:
    """First non-empty canonical id among the profile's id sources."""
    for candidate in _id_candidates(feature, profile):
        canonical = normalize_id(candidate)
        if canonical:
            return canonical
    return ""


def feature_display_name(
    feature: Any,
    profile: GeoLevelProfile,
    canonical_id: Optional[CanonicalId] = None,
) -> str:
    """Display name from the profile's name fields, then its template/placeholder."""
    props = _properties(feature)
    for name in profile.name_fields:
        value = props.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    if profile.name_template and canonical_id:
        return profile.name_template.format(id=canonical_id)
    return profile.unknown_name
