"""
censusatlas.domain — Canonical data models, enumerations and the static catalog.

This package defines the source-of-truth types shared across every layer
of the atlas. Nothing in here should import from other censusatlas
sub-packages other than ``censusatlas.core.constants``.
"""
