"""
censusatlas.analytics — Pure, synchronous computations over joined features.

Sub-modules:
  scope       — scope filtering and active range computation
  colors      — quantised linear / logarithmic colour mapping
  formatting  — human-readable value strings
  pipeline    — one-shot recompute of range + per-feature styles
"""
