"""
censusatlas.data_pipeline — Fetch geometry and Census statistics, reconcile
their identifiers and join them into per-region records.
"""
