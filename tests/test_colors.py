"""
Unit tests for censusatlas.analytics.colors.

Tests cover:
  • Linear stop boundaries and clamping
  • Logarithmic scale, including the degenerate range
  • Missing / non-numeric values
"""

import math

import pytest

from censusatlas.analytics.colors import NO_DATA_COLOR, color_for, stop_index
from censusatlas.domain.models import Range

ACTIVE = Range(min=0, max=100)


class TestLinear:
    @pytest.mark.parametrize("value,expected", [(0, 0), (50, 3), (100, 7), (99.9, 6)])
    def test_stop_boundaries(self, metric, value, expected):
        assert stop_index(value, metric(), ACTIVE) == expected

    def test_clamps_outside_range(self, metric):
        assert stop_index(150, metric(), ACTIVE) == 7
        assert stop_index(-20, metric(), ACTIVE) == 0

    def test_returns_stop_token(self, metric):
        assert color_for(100, metric(), ACTIVE) == "#7"
        assert color_for(0, metric(), ACTIVE) == "#0"

    def test_degenerate_range(self, metric):
        active = Range(min=5, max=5)
        assert stop_index(5, metric(), active) == 0
        assert stop_index(6, metric(), active) == 7

    def test_two_stops(self, metric):
        m = metric(stops=("#lo", "#hi"))
        assert color_for(99, m, ACTIVE) == "#lo"
        assert color_for(100, m, ACTIVE) == "#hi"


class TestLogarithmic:
    def test_decades(self, metric):
        m = metric(logarithmic=True)
        active = Range(min=1, max=10_000_000)
        assert stop_index(1, m, active) == 0
        assert stop_index(10_000_000, m, active) == 7
        # ln(1000) / ln(1e7) = 3/7 -> floor(3) = 3
        assert stop_index(1001, m, active) == 3

    def test_values_below_one_are_floored(self, metric):
        m = metric(logarithmic=True)
        active = Range(min=0, max=1_000)
        assert stop_index(0, m, active) == 0
        assert stop_index(0.5, m, active) == 0

    def test_degenerate_range_uses_middle_stop(self, metric):
        m = metric(logarithmic=True)
        assert stop_index(100, m, Range(min=100, max=100)) == 4
        # Both bounds floor to 1
        assert stop_index(0, m, Range(min=0, max=1)) == 4


class TestMissingValues:
    @pytest.mark.parametrize("value", [None, math.nan, "12", True])
    def test_transparent(self, metric, value):
        assert color_for(value, metric(), ACTIVE) == NO_DATA_COLOR
        assert color_for(value, metric(logarithmic=True), ACTIVE) == NO_DATA_COLOR
