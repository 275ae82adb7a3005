"""
Tests for Kelly sizing math
Run with: pytest tests/test_kelly.py -v
"""

import pytest

from edgelab.core.kelly import (
    dollars_to_units,
    fractional_kelly,
    full_kelly,
    normalize_win_probability,
    unit_size,
)
from edgelab.core.odds_math import american_to_decimal


D_110 = american_to_decimal(-110)


class TestFullKelly:

    def test_positive_edge(self):
        assert full_kelly(0.55, D_110) == pytest.approx(0.055, abs=1e-4)

    def test_even_money(self):
        assert full_kelly(0.60, 2.0) == pytest.approx(0.20)

    def test_negative_edge_is_negative(self):
        assert full_kelly(0.45, D_110) < 0

    def test_no_payout(self):
        assert full_kelly(0.9, 1.0) == 0.0


class TestFractionalKelly:

    def test_quarter_kelly(self):
        assert fractional_kelly(0.55, D_110, multiplier=0.25) == pytest.approx(0.01375, abs=1e-5)

    def test_never_negative(self):
        assert fractional_kelly(0.45, D_110) == 0.0

    def test_uncapped_by_default(self):
        """Full Kelly at even money with p=0.65 stakes 30% of bankroll"""
        assert fractional_kelly(0.65, 2.0, multiplier=1.0) == pytest.approx(0.30)

    def test_explicit_cap(self):
        assert fractional_kelly(0.9, 2.0, multiplier=1.0, max_fraction=0.20) == 0.20

    def test_cap_above_fraction_is_inert(self):
        assert fractional_kelly(0.55, D_110, multiplier=0.25, max_fraction=0.20) == pytest.approx(0.01375, abs=1e-5)


class TestProbabilityNormalisation:

    @pytest.mark.parametrize("raw,expected", [
        (0.56, 0.56),
        (56, 0.56),
        (100, None),
        (0, None),
        (None, None),
        (-0.2, None),
        (150, None),
    ])
    def test_normalize(self, raw, expected):
        result = normalize_win_probability(raw)
        if expected is None:
            assert result is None
        else:
            assert result == pytest.approx(expected)


class TestUnits:

    def test_unit_size(self):
        assert unit_size(1000.0, 2.0) == pytest.approx(20.0)

    def test_empty_bankroll(self):
        assert unit_size(0.0, 2.0) == 0.0

    def test_dollars_to_units(self):
        assert dollars_to_units(30.0, 20.0) == pytest.approx(1.5)
        assert dollars_to_units(30.0, 0.0) == 0.0
