"""
Test interpolation and numerical integration.
"""

import math

import pytest
import numpy as np

from pynls import (
    neville,
    interpolate_linear,
    trapezoid,
    romberg,
    ConvergenceError,
    DimensionMismatch,
)


class TestNeville:
    """Test polynomial interpolation."""

    def test_parabola_through_three_points(self):
        assert neville([-1.0, 0.0, 1.0], [2.0, 0.0, 2.0], 1.0) == 2.0
        assert neville([-1.0, 0.0, 1.0], [2.0, 0.0, 2.0], 0.5) == pytest.approx(0.5)

    def test_reproduces_cubic(self):
        """Four nodes reproduce a cubic exactly, inside and outside the nodes."""
        xs = np.array([0.0, 1.0, 2.0, 3.0])
        ys = xs ** 3 - 2.0 * xs
        for x in (1.5, 2.7, 4.0):
            assert neville(xs, ys, x) == pytest.approx(x ** 3 - 2.0 * x, rel=1e-12)

    def test_single_node(self):
        assert neville([2.0], [7.0], 10.0) == 7.0

    def test_duplicate_nodes(self):
        with pytest.raises(ValueError, match="distinct"):
            neville([0.0, 1.0, 1.0], [0.0, 1.0, 2.0], 0.5)

    def test_length_mismatch(self):
        with pytest.raises(DimensionMismatch):
            neville([0.0, 1.0], [0.0], 0.5)


class TestLinearInterpolation:
    """Test piecewise linear interpolation."""

    def test_between_two_points(self):
        assert interpolate_linear([0.0, 2.0], [1.0, 0.5], 1.0) == 0.75
        assert interpolate_linear([0.0, 2.0], [1.0, 2.0], 1.0) == 1.5

    def test_segment_not_starting_at_zero(self):
        assert interpolate_linear([1.0, 3.0], [0.0, 4.0], 2.0) == pytest.approx(2.0)

    def test_nodes_and_ends(self):
        xs = [0.0, 1.0, 2.0]
        ys = [3.0, -1.0, 5.0]
        for x, y in zip(xs, ys):
            assert interpolate_linear(xs, ys, x) == y

    def test_array_input(self):
        result = interpolate_linear([0.0, 1.0, 2.0], [0.0, 10.0, 0.0], [0.5, 1.0, 1.5])
        np.testing.assert_allclose(result, [5.0, 10.0, 5.0])

    def test_out_of_range(self):
        with pytest.raises(ValueError, match="outside"):
            interpolate_linear([0.0, 1.0], [0.0, 1.0], 1.5)

    def test_unsorted_nodes(self):
        with pytest.raises(ValueError, match="increasing"):
            interpolate_linear([1.0, 0.0], [0.0, 1.0], 0.5)


class TestTrapezoid:
    """Test the composite trapezoid rule."""

    def test_sine(self):
        """∫ sin over [0, π] is 2."""
        assert trapezoid(math.sin, 0.0, math.pi, 0.001) == pytest.approx(2.0, abs=1e-3)

    def test_linear_is_exact(self):
        """Straight lines are integrated exactly for any panel width."""
        assert trapezoid(lambda x: 2.0 * x + 1.0, 0.0, 3.0, 0.7) == pytest.approx(12.0, abs=1e-12)

    def test_empty_interval(self):
        assert trapezoid(math.exp, 1.0, 1.0, 0.1) == 0.0

    @pytest.mark.parametrize("a, b, h", [(1.0, 0.0, 0.01), (0.0, 1.0, 0.0), (0.0, 1.0, -0.01)])
    def test_invalid_arguments(self, a, b, h):
        with pytest.raises(ValueError):
            trapezoid(math.sin, a, b, h)


class TestRomberg:
    """Test Romberg integration."""

    def test_sine(self):
        assert romberg(math.sin, 0.0, math.pi) == pytest.approx(2.0, abs=1e-8)

    def test_polynomial_times_log(self):
        """∫ x⁴ log10(x + √(x² + 1)) over [0, 2] ≈ 3.5410."""
        area = romberg(
            lambda x: x ** 4 * math.log10(x + math.sqrt(x * x + 1.0)),
            0.0, 2.0, acc=1e-10,
        )
        assert area == pytest.approx(3.5410, abs=1e-3)

    def test_not_converged(self):
        """Too few rows for the accuracy test raises."""
        with pytest.raises(ConvergenceError):
            romberg(math.sin, 0.0, math.pi, acc=1e-10, max_steps=3)
