"""
Test back-substitution and QR least-squares solves.
"""

import pytest
import numpy as np

from pynls._core.solver import (
    back_substitution,
    upper_triangular_inverse,
    qr_decompose,
    solve,
    lstsq,
)
from pynls._core.matrix import householder_qr
from pynls.exceptions import DimensionMismatch, SingularMatrix, RankDeficient


R = np.array([
    [2.0, 1.0, 1.0],
    [0.0, 3.0, 2.0],
    [0.0, 0.0, 4.0],
])


class TestBackSubstitution:
    """Test triangular solves."""

    def test_solution(self):
        """Solves R x = b exactly for a small system."""
        b = np.array([1.0, 2.0, 8.0])
        x = back_substitution(R, b)
        np.testing.assert_allclose(R @ x, b)
        np.testing.assert_allclose(x, [-0.5, -2.0 / 3.0, 2.0])

    def test_matrix_rhs(self):
        """Multiple right-hand sides are solved column-wise."""
        B = np.eye(3)
        X = back_substitution(R, B)
        np.testing.assert_allclose(R @ X, B, atol=1e-14)

    def test_inverse(self):
        """Triangular inverse matches numpy."""
        np.testing.assert_allclose(upper_triangular_inverse(R), np.linalg.inv(R), atol=1e-14)

    @pytest.mark.parametrize("name", ["householder", "lapack"])
    def test_inverse_through_backend(self, name):
        """Backends give the same triangular inverse."""
        from pynls._backends import get_backend
        inv = upper_triangular_inverse(R, backend=get_backend(name))
        np.testing.assert_allclose(inv, np.linalg.inv(R), atol=1e-14)

    def test_singular(self):
        """A zero pivot raises SingularMatrix."""
        S = R.copy()
        S[1, 1] = 0.0
        with pytest.raises(SingularMatrix):
            back_substitution(S, np.ones(3))

    def test_pivot_below_tolerance(self):
        """Small pivots are treated as zero relative to tol."""
        S = R.copy()
        S[2, 2] = 1e-14
        with pytest.raises(SingularMatrix):
            back_substitution(S, np.ones(3), tol=1e-12)

    def test_non_square(self):
        """R must be square."""
        with pytest.raises(DimensionMismatch):
            back_substitution(np.ones((3, 2)), np.ones(3))

    def test_rhs_length(self):
        """b must match R."""
        with pytest.raises(DimensionMismatch):
            back_substitution(R, np.ones(2))


class TestLeastSquares:
    """Test least-squares solves through QR."""

    @pytest.mark.parametrize("backend", ["householder", "lapack"])
    def test_lstsq_matches_numpy(self, backend):
        """Solution agrees with numpy.linalg.lstsq."""
        np.random.seed(42)
        A = np.random.randn(30, 4)
        b = np.random.randn(30)
        expected = np.linalg.lstsq(A, b, rcond=None)[0]
        np.testing.assert_allclose(lstsq(A, b, backend=backend), expected, rtol=1e-10)

    def test_exact_system(self):
        """Consistent overdetermined system is solved exactly."""
        A = np.array([[1.0, 0.0], [1.0, 1.0], [1.0, 2.0]])
        beta = np.array([3.0, 2.0])
        x = solve(qr_decompose(A), A @ beta)
        np.testing.assert_allclose(x, beta, atol=1e-12)

    def test_rank_deficient_raises(self):
        """Solving against a flagged decomposition raises RankDeficient."""
        A = np.array([[1.0, 0.0], [2.0, 0.0], [3.0, 0.0]])
        qr = householder_qr(A)
        with pytest.raises(RankDeficient):
            solve(qr, np.ones(3))

    def test_rank_deficient_is_singular(self):
        """RankDeficient is handled wherever SingularMatrix is."""
        assert issubclass(RankDeficient, SingularMatrix)
