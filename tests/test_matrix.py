"""
Test the dense matrix kernel: multiply, transpose, Householder QR.
"""

import pytest
import numpy as np

from pynls._core.matrix import multiply, transpose, householder_qr
from pynls.exceptions import DimensionMismatch


class TestMultiplyTranspose:
    """Test elementary matrix operations."""

    def test_multiply_shape(self):
        """Product has shape (A.rows, B.cols)."""
        A = np.arange(6.0).reshape(2, 3)
        B = np.arange(12.0).reshape(3, 4)
        C = multiply(A, B)
        assert C.shape == (2, 4)
        np.testing.assert_allclose(C, A @ B)

    def test_multiply_vector(self):
        """Matrix-vector product."""
        A = np.array([[1.0, 2.0], [3.0, 4.0]])
        np.testing.assert_allclose(multiply(A, [1.0, 1.0]), [3.0, 7.0])

    def test_multiply_mismatch(self):
        """Inner dimensions must agree."""
        with pytest.raises(DimensionMismatch):
            multiply(np.ones((2, 3)), np.ones((2, 3)))

    def test_transpose(self):
        """Transpose swaps dimensions and returns a new array."""
        A = np.arange(6.0).reshape(2, 3)
        T = transpose(A)
        assert T.shape == (3, 2)
        np.testing.assert_array_equal(T, A.T)
        T[0, 0] = 99.0
        assert A[0, 0] == 0.0


class TestHouseholderQR:
    """Test Householder QR decomposition."""

    def test_reconstruction(self):
        """Q R reproduces A, Q has orthonormal columns, R is upper triangular."""
        np.random.seed(42)
        A = np.random.randn(8, 3)
        qr = householder_qr(A)

        assert qr.Q.shape == (8, 3)
        assert qr.R.shape == (3, 3)
        assert qr.shape == (8, 3)
        np.testing.assert_allclose(qr.Q @ qr.R, A, atol=1e-12)
        np.testing.assert_allclose(qr.Q.T @ qr.Q, np.eye(3), atol=1e-12)
        np.testing.assert_array_equal(qr.R, np.triu(qr.R))
        assert qr.rank == 3
        assert not qr.rank_deficient

    def test_square(self):
        """Square matrices decompose fully."""
        A = np.array([[4.0, 1.0], [2.0, 3.0]])
        qr = householder_qr(A)
        np.testing.assert_allclose(qr.Q @ qr.R, A, atol=1e-12)
        assert qr.rank == 2

    def test_matches_numpy_up_to_sign(self):
        """|R| agrees with LAPACK's R."""
        np.random.seed(0)
        A = np.random.randn(10, 4)
        R_ref = np.linalg.qr(A, mode='reduced')[1]
        np.testing.assert_allclose(np.abs(householder_qr(A).R), np.abs(R_ref), atol=1e-12)

    def test_input_not_modified(self):
        """Decomposition works on a copy."""
        A = np.array([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]])
        original = A.copy()
        householder_qr(A)
        np.testing.assert_array_equal(A, original)

    def test_zero_column_flagged(self):
        """A zero column gives a zero pivot and reduced rank."""
        A = np.array([[1.0, 0.0], [2.0, 0.0], [3.0, 0.0]])
        qr = householder_qr(A)
        assert qr.rank == 1
        assert qr.rank_deficient
        assert qr.R[1, 1] == 0.0

    def test_dependent_columns_flagged(self):
        """Linearly dependent columns are flagged with a relative tolerance."""
        np.random.seed(42)
        X = np.random.randn(20, 2)
        A = np.column_stack([X, X[:, 0] + X[:, 1]])
        qr = householder_qr(A, rtol=1e-10)
        assert qr.rank == 2
        assert qr.rank_deficient

    def test_default_tolerance(self):
        """Default relative tolerance is eps * max(m, n)."""
        A = np.array([[2.0, 0.0], [0.0, -4.0], [0.0, 0.0]])
        qr = householder_qr(A)
        eps = np.finfo(np.float64).eps
        assert qr.tol == pytest.approx(3 * eps)
        assert qr.threshold == pytest.approx(3 * eps * 4.0)

    def test_underdetermined_rejected(self):
        """rows < cols is not supported."""
        with pytest.raises(DimensionMismatch):
            householder_qr(np.ones((2, 3)))

    def test_apply_qt(self):
        """Qᵗ b has one entry per column."""
        np.random.seed(1)
        A = np.random.randn(6, 2)
        b = np.random.randn(6)
        qr = householder_qr(A)
        np.testing.assert_allclose(qr.apply_qt(b), qr.Q.T @ b)
        with pytest.raises(DimensionMismatch):
            qr.apply_qt(np.ones(5))
