"""
Dense matrix kernel.

Multiply, transpose and Householder QR on float64 NumPy arrays.
"""

import numpy as np
from typing import Optional
from dataclasses import dataclass

from ..exceptions import DimensionMismatch


EPS = np.finfo(np.float64).eps


@dataclass
class QRDecomposition:
    """Result of a thin QR decomposition."""
    Q: np.ndarray            # Orthogonal factor, shape (m, n)
    R: np.ndarray            # Upper triangular factor, shape (n, n)
    shape: tuple             # Shape of the decomposed matrix
    rank: int                # Number of pivots above threshold
    tol: float               # Relative tolerance used
    threshold: float         # Absolute pivot threshold (tol * max|A|)

    @property
    def rank_deficient(self) -> bool:
        return self.rank < self.shape[1]

    def apply_qt(self, b: np.ndarray) -> np.ndarray:
        """Compute Qᵗ b (first n components of the full product)."""
        b = np.asarray(b, dtype=np.float64)
        if b.shape[0] != self.shape[0]:
            raise DimensionMismatch(
                f"Right-hand side has {b.shape[0]} rows, expected {self.shape[0]}"
            )
        return self.Q.T @ b


def multiply(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    """
    Matrix product A B.

    Parameters
    ----------
    A : ndarray, shape (m, k)
    B : ndarray, shape (k, n) or (k,)

    Returns
    -------
    ndarray, shape (m, n) or (m,)

    Raises
    ------
    DimensionMismatch
        If the inner dimensions differ.
    """
    A = np.atleast_2d(np.asarray(A, dtype=np.float64))
    B = np.asarray(B, dtype=np.float64)
    if A.shape[1] != B.shape[0]:
        raise DimensionMismatch(
            f"Cannot multiply {A.shape} by {B.shape}: "
            f"{A.shape[1]} columns vs {B.shape[0]} rows"
        )
    return A @ B


def transpose(A: np.ndarray) -> np.ndarray:
    """Return a new matrix with rows and columns swapped."""
    return np.array(np.atleast_2d(A).T, dtype=np.float64)


def rank_threshold(A: np.ndarray, rtol: Optional[float] = None):
    """
    Pivot threshold for rank determination.

    Returns ``(rtol, threshold)`` where ``threshold = rtol * max|A|`` and
    ``rtol`` defaults to ``eps * max(m, n)``.
    """
    m, n = A.shape
    if rtol is None:
        rtol = EPS * max(m, n)
    scale = np.max(np.abs(A)) if A.size else 0.0
    return rtol, rtol * scale


def count_rank(R: np.ndarray, threshold: float) -> int:
    """Number of diagonal entries of R strictly above threshold."""
    if R.size == 0:
        return 0
    return int(np.sum(np.abs(np.diag(R)) > threshold))


def householder_qr(A: np.ndarray, rtol: Optional[float] = None) -> QRDecomposition:
    """
    Thin QR decomposition by Householder reflections.

    Parameters
    ----------
    A : ndarray, shape (m, n)
        Matrix to decompose, m >= n. Not modified.
    rtol : float, optional
        Relative tolerance for rank determination.

    Returns
    -------
    result : QRDecomposition
        ``Q`` (m, n) with orthonormal columns and ``R`` (n, n) upper
        triangular such that ``A = Q R``.

    Notes
    -----
    Column k of the working matrix is reflected onto ``alpha * e_k`` with
    ``alpha = -sign(x_0) ||x||``, which avoids cancellation when forming
    the Householder vector. Q is accumulated by applying the stored
    reflections in reverse order to the first n columns of the identity.

    The decomposition itself never fails. Diagonal entries of R whose
    magnitude is at or below ``rtol * max|A|`` are not counted towards the
    rank; solving against a rank-deficient factor raises at the solve stage.
    """
    A = np.asarray(A, dtype=np.float64)
    if A.ndim != 2:
        raise DimensionMismatch("Matrix to decompose must be 2-dimensional")
    m, n = A.shape
    if m < n:
        raise DimensionMismatch(
            f"QR decomposition requires rows >= cols, got {m} x {n}"
        )

    tol, threshold = rank_threshold(A, rtol)

    W = A.copy()
    reflectors = []
    for k in range(n):
        x = W[k:, k]
        norm_x = np.linalg.norm(x)
        if norm_x == 0.0:
            reflectors.append(None)
            continue

        alpha = -np.copysign(norm_x, x[0])
        v = x.copy()
        v[0] -= alpha
        norm_v = np.linalg.norm(v)
        if norm_v == 0.0:
            reflectors.append(None)
            continue
        v /= norm_v

        # H = I - 2 v vᵗ applied to the trailing block
        W[k:, k:] -= 2.0 * np.outer(v, v @ W[k:, k:])
        W[k + 1:, k] = 0.0
        reflectors.append(v)

    Q = np.eye(m, n)
    for k in reversed(range(n)):
        v = reflectors[k]
        if v is None:
            continue
        Q[k:, :] -= 2.0 * np.outer(v, v @ Q[k:, :])

    R = np.triu(W[:n, :])

    return QRDecomposition(
        Q=Q,
        R=R,
        shape=(m, n),
        rank=count_rank(R, threshold),
        tol=tol,
        threshold=threshold,
    )


__all__ = [
    "QRDecomposition",
    "multiply",
    "transpose",
    "rank_threshold",
    "count_rank",
    "householder_qr",
]
