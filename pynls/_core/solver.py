"""
Linear solver.

Back-substitution on triangular factors. Decompositions are delegated to
the backend.
"""

import numpy as np
from typing import Optional

from ..exceptions import DimensionMismatch, RankDeficient, SingularMatrix
from .matrix import QRDecomposition


def back_substitution(R: np.ndarray, b: np.ndarray, tol: float = 0.0) -> np.ndarray:
    """
    Solve R x = b for upper triangular R.

    Parameters
    ----------
    R : ndarray, shape (n, n)
        Upper triangular matrix (entries below the diagonal are ignored)
    b : ndarray, shape (n,) or (n, k)
        Right-hand side
    tol : float
        Absolute threshold; a diagonal entry with magnitude <= tol is
        treated as zero

    Returns
    -------
    x : ndarray
        Solution with the shape of ``b``

    Raises
    ------
    SingularMatrix
        If a diagonal entry is at or below ``tol``.
    """
    R = np.asarray(R, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if R.ndim != 2 or R.shape[0] != R.shape[1]:
        raise DimensionMismatch(f"R must be square, got shape {R.shape}")
    n = R.shape[0]
    if b.shape[0] != n:
        raise DimensionMismatch(
            f"Right-hand side has {b.shape[0]} rows, expected {n}"
        )

    diag = np.abs(np.diag(R))
    bad = np.flatnonzero(~(diag > tol))
    if bad.size:
        raise SingularMatrix(
            f"Singular triangular factor: |R[{bad[0]}, {bad[0]}]| = "
            f"{diag[bad[0]]:.3e} <= {tol:.3e}"
        )

    x = np.array(b, dtype=np.float64, copy=True)
    for i in range(n - 1, -1, -1):
        if i < n - 1:
            x[i] -= R[i, i + 1:] @ x[i + 1:]
        x[i] /= R[i, i]
    return x


def upper_triangular_inverse(R: np.ndarray, tol: float = 0.0, backend = None) -> np.ndarray:
    """Invert an upper triangular matrix by back-substitution on each column."""
    n = np.asarray(R).shape[0]
    if backend is None:
        return back_substitution(R, np.eye(n), tol=tol)
    return backend.solve_triangular(R, np.eye(n), tol=tol)


def qr_decompose(
    A: np.ndarray,
    rtol: Optional[float] = None,
    backend = None,
) -> QRDecomposition:
    """
    QR decomposition.

    Delegates to backend-specific implementation.

    Parameters
    ----------
    A : ndarray, shape (m, n)
        Matrix to decompose, m >= n
    rtol : float, optional
        Relative tolerance for rank determination
    backend : Backend, optional
        Computational backend

    Returns
    -------
    result : QRDecomposition
    """
    if backend is None:
        from .._backends import get_backend
        backend = get_backend('auto')

    return backend.qr(A, rtol=rtol)


def solve(decomposition: QRDecomposition, b: np.ndarray, backend = None) -> np.ndarray:
    """
    Least-squares solution of A x = b from a QR decomposition of A.

    Raises
    ------
    RankDeficient
        If the decomposition was flagged rank-deficient.
    """
    if decomposition.rank_deficient:
        raise RankDeficient(
            f"Rank {decomposition.rank} < {decomposition.shape[1]} columns"
        )
    if backend is None:
        from .._backends import get_backend
        backend = get_backend('auto')

    qtb = decomposition.apply_qt(b)
    return backend.solve_triangular(
        decomposition.R, qtb, tol=decomposition.threshold
    )


def lstsq(
    A: np.ndarray,
    b: np.ndarray,
    rtol: Optional[float] = None,
    backend = None,
) -> np.ndarray:
    """Decompose A and solve the least-squares problem min ||A x - b||."""
    if backend is None:
        from .._backends import get_backend
        backend = get_backend('auto')

    return solve(qr_decompose(A, rtol=rtol, backend=backend), b, backend=backend)
