"""
CPU backend using NumPy + SciPy.

Factorizations go through LAPACK (dgeqrf / dtrtrs via SciPy).
"""

import numpy as np
from scipy.linalg import qr, solve_triangular
from typing import Optional

from .base import CPUBackend
from .._core.matrix import QRDecomposition, rank_threshold, count_rank
from ..exceptions import DimensionMismatch, SingularMatrix


class LapackBackendFP64(CPUBackend):
    """
    CPU backend using NumPy + SciPy.

    Uses LAPACK Householder QR; applies the same rank policy as the
    pure NumPy kernel so both backends flag the same pivots.
    Always uses FP64 precision.
    """

    def __init__(self):
        self.name = "lapack_fp64"
        self.precision = "fp64"

    def qr(
        self,
        A: np.ndarray,
        rtol: Optional[float] = None
    ) -> QRDecomposition:
        """QR decomposition using LAPACK (economic mode)."""
        A = np.asarray(A, dtype=np.float64)
        if A.ndim != 2:
            raise DimensionMismatch("Matrix to decompose must be 2-dimensional")
        m, n = A.shape
        if m < n:
            raise DimensionMismatch(
                f"QR decomposition requires rows >= cols, got {m} x {n}"
            )

        tol, threshold = rank_threshold(A, rtol)
        Q, R = qr(A, mode='economic')

        return QRDecomposition(
            Q=Q,
            R=R,
            shape=(m, n),
            rank=count_rank(R, threshold),
            tol=tol,
            threshold=threshold,
        )

    def solve_triangular(
        self,
        R: np.ndarray,
        b: np.ndarray,
        tol: float = 0.0
    ) -> np.ndarray:
        """Back-substitution using LAPACK after the pivot check."""
        R = np.asarray(R, dtype=np.float64)
        b = np.asarray(b, dtype=np.float64)
        if R.ndim != 2 or R.shape[0] != R.shape[1]:
            raise DimensionMismatch(f"R must be square, got shape {R.shape}")
        if b.shape[0] != R.shape[0]:
            raise DimensionMismatch(
                f"Right-hand side has {b.shape[0]} rows, expected {R.shape[0]}"
            )

        diag = np.abs(np.diag(R))
        if np.any(~(diag > tol)):
            i = int(np.flatnonzero(~(diag > tol))[0])
            raise SingularMatrix(
                f"Singular triangular factor: |R[{i}, {i}]| = "
                f"{diag[i]:.3e} <= {tol:.3e}"
            )

        return solve_triangular(R, b, lower=False)

    def get_device_info(self) -> dict:
        """Get backend information."""
        import scipy
        return {
            'backend': 'cpu',
            'precision': self.precision,
            'algorithm': 'LAPACK Householder QR',
            'library': f'NumPy {np.__version__}, SciPy {scipy.__version__}',
        }
