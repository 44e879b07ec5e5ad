"""
CPU backend using the pure NumPy Householder kernel.

This is the reference implementation and the default backend.
"""

import numpy as np
from typing import Optional

from .base import CPUBackend
from .._core.matrix import QRDecomposition, householder_qr
from .._core.solver import back_substitution


class HouseholderBackendFP64(CPUBackend):
    """
    CPU backend using explicit Householder reflections in NumPy.

    Always uses FP64 precision.
    """

    def __init__(self):
        self.name = "householder_fp64"
        self.precision = "fp64"

    def qr(
        self,
        A: np.ndarray,
        rtol: Optional[float] = None
    ) -> QRDecomposition:
        return householder_qr(A, rtol=rtol)

    def solve_triangular(
        self,
        R: np.ndarray,
        b: np.ndarray,
        tol: float = 0.0
    ) -> np.ndarray:
        return back_substitution(R, b, tol=tol)

    def get_device_info(self) -> dict:
        """Get backend information."""
        return {
            'backend': 'cpu',
            'precision': self.precision,
            'algorithm': 'Householder QR (NumPy)',
            'library': f'NumPy {np.__version__}',
        }
