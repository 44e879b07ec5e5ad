"""
Abstract base classes for backends.

Defines the interface all backends must implement.
"""

from abc import ABC, abstractmethod
import numpy as np
from typing import Optional

from .._core.matrix import QRDecomposition


class BackendBase(ABC):
    """Abstract base class for all backends."""

    name: str = "base"
    precision: str = "fp64"

    @abstractmethod
    def qr(
        self,
        A: np.ndarray,
        rtol: Optional[float] = None
    ) -> QRDecomposition:
        """
        Thin QR decomposition.

        Backends factor with their native routines and return plain NumPy
        arrays, so every consumer sees the same result type.

        Parameters
        ----------
        A : ndarray, shape (m, n)
            Matrix to decompose, m >= n
        rtol : float, optional
            Relative tolerance for rank determination
            (default: eps * max(m, n))

        Returns
        -------
        QRDecomposition
            Q (m, n), R (n, n), rank and thresholds
        """
        pass

    @abstractmethod
    def solve_triangular(
        self,
        R: np.ndarray,
        b: np.ndarray,
        tol: float = 0.0
    ) -> np.ndarray:
        """
        Solve R x = b for upper triangular R.

        Raises SingularMatrix when a diagonal entry is at or below tol.
        """
        pass

    @abstractmethod
    def get_device_info(self) -> dict:
        """Get backend information."""
        pass

    def __repr__(self):
        return f"{type(self).__name__}(name={self.name!r})"


class CPUBackend(BackendBase):
    """CPU backend base class (always FP64)."""
    pass
