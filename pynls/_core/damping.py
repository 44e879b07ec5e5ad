"""
Levenberg-Marquardt damping controller.

Proposes damped steps and adapts the damping factor λ from the outcome of
each trial.
"""

import logging

import numpy as np
from typing import Optional

from .._backends import get_backend
from .solver import solve

logger = logging.getLogger(__name__)


class DampingController:
    """
    Damping controller for Levenberg-Marquardt steps.

    λ → 0 gives Gauss-Newton steps; large λ gives short steps along the
    negative gradient.

    Parameters
    ----------
    damping : float, default=1e-3
        Initial λ
    factor : float, default=10.0
        λ is divided by ``factor`` after an accepted step and multiplied
        by it after a rejected one
    min_damping, max_damping : float
        Clamp range for λ
    rtol : float, optional
        Relative tolerance for rank determination of the augmented system
    backend : str or BackendBase
        Computational backend
    """

    def __init__(
        self,
        damping: float = 1e-3,
        factor: float = 10.0,
        min_damping: float = 1e-15,
        max_damping: float = 1e15,
        rtol: Optional[float] = None,
        backend = 'auto',
    ):
        if factor <= 1.0:
            raise ValueError(f"Damping factor must be > 1, got {factor}")
        if not 0.0 < min_damping <= max_damping:
            raise ValueError(
                f"Invalid damping range [{min_damping}, {max_damping}]"
            )
        self.min_damping = min_damping
        self.max_damping = max_damping
        self.damping = float(np.clip(damping, min_damping, max_damping))
        self.factor = factor
        self.rtol = rtol
        self.backend = get_backend(backend)
        self.exhausted = False

    def propose_step(self, J: np.ndarray, r: np.ndarray) -> np.ndarray:
        """
        Solve the damped normal equations for a parameter step.

        Minimizes ``||J δ + r||² + λ ||δ||²`` by QR of the augmented system

            [   J  ] δ ≈ [ -r ]
            [ √λ I ]     [  0 ]

        which is equivalent to ``(JᵗJ + λI) δ = -Jᵗr`` without forming JᵗJ.

        Parameters
        ----------
        J : ndarray, shape (m, n)
            Jacobian of the residuals
        r : ndarray, shape (m,)
            Current residuals

        Returns
        -------
        delta : ndarray, shape (n,)

        Raises
        ------
        SingularMatrix
            If the augmented factor is singular (includes RankDeficient).
        """
        return self._solve(J, r, self.damping)

    def undamped_step(self, J: np.ndarray, r: np.ndarray) -> np.ndarray:
        """
        Gauss-Newton step for the convergence tests.

        Same system as ``propose_step`` with λ at ``min_damping``; the
        current λ is left unchanged.
        """
        return self._solve(J, r, self.min_damping)

    def _solve(self, J, r, damping):
        n = J.shape[1]
        A = np.vstack([J, np.sqrt(damping) * np.eye(n)])
        b = np.concatenate([-r, np.zeros(n)])

        decomposition = self.backend.qr(A, rtol=self.rtol)
        return solve(decomposition, b, backend=self.backend)

    def accept(self, current_cost: float, trial_cost: float) -> bool:
        """
        Decide on a trial step and adapt λ.

        Returns True (and decreases λ) when the trial cost is strictly
        lower; otherwise increases λ and returns False.
        """
        if trial_cost < current_cost:
            self.damping = max(self.damping / self.factor, self.min_damping)
            return True

        self.increase()
        return False

    def increase(self):
        """Increase λ after a rejected or singular step."""
        if self.damping >= self.max_damping:
            self.exhausted = True
        self.damping = min(self.damping * self.factor, self.max_damping)
        logger.debug("Damping increased to %.3e", self.damping)

    def __repr__(self):
        return (
            f"DampingController(damping={self.damping:.3e}, "
            f"factor={self.factor}, backend={self.backend.name!r})"
        )
