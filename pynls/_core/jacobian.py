"""
Jacobian strategies.

The strategy is chosen when the fit is configured: either an analytic
derivative supplied with the model or finite differences.
"""

import numpy as np
from typing import Callable, Optional
from dataclasses import dataclass

from ..exceptions import DimensionMismatch
from .matrix import EPS


@dataclass(frozen=True)
class AnalyticJacobian:
    """
    Caller-supplied derivative of the model.

    ``fn(params, x_i)`` returns the partial derivatives of the model
    prediction at ``x_i`` with respect to each parameter.
    """
    fn: Callable

    def evaluate(self, problem, params: np.ndarray) -> np.ndarray:
        n = len(params)
        if problem.vectorized:
            J = np.asarray(self.fn(params, problem.x), dtype=np.float64)
            J = J.reshape(problem.n_points, -1)
        else:
            J = np.array(
                [np.ravel(self.fn(params, xi)) for xi in problem.x],
                dtype=np.float64,
            ).reshape(problem.n_points, -1)

        if J.shape[1] != n:
            raise DimensionMismatch(
                f"Analytic Jacobian returned {J.shape[1]} partials, "
                f"expected {n} (one per parameter)"
            )
        return J * problem.sqrt_weights[:, np.newaxis]


@dataclass(frozen=True)
class NumericJacobian:
    """
    Finite-difference Jacobian of the weighted residuals.

    The step for parameter j is ``step_size * max(|p_j|, 1)``.
    """
    step_size: Optional[float] = None   # Default: sqrt(eps)
    scheme: str = "forward"             # 'forward' or 'central'

    def __post_init__(self):
        if self.scheme not in ("forward", "central"):
            raise ValueError(
                f"Unknown finite-difference scheme: '{self.scheme}'\n"
                f"Valid options: 'forward', 'central'"
            )
        if self.step_size is not None and not self.step_size > 0:
            raise ValueError(f"step_size must be positive, got {self.step_size}")

    def steps(self, params: np.ndarray) -> np.ndarray:
        h = self.step_size if self.step_size is not None else np.sqrt(EPS)
        return h * np.maximum(np.abs(params), 1.0)

    def evaluate(self, problem, params: np.ndarray, r0: Optional[np.ndarray] = None) -> np.ndarray:
        params = np.asarray(params, dtype=np.float64)
        h = self.steps(params)
        J = np.empty((problem.n_points, len(params)))

        if self.scheme == "forward" and r0 is None:
            r0 = problem.residuals(params)

        for j in range(len(params)):
            forward = params.copy()
            forward[j] += h[j]
            if self.scheme == "central":
                backward = params.copy()
                backward[j] -= h[j]
                J[:, j] = (problem.residuals(forward) - problem.residuals(backward)) / (2.0 * h[j])
            else:
                J[:, j] = (problem.residuals(forward) - r0) / h[j]
        return J


__all__ = ["AnalyticJacobian", "NumericJacobian"]
