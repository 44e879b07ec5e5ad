"""
Fit problem, state and result types.
"""

import numpy as np
from enum import Enum
from typing import Callable, List, Optional, Union
from dataclasses import dataclass, field

from .._utils import check_array, check_vector, check_same_length
from ..exceptions import DimensionMismatch
from .jacobian import AnalyticJacobian, NumericJacobian


class FitStatus(str, Enum):
    """States of a fitting run."""
    INITIALIZED = "initialized"
    ITERATING = "iterating"
    CONVERGED = "converged"
    MAX_ITERATIONS_EXCEEDED = "max_iterations_exceeded"
    DIVERGED = "diverged"
    NUMERICAL_FAILURE = "numerical_failure"


@dataclass(frozen=True, eq=False)
class FitProblem:
    """
    Immutable description of a least-squares fit.

    Parameters
    ----------
    model : callable
        ``model(params, x_i) -> float``; with ``vectorized=True``,
        ``model(params, x) -> ndarray`` over all points
    x : array-like, shape (m,) or (m, d)
        Inputs; rows of a 2-D array are passed for multivariate models
    y : array-like, shape (m,)
        Observations
    weights : array-like, shape (m,), optional
        Non-negative per-point weights (default: uniform)
    jacobian : callable, AnalyticJacobian or NumericJacobian, optional
        Analytic derivative ``fn(params, x_i) -> ndarray (n,)`` or a
        strategy; finite differences are used when omitted
    n_params : int, optional
        Number of parameters the model expects
    vectorized : bool
        Evaluate model (and analytic Jacobian) on all points at once
    """
    model: Callable
    x: np.ndarray
    y: np.ndarray
    weights: Optional[np.ndarray] = None
    jacobian: Optional[Union[Callable, AnalyticJacobian, NumericJacobian]] = None
    n_params: Optional[int] = None
    vectorized: bool = False

    def __post_init__(self):
        x = check_array(self.x, name='x', ndims=(1, 2))
        y = check_vector(self.y, name='y')
        check_same_length(x, y, 'x', 'y')
        if len(y) == 0:
            raise DimensionMismatch("At least one data point is required")

        if self.weights is None:
            w = np.ones(len(y))
        else:
            w = check_vector(self.weights, name='weights')
            check_same_length(w, y, 'weights', 'y')
            if np.any(w < 0):
                raise ValueError("weights must be non-negative")

        jacobian = self.jacobian
        if jacobian is not None and not isinstance(jacobian, (AnalyticJacobian, NumericJacobian)):
            if not callable(jacobian):
                raise TypeError("jacobian must be callable or a Jacobian strategy")
            jacobian = AnalyticJacobian(jacobian)

        if self.n_params is not None and self.n_params < 1:
            raise ValueError("n_params must be at least 1")

        # frozen dataclass: normalized arrays are stored via object.__setattr__
        object.__setattr__(self, 'x', x)
        object.__setattr__(self, 'y', y)
        object.__setattr__(self, 'weights', w)
        object.__setattr__(self, 'jacobian', jacobian)
        object.__setattr__(self, 'sqrt_weights', np.sqrt(w))

    @property
    def n_points(self) -> int:
        return len(self.y)

    def predict(self, params: np.ndarray, x: Optional[np.ndarray] = None) -> np.ndarray:
        """Model predictions at ``x`` (default: the data inputs)."""
        x = self.x if x is None else np.asarray(x, dtype=np.float64)
        if self.vectorized:
            out = np.asarray(self.model(params, x), dtype=np.float64).ravel()
            if out.size != len(x):
                raise DimensionMismatch(
                    f"Vectorized model returned {out.size} values for {len(x)} points"
                )
            return out
        return np.array([self.model(params, xi) for xi in x], dtype=np.float64)

    def residuals(self, params: np.ndarray) -> np.ndarray:
        """Weighted residuals √w_i (model(params, x_i) - y_i)."""
        return self.sqrt_weights * (self.predict(params) - self.y)

    def cost(self, params: np.ndarray) -> float:
        """Weighted residual sum of squares."""
        r = self.residuals(params)
        return float(r @ r)


@dataclass
class FitState:
    """Mutable state of one fitting run."""
    params: np.ndarray
    residuals: np.ndarray
    cost: float
    damping: float
    iteration: int = 0
    rejections: int = 0
    n_function_evals: int = 1
    n_jacobian_evals: int = 0
    status: FitStatus = FitStatus.INITIALIZED
    message: str = ""
    cost_history: List[float] = field(default_factory=list)


@dataclass(frozen=True)
class FitResult:
    """Terminal snapshot of a fitting run."""
    params: np.ndarray                  # Final (best) parameters
    covariance: Optional[np.ndarray]    # σ² (JᵗJ)⁻¹, None if unavailable
    cost: float                         # Weighted residual sum of squares
    iterations: int                     # Jacobian evaluations performed
    status: FitStatus                   # Terminal status
    message: str = ""
    n_function_evals: int = 0
    n_jacobian_evals: int = 0
    dof: int = 0                        # n_points - n_params
    cost_history: tuple = ()            # Cost after each accepted step

    @property
    def converged(self) -> bool:
        return self.status == FitStatus.CONVERGED

    @property
    def success(self) -> bool:
        """True when usable parameters were produced."""
        return self.status in (FitStatus.CONVERGED, FitStatus.MAX_ITERATIONS_EXCEEDED)

    @property
    def std_errors(self) -> Optional[np.ndarray]:
        """Standard errors of the parameters."""
        if self.covariance is None:
            return None
        return np.sqrt(np.diag(self.covariance))
