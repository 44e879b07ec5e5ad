"""
Explicit solvers for ordinary differential equations dy/dt = f(t, y).

Fixed-step Euler, midpoint and classical Runge-Kutta steppers, and an
adaptive Runge-Kutta driver whose step size is set by a controller from
step-doubling error estimates.
"""

import logging

import numpy as np

from .._utils import check_vector
from ..exceptions import ConvergenceError

logger = logging.getLogger(__name__)


def euler_step(f, t: float, y: np.ndarray, h: float) -> np.ndarray:
    """One forward Euler step (first order)."""
    return y + h * np.asarray(f(t, y), dtype=np.float64)


def midpoint_step(f, t: float, y: np.ndarray, h: float) -> np.ndarray:
    """One explicit midpoint step (second order)."""
    k1 = h * np.asarray(f(t, y), dtype=np.float64)
    k2 = h * np.asarray(f(t + 0.5 * h, y + 0.5 * k1), dtype=np.float64)
    return y + k2


def rk4_step(f, t: float, y: np.ndarray, h: float) -> np.ndarray:
    """One classical fourth-order Runge-Kutta step."""
    k1 = h * np.asarray(f(t, y), dtype=np.float64)
    k2 = h * np.asarray(f(t + 0.5 * h, y + 0.5 * k1), dtype=np.float64)
    k3 = h * np.asarray(f(t + 0.5 * h, y + 0.5 * k2), dtype=np.float64)
    k4 = h * np.asarray(f(t + h, y + k3), dtype=np.float64)
    return y + k1 / 6.0 + k2 / 3.0 + k3 / 3.0 + k4 / 6.0


STEPPERS = {
    'euler': euler_step,
    'midpoint': midpoint_step,
    'rk4': rk4_step,
}


def solve_ode(f, y0, h: float, steps: int, t0: float = 0.0, method: str = 'rk4'):
    """
    Integrate dy/dt = f(t, y) with a fixed step.

    Parameters
    ----------
    f : callable
        ``f(t, y) -> array (n,)``
    y0 : array-like, shape (n,)
        Initial state at ``t0``
    h : float
        Step size (negative integrates backwards)
    steps : int
        Number of steps
    t0 : float
        Initial time
    method : str
        'euler', 'midpoint' or 'rk4'

    Returns
    -------
    t : ndarray, shape (steps + 1,)
    y : ndarray, shape (steps + 1, n)
        State at each time, starting with ``y0``

    Examples
    --------
    >>> t, y = solve_ode(lambda t, y: -y, [1.0], h=0.1, steps=10)
    >>> y[-1]       # close to exp(-1)
    """
    if method not in STEPPERS:
        raise ValueError(
            f"Unknown ODE method: '{method}'\n"
            f"Valid options: {', '.join(STEPPERS)}"
        )
    if h == 0:
        raise ValueError("Step size must be non-zero")
    if steps < 0:
        raise ValueError(f"steps must be non-negative, got {steps}")

    step = STEPPERS[method]
    y = check_vector(np.atleast_1d(y0), name='y0')

    t = t0 + h * np.arange(steps + 1)
    out = np.empty((steps + 1, y.size))
    out[0] = y
    for i in range(steps):
        out[i + 1] = step(f, t[i], out[i], h)

    return t, out


class StepSizeController:
    """
    Step-size controller for adaptive integration.

    Accepts a step when its scaled error estimate is at most 1 and
    proposes the next step size from the error, within
    ``[min_scale, max_scale]`` times the current one. After a rejection
    the following accepted step is not allowed to grow.

    Parameters
    ----------
    order : int
        Order of the error estimate; the exponent is ``1 / (order + 1)``
    safety : float
        Safety factor applied to the optimal scale
    min_scale, max_scale : float
        Limits on the change of step size
    """

    def __init__(self, order: int = 4, safety: float = 0.9,
                 min_scale: float = 0.2, max_scale: float = 10.0):
        self.alpha = 1.0 / (order + 1)
        self.safety = safety
        self.min_scale = min_scale
        self.max_scale = max_scale
        self.rejected = False
        self.h_next = 0.0

    def accept(self, err: float, h: float):
        """
        Decide on a step with scaled error ``err``.

        Returns
        -------
        accepted : bool
        h : float
            Step size to use next (after acceptance) or to retry with
        """
        if err <= 1.0:
            if err == 0.0:
                scale = self.max_scale
            else:
                scale = min(self.max_scale,
                            max(self.min_scale, self.safety * err ** -self.alpha))
            if self.rejected:
                scale = min(scale, 1.0)
            self.h_next = h * scale
            self.rejected = False
            return True, self.h_next

        scale = max(self.safety * err ** -self.alpha, self.min_scale)
        self.rejected = True
        return False, h * scale


def solve_ode_adaptive(f, y0, t0: float, t1: float, h0: float = 1e-2,
                       atol: float = 1e-8, rtol: float = 1e-6,
                       max_steps: int = 100_000):
    """
    Integrate dy/dt = f(t, y) from t0 to t1 with adaptive RK4 steps.

    Each step is taken once with ``h`` and twice with ``h / 2``; the
    difference estimates the local error, and the two half steps plus a
    Richardson correction give the accepted state.

    Parameters
    ----------
    f : callable
        ``f(t, y) -> array (n,)``
    y0 : array-like, shape (n,)
        Initial state at ``t0``
    t0, t1 : float
        Integration interval, t1 > t0
    h0 : float
        Initial step size
    atol, rtol : float
        Absolute and relative error tolerances per component
    max_steps : int
        Maximum number of attempted steps

    Returns
    -------
    t : ndarray, shape (k,)
        Accepted times, from ``t0`` to ``t1``
    y : ndarray, shape (k, n)
        States at those times

    Raises
    ------
    ConvergenceError
        If ``t1`` is not reached within ``max_steps`` attempts or the step
        size underflows.
    """
    if not t1 > t0:
        raise ValueError(f"t1 must be greater than t0, got [{t0}, {t1}]")
    if not h0 > 0:
        raise ValueError(f"Initial step must be positive, got {h0}")

    y = check_vector(np.atleast_1d(y0), name='y0')
    t = t0
    h = h0
    controller = StepSizeController(order=4)
    times, states = [t], [y]

    attempts = 0
    while t < t1:
        if attempts >= max_steps:
            raise ConvergenceError(
                f"Adaptive integration stopped at t = {t} after {max_steps} steps"
            )
        attempts += 1

        last = h >= t1 - t
        if last:
            h = t1 - t
        if t + h == t:
            raise ConvergenceError(f"Step size underflow at t = {t}")

        full = rk4_step(f, t, y, h)
        half = rk4_step(f, t, y, 0.5 * h)
        half = rk4_step(f, t + 0.5 * h, half, 0.5 * h)

        scale = atol + rtol * np.maximum(np.abs(y), np.abs(half))
        err = float(np.max(np.abs(half - full) / scale)) / 15.0

        accepted, h_new = controller.accept(err, h)
        if accepted:
            t = t1 if last else t + h
            y = half + (half - full) / 15.0
            times.append(t)
            states.append(y)
        else:
            logger.debug("ODE step rejected at t=%.6g (h=%.3e, err=%.3e)", t, h, err)
        h = h_new

    return np.array(times), np.array(states)


__all__ = [
    "euler_step",
    "midpoint_step",
    "rk4_step",
    "solve_ode",
    "StepSizeController",
    "solve_ode_adaptive",
]
