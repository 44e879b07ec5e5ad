"""
Numerical integration of scalar functions.
"""

import math

import numpy as np

from ..exceptions import ConvergenceError


def trapezoid(f, a: float, b: float, h: float) -> float:
    """
    Integral of f over [a, b] by the composite trapezoid rule.

    The interval is split into ``ceil((b - a) / h)`` equal panels, so the
    panel width is at most ``h``.

    Parameters
    ----------
    f : callable
        Scalar function
    a, b : float
        Integration limits, a <= b
    h : float
        Maximum panel width (must be positive)

    Returns
    -------
    float
    """
    if b < a:
        raise ValueError(f"Integration limits must satisfy a <= b, got [{a}, {b}]")
    if not h > 0:
        raise ValueError(f"Step size must be positive, got {h}")
    if a == b:
        return 0.0

    n = max(1, math.ceil((b - a) / h))
    xs = np.linspace(a, b, n + 1)
    fx = np.array([f(x) for x in xs], dtype=np.float64)
    width = (b - a) / n

    return float(width * (fx.sum() - 0.5 * (fx[0] + fx[-1])))


def romberg(f, a: float, b: float, acc: float = 1e-10, max_steps: int = 20) -> float:
    """
    Integral of f over [a, b] by Romberg integration.

    Richardson extrapolation of trapezoid estimates with 1, 2, 4, ...
    panels. Row ``i`` of the tableau needs ``2**(i - 1)`` new function
    evaluations.

    Parameters
    ----------
    f : callable
        Scalar function, smooth on [a, b]
    a, b : float
        Integration limits
    acc : float
        Stop when the diagonal entries of two successive rows differ by
        less than ``acc`` (checked from the fourth row on)
    max_steps : int
        Maximum number of tableau rows

    Returns
    -------
    float

    Raises
    ------
    ConvergenceError
        If the accuracy is not reached within ``max_steps`` rows.

    Examples
    --------
    >>> romberg(math.sin, 0.0, math.pi)     # 2.0 to within acc
    """
    if max_steps < 2:
        raise ValueError(f"max_steps must be at least 2, got {max_steps}")

    h = b - a
    previous = [0.5 * h * (f(a) + f(b))]

    for i in range(1, max_steps):
        h /= 2.0
        # midpoints of the previous panels
        c = sum(f(a + (2 * j - 1) * h) for j in range(1, 2 ** (i - 1) + 1))
        current = [h * c + 0.5 * previous[0]]

        for j in range(1, i + 1):
            nk = 4 ** j
            current.append((nk * current[j - 1] - previous[j - 1]) / (nk - 1))

        if i > 2 and abs(previous[i - 1] - current[i]) < acc:
            return current[i]

        previous = current

    raise ConvergenceError(
        f"Romberg integration did not reach {acc} in {max_steps} steps"
    )


__all__ = ["trapezoid", "romberg"]
