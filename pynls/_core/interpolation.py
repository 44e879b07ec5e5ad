"""
Interpolation of errorless datasets.
"""

import numpy as np

from .._utils import check_vector, check_same_length
from ..exceptions import DimensionMismatch


def neville(xs, ys, x: float) -> float:
    """
    Value at ``x`` of the polynomial through the points (xs, ys).

    Uses Neville's algorithm, which builds the interpolating polynomial of
    degree ``len(xs) - 1`` from successive linear combinations without
    computing its coefficients. Outside [min(xs), max(xs)] this
    extrapolates.

    Parameters
    ----------
    xs, ys : array-like, shape (n,)
        Nodes and values; nodes must be distinct
    x : float
        Evaluation point

    Returns
    -------
    float

    Examples
    --------
    >>> neville([-1.0, 0.0, 1.0], [2.0, 0.0, 2.0], 0.5)
    0.5
    """
    xs = check_vector(xs, name='xs')
    ys = check_vector(ys, name='ys')
    check_same_length(xs, ys, 'xs', 'ys')
    n = len(xs)
    if n == 0:
        raise DimensionMismatch("At least one node is required")
    if len(np.unique(xs)) != n:
        raise ValueError("Interpolation nodes must be distinct")

    q = ys.copy()
    for k in range(1, n):
        # q[i] holds the polynomial through xs[i], ..., xs[i + k]
        q[:n - k] = ((x - xs[k:]) * q[:n - k] + (xs[:n - k] - x) * q[1:n - k + 1]) / (
            xs[:n - k] - xs[k:]
        )

    return float(q[0])


def interpolate_linear(xs, ys, x):
    """
    Piecewise linear interpolation of (xs, ys).

    Parameters
    ----------
    xs : array-like, shape (n,)
        Strictly increasing nodes
    ys : array-like, shape (n,)
        Values at the nodes
    x : float or array-like
        Evaluation point(s) inside [xs[0], xs[-1]]

    Returns
    -------
    float or ndarray
        Interpolated value(s), matching the shape of ``x``

    Raises
    ------
    ValueError
        If the nodes are not increasing or ``x`` is outside the nodes.
    """
    xs = check_vector(xs, name='xs')
    ys = check_vector(ys, name='ys')
    check_same_length(xs, ys, 'xs', 'ys')
    if len(xs) < 2:
        raise DimensionMismatch("At least two nodes are required")
    if np.any(np.diff(xs) <= 0):
        raise ValueError("xs must be strictly increasing")

    x_arr = np.asarray(x, dtype=np.float64)
    if np.any(x_arr < xs[0]) or np.any(x_arr > xs[-1]):
        raise ValueError(
            f"Evaluation point outside the interpolation range [{xs[0]}, {xs[-1]}]"
        )

    # index of the right end of each segment
    i = np.clip(np.searchsorted(xs, x_arr, side='right'), 1, len(xs) - 1)
    x0, x1 = xs[i - 1], xs[i]
    y0, y1 = ys[i - 1], ys[i]
    result = y0 + (x_arr - x0) * (y1 - y0) / (x1 - x0)

    if result.ndim == 0:
        return float(result)
    return result


__all__ = ["neville", "interpolate_linear"]
