"""
Derivative-free minimization.

Golden-section search on a bracket and the Nelder-Mead simplex method.
"""

import numpy as np

from .._utils import check_vector

INV_PHI = (np.sqrt(5.0) - 1.0) / 2.0   # 1 / golden ratio


def golden_section(f, a: float, c: float, tol: float = 1e-8, max_iter: int = 500) -> float:
    """
    Local minimum of f in [a, c] by golden-section search.

    The bracket shrinks by the golden ratio each iteration, reusing one
    interior function value.

    Parameters
    ----------
    f : callable
        Unimodal scalar function on [a, c]
    a, c : float
        Bracket ends
    tol : float
        Width of the final bracket

    Returns
    -------
    float
        Midpoint of the final bracket
    """
    if not tol > 0:
        raise ValueError(f"tol must be positive, got {tol}")
    a, b = min(a, c), max(a, c)

    x1 = b - INV_PHI * (b - a)
    x2 = a + INV_PHI * (b - a)
    f1, f2 = f(x1), f(x2)
    for _ in range(max_iter):
        if b - a <= tol:
            break
        if f1 < f2:
            b, x2, f2 = x2, x1, f1
            x1 = b - INV_PHI * (b - a)
            f1 = f(x1)
        else:
            a, x1, f1 = x1, x2, f2
            x2 = a + INV_PHI * (b - a)
            f2 = f(x2)

    return 0.5 * (a + b)


def nelder_mead(
    f,
    p0,
    max_iter: int = 1000,
    tol: float = 1e-12,
    alpha: float = 1.0,
    gamma: float = 2.0,
    rho: float = 0.5,
    sigma: float = 0.5,
) -> np.ndarray:
    """
    Local minimum of f by the Nelder-Mead simplex method.

    Parameters
    ----------
    f : callable
        ``f(p) -> float`` for ``p`` of shape (n,)
    p0 : array-like, shape (n,)
        Starting point; the initial simplex is ``p0`` and ``p0 + e_i``
    max_iter : int
        Maximum number of simplex updates
    tol : float
        Stop when the spread of function values over the simplex is
        at or below ``tol``
    alpha, gamma, rho, sigma : float
        Reflection, expansion, contraction and shrink coefficients

    Returns
    -------
    ndarray, shape (n,)
        Best vertex of the final simplex
    """
    p0 = check_vector(p0, name='p0')
    n = p0.size

    simplex = np.vstack([p0, p0 + np.eye(n)])
    values = np.array([f(p) for p in simplex], dtype=np.float64)

    for _ in range(max_iter):
        order = np.argsort(values)
        simplex, values = simplex[order], values[order]
        if values[-1] - values[0] <= tol:
            break

        centroid = simplex[:-1].mean(axis=0)

        xr = centroid + alpha * (centroid - simplex[-1])
        fr = f(xr)
        if values[0] <= fr < values[-2]:
            simplex[-1], values[-1] = xr, fr
            continue

        if fr < values[0]:
            xe = centroid + gamma * (xr - centroid)
            fe = f(xe)
            if fe < fr:
                simplex[-1], values[-1] = xe, fe
            else:
                simplex[-1], values[-1] = xr, fr
            continue

        if fr < values[-1]:
            xc = centroid + rho * (xr - centroid)
            fc = f(xc)
            if fc < fr:
                simplex[-1], values[-1] = xc, fc
                continue
        else:
            xc = centroid + rho * (simplex[-1] - centroid)
            fc = f(xc)
            if fc < values[-1]:
                simplex[-1], values[-1] = xc, fc
                continue

        # shrink towards the best vertex
        simplex[1:] = simplex[0] + sigma * (simplex[1:] - simplex[0])
        values[1:] = [f(p) for p in simplex[1:]]

    return simplex[np.argmin(values)].copy()


__all__ = ["golden_section", "nelder_mead"]
