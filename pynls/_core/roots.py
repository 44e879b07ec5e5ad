"""
Root finding for scalar functions.

Bracketing methods (bisection, regula falsi, Ridder) need ``f(a)`` and
``f(b)`` of opposite sign; the secant method only needs two starting
points.
"""

import math

from ..exceptions import ConvergenceError


def _check_bracket(fa, fb, a, b):
    if fa * fb > 0:
        raise ValueError(
            f"f(a) and f(b) must have opposite signs: "
            f"f({a}) = {fa}, f({b}) = {fb}"
        )


def bisection(f, a: float, b: float, tol: float = 1e-10, max_iter: int = 200) -> float:
    """
    Root of f in [a, b] by bisection.

    Parameters
    ----------
    f : callable
        Scalar function
    a, b : float
        Bracket with f(a) f(b) <= 0
    tol : float
        Width of the final bracket
    max_iter : int
        Maximum number of halvings

    Returns
    -------
    float
        Midpoint of the final bracket
    """
    fa, fb = f(a), f(b)
    if fa == 0:
        return a
    if fb == 0:
        return b
    _check_bracket(fa, fb, a, b)

    # keep f(lo) < 0 < f(hi)
    lo, hi = (a, b) if fa < 0 else (b, a)
    for _ in range(max_iter):
        mid = 0.5 * (lo + hi)
        fmid = f(mid)
        if fmid == 0:
            return mid
        if fmid > 0:
            hi = mid
        else:
            lo = mid
        if abs(hi - lo) < tol:
            return 0.5 * (hi + lo)

    raise ConvergenceError(f"Bisection did not converge in {max_iter} iterations")


def secant(f, a: float, b: float, tol: float = 1e-10, max_iter: int = 100) -> float:
    """Root of f by the secant method started from a and b."""
    fl, fr = f(a), f(b)
    # iterate from the point with the smaller |f|
    if abs(fl) < abs(fr):
        xl, x = b, a
        fl, fr = fr, fl
    else:
        xl, x = a, b

    for _ in range(max_iter):
        if fr == 0:
            return x
        if fr == fl:
            raise ConvergenceError("Secant method stalled: f(x_k) == f(x_{k-1})")
        dx = (xl - x) * fr / (fr - fl)
        xl, fl = x, fr
        x += dx
        fr = f(x)
        if abs(dx) < tol:
            return x

    raise ConvergenceError(f"Secant method did not converge in {max_iter} iterations")


def regula_falsi(f, a: float, b: float, tol: float = 1e-10, max_iter: int = 200) -> float:
    """
    Root of f in [a, b] by false position.

    Uses the Illinois modification: when the same endpoint is retained
    twice in a row its function value is halved, which prevents one end
    of the bracket from stagnating.
    """
    fa, fb = f(a), f(b)
    if fa == 0:
        return a
    if fb == 0:
        return b
    _check_bracket(fa, fb, a, b)

    side = 0
    c = a
    for _ in range(max_iter):
        c_prev = c
        c = (a * fb - b * fa) / (fb - fa)
        fc = f(c)
        if fc == 0 or abs(c - c_prev) < tol or abs(b - a) < tol:
            return c

        if fa * fc > 0:
            a, fa = c, fc
            if side == -1:
                fb *= 0.5
            side = -1
        else:
            b, fb = c, fc
            if side == 1:
                fa *= 0.5
            side = 1

    raise ConvergenceError(f"Regula falsi did not converge in {max_iter} iterations")


def ridder(f, a: float, b: float, tol: float = 1e-10, max_iter: int = 100) -> float:
    """Root of f in [a, b] by Ridder's method."""
    fa, fb = f(a), f(b)
    if fa == 0:
        return a
    if fb == 0:
        return b
    _check_bracket(fa, fb, a, b)

    d = a
    for _ in range(max_iter):
        c = 0.5 * (a + b)
        fc = f(c)
        s = math.sqrt(fc * fc - fa * fb)
        if s == 0:
            return c
        d_prev = d
        d = c + (c - a) * math.copysign(1.0, fa - fb) * fc / s
        fd = f(d)
        if abs(fd) < tol or abs(d - d_prev) < tol:
            return d

        # new bracket from {a, c, d, b}
        if fc * fd < 0:
            a, fa, b, fb = c, fc, d, fd
        elif fa * fd < 0:
            b, fb = d, fd
        else:
            a, fa = d, fd
        if abs(b - a) < tol:
            return d

    raise ConvergenceError(f"Ridder's method did not converge in {max_iter} iterations")


__all__ = ["bisection", "secant", "regula_falsi", "ridder"]
