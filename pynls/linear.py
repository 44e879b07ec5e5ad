"""
Straight-line regression with known measurement errors.

Closed-form weighted fit of y = a + b x.
"""

import numpy as np
from dataclasses import dataclass

from ._utils import check_vector, check_same_length
from .exceptions import SingularMatrix


@dataclass(frozen=True)
class StraightLineFit:
    """Results of a weighted straight-line fit."""
    intercept: float          # a
    slope: float              # b
    sigma_intercept: float    # Standard deviation of a
    sigma_slope: float        # Standard deviation of b
    chi2: float               # Chi-squared of the fitted line

    def predict(self, x) -> np.ndarray:
        return self.intercept + self.slope * np.asarray(x, dtype=np.float64)


def linear_regression(x, y, yerr) -> StraightLineFit:
    """
    Fit ``y = a + b x`` where x is exact and y has standard deviations yerr.

    Parameters
    ----------
    x, y : array-like, shape (n,)
        Data points
    yerr : array-like, shape (n,)
        Standard deviation of each y (must be positive)

    Returns
    -------
    StraightLineFit

    Notes
    -----
    Uses the centred form ``t_i = (x_i - Sx/S) / σ_i``, which avoids the
    cancellation of the textbook ``S Sxx - Sx²`` denominator.

    Examples
    --------
    >>> fit = linear_regression([0.0, 1.0, 2.0], [1.0, 3.0, 5.0], [1e-3] * 3)
    >>> fit.intercept, fit.slope
    (1.0, 2.0)
    """
    x = check_vector(x, name='x')
    y = check_vector(y, name='y')
    yerr = check_vector(yerr, name='yerr')
    check_same_length(x, y, 'x', 'y')
    check_same_length(yerr, y, 'yerr', 'y')
    if len(x) < 2:
        raise ValueError("At least two points are required")
    if np.any(yerr <= 0):
        raise ValueError("yerr must be positive")

    wt = 1.0 / yerr**2
    ss = np.sum(wt)
    sx = np.sum(wt * x)
    sy = np.sum(wt * y)

    t = (x - sx / ss) / yerr
    st2 = np.sum(t**2)
    if st2 == 0:
        raise SingularMatrix("All x values are equal; slope is undetermined")

    b = np.sum(t * y / yerr) / st2
    a = (sy - sx * b) / ss

    sigma_a = np.sqrt((1.0 + sx**2 / (ss * st2)) / ss)
    sigma_b = np.sqrt(1.0 / st2)
    chi2 = np.sum(((y - a - b * x) / yerr) ** 2)

    return StraightLineFit(
        intercept=float(a),
        slope=float(b),
        sigma_intercept=float(sigma_a),
        sigma_slope=float(sigma_b),
        chi2=float(chi2),
    )


__all__ = ["StraightLineFit", "linear_regression"]
