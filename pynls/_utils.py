"""
Utility functions.
"""

import numpy as np

from .exceptions import DimensionMismatch


def check_array(X, name='X', ndims=(2,), dtype=np.float64):
    """Validate array input with one of the allowed dimensionalities."""
    X = np.asarray(X, dtype=dtype)
    if X.ndim not in ndims:
        allowed = " or ".join(str(d) for d in ndims)
        raise DimensionMismatch(f"{name} must be {allowed}-dimensional, got {X.ndim}")
    if not np.all(np.isfinite(X)):
        raise ValueError(f"{name} contains NaN or Inf")
    return X


def check_vector(y, name='y', dtype=np.float64):
    """Validate vector input."""
    y = np.asarray(y, dtype=dtype)
    if y.ndim != 1:
        raise DimensionMismatch(f"{name} must be 1-dimensional")
    if not np.all(np.isfinite(y)):
        raise ValueError(f"{name} contains NaN or Inf")
    return y


def check_same_length(a, b, name_a='x', name_b='y'):
    """Validate that two inputs describe the same number of points."""
    if len(a) != len(b):
        raise DimensionMismatch(
            f"{name_a} has {len(a)} entries but {name_b} has {len(b)}"
        )
