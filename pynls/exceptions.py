"""
Exception types.

Only shape errors are raised to the caller of a fit; singular systems are
recovered inside the iteration and reported through the fit status.
"""


class PyNLSError(Exception):
    """Base class for all PyNLS errors."""


class DimensionMismatch(PyNLSError, ValueError):
    """Inputs have inconsistent shapes."""


class SingularMatrix(PyNLSError, ArithmeticError):
    """A triangular factor has a diagonal entry below tolerance."""


class RankDeficient(SingularMatrix):
    """A QR decomposition was flagged as rank-deficient."""


class ConvergenceError(PyNLSError, RuntimeError):
    """An iterative routine ran out of iterations."""


__all__ = [
    "PyNLSError",
    "DimensionMismatch",
    "SingularMatrix",
    "RankDeficient",
    "ConvergenceError",
]
