"""
PyNLS: nonlinear least-squares fitting with Levenberg-Marquardt.

Householder QR kernel, triangular solver and damping control, with an
R-style nls() front end.

Copyright (C) 2024 SGCX
Licensed under GPL-3.0
"""

__version__ = "1.0.0"

# Import main user-facing API
from .nls import nls, NonlinearModel
from .linear import linear_regression, StraightLineFit

# Engine and building blocks (for advanced users)
from ._core import (
    FitConfig,
    FitProblem,
    FitResult,
    FitStatus,
    AnalyticJacobian,
    NumericJacobian,
    LevenbergMarquardt,
    fit,
    bisection,
    secant,
    regula_falsi,
    ridder,
    golden_section,
    nelder_mead,
    neville,
    interpolate_linear,
    trapezoid,
    romberg,
    solve_ode,
    solve_ode_adaptive,
)
from .exceptions import (
    PyNLSError,
    DimensionMismatch,
    SingularMatrix,
    RankDeficient,
    ConvergenceError,
)

# Import backend utilities (for advanced users)
from ._backends import get_backend, list_available_backends

__all__ = [
    'nls',
    'NonlinearModel',
    'linear_regression',
    'StraightLineFit',
    'FitConfig',
    'FitProblem',
    'FitResult',
    'FitStatus',
    'AnalyticJacobian',
    'NumericJacobian',
    'LevenbergMarquardt',
    'fit',
    'bisection',
    'secant',
    'regula_falsi',
    'ridder',
    'golden_section',
    'nelder_mead',
    'neville',
    'interpolate_linear',
    'trapezoid',
    'romberg',
    'solve_ode',
    'solve_ode_adaptive',
    'PyNLSError',
    'DimensionMismatch',
    'SingularMatrix',
    'RankDeficient',
    'ConvergenceError',
    'get_backend',
    'list_available_backends',
]
