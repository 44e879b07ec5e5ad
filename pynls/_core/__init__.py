"""
Core algorithms (backend-agnostic).
"""

from .matrix import QRDecomposition, multiply, transpose, householder_qr
from .solver import back_substitution, qr_decompose, solve, lstsq
from .config import FitConfig
from .jacobian import AnalyticJacobian, NumericJacobian
from .problem import FitProblem, FitResult, FitState, FitStatus
from .damping import DampingController
from .engine import LevenbergMarquardt, fit
from .roots import bisection, secant, regula_falsi, ridder
from .optimize import golden_section, nelder_mead
from .interpolation import neville, interpolate_linear
from .integration import trapezoid, romberg
from .ode import (
    euler_step,
    midpoint_step,
    rk4_step,
    solve_ode,
    StepSizeController,
    solve_ode_adaptive,
)

__all__ = [
    "QRDecomposition",
    "multiply",
    "transpose",
    "householder_qr",
    "back_substitution",
    "qr_decompose",
    "solve",
    "lstsq",
    "FitConfig",
    "AnalyticJacobian",
    "NumericJacobian",
    "FitProblem",
    "FitResult",
    "FitState",
    "FitStatus",
    "DampingController",
    "LevenbergMarquardt",
    "fit",
    "bisection",
    "secant",
    "regula_falsi",
    "ridder",
    "golden_section",
    "nelder_mead",
    "neville",
    "interpolate_linear",
    "trapezoid",
    "romberg",
    "euler_step",
    "midpoint_step",
    "rk4_step",
    "solve_ode",
    "StepSizeController",
    "solve_ode_adaptive",
]
