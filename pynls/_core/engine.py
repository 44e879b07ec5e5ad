"""
Levenberg-Marquardt fitting engine.

Runs the iteration as an explicit state machine:

    INITIALIZED -> ITERATING -> {CONVERGED, MAX_ITERATIONS_EXCEEDED,
                                 DIVERGED, NUMERICAL_FAILURE}

Each iteration evaluates the Jacobian once and then retries damped steps
against it, a bounded number of times, until one lowers the cost.
"""

import logging

import numpy as np
from typing import Optional

from .._backends import get_backend
from ..exceptions import DimensionMismatch, SingularMatrix
from .config import FitConfig
from .damping import DampingController
from .jacobian import AnalyticJacobian, NumericJacobian
from .problem import FitProblem, FitResult, FitState, FitStatus
from .solver import upper_triangular_inverse

logger = logging.getLogger(__name__)

# Errors a model or Jacobian raises outside its domain (math.sqrt, math.log,
# overflow in pure-Python arithmetic)
_EVALUATION_ERRORS = (ArithmeticError, ValueError)

# Errors that mean the model cannot take p0 at all
_ARITY_ERRORS = (IndexError, TypeError)


class LevenbergMarquardt:
    """
    Nonlinear least-squares fitting by Levenberg-Marquardt.

    Parameters
    ----------
    config : FitConfig, optional
        Iteration settings (default: ``FitConfig()``)
    backend : str or BackendBase
        Backend for the QR solves: 'auto', 'householder', 'lapack'

    Examples
    --------
    >>> problem = FitProblem(lambda p, x: p[0] * np.exp(-p[1] * x), x, y)
    >>> result = LevenbergMarquardt().fit(problem, [1.0, 1.0])
    >>> result.status, result.params
    """

    def __init__(self, config: Optional[FitConfig] = None, backend = 'auto'):
        self.config = config if config is not None else FitConfig()
        self.backend = get_backend(backend)

    def fit(self, problem: FitProblem, p0) -> FitResult:
        """
        Fit ``problem`` starting from ``p0``.

        Raises
        ------
        DimensionMismatch
            If ``p0`` does not match the model or the data shapes disagree.
            Raised before any iteration.

        Returns
        -------
        FitResult
            Every other outcome (including failures) is reported through
            ``FitResult.status``.
        """
        cfg = self.config
        params, residuals, J0 = self._initialize(problem, p0)

        if problem.jacobian is not None:
            jacobian = problem.jacobian
        else:
            jacobian = NumericJacobian(cfg.jacobian_step_size, cfg.jacobian_scheme)

        cost = float(residuals @ residuals)
        state = FitState(
            params=params,
            residuals=residuals,
            cost=cost,
            damping=cfg.initial_damping,
            cost_history=[cost],
        )
        if J0 is not None:
            state.n_jacobian_evals += 1

        if not np.isfinite(cost):
            state.status = FitStatus.NUMERICAL_FAILURE
            state.message = "Cost at the initial guess is not finite"
        elif cost <= cfg.absolute_cost_tolerance:
            state.status = FitStatus.CONVERGED
            state.message = "Initial cost below absolute tolerance"
        else:
            state.status = FitStatus.ITERATING
            controller = DampingController(
                damping=cfg.initial_damping,
                factor=cfg.damping_factor,
                min_damping=cfg.min_damping,
                max_damping=cfg.max_damping,
                rtol=cfg.rank_tolerance,
                backend=self.backend,
            )
            self._iterate(problem, jacobian, controller, state, J0)

        return self._finish(problem, jacobian, state)

    def _initialize(self, problem: FitProblem, p0):
        """Eager shape checks; returns params, residuals and (analytic) J."""
        params = np.array(p0, dtype=np.float64, copy=True)
        if params.ndim != 1 or params.size == 0:
            raise DimensionMismatch("Initial parameters must be a non-empty 1-D vector")
        if not np.all(np.isfinite(params)):
            raise ValueError("Initial parameters contain NaN or Inf")
        if problem.n_params is not None and problem.n_params != params.size:
            raise DimensionMismatch(
                f"Model expects {problem.n_params} parameters, got {params.size}"
            )

        try:
            residuals = problem.residuals(params)
        except DimensionMismatch:
            raise
        except _ARITY_ERRORS as exc:
            raise DimensionMismatch(
                f"Model cannot be evaluated with {params.size} parameters: {exc}"
            ) from exc
        except _EVALUATION_ERRORS as exc:
            # outside the model's domain; reported as a non-finite initial cost
            logger.debug("Model failed at the initial guess (%s)", exc)
            residuals = np.full(problem.n_points, np.nan)

        J0 = None
        if isinstance(problem.jacobian, AnalyticJacobian):
            try:
                J0 = problem.jacobian.evaluate(problem, params)
            except DimensionMismatch:
                raise
            except _ARITY_ERRORS as exc:
                raise DimensionMismatch(
                    f"Jacobian cannot be evaluated with {params.size} parameters: {exc}"
                ) from exc
            except _EVALUATION_ERRORS as exc:
                logger.debug("Jacobian failed at the initial guess (%s)", exc)
                J0 = np.full((problem.n_points, params.size), np.nan)

        return params, residuals, J0

    def _iterate(self, problem, jacobian, controller, state, J):
        cfg = self.config
        while state.status == FitStatus.ITERATING:
            if state.iteration >= cfg.max_iterations:
                state.status = FitStatus.MAX_ITERATIONS_EXCEEDED
                state.message = f"Reached {cfg.max_iterations} iterations"
                break

            state.iteration += 1
            if J is None:
                try:
                    J = self._evaluate_jacobian(problem, jacobian, state)
                except _EVALUATION_ERRORS as exc:
                    state.status = FitStatus.NUMERICAL_FAILURE
                    state.message = f"Jacobian evaluation failed: {exc}"
                    break

            if not np.all(np.isfinite(J)):
                state.status = FitStatus.NUMERICAL_FAILURE
                state.message = "Jacobian contains non-finite values"
                break

            self._step(problem, J, controller, state)
            logger.debug(
                "iteration %d: cost=%.6e damping=%.3e status=%s",
                state.iteration, state.cost, state.damping, state.status.value,
            )
            J = None

    def _evaluate_jacobian(self, problem, jacobian, state) -> np.ndarray:
        state.n_jacobian_evals += 1
        if isinstance(jacobian, NumericJacobian):
            if jacobian.scheme == "central":
                state.n_function_evals += 2 * state.params.size
            else:
                state.n_function_evals += state.params.size
            return jacobian.evaluate(problem, state.params, r0=state.residuals)
        return jacobian.evaluate(problem, state.params)

    def _step(self, problem, J, controller, state):
        """Propose, evaluate and accept or reject steps against one Jacobian."""
        cfg = self.config
        rejections = 0
        gauss_newton = _GaussNewtonStep(controller, J, state.residuals)

        while True:
            try:
                delta = controller.propose_step(J, state.residuals)
            except SingularMatrix as exc:
                logger.debug("Singular damped system (%s); increasing damping", exc)
                controller.increase()
                delta = None

            if delta is not None:
                if not np.all(np.isfinite(delta)):
                    state.status = FitStatus.DIVERGED
                    state.message = "Proposed step is not finite"
                    return

                # damped and undamped steps must both be short
                if (rejections == 0 and self._small_step(delta, state.params)
                        and self._small_step(gauss_newton.delta, state.params)):
                    state.status = FitStatus.CONVERGED
                    state.message = "Step size below tolerance"
                    return

                trial = state.params + delta
                trial_residuals, trial_cost = self._trial(problem, trial)
                state.n_function_evals += 1

                previous = state.cost
                if controller.accept(previous, trial_cost):
                    state.params = trial
                    state.residuals = trial_residuals
                    state.cost = trial_cost
                    state.damping = controller.damping
                    state.cost_history.append(trial_cost)
                    self._check_convergence(state, previous, delta, gauss_newton)
                    return

            rejections += 1
            state.rejections += 1
            state.damping = controller.damping
            if controller.exhausted:
                state.status = FitStatus.NUMERICAL_FAILURE
                state.message = "Damping reached its maximum without an improving step"
                return
            if rejections >= cfg.max_rejections_per_step:
                state.status = FitStatus.NUMERICAL_FAILURE
                state.message = f"{rejections} consecutive rejected steps"
                return

    def _trial(self, problem, trial):
        try:
            r = problem.residuals(trial)
        except _EVALUATION_ERRORS as exc:
            logger.debug("Model failed at trial point (%s)", exc)
            return None, np.inf
        if not np.all(np.isfinite(r)):
            return None, np.inf
        return r, float(r @ r)

    def _small_step(self, delta, params) -> bool:
        tol = self.config.step_tolerance
        return np.linalg.norm(delta) <= tol * (np.linalg.norm(params) + tol)

    def _check_convergence(self, state, previous, delta, gauss_newton):
        """
        Tests applied after an accepted step.

        The relative-decrease and step-size tests also require the undamped
        step from the start of the iteration to predict no further progress.
        """
        cfg = self.config
        if np.max(np.abs(state.params)) > cfg.divergence_threshold:
            state.status = FitStatus.DIVERGED
            state.message = "Parameters exceeded the divergence threshold"
        elif state.cost <= cfg.absolute_cost_tolerance:
            state.status = FitStatus.CONVERGED
            state.message = "Cost below absolute tolerance"
        elif (previous - state.cost <= cfg.cost_tolerance * previous
                and gauss_newton.predicted_reduction <= cfg.cost_tolerance * previous):
            state.status = FitStatus.CONVERGED
            state.message = "Relative cost decrease below tolerance"
        elif (self._small_step(delta, state.params)
                and self._small_step(gauss_newton.delta, state.params)):
            state.status = FitStatus.CONVERGED
            state.message = "Step size below tolerance"

    def _finish(self, problem, jacobian, state) -> FitResult:
        n = state.params.size
        dof = problem.n_points - n
        covariance = None

        if dof > 0 and state.status in (
            FitStatus.CONVERGED, FitStatus.MAX_ITERATIONS_EXCEEDED
        ):
            covariance = self._covariance(problem, jacobian, state, dof)

        log = logger.info if state.status == FitStatus.CONVERGED else logger.warning
        log(
            "Fit finished: %s after %d iterations (cost=%.6e). %s",
            state.status.value, state.iteration, state.cost, state.message,
        )

        return FitResult(
            params=state.params.copy(),
            covariance=covariance,
            cost=state.cost,
            iterations=state.iteration,
            status=state.status,
            message=state.message,
            n_function_evals=state.n_function_evals,
            n_jacobian_evals=state.n_jacobian_evals,
            dof=dof,
            cost_history=tuple(state.cost_history),
        )

    def _covariance(self, problem, jacobian, state, dof) -> Optional[np.ndarray]:
        """σ² (JᵗWJ)⁻¹ = σ² R⁻¹R⁻ᵗ from the Jacobian at the final parameters."""
        try:
            J = self._evaluate_jacobian(problem, jacobian, state)
        except _EVALUATION_ERRORS as exc:
            logger.debug("Final Jacobian failed (%s); covariance unavailable", exc)
            return None
        if not np.all(np.isfinite(J)):
            return None

        decomposition = self.backend.qr(J, rtol=self.config.rank_tolerance)
        if decomposition.rank_deficient:
            logger.debug("Final Jacobian is rank-deficient; covariance unavailable")
            return None

        try:
            R_inv = upper_triangular_inverse(
                decomposition.R, tol=decomposition.threshold, backend=self.backend
            )
        except SingularMatrix:
            return None

        sigma2 = state.cost / dof
        return sigma2 * (R_inv @ R_inv.T)


class _GaussNewtonStep:
    """
    Undamped step from the start of an iteration.

    Solved on first use, with λ at the controller's minimum.
    """

    def __init__(self, controller: DampingController, J: np.ndarray, r: np.ndarray):
        self.controller = controller
        self.J = J
        self.r = r
        self._delta = None

    @property
    def delta(self) -> np.ndarray:
        if self._delta is None:
            try:
                self._delta = self.controller.undamped_step(self.J, self.r)
            except SingularMatrix:
                self._delta = np.full(self.J.shape[1], np.inf)
        return self._delta

    @property
    def predicted_reduction(self) -> float:
        """Cost decrease the linearized model predicts for ``delta``."""
        delta = self.delta
        if not np.all(np.isfinite(delta)):
            return np.inf
        linearized = self.r + self.J @ delta
        return float(self.r @ self.r - linearized @ linearized)


def fit(problem: FitProblem, p0, config: Optional[FitConfig] = None, backend = 'auto') -> FitResult:
    """Fit ``problem`` from ``p0`` with a fresh engine."""
    return LevenbergMarquardt(config=config, backend=backend).fit(problem, p0)
