"""
Nonlinear regression with R-style interface and output.

This is the user-facing API that mirrors R's nls().
"""

import warnings

import numpy as np
import pandas as pd
from typing import Callable, Optional, Union, List, Sequence
from dataclasses import asdict
from scipy import stats

from ._core.config import FitConfig
from ._core.engine import LevenbergMarquardt
from ._core.problem import FitProblem, FitStatus
from .exceptions import DimensionMismatch


class NonlinearModel:
    """
    Fit a nonlinear regression model (like R's nls()).

    Wraps the Levenberg-Marquardt engine with named parameters, standard
    errors, t-tests and confidence intervals.

    Examples
    --------
    >>> import numpy as np
    >>> from pynls import nls
    >>>
    >>> def decay(p, x):
    ...     return p[0] * np.exp(-p[1] * x)
    >>>
    >>> model = nls(decay, x='time', y='signal', p0={'A': 1.0, 'k': 1.0},
    ...             data=df)
    >>> model.summary()     # Prints a table like summary.nls
    >>> model.params        # Named estimates
    >>> model.conf_int()    # Wald confidence intervals
    >>> model.predict([5.0, 6.0])
    """

    def __init__(
        self,
        model: Callable,
        x: Union[str, List[str], np.ndarray],
        y: Union[str, np.ndarray],
        p0: Union[dict, Sequence[float]],
        data: Optional[pd.DataFrame] = None,
        weights: Optional[Union[str, np.ndarray]] = None,
        jacobian: Optional[Callable] = None,
        param_names: Optional[List[str]] = None,
        vectorized: bool = False,
        backend: str = 'auto',
        config: Optional[FitConfig] = None,
        **options
    ):
        """
        Fit nonlinear regression model.

        Parameters
        ----------
        model : callable
            ``model(params, x_i) -> float`` (or over all x when
            ``vectorized=True``)
        x : str, list of str or array
            Predictor(s)
            - If string: column name in data
            - If list of strings: column names (multivariate input)
            - If array: shape (n,) or (n, d)
        y : str or array
            Response variable
        p0 : dict or sequence
            Initial guess; dict keys become parameter names
        data : DataFrame, optional
            Dataset containing x, y and weights columns
        weights : str or array, optional
            Observation weights
        jacobian : callable, optional
            Analytic derivative ``jacobian(params, x_i) -> array (p,)``
        param_names : list of str, optional
            Names for a sequence ``p0`` (default: p0, p1, ...)
        vectorized : bool
            Model evaluates all points in one call
        backend : str
            Linear algebra backend: 'auto', 'householder', 'lapack'
        config : FitConfig, optional
            Iteration settings
        **options
            Overrides for individual FitConfig fields
            (e.g. ``max_iterations=50`` or ``maxIterations=50``)
        """
        # Parse inputs
        if isinstance(y, str):
            if data is None:
                raise ValueError("Must provide data when y is a string")
            self.y_values = data[y].values
            self.y_name = y
        else:
            self.y_values = np.asarray(y, dtype=np.float64)
            self.y_name = 'y'

        if isinstance(x, str) or (isinstance(x, list) and all(isinstance(v, str) for v in x)):
            if data is None:
                raise ValueError("Must provide data when x is given by column name")
            self.x_values = data[x].values
            self.x_names = [x] if isinstance(x, str) else list(x)
        else:
            self.x_values = np.asarray(x, dtype=np.float64)
            if self.x_values.ndim == 2:
                self.x_names = [f'x{i}' for i in range(self.x_values.shape[1])]
            else:
                self.x_names = ['x']

        if weights is not None:
            if isinstance(weights, str):
                if data is None:
                    raise ValueError("Must provide data when weights is a string")
                self.weights_values = data[weights].values
            else:
                self.weights_values = np.asarray(weights, dtype=np.float64)
        else:
            self.weights_values = None

        if isinstance(p0, dict):
            self.param_names = list(p0.keys())
            start = np.array(list(p0.values()), dtype=np.float64)
        else:
            start = np.asarray(p0, dtype=np.float64)
            if param_names is None:
                self.param_names = [f'p{i}' for i in range(start.size)]
            else:
                self.param_names = list(param_names)
        if len(self.param_names) != start.size:
            raise DimensionMismatch(
                f"{len(self.param_names)} parameter names for {start.size} initial values"
            )

        if options:
            merged = asdict(config) if config is not None else {}
            merged.update(options)
            config = FitConfig.from_dict(merged)

        self.problem = FitProblem(
            model=model,
            x=self.x_values,
            y=self.y_values,
            weights=self.weights_values,
            jacobian=jacobian,
            n_params=len(self.param_names),
            vectorized=vectorized,
        )

        # Fit model
        self.engine = LevenbergMarquardt(config=config, backend=backend)
        self.result = self.engine.fit(self.problem, start)

        if self.result.status != FitStatus.CONVERGED:
            warnings.warn(
                f"Fit did not converge ({self.result.status.value}): "
                f"{self.result.message}",
                UserWarning
            )

        self._compute_statistics()

    def _compute_statistics(self):
        """Compute standard errors, t-stats, p-values, etc."""
        result = self.result

        self.coefficients = result.params
        self.fitted_values = self.problem.predict(result.params)
        self.residuals = self.y_values - self.fitted_values
        self.n_obs = self.problem.n_points
        self.n_coef = result.params.size
        self.df_residual = result.dof
        self.iterations = result.iterations
        self.converged = result.converged
        self.status = result.status

        # Residual standard error (weighted RSS)
        self.rss = result.cost
        if self.df_residual > 0:
            self.sigma = np.sqrt(self.rss / self.df_residual)
        else:
            self.sigma = np.nan

        # Variance-covariance matrix: σ² (JᵗWJ)⁻¹
        if result.covariance is not None:
            self.vcov = result.covariance
        else:
            self.vcov = np.full((self.n_coef, self.n_coef), np.nan)

        self.std_errors = np.sqrt(np.diag(self.vcov))

        with np.errstate(divide='ignore', invalid='ignore'):
            self.t_values = self.coefficients / self.std_errors

        if self.df_residual > 0:
            self.pvalues = 2 * (1 - stats.t.cdf(np.abs(self.t_values), self.df_residual))
        else:
            self.pvalues = np.full(self.n_coef, np.nan)

    @property
    def params(self):
        """Named parameter estimates (pandas Series)."""
        return pd.Series(self.coefficients, index=self.param_names)

    @property
    def covariance(self):
        """Named covariance matrix (pandas DataFrame)."""
        return pd.DataFrame(self.vcov, index=self.param_names, columns=self.param_names)

    def conf_int(self, alpha: float = 0.05):
        """
        Wald confidence intervals for parameters.

        Parameters
        ----------
        alpha : float
            Significance level (default: 0.05 for 95% CI)

        Returns
        -------
        DataFrame
            Confidence intervals with columns 'lower' and 'upper'
        """
        if self.df_residual > 0:
            t_crit = stats.t.ppf(1 - alpha/2, self.df_residual)
        else:
            t_crit = np.nan
        lower = self.coefficients - t_crit * self.std_errors
        upper = self.coefficients + t_crit * self.std_errors

        return pd.DataFrame({
            'lower': lower,
            'upper': upper
        }, index=self.param_names)

    def summary(self):
        """
        Print summary of regression results (like R's summary.nls).
        """
        print()
        print("="*80)
        print("NONLINEAR REGRESSION RESULTS")
        print("="*80)
        print()

        print(f"Dependent variable: {self.y_name}")
        print(f"Number of observations: {self.n_obs}")
        print(f"Degrees of freedom: {self.df_residual} (residual), {self.n_coef} (parameters)")
        print()

        print("Parameters:")
        print("-"*80)
        print(f"{'Parameter':<20} {'Estimate':>12} {'Std. Error':>12} {'t value':>10} {'Pr(>|t|)':>12}")
        print("-"*80)

        for i, name in enumerate(self.param_names):
            p = self.pvalues[i]
            if np.isnan(p):
                sig = ''
                p_str = 'NA'
            else:
                if p < 0.001:
                    sig = ' ***'
                elif p < 0.01:
                    sig = ' **'
                elif p < 0.05:
                    sig = ' *'
                elif p < 0.1:
                    sig = ' .'
                else:
                    sig = ''

                p_str = f"{p:.4f}" if p >= 0.0001 else "<.0001"

            print(f"{name:<20} {self.coefficients[i]:>12.4f} {self.std_errors[i]:>12.4f} "
                  f"{self.t_values[i]:>10.3f} {p_str:>12}{sig}")

        print("-"*80)
        print("Signif. codes:  0 '***' 0.001 '**' 0.01 '*' 0.05 '.' 0.1 ' ' 1")
        print()

        print(f"Residual standard error: {self.sigma:.4f} on {self.df_residual} degrees of freedom")
        print()
        print(f"Status: {self.status.value} ({self.result.message})")
        print(f"Number of iterations: {self.iterations}")
        print(f"Backend: {self.engine.backend.name}")
        print("="*80)
        print()

    def predict(self, newdata: Union[pd.DataFrame, np.ndarray]) -> np.ndarray:
        """
        Predict response for new data.

        Parameters
        ----------
        newdata : DataFrame or array
            New predictor values
            - If DataFrame: must have columns matching self.x_names
            - If array: same layout as the x used for fitting

        Returns
        -------
        array
            Predicted values
        """
        if isinstance(newdata, pd.DataFrame):
            cols = self.x_names[0] if self.x_values.ndim == 1 else self.x_names
            x_new = newdata[cols].values
        else:
            x_new = np.asarray(newdata, dtype=np.float64)

        return self.problem.predict(self.coefficients, x_new)

    def __repr__(self):
        return (
            f"NonlinearModel(n={self.n_obs}, p={self.n_coef}, "
            f"status={self.status.value}, sigma={self.sigma:.4g})"
        )


def nls(model, x, y, p0, data=None, **kwargs):
    """
    Fit nonlinear regression model (convenience function).

    Parameters
    ----------
    model : callable
        ``model(params, x_i) -> float``
    x : str, list of str or array
        Predictor(s)
    y : str or array
        Response variable
    p0 : dict or sequence
        Initial parameter values
    data : DataFrame, optional
        Dataset
    **kwargs
        Additional arguments passed to NonlinearModel

    Returns
    -------
    NonlinearModel
        Fitted model object

    Examples
    --------
    >>> fit = nls(lambda p, x: p[0] * x + p[1], x=[0, 1, 2], y=[3, 5, 7],
    ...           p0={'slope': 1.0, 'intercept': 0.0})
    >>> fit.params
    """
    return NonlinearModel(model=model, x=x, y=y, p0=p0, data=data, **kwargs)
