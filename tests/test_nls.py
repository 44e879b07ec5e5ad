"""
Test the R-style nls() interface.
"""

import pytest
import numpy as np
import pandas as pd
from scipy.optimize import curve_fit

from pynls import nls, NonlinearModel, DimensionMismatch, FitConfig, FitStatus


def decay(p, x):
    return p[0] * np.exp(-p[1] * x)


@pytest.fixture
def decay_data():
    np.random.seed(42)
    x = np.linspace(0.0, 4.0, 30)
    y = 5.0 * np.exp(-0.5 * x) + 0.05 * np.random.randn(30)
    return pd.DataFrame({'time': x, 'signal': y, 'w': np.ones(30)})


class TestNonlinearModel:
    """Test fitting through the user-facing API."""

    def test_dataframe_columns(self, decay_data):
        """Column names and dict start values give named parameters."""
        model = nls(decay, x='time', y='signal', p0={'A': 1.0, 'k': 1.0}, data=decay_data)

        assert isinstance(model, NonlinearModel)
        assert model.converged
        assert list(model.params.index) == ['A', 'k']
        np.testing.assert_allclose(model.params.values, [5.0, 0.5], atol=0.1)
        assert model.df_residual == 28

    def test_matches_scipy_curve_fit(self, decay_data):
        """Estimates and covariance agree with scipy.optimize.curve_fit."""
        x = decay_data['time'].values
        y = decay_data['signal'].values
        popt, pcov = curve_fit(lambda t, A, k: A * np.exp(-k * t), x, y, p0=[1.0, 1.0])

        model = nls(decay, x=x, y=y, p0=[1.0, 1.0])

        np.testing.assert_allclose(model.coefficients, popt, rtol=1e-4)
        np.testing.assert_allclose(model.vcov, pcov, rtol=1e-2)
        np.testing.assert_allclose(model.std_errors, np.sqrt(np.diag(pcov)), rtol=1e-2)

    def test_default_param_names(self):
        x = np.arange(5.0)
        model = nls(lambda p, t: p[0] * t + p[1], x=x, y=2 * x + 1, p0=[0.0, 0.0])
        assert list(model.params.index) == ['p0', 'p1']

    def test_param_names(self):
        x = np.arange(5.0)
        model = nls(lambda p, t: p[0] * t + p[1], x=x, y=2 * x + 1, p0=[0.0, 0.0],
                    param_names=['slope', 'intercept'])
        assert model.params['slope'] == pytest.approx(2.0, abs=1e-6)
        assert model.params['intercept'] == pytest.approx(1.0, abs=1e-6)

    def test_param_names_mismatch(self):
        with pytest.raises(DimensionMismatch):
            nls(decay, x=[0.0, 1.0, 2.0], y=[1.0, 0.5, 0.2], p0=[1.0, 1.0],
                param_names=['A'])

    def test_inference(self, decay_data):
        """Standard errors, t values, p-values and intervals are consistent."""
        model = nls(decay, x='time', y='signal', p0={'A': 1.0, 'k': 1.0}, data=decay_data)

        np.testing.assert_allclose(model.t_values, model.coefficients / model.std_errors)
        assert np.all(model.pvalues < 0.001)

        ci = model.conf_int()
        assert list(ci.columns) == ['lower', 'upper']
        assert np.all(ci['lower'] < model.params)
        assert np.all(model.params < ci['upper'])

        wider = model.conf_int(alpha=0.01)
        assert np.all(wider['lower'] < ci['lower'])

    def test_residuals_and_sigma(self, decay_data):
        model = nls(decay, x='time', y='signal', p0={'A': 1.0, 'k': 1.0}, data=decay_data)
        np.testing.assert_allclose(model.residuals, model.y_values - model.fitted_values)
        assert model.sigma == pytest.approx(np.sqrt(np.sum(model.residuals**2) / 28))
        assert 0.02 < model.sigma < 0.1

    def test_weights_column(self, decay_data):
        """Weights may be given as a column name."""
        weighted = nls(decay, x='time', y='signal', p0={'A': 1.0, 'k': 1.0},
                       data=decay_data, weights='w')
        plain = nls(decay, x='time', y='signal', p0={'A': 1.0, 'k': 1.0}, data=decay_data)
        np.testing.assert_allclose(weighted.coefficients, plain.coefficients, rtol=1e-8)

    def test_multivariate_columns(self):
        """A list of columns is passed to the model as one row per point."""
        np.random.seed(0)
        df = pd.DataFrame({'u': np.random.rand(20), 'v': np.random.rand(20)})
        df['z'] = 2.0 * df['u'] + 3.0 * df['v'] ** 2

        model = nls(lambda p, row: p[0] * row[0] + p[1] * row[1] ** 2,
                    x=['u', 'v'], y='z', p0={'a': 1.0, 'b': 1.0}, data=df)
        np.testing.assert_allclose(model.params.values, [2.0, 3.0], atol=1e-6)
        np.testing.assert_allclose(model.predict(df.iloc[:3]), df['z'].values[:3], atol=1e-6)

    def test_predict(self, decay_data):
        model = nls(decay, x='time', y='signal', p0={'A': 1.0, 'k': 1.0}, data=decay_data)
        new = pd.DataFrame({'time': [0.0, 1.0]})
        expected = decay(model.coefficients, np.array([0.0, 1.0]))
        np.testing.assert_allclose(model.predict(new), expected)
        np.testing.assert_allclose(model.predict(np.array([0.0, 1.0])), expected)

    def test_summary(self, decay_data, capsys):
        model = nls(decay, x='time', y='signal', p0={'A': 1.0, 'k': 1.0}, data=decay_data)
        model.summary()
        out = capsys.readouterr().out
        assert 'NONLINEAR REGRESSION RESULTS' in out
        assert 'Residual standard error' in out
        assert 'converged' in out
        assert 'householder_fp64' in out

    def test_repr(self, decay_data):
        model = nls(decay, x='time', y='signal', p0={'A': 1.0, 'k': 1.0}, data=decay_data)
        assert repr(model).startswith('NonlinearModel(n=30, p=2')


class TestOptions:
    """Test configuration pass-through."""

    def test_warns_when_not_converged(self, decay_data):
        with pytest.warns(UserWarning, match="did not converge"):
            model = nls(decay, x='time', y='signal', p0={'A': 1.0, 'k': 1.0},
                        data=decay_data, max_iterations=1)
        assert model.status == FitStatus.MAX_ITERATIONS_EXCEEDED

    def test_camel_case_option(self, decay_data):
        with pytest.warns(UserWarning):
            model = nls(decay, x='time', y='signal', p0={'A': 1.0, 'k': 1.0},
                        data=decay_data, maxIterations=1)
        assert model.iterations == 1

    def test_config_with_override(self, decay_data):
        config = FitConfig(jacobian_scheme='central')
        model = nls(decay, x='time', y='signal', p0={'A': 1.0, 'k': 1.0},
                    data=decay_data, config=config, backend='lapack', cost_tolerance=1e-10)
        assert model.engine.config.jacobian_scheme == 'central'
        assert model.engine.config.cost_tolerance == 1e-10
        assert model.engine.backend.name == 'lapack_fp64'

    def test_analytic_jacobian(self, decay_data):
        def jac(p, x):
            e = np.exp(-p[1] * x)
            return np.array([e, -p[0] * x * e])

        numeric = nls(decay, x='time', y='signal', p0={'A': 1.0, 'k': 1.0}, data=decay_data)
        analytic = nls(decay, x='time', y='signal', p0={'A': 1.0, 'k': 1.0},
                       data=decay_data, jacobian=jac)
        np.testing.assert_allclose(analytic.coefficients, numeric.coefficients, rtol=1e-5)


class TestInputErrors:
    """Test input parsing errors."""

    def test_y_name_without_data(self):
        with pytest.raises(ValueError, match="Must provide data"):
            nls(decay, x=[0.0, 1.0], y='signal', p0=[1.0, 1.0])

    def test_x_name_without_data(self):
        with pytest.raises(ValueError, match="Must provide data"):
            nls(decay, x='time', y=[1.0, 2.0], p0=[1.0, 1.0])

    def test_no_degrees_of_freedom(self):
        """Exactly determined fits have no standard errors."""
        model = nls(lambda p, t: p[0] * t + p[1], x=[0.0, 1.0], y=[1.0, 3.0], p0=[0.0, 0.0])
        assert model.df_residual == 0
        assert np.isnan(model.sigma)
        assert np.all(np.isnan(model.std_errors))
        assert np.all(np.isnan(model.pvalues))
        assert np.all(np.isnan(model.conf_int().values))
