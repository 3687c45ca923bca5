"""Unit tests for the Poisson likelihoods and regression MLE."""

import numpy as np
import pytest
from scipy import stats

from portfolio_analytics.poisson import (
    average_treatment_effect,
    fit_poisson_glm,
    fit_poisson_rate,
    fit_poisson_regression,
    poisson_loglikelihood,
    poisson_rate_mle,
    poisson_regression_gradient,
    poisson_regression_hessian,
    poisson_regression_loglikelihood,
)

TRUE_BETA = np.array([0.5, 0.3, -0.2])


@pytest.fixture
def regression_data():
    rng = np.random.default_rng(7)
    n = 2_000
    X = np.column_stack([np.ones(n), rng.normal(size=n), rng.binomial(1, 0.4, size=n)])
    y = rng.poisson(np.exp(X @ TRUE_BETA))
    return y, X


@pytest.mark.unit
class TestPoissonRate:
    """Tests for the single-rate Poisson model."""

    def test_loglikelihood_matches_scipy(self):
        """Test the log-likelihood against scipy's Poisson log-pmf."""
        y = np.array([0, 1, 3, 2, 7])
        expected = stats.poisson.logpmf(y, 2.5).sum()
        assert poisson_loglikelihood(2.5, y) == pytest.approx(expected)

    def test_negative_rate_is_impossible(self):
        assert poisson_loglikelihood(-1.0, [1, 2]) == -np.inf

    def test_zero_rate(self):
        """Test that a zero rate is impossible only when some count is positive."""
        assert poisson_loglikelihood(0.0, [0, 1]) == -np.inf
        assert poisson_loglikelihood(0.0, [0, 0]) == pytest.approx(0.0)

    def test_closed_form_mle_is_sample_mean(self):
        y = np.array([4, 2, 0, 5, 3, 1, 6])
        assert poisson_rate_mle(y) == pytest.approx(y.mean())

    def test_numeric_mle_matches_sample_mean(self):
        """Test that maximizing the likelihood numerically recovers the sample mean."""
        y = np.random.default_rng(0).poisson(3.7, size=500)
        assert fit_poisson_rate(y) == pytest.approx(y.mean(), abs=1e-6)

    def test_numeric_mle_all_zero_counts(self):
        assert fit_poisson_rate([0, 0, 0]) == 0.0


@pytest.mark.unit
class TestPoissonRegression:
    """Tests for Poisson regression by maximum likelihood."""

    def test_gradient_matches_finite_differences(self, regression_data, central_difference):
        y, X = regression_data
        beta = np.array([0.1, -0.2, 0.3])
        numeric = central_difference(lambda b: poisson_regression_loglikelihood(b, y, X), beta)
        np.testing.assert_allclose(poisson_regression_gradient(beta, y, X), numeric, rtol=1e-5, atol=1e-4)

    def test_hessian_matches_finite_differences(self, regression_data, central_difference):
        y, X = regression_data
        beta = np.array([0.1, -0.2, 0.3])
        numeric = central_difference(lambda b: poisson_regression_gradient(b, y, X), beta)
        np.testing.assert_allclose(poisson_regression_hessian(beta, y, X), numeric, rtol=1e-5, atol=1e-4)

    def test_mle_matches_statsmodels_glm(self, regression_data):
        """Test that the hand-written MLE agrees with statsmodels' Poisson GLM."""
        y, X = regression_data
        names = ["intercept", "x", "d"]
        result = fit_poisson_regression(y, X, names=names)
        glm = fit_poisson_glm(y, X, names=names)

        np.testing.assert_allclose(result.coef, glm.params.to_numpy(), rtol=1e-5, atol=1e-7)
        np.testing.assert_allclose(result.std_err, glm.bse.to_numpy(), rtol=1e-4)
        assert result.loglik == pytest.approx(glm.llf, rel=1e-8)

    def test_mle_recovers_true_coefficients(self, regression_data):
        y, X = regression_data
        result = fit_poisson_regression(y, X)
        assert np.all(np.abs(result.coef - TRUE_BETA) < 4 * result.std_err)

    def test_summary_table(self, regression_data):
        y, X = regression_data
        summary = fit_poisson_regression(y, X, names=["intercept", "x", "d"]).summary()

        assert summary.columns == ["term", "coef", "std_err", "z", "p_value", "ci_low", "ci_high"]
        assert summary["term"].to_list() == ["intercept", "x", "d"]
        assert (summary["ci_low"] < summary["coef"]).all()
        assert (summary["coef"] < summary["ci_high"]).all()

    def test_wrong_number_of_names(self, regression_data):
        y, X = regression_data
        with pytest.raises(ValueError):
            fit_poisson_regression(y, X, names=["intercept"])


@pytest.mark.unit
class TestAverageTreatmentEffect:
    """Tests for the counterfactual effect of a binary regressor."""

    def test_zero_coefficient_has_no_effect(self):
        X = np.column_stack([np.ones(5), np.arange(5.0), [0, 1, 0, 1, 0]])
        assert average_treatment_effect([0.2, 0.1, 0.0], X, column=2) == pytest.approx(0.0)

    def test_matches_manual_counterfactual(self):
        X = np.column_stack([np.ones(3), [0.0, 1.0, 2.0], [1, 0, 1]])
        beta = np.array([0.1, 0.2, 0.5])
        base = np.exp(0.1 + 0.2 * X[:, 1])
        expected = np.mean(base * np.exp(0.5) - base)
        assert average_treatment_effect(beta, X, column=2) == pytest.approx(expected)

    def test_does_not_modify_input(self):
        X = np.column_stack([np.ones(3), [1, 0, 1]])
        original = X.copy()
        average_treatment_effect([0.0, 1.0], X, column=1)
        np.testing.assert_array_equal(X, original)
