"""Unit tests for the shared maximum likelihood machinery."""

import numpy as np
import pytest

from portfolio_analytics.estimation import RegressionResult, default_names, maximize_loglikelihood
from portfolio_analytics.exceptions import EstimationError
from portfolio_analytics.poisson import (
    poisson_regression_gradient,
    poisson_regression_hessian,
    poisson_regression_loglikelihood,
)


def _quadratic(center):
    center = np.asarray(center, dtype=float)
    return (
        lambda b: -0.5 * np.sum((b - center) ** 2),
        lambda b: -(b - center),
        lambda b: -np.eye(len(center)),
    )


@pytest.mark.unit
def test_maximize_quadratic():
    """Test that a concave quadratic is maximized at its center with unit standard errors."""
    loglik, gradient, hessian = _quadratic([1.0, -2.0])
    result = maximize_loglikelihood(loglik, gradient, hessian, np.zeros(2), ["a", "b"], 10, "quadratic")

    np.testing.assert_allclose(result.coef, [1.0, -2.0], atol=1e-8)
    np.testing.assert_allclose(result.std_err, [1.0, 1.0])
    assert result.loglik == pytest.approx(0.0)
    assert result.as_dict() == pytest.approx({"a": 1.0, "b": -2.0})


@pytest.mark.unit
def test_iteration_limit_raises_estimation_error():
    """Test that an optimizer stopped by its iteration cap is reported as a failure."""
    rng = np.random.default_rng(3)
    X = np.column_stack([np.ones(500), rng.normal(size=500)])
    y = rng.poisson(np.exp(X @ np.array([1.5, 0.8])))

    with pytest.raises(EstimationError) as excinfo:
        maximize_loglikelihood(
            loglik=lambda b: poisson_regression_loglikelihood(b, y, X),
            gradient=lambda b: poisson_regression_gradient(b, y, X),
            hessian=lambda b: poisson_regression_hessian(b, y, X),
            x0=np.zeros(2),
            names=["intercept", "x"],
            n_obs=500,
            model_name="poisson",
            maxiter=1,
        )

    assert excinfo.value.model_name == "poisson"
    assert "[poisson]" in str(excinfo.value)


@pytest.mark.unit
def test_summary_interval_level():
    result = RegressionResult(
        coef=np.array([1.0]), std_err=np.array([0.5]), names=["x"], loglik=-3.0, n_obs=20
    )
    narrow = result.summary(level=0.5).row(0, named=True)
    wide = result.summary(level=0.99).row(0, named=True)

    assert wide["ci_low"] < narrow["ci_low"] < 1.0 < narrow["ci_high"] < wide["ci_high"]
    assert narrow["z"] == pytest.approx(2.0)


@pytest.mark.unit
def test_default_names():
    assert default_names(3, None) == ["x0", "x1", "x2"]
    assert default_names(2, ("a", "b")) == ["a", "b"]
    with pytest.raises(ValueError):
        default_names(2, ["a"])
