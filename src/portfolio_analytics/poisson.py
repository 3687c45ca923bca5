"""
Poisson likelihoods and Poisson regression by maximum likelihood.

Used by the Blueprinty patent study and the Airbnb review-count study:
- ``poisson_loglikelihood`` / ``fit_poisson_rate``: single-rate model, Y_i ~ Poisson(lambda)
- ``fit_poisson_regression``: Y_i ~ Poisson(exp(x_i' beta)) with analytic gradient and Hessian
- ``fit_poisson_glm``: the statsmodels equivalent, used as a check on the hand-written MLE
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pandas as pd
import statsmodels.api as sm
from loguru import logger
from numpy.typing import ArrayLike, NDArray
from scipy.optimize import minimize_scalar
from scipy.special import gammaln, xlogy

from portfolio_analytics.estimation import RegressionResult, default_names, maximize_loglikelihood


def poisson_loglikelihood(lam: float, y: ArrayLike) -> float:
    """Log-likelihood of counts ``y`` under a single Poisson rate ``lam``."""
    y = np.asarray(y, dtype=float)
    if lam < 0:
        return -np.inf
    # xlogy keeps 0 * log(0) at 0, so lam == 0 is only impossible when a count is positive
    return float(np.sum(-lam + xlogy(y, lam) - gammaln(y + 1)))


def poisson_rate_mle(y: ArrayLike) -> float:
    """Closed-form MLE of a Poisson rate: the sample mean."""
    return float(np.mean(np.asarray(y, dtype=float)))


def fit_poisson_rate(y: ArrayLike) -> float:
    """Numerically maximizes ``poisson_loglikelihood`` over the rate."""
    y = np.asarray(y, dtype=float)
    if y.sum() == 0:
        return 0.0

    res = minimize_scalar(
        lambda lam: -poisson_loglikelihood(lam, y),
        bounds=(1e-12, float(y.max()) + 1.0),
        method="bounded",
        options={"xatol": 1e-10},
    )
    logger.debug(f"Poisson rate MLE: {res.x:.6f} after {res.nfev} evaluations")
    return float(res.x)


def poisson_regression_loglikelihood(beta: NDArray, y: NDArray, X: NDArray) -> float:
    eta = X @ beta
    return float(np.sum(y * eta - np.exp(eta) - gammaln(y + 1)))


def poisson_regression_gradient(beta: NDArray, y: NDArray, X: NDArray) -> NDArray:
    # X'(y - lambda)
    return X.T @ (y - np.exp(X @ beta))


def poisson_regression_hessian(beta: NDArray, y: NDArray, X: NDArray) -> NDArray:
    # -X' diag(lambda) X
    lam = np.exp(X @ beta)
    return -(X.T @ (lam[:, None] * X))


def fit_poisson_regression(
    y: ArrayLike,
    X: ArrayLike,
    names: Optional[Sequence[str]] = None,
    initial: Optional[ArrayLike] = None,
) -> RegressionResult:
    """
    Fits a Poisson regression with a log link by maximum likelihood.

    Args:
        y: Observed counts, shape (n,)
        X: Design matrix including any intercept column, shape (n, k)
        names: Column names of ``X`` for the summary table
        initial: Starting values; zeros when omitted

    Returns:
        RegressionResult with Hessian-based standard errors
    """
    y = np.asarray(y, dtype=float)
    X = np.asarray(X, dtype=float)
    names = default_names(X.shape[1], names)
    x0 = np.zeros(X.shape[1]) if initial is None else np.asarray(initial, dtype=float)

    return maximize_loglikelihood(
        loglik=lambda beta: poisson_regression_loglikelihood(beta, y, X),
        gradient=lambda beta: poisson_regression_gradient(beta, y, X),
        hessian=lambda beta: poisson_regression_hessian(beta, y, X),
        x0=x0,
        names=names,
        n_obs=len(y),
        model_name="poisson",
    )


def fit_poisson_glm(y: ArrayLike, X: ArrayLike, names: Optional[Sequence[str]] = None):
    """Fits the same model with statsmodels' GLM (Poisson family, log link)."""
    X = np.asarray(X, dtype=float)
    exog = pd.DataFrame(X, columns=default_names(X.shape[1], names))
    return sm.GLM(np.asarray(y, dtype=float), exog, family=sm.families.Poisson()).fit()


def average_treatment_effect(beta: ArrayLike, X: ArrayLike, column: int) -> float:
    """
    Average change in the predicted count when a binary regressor flips from 0 to 1.

    Every row is predicted twice, once with ``X[:, column] = 0`` and once with
    ``X[:, column] = 1``; the effect is the mean of the differences.
    """
    beta = np.asarray(beta, dtype=float)
    X_0 = np.array(X, dtype=float)
    X_1 = X_0.copy()
    X_0[:, column] = 0.0
    X_1[:, column] = 1.0
    return float(np.mean(np.exp(X_1 @ beta) - np.exp(X_0 @ beta)))
