"""Shared maximum likelihood machinery for the Poisson and MNL models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np
import polars as pl
from loguru import logger
from numpy.typing import NDArray
from scipy import stats
from scipy.optimize import minimize

from portfolio_analytics.exceptions import EstimationError

Vector = NDArray[np.float64]


@dataclass
class RegressionResult:
    """Point estimates and Hessian-based standard errors of a fitted likelihood model."""

    coef: Vector
    std_err: Vector
    names: list[str]
    loglik: float
    n_obs: int

    def summary(self, level: float = 0.95) -> pl.DataFrame:
        z_crit = stats.norm.ppf(0.5 + level / 2)
        z = self.coef / self.std_err
        return pl.DataFrame(
            {
                "term": self.names,
                "coef": self.coef,
                "std_err": self.std_err,
                "z": z,
                "p_value": 2 * stats.norm.sf(np.abs(z)),
                "ci_low": self.coef - z_crit * self.std_err,
                "ci_high": self.coef + z_crit * self.std_err,
            }
        )

    def as_dict(self) -> dict[str, float]:
        return dict(zip(self.names, self.coef.tolist()))


def maximize_loglikelihood(
    loglik: Callable[[Vector], float],
    gradient: Callable[[Vector], Vector],
    hessian: Callable[[Vector], NDArray[np.float64]],
    x0: Vector,
    names: Sequence[str],
    n_obs: int,
    model_name: str,
    gtol: float = 1e-6,
    maxiter: int = 500,
) -> RegressionResult:
    """
    Maximizes a concave log-likelihood with a Newton trust-region solver.

    scipy only minimizes, so the negated log-likelihood, gradient and Hessian
    are handed to ``minimize``. Standard errors are the square roots of the
    diagonal of the inverse negative Hessian at the optimum.
    """
    res = minimize(
        fun=lambda beta: -loglik(beta),
        x0=np.asarray(x0, dtype=float),
        jac=lambda beta: -gradient(beta),
        hess=lambda beta: -hessian(beta),
        method="trust-exact",
        options={"gtol": gtol, "maxiter": maxiter},
    )

    if not res.success:
        raise EstimationError(f"Optimization failed: {res.message}", model_name=model_name)

    beta_hat = res.x
    covariance = np.linalg.inv(-hessian(beta_hat))
    std_err = np.sqrt(np.diag(covariance))

    logger.info(f"[{model_name}] converged in {res.nit} iterations, log-likelihood = {-res.fun:,.3f}")
    logger.debug(f"[{model_name}] estimates: {dict(zip(names, np.round(beta_hat, 4)))}")

    return RegressionResult(
        coef=beta_hat,
        std_err=std_err,
        names=list(names),
        loglik=float(-res.fun),
        n_obs=n_obs,
    )


def default_names(n_params: int, names: Optional[Sequence[str]]) -> list[str]:
    if names is None:
        return [f"x{i}" for i in range(n_params)]
    if len(names) != n_params:
        raise ValueError(f"Expected {n_params} names, got {len(names)}")
    return list(names)
