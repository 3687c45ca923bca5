"""
Replication helpers for Karlan & List (2007), "Does Price Matter in Charitable
Giving? Evidence from a Large-Scale Natural Field Experiment".

Letters offering a matching grant (treatment) are compared with standard
letters (control) on response rate (``gave``) and amount donated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import polars as pl
import statsmodels.api as sm
from loguru import logger
from numpy.typing import ArrayLike
from scipy import stats

from portfolio_analytics.config import RANDOM_STATE
from portfolio_analytics.data import drop_incomplete, require_columns

# Response rates reported in the paper
CONTROL_RESPONSE_RATE: float = 0.018
TREATMENT_RESPONSE_RATE: float = 0.022


@dataclass
class TTestResult:
    diff: float
    statistic: float
    df: float
    p_value: float


def welch_t_test(a: ArrayLike, b: ArrayLike) -> TTestResult:
    """
    Two-sample t-test without assuming equal variances, computed by hand.

    t = (mean_a - mean_b) / sqrt(s_a^2 / n_a + s_b^2 / n_b), with
    Welch-Satterthwaite degrees of freedom. NaNs are ignored.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    a, b = a[~np.isnan(a)], b[~np.isnan(b)]

    var_a = a.var(ddof=1) / len(a)
    var_b = b.var(ddof=1) / len(b)
    diff = a.mean() - b.mean()
    statistic = diff / np.sqrt(var_a + var_b)
    df = (var_a + var_b) ** 2 / (var_a**2 / (len(a) - 1) + var_b**2 / (len(b) - 1))

    return TTestResult(
        diff=float(diff),
        statistic=float(statistic),
        df=float(df),
        p_value=float(2 * stats.t.sf(abs(statistic), df)),
    )


def balance_table(df: pl.DataFrame, treatment: str, covariates: Sequence[str]) -> pl.DataFrame:
    """Treatment vs control means of pre-treatment covariates, with Welch t-tests."""
    require_columns(df, [treatment, *covariates], source="balance_table")
    treated = df.filter(pl.col(treatment) == 1)
    control = df.filter(pl.col(treatment) == 0)

    rows = []
    for covariate in covariates:
        a = treated[covariate].drop_nulls().cast(pl.Float64).to_numpy()
        b = control[covariate].drop_nulls().cast(pl.Float64).to_numpy()
        test = welch_t_test(a, b)
        rows.append(
            {
                "covariate": covariate,
                "mean_treatment": float(a.mean()),
                "mean_control": float(b.mean()),
                "diff": test.diff,
                "t": test.statistic,
                "p_value": test.p_value,
            }
        )

    return pl.DataFrame(rows)


def response_rates(df: pl.DataFrame, group: str, outcome: str = "gave") -> pl.DataFrame:
    require_columns(df, [group, outcome], source="response_rates")
    return (
        df.group_by(group)
        .agg(pl.len().alias("n"), pl.col(outcome).mean().alias("rate"))
        .sort(group)
    )


def _model_frame(df: pl.DataFrame, outcome: str, regressors: Sequence[str]):
    require_columns(df, [outcome, *regressors], source="model_frame")
    frame = drop_incomplete(df.select([outcome, *regressors]), [outcome, *regressors])
    y = frame[outcome].cast(pl.Float64).to_pandas()
    X = sm.add_constant(frame.select([pl.col(r).cast(pl.Float64) for r in regressors]).to_pandas())
    return y, X


def fit_ols(df: pl.DataFrame, outcome: str, regressors: Sequence[str]):
    """OLS of ``outcome`` on ``regressors`` plus a constant (statsmodels)."""
    y, X = _model_frame(df, outcome, regressors)
    return sm.OLS(y, X).fit()


def fit_probit(df: pl.DataFrame, outcome: str, regressors: Sequence[str]):
    """Probit of a binary ``outcome`` on ``regressors`` plus a constant (statsmodels)."""
    y, X = _model_frame(df, outcome, regressors)
    return sm.Probit(y, X).fit(disp=0)


def simulate_law_of_large_numbers(
    p_control: float = CONTROL_RESPONSE_RATE,
    p_treatment: float = TREATMENT_RESPONSE_RATE,
    n: int = 10_000,
    seed: int = RANDOM_STATE,
) -> pl.DataFrame:
    """Cumulative average of paired treatment - control Bernoulli draws."""
    rng = np.random.default_rng(seed)
    differences = rng.binomial(1, p_treatment, size=n) - rng.binomial(1, p_control, size=n)

    return pl.DataFrame(
        {
            "draw": np.arange(1, n + 1),
            "difference": differences,
            "cumulative_mean": np.cumsum(differences) / np.arange(1, n + 1),
        }
    )


def simulate_sampling_distribution(
    sample_sizes: Sequence[int] = (50, 200, 500, 1000),
    n_simulations: int = 1_000,
    p_control: float = CONTROL_RESPONSE_RATE,
    p_treatment: float = TREATMENT_RESPONSE_RATE,
    seed: int = RANDOM_STATE,
) -> pl.DataFrame:
    """Simulated sampling distribution of the difference in response rates, one row per draw."""
    rng = np.random.default_rng(seed)
    frames = []
    for size in sample_sizes:
        treatment_means = rng.binomial(1, p_treatment, size=(n_simulations, size)).mean(axis=1)
        control_means = rng.binomial(1, p_control, size=(n_simulations, size)).mean(axis=1)
        frames.append(
            pl.DataFrame(
                {
                    "sample_size": np.full(n_simulations, size),
                    "simulation": np.arange(n_simulations),
                    "mean_difference": treatment_means - control_means,
                }
            )
        )

    logger.debug(f"Simulated {n_simulations:,} mean differences for sample sizes {list(sample_sizes)}")
    return pl.concat(frames)
