"""
Multinomial logit (MNL) estimation on conjoint choice data.

Each respondent completes several choice tasks; in every task they see a
handful of streaming-service offers (brand, ads, monthly price) and pick one.
Utility is U_ij = x_j' beta + e_ij with e_ij ~ Gumbel, giving choice
probabilities P_ij = exp(x_j' beta) / sum_k exp(x_k' beta) within a task.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import polars as pl
from loguru import logger
from numpy.typing import ArrayLike, NDArray
from scipy import stats

from portfolio_analytics.config import RANDOM_STATE
from portfolio_analytics.data import require_columns
from portfolio_analytics.estimation import RegressionResult, maximize_loglikelihood
from portfolio_analytics.exceptions import DataSchemaError

BRANDS: list[str] = ["N", "P", "H"]  # Netflix, Prime Video, Hulu
ADS: list[str] = ["Yes", "No"]
PRICES: list[int] = list(range(8, 33, 4))

# Generating part-worths; Hulu and "no ads" are the zero-utility baselines
TRUE_PART_WORTHS: dict[str, float] = {
    "brand_N": 1.0,
    "brand_P": 0.5,
    "ad_yes": -0.8,
    "price": -0.1,
}

CONJOINT_COLUMNS: list[str] = ["resp", "task", "brand", "ad", "price", "choice"]


@dataclass
class ConjointData:
    """
    Conjoint records reshaped for likelihood evaluation.

    Rows are alternatives, sorted by respondent and task so that every task
    occupies a contiguous block starting at ``group_starts[t]``.
    """

    X: NDArray[np.float64]
    choice: NDArray[np.float64]
    task_ids: NDArray[np.int64]
    group_starts: NDArray[np.int64]
    names: list[str]

    @property
    def n_tasks(self) -> int:
        return len(self.group_starts)


def simulate_conjoint(
    n_respondents: int = 100,
    n_tasks: int = 10,
    n_alternatives: int = 3,
    part_worths: Optional[dict[str, float]] = None,
    seed: int = RANDOM_STATE,
) -> pl.DataFrame:
    """Simulates conjoint choices from known part-worths plus Gumbel noise."""
    part_worths = TRUE_PART_WORTHS if part_worths is None else part_worths
    rng = np.random.default_rng(seed)

    profiles = list(itertools.product(BRANDS, ADS, PRICES))
    brand_utility = {brand: part_worths.get(f"brand_{brand}", 0.0) for brand in BRANDS}
    ad_utility = {"Yes": part_worths["ad_yes"], "No": 0.0}

    records: dict[str, list] = {column: [] for column in CONJOINT_COLUMNS}
    for resp in range(1, n_respondents + 1):
        for task in range(1, n_tasks + 1):
            shown = [profiles[i] for i in rng.choice(len(profiles), size=n_alternatives, replace=False)]
            utility = np.array(
                [brand_utility[brand] + ad_utility[ad] + part_worths["price"] * price for brand, ad, price in shown]
            ) + rng.gumbel(size=n_alternatives)
            chosen = int(np.argmax(utility))

            for j, (brand, ad, price) in enumerate(shown):
                records["resp"].append(resp)
                records["task"].append(task)
                records["brand"].append(brand)
                records["ad"].append(ad)
                records["price"].append(price)
                records["choice"].append(int(j == chosen))

    df = pl.DataFrame(records)
    logger.info(f"Simulated {n_respondents * n_tasks:,} choice tasks ({df.shape[0]:,} alternatives)")
    return df


def prepare_conjoint(df: pl.DataFrame, brand_reference: str = "H") -> ConjointData:
    """
    Builds the MNL design matrix: brand dummies (minus the reference brand), an
    ad indicator and price. Raises ``DataSchemaError`` unless every task has
    exactly one chosen alternative.
    """
    require_columns(df, CONJOINT_COLUMNS, source="conjoint")
    df = df.sort(["resp", "task"], maintain_order=True)

    invalid_tasks = (
        df.group_by(["resp", "task"])
        .agg(pl.col("choice").sum().alias("n_chosen"))
        .filter(pl.col("n_chosen") != 1)
    )
    if invalid_tasks.shape[0] > 0:
        raise DataSchemaError(
            f"{invalid_tasks.shape[0]} choice tasks do not have exactly one chosen alternative",
            source="conjoint",
        )

    brands = sorted(b for b in df["brand"].cast(pl.Utf8).unique().to_list() if b != brand_reference)
    features = df.select(
        [(pl.col("brand").cast(pl.Utf8) == brand).cast(pl.Float64).alias(f"brand_{brand}") for brand in brands]
        + [
            (pl.col("ad").cast(pl.Utf8).str.to_lowercase() == "yes").cast(pl.Float64).alias("ad_yes"),
            pl.col("price").cast(pl.Float64),
        ]
    )

    resp = df["resp"].to_numpy()
    task = df["task"].to_numpy()
    new_task = np.r_[True, (resp[1:] != resp[:-1]) | (task[1:] != task[:-1])]

    return ConjointData(
        X=features.to_numpy(),
        choice=df["choice"].cast(pl.Float64).to_numpy(),
        task_ids=np.cumsum(new_task) - 1,
        group_starts=np.flatnonzero(new_task),
        names=features.columns,
    )


def _choice_probabilities(beta: NDArray, data: ConjointData) -> tuple[NDArray, NDArray, NDArray]:
    """Returns utilities, within-task choice probabilities and per-task log denominators."""
    v = data.X @ beta
    v_max = np.maximum.reduceat(v, data.group_starts)
    exp_v = np.exp(v - v_max[data.task_ids])
    denom = np.add.reduceat(exp_v, data.group_starts)
    return v, exp_v / denom[data.task_ids], np.log(denom) + v_max


def mnl_loglikelihood(beta: ArrayLike, data: ConjointData) -> float:
    v, _, log_denom = _choice_probabilities(np.asarray(beta, dtype=float), data)
    return float(v @ data.choice - log_denom.sum())


def mnl_gradient(beta: ArrayLike, data: ConjointData) -> NDArray:
    _, p, _ = _choice_probabilities(np.asarray(beta, dtype=float), data)
    return data.X.T @ (data.choice - p)


def mnl_hessian(beta: ArrayLike, data: ConjointData) -> NDArray:
    # -sum_t [ sum_j p_j x_j x_j' - (sum_j p_j x_j)(sum_j p_j x_j)' ]
    _, p, _ = _choice_probabilities(np.asarray(beta, dtype=float), data)
    weighted = p[:, None] * data.X
    task_means = np.add.reduceat(weighted, data.group_starts, axis=0)
    return -(data.X.T @ weighted) + task_means.T @ task_means


def fit_mnl(data: ConjointData, initial: Optional[ArrayLike] = None) -> RegressionResult:
    """Maximum likelihood MNL fit; ``n_obs`` counts choice tasks."""
    x0 = np.zeros(data.X.shape[1]) if initial is None else np.asarray(initial, dtype=float)
    return maximize_loglikelihood(
        loglik=lambda beta: mnl_loglikelihood(beta, data),
        gradient=lambda beta: mnl_gradient(beta, data),
        hessian=lambda beta: mnl_hessian(beta, data),
        x0=x0,
        names=data.names,
        n_obs=data.n_tasks,
        model_name="mnl",
    )


def default_prior_sd(names: Sequence[str], price_term: str = "price") -> NDArray[np.float64]:
    """N(0, 5) priors on the binary features, N(0, 1) on price."""
    return np.array([1.0 if name == price_term else 5.0 for name in names])


def mnl_log_posterior(beta: ArrayLike, data: ConjointData, prior_sd: Optional[ArrayLike] = None) -> float:
    """MNL log-likelihood plus independent zero-mean normal log-priors."""
    beta = np.asarray(beta, dtype=float)
    prior_sd = default_prior_sd(data.names) if prior_sd is None else np.asarray(prior_sd, dtype=float)
    return mnl_loglikelihood(beta, data) + float(np.sum(stats.norm.logpdf(beta, loc=0.0, scale=prior_sd)))


def willingness_to_pay(coef: ArrayLike, names: Sequence[str], price_term: str = "price") -> dict[str, float]:
    """Dollar value of each feature: -beta_j / beta_price."""
    coef = np.asarray(coef, dtype=float)
    names = list(names)
    beta_price = coef[names.index(price_term)]
    return {name: float(-beta / beta_price) for name, beta in zip(names, coef) if name != price_term}


def predict_shares(beta: ArrayLike, X_market: ArrayLike) -> NDArray[np.float64]:
    """Predicted market shares of the products in a single choice set (rows of ``X_market``)."""
    v = np.asarray(X_market, dtype=float) @ np.asarray(beta, dtype=float)
    exp_v = np.exp(v - v.max())
    return exp_v / exp_v.sum()
