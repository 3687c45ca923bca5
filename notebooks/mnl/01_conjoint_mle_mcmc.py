# ---
# jupyter:
#   jupytext:
#     cell_metadata_filter: -all
#     formats: ipynb,py:light
#     text_representation:
#       extension: .py
#       format_name: light
#       format_version: '1.5'
#       jupytext_version: 1.17.3
#   kernelspec:
#     display_name: Python 3 (ipykernel)
#     language: python
#     name: python3
# ---

# # Multinomial Logit via Maximum Likelihood and Bayesian MCMC
# This notebook estimates a Multinomial Logit (MNL) model of consumer choice among streaming services, first by Maximum Likelihood and then by a hand-written Metropolis-Hastings sampler.
#
# Each respondent sees 10 choice tasks, each with 3 alternatives described by:
# - **brand**: Netflix (N), Prime Video (P) or Hulu (H)
# - **ad**: whether the plan includes advertisements
# - **price**: monthly price, $8 to $32 in $4 steps
#
# Utility of alternative $j$ for respondent $i$ is $U_{ij} = x_j'\beta + \epsilon_{ij}$ with i.i.d. Gumbel errors, giving choice probabilities
#
# $$P_i(j) = \frac{e^{x_j'\beta}}{\sum_{k=1}^{J} e^{x_k'\beta}}$$

# +
# Imports
import matplotlib.pyplot as plt
import numpy as np
import polars as pl
import seaborn as sns

from portfolio_analytics.config import CONJOINT_FILE, FIGURES_DIR, MODELS_DIR, RANDOM_STATE
from portfolio_analytics.data import load_csv
from portfolio_analytics.logger import setup_logger
from portfolio_analytics.mcmc import metropolis_hastings
from portfolio_analytics.mnl import (
    CONJOINT_COLUMNS,
    TRUE_PART_WORTHS,
    default_prior_sd,
    fit_mnl,
    mnl_log_posterior,
    predict_shares,
    prepare_conjoint,
    simulate_conjoint,
    willingness_to_pay,
)
from portfolio_analytics.plotting import plot_trace, save_figure
from portfolio_analytics.results import save_estimates

setup_logger("conjoint")
coolwarm = sns.color_palette("coolwarm", 8)
# -

# Constants
N_STEPS: int = 11_000
BURN_IN: int = 1_000
PROPOSAL_SD: list[float] = [0.05, 0.05, 0.05, 0.005]

# ## 4.1 Conjoint Data
# The survey responses are stored in `conjoint_data.csv`. If the file isn't available, the same design is simulated from known part-worths, which has the bonus of letting us check the estimates against the truth.

# +
if CONJOINT_FILE.exists():
    conjoint: pl.DataFrame = load_csv(CONJOINT_FILE, columns=CONJOINT_COLUMNS)
else:
    conjoint = simulate_conjoint(n_respondents=100, n_tasks=10, n_alternatives=3, seed=RANDOM_STATE)

data = prepare_conjoint(conjoint, brand_reference="H")
print(f"Choice tasks: {data.n_tasks:,}, alternatives: {data.X.shape[0]:,}")
print(f"Features: {data.names}")
conjoint.head(9)
# -

# Hulu is the reference brand, so `brand_N` and `brand_P` measure preference relative to Hulu. `ad_yes` is the (dis)utility of ads, and `price` is per dollar.

# ## 4.2 Estimation via Maximum Likelihood
# The log-likelihood sums, over tasks, the log probability of the chosen alternative. It is concave in $\beta$, so Newton's method with the analytic gradient and Hessian converges quickly. Standard errors come from the inverse of the negative Hessian at the optimum.

mle = fit_mnl(data)
mle_summary = mle.summary()
mle_summary

# ## 4.3 Estimation via Bayesian Methods
# Priors are $N(0, 5)$ on the binary features and $N(0, 1)$ on price. Working in log space, the posterior is the log-likelihood plus the log-prior.
#
# The sampler takes 11,000 steps and discards the first 1,000. Proposals are independent normal steps for each parameter, with a smaller step for price since it lives on a smaller scale.

# +
prior_sd = default_prior_sd(data.names)
print(f"Prior standard deviations: {dict(zip(data.names, prior_sd))}")

chain = metropolis_hastings(
    lambda beta: mnl_log_posterior(beta, data, prior_sd),
    initial=np.zeros(len(data.names)),
    proposal_sd=PROPOSAL_SD,
    n_steps=N_STEPS,
    seed=RANDOM_STATE,
)
print(f"Acceptance rate: {chain.acceptance_rate:.1%}")
# -

fig = plot_trace(chain.draws, data.names, burn_in=BURN_IN)
save_figure(fig, "conjoint_mcmc_trace", FIGURES_DIR)
plt.show()

# The traces start at zero, move to the high-probability region within a few hundred steps, and then mix well around it. The burn-in comfortably covers the initial climb.

# +
posterior_summary = chain.posterior_summary(data.names, burn_in=BURN_IN)

comparison = mle_summary.select(
    "term",
    pl.col("coef").alias("mle"),
    pl.col("std_err").alias("mle_std_err"),
    pl.col("ci_low").alias("mle_ci_low"),
    pl.col("ci_high").alias("mle_ci_high"),
).join(
    posterior_summary.rename({"mean": "posterior_mean", "std": "posterior_std"}),
    on="term",
)
if not CONJOINT_FILE.exists():
    comparison = comparison.with_columns(
        pl.col("term").replace_strict(TRUE_PART_WORTHS, default=None, return_dtype=pl.Float64).alias("true")
    )
comparison
# -

# With flat-ish priors and 1,000 tasks, the posterior means and standard deviations are very close to the MLE and its standard errors, and the 95% credible intervals almost coincide with the confidence intervals.

# ## 4.4 Discussion
# - $\beta_\text{Netflix} > \beta_\text{Prime} > 0$: respondents prefer Netflix to Prime, and both to Hulu, all else equal.
# - $\beta_\text{ad} < 0$: ads reduce utility.
# - $\beta_\text{price} < 0$: higher prices reduce utility, as any sensible demand model requires.
#
# Dividing each coefficient by the price coefficient gives the dollar value of each feature.

wtp = willingness_to_pay(mle.coef, mle.names)
pl.DataFrame({"feature": list(wtp), "willingness_to_pay": list(wtp.values())})

# +
market = pl.DataFrame(
    {
        "product": ["Netflix, ad-free, $20", "Prime, with ads, $12", "Hulu, with ads, $8"],
        "brand_N": [1.0, 0.0, 0.0],
        "brand_P": [0.0, 1.0, 0.0],
        "ad_yes": [0.0, 1.0, 1.0],
        "price": [20.0, 12.0, 8.0],
    }
)
shares = predict_shares(mle.coef, market.select(mle.names).to_numpy())
market_shares = market.select("product").with_columns(pl.Series("share", shares))
display(market_shares)

fig, ax = plt.subplots(figsize=(10, 6))
sns.barplot(market_shares.to_pandas(), x="product", y="share", hue="product", palette="coolwarm", ax=ax)
ax.set_title("Predicted Market Shares")
ax.set_xlabel("")
ax.set_ylabel("Share")
save_figure(fig, "conjoint_market_shares", FIGURES_DIR)
plt.show()
# -

# Finally, persist both sets of estimates so later notebooks can reuse them without refitting.

# +
metadata = {"n_tasks": data.n_tasks, "features": data.names, "seed": RANDOM_STATE}
save_estimates(mle, "conjoint_mnl_mle", MODELS_DIR, metadata=metadata)
save_estimates(
    chain,
    "conjoint_mnl_mcmc",
    MODELS_DIR,
    metadata={**metadata, "n_steps": N_STEPS, "burn_in": BURN_IN, "acceptance_rate": chain.acceptance_rate},
)
# -

# ## 4.5 Toward a Hierarchical Model
# The model above assumes every respondent shares the same $\beta$. Real consumers differ, so a multi-level (random-parameter or hierarchical) model would draw each respondent's $\beta_i$ from a population distribution $\beta_i \sim N(\mu, \Sigma)$.
#
# To simulate from such a model, draw a $\beta_i$ per respondent before simulating their choices. To estimate it, the sampler would alternate between updating each $\beta_i$ given $(\mu, \Sigma)$ and updating $(\mu, \Sigma)$ given all $\beta_i$.
