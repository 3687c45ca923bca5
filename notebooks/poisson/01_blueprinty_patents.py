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

# # Poisson Regression: Blueprinty Patent Counts
# Blueprinty sells software for preparing patent applications to the US Patent Office. Their marketing team claims that firms using the software are more successful at getting patents approved.
#
# Ideally, we'd compare success rates of applications before and after firms adopt the software. Unfortunately, that data isn't available, so instead we have 1,500 mature engineering firms with:
# - `patents`: number of patents awarded over the last 5 years
# - `region`: regional location of the firm
# - `age`: years since incorporation
# - `iscustomer`: whether the firm uses Blueprinty's software
#
# ## Goals
# 1. Compare patent counts, regions and ages of customers vs non-customers.
# 2. Estimate a Poisson rate by Maximum Likelihood, by hand and by formula.
# 3. Fit a Poisson regression by MLE and check it against `statsmodels`.
# 4. Translate the customer coefficient into an effect on patents.

# +
# Imports
import matplotlib.pyplot as plt
import numpy as np
import polars as pl
import seaborn as sns

from portfolio_analytics.config import BLUEPRINTY_FILE, FIGURES_DIR
from portfolio_analytics.data import add_dummies, design_matrix, load_csv
from portfolio_analytics.logger import setup_logger
from portfolio_analytics.plotting import plot_grouped_histogram, save_figure
from portfolio_analytics.poisson import (
    average_treatment_effect,
    fit_poisson_glm,
    fit_poisson_rate,
    fit_poisson_regression,
    poisson_loglikelihood,
    poisson_rate_mle,
)

setup_logger("blueprinty")
coolwarm = sns.color_palette("coolwarm", 8)
# -

# Constants
COLUMNS: list[str] = ["patents", "region", "age", "iscustomer"]
REFERENCE_REGION: str = "Midwest"

df: pl.DataFrame = load_csv(BLUEPRINTY_FILE, columns=COLUMNS)
df.describe()

# ## 1.1 Customers vs Non-Customers
# Let's begin by comparing the distribution of patents between customers and non-customers.

# +
fig = plot_grouped_histogram(df, "patents", "iscustomer", bins=17, title="Patents Awarded (Last 5 Years)")
save_figure(fig, "blueprinty_patents_by_customer", FIGURES_DIR)
plt.show()

df.group_by("iscustomer").agg(
    pl.len().alias("firms"),
    pl.col("patents").mean().alias("mean_patents"),
    pl.col("patents").var().alias("var_patents"),
).sort("iscustomer")
# -

# Customers hold noticeably more patents on average than non-customers, and both distributions are right-skewed, as counts usually are.
#
# However, Blueprinty customers are not selected at random. It may be important to account for systematic differences in age and regional location before reading this as an effect of the software.

# +
fig, axes = plt.subplots(1, 2, figsize=(16, 6))

region_shares = (
    df.group_by(["region", "iscustomer"])
    .agg(pl.len().alias("firms"))
    .with_columns((pl.col("firms") / pl.col("firms").sum().over("iscustomer")).alias("share"))
    .sort(["region", "iscustomer"])
)
sns.barplot(region_shares.to_pandas(), x="region", y="share", hue="iscustomer", palette="coolwarm", ax=axes[0])
axes[0].set_title("Regional Mix by Customer Status")
axes[0].set_ylabel("Share of Firms")

sns.boxplot(df.to_pandas(), x="iscustomer", y="age", color=coolwarm[2], ax=axes[1])
axes[1].set_title("Firm Age by Customer Status")
axes[1].set_xlabel("Is Customer")
axes[1].set_ylabel("Age (Years)")

plt.tight_layout()
save_figure(fig, "blueprinty_region_age", FIGURES_DIR)
plt.show()

display(region_shares)
# -

# The regional mix is clearly different: customers are concentrated in the Northeast, while non-customers are spread more evenly. Age distributions are similar, with customers only slightly older.
#
# Any regression should therefore control for region and age.

# ## 1.2 Estimation of a Simple Poisson Model
# Since the outcome is a count of patents awarded over a fixed time window, a Poisson model is a natural starting point:
#
# $$Y_i \sim \text{Poisson}(\lambda), \quad f(Y|\lambda) = e^{-\lambda}\lambda^Y / Y!$$
#
# The log-likelihood for the whole sample is $\ell(\lambda) = \sum_i \left(-\lambda + Y_i \log\lambda - \log Y_i!\right)$.

# +
y = df["patents"].to_numpy()
lambdas = np.linspace(0.5, 8, 300)
loglik = [poisson_loglikelihood(lam, y) for lam in lambdas]

fig, ax = plt.subplots(figsize=(10, 6))
ax.plot(lambdas, loglik, color=coolwarm[1])
ax.axvline(y.mean(), color="red", linestyle="--", label=f"Sample mean: {y.mean():.3f}")
ax.set_xlabel("Lambda")
ax.set_ylabel("Log-Likelihood")
ax.set_title("Poisson Log-Likelihood of Patent Counts")
ax.legend()
save_figure(fig, "blueprinty_loglikelihood", FIGURES_DIR)
plt.show()
# -

# Taking the first derivative and setting it to zero, $\sum_i (-1 + Y_i/\lambda) = 0$ gives $\hat\lambda_{MLE} = \bar Y$, which "feels right" since the Poisson mean is $\lambda$.
#
# Let's confirm that numerically maximizing the likelihood lands at the same place.

print(f"Closed-form MLE (sample mean): {poisson_rate_mle(y):.6f}")
print(f"Numerical MLE:                 {fit_poisson_rate(y):.6f}")

# ## 1.3 Estimation of a Poisson Regression Model
# Next, we let the rate depend on firm characteristics: $Y_i \sim \text{Poisson}(\lambda_i)$ with $\lambda_i = \exp(X_i'\beta)$.
#
# Covariates are age, age squared, region dummies (Midwest as the reference) and customer status. Age is measured in decades so that age squared stays on a scale the optimizer is comfortable with.

# +
df_model = add_dummies(
    df.with_columns(
        (pl.col("age") / 10).alias("age_decades"),
        ((pl.col("age") / 10) ** 2).alias("age_decades_sq"),
    ),
    "region",
    reference=REFERENCE_REGION,
)

region_columns = sorted(c for c in df_model.columns if c.startswith("region_"))
regressors = ["age_decades", "age_decades_sq", *region_columns, "iscustomer"]
X, names = design_matrix(df_model, regressors)

poisson_result = fit_poisson_regression(df_model["patents"].to_numpy(), X, names=names)
poisson_result.summary()
# -

# To double check the hand-rolled estimator, let's fit the same model with `statsmodels`' GLM.

# +
glm = fit_poisson_glm(df_model["patents"].to_numpy(), X, names=names)

comparison = pl.DataFrame(
    {
        "term": names,
        "mle_coef": poisson_result.coef,
        "glm_coef": glm.params.to_numpy(),
        "mle_std_err": poisson_result.std_err,
        "glm_std_err": glm.bse.to_numpy(),
    }
)
display(comparison)
print(f"Max coefficient difference: {np.abs(poisson_result.coef - glm.params.to_numpy()).max():.2e}")
# -

# The two agree to many decimal places. Reading the table:
# - Age has a concave (inverted U) relationship with patents: older firms patent more up to a point, then less.
# - Region dummies are small and insignificant once age and customer status are accounted for.
# - The customer coefficient is positive and significant.
#
# Since the model is non-linear, the coefficient itself isn't "patents per customer". Instead, let's predict every firm's patents twice, once as a non-customer and once as a customer, and average the difference.

customer_column = names.index("iscustomer")
effect = average_treatment_effect(poisson_result.coef, X, customer_column)
print(f"Average predicted patent gain from using Blueprinty: {effect:.3f} patents over 5 years")

# ## Findings
# 1. Customers average more patents than non-customers, but they also differ by region (concentrated in the Northeast) and slightly by age.
# 2. The Poisson rate MLE equals the sample mean, both analytically and numerically.
# 3. Controlling for age and region, the hand-written Poisson regression MLE matches `statsmodels` exactly; being a customer is associated with a significantly higher patent rate.
# 4. Counterfactually, switching every firm to the software raises predicted patents by the amount printed above over five years.
#
# This is still observational data, so the effect is an association. Firms that choose Blueprinty may differ in ways the data doesn't capture.
