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

# # A Replication of Karlan and List (2007)
# Dean Karlan and John List ran a natural field experiment to test the effectiveness of different fundraising letters. They sent out 50,000 letters to potential donors of a non-profit, randomly assigning each letter to one of several treatments.
#
# - The **control** group received a standard letter.
# - The **treatment** group was offered a **matching grant**: a leadership donor would match each dollar at a 1:1, 2:1 or 3:1 ratio, up to a threshold.
#
# This notebook replicates the headline results: balance checks, response rates, match ratio comparisons and donation sizes. It closes with simulations that illustrate the Law of Large Numbers and the Central Limit Theorem behind the t-test.

# +
# Imports
import matplotlib.pyplot as plt
import polars as pl
import seaborn as sns

from portfolio_analytics.config import FIGURES_DIR, KARLAN_LIST_FILE
from portfolio_analytics.data import load_stata
from portfolio_analytics.experiment import (
    CONTROL_RESPONSE_RATE,
    TREATMENT_RESPONSE_RATE,
    balance_table,
    fit_ols,
    fit_probit,
    response_rates,
    simulate_law_of_large_numbers,
    simulate_sampling_distribution,
    welch_t_test,
)
from portfolio_analytics.logger import setup_logger
from portfolio_analytics.plotting import save_figure

setup_logger("karlan_list")
coolwarm = sns.color_palette("coolwarm", 8)
# -

# Constants
BALANCE_COVARIATES: list[str] = ["mrm2", "hpa", "freq", "years", "female", "couple"]
COLUMNS: list[str] = ["treatment", "control", "ratio2", "ratio3", "gave", "amount", *BALANCE_COVARIATES]

df: pl.DataFrame = load_stata(KARLAN_LIST_FILE, columns=COLUMNS)
print(f"Letters: {df.shape[0]:,}")
df.select(["treatment", "gave", "amount"]).describe()

# ## 3.1 Balance Test
# As an ad hoc test of the randomization, we check whether pre-treatment variables differ between the treatment and control groups. Starting with `mrm2` (months since last donation), the Welch t-statistic is
#
# $$t = \frac{\bar X_T - \bar X_C}{\sqrt{s_T^2/n_T + s_C^2/n_C}}$$

# +
treated = df.filter(pl.col("treatment") == 1)
control = df.filter(pl.col("treatment") == 0)

mrm2_test = welch_t_test(treated["mrm2"].to_numpy(), control["mrm2"].to_numpy())
print(f"mrm2 difference: {mrm2_test.diff:.4f}, t = {mrm2_test.statistic:.3f}, p = {mrm2_test.p_value:.3f}")

mrm2_ols = fit_ols(df, "mrm2", ["treatment"])
print(f"OLS coefficient: {mrm2_ols.params['treatment']:.4f}, t = {mrm2_ols.tvalues['treatment']:.3f}")
# -

# The t-test and the regression give the same difference: regressing on a treatment dummy is just a difference in means. Neither is close to significant.
#
# Let's run the same check across other pre-treatment variables, similar to Table 1 in the paper.

balance_table(df, "treatment", BALANCE_COVARIATES)

# None of the differences are significant at the 95% level, which is what we'd expect if the assignment is truly random. Table 1 exists in the paper for exactly this reason: it shows readers that any later difference can be attributed to the letters.

# ## 3.2 Charitable Contribution Made
# Did the matching offer make people more likely to donate?

# +
rates = response_rates(df, "treatment")
display(rates)

fig, ax = plt.subplots(figsize=(8, 6))
sns.barplot(
    rates.with_columns(
        pl.col("treatment").replace_strict({0: "Control", 1: "Treatment"}, return_dtype=pl.Utf8)
    ).to_pandas(),
    x="treatment",
    y="rate",
    hue="treatment",
    palette="coolwarm",
    ax=ax,
)
ax.set_title("Proportion Who Donated")
ax.set_xlabel("")
ax.set_ylabel("Response Rate")
save_figure(fig, "karlan_list_response_rates", FIGURES_DIR)
plt.show()
# -

# +
gave_test = welch_t_test(treated["gave"].to_numpy(), control["gave"].to_numpy())
print(f"Difference in response rate: {gave_test.diff:.4f} (t = {gave_test.statistic:.3f}, p = {gave_test.p_value:.4f})")

gave_ols = fit_ols(df, "gave", ["treatment"])
print(f"Linear probability model: {gave_ols.params['treatment']:.4f} (p = {gave_ols.pvalues['treatment']:.4f})")

gave_probit = fit_probit(df, "gave", ["treatment"])
print(f"Probit coefficient:      {gave_probit.params['treatment']:.4f} (p = {gave_probit.pvalues['treatment']:.4f})")
# -

# The response rate rises from about 1.8% to 2.2%. That sounds tiny, but relative to the baseline it is a 22% increase in the number of donors. The probit coefficient matches Table 3, column 1 of the paper.
#
# In plain terms: people are more likely to give when they know their donation will be matched. The existence of a match offer seems to matter more than its size, as the next section shows.

# ## 3.3 Differences Between Match Rates
# Does a 2:1 or 3:1 match work better than 1:1?

# +
# `ratio` is a labelled categorical in the Stata file, so rebuild it from the dummies
treated_ratios = treated.with_columns(
    pl.when(pl.col("ratio2") == 1).then(2).when(pl.col("ratio3") == 1).then(3).otherwise(1).alias("ratio")
)
print(response_rates(treated_ratios, "ratio"))

for higher in (2, 3):
    test = welch_t_test(
        treated_ratios.filter(pl.col("ratio") == higher)["gave"].to_numpy(),
        treated_ratios.filter(pl.col("ratio") == 1)["gave"].to_numpy(),
    )
    print(f"{higher}:1 vs 1:1 -> difference {test.diff:.4f}, p = {test.p_value:.3f}")

ratio_ols = fit_ols(treated_ratios, "gave", ["ratio2", "ratio3"])
ratio_ols.summary2().tables[1]
# -

# Neither the 2:1 nor the 3:1 match rate significantly outperforms 1:1. This supports the paper's comment that "larger match ratios had no additional impact".

# ## 3.4 Size of Charitable Contribution
# Next, did the treatment change how much people give?

# +
amount_all = fit_ols(df, "amount", ["treatment"])
print(f"All letters:  {amount_all.params['treatment']:.4f} (p = {amount_all.pvalues['treatment']:.3f})")

donors = df.filter(pl.col("gave") == 1)
amount_donors = fit_ols(donors, "amount", ["treatment"])
print(f"Donors only:  {amount_donors.params['treatment']:.4f} (p = {amount_donors.pvalues['treatment']:.3f})")
# -

# Across all letters the treatment effect on amount is marginal, and it is driven by more people giving. Among donors, those in the treatment group give about the same (slightly less) than control donors.
#
# The donors-only coefficient does **not** have a causal interpretation: conditioning on giving selects a different population in each arm.

# +
fig, axes = plt.subplots(1, 2, figsize=(16, 6), sharey=True)
for ax, (label, group) in zip(axes, [("Control", 0), ("Treatment", 1)]):
    amounts = donors.filter(pl.col("treatment") == group)["amount"]
    sns.histplot(amounts.to_numpy(), bins=40, color=coolwarm[1 if group == 0 else 6], ax=ax)
    ax.axvline(amounts.mean(), color="red", linestyle="--", label=f"Mean: ${amounts.mean():.2f}")
    ax.set_title(f"{label} Donation Amounts")
    ax.set_xlabel("Amount ($)")
    ax.legend()

plt.tight_layout()
save_figure(fig, "karlan_list_donation_amounts", FIGURES_DIR)
plt.show()
# -

# ## 3.5 Simulation Experiment
# To build intuition for the t-statistic, suppose the true donation probability is 1.8% without a match and 2.2% with one.
#
# ### Law of Large Numbers
# We draw 10,000 pairs of Bernoulli outcomes and track the cumulative average of the differences.

# +
lln = simulate_law_of_large_numbers(n=10_000)
true_difference = TREATMENT_RESPONSE_RATE - CONTROL_RESPONSE_RATE

fig, ax = plt.subplots(figsize=(12, 6))
sns.lineplot(lln.to_pandas(), x="draw", y="cumulative_mean", color=coolwarm[1], ax=ax)
ax.axhline(true_difference, color="red", linestyle="--", label=f"True difference: {true_difference:.3f}")
ax.set_title("Cumulative Average of Treatment - Control Differences")
ax.set_xlabel("Number of Draws")
ax.set_ylabel("Cumulative Average")
ax.legend()
save_figure(fig, "karlan_list_law_of_large_numbers", FIGURES_DIR)
plt.show()
# -

# The cumulative average bounces around early on, then settles on the true difference of 0.004 as draws accumulate.
#
# ### Central Limit Theorem
# Now repeat the experiment 1,000 times at sample sizes 50, 200, 500 and 1,000, and look at the distribution of the average difference.

# +
sampling = simulate_sampling_distribution(sample_sizes=(50, 200, 500, 1000), n_simulations=1_000)

fig, axes = plt.subplots(2, 2, figsize=(16, 10))
for ax, size in zip(axes.flat, [50, 200, 500, 1000]):
    sns.histplot(
        sampling.filter(pl.col("sample_size") == size)["mean_difference"].to_numpy(),
        bins=30,
        color=coolwarm[1],
        ax=ax,
    )
    ax.axvline(0, color="black", linestyle="--", label="Zero")
    ax.axvline(true_difference, color="red", linestyle="--", label="True difference")
    ax.set_title(f"Sample Size = {size}")
    ax.set_xlabel("Average Difference")
    ax.legend()

plt.tight_layout()
save_figure(fig, "karlan_list_central_limit_theorem", FIGURES_DIR)
plt.show()
# -

# At a sample size of 50, zero sits right in the middle of the distribution: we could easily fail to detect the effect. As the sample grows the distribution narrows and becomes bell-shaped, and zero moves into the tail.
#
# That is the Central Limit Theorem at work, and it's why the large sample in Karlan and List can detect a 0.4 percentage point difference.

# ## Findings
# 1. Randomization looks successful: pre-treatment variables are balanced.
# 2. Offering a match increases the probability of giving by about 0.4 percentage points (a 22% relative increase).
# 3. Larger match ratios do not increase giving beyond the 1:1 match.
# 4. Conditional on giving, treated donors do not give more.
# 5. Simulations show why large samples are needed to detect such a small effect.
