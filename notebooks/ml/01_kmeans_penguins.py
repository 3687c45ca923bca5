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

# # K-Means Clustering: Palmer Penguins
# K-Means partitions observations into K groups by alternating two steps until nothing changes:
# 1. **Assign** each point to its nearest centroid.
# 2. **Update** each centroid to the mean of the points assigned to it.
#
# We implement it from scratch, visualize how the centroids move, compare with `scikit-learn`, and then use the within-cluster sum of squares and silhouette score to choose K.

# +
# Imports
import matplotlib.pyplot as plt
import numpy as np
import polars as pl
import seaborn as sns
from sklearn.cluster import KMeans

from portfolio_analytics.config import FIGURES_DIR, PENGUINS_FILE, RANDOM_STATE
from portfolio_analytics.data import drop_incomplete, load_csv
from portfolio_analytics.kmeans import evaluate_k, kmeans
from portfolio_analytics.logger import setup_logger
from portfolio_analytics.plotting import plot_elbow, plot_kmeans_steps, save_figure

setup_logger("kmeans_penguins")
coolwarm = sns.color_palette("coolwarm", 8)
# -

# Constants
FEATURES: list[str] = ["bill_length_mm", "flipper_length_mm"]
K: int = 3
K_VALUES: range = range(2, 8)

df: pl.DataFrame = drop_incomplete(load_csv(PENGUINS_FILE, columns=["species", *FEATURES]), FEATURES)
X = df.select(FEATURES).to_numpy()
df.describe()

# +
fig, ax = plt.subplots(figsize=(10, 6))
sns.scatterplot(df.to_pandas(), x=FEATURES[0], y=FEATURES[1], hue="species", palette="coolwarm", ax=ax)
ax.set_title("Bill Length vs Flipper Length by Species")
save_figure(fig, "penguins_species", FIGURES_DIR)
plt.show()
# -

# The three species form fairly distinct groups on these two measurements, which makes this a nice test case: a good clustering should roughly recover them without being told the labels.

# ## 5.1 K-Means From Scratch
# Initial centroids are K distinct rows chosen at random. Iteration stops when the centroids stop moving.

result = kmeans(X, K, seed=RANDOM_STATE)
print(f"Converged: {result.converged} after {result.n_iter} iterations")
print(f"Within-cluster sum of squares: {result.inertia:,.1f}")

fig = plot_kmeans_steps(X, result, steps=(0, 1, 2, -1), feature_names=FEATURES)
save_figure(fig, "penguins_kmeans_steps", FIGURES_DIR)
plt.show()

# The first panel shows the random starting centroids. After a single update they have already moved toward the dense regions, and by the final iteration they sit at the centre of each group.
#
# The within-cluster sum of squares should never increase from one iteration to the next:

# +
fig, ax = plt.subplots(figsize=(10, 5))
ax.plot(range(1, len(result.inertia_history) + 1), result.inertia_history, marker="o", color=coolwarm[1])
ax.set_title("Within-Cluster Sum of Squares per Iteration")
ax.set_xlabel("Iteration")
ax.set_ylabel("WCSS")
save_figure(fig, "penguins_kmeans_inertia", FIGURES_DIR)
plt.show()

assert np.all(np.diff(result.inertia_history) <= 1e-9)
# -

# ## 5.2 Comparison With scikit-learn
# `KMeans` uses k-means++ initialization and several restarts, so cluster numbering may differ. Sorting centroids by the first feature makes them comparable.

# +
sk_kmeans = KMeans(n_clusters=K, n_init=10, random_state=RANDOM_STATE).fit(X)

ours = result.centroids[np.argsort(result.centroids[:, 0])]
theirs = sk_kmeans.cluster_centers_[np.argsort(sk_kmeans.cluster_centers_[:, 0])]

pl.DataFrame(
    {
        "bill_length_ours": ours[:, 0],
        "bill_length_sklearn": theirs[:, 0],
        "flipper_length_ours": ours[:, 1],
        "flipper_length_sklearn": theirs[:, 1],
    }
)
# -

print(f"WCSS ours: {result.inertia:,.1f}, sklearn: {sk_kmeans.inertia_:,.1f}")

# Both land on essentially the same centroids and the same within-cluster sum of squares.

# ## 5.3 Choosing the Number of Clusters
# The within-cluster sum of squares always falls as K grows, so we look for an "elbow". The silhouette score instead peaks when clusters are both tight and well separated.

metrics = evaluate_k(X, K_VALUES, seed=RANDOM_STATE)
metrics

fig = plot_elbow(metrics)
save_figure(fig, "penguins_elbow", FIGURES_DIR)
plt.show()

best_silhouette = metrics.sort("silhouette", descending=True, nulls_last=True).row(0, named=True)
print(f"Best silhouette: K = {best_silhouette['k']} ({best_silhouette['silhouette']:.3f})")

# ## Findings
# 1. The from-scratch implementation converges in a handful of iterations and matches `scikit-learn`.
# 2. The WCSS curve bends around K = 3, matching the three species.
# 3. The silhouette score favours a small K, since two of the species overlap on bill and flipper length.
#
# Taken together, K = 3 is a sensible choice, but the metrics don't agree perfectly. That is typical of real data.
