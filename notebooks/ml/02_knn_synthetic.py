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

# # K-Nearest Neighbors: Synthetic Non-Linear Boundary
# KNN classifies a point by a majority vote of its k nearest training points. It makes no assumption about the shape of the decision boundary, so we test it on data with a deliberately wiggly one:
#
# $$y = \mathbb{1}\left[x_2 > \sin(4x_1) + x_1\right], \quad x_1, x_2 \sim U(-3, 3)$$

# +
# Imports
import matplotlib.pyplot as plt
import numpy as np
import polars as pl
import seaborn as sns
from sklearn.neighbors import KNeighborsClassifier

from portfolio_analytics.config import FIGURES_DIR
from portfolio_analytics.knn import accuracy_by_k, knn_predict, simulate_boundary_data
from portfolio_analytics.logger import setup_logger
from portfolio_analytics.plotting import plot_accuracy_by_k, plot_boundary_data, save_figure

setup_logger("knn_synthetic")
coolwarm = sns.color_palette("coolwarm", 8)
# -

# Constants
N_POINTS: int = 100
TRAIN_SEED: int = 42
TEST_SEED: int = 24
K_VALUES: range = range(1, 31)
FEATURES: list[str] = ["x1", "x2"]

# ## 6.1 Synthetic Data
# The training and test sets are drawn from the same process with different seeds.

# +
train = simulate_boundary_data(N_POINTS, seed=TRAIN_SEED)
test = simulate_boundary_data(N_POINTS, seed=TEST_SEED)

X_train, y_train = train.select(FEATURES).to_numpy(), train["y"].to_numpy()
X_test, y_test = test.select(FEATURES).to_numpy(), test["y"].to_numpy()

print(f"Training class balance: {y_train.mean():.2f}, test class balance: {y_test.mean():.2f}")
# -

fig = plot_boundary_data(train, title="Training Data")
save_figure(fig, "knn_training_data", FIGURES_DIR)
plt.show()

# ## 6.2 KNN From Scratch
# Distances are Euclidean. When a vote is tied (possible for even k), the label of the nearest tied neighbour wins.
#
# As a sanity check, our predictions should agree with `scikit-learn` for odd k, where a tie between two classes cannot happen.

# +
for k in (1, 5, 15):
    ours = knn_predict(X_train, y_train, X_test, k)
    theirs = KNeighborsClassifier(n_neighbors=k).fit(X_train, y_train).predict(X_test)
    print(f"k = {k:>2}: agreement with sklearn {np.mean(ours == theirs):.0%}, test accuracy {np.mean(ours == y_test):.0%}")
# -

# ## 6.3 Choosing k
# Let's compute test accuracy for k = 1 to 30.

accuracy = accuracy_by_k(X_train, y_train, X_test, y_test, K_VALUES)

fig = plot_accuracy_by_k(accuracy)
save_figure(fig, "knn_accuracy_by_k", FIGURES_DIR)
plt.show()

best = accuracy.sort(["accuracy", "k"], descending=[True, False]).head(5)
best

# Small k follows the training data closely and picks up noise; large k smooths over the wiggles in the boundary. The best test accuracy sits in between.
#
# With only 100 test points, one misclassification moves accuracy by a full percentage point, so neighbouring values of k with similar accuracy are practically equivalent.

# +
best_k = best["k"][0]
grid_x1, grid_x2 = np.meshgrid(np.linspace(-3, 3, 150), np.linspace(-3, 3, 150))
grid = np.column_stack([grid_x1.ravel(), grid_x2.ravel()])
grid_predictions = knn_predict(X_train, y_train, grid, best_k).reshape(grid_x1.shape)

fig, ax = plt.subplots(figsize=(8, 8))
ax.contourf(grid_x1, grid_x2, grid_predictions, levels=[-0.5, 0.5, 1.5], colors=[coolwarm[1], coolwarm[6]], alpha=0.3)
sns.scatterplot(test.to_pandas(), x="x1", y="x2", hue="y", palette="coolwarm", ax=ax)
boundary_x1 = np.linspace(-3, 3, 300)
ax.plot(boundary_x1, np.sin(4 * boundary_x1) + boundary_x1, color="black", linestyle="--", label="True boundary")
ax.set_ylim(-3, 3)
ax.set_title(f"KNN Decision Regions (k = {best_k}) on Test Data")
ax.legend()
save_figure(fig, "knn_decision_regions", FIGURES_DIR)
plt.show()
# -

# ## Findings
# 1. The from-scratch KNN agrees with `scikit-learn` whenever votes cannot tie.
# 2. Test accuracy is lowest at the extremes of k: too small overfits, too large underfits the wiggly boundary.
# 3. The learned decision regions trace the true sine-shaped boundary reasonably well, despite only 100 training points.
