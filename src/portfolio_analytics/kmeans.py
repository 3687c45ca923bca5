"""From-scratch K-Means (Lloyd's algorithm) plus helpers for choosing K."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import numpy as np
import polars as pl
from loguru import logger
from numpy.typing import ArrayLike, NDArray
from sklearn.metrics import silhouette_score

from portfolio_analytics.config import RANDOM_STATE


@dataclass
class KMeansResult:
    centroids: NDArray[np.float64]
    labels: NDArray[np.int64]
    n_iter: int
    converged: bool
    inertia_history: list[float] = field(default_factory=list)
    centroid_history: list[NDArray[np.float64]] = field(default_factory=list)

    @property
    def inertia(self) -> float:
        return self.inertia_history[-1]


def assign_clusters(X: NDArray, centroids: NDArray) -> NDArray[np.int64]:
    """Index of the nearest centroid (squared Euclidean distance) for every row of ``X``."""
    distances = ((X[:, None, :] - centroids[None, :, :]) ** 2).sum(axis=2)
    return distances.argmin(axis=1)


def update_centroids(X: NDArray, labels: NDArray, centroids: NDArray) -> NDArray[np.float64]:
    """Mean of each cluster's points; an empty cluster keeps its previous centroid."""
    updated = centroids.copy()
    for j in range(len(centroids)):
        members = X[labels == j]
        if len(members):
            updated[j] = members.mean(axis=0)
    return updated


def within_cluster_sum_of_squares(X: ArrayLike, labels: ArrayLike, centroids: ArrayLike) -> float:
    X = np.asarray(X, dtype=float)
    centroids = np.asarray(centroids, dtype=float)
    return float(((X - centroids[np.asarray(labels)]) ** 2).sum())


def kmeans(
    X: ArrayLike,
    k: int,
    max_iter: int = 100,
    seed: int = RANDOM_STATE,
    tol: float = 0.0,
) -> KMeansResult:
    """
    Clusters the rows of ``X`` into ``k`` groups.

    Initial centroids are ``k`` distinct rows drawn at random. Assignment and
    update steps alternate until no centroid moves by more than ``tol`` or
    ``max_iter`` updates have run. ``centroid_history`` starts with the initial
    centroids so the steps can be plotted.
    """
    X = np.asarray(X, dtype=float)
    if not 1 <= k <= X.shape[0]:
        raise ValueError(f"k must be between 1 and the number of points ({X.shape[0]}), got {k}")

    rng = np.random.default_rng(seed)
    centroids = X[rng.choice(X.shape[0], size=k, replace=False)]
    result = KMeansResult(centroids=centroids, labels=assign_clusters(X, centroids), n_iter=0, converged=False)
    result.centroid_history.append(centroids)

    for iteration in range(1, max_iter + 1):
        labels = assign_clusters(X, centroids)
        updated = update_centroids(X, labels, centroids)

        result.inertia_history.append(within_cluster_sum_of_squares(X, labels, updated))
        result.centroid_history.append(updated)
        result.n_iter = iteration

        shift = np.abs(updated - centroids).max()
        centroids = updated
        if shift <= tol:
            result.converged = True
            break

    result.centroids = centroids
    result.labels = assign_clusters(X, centroids)

    if result.converged:
        logger.debug(f"K-Means (k={k}) converged after {result.n_iter} iterations, WCSS = {result.inertia:,.2f}")
    else:
        logger.warning(f"K-Means (k={k}) hit max_iter={max_iter} before converging")

    return result


def evaluate_k(X: ArrayLike, k_values: Iterable[int], seed: int = RANDOM_STATE) -> pl.DataFrame:
    """Within-cluster sum of squares and silhouette score for each candidate K."""
    X = np.asarray(X, dtype=float)
    rows = []
    for k in k_values:
        result = kmeans(X, k, seed=seed)
        n_labels = len(np.unique(result.labels))
        rows.append(
            {
                "k": k,
                "wcss": result.inertia,
                # silhouette is only defined for 2 <= labels <= n - 1
                "silhouette": (
                    float(silhouette_score(X, result.labels)) if 2 <= n_labels <= X.shape[0] - 1 else None
                ),
            }
        )

    return pl.DataFrame(rows, schema={"k": pl.Int64, "wcss": pl.Float64, "silhouette": pl.Float64})
