"""From-scratch K-Nearest Neighbours on a synthetic, non-linear 2-D boundary."""

from __future__ import annotations

from typing import Iterable

import numpy as np
import polars as pl
from loguru import logger
from numpy.typing import ArrayLike, NDArray

from portfolio_analytics.config import RANDOM_STATE


def simulate_boundary_data(n: int = 100, seed: int = RANDOM_STATE) -> pl.DataFrame:
    """
    Draws x1, x2 ~ U(-3, 3) and labels a point 1 when it lies above the wiggly
    boundary x2 = sin(4 * x1) + x1.
    """
    rng = np.random.default_rng(seed)
    x1 = rng.uniform(-3, 3, size=n)
    x2 = rng.uniform(-3, 3, size=n)
    boundary = np.sin(4 * x1) + x1

    return pl.DataFrame({"x1": x1, "x2": x2, "y": (x2 > boundary).astype(np.int64)})


def knn_predict(X_train: ArrayLike, y_train: ArrayLike, X_test: ArrayLike, k: int) -> NDArray:
    """
    Majority vote among the ``k`` nearest training points (Euclidean distance).

    Labels may be any sortable values (0/1, -1/+1, strings); predictions are
    returned as the original labels. Ties go to the label of the closest
    neighbour among the tied labels.
    """
    X_train = np.asarray(X_train, dtype=float)
    X_test = np.asarray(X_test, dtype=float)
    classes, encoded = np.unique(np.asarray(y_train), return_inverse=True)
    encoded = encoded.ravel()
    if not 1 <= k <= len(X_train):
        raise ValueError(f"k must be between 1 and the training set size ({len(X_train)}), got {k}")

    distances = np.sqrt(((X_test[:, None, :] - X_train[None, :, :]) ** 2).sum(axis=2))
    # stable sort so equidistant neighbours keep training order
    nearest = np.argsort(distances, axis=1, kind="stable")[:, :k]

    predictions = np.empty(len(X_test), dtype=np.int64)
    for i, neighbours in enumerate(nearest):
        votes = encoded[neighbours]
        counts = np.bincount(votes, minlength=len(classes))
        tied = np.flatnonzero(counts == counts.max())
        # votes are ordered nearest-first, so the first tied vote seen is the closest
        predictions[i] = next(vote for vote in votes if vote in tied)

    return classes[predictions]


def accuracy_by_k(
    X_train: ArrayLike,
    y_train: ArrayLike,
    X_test: ArrayLike,
    y_test: ArrayLike,
    k_values: Iterable[int],
) -> pl.DataFrame:
    y_test = np.asarray(y_test)
    rows = []
    for k in k_values:
        predictions = knn_predict(X_train, y_train, X_test, k)
        rows.append({"k": k, "accuracy": float((predictions == y_test).mean())})

    df = pl.DataFrame(rows, schema={"k": pl.Int64, "accuracy": pl.Float64})
    best = df.sort(["accuracy", "k"], descending=[True, False]).row(0, named=True)
    logger.info(f"Best k = {best['k']} with test accuracy {best['accuracy']:.1%}")
    return df
