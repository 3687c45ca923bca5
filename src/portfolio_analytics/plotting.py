"""Figures shared by the case-study notebooks (matplotlib + seaborn)."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import polars as pl
import seaborn as sns
from matplotlib.figure import Figure
from numpy.typing import NDArray

from portfolio_analytics.config import FIGURE_DPI, FIGURES_DIR
from portfolio_analytics.kmeans import KMeansResult, assign_clusters

coolwarm = sns.color_palette("coolwarm", 8)


def save_figure(fig: Figure, name: str, figures_dir: Path = FIGURES_DIR, dpi: int = FIGURE_DPI) -> Path:
    figures_dir = Path(figures_dir)
    figures_dir.mkdir(parents=True, exist_ok=True)
    path = figures_dir / f"{name}.png"
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    return path


def plot_grouped_histogram(
    df: pl.DataFrame,
    column: str,
    hue: str,
    bins: int = 25,
    title: Optional[str] = None,
) -> Figure:
    """Histogram of ``column`` per ``hue`` group, normalized within each group."""
    fig, ax = plt.subplots(figsize=(10, 6))
    sns.histplot(
        df.to_pandas(),
        x=column,
        hue=hue,
        bins=bins,
        stat="density",
        common_norm=False,
        palette="coolwarm",
        ax=ax,
    )
    ax.set_title(title or f"{column} by {hue}")
    ax.set_xlabel(column)
    return fig


def plot_trace(draws: NDArray[np.float64], names: Sequence[str], burn_in: int = 1_000) -> Figure:
    """Trace (left) and post-burn-in posterior histogram (right) for each parameter."""
    fig, axes = plt.subplots(len(names), 2, figsize=(14, 3 * len(names)), squeeze=False)

    for i, name in enumerate(names):
        axes[i, 0].plot(draws[:, i], color=coolwarm[1], linewidth=0.5)
        axes[i, 0].axvline(burn_in, color="red", linestyle="--", linewidth=1)
        axes[i, 0].set_title(f"Trace: {name}")
        axes[i, 0].set_xlabel("Step")

        sns.histplot(draws[burn_in:, i], bins=50, kde=True, color=coolwarm[1], ax=axes[i, 1])
        axes[i, 1].set_title(f"Posterior: {name}")

    fig.tight_layout()
    return fig


def plot_kmeans_steps(
    X: NDArray[np.float64],
    result: KMeansResult,
    steps: Sequence[int] = (0, 1, 2, -1),
    feature_names: Sequence[str] = ("x1", "x2"),
) -> Figure:
    """
    Cluster assignments and centroids at selected iterations of a 2-D K-Means run.

    Negative steps count from the end. Steps past the last recorded iteration
    are clamped to it, and duplicates are drawn once.
    """
    n_recorded = len(result.centroid_history)
    steps = sorted({min(step, n_recorded - 1) if step >= 0 else step % n_recorded for step in steps})

    fig, axes = plt.subplots(1, len(steps), figsize=(5 * len(steps), 5), squeeze=False)
    palette = sns.color_palette("husl", len(result.centroids))

    for ax, step in zip(axes[0], steps):
        centroids = result.centroid_history[step]
        labels = assign_clusters(X, centroids)
        ax.scatter(X[:, 0], X[:, 1], c=[palette[label] for label in labels], s=15, alpha=0.7)
        ax.scatter(centroids[:, 0], centroids[:, 1], c="black", marker="X", s=150)
        ax.set_title(f"Iteration {step}")
        ax.set_xlabel(feature_names[0])
        ax.set_ylabel(feature_names[1])

    fig.tight_layout()
    return fig


def plot_elbow(metrics: pl.DataFrame) -> Figure:
    """WCSS and silhouette score against K, from ``kmeans.evaluate_k``."""
    fig, axes = plt.subplots(1, 2, figsize=(14, 5))

    axes[0].plot(metrics["k"], metrics["wcss"], marker="o", color=coolwarm[1])
    axes[0].set_title("Within-Cluster Sum of Squares")
    axes[0].set_xlabel("K")

    scored = metrics.drop_nulls("silhouette")
    axes[1].plot(scored["k"], scored["silhouette"], marker="o", color=coolwarm[6])
    axes[1].set_title("Silhouette Score")
    axes[1].set_xlabel("K")

    fig.tight_layout()
    return fig


def plot_boundary_data(df: pl.DataFrame, title: str = "Synthetic Data") -> Figure:
    """Labelled points with the generating boundary x2 = sin(4 * x1) + x1 overlaid."""
    fig, ax = plt.subplots(figsize=(8, 6))
    sns.scatterplot(df.to_pandas(), x="x1", y="x2", hue="y", palette="coolwarm", ax=ax)

    grid = np.linspace(-3, 3, 500)
    ax.plot(grid, np.sin(4 * grid) + grid, color="black", linestyle="--", label="boundary")
    ax.set_ylim(-3, 3)
    ax.set_title(title)
    ax.legend()
    return fig


def plot_accuracy_by_k(accuracy: pl.DataFrame) -> Figure:
    fig, ax = plt.subplots(figsize=(10, 5))
    ax.plot(accuracy["k"], accuracy["accuracy"], marker="o", color=coolwarm[1])

    best = accuracy.sort(["accuracy", "k"], descending=[True, False]).row(0, named=True)
    ax.axvline(best["k"], color="red", linestyle="--", label=f"Best k = {best['k']}")
    ax.set_xlabel("k")
    ax.set_ylabel("Test Accuracy")
    ax.set_title("KNN Accuracy by k")
    ax.legend()
    return fig
