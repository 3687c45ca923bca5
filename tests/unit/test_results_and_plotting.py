"""Unit tests for persisted estimates, figures and logger setup."""

import numpy as np
import polars as pl
import pytest
from loguru import logger

from portfolio_analytics.estimation import RegressionResult
from portfolio_analytics.kmeans import kmeans
from portfolio_analytics.knn import accuracy_by_k, simulate_boundary_data
from portfolio_analytics.logger import setup_logger
from portfolio_analytics.plotting import (
    plot_accuracy_by_k,
    plot_boundary_data,
    plot_elbow,
    plot_grouped_histogram,
    plot_kmeans_steps,
    plot_trace,
    save_figure,
)
from portfolio_analytics.results import load_estimates, save_estimates


@pytest.mark.unit
def test_estimates_round_trip(tmp_path):
    """Test that a fitted result and its metadata survive a save/load cycle."""
    result = RegressionResult(
        coef=np.array([1.0, -0.1]), std_err=np.array([0.1, 0.01]), names=["brand_N", "price"], loglik=-10.0, n_obs=5
    )
    path = save_estimates(result, "mnl_mle", tmp_path / "models", metadata={"n_tasks": 5})

    assert path.exists()
    loaded, metadata = load_estimates("mnl_mle", tmp_path / "models")
    np.testing.assert_array_equal(loaded.coef, result.coef)
    assert loaded.names == ["brand_N", "price"]
    assert metadata == {"n_tasks": 5}


@pytest.mark.unit
class TestFigures:
    """Tests that each figure helper draws and saves."""

    def test_save_figure_creates_directory(self, tmp_path):
        fig = plot_grouped_histogram(
            pl.DataFrame({"patents": [1, 2, 3, 4], "iscustomer": [0, 1, 0, 1]}), "patents", "iscustomer", bins=4
        )
        path = save_figure(fig, "patents", figures_dir=tmp_path / "figures", dpi=50)
        assert path == tmp_path / "figures" / "patents.png"
        assert path.stat().st_size > 0

    def test_plot_trace_layout(self):
        draws = np.random.default_rng(0).normal(size=(300, 3))
        fig = plot_trace(draws, ["a", "b", "c"], burn_in=100)
        assert len(fig.axes) == 6

    def test_plot_kmeans_steps(self):
        X = np.random.default_rng(0).normal(size=(60, 2))
        result = kmeans(X, 3, seed=1)
        fig = plot_kmeans_steps(X, result, steps=(0, -1))
        assert len(fig.axes) == 2
        assert fig.axes[1].get_title() == f"Iteration {result.n_iter}"

    def test_plot_kmeans_steps_short_runs(self):
        """Test that default steps are clamped when a run records fewer iterations than requested."""
        X = np.random.default_rng(0).normal(size=(60, 2))
        one_update = kmeans(X, 3, max_iter=1, seed=1)
        fig = plot_kmeans_steps(X, one_update)
        assert [ax.get_title() for ax in fig.axes] == ["Iteration 0", "Iteration 1"]

        five_points = X[:5]
        every_point_a_cluster = kmeans(five_points, 5, seed=1)
        assert every_point_a_cluster.n_iter == 1
        assert len(plot_kmeans_steps(five_points, every_point_a_cluster).axes) == 2

    def test_grouped_histogram_draws_polars_frame(self):
        df = pl.DataFrame({"patents": [0, 1, 1, 2, 3, 5, 4, 6], "iscustomer": [0, 0, 0, 0, 1, 1, 1, 1]})
        fig = plot_grouped_histogram(df, "patents", "iscustomer", bins=4, title="Patents")

        assert fig.axes[0].get_title() == "Patents"
        assert len(fig.axes[0].patches) > 0

    def test_plot_elbow_skips_missing_silhouette(self):
        metrics = pl.DataFrame({"k": [1, 2, 3], "wcss": [10.0, 4.0, 3.0], "silhouette": [None, 0.6, 0.4]})
        fig = plot_elbow(metrics)
        assert len(fig.axes[1].lines[0].get_xdata()) == 2

    def test_boundary_and_accuracy_plots(self):
        train = simulate_boundary_data(40, seed=1)
        test = simulate_boundary_data(40, seed=2)
        accuracy = accuracy_by_k(
            train.select(["x1", "x2"]).to_numpy(),
            train["y"].to_numpy(),
            test.select(["x1", "x2"]).to_numpy(),
            test["y"].to_numpy(),
            range(1, 6),
        )

        assert plot_boundary_data(train).axes[0].get_title() == "Synthetic Data"
        assert plot_accuracy_by_k(accuracy).axes[0].get_xlabel() == "k"


@pytest.mark.unit
def test_setup_logger_writes_file(tmp_path):
    log_file = setup_logger("unit", log_dir=tmp_path / "logs")
    assert log_file == tmp_path / "logs" / "unit.log"

    kmeans(np.random.default_rng(0).normal(size=(20, 2)), 2)
    logger.remove()
    assert "K-Means" in log_file.read_text()


@pytest.mark.unit
def test_setup_logger_console_only():
    assert setup_logger("unit") is None
