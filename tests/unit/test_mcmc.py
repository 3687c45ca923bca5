"""Unit tests for the Metropolis-Hastings sampler."""

import numpy as np
import pytest

from portfolio_analytics.mcmc import MetropolisResult, metropolis_hastings
from portfolio_analytics.mnl import fit_mnl, mnl_loglikelihood, prepare_conjoint, simulate_conjoint


def normal_log_density(mean, sd):
    mean = np.asarray(mean, dtype=float)
    sd = np.asarray(sd, dtype=float)
    return lambda x: -0.5 * np.sum(((x - mean) / sd) ** 2)


@pytest.mark.unit
class TestMetropolisHastings:
    """Tests for the random-walk sampler."""

    def test_draws_shape(self):
        result = metropolis_hastings(normal_log_density([0.0, 0.0], [1.0, 1.0]), [0.0, 0.0], 0.5, n_steps=500)
        assert result.draws.shape == (500, 2)
        assert result.accepted.shape == (500,)
        assert 0.0 < result.acceptance_rate < 1.0

    def test_samples_a_known_normal(self):
        """Test that the chain reproduces the mean and sd of a Gaussian target."""
        result = metropolis_hastings(
            normal_log_density([2.0, -1.0], [1.0, 0.5]), [0.0, 0.0], [1.0, 0.5], n_steps=40_000, seed=1
        )
        summary = result.posterior_summary(["a", "b"], burn_in=1_000)

        np.testing.assert_allclose(summary["mean"].to_numpy(), [2.0, -1.0], atol=0.1)
        np.testing.assert_allclose(summary["std"].to_numpy(), [1.0, 0.5], rtol=0.1)

    def test_rejected_steps_repeat_the_state(self):
        result = metropolis_hastings(normal_log_density([0.0], [1.0]), [0.0], 2.0, n_steps=1_000, seed=5)
        draws = result.draws[:, 0]
        repeated = np.r_[False, draws[1:] == draws[:-1]]
        np.testing.assert_array_equal(repeated[1:], ~result.accepted[1:])

    def test_seed_is_reproducible(self):
        target = normal_log_density([0.0], [1.0])
        first = metropolis_hastings(target, [0.0], 1.0, n_steps=200, seed=9)
        second = metropolis_hastings(target, [0.0], 1.0, n_steps=200, seed=9)
        np.testing.assert_array_equal(first.draws, second.draws)

    def test_impossible_initial_point_raises(self):
        with pytest.raises(ValueError, match="initial point"):
            metropolis_hastings(lambda x: -np.inf, [0.0], 1.0, n_steps=10)

    def test_proposals_outside_support_are_rejected(self):
        """Test that the chain never leaves a region where the target is zero."""
        def half_normal(x):
            return -0.5 * float(x[0] ** 2) if x[0] > 0 else -np.inf

        result = metropolis_hastings(half_normal, [1.0], 1.0, n_steps=2_000, seed=2)
        assert (result.draws > 0).all()


@pytest.mark.unit
class TestPosteriorSummary:
    """Tests for MetropolisResult.posterior_summary."""

    def test_burn_in_is_discarded(self):
        draws = np.vstack([np.full((10, 1), 100.0), np.full((90, 1), 1.0)])
        result = MetropolisResult(draws=draws, accepted=np.ones(100, dtype=bool))

        summary = result.posterior_summary(["theta"], burn_in=10)
        assert summary["mean"][0] == pytest.approx(1.0)
        assert summary.columns == ["term", "mean", "std", "q2.5", "q97.5"]

    def test_invalid_burn_in(self):
        result = MetropolisResult(draws=np.zeros((10, 1)), accepted=np.zeros(10, dtype=bool))
        with pytest.raises(ValueError):
            result.posterior_summary(burn_in=10)


@pytest.mark.unit
def test_mnl_posterior_mean_approaches_mle():
    """Test that with flat priors the posterior mean of the MNL part-worths sits at the MLE."""
    data = prepare_conjoint(simulate_conjoint(n_respondents=100, seed=21))
    mle = fit_mnl(data)

    result = metropolis_hastings(
        lambda beta: mnl_loglikelihood(beta, data),
        initial=np.zeros(4),
        proposal_sd=[0.05, 0.05, 0.05, 0.005],
        n_steps=11_000,
        seed=4,
    )
    posterior_mean = result.posterior(burn_in=1_000).mean(axis=0)

    assert np.all(np.abs(posterior_mean - mle.coef) < mle.std_err)


@pytest.mark.unit
def test_mnl_running_mean_moves_toward_mle_with_chain_length():
    """Test that longer chains from the same start land closer to the MLE."""
    data = prepare_conjoint(simulate_conjoint(n_respondents=100, seed=21))
    mle = fit_mnl(data)

    # a fixed seed makes a shorter chain a prefix of a longer one
    draws = metropolis_hastings(
        lambda beta: mnl_loglikelihood(beta, data),
        initial=np.zeros(4),
        proposal_sd=[0.05, 0.05, 0.05, 0.005],
        n_steps=20_000,
        seed=4,
    ).draws
    distances = [np.linalg.norm((draws[:n].mean(axis=0) - mle.coef) / mle.std_err) for n in (200, 2_000, 20_000)]

    assert distances[0] > distances[1] > distances[2]
    assert distances[2] < 2.0
