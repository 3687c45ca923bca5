"""
Random-walk Metropolis-Hastings sampler.

A single chain with a fixed number of steps: every parameter is perturbed by
independent Gaussian noise, and the proposal is accepted when
log(u) < log p(proposal) - log p(current) for u ~ U(0, 1). The proposal is
symmetric, so the Hastings correction cancels.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np
import polars as pl
from loguru import logger
from numpy.typing import ArrayLike, NDArray

from portfolio_analytics.config import RANDOM_STATE


@dataclass
class MetropolisResult:
    draws: NDArray[np.float64]  # (n_steps, k): chain state after each step
    accepted: NDArray[np.bool_]  # (n_steps,)

    @property
    def acceptance_rate(self) -> float:
        return float(self.accepted.mean())

    def posterior(self, burn_in: int = 1_000) -> NDArray[np.float64]:
        if not 0 <= burn_in < len(self.draws):
            raise ValueError(f"burn_in must be in [0, {len(self.draws)}), got {burn_in}")
        return self.draws[burn_in:]

    def posterior_summary(self, names: Optional[Sequence[str]] = None, burn_in: int = 1_000) -> pl.DataFrame:
        """Posterior mean, standard deviation and 95% credible interval per parameter."""
        kept = self.posterior(burn_in)
        names = [f"x{i}" for i in range(kept.shape[1])] if names is None else list(names)
        return pl.DataFrame(
            {
                "term": names,
                "mean": kept.mean(axis=0),
                "std": kept.std(axis=0, ddof=1),
                "q2.5": np.quantile(kept, 0.025, axis=0),
                "q97.5": np.quantile(kept, 0.975, axis=0),
            }
        )


def metropolis_hastings(
    log_target: Callable[[NDArray[np.float64]], float],
    initial: ArrayLike,
    proposal_sd: ArrayLike,
    n_steps: int = 11_000,
    seed: int = RANDOM_STATE,
) -> MetropolisResult:
    """
    Samples from the density whose log (up to a constant) is ``log_target``.

    Args:
        log_target: Unnormalized log density, e.g. log-likelihood + log-prior
        initial: Starting point of the chain, shape (k,)
        proposal_sd: Standard deviation of the Gaussian step for each parameter
        n_steps: Number of iterations (burn-in included)
        seed: Seed for the proposal and acceptance draws

    Returns:
        MetropolisResult holding every state of the chain
    """
    current = np.array(initial, dtype=float)
    proposal_sd = np.broadcast_to(np.asarray(proposal_sd, dtype=float), current.shape)
    rng = np.random.default_rng(seed)

    current_log_p = log_target(current)
    if not np.isfinite(current_log_p):
        raise ValueError("log_target is not finite at the initial point")

    draws = np.empty((n_steps, current.size))
    accepted = np.zeros(n_steps, dtype=bool)

    for step in range(n_steps):
        proposal = current + rng.normal(0.0, proposal_sd)
        proposal_log_p = log_target(proposal)

        if np.log(rng.uniform()) < proposal_log_p - current_log_p:
            current, current_log_p = proposal, proposal_log_p
            accepted[step] = True

        draws[step] = current

    result = MetropolisResult(draws=draws, accepted=accepted)
    logger.info(f"Metropolis-Hastings: {n_steps:,} steps, acceptance rate {result.acceptance_rate:.1%}")
    return result
