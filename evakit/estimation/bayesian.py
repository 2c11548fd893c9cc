"""
This module samples the posterior distribution of the flat parameter
vector of an extreme value model with a random-walk Metropolis sampler
under an improper flat prior, so that the target is the likelihood.

One chain is strictly sequential: each proposal is centered on the state
accepted at the previous iteration. Independent chains share no mutable
state and can be run concurrently.

Classes:
- MetropolisSampler: The sampler as an Initialize / Propose /
  Accept-Reject / Record loop; every run owns its draw buffer.

Functions:
- proposal_covariance: Gaussian proposal covariance for a model.
- sample_chains: Run several independent chains and stack them.
"""

import logging
import warnings
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Union

import numpy as np

from evakit.errors import (
    ConvergenceError,
    InvalidIterationBudgetError,
    SingularInformationError,
)
from evakit.estimation.maximum_likelihood import information_covariance, mle_estimate
from evakit.estimation.pwm import pwm_estimate
from evakit.model.likelihood import loglikelihood
from evakit.model.parameters import EVAModel
from evakit.warnings import SamplerWarning

logger = logging.getLogger(__name__)

DEFAULT_NITER = 5000
DEFAULT_WARMUP = 2000
DEFAULT_PROPOSAL_SCALE = 0.1
# Optimal scaling of a Gaussian random-walk proposal (Roberts, Gelman and Gilks, 1997).
OPTIMAL_SCALING = 2.38
ACCEPTANCE_RANGE = (0.1, 0.7)


def check_budget(niter: int, warmup: int):
    """Raise InvalidIterationBudgetError unless 0 <= warmup < niter."""
    if not isinstance(niter, (int, np.integer)) or isinstance(niter, bool):
        raise TypeError(f"niter must be of type int. Got: {type(niter)}")
    if not isinstance(warmup, (int, np.integer)) or isinstance(warmup, bool):
        raise TypeError(f"warmup must be of type int. Got: {type(warmup)}")
    if warmup < 0:
        raise InvalidIterationBudgetError(f"warmup must be >= 0. Got: {warmup}")
    if niter <= warmup:
        raise InvalidIterationBudgetError(
            f"niter ({niter}) must exceed warmup ({warmup}) to retain any draw"
        )


class MetropolisSampler:
    """
    Random-walk Metropolis sampler over the flat parameter vector.

    Parameters
    ----------
    model : EVAModel
        Extreme value model.
    initialvalue : np.ndarray
        State of the chain at iteration 0. Its log-likelihood must be finite.
    proposal_cov : np.ndarray
        Covariance of the Gaussian proposal step.
    """

    def __init__(self, model: EVAModel, initialvalue, proposal_cov):
        self.model = model
        self.initialvalue = model.check_theta(initialvalue)
        proposal_cov = np.atleast_2d(np.asarray(proposal_cov, dtype=float))
        if proposal_cov.shape != (model.nparameter, model.nparameter):
            raise ValueError(
                f"proposal_cov must have shape ({model.nparameter}, {model.nparameter}). "
                f"Got: {proposal_cov.shape}"
            )
        # Cholesky factor used to draw correlated steps.
        self._step = np.linalg.cholesky(proposal_cov)

        if not np.isfinite(loglikelihood(model, self.initialvalue)):
            raise ValueError(
                "the log-likelihood is infinite at the initial value "
                f"{np.round(self.initialvalue, 6).tolist()}"
            )

    def run(self, niter: int, warmup: int, rng: Optional[np.random.Generator] = None):
        """
        Run one chain.

        Parameters
        ----------
        niter : int
            Number of iterations, warmup included.
        warmup : int
            Number of initial draws discarded.
        rng : numpy.random.Generator, optional
            Source of randomness owned by this run.

        Returns
        -------
        draws : np.ndarray
            Retained draws, shape (niter - warmup, nparameter).
        acceptance_rate : float
            Fraction of accepted proposals over all iterations.
        """
        check_budget(niter, warmup)
        if rng is None:
            rng = np.random.default_rng()

        # Initialize
        state = self.initialvalue.copy()
        state_ll = loglikelihood(self.model, state)
        buffer = np.empty((niter, self.model.nparameter))
        naccept = 0

        for i in range(niter):
            # Propose
            proposal = state + self._step @ rng.standard_normal(self.model.nparameter)
            proposal_ll = loglikelihood(self.model, proposal)

            # Accept / reject on the log scale: accept with probability
            # min(1, L(proposal) / L(state)).
            if np.log(rng.uniform()) < proposal_ll - state_ll:
                state, state_ll = proposal, proposal_ll
                naccept += 1

            # Record; a rejection repeats the current state.
            buffer[i] = state

        return buffer[warmup:], naccept / niter


def proposal_covariance(
    model: EVAModel,
    theta: np.ndarray,
    proposal_scale: Union[None, float, np.ndarray] = None,
) -> np.ndarray:
    """
    Covariance of the Gaussian proposal.

    An explicit ``proposal_scale`` (scalar or one standard deviation per
    parameter) gives a diagonal covariance. Otherwise the observed-information
    covariance at ``theta`` is scaled by ``2.38**2 / d``; when it is not
    available the diagonal default is used.
    """
    d = model.nparameter
    if proposal_scale is not None:
        scale = np.broadcast_to(np.asarray(proposal_scale, dtype=float), (d,))
        if np.any(scale <= 0):
            raise ValueError(f"proposal_scale must be positive. Got: {proposal_scale}")
        return np.diag(scale**2)

    try:
        cov = information_covariance(model, theta)
    except SingularInformationError as err:
        logger.info("falling back to a diagonal proposal: %s", err)
        return np.diag(np.full(d, DEFAULT_PROPOSAL_SCALE**2))
    return OPTIMAL_SCALING**2 / d * cov


def initial_state(model: EVAModel) -> np.ndarray:
    """Maximum likelihood estimate, or the PWM estimate of a stationary
    model whose likelihood maximization fails."""
    try:
        return mle_estimate(model)
    except ConvergenceError as err:
        if not model.isstationary():
            raise
        logger.info("seeding the sampler at the PWM estimate: %s", err)
        return pwm_estimate(model)


def sample_chains(
    model: EVAModel,
    niter: int = DEFAULT_NITER,
    warmup: int = DEFAULT_WARMUP,
    proposal_scale: Union[None, float, np.ndarray] = None,
    nchains: int = 1,
    initialvalue: Optional[np.ndarray] = None,
    random_state: Union[None, int, np.random.SeedSequence] = None,
    n_jobs: int = 1,
) -> np.ndarray:
    """
    Sample the posterior of the flat parameter vector.

    Parameters
    ----------
    model: EVAModel
        Extreme value model.
    niter: int
        Iterations per chain, warmup included.
    warmup: int
        Initial draws discarded from every chain.
    proposal_scale: float or np.ndarray, optional
        Standard deviation(s) of the proposal step.
    nchains: int
        Number of independent chains.
    initialvalue: np.ndarray, optional
        Common initial state. Default is the MLE (PWM as fallback).
    random_state: int or numpy.random.SeedSequence, optional
        Seed; one child seed is spawned per chain.
    n_jobs: int
        Number of chains run concurrently.

    Returns
    -------
    chain: np.ndarray
        Draws, shape (niter - warmup, nparameter, nchains).
    """
    check_budget(niter, warmup)
    if not isinstance(nchains, int) or nchains < 1:
        raise ValueError(f"nchains must be a positive int. Got: {nchains}")
    if not isinstance(n_jobs, int) or n_jobs < 1:
        raise ValueError(f"n_jobs must be a positive int. Got: {n_jobs}")

    if initialvalue is None:
        initialvalue = initial_state(model)
    else:
        initialvalue = model.check_theta(initialvalue)

    sampler = MetropolisSampler(
        model, initialvalue, proposal_covariance(model, initialvalue, proposal_scale)
    )

    if not isinstance(random_state, np.random.SeedSequence):
        random_state = np.random.SeedSequence(random_state)
    rngs = [np.random.default_rng(s) for s in random_state.spawn(nchains)]

    def run(rng):
        return sampler.run(niter, warmup, rng)

    if n_jobs == 1 or nchains == 1:
        results = [run(rng) for rng in rngs]
    else:
        with ThreadPoolExecutor(max_workers=n_jobs) as executor:
            results = list(executor.map(run, rngs))

    for k, (_, rate) in enumerate(results):
        logger.info("chain %d: acceptance rate %.3f", k, rate)
        if not ACCEPTANCE_RANGE[0] <= rate <= ACCEPTANCE_RANGE[1]:
            warnings.warn(
                f"Metropolis acceptance rate {rate:.3f} of chain {k} is outside "
                f"{ACCEPTANCE_RANGE}; consider changing proposal_scale",
                SamplerWarning,
            )

    return np.stack([draws for draws, _ in results], axis=-1)
