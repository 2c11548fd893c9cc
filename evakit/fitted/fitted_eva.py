"""
This module defines the fitted extreme value models returned by the
three fitting strategies. They share one contract so that the return
level functions do not depend on how a fit was obtained:

- ``getdistribution()``: implied distribution(s),
- ``quantile(p)``: quantile of level p,
- ``parametervar()``: covariance of the parameter estimate,
- ``cint(level)``: interval for every entry of the flat parameter vector,
- ``loglikelihood()``: log-likelihood at the estimate.

Classes:
- FittedEVA: Base class.
- MaximumLikelihoodEVA: Maximum likelihood estimate, observed-information
  covariance and Wald intervals.
- PwmEVA: Probability-weighted moment estimate, bootstrap covariance and
  percentile intervals.
- BayesianEVA: Posterior draws, empirical covariance and HPD intervals.
- DistributionSequence: Lazy, restartable sequence of the distributions
  implied by posterior draws.
"""

from collections.abc import Sequence
from typing import Union

import numpy as np
import xarray as xr

from evakit.estimation.maximum_likelihood import information_covariance
from evakit.estimation.pwm import pwm_estimate
from evakit.model import likelihood
from evakit.model.parameters import EVAModel
from evakit.utils.stat_utils import (
    empirical_covariance,
    empirical_interval,
    hpd_interval,
    wald_interval,
)
from evakit.utils.type_handling import (
    check_level,
    check_probability,
    to_readonly_array,
)

DEFAULT_NBOOT = 1000
# Bootstrap seed; pass random_state=None for fresh draws on every call.
DEFAULT_SEED = 0


class FittedEVA:
    """Base class of the fitted extreme value models."""

    def __init__(self, model: EVAModel):
        if not isinstance(model, EVAModel):
            raise TypeError(f"model must be of type EVAModel. Got: {type(model)}")
        self._model = model

    @property
    def model(self) -> EVAModel:
        return self._model

    def getdistribution(self):
        raise NotImplementedError

    def quantile(self, p: float) -> np.ndarray:
        raise NotImplementedError

    def parametervar(self) -> np.ndarray:
        raise NotImplementedError

    def cint(self, level: float = 0.95) -> np.ndarray:
        raise NotImplementedError

    def loglikelihood(self) -> float:
        raise NotImplementedError


class _PointEstimateEVA(FittedEVA):
    """Fitted model summarised by a single parameter vector."""

    method = ""

    def __init__(self, model: EVAModel, theta):
        super().__init__(model)
        self._theta = to_readonly_array(model.check_theta(theta))

    @property
    def theta(self) -> np.ndarray:
        """Point estimate of the flat parameter vector."""
        return self._theta

    def getdistribution(self):
        """SciPy frozen distribution at the estimate, one parameter value
        per observation row for a non-stationary model."""
        return likelihood.getdistribution(self._model, self._theta)

    def quantile(self, p: float) -> np.ndarray:
        """
        Quantile of level ``p`` at the estimate.

        Returns
        -------
        q: np.ndarray
            One value for a stationary model, otherwise one per row.
        """
        return likelihood.quantile(self._model, self._theta, p)

    def loglikelihood(self) -> float:
        return likelihood.loglikelihood(self._model, self._theta)

    def __str__(self):
        lines = [type(self).__name__, f"model :\t{self._model!r}", "theta :"]
        lines += [
            f"\t{name} :\t{value:.6g}"
            for name, value in zip(self._model.parameter_names(), self._theta)
        ]
        return "\n".join(lines)


class MaximumLikelihoodEVA(_PointEstimateEVA):
    """
    Maximum likelihood fit.

    Parameters
    ----------
    model : EVAModel
        Fitted model.
    theta : array-like
        Maximum likelihood estimate of the flat parameter vector.
    """

    method = "mle"

    def __init__(self, model: EVAModel, theta):
        super().__init__(model, theta)
        self._cov = None

    def parametervar(self) -> np.ndarray:
        """
        Observed-information covariance matrix of the estimate.

        Raises
        ------
        SingularInformationError
            When the information matrix is not invertible.
        """
        if self._cov is None:
            self._cov = to_readonly_array(
                information_covariance(self._model, self._theta)
            )
        return self._cov

    def cint(self, level: float = 0.95) -> np.ndarray:
        """
        Wald interval of every entry of the flat parameter vector.

        Returns
        -------
        interval: np.ndarray
            Shape (nparameter, 2) with columns (lower, upper).
        """
        level = check_level(level)
        return wald_interval(self._theta, np.diag(self.parametervar()), level)


class PwmEVA(_PointEstimateEVA):
    """
    Probability-weighted moment fit of a stationary model.

    Parameters
    ----------
    model : EVAModel
        Fitted stationary model.
    theta : array-like
        PWM estimate of the flat parameter vector.
    """

    method = "pwm"

    def bootstrap(
        self,
        nboot: int = DEFAULT_NBOOT,
        random_state: Union[None, int, np.random.Generator] = DEFAULT_SEED,
    ) -> np.ndarray:
        """
        Nonparametric bootstrap of the PWM estimate: the data are
        resampled with replacement and refitted ``nboot`` times. The
        default seed makes repeated calls return the same replicates.

        Returns
        -------
        thetas: np.ndarray
            Shape (nboot, nparameter).
        """
        if not isinstance(nboot, int) or nboot < 2:
            raise ValueError(f"nboot must be an int >= 2. Got: {nboot}")
        rng = np.random.default_rng(random_state)
        y = self._model.data.value
        thetas = np.empty((nboot, self._model.nparameter))
        for b in range(nboot):
            thetas[b] = pwm_estimate(self._model, data=rng.choice(y, size=y.size))
        return thetas

    def parametervar(
        self,
        nboot: int = DEFAULT_NBOOT,
        random_state: Union[None, int, np.random.Generator] = DEFAULT_SEED,
    ) -> np.ndarray:
        """Bootstrap covariance matrix of the estimate."""
        return empirical_covariance(self.bootstrap(nboot, random_state))

    def cint(
        self,
        level: float = 0.95,
        nboot: int = DEFAULT_NBOOT,
        random_state: Union[None, int, np.random.Generator] = DEFAULT_SEED,
    ) -> np.ndarray:
        """Bootstrap percentile interval, shape (nparameter, 2)."""
        level = check_level(level)
        return empirical_interval(self.bootstrap(nboot, random_state), level)


class DistributionSequence(Sequence):
    """
    Distributions implied by a sample of parameter vectors, built on
    access. Iterating does not consume anything, so the sequence can be
    traversed any number of times.
    """

    def __init__(self, model: EVAModel, draws: np.ndarray):
        self._model = model
        self._draws = draws

    def __len__(self):
        return self._draws.shape[0]

    def __getitem__(self, i):
        if isinstance(i, slice):
            return DistributionSequence(self._model, self._draws[i])
        return likelihood.getdistribution(self._model, self._draws[i])


class BayesianEVA(FittedEVA):
    """
    Bayesian fit: posterior draws of the flat parameter vector.

    Parameters
    ----------
    model : EVAModel
        Fitted model.
    chain : array-like
        Post-warmup draws, shape (ndraws, nparameter, nchains). A 2-D array
        (ndraws, nparameter) is taken as a single chain.
    """

    method = "bayesian"

    def __init__(self, model: EVAModel, chain):
        super().__init__(model)
        chain = np.asarray(chain, dtype=float)
        if chain.ndim == 2:
            chain = chain[:, :, np.newaxis]
        if chain.ndim != 3 or chain.shape[1] != model.nparameter:
            raise ValueError(
                f"chain must have shape (ndraws, {model.nparameter}, nchains). "
                f"Got: {chain.shape}"
            )
        if chain.shape[0] == 0:
            raise ValueError("chain must contain at least one draw")
        self._chain = to_readonly_array(chain)
        # Chains pooled one after another.
        self._draws = to_readonly_array(
            np.concatenate([chain[:, :, k] for k in range(chain.shape[2])])
        )

    @property
    def chain(self) -> np.ndarray:
        """Draws, shape (ndraws, nparameter, nchains)."""
        return self._chain

    @property
    def draws(self) -> np.ndarray:
        """Draws of all chains pooled, shape (ndraws * nchains, nparameter)."""
        return self._draws

    @property
    def nchains(self) -> int:
        return self._chain.shape[2]

    def getdistribution(self) -> DistributionSequence:
        """One distribution per pooled draw, built lazily."""
        return DistributionSequence(self._model, self._draws)

    def quantile(self, p: float) -> np.ndarray:
        """
        Quantile of level ``p`` for every pooled draw.

        Returns
        -------
        q: np.ndarray
            Shape (ndraws,) for a stationary model, otherwise
            (ndraws, nrows).
        """
        p = check_probability(p)
        q = np.array(
            [likelihood.quantile(self._model, theta, p) for theta in self._draws]
        )
        if self._model.isstationary():
            return q[:, 0]
        return q

    def parametervar(self) -> np.ndarray:
        """Empirical covariance matrix of the pooled draws."""
        return empirical_covariance(self._draws)

    def cint(self, level: float = 0.95) -> np.ndarray:
        """
        Highest posterior density interval of every entry of the flat
        parameter vector, computed with ``arviz.hdi``. A chain of a
        single draw gives the degenerate interval ``[draw, draw]``.

        Returns
        -------
        interval: np.ndarray
            Shape (nparameter, 2) with columns (lower, upper).
        """
        level = check_level(level)
        return hpd_interval(self._draws, level)

    def loglikelihood(self) -> np.ndarray:
        """Log-likelihood of every pooled draw."""
        return np.array(
            [likelihood.loglikelihood(self._model, theta) for theta in self._draws]
        )

    def findposteriormode(self) -> np.ndarray:
        """
        Draw with the highest log-likelihood, an approximation of the
        maximum a posteriori estimate under the flat prior. Ties go to the
        first draw.
        """
        return self._draws[int(np.argmax(self.loglikelihood()))].copy()

    def to_dataarray(self) -> xr.DataArray:
        """The chain as a DataArray with dims (draw, parameter, chain)."""
        return xr.DataArray(
            self._chain,
            dims=("draw", "parameter", "chain"),
            coords={
                "draw": np.arange(self._chain.shape[0]),
                "parameter": self._model.parameter_names(),
                "chain": np.arange(self.nchains),
            },
            name="posterior",
        )

    def __str__(self):
        ndraws, d, nchains = self._chain.shape
        return "\n".join(
            [
                "BayesianEVA",
                f"model :\t{self._model!r}",
                "chain :",
                f"\tChains :\t\t{nchains}",
                f"\tSamples per chain :\t{ndraws}",
                f"\tParameters :\t\t{d}",
            ]
        )


def parametervar(fm: FittedEVA, **kwargs) -> np.ndarray:
    """Alias for ``fm.parametervar``."""
    return fm.parametervar(**kwargs)


def cint(fm: FittedEVA, level: float = 0.95, **kwargs) -> np.ndarray:
    """Alias for ``fm.cint``."""
    return fm.cint(level, **kwargs)


def quantile(fm: FittedEVA, p: float) -> np.ndarray:
    """Alias for ``fm.quantile``."""
    return fm.quantile(p)


def getdistribution(fm: FittedEVA):
    """Alias for ``fm.getdistribution``."""
    return fm.getdistribution()


def findposteriormode(fm: BayesianEVA) -> np.ndarray:
    """Alias for ``fm.findposteriormode``."""
    if not isinstance(fm, BayesianEVA):
        raise TypeError(f"fm must be of type BayesianEVA. Got: {type(fm)}")
    return fm.findposteriormode()
