"""
This module evaluates the log-likelihood and the quantile function of an
extreme value model for a flat parameter vector.

The shape parameter follows the convention where a positive shape gives a
heavy upper tail. SciPy's ``genextreme`` uses the opposite sign
(``c = -shape``) while ``genpareto`` uses the same sign (``c = shape``);
the mapping is done here only.

Functions:
- getdistribution: SciPy frozen distribution implied by a parameter vector.
- loglikelihood: Log-likelihood of the model data, -inf outside the support.
- quantile: Quantile of level p for every covariate row.
"""

import numpy as np
from scipy import stats

from evakit.model.parameters import BlockMaxima, EVAModel, ThresholdExceedance
from evakit.utils.type_handling import check_probability


def _frozen(model: EVAModel, params: dict):
    if isinstance(model, BlockMaxima):
        return stats.genextreme(
            c=-params["shape"], loc=params["location"], scale=params["scale"]
        )
    if isinstance(model, ThresholdExceedance):
        return stats.genpareto(c=params["shape"], loc=0.0, scale=params["scale"])
    raise TypeError(
        f"model must be a BlockMaxima or ThresholdExceedance. Got: {type(model)}"
    )


def _rows(model: EVAModel, theta) -> dict:
    # A stationary model has a single distribution, evaluated on row 0.
    if model.isstationary():
        return model.link(theta, row=0)
    return model.link(theta)


def getdistribution(model: EVAModel, theta):
    """
    Return the distribution implied by the parameter vector ``theta``.

    Parameters
    ----------
    model: EVAModel
        Extreme value model.
    theta: array-like
        Flat parameter vector.

    Returns
    -------
    distribution: scipy.stats.rv_frozen
        Scalar parameters for a stationary model, otherwise one parameter
        value per observation row.
    """
    return _frozen(model, _rows(model, theta))


def loglikelihood(model: EVAModel, theta) -> float:
    """
    Compute the log-likelihood of the model data for the parameter vector
    ``theta``.

    Vectors for which an observation falls outside the support of the
    linked distribution, for which the linked parameters are not finite,
    or for which the shape is -1 or below (the density is then unbounded
    at the upper endpoint) give ``-inf``. This is expected during
    optimization and sampling and is never an error.

    Parameters
    ----------
    model: EVAModel
        Extreme value model.
    theta: array-like
        Flat parameter vector of length ``model.nparameter``.

    Returns
    -------
    ll: float
        Log-likelihood.
    """
    theta = model.check_theta(theta)
    if not np.all(np.isfinite(theta)):
        return -np.inf

    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        params = model.link(theta)
        if not all(np.all(np.isfinite(v)) for v in params.values()):
            return -np.inf
        if np.any(params["scale"] <= 0) or np.any(params["shape"] <= -1):
            return -np.inf
        logpdf = _frozen(model, params).logpdf(model.data.value)
        ll = float(np.sum(logpdf))

    if not np.isfinite(ll):
        return -np.inf
    return ll


def quantile(model: EVAModel, theta, p: float) -> np.ndarray:
    """
    Compute the quantile of level ``p`` of the distribution implied by
    ``theta``.

    Parameters
    ----------
    model: EVAModel
        Extreme value model.
    theta: array-like
        Flat parameter vector.
    p: float
        Quantile level in (0, 1).

    Returns
    -------
    q: np.ndarray
        One value for a stationary model, otherwise one value per
        observation row.
    """
    p = check_probability(p)
    return np.atleast_1d(getdistribution(model, theta).ppf(p)).astype(float)
