"""
This module provides the probability-weighted moment (PWM) estimators of
the stationary GEV and GPD.

The unbiased sample PWMs of the ordered response are inverted through the
closed-form relations between PWMs and distribution parameters:

- GEV: L-moment ratio approximation of the shape (Hosking, Wallis and
  Wood, 1985), then exact scale and location.
- GPD: Hosking and Wallis (1987).

References:
- Hosking, J. R. M., Wallis, J. R. and Wood, E. F. (1985). Estimation of
  the generalized extreme-value distribution by the method of
  probability-weighted moments. Technometrics 27(3), 251-261.
- Hosking, J. R. M. and Wallis, J. R. (1987). Parameter and quantile
  estimation for the generalized Pareto distribution. Technometrics 29(3),
  339-349.
"""

from typing import Optional

import numpy as np
from scipy.special import gamma

from evakit.errors import NonStationaryModelError
from evakit.model.parameters import BlockMaxima, EVAModel, ThresholdExceedance


def sample_pwm(x: np.ndarray, order: int = 2) -> np.ndarray:
    """
    Unbiased sample probability-weighted moments
    ``b_r = E[X F(X)^r]``, r = 0..order.

    Parameters
    ----------
    x: np.ndarray
        Sample.
    order: int
        Highest moment order.

    Returns
    -------
    b: np.ndarray
        ``b_0 .. b_order``.
    """
    x = np.sort(np.asarray(x, dtype=float))
    n = x.size
    if n <= order:
        raise ValueError(f"At least {order + 1} observations are needed. Got: {n}")

    j = np.arange(1, n + 1, dtype=float)
    b = np.empty(order + 1)
    weights = np.ones(n)
    for r in range(order + 1):
        if r > 0:
            weights = weights * (j - r) / (n - r)
        b[r] = np.mean(weights * x)
    return b


def gev_pwm(y: np.ndarray) -> np.ndarray:
    """
    PWM estimate of the GEV parameters.

    Returns
    -------
    params: np.ndarray
        (location, scale, shape), shape > 0 for a heavy tail.
    """
    b0, b1, b2 = sample_pwm(y, order=2)
    l1 = b0
    l2 = 2 * b1 - b0
    l3 = 6 * b2 - 6 * b1 + b0
    t3 = l3 / l2

    c = 2 / (3 + t3) - np.log(2) / np.log(3)
    k = 7.8590 * c + 2.9554 * c**2

    if abs(k) < 1e-8:
        scale = l2 / np.log(2)
        location = l1 - np.euler_gamma * scale
    else:
        scale = l2 * k / ((1 - 2 ** (-k)) * gamma(1 + k))
        location = l1 - scale * (1 - gamma(1 + k)) / k

    return np.array([location, scale, -k])


def gpd_pwm(y: np.ndarray) -> np.ndarray:
    """
    PWM estimate of the GPD parameters.

    Uses ``a_s = E[X (1 - F(X))^s]`` for s = 0, 1, obtained from the
    ``b_r`` as ``a_0 = b_0`` and ``a_1 = b_0 - b_1``.

    Returns
    -------
    params: np.ndarray
        (scale, shape), shape > 0 for a heavy tail.
    """
    b0, b1 = sample_pwm(y, order=1)
    a0 = b0
    a1 = b0 - b1

    k = a0 / (a0 - 2 * a1) - 2
    scale = 2 * a0 * a1 / (a0 - 2 * a1)

    return np.array([scale, -k])


def pwm_estimate(model: EVAModel, data: Optional[np.ndarray] = None) -> np.ndarray:
    """
    PWM estimate of a stationary model in the flat parameter layout
    (location, logscale, shape for GEV; logscale, shape for GPD).

    Parameters
    ----------
    model: EVAModel
        Stationary extreme value model.
    data: np.ndarray, optional
        Sample to use instead of the model data, e.g. a bootstrap resample.

    Returns
    -------
    theta: np.ndarray
        Flat parameter vector.

    Raises
    ------
    NonStationaryModelError
        When any parameter of the model has a covariate.
    """
    if not isinstance(model, EVAModel):
        raise TypeError(f"model must be of type EVAModel. Got: {type(model)}")
    if not model.isstationary():
        raise NonStationaryModelError(
            "probability-weighted moments are only defined for stationary models; "
            f"got covariates {model.parameter_names()}"
        )

    y = model.data.value if data is None else np.asarray(data, dtype=float)

    if isinstance(model, BlockMaxima):
        location, scale, shape = gev_pwm(y)
        theta = np.array([location, np.log(scale), shape])
    elif isinstance(model, ThresholdExceedance):
        scale, shape = gpd_pwm(y)
        theta = np.array([np.log(scale), shape])
    else:
        raise TypeError(
            f"model must be a BlockMaxima or ThresholdExceedance. Got: {type(model)}"
        )
    return theta
