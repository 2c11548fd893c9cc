"""
This module computes return levels of fitted extreme value models with
their confidence intervals.

The T-period return level is the level exceeded on average once every T
blocks. For block maxima it is the GEV quantile of level 1 - 1/T. For
threshold exceedances with exceedance rate ``zeta`` and ``nobsperblock``
observations per block it is the threshold plus the GPD quantile of level
1 - 1/(T * nobsperblock * zeta).

Intervals depend on how the model was fitted:
- maximum likelihood: delta method on the observed-information covariance,
- probability-weighted moments: bootstrap percentile interval,
- Bayesian: equal-tailed interval of the per-draw return levels.
"""

import logging
from typing import Optional, Union

import numpy as np
import pandas as pd
from statsmodels.tools.numdiff import approx_fprime

from evakit.fitted.fitted_eva import (
    DEFAULT_NBOOT,
    DEFAULT_SEED,
    BayesianEVA,
    FittedEVA,
    MaximumLikelihoodEVA,
    PwmEVA,
)
from evakit.model import likelihood
from evakit.model.parameters import BlockMaxima, ThresholdExceedance
from evakit.utils.stat_utils import empirical_interval, wald_interval
from evakit.utils.type_handling import (
    check_level,
    check_positive,
    check_probability,
    to_readonly_array,
)

logger = logging.getLogger(__name__)


class ReturnLevel:
    """
    Return level of a fitted model.

    Attributes
    ----------
    fm: FittedEVA
        Fitted model the level was computed from.
    returnperiod: float
        Return period, in blocks.
    value: np.ndarray
        Return level, one value for a stationary model, otherwise one per
        observation row.
    cint: np.ndarray
        Interval, shape (len(value), 2) with columns (lower, upper).
    confidencelevel: float
        Level of the interval.
    threshold, nobservation, nobsperblock:
        Threshold-exceedance settings, None for block maxima.
    """

    def __init__(
        self,
        fm: FittedEVA,
        returnperiod: float,
        value,
        cint,
        confidencelevel: float,
        threshold: Optional[float] = None,
        nobservation: Optional[int] = None,
        nobsperblock: Optional[int] = None,
    ):
        self.fm = fm
        self.returnperiod = returnperiod
        self.value = to_readonly_array(np.atleast_1d(value))
        self.cint = to_readonly_array(np.reshape(cint, (self.value.size, 2)))
        self.confidencelevel = confidencelevel
        self.threshold = threshold
        self.nobservation = nobservation
        self.nobsperblock = nobsperblock

    def to_pandas(self) -> pd.DataFrame:
        """Return level as a DataFrame with columns value, lower and upper."""
        return pd.DataFrame(
            {
                "value": self.value,
                "lower": self.cint[:, 0],
                "upper": self.cint[:, 1],
            }
        )

    def __str__(self):
        lines = [
            "ReturnLevel",
            f"returnperiod :\t{self.returnperiod}",
            f"confidencelevel :\t{self.confidencelevel}",
        ]
        if self.threshold is not None:
            lines += [
                f"threshold :\t{self.threshold}",
                f"nobservation :\t{self.nobservation}",
                f"nobsperblock :\t{self.nobsperblock}",
            ]
        lines.append(self.to_pandas().to_string())
        return "\n".join(lines)


def _check_count(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise TypeError(f"{name} must be of type int. Got: {type(value)}")
    if value <= 0:
        raise ValueError(f"{name} must be positive. Got: {value}")
    return int(value)


def _delta_interval(fm: MaximumLikelihoodEVA, p: float, level: float):
    theta = np.asarray(fm.theta)

    def q(x):
        return likelihood.quantile(fm.model, x, p)

    value = q(theta)
    jacobian = np.reshape(
        approx_fprime(theta, q, centered=True), (value.size, theta.size)
    )
    variance = np.einsum("ij,jk,ik->i", jacobian, fm.parametervar(), jacobian)
    return value, wald_interval(value, variance, level)


def _pwm_interval(fm: PwmEVA, p: float, level: float, nboot, random_state):
    value = fm.quantile(p)
    thetas = fm.bootstrap(nboot, random_state)
    sample = np.array([likelihood.quantile(fm.model, t, p)[0] for t in thetas])
    return value, empirical_interval(sample, level)


def _bayesian_interval(fm: BayesianEVA, p: float, level: float):
    sample = fm.quantile(p)
    value = np.atleast_1d(np.mean(sample, axis=0))
    return value, empirical_interval(sample, level)


def _estimate(fm: FittedEVA, p: float, level: float, nboot, random_state):
    if isinstance(fm, MaximumLikelihoodEVA):
        return _delta_interval(fm, p, level)
    if isinstance(fm, PwmEVA):
        return _pwm_interval(fm, p, level, nboot, random_state)
    if isinstance(fm, BayesianEVA):
        return _bayesian_interval(fm, p, level)
    raise TypeError(f"fm must be a fitted model. Got: {type(fm)}")


def blockmaxima_returnlevel(
    fm: FittedEVA,
    returnperiod: float,
    confidencelevel: float = 0.95,
    *,
    nboot: int = DEFAULT_NBOOT,
    random_state: Union[None, int, np.random.Generator] = DEFAULT_SEED,
) -> ReturnLevel:
    """
    Return level of a block maxima fit.

    Parameters
    ----------
    fm: FittedEVA
        Fitted GEV model.
    returnperiod: float
        Return period, in blocks.
    confidencelevel: float
        Level of the interval, in (0, 1).
    nboot: int
        Bootstrap replicates, used for PWM fits only.
    random_state: int or numpy.random.Generator, optional
        Bootstrap seed, used for PWM fits only. Defaults to a fixed seed so
        that repeated calls give the same interval; None draws a fresh one.

    Returns
    -------
    rl: ReturnLevel
    """
    if not isinstance(fm, FittedEVA):
        raise TypeError(f"fm must be of type FittedEVA. Got: {type(fm)}")
    if not isinstance(fm.model, BlockMaxima):
        raise TypeError(f"fm must be a block maxima fit. Got: {type(fm.model)}")
    returnperiod = check_positive(returnperiod, "returnperiod")
    confidencelevel = check_level(confidencelevel, "confidencelevel")

    p = check_probability(1 - 1 / returnperiod)
    value, interval = _estimate(fm, p, confidencelevel, nboot, random_state)
    logger.debug("%s-block return level: %s", returnperiod, value)
    return ReturnLevel(fm, returnperiod, value, interval, confidencelevel)


def threshold_returnlevel(
    fm: FittedEVA,
    threshold: float,
    nobservation: int,
    nobsperblock: int,
    returnperiod: float,
    confidencelevel: float = 0.95,
    *,
    nboot: int = DEFAULT_NBOOT,
    random_state: Union[None, int, np.random.Generator] = DEFAULT_SEED,
) -> ReturnLevel:
    """
    Return level of a threshold exceedance fit.

    Parameters
    ----------
    fm: FittedEVA
        Fitted GPD model of the exceedances above ``threshold``.
    threshold: float
        Threshold the exceedances were taken above.
    nobservation: int
        Total number of observations, exceedances or not.
    nobsperblock: int
        Number of observations per block, e.g. 365 for daily data and
        yearly return periods.
    returnperiod: float
        Return period, in blocks.
    confidencelevel: float
        Level of the interval, in (0, 1).
    nboot, random_state:
        Bootstrap settings, used for PWM fits only. With the fixed default
        seed, shifting the threshold shifts the interval by the same amount.

    Returns
    -------
    rl: ReturnLevel
    """
    if not isinstance(fm, FittedEVA):
        raise TypeError(f"fm must be of type FittedEVA. Got: {type(fm)}")
    if not isinstance(fm.model, ThresholdExceedance):
        raise TypeError(
            f"fm must be a threshold exceedance fit. Got: {type(fm.model)}"
        )
    if np.ndim(threshold) != 0:
        raise TypeError(f"threshold must be a scalar. Got: {type(threshold)}")
    threshold = float(threshold)
    nobservation = _check_count(nobservation, "nobservation")
    nobsperblock = _check_count(nobsperblock, "nobsperblock")
    returnperiod = check_positive(returnperiod, "returnperiod")
    confidencelevel = check_level(confidencelevel, "confidencelevel")

    zeta = len(fm.model.data) / nobservation
    p = check_probability(1 - 1 / (returnperiod * nobsperblock * zeta))
    value, interval = _estimate(fm, p, confidencelevel, nboot, random_state)
    return ReturnLevel(
        fm,
        returnperiod,
        threshold + value,
        threshold + interval,
        confidencelevel,
        threshold=threshold,
        nobservation=nobservation,
        nobsperblock=nobsperblock,
    )


def returnlevel(fm: FittedEVA, *args, **kwargs) -> ReturnLevel:
    """
    Return level of a fitted model.

    ``returnlevel(fm, returnperiod, confidencelevel=0.95)`` for a block
    maxima fit, ``returnlevel(fm, threshold, nobservation, nobsperblock,
    returnperiod, confidencelevel=0.95)`` for a threshold exceedance fit.
    See ``blockmaxima_returnlevel`` and ``threshold_returnlevel``.
    """
    if not isinstance(fm, FittedEVA):
        raise TypeError(f"fm must be of type FittedEVA. Got: {type(fm)}")
    if isinstance(fm.model, ThresholdExceedance):
        return threshold_returnlevel(fm, *args, **kwargs)
    return blockmaxima_returnlevel(fm, *args, **kwargs)
