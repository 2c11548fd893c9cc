"""
This module contains the interval and covariance computations shared by
the fitted-model variants and the return-level functions.

Functions:
----------
- hpd_interval: Highest posterior density interval of a sample.
- empirical_interval: Equal-tailed interval from empirical quantiles.
- wald_interval: Normal-approximation interval from an estimate and its variance.
- empirical_covariance: Covariance matrix of a sample of parameter vectors.
"""

import arviz as az
import numpy as np
from scipy import stats

from evakit.utils.type_handling import check_level


def hpd_interval(sample: np.ndarray, level: float = 0.95) -> np.ndarray:
    """
    Compute the highest posterior density interval of each column of a
    sample with ``arviz.hdi``.

    A single draw gives the degenerate interval ``[draw, draw]``.

    Parameters
    ----------
    sample: np.ndarray
        Draws, shape (ndraws,) or (ndraws, nvariables).
    level: float
        Probability mass of the interval, in (0, 1).

    Returns
    -------
    interval: np.ndarray
        Shape (nvariables, 2) with columns (lower, upper); shape (2,) for
        a one-dimensional sample.
    """
    level = check_level(level)
    sample = np.asarray(sample, dtype=float)
    squeeze = sample.ndim == 1
    if squeeze:
        sample = sample[:, np.newaxis]
    if sample.shape[0] < 1:
        raise ValueError("sample must contain at least one draw")

    # arviz reads 2-D arrays as (chain, draw); pass one column at a time.
    interval = np.array(
        [az.hdi(sample[:, j], hdi_prob=level) for j in range(sample.shape[1])],
        dtype=float,
    )
    return interval[0] if squeeze else interval


def empirical_interval(sample: np.ndarray, level: float = 0.95) -> np.ndarray:
    """
    Compute the equal-tailed interval of each column of a sample from its
    empirical alpha/2 and 1 - alpha/2 quantiles, alpha = 1 - level.

    Returns
    -------
    interval: np.ndarray
        Shape (nvariables, 2) with columns (lower, upper).
    """
    level = check_level(level)
    sample = np.asarray(sample, dtype=float)
    if sample.ndim == 1:
        sample = sample[:, np.newaxis]
    alpha = 1 - level
    lower = np.quantile(sample, alpha / 2, axis=0)
    upper = np.quantile(sample, 1 - alpha / 2, axis=0)
    return np.column_stack([lower, upper])


def wald_interval(
    estimate: np.ndarray, variance: np.ndarray, level: float = 0.95
) -> np.ndarray:
    """
    Normal-approximation interval ``estimate -/+ z * sqrt(variance)``.

    Returns
    -------
    interval: np.ndarray
        Shape (n, 2) with columns (lower, upper).
    """
    level = check_level(level)
    estimate = np.atleast_1d(np.asarray(estimate, dtype=float))
    variance = np.atleast_1d(np.asarray(variance, dtype=float))
    z = stats.norm.ppf(1 - (1 - level) / 2)
    half_width = z * np.sqrt(variance)
    return np.column_stack([estimate - half_width, estimate + half_width])


def empirical_covariance(sample: np.ndarray) -> np.ndarray:
    """Covariance matrix of a (ndraws, nparameter) sample, always 2-D."""
    sample = np.asarray(sample, dtype=float)
    return np.atleast_2d(np.cov(sample, rowvar=False))
