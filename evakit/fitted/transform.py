"""
This module maps a fitted model with standardized covariates back to the
raw covariate scales.

For a parameter with intercept ``a`` and coefficients ``b_i`` on
covariates standardized with ``scale_i`` and ``offset_i``, the equivalent
raw-scale coefficients are

    a' = a - sum_i b_i * offset_i / scale_i
    b_i' = b_i / scale_i

This is a linear map of the flat parameter vector. It is applied to the
point estimate or to every posterior draw, producing new arrays; the
input fit is left untouched.
"""

import numpy as np

from evakit.fitted.fitted_eva import (
    BayesianEVA,
    FittedEVA,
    MaximumLikelihoodEVA,
    PwmEVA,
)
from evakit.model.parameters import EVAModel


def backtransform_matrix(model: EVAModel) -> np.ndarray:
    """
    Matrix ``T`` such that ``T @ theta`` expresses ``theta`` on the raw
    covariate scales of ``model``.

    Parameters
    ----------
    model: EVAModel
        Model whose covariates may be standardized.

    Returns
    -------
    T: np.ndarray
        Shape (nparameter, nparameter); the identity for a model without
        standardized covariates.
    """
    T = np.eye(model.nparameter)
    for param in model.parameters:
        start, _ = model.parameter_slice(param)
        for i, cov in enumerate(model.covariates(param)):
            j = start + 1 + i
            T[start, j] = -cov.offset / cov.scale
            T[j, j] = 1 / cov.scale
    return T


def transform(fm: FittedEVA) -> FittedEVA:
    """
    Express a fitted model on the raw covariate scales.

    Parameters
    ----------
    fm: FittedEVA
        Fitted model, possibly on standardized covariates.

    Returns
    -------
    fm: FittedEVA
        Fitted model of the same type on the raw covariate scales. For a
        Bayesian fit the number and order of the draws are unchanged.
    """
    if not isinstance(fm, FittedEVA):
        raise TypeError(f"fm must be of type FittedEVA. Got: {type(fm)}")

    T = backtransform_matrix(fm.model)
    model = fm.model.reconstruct()

    if isinstance(fm, BayesianEVA):
        chain = np.einsum("ij,sjc->sic", T, fm.chain)
        return BayesianEVA(model, chain)
    if isinstance(fm, MaximumLikelihoodEVA):
        return MaximumLikelihoodEVA(model, T @ fm.theta)
    if isinstance(fm, PwmEVA):
        return PwmEVA(model, T @ fm.theta)

    raise TypeError(f"transform is not defined for {type(fm).__name__}")
