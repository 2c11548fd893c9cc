"""
This module provides the fitting functions of the package.

The ``fit_*`` functions fit an already built model with one strategy and
return the matching fitted-model object. The ``gev*`` and ``gp*``
functions build the model from arrays or DataFrame columns, standardize
the covariates, fit, and express the result on the raw covariate scales.

Functions:
- fit_mle, fit_pwm, fit_bayesian: Fit an EVAModel.
- gevfit, gevfitpwm, gevfitbayes: Fit a GEV to block maxima.
- gpfit, gpfitpwm, gpfitbayes: Fit a GPD to threshold exceedances.
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from evakit.estimation.bayesian import (
    DEFAULT_NITER,
    DEFAULT_WARMUP,
    sample_chains,
)
from evakit.estimation.maximum_likelihood import DEFAULT_MAXITER, mle_estimate
from evakit.estimation.pwm import pwm_estimate
from evakit.fitted.fitted_eva import (
    BayesianEVA,
    FittedEVA,
    MaximumLikelihoodEVA,
    PwmEVA,
)
from evakit.fitted.transform import backtransform_matrix, transform
from evakit.model.parameters import BlockMaxima, EVAModel, ThresholdExceedance
from evakit.model.variables import Variable

logger = logging.getLogger(__name__)


def fit_mle(
    model: EVAModel,
    initialvalue: Optional[np.ndarray] = None,
    maxiter: int = DEFAULT_MAXITER,
) -> MaximumLikelihoodEVA:
    """
    Fit a model by maximum likelihood.

    Parameters
    ----------
    model: EVAModel
        Model to fit.
    initialvalue: np.ndarray, optional
        Starting flat parameter vector.
    maxiter: int
        Iteration budget of the optimizer.

    Returns
    -------
    fm: MaximumLikelihoodEVA
    """
    if not isinstance(model, EVAModel):
        raise TypeError(f"model must be of type EVAModel. Got: {type(model)}")
    theta = mle_estimate(model, initialvalue=initialvalue, maxiter=maxiter)
    fm = MaximumLikelihoodEVA(model, theta)
    logger.info("maximum likelihood fit of %r, loglikelihood %.6g", model, fm.loglikelihood())
    return fm


def fit_pwm(model: EVAModel) -> PwmEVA:
    """
    Fit a stationary model by probability-weighted moments.

    Raises
    ------
    NonStationaryModelError
        When the model has covariates.
    """
    if not isinstance(model, EVAModel):
        raise TypeError(f"model must be of type EVAModel. Got: {type(model)}")
    fm = PwmEVA(model, pwm_estimate(model))
    logger.info("PWM fit of %r", model)
    return fm


def fit_bayesian(
    model: EVAModel,
    niter: int = DEFAULT_NITER,
    warmup: int = DEFAULT_WARMUP,
    proposal_scale: Union[None, float, np.ndarray] = None,
    nchains: int = 1,
    initialvalue: Optional[np.ndarray] = None,
    random_state: Union[None, int, np.random.SeedSequence] = None,
    n_jobs: int = 1,
) -> BayesianEVA:
    """
    Sample the posterior of a model under a flat prior with a random-walk
    Metropolis algorithm.

    Parameters
    ----------
    model: EVAModel
        Model to fit.
    niter: int
        Iterations per chain, warmup included.
    warmup: int
        Initial draws discarded from every chain.
    proposal_scale: float or np.ndarray, optional
        Standard deviation(s) of the proposal step. Default is scaled from
        the maximum likelihood covariance.
    nchains: int
        Number of independent chains.
    initialvalue: np.ndarray, optional
        Initial state of every chain.
    random_state: int or numpy.random.SeedSequence, optional
        Seed of the sampler.
    n_jobs: int
        Number of chains run concurrently.

    Returns
    -------
    fm: BayesianEVA
    """
    if not isinstance(model, EVAModel):
        raise TypeError(f"model must be of type EVAModel. Got: {type(model)}")
    chain = sample_chains(
        model,
        niter=niter,
        warmup=warmup,
        proposal_scale=proposal_scale,
        nchains=nchains,
        initialvalue=initialvalue,
        random_state=random_state,
        n_jobs=n_jobs,
    )
    fm = BayesianEVA(model, chain)
    logger.info(
        "Bayesian fit of %r: %d chain(s) of %d draws", model, fm.nchains, chain.shape[0]
    )
    return fm


_FITTERS = {"mle": fit_mle, "pwm": fit_pwm, "bayesian": fit_bayesian}


def _columns(df: pd.DataFrame, ids: Sequence[str]):
    missing = [col for col in ids if col not in df.columns]
    if missing:
        raise KeyError(f"columns not found in the DataFrame: {missing}")
    return [(col, df[col]) for col in ids]


def _build_model(cls, data, datacol, covs: dict, covids: dict) -> EVAModel:
    if isinstance(data, pd.DataFrame):
        if datacol is None:
            raise ValueError("datacol must be given when data is a DataFrame")
        if any(covs.values()):
            raise ValueError(
                "give covariates as column names (...covid) when data is a DataFrame"
            )
        covs = {key: _columns(data, ids) for key, ids in covids.items()}
        data = Variable(*_columns(data, [datacol])[0])
    elif datacol is not None or any(covids.values()):
        raise ValueError("column names can only be given with a DataFrame")
    return cls(data, **covs)


def _fit(model: EVAModel, method: str, kwargs: dict) -> FittedEVA:
    std_model = model.standardize()
    initialvalue = kwargs.pop("initialvalue", None)
    if initialvalue is not None:
        # Starting vectors are given on the raw covariate scales.
        initialvalue = np.linalg.solve(
            backtransform_matrix(std_model), model.check_theta(initialvalue)
        )
        kwargs["initialvalue"] = initialvalue
    return transform(_FITTERS[method](std_model, **kwargs))


def _scalecov(logscalecov, scalecov):
    if scalecov is None:
        return logscalecov
    if logscalecov:
        raise ValueError("give either scalecov or logscalecov, not both")
    return scalecov


def _gev(
    method,
    data,
    datacol,
    locationcov,
    logscalecov,
    shapecov,
    scalecov,
    locationcovid,
    logscalecovid,
    shapecovid,
    kwargs,
):
    model = _build_model(
        BlockMaxima,
        data,
        datacol,
        {
            "locationcov": locationcov,
            "logscalecov": _scalecov(logscalecov, scalecov),
            "shapecov": shapecov,
        },
        {
            "locationcov": locationcovid,
            "logscalecov": logscalecovid,
            "shapecov": shapecovid,
        },
    )
    return _fit(model, method, kwargs)


def _gp(method, data, datacol, logscalecov, shapecov, scalecov, logscalecovid, shapecovid, kwargs):
    model = _build_model(
        ThresholdExceedance,
        data,
        datacol,
        {"logscalecov": _scalecov(logscalecov, scalecov), "shapecov": shapecov},
        {"logscalecov": logscalecovid, "shapecov": shapecovid},
    )
    return _fit(model, method, kwargs)


def gevfit(
    data,
    datacol: Optional[str] = None,
    locationcov=(),
    logscalecov=(),
    shapecov=(),
    scalecov=None,
    locationcovid: Sequence[str] = (),
    logscalecovid: Sequence[str] = (),
    shapecovid: Sequence[str] = (),
    **kwargs,
) -> MaximumLikelihoodEVA:
    """
    Fit a GEV distribution to block maxima by maximum likelihood.

    Parameters
    ----------
    data: array-like or pd.DataFrame
        Block maxima, or a DataFrame holding them in column ``datacol``.
    datacol: str, optional
        Column of the block maxima when ``data`` is a DataFrame.
    locationcov, logscalecov, shapecov: sequence, optional
        Covariates of each parameter, as ExplanatoryVariables or
        ``(name, values)`` pairs.
    scalecov: sequence, optional
        Alias of ``logscalecov``.
    locationcovid, logscalecovid, shapecovid: sequence of str, optional
        Covariate column names when ``data`` is a DataFrame.
    **kwargs:
        Passed to ``fit_mle``.

    Returns
    -------
    fm: MaximumLikelihoodEVA
        Fit on the raw covariate scales.
    """
    return _gev(
        "mle", data, datacol, locationcov, logscalecov, shapecov, scalecov,
        locationcovid, logscalecovid, shapecovid, kwargs,
    )


def gevfitpwm(data, datacol: Optional[str] = None) -> PwmEVA:
    """Fit a stationary GEV distribution to block maxima by
    probability-weighted moments."""
    return _gev("pwm", data, datacol, (), (), (), None, (), (), (), {})


def gevfitbayes(
    data,
    datacol: Optional[str] = None,
    locationcov=(),
    logscalecov=(),
    shapecov=(),
    scalecov=None,
    locationcovid: Sequence[str] = (),
    logscalecovid: Sequence[str] = (),
    shapecovid: Sequence[str] = (),
    **kwargs,
) -> BayesianEVA:
    """
    Sample the posterior of a GEV model of block maxima. Arguments are
    those of ``gevfit``; ``kwargs`` are passed to ``fit_bayesian``.
    """
    return _gev(
        "bayesian", data, datacol, locationcov, logscalecov, shapecov, scalecov,
        locationcovid, logscalecovid, shapecovid, kwargs,
    )


def gpfit(
    data,
    datacol: Optional[str] = None,
    logscalecov=(),
    shapecov=(),
    scalecov=None,
    logscalecovid: Sequence[str] = (),
    shapecovid: Sequence[str] = (),
    **kwargs,
) -> MaximumLikelihoodEVA:
    """
    Fit a GPD to threshold exceedances by maximum likelihood.

    Parameters
    ----------
    data: array-like or pd.DataFrame
        Exceedances above the threshold, or a DataFrame holding them in
        column ``datacol``.
    datacol: str, optional
        Column of the exceedances when ``data`` is a DataFrame.
    logscalecov, shapecov: sequence, optional
        Covariates of each parameter.
    scalecov: sequence, optional
        Alias of ``logscalecov``.
    logscalecovid, shapecovid: sequence of str, optional
        Covariate column names when ``data`` is a DataFrame.
    **kwargs:
        Passed to ``fit_mle``.

    Returns
    -------
    fm: MaximumLikelihoodEVA
        Fit on the raw covariate scales.
    """
    return _gp(
        "mle", data, datacol, logscalecov, shapecov, scalecov,
        logscalecovid, shapecovid, kwargs,
    )


def gpfitpwm(data, datacol: Optional[str] = None) -> PwmEVA:
    """Fit a stationary GPD to threshold exceedances by probability-weighted
    moments."""
    return _gp("pwm", data, datacol, (), (), None, (), (), {})


def gpfitbayes(
    data,
    datacol: Optional[str] = None,
    logscalecov=(),
    shapecov=(),
    scalecov=None,
    logscalecovid: Sequence[str] = (),
    shapecovid: Sequence[str] = (),
    **kwargs,
) -> BayesianEVA:
    """
    Sample the posterior of a GPD model of threshold exceedances. Arguments
    are those of ``gpfit``; ``kwargs`` are passed to ``fit_bayesian``.
    """
    return _gp(
        "bayesian", data, datacol, logscalecov, shapecov, scalecov,
        logscalecovid, shapecovid, kwargs,
    )
