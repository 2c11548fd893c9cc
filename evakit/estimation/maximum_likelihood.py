"""
This module estimates the parameters of an extreme value model by
maximum likelihood and computes the observed-information covariance of
the estimate.

The optimization runs over the unconstrained flat parameter vector: the
log-scale parameterization keeps the scale positive and the shape is
free. Vectors outside the support give an infinite negative
log-likelihood, which the Nelder-Mead simplex handles by contraction.

Functions:
- getinitialvalue: Moment-based starting vector.
- mle_estimate: Maximum likelihood estimate of the flat parameter vector.
- information_covariance: Inverse of the negative Hessian of the
  log-likelihood.
"""

import logging
from typing import Optional

import numpy as np
from scipy import optimize
from statsmodels.tools.numdiff import approx_hess3

from evakit.errors import ConvergenceError, SingularInformationError
from evakit.model.likelihood import loglikelihood
from evakit.model.parameters import BlockMaxima, EVAModel

logger = logging.getLogger(__name__)

DEFAULT_MAXITER = 20000


def getinitialvalue(model: EVAModel) -> np.ndarray:
    """
    Starting vector for the optimizer.

    The intercepts hold the stationary Gumbel (GEV) or exponential (GPD)
    moment estimates with a zero shape; every covariate coefficient is zero.

    Parameters
    ----------
    model: EVAModel
        Extreme value model.

    Returns
    -------
    theta0: np.ndarray
        Flat parameter vector.
    """
    y = model.data.value
    index = model.paramindex
    theta0 = np.zeros(model.nparameter)

    if isinstance(model, BlockMaxima):
        sigma = np.sqrt(6 * np.var(y)) / np.pi
        if not np.isfinite(sigma) or sigma <= 0:
            sigma = 1.0
        theta0[index.intercept("location")] = np.mean(y) - np.euler_gamma * sigma
    else:
        sigma = np.mean(y)
        if not np.isfinite(sigma) or sigma <= 0:
            sigma = 1.0
    theta0[index.intercept("logscale")] = np.log(sigma)

    return theta0


def _initial_simplex(model: EVAModel, theta0: np.ndarray) -> np.ndarray:
    # Steps of about a tenth of the scale in location units, 0.1 elsewhere.
    steps = np.full(model.nparameter, 0.1)
    if isinstance(model, BlockMaxima):
        sigma = np.exp(theta0[model.paramindex.intercept("logscale")])
        steps[model.paramindex.slice("location")] = 0.1 * sigma
    return np.vstack([theta0, theta0 + np.diag(steps)])


def mle_estimate(
    model: EVAModel,
    initialvalue: Optional[np.ndarray] = None,
    maxiter: int = DEFAULT_MAXITER,
) -> np.ndarray:
    """
    Maximum likelihood estimate of the flat parameter vector.

    Parameters
    ----------
    model: EVAModel
        Extreme value model.
    initialvalue: np.ndarray, optional
        Starting vector. Default is the moment-based estimate.
    maxiter: int
        Iteration budget of the simplex search.

    Returns
    -------
    theta: np.ndarray
        Maximum likelihood estimate.

    Raises
    ------
    ConvergenceError
        When the simplex search does not converge within ``maxiter``
        iterations or ends at a point with infinite objective.
    """
    if not isinstance(maxiter, int):
        raise TypeError(f"maxiter must be of type int. Got: {type(maxiter)}")

    if initialvalue is None:
        theta0 = getinitialvalue(model)
    else:
        theta0 = model.check_theta(initialvalue)

    def objective(theta):
        return -loglikelihood(model, theta)

    f0 = objective(theta0)
    if not np.isfinite(f0):
        raise ConvergenceError(
            "the log-likelihood is infinite at the initial vector "
            f"{np.round(theta0, 6).tolist()}; give a feasible initialvalue"
        )

    res = optimize.minimize(
        objective,
        theta0,
        method="Nelder-Mead",
        options={
            "maxiter": maxiter,
            "maxfev": 2 * maxiter,
            "xatol": 1e-7,
            # The objective is a sum over observations; compare relative to its size.
            "fatol": 1e-10 * max(1.0, abs(f0)),
            "adaptive": model.nparameter > 3,
            "initial_simplex": _initial_simplex(model, theta0),
        },
    )
    logger.debug(
        "Nelder-Mead: status=%s nit=%s nfev=%s fun=%s", res.status, res.nit, res.nfev, res.fun
    )
    if res.status != 0 or not np.isfinite(res.fun):
        raise ConvergenceError(
            f"maximum likelihood search did not converge after {res.nit} iterations: "
            f"{res.message}"
        )

    theta = res.x
    with np.errstate(invalid="ignore", over="ignore"):
        polished = optimize.minimize(objective, theta, method="BFGS")
    if np.all(np.isfinite(polished.x)) and polished.fun < res.fun:
        logger.debug("BFGS polish improved the objective by %g", res.fun - polished.fun)
        theta = polished.x

    return theta


def information_covariance(model: EVAModel, theta) -> np.ndarray:
    """
    Observed-information covariance of a maximum likelihood estimate: the
    inverse of the negative numerical Hessian of the log-likelihood at
    ``theta``.

    Parameters
    ----------
    model: EVAModel
        Extreme value model.
    theta: array-like
        Maximum likelihood estimate.

    Returns
    -------
    cov: np.ndarray
        Covariance matrix, shape (nparameter, nparameter).

    Raises
    ------
    SingularInformationError
        When the Hessian is not finite, singular, or not negative definite,
        which signals an unidentified or collinear model.
    """
    theta = model.check_theta(theta)

    for param in model.parameters:
        design = model.design(param)
        if np.linalg.matrix_rank(design) < design.shape[1]:
            raise SingularInformationError(
                f"the covariates of {param!r} are collinear or constant; "
                "their coefficients are not identifiable"
            )

    hessian = approx_hess3(theta, lambda x: loglikelihood(model, x))
    if not np.all(np.isfinite(hessian)):
        raise SingularInformationError(
            "the Hessian of the log-likelihood is not finite at "
            f"{np.round(theta, 6).tolist()}; the estimate may lie on the support boundary"
        )

    information = -(hessian + hessian.T) / 2
    if np.linalg.cond(information) > 1 / np.finfo(float).eps:
        raise SingularInformationError(
            "the observed information matrix is singular; check for collinear "
            "or constant covariates"
        )
    try:
        np.linalg.cholesky(information)
    except np.linalg.LinAlgError as err:
        raise SingularInformationError(
            "the observed information matrix is not positive definite; "
            "theta is not a likelihood maximum"
        ) from err

    cov = np.linalg.inv(information)
    return (cov + cov.T) / 2
