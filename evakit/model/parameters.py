"""
This module defines the extreme value models: the response data together
with, for every distribution parameter, the list of covariates it depends
on linearly.

Every model lays its parameters out in a flat vector. A ``ParameterIndex``
maps each distribution parameter to a contiguous slice of that vector: one
intercept followed by one coefficient per covariate, in the fixed order
location (GEV only), logscale, shape.

Classes:
- ParameterIndex: Immutable name -> (start, length) layout of the flat vector.
- EVAModel: Behaviour shared by the model variants.
- BlockMaxima: GEV model for block maxima.
- ThresholdExceedance: GPD model for threshold exceedances.
"""

from collections.abc import Mapping
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from evakit.errors import CovariateLengthError
from evakit.model.variables import ExplanatoryVariable, Variable, as_explanatory


class ParameterIndex(Mapping):
    """
    Immutable layout of a flat parameter vector.

    Parameters
    ----------
    lengths : sequence of (str, int)
        Parameter names with the length of their slice, in vector order.
    """

    def __init__(self, lengths: Sequence[Tuple[str, int]]):
        index = {}
        start = 0
        for name, length in lengths:
            if length < 1:
                raise ValueError(f"slice length of {name!r} must be >= 1. Got: {length}")
            index[name] = (start, int(length))
            start += int(length)
        self._index = index
        self._nparameter = start

    def __getitem__(self, name: str) -> Tuple[int, int]:
        return self._index[name]

    def __iter__(self):
        return iter(self._index)

    def __len__(self):
        return len(self._index)

    @property
    def nparameter(self) -> int:
        """Length of the flat parameter vector."""
        return self._nparameter

    def slice(self, name: str) -> slice:
        start, length = self._index[name]
        return slice(start, start + length)

    def intercept(self, name: str) -> int:
        """Position of the intercept of parameter ``name``."""
        return self._index[name][0]

    def __repr__(self):
        items = ", ".join(f"{k}={v}" for k, v in self._index.items())
        return f"ParameterIndex({items})"


def build_parameter_vector(index: ParameterIndex) -> int:
    """Length of the flat vector described by ``index``."""
    return index.nparameter


class EVAModel:
    """
    Response data with per-parameter covariates.

    Subclasses set ``parameters`` (distribution parameter names in
    flat-vector order) and ``family``.
    """

    parameters: Tuple[str, ...] = ()
    family: str = ""

    def __init__(self, data, **covariates: Iterable):
        if isinstance(data, Variable):
            self._data = data
        else:
            self._data = Variable("y", data)
        if len(self._data) == 0:
            raise ValueError("data must contain at least one observation")

        n = len(self._data)
        self._covariates: Dict[str, Tuple[ExplanatoryVariable, ...]] = {}
        for param in self.parameters:
            covs = tuple(as_explanatory(c) for c in covariates.get(param) or ())
            for cov in covs:
                if len(cov) != n:
                    raise CovariateLengthError(
                        f"covariate {cov.name!r} of parameter {param!r} has length "
                        f"{len(cov)} but the response has length {n}"
                    )
            self._covariates[param] = covs

        self._paramindex = ParameterIndex(
            [(param, 1 + len(self._covariates[param])) for param in self.parameters]
        )
        self._design = {
            param: self._design_matrix(self._covariates[param])
            for param in self.parameters
        }

    def _design_matrix(self, covs: Tuple[ExplanatoryVariable, ...]) -> np.ndarray:
        design = np.column_stack([np.ones(len(self._data))] + [c.value for c in covs])
        design.flags.writeable = False
        return design

    @property
    def data(self) -> Variable:
        return self._data

    @property
    def paramindex(self) -> ParameterIndex:
        return self._paramindex

    @property
    def nparameter(self) -> int:
        return self._paramindex.nparameter

    def parameter_slice(self, name: str) -> Tuple[int, int]:
        """(start, length) of parameter ``name`` in the flat vector."""
        if name not in self._paramindex:
            raise KeyError(
                f"{name!r} is not a parameter of {type(self).__name__}; "
                f"expected one of {list(self._paramindex)}"
            )
        return self._paramindex[name]

    def covariates(self, name: str) -> Tuple[ExplanatoryVariable, ...]:
        return self._covariates[name]

    def design(self, name: str) -> np.ndarray:
        """Read-only design matrix of parameter ``name``: a column of ones
        followed by one column per covariate."""
        self.parameter_slice(name)
        return self._design[name]

    def isstationary(self) -> bool:
        return all(len(c) == 0 for c in self._covariates.values())

    def parameter_names(self) -> List[str]:
        """Names of the flat vector entries, e.g. ``location_t``."""
        names = []
        for param in self.parameters:
            names.append(param)
            names.extend(f"{param}_{c.name}" for c in self._covariates[param])
        return names

    def check_theta(self, theta) -> np.ndarray:
        theta = np.asarray(theta, dtype=float)
        if theta.shape != (self.nparameter,):
            raise ValueError(
                f"parameter vector must have shape ({self.nparameter},). "
                f"Got: {theta.shape}"
            )
        return theta

    def link(self, theta, row: Optional[int] = None) -> Dict[str, np.ndarray]:
        """
        Linked distribution parameters for the flat vector ``theta``.

        The linear predictor of every parameter is the intercept plus the
        sum of coefficient times covariate. The scale is ``exp(logscale)``.

        Parameters
        ----------
        theta : array-like
            Flat parameter vector.
        row : int, optional
            Observation row. If None, arrays over all rows are returned.

        Returns
        -------
        params : dict
            Keys ``location`` (GEV only), ``scale`` and ``shape``.
        """
        theta = self.check_theta(theta)
        params = {}
        for param in self.parameters:
            design = self._design[param]
            if row is not None:
                design = design[row]
            params[param] = design @ theta[self._paramindex.slice(param)]
        params["scale"] = np.exp(params.pop("logscale"))
        return params

    def _rebuild(self, transform) -> "EVAModel":
        covs = {
            param: [transform(c) for c in self._covariates[param]]
            for param in self.parameters
        }
        return self._new(self._data, covs)

    def _new(self, data, covs) -> "EVAModel":
        raise NotImplementedError

    def standardize(self) -> "EVAModel":
        """Equivalent model with every covariate standardized."""
        return self._rebuild(lambda c: c.standardize())

    def reconstruct(self) -> "EVAModel":
        """Equivalent model with every covariate on its raw scale."""
        return self._rebuild(lambda c: c.reconstruct())

    def __repr__(self):
        covs = ", ".join(
            f"{param}cov=[{', '.join(c.name for c in self._covariates[param])}]"
            for param in self.parameters
        )
        return f"{type(self).__name__}({self._data.name}, n={len(self._data)}, {covs})"


class BlockMaxima(EVAModel):
    """
    Generalized Extreme Value model for block maxima.

    Parameters
    ----------
    data : Variable or array-like
        Block maxima.
    locationcov, logscalecov, shapecov : sequence, optional
        Covariates of the location, log-scale and shape parameters.
        Each item is an ExplanatoryVariable, a Variable or a
        ``(name, values)`` tuple.
    scalecov : sequence, optional
        Alias of ``logscalecov``.
    """

    parameters = ("location", "logscale", "shape")
    family = "GEV"

    def __init__(
        self, data, locationcov=(), logscalecov=(), shapecov=(), scalecov=None
    ):
        if scalecov is not None:
            if logscalecov:
                raise ValueError("give either scalecov or logscalecov, not both")
            logscalecov = scalecov
        super().__init__(
            data, location=locationcov, logscale=logscalecov, shape=shapecov
        )

    def _new(self, data, covs):
        return BlockMaxima(
            data,
            locationcov=covs["location"],
            logscalecov=covs["logscale"],
            shapecov=covs["shape"],
        )


class ThresholdExceedance(EVAModel):
    """
    Generalized Pareto model for threshold exceedances, i.e. observations
    above the threshold minus the threshold.

    Parameters
    ----------
    exceedances : Variable or array-like
        Threshold exceedances.
    logscalecov, shapecov : sequence, optional
        Covariates of the log-scale and shape parameters.
    scalecov : sequence, optional
        Alias of ``logscalecov``.
    """

    parameters = ("logscale", "shape")
    family = "GPD"

    def __init__(self, exceedances, logscalecov=(), shapecov=(), scalecov=None):
        if scalecov is not None:
            if logscalecov:
                raise ValueError("give either scalecov or logscalecov, not both")
            logscalecov = scalecov
        super().__init__(exceedances, logscale=logscalecov, shape=shapecov)

    def _new(self, data, covs):
        return ThresholdExceedance(
            data, logscalecov=covs["logscale"], shapecov=covs["shape"]
        )
