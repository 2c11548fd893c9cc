"""
This module defines the named data containers used to build extreme
value models and the covariate standardization applied before fitting.

Classes:
- Variable: A named, read-only numeric sequence (response or covariate).
- ExplanatoryVariable: A Variable carrying the scale and offset of its
  standardization so that raw values can be reconstructed.

Functions:
- standardize: Centers and scales a raw covariate, recording the transform.
- reconstruct: Inverts the standardization.
"""

from typing import Optional, Tuple, Union

import numpy as np

from evakit.errors import DegenerateCovariateError
from evakit.utils.type_handling import to_numeric_array


class Variable:
    """
    A named numeric sequence.

    Parameters
    ----------
    name : str
        Name of the variable.
    value : array-like
        Values; stored as a read-only float array.
    """

    def __init__(self, name: str, value):
        if not isinstance(name, str):
            raise TypeError(f"name must be of type str. Got: {type(name)}")
        value = to_numeric_array(value, name)
        value.flags.writeable = False
        self._name = name
        self._value = value

    @property
    def name(self) -> str:
        return self._name

    @property
    def value(self) -> np.ndarray:
        return self._value

    def __len__(self):
        return len(self._value)

    def __repr__(self):
        return f"{type(self).__name__}({self._name!r}, n={len(self)})"


class ExplanatoryVariable(Variable):
    """
    A covariate. ``value`` holds the values the model sees; the raw values
    are ``value * scale + offset``. A covariate that was never standardized
    has scale 1 and offset 0.

    Parameters
    ----------
    name : str
        Name of the covariate.
    value : array-like
        Values seen by the model.
    scale : float
        Standardization scale, must not be zero.
    offset : float
        Standardization offset.
    """

    def __init__(self, name: str, value, scale: float = 1.0, offset: float = 0.0):
        super().__init__(name, value)
        if not isinstance(scale, (int, float, np.number)):
            raise TypeError(f"scale must be of type float. Got: {type(scale)}")
        if not isinstance(offset, (int, float, np.number)):
            raise TypeError(f"offset must be of type float. Got: {type(offset)}")
        if scale == 0:
            raise DegenerateCovariateError(f"scale of covariate {name!r} must not be 0")
        self._scale = float(scale)
        self._offset = float(offset)

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def offset(self) -> float:
        return self._offset

    def isstandardized(self) -> bool:
        """True when the stored values differ from the raw ones."""
        return self._scale != 1.0 or self._offset != 0.0

    def standardize(self) -> "ExplanatoryVariable":
        """Return the standardized covariate. Already standardized
        covariates are returned unchanged."""
        if self.isstandardized():
            return self
        value, scale, offset = standardize(self.value)
        return ExplanatoryVariable(self.name, value, scale=scale, offset=offset)

    def reconstruct(self) -> "ExplanatoryVariable":
        """Return the covariate on its raw scale."""
        if not self.isstandardized():
            return self
        return ExplanatoryVariable(
            self.name, reconstruct(self.value, self.scale, self.offset)
        )

    def __repr__(self):
        return (
            f"ExplanatoryVariable({self.name!r}, n={len(self)}, "
            f"scale={self.scale:g}, offset={self.offset:g})"
        )


def as_explanatory(
    covariate: Union[ExplanatoryVariable, Variable, Tuple[str, object]]
) -> ExplanatoryVariable:
    """
    Coerce a covariate specification to an ExplanatoryVariable.

    Accepts an ExplanatoryVariable, a Variable or a ``(name, values)`` pair.
    """
    if isinstance(covariate, ExplanatoryVariable):
        return covariate
    if isinstance(covariate, Variable):
        return ExplanatoryVariable(covariate.name, covariate.value)
    if isinstance(covariate, tuple) and len(covariate) == 2:
        return ExplanatoryVariable(*covariate)
    raise TypeError(
        "covariate must be an ExplanatoryVariable, a Variable or a (name, values) "
        f"tuple. Got: {type(covariate)}"
    )


def standardize(
    raw, scale: Optional[float] = None, offset: Optional[float] = None
) -> Tuple[np.ndarray, float, float]:
    """
    Standardize a raw covariate, ``standardized = (raw - offset) / scale``.

    Parameters
    ----------
    raw : array-like
        Raw covariate values.
    scale : float, optional
        Scale to use. Default is the sample standard deviation.
    offset : float, optional
        Offset to use. Default is the sample mean.

    Returns
    -------
    standardized : np.ndarray
        Standardized values.
    scale : float
        Scale used.
    offset : float
        Offset used.

    Raises
    ------
    DegenerateCovariateError
        When all values are identical and no scale is given, or when the
        given scale is zero.
    """
    raw = to_numeric_array(raw, "raw")

    if scale is None and offset is None:
        mean = float(np.mean(raw))
        std = float(np.std(raw, ddof=1)) if raw.size > 1 else 0.0
        if np.isclose(mean, 0.0) and np.isclose(std, 1.0):
            return raw, 1.0, 0.0
        if std == 0:
            raise DegenerateCovariateError(
                f"Covariate is constant (all values equal {raw[0]}); "
                "give an explicit scale to standardize it."
            )
        scale, offset = std, mean
    else:
        if scale is None:
            scale = float(np.std(raw, ddof=1)) if raw.size > 1 else 0.0
        if offset is None:
            offset = float(np.mean(raw))
        if scale == 0:
            raise DegenerateCovariateError(
                "Covariate scale must not be 0. Got a constant covariate or scale=0."
            )

    return (raw - offset) / scale, float(scale), float(offset)


def reconstruct(standardized, scale: float, offset: float) -> np.ndarray:
    """
    Invert ``standardize``: ``raw = standardized * scale + offset``.
    """
    standardized = to_numeric_array(standardized, "standardized")
    return standardized * scale + offset
