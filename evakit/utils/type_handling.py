"""
This module provides utility functions for converting user input to the
numpy structures used throughout evakit, and for validating the scalar
arguments shared by the fitting and return-level functions.

Functions:
----------
- to_numeric_array: Converts input data to a one-dimensional float array.
- check_probability: Validates a probability strictly inside (0, 1).
- check_level: Validates a confidence or credible level strictly inside (0, 1).
- check_positive: Validates a strictly positive number.
- to_readonly_array: Float copy of an array that cannot be modified in place.
"""

from typing import Union
import numpy as np
import pandas as pd
import xarray as xr

from evakit.errors import (
    InvalidLevelError,
    InvalidPeriodError,
    InvalidProbabilityError,
)


def to_numeric_array(
    data: Union[list, tuple, np.ndarray, pd.Series, xr.DataArray], name: str
) -> np.ndarray:
    """
    Convert input data to a one-dimensional float array, ensuring all
    elements are numeric.

    Parameters
    ----------
    data: list, tuple, np.ndarray, pd.Series or xr.DataArray
        Data to convert.
    name: str
        Name of the argument, used in error messages.

    Returns
    -------
    data: np.ndarray
        Float64 array. A copy is always returned so the caller's data is
        never aliased.
    """
    if isinstance(data, (list, tuple, np.ndarray, pd.Series, xr.DataArray)):
        data = np.array(data)
        if not (np.issubdtype(data.dtype, np.number) or data.dtype == bool):
            raise TypeError(
                (f"{name} must contain numeric data." + f" Got data type: {data.dtype}")
            )
    else:
        raise TypeError(
            (
                f"{name} must be a list, tuple, np.ndarray, pd.Series,"
                + f" or xr.DataArray. Got: {type(data)}"
            )
        )
    if data.ndim != 1:
        raise ValueError(f"{name} must be one-dimensional. Got shape: {data.shape}")
    return data.astype(float)


def _check_real(value, name):
    if isinstance(value, bool) or not isinstance(value, (int, float, np.number)):
        raise TypeError(f"{name} must be of type int or float. Got: {type(value)}")


def check_probability(p: float, name: str = "p") -> float:
    """Raise InvalidProbabilityError unless 0 < p < 1."""
    _check_real(p, name)
    if not 0 < p < 1:
        raise InvalidProbabilityError(
            f"{name} should be strictly between 0 and 1. Got: {p}"
        )
    return float(p)


def check_level(level: float, name: str = "level") -> float:
    """Raise InvalidLevelError unless 0 < level < 1."""
    _check_real(level, name)
    if not 0 < level < 1:
        raise InvalidLevelError(
            f"{name} should be strictly between 0 and 1. Got: {level}"
        )
    return float(level)


def check_positive(value: float, name: str) -> float:
    """Raise InvalidPeriodError unless value > 0."""
    _check_real(value, name)
    if not value > 0:
        raise InvalidPeriodError(f"{name} should be positive. Got: {value}")
    return float(value)


def to_readonly_array(data) -> np.ndarray:
    """Float copy of ``data`` with the writeable flag cleared."""
    array = np.array(data, dtype=float)
    array.flags.writeable = False
    return array
