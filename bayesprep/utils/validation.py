"""
Validation utilities for bayesprep.

Provides common predicates and assertions for arrays and addition term values.
"""

import numpy as np
import pandas as pd
from typing import Any, Optional, Sequence, Union

from ..core.exceptions import LengthMismatchError

ArrayLike = Union[np.ndarray, pd.Series, pd.Categorical, Sequence, float, int]


def is_like_factor(x: Any) -> bool:
    """Check whether values are factor-like (categorical, string or boolean)."""
    if isinstance(x, pd.Categorical):
        return True
    if isinstance(x, pd.Series):
        return (
            isinstance(x.dtype, pd.CategoricalDtype)
            or pd.api.types.is_object_dtype(x.dtype)
            or pd.api.types.is_string_dtype(x.dtype)
            or pd.api.types.is_bool_dtype(x.dtype)
        )
    arr = np.asarray(x)
    return arr.dtype.kind in ("O", "U", "S", "b")


def is_ordered_factor(x: Any) -> bool:
    """Check whether values are an ordered categorical."""
    if isinstance(x, pd.Series):
        return isinstance(x.dtype, pd.CategoricalDtype) and bool(x.cat.ordered)
    return isinstance(x, pd.Categorical) and bool(x.ordered)


def is_numeric(x: Any) -> bool:
    """Check whether values have a numeric (non-boolean) dtype."""
    if isinstance(x, pd.Categorical):
        return False
    if isinstance(x, (pd.Series, pd.DataFrame)):
        dtypes = [x.dtype] if isinstance(x, pd.Series) else list(x.dtypes)
        return all(
            pd.api.types.is_numeric_dtype(d) and not pd.api.types.is_bool_dtype(d)
            for d in dtypes
        )
    arr = np.asarray(x)
    return arr.dtype.kind in ("i", "u", "f")


def is_wholenumber(x: ArrayLike, tol: float = np.sqrt(np.finfo(float).eps)) -> np.ndarray:
    """
    Elementwise check for whole numbers.

    Missing values are reported as not whole.
    """
    arr = np.asarray(x, dtype=float)
    with np.errstate(invalid="ignore"):
        return np.isfinite(arr) & (np.abs(arr - np.round(arr)) < tol)


def is_equal(x: ArrayLike, y: ArrayLike, tol: float = 1.5e-8) -> bool:
    """
    Check two numeric arrays for equality up to a relative tolerance.

    Arrays of different length are never equal.
    """
    x = np.asarray(x, dtype=float).ravel()
    y = np.asarray(y, dtype=float).ravel()
    if x.shape != y.shape:
        return False
    if x.size == 0:
        return True
    scale = np.mean(np.abs(x))
    diff = np.mean(np.abs(x - y))
    if np.isfinite(scale) and scale > tol:
        diff = diff / scale
    return bool(diff < tol)


def finite_bound(bound: Optional[float]) -> bool:
    """Check whether a bound is present and finite."""
    return bound is not None and bool(np.isfinite(bound))


def broadcast_to_length(values: ArrayLike, n: int, name: str) -> np.ndarray:
    """
    Broadcast a scalar or length-1 vector to length n.

    Args:
        values: Scalar or vector values
        n: Target length (number of data rows)
        name: Name for error messages

    Returns:
        1-d array of length n

    Raises:
        LengthMismatchError: If values are neither of length 1 nor n
    """
    if isinstance(values, (pd.Series, pd.Categorical)):
        values = np.asarray(values)
    arr = np.atleast_1d(np.asarray(values))
    if arr.ndim > 1:
        arr = arr.ravel()
    if arr.shape[0] == 1 and n != 1:
        return np.repeat(arr, n)
    if arr.shape[0] != n:
        raise LengthMismatchError(name, arr.shape[0], n)
    return arr


def format_bound(bound: float, digits: int = 2) -> str:
    """Format a bound the way error messages cite it."""
    rounded = round(float(bound), digits)
    if float(rounded).is_integer():
        return str(int(rounded))
    return str(rounded)
