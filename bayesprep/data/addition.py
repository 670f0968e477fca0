"""
Addition term extraction for bayesprep.

Evaluates the expressions of addition terms (trials, se, cens, ...) against
the data table and returns per-observation values.
"""

from typing import Any, List, Optional, Tuple

import numpy as np
import pandas as pd

from ..core.exceptions import (
    LengthMismatchError,
    MalformedAdditionTermError,
    MissingAdditionTermError,
)
from ..formulas.frame import ResponseFrame
from ..formulas.terms import parse_literal
from ..utils.logging import get_logger
from ..utils.validation import broadcast_to_length


logger = get_logger(__name__)

# Constants available inside addition term expressions
_CONSTANTS = {
    "Inf": np.inf,
    "inf": np.inf,
    "TRUE": True,
    "FALSE": False,
    "NA": np.nan,
}


def _as_series(value: Any) -> pd.Series:
    if isinstance(value, pd.Series):
        return value.reset_index(drop=True)
    if isinstance(value, (pd.Categorical, pd.Index)):
        return pd.Series(value)
    if isinstance(value, np.ndarray):
        return pd.Series(value.ravel())
    if isinstance(value, (list, tuple)):
        return pd.Series(list(value))
    return pd.Series([value])


def evaluate_expression(expression: str, data: pd.DataFrame, role: str = "expression") -> pd.Series:
    """
    Evaluate an expression against the columns of a data table.

    Args:
        expression: Column name, literal, or arithmetic expression of columns
        data: Data table
        role: Name of the addition term for error messages

    Returns:
        Values of the expression; length 1 for literals

    Raises:
        MalformedAdditionTermError: If the expression cannot be evaluated
    """
    expression = expression.strip()
    if expression in data.columns:
        return data[expression].reset_index(drop=True)
    if expression.strip("`") in data.columns:
        return data[expression.strip("`")].reset_index(drop=True)

    if expression.lstrip("-+") in _CONSTANTS:
        value = _CONSTANTS[expression.lstrip("-+")]
        if expression.startswith("-"):
            value = -value
        return _as_series(value)

    try:
        return _as_series(parse_literal(expression))
    except (ValueError, SyntaxError, TypeError):
        pass

    try:
        value = data.eval(expression, engine="python", resolvers=(_CONSTANTS,))
    except Exception as e:
        raise MalformedAdditionTermError(role, expression=expression, reason=str(e)) from e

    if isinstance(value, pd.DataFrame):
        raise MalformedAdditionTermError(
            role, expression=expression, reason="expression evaluated to a table"
        )
    return _as_series(value)


def get_ad_values(
    frame: ResponseFrame,
    role: str,
    arg: str,
    data: pd.DataFrame,
    required: bool = False,
) -> Optional[pd.Series]:
    """
    Evaluate one argument of an addition term.

    Args:
        frame: Response frame declaring the addition terms
        role: Addition term, e.g. 'cens'
        arg: Argument of the term, e.g. 'y2'
        data: Data table
        required: Fail if the term is not declared

    Returns:
        Values of length 1 or N, or None if the term or argument is absent

    Raises:
        MissingAdditionTermError: If the term is required but not declared
        MalformedAdditionTermError: If the expression cannot be evaluated
        LengthMismatchError: If the values have neither length 1 nor N
    """
    term = frame.ad(role)
    if term is None:
        if required:
            raise MissingAdditionTermError(role, family=frame.family.label)
        return None
    if arg not in term.args:
        if required:
            raise MalformedAdditionTermError(role)
        return None

    values = evaluate_expression(term.args[arg], data, role=role)
    if len(values) not in (1, len(data)):
        raise LengthMismatchError(f"{role}({arg})", len(values), len(data))
    logger.debug(f"Evaluated addition term {role}", arg=arg, n=len(values))
    return values


def get_ad_vars(frame: ResponseFrame, role: str, data: pd.DataFrame) -> List[pd.Series]:
    """Evaluate all expressions of a variadic addition term (vreal, vint)."""
    term = frame.ad(role)
    if term is None:
        return []
    out = []
    for expression in term.vars:
        values = evaluate_expression(expression, data, role=role)
        if len(values) not in (1, len(data)):
            raise LengthMismatchError(f"{role}({expression})", len(values), len(data))
        out.append(values)
    return out


def get_ad_flag(frame: ResponseFrame, role: str, flag: str, default: bool = False) -> bool:
    """Read a literal flag of an addition term."""
    term = frame.ad(role)
    if term is None:
        return default
    return bool(term.flag(flag, default))


def subset_data(frame: ResponseFrame, data: pd.DataFrame) -> pd.DataFrame:
    """Select the rows declared by a 'subset' addition term."""
    if not frame.has_ad("subset"):
        return data.reset_index(drop=True)
    subset = get_ad_values(frame, "subset", "subset", data)
    mask = broadcast_to_length(subset, len(data), "subset")
    if not pd.api.types.is_bool_dtype(np.asarray(mask).dtype):
        mask = np.asarray(mask).astype(float) != 0
    out = data.loc[np.asarray(mask, dtype=bool)].reset_index(drop=True)
    logger.debug("Subset data", n_before=len(data), n_after=len(out))
    return out


def get_sdy(frame: ResponseFrame, data: pd.DataFrame) -> Optional[np.ndarray]:
    """Measurement error standard deviations of the response, if declared."""
    sdy = get_ad_values(frame, "mi", "sdy", data)
    if sdy is None:
        return None
    return np.asarray(sdy, dtype=float)


def trunc_bounds(
    frame: ResponseFrame, data: pd.DataFrame, incl_family: bool = False
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Truncation bounds of the response.

    Args:
        frame: Response frame
        data: Data table (already subset)
        incl_family: Also restrict the bounds to the support of the family

    Returns:
        Lower and upper bounds, each of length N
    """
    n = len(data)
    lb = get_ad_values(frame, "trunc", "lb", data)
    ub = get_ad_values(frame, "trunc", "ub", data)
    lb = np.full(n, -np.inf) if lb is None else broadcast_to_length(np.asarray(lb, dtype=float), n, "lb")
    ub = np.full(n, np.inf) if ub is None else broadcast_to_length(np.asarray(ub, dtype=float), n, "ub")
    lb = lb.astype(float)
    ub = ub.astype(float)
    if incl_family:
        family_lb, family_ub = frame.info.ybounds
        lb = np.maximum(lb, family_lb)
        ub = np.minimum(ub, family_ub)
    return lb, ub


def model_response(frame: ResponseFrame, data: pd.DataFrame):
    """
    Extract the response of a frame from the data table.

    Returns:
        A Series for univariate responses or a DataFrame with one column per
        response column for matrix responses
    """
    if isinstance(frame.response, list):
        columns = [evaluate_expression(expr, data, role="response") for expr in frame.response]
        out = pd.DataFrame(
            {expr: broadcast_to_length(col, len(data), "response") for expr, col in zip(frame.response, columns)}
        )
        return out
    values = evaluate_expression(frame.response, data, role="response")
    if len(values) != len(data):
        raise LengthMismatchError("response", len(values), len(data))
    return values


def factor_levels(values) -> List[Any]:
    """
    Observed levels of factor-like or numeric values.

    Categorical values keep their category order; other values are sorted.
    Missing values are never levels.
    """
    series = values if isinstance(values, pd.Series) else pd.Series(values)
    observed = series.dropna()
    if isinstance(series.dtype, pd.CategoricalDtype):
        present = set(observed.tolist())
        return [c for c in series.cat.categories if c in present]
    unique = pd.unique(observed)
    try:
        return sorted(unique.tolist())
    except TypeError:
        return sorted(unique.tolist(), key=str)


def level_codes(values, levels: List[Any]) -> np.ndarray:
    """
    0-based positions of values within levels; NaN where a value is not a level.

    Values are matched directly first and by their string form otherwise.
    """
    series = values if isinstance(values, pd.Series) else pd.Series(values)
    raw = series.astype(object) if isinstance(series.dtype, pd.CategoricalDtype) else series
    codes = pd.Index(levels).get_indexer(raw).astype(float)
    missing = codes < 0
    if missing.any():
        by_str = {str(level): i for i, level in enumerate(levels)}
        fallback = np.array([by_str.get(str(v), -1) for v in raw[missing]], dtype=float)
        codes[missing] = fallback
    codes[codes < 0] = np.nan
    codes[series.isna().to_numpy()] = np.nan
    return codes
