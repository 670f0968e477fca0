"""
Response data preparation for bayesprep.

Turns the response of one frame and its addition terms into a validated,
family-conformant bundle of numeric arrays ready to be handed to an
inference engine.
"""

import warnings
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional

import jax.numpy as jnp
import numpy as np
import pandas as pd

from .addition import (
    factor_levels,
    get_ad_flag,
    get_ad_values,
    get_ad_vars,
    get_sdy,
    level_codes,
    model_response,
    subset_data,
    trunc_bounds,
)
from .thresholds import extract_cat_names, extract_thres_names
from ..config.settings import BayesPrepConfig, get_default_config
from ..core.exceptions import (
    AdditionTermValueError,
    CensoringError,
    InsufficientCategoriesError,
    InsufficientThresholdsError,
    NonNumericResponseError,
    ResponseDataError,
    ResponseRangeError,
    TrialsError,
    TruncationError,
)
from ..formulas.frame import ResponseFrame
from ..utils.logging import get_logger
from ..utils.validation import (
    broadcast_to_length,
    finite_bound,
    format_bound,
    is_equal,
    is_like_factor,
    is_numeric,
    is_ordered_factor,
    is_wholenumber,
)


logger = get_logger(__name__)

BERNOULLI_ADVICE = (
    "Only 2 levels detected so that family 'bernoulli' might be a more efficient choice."
)

_CENSORING_CODES = {"left": -1, "none": 0, "right": 1, "interval": 2}


class PreparationMode(str, Enum):
    """
    Purpose of a data preparation run.

    FITTING prepares data of observed responses for model fitting. PREDICTION
    prepares data of new responses; advisories are suppressed and missing
    values are never replaced by sentinels.
    """
    FITTING = "fitting"
    PREDICTION = "prediction"


class ResponseDataBundle(Mapping):
    """
    Read-only mapping of field names to prepared arrays.

    Attributes:
        advisories: Informational notices raised during preparation
    """

    def __init__(self, fields: Optional[Dict[str, Any]] = None, advisories: Optional[List[str]] = None):
        self._fields = dict(fields or {})
        self.advisories = list(advisories or [])

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"ResponseDataBundle(fields={list(self._fields)}, advisories={len(self.advisories)})"

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary copy of all fields."""
        return dict(self._fields)

    def to_jax(self) -> Dict[str, Any]:
        """Convert all fields to JAX arrays for a JAX-based inference engine."""
        return {name: jnp.asarray(value) for name, value in self._fields.items()}

    def merge(self, other: "ResponseDataBundle") -> "ResponseDataBundle":
        """Combine two bundles; fields of other take precedence."""
        fields = {**self._fields, **other._fields}
        return ResponseDataBundle(fields, self.advisories + other.advisories)


def data_response(
    frame: ResponseFrame,
    data: pd.DataFrame,
    check_response: Optional[bool] = None,
    mode: PreparationMode = PreparationMode.FITTING,
    config: Optional[BayesPrepConfig] = None,
) -> ResponseDataBundle:
    """
    Prepare the response data of a single response variable.

    Args:
        frame: Modeling context of the response
        data: Data table with one row per observation
        check_response: Validate responses against the family; defaults to
            the configured value
        mode: Fitting or prediction of new data
        config: Configuration; defaults to the global configuration

    Returns:
        ResponseDataBundle with fields 'N', 'Y' and all family and addition
        term specific fields, suffixed by the response name in multivariate
        models

    Raises:
        ResponseDataError: If the data do not conform to the model
        ModelSpecificationError: If required addition terms are missing or
            cannot be evaluated
    """
    config = config or get_default_config()
    if check_response is None:
        check_response = config.data.check_response
    mode = PreparationMode(mode)
    internal = mode is PreparationMode.PREDICTION
    tol = config.data.equality_tolerance

    if not isinstance(data, pd.DataFrame):
        data = pd.DataFrame(data)
    data = subset_data(frame, data)
    N = len(data)
    info = frame.info
    label = frame.family.label

    logger.debug(
        "Preparing response data",
        response=frame.resp,
        family=label,
        n=N,
        mode=mode.value,
    )

    advisories: List[str] = []

    def advise(message: str) -> None:
        if internal or not config.data.emit_advisories:
            return
        advisories.append(message)
        logger.advisory(message, response=frame.resp)

    response = model_response(frame, data)
    observed = _observed_mask(response)
    Y = _recode_response(frame, response)
    out: Dict[str, Any] = {"N": N, "Y": Y}

    if check_response:
        _check_response(frame, Y, observed, label, tol)

    # trials
    if info.trials or frame.has_ad("trials"):
        trials = get_ad_values(frame, "trials", "trials", data, required=True)
        if not is_numeric(trials):
            raise TrialsError("Number of trials must be numeric.", family=label, response=frame.resp)
        trials = trials.to_numpy(dtype=float)
        if np.any(~is_wholenumber(trials) | (trials < 0)):
            raise TrialsError(
                "Number of trials must be non-negative integers.",
                family=label,
                response=frame.resp,
            )
        trials = broadcast_to_length(trials, N, "trials").astype(int)
        if check_response:
            values = _as_float(Y)
            if info.multicol:
                rowsums = np.nansum(np.atleast_2d(values), axis=1)
                if np.any(np.abs(rowsums - trials) > tol * np.maximum(trials, 1)):
                    raise TrialsError(
                        "Number of trials does not match the number of events.",
                        family=label,
                        response=frame.resp,
                    )
            elif info.trials:
                if N and np.max(trials) == 1:
                    advise(BERNOULLI_ADVICE)
                with np.errstate(invalid="ignore"):
                    exceeds = values > trials
                if np.any(exceeds):
                    raise TrialsError(
                        "Number of trials is smaller than the number of events.",
                        family=label,
                        response=frame.resp,
                    )
        out["trials"] = trials

    # categories
    if info.categorical:
        cats = frame.cats
        if cats is None:
            cats = frame.resp_levels if frame.resp_levels is not None and not info.multicol else None
        if cats is None:
            cats = extract_cat_names(frame, data)
        ncat = len(cats)
        if ncat < 2:
            raise InsufficientCategoriesError(
                "At least two response categories are required.",
                family=label,
                response=frame.resp,
            )
        if not info.multicol:
            if ncat == 2:
                advise(BERNOULLI_ADVICE)
            if check_response:
                with np.errstate(invalid="ignore"):
                    exceeds = _as_float(Y) > ncat
                if np.any(exceeds):
                    raise InsufficientCategoriesError(
                        "Number of categories is smaller than the response variable would suggest.",
                        family=label,
                        response=frame.resp,
                    )
        out["ncat"] = ncat

    # thresholds
    if info.ordinal:
        table = frame.thres if frame.thres is not None else extract_thres_names(frame, data)
        if frame.has_thres_groups:
            groups = table.groups
            grthres = get_ad_values(frame, "thres", "gr", data)
            grthres = pd.Series(broadcast_to_length(grthres, N, "gr")).astype(str)
            codes = level_codes(grthres, groups)
            if np.any(np.isnan(codes)):
                unknown = sorted(set(grthres[np.isnan(codes)]))
                raise AdditionTermValueError(
                    f"Threshold groups {unknown} are not part of the threshold table.",
                    term="thres",
                    family=label,
                    response=frame.resp,
                )
            Jgr = codes.astype(int)
            nthres = np.array([table.nthres(g) for g in groups], dtype=int)
            if check_response:
                with np.errstate(invalid="ignore"):
                    exceeds = _as_float(Y) > nthres[Jgr] + 1
                if np.any(exceeds):
                    raise InsufficientThresholdsError(
                        "Number of thresholds is smaller than required by the response.",
                        family=label,
                        response=frame.resp,
                    )
            ends = np.cumsum(nthres)
            starts = np.concatenate([[1], ends[:-1] + 1])
            out["ngrthres"] = len(groups)
            out["Jgrthres"] = np.column_stack([starts, ends])[Jgr, :]
        else:
            nthres = table.nthres()
            if check_response:
                with np.errstate(invalid="ignore"):
                    exceeds = _as_float(Y) > nthres + 1
                if np.any(exceeds):
                    raise InsufficientThresholdsError(
                        "Number of thresholds is smaller than required by the response.",
                        family=label,
                        response=frame.resp,
                    )
        if np.max(nthres) == 1:
            advise(BERNOULLI_ADVICE)
        out["nthres"] = nthres
    if frame.has_ad("cat"):
        warnings.warn(
            "Addition argument 'cat' is deprecated. Use 'thres' instead.",
            DeprecationWarning,
            stacklevel=2,
        )

    # standard errors, weights, decisions and rates
    if frame.has_ad("se"):
        se = _nonnegative_values(frame, "se", "se", data, "Standard errors")
        out["se"] = broadcast_to_length(se, N, "se")
    if frame.has_ad("weights"):
        weights = _nonnegative_values(frame, "weights", "weights", data, "Weights")
        weights = broadcast_to_length(weights, N, "weights")
        if get_ad_flag(frame, "weights", "scale"):
            weights = weights / np.sum(weights) * len(weights)
        out["weights"] = weights
    if frame.has_ad("dec"):
        dec = get_ad_values(frame, "dec", "dec", data)
        out["dec"] = broadcast_to_length(_decision_codes(dec, frame), N, "dec")
    if frame.has_ad("rate"):
        denom = get_ad_values(frame, "rate", "denom", data)
        if not is_numeric(denom):
            raise AdditionTermValueError(
                "Rate denominators should be numeric.", term="rate", family=label, response=frame.resp
            )
        denom = denom.to_numpy(dtype=float)
        with np.errstate(invalid="ignore"):
            nonpositive = denom <= 0
        if np.any(nonpositive):
            raise AdditionTermValueError(
                "Rate denominators should be positive.", term="rate", family=label, response=frame.resp
            )
        out["denom"] = broadcast_to_length(denom, N, "denom")

    # censoring
    if frame.has_ad("cens"):
        cens = censoring_codes(get_ad_values(frame, "cens", "cens", data))
        if len(cens) == 1:
            cens = np.repeat(cens, N)
        if len(cens) != N:
            raise CensoringError(
                "Censoring information needs to have length equal to the number of data rows.",
                family=label,
                response=frame.resp,
            )
        out["cens"] = cens
        icens = cens == 2
        if np.any(icens) or frame.has_interval_cens:
            y2 = get_ad_values(frame, "cens", "y2", data)
            if y2 is None:
                raise CensoringError(
                    "Argument 'y2' is required for interval censored data.",
                    family=label,
                    response=frame.resp,
                )
            if len(y2) != N:
                raise CensoringError(
                    "Argument 'y2' needs to have length equal to the number of data rows.",
                    family=label,
                    response=frame.resp,
                )
            y2 = pd.to_numeric(y2, errors="coerce").to_numpy(dtype=float)
            if np.any(np.isnan(y2[icens])):
                raise CensoringError(
                    "'y2' should not be missing for interval censored observations.",
                    family=label,
                    response=frame.resp,
                )
            if check_response and np.any(_as_float(Y)[icens] >= y2[icens]):
                raise CensoringError(
                    "Left censor points must be smaller than right censor points "
                    "for interval censored data.",
                    family=label,
                    response=frame.resp,
                )
            y2[~icens] = 0
            out["rcens"] = y2

    # truncation
    if frame.has_ad("trunc"):
        lb, ub = trunc_bounds(frame, data)
        if np.any(lb >= ub):
            raise TruncationError(
                "Truncation bounds are invalid: lb >= ub", family=label, response=frame.resp
            )
        if check_response:
            values = _as_float(Y)
            with np.errstate(invalid="ignore"):
                outside = (values < lb) | (values > ub)
            if np.any(outside):
                raise TruncationError(
                    "Some responses are outside of the truncation bounds.",
                    family=label,
                    response=frame.resp,
                )
        out["lb"] = lb
        out["ub"] = ub

    # missing values and measurement error
    if frame.has_ad("mi"):
        values = _as_float(Y)
        sdy = get_sdy(frame, data)
        if sdy is None:
            which_mi = np.isnan(values)
            out["Jmi"] = np.flatnonzero(which_mi) + 1
            out["Nmi"] = int(np.sum(which_mi))
        else:
            sdy = broadcast_to_length(sdy, len(values), "sdy").astype(float)
            which_mi = np.isnan(values) | np.isinf(sdy)
            out["Jme"] = np.flatnonzero(~which_mi) + 1
            out["Nme"] = int(np.sum(~which_mi))
            out["noise"] = sdy
        out["lbmi"], out["ubmi"] = trunc_bounds(frame, data, incl_family=True)
        out["Y"] = values
        if not internal:
            out.update(encode_missing_sentinel(out, which_mi))

    # custom vectors
    if frame.has_ad("vreal"):
        for i, values in enumerate(get_ad_vars(frame, "vreal", data), start=1):
            values = pd.to_numeric(values, errors="coerce").to_numpy(dtype=float)
            out[f"vreal{i}"] = broadcast_to_length(values, N, f"vreal{i}")
    if frame.has_ad("vint"):
        for i, values in enumerate(get_ad_vars(frame, "vint", data), start=1):
            values = pd.to_numeric(values, errors="coerce").to_numpy(dtype=float)
            if not np.all(is_wholenumber(values)):
                raise AdditionTermValueError(
                    "'vint' requires whole numbers as input.", term="vint", family=label, response=frame.resp
                )
            out[f"vint{i}"] = broadcast_to_length(values, N, f"vint{i}").astype(int)

    suffix = frame.suffix
    if suffix:
        out = {f"{name}{suffix}": value for name, value in out.items()}
    logger.debug("Prepared response data", response=frame.resp, fields=len(out))
    return ResponseDataBundle(out, advisories)


def encode_missing_sentinel(fields: Mapping[str, Any], which_mi: np.ndarray) -> Dict[str, np.ndarray]:
    """
    Replace missing responses and their noise by +Inf.

    Inference engines often cannot represent undefined values in data. The
    replaced entries are identified by 'Jmi' (missing only) or by the
    complement of 'Jme' (measurement error) and carry no information.
    """
    out = {}
    Y = np.array(fields["Y"], dtype=float)
    Y[which_mi] = np.inf
    out["Y"] = Y
    if "noise" in fields:
        noise = np.array(fields["noise"], dtype=float)
        noise[which_mi] = np.inf
        out["noise"] = noise
    return out


def censoring_codes(values) -> np.ndarray:
    """
    Convert censoring information to codes -1, 0, 1 and 2.

    Strings may abbreviate 'left', 'none', 'right' and 'interval'. Booleans
    refer to 'right' (True) and 'none' (False).

    Raises:
        CensoringError: If values cannot be interpreted
    """
    series = values if isinstance(values, pd.Series) else pd.Series(np.atleast_1d(values))
    if pd.api.types.is_bool_dtype(series.dtype):
        return series.astype(int).to_numpy()

    if is_like_factor(series):
        codes = []
        for value in series.astype(object):
            codes.append(_censoring_code(value))
        codes = np.array(codes, dtype=float)
    else:
        codes = series.to_numpy(dtype=float)

    if not np.all(is_wholenumber(codes) & np.isin(codes, [-1, 0, 1, 2])):
        raise CensoringError(
            "Invalid censoring data. Accepted values are 'left', 'none', 'right', "
            "and 'interval' (abbreviations are allowed) or -1, 0, 1, and 2. "
            "TRUE and FALSE are also accepted and refer to 'right' and 'none' respectively."
        )
    return codes.astype(int)


def _censoring_code(value: Any) -> float:
    if isinstance(value, (bool, np.bool_)):
        return float(value)
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return np.nan
    text = str(value).strip().lower()
    if not text:
        return np.nan
    for name, code in _CENSORING_CODES.items():
        if name.startswith(text):
            return float(code)
    try:
        return float(text)
    except ValueError:
        return np.nan


def _observed_mask(response) -> np.ndarray:
    if isinstance(response, pd.DataFrame):
        return response.notna().all(axis=1).to_numpy()
    return response.notna().to_numpy()


def _as_int_if_complete(codes: np.ndarray) -> np.ndarray:
    if np.any(np.isnan(codes)):
        return codes
    return codes.astype(int)


def _recode_response(frame: ResponseFrame, response) -> np.ndarray:
    info = frame.info
    if isinstance(response, pd.DataFrame):
        return response.to_numpy()

    if info.binary:
        levels = list(frame.resp_levels) if frame.resp_levels is not None else factor_levels(response)
        if is_numeric(response) and len(levels) == 1:
            # 1 is the default event and 0 the default non-event
            levels = [0, 1] if 0 in levels else [0, levels[0]]
        return _as_int_if_complete(level_codes(response, levels))

    if info.categorical:
        levels = list(frame.resp_levels) if frame.resp_levels is not None else factor_levels(response)
        return _as_int_if_complete(level_codes(response, levels) + 1)

    if info.ordinal and is_ordered_factor(response):
        codes = response.cat.codes.to_numpy().astype(float)
        codes[codes < 0] = np.nan
        return _as_int_if_complete(codes + 1 - int(info.extra_cat))

    return response.to_numpy()


def _as_float(values: np.ndarray) -> np.ndarray:
    return np.asarray(values, dtype=float)


def _try_float(values: np.ndarray) -> Optional[np.ndarray]:
    try:
        return _as_float(values)
    except (TypeError, ValueError):
        return None


def _check_response(
    frame: ResponseFrame, Y: np.ndarray, observed: np.ndarray, label: str, tol: float
) -> None:
    info = frame.info
    if not info.allow_factors and not is_numeric(Y):
        raise NonNumericResponseError(label, response=frame.resp)

    values = _try_float(Y)

    if info.binary:
        if values is None or not np.all(np.isin(values[observed], [0, 1])):
            raise ResponseDataError(
                f"Family '{label}' requires responses to contain only two different values.",
                family=label,
                response=frame.resp,
            )

    if info.ordinal:
        min_int = 0 if info.extra_cat else 1
        kind = "non-negative" if info.extra_cat else "positive"
        if (
            values is None
            or not np.all(is_wholenumber(values[observed]))
            or np.any(values[observed] < min_int)
        ):
            raise ResponseDataError(
                f"Family '{label}' requires either {kind} integers or ordered factors as responses.",
                family=label,
                response=frame.resp,
            )

    if values is None:
        return

    if info.integer and not np.all(is_wholenumber(values[observed])):
        raise ResponseDataError(
            f"Family '{label}' requires integer responses.", family=label, response=frame.resp
        )

    if info.multicol and values.ndim != 2:
        raise ResponseDataError(
            "This model requires a response matrix.",
            family=label,
            response=frame.resp,
            suggestions=["Use 'cbind(y1, y2, ...)' as the response"],
        )

    if info.simplex and not is_equal(np.nansum(values, axis=1), np.ones(values.shape[0]), tol=tol):
        raise ResponseDataError(
            "Response values in simplex models must sum to 1.", family=label, response=frame.resp
        )

    finite = values[~np.isnan(values)]
    if finite.size == 0:
        return
    lower, upper = info.ybounds
    closed_lower, closed_upper = info.closed
    if finite_bound(lower):
        y_min = np.min(finite)
        if closed_lower and y_min < lower:
            raise ResponseRangeError(
                f"Family '{label}' requires response greater than or equal to {format_bound(lower)}.",
                family=label, bound=lower, closed=True, response=frame.resp,
            )
        if not closed_lower and y_min <= lower:
            raise ResponseRangeError(
                f"Family '{label}' requires response greater than {format_bound(lower)}.",
                family=label, bound=lower, closed=False, response=frame.resp,
            )
    if finite_bound(upper):
        y_max = np.max(finite)
        if closed_upper and y_max > upper:
            raise ResponseRangeError(
                f"Family '{label}' requires response smaller than or equal to {format_bound(upper)}.",
                family=label, bound=upper, closed=True, response=frame.resp,
            )
        if not closed_upper and y_max >= upper:
            raise ResponseRangeError(
                f"Family '{label}' requires response smaller than {format_bound(upper)}.",
                family=label, bound=upper, closed=False, response=frame.resp,
            )


def _nonnegative_values(frame: ResponseFrame, role: str, arg: str, data: pd.DataFrame, what: str) -> np.ndarray:
    values = get_ad_values(frame, role, arg, data)
    label = frame.family.label
    if not is_numeric(values):
        raise AdditionTermValueError(f"{what} must be numeric.", term=role, family=label, response=frame.resp)
    values = values.to_numpy(dtype=float)
    with np.errstate(invalid="ignore"):
        negative = values < 0
    if np.any(negative):
        raise AdditionTermValueError(f"{what} must be non-negative.", term=role, family=label, response=frame.resp)
    return values


def _decision_codes(dec: pd.Series, frame: ResponseFrame) -> np.ndarray:
    """Code decisions as 0 (lower) and 1 (upper); missing decisions stay NaN."""
    missing = dec.isna().to_numpy()
    observed = dec[~missing]
    is_character = isinstance(dec.dtype, pd.CategoricalDtype) or (
        len(observed) > 0 and all(isinstance(v, str) for v in observed)
    )
    if is_character:
        if not set(observed.astype(str)) <= {"lower", "upper"}:
            raise AdditionTermValueError(
                "Decisions should be 'lower' or 'upper' when supplied as characters or factors.",
                term="dec",
                family=frame.family.label,
                response=frame.resp,
            )
        codes = np.where(dec.astype(str).to_numpy() == "lower", 0.0, 1.0)
    else:
        codes = np.empty(len(dec))
        for i, value in enumerate(dec):
            if missing[i]:
                continue
            if isinstance(value, (bool, np.bool_, int, float, np.number)):
                codes[i] = float(value != 0)
            else:
                raise AdditionTermValueError(
                    f"Decisions should be logical or numeric, got {value!r}.",
                    term="dec",
                    family=frame.family.label,
                    response=frame.resp,
                )
    codes[missing] = np.nan
    return _as_int_if_complete(codes)
