"""
Auxiliary data blocks for bayesprep.

Mixture weight priors and the spline bases of Cox baseline hazards.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
from scipy.interpolate import BSpline

from .addition import factor_levels, get_ad_values, level_codes, model_response, subset_data
from ..config.settings import get_default_config
from ..core.exceptions import PriorSpecificationError, ResponseDataError
from ..formulas.frame import ResponseFrame, usc
from ..formulas.terms import parse_literal, split_top_level
from ..utils.logging import get_logger
from ..utils.validation import broadcast_to_length


logger = get_logger(__name__)

_DIRICHLET_RE = re.compile(r"^\s*dirichlet\s*\((.*)\)\s*$", re.DOTALL)


def eval_dirichlet(
    prior: str,
    length: Optional[int] = None,
    data2: Optional[Mapping[str, Any]] = None,
) -> np.ndarray:
    """
    Evaluate a Dirichlet prior expression to a concentration vector.

    Args:
        prior: e.g. 'dirichlet(1)', 'dirichlet(c(1, 2))' or 'dirichlet(alpha)';
            an empty string means 'dirichlet(1)'
        length: Required length; scalars are broadcast to it
        data2: Auxiliary data used to look up names

    Returns:
        Positive concentration vector

    Raises:
        PriorSpecificationError: If the prior cannot be evaluated
    """
    data2 = data2 or {}
    prior = (prior or "").strip()
    if not prior:
        prior = "dirichlet(1)"

    match = _DIRICHLET_RE.match(prior)
    if not match:
        raise PriorSpecificationError(prior, reason="expected a 'dirichlet(...)' prior")

    values: List[float] = []
    for piece in split_top_level(match.group(1), ","):
        if not piece:
            continue
        if piece in data2:
            raw = data2[piece]
        else:
            try:
                raw = parse_literal(piece)
            except (ValueError, SyntaxError):
                raise PriorSpecificationError(
                    prior,
                    reason=f"could not evaluate '{piece}'; did you forget to pass it as auxiliary data?",
                )
        try:
            values.extend(np.asarray(raw, dtype=float).ravel().tolist())
        except (TypeError, ValueError):
            raise PriorSpecificationError(prior, reason=f"'{piece}' is not numeric")

    out = np.asarray(values, dtype=float)
    if out.size == 0 or np.any(np.isnan(out)) or np.any(out <= 0):
        raise PriorSpecificationError(prior, reason="the dirichlet prior expects positive values")
    if length is not None:
        if out.size == 1:
            out = np.repeat(out, length)
        if out.size != length:
            raise PriorSpecificationError(
                prior, reason=f"expected input of length {length}, got {out.size}"
            )
    return out


def subset_prior(prior: Optional[pd.DataFrame], **conditions) -> pd.DataFrame:
    """Rows of a prior table matching all conditions; absent columns count as ''."""
    if prior is None or len(prior) == 0:
        return pd.DataFrame(columns=["prior", *conditions.keys()])
    mask = np.ones(len(prior), dtype=bool)
    for column, value in conditions.items():
        if column in prior.columns:
            mask &= prior[column].fillna("").astype(str).to_numpy() == str(value)
        elif value != "":
            mask &= False
    return prior.loc[mask]


def _first_prior(rows: pd.DataFrame) -> str:
    if "prior" not in rows.columns:
        return ""
    for value in rows["prior"].fillna("").astype(str):
        if value.strip():
            return value
    return ""


def _prior_resp(frame: ResponseFrame) -> str:
    return frame.resp if frame.multivariate else ""


def dpar_class(name: str) -> str:
    """Class of a distributional parameter, e.g. 'theta2' -> 'theta'."""
    return re.sub(r"[0-9]+$", "", name)


def data_mixture(
    frame: ResponseFrame,
    data2: Optional[Mapping[str, Any]] = None,
    prior: Optional[pd.DataFrame] = None,
) -> Dict[str, np.ndarray]:
    """
    Data of finite mixture models.

    When mixture proportions are not predicted, they are estimated directly
    with a Dirichlet prior whose concentration vector is returned as
    'con_theta'.
    """
    out: Dict[str, np.ndarray] = {}
    if not frame.family.is_mixture:
        return out
    classes = {dpar_class(name) for name in list(frame.dpars) + list(frame.fdpars)}
    if "theta" in classes:
        return out

    ncomp = len(frame.family.components)
    rows = subset_prior(prior, **{"class": "theta", "resp": _prior_resp(frame)})
    out["con_theta"] = eval_dirichlet(_first_prior(rows), ncomp, data2)
    logger.debug("Prepared mixture data", components=ncomp)
    return {f"{name}{frame.suffix}": value for name, value in out.items()}


@dataclass
class BaselineHazardSpec:
    """Arguments of the baseline hazard basis and optional stratification groups."""

    args: Dict[str, Any] = field(default_factory=dict)
    groups: Optional[List[str]] = None


@dataclass
class BaselineHazardBasis:
    """
    M-spline basis of a baseline hazard and its integral (I-spline).

    Attributes:
        knots: Interior knots
        boundary_knots: Lower and upper boundary knots
        degree: Polynomial degree of the splines
        intercept: Keep the first basis function
    """

    knots: Sequence[float]
    boundary_knots: Sequence[float]
    degree: int = 3
    intercept: bool = True

    def __post_init__(self):
        self.knots = [float(k) for k in self.knots]
        self.boundary_knots = [float(b) for b in self.boundary_knots]
        lower, upper = self.boundary_knots
        if not lower < upper:
            raise ResponseDataError(
                f"Boundary knots of the baseline hazard must be increasing, got {self.boundary_knots}.",
                suggestions=["Ensure the response has at least two distinct values"],
            )
        if any(k <= lower or k >= upper for k in self.knots):
            raise ResponseDataError(
                "Interior knots of the baseline hazard must lie inside the boundary knots.",
                suggestions=["Set 'Boundary.knots' in 'bhaz' to cover all knots"],
            )

    @classmethod
    def from_data(
        cls,
        y: Sequence[float],
        df: Optional[int] = None,
        knots: Optional[Sequence[float]] = None,
        boundary_knots: Optional[Sequence[float]] = None,
        degree: Optional[int] = None,
        intercept: Optional[bool] = None,
        boundary_knot_fraction: Optional[float] = None,
    ) -> "BaselineHazardBasis":
        """
        Construct a basis for observed response values.

        Without explicit boundary knots the lower knot is placed slightly
        below the smallest response (but not below 0) and the upper knot
        slightly above the largest response. Interior knots are placed at
        quantiles of the response.
        """
        defaults = get_default_config().baseline_hazard
        degree = defaults.degree if degree is None else int(degree)
        intercept = defaults.intercept if intercept is None else bool(intercept)
        fraction = defaults.boundary_knot_fraction if boundary_knot_fraction is None else boundary_knot_fraction

        y = np.asarray(y, dtype=float)
        y = y[np.isfinite(y)]
        if y.size == 0:
            raise ResponseDataError("Baseline hazards require finite response values.")

        if boundary_knots is None:
            min_y, max_y = float(np.min(y)), float(np.max(y))
            diff_y = max_y - min_y
            boundary_knots = [max(min_y - diff_y * fraction, 0.0), max_y + diff_y * fraction]

        if knots is None:
            df = defaults.df if df is None else int(df)
            n_interior = df - degree - int(intercept)
            if n_interior < 0:
                raise ResponseDataError(
                    f"'df' of the baseline hazard must be at least {degree + int(intercept)}, got {df}."
                )
            inside = y[(y >= boundary_knots[0]) & (y <= boundary_knots[1])]
            probs = np.arange(1, n_interior + 1) / (n_interior + 1)
            knots = np.quantile(inside, probs) if n_interior > 0 else []

        return cls(knots=list(knots), boundary_knots=list(boundary_knots), degree=degree, intercept=intercept)

    @property
    def full_knots(self) -> np.ndarray:
        lower, upper = self.boundary_knots
        order = self.degree + 1
        return np.concatenate([[lower] * order, self.knots, [upper] * order])

    @property
    def ncol(self) -> int:
        return len(self.knots) + self.degree + int(self.intercept)

    def _splines(self) -> List[BSpline]:
        t = self.full_knots
        k = self.degree
        n = len(t) - k - 1
        splines = []
        for i in range(n):
            c = np.zeros(n)
            width = t[i + k + 1] - t[i]
            if width > 0:
                c[i] = (k + 1) / width
            splines.append(BSpline(t, c, k, extrapolate=True))
        if not self.intercept:
            splines = splines[1:]
        return splines

    def m_spline(self, x: Sequence[float]) -> np.ndarray:
        """M-spline basis matrix (len(x) x ncol); zero outside the boundary knots."""
        x = np.asarray(x, dtype=float)
        lower, upper = self.boundary_knots
        inside = (x >= lower) & (x <= upper)
        out = np.zeros((x.size, self.ncol))
        for j, spline in enumerate(self._splines()):
            out[inside, j] = spline(x[inside])
        return out

    def i_spline(self, x: Sequence[float]) -> np.ndarray:
        """I-spline basis matrix, the integral of the M-splines from the lower boundary."""
        x = np.asarray(x, dtype=float)
        lower, upper = self.boundary_knots
        clipped = np.clip(x, lower, upper)
        out = np.zeros((x.size, self.ncol))
        for j, spline in enumerate(self._splines()):
            anti = spline.antiderivative()
            out[:, j] = anti(clipped) - anti(lower)
        return out

    def predict(self, x: Sequence[float], integrate: bool = False) -> np.ndarray:
        """Evaluate the basis at new values."""
        return self.i_spline(x) if integrate else self.m_spline(x)


_BHAZ_FLAG_NAMES = {
    "Boundary.knots": "boundary_knots",
    "Boundary_knots": "boundary_knots",
    "boundary_knots": "boundary_knots",
    "knots": "knots",
    "df": "df",
    "degree": "degree",
    "intercept": "intercept",
}


def extract_bhaz(frame: ResponseFrame, data: pd.DataFrame) -> BaselineHazardSpec:
    """
    Baseline hazard arguments and stratification groups of a Cox model.

    Without a 'bhaz' addition term the configured defaults are used.
    """
    if not frame.info.cox:
        raise ResponseDataError(
            f"Baseline hazards are only defined for Cox models, not '{frame.family.label}'."
        )
    term = frame.ad("bhaz")
    if term is None:
        defaults = get_default_config().baseline_hazard
        return BaselineHazardSpec(args={"df": defaults.df, "intercept": defaults.intercept})

    args = {}
    for name, value in term.flags.items():
        if name not in _BHAZ_FLAG_NAMES:
            raise ResponseDataError(f"Argument '{name}' is not supported by 'bhaz'.")
        args[_BHAZ_FLAG_NAMES[name]] = value

    groups = None
    gr = get_ad_values(frame, "bhaz", "gr", data)
    if gr is not None:
        groups = [str(g) for g in factor_levels(gr)]
    return BaselineHazardSpec(args=args, groups=groups)


def bhaz_basis_matrix(
    y: Sequence[float],
    args: Optional[Dict[str, Any]] = None,
    integrate: bool = False,
    basis: Optional[BaselineHazardBasis] = None,
) -> np.ndarray:
    """
    Design matrix of a baseline hazard function.

    Args:
        y: Response values
        args: Arguments of BaselineHazardBasis.from_data
        integrate: Compute the I-spline instead of the M-spline basis
        basis: Existing basis to predict from
    """
    if basis is None:
        basis = BaselineHazardBasis.from_data(y, **(args or {}))
    return basis.predict(y, integrate=integrate)


def data_bhaz(
    frame: ResponseFrame,
    data: pd.DataFrame,
    data2: Optional[Mapping[str, Any]] = None,
    prior: Optional[pd.DataFrame] = None,
) -> Dict[str, Any]:
    """Data of the baseline hazard functions of Cox models."""
    out: Dict[str, Any] = {}
    if not frame.info.cox:
        return out

    data = subset_data(frame, data)
    y = np.asarray(model_response(frame, data), dtype=float)
    bhaz = frame.bhaz or extract_bhaz(frame, data)
    basis = frame.bhaz_basis or BaselineHazardBasis.from_data(y, **bhaz.args)

    out["Zbhaz"] = basis.m_spline(y)
    out["Zcbhaz"] = basis.i_spline(y)
    out["Kbhaz"] = basis.ncol

    sbhaz_prior = subset_prior(prior, **{"class": "sbhaz", "resp": _prior_resp(frame)})
    if bhaz.groups is not None:
        groups = bhaz.groups
        out["ngrbhaz"] = len(groups)
        gr = get_ad_values(frame, "bhaz", "gr", data)
        gr = pd.Series(broadcast_to_length(gr.astype(str), len(data), "gr"))
        codes = level_codes(gr, groups)
        if np.any(np.isnan(codes)):
            raise ResponseDataError(
                "Some values of 'gr' in 'bhaz' are not among the stratification groups.",
                response=frame.resp,
            )
        out["Jgrbhaz"] = codes.astype(int) + 1
        global_prior = _first_prior(subset_prior(sbhaz_prior, group=""))
        con_global = eval_dirichlet(global_prior, out["Kbhaz"], data2)
        con = np.empty((len(groups), out["Kbhaz"]))
        for k, group in enumerate(groups):
            group_prior = _first_prior(subset_prior(sbhaz_prior, group=group))
            if group_prior:
                con[k, :] = eval_dirichlet(group_prior, out["Kbhaz"], data2)
            else:
                con[k, :] = con_global
        out["con_sbhaz"] = con
    else:
        out["con_sbhaz"] = eval_dirichlet(_first_prior(sbhaz_prior), out["Kbhaz"], data2)

    logger.debug("Prepared baseline hazard data", response=frame.resp, Kbhaz=out["Kbhaz"])
    return {f"{name}{usc(frame.prefix)}": value for name, value in out.items()}
