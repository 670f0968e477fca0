"""
Frame specification classes for bayesprep.

A frame describes the modeling context of one response variable: its family,
addition terms and the structure of its predictors. Frames are produced by the
formula layer and are read-only inputs to data preparation and the parameter
exclusion resolver.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union, TYPE_CHECKING

from .terms import AdditionTerm, parse_addition_terms, parse_response_expression
from ..core.exceptions import ModelSpecificationError
from ..families import Family, MixtureFamily, FamilyInfo, as_family

if TYPE_CHECKING:
    from ..data.thresholds import ThresholdTable
    from ..data.auxiliary import BaselineHazardSpec, BaselineHazardBasis


def combine_prefix(resp: str = "", dpar: str = "", nlpar: str = "", keep_mu: bool = False) -> str:
    """
    Combine response and parameter names into a variable prefix.

    Examples:
        combine_prefix("y", "mu") -> "y"
        combine_prefix("y", "sigma") -> "y_sigma"
        combine_prefix("", "mu", "b1") -> "b1"
    """
    if not keep_mu and dpar == "mu":
        dpar = ""
    px = nlpar or dpar
    return "_".join(p for p in (resp, px) if p)


def usc(prefix: str) -> str:
    """Prepend an underscore to non-empty prefixes."""
    return f"_{prefix}" if prefix else ""


@dataclass
class SmoothTerm:
    """A smooth term with its number of basis matrices."""

    label: str
    nbases: int = 1


@dataclass
class PredictorFrame:
    """
    Predictor of a distributional or non-linear parameter.

    Names left empty are filled in from the key under which the predictor is
    stored in its ResponseFrame.
    """

    dpar: str = ""
    nlpar: str = ""
    smooths: List[SmoothTerm] = field(default_factory=list)


@dataclass
class GroupEffectTerm:
    """
    One coefficient of a group-level term.

    Attributes:
        id: Identifier shared by correlated group-level terms
        group: Name of the grouping factor
        cn: Index of the coefficient within its id
        coef: Name of the coefficient, e.g. 'Intercept'
        dpar, nlpar: Parameter the coefficient belongs to
        dist: Distribution of the group-level effects
        ggn: Global number of the grouping factor
    """

    id: int
    group: str
    cn: int = 1
    coef: str = "Intercept"
    dpar: str = "mu"
    nlpar: str = ""
    dist: str = "gaussian"
    ggn: Optional[int] = None

    def __post_init__(self):
        if self.ggn is None:
            self.ggn = self.id


@dataclass
class MeasurementErrorTerm:
    """A noise-free (latent) predictor variable."""

    xname: str
    grname: str = ""


@dataclass
class ResponseFrame:
    """
    Modeling context of one response variable.

    Examples:
        ResponseFrame.from_formula("y | trials(n)", family="binomial")
        ResponseFrame(response="y", family=Family("gaussian"))
    """

    response: Union[str, List[str]]
    family: Any = "gaussian"
    adforms: Dict[str, AdditionTerm] = field(default_factory=dict)
    resp: str = ""
    multivariate: bool = False

    # Predictor structure
    dpars: Dict[str, PredictorFrame] = field(default_factory=dict)
    fdpars: Dict[str, float] = field(default_factory=dict)
    nlpars: Dict[str, PredictorFrame] = field(default_factory=dict)
    group_effects: List[GroupEffectTerm] = field(default_factory=list)
    me_terms: List[MeasurementErrorTerm] = field(default_factory=list)

    # Data-derived metadata; derived from the data when missing
    resp_levels: Optional[List[Any]] = None
    cats: Optional[List[str]] = None
    thres: Optional["ThresholdTable"] = None
    bhaz: Optional["BaselineHazardSpec"] = None
    bhaz_basis: Optional["BaselineHazardBasis"] = None

    def __post_init__(self):
        self.family = as_family(self.family)
        if isinstance(self.response, str):
            columns = parse_response_expression(self.response)
            if columns is not None:
                self.response = columns
        if not self.resp:
            self.resp = make_resp_name(self.response)
        if not self.dpars:
            self.dpars = {"mu": PredictorFrame(dpar="mu")}
        for name, pframe in self.dpars.items():
            if not pframe.dpar:
                pframe.dpar = name
        for name, pframe in self.nlpars.items():
            if not pframe.nlpar:
                pframe.nlpar = name
        if "cat" in self.adforms and "thres" not in self.adforms:
            legacy = self.adforms["cat"]
            self.adforms["thres"] = AdditionTerm("thres", dict(legacy.args), dict(legacy.flags))

    @classmethod
    def from_formula(
        cls,
        formula: str,
        family: Union[str, FamilyInfo, Family, MixtureFamily] = "gaussian",
        **kwargs
    ) -> "ResponseFrame":
        """Create a frame from the left-hand side of a formula string."""
        response, adforms = parse_addition_terms(formula)
        return cls(response=response, family=family, adforms=adforms, **kwargs)

    @property
    def prefix(self) -> str:
        """Disambiguation prefix; only set for responses of multivariate models."""
        return combine_prefix(self.resp if self.multivariate else "")

    @property
    def suffix(self) -> str:
        return usc(self.prefix)

    @property
    def info(self) -> FamilyInfo:
        return self.family.info

    def has_ad(self, role: str) -> bool:
        return role in self.adforms

    def ad(self, role: str) -> Optional[AdditionTerm]:
        return self.adforms.get(role)

    def predictor_prefix(self, dpar: str = "", nlpar: str = "") -> str:
        return combine_prefix(self.resp if self.multivariate else "", dpar, nlpar)

    @property
    def has_thres_groups(self) -> bool:
        term = self.adforms.get("thres")
        return term is not None and term.has_arg("gr")

    @property
    def has_interval_cens(self) -> bool:
        term = self.adforms.get("cens")
        return term is not None and term.has_arg("y2")


@dataclass
class MultivariateFrame:
    """Modeling context of several response variables."""

    terms: List[ResponseFrame]
    rescor: bool = False

    def __post_init__(self):
        if len(self.terms) < 2:
            raise ModelSpecificationError(
                issue="Multivariate models require at least two responses.",
                suggestions=["Use a ResponseFrame for univariate models"],
            )
        names = [term.resp for term in self.terms]
        if len(set(names)) != len(names):
            raise ModelSpecificationError(
                issue=f"Response names must be unique, got {names}.",
                suggestions=["Pass 'resp' to disambiguate responses"],
            )
        for term in self.terms:
            term.multivariate = True

    @property
    def responses(self) -> List[str]:
        return [term.resp for term in self.terms]


AnyFrame = Union[ResponseFrame, MultivariateFrame]


def make_resp_name(response: Union[str, List[str]]) -> str:
    """Derive a valid variable name from a response expression."""
    text = "".join(response) if isinstance(response, list) else response
    return "".join(ch for ch in text if ch.isalnum())
