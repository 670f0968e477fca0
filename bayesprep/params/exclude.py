"""
Parameter exclusion for bayesprep.

Computes the names of parameters that are not stored after fitting, given a
save policy and the structure of a model.
"""

from typing import Iterable, List, Optional

from .save_pars import SavePolicy, validate_save_pars
from ..formulas.frame import (
    AnyFrame,
    GroupEffectTerm,
    MeasurementErrorTerm,
    MultivariateFrame,
    PredictorFrame,
    ResponseFrame,
    combine_prefix,
    usc,
)
from ..utils.logging import get_logger


logger = get_logger(__name__)

# Internal parameters of each predictor dropped unless all parameters are saved
PREDICTOR_INTERNAL_CLASSES = (
    "bQ", "zb", "zbsp", "zbs", "zar", "zma", "hs_local", "R2D2_phi",
    "scales", "merged_Intercept", "zcar", "nszcar", "zerr",
)

RESPONSE_CLASSES = ("Lncor", "Cortime")
RESPONSE_INTERNAL_CLASSES = (
    "ordered_Intercept", "fixed_Intercept", "theta", "Llncor", "Lcortime",
)


def _unique(names: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(names))


def _terms(frame: AnyFrame) -> List[ResponseFrame]:
    if isinstance(frame, MultivariateFrame):
        return list(frame.terms)
    return [frame]


def exclude_pars(frame: AnyFrame, save_pars: Optional[SavePolicy] = None) -> List[str]:
    """
    Names of parameters to exclude from storage.

    Combines the parameters of the model structure, of group-level effects
    and of noise-free variables. Names listed in the policy's 'manual' field
    are never excluded.

    Args:
        frame: ResponseFrame or MultivariateFrame
        save_pars: Save policy; defaults to save_pars()

    Returns:
        De-duplicated parameter names in order of first appearance
    """
    policy = validate_save_pars(save_pars)
    out: List[str] = []
    out += exclude_pars_structure(frame, policy)
    out += exclude_pars_re(frame, policy)
    out += exclude_pars_me(frame, policy)
    manual = set(policy.manual)
    out = [name for name in _unique(out) if name not in manual]
    logger.debug("Resolved excluded parameters", n=len(out))
    return out


def exclude_pars_structure(frame: AnyFrame, policy: SavePolicy) -> List[str]:
    """Excluded parameters of the response and predictor structure."""
    if isinstance(frame, MultivariateFrame):
        out = ["Rescor", "Sigma"]
        if not policy.all:
            out += ["Lrescor", "LSigma"]
        for term in frame.terms:
            out += exclude_pars_structure(term, policy)
        return out

    resp = frame.suffix
    out = [f"{cls}{resp}" for cls in RESPONSE_CLASSES]
    if not policy.all:
        out += [f"{cls}{resp}" for cls in RESPONSE_INTERNAL_CLASSES]
    for pframe in frame.dpars.values():
        out += exclude_pars_predictor(frame, pframe, policy)
    for pframe in frame.nlpars.values():
        out += exclude_pars_predictor(frame, pframe, policy)
    if frame.has_ad("mi") and not policy.saves_latent(frame.resp):
        out.append(f"Yl{resp}")
    if not policy.saves_group(".err"):
        # latent residuals are treated like group-level coefficients
        out.append(f"err{resp}")
    return out


def exclude_pars_predictor(frame: ResponseFrame, pframe: PredictorFrame, policy: SavePolicy) -> List[str]:
    """Excluded parameters of a single predictor term."""
    p = usc(frame.predictor_prefix(pframe.dpar, pframe.nlpar))
    out = [f"chol_cor{p}"]
    if not policy.all:
        out += [f"{cls}{p}" for cls in PREDICTOR_INTERNAL_CLASSES]
        for i, smooth in enumerate(pframe.smooths, start=1):
            out += [f"zs{p}_{i}_{k}" for k in range(1, smooth.nbases + 1)]
    return out


def _group_effects(frame: AnyFrame):
    for term in _terms(frame):
        resp = term.resp if term.multivariate else ""
        for ge in term.group_effects:
            yield resp, ge


def exclude_pars_re(frame: AnyFrame, policy: SavePolicy) -> List[str]:
    """
    Excluded parameters of group-level effects.

    Per id, correlation matrices and the stacked coefficients are always
    excluded. Coefficients per level are excluded unless saved for their
    grouping factor.
    """
    rows = list(_group_effects(frame))
    if not rows:
        return []

    classes = (["z", "L"] if not policy.all else []) + ["Cor", "r"]
    out: List[str] = []
    for id_ in _unique(str(ge.id) for _, ge in rows):
        out += [f"{cls}_{id_}" for cls in classes]

    for resp, ge in rows:
        if not policy.saves_group(ge.group):
            p = usc(combine_prefix(resp, ge.dpar, ge.nlpar))
            out.append(f"r_{ge.id}{p}_{ge.cn}")

    if not policy.all:
        for _, ge in rows:
            if ge.dist == "student":
                out += [f"udf_{ge.ggn}", f"dfm_{ge.ggn}"]
    return out


def _me_terms(frame: AnyFrame) -> List[MeasurementErrorTerm]:
    terms = {}
    for term in _terms(frame):
        for me in term.me_terms:
            terms.setdefault((me.xname, me.grname), me)
    return list(terms.values())


def exclude_pars_me(frame: AnyFrame, policy: SavePolicy) -> List[str]:
    """Excluded parameters of noise-free variables."""
    meframe = _me_terms(frame)
    if not meframe:
        return []

    ngroups = len(_unique(me.grname for me in meframe))
    I = range(1, ngroups + 1)
    K = range(1, len(meframe) + 1)
    out = [f"Corme_{i}" for i in I]
    if not policy.all:
        out += [f"zme_{k}" for k in K] + [f"Lme_{i}" for i in I]
    out += [f"Xme_{k}" for k, me in zip(K, meframe) if not policy.saves_latent(me.xname)]
    return out
