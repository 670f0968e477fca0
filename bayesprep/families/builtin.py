"""Built-in response families."""

import numpy as np

from .base import FamilyInfo, register_family

INF = np.inf

_UNBOUNDED = dict(ybounds=(-INF, INF), closed=(False, False))
_POSITIVE = dict(ybounds=(0.0, INF), closed=(False, False))
_NON_NEGATIVE = dict(ybounds=(0.0, INF), closed=(True, False))
_COUNT = dict(ybounds=(0.0, INF), closed=(True, False), integer=True)
_ORDINAL = dict(ordinal=True, integer=True, allow_factors=True)

BUILTIN_FAMILIES = [
    # Continuous on the real line
    FamilyInfo("gaussian", **_UNBOUNDED),
    FamilyInfo("student", **_UNBOUNDED),
    FamilyInfo("skew_normal", **_UNBOUNDED),
    FamilyInfo("asym_laplace", **_UNBOUNDED),
    FamilyInfo("exgaussian", **_UNBOUNDED),
    FamilyInfo("gen_extreme_value", **_UNBOUNDED),
    # Strictly positive
    FamilyInfo("lognormal", **_POSITIVE),
    FamilyInfo("shifted_lognormal", **_POSITIVE),
    FamilyInfo("gamma", **_POSITIVE),
    FamilyInfo("weibull", **_POSITIVE),
    FamilyInfo("exponential", **_POSITIVE),
    FamilyInfo("frechet", **_POSITIVE),
    FamilyInfo("inverse_gaussian", **_POSITIVE),
    FamilyInfo("wiener", **_POSITIVE),
    # Non-negative with point mass at zero
    FamilyInfo("hurdle_gamma", **_NON_NEGATIVE),
    FamilyInfo("hurdle_lognormal", **_NON_NEGATIVE),
    # Unit interval
    FamilyInfo("beta", ybounds=(0.0, 1.0), closed=(False, False)),
    FamilyInfo("zero_inflated_beta", ybounds=(0.0, 1.0), closed=(True, False)),
    FamilyInfo("zero_one_inflated_beta", ybounds=(0.0, 1.0), closed=(True, True)),
    # Angles
    FamilyInfo("von_mises", ybounds=(-np.pi, np.pi), closed=(True, True)),
    # Binary and counts
    FamilyInfo("bernoulli", ybounds=(0.0, 1.0), closed=(True, True), binary=True, integer=True),
    FamilyInfo("binomial", trials=True, **_COUNT),
    FamilyInfo("beta_binomial", trials=True, **_COUNT),
    FamilyInfo("zero_inflated_binomial", trials=True, **_COUNT),
    FamilyInfo("zero_inflated_beta_binomial", trials=True, **_COUNT),
    FamilyInfo("poisson", **_COUNT),
    FamilyInfo("negbinomial", **_COUNT),
    FamilyInfo("geometric", **_COUNT),
    FamilyInfo("com_poisson", **_COUNT),
    FamilyInfo("discrete_weibull", **_COUNT),
    FamilyInfo("zero_inflated_poisson", **_COUNT),
    FamilyInfo("zero_inflated_negbinomial", **_COUNT),
    FamilyInfo("hurdle_poisson", **_COUNT),
    FamilyInfo("hurdle_negbinomial", **_COUNT),
    # Categorical and compositional
    FamilyInfo("categorical", categorical=True, integer=True, allow_factors=True),
    FamilyInfo(
        "multinomial", categorical=True, multicol=True, trials=True, **_COUNT
    ),
    FamilyInfo(
        "dirichlet", categorical=True, multicol=True, simplex=True,
        ybounds=(0.0, 1.0), closed=(False, False),
    ),
    FamilyInfo(
        "logistic_normal", categorical=True, multicol=True, simplex=True,
        ybounds=(0.0, 1.0), closed=(False, False),
    ),
    # Ordinal
    FamilyInfo("cumulative", **_ORDINAL),
    FamilyInfo("sratio", **_ORDINAL),
    FamilyInfo("cratio", **_ORDINAL),
    FamilyInfo("acat", **_ORDINAL),
    FamilyInfo("hurdle_cumulative", extra_cat=True, **_ORDINAL),
    # Survival
    FamilyInfo("cox", cox=True, **_NON_NEGATIVE),
]


def register_builtin_families() -> None:
    """Register all built-in families with the global registry."""
    for info in BUILTIN_FAMILIES:
        register_family(info, overwrite=True)
