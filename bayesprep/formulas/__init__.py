"""
Formula system for bayesprep.

Provides addition term parsing and the frame objects describing responses.
"""

from .terms import (
    ADDITION_ARGUMENTS,
    AdditionTerm,
    parse_addition_term,
    parse_addition_terms,
)
from .frame import (
    AnyFrame,
    GroupEffectTerm,
    MeasurementErrorTerm,
    MultivariateFrame,
    PredictorFrame,
    ResponseFrame,
    SmoothTerm,
    combine_prefix,
    usc,
)

__all__ = [
    "ADDITION_ARGUMENTS",
    "AdditionTerm",
    "parse_addition_term",
    "parse_addition_terms",
    "AnyFrame",
    "GroupEffectTerm",
    "MeasurementErrorTerm",
    "MultivariateFrame",
    "PredictorFrame",
    "ResponseFrame",
    "SmoothTerm",
    "combine_prefix",
    "usc",
]
