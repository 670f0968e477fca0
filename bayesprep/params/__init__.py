"""Save policies and parameter exclusion for bayesprep."""

from .save_pars import SavePolicy, save_pars, validate_save_pars
from .exclude import (
    exclude_pars,
    exclude_pars_me,
    exclude_pars_predictor,
    exclude_pars_re,
    exclude_pars_structure,
)

__all__ = [
    "SavePolicy",
    "save_pars",
    "validate_save_pars",
    "exclude_pars",
    "exclude_pars_me",
    "exclude_pars_predictor",
    "exclude_pars_re",
    "exclude_pars_structure",
]
