"""
bayesprep: Response data preparation for Bayesian regression models

Validates and reshapes response data of formula-specified Bayesian
multilevel models into the numeric structures required by an inference
engine, and resolves which parameter draws are stored after fitting.
"""

__version__ = "0.3.0"

# Families
from .families import (
    Family,
    FamilyInfo,
    MixtureFamily,
    mixture,
    register_family,
    get_family_info,
    list_available_families,
)

# Formula system
from .formulas import (
    AdditionTerm,
    GroupEffectTerm,
    MeasurementErrorTerm,
    MultivariateFrame,
    PredictorFrame,
    ResponseFrame,
    SmoothTerm,
    parse_addition_terms,
)

# Data preparation
from .data import (
    PreparationMode,
    ResponseDataBundle,
    ThresholdTable,
    BaselineHazardBasis,
    data_response,
    data_mixture,
    data_bhaz,
    eval_dirichlet,
    extract_bhaz,
    extract_cat_names,
    extract_nthres,
    extract_thres_names,
    get_response_values,
    prepare_response_data,
)

# Parameter exclusion
from .params import SavePolicy, save_pars, validate_save_pars, exclude_pars

# Configuration
from .config.settings import BayesPrepConfig, get_default_config

# Import key exception classes
from .core.exceptions import (
    BayesPrepError,
    ModelSpecificationError,
    MissingAdditionTermError,
    MalformedAdditionTermError,
    ResponseDataError,
    ResponseRangeError,
    SavePolicyError,
)

__all__ = [
    # Version info
    "__version__",

    # Families
    "Family",
    "FamilyInfo",
    "MixtureFamily",
    "mixture",
    "register_family",
    "get_family_info",
    "list_available_families",

    # Formula system
    "AdditionTerm",
    "GroupEffectTerm",
    "MeasurementErrorTerm",
    "MultivariateFrame",
    "PredictorFrame",
    "ResponseFrame",
    "SmoothTerm",
    "parse_addition_terms",

    # Data preparation
    "PreparationMode",
    "ResponseDataBundle",
    "ThresholdTable",
    "BaselineHazardBasis",
    "data_response",
    "data_mixture",
    "data_bhaz",
    "eval_dirichlet",
    "extract_bhaz",
    "extract_cat_names",
    "extract_nthres",
    "extract_thres_names",
    "get_response_values",
    "prepare_response_data",

    # Parameter exclusion
    "SavePolicy",
    "save_pars",
    "validate_save_pars",
    "exclude_pars",

    # Configuration
    "BayesPrepConfig",

    # Exceptions
    "BayesPrepError",
    "ModelSpecificationError",
    "MissingAdditionTermError",
    "MalformedAdditionTermError",
    "ResponseDataError",
    "ResponseRangeError",
    "SavePolicyError",
]


def get_config() -> BayesPrepConfig:
    """Get the global configuration instance."""
    return get_default_config()


def configure(**kwargs) -> None:
    """Update global configuration, e.g. configure(**{'data.check_response': False})."""
    get_config().update(**kwargs)
