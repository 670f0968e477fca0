"""
Data preparation for bayesprep.

Provides addition term extraction, response data assembly, threshold and
category metadata, auxiliary data blocks and multivariate aggregation.
"""

from .addition import (
    evaluate_expression,
    get_ad_values,
    get_ad_vars,
    model_response,
    subset_data,
    trunc_bounds,
)
from .response import (
    PreparationMode,
    ResponseDataBundle,
    data_response,
    censoring_codes,
    encode_missing_sentinel,
)
from .thresholds import (
    ThresholdTable,
    extract_cat_names,
    extract_nthres,
    extract_thres_names,
)
from .auxiliary import (
    BaselineHazardBasis,
    BaselineHazardSpec,
    bhaz_basis_matrix,
    data_bhaz,
    data_mixture,
    eval_dirichlet,
    extract_bhaz,
)
from .multivariate import get_response_values, prepare_response_data

__all__ = [
    "evaluate_expression",
    "get_ad_values",
    "get_ad_vars",
    "model_response",
    "subset_data",
    "trunc_bounds",
    "PreparationMode",
    "ResponseDataBundle",
    "data_response",
    "censoring_codes",
    "encode_missing_sentinel",
    "ThresholdTable",
    "extract_cat_names",
    "extract_nthres",
    "extract_thres_names",
    "BaselineHazardBasis",
    "BaselineHazardSpec",
    "bhaz_basis_matrix",
    "data_bhaz",
    "data_mixture",
    "eval_dirichlet",
    "extract_bhaz",
    "get_response_values",
    "prepare_response_data",
]
