"""Core functionality for bayesprep."""

from .exceptions import (
    BayesPrepError,
    ModelSpecificationError,
    MissingAdditionTermError,
    MalformedAdditionTermError,
    PriorSpecificationError,
    ResponseDataError,
    NonNumericResponseError,
    ResponseRangeError,
    LengthMismatchError,
    TrialsError,
    InsufficientCategoriesError,
    InsufficientThresholdsError,
    InconsistentGroupThresholdError,
    CensoringError,
    TruncationError,
    AdditionTermValueError,
    SavePolicyError,
    ConfigurationError,
)

__all__ = [
    "BayesPrepError",
    "ModelSpecificationError",
    "MissingAdditionTermError",
    "MalformedAdditionTermError",
    "PriorSpecificationError",
    "ResponseDataError",
    "NonNumericResponseError",
    "ResponseRangeError",
    "LengthMismatchError",
    "TrialsError",
    "InsufficientCategoriesError",
    "InsufficientThresholdsError",
    "InconsistentGroupThresholdError",
    "CensoringError",
    "TruncationError",
    "AdditionTermValueError",
    "SavePolicyError",
    "ConfigurationError",
]
