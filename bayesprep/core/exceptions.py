"""
Exception classes for bayesprep.

Provides rich error information with actionable suggestions and documentation links.
"""

from typing import List, Optional, Dict, Any


class BayesPrepError(Exception):
    """
    Base exception class for bayesprep with rich error information.

    Provides structured error information including suggestions for resolution
    and links to relevant documentation.
    """

    def __init__(
        self,
        message: str,
        suggestions: Optional[List[str]] = None,
        documentation_link: Optional[str] = None,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.suggestions = suggestions or []
        self.documentation_link = documentation_link
        self.error_code = error_code
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return formatted error message with suggestions."""
        message = super().__str__()

        if self.error_code:
            message = f"[{self.error_code}] {message}"

        if self.suggestions:
            message += "\n\nSuggestions:"
            for i, suggestion in enumerate(self.suggestions, 1):
                message += f"\n  {i}. {suggestion}"

        if self.documentation_link:
            message += f"\n\nDocumentation: {self.documentation_link}"

        return message


class ModelSpecificationError(BayesPrepError):
    """Exception raised for structural problems in a model specification."""

    def __init__(
        self,
        issue: Optional[str] = None,
        formula: Optional[str] = None,
        role: Optional[str] = None,
        **kwargs
    ):
        if issue:
            message = issue
        elif formula:
            message = f"Invalid formula specification: {formula}"
        else:
            message = "Model specification error"

        suggestions = kwargs.pop('suggestions', None) or [
            "Check the addition terms declared on the response",
            "Verify that all referenced columns exist in your data",
            "Review model specification documentation",
        ]

        super().__init__(
            message=message,
            suggestions=suggestions,
            documentation_link=kwargs.pop(
                'documentation_link', "https://docs.bayesprep.org/model-specification"
            ),
            error_code=kwargs.pop('error_code', "MODEL_SPEC"),
            context={"formula": formula, "role": role, **kwargs.pop('context', {})},
            **kwargs
        )


class MissingAdditionTermError(ModelSpecificationError):
    """Exception raised when a family requires an addition term that is not declared."""

    def __init__(self, role: str, family: Optional[str] = None, **kwargs):
        message = f"Specifying '{role}' is required for this model."
        if family:
            message = f"Specifying '{role}' is required for family '{family}'."
        super().__init__(
            issue=message,
            role=role,
            suggestions=[
                f"Add '{role}(...)' to the left-hand side of the formula",
                f"Example: 'y | {role}(n) ~ x'",
            ],
            error_code="MISSING_ADDITION",
            context={"family": family},
            **kwargs
        )


class MalformedAdditionTermError(ModelSpecificationError):
    """Exception raised when an addition term cannot be evaluated against the data."""

    def __init__(
        self,
        role: str,
        expression: Optional[str] = None,
        reason: Optional[str] = None,
        **kwargs
    ):
        message = f"Argument '{role}' is misspecified."
        if expression is not None:
            message = f"Argument '{role}' is misspecified: could not evaluate '{expression}'"
            if reason:
                message += f" ({reason})"
        super().__init__(
            issue=message,
            formula=expression,
            role=role,
            suggestions=[
                "Check that every variable in the expression is a column of the data",
                "Use backticks for column names that are not valid identifiers",
                "Literal values such as 10, True or 'left' are also accepted",
            ],
            error_code="MALFORMED_ADDITION",
            **kwargs
        )


class PriorSpecificationError(ModelSpecificationError):
    """Exception raised for prior expressions that cannot be evaluated."""

    def __init__(self, prior: Optional[str] = None, reason: Optional[str] = None, **kwargs):
        message = f"Invalid prior specification '{prior}'"
        if reason:
            message += f": {reason}"
        super().__init__(
            issue=message,
            suggestions=[
                "Use 'dirichlet(<value>)' with a positive scalar or vector",
                "Vectors may be written as [1, 2, 3] or c(1, 2, 3)",
                "Names are looked up in the auxiliary data",
            ],
            error_code="PRIOR_SPEC",
            context={"prior": prior},
            **kwargs
        )


class ResponseDataError(BayesPrepError):
    """Exception raised when response data does not conform to the model."""

    default_suggestions = [
        "Check the response variable and its addition terms",
        "Verify that the family matches the type of the response",
        "Check for missing or corrupted data",
    ]
    default_code = "RESPONSE_DATA"

    def __init__(
        self,
        issue: str,
        family: Optional[str] = None,
        response: Optional[str] = None,
        **kwargs
    ):
        suggestions = kwargs.pop('suggestions', None) or list(self.default_suggestions)
        context = kwargs.pop('context', {})
        super().__init__(
            message=issue,
            suggestions=suggestions,
            documentation_link=kwargs.pop(
                'documentation_link', "https://docs.bayesprep.org/response-data"
            ),
            error_code=kwargs.pop('error_code', self.default_code),
            context={"family": family, "response": response, **context},
            **kwargs
        )


class NonNumericResponseError(ResponseDataError):
    """Exception raised when a family requires numeric responses."""

    default_code = "NON_NUMERIC"

    def __init__(self, family: str, **kwargs):
        super().__init__(
            issue=f"Family '{family}' requires numeric responses.",
            family=family,
            suggestions=[
                "Convert the response column to a numeric type",
                "Use a categorical or ordinal family for factor responses",
            ],
            **kwargs
        )


class ResponseRangeError(ResponseDataError):
    """Exception raised when responses fall outside the support of a family."""

    default_code = "RESPONSE_RANGE"

    def __init__(
        self,
        issue: str,
        family: Optional[str] = None,
        bound: Optional[float] = None,
        closed: Optional[bool] = None,
        **kwargs
    ):
        self.bound = bound
        self.closed = closed
        context = kwargs.pop('context', {})
        context.update({"bound": bound, "closed": closed})
        super().__init__(issue=issue, family=family, context=context, **kwargs)


class LengthMismatchError(ResponseDataError):
    """Exception raised for addition term vectors of the wrong length."""

    default_code = "LENGTH_MISMATCH"

    def __init__(self, name: str, length: int, expected: int, **kwargs):
        self.length = length
        self.expected = expected
        super().__init__(
            issue=(
                f"'{name}' needs to have length 1 or length equal to the number "
                f"of data rows ({expected}), got {length}."
            ),
            suggestions=[
                "Check that the addition term refers to a column of the data",
                "Scalars are broadcast, other lengths are not",
            ],
            context={"name": name, "length": length, "expected": expected},
            **kwargs
        )


class TrialsError(ResponseDataError):
    """Exception raised for invalid numbers of trials."""

    default_code = "TRIALS"
    default_suggestions = [
        "Number of trials must be non-negative integers",
        "Check that trials are at least as large as the number of events",
    ]


class InsufficientCategoriesError(ResponseDataError):
    """Exception raised when fewer response categories are present than required."""

    default_code = "CATEGORIES"
    default_suggestions = [
        "Ensure more than one response category is present",
        "Use ordered factors or positive integers as ordinal responses",
    ]


class InsufficientThresholdsError(ResponseDataError):
    """Exception raised when the response exceeds the declared thresholds."""

    default_code = "THRESHOLDS"
    default_suggestions = [
        "Increase the number of thresholds declared via 'thres'",
        "Check the coding of the ordinal response",
    ]


class InconsistentGroupThresholdError(ResponseDataError):
    """Exception raised when threshold counts vary within a threshold group."""

    default_code = "GROUP_THRESHOLDS"
    default_suggestions = [
        "Number of thresholds should be unique for each group",
        "Pass a single number of thresholds to share it across groups",
    ]


class CensoringError(ResponseDataError):
    """Exception raised for invalid censoring information."""

    default_code = "CENSORING"
    default_suggestions = [
        "Accepted values are 'left', 'none', 'right' and 'interval' or -1, 0, 1 and 2",
        "True and False refer to 'right' and 'none' respectively",
        "Interval censored rows need an upper bound 'y2' larger than the response",
    ]


class TruncationError(ResponseDataError):
    """Exception raised for invalid truncation bounds."""

    default_code = "TRUNCATION"
    default_suggestions = [
        "Lower truncation bounds must be smaller than upper bounds",
        "All responses must lie within their truncation bounds",
    ]


class AdditionTermValueError(ResponseDataError):
    """Exception raised when addition term values have the wrong type or range."""

    default_code = "ADDITION_VALUE"
    default_suggestions = [
        "Check the type and range of the addition term variable",
    ]
    term_suggestions = {
        "se": ["Standard errors must be non-negative numbers"],
        "weights": ["Weights must be non-negative numbers"],
        "dec": [
            "Use 'lower' and 'upper' for character or factor decisions",
            "Use True/False or 1/0 for logical decisions",
        ],
        "rate": ["Rate denominators must be positive numbers"],
        "vint": ["Convert the variables passed to 'vint' to whole numbers"],
        "thres": [
            "Use a positive whole number of thresholds",
            "Pass a factor-like grouping variable as 'gr'",
        ],
    }

    def __init__(self, issue: str, term: Optional[str] = None, **kwargs):
        if 'suggestions' not in kwargs:
            kwargs['suggestions'] = (
                list(self.default_suggestions) + self.term_suggestions.get(term, [])
            )
        kwargs['context'] = {"term": term, **kwargs.get('context', {})}
        super().__init__(issue, **kwargs)


class SavePolicyError(BayesPrepError):
    """Exception raised for invalid save policies."""

    def __init__(self, issue: Optional[str] = None, **kwargs):
        kwargs.pop('suggestions', None)
        super().__init__(
            message=issue or "Invalid save policy",
            suggestions=[
                "Create the policy via bayesprep.save_pars()",
                "'group' and 'latent' accept a flag or a list of names",
            ],
            documentation_link="https://docs.bayesprep.org/save-pars",
            error_code="SAVE_PARS",
            **kwargs
        )


class ConfigurationError(BayesPrepError):
    """Exception raised for configuration issues."""

    def __init__(self, config_key: Optional[str] = None, **kwargs):
        if config_key:
            message = f"Invalid configuration for '{config_key}'"
            suggestions = [
                f"Check the value for configuration key '{config_key}'",
                "Review configuration file syntax",
                "Check environment variable formatting",
                "Use bayesprep.get_config() to inspect current settings",
            ]
        else:
            message = "Configuration error"
            suggestions = [
                "Check configuration file syntax",
                "Verify all required settings are provided",
                "Review configuration documentation",
            ]

        kwargs.pop('suggestions', None)

        super().__init__(
            message=message,
            suggestions=suggestions,
            documentation_link="https://docs.bayesprep.org/configuration",
            error_code="CONFIG",
            context={"config_key": config_key},
            **kwargs
        )
