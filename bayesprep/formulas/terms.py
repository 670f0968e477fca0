"""
Addition term representations for bayesprep.

Addition terms annotate the response of a formula with side information,
e.g. ``y | trials(n) + cens(censored, y2 = upper) ~ x``.
"""

import ast
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..core.exceptions import ModelSpecificationError
from ..utils.logging import get_logger


logger = get_logger(__name__)


# Argument names of each addition term in positional order
ADDITION_ARGUMENTS: Dict[str, Tuple[str, ...]] = {
    "se": ("se",),
    "weights": ("weights",),
    "trials": ("trials",),
    "thres": ("thres", "gr"),
    "cat": ("thres", "gr"),
    "dec": ("dec",),
    "cens": ("cens", "y2"),
    "trunc": ("lb", "ub"),
    "mi": ("sdy",),
    "rate": ("denom",),
    "subset": ("subset",),
    "index": ("index",),
    "bhaz": ("gr",),
    "vreal": (),
    "vint": (),
}

# Addition terms taking an arbitrary number of unnamed expressions
VARIADIC_TERMS = ("vreal", "vint")

_CALL_RE = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_.]*)\s*\((.*)\)\s*$", re.DOTALL)
_KEYWORD_RE = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_.]*)\s*=(?!=)\s*(.+)$", re.DOTALL)


@dataclass
class AdditionTerm:
    """
    A single addition term of a response.

    Attributes:
        role: Name of the term, e.g. 'trials' or 'cens'
        args: Expressions to evaluate against the data, keyed by argument name
        flags: Literal settings such as ``scale=True`` in ``weights(w, scale=True)``
        vars: Expressions of variadic terms (vreal, vint) in order
    """

    role: str
    args: Dict[str, str] = field(default_factory=dict)
    flags: Dict[str, Any] = field(default_factory=dict)
    vars: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.role not in ADDITION_ARGUMENTS:
            raise ModelSpecificationError(
                issue=f"Addition term '{self.role}' is not supported.",
                role=self.role,
                suggestions=[
                    f"Supported addition terms: {', '.join(sorted(ADDITION_ARGUMENTS))}",
                ],
            )

    def has_arg(self, name: str) -> bool:
        return name in self.args

    def flag(self, name: str, default: Any = None) -> Any:
        return self.flags.get(name, default)

    def to_string(self) -> str:
        parts = list(self.vars)
        parts += [f"{k} = {v}" for k, v in self.args.items()]
        parts += [f"{k} = {v!r}" for k, v in self.flags.items()]
        return f"{self.role}({', '.join(parts)})"


def split_top_level(text: str, separator: str) -> List[str]:
    """Split text on a separator character outside of brackets and quotes."""
    parts = []
    depth = 0
    quote = None
    current = []
    for char in text:
        if quote:
            current.append(char)
            if char == quote:
                quote = None
            continue
        if char in ("'", '"'):
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        elif char == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    parts.append("".join(current).strip())
    return parts


def parse_literal(text: str) -> Any:
    """Parse a literal flag value, accepting R-style TRUE/FALSE and c(...)."""
    stripped = text.strip()
    if stripped in ("TRUE", "T"):
        return True
    if stripped in ("FALSE", "F"):
        return False
    if stripped in ("NULL", "None"):
        return None
    if stripped.startswith("c(") and stripped.endswith(")"):
        stripped = "[" + stripped[2:-1] + "]"
    return ast.literal_eval(stripped)


def parse_addition_term(text: str) -> AdditionTerm:
    """
    Parse a single addition term such as ``cens(censored, y2 = upper)``.

    Positional arguments are matched to the term's argument order. Keyword
    arguments naming a declared argument are kept as expressions, all other
    keyword arguments are parsed as literal flags.
    """
    match = _CALL_RE.match(text)
    if not match:
        raise ModelSpecificationError(
            issue=f"Could not parse addition term '{text}'.",
            formula=text,
            suggestions=[
                "Addition terms have the form 'name(arguments)'",
                "Examples: 'trials(n)', 'cens(censored, y2 = upper)'",
            ],
        )

    role, inner = match.group(1), match.group(2)
    if role not in ADDITION_ARGUMENTS:
        raise ModelSpecificationError(
            issue=f"Addition term '{role}' is not supported.",
            formula=text,
            role=role,
        )

    arg_names = ADDITION_ARGUMENTS[role]
    args: Dict[str, str] = {}
    flags: Dict[str, Any] = {}
    variables: List[str] = []
    position = 0

    pieces = [p for p in split_top_level(inner, ",") if p]
    for piece in pieces:
        keyword = _KEYWORD_RE.match(piece)
        if keyword:
            key, value = keyword.group(1), keyword.group(2).strip()
            if key in arg_names:
                args[key] = value
            else:
                try:
                    flags[key] = parse_literal(value)
                except (ValueError, SyntaxError):
                    raise ModelSpecificationError(
                        issue=f"Flag '{key}' of addition term '{role}' must be a literal, got '{value}'.",
                        formula=text,
                        role=role,
                    )
            continue

        if role in VARIADIC_TERMS:
            variables.append(piece)
            continue

        while position < len(arg_names) and arg_names[position] in args:
            position += 1
        if position >= len(arg_names):
            raise ModelSpecificationError(
                issue=f"Too many arguments for addition term '{role}'.",
                formula=text,
                role=role,
                suggestions=[f"'{role}' accepts: {', '.join(arg_names)}"],
            )
        args[arg_names[position]] = piece
        position += 1

    return AdditionTerm(role=role, args=args, flags=flags, vars=variables)


def parse_addition_terms(lhs: str) -> Tuple[str, Dict[str, AdditionTerm]]:
    """
    Parse the left-hand side of a formula into response and addition terms.

    Args:
        lhs: e.g. ``"y | trials(n) + weights(w)"``; anything after ``~`` is ignored

    Returns:
        Tuple of the response expression and addition terms keyed by role
    """
    text = lhs.split("~", 1)[0].strip()
    if not text:
        raise ModelSpecificationError(
            issue="A response variable is required.",
            formula=lhs,
            suggestions=["Example: 'y | se(sey) ~ x'"],
        )

    parts = split_top_level(text, "|")
    if len(parts) > 2:
        raise ModelSpecificationError(
            issue=f"More than one '|' found in the response part of '{lhs}'.",
            formula=lhs,
        )

    response = parts[0]
    adforms: Dict[str, AdditionTerm] = {}
    if len(parts) == 2 and parts[1]:
        for piece in split_top_level(parts[1], "+"):
            term = parse_addition_term(piece)
            if term.role in adforms:
                raise ModelSpecificationError(
                    issue=f"Addition term '{term.role}' was specified more than once.",
                    formula=lhs,
                    role=term.role,
                )
            adforms[term.role] = term

    logger.debug(
        f"Parsed response '{response}'",
        addition_terms=",".join(adforms) or "none",
    )
    return response, adforms


def parse_response_expression(response: str) -> Optional[List[str]]:
    """Return the columns of a ``cbind(a, b, c)`` response, or None."""
    match = _CALL_RE.match(response)
    if match and match.group(1) == "cbind":
        return [p for p in split_top_level(match.group(2), ",") if p]
    return None
