"""
Response families for bayesprep.

Provides the family capability table consulted by the response data pipeline.
"""

from .base import (
    FamilyInfo,
    FamilyRegistry,
    combine_family_info,
    register_family,
    get_family_info,
    list_available_families,
)
from .builtin import BUILTIN_FAMILIES, register_builtin_families
from .family import Family, MixtureFamily, as_family, mixture

register_builtin_families()

__all__ = [
    "FamilyInfo",
    "FamilyRegistry",
    "combine_family_info",
    "register_family",
    "get_family_info",
    "list_available_families",
    "BUILTIN_FAMILIES",
    "Family",
    "MixtureFamily",
    "as_family",
    "mixture",
]
