"""
Family capability table for bayesprep.

Every response family is described by a FamilyInfo entry listing its support
and the properties the response data pipeline switches on. Entries live in a
registry so custom families can be added without touching the pipeline.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Tuple, Union
import numpy as np

from ..utils.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class FamilyInfo:
    """Capabilities of a response family."""

    name: str
    ybounds: Tuple[float, float] = (-np.inf, np.inf)
    closed: Tuple[bool, bool] = (False, False)

    # Response coding
    binary: bool = False
    categorical: bool = False
    ordinal: bool = False
    multicol: bool = False
    simplex: bool = False
    integer: bool = False
    allow_factors: bool = False

    # Required side information
    trials: bool = False
    extra_cat: bool = False
    cox: bool = False

    def __post_init__(self):
        lower, upper = self.ybounds
        if lower >= upper:
            raise ValueError(
                f"Invalid bounds for family '{self.name}': {lower} >= {upper}"
            )

    def with_name(self, name: str) -> "FamilyInfo":
        """Copy of this entry under a different name."""
        return replace(self, name=name)


def combine_family_info(name: str, infos: List[FamilyInfo]) -> FamilyInfo:
    """
    Combine the entries of mixture components.

    The support is the intersection of the component supports and a bound is
    closed only if every component attaining it is closed there. Flags are
    shared when any component carries them.
    """
    if not infos:
        raise ValueError("At least one family is required")

    lower = max(info.ybounds[0] for info in infos)
    upper = min(info.ybounds[1] for info in infos)
    closed_lower = all(info.closed[0] for info in infos if info.ybounds[0] == lower)
    closed_upper = all(info.closed[1] for info in infos if info.ybounds[1] == upper)

    flags = {}
    for flag in (
        "binary", "categorical", "ordinal", "multicol", "simplex",
        "trials", "extra_cat", "cox",
    ):
        flags[flag] = any(getattr(info, flag) for info in infos)
    flags["integer"] = all(info.integer for info in infos)
    flags["allow_factors"] = all(info.allow_factors for info in infos)

    return FamilyInfo(
        name=name,
        ybounds=(lower, upper),
        closed=(closed_lower, closed_upper),
        **flags,
    )


class FamilyRegistry:
    """
    Registry for managing available response families.

    Provides a plugin-style system for registering and looking up families.
    """

    def __init__(self):
        self._families: Dict[str, FamilyInfo] = {}

    def register(self, info: FamilyInfo, overwrite: bool = False) -> None:
        """
        Register a family.

        Args:
            info: Capability entry of the family
            overwrite: Replace an existing entry of the same name
        """
        if not isinstance(info, FamilyInfo):
            raise TypeError("Family entries must be FamilyInfo instances")
        if info.name in self._families and not overwrite:
            raise ValueError(f"Family '{info.name}' is already registered")

        self._families[info.name] = info
        logger.debug(f"Registered family: {info.name}")

    def get(self, name: str) -> FamilyInfo:
        """
        Get the entry of a family by name.

        Raises:
            ValueError: If family is not registered
        """
        key = normalize_family_name(name)
        if key not in self._families:
            raise ValueError(
                f"Family '{name}' not registered. "
                f"Available: {sorted(self._families.keys())}"
            )
        return self._families[key]

    def list_families(self) -> List[str]:
        """Get list of available family names."""
        return sorted(self._families.keys())

    def is_registered(self, name: str) -> bool:
        """Check if a family is registered."""
        return normalize_family_name(name) in self._families


def normalize_family_name(name: str) -> str:
    """Normalize spelling variants such as 'inverse.gaussian' or 'Gamma'."""
    return name.strip().lower().replace(".", "_")


# Global family registry instance
_registry = FamilyRegistry()


def register_family(info: FamilyInfo, overwrite: bool = False) -> None:
    """Register a family with the global registry."""
    _registry.register(info, overwrite=overwrite)


def get_family_info(name: Union[str, FamilyInfo]) -> FamilyInfo:
    """Get a family entry from the global registry."""
    if isinstance(name, FamilyInfo):
        return name
    return _registry.get(name)


def list_available_families() -> List[str]:
    """List available families in the global registry."""
    return _registry.list_families()
