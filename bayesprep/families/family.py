"""
Family value objects used by response frames.

A Family is a tag into the capability table; a MixtureFamily combines the
entries of its components.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from .base import FamilyInfo, combine_family_info, get_family_info


@dataclass(frozen=True)
class Family:
    """
    A response family.

    Examples:
        Family("gaussian")
        Family("cumulative")
        Family("my_family", custom_info=FamilyInfo("my_family", ybounds=(0, 10)))
    """

    name: str
    custom_info: Optional[FamilyInfo] = None

    @property
    def info(self) -> FamilyInfo:
        if self.custom_info is not None:
            return self.custom_info
        return get_family_info(self.name)

    @property
    def names(self) -> List[str]:
        return [self.info.name]

    @property
    def is_mixture(self) -> bool:
        return False

    @property
    def label(self) -> str:
        """Name used in error messages."""
        return self.info.name

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class MixtureFamily:
    """A finite mixture of response families."""

    components: tuple = field(default_factory=tuple)

    def __post_init__(self):
        components = tuple(as_family(c) for c in self.components)
        if len(components) < 2:
            raise ValueError("Mixture models require at least two families")
        object.__setattr__(self, "components", components)

    @property
    def info(self) -> FamilyInfo:
        return combine_family_info(
            self.label, [component.info for component in self.components]
        )

    @property
    def names(self) -> List[str]:
        return [component.info.name for component in self.components]

    @property
    def is_mixture(self) -> bool:
        return True

    @property
    def label(self) -> str:
        return f"mixture({', '.join(self.names)})"

    def __str__(self) -> str:
        return self.label


AnyFamily = Union[Family, MixtureFamily]


def as_family(family: Union[str, FamilyInfo, AnyFamily]) -> AnyFamily:
    """Coerce a family name, entry or object to a family object."""
    if isinstance(family, (Family, MixtureFamily)):
        return family
    if isinstance(family, FamilyInfo):
        return Family(family.name, custom_info=family)
    if isinstance(family, str):
        return Family(get_family_info(family).name)
    raise TypeError(f"Cannot interpret {family!r} as a family")


def mixture(*families: Union[str, FamilyInfo, AnyFamily]) -> MixtureFamily:
    """Create a mixture family, e.g. mixture('gaussian', 'gaussian')."""
    return MixtureFamily(tuple(families))
