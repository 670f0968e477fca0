"""
Save policies for parameter draws.

A SavePolicy declares which classes of latent quantities are kept after
fitting. It is created once, never modified, and consumed by the parameter
exclusion resolver.
"""

import warnings
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple, Union

import numpy as np

from ..core.exceptions import SavePolicyError


Selection = Union[bool, Tuple[str, ...]]


@dataclass(frozen=True)
class SavePolicy:
    """
    Which parameter draws to save.

    Attributes:
        group: Save group-level coefficients per level; True, False, or the
            names of grouping factors whose coefficients are saved
        latent: Save latent variables of 'me' and 'mi' terms; True, False,
            or the names of the latent variables to save
        all: Save all internal parameters
        manual: Raw parameter names that are always saved
    """

    group: Selection = True
    latent: Selection = False
    all: bool = False
    manual: Tuple[str, ...] = ()

    def saves_group(self, name: str) -> bool:
        """Whether coefficients of the grouping factor 'name' are saved."""
        return self.group is True or (not isinstance(self.group, bool) and name in self.group)

    def saves_latent(self, name: str) -> bool:
        """Whether the latent variable 'name' is saved."""
        return self.latent is True or (not isinstance(self.latent, bool) and name in self.latent)


def _as_one_logical(value, name: str) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    raise SavePolicyError(f"Argument '{name}' must be a single logical value, got {value!r}.")


def _as_selection(value, name: str) -> Selection:
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable):
        items = tuple(value)
        if all(isinstance(item, str) for item in items):
            return items
    raise SavePolicyError(
        f"Argument '{name}' must be a logical value or a collection of names, got {value!r}."
    )


def save_pars(
    group: Union[bool, str, Iterable[str]] = True,
    latent: Union[bool, str, Iterable[str]] = False,
    all: bool = False,
    manual: Optional[Union[str, Iterable[str]]] = None,
) -> SavePolicy:
    """
    Control which parameter draws are saved.

    Args:
        group: Save group-level coefficients for each level of the grouping
            factors. Alternatively, the names of the grouping factors whose
            coefficients should be saved.
        latent: Save draws of latent variables of 'me' and 'mi' terms.
            Alternatively, the names of the latent variables to save.
        all: Save draws of all internal parameters.
        manual: Raw parameter names to save regardless of the other settings.

    Returns:
        SavePolicy

    Examples:
        >>> save_pars(group=False)
        >>> save_pars(group=["patient"], latent=True)
    """
    if manual is None:
        manual = ()
    elif isinstance(manual, str):
        manual = (manual,)
    else:
        manual = tuple(str(m) for m in manual)
    return SavePolicy(
        group=_as_selection(group, "group"),
        latent=_as_selection(latent, "latent"),
        all=_as_one_logical(all, "all"),
        manual=manual,
    )


def validate_save_pars(
    policy: Optional[SavePolicy] = None,
    save_ranef: Optional[bool] = None,
    save_mevars: Optional[bool] = None,
    save_all_pars: Optional[bool] = None,
) -> SavePolicy:
    """
    Validate a save policy and apply deprecated arguments.

    Args:
        policy: Policy created by save_pars(); defaults to save_pars()
        save_ranef: Deprecated; overrides 'group'
        save_mevars: Deprecated; overrides 'latent'
        save_all_pars: Deprecated; overrides 'all'

    Raises:
        SavePolicyError: If policy was not created by save_pars()
    """
    if policy is None:
        policy = save_pars()
    if not isinstance(policy, SavePolicy):
        raise SavePolicyError("Argument 'save_pars' needs to be created via 'save_pars()'.")

    if save_ranef is not None:
        warnings.warn(
            "Argument 'save_ranef' is deprecated. Please use argument 'group' in "
            "function 'save_pars()' instead.",
            DeprecationWarning,
            stacklevel=2,
        )
        policy = replace(policy, group=_as_one_logical(save_ranef, "save_ranef"))
    if save_mevars is not None:
        warnings.warn(
            "Argument 'save_mevars' is deprecated. Please use argument 'latent' in "
            "function 'save_pars()' instead.",
            DeprecationWarning,
            stacklevel=2,
        )
        policy = replace(policy, latent=_as_one_logical(save_mevars, "save_mevars"))
    if save_all_pars is not None:
        warnings.warn(
            "Argument 'save_all_pars' is deprecated. Please use argument 'all' in "
            "function 'save_pars()' instead.",
            DeprecationWarning,
            stacklevel=2,
        )
        policy = replace(policy, all=_as_one_logical(save_all_pars, "save_all_pars"))
    return policy
