"""
Threshold and category metadata for bayesprep.

Derives response category names and the threshold table of ordinal models
from the data.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from .addition import factor_levels, get_ad_values, model_response
from ..core.exceptions import (
    AdditionTermValueError,
    InconsistentGroupThresholdError,
    InsufficientCategoriesError,
)
from ..formulas.frame import ResponseFrame
from ..utils.logging import get_logger
from ..utils.validation import is_like_factor, is_wholenumber


logger = get_logger(__name__)


@dataclass
class ThresholdTable:
    """
    Ordered (threshold, group) pairs of an ordinal model.

    Within each group thresholds run contiguously from 1 to K. The group ""
    denotes a model without threshold groups.
    """

    thres: List[int] = field(default_factory=list)
    group: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.thres = [int(t) for t in self.thres]
        self.group = [str(g) for g in self.group]
        if len(self.thres) != len(self.group):
            raise ValueError("'thres' and 'group' must have the same length")
        for g in self.groups:
            run = [t for t, gg in zip(self.thres, self.group) if gg == g]
            if run != list(range(1, len(run) + 1)):
                raise ValueError(
                    f"Thresholds of group '{g}' must run contiguously from 1, got {run}"
                )

    @classmethod
    def from_counts(cls, nthres: Dict[str, int]) -> "ThresholdTable":
        """Build a table from the number of thresholds per group."""
        thres, group = [], []
        for g, k in nthres.items():
            thres.extend(range(1, int(k) + 1))
            group.extend([g] * int(k))
        return cls(thres=thres, group=group)

    @property
    def groups(self) -> List[str]:
        """Groups in order of first appearance."""
        return list(dict.fromkeys(self.group))

    @property
    def has_groups(self) -> bool:
        return any(g != "" for g in self.group)

    def nthres(self, group: Optional[str] = None) -> int:
        """Number of thresholds of a group, or the maximum over all groups."""
        if group is None:
            return max(self.thres) if self.thres else 0
        return max((t for t, g in zip(self.thres, self.group) if g == group), default=0)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"thres": self.thres, "group": self.group})

    def __len__(self) -> int:
        return len(self.thres)


def extract_cat_names(frame: ResponseFrame, data: pd.DataFrame) -> List[str]:
    """
    Names of the response categories.

    Matrix responses use their column names; other responses use the levels
    of the response values.
    """
    response = model_response(frame, data)
    if frame.info.multicol:
        if isinstance(response, pd.DataFrame):
            names = [str(c) for c in response.columns]
            if names:
                return names
            return [str(i) for i in range(1, response.shape[1] + 1)]
        return ["1"]
    if isinstance(response, pd.DataFrame):
        return [str(i) for i in range(1, response.shape[1] + 1)]
    return [_label(level) for level in factor_levels(response)]


def _label(level: Any) -> str:
    if isinstance(level, float) and level.is_integer():
        return str(int(level))
    return str(level)


def extract_nthres(response, extra_cat: bool = False) -> int:
    """
    Number of thresholds implied by ordinal response values.

    Factor-like responses have one threshold less than observed levels (two
    less with an extra category). Numeric responses have max(response) - 1
    thresholds since the extra category is coded as 0.

    Raises:
        InsufficientCategoriesError: If fewer than one threshold results
    """
    if is_like_factor(response):
        diff = 2 if extra_cat else 1
        out = len(factor_levels(response)) - diff
    else:
        values = np.asarray(response, dtype=float)
        values = values[~np.isnan(values)]
        out = int(np.max(values)) - 1 if values.size else 0
    if out < 1:
        raise InsufficientCategoriesError(
            "Could not extract the number of thresholds. Use ordered factors "
            "or positive integers as your ordinal response and ensure that "
            "more than one response category is present."
        )
    return out


def extract_thres_names(frame: ResponseFrame, data: pd.DataFrame) -> ThresholdTable:
    """
    Threshold table of an ordinal response.

    The number of thresholds is taken from the 'thres' addition term when
    given and inferred from the response otherwise. With a grouping variable
    ('thres(gr = g)') thresholds are built per group.
    """
    nthres = get_ad_values(frame, "thres", "thres", data)
    if nthres is not None:
        values = np.asarray(nthres, dtype=float)
        if not np.all(is_wholenumber(values)) or np.any(values < 1):
            raise AdditionTermValueError(
                "Number of thresholds must be a positive integer.",
                term="thres",
                family=frame.family.label,
                response=frame.resp,
            )
        nthres = values.astype(int)

    extra_cat = frame.info.extra_cat
    grthres = get_ad_values(frame, "thres", "gr", data)

    if grthres is not None:
        if not is_like_factor(grthres):
            raise AdditionTermValueError(
                "Variable 'gr' in 'thres' needs to be factor-like.",
                term="thres",
                family=frame.family.label,
                response=frame.resp,
            )
        if len(grthres) == 1:
            grthres = pd.Series(np.repeat(grthres.to_numpy(), len(data)))
        groups = factor_levels(grthres)
        labels = [str(g) for g in groups]
        counts: Dict[str, int] = {}
        if nthres is None:
            response = model_response(frame, data)
            for g, label in zip(groups, labels):
                take = (grthres == g).to_numpy()
                counts[label] = extract_nthres(response[take], extra_cat=extra_cat)
        elif len(nthres) == 1:
            counts = {label: int(nthres[0]) for label in labels}
        else:
            for g, label in zip(groups, labels):
                take = (grthres == g).to_numpy()
                unique = np.unique(nthres[take])
                if len(unique) > 1:
                    raise InconsistentGroupThresholdError(
                        f"Number of thresholds should be unique for each group; "
                        f"group '{label}' has {sorted(unique.tolist())}.",
                        family=frame.family.label,
                        response=frame.resp,
                    )
                counts[label] = int(unique[0])
        table = ThresholdTable.from_counts(counts)
    else:
        if nthres is None:
            nthres = extract_nthres(model_response(frame, data), extra_cat=extra_cat)
        else:
            unique = np.unique(nthres)
            if len(unique) > 1:
                raise AdditionTermValueError(
                    "Number of thresholds needs to be a single value.",
                    term="thres",
                    family=frame.family.label,
                    response=frame.resp,
                )
            nthres = int(unique[0])
        table = ThresholdTable.from_counts({"": int(nthres)})

    logger.debug(
        "Extracted thresholds",
        response=frame.resp,
        groups=len(table.groups),
        total=len(table),
    )
    return table
