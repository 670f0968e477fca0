"""
Multivariate aggregation of response data.

Prepares the response data of every response of a model in order and merges
the results into a single bundle.
"""

import warnings
from typing import Any, Mapping, Optional, Union

import numpy as np
import pandas as pd

from .auxiliary import data_bhaz, data_mixture
from .response import PreparationMode, ResponseDataBundle, data_response
from ..config.settings import BayesPrepConfig
from ..formulas.frame import AnyFrame, MultivariateFrame, ResponseFrame
from ..utils.logging import get_logger


logger = get_logger(__name__)


def prepare_response_data(
    frame: AnyFrame,
    data: pd.DataFrame,
    check_response: Optional[bool] = None,
    mode: PreparationMode = PreparationMode.FITTING,
    data2: Optional[Mapping[str, Any]] = None,
    prior: Optional[pd.DataFrame] = None,
    config: Optional[BayesPrepConfig] = None,
) -> ResponseDataBundle:
    """
    Prepare all response related data of a model.

    Univariate frames yield the response bundle extended by mixture and
    baseline hazard data. Multivariate frames concatenate the bundles of
    their responses in order and, with residual correlations, add 'nresp'
    and 'nrescor'. The first failing response fails the whole call.

    Args:
        frame: ResponseFrame or MultivariateFrame
        data: Data table
        check_response: Validate responses against their families
        mode: Fitting or prediction of new data
        data2: Auxiliary data referenced by prior expressions
        prior: Prior table with columns 'prior', 'class', 'group' and 'resp'
        config: Configuration; defaults to the global configuration

    Returns:
        Combined ResponseDataBundle
    """
    if isinstance(frame, MultivariateFrame):
        bundle = ResponseDataBundle()
        for term in frame.terms:
            bundle = bundle.merge(
                prepare_response_data(
                    term, data, check_response=check_response, mode=mode,
                    data2=data2, prior=prior, config=config,
                )
            )
        if frame.rescor:
            nresp = len(frame.responses)
            extra = {"nresp": nresp, "nrescor": nresp * (nresp - 1) // 2}
            bundle = bundle.merge(ResponseDataBundle(extra))
        logger.debug("Prepared multivariate response data", responses=len(frame.terms))
        return bundle

    if not isinstance(frame, ResponseFrame):
        raise TypeError(f"Expected a ResponseFrame or MultivariateFrame, got {type(frame).__name__}")

    if not isinstance(data, pd.DataFrame):
        data = pd.DataFrame(data)
    bundle = data_response(frame, data, check_response=check_response, mode=mode, config=config)
    extra = {}
    extra.update(data_mixture(frame, data2=data2, prior=prior))
    extra.update(data_bhaz(frame, data, data2=data2, prior=prior))
    if extra:
        bundle = bundle.merge(ResponseDataBundle(extra))
    return bundle


def get_response_values(
    frame: AnyFrame,
    data: pd.DataFrame,
    resp: Optional[Union[str, list]] = None,
    warn: bool = False,
    config: Optional[BayesPrepConfig] = None,
) -> Union[np.ndarray, pd.DataFrame]:
    """
    Validated response values of a model.

    Args:
        frame: ResponseFrame or MultivariateFrame
        data: Data table
        resp: Responses to return in multivariate models; defaults to all
        warn: Warn when censoring information is present
        config: Configuration; defaults to the global configuration

    Returns:
        Response array for a single response, otherwise a DataFrame with
        one column per response
    """
    if isinstance(frame, MultivariateFrame):
        names = frame.responses
        if resp is not None:
            wanted = [resp] if isinstance(resp, str) else list(resp)
            unknown = [r for r in wanted if r not in names]
            if unknown:
                raise ValueError(f"Invalid response names {unknown}; valid names are {names}")
            names = wanted
        terms = [term for term in frame.terms if term.resp in names]
    else:
        terms = [frame]

    bundles = [
        data_response(term, data, check_response=True, mode=PreparationMode.PREDICTION, config=config)
        for term in terms
    ]

    if warn and any(f"cens{term.suffix}" in bundle for term, bundle in zip(terms, bundles)):
        warnings.warn("Results may not be meaningful for censored models.", UserWarning, stacklevel=2)

    if len(terms) == 1:
        return bundles[0][f"Y{terms[0].suffix}"]
    return pd.DataFrame(
        {term.resp: bundle[f"Y{term.suffix}"] for term, bundle in zip(terms, bundles)}
    )
