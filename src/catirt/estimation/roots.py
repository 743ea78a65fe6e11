"""Bounded root search used when Newton-Raphson fails."""

import logging

import numpy as np
from scipy.optimize import brentq

from catirt.constants import ROOT_SEARCH_BOUNDS, ROOT_SEARCH_XTOL
from catirt.exceptions import PreconditionError, ProbabilityDomainError
from catirt.typing import ThetaFunction

logger = logging.getLogger(__name__)


def bounded_root(
    function: ThetaFunction,
    bounds: tuple[float, float] = ROOT_SEARCH_BOUNDS,
    xtol: float = ROOT_SEARCH_XTOL,
) -> float:
    """Find the root of a function that changes sign over ``bounds``.

    Uses Brent's method (:func:`scipy.optimize.brentq`). The caller
    guarantees a sign change over the bracket; when there is none, or the
    function cannot be evaluated at the bracket, the contract is broken and
    a :class:`PreconditionError` is raised instead of returning a value.

    Parameters
    ----------
    function : callable
        Continuous scalar function of theta.
    bounds : tuple[float, float], optional
        Search bracket. Default is ``ROOT_SEARCH_BOUNDS``.
    xtol : float, optional
        Absolute tolerance on the root.

    Returns
    -------
    float
        The root.

    Raises
    ------
    PreconditionError
        If the function does not change sign over the bracket, or vanishes
        at both of its ends.
    """
    lower, upper = bounds

    try:
        f_lower = function(lower)
        f_upper = function(upper)
    except ProbabilityDomainError as exc:
        raise PreconditionError(
            f"Root search function is undefined at the bracket [{lower}, {upper}]"
        ) from exc

    if not (np.isfinite(f_lower) and np.isfinite(f_upper)):
        raise PreconditionError(
            f"Root search function is not finite at the bracket [{lower}, {upper}]"
        )
    if f_lower == 0.0 and f_upper == 0.0:
        raise PreconditionError(
            f"Root search function vanishes at both ends of [{lower}, {upper}]"
        )
    if f_lower == 0.0:
        return float(lower)
    if f_upper == 0.0:
        return float(upper)
    if np.sign(f_lower) == np.sign(f_upper):
        raise PreconditionError(
            f"Root search function does not change sign over [{lower}, {upper}]"
        )

    try:
        root = brentq(function, lower, upper, xtol=xtol)
    except ProbabilityDomainError as exc:
        raise PreconditionError(
            f"Root search function is undefined inside [{lower}, {upper}]"
        ) from exc

    logger.debug("Bounded root search converged at %.6f", root)
    return float(root)
