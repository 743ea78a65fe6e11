"""Shared helper utilities for estimator implementations."""

from __future__ import annotations

import logging
from collections.abc import Callable

import numpy as np

from catirt.constants import NEWTON_MAX_ITER, NEWTON_START, NEWTON_TOL
from catirt.exceptions import ProbabilityDomainError
from catirt.typing import ThetaFunction

logger = logging.getLogger(__name__)


def newton_raphson(
    score: ThetaFunction,
    slope: ThetaFunction,
    fallback: Callable[[], float],
    *,
    start: float = NEWTON_START,
    tol: float = NEWTON_TOL,
    max_iter: int = NEWTON_MAX_ITER,
) -> float:
    """Find a root of ``score`` by Newton-Raphson with a recovery path.

    The score is evaluated at every new iterate before it is accepted. If
    that evaluation raises :class:`ProbabilityDomainError`, or the slope is
    zero, or an iterate is not finite, the iteration is abandoned and
    ``fallback()`` (a bounded root search) provides the result.

    Parameters
    ----------
    score : callable
        Function whose root is sought.
    slope : callable
        Derivative of ``score`` (or an approximation of it).
    fallback : callable
        Zero-argument function returning the root when Newton-Raphson fails.
    start : float, optional
        Starting value.
    tol : float, optional
        Stop once successive iterates differ by at most ``tol``.
    max_iter : int, optional
        Maximum number of iterations.

    Returns
    -------
    float
        The last iterate, or the fallback result.
    """
    theta = start
    try:
        value = score(theta)
    except ProbabilityDomainError:
        logger.debug("Score undefined at the starting value; using bounded root search")
        return fallback()

    for iteration in range(1, max_iter + 1):
        try:
            d = slope(theta)
            theta_new = theta - value / d if d != 0.0 else np.nan
            if not np.isfinite(theta_new):
                logger.debug(
                    "Newton-Raphson diverged at iteration %d; using bounded root search",
                    iteration,
                )
                return fallback()
            value = score(theta_new)
        except ProbabilityDomainError:
            logger.debug(
                "Score undefined at iteration %d; using bounded root search", iteration
            )
            return fallback()

        converged = abs(theta_new - theta) <= tol
        theta = float(theta_new)
        if converged:
            logger.debug("Newton-Raphson converged after %d iterations", iteration)
            return theta

    logger.debug("Newton-Raphson stopped at the iteration cap (%d)", max_iter)
    return theta


def se_from_information(information: float) -> float:
    """Standard error implied by test information; infinite without information."""
    if information > 0:
        return float(1.0 / np.sqrt(information))
    return float("inf")
