"""Ability estimators for adaptive testing."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from catirt.config import EstimationType
from catirt.exceptions import ConfigurationError
from catirt.scoring.base import BayesianEstimator, Estimator
from catirt.scoring.eap import EAPEstimator
from catirt.scoring.map import MAPEstimator
from catirt.scoring.ml import MLEEstimator
from catirt.scoring.wle import WLEEstimator

if TYPE_CHECKING:
    from catirt.estimation.quadrature import Integrator
    from catirt.question_set import QuestionSet

logger = logging.getLogger(__name__)

_ESTIMATORS: dict[EstimationType, type[Estimator]] = {
    EstimationType.EAP: EAPEstimator,
    EstimationType.MAP: MAPEstimator,
    EstimationType.MLE: MLEEstimator,
    EstimationType.WLE: WLEEstimator,
}


def create_estimator(
    estimation: EstimationType | str,
    integrator: Integrator,
    question_set: QuestionSet,
    estimation_default: EstimationType | str = EstimationType.MAP,
) -> Estimator:
    """Factory function to create the estimator of a session.

    MLE and WLE are undefined when nothing has been answered or when every
    answer is at the same extreme of its scale; in that case the
    ``estimation_default`` estimator is used instead. The decision is made
    once, here, and holds for the whole session.

    Parameters
    ----------
    estimation : EstimationType | str
        Requested estimator: "EAP", "MAP", "MLE" or "WLE".
    integrator : Integrator
        Quadrature over theta.
    question_set : QuestionSet
        Item bank and answers.
    estimation_default : EstimationType | str, optional
        Substitute for MLE/WLE, "MAP" or "EAP". Default is "MAP".

    Returns
    -------
    Estimator
        The estimator.

    Raises
    ------
    ConfigurationError
        If an estimator name is not recognized, or the substitute is not
        MAP or EAP.
    """
    requested = EstimationType.parse(estimation)
    default = EstimationType.parse(estimation_default)

    if requested in (EstimationType.MLE, EstimationType.WLE) and (
        not question_set.applicable_rows or question_set.all_extreme
    ):
        if default not in (EstimationType.MAP, EstimationType.EAP):
            raise ConfigurationError(
                f"{default.value} is not a valid estimation default; use MAP or EAP"
            )
        logger.debug(
            "%s is undefined for the current answers; using %s",
            requested.value,
            default.value,
        )
        requested = default

    return _ESTIMATORS[requested](integrator, question_set)


__all__ = [
    "Estimator",
    "BayesianEstimator",
    "EAPEstimator",
    "MAPEstimator",
    "MLEEstimator",
    "WLEEstimator",
    "create_estimator",
]
