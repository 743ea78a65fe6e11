"""Maximum Likelihood (MLE) ability estimation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from catirt.config import EstimationType
from catirt.estimation.roots import bounded_root
from catirt.exceptions import PreconditionError
from catirt.scoring._common import newton_raphson, se_from_information
from catirt.scoring.base import Estimator

if TYPE_CHECKING:
    from catirt.prior import Prior


class MLEEstimator(Estimator):
    """Maximum Likelihood (ML) ability estimation.

    ML estimation finds the root of the score function:

    d/dθ log L(X|θ) = 0

    by Newton-Raphson from θ = 0 (tolerance 1e-7, at most 200 iterations).
    When a response probability becomes undefined along the way, or an
    iterate is not a number, the root is taken from a bounded Brent search
    instead.

    No prior is used. For profiles without answers, or with all answers at
    the same extreme, the ML estimate does not exist; the estimator factory
    substitutes MAP or EAP in those cases. An empty profile reached later,
    for instance through a batch row without responses, raises
    :class:`PreconditionError`.

    Standard errors are 1 / sqrt(I(θ̂)) with I the test information.
    """

    estimation_type = EstimationType.MLE

    def estimate_theta(self, prior: Prior) -> float:
        if not self.question_set.applicable_rows:
            raise PreconditionError(
                "ML estimate does not exist when no items have been answered"
            )

        def score(theta: float) -> float:
            return self.d1_ll(theta, False, prior)

        def slope(theta: float) -> float:
            return self.d2_ll(theta, False, prior)

        return newton_raphson(score, slope, fallback=lambda: bounded_root(score))

    def estimate_se(self, prior: Prior) -> float:
        return se_from_information(self.fisher_test_info(prior))
