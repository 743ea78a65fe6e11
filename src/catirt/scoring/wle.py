"""Weighted Likelihood (WLE) ability estimation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from catirt.config import EstimationType
from catirt.estimation.roots import bounded_root
from catirt.exceptions import ProbabilityDomainError
from catirt.scoring._common import newton_raphson, se_from_information
from catirt.scoring.base import Estimator

if TYPE_CHECKING:
    from catirt.prior import Prior


class WLEEstimator(Estimator):
    """Warm's Weighted Likelihood (WLE) ability estimation.

    WLE removes the first-order bias of the ML estimate by solving the
    weighted score equation

    d/dθ log L(X|θ) + J(θ) / (2 I(θ)) = 0

    where I is the test information and J = Σ_i Σ_k P_ik' P_ik'' / P_ik.
    Newton-Raphson uses the second derivative of the log-likelihood as the
    slope, with the same bounded fallback as :class:`MLEEstimator`.

    References
    ----------
    Warm, T. A. (1989). Weighted likelihood estimation of ability in item
    response theory. Psychometrika, 54(3), 427-450.
    """

    estimation_type = EstimationType.WLE

    def weighted_score(self, theta: float, prior: Prior) -> float:
        """Score function plus Warm's bias correction."""
        information = self.test_information(theta)
        if not information > 0:
            raise ProbabilityDomainError(f"Test information vanishes at theta={theta}")
        correction = self._information_derivative_term(theta) / (2.0 * information)
        return self.d1_ll(theta, False, prior) + correction

    def estimate_theta(self, prior: Prior) -> float:
        def score(theta: float) -> float:
            return self.weighted_score(theta, prior)

        def slope(theta: float) -> float:
            return self.d2_ll(theta, False, prior)

        return newton_raphson(score, slope, fallback=lambda: bounded_root(score))

    def estimate_se(self, prior: Prior) -> float:
        return se_from_information(self.fisher_test_info(prior))
