"""Expected A Posteriori (EAP) ability estimation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from catirt.config import EstimationType
from catirt.scoring.base import BayesianEstimator

if TYPE_CHECKING:
    from catirt.prior import Prior


class EAPEstimator(BayesianEstimator):
    """Expected A Posteriori (EAP) ability estimation.

    EAP estimation computes the posterior mean of theta given the answers:

    θ_EAP = ∫ θ × L(X|θ) × π(θ) dθ / ∫ L(X|θ) × π(θ) dθ

    where L is the likelihood and π is the prior, by adaptive quadrature
    over the prior's support within the integration bounds. Works with
    every prior; with no answers it returns the prior mean.

    The posterior standard deviation is returned as the standard error:

    PSD = sqrt(E[(θ - θ_EAP)²|X])
    """

    estimation_type = EstimationType.EAP

    def estimate_theta(self, prior: Prior) -> float:
        return self.posterior_mean(prior)

    def estimate_se(self, prior: Prior) -> float:
        return self.posterior_variance(prior) ** 0.5
