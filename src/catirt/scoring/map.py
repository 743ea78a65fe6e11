"""Maximum A Posteriori (MAP) ability estimation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from catirt.config import EstimationType
from catirt.estimation.roots import bounded_root
from catirt.scoring._common import newton_raphson
from catirt.scoring.base import BayesianEstimator

if TYPE_CHECKING:
    from catirt.prior import Prior


class MAPEstimator(BayesianEstimator):
    """Maximum A Posteriori (MAP) ability estimation.

    MAP estimation finds the mode of the posterior distribution:

    θ_MAP = argmax L(X|θ) × π(θ)

    as the root of the derivative of the log-posterior, by Newton-Raphson
    with the bounded fallback. Only the normal prior is supported; any other
    prior raises :class:`PreconditionError`.

    Standard errors are the posterior standard deviation around the mode.
    """

    estimation_type = EstimationType.MAP

    def estimate_theta(self, prior: Prior) -> float:
        def score(theta: float) -> float:
            return self.d1_ll(theta, True, prior)

        def slope(theta: float) -> float:
            return self.d2_ll(theta, True, prior)

        return newton_raphson(score, slope, fallback=lambda: bounded_root(score))
