"""Likelihood, information and divergence shared by the ability estimators."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from catirt.config import EstimationType
from catirt.constants import PROB_EPSILON
from catirt.exceptions import PreconditionError, ProbabilityDomainError

if TYPE_CHECKING:
    from catirt.estimation.quadrature import Integrator
    from catirt.models.base import ItemResponseModel
    from catirt.prior import Prior
    from catirt.question_set import QuestionSet
    from catirt.typing import ThetaFunction


class Estimator(ABC):
    """Abstract base class for ability estimators.

    An estimator scores the answers recorded in a :class:`QuestionSet`
    against the item bank's response model. It keeps references to the
    question set and the integrator; the prior is passed to every call that
    needs it.

    Besides :meth:`estimate_theta` and :meth:`estimate_se`, which each
    estimator defines, the base class provides the quantities every item
    selection criterion is built from: the likelihood and its derivatives,
    Fisher and observed information, expected posterior variance and
    Kullback-Leibler divergences.

    Parameters
    ----------
    integrator : Integrator
        Quadrature over theta.
    question_set : QuestionSet
        Item bank and answers of the respondent.
    """

    estimation_type: EstimationType

    def __init__(self, integrator: Integrator, question_set: QuestionSet) -> None:
        self.integrator = integrator
        self.question_set = question_set

    @property
    def item_model(self) -> ItemResponseModel:
        return self.question_set.item_model

    @abstractmethod
    def estimate_theta(self, prior: Prior) -> float:
        """Estimate the respondent's ability from the recorded answers."""

    @abstractmethod
    def estimate_se(self, prior: Prior) -> float:
        """Standard error of :meth:`estimate_theta`."""

    def probability(self, theta: float, item_idx: int) -> NDArray[np.float64]:
        """Probability sequence of an item at theta (see the response model)."""
        return self.item_model.probability(theta, item_idx)

    def likelihood(self, theta: float) -> float:
        """Probability of the recorded answers at theta."""
        qs = self.question_set
        model = self.item_model
        result = 1.0
        for item_idx in qs.applicable_rows:
            probs = model.category_probabilities(theta, item_idx)
            result *= probs[model.category_index(item_idx, qs.answers[item_idx])]
        return float(result)

    def _observed_category(
        self, theta: float, item_idx: int
    ) -> tuple[float, float, float]:
        """Probability of the recorded answer to an item and its derivatives."""
        response = self.question_set.answers[item_idx]
        if response is None:
            raise PreconditionError(f"Item {item_idx} has not been answered")

        p, dp, d2p = self.item_model.category_derivatives(theta, item_idx)
        k = self.item_model.category_index(item_idx, response)
        if not (p[k] > 0.0 and np.isfinite(p[k])):
            raise ProbabilityDomainError(
                f"Probability of response {response} to item {item_idx} "
                f"is undefined at theta={theta}"
            )
        return float(p[k]), float(dp[k]), float(d2p[k])

    def d1_ll(self, theta: float, use_prior: bool, prior: Prior) -> float:
        """First derivative of the log-likelihood (or log-posterior).

        Parameters
        ----------
        theta : float
            Ability value.
        use_prior : bool
            Add the derivative of the log prior density. Only supported for
            the normal prior.
        prior : Prior
            Prior density.

        Raises
        ------
        ProbabilityDomainError
            If the probability of a recorded answer vanishes at theta.
        PreconditionError
            If ``use_prior`` is requested with a non-normal prior.
        """
        total = 0.0
        for item_idx in self.question_set.applicable_rows:
            p, dp, _ = self._observed_category(theta, item_idx)
            total += dp / p
        if use_prior:
            total += prior.log_density_d1(theta)
        return total

    def d2_ll(self, theta: float, use_prior: bool, prior: Prior) -> float:
        """Second derivative of the log-likelihood (or log-posterior).

        Non-positive wherever the log-likelihood is concave; see
        :meth:`d1_ll` for the parameters and errors.
        """
        total = 0.0
        for item_idx in self.question_set.applicable_rows:
            p, dp, d2p = self._observed_category(theta, item_idx)
            score = dp / p
            total += d2p / p - score * score
        if use_prior:
            total += prior.log_density_d2(theta)
        return total

    def fisher_inf(self, theta: float, item_idx: int) -> float:
        """Expected (Fisher) information of one item at theta.

        I(θ) = Σ_k P_k'(θ)² / P_k(θ)
        """
        p, dp, _ = self.item_model.category_derivatives(theta, item_idx)
        mask = p > 0.0
        return float(np.sum(dp[mask] ** 2 / p[mask]))

    def obs_inf(self, theta: float, item_idx: int) -> float:
        """Observed information of one answered item at theta.

        The negative second derivative of the item's log-likelihood at its
        recorded answer.
        """
        p, dp, d2p = self._observed_category(theta, item_idx)
        score = dp / p
        return float(score * score - d2p / p)

    def test_information(self, theta: float) -> float:
        """Sum of Fisher information over the answered items."""
        return float(
            sum(self.fisher_inf(theta, i) for i in self.question_set.applicable_rows)
        )

    def fisher_test_info(self, prior: Prior) -> float:
        """Test information of the answered items at the ability estimate."""
        return self.test_information(self.estimate_theta(prior))

    def _information_derivative_term(self, theta: float) -> float:
        """Σ over answered items and categories of P_k' P_k'' / P_k."""
        total = 0.0
        for item_idx in self.question_set.applicable_rows:
            p, dp, d2p = self.item_model.category_derivatives(theta, item_idx)
            mask = p > 0.0
            total += float(np.sum(dp[mask] * d2p[mask] / p[mask]))
        return total

    def _posterior_kernel(self, prior: Prior) -> ThetaFunction:
        """Unnormalized posterior density L(θ)π(θ)."""

        def kernel(theta: float) -> float:
            return self.likelihood(theta) * prior.density(theta)

        return kernel

    def _posterior_moments(self, prior: Prior) -> tuple[float, float]:
        """Posterior normalizing constant and mean.

        The mean is integrated relative to the lower bound of the support so
        that the integrand stays non-negative.
        """
        lower, upper = prior.support
        kernel = self._posterior_kernel(prior)

        denominator = self.integrator.integrate(kernel, lower, upper)
        if not denominator > 0.0:
            raise PreconditionError(
                "Posterior density vanishes over the integration bounds"
            )
        shifted = self.integrator.integrate(
            lambda theta: (theta - lower) * kernel(theta), lower, upper
        )
        return denominator, lower + shifted / denominator

    def posterior_mean(self, prior: Prior) -> float:
        return self._posterior_moments(prior)[1]

    def posterior_variance(self, prior: Prior, center: float | None = None) -> float:
        """Posterior second moment around ``center`` (default: posterior mean)."""
        denominator, mean = self._posterior_moments(prior)
        if center is None:
            center = mean
        lower, upper = prior.support
        kernel = self._posterior_kernel(prior)
        numerator = self.integrator.integrate(
            lambda theta: (theta - center) ** 2 * kernel(theta), lower, upper
        )
        return numerator / denominator

    def _category_weights(self, item_idx: int, prior: Prior) -> list[tuple[int, float]]:
        """Response options of an item with their probabilities at the estimate."""
        theta_hat = self.estimate_theta(prior)
        probs = self.item_model.category_probabilities(theta_hat, item_idx)
        return list(zip(self.item_model.response_options(item_idx), probs.tolist()))

    def expected_pv(self, item_idx: int, prior: Prior) -> float:
        """Expected posterior variance after answering an item.

        Each response option's squared standard error, with the option
        recorded hypothetically, weighted by the option's probability at the
        current ability estimate. The answer state is restored afterwards.
        """
        qs = self.question_set
        total = 0.0
        for response, weight in self._category_weights(item_idx, prior):
            with qs.hypothetical_answer(item_idx, response):
                total += weight * self.estimate_se(prior) ** 2
        return total

    def expected_obs_inf(self, item_idx: int, prior: Prior) -> float:
        """Expected observed information of an item.

        Each response option's observed information at the ability estimate
        obtained with that option recorded, weighted by the option's
        probability at the current estimate.
        """
        qs = self.question_set
        total = 0.0
        for response, weight in self._category_weights(item_idx, prior):
            with qs.hypothetical_answer(item_idx, response):
                theta_k = self.estimate_theta(prior)
                total += weight * self.obs_inf(theta_k, item_idx)
        return total

    def kl(self, theta_0: float, item_idx: int, theta_hat: float) -> float:
        """Kullback-Leibler divergence of an item's responses at theta_hat from theta_0."""
        p_hat = self.item_model.category_probabilities(theta_hat, item_idx)
        return self._kl_from(p_hat, theta_0, item_idx)

    def _kl_from(
        self, p_hat: NDArray[np.float64], theta_0: float, item_idx: int
    ) -> float:
        p_0 = np.clip(
            self.item_model.category_probabilities(theta_0, item_idx),
            PROB_EPSILON,
            1.0,
        )
        mask = p_hat > 0.0
        return float(np.sum(p_hat[mask] * np.log(p_hat[mask] / p_0[mask])))

    def expected_kl(self, item_idx: int, prior: Prior, z: float) -> float:
        """KL divergence integrated over a window around the estimate.

        The window is theta_hat ± z / sqrt(n) for n answered items, clipped
        to the integration range, or the whole range before any answer.
        """
        theta_hat = self.estimate_theta(prior)
        p_hat = self.item_model.category_probabilities(theta_hat, item_idx)
        n_answered = len(self.question_set.applicable_rows)

        if n_answered > 0:
            delta = z / math.sqrt(n_answered)
            lower, upper = self.integrator.clip(theta_hat - delta, theta_hat + delta)
        else:
            lower, upper = self.integrator.bounds

        return self.integrator.integrate(
            lambda theta: self._kl_from(p_hat, theta, item_idx), lower, upper
        )

    def likelihood_kl(self, item_idx: int, prior: Prior) -> float:
        """KL divergence integrated against the likelihood."""
        theta_hat = self.estimate_theta(prior)
        p_hat = self.item_model.category_probabilities(theta_hat, item_idx)
        return self.integrator.integrate(
            lambda theta: self.likelihood(theta) * self._kl_from(p_hat, theta, item_idx)
        )

    def posterior_kl(self, item_idx: int, prior: Prior) -> float:
        """KL divergence integrated against the unnormalized posterior."""
        theta_hat = self.estimate_theta(prior)
        p_hat = self.item_model.category_probabilities(theta_hat, item_idx)
        kernel = self._posterior_kernel(prior)
        lower, upper = prior.support
        return self.integrator.integrate(
            lambda theta: kernel(theta) * self._kl_from(p_hat, theta, item_idx),
            lower,
            upper,
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"answered={len(self.question_set.applicable_rows)})"
        )


class BayesianEstimator(Estimator):
    """Estimators whose uncertainty comes from the posterior distribution."""

    def estimate_se(self, prior: Prior) -> float:
        """Posterior standard deviation around the ability estimate."""
        theta_hat = self.estimate_theta(prior)
        return math.sqrt(self.posterior_variance(prior, center=theta_hat))

    def fisher_test_info(self, prior: Prior) -> float:
        """Test information averaged over the posterior."""
        lower, upper = prior.support
        kernel = self._posterior_kernel(prior)
        denominator = self.integrator.integrate(kernel, lower, upper)
        if not denominator > 0.0:
            raise PreconditionError(
                "Posterior density vanishes over the integration bounds"
            )
        numerator = self.integrator.integrate(
            lambda theta: self.test_information(theta) * kernel(theta), lower, upper
        )
        return numerator / denominator
