"""Tests for likelihood derivatives, information and divergences."""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose
from scipy.special import expit

from catirt.exceptions import PreconditionError, ProbabilityDomainError
from catirt.prior import Prior
from catirt.question_set import QuestionSet
from catirt.scoring import EAPEstimator, MLEEstimator


@pytest.fixture
def eap(integrator, answered_bank):
    """EAP estimator over a partly answered bank of every family."""
    return EAPEstimator(integrator, QuestionSet(**answered_bank))


class TestLikelihood:
    """Tests for the likelihood and its derivatives."""

    def test_likelihood_product(self, integrator, ltm_question_set, ltm_params):
        """Test the likelihood as a product over answered items."""
        estimator = EAPEstimator(integrator, ltm_question_set)
        a = ltm_params["discrimination"]
        b = ltm_params["difficulty"]
        theta = 0.4
        expected = expit(b[0] + a[0] * theta) * (1 - expit(b[1] + a[1] * theta))

        assert_allclose(estimator.likelihood(theta), expected)

    def test_empty_likelihood(self, integrator, ltm_params):
        """Test that the likelihood of no answers is one."""
        assert EAPEstimator(integrator, QuestionSet(**ltm_params)).likelihood(1.0) == 1.0

    @pytest.mark.parametrize("theta", [-1.5, 0.0, 0.7])
    def test_prior_decomposition(self, eap, theta):
        """Test d1LL with the prior = d1LL without + prior log-density derivative."""
        prior = Prior("normal", (0.3, 1.2))

        assert_allclose(
            eap.d1_ll(theta, True, prior),
            eap.d1_ll(theta, False, prior) + prior.log_density_d1(theta),
        )
        assert_allclose(
            eap.d2_ll(theta, True, prior),
            eap.d2_ll(theta, False, prior) + prior.log_density_d2(theta),
        )

    @pytest.mark.parametrize("theta", [-1.0, 0.2, 1.3])
    def test_derivatives_match_log_likelihood(self, eap, normal_prior, theta):
        """Test d1LL and d2LL against differences of the log-likelihood."""
        h = 1e-4
        log_l = [math.log(eap.likelihood(theta + k * h)) for k in (-1, 0, 1)]

        assert_allclose(
            eap.d1_ll(theta, False, normal_prior),
            (log_l[2] - log_l[0]) / (2 * h),
            atol=1e-6,
        )
        assert_allclose(
            eap.d2_ll(theta, False, normal_prior),
            (log_l[2] - 2 * log_l[1] + log_l[0]) / h**2,
            atol=1e-4,
        )

    def test_saturated_probability(self, integrator, normal_prior, ltm_params):
        """Test that a vanishing answer probability is a domain error."""
        qs = QuestionSet(**ltm_params, answers=[0, None, None, None, None])
        estimator = EAPEstimator(integrator, qs)

        with pytest.raises(ProbabilityDomainError):
            estimator.d1_ll(60.0, False, normal_prior)


class TestInformation:
    """Tests for Fisher and observed information."""

    def test_fisher_2pl(self, integrator, ltm_question_set, ltm_params):
        """Test I = a^2 P (1 - P) for the 2PL."""
        estimator = EAPEstimator(integrator, ltm_question_set)
        a = ltm_params["discrimination"][3]
        p = expit(ltm_params["difficulty"][3] + a * 0.5)

        assert_allclose(estimator.fisher_inf(0.5, 3), a**2 * p * (1 - p))

    def test_fisher_3pl(self, integrator, tpm_params):
        """Test I = P'^2 / (P (1 - P)) for the 3PL."""
        estimator = EAPEstimator(integrator, QuestionSet(**tpm_params))
        a = tpm_params["discrimination"][0]
        c = tpm_params["guessing"][0]
        L = expit(tpm_params["difficulty"][0] + a * 0.2)
        p = c + (1 - c) * L
        dp = (1 - c) * a * L * (1 - L)

        assert_allclose(estimator.fisher_inf(0.2, 0), dp**2 / (p * (1 - p)))

    def test_fisher_matches_expected_observed(self, eap):
        """Test that Fisher information is the expected observed information."""
        qs = eap.question_set
        model = qs.item_model
        item = qs.nonapplicable_rows[0]
        theta = 0.4
        probs = model.category_probabilities(theta, item)
        expected = 0.0
        for response, weight in zip(model.response_options(item), probs):
            with qs.hypothetical_answer(item, response):
                expected += weight * eap.obs_inf(theta, item)

        assert_allclose(eap.fisher_inf(theta, item), expected)

    def test_observed_equals_fisher_for_2pl(self, integrator, ltm_question_set):
        """Test that observed and Fisher information coincide for the 2PL."""
        estimator = EAPEstimator(integrator, ltm_question_set)

        for item in (0, 1):
            assert_allclose(estimator.obs_inf(0.3, item), estimator.fisher_inf(0.3, item))

    def test_observed_requires_answer(self, integrator, ltm_question_set):
        """Test that observed information needs an answered item."""
        estimator = EAPEstimator(integrator, ltm_question_set)

        with pytest.raises(PreconditionError, match="not been answered"):
            estimator.obs_inf(0.0, 4)

    def test_test_information(self, eap):
        """Test the sum over answered items."""
        rows = eap.question_set.applicable_rows

        assert_allclose(
            eap.test_information(0.1), sum(eap.fisher_inf(0.1, i) for i in rows)
        )

    def test_mle_fisher_test_info(self, integrator, normal_prior, ltm_params):
        """Test that ML test information is taken at the estimate."""
        qs = QuestionSet(**ltm_params, answers=[1, 0, 1, 0, None])
        estimator = MLEEstimator(integrator, qs)
        theta = estimator.estimate_theta(normal_prior)

        assert_allclose(
            estimator.fisher_test_info(normal_prior), estimator.test_information(theta)
        )


class TestExpectations:
    """Tests for expectations over hypothetical answers."""

    def test_expected_pv(self, eap, normal_prior):
        """Test EPV against explicit hypothetical answers."""
        qs = eap.question_set
        model = qs.item_model
        item = qs.nonapplicable_rows[-1]
        theta_hat = eap.estimate_theta(normal_prior)
        before = qs.snapshot()

        expected = 0.0
        for response, weight in zip(
            model.response_options(item), model.category_probabilities(theta_hat, item)
        ):
            answers = list(before.answers)
            answers[item] = response
            other = EAPEstimator(
                eap.integrator,
                QuestionSet(
                    model=qs.model,
                    discrimination=qs.discrimination,
                    difficulty=qs.difficulty,
                    guessing=qs.guessing,
                    answers=answers,
                ),
            )
            expected += weight * other.estimate_se(normal_prior) ** 2

        assert_allclose(eap.expected_pv(item, normal_prior), expected, rtol=1e-8)
        assert qs.snapshot() == before

    def test_expected_pv_below_current_variance(self, eap, normal_prior):
        """Test that the best item is expected to reduce posterior variance."""
        current = eap.estimate_se(normal_prior) ** 2
        rows = eap.question_set.nonapplicable_rows

        assert min(eap.expected_pv(item, normal_prior) for item in rows) < current

    def test_expected_obs_inf(self, eap, normal_prior):
        """Test that expected observed information is positive and restores state."""
        qs = eap.question_set
        before = qs.snapshot()

        for item in qs.nonapplicable_rows:
            assert eap.expected_obs_inf(item, normal_prior) > 0.0
        assert qs.snapshot() == before


class TestKullbackLeibler:
    """Tests for the KL divergences."""

    def test_kl_zero_at_estimate(self, eap):
        """Test that the divergence of a distribution from itself is zero."""
        assert_allclose(eap.kl(0.3, 2, 0.3), 0.0, atol=1e-14)

    def test_kl_positive(self, eap):
        """Test that the divergence between distinct abilities is positive."""
        assert eap.kl(-1.0, 2, 0.5) > 0.0

    def test_expected_kl_window(self, integrator, normal_prior, ltm_question_set):
        """Test the window theta_hat +/- z / sqrt(n)."""
        estimator = EAPEstimator(integrator, ltm_question_set)
        theta_hat = estimator.estimate_theta(normal_prior)
        delta = 0.9 / math.sqrt(2)
        expected = integrator.integrate(
            lambda t: estimator.kl(t, 3, theta_hat), theta_hat - delta, theta_hat + delta
        )

        assert_allclose(estimator.expected_kl(3, normal_prior, 0.9), expected)

    def test_expected_kl_no_answers(self, integrator, normal_prior, ltm_params):
        """Test that without answers the whole range is used."""
        estimator = EAPEstimator(integrator, QuestionSet(**ltm_params))
        theta_hat = estimator.estimate_theta(normal_prior)
        expected = integrator.integrate(lambda t: estimator.kl(t, 0, theta_hat))

        assert_allclose(estimator.expected_kl(0, normal_prior, 0.9), expected)

    def test_weighted_kl(self, eap, normal_prior):
        """Test that likelihood- and posterior-weighted divergences are positive."""
        item = eap.question_set.nonapplicable_rows[0]

        assert eap.likelihood_kl(item, normal_prior) > 0.0
        assert eap.posterior_kl(item, normal_prior) > 0.0
        assert eap.posterior_kl(item, normal_prior) < eap.likelihood_kl(
            item, normal_prior
        )
