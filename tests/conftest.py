"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from catirt.config import CatConfig
from catirt.estimation.quadrature import Integrator
from catirt.prior import Prior
from catirt.question_set import QuestionSet


@pytest.fixture
def rng():
    """Reproducible random number generator."""
    return np.random.default_rng(42)


@pytest.fixture
def integrator():
    """Integrator over the default bounds."""
    return Integrator()


@pytest.fixture
def normal_prior():
    """Standard normal prior."""
    return Prior("normal", (0.0, 1.0))


@pytest.fixture
def ltm_params():
    """Five-item 2PL bank."""
    return {
        "model": "ltm",
        "discrimination": [1.0, 1.5, 0.8, 2.0, 1.2],
        "difficulty": [-1.0, 0.0, 0.5, 1.0, -0.5],
    }


@pytest.fixture
def tpm_params():
    """Five-item 3PL bank."""
    return {
        "model": "tpm",
        "discrimination": [1.0, 1.5, 0.8, 2.0, 1.2],
        "difficulty": [-1.0, 0.0, 0.5, 1.0, -0.5],
        "guessing": [0.2, 0.1, 0.25, 0.15, 0.0],
    }


@pytest.fixture
def grm_params():
    """Four-item graded response bank with four categories per item."""
    return {
        "model": "grm",
        "discrimination": [1.2, 0.9, 1.6, 2.0],
        "difficulty": [
            [-1.5, 0.0, 1.5],
            [-1.0, 0.5, 2.0],
            [-2.0, -0.5, 1.0],
            [-0.5, 0.5, 1.2],
        ],
    }


@pytest.fixture
def gpcm_params():
    """Four-item generalized partial credit bank with three categories per item."""
    return {
        "model": "gpcm",
        "discrimination": [1.0, 1.4, 0.7, 1.8],
        "difficulty": [
            [-1.0, 0.5],
            [-0.5, 1.0],
            [0.0, 0.8],
            [-1.5, 0.2],
        ],
    }


@pytest.fixture(params=["ltm", "tpm", "grm", "gpcm"])
def bank_params(request, ltm_params, tpm_params, grm_params, gpcm_params):
    """Item bank of every supported family."""
    return {
        "ltm": ltm_params,
        "tpm": tpm_params,
        "grm": grm_params,
        "gpcm": gpcm_params,
    }[request.param]


@pytest.fixture
def answered_bank(bank_params):
    """Bank of every family with item 1 at its lowest and item 2 at its highest category."""
    params = bank_params
    n_items = len(params["discrimination"])
    if params["model"] in ("ltm", "tpm"):
        low, high = 0, 1
    else:
        low, high = 1, len(params["difficulty"][1]) + 1
    return {**params, "answers": [low, high] + [None] * (n_items - 2)}


@pytest.fixture
def ltm_config(ltm_params):
    """2PL session with the first two items answered."""
    return CatConfig(**ltm_params, answers=[1, 0, None, None, None])


@pytest.fixture
def ltm_question_set(ltm_params):
    """2PL question set with the first two items answered."""
    return QuestionSet(**ltm_params, answers=[1, 0, None, None, None])
