"""Polytomous IRT models: graded response and generalized partial credit."""

import numpy as np
from numpy.typing import NDArray
from scipy.special import expit

from catirt.models.base import ItemResponseModel


class _OrdinalModel(ItemResponseModel):
    """Shared response coding of ordinal items: categories 1..K."""

    def response_options(self, item_idx: int) -> list[int]:
        return list(range(1, self.n_categories(item_idx) + 1))

    def category_index(self, item_idx: int, response: int) -> int:
        n_cat = self.n_categories(item_idx)
        if not 1 <= response <= n_cat:
            raise ValueError(f"Category {response} out of range [1, {n_cat}]")
        return response - 1


class GradedResponse(_OrdinalModel):
    """Graded Response Model (GRM).

    The probability of responding in category k or lower is

    P(X ≤ k|θ) = exp(b_k - aθ) / (1 + exp(b_k - aθ))

    with strictly increasing thresholds b_1 < ... < b_{K-1}, so that an
    item with K - 1 thresholds has K categories coded 1..K. Category
    probabilities are differences of adjacent cumulative probabilities.

    :meth:`probability` reports the K + 1 cumulative probabilities, the
    first fixed at 0 and the last at 1.
    """

    model_name = "grm"

    def _validate_parameters(self) -> None:
        for i, thresholds in enumerate(self.difficulty):
            if np.any(np.diff(thresholds) <= 0):
                raise ValueError(f"Thresholds of item {i} must be strictly increasing")

    def _cumulative(
        self, theta: float, item_idx: int
    ) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        a = self.discrimination[item_idx]
        c = expit(self.difficulty[item_idx] - a * theta)
        w = c * (1.0 - c)

        cum = np.concatenate([[0.0], c, [1.0]])
        d_cum = np.concatenate([[0.0], -a * w, [0.0]])
        d2_cum = np.concatenate([[0.0], a * a * w * (1.0 - 2.0 * c), [0.0]])
        return cum, d_cum, d2_cum

    def probability(self, theta: float, item_idx: int) -> NDArray[np.float64]:
        return self._cumulative(theta, item_idx)[0]

    def category_derivatives(
        self, theta: float, item_idx: int
    ) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        cum, d_cum, d2_cum = self._cumulative(theta, item_idx)
        p = np.maximum(np.diff(cum), 0.0)
        return p, np.diff(d_cum), np.diff(d2_cum)


class GeneralizedPartialCredit(_OrdinalModel):
    """Generalized Partial Credit Model (GPCM).

    P(X = k|θ) = exp(Σ_{t<k} a(θ - b_t)) / Σ_r exp(Σ_{t<r} a(θ - b_t))

    where a is the discrimination and b_t the step parameters. An item with
    K - 1 steps has K categories coded 1..K; the empty sum of the first
    category is zero.

    :meth:`probability` reports the K category probabilities.
    """

    model_name = "gpcm"

    def category_derivatives(
        self, theta: float, item_idx: int
    ) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        a = self.discrimination[item_idx]
        steps = self.difficulty[item_idx]

        z = np.concatenate([[0.0], np.cumsum(a * (theta - steps))])
        dz = a * np.arange(len(z), dtype=np.float64)

        # Numerically stable softmax
        exp_z = np.exp(z - z.max())
        p = exp_z / exp_z.sum()

        centered = dz - np.dot(p, dz)
        variance = np.dot(p, centered**2)

        return p, p * centered, p * (centered**2 - variance)

    def probability(self, theta: float, item_idx: int) -> NDArray[np.float64]:
        return self.category_derivatives(theta, item_idx)[0]
