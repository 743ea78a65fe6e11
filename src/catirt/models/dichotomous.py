"""Binary IRT models: two- and three-parameter logistic."""

import numpy as np
from numpy.typing import NDArray
from scipy.special import expit

from catirt.models.base import ItemResponseModel


class BinaryLogistic(ItemResponseModel):
    """Two- or three-parameter logistic model for binary items.

    The probability of a positive response is

    P(X=1|θ) = c + (1 - c) × exp(b + aθ) / (1 + exp(b + aθ))

    where a is the discrimination, b the difficulty (intercept) and c the
    guessing parameter. With all guessing parameters at zero this is the
    2PL ("ltm") model; otherwise the 3PL ("tpm") model.

    Responses are coded 0 (negative) and 1 (positive).

    Examples
    --------
    >>> model = BinaryLogistic(np.array([1.0]), [np.array([0.0])])
    >>> model.probability(0.0, 0)
    array([0.5])
    """

    model_name = "ltm"

    def __init__(
        self,
        discrimination: NDArray[np.float64],
        difficulty: list[NDArray[np.float64]],
        guessing: NDArray[np.float64] | None = None,
    ) -> None:
        super().__init__(discrimination, difficulty, guessing)
        if guessing is not None:
            self.model_name = "tpm"

    def _validate_parameters(self) -> None:
        for i, d in enumerate(self.difficulty):
            if d.size != 1:
                raise ValueError(
                    f"Item {i} of a binary model needs one difficulty, got {d.size}"
                )
        if np.any((self.guessing < 0) | (self.guessing >= 1)):
            raise ValueError("guessing parameters must lie in [0, 1)")

    def response_options(self, item_idx: int) -> list[int]:
        return [0, 1]

    def category_index(self, item_idx: int, response: int) -> int:
        if response not in (0, 1):
            raise ValueError(f"Binary responses are 0 or 1, got {response}")
        return response

    def _logistic(self, theta: float, item_idx: int) -> float:
        a = self.discrimination[item_idx]
        b = self.difficulty[item_idx][0]
        return float(expit(b + a * theta))

    def probability(self, theta: float, item_idx: int) -> NDArray[np.float64]:
        c = self.guessing[item_idx]
        return np.array([c + (1.0 - c) * self._logistic(theta, item_idx)])

    def category_derivatives(
        self, theta: float, item_idx: int
    ) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        a = self.discrimination[item_idx]
        c = self.guessing[item_idx]
        L = self._logistic(theta, item_idx)

        p = c + (1.0 - c) * L
        dp = (1.0 - c) * a * L * (1.0 - L)
        d2p = dp * a * (1.0 - 2.0 * L)

        return (
            np.array([1.0 - p, p]),
            np.array([-dp, dp]),
            np.array([-d2p, d2p]),
        )
