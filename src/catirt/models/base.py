from abc import ABC, abstractmethod

import numpy as np
from numpy.typing import NDArray


class ItemResponseModel(ABC):
    """Response probabilities of one calibrated item bank.

    Subclasses hold the item parameters of one IRT family and provide, for
    a single item at a single theta, the probability of every response
    category together with its first and second derivatives in theta.
    Everything else (likelihood, information, divergences) is built on
    these three arrays.
    """

    model_name: str = "BaseModel"

    def __init__(
        self,
        discrimination: NDArray[np.float64],
        difficulty: list[NDArray[np.float64]],
        guessing: NDArray[np.float64] | None = None,
    ) -> None:
        self.discrimination = np.asarray(discrimination, dtype=np.float64)
        self.difficulty = [np.atleast_1d(np.asarray(d, dtype=np.float64)) for d in difficulty]
        if guessing is None:
            guessing = np.zeros(len(self.discrimination))
        self.guessing = np.asarray(guessing, dtype=np.float64)

        if len(self.difficulty) != self.n_items:
            raise ValueError(
                f"difficulty has {len(self.difficulty)} items, expected {self.n_items}"
            )
        if self.guessing.shape != (self.n_items,):
            raise ValueError(
                f"guessing has {self.guessing.size} items, expected {self.n_items}"
            )
        self._validate_parameters()

    @property
    def n_items(self) -> int:
        return len(self.discrimination)

    def _validate_parameters(self) -> None:
        return None

    def n_categories(self, item_idx: int) -> int:
        """Number of response categories of an item."""
        return len(self.difficulty[item_idx]) + 1

    @abstractmethod
    def response_options(self, item_idx: int) -> list[int]:
        """Response codes of an item, in category order."""

    @abstractmethod
    def category_index(self, item_idx: int, response: int) -> int:
        """Position of a response code in the category arrays."""

    @abstractmethod
    def probability(self, theta: float, item_idx: int) -> NDArray[np.float64]:
        """Probability sequence reported for an item.

        The convention differs by family: the probability of a positive
        response for binary items, cumulative probabilities bounded by 0 and
        1 for graded items, category probabilities for partial credit items.
        """

    @abstractmethod
    def category_derivatives(
        self, theta: float, item_idx: int
    ) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        """Category probabilities and their first and second theta-derivatives."""

    def category_probabilities(self, theta: float, item_idx: int) -> NDArray[np.float64]:
        """Probability of each response category, in category order."""
        return self.category_derivatives(theta, item_idx)[0]

    def extreme_side(self, item_idx: int, response: int) -> int:
        """-1 for the lowest category, 1 for the highest, 0 otherwise."""
        options = self.response_options(item_idx)
        if response == options[0]:
            return -1
        if response == options[-1]:
            return 1
        return 0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(n_items={self.n_items})"
