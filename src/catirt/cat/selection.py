"""Item selection criteria for unidimensional adaptive testing."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np

from catirt.cat.results import Selection
from catirt.config import SelectionType
from catirt.exceptions import ConfigurationError, PreconditionError

if TYPE_CHECKING:
    from catirt.prior import Prior
    from catirt.question_set import QuestionSet
    from catirt.scoring.base import Estimator


class Selector(ABC):
    """Abstract base class for item selection criteria.

    A selector scores every unanswered item of the question set and picks
    the best one. The scores are computed by the session's estimator under
    the session's prior, so the selection always reflects the current answer
    state.

    Parameters
    ----------
    question_set : QuestionSet
        Item bank and answers.
    estimator : Estimator
        Active ability estimator.
    prior : Prior
        Prior density of the session.
    """

    selection_type: SelectionType
    minimize: bool = False

    def __init__(
        self, question_set: QuestionSet, estimator: Estimator, prior: Prior
    ) -> None:
        self.question_set = question_set
        self.estimator = estimator
        self.prior = prior

    @property
    def name(self) -> str:
        return self.selection_type.value

    @abstractmethod
    def _compute_criterion(self, item_idx: int) -> float:
        """Criterion value of a single unanswered item."""

    def get_item_criteria(self) -> dict[int, float]:
        """Criterion value of every unanswered item, keyed by item index."""
        return {
            item_idx: self._compute_criterion(item_idx)
            for item_idx in self._candidates()
        }

    def _candidates(self) -> list[int]:
        candidates = sorted(self.question_set.nonapplicable_rows)
        if not candidates:
            raise PreconditionError("No items available for selection")
        return candidates

    def _compute_values(self, candidates: list[int]) -> np.ndarray:
        return np.array(
            [self._compute_criterion(item_idx) for item_idx in candidates],
            dtype=np.float64,
        )

    def _choose(self, candidates: list[int], values: np.ndarray) -> int:
        best = 0
        for pos in range(1, len(candidates)):
            better = (
                values[pos] < values[best]
                if self.minimize
                else values[pos] > values[best]
            )
            if better:
                best = pos
        return candidates[best]

    def select_item(self) -> Selection:
        """Score every unanswered item and choose the next one.

        Returns
        -------
        Selection
            Candidates in ascending index order with their values and the
            chosen index. Ties go to the lowest index.

        Raises
        ------
        PreconditionError
            If every item has been answered.
        """
        candidates = self._candidates()
        values = self._compute_values(candidates)
        names = self.question_set.item_names
        return Selection(
            name=self.name,
            questions=candidates,
            question_names=[names[i] for i in candidates],
            values=values,
            item=self._choose(candidates, values),
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class EPVSelector(Selector):
    """Minimum expected posterior variance."""

    selection_type = SelectionType.EPV
    minimize = True

    def _compute_criterion(self, item_idx: int) -> float:
        return self.estimator.expected_pv(item_idx, self.prior)


class MFISelector(Selector):
    """Maximum Fisher information at the current ability estimate."""

    selection_type = SelectionType.MFI

    def _compute_criterion(self, item_idx: int) -> float:
        theta_hat = self.estimator.estimate_theta(self.prior)
        return self.estimator.fisher_inf(theta_hat, item_idx)

    def _compute_values(self, candidates: list[int]) -> np.ndarray:
        theta_hat = self.estimator.estimate_theta(self.prior)
        return np.array(
            [self.estimator.fisher_inf(theta_hat, i) for i in candidates],
            dtype=np.float64,
        )


class MEISelector(Selector):
    """Maximum expected observed information."""

    selection_type = SelectionType.MEI

    def _compute_criterion(self, item_idx: int) -> float:
        return self.estimator.expected_obs_inf(item_idx, self.prior)


class MPWISelector(Selector):
    """Maximum posterior-weighted information.

    ∫ L(θ) π(θ) I_j(θ) dθ over the prior's support.
    """

    selection_type = SelectionType.MPWI

    def _compute_criterion(self, item_idx: int) -> float:
        estimator = self.estimator
        prior = self.prior
        lower, upper = prior.support
        return estimator.integrator.integrate(
            lambda theta: estimator.likelihood(theta)
            * prior.density(theta)
            * estimator.fisher_inf(theta, item_idx),
            lower,
            upper,
        )


class MLWISelector(Selector):
    """Maximum likelihood-weighted information.

    ∫ L(θ) I_j(θ) dθ over the integration bounds.
    """

    selection_type = SelectionType.MLWI

    def _compute_criterion(self, item_idx: int) -> float:
        estimator = self.estimator
        return estimator.integrator.integrate(
            lambda theta: estimator.likelihood(theta)
            * estimator.fisher_inf(theta, item_idx)
        )


class KLSelector(Selector):
    """Maximum Kullback-Leibler divergence over a window around the estimate."""

    selection_type = SelectionType.KL

    def __init__(
        self,
        question_set: QuestionSet,
        estimator: Estimator,
        prior: Prior,
        z: float = 0.9,
    ) -> None:
        super().__init__(question_set, estimator, prior)
        self.z = z

    def _compute_criterion(self, item_idx: int) -> float:
        return self.estimator.expected_kl(item_idx, self.prior, self.z)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(z={self.z})"


class LKLSelector(Selector):
    """Maximum likelihood-weighted Kullback-Leibler divergence."""

    selection_type = SelectionType.LKL

    def _compute_criterion(self, item_idx: int) -> float:
        return self.estimator.likelihood_kl(item_idx, self.prior)


class PKLSelector(Selector):
    """Maximum posterior-weighted Kullback-Leibler divergence."""

    selection_type = SelectionType.PKL

    def _compute_criterion(self, item_idx: int) -> float:
        return self.estimator.posterior_kl(item_idx, self.prior)


class MFIISelector(Selector):
    """Maximum Fisher interval information.

    Fisher information integrated over [θ̂ − δ, θ̂ + δ] with
    δ = z / sqrt(I(θ̂)), I the information of the answered items. Before any
    information has accumulated the whole integration range is used.
    """

    selection_type = SelectionType.MFII

    def __init__(
        self,
        question_set: QuestionSet,
        estimator: Estimator,
        prior: Prior,
        z: float = 0.9,
    ) -> None:
        super().__init__(question_set, estimator, prior)
        self.z = z

    def _window(self) -> tuple[float, float]:
        estimator = self.estimator
        theta_hat = estimator.estimate_theta(self.prior)
        information = estimator.test_information(theta_hat)
        if not information > 0.0:
            return estimator.integrator.bounds
        delta = self.z / math.sqrt(information)
        return estimator.integrator.clip(theta_hat - delta, theta_hat + delta)

    def _compute_criterion(self, item_idx: int) -> float:
        lower, upper = self._window()
        return self.estimator.integrator.integrate(
            lambda theta: self.estimator.fisher_inf(theta, item_idx), lower, upper
        )

    def _compute_values(self, candidates: list[int]) -> np.ndarray:
        lower, upper = self._window()
        integrate = self.estimator.integrator.integrate
        fisher_inf = self.estimator.fisher_inf
        return np.array(
            [
                integrate(lambda theta, i=i: fisher_inf(theta, i), lower, upper)
                for i in candidates
            ],
            dtype=np.float64,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(z={self.z})"


class RandomSelector(Selector):
    """Uniformly random unanswered item.

    Every candidate scores zero.
    """

    selection_type = SelectionType.RANDOM

    def __init__(
        self,
        question_set: QuestionSet,
        estimator: Estimator,
        prior: Prior,
        seed: int | None = None,
    ) -> None:
        super().__init__(question_set, estimator, prior)
        self.rng = np.random.default_rng(seed)

    def _compute_criterion(self, item_idx: int) -> float:
        return 0.0

    def select_item(self) -> Selection:
        candidates = self._candidates()
        names = self.question_set.item_names
        return Selection(
            name=self.name,
            questions=candidates,
            question_names=[names[i] for i in candidates],
            values=np.zeros(len(candidates)),
            item=candidates[int(self.rng.integers(len(candidates)))],
        )


_SELECTORS: dict[SelectionType, type[Selector]] = {
    SelectionType.EPV: EPVSelector,
    SelectionType.MFI: MFISelector,
    SelectionType.MEI: MEISelector,
    SelectionType.MPWI: MPWISelector,
    SelectionType.MLWI: MLWISelector,
    SelectionType.KL: KLSelector,
    SelectionType.LKL: LKLSelector,
    SelectionType.PKL: PKLSelector,
    SelectionType.MFII: MFIISelector,
    SelectionType.RANDOM: RandomSelector,
}


def create_selector(
    selection: SelectionType | str,
    question_set: QuestionSet,
    estimator: Estimator,
    prior: Prior,
    z: float = 0.9,
    seed: int | None = None,
) -> Selector:
    """Factory function to create item selectors.

    Parameters
    ----------
    selection : SelectionType | str
        Criterion name. One of: "EPV", "MFI", "MEI", "MPWI", "MLWI", "KL",
        "LKL", "PKL", "MFII", "RANDOM".
    question_set : QuestionSet
        Item bank and answers.
    estimator : Estimator
        Active ability estimator.
    prior : Prior
        Prior density of the session.
    z : float, optional
        Window constant of "KL" and "MFII". Default is 0.9.
    seed : int, optional
        Seed of "RANDOM".

    Returns
    -------
    Selector
        The requested selector.

    Raises
    ------
    ConfigurationError
        If the criterion is not recognized.
    """
    selection_type = SelectionType.parse(selection)
    if selection_type not in _SELECTORS:
        valid = ", ".join(s.value for s in _SELECTORS)
        raise ConfigurationError(
            f"Unknown selection type '{selection}'. Valid options: {valid}"
        )

    cls = _SELECTORS[selection_type]
    if cls in (KLSelector, MFIISelector):
        return cls(question_set, estimator, prior, z=z)
    if cls is RandomSelector:
        return cls(question_set, estimator, prior, seed=seed)
    return cls(question_set, estimator, prior)
