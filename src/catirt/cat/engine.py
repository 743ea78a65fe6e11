"""CAT engine: one respondent's adaptive testing session."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

from catirt.cat.results import ItemSelection, LookAheadResult
from catirt.cat.selection import Selector, create_selector
from catirt.cat.stopping import StoppingInputs, StoppingRuleEvaluator
from catirt.config import CatConfig
from catirt.estimation.quadrature import Integrator
from catirt.exceptions import PreconditionError
from catirt.prior import Prior, prior_density
from catirt.question_set import QuestionSet
from catirt.scoring import Estimator, create_estimator

if TYPE_CHECKING:
    import pandas as pd

logger = logging.getLogger(__name__)


class Cat:
    """Adaptive testing session of one respondent.

    Builds the question set, prior, estimator, selector and stopping rules
    described by a :class:`CatConfig` and exposes the estimation, item
    scoring and simulation operations of the session. Items are numbered
    from 1 in every argument and result of this class.

    The estimator is chosen once, when the session is built: "MLE" and
    "WLE" are replaced by ``config.estimation_default`` if the initial
    answers contain no answer or only extreme answers.

    Parameters
    ----------
    config : CatConfig | Mapping
        Session configuration, or a mapping accepted by
        :meth:`CatConfig.from_dict`.

    Examples
    --------
    >>> cat = Cat(CatConfig(model="ltm", discrimination=[1.0, 1.5, 2.0],
    ...                     difficulty=[-1.0, 0.0, 1.0],
    ...                     stopping={"length_threshold": 2}))
    >>> while not cat.check_stop_rules():
    ...     item = cat.select_item().next_item
    ...     cat.answer(item, get_response(item))  # caller supplies response
    >>> theta, se = cat.estimate_theta(), cat.estimate_se()
    """

    def __init__(self, config: CatConfig | Mapping[str, Any]) -> None:
        if not isinstance(config, CatConfig):
            config = CatConfig.from_dict(config)
        self.config = config

        self.question_set = QuestionSet.from_config(config)
        self.integrator = Integrator()
        self.prior = Prior(config.prior_name, config.prior_params)
        self.estimator: Estimator = create_estimator(
            config.estimation,
            self.integrator,
            self.question_set,
            config.estimation_default,
        )
        self.selector: Selector = create_selector(
            config.selection,
            self.question_set,
            self.estimator,
            self.prior,
            z=config.z,
            seed=config.seed,
        )
        self.stopping = StoppingRuleEvaluator(config.stopping)

    @property
    def n_items(self) -> int:
        return self.question_set.n_items

    @property
    def answers(self) -> tuple[int | None, ...]:
        """Recorded answer of every item, None when unanswered."""
        return tuple(self.question_set.answers)

    @property
    def answered_items(self) -> list[int]:
        """Numbers of the answered items, in the order they were answered."""
        return [i + 1 for i in self.question_set.applicable_rows]

    @property
    def unanswered_items(self) -> list[int]:
        """Numbers of the unanswered items, ascending."""
        return [i + 1 for i in self.question_set.nonapplicable_rows]

    def _index(self, item: int) -> int:
        if not 1 <= item <= self.n_items:
            raise IndexError(f"Item {item} out of range [1, {self.n_items}]")
        return int(item) - 1

    def answer(self, item: int, response: int) -> None:
        """Record the response to an item."""
        self.question_set.reset_answer(self._index(item), response)

    def unanswer(self, item: int) -> None:
        """Clear the response to an item."""
        self.question_set.reset_answer(self._index(item), None)

    def probability(self, theta: float, item: int) -> NDArray[np.float64]:
        """Response probabilities of an item at theta.

        ``[P(y=1)]`` for binary items, the cumulative sequence
        ``[0, P(y<=1), ..., 1]`` for "grm" and the category probabilities for
        "gpcm".
        """
        return self.estimator.probability(theta, self._index(item))

    def likelihood(self, theta: float) -> float:
        return self.estimator.likelihood(theta)

    @staticmethod
    def prior_density(x: float, name: str, params: Sequence[float]) -> float:
        """Density at ``x`` of the named prior."""
        return prior_density(x, name, params)

    def d1_ll(self, theta: float, use_prior: bool = False) -> float:
        """First derivative of the log-likelihood (log-posterior with ``use_prior``)."""
        return self.estimator.d1_ll(theta, use_prior, self.prior)

    def d2_ll(self, theta: float, use_prior: bool = False) -> float:
        """Second derivative of the log-likelihood (log-posterior with ``use_prior``)."""
        return self.estimator.d2_ll(theta, use_prior, self.prior)

    def estimate_theta(self) -> float:
        return self.estimator.estimate_theta(self.prior)

    def estimate_se(self) -> float:
        return self.estimator.estimate_se(self.prior)

    def obs_inf(self, theta: float, item: int) -> float:
        """Observed information of an answered item at theta.

        Raises
        ------
        PreconditionError
            If no item has been answered, or this item is unanswered.
        """
        if not self.question_set.applicable_rows:
            raise PreconditionError(
                "obs_inf should not be called if no items have been answered"
            )
        return self.estimator.obs_inf(theta, self._index(item))

    def expected_obs_inf(self, item: int) -> float:
        return self.estimator.expected_obs_inf(self._index(item), self.prior)

    def fisher_inf(self, theta: float, item: int) -> float:
        return self.estimator.fisher_inf(theta, self._index(item))

    def fisher_test_info(self) -> float:
        return self.estimator.fisher_test_info(self.prior)

    def expected_pv(self, item: int) -> float:
        return self.estimator.expected_pv(self._index(item), self.prior)

    def expected_kl(self, item: int) -> float:
        return self.estimator.expected_kl(self._index(item), self.prior, self.config.z)

    def likelihood_kl(self, item: int) -> float:
        return self.estimator.likelihood_kl(self._index(item), self.prior)

    def posterior_kl(self, item: int) -> float:
        return self.estimator.posterior_kl(self._index(item), self.prior)

    def select_item(self) -> ItemSelection:
        """Score every unanswered item and choose the next one.

        Returns
        -------
        ItemSelection
            Criterion value of every unanswered item and the number of the
            item to administer next.

        Raises
        ------
        PreconditionError
            If all items have been answered.
        """
        if not self.question_set.nonapplicable_rows:
            raise PreconditionError(
                "select_item should not be called if all items have been answered"
            )
        return ItemSelection.from_selection(self.selector.select_item())

    def look_ahead(self, item: int) -> LookAheadResult:
        """Next item selected after each possible response to an unanswered item.

        The answer state is left exactly as it was, also when selection
        fails.

        Parameters
        ----------
        item : int
            Number of an unanswered item.

        Returns
        -------
        LookAheadResult
            Response options of the item and the item selected after each.

        Raises
        ------
        PreconditionError
            If the item has already been answered, or no other item is left.
        """
        item_idx = self._index(item)
        qs = self.question_set
        if qs.is_answered(item_idx):
            raise PreconditionError(
                "look_ahead should not be called for an answered item"
            )

        result = LookAheadResult(item=item)
        for response in qs.item_model.response_options(item_idx):
            with qs.hypothetical_answer(item_idx, response):
                selection = self.selector.select_item()
            result.response_options.append(response)
            result.next_items.append(selection.item + 1)
        return result

    def _stopping_inputs(self) -> StoppingInputs:
        thresholds = self.config.stopping
        qs = self.question_set
        inputs = StoppingInputs(n_answered=len(qs.applicable_rows))

        if thresholds.is_set(thresholds.se_threshold) or thresholds.needs_gain:
            inputs.standard_error = self.estimator.estimate_se(self.prior)
        if thresholds.needs_information:
            theta_hat = self.estimator.estimate_theta(self.prior)
            inputs.item_information = {
                i: self.estimator.fisher_inf(theta_hat, i) for i in qs.nonapplicable_rows
            }
        if thresholds.needs_gain:
            inputs.expected_pv = {
                i: self.estimator.expected_pv(i, self.prior)
                for i in qs.nonapplicable_rows
            }
        return inputs

    def check_stop_rules(self) -> bool:
        """Whether the configured stopping rules end the session now.

        See :class:`~catirt.cat.stopping.StoppingRuleEvaluator`. Returns
        False when no rule is configured.
        """
        return self.stopping.should_stop(self._stopping_inputs())

    def _response_table(self, responses: Any) -> NDArray[np.float64]:
        table = np.asarray(responses, dtype=np.float64)
        if table.ndim != 2 or table.shape[1] != self.n_items:
            raise PreconditionError(
                f"Response table has shape {table.shape}; expected "
                f"{self.n_items} columns, one per item"
            )
        return table

    def estimate_thetas(
        self, responses: NDArray[np.float64] | pd.DataFrame
    ) -> NDArray[np.float64]:
        """Ability estimate of every row of a response table.

        Parameters
        ----------
        responses : array-like of shape (n_respondents, n_items)
            One row of responses per respondent; NaN for unanswered items.

        Returns
        -------
        ndarray of shape (n_respondents,)
            Ability estimates.

        Raises
        ------
        PreconditionError
            If the number of columns differs from the number of items.
        """
        table = self._response_table(responses)
        thetas = np.empty(table.shape[0])

        with self.question_set.checkpoint():
            for row, values in enumerate(table):
                self.question_set.reset_answers(values.tolist())
                thetas[row] = self.estimate_theta()
        return thetas

    def simulate_all(
        self, responses: NDArray[np.float64] | pd.DataFrame
    ) -> NDArray[np.float64]:
        """Run the adaptive test to completion for every row of a response table.

        Each row starts from the session's current answers. Items are
        selected with the configured criterion and answered from the row
        until the stopping rules end the session or no item is left; the
        final ability estimate is recorded.

        Parameters
        ----------
        responses : array-like of shape (n_respondents, n_items)
            Full response rows.

        Returns
        -------
        ndarray of shape (n_respondents,)
            Final ability estimates.

        Raises
        ------
        PreconditionError
            If no stopping threshold is configured, the table has the wrong
            number of columns, or a row has no response for a selected item.
        """
        if not self.config.stopping.has_threshold:
            raise PreconditionError(
                "simulate_all needs at least one stopping threshold"
            )
        table = self._response_table(responses)
        qs = self.question_set
        thetas = np.empty(table.shape[0])

        for row, values in enumerate(table):
            with qs.checkpoint():
                while qs.nonapplicable_rows and not self.check_stop_rules():
                    item_idx = self.selector.select_item().item
                    response = values[item_idx]
                    if math.isnan(response):
                        raise PreconditionError(
                            f"Row {row} has no response for selected item {item_idx + 1}"
                        )
                    qs.reset_answer(item_idx, response)
                thetas[row] = self.estimate_theta()
                logger.debug(
                    "row %d: %d items administered, theta=%.4f",
                    row,
                    len(qs.applicable_rows),
                    thetas[row],
                )
        return thetas

    def __repr__(self) -> str:
        return (
            f"Cat(model='{self.question_set.model.value}', n_items={self.n_items}, "
            f"answered={len(self.question_set.applicable_rows)}, "
            f"estimator={self.estimator.estimation_type.value}, "
            f"selector={self.selector.name})"
        )
