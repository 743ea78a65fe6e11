"""Item bank and answer state of one respondent."""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import numpy as np

from catirt.config import CatConfig, IRTModel
from catirt.exceptions import ConfigurationError
from catirt.models import ItemResponseModel, create_item_model


@dataclass(frozen=True)
class AnswerSnapshot:
    """Saved answer state, restored verbatim by :meth:`QuestionSet.restore`."""

    answers: tuple[int | None, ...]
    applicable_rows: tuple[int, ...]
    nonapplicable_rows: tuple[int, ...]


def _normalize_answer(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, (float, np.floating)):
        if math.isnan(value):
            return None
        if not float(value).is_integer():
            raise ValueError(f"Response codes must be integers, got {value}")
    return int(value)


class QuestionSet:
    """Calibrated item bank plus one respondent's answers.

    Item indices are 0-based. Every index is either answered (in
    :attr:`applicable_rows`, in the order the answers were given) or
    unanswered (in :attr:`nonapplicable_rows`, ascending), never both; an
    item's entry in :attr:`answers` is None exactly when it is unanswered.

    Parameters
    ----------
    model : IRTModel | str
        IRT family of the bank.
    discrimination : sequence of float
        Discrimination of each item.
    difficulty : sequence
        Difficulty (binary) or ordered thresholds (polytomous) of each item.
    guessing : sequence of float, optional
        Guessing parameters ("tpm" only).
    answers : sequence, optional
        Initial response of each item; None or NaN for unanswered.
    item_names : sequence of str, optional
        Item names. Default is "Q1", "Q2", ...

    Raises
    ------
    ConfigurationError
        If the item parameters or the answers are malformed.
    """

    def __init__(
        self,
        model: IRTModel | str,
        discrimination: Sequence[float],
        difficulty: Sequence[Any],
        guessing: Sequence[float] | None = None,
        answers: Sequence[Any] | None = None,
        item_names: Sequence[str] | None = None,
    ) -> None:
        self.model = IRTModel.parse(model)
        discrimination_arr = np.asarray(discrimination, dtype=np.float64).ravel()
        difficulty_arrs = [
            np.atleast_1d(np.asarray(d, dtype=np.float64)) for d in difficulty
        ]
        guessing_arr = (
            np.asarray(guessing, dtype=np.float64).ravel()
            if guessing is not None and self.model is IRTModel.TPM
            else None
        )

        try:
            self.item_model: ItemResponseModel = create_item_model(
                self.model, discrimination_arr, difficulty_arrs, guessing_arr
            )
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        n_items = self.item_model.n_items
        if item_names is None:
            item_names = [f"Q{i + 1}" for i in range(n_items)]
        if len(item_names) != n_items:
            raise ConfigurationError(
                f"Length of item_names ({len(item_names)}) must match n_items ({n_items})"
            )
        self.item_names = list(item_names)

        self.answers: list[int | None] = [None] * n_items
        self.applicable_rows: list[int] = []
        self.nonapplicable_rows: list[int] = list(range(n_items))

        if answers is not None:
            try:
                self.reset_answers(answers)
            except ValueError as exc:
                raise ConfigurationError(str(exc)) from exc

    @classmethod
    def from_config(cls, config: CatConfig) -> QuestionSet:
        return cls(
            model=config.model,
            discrimination=config.discrimination,
            difficulty=config.difficulty,
            guessing=config.guessing,
            answers=config.answers,
            item_names=config.item_names,
        )

    @property
    def n_items(self) -> int:
        return self.item_model.n_items

    @property
    def discrimination(self) -> np.ndarray:
        return self.item_model.discrimination

    @property
    def difficulty(self) -> list[np.ndarray]:
        return self.item_model.difficulty

    @property
    def guessing(self) -> np.ndarray:
        return self.item_model.guessing

    @property
    def all_extreme(self) -> bool:
        """Whether every answer sits at the same end of its response scale.

        True when at least one item is answered and every answered item got
        its lowest category, or every answered item got its highest category.
        The likelihood then has no interior maximum.
        """
        if not self.applicable_rows:
            return False
        sides = {
            self.item_model.extreme_side(i, self.answers[i]) for i in self.applicable_rows
        }
        return sides == {-1} or sides == {1}

    def is_answered(self, item_idx: int) -> bool:
        return self.answers[item_idx] is not None

    def _check_index(self, item_idx: int) -> None:
        if not 0 <= item_idx < self.n_items:
            raise IndexError(f"Item index {item_idx} out of range [0, {self.n_items})")

    def _check_response(self, item_idx: int, response: int) -> None:
        # raises ValueError for codes outside the item's categories
        self.item_model.category_index(item_idx, response)

    def reset_answer(self, item_idx: int, value: Any) -> None:
        """Set (or clear, with None / NaN) the answer to one item."""
        self._check_index(item_idx)
        response = _normalize_answer(value)
        if response is not None:
            self._check_response(item_idx, response)

        was_answered = self.answers[item_idx] is not None
        self.answers[item_idx] = response

        if response is not None and not was_answered:
            self.nonapplicable_rows.remove(item_idx)
            self.applicable_rows.append(item_idx)
        elif response is None and was_answered:
            self.applicable_rows.remove(item_idx)
            self.nonapplicable_rows.append(item_idx)
            self.nonapplicable_rows.sort()

    def reset_answers(self, values: Sequence[Any]) -> None:
        """Replace the whole answer vector."""
        values = list(values)
        if len(values) != self.n_items:
            raise ValueError(
                f"answers has {len(values)} items, expected {self.n_items}"
            )
        answers = [_normalize_answer(v) for v in values]
        for i, response in enumerate(answers):
            if response is not None:
                self._check_response(i, response)

        self.answers = answers
        self.applicable_rows = [i for i, r in enumerate(answers) if r is not None]
        self.nonapplicable_rows = [i for i, r in enumerate(answers) if r is None]

    def snapshot(self) -> AnswerSnapshot:
        return AnswerSnapshot(
            answers=tuple(self.answers),
            applicable_rows=tuple(self.applicable_rows),
            nonapplicable_rows=tuple(self.nonapplicable_rows),
        )

    def restore(self, snapshot: AnswerSnapshot) -> None:
        self.answers = list(snapshot.answers)
        self.applicable_rows = list(snapshot.applicable_rows)
        self.nonapplicable_rows = list(snapshot.nonapplicable_rows)

    @contextmanager
    def checkpoint(self) -> Iterator[AnswerSnapshot]:
        """Restore the current answer state on exit, even on error.

        Examples
        --------
        >>> with question_set.checkpoint():
        ...     question_set.reset_answer(3, 1)
        ...     theta = estimator.estimate_theta(prior)
        """
        saved = self.snapshot()
        try:
            yield saved
        finally:
            self.restore(saved)

    @contextmanager
    def hypothetical_answer(self, item_idx: int, response: int) -> Iterator[None]:
        """Temporarily record ``response`` for an item."""
        with self.checkpoint():
            self.reset_answer(item_idx, response)
            yield

    def __repr__(self) -> str:
        return (
            f"QuestionSet(model='{self.model.value}', n_items={self.n_items}, "
            f"answered={len(self.applicable_rows)})"
        )
