"""CAT result classes for item selection and look-ahead."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    import pandas as pd


@dataclass
class Selection:
    """Scores of every unanswered item under one selection criterion.

    Item indices are 0-based.

    Attributes
    ----------
    name : str
        Name of the criterion (e.g. "EPV", "MFI").
    questions : list[int]
        Indices of the unanswered items, ascending.
    question_names : list[str]
        Names of those items.
    values : NDArray[np.float64]
        Criterion value of each item.
    item : int
        Index of the chosen item.
    """

    name: str
    questions: list[int]
    question_names: list[str]
    values: NDArray[np.float64]
    item: int

    def __repr__(self) -> str:
        return (
            f"Selection(name='{self.name}', n_candidates={len(self.questions)}, "
            f"item={self.item})"
        )


@dataclass
class ItemSelection:
    """Result of :meth:`Cat.select_item`, numbered from 1.

    Attributes
    ----------
    criterion : str
        Name of the selection criterion.
    q_number : list[int]
        1-based numbers of the unanswered items.
    q_name : list[str]
        Names of the unanswered items.
    values : NDArray[np.float64]
        Criterion value of each unanswered item.
    next_item : int
        1-based number of the item to administer next.
    """

    criterion: str
    q_number: list[int]
    q_name: list[str]
    values: NDArray[np.float64]
    next_item: int

    @classmethod
    def from_selection(cls, selection: Selection) -> ItemSelection:
        return cls(
            criterion=selection.name,
            q_number=[q + 1 for q in selection.questions],
            q_name=list(selection.question_names),
            values=np.asarray(selection.values, dtype=np.float64).copy(),
            next_item=selection.item + 1,
        )

    @property
    def estimates(self) -> dict[int, float]:
        """Criterion value keyed by 1-based item number."""
        return dict(zip(self.q_number, self.values.tolist()))

    def to_dataframe(self) -> pd.DataFrame:
        """Convert the scoring table to a pandas DataFrame.

        Returns
        -------
        pandas.DataFrame
            Columns ``q_number``, ``q_name`` and one named after the criterion.
        """
        import pandas as pd

        return pd.DataFrame(
            {
                "q_number": self.q_number,
                "q_name": self.q_name,
                self.criterion: self.values,
            }
        )

    def __repr__(self) -> str:
        return (
            f"ItemSelection(criterion='{self.criterion}', "
            f"n_candidates={len(self.q_number)}, next_item={self.next_item})"
        )


@dataclass
class LookAheadResult:
    """Next item that would be selected after each response to an item.

    Attributes
    ----------
    item : int
        1-based number of the item looked ahead on.
    response_options : list[int]
        Every response option of that item.
    next_items : list[int]
        1-based number of the item selected after each option.
    """

    item: int
    response_options: list[int] = field(default_factory=list)
    next_items: list[int] = field(default_factory=list)

    def as_dict(self) -> dict[int, int]:
        """Next item keyed by response option."""
        return dict(zip(self.response_options, self.next_items))

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to a pandas DataFrame with columns ``response_option``, ``next_item``."""
        import pandas as pd

        return pd.DataFrame(
            {
                "response_option": self.response_options,
                "next_item": self.next_items,
            }
        )

    def __repr__(self) -> str:
        return f"LookAheadResult(item={self.item}, next_items={self.as_dict()})"
