"""Tests for CAT result classes."""

import numpy as np
import pandas as pd
from numpy.testing import assert_allclose

from catirt.cat.results import ItemSelection, LookAheadResult, Selection


def make_selection():
    return Selection(
        name="MFI",
        questions=[0, 2, 3],
        question_names=["Q1", "Q3", "Q4"],
        values=np.array([0.4, 0.9, 0.2]),
        item=2,
    )


class TestItemSelection:
    """Tests for ItemSelection."""

    def test_from_selection_numbering(self):
        """Test that indices become 1-based item numbers."""
        result = ItemSelection.from_selection(make_selection())

        assert result.criterion == "MFI"
        assert result.q_number == [1, 3, 4]
        assert result.q_name == ["Q1", "Q3", "Q4"]
        assert result.next_item == 3

    def test_values_copied(self):
        """Test that the result does not share the selection's array."""
        selection = make_selection()
        result = ItemSelection.from_selection(selection)
        selection.values[0] = -1.0

        assert_allclose(result.values, [0.4, 0.9, 0.2])

    def test_estimates(self):
        """Test the criterion values keyed by item number."""
        result = ItemSelection.from_selection(make_selection())

        assert result.estimates == {1: 0.4, 3: 0.9, 4: 0.2}

    def test_to_dataframe(self):
        """Test conversion to DataFrame."""
        df = ItemSelection.from_selection(make_selection()).to_dataframe()

        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ["q_number", "q_name", "MFI"]
        assert len(df) == 3
        assert df["q_number"].tolist() == [1, 3, 4]

    def test_repr(self):
        """Test __repr__ method."""
        repr_str = repr(ItemSelection.from_selection(make_selection()))

        assert "ItemSelection" in repr_str
        assert "next_item=3" in repr_str


class TestLookAheadResult:
    """Tests for LookAheadResult."""

    def test_as_dict(self):
        """Test next items keyed by response option."""
        result = LookAheadResult(item=2, response_options=[1, 2, 3], next_items=[4, 4, 5])

        assert result.as_dict() == {1: 4, 2: 4, 3: 5}

    def test_empty(self):
        """Test a result with no options yet."""
        result = LookAheadResult(item=1)

        assert result.as_dict() == {}
        assert result.to_dataframe().empty

    def test_to_dataframe(self):
        """Test conversion to DataFrame."""
        df = LookAheadResult(item=3, response_options=[0, 1], next_items=[5, 4]).to_dataframe()

        assert list(df.columns) == ["response_option", "next_item"]
        assert df["next_item"].tolist() == [5, 4]

    def test_repr(self):
        """Test __repr__ method."""
        assert "item=3" in repr(LookAheadResult(item=3))
