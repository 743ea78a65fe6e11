"""Tests for the question set and its scoped mutation."""

import numpy as np
import pytest

from catirt.config import CatConfig, IRTModel
from catirt.exceptions import ConfigurationError
from catirt.question_set import QuestionSet


def assert_partition(qs):
    """Every item is answered or unanswered, never both."""
    assert sorted(qs.applicable_rows + qs.nonapplicable_rows) == list(range(qs.n_items))
    assert qs.nonapplicable_rows == sorted(qs.nonapplicable_rows)
    for i in range(qs.n_items):
        assert (qs.answers[i] is not None) == (i in qs.applicable_rows)


class TestQuestionSetConstruction:
    """Tests for QuestionSet construction."""

    def test_unanswered_by_default(self, ltm_params):
        """Test that all items start unanswered."""
        qs = QuestionSet(**ltm_params)

        assert qs.answers == [None] * 5
        assert qs.applicable_rows == []
        assert qs.nonapplicable_rows == [0, 1, 2, 3, 4]
        assert qs.item_names == ["Q1", "Q2", "Q3", "Q4", "Q5"]

    def test_initial_answers(self, ltm_question_set):
        """Test the partition built from initial answers."""
        assert ltm_question_set.applicable_rows == [0, 1]
        assert ltm_question_set.nonapplicable_rows == [2, 3, 4]
        assert_partition(ltm_question_set)

    def test_nan_answers(self, ltm_params):
        """Test that NaN marks an unanswered item."""
        qs = QuestionSet(**ltm_params, answers=[np.nan, 1.0, np.nan, 0, None])

        assert qs.answers == [None, 1, None, 0, None]
        assert qs.applicable_rows == [1, 3]

    def test_from_config(self, ltm_config):
        """Test construction from a session configuration."""
        qs = QuestionSet.from_config(ltm_config)

        assert qs.model is IRTModel.LTM
        assert qs.applicable_rows == [0, 1]

    def test_guessing_ignored_for_2pl(self, ltm_params):
        """Test that guessing parameters only apply to the 3PL."""
        qs = QuestionSet(**ltm_params, guessing=[0.2] * 5)

        np.testing.assert_array_equal(qs.guessing, np.zeros(5))

    def test_guessing_used_for_3pl(self, tpm_params):
        """Test that 3PL guessing parameters are kept."""
        qs = QuestionSet(**tpm_params)

        np.testing.assert_allclose(qs.guessing, tpm_params["guessing"])

    def test_invalid_response_code(self, ltm_params):
        """Test that out-of-range initial answers are rejected."""
        with pytest.raises(ConfigurationError, match="0 or 1"):
            QuestionSet(**ltm_params, answers=[2, None, None, None, None])

    def test_unordered_thresholds(self, grm_params):
        """Test that graded thresholds must increase."""
        difficulty = [list(d) for d in grm_params["difficulty"]]
        difficulty[1] = [0.5, -1.0, 2.0]

        with pytest.raises(ConfigurationError, match="strictly increasing"):
            QuestionSet(**{**grm_params, "difficulty": difficulty})

    def test_item_names_length(self, ltm_params):
        """Test that item names must match the bank."""
        with pytest.raises(ConfigurationError, match="item_names"):
            QuestionSet(**ltm_params, item_names=["a"])


class TestResetAnswer:
    """Tests for answering and clearing single items."""

    def test_answer_moves_item(self, ltm_question_set):
        """Test that answering moves the item to the answered rows."""
        qs = ltm_question_set
        qs.reset_answer(3, 1)

        assert qs.applicable_rows == [0, 1, 3]
        assert qs.nonapplicable_rows == [2, 4]
        assert_partition(qs)

    def test_clear_moves_item_back(self, ltm_question_set):
        """Test that clearing keeps the unanswered rows sorted."""
        qs = ltm_question_set
        qs.reset_answer(0, None)

        assert qs.applicable_rows == [1]
        assert qs.nonapplicable_rows == [0, 2, 3, 4]
        assert_partition(qs)

    def test_clear_with_nan(self, ltm_question_set):
        """Test that NaN clears an answer."""
        ltm_question_set.reset_answer(1, float("nan"))

        assert ltm_question_set.answers[1] is None
        assert_partition(ltm_question_set)

    def test_change_answer_keeps_order(self, ltm_question_set):
        """Test that changing an answer keeps the answering order."""
        qs = ltm_question_set
        qs.reset_answer(0, 0)

        assert qs.applicable_rows == [0, 1]
        assert qs.answers[0] == 0

    def test_answering_order(self, ltm_params):
        """Test that answered rows keep the order answers were given."""
        qs = QuestionSet(**ltm_params)
        for item in (4, 0, 2):
            qs.reset_answer(item, 1)

        assert qs.applicable_rows == [4, 0, 2]

    def test_invalid_answers(self, ltm_question_set, grm_params):
        """Test rejected response codes and indices."""
        with pytest.raises(ValueError):
            ltm_question_set.reset_answer(2, 3)

        with pytest.raises(ValueError, match="integers"):
            ltm_question_set.reset_answer(2, 0.5)

        with pytest.raises(IndexError):
            ltm_question_set.reset_answer(5, 1)

        qs = QuestionSet(**grm_params)
        with pytest.raises(ValueError, match="out of range"):
            qs.reset_answer(0, 0)

    def test_reset_answers(self, ltm_question_set):
        """Test replacing the whole answer vector."""
        qs = ltm_question_set
        qs.reset_answers([None, None, 1, None, 0])

        assert qs.applicable_rows == [2, 4]
        assert qs.nonapplicable_rows == [0, 1, 3]
        assert_partition(qs)

    def test_reset_answers_length(self, ltm_question_set):
        """Test that the answer vector must cover every item."""
        with pytest.raises(ValueError, match="expected 5"):
            ltm_question_set.reset_answers([1, 0])


class TestAllExtreme:
    """Tests for the all-extreme answer profile flag."""

    def test_no_answers(self, ltm_params):
        """Test that an empty profile is not extreme."""
        assert not QuestionSet(**ltm_params).all_extreme

    def test_binary(self, ltm_params):
        """Test all-correct, all-incorrect and mixed binary profiles."""
        assert QuestionSet(**ltm_params, answers=[1, 1, None, 1, None]).all_extreme
        assert QuestionSet(**ltm_params, answers=[0, None, 0, None, None]).all_extreme
        assert not QuestionSet(**ltm_params, answers=[1, 0, None, None, None]).all_extreme

    def test_polytomous(self, grm_params):
        """Test extreme and interior graded answers."""
        assert QuestionSet(**grm_params, answers=[4, 4, None, None]).all_extreme
        assert QuestionSet(**grm_params, answers=[1, None, 1, None]).all_extreme
        assert not QuestionSet(**grm_params, answers=[1, 4, None, None]).all_extreme
        assert not QuestionSet(**grm_params, answers=[2, None, None, None]).all_extreme


class TestScopedMutation:
    """Tests for snapshot, checkpoint and hypothetical answers."""

    def test_snapshot_restore(self, ltm_question_set):
        """Test that restore brings back a snapshot exactly."""
        qs = ltm_question_set
        saved = qs.snapshot()
        qs.reset_answers([0, 0, 0, 0, 0])
        qs.restore(saved)

        assert qs.snapshot() == saved

    def test_checkpoint(self, ltm_question_set):
        """Test that a checkpoint restores the answers on exit."""
        qs = ltm_question_set
        before = qs.snapshot()

        with qs.checkpoint():
            qs.reset_answer(0, None)
            qs.reset_answer(4, 1)
            assert qs.applicable_rows == [1, 4]

        assert qs.snapshot() == before

    def test_checkpoint_restores_on_error(self, ltm_question_set):
        """Test that a checkpoint restores the answers when an error escapes."""
        qs = ltm_question_set
        before = qs.snapshot()

        with pytest.raises(RuntimeError, match="boom"):
            with qs.checkpoint():
                qs.reset_answer(2, 1)
                raise RuntimeError("boom")

        assert qs.snapshot() == before
        assert_partition(qs)

    def test_hypothetical_answer(self, ltm_question_set):
        """Test that a hypothetical answer is visible only inside its scope."""
        qs = ltm_question_set

        with qs.hypothetical_answer(3, 0):
            assert qs.answers[3] == 0
            assert 3 in qs.applicable_rows

        assert qs.answers[3] is None
        assert qs.nonapplicable_rows == [2, 3, 4]

    def test_repr(self, ltm_question_set):
        """Test __repr__ method."""
        repr_str = repr(ltm_question_set)

        assert "QuestionSet" in repr_str
        assert "answered=2" in repr_str


def test_from_config_matches_direct(grm_params):
    """Test that both construction paths agree."""
    config = CatConfig(**grm_params, answers=[2, None, 3, None])
    qs = QuestionSet.from_config(config)

    assert qs.answers == [2, None, 3, None]
    assert qs.item_model.n_categories(0) == 4
