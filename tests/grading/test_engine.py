"""
Unit Tests for the Grading Engine

Tests for grade dispatch, grade_node, grade_question and grade_batch.
"""

import pytest

from exam_engine.core.models import (
    AnswerAlternative,
    AnswerGroup,
    Cardinality,
    FeedbackStatus,
    McqOption,
    Subpart,
    TableCell,
    TableTemplate,
)
from exam_engine.grading.config import GradingConfig
from exam_engine.grading.engine import grade, grade_batch, grade_node, grade_question
from exam_engine.importer.transformer import transform


def _group(text, index=1, marks=1):
    return AnswerGroup(Cardinality.STANDALONE, (AnswerAlternative(index=index, text=text, marks=marks),))


@pytest.fixture
def formula_table() -> TableTemplate:
    return TableTemplate(
        rows=2, columns=2,
        cells=(TableCell(0, 1, expected_answer="H2O"), TableCell(1, 1, expected_answer="CO2")),
    )


@pytest.fixture
def plant_question(complex_raw_question):
    return transform(complex_raw_question, 0)


class TestGradeDispatch:
    """Tests for grade()."""

    def test_grade_when_table_then_cells_graded(self, formula_table):
        result = grade(formula_table, {"0-1": "h2o"})

        assert (result.achieved_marks, result.total_marks) == (1, 2)

    def test_grade_when_single_group_then_wrapped(self):
        result = grade(_group("oxygen"), "Oxygen")

        assert result.is_full_marks
        assert result.feedback[0].unit_id == "1.1"

    def test_grade_when_group_sequence_then_groups_graded(self):
        result = grade([_group("oxygen", 1), _group("nitrogen", 2)], "nitrogen")

        assert (result.achieved_marks, result.total_marks) == (1, 2)

    def test_grade_when_options_then_choice(self):
        options = [McqOption("A", "x"), McqOption("B", "y", True)]
        result = grade(options, "b", marks=2)

        assert (result.achieved_marks, result.total_marks) == (2, 2)

    def test_grade_when_question_then_question_graded(self, plant_question):
        result = grade(plant_question, {"q_3-a": "violet"})

        assert result.total_marks == 4

    def test_grade_when_empty_sequence_then_empty_result(self):
        result = grade([], "anything")

        assert (result.achieved_marks, result.total_marks) == (0, 0)

    @pytest.mark.parametrize("expected", [["oxygen"], [_group("a"), McqOption("A", "x")], [None]])
    def test_grade_when_unknown_expected_then_type_error(self, expected):
        with pytest.raises(TypeError, match="Cannot grade against"):
            grade(expected, "oxygen")

    @pytest.mark.parametrize("submitted", [None, 42, {"x": 1}, ["", "  "]])
    def test_grade_when_odd_submission_then_no_error(self, submitted):
        result = grade(_group("oxygen"), submitted)

        assert result.achieved_marks == 0


class TestGradeNode:
    """Tests for grade_node."""

    def test_grade_node_when_options_then_worth_node_marks(self):
        node = Subpart(
            id="q_1-a-i", label="i", text="Pick one.", marks=2,
            options=(McqOption("A", "x", True), McqOption("B", "y")),
        )

        assert grade_node(node, "A").achieved_marks == 2

    def test_grade_node_when_table_and_groups_then_mapping_split(self, formula_table):
        node = Subpart(
            id="q_1-a-i", label="i", text="Complete the table and name the gas.", marks=3,
            answer_groups=(_group("carbon dioxide"),), table_template=formula_table,
        )
        result = grade_node(node, {"0-1": "H2O", "1-1": "CO2", "text": "carbon dioxide"})

        assert (result.achieved_marks, result.total_marks) == (3, 3)

    def test_grade_node_when_groups_given_mapping_then_unanswered(self):
        node = Subpart(id="q_1-a-i", label="i", text="", marks=1, answer_groups=(_group("oxygen"),))
        result = grade_node(node, {"text": "oxygen"})

        assert result.achieved_marks == 0
        assert result.feedback[0].status == FeedbackStatus.UNANSWERED


class TestGradeQuestion:
    """Tests for grade_question."""

    def test_grade_question_when_half_answered_then_half_marks(self, plant_question):
        result = grade_question(plant_question, {"q_3-a": "violet", "q_3-b-i": "mitochondria"})

        assert (result.achieved_marks, result.total_marks) == (2, 4)
        assert result.percentage == 50.0

    def test_grade_question_when_graded_then_unit_ids_prefixed(self, plant_question):
        result = grade_question(plant_question, {"q_3-b-ii": "fully permeable\nmade of cellulose"})

        ids = [f.unit_id for f in result.feedback]
        assert ids == ["q_3-a:1.1", "q_3-a:1.2", "q_3-a:1.3", "q_3-a:1.4", "q_3-b-i:1.1", "q_3-b-ii:1.1", "q_3-b-ii:2.2"]
        assert result.achieved_marks == 2

    def test_grade_question_when_contextual_nodes_then_skipped(self, plant_question):
        result = grade_question(plant_question, {"q_3": "anything", "q_3-b": "anything"})

        assert not any(f.unit_id.startswith(("q_3:", "q_3-b:")) for f in result.feedback)
        assert result.achieved_marks == 0

    def test_grade_question_when_not_mapping_then_all_unanswered(self, plant_question):
        result = grade_question(plant_question, "violet")

        assert result.total_marks == plant_question.answer_marks
        assert {f.status for f in result.feedback} == {FeedbackStatus.UNANSWERED}

    def test_grade_question_when_simple_choice_then_graded(self):
        raw = {"question_number": 5, "type": "mcq", "marks": 1, "question_text": "Pick",
               "options": [{"label": "A", "text": "x", "is_correct": True}, {"label": "B", "text": "y"}]}
        question = transform(raw, 0)

        result = grade_question(question, {"q_5": "A"})
        assert result.is_full_marks
        assert result.feedback[0].unit_id == "q_5:choice"


class TestGradeBatch:
    """Tests for grade_batch."""

    def test_grade_batch_when_parallel_then_input_order(self):
        pairs = [(_group(f"answer{i}"), f"answer{i}" if i % 2 else "wrong") for i in range(8)]
        results = grade_batch(pairs, max_workers=4)

        assert [r.achieved_marks for r in results] == [i % 2 for i in range(8)]

    def test_grade_batch_when_sequential_then_same_results(self):
        pairs = [(_group("oxygen"), "oxygen"), (_group("oxygen"), "")]

        parallel = grade_batch(pairs, max_workers=2)
        sequential = grade_batch(pairs, config=GradingConfig(max_workers=1))
        assert parallel == sequential

    def test_grade_batch_when_empty_then_empty(self):
        assert grade_batch([]) == []
