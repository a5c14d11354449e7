"""
Unit Tests for the Import Pipeline

Tests for import_question, import_questions and import_paper.
"""

import copy
import json
import pytest
from pathlib import Path

from exam_engine.core.errors import StructuralError, TransformError
from exam_engine.importer import pipeline
from exam_engine.importer.config import ImportConfig
from exam_engine.importer.diagnostics import DiagnosticsCollector
from exam_engine.importer.file_locking import locked_read_jsonl
from exam_engine.importer.pipeline import import_paper, import_question, import_questions


@pytest.fixture
def malformed_question() -> dict:
    """Complex question whose parts are broken in two ways."""
    return {"question_number": "2", "type": "complex", "marks": 2, "parts": [{}, "x"]}


@pytest.fixture
def unanswerable_question() -> dict:
    """Structurally valid but expects an answer it does not carry."""
    return {"question_number": "9", "marks": 1, "question_description": "Name the gas."}


def _numbered(raw: dict, number: int) -> dict:
    q = copy.deepcopy(raw)
    q["question_number"] = str(number)
    return q


class TestImportQuestion:
    """Tests for import_question."""

    def test_import_question_when_valid_then_question(self, simple_raw_question):
        assert import_question(simple_raw_question, 0).id == "q_1"

    def test_import_question_when_malformed_then_all_errors_reported(self, malformed_question):
        with pytest.raises(StructuralError) as excinfo:
            import_question(malformed_question, 1)

        assert excinfo.value.errors == ["Part 1 is missing marks", "Part 2 is invalid"]
        assert excinfo.value.question_number == "2"
        assert str(excinfo.value) == "Question 2: Part 1 is missing marks; Part 2 is invalid"

    def test_import_question_when_validation_off_then_transform_error(self, malformed_question):
        with pytest.raises(TransformError):
            import_question(malformed_question, 1, config=ImportConfig(validate_first=False))


class TestImportQuestions:
    """Tests for batch import."""

    def test_import_questions_when_middle_malformed_then_others_imported(
        self, simple_raw_question, malformed_question
    ):
        batch = [_numbered(simple_raw_question, 1), malformed_question, _numbered(simple_raw_question, 3)]
        result = import_questions(batch, max_workers=1)

        assert [q.id for q in result.questions] == ["q_1", "q_3"]
        assert result.failed_count == 1
        failure = result.failures[0]
        assert failure.index == 1
        assert failure.question_number == "2"
        assert failure.errors == ("Part 1 is missing marks", "Part 2 is invalid")
        assert not result.ok

    def test_import_questions_when_transform_fails_then_failure_message(self, unanswerable_question):
        result = import_questions([unanswerable_question])

        assert result.imported_count == 0
        assert result.failures[0].message == (
            "Question 9: Question has no correct answers, options or table"
        )

    def test_import_questions_when_parallel_then_source_order(self, simple_raw_question):
        batch = [_numbered(simple_raw_question, n) for n in range(1, 7)]
        result = import_questions(batch, max_workers=4)

        assert [q.id for q in result.questions] == [f"q_{n}" for n in range(1, 7)]
        assert result.ok

    def test_import_questions_when_duplicate_number_then_second_fails(self, simple_raw_question):
        result = import_questions([simple_raw_question, copy.deepcopy(simple_raw_question)])

        assert result.imported_count == 1
        assert result.failures[0].index == 1
        assert result.failures[0].message == "Question 1: duplicate question identifier q_1"

    def test_import_questions_when_failures_then_recorded_in_diagnostics(
        self, simple_raw_question, malformed_question
    ):
        collector = DiagnosticsCollector()
        import_questions([simple_raw_question, malformed_question], diagnostics=collector)

        failures = [i for i in collector.issues if i.issue_type == "import_failure"]
        assert [f.question_number for f in failures] == ["2"]

    def test_import_questions_when_diagnostics_disabled_then_collector_untouched(self, malformed_question):
        collector = DiagnosticsCollector()
        import_questions(
            [malformed_question], config=ImportConfig(run_diagnostics=False), diagnostics=collector,
        )

        assert collector.issue_count == 0

    @pytest.mark.parametrize("validate_first", [True, False])
    def test_import_questions_when_answer_field_mistyped_then_others_imported(
        self, simple_raw_question, validate_first
    ):
        bad = _numbered(simple_raw_question, 2)
        bad["correct_answers"][0]["acceptable_variations"] = 5
        batch = [_numbered(simple_raw_question, 1), bad, _numbered(simple_raw_question, 3)]

        result = import_questions(batch, config=ImportConfig(validate_first=validate_first), max_workers=1)

        assert [q.id for q in result.questions] == ["q_1", "q_3"]
        assert [f.question_number for f in result.failures] == ["2"]
        assert "acceptable_variations" in result.failures[0].message

    def test_import_questions_when_unexpected_error_then_recorded_as_failure(
        self, simple_raw_question, monkeypatch
    ):
        real_transform = pipeline.transform

        def flaky_transform(raw, index, **kwargs):
            if index == 1:
                raise RuntimeError("disk on fire")
            return real_transform(raw, index, **kwargs)

        monkeypatch.setattr(pipeline, "transform", flaky_transform)
        collector = DiagnosticsCollector()
        batch = [_numbered(simple_raw_question, n) for n in (1, 2, 3)]

        result = import_questions(batch, max_workers=2, diagnostics=collector)

        assert [q.id for q in result.questions] == ["q_1", "q_3"]
        assert result.failures[0].question_number == "2"
        assert result.failures[0].message == "Question 2: unexpected RuntimeError: disk on fire"
        assert [i.question_number for i in collector.issues if i.issue_type == "import_failure"] == ["2"]

    def test_import_questions_when_empty_then_empty_result(self):
        result = import_questions([])

        assert result.questions == ()
        assert result.ok


class TestImportPaper:
    """Tests for import_paper."""

    def test_import_paper_when_report_path_then_report_written(
        self, tmp_path: Path, complex_raw_question, unanswerable_question
    ):
        paper = tmp_path / "paper.json"
        paper.write_text(json.dumps({"questions": [complex_raw_question, unanswerable_question]}))
        report = tmp_path / "reports" / "import.jsonl"

        result = import_paper(paper, report_path=report)

        assert [q.id for q in result.questions] == ["q_3"]
        records = locked_read_jsonl(report)
        assert any(
            r["issue_type"] == "import_failure" and r["question_number"] == "9" for r in records
        )
        assert all("generated_at" in r for r in records)

    def test_import_paper_when_no_report_path_then_nothing_written(self, tmp_path: Path, simple_raw_question):
        paper = tmp_path / "paper.json"
        paper.write_text(json.dumps([simple_raw_question]))

        result = import_paper(paper)

        assert result.imported_count == 1
        assert sorted(p.name for p in tmp_path.iterdir()) == ["paper.json"]
