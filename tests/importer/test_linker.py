"""
Unit Tests for the Alternative-Answer Linker

Tests for grouping raw answers into AnswerGroups.
"""

import pytest

from exam_engine.core.errors import TransformError
from exam_engine.core.models import Cardinality
from exam_engine.importer.diagnostics import DiagnosticsCollector
from exam_engine.importer.linker import (
    cardinality_for,
    check_symmetry,
    link_alternatives,
    link_with_warnings,
)


class TestCardinalityMapping:
    """Tests for cardinality_for."""

    @pytest.mark.parametrize("raw,expected", [
        ("one_required", (Cardinality.ONE_REQUIRED, 1)),
        ("any one from", (Cardinality.ONE_REQUIRED, 1)),
        ("both_required", (Cardinality.ALL_REQUIRED, 1)),
        ("structure_function_pair", (Cardinality.ALL_REQUIRED, 1)),
        ("Any 2 from", (Cardinality.ANY_OF, 2)),
        ("three-required", (Cardinality.ANY_OF, 3)),
    ])
    def test_cardinality_for_when_known_type_then_mapped(self, raw, expected):
        assert cardinality_for(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "standalone", "mystery"])
    def test_cardinality_for_when_standalone_or_unknown_then_none(self, raw):
        assert cardinality_for(raw) is None


class TestLinkAlternatives:
    """Tests for link_alternatives grouping."""

    def test_link_when_no_metadata_then_standalone_groups(self):
        groups = link_alternatives([{"answer": "oxygen"}, {"answer": "nitrogen", "marks": 2}])

        assert [g.cardinality for g in groups] == [Cardinality.STANDALONE, Cardinality.STANDALONE]
        assert [g.indices for g in groups] == [(1,), (2,)]
        assert groups[1].alternatives[0].marks == 2

    def test_link_when_one_required_colours_then_single_group(self, colour_answers):
        groups = link_alternatives(colour_answers)

        assert len(groups) == 1
        group = groups[0]
        assert group.cardinality == Cardinality.ONE_REQUIRED
        assert group.indices == (1, 2, 3, 4)
        assert group.total_marks == 1

    def test_link_when_grouped_then_links_symmetric(self, colour_answers):
        group = link_alternatives(colour_answers)[0]

        for alt in group.alternatives:
            assert set(alt.linked_alternatives) == set(group.indices) - {alt.index}

    def test_link_when_consecutive_same_type_then_grouped(self):
        raw = [
            {"answer": "nucleus", "alternative_type": "all_required"},
            {"answer": "cell membrane", "alternative_type": "all_required"},
            {"answer": "extra"},
        ]
        groups = link_alternatives(raw)

        assert [g.cardinality for g in groups] == [Cardinality.ALL_REQUIRED, Cardinality.STANDALONE]
        assert groups[0].indices == (1, 2)

    def test_link_when_linked_without_type_then_all_required(self):
        raw = [
            {"answer": "a", "linked_alternatives": [2]},
            {"answer": "b", "linked_alternatives": [1]},
        ]
        groups, warnings = link_with_warnings(raw)

        assert groups[0].cardinality == Cardinality.ALL_REQUIRED
        assert warnings == []

    def test_link_when_any_two_from_then_required_count(self):
        raw = [
            {"answer": a, "alternative_id": i, "alternative_type": "any_2_from"}
            for i, a in enumerate(["heat", "light", "sound"], 1)
        ]
        group = link_alternatives(raw)[0]

        assert group.cardinality == Cardinality.ANY_OF
        assert group.required_count == 2
        assert group.total_marks == 2

    def test_link_when_required_count_exceeds_group_then_clamped_with_warning(self):
        raw = [
            {"answer": "a", "alternative_type": "three_required"},
            {"answer": "b", "alternative_type": "three_required"},
        ]
        groups, warnings = link_with_warnings(raw)

        assert groups[0].required_count == 2
        assert any("requires 3 answers but has 2" in w for w in warnings)

    def test_link_when_one_sided_link_then_grouped_with_warning(self):
        """An asymmetric link still groups, and is reported."""
        raw = [
            {"answer": "a", "alternative_id": 1, "linked_alternatives": [2], "alternative_type": "one_required"},
            {"answer": "b", "alternative_id": 2, "alternative_type": "one_required"},
        ]
        collector = DiagnosticsCollector()
        groups = link_alternatives(raw, location="Question 4, Part 1", diagnostics=collector,
                                   question_number="4")

        assert len(groups) == 1
        assert groups[0].alternatives[1].linked_alternatives == (1,)
        issues = collector.issues
        assert len(issues) == 1
        assert issues[0].issue_type == "linking_warning"
        assert issues[0].location == "Question 4, Part 1"
        assert issues[0].message == "Answer 1 links to 2 but 2 does not link back"
        assert issues[0].question_number == "4"

    def test_link_when_unknown_target_then_warning(self):
        raw = [{"answer": "a", "alternative_id": 1, "linked_alternatives": [9]}]
        groups, warnings = link_with_warnings(raw)

        assert groups[0].cardinality == Cardinality.STANDALONE
        assert warnings == ["Answer 1 links to unknown alternative 9"]

    def test_link_when_duplicate_ids_then_positions_used(self):
        raw = [
            {"answer": "a", "alternative_id": 1},
            {"answer": "b", "alternative_id": 1},
        ]
        groups, warnings = link_with_warnings(raw)

        assert groups[0].indices == (1, 2)
        assert "using positions" in warnings[0]

    def test_link_when_source_ids_then_indices_preserved(self):
        raw = [
            {"answer": "a", "alternative_id": 5, "linked_alternatives": [7], "alternative_type": "one_required"},
            {"answer": "b", "alternative_id": 7, "linked_alternatives": [5], "alternative_type": "one_required"},
        ]
        group = link_alternatives(raw)[0]

        assert group.indices == (5, 7)

    def test_link_when_conflicting_types_then_first_used(self):
        raw = [
            {"answer": "a", "linked_alternatives": [2], "alternative_type": "one_required"},
            {"answer": "b", "linked_alternatives": [1], "alternative_type": "all_required"},
        ]
        groups, warnings = link_with_warnings(raw)

        assert groups[0].cardinality == Cardinality.ONE_REQUIRED
        assert any("conflicting" in w for w in warnings)

    def test_link_when_answer_fields_then_copied(self):
        raw = [{
            "answer": " 9.8 ",
            "marks": "2",
            "unit": "m/s2",
            "acceptable_variations": ["9.81", ""],
            "accepts_equivalent_phrasing": True,
            "working": "g = 9.8",
            "context": {"label": "row 1", "value": 3},
        }]
        alt = link_alternatives(raw)[0].alternatives[0]

        assert alt.text == "9.8"
        assert alt.marks == 2
        assert alt.unit == "m/s2"
        assert alt.variations == ("9.81",)
        assert alt.working == "g = 9.8"
        assert alt.context.label == "row 1"
        assert alt.context.value == "3"

    def test_link_when_default_marks_then_used(self):
        alt = link_alternatives([{"answer": "x"}], default_marks=3)[0].alternatives[0]

        assert alt.marks == 3

    def test_link_when_case_sensitive_member_then_group_case_sensitive(self):
        groups = link_alternatives([{"answer": "NaCl", "case_sensitive": True}])

        assert groups[0].case_sensitive

    def test_link_when_empty_then_no_groups(self):
        assert link_alternatives([]) == ()

    @pytest.mark.parametrize("raw,message", [
        ([{"answer": "a"}, "b"], "Answer 2 is not an object"),
        ([{"answer": "  "}], "Answer 1 has empty answer text"),
        ([{"answer": "a", "marks": "lots"}], "Answer 1 has invalid marks"),
        ([{"answer": "a", "acceptable_variations": 5}], "Answer 1 has invalid acceptable_variations"),
        ([{"answer": "a", "acceptable_variations": True}], "Answer 1 has invalid acceptable_variations"),
    ])
    def test_link_when_bad_answer_then_transform_error(self, raw, message):
        with pytest.raises(TransformError, match=message):
            link_alternatives(raw)

    def test_link_when_variations_is_string_then_single_variation(self):
        raw = [{"answer": "water", "accepts_equivalent_phrasing": True, "acceptable_variations": "H2O"}]

        alternative = link_alternatives(raw)[0].alternatives[0]
        assert alternative.variations == ("H2O",)

    def test_link_when_variations_missing_or_null_then_empty(self):
        groups = link_alternatives([{"answer": "a"}, {"answer": "b", "acceptable_variations": None}])

        assert [g.alternatives[0].variations for g in groups] == [(), ()]


class TestCheckSymmetry:
    """Tests for check_symmetry."""

    def test_check_symmetry_when_symmetric_then_empty(self, colour_answers):
        assert check_symmetry(colour_answers) == []

    def test_check_symmetry_when_one_sided_then_message(self):
        raw = [
            {"answer": "a", "linked_alternatives": [2]},
            {"answer": "b"},
        ]

        assert check_symmetry(raw) == ["Answer 1 links to 2 but 2 does not link back"]
