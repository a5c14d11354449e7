"""
Unit Tests for Labels and Identifiers

Tests for ordinal label generation and stable identifiers.
"""

import pytest

from exam_engine.core.labels import (
    ROMAN_NUMERALS,
    identifier_level,
    next_part_label,
    next_subpart_label,
    normalize_label,
    parse_identifier,
    part_identifier,
    question_identifier,
    resolve_part_label,
    resolve_subpart_label,
    subpart_identifier,
)


class TestSubpartLabels:
    """Tests for next_subpart_label."""

    def test_next_subpart_label_when_first_twelve_then_roman_sequence(self):
        """Indices 0-11 follow the fixed roman table."""
        labels = [next_subpart_label(i) for i in range(12)]

        assert labels == [
            "i", "ii", "iii", "iv", "v", "vi",
            "vii", "viii", "ix", "x", "xi", "xii",
        ]

    def test_next_subpart_label_when_index_twelve_then_arabic(self):
        """Beyond the table the 1-based number is used."""
        assert next_subpart_label(12) == "13"
        assert next_subpart_label(20) == "21"

    def test_next_subpart_label_when_called_twice_then_identical(self):
        """Labels are deterministic."""
        assert [next_subpart_label(i) for i in range(15)] == [next_subpart_label(i) for i in range(15)]

    def test_next_subpart_label_when_negative_then_raises(self):
        with pytest.raises(ValueError):
            next_subpart_label(-1)

    def test_roman_table_has_twelve_entries(self):
        assert len(ROMAN_NUMERALS) == 12


class TestPartLabels:
    """Tests for next_part_label."""

    def test_next_part_label_when_within_alphabet_then_letters(self):
        assert [next_part_label(i) for i in range(4)] == ["a", "b", "c", "d"]
        assert next_part_label(25) == "z"

    def test_next_part_label_when_past_z_then_multi_letter(self):
        """Labels continue spreadsheet-style after z."""
        assert next_part_label(26) == "aa"
        assert next_part_label(27) == "ab"
        assert next_part_label(51) == "az"
        assert next_part_label(52) == "ba"

    def test_next_part_label_when_negative_then_raises(self):
        with pytest.raises(ValueError):
            next_part_label(-3)


class TestLabelResolution:
    """Source labels win over generated ones."""

    @pytest.mark.parametrize("raw,expected", [
        ("(B)", "b"),
        ("Part c", "c"),
        (" (iii) ", "iii"),
        ("a)", "a"),
        ("Subpart ii", "ii"),
    ])
    def test_normalize_label_when_decorated_then_bare(self, raw, expected):
        assert normalize_label(raw) == expected

    def test_normalize_label_when_none_then_empty(self):
        assert normalize_label(None) == ""

    def test_resolve_part_label_when_source_label_then_used(self):
        assert resolve_part_label("(d)", 0) == "d"

    def test_resolve_part_label_when_blank_then_generated(self):
        assert resolve_part_label("  ", 2) == "c"
        assert resolve_part_label(None, 0) == "a"

    def test_resolve_subpart_label_when_missing_then_roman(self):
        assert resolve_subpart_label(None, 1) == "ii"
        assert resolve_subpart_label("", 12) == "13"


class TestIdentifiers:
    """Tests for stable identifiers."""

    def test_question_identifier_when_prefixed_number_then_digits_only(self):
        assert question_identifier("Question 3") == "q_3"
        assert question_identifier(7) == "q_7"

    def test_question_identifier_when_no_digits_then_raises(self):
        with pytest.raises(ValueError, match="Cannot derive"):
            question_identifier("intro")

    def test_part_and_subpart_identifiers_extend_parent(self):
        part_id = part_identifier("q_2", "b")
        sub_id = subpart_identifier(part_id, "iii")

        assert part_id == "q_2-b"
        assert sub_id == "q_2-b-iii"

    def test_parse_identifier_when_subpart_then_all_components(self):
        assert parse_identifier("q_1-a-iii") == {
            "question_number": "1",
            "part_label": "a",
            "subpart_label": "iii",
        }

    def test_parse_identifier_when_malformed_then_empty(self):
        assert parse_identifier("question-1") == {}
        assert parse_identifier("") == {}

    @pytest.mark.parametrize("identifier,level", [
        ("q_4", "question"),
        ("q_4-b", "part"),
        ("q_4-b-ii", "subpart"),
        ("nonsense", None),
    ])
    def test_identifier_level(self, identifier, level):
        assert identifier_level(identifier) == level
