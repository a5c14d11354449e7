"""
Unit Tests for Free-Text Grading

Tests for split_responses, match_alternative and grade_groups.
"""

import pytest

from exam_engine.core.models import AnswerAlternative, AnswerGroup, Cardinality, FeedbackStatus
from exam_engine.grading.config import GradingConfig
from exam_engine.grading.text import grade_groups, match_alternative, split_responses
from exam_engine.importer.linker import link_alternatives


def _standalone(text, index=1, marks=1, **kwargs):
    return AnswerGroup(Cardinality.STANDALONE, (AnswerAlternative(index=index, text=text, marks=marks, **kwargs),))


def _linked(cardinality, texts, required_count=1):
    indices = list(range(1, len(texts) + 1))
    alternatives = tuple(
        AnswerAlternative(index=i, text=t, linked_alternatives=tuple(j for j in indices if j != i))
        for i, t in zip(indices, texts)
    )
    return AnswerGroup(cardinality, alternatives, required_count=required_count)


class TestSplitResponses:
    """Tests for split_responses."""

    def test_split_when_newlines_and_semicolons_then_pieces(self):
        assert split_responses("purple; violet\n\n lilac ") == ["purple", "violet", "lilac"]

    def test_split_when_sequence_then_items(self):
        assert split_responses(["a", " ", 3, None, True]) == ["a", "3"]

    def test_split_when_number_then_single_response(self):
        assert split_responses(9.8) == ["9.8"]

    @pytest.mark.parametrize("submitted", [None, "", "   ", {"a": 1}, object()])
    def test_split_when_nothing_usable_then_empty(self, submitted):
        assert split_responses(submitted) == []

    def test_split_when_custom_pattern_then_used(self):
        config = GradingConfig(split_pattern=r"\s*,\s*")

        assert split_responses("heat, light", config) == ["heat", "light"]


class TestMatchAlternative:
    """Tests for match_alternative."""

    def test_match_when_case_differs_then_exact(self):
        assert match_alternative(AnswerAlternative(1, "Oxygen"), "  oxygen ") == "exact"

    def test_match_when_case_sensitive_then_case_matters(self):
        alt = AnswerAlternative(1, "NaCl")

        assert match_alternative(alt, "nacl", case_sensitive=True) is None
        assert match_alternative(alt, "NaCl", case_sensitive=True) == "exact"

    def test_match_when_subscript_digits_then_exact(self):
        assert match_alternative(AnswerAlternative(1, "H2O"), "H₂O") == "exact"

    def test_match_when_variation_with_phrasing_then_variation(self):
        alt = AnswerAlternative(1, "H2O", accepts_equivalent_phrasing=True, variations=("water",))

        assert match_alternative(alt, "Water") == "variation"

    def test_match_when_variation_without_phrasing_then_no_match(self):
        alt = AnswerAlternative(1, "H2O", variations=("water",))

        assert match_alternative(alt, "water") is None

    def test_match_when_punctuation_differs_with_phrasing_then_phrasing(self):
        alt = AnswerAlternative(1, "carbon dioxide, water", accepts_equivalent_phrasing=True)

        assert match_alternative(alt, "carbon dioxide water") == "phrasing"

    def test_match_when_reversed_with_reverse_argument_then_reverse(self):
        alt = AnswerAlternative(1, "heat is lost", accepts_reverse_argument=True)

        assert match_alternative(alt, "lost is heat") == "reverse argument"
        assert match_alternative(AnswerAlternative(1, "heat is lost"), "lost is heat") is None

    @pytest.mark.parametrize("response", ["0.5 kilograms", "0.500kg", "1/2 kg", "0.5"])
    def test_match_when_same_quantity_then_numeric(self, response):
        assert match_alternative(AnswerAlternative(1, "0.50 kg"), response) == "numeric"

    @pytest.mark.parametrize("response", ["5 kg", "0.5 g", "0.51 kg"])
    def test_match_when_different_quantity_then_no_match(self, response):
        assert match_alternative(AnswerAlternative(1, "0.50 kg"), response) is None

    def test_match_when_unit_field_then_used_for_comparison(self):
        alt = AnswerAlternative(1, "9.8", unit="m/s2")

        assert match_alternative(alt, "9.80 m/s^2") == "numeric"
        assert match_alternative(alt, "9.8 m/s") is None

    def test_match_when_unit_required_then_bare_number_rejected(self):
        config = GradingConfig(allow_missing_unit=False)

        assert match_alternative(AnswerAlternative(1, "0.50 kg"), "0.5", config=config) is None

    def test_match_when_thousands_separator_then_numeric(self):
        assert match_alternative(AnswerAlternative(1, "1000 J"), "1,000 joules") == "numeric"

    @pytest.mark.parametrize("expected, response", [
        ("3:1", "3"),
        ("2 hydrogen atoms and 1 oxygen atom", "2"),
        ("2 hydrogen atoms and 1 oxygen atom", "2 atoms"),
        ("1st", "1"),
    ])
    def test_match_when_text_starts_with_number_then_literal_only(self, expected, response):
        assert match_alternative(AnswerAlternative(1, expected), response) is None

    def test_match_when_text_starts_with_number_then_literal_still_matches(self):
        alt = AnswerAlternative(1, "2 hydrogen atoms and 1 oxygen atom")

        assert match_alternative(alt, "2 Hydrogen atoms and 1 oxygen atom") == "exact"

    def test_match_when_unit_field_disagrees_with_text_then_literal_only(self):
        alt = AnswerAlternative(1, "3 apples", unit="kg")

        assert match_alternative(alt, "3 kg") is None
        assert match_alternative(alt, "3") is None

    def test_match_when_bare_number_expected_then_extra_words_rejected(self):
        assert match_alternative(AnswerAlternative(1, "3"), "3 apples") is None
        assert match_alternative(AnswerAlternative(1, "3"), "3.0") == "numeric"


class TestGradeGroups:
    """Tests for grade_groups."""

    def test_grade_when_one_required_alternative_given_then_full_marks(self, colour_answers):
        groups = link_alternatives(colour_answers)
        result = grade_groups(groups, "violet")

        assert (result.achieved_marks, result.total_marks) == (1, 1)
        matched = [f for f in result.feedback if f.status == FeedbackStatus.MATCHED]
        assert [f.unit_id for f in matched] == ["1.2"]
        assert matched[0].notes == "exact"

    def test_grade_when_one_required_wrong_then_zero(self, colour_answers):
        result = grade_groups(link_alternatives(colour_answers), "blue")

        assert (result.achieved_marks, result.total_marks) == (0, 1)
        assert {f.status for f in result.feedback} == {FeedbackStatus.UNMATCHED}

    def test_grade_when_one_required_several_given_then_no_bonus(self, colour_answers):
        result = grade_groups(link_alternatives(colour_answers), "purple\nviolet\nlilac")

        assert result.achieved_marks == 1
        assert result.feedback[0].status == FeedbackStatus.MATCHED
        assert result.feedback[1].notes == "group requirement already met"

    def test_grade_when_empty_submission_then_unanswered(self, colour_answers):
        result = grade_groups(link_alternatives(colour_answers), "  ")

        assert result.achieved_marks == 0
        assert {f.status for f in result.feedback} == {FeedbackStatus.UNANSWERED}

    def test_grade_when_response_repeated_then_counted_once(self):
        """One response satisfies at most one alternative."""
        groups = (_standalone("oxygen", index=1), _standalone("oxygen", index=2))
        result = grade_groups(groups, "oxygen")

        assert (result.achieved_marks, result.total_marks) == (1, 2)
        assert [f.status for f in result.feedback] == [FeedbackStatus.MATCHED, FeedbackStatus.UNMATCHED]

    def test_grade_when_same_answer_twice_in_all_required_then_one_mark(self):
        group = _linked(Cardinality.ALL_REQUIRED, ["nucleus", "cytoplasm"])
        result = grade_groups([group], "nucleus; nucleus")

        assert (result.achieved_marks, result.total_marks) == (1, 2)

    def test_grade_when_all_required_any_order_then_full_marks(self):
        group = _linked(Cardinality.ALL_REQUIRED, ["nucleus", "cytoplasm"])
        result = grade_groups([group], ["Cytoplasm", "nucleus"])

        assert result.is_full_marks
        assert [f.submitted for f in result.feedback] == ["nucleus", "Cytoplasm"]

    def test_grade_when_any_of_then_capped_at_required_count(self):
        group = _linked(Cardinality.ANY_OF, ["heat", "light", "sound"], required_count=2)
        result = grade_groups([group], "heat\nlight\nsound")

        assert (result.achieved_marks, result.total_marks) == (2, 2)
        assert result.feedback[2].notes == "group requirement already met"

    def test_grade_when_variation_overlaps_later_answer_then_both_matched(self):
        groups = (
            _standalone("mitochondria", index=1, variations=("ribosome",), accepts_equivalent_phrasing=True),
            _standalone("ribosome", index=2),
        )
        result = grade_groups(groups, ["ribosome", "mitochondria"])

        assert (result.achieved_marks, result.total_marks) == (2, 2)
        assert [f.submitted for f in result.feedback] == ["mitochondria", "ribosome"]
        assert [f.notes for f in result.feedback] == ["exact", "exact"]

    def test_grade_when_variation_given_as_string_then_whole_word_only(self):
        groups = link_alternatives(
            [{"answer": "water", "accepts_equivalent_phrasing": True, "acceptable_variations": "H2O"}]
        )

        assert grade_groups(groups, "h").achieved_marks == 0
        assert grade_groups(groups, "H2O").achieved_marks == 1

    def test_grade_when_earlier_alternative_can_move_then_response_handed_on(self):
        """An alternative holding a shared response gives it up when it can use another."""
        glucose = _standalone("glucose", index=1, variations=("sugar", "C6H12O6"), accepts_equivalent_phrasing=True)
        sucrose = _standalone("sucrose", index=2, variations=("sugar",), accepts_equivalent_phrasing=True)
        result = grade_groups((glucose, sucrose), ["sugar", "C6H12O6"])

        assert result.is_full_marks
        assert [f.submitted for f in result.feedback] == ["C6H12O6", "sugar"]
        assert [f.notes for f in result.feedback] == ["variation", "variation"]

    def test_grade_when_any_of_partial_then_partial_marks(self):
        group = _linked(Cardinality.ANY_OF, ["heat", "light", "sound"], required_count=2)
        result = grade_groups([group], "sound")

        assert result.achieved_marks == 1

    def test_grade_when_case_sensitive_group_then_respected(self):
        group = AnswerGroup(Cardinality.STANDALONE, (AnswerAlternative(1, "Co"),), case_sensitive=True)

        assert grade_groups([group], "CO").achieved_marks == 0
        assert grade_groups([group], "Co").achieved_marks == 1

    def test_grade_when_weighted_alternatives_then_sum(self):
        groups = (_standalone("ethanol", index=1, marks=2), _standalone("yeast", index=2, marks=1))
        result = grade_groups(groups, "yeast")

        assert (result.achieved_marks, result.total_marks) == (1, 3)
        assert result.percentage == 33.33

    def test_grade_when_no_groups_then_zero_total(self):
        result = grade_groups([], "anything")

        assert (result.achieved_marks, result.total_marks) == (0, 0)
        assert result.percentage == 0.0
