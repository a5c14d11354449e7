"""
Module: formats

Purpose:
    Answer format and answer requirement vocabularies. These tag what kind
    of input widget a learner sees and how many of the listed answers they
    must supply.

Key Functions:
    - parse_format(value): Explicit source value -> AnswerFormat or None
    - parse_requirement(value): Explicit source value -> AnswerRequirement or None
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class AnswerFormat(str, Enum):
    """Shape of the expected answer."""
    SINGLE_WORD = "single_word"
    SINGLE_LINE = "single_line"
    TWO_ITEMS = "two_items"
    TWO_ITEMS_CONNECTED = "two_items_connected"
    MULTI_LINE = "multi_line"
    MULTI_LINE_LABELED = "multi_line_labeled"
    CALCULATION = "calculation"
    EQUATION = "equation"
    CHEMICAL_STRUCTURE = "chemical_structure"
    STRUCTURAL_DIAGRAM = "structural_diagram"
    DIAGRAM = "diagram"
    TABLE = "table"
    TABLE_COMPLETION = "table_completion"
    GRAPH = "graph"
    CODE = "code"
    AUDIO = "audio"
    FILE_UPLOAD = "file_upload"
    NOT_APPLICABLE = "not_applicable"
    FREE_TEXT = "free_text"

    def __str__(self) -> str:
        return self.value

    @property
    def is_single_value(self) -> bool:
        return self in (AnswerFormat.SINGLE_WORD, AnswerFormat.SINGLE_LINE)

    @property
    def is_structured(self) -> bool:
        return self in (AnswerFormat.TABLE, AnswerFormat.TABLE_COMPLETION)


class AnswerRequirement(str, Enum):
    """How many of the listed answers must be supplied."""
    SINGLE_CHOICE = "single_choice"
    BOTH_REQUIRED = "both_required"
    ANY_ONE_FROM = "any_one_from"
    ANY_2_FROM = "any_2_from"
    ANY_3_FROM = "any_3_from"
    ALL_REQUIRED = "all_required"
    ALTERNATIVE_METHODS = "alternative_methods"
    ACCEPTABLE_VARIATIONS = "acceptable_variations"
    NOT_APPLICABLE = "not_applicable"

    def __str__(self) -> str:
        return self.value


# Strings that authoring tools write when a field was never filled in
_EMPTY_MARKERS = {"", "undefined", "null", "none"}


def _clean(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    cleaned = value.strip().lower()
    if cleaned in _EMPTY_MARKERS:
        return None
    return cleaned


def parse_format(value: Any) -> Optional[AnswerFormat]:
    """
    Parse an explicit answer_format from source JSON.

    Returns None for missing, placeholder, or unknown values so the caller
    falls back to derivation.
    """
    cleaned = _clean(value)
    if cleaned is None:
        return None
    try:
        return AnswerFormat(cleaned)
    except ValueError:
        return None


def parse_requirement(value: Any) -> Optional[AnswerRequirement]:
    """Parse an explicit answer_requirement; None when missing or unknown."""
    cleaned = _clean(value)
    if cleaned is None:
        return None
    try:
        return AnswerRequirement(cleaned)
    except ValueError:
        return None
