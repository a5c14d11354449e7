"""
Core Models Package

Immutable, validated data models for the canonical question tree.

All models in this package are frozen dataclasses. Importers build them
once; later stages create changed copies with ``dataclasses.replace``.
Calculated values such as ``AnswerGroup.total_marks`` are never stored.
"""

from .answers import (
    AnswerAlternative,
    AnswerContext,
    AnswerGroup,
    Cardinality,
    McqOption,
)
from .formats import AnswerFormat, AnswerRequirement
from .parts import Part, Subpart
from .questions import Question, QuestionKind
from .results import FeedbackStatus, GradingResult, UnitFeedback
from .tables import CellType, TableCell, TableTemplate

__all__ = [
    "AnswerAlternative",
    "AnswerContext",
    "AnswerGroup",
    "Cardinality",
    "McqOption",
    "AnswerFormat",
    "AnswerRequirement",
    "Part",
    "Subpart",
    "Question",
    "QuestionKind",
    "FeedbackStatus",
    "GradingResult",
    "UnitFeedback",
    "CellType",
    "TableCell",
    "TableTemplate",
]
