"""
Exam Engine Core Package

Shared data models, labels, errors and utilities used by the importer and
the grading engine.

1. **Immutable Data Models**
   Frozen dataclasses; new instances are created for any changes.

2. **Calculated Marks (Never Stored)**
   Group totals and answer_marks are always calculated from alternatives.

3. **Stable Identifiers**
   ``q_{number}``, ``{questionId}-{label}``, ``{partId}-{roman}``.
"""

from .errors import (
    DerivationFallback,
    EngineError,
    LinkingWarning,
    SerializationError,
    StructuralError,
    TransformError,
)
from .models import (
    AnswerAlternative,
    AnswerGroup,
    Cardinality,
    Part,
    Question,
    QuestionKind,
    Subpart,
)

__all__ = [
    "DerivationFallback",
    "EngineError",
    "LinkingWarning",
    "SerializationError",
    "StructuralError",
    "TransformError",
    "AnswerAlternative",
    "AnswerGroup",
    "Cardinality",
    "Part",
    "Question",
    "QuestionKind",
    "Subpart",
]
