"""
Module: results

Purpose:
    Grading output. A GradingResult holds the mark totals and one
    UnitFeedback per gradable unit (an answer alternative, a table cell, or
    a choice).

Key Classes:
    - FeedbackStatus: matched / unmatched / unanswered
    - UnitFeedback: Outcome for a single gradable unit
    - GradingResult: Totals plus per-unit feedback
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple

from .answers import MarkValue


class FeedbackStatus(str, Enum):
    MATCHED = "matched"
    UNMATCHED = "unmatched"
    UNANSWERED = "unanswered"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class UnitFeedback:
    """
    Outcome for one gradable unit.

    Attributes:
        unit_id: Alternative ("{group}.{index}"), cell ("{row}-{col}") or option label,
            prefixed with the node id when grading a whole question
        status: MATCHED, UNMATCHED or UNANSWERED
        expected: Expected answer text
        submitted: The response that matched or was compared, if any
        marks_awarded: Marks earned by this unit
        marks_available: Marks this unit could earn
        notes: Short explanation (e.g. "matched variation", "fuzzy 0.91")
    """

    unit_id: str
    status: FeedbackStatus
    expected: str
    submitted: Optional[str] = None
    marks_awarded: MarkValue = 0
    marks_available: MarkValue = 0
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "unit_id": self.unit_id,
            "status": str(self.status),
            "expected": self.expected,
            "submitted": self.submitted,
            "marks_awarded": self.marks_awarded,
            "marks_available": self.marks_available,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class GradingResult:
    """
    Totals and feedback for one graded answer.

    Invariants:
        - 0 <= achieved_marks <= total_marks
        - percentage is 0.0 when total_marks is 0
    """

    achieved_marks: MarkValue
    total_marks: MarkValue
    feedback: Tuple[UnitFeedback, ...] = ()

    def __post_init__(self) -> None:
        if self.total_marks < 0:
            raise ValueError(f"total_marks cannot be negative: {self.total_marks}")
        if not 0 <= self.achieved_marks <= self.total_marks:
            raise ValueError(
                f"achieved_marks {self.achieved_marks} outside 0..{self.total_marks}"
            )

    @property
    def percentage(self) -> float:
        if not self.total_marks:
            return 0.0
        return round(100.0 * self.achieved_marks / self.total_marks, 2)

    @property
    def is_full_marks(self) -> bool:
        return self.total_marks > 0 and self.achieved_marks == self.total_marks

    @classmethod
    def from_feedback(cls, feedback: Sequence[UnitFeedback], total_marks: MarkValue) -> GradingResult:
        """Build a result, clamping the awarded sum into 0..total_marks."""
        achieved = sum(item.marks_awarded for item in feedback)
        return cls(
            achieved_marks=max(0, min(achieved, total_marks)),
            total_marks=total_marks,
            feedback=tuple(feedback),
        )

    @classmethod
    def combine(cls, results: Iterable[GradingResult]) -> GradingResult:
        """Aggregate several results (e.g. every node of a question)."""
        results = list(results)
        return cls(
            achieved_marks=sum(r.achieved_marks for r in results),
            total_marks=sum(r.total_marks for r in results),
            feedback=tuple(f for r in results for f in r.feedback),
        )

    @classmethod
    def empty(cls) -> GradingResult:
        return cls(achieved_marks=0, total_marks=0)

    def to_dict(self) -> dict:
        return {
            "achieved_marks": self.achieved_marks,
            "total_marks": self.total_marks,
            "percentage": self.percentage,
            "feedback": [f.to_dict() for f in self.feedback],
        }

    def __repr__(self) -> str:
        return f"GradingResult({self.achieved_marks}/{self.total_marks})"
