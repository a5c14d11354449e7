"""
Module: grading.choices

Purpose:
    Grades multiple-choice and true/false selections. The selected options
    must be exactly the correct ones; marks are all or nothing.

Key Functions:
    - selected_labels(): Submission -> option labels it names
    - grade_choice(): Options + selection -> GradingResult
"""

from __future__ import annotations

import re
from typing import Any, List, Optional, Sequence

from ..core.models import FeedbackStatus, GradingResult, McqOption, UnitFeedback
from ..core.models.answers import MarkValue
from .normalize import normalize_text

_SELECTION_SPLIT = re.compile(r"\s*[,;/\n]\s*")
_BRACKETS = re.compile(r"^[(\[]?\s*(.*?)\s*[)\].]?$")


def _key(value: str) -> str:
    return _BRACKETS.sub(r"\1", normalize_text(value))


def selected_labels(options: Sequence[McqOption], submitted: Any) -> List[str]:
    """
    Resolve a submission to option labels, matching label or option text
    case-insensitively. Unknown selections are dropped.

    Example:
        >>> selected_labels(options, "(b), c")
        ['B', 'C']
    """
    if isinstance(submitted, str):
        pieces = [submitted.strip()]
        if _key(submitted) not in _lookup(options):
            pieces = _SELECTION_SPLIT.split(submitted)
    elif isinstance(submitted, (list, tuple, set, frozenset)):
        pieces = [item for item in submitted if isinstance(item, str)]
    else:
        return []

    lookup = _lookup(options)
    labels: List[str] = []
    for piece in pieces:
        label = lookup.get(_key(piece)) if piece and piece.strip() else None
        if label is not None and label not in labels:
            labels.append(label)
    return labels


def _lookup(options: Sequence[McqOption]) -> dict:
    table = {}
    for option in options:
        if option.text.strip():
            table.setdefault(_key(option.text), option.label)
    # Labels win over option text
    for option in options:
        table[_key(option.label)] = option.label
    return table


def grade_choice(
    options: Sequence[McqOption],
    submitted: Any,
    *,
    marks: Optional[MarkValue] = None,
) -> GradingResult:
    """
    Grade a choice selection.

    Args:
        options: The node's options with is_correct flags
        submitted: Label(s) or option text(s), as a string or a sequence
        marks: Marks for a correct selection (default 1)

    Returns:
        GradingResult with a single "choice" feedback entry
    """
    total = 1 if marks is None else marks
    correct = [option.label for option in options if option.is_correct]
    chosen = selected_labels(options, submitted)

    if not chosen:
        status = FeedbackStatus.UNANSWERED
    elif sorted(chosen) == sorted(correct):
        status = FeedbackStatus.MATCHED
    else:
        status = FeedbackStatus.UNMATCHED

    awarded = total if status == FeedbackStatus.MATCHED else 0
    feedback = UnitFeedback(
        unit_id="choice",
        status=status,
        expected=", ".join(correct),
        submitted=", ".join(chosen) or None,
        marks_awarded=awarded,
        marks_available=total,
    )
    return GradingResult.from_feedback([feedback], total)
