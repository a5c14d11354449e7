"""
Module: grading.tables

Purpose:
    Grades a table-completion submission cell by cell. Locked cells are
    never graded; cells missing from the submission are unanswered (0 marks,
    not an error), so partial submissions always produce a result.

Key Functions:
    - grade_table(): TableTemplate + {"row-col": value} -> GradingResult
    - match_cell(): One cell vs one submitted value

Dependencies:
    - difflib (std): Similarity ratio for equivalent-phrasing cells

Used By:
    - grading.engine
"""

from __future__ import annotations

import logging
from difflib import SequenceMatcher
from typing import Any, List, Mapping, Optional

from ..core.models import FeedbackStatus, GradingResult, TableCell, TableTemplate, UnitFeedback
from .config import GradingConfig
from .normalize import normalize_text, parse_number

logger = logging.getLogger(__name__)


def _cell_value(submission: Mapping[str, Any], key: str) -> Optional[str]:
    value = submission.get(key)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        return None
    return value


def match_cell(cell: TableCell, value: str, *, config: Optional[GradingConfig] = None) -> Optional[str]:
    """
    Compare a submitted value with a cell's expected and alternative answers.

    Returns:
        Note describing the match ("exact", "alternative", "numeric",
        "fuzzy 0.91"), or None
    """
    config = config or GradingConfig()
    got = normalize_text(value, case_sensitive=cell.case_sensitive)
    candidates = [cell.expected_answer or ""] + list(cell.alternative_answers)

    best = 0.0
    for position, candidate in enumerate(candidates):
        if not candidate.strip():
            continue
        want = normalize_text(candidate, case_sensitive=cell.case_sensitive)
        if got == want:
            return "exact" if position == 0 else "alternative"
        number = parse_number(want)
        if number is not None and number == parse_number(got):
            return "numeric"
        if cell.accepts_equivalent_phrasing:
            best = max(best, SequenceMatcher(None, got, want).ratio())

    if best >= config.fuzzy_threshold:
        return f"fuzzy {best:.2f}"
    return None


def grade_table(
    template: TableTemplate,
    submission: Any,
    *,
    config: Optional[GradingConfig] = None,
) -> GradingResult:
    """
    Grade every editable cell of a template.

    Args:
        template: Canonical table template
        submission: Mapping of "{row}-{col}" keys to submitted strings;
            anything that is not a mapping counts as an empty submission
        config: Grading settings

    Returns:
        GradingResult with total = sum of gradable cell marks and one
        feedback entry per gradable cell, keyed "{row}-{col}"

    Example:
        >>> result = grade_table(template, {"0-1": "H2O"})
        >>> [f.status.value for f in result.feedback]
        ['matched', 'unanswered']
    """
    config = config or GradingConfig()
    if not isinstance(submission, Mapping):
        submission = {}

    feedback: List[UnitFeedback] = []
    for cell in template.iter_gradable():
        value = _cell_value(submission, cell.key)
        if value is None:
            status, awarded, note = FeedbackStatus.UNANSWERED, 0, None
        else:
            note = match_cell(cell, value, config=config)
            matched = note is not None
            status = FeedbackStatus.MATCHED if matched else FeedbackStatus.UNMATCHED
            awarded = cell.marks if matched else 0
        feedback.append(
            UnitFeedback(
                unit_id=cell.key,
                status=status,
                expected=cell.expected_answer or "",
                submitted=value,
                marks_awarded=awarded,
                marks_available=cell.marks,
                notes=note,
            )
        )

    result = GradingResult.from_feedback(feedback, template.total_marks)
    logger.debug(f"Graded {len(feedback)} table cell(s): {result!r}")
    return result
