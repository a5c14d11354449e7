"""
Module: grading.text

Purpose:
    Grades free-text responses against canonical answer groups. Each
    response can satisfy at most one alternative, so repeating a correct
    answer never earns its marks twice. Responses are shared out so that
    as many alternatives as possible are satisfied: an alternative may take
    a response from an earlier one when the earlier one can use another.

Key Functions:
    - split_responses(): Submitted string/sequence -> individual responses
    - match_alternative(): One response vs one alternative
    - grade_groups(): Responses vs every group -> GradingResult

Group rules:
    - standalone / all_required: every alternative matched independently,
      marks = sum of matched alternatives
    - one_required: alternatives tried in index order, first match wins
      and earns that alternative's marks only
    - any_of: up to required_count alternatives may match

Used By:
    - grading.engine
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from ..core.models import AnswerAlternative, AnswerGroup, Cardinality, FeedbackStatus, GradingResult, UnitFeedback
from ..core.models.answers import groups_total_marks
from .config import GradingConfig
from .normalize import (
    is_known_unit,
    normalize_text,
    normalize_unit,
    reverse_words,
    split_quantity,
    strip_punctuation,
)

logger = logging.getLogger(__name__)


def split_responses(submitted: Any, config: Optional[GradingConfig] = None) -> List[str]:
    """
    Turn a submission into a list of non-blank responses.

    Strings are split on config.split_pattern (newlines and semicolons by
    default); sequences are taken item by item. Anything else counts as no
    response.

    Example:
        >>> split_responses("purple; violet\\n")
        ['purple', 'violet']
    """
    config = config or GradingConfig()
    if submitted is None:
        return []
    if isinstance(submitted, str):
        pieces = re.split(config.split_pattern, submitted)
    elif isinstance(submitted, (list, tuple)):
        pieces = [item for item in submitted if isinstance(item, (str, int, float)) and not isinstance(item, bool)]
        pieces = [str(item) for item in pieces]
    elif isinstance(submitted, (int, float)) and not isinstance(submitted, bool):
        pieces = [str(submitted)]
    else:
        return []
    return [piece.strip() for piece in pieces if piece and piece.strip()]


# ─────────────────────────────────────────────────────────────────────────────
# Single Alternative
# ─────────────────────────────────────────────────────────────────────────────

def _quantity_matches(expected: str, response: str, unit: Optional[str], allow_missing_unit: bool) -> bool:
    """
    Numeric comparison for answers that are quantities.

    The expected text must be a bare number, or a number followed by a
    recognised unit (or by the alternative's own unit field). Anything else,
    such as "3:1" or "2 hydrogen atoms", is compared as text only.
    Magnitudes must be equal; only the unit's spelling is lenient.
    """
    want = split_quantity(expected)
    if want is None:
        return False
    want_value, want_unit = want
    if unit:
        expected_unit = normalize_unit(unit)
        if want_unit and normalize_unit(want_unit) != expected_unit:
            return False
    elif want_unit:
        if not is_known_unit(want_unit):
            return False
        expected_unit = normalize_unit(want_unit)
    else:
        expected_unit = ""

    got = split_quantity(response)
    if got is None:
        return False
    got_value, got_unit = got
    if got_value != want_value:
        return False
    if not got_unit:
        return allow_missing_unit or not expected_unit
    return normalize_unit(got_unit) == expected_unit


def match_alternative(
    alternative: AnswerAlternative,
    response: str,
    *,
    case_sensitive: bool = False,
    config: Optional[GradingConfig] = None,
) -> Optional[str]:
    """
    Compare one response with one alternative.

    Args:
        alternative: Expected answer
        response: One learner response
        case_sensitive: Group-level case flag
        config: Grading settings

    Returns:
        Short note describing how it matched ("exact", "variation",
        "numeric", "phrasing", "reverse argument"), or None for no match
    """
    config = config or GradingConfig()
    got = normalize_text(response, case_sensitive=case_sensitive)
    if not got:
        return None

    for position, candidate in enumerate(alternative.acceptable_texts):
        kind = "exact" if position == 0 else "variation"
        want = normalize_text(candidate, case_sensitive=case_sensitive)
        if got == want:
            return kind
        if _quantity_matches(candidate, response, alternative.unit, config.allow_missing_unit):
            return "numeric"
        if alternative.accepts_equivalent_phrasing and strip_punctuation(got) == strip_punctuation(want):
            return "phrasing"
        if alternative.accepts_reverse_argument and reverse_words(got) == want:
            return "reverse argument"
    return None


# ─────────────────────────────────────────────────────────────────────────────
# Groups
# ─────────────────────────────────────────────────────────────────────────────

AltKey = Tuple[int, int]


@dataclass
class _Assignment:
    """
    Pairs responses with alternatives, one response per alternative.

    candidates maps each alternative (group number, position) to the
    responses it matches and how. Claiming an alternative may move a
    response away from an alternative that already holds it, provided the
    holder can be re-served by another free response (augmenting path), so
    an alternative that has been satisfied stays satisfied.
    """
    candidates: Dict[AltKey, Dict[int, str]]
    owner: Dict[int, AltKey] = field(default_factory=dict)

    def _ordered(self, key: AltKey) -> List[int]:
        # Literal matches first, then submission order
        options = self.candidates[key]
        return sorted(options, key=lambda r: (options[r] != "exact", r))

    def claim(self, key: AltKey, seen: Optional[Set[int]] = None) -> bool:
        seen = set() if seen is None else seen
        for r in self._ordered(key):
            if r in seen:
                continue
            seen.add(r)
            holder = self.owner.get(r)
            if holder is None or self.claim(holder, seen):
                self.owner[r] = key
                return True
        return False

    def held(self) -> Dict[AltKey, int]:
        return {key: r for r, key in self.owner.items()}


def _allowance(group: AnswerGroup) -> int:
    """How many alternatives of the group may earn marks."""
    if group.cardinality == Cardinality.ONE_REQUIRED:
        return 1
    if group.cardinality == Cardinality.ANY_OF:
        return group.required_count
    return len(group.alternatives)


def _feedback(
    unit_id: str,
    alternative: AnswerAlternative,
    status: FeedbackStatus,
    submitted: Optional[str] = None,
    awarded=0,
    notes: Optional[str] = None,
) -> UnitFeedback:
    return UnitFeedback(
        unit_id=unit_id,
        status=status,
        expected=alternative.text,
        submitted=submitted,
        marks_awarded=awarded,
        marks_available=alternative.marks,
        notes=notes,
    )




def grade_groups(
    groups: Sequence[AnswerGroup],
    submitted: Any,
    *,
    config: Optional[GradingConfig] = None,
) -> GradingResult:
    """
    Grade a free-text submission against answer groups.

    Args:
        groups: Canonical answer groups of one node
        submitted: A string (split into responses) or a sequence of strings
        config: Grading settings

    Returns:
        GradingResult whose total is the static sum of group totals and
        whose feedback has one entry per alternative ("{group}.{index}")

    Example:
        >>> result = grade_groups(colour_groups, "violet")
        >>> result.achieved_marks, result.total_marks
        (1, 1)
    """
    config = config or GradingConfig()
    groups = tuple(groups)
    total = groups_total_marks(groups)
    items = split_responses(submitted, config)

    candidates: Dict[AltKey, Dict[int, str]] = {}
    for g, group in enumerate(groups):
        for a, alt in enumerate(group.alternatives):
            notes = {}
            for r, response in enumerate(items):
                note = match_alternative(alt, response, case_sensitive=group.case_sensitive, config=config)
                if note is not None:
                    notes[r] = note
            candidates[(g, a)] = notes

    # Groups and alternatives claim responses in order; an exhausted
    # allowance closes the rest of the group.
    assignment = _Assignment(candidates)
    closed: Set[AltKey] = set()
    for g, group in enumerate(groups):
        allowance = _allowance(group)
        for a in range(len(group.alternatives)):
            if allowance == 0:
                closed.add((g, a))
            elif assignment.claim((g, a)):
                allowance -= 1

    held = assignment.held()
    missing = FeedbackStatus.UNMATCHED if items else FeedbackStatus.UNANSWERED
    feedback: List[UnitFeedback] = []
    for g, group in enumerate(groups):
        for a, alt in enumerate(group.alternatives):
            unit_id = f"{g + 1}.{alt.index}"
            key = (g, a)
            if key in closed:
                feedback.append(_feedback(unit_id, alt, missing, notes="group requirement already met"))
            elif key in held:
                r = held[key]
                feedback.append(_feedback(unit_id, alt, FeedbackStatus.MATCHED, items[r], alt.marks, candidates[key][r]))
            else:
                feedback.append(_feedback(unit_id, alt, missing))

    result = GradingResult.from_feedback(feedback, total)
    logger.debug(f"Graded {len(items)} response(s) against {len(groups)} group(s): {result!r}")
    return result
