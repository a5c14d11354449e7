"""
Module: importer.linker

Purpose:
    Turns a raw ``correct_answers`` list into explicit AnswerGroups. Source
    data links alternatives with index lists (``linked_alternatives``) that
    are often one-sided or stale; the linker resolves them into symmetric
    groups and records every inconsistency as a LinkingWarning.

Key Functions:
    - link_alternatives(): Raw answers -> tuple of AnswerGroup
    - check_symmetry(): Warning messages only, no grouping
    - cardinality_for(): alternative_type string -> (Cardinality, K)

Dependencies:
    - core.models.answers
    - core.errors (TransformError, LinkingWarning)

Used By:
    - importer.transformer

Grouping rules, in order:
    1. Explicit links (either direction) join answers
    2. Answers sharing a duplicated alternative_id join
    3. Consecutive still-unlinked answers declaring the same
       non-standalone alternative_type join
    4. Everything else is a standalone group of one
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.errors import LinkingWarning, TransformError
from ..core.models.answers import (
    AnswerAlternative,
    AnswerContext,
    AnswerGroup,
    Cardinality,
    coerce_marks,
)
from .diagnostics import DiagnosticsCollector

logger = logging.getLogger(__name__)


# alternative_type -> (cardinality, required_count)
_TYPE_CARDINALITY: Dict[str, Tuple[Cardinality, int]] = {
    "one_required": (Cardinality.ONE_REQUIRED, 1),
    "any_from": (Cardinality.ONE_REQUIRED, 1),
    "any_one_from": (Cardinality.ONE_REQUIRED, 1),
    "alternative": (Cardinality.ONE_REQUIRED, 1),
    "all_required": (Cardinality.ALL_REQUIRED, 1),
    "both_required": (Cardinality.ALL_REQUIRED, 1),
    "structure_function_pair": (Cardinality.ALL_REQUIRED, 1),
    "two_required": (Cardinality.ANY_OF, 2),
    "any_2_from": (Cardinality.ANY_OF, 2),
    "any_two_from": (Cardinality.ANY_OF, 2),
    "exactly_n_required": (Cardinality.ANY_OF, 2),
    "three_required": (Cardinality.ANY_OF, 3),
    "any_3_from": (Cardinality.ANY_OF, 3),
    "any_three_from": (Cardinality.ANY_OF, 3),
}

_STANDALONE_TYPES = {"", "standalone", "single", "none", "null", "undefined"}
_TYPE_SEPARATORS = re.compile(r"[\s\-]+")


def normalize_type(raw: Any) -> str:
    """Lowercase, underscore-joined alternative_type; "" for standalone/absent."""
    if not isinstance(raw, str):
        return ""
    cleaned = _TYPE_SEPARATORS.sub("_", raw.strip().lower())
    return "" if cleaned in _STANDALONE_TYPES else cleaned


def cardinality_for(raw_type: Any) -> Optional[Tuple[Cardinality, int]]:
    """
    Map a source alternative_type onto a cardinality.

    Returns:
        (cardinality, required_count), or None for standalone/absent/unknown

    Example:
        >>> cardinality_for("Any 2 from")
        (<Cardinality.ANY_OF: 'any_of'>, 2)
    """
    return _TYPE_CARDINALITY.get(normalize_type(raw_type))


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and value.is_integer() and value > 0:
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        number = int(value.strip())
        return number if number > 0 else None
    return None


# ─────────────────────────────────────────────────────────────────────────────
# Union-Find
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class _Groups:
    """Disjoint sets over 0-based answer positions."""
    parent: List[int] = field(default_factory=list)

    @classmethod
    def of(cls, size: int) -> _Groups:
        return cls(parent=list(range(size)))

    def find(self, i: int) -> int:
        while self.parent[i] != i:
            self.parent[i] = self.parent[self.parent[i]]
            i = self.parent[i]
        return i

    def union(self, a: int, b: int) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra != rb:
            self.parent[max(ra, rb)] = min(ra, rb)

    def size_of(self, i: int) -> int:
        root = self.find(i)
        return sum(1 for j in range(len(self.parent)) if self.find(j) == root)

    def components(self) -> List[List[int]]:
        buckets: Dict[int, List[int]] = {}
        for i in range(len(self.parent)):
            buckets.setdefault(self.find(i), []).append(i)
        return sorted(buckets.values(), key=lambda members: members[0])


# ─────────────────────────────────────────────────────────────────────────────
# Resolution
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class _Resolution:
    """Indices, resolved link edges and warnings for one answer list."""
    indices: List[int]
    edges: List[Tuple[int, int]]
    warnings: List[str]
    groups: _Groups


def _check_answer_objects(raw_answers: Sequence[Any]) -> None:
    for i, answer in enumerate(raw_answers, 1):
        if not isinstance(answer, dict):
            raise TransformError(f"Answer {i} is not an object")
        text = answer.get("answer")
        if not isinstance(text, str) or not text.strip():
            raise TransformError(f"Answer {i} has empty answer text")


def _resolve(raw_answers: Sequence[dict]) -> _Resolution:
    count = len(raw_answers)
    warnings: List[str] = []
    source_ids = [_positive_int(a.get("alternative_id")) for a in raw_answers]
    declared = [a.get("alternative_id") for a in raw_answers]

    # Lookup from source id to positions; duplicated ids map to several
    by_id: Dict[int, List[int]] = {}
    for pos, sid in enumerate(source_ids):
        if sid is not None:
            by_id.setdefault(sid, []).append(pos)

    ids_usable = all(sid is not None for sid in source_ids) and len(by_id) == count
    if ids_usable:
        indices = list(source_ids)
    else:
        indices = list(range(1, count + 1))
        if any(d is not None for d in declared):
            warnings.append("alternative_id values are missing, duplicated or invalid; using positions")

    groups = _Groups.of(count)

    # Links name source ids when any exist, positions otherwise
    def targets(raw_target: Any) -> List[int]:
        number = _positive_int(raw_target)
        if number is None:
            return []
        if by_id:
            return by_id.get(number, [])
        return [number - 1] if number <= count else []

    edges: List[Tuple[int, int]] = []
    for pos, answer in enumerate(raw_answers):
        links = answer.get("linked_alternatives") or []
        if not isinstance(links, list):
            warnings.append(f"Answer {indices[pos]} has non-list linked_alternatives; ignored")
            continue
        for raw_target in links:
            resolved = targets(raw_target)
            if not resolved:
                warnings.append(f"Answer {indices[pos]} links to unknown alternative {raw_target!r}")
                continue
            for other in resolved:
                if other == pos:
                    warnings.append(f"Answer {indices[pos]} links to itself")
                    continue
                edges.append((pos, other))
                groups.union(pos, other)

    edge_set = set(edges)
    for pos, other in edges:
        if (other, pos) not in edge_set:
            warnings.append(
                f"Answer {indices[pos]} links to {indices[other]} "
                f"but {indices[other]} does not link back"
            )

    for positions in by_id.values():
        for other in positions[1:]:
            groups.union(positions[0], other)

    # Consecutive unlinked answers sharing a non-standalone type
    previous: Optional[int] = None
    for pos, answer in enumerate(raw_answers):
        kind = normalize_type(answer.get("alternative_type"))
        if not kind or groups.size_of(pos) > 1:
            previous = None
            continue
        if previous is not None and normalize_type(raw_answers[previous].get("alternative_type")) == kind:
            groups.union(previous, pos)
        previous = pos

    return _Resolution(indices=indices, edges=edges, warnings=warnings, groups=groups)


def _group_cardinality(
    members: List[int],
    raw_answers: Sequence[dict],
    indices: List[int],
    warnings: List[str],
) -> Tuple[Cardinality, int]:
    if len(members) == 1:
        return Cardinality.STANDALONE, 1

    declared = []
    for pos in members:
        kind = normalize_type(raw_answers[pos].get("alternative_type"))
        if kind and kind not in declared:
            declared.append(kind)

    label = ", ".join(str(indices[p]) for p in members)
    if len(declared) > 1:
        warnings.append(f"Group [{label}] has conflicting alternative types {declared}; using {declared[0]!r}")

    if not declared:
        return Cardinality.ALL_REQUIRED, 1

    mapped = cardinality_for(declared[0])
    if mapped is None:
        warnings.append(f"Group [{label}] has unknown alternative type {declared[0]!r}; treating as all_required")
        return Cardinality.ALL_REQUIRED, 1

    cardinality, required = mapped
    if cardinality == Cardinality.ANY_OF:
        explicit = _positive_int(raw_answers[members[0]].get("required_count"))
        if explicit is not None:
            required = explicit
        if required > len(members):
            warnings.append(f"Group [{label}] requires {required} answers but has {len(members)}")
            required = len(members)
    return cardinality, required


def _build_alternative(
    answer: dict,
    index: int,
    linked: Tuple[int, ...],
    default_marks: int,
) -> AnswerAlternative:
    raw_marks = answer.get("marks")
    if raw_marks is None:
        marks = default_marks
    else:
        marks = coerce_marks(raw_marks)
        if marks is None:
            raise TransformError(f"Answer {index} has invalid marks {raw_marks!r}")

    variations = answer.get("acceptable_variations")
    if variations is None:
        variations = []
    elif isinstance(variations, str):
        variations = [variations]
    elif not isinstance(variations, (list, tuple)):
        raise TransformError(f"Answer {index} has invalid acceptable_variations {variations!r}")

    context = answer.get("context")
    unit = answer.get("unit")
    return AnswerAlternative(
        index=index,
        text=answer["answer"].strip(),
        marks=marks,
        working=answer.get("working") or None,
        accepts_equivalent_phrasing=bool(answer.get("accepts_equivalent_phrasing", False)),
        accepts_reverse_argument=bool(answer.get("accepts_reverse_argument", False)),
        error_carried_forward=bool(answer.get("error_carried_forward", False)),
        unit=unit.strip() if isinstance(unit, str) and unit.strip() else None,
        variations=tuple(v.strip() for v in variations if isinstance(v, str) and v.strip()),
        linked_alternatives=linked,
        marking_criteria=answer.get("marking_criteria") or None,
        context=(
            AnswerContext(
                label=_as_text(context.get("label")),
                type=_as_text(context.get("type")),
                value=_as_text(context.get("value")),
            )
            if isinstance(context, dict) else None
        ),
    )


def _as_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def link_with_warnings(
    raw_answers: Sequence[Any],
    *,
    default_marks: int = 1,
) -> Tuple[Tuple[AnswerGroup, ...], List[str]]:
    """
    Group raw answers and return the warning messages alongside.

    Raises:
        TransformError: An answer is not an object, has empty text or bad marks
    """
    if not raw_answers:
        return (), []
    _check_answer_objects(raw_answers)

    resolution = _resolve(raw_answers)
    warnings = resolution.warnings
    indices = resolution.indices

    result = []
    for members in resolution.groups.components():
        members.sort(key=lambda p: indices[p])
        cardinality, required = _group_cardinality(members, raw_answers, indices, warnings)
        member_indices = [indices[p] for p in members]
        alternatives = tuple(
            _build_alternative(
                raw_answers[p],
                indices[p],
                tuple(i for i in member_indices if i != indices[p]),
                default_marks,
            )
            for p in members
        )
        result.append(AnswerGroup(
            cardinality=cardinality,
            alternatives=alternatives,
            required_count=required,
            case_sensitive=any(bool(raw_answers[p].get("case_sensitive")) for p in members),
        ))
    return tuple(result), warnings


def link_alternatives(
    raw_answers: Sequence[Any],
    *,
    location: str = "",
    diagnostics: Optional[DiagnosticsCollector] = None,
    question_number: Optional[str] = None,
    default_marks: int = 1,
) -> Tuple[AnswerGroup, ...]:
    """
    Build AnswerGroups from a raw ``correct_answers`` list.

    Inconsistent links never fail the import; each one is logged and, when a
    collector is given, recorded as a LinkingWarning.

    Args:
        raw_answers: Source answers (objects with "answer", "marks", ...)
        location: Human-readable location for warnings, e.g. "Part 2"
        diagnostics: Optional collector for LinkingWarning records
        question_number: Source question number for the collector
        default_marks: Marks for answers that state none

    Returns:
        Groups ordered by their first member's position

    Example:
        >>> groups = link_alternatives([
        ...     {"answer": "purple", "alternative_id": 1, "linked_alternatives": [2],
        ...      "alternative_type": "one_required"},
        ...     {"answer": "violet", "alternative_id": 2, "linked_alternatives": [1],
        ...      "alternative_type": "one_required"},
        ... ])
        >>> groups[0].cardinality.value, groups[0].indices
        ('one_required', (1, 2))
    """
    groups, warnings = link_with_warnings(raw_answers, default_marks=default_marks)
    for message in warnings:
        warning = LinkingWarning(location=location, message=message)
        logger.warning(f"Linking: {warning}")
        if diagnostics is not None:
            diagnostics.record(warning, question_number=question_number)
    return groups


def check_symmetry(raw_answers: Sequence[Any]) -> List[str]:
    """
    Report link inconsistencies without building groups.

    Entries that are not objects are skipped.
    """
    answers = [a for a in raw_answers if isinstance(a, dict)]
    if not answers:
        return []
    return _resolve(answers).warnings
